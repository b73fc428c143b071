# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Dataclasses for configuration variables used by the PBES2 pipeline."""

from abc import ABC
from dataclasses import dataclass, field, fields

from pkcs8_logic.cipherutils import BlockCipherSpec, get_cipher_by_name
from pkcs8_logic.kdfutils import KDFOptions, PBKDF2Options
from pkcs8_logic.registry import KDFRegistry, get_default_kdf_registry


@dataclass
class ConfigVal(ABC):
    """Base class for configuration values."""

    def to_dict(self) -> dict:
        """Convert the configuration to a dictionary."""
        out = {}
        for x in fields(self):
            out[x.name] = getattr(self, x.name)
        return out


@dataclass
class PBES2ConfigVars(ConfigVal):
    """Configuration variables for encrypting and decrypting an `EncryptedPrivateKeyInfo`.

    Attributes:
        kdf_registry: The registry used to resolve the `keyDerivationFunc`. Defaults to the process-wide registry.
        cipher_name: The cipher used for encryption. Defaults to `aes256_cbc`.
        kdf_options: The KDF options used for encryption. Defaults to PBKDF2 with the default options.
        include_public_key: If the public key is embedded as version 1 `OneAsymmetricKey`. Defaults to `False`.

    """

    kdf_registry: KDFRegistry = field(default_factory=get_default_kdf_registry)
    cipher_name: str = "aes256_cbc"
    kdf_options: KDFOptions = field(default_factory=PBKDF2Options)
    include_public_key: bool = False

    def __post_init__(self):
        """Validate the cipher name."""
        get_cipher_by_name(self.cipher_name)

    @property
    def cipher(self) -> BlockCipherSpec:
        """Return the cipher used for encryption."""
        return get_cipher_by_name(self.cipher_name)
