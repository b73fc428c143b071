# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Key derivation functions which can be used inside the PBES2 `keyDerivationFunc`.

Every KDF has two sides:

- `KDFParameters`: the decoded parameters of an existing structure, used to derive the key for decryption.
- `KDFOptions`: the caller settings used to generate fresh parameters for encryption.

New KDFs are added by implementing both interfaces and registering the parameters class
inside a `KDFRegistry`.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from pyasn1.type import univ
from pyasn1.type.base import Asn1Item
from pyasn1_alt_modules import rfc5280

from pkcs8_logic.asn1_structures import PBKDF2ParamsAsn1, ScryptParamsAsn1
from pkcs8_logic.asn1utils import encode_to_der, prepare_alg_id, try_decode_pyasn1
from pkcs8_logic.exceptions import KeyLengthMismatch, MalformedDER, UnsupportedPRF
from pkcs8_logic.oidutils import (
    PRF_NAME_2_OID,
    PRF_OID_2_NAME,
    hash_name_to_instance,
    id_PBKDF2,
    id_scrypt,
)


def _check_key_length(key_length: Optional[int], size: int) -> None:
    """Ensure that a present and non-zero `keyLength` matches the key size of the cipher."""
    if key_length and key_length != size:
        raise KeyLengthMismatch(key_length=key_length, expected=size)


class KDFParameters(ABC):
    """Decoded parameters of a key derivation function."""

    @property
    @abstractmethod
    def oid(self) -> univ.ObjectIdentifier:
        """Return the OID of the key derivation function."""

    @abstractmethod
    def decode(self, data: bytes) -> None:
        """Populate the parameters from their DER encoding.

        :param data: The DER-encoded parameters.
        :raises MalformedDER: If the data is not a valid parameters structure.
        """

    @abstractmethod
    def to_asn1(self) -> Asn1Item:
        """Return the parameters as pyasn1 structure."""

    @abstractmethod
    def derive_key(self, password: bytes, size: int) -> bytes:
        """Derive a key of `size` bytes from the password.

        :param password: The password to derive the key from.
        :param size: The key size required by the cipher.
        :return: The derived key.
        :raises KeyLengthMismatch: If the parameters declare a different key length.
        """

    def encode(self) -> bytes:
        """Return the DER encoding of the parameters."""
        return encode_to_der(self.to_asn1())

    def to_alg_id(self) -> rfc5280.AlgorithmIdentifier:
        """Return the `keyDerivationFunc` `AlgorithmIdentifier` for these parameters."""
        return prepare_alg_id(self.oid, self.encode())


class KDFOptions(ABC):
    """Options used to generate fresh KDF parameters for encryption."""

    @property
    @abstractmethod
    def oid(self) -> univ.ObjectIdentifier:
        """Return the OID of the key derivation function."""

    @abstractmethod
    def derive_for_encryption(self, password: bytes, size: int) -> Tuple[bytes, KDFParameters]:
        """Generate a fresh random salt and derive a key of `size` bytes.

        :param password: The password to derive the key from.
        :param size: The key size required by the cipher.
        :return: The derived key and the parameters to store inside the `PBES2-params`.
        """


def resolve_prf_hash(prf: Optional[rfc5280.AlgorithmIdentifier]) -> hashes.HashAlgorithm:
    """Return the hash algorithm of the PBKDF2 pseudorandom function.

    An absent `prf` means hmacWithSHA1 (RFC 8018 Appendix A.2).

    :param prf: The `prf` field of the `PBKDF2-params` or `None`, if absent.
    :return: The hash algorithm to use with HMAC.
    :raises UnsupportedPRF: If the PRF is not supported.
    """
    if prf is None:
        return hashes.SHA1()

    oid = prf["algorithm"]
    if oid not in PRF_OID_2_NAME:
        raise UnsupportedPRF(oid, extra_info="is not supported as PBKDF2 PRF.")

    return hash_name_to_instance(PRF_OID_2_NAME[oid])


@dataclass
class PBKDF2Parameters(KDFParameters):
    """Decoded `PBKDF2-params`.

    Attributes:
        salt: The salt.
        iteration_count: The number of iterations.
        key_length: The optional key length in bytes.
        prf: The optional pseudorandom function. `None` means hmacWithSHA1.

    """

    salt: bytes = b""
    iteration_count: int = 0
    key_length: Optional[int] = None
    prf: Optional[rfc5280.AlgorithmIdentifier] = None

    @property
    def oid(self) -> univ.ObjectIdentifier:
        """Return the OID of PBKDF2."""
        return id_PBKDF2

    def decode(self, data: bytes) -> None:
        """Populate the parameters from the DER-encoded `PBKDF2-params`."""
        params = try_decode_pyasn1(data, PBKDF2ParamsAsn1(), name="PBKDF2-params")
        self.salt = params["salt"].asOctets()
        self.iteration_count = int(params["iterationCount"])
        self.key_length = int(params["keyLength"]) if params["keyLength"].isValue else None
        self.prf = params["prf"] if params["prf"].isValue else None

    def to_asn1(self) -> PBKDF2ParamsAsn1:
        """Return the `PBKDF2-params` structure."""
        params = PBKDF2ParamsAsn1()
        params["salt"] = univ.OctetString(self.salt)
        params["iterationCount"] = self.iteration_count
        if self.key_length is not None:
            params["keyLength"] = self.key_length
        if self.prf is not None:
            params["prf"] = self.prf
        return params

    def derive_key(self, password: bytes, size: int) -> bytes:
        """Derive the key with PBKDF2, running exactly `iteration_count` rounds."""
        hash_alg = resolve_prf_hash(self.prf)
        _check_key_length(self.key_length, size)

        logging.info(
            "Deriving a %d byte key with PBKDF2-HMAC-%s and %d iterations",
            size,
            hash_alg.name,
            self.iteration_count,
        )
        kdf = PBKDF2HMAC(
            algorithm=hash_alg,
            length=size,
            salt=self.salt,
            iterations=self.iteration_count,
        )
        return kdf.derive(password)


@dataclass
class PBKDF2Options(KDFOptions):
    """Options to generate `PBKDF2-params` for encryption.

    Attributes:
        salt_size: The size of the random salt in bytes. Defaults to `8`.
        iteration_count: The number of iterations. Defaults to `2048`.
        hmac_hash: The hash algorithm used with HMAC as PRF. Defaults to `sha1`.

    """

    salt_size: int = 8
    iteration_count: int = 2048
    hmac_hash: str = "sha1"

    def __post_init__(self):
        """Validate the options."""
        if self.iteration_count < 1:
            raise ValueError(f"The iteration count must be at least 1. Got: {self.iteration_count}")
        if self.salt_size < 1:
            raise ValueError(f"The salt size must be at least 1. Got: {self.salt_size}")
        if f"hmac-{self.hmac_hash}" not in PRF_NAME_2_OID:
            raise ValueError(f"Unsupported PBKDF2 hash algorithm: {self.hmac_hash}")

    @property
    def oid(self) -> univ.ObjectIdentifier:
        """Return the OID of PBKDF2."""
        return id_PBKDF2

    def _prepare_prf(self) -> Optional[rfc5280.AlgorithmIdentifier]:
        """Return the `prf` field, absent for the default hmacWithSHA1."""
        if self.hmac_hash == "sha1":
            return None
        return prepare_alg_id(PRF_NAME_2_OID[f"hmac-{self.hmac_hash}"], univ.Null(""))

    def derive_for_encryption(self, password: bytes, size: int) -> Tuple[bytes, PBKDF2Parameters]:
        """Generate a random salt and derive the key with PBKDF2."""
        params = PBKDF2Parameters(
            salt=os.urandom(self.salt_size),
            iteration_count=self.iteration_count,
            key_length=size,
            prf=self._prepare_prf(),
        )
        return params.derive_key(password, size), params


@dataclass
class ScryptParameters(KDFParameters):
    """Decoded `scrypt-params` (RFC 7914).

    Attributes:
        salt: The salt.
        cost_parameter: The CPU/memory cost parameter N.
        block_size: The block size parameter r.
        parallelization_parameter: The parallelization parameter p.
        key_length: The optional key length in bytes.

    """

    salt: bytes = b""
    cost_parameter: int = 0
    block_size: int = 0
    parallelization_parameter: int = 0
    key_length: Optional[int] = None

    @property
    def oid(self) -> univ.ObjectIdentifier:
        """Return the OID of scrypt."""
        return id_scrypt

    def decode(self, data: bytes) -> None:
        """Populate the parameters from the DER-encoded `scrypt-params`."""
        params = try_decode_pyasn1(data, ScryptParamsAsn1(), name="scrypt-params")
        self.salt = params["salt"].asOctets()
        self.cost_parameter = int(params["costParameter"])
        self.block_size = int(params["blockSize"])
        self.parallelization_parameter = int(params["parallelizationParameter"])
        self.key_length = int(params["keyLength"]) if params["keyLength"].isValue else None

    def to_asn1(self) -> ScryptParamsAsn1:
        """Return the `scrypt-params` structure."""
        params = ScryptParamsAsn1()
        params["salt"] = univ.OctetString(self.salt)
        params["costParameter"] = self.cost_parameter
        params["blockSize"] = self.block_size
        params["parallelizationParameter"] = self.parallelization_parameter
        if self.key_length is not None:
            params["keyLength"] = self.key_length
        return params

    def derive_key(self, password: bytes, size: int) -> bytes:
        """Derive the key with scrypt."""
        _check_key_length(self.key_length, size)

        logging.info(
            "Deriving a %d byte key with scrypt N=%d r=%d p=%d",
            size,
            self.cost_parameter,
            self.block_size,
            self.parallelization_parameter,
        )
        try:
            kdf = Scrypt(
                salt=self.salt,
                length=size,
                n=self.cost_parameter,
                r=self.block_size,
                p=self.parallelization_parameter,
            )
        except ValueError as err:
            raise MalformedDER(f"Invalid `scrypt-params`: {err}") from err
        return kdf.derive(password)


@dataclass
class ScryptOptions(KDFOptions):
    """Options to generate `scrypt-params` for encryption.

    Attributes:
        salt_size: The size of the random salt in bytes. Defaults to `16`.
        cost_parameter: The CPU/memory cost parameter N, a power of two. Defaults to `16384`.
        block_size: The block size parameter r. Defaults to `8`.
        parallelization_parameter: The parallelization parameter p. Defaults to `1`.

    """

    salt_size: int = 16
    cost_parameter: int = 16384
    block_size: int = 8
    parallelization_parameter: int = 1

    def __post_init__(self):
        """Validate the options."""
        n = self.cost_parameter
        if n < 2 or n & (n - 1) != 0:
            raise ValueError(f"The scrypt cost parameter must be a power of two greater than 1. Got: {n}")
        if self.block_size < 1 or self.parallelization_parameter < 1:
            raise ValueError("The scrypt block size and parallelization parameter must be at least 1.")
        if self.salt_size < 1:
            raise ValueError(f"The salt size must be at least 1. Got: {self.salt_size}")

    @property
    def oid(self) -> univ.ObjectIdentifier:
        """Return the OID of scrypt."""
        return id_scrypt

    def derive_for_encryption(self, password: bytes, size: int) -> Tuple[bytes, ScryptParameters]:
        """Generate a random salt and derive the key with scrypt."""
        params = ScryptParameters(
            salt=os.urandom(self.salt_size),
            cost_parameter=self.cost_parameter,
            block_size=self.block_size,
            parallelization_parameter=self.parallelization_parameter,
            key_length=size,
        )
        return params.derive_key(password, size), params
