# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Parse and serialize RSA and EC private keys as unencrypted or PBES2-encrypted PKCS#8 structures.

The keywords accept and return DER-encoded bytes. PEM armour is left to the caller.
"""

import dataclasses
import logging
from typing import Optional, Union

from cryptography.hazmat.primitives.asymmetric import ec, rsa
from robot.api.deco import keyword, not_keyword

from pkcs8_logic.asn1utils import decode_encrypted_private_key_info, decode_private_key_info, encode_to_der
from pkcs8_logic.config_vars import PBES2ConfigVars
from pkcs8_logic.convertutils import password_to_bytes
from pkcs8_logic.exceptions import MalformedDER, MissingPassword, UnsupportedKeyType
from pkcs8_logic.kdfutils import KDFOptions
from pkcs8_logic.keyutils import PrivateKey, from_private_key_info, to_private_key_info
from pkcs8_logic.pbes2utils import decrypt_encrypted_private_key_info, encrypt_private_key_info

Password = Union[str, bytes]


@not_keyword
def is_encrypted(data: bytes) -> bool:
    """Return `True`, if the data is an `EncryptedPrivateKeyInfo`."""
    try:
        decode_encrypted_private_key_info(data)
    except MalformedDER:
        return False
    return True


@keyword(name="Parse PKCS8 Private Key")
def parse(  # noqa: D417 for RF docs
    data: bytes, password: Optional[Password] = None
) -> PrivateKey:
    """Parse an unencrypted `PrivateKeyInfo`.

    The password is ignored, because the structure is not encrypted.

    Arguments:
    ---------
        - `data`: The DER-encoded `PrivateKeyInfo`.
        - `password`: Ignored. Defaults to `None`.

    Returns:
    -------
        - The loaded `RSAPrivateKey` or `EllipticCurvePrivateKey`.

    Raises:
    ------
        - `MalformedDER`: If the data is not a valid `PrivateKeyInfo`.
        - `UnsupportedKeyType`: If the key is neither RSA nor EC over a supported curve.

    Examples:
    --------
    | ${key}= | Parse PKCS8 Private Key | ${der_data} |

    """
    if password is not None:
        logging.debug("The password is ignored for an unencrypted `PrivateKeyInfo`.")

    one_asym_key = decode_private_key_info(data)
    return from_private_key_info(one_asym_key)


@keyword(name="Parse Encrypted PKCS8 Private Key")
def parse_encrypted(  # noqa: D417 for RF docs
    data: bytes,
    password: Optional[Password] = None,
    config: Optional[PBES2ConfigVars] = None,
) -> PrivateKey:
    """Decrypt and parse a PBES2-encrypted `EncryptedPrivateKeyInfo`.

    Arguments:
    ---------
        - `data`: The DER-encoded `EncryptedPrivateKeyInfo`.
        - `password`: The password as string (UTF-8 encoded) or bytes.
        - `config`: The configuration with the KDF registry. Defaults to `None` (default configuration).

    Returns:
    -------
        - The loaded `RSAPrivateKey` or `EllipticCurvePrivateKey`.

    Raises:
    ------
        - `MissingPassword`: If no password is provided.
        - `MalformedDER`: If the outer structure or its parameters are invalid. Also raised, if the
          decrypted `PrivateKeyInfo` is valid, but its `RSAPrivateKey` or `ECPrivateKey` payload is not.
        - `UnsupportedAlgorithm`: If the encryption algorithm is not PBES2.
        - `UnsupportedKDF`: If the key derivation function or its PRF is not supported.
        - `UnsupportedCipher`: If the encryption scheme is not supported.
        - `KeyLengthMismatch`: If the KDF `keyLength` does not match the cipher key size.
        - `DecryptionFailed`: If the padding or the decrypted `PrivateKeyInfo` envelope is invalid,
          which means the password is wrong or the data is corrupted.

    Examples:
    --------
    | ${key}= | Parse Encrypted PKCS8 Private Key | ${der_data} | password=password |

    """
    if password is None:
        raise MissingPassword("A password is required to parse an `EncryptedPrivateKeyInfo`.")

    enc_key_info = decode_encrypted_private_key_info(data)
    one_asym_key = decrypt_encrypted_private_key_info(enc_key_info, password_to_bytes(password), config=config)
    return from_private_key_info(one_asym_key)


@keyword(name="Parse Private Key")
def parse_private_key(  # noqa: D417 for RF docs
    data: bytes,
    password: Optional[Password] = None,
    config: Optional[PBES2ConfigVars] = None,
) -> PrivateKey:
    """Parse an unencrypted `PrivateKeyInfo` or an `EncryptedPrivateKeyInfo`.

    Arguments:
    ---------
        - `data`: The DER-encoded structure.
        - `password`: The password, only used if the structure is encrypted. Defaults to `None`.
        - `config`: The configuration for the decryption. Defaults to `None`.

    Returns:
    -------
        - The loaded `RSAPrivateKey` or `EllipticCurvePrivateKey`.

    Raises:
    ------
        - `MissingPassword`: If the structure is encrypted and no password is provided.
        - `MalformedDER`: If the data is neither of both structures.

    Examples:
    --------
    | ${key}= | Parse Private Key | ${der_data} |
    | ${key}= | Parse Private Key | ${der_data} | password=password |

    """
    try:
        one_asym_key = decode_private_key_info(data)
    except MalformedDER:
        if not is_encrypted(data):
            raise
        return parse_encrypted(data, password=password, config=config)

    return from_private_key_info(one_asym_key)


@keyword(name="Parse RSA Private Key")
def parse_rsa_private_key(
    data: bytes,
    password: Optional[Password] = None,
    config: Optional[PBES2ConfigVars] = None,
) -> rsa.RSAPrivateKey:
    """Parse a `PrivateKeyInfo` or an `EncryptedPrivateKeyInfo` which must contain an RSA key.

    :raises UnsupportedKeyType: If the structure contains an EC key.
    """
    private_key = parse_private_key(data, password=password, config=config)
    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise UnsupportedKeyType(f"Expected an RSA private key. Got: {type(private_key).__name__}")
    return private_key


@keyword(name="Parse EC Private Key")
def parse_ec_private_key(
    data: bytes,
    password: Optional[Password] = None,
    config: Optional[PBES2ConfigVars] = None,
) -> ec.EllipticCurvePrivateKey:
    """Parse a `PrivateKeyInfo` or an `EncryptedPrivateKeyInfo` which must contain an EC key.

    :raises UnsupportedKeyType: If the structure contains an RSA key.
    """
    private_key = parse_private_key(data, password=password, config=config)
    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise UnsupportedKeyType(f"Expected an EC private key. Got: {type(private_key).__name__}")
    return private_key


@keyword(name="Serialize PKCS8 Private Key")
def serialize(  # noqa: D417 for RF docs
    private_key: PrivateKey, include_public_key: bool = False
) -> bytes:
    """Serialize a private key as unencrypted `PrivateKeyInfo`.

    Arguments:
    ---------
        - `private_key`: The RSA or EC private key.
        - `include_public_key`: If the public key is embedded as version 1 `OneAsymmetricKey`.
          Defaults to `False` (version 0).

    Returns:
    -------
        - The DER-encoded `PrivateKeyInfo`.

    Raises:
    ------
        - `UnsupportedKeyType`: If the key is neither RSA nor EC over a supported curve.

    Examples:
    --------
    | ${der_data}= | Serialize PKCS8 Private Key | ${key} |
    | ${der_data}= | Serialize PKCS8 Private Key | ${key} | include_public_key=True |

    """
    return encode_to_der(to_private_key_info(private_key, include_public_key=include_public_key))


@keyword(name="Serialize Encrypted PKCS8 Private Key")
def serialize_encrypted(  # noqa: D417 for RF docs
    private_key: PrivateKey,
    password: Password,
    kdf_options: Optional[KDFOptions] = None,
    config: Optional[PBES2ConfigVars] = None,
) -> bytes:
    """Serialize a private key as PBES2-encrypted `EncryptedPrivateKeyInfo`.

    Arguments:
    ---------
        - `private_key`: The RSA or EC private key.
        - `password`: The password as string (UTF-8 encoded) or bytes. An empty password is allowed.
        - `kdf_options`: The KDF options, overriding the ones of the configuration. Defaults to `None`.
        - `config`: The configuration with the cipher and KDF options. Defaults to `None`
          (PBKDF2-HMAC-SHA1 with 2048 iterations and AES-256-CBC).

    Returns:
    -------
        - The DER-encoded `EncryptedPrivateKeyInfo`.

    Raises:
    ------
        - `MissingPassword`: If the password is `None`.
        - `UnsupportedKeyType`: If the key is neither RSA nor EC over a supported curve.

    Examples:
    --------
    | ${der_data}= | Serialize Encrypted PKCS8 Private Key | ${key} | password |
    | ${der_data}= | Serialize Encrypted PKCS8 Private Key | ${key} | password | config=${config} |

    """
    if password is None:
        raise MissingPassword("A password is required to serialize an `EncryptedPrivateKeyInfo`.")

    config = config or PBES2ConfigVars()
    if kdf_options is not None:
        config = dataclasses.replace(config, kdf_options=kdf_options)

    one_asym_key = to_private_key_info(private_key, include_public_key=config.include_public_key)
    return encrypt_private_key_info(encode_to_der(one_asym_key), password_to_bytes(password), config=config)
