# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Password-based encryption of a `PrivateKeyInfo` with PBES2 (RFC 8018 Section 6.2).

PBES2 combines a key derivation function from the `KDFRegistry` with a CBC block cipher.
The scheme offers no integrity protection, so a wrong password is only detected
by the padding or by the structure of the decrypted `PrivateKeyInfo`.
"""

import logging
import os
from typing import Optional

from pyasn1.type import univ
from pyasn1_alt_modules import rfc5958, rfc8018
from robot.api.deco import not_keyword

from pkcs8_logic.asn1utils import (
    decode_pbes2_params,
    decode_private_key_info,
    encode_to_der,
    get_alg_id_params_bytes,
    prepare_alg_id,
)
from pkcs8_logic.cipherutils import get_cipher_by_oid, get_iv_from_alg_id
from pkcs8_logic.config_vars import PBES2ConfigVars
from pkcs8_logic.exceptions import DecryptionFailed, MalformedDER, UnsupportedAlgorithm
from pkcs8_logic.oidutils import id_PBES2, may_return_oid_to_name


@not_keyword
def decrypt_encrypted_private_key_info(
    enc_key_info: rfc5958.EncryptedPrivateKeyInfo,
    password: bytes,
    config: Optional[PBES2ConfigVars] = None,
) -> rfc5958.OneAsymmetricKey:
    """Decrypt the `encryptedData` of an `EncryptedPrivateKeyInfo`.

    :param enc_key_info: The decoded `EncryptedPrivateKeyInfo`.
    :param password: The password as bytes.
    :param config: The configuration with the KDF registry. Defaults to the default configuration.
    :return: The decrypted and decoded `PrivateKeyInfo`.
    :raises UnsupportedAlgorithm: If the encryption algorithm is not PBES2.
    :raises UnsupportedKDF: If the key derivation function is not registered.
    :raises UnsupportedPRF: If the PBKDF2 pseudorandom function is not supported.
    :raises UnsupportedCipher: If the encryption scheme is not supported.
    :raises KeyLengthMismatch: If the KDF `keyLength` does not match the cipher key size.
    :raises MalformedDER: If a structure or the IV is invalid.
    :raises DecryptionFailed: If the password is wrong or the ciphertext is corrupted.
    """
    config = config or PBES2ConfigVars()
    enc_alg_id = enc_key_info["encryptionAlgorithm"]

    if enc_alg_id["algorithm"] != id_PBES2:
        raise UnsupportedAlgorithm(enc_alg_id["algorithm"], extra_info="Only PBES2 is supported.")

    pbes2_params = decode_pbes2_params(enc_alg_id)

    kdf_alg_id = pbes2_params["keyDerivationFunc"]
    kdf_params = config.kdf_registry.resolve(
        kdf_alg_id["algorithm"], get_alg_id_params_bytes(kdf_alg_id, name="keyDerivationFunc")
    )

    enc_scheme = pbes2_params["encryptionScheme"]
    cipher = get_cipher_by_oid(enc_scheme["algorithm"])
    iv = get_iv_from_alg_id(enc_scheme)

    logging.info(
        "Decrypting the private key with %s and %s",
        may_return_oid_to_name(kdf_params.oid),
        cipher.name,
    )
    key = kdf_params.derive_key(password, cipher.key_size)
    plaintext = cipher.decrypt(key, iv, enc_key_info["encryptedData"].asOctets())

    try:
        return decode_private_key_info(plaintext)
    except MalformedDER as err:
        # A wrong key can produce a valid padding, which is only detected here.
        raise DecryptionFailed() from err


@not_keyword
def encrypt_private_key_info(
    data: bytes,
    password: bytes,
    config: Optional[PBES2ConfigVars] = None,
) -> bytes:
    """Encrypt a DER-encoded `PrivateKeyInfo` and wrap it into an `EncryptedPrivateKeyInfo`.

    A fresh salt and IV are generated for every call.

    :param data: The DER-encoded `PrivateKeyInfo`.
    :param password: The password as bytes.
    :param config: The configuration with the cipher and KDF options. Defaults to the
    default configuration (PBKDF2-HMAC-SHA1 with AES-256-CBC).
    :return: The DER-encoded `EncryptedPrivateKeyInfo`.
    """
    config = config or PBES2ConfigVars()
    cipher = config.cipher

    key, kdf_params = config.kdf_options.derive_for_encryption(password, cipher.key_size)
    iv = os.urandom(cipher.block_size)
    encrypted_data = cipher.encrypt(key, iv, data)

    pbes2_params = rfc8018.PBES2_params()
    pbes2_params["keyDerivationFunc"] = kdf_params.to_alg_id()
    pbes2_params["encryptionScheme"] = cipher.prepare_alg_id(iv)

    enc_key_info = rfc5958.EncryptedPrivateKeyInfo()
    enc_key_info["encryptionAlgorithm"] = prepare_alg_id(id_PBES2, pbes2_params)
    enc_key_info["encryptedData"] = univ.OctetString(encrypted_data)

    logging.info("Encrypted the private key with %s and %s", may_return_oid_to_name(kdf_params.oid), cipher.name)
    return encode_to_der(enc_key_info)
