# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Block ciphers in CBC mode which can be used as the PBES2 `encryptionScheme`."""

import logging
from dataclasses import dataclass
from typing import Dict, Type

from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, CipherAlgorithm, algorithms, modes
from pyasn1.type import univ
from pyasn1_alt_modules import rfc5280
from robot.api.deco import not_keyword

from pkcs8_logic.asn1utils import get_alg_id_params_bytes, prepare_alg_id, try_decode_pyasn1
from pkcs8_logic.exceptions import DecryptionFailed, MalformedDER, UnsupportedCipher
from pkcs8_logic.oidutils import SYMMETRIC_ENCR_ALG_NAME_2_OID, SYMMETRIC_ENCR_ALG_OID_2_NAME


@dataclass(frozen=True)
class BlockCipherSpec:
    """A block cipher in CBC mode with PKCS#5/PKCS#7 padding.

    Attributes:
        name: The name of the cipher, e.g. `aes256_cbc`.
        key_size: The key size in bytes.
        block_size: The block size in bytes, which is also the IV size.
        algorithm: The `cryptography` cipher algorithm class.

    """

    name: str
    key_size: int
    block_size: int
    algorithm: Type[CipherAlgorithm]

    @property
    def oid(self) -> univ.ObjectIdentifier:
        """Return the OID of the cipher."""
        return SYMMETRIC_ENCR_ALG_NAME_2_OID[self.name]

    def _prepare_cipher(self, key: bytes, iv: bytes) -> Cipher:
        """Check the key and IV size and return the CBC cipher."""
        if len(key) != self.key_size:
            raise ValueError(f"The key for {self.name} must be {self.key_size} bytes long. Got: {len(key)}")
        if len(iv) != self.block_size:
            raise MalformedDER(f"The IV for {self.name} must be {self.block_size} bytes long. Got: {len(iv)}")
        return Cipher(self.algorithm(key), modes.CBC(iv))

    def encrypt(self, key: bytes, iv: bytes, plaintext: bytes) -> bytes:
        """Pad the plaintext and encrypt it in CBC mode.

        Always appends between 1 and `block_size` padding bytes.

        :param key: The encryption key.
        :param iv: The initialization vector.
        :param plaintext: The data to encrypt.
        :return: The ciphertext.
        """
        cipher = self._prepare_cipher(key, iv)
        padder = padding.PKCS7(self.block_size * 8).padder()
        padded_data = padder.update(plaintext) + padder.finalize()

        encryptor = cipher.encryptor()
        return encryptor.update(padded_data) + encryptor.finalize()

    def decrypt(self, key: bytes, iv: bytes, ciphertext: bytes) -> bytes:
        """Decrypt the ciphertext in CBC mode and remove the padding.

        :param key: The decryption key.
        :param iv: The initialization vector.
        :param ciphertext: The data to decrypt.
        :return: The unpadded plaintext.
        :raises MalformedDER: If the IV size is wrong or the ciphertext is empty
        or not a multiple of the block size.
        :raises DecryptionFailed: If the padding is invalid.
        """
        if not ciphertext or len(ciphertext) % self.block_size != 0:
            raise MalformedDER(
                f"The ciphertext length must be a non-zero multiple of {self.block_size} bytes. Got: {len(ciphertext)}"
            )

        cipher = self._prepare_cipher(key, iv)
        decryptor = cipher.decryptor()
        decrypted_data = decryptor.update(ciphertext) + decryptor.finalize()
        return pkcs7_unpad(decrypted_data, self.block_size)

    def prepare_alg_id(self, iv: bytes) -> rfc5280.AlgorithmIdentifier:
        """Prepare the `encryptionScheme` with the IV as `OCTET STRING` parameters."""
        return prepare_alg_id(self.oid, univ.OctetString(iv))


@not_keyword
def pkcs7_unpad(data: bytes, block_size: int) -> bytes:
    """Remove the PKCS#5/PKCS#7 padding.

    The padding bytes are checked in constant time by `cryptography`, but PBES2
    still leaks the padding validity through the error, because it has no MAC.

    :param data: The decrypted data.
    :param block_size: The block size in bytes.
    :return: The data without the padding.
    :raises DecryptionFailed: If the padding is invalid.
    """
    unpadder = padding.PKCS7(block_size * 8).unpadder()
    try:
        return unpadder.update(data) + unpadder.finalize()
    except ValueError as err:
        raise DecryptionFailed() from err


CIPHERS: Dict[str, BlockCipherSpec] = {
    "aes128_cbc": BlockCipherSpec("aes128_cbc", key_size=16, block_size=16, algorithm=algorithms.AES),
    "aes192_cbc": BlockCipherSpec("aes192_cbc", key_size=24, block_size=16, algorithm=algorithms.AES),
    "aes256_cbc": BlockCipherSpec("aes256_cbc", key_size=32, block_size=16, algorithm=algorithms.AES),
    "des_ede3_cbc": BlockCipherSpec("des_ede3_cbc", key_size=24, block_size=8, algorithm=TripleDES),
}


@not_keyword
def get_cipher_by_name(name: str) -> BlockCipherSpec:
    """Return the cipher for the name.

    :param name: The cipher name, e.g. `aes256_cbc`.
    :raises ValueError: If the name is unknown.
    """
    try:
        return CIPHERS[name]
    except KeyError as err:
        raise ValueError(f"Unsupported cipher: {name}. Supported are: {list(CIPHERS)}") from err


@not_keyword
def get_cipher_by_oid(oid: univ.ObjectIdentifier) -> BlockCipherSpec:
    """Return the cipher for the `encryptionScheme` OID.

    :raises UnsupportedCipher: If the OID is not a supported cipher.
    """
    if oid not in SYMMETRIC_ENCR_ALG_OID_2_NAME:
        raise UnsupportedCipher(oid, extra_info="is not a supported PBES2 encryption scheme.")
    return CIPHERS[SYMMETRIC_ENCR_ALG_OID_2_NAME[oid]]


@not_keyword
def get_iv_from_alg_id(alg_id: rfc5280.AlgorithmIdentifier) -> bytes:
    """Return the IV stored as `OCTET STRING` inside the `encryptionScheme` parameters.

    :raises MalformedDER: If the parameters are absent or not an `OCTET STRING`.
    """
    params = get_alg_id_params_bytes(alg_id, name="encryptionScheme")
    iv = try_decode_pyasn1(params, univ.OctetString(), name="IV").asOctets()
    logging.debug("The IV is %d bytes long", len(iv))
    return iv
