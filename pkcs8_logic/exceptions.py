# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Contains Custom Exceptions for the PKCS#8 logic."""

from typing import List, Optional, Union

from pyasn1.type import univ

from pkcs8_logic.oidutils import may_return_oid_to_name


class PKCS8Error(Exception):
    """Base class for all PKCS#8 errors."""

    error_details: List[str]

    def __init__(self, message: str, error_details: Optional[Union[List[str], str]] = None):
        """Initialize the exception with the message.

        :param message: The message to display.
        :param error_details: Additional details about the error.
        """
        self.message = message
        self.error_details = []
        if isinstance(error_details, str):
            self.error_details = [error_details]
        elif error_details is not None:
            self.error_details = list(error_details)
        super().__init__(message)

    def get_error_details(self) -> List[str]:
        """Return the error details."""
        return self.error_details


class MalformedDER(PKCS8Error):
    """Raised when the DER data is truncated, has the wrong tag, misses a field or has trailing data."""

    def __init__(
        self,
        message: str,
        remainder: Optional[bytes] = None,
        overwrite: bool = False,
        error_details: Optional[Union[List[str], str]] = None,
    ):
        """Initialize the exception with the message.

        :param message: The message to display or just the structure name.
        :param remainder: The remainder of the DER data.
        :param overwrite: Raise the exception with the message only.
        """
        if overwrite or remainder is None:
            super().__init__(message, error_details=error_details)
        else:
            super().__init__(
                f"Decoding the `{message}` structure had a remainder: {remainder.hex()}.", error_details=error_details
            )


class UnsupportedOID(PKCS8Error):
    """Base class for the errors raised for an unknown or not allowed algorithm."""

    def __init__(self, oid: univ.ObjectIdentifier, extra_info: str = ""):
        """Initialize the exception with the OID and extra information.

        :param oid: The OID that is not supported.
        :param extra_info: Additional information about the unsupported OID.
        """
        oid_name = may_return_oid_to_name(oid)
        self.oid = oid
        message = f"{self.__class__.__name__}: {oid_name}:{oid}"
        if extra_info:
            message += f" {extra_info}"
        super().__init__(message)


class UnsupportedAlgorithm(UnsupportedOID):
    """Raised when the `encryptionAlgorithm` of an `EncryptedPrivateKeyInfo` is not PBES2."""


class UnsupportedKDF(UnsupportedOID):
    """Raised when no key derivation function is registered for the `keyDerivationFunc` OID."""


class UnsupportedPRF(UnsupportedKDF):
    """Raised when the pseudorandom function of a KDF is not supported."""


class UnsupportedCipher(UnsupportedOID):
    """Raised when the `encryptionScheme` OID is not one of the supported ciphers."""


class KeyLengthMismatch(PKCS8Error):
    """Raised when the `keyLength` of the KDF parameters differs from the key size of the cipher."""

    def __init__(self, key_length: int, expected: int):
        """Initialize the exception with both lengths.

        :param key_length: The key length inside the KDF parameters.
        :param expected: The key size required by the cipher.
        """
        self.key_length = key_length
        self.expected = expected
        super().__init__(f"The KDF `keyLength` is {key_length} bytes, but the cipher requires {expected} bytes.")


class DecryptionFailed(PKCS8Error):
    """Raised when the decrypted data has an invalid padding or is not a valid `PrivateKeyInfo`.

    PBES2 has no integrity protection, so a wrong password and corrupted ciphertext
    can not be told apart. Both are reported with this exception.
    """

    def __init__(self, message: str = "Decryption failed: wrong password or corrupted data.", **kwargs):
        """Initialize the exception with the same message for every cause."""
        super().__init__(message, **kwargs)


class UnsupportedKeyType(PKCS8Error):
    """Raised when a key is neither RSA nor an EC key over a supported named curve."""


class MissingPassword(PKCS8Error):
    """Raised when an `EncryptedPrivateKeyInfo` is parsed without a password."""
