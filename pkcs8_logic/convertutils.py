# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Utility for converting the caller input into the bytes used by the PKCS#8 logic."""

from typing import Union


def password_to_bytes(password: Union[str, bytes]) -> bytes:
    """Convert a password to bytes.

    Unlike other string inputs, a password is never interpreted as hex,
    so "0x..." stays a literal password.

    :param password: The password:
           - If the input is already bytes, it is returned unchanged.
           - Otherwise, the string is encoded in UTF-8 format.
    :return: The password as bytes.
    :raises TypeError: If the input is neither a string nor bytes.
    """
    if isinstance(password, str):
        return password.encode("utf-8")
    if isinstance(password, (bytes, bytearray)):
        return bytes(password)
    raise TypeError(f"The password must be of type 'str' or 'bytes'. Received: {type(password)}")
