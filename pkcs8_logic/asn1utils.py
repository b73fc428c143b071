# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Strict DER decoding and canonical DER encoding of the PKCS#8 structures.

Every decoding function in this module raises `MalformedDER`, if the data is truncated,
has the wrong tag, misses a mandatory field or has trailing data.
"""

import logging
from typing import Optional, Union

import pyasn1.error
from pyasn1.codec.der import decoder, encoder
from pyasn1.type import univ
from pyasn1.type.base import Asn1Item
from pyasn1_alt_modules import rfc5280, rfc5958, rfc8018

from pkcs8_logic.exceptions import MalformedDER


def try_decode_pyasn1(data: bytes, asn1_spec: Asn1Item, name: Optional[str] = None) -> Asn1Item:
    """Decode DER data into the given structure and reject trailing data.

    :param data: The DER-encoded data.
    :param asn1_spec: The structure to decode into.
    :param name: The name of the structure used in the error message.
    Defaults to the class name of `asn1_spec`.
    :return: The decoded structure.
    :raises MalformedDER: If the data could not be decoded or had a remainder.
    """
    name = name or type(asn1_spec).__name__
    try:
        decoded, rest = decoder.decode(data, asn1Spec=asn1_spec)
    except (pyasn1.error.PyAsn1Error, ValueError) as err:
        raise MalformedDER(
            f"Could not decode the `{name}` structure.", overwrite=True, error_details=str(err)
        ) from err

    if rest:
        raise MalformedDER(name, remainder=bytes(rest))

    # The decoder accepts a SEQUENCE with missing mandatory components.
    if not decoded.isValue:
        raise MalformedDER(f"The `{name}` structure misses a mandatory field.")

    return decoded


def encode_to_der(asn1_object: Asn1Item) -> bytes:
    """Encode a structure as canonical DER.

    :param asn1_object: The pyasn1 object to encode.
    :return: The DER-encoded bytes.
    :raises MalformedDER: If a mandatory field is not set.
    """
    try:
        return encoder.encode(asn1_object)
    except pyasn1.error.PyAsn1Error as err:
        name = type(asn1_object).__name__
        raise MalformedDER(f"Could not encode the `{name}` structure: {err}", overwrite=True) from err


def prepare_alg_id(
    oid: univ.ObjectIdentifier, value: Optional[Union[bytes, Asn1Item]] = None
) -> rfc5280.AlgorithmIdentifier:
    """Prepare an `AlgorithmIdentifier`.

    :param oid: The OID of the algorithm.
    :param value: The parameters as already encoded bytes or as a pyasn1 object.
    If `None`, the `parameters` field is absent.
    :return: The populated `AlgorithmIdentifier` structure.
    """
    alg_id = rfc5280.AlgorithmIdentifier()
    alg_id["algorithm"] = oid

    if isinstance(value, bytes):
        alg_id["parameters"] = value
    elif value is not None:
        alg_id["parameters"] = encode_to_der(value)

    return alg_id


def get_alg_id_params_bytes(alg_id: rfc5280.AlgorithmIdentifier, name: str) -> bytes:
    """Return the encoded `parameters` of an `AlgorithmIdentifier`.

    :param alg_id: The `AlgorithmIdentifier` to read.
    :param name: The name of the parameters structure used in the error message.
    :return: The DER-encoded parameters.
    :raises MalformedDER: If the `parameters` field is absent.
    """
    if not alg_id["parameters"].isValue:
        raise MalformedDER(f"The `{name}` parameters are absent.")
    return alg_id["parameters"].asOctets()


def decode_alg_id_params(alg_id: rfc5280.AlgorithmIdentifier, asn1_spec: Asn1Item, name: str) -> Asn1Item:
    """Decode the `parameters` of an `AlgorithmIdentifier` into the given structure.

    :param alg_id: The `AlgorithmIdentifier` to read.
    :param asn1_spec: The structure to decode the parameters into.
    :param name: The name of the parameters structure used in the error message.
    :return: The decoded parameters.
    :raises MalformedDER: If the parameters are absent or could not be decoded.
    """
    return try_decode_pyasn1(get_alg_id_params_bytes(alg_id, name), asn1_spec, name=name)


def decode_private_key_info(data: bytes) -> rfc5958.OneAsymmetricKey:
    """Decode a `PrivateKeyInfo` (RFC 5208) or a `OneAsymmetricKey` (RFC 5958).

    :param data: The DER-encoded structure.
    :return: The decoded `OneAsymmetricKey`.
    :raises MalformedDER: If the data is not a valid structure, the version is unknown,
    or a version 0 structure contains a public key.
    """
    one_asym_key = try_decode_pyasn1(data, rfc5958.OneAsymmetricKey(), name="PrivateKeyInfo")

    version = int(one_asym_key["version"])
    if version not in (0, 1):
        raise MalformedDER(f"Unsupported `PrivateKeyInfo` version: {version}. Supported versions are 0 and 1.")

    if version == 0 and one_asym_key["publicKey"].isValue:
        raise MalformedDER("The `PrivateKeyInfo` version is 0, but a public key is present.")

    return one_asym_key


def decode_encrypted_private_key_info(data: bytes) -> rfc5958.EncryptedPrivateKeyInfo:
    """Decode an `EncryptedPrivateKeyInfo`.

    :param data: The DER-encoded structure.
    :return: The decoded `EncryptedPrivateKeyInfo`.
    :raises MalformedDER: If the data is not a valid structure.
    """
    return try_decode_pyasn1(data, rfc5958.EncryptedPrivateKeyInfo(), name="EncryptedPrivateKeyInfo")


def decode_pbes2_params(alg_id: rfc5280.AlgorithmIdentifier) -> rfc8018.PBES2_params:
    """Decode the `PBES2-params` of the outer encryption algorithm.

    :param alg_id: The `encryptionAlgorithm` of an `EncryptedPrivateKeyInfo`.
    :return: The decoded `PBES2-params`.
    :raises MalformedDER: If the parameters are absent or invalid.
    """
    params = decode_alg_id_params(alg_id, rfc8018.PBES2_params(), name="PBES2-params")
    logging.debug(
        "PBES2 uses KDF: %s and encryption scheme: %s",
        params["keyDerivationFunc"]["algorithm"],
        params["encryptionScheme"]["algorithm"],
    )
    return params
