# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Convert RSA and EC private keys to and from a `PrivateKeyInfo` structure."""

import logging
from typing import Optional, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from pyasn1.type import tag, univ
from pyasn1_alt_modules import rfc3279, rfc4211, rfc5280, rfc5915, rfc5958, rfc6664, rfc8017, rfc9481
from robot.api.deco import not_keyword

from pkcs8_logic.asn1utils import encode_to_der, get_alg_id_params_bytes, prepare_alg_id, try_decode_pyasn1
from pkcs8_logic.exceptions import MalformedDER, UnsupportedKeyType
from pkcs8_logic.oidutils import CURVE_NAME_2_OID, CURVE_OIDS_2_NAME, KEY_TYPE_OID_2_NAME, may_return_oid_to_name

PrivateKey = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey]

# The identifier octets of the `ECParameters` choices other than `namedCurve` (RFC 5480 Section 2.1.1).
_UNSUPPORTED_EC_PARAMETERS = {
    b"\x30": "specifiedCurve",
    b"\x05": "implicitCurve",
}


def _get_curve_oid(private_key: ec.EllipticCurvePrivateKey) -> univ.ObjectIdentifier:
    """Return the named-curve OID of an EC key.

    :raises UnsupportedKeyType: If the curve is not supported.
    """
    curve_name = private_key.curve.name
    if curve_name not in CURVE_NAME_2_OID:
        raise UnsupportedKeyType(
            f"Unsupported EC curve: {curve_name}. Supported curves are: {list(CURVE_NAME_2_OID)}"
        )
    return CURVE_NAME_2_OID[curve_name]


def _prepare_private_key_bytes(private_key: PrivateKey) -> bytes:
    """Return the PKCS#1 `RSAPrivateKey` or the SEC1 `ECPrivateKey` DER encoding."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )


def _get_public_key_bytes(private_key: PrivateKey) -> bytes:
    """Return the public key as it is stored inside the `subjectPublicKey` of a certificate."""
    public_key = private_key.public_key()
    if isinstance(public_key, rsa.RSAPublicKey):
        return public_key.public_bytes(encoding=serialization.Encoding.DER, format=serialization.PublicFormat.PKCS1)
    return public_key.public_bytes(
        encoding=serialization.Encoding.X962, format=serialization.PublicFormat.UncompressedPoint
    )


def _prepare_one_asym_key(
    private_key_bytes: bytes,
    alg_id: rfc5280.AlgorithmIdentifier,
    public_key_bytes: Optional[bytes] = None,
) -> rfc5958.OneAsymmetricKey:
    """Prepare a `OneAsymmetricKey`, version 1 if the public key is included, else version 0.

    :param private_key_bytes: The encoded private key.
    :param alg_id: The private key algorithm identifier.
    :param public_key_bytes: The encoded public key, if it should be embedded.
    :return: The populated `OneAsymmetricKey`.
    """
    one_asym_key = rfc5958.OneAsymmetricKey()
    one_asym_key["version"] = univ.Integer(0 if public_key_bytes is None else 1)
    one_asym_key["privateKeyAlgorithm"] = alg_id
    one_asym_key["privateKey"] = univ.OctetString(private_key_bytes)

    if public_key_bytes is not None:
        one_asym_key["publicKey"] = (
            rfc5958.PublicKey()
            .fromOctetString(public_key_bytes)
            .subtype(implicitTag=tag.Tag(tag.tagClassContext, tag.tagFormatSimple, 1))
        )

    return one_asym_key


@not_keyword
def to_private_key_info(private_key: PrivateKey, include_public_key: bool = False) -> rfc5958.OneAsymmetricKey:
    """Convert an RSA or EC private key into a `PrivateKeyInfo` structure.

    :param private_key: The private key to convert.
    :param include_public_key: If the public key is embedded, which sets the version to 1.
    Defaults to `False`.
    :return: The populated `OneAsymmetricKey`.
    :raises UnsupportedKeyType: If the key is neither RSA nor EC over a supported curve.
    """
    if isinstance(private_key, rsa.RSAPrivateKey):
        alg_id = prepare_alg_id(rfc9481.rsaEncryption, univ.Null(""))
    elif isinstance(private_key, ec.EllipticCurvePrivateKey):
        alg_id = prepare_alg_id(rfc6664.id_ecPublicKey, _get_curve_oid(private_key))
    else:
        raise UnsupportedKeyType(f"Unsupported private key type: {type(private_key).__name__}")

    public_key_bytes = _get_public_key_bytes(private_key) if include_public_key else None
    return _prepare_one_asym_key(
        private_key_bytes=_prepare_private_key_bytes(private_key),
        alg_id=alg_id,
        public_key_bytes=public_key_bytes,
    )


def _check_ec_parameters(one_asym_key: rfc5958.OneAsymmetricKey) -> str:
    """Return the curve name of the named-curve parameters.

    :raises MalformedDER: If the parameters are absent or neither of the `ECParameters` choices.
    :raises UnsupportedKeyType: If the curve is not supported, or the parameters are
    explicit curve parameters or `implicitCurve`.
    """
    params = get_alg_id_params_bytes(one_asym_key["privateKeyAlgorithm"], name="ECParameters")
    if params[:1] in _UNSUPPORTED_EC_PARAMETERS:
        raise UnsupportedKeyType(
            f"Only named curves are supported. Got: {_UNSUPPORTED_EC_PARAMETERS[params[:1]]} parameters."
        )

    curve_oid = try_decode_pyasn1(params, univ.ObjectIdentifier(), name="namedCurve")
    if curve_oid not in CURVE_OIDS_2_NAME:
        raise UnsupportedKeyType(f"Unsupported EC curve: {may_return_oid_to_name(curve_oid)}")
    return CURVE_OIDS_2_NAME[curve_oid]


def _load_private_key(one_asym_key: rfc5958.OneAsymmetricKey) -> PrivateKey:
    """Load the private key with `cryptography` after the payload was strictly decoded."""
    oid = one_asym_key["privateKeyAlgorithm"]["algorithm"]
    private_key_bytes = one_asym_key["privateKey"].asOctets()

    if oid == rfc9481.rsaEncryption:
        try_decode_pyasn1(private_key_bytes, rfc8017.RSAPrivateKey(), name="RSAPrivateKey")
    else:
        curve_name = _check_ec_parameters(one_asym_key)
        logging.debug("The EC private key uses the curve: %s", curve_name)
        try_decode_pyasn1(private_key_bytes, rfc5915.ECPrivateKey(), name="ECPrivateKey")

    # the `cryptography` library does not support v2.
    tmp = rfc4211.PrivateKeyInfo()
    tmp["version"] = 0
    tmp["privateKeyAlgorithm"]["algorithm"] = oid
    tmp["privateKeyAlgorithm"]["parameters"] = one_asym_key["privateKeyAlgorithm"]["parameters"]
    tmp["privateKey"] = one_asym_key["privateKey"]

    try:
        return serialization.load_der_private_key(encode_to_der(tmp), password=None)
    except ValueError as err:
        name = may_return_oid_to_name(oid)
        raise MalformedDER(f"The {name.upper()} private key is not a valid private key.") from err


def _check_public_key(private_key: PrivateKey, public_key_bytes: bytes) -> None:
    """Check that the embedded public key belongs to the private key.

    :raises MalformedDER: If the public key is invalid or does not match.
    """
    if isinstance(private_key, rsa.RSAPrivateKey):
        rsa_pub = try_decode_pyasn1(public_key_bytes, rfc3279.RSAPublicKey(), name="RSAPublicKey")
        numbers = private_key.public_key().public_numbers()
        matches = int(rsa_pub["modulus"]) == numbers.n and int(rsa_pub["publicExponent"]) == numbers.e
    else:
        try:
            public_key = ec.EllipticCurvePublicKey.from_encoded_point(private_key.curve, public_key_bytes)
        except ValueError as err:
            raise MalformedDER("The `ECPoint` data is not a valid point on the curve.") from err
        encoded = public_key.public_bytes(
            encoding=serialization.Encoding.X962, format=serialization.PublicFormat.UncompressedPoint
        )
        matches = encoded == _get_public_key_bytes(private_key)

    if not matches:
        raise MalformedDER("The embedded public key does not match the private key.")


@not_keyword
def from_private_key_info(one_asym_key: rfc5958.OneAsymmetricKey) -> PrivateKey:
    """Load the RSA or EC private key of a decoded `PrivateKeyInfo`.

    :param one_asym_key: The decoded `OneAsymmetricKey`.
    :return: The loaded private key.
    :raises UnsupportedKeyType: If the key type or the curve is not supported.
    :raises MalformedDER: If the payload is invalid or the embedded public key does not match.
    """
    oid = one_asym_key["privateKeyAlgorithm"]["algorithm"]
    if oid not in KEY_TYPE_OID_2_NAME:
        raise UnsupportedKeyType(f"Unsupported private key algorithm: {may_return_oid_to_name(oid)}")

    private_key = _load_private_key(one_asym_key)

    if one_asym_key["publicKey"].isValue:
        _check_public_key(private_key, one_asym_key["publicKey"].asOctets())

    logging.info("Loaded a %s private key with %d bits", KEY_TYPE_OID_2_NAME[oid], private_key.key_size)
    return private_key
