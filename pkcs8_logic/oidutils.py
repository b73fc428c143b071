"""Defines Object Identifiers (OIDs) and mappings for the PKCS#8 and PBES2 logic."""

# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

from typing import Dict

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from pyasn1.type import univ
from pyasn1_alt_modules import rfc5480, rfc6664, rfc8018, rfc9481

# RFC 8018 Appendix B.1.2: the HMAC algorithm identifiers which can be used as the PRF of PBKDF2.
# `id_hmacWithSHA1` is the default PRF, if the `prf` field is absent.
rsadsi_digest_algorithm = "1.2.840.113549.2"

id_hmacWithMD5 = univ.ObjectIdentifier(f"{rsadsi_digest_algorithm}.5")
id_hmacWithSHA1 = univ.ObjectIdentifier(f"{rsadsi_digest_algorithm}.7")
id_hmacWithSHA512_224 = univ.ObjectIdentifier(f"{rsadsi_digest_algorithm}.12")
id_hmacWithSHA512_256 = univ.ObjectIdentifier(f"{rsadsi_digest_algorithm}.13")

# RFC 8018 Appendix B.2.2: DES-EDE3-CBC-Pad.
id_des_EDE3_CBC = univ.ObjectIdentifier("1.2.840.113549.3.7")

id_PBES2 = rfc8018.id_PBES2
id_PBKDF2 = rfc8018.id_PBKDF2
# RFC 7914 Section 7.
id_scrypt = univ.ObjectIdentifier("1.3.6.1.4.1.11591.4.11")

PRF_OID_2_NAME: Dict[univ.ObjectIdentifier, str] = {
    id_hmacWithMD5: "hmac-md5",
    id_hmacWithSHA1: "hmac-sha1",
    rfc9481.id_hmacWithSHA224: "hmac-sha224",
    rfc9481.id_hmacWithSHA256: "hmac-sha256",
    rfc9481.id_hmacWithSHA384: "hmac-sha384",
    rfc9481.id_hmacWithSHA512: "hmac-sha512",
    id_hmacWithSHA512_224: "hmac-sha512_224",
    id_hmacWithSHA512_256: "hmac-sha512_256",
}
PRF_NAME_2_OID = {y: x for x, y in PRF_OID_2_NAME.items()}

# Instances are stateless and can be shared between derivations.
ALLOWED_HASH_TYPES: Dict[str, hashes.HashAlgorithm] = {
    "md5": hashes.MD5(),
    "sha1": hashes.SHA1(),
    "sha224": hashes.SHA224(),
    "sha256": hashes.SHA256(),
    "sha384": hashes.SHA384(),
    "sha512": hashes.SHA512(),
    "sha512_224": hashes.SHA512_224(),
    "sha512_256": hashes.SHA512_256(),
}

KDF_OID_2_NAME: Dict[univ.ObjectIdentifier, str] = {
    id_PBKDF2: "pbkdf2",
    id_scrypt: "scrypt",
}

SYMMETRIC_ENCR_ALG_OID_2_NAME: Dict[univ.ObjectIdentifier, str] = {
    rfc9481.id_aes128_CBC: "aes128_cbc",
    rfc9481.id_aes192_CBC: "aes192_cbc",
    rfc9481.id_aes256_CBC: "aes256_cbc",
    id_des_EDE3_CBC: "des_ede3_cbc",
}
SYMMETRIC_ENCR_ALG_NAME_2_OID = {y: x for x, y in SYMMETRIC_ENCR_ALG_OID_2_NAME.items()}

# The key types which can be carried inside a `PrivateKeyInfo`.
KEY_TYPE_OID_2_NAME: Dict[univ.ObjectIdentifier, str] = {
    rfc9481.rsaEncryption: "rsa",
    rfc6664.id_ecPublicKey: "ecdsa",
}

# Only named curves are supported, explicit curve parameters are rejected.
CURVE_OIDS_2_NAME: Dict[univ.ObjectIdentifier, str] = {
    rfc5480.secp224r1: "secp224r1",
    rfc5480.secp256r1: "secp256r1",
    rfc5480.secp384r1: "secp384r1",
    rfc5480.secp521r1: "secp521r1",
}
CURVE_NAME_2_OID = {y: x for x, y in CURVE_OIDS_2_NAME.items()}

CURVE_NAMES_TO_INSTANCES: Dict[str, ec.EllipticCurve] = {
    "secp224r1": ec.SECP224R1(),  # NIST P-224
    "secp256r1": ec.SECP256R1(),  # NIST P-256
    "secp384r1": ec.SECP384R1(),  # NIST P-384
    "secp521r1": ec.SECP521R1(),  # NIST P-521
}

ALL_KNOWN_OIDS_2_NAME: Dict[univ.ObjectIdentifier, str] = {id_PBES2: "pbes2"}
ALL_KNOWN_OIDS_2_NAME.update(PRF_OID_2_NAME)
ALL_KNOWN_OIDS_2_NAME.update(KDF_OID_2_NAME)
ALL_KNOWN_OIDS_2_NAME.update(SYMMETRIC_ENCR_ALG_OID_2_NAME)
ALL_KNOWN_OIDS_2_NAME.update(KEY_TYPE_OID_2_NAME)
ALL_KNOWN_OIDS_2_NAME.update(CURVE_OIDS_2_NAME)


def may_return_oid_to_name(oid: univ.ObjectIdentifier) -> str:
    """Check if the oid is Known and then returns a human-readable representation, or the dotted string.

    :param oid: The OID to perform the lookup for.
    :return: Either a human-readable name or the OID as dotted string.
    """
    return ALL_KNOWN_OIDS_2_NAME.get(oid, str(oid))


def hash_name_to_instance(alg: str) -> hashes.HashAlgorithm:
    """Return an instance of a hash algorithm object based on its name.

    :param alg: The name of hashing algorithm, e.g., 'sha256' or 'hmac-sha256'.
    :return: `cryptography.hazmat.primitives.hashes`
    :raises ValueError: If the specified hash algorithm is not supported.
    """
    try:
        # to also get the hash function with hmac-sha1 and so on.
        if "-" in alg:
            return ALLOWED_HASH_TYPES[alg.split("-")[1]]

        return ALLOWED_HASH_TYPES[alg]
    except KeyError as err:
        raise ValueError(f"Unsupported hash algorithm: {alg}") from err
