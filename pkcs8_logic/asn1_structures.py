# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0
# type: ignore
"""Defines ASN.1 structures which differ from the published `pyasn1_alt_modules` schemas.

The envelopes themselves (`OneAsymmetricKey`, `EncryptedPrivateKeyInfo`, `PBES2-params`)
are taken from `pyasn1_alt_modules`.
"""

from pyasn1.type import constraint, namedtype, univ
from pyasn1_alt_modules import rfc5280

MAX = float("inf")


class PBKDF2ParamsAsn1(univ.Sequence):
    """Defines the ASN.1 structure for the `PBKDF2-params`.

    The `prf` is modelled as OPTIONAL instead of DEFAULT, so that an absent
    `prf` stays absent after decoding. The default (hmacWithSHA1) is resolved
    when the key is derived. Only the `specified` choice of the salt is supported.

    PBKDF2-params ::= SEQUENCE {
        salt CHOICE {
            specified OCTET STRING,
            otherSource AlgorithmIdentifier {{PBKDF2-SaltSources}}
        },
        iterationCount INTEGER (1..MAX),
        keyLength INTEGER (1..MAX) OPTIONAL,
        prf AlgorithmIdentifier {{PBKDF2-PRFs}} DEFAULT algid-hmacWithSHA1
    }
    """

    componentType = namedtype.NamedTypes(
        namedtype.NamedType("salt", univ.OctetString()),
        namedtype.NamedType(
            "iterationCount", univ.Integer().subtype(subtypeSpec=constraint.ValueRangeConstraint(1, MAX))
        ),
        # A zero value is treated like an absent value.
        namedtype.OptionalNamedType("keyLength", univ.Integer()),
        namedtype.OptionalNamedType("prf", rfc5280.AlgorithmIdentifier()),
    )


class ScryptParamsAsn1(univ.Sequence):
    """Defines the ASN.1 structure for the `scrypt-params` (RFC 7914 Section 7.1).

    scrypt-params ::= SEQUENCE {
        salt OCTET STRING,
        costParameter INTEGER (1..MAX),
        blockSize INTEGER (1..MAX),
        parallelizationParameter INTEGER (1..MAX),
        keyLength INTEGER (1..MAX) OPTIONAL
    }
    """

    componentType = namedtype.NamedTypes(
        namedtype.NamedType("salt", univ.OctetString()),
        namedtype.NamedType(
            "costParameter", univ.Integer().subtype(subtypeSpec=constraint.ValueRangeConstraint(1, MAX))
        ),
        namedtype.NamedType("blockSize", univ.Integer().subtype(subtypeSpec=constraint.ValueRangeConstraint(1, MAX))),
        namedtype.NamedType(
            "parallelizationParameter", univ.Integer().subtype(subtypeSpec=constraint.ValueRangeConstraint(1, MAX))
        ),
        namedtype.OptionalNamedType(
            "keyLength", univ.Integer().subtype(subtypeSpec=constraint.ValueRangeConstraint(1, MAX))
        ),
    )
