# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

import unittest

from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from pyasn1.type import univ
from pyasn1_alt_modules import rfc9481

from pkcs8_logic.asn1utils import (
    decode_encrypted_private_key_info,
    decode_pbes2_params,
    decode_private_key_info,
    encode_to_der,
)
from pkcs8_logic.cipherutils import get_iv_from_alg_id
from pkcs8_logic.config_vars import PBES2ConfigVars
from pkcs8_logic.exceptions import DecryptionFailed, MalformedDER, MissingPassword, UnsupportedKeyType
from pkcs8_logic.kdfutils import PBKDF2Options, PBKDF2Parameters, ScryptOptions
from pkcs8_logic.oidutils import CURVE_NAMES_TO_INSTANCES
from pkcs8_logic.pkcs8utils import (
    is_encrypted,
    parse,
    parse_ec_private_key,
    parse_encrypted,
    parse_private_key,
    parse_rsa_private_key,
    serialize,
    serialize_encrypted,
)
from unit_tests.utils_for_test import (
    EC256_PRIVATE_VALUE,
    EC384_PRIVATE_VALUE,
    RSA2048_MODULUS,
    RSA2048_PRIME1,
    TEST_PASSWORD,
    build_encrypted_key_info,
    generate_key,
    load_test_vector,
)


class TestParseKnownVectors(unittest.TestCase):

    def test_parse_unencrypted_vectors(self):
        """
        GIVEN the unencrypted RSA 2048, EC P-256 and EC P-384 test vectors.
        WHEN the vectors are parsed.
        THEN the key material should match the known values.
        """
        rsa_key = parse(load_test_vector("rsa2048"))
        self.assertIsInstance(rsa_key, rsa.RSAPrivateKey)
        self.assertEqual(rsa_key.key_size, 2048)
        self.assertEqual(rsa_key.public_key().public_numbers().n, RSA2048_MODULUS)
        self.assertEqual(rsa_key.public_key().public_numbers().e, 65537)
        self.assertIn(RSA2048_PRIME1, (rsa_key.private_numbers().p, rsa_key.private_numbers().q))

        ec_key = parse(load_test_vector("ec256"))
        self.assertIsInstance(ec_key.curve, ec.SECP256R1)
        self.assertEqual(ec_key.private_numbers().private_value, EC256_PRIVATE_VALUE)

        ec384_key = parse(load_test_vector("ec384"))
        self.assertIsInstance(ec384_key.curve, ec.SECP384R1)
        self.assertEqual(ec384_key.private_numbers().private_value, EC384_PRIVATE_VALUE)

    def test_parse_encrypted_vectors(self):
        """
        GIVEN the encrypted test vectors for PBKDF2 with SHA-1, SHA-256 and SHA-512, for scrypt,
        and for AES-128/192/256-CBC and DES-EDE3-CBC.
        WHEN the vectors are parsed with the password.
        THEN the key material should match the unencrypted vectors.
        """
        vectors = [
            ("rsa2048_pbkdf2_sha256_aes256", RSA2048_MODULUS),
            ("rsa2048_pbkdf2_sha256_des3", RSA2048_MODULUS),
            ("ec256_pbkdf2_sha256_aes256", EC256_PRIVATE_VALUE),
            ("ec256_pbkdf2_sha1_aes128", EC256_PRIVATE_VALUE),
            ("ec256_pbkdf2_sha1_aes256", EC256_PRIVATE_VALUE),
            ("ec256_scrypt_aes256", EC256_PRIVATE_VALUE),
            ("ec384_pbkdf2_sha512_aes192", EC384_PRIVATE_VALUE),
        ]
        for name, expected in vectors:
            with self.subTest(vector=name):
                private_key = parse_encrypted(load_test_vector(name), password=TEST_PASSWORD)
                if isinstance(private_key, rsa.RSAPrivateKey):
                    self.assertEqual(private_key.public_key().public_numbers().n, expected)
                else:
                    self.assertEqual(private_key.private_numbers().private_value, expected)

    def test_parse_vector_with_default_parameters(self):
        """
        GIVEN an encrypted EC P-256 test vector with PBKDF2 without `prf` (HMAC-SHA1),
        2048 iterations, an 8 byte salt and AES-256-CBC with a 16 byte IV.
        WHEN the vector is parsed with the password and with a password where one character changed.
        THEN the private value should match, and the wrong password should raise `DecryptionFailed`.
        """
        data = load_test_vector("ec256_pbkdf2_sha1_aes256")

        pbes2_params = decode_pbes2_params(decode_encrypted_private_key_info(data)["encryptionAlgorithm"])
        kdf_params = PBKDF2Parameters()
        kdf_params.decode(pbes2_params["keyDerivationFunc"]["parameters"].asOctets())
        self.assertIsNone(kdf_params.prf)
        self.assertEqual(kdf_params.iteration_count, 2048)
        self.assertEqual(kdf_params.salt, bytes.fromhex("4aa2bd2c70e50c00"))
        self.assertEqual(pbes2_params["encryptionScheme"]["algorithm"], rfc9481.id_aes256_CBC)
        self.assertEqual(get_iv_from_alg_id(pbes2_params["encryptionScheme"]).hex(),
                         "c9b63db823a1fea0a1c863d0bc1e4240")

        private_key = parse_encrypted(data, password=TEST_PASSWORD)
        self.assertEqual(private_key.private_numbers().private_value, EC256_PRIVATE_VALUE)

        with self.assertRaises(DecryptionFailed):
            parse_encrypted(data, password="passwore")

    def test_wrong_password(self):
        """
        GIVEN the encrypted test vectors.
        WHEN the vectors are parsed with a password where one character changed.
        THEN a `DecryptionFailed` exception should be raised.
        """
        for name in [
            "rsa2048_pbkdf2_sha256_aes256",
            "rsa2048_pbkdf2_sha256_des3",
            "ec256_pbkdf2_sha256_aes256",
            "ec256_pbkdf2_sha1_aes256",
        ]:
            with self.subTest(vector=name):
                with self.assertRaises(DecryptionFailed):
                    parse_encrypted(load_test_vector(name), password="passwore")

    def test_invalid_payload_after_decryption(self):
        """
        GIVEN an `EncryptedPrivateKeyInfo` whose decrypted `PrivateKeyInfo` is valid,
        but whose `RSAPrivateKey` payload is an empty `SEQUENCE`.
        WHEN it is parsed with the correct password.
        THEN a `MalformedDER` exception should be raised, not `DecryptionFailed`.
        """
        one_asym_key = decode_private_key_info(load_test_vector("rsa2048"))
        one_asym_key["privateKey"] = univ.OctetString(b"\x30\x00")
        data = build_encrypted_key_info(encode_to_der(one_asym_key), password=TEST_PASSWORD.encode("utf-8"))

        with self.assertRaises(MalformedDER) as ctx:
            parse_encrypted(data, password=TEST_PASSWORD)
        self.assertNotIsInstance(ctx.exception, DecryptionFailed)

    def test_missing_password(self):
        """
        GIVEN an encrypted test vector.
        WHEN the vector is parsed without a password.
        THEN a `MissingPassword` exception should be raised.
        """
        data = load_test_vector("ec256_pbkdf2_sha256_aes256")
        with self.assertRaises(MissingPassword):
            parse_encrypted(data)
        with self.assertRaises(MissingPassword):
            parse_private_key(data)

    def test_password_is_ignored_for_unencrypted_input(self):
        """
        GIVEN an unencrypted test vector.
        WHEN the vector is parsed with a password.
        THEN the key should be parsed like without a password.
        """
        data = load_test_vector("ec256")
        self.assertEqual(parse(data, password="anything").private_numbers(), parse(data).private_numbers())
        self.assertEqual(parse_private_key(data, password="anything").private_numbers().private_value,
                         EC256_PRIVATE_VALUE)

    def test_password_as_bytes(self):
        """
        GIVEN an encrypted test vector.
        WHEN the vector is parsed with the password as bytes.
        THEN the key should be parsed.
        """
        private_key = parse_encrypted(load_test_vector("ec256_pbkdf2_sha256_aes256"), password=b"password")
        self.assertEqual(private_key.private_numbers().private_value, EC256_PRIVATE_VALUE)

    def test_parse_private_key_dispatch(self):
        """
        GIVEN an unencrypted and an encrypted test vector.
        WHEN the vectors are parsed with `parse_private_key`.
        THEN both should return the same key.
        """
        plain = parse_private_key(load_test_vector("rsa2048"))
        encrypted = parse_private_key(load_test_vector("rsa2048_pbkdf2_sha256_aes256"), password=TEST_PASSWORD)
        self.assertEqual(plain.private_numbers(), encrypted.private_numbers())

        self.assertFalse(is_encrypted(load_test_vector("rsa2048")))
        self.assertTrue(is_encrypted(load_test_vector("rsa2048_pbkdf2_sha256_aes256")))

    def test_parse_invalid_data(self):
        """
        GIVEN data which is neither a `PrivateKeyInfo` nor an `EncryptedPrivateKeyInfo`.
        WHEN the data is parsed.
        THEN a `MalformedDER` exception should be raised.
        """
        for data in [b"", b"\x30\x00", b"\x04\x03abc"]:
            with self.subTest(data=data):
                with self.assertRaises(MalformedDER):
                    parse_private_key(data)

    def test_typed_helpers(self):
        """
        GIVEN an RSA and an EC test vector.
        WHEN the vectors are parsed with the typed helpers.
        THEN the matching type should be returned, and the other helper should fail.
        """
        rsa_data = load_test_vector("rsa2048_pbkdf2_sha256_des3")
        ec_data = load_test_vector("ec256_pbkdf2_sha256_aes256")

        self.assertIsInstance(parse_rsa_private_key(rsa_data, password=TEST_PASSWORD), rsa.RSAPrivateKey)
        self.assertIsInstance(parse_ec_private_key(ec_data, password=TEST_PASSWORD), ec.EllipticCurvePrivateKey)

        with self.assertRaises(UnsupportedKeyType):
            parse_rsa_private_key(ec_data, password=TEST_PASSWORD)
        with self.assertRaises(UnsupportedKeyType):
            parse_ec_private_key(load_test_vector("rsa2048"))


class TestSerializeRoundTrip(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.rsa_key = generate_key("rsa")
        cls.fast_config = PBES2ConfigVars(kdf_options=PBKDF2Options(iteration_count=16))

    def test_serialize_unencrypted(self):
        """
        GIVEN an RSA key and an EC key for every supported curve.
        WHEN the keys are serialized and parsed again.
        THEN the parsed keys should equal the original keys.
        """
        keys = [self.rsa_key] + [generate_key("ecc", curve=curve) for curve in CURVE_NAMES_TO_INSTANCES.values()]
        for private_key in keys:
            with self.subTest(key=type(private_key).__name__, size=private_key.key_size):
                data = serialize(private_key)
                self.assertEqual(int(decode_private_key_info(data)["version"]), 0)
                self.assertEqual(parse(data).private_numbers(), private_key.private_numbers())

    def test_serialize_encrypted(self):
        """
        GIVEN an RSA key and an EC key for every supported curve.
        WHEN the keys are serialized with a password and parsed again.
        THEN the parsed keys should equal the original keys.
        """
        keys = [self.rsa_key] + [generate_key("ecc", curve=curve) for curve in CURVE_NAMES_TO_INSTANCES.values()]
        for private_key in keys:
            with self.subTest(key=type(private_key).__name__, size=private_key.key_size):
                data = serialize_encrypted(private_key, TEST_PASSWORD, config=self.fast_config)
                self.assertTrue(is_encrypted(data))
                parsed = parse_encrypted(data, password=TEST_PASSWORD)
                self.assertEqual(parsed.private_numbers(), private_key.private_numbers())

    def test_serialize_with_public_key(self):
        """
        GIVEN an EC key.
        WHEN the key is serialized with the public key, unencrypted and encrypted.
        THEN the version should be 1 and the key should be parsed again.
        """
        private_key = generate_key("ecc")
        data = serialize(private_key, include_public_key=True)
        self.assertEqual(int(decode_private_key_info(data)["version"]), 1)
        self.assertEqual(parse(data).private_numbers(), private_key.private_numbers())

        config = PBES2ConfigVars(kdf_options=PBKDF2Options(iteration_count=16), include_public_key=True)
        encrypted = serialize_encrypted(private_key, TEST_PASSWORD, config=config)
        self.assertEqual(parse_encrypted(encrypted, password=TEST_PASSWORD).public_key(), private_key.public_key())

    def test_serialize_encrypted_with_kdf_options(self):
        """
        GIVEN an EC key and scrypt options.
        WHEN the key is serialized with the options and parsed again.
        THEN the parsed key should equal the original key.
        """
        private_key = generate_key("ecc")
        data = serialize_encrypted(private_key, b"secret", kdf_options=ScryptOptions(cost_parameter=1024))
        self.assertEqual(parse_encrypted(data, password=b"secret").private_numbers(), private_key.private_numbers())

    def test_serialize_encrypted_without_password(self):
        """
        GIVEN an EC key.
        WHEN the key is serialized with `None` as password.
        THEN a `MissingPassword` exception should be raised.
        """
        with self.assertRaises(MissingPassword):
            serialize_encrypted(generate_key("ecc"), None)

    def test_serialize_unsupported_key(self):
        """
        GIVEN an Ed25519 key.
        WHEN the key is serialized.
        THEN an `UnsupportedKeyType` exception should be raised.
        """
        private_key = ed25519.Ed25519PrivateKey.generate()
        with self.assertRaises(UnsupportedKeyType):
            serialize(private_key)
        with self.assertRaises(UnsupportedKeyType):
            serialize_encrypted(private_key, TEST_PASSWORD)

    def test_serialize_is_deterministic(self):
        """
        GIVEN an unencrypted test vector.
        WHEN the vector is parsed and serialized again.
        THEN the output should be a version 0 structure which parses to the same key.
        """
        data = load_test_vector("rsa2048")
        self.assertEqual(serialize(parse(data)), serialize(parse(data)))
        self.assertEqual(parse(serialize(parse(data))).public_key().public_numbers().n, RSA2048_MODULUS)


if __name__ == "__main__":
    unittest.main()
