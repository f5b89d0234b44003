"""
Test suite for seedsafe_core.export_codec — the versioned envelope.

Covers:
  - Header JSON key order and canonical compact form
  - Blob round trip keeps the exact header bytes for AAD
  - Version dispatch and rejection of unknown versions/ciphers/KDFs
  - Malformed blobs: bad base64, short input, bad length, bad JSON
  - The {header, payloadB64} JSON form
"""

import base64
import json
import struct
import unittest

from seedsafe_core.aead import WalletExportError
from seedsafe_core.export import WalletExportService
from seedsafe_core.export_codec import (
    CIPHER_AES_256_GCM,
    EXPORT_VERSION,
    EncryptedExport,
    EncryptedExportHeader,
    MalformedExportError,
    deserialize_export,
    export_from_dict,
    export_to_dict,
    serialize_export,
)
from seedsafe_core.kdf import Argon2idParams, Pbkdf2Params

SALT = bytes(range(16))
IV = bytes(range(100, 112))


def _header(kdf=None):
    return EncryptedExportHeader(kdf=kdf or Argon2idParams(64, 3, 1), salt=SALT, iv=IV)


def _blob(header_obj, payload=b"\x01" * 20):
    hb = json.dumps(header_obj).encode()
    return base64.b64encode(struct.pack(">H", len(hb)) + hb + payload).decode()


class TestHeader(unittest.TestCase):

    def test_key_order(self):
        self.assertEqual(
            list(_header().to_dict()),
            ["version", "kdf", "kdfParams", "saltB64", "cipher", "ivB64"],
        )

    def test_compact_json(self):
        text = _header(Pbkdf2Params(600_000)).to_json().decode()
        self.assertNotIn(" ", text)
        self.assertTrue(text.startswith('{"version":1,"kdf":"pbkdf2-sha256",'))
        self.assertIn('"kdfParams":{"iterations":600000}', text)

    def test_defaults(self):
        h = _header()
        self.assertEqual(h.version, EXPORT_VERSION)
        self.assertEqual(h.cipher, CIPHER_AES_256_GCM)
        self.assertEqual(h.kdf_kind, "argon2id")

    def test_dict_roundtrip(self):
        h = _header()
        self.assertEqual(EncryptedExportHeader.from_dict(h.to_dict()), h)

    def test_unknown_version(self):
        for version in (0, 2, "1", None, True):
            d = _header().to_dict()
            d["version"] = version
            with self.assertRaises(MalformedExportError):
                EncryptedExportHeader.from_dict(d)

    def test_unknown_cipher(self):
        d = _header().to_dict()
        d["cipher"] = "chacha20-poly1305"
        with self.assertRaises(MalformedExportError):
            EncryptedExportHeader.from_dict(d)

    def test_unknown_kdf(self):
        d = _header().to_dict()
        d["kdf"] = "scrypt"
        with self.assertRaises(MalformedExportError):
            EncryptedExportHeader.from_dict(d)

    def test_bad_kdf_params(self):
        d = _header().to_dict()
        d["kdfParams"] = {"memoryMiB": 0, "timeCost": 3, "parallelism": 1}
        with self.assertRaises(MalformedExportError):
            EncryptedExportHeader.from_dict(d)

    def test_bad_salt_length(self):
        d = _header().to_dict()
        d["saltB64"] = base64.b64encode(b"short").decode()
        with self.assertRaises(MalformedExportError):
            EncryptedExportHeader.from_dict(d)

    def test_bad_iv_length(self):
        d = _header().to_dict()
        d["ivB64"] = base64.b64encode(bytes(16)).decode()
        with self.assertRaises(MalformedExportError):
            EncryptedExportHeader.from_dict(d)

    def test_bad_base64(self):
        d = _header().to_dict()
        d["saltB64"] = "not base64!!"
        with self.assertRaises(MalformedExportError):
            EncryptedExportHeader.from_dict(d)

    def test_not_object(self):
        with self.assertRaises(MalformedExportError):
            EncryptedExportHeader.from_dict([1, 2])


class TestBlob(unittest.TestCase):

    def test_roundtrip(self):
        exp = EncryptedExport(header=_header(), ciphertext=b"\xaa" * 40)
        back = deserialize_export(serialize_export(exp))
        self.assertEqual(back, exp)
        self.assertEqual(back.header_bytes, exp.header.to_json())

    def test_layout(self):
        exp = EncryptedExport(header=_header(), ciphertext=b"\xbb" * 17)
        raw = base64.b64decode(serialize_export(exp))
        hb = exp.header.to_json()
        self.assertEqual(raw[:2], struct.pack(">H", len(hb)))
        self.assertEqual(raw[2:2 + len(hb)], hb)
        self.assertEqual(raw[2 + len(hb):], b"\xbb" * 17)

    def test_foreign_header_bytes_kept(self):
        # Non-canonical but valid JSON must be authenticated as-is.
        obj = _header().to_dict()
        blob = _blob(obj)
        back = deserialize_export(blob)
        self.assertEqual(back.header_bytes, json.dumps(obj).encode())
        self.assertNotEqual(back.header_bytes, back.header.to_json())
        self.assertEqual(back.associated_data(), back.header_bytes)
        self.assertEqual(serialize_export(back), blob)

    def test_bytes_input_and_whitespace(self):
        exp = EncryptedExport(header=_header(), ciphertext=b"\x01" * 16)
        blob = serialize_export(exp)
        self.assertEqual(deserialize_export(blob.encode()), exp)
        self.assertEqual(deserialize_export("\n  " + blob + "\n"), exp)

    def test_line_wrapped_blob(self):
        exp = EncryptedExport(header=_header(), ciphertext=b"\x03" * 48)
        blob = serialize_export(exp)
        wrapped = "\r\n".join(blob[i:i + 40] for i in range(0, len(blob), 40))
        self.assertEqual(deserialize_export(wrapped), exp)
        self.assertEqual(deserialize_export(wrapped.replace("\r\n", " \t")), exp)

    def test_not_base64(self):
        with self.assertRaises(MalformedExportError):
            deserialize_export("%%%not-base64%%%")

    def test_non_ascii_bytes(self):
        with self.assertRaises(MalformedExportError):
            deserialize_export(b"\xff\xfe")

    def test_too_short(self):
        with self.assertRaises(MalformedExportError):
            deserialize_export(base64.b64encode(b"\x00").decode())

    def test_header_length_overruns(self):
        raw = struct.pack(">H", 500) + b"{}"
        with self.assertRaises(MalformedExportError):
            deserialize_export(base64.b64encode(raw).decode())

    def test_header_not_json(self):
        raw = struct.pack(">H", 5) + b"{nope" + b"\x00" * 16
        with self.assertRaises(MalformedExportError):
            deserialize_export(base64.b64encode(raw).decode())

    def test_header_not_utf8(self):
        raw = struct.pack(">H", 2) + b"\xff\xff" + b"\x00" * 16
        with self.assertRaises(MalformedExportError):
            deserialize_export(base64.b64encode(raw).decode())

    def test_oversized_argon2_params_in_blob(self):
        for field, value in (("memoryMiB", 2**22), ("timeCost", 2**40), ("parallelism", 2**40)):
            obj = _header().to_dict()
            obj["kdfParams"][field] = value
            blob = _blob(obj)
            with self.assertRaises(MalformedExportError):
                deserialize_export(blob)
            with self.assertRaises(WalletExportError):
                WalletExportService().import_text_blob(blob, "pw")

    def test_oversized_pbkdf2_iterations_in_blob(self):
        obj = _header(Pbkdf2Params(1_000)).to_dict()
        obj["kdfParams"]["iterations"] = 2**40
        with self.assertRaises(MalformedExportError):
            deserialize_export(_blob(obj))

    def test_unknown_version_in_blob(self):
        obj = _header().to_dict()
        obj["version"] = 9
        with self.assertRaises(MalformedExportError):
            deserialize_export(_blob(obj))


class TestDictForm(unittest.TestCase):

    def test_roundtrip(self):
        exp = EncryptedExport(header=_header(Pbkdf2Params(50_000)), ciphertext=b"\x02" * 24)
        d = export_to_dict(exp)
        self.assertEqual(set(d), {"header", "payloadB64"})
        self.assertEqual(export_from_dict(d), exp)

    def test_missing_header(self):
        with self.assertRaises(MalformedExportError):
            export_from_dict({"payloadB64": ""})

    def test_bad_payload(self):
        d = export_to_dict(EncryptedExport(header=_header(), ciphertext=b"\x02" * 24))
        d["payloadB64"] = 42
        with self.assertRaises(MalformedExportError):
            export_from_dict(d)


if __name__ == "__main__":
    unittest.main()
