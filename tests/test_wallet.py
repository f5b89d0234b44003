"""
Tests for seedsafe_core.wallet — record assembly and generation.
"""

import json
import unittest
from unittest.mock import patch

from seedsafe_core.bip39 import is_valid_mnemonic
from seedsafe_core.entropy import WeakEntropyError
from seedsafe_core.wallet import WalletRecord, assemble_wallet_from_mnemonic, generate_wallet

ABANDON = "abandon " * 11 + "about"


class TestAssemble(unittest.TestCase):

    def test_bip84_mainnet(self):
        rec = assemble_wallet_from_mnemonic(ABANDON, "p2wpkh", 0)
        self.assertEqual(rec.network, "mainnet")
        self.assertEqual(rec.path, "m/84'/0'/0'/0/0")
        self.assertEqual(rec.address, "bc1qcr8te4kr609gcawutmrza0j4xv80jy8z306fyu")
        self.assertEqual(rec.wif, "KyZpNDKnfs94vbrwhJneDi77V6jF64PWPF8x5cdJb8ifgg2DUc9d")
        self.assertTrue(rec.xpub.startswith("xpub"))

    def test_normalizes_mnemonic(self):
        rec = assemble_wallet_from_mnemonic("  " + ABANDON.replace(" ", "\n") + " ", "p2pkh", 0)
        self.assertEqual(rec.mnemonic, ABANDON)
        self.assertEqual(rec.address, "1LqBGSKuX5yYUonjxT5qGfpUsXKYYWeabA")

    def test_passphrase_changes_wallet(self):
        a = assemble_wallet_from_mnemonic(ABANDON, "p2wpkh", 1)
        b = assemble_wallet_from_mnemonic(ABANDON, "p2wpkh", 1, passphrase="extra")
        self.assertNotEqual(a.address, b.address)
        self.assertEqual(a.mnemonic, b.mnemonic)

    def test_invalid_mnemonic(self):
        with self.assertRaises(ValueError):
            assemble_wallet_from_mnemonic("abandon " * 12, "p2wpkh", 0)

    def test_path_components(self):
        rec = assemble_wallet_from_mnemonic(ABANDON, "p2sh-p2wpkh", 1, account=1, change=1, index=4)
        self.assertEqual(rec.path, "m/49'/1'/1'/1/4")
        self.assertTrue(rec.address.startswith("2"))


class TestGenerate(unittest.TestCase):

    def test_defaults(self):
        rec = generate_wallet()
        self.assertEqual(len(rec.mnemonic.split()), 24)
        self.assertTrue(is_valid_mnemonic(rec.mnemonic))
        self.assertEqual(rec.kind, "p2wpkh")
        self.assertTrue(rec.address.startswith("bc1q"))

    def test_testnet_12_words(self):
        rec = generate_wallet(kind="p2pkh", coin_type=1, strength=128)
        self.assertEqual(len(rec.mnemonic.split()), 12)
        self.assertEqual(rec.network, "testnet")
        self.assertIn(rec.address[0], "mn")

    def test_two_wallets_differ(self):
        self.assertNotEqual(generate_wallet(strength=128).mnemonic, generate_wallet(strength=128).mnemonic)

    def test_weak_entropy_refused(self):
        with patch("seedsafe_core.entropy.random_bytes", return_value=bytes(16)):
            with self.assertRaises(WeakEntropyError):
                generate_wallet(strength=128)

    def test_bad_strength(self):
        with self.assertRaises(ValueError):
            generate_wallet(strength=100)


class TestWalletRecord(unittest.TestCase):

    def setUp(self):
        self.rec = assemble_wallet_from_mnemonic(ABANDON, "p2wpkh", 0)

    def test_json_keys(self):
        self.assertEqual(
            list(self.rec.to_dict()),
            ["mnemonic", "network", "kind", "path", "xpub", "wif", "publicKeyHex", "address"],
        )

    def test_dict_roundtrip(self):
        self.assertEqual(WalletRecord.from_dict(json.loads(self.rec.to_json())), self.rec)

    def test_from_dict_rejects_missing(self):
        d = self.rec.to_dict()
        del d["wif"]
        with self.assertRaises(ValueError):
            WalletRecord.from_dict(d)

    def test_from_dict_rejects_wrong_type(self):
        d = self.rec.to_dict()
        d["address"] = 5
        with self.assertRaises(ValueError):
            WalletRecord.from_dict(d)
        with self.assertRaises(ValueError):
            WalletRecord.from_dict(["not", "a", "dict"])

    def test_repr_hides_secrets(self):
        text = repr(self.rec)
        self.assertNotIn("abandon", text)
        self.assertNotIn(self.rec.wif, text)
        self.assertIn(self.rec.address, text)


if __name__ == "__main__":
    unittest.main()
