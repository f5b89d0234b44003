"""
Tests for seedsafe_core.logging_config — formatters and secret redaction.
"""

import json
import logging
import os
import tempfile
import unittest

from seedsafe_core.logging_config import (
    REDACTED,
    SecretRedactionFilter,
    _HumanFormatter,
    _JSONFormatter,
    redact_secrets,
    setup_logging,
)

MNEMONIC = "abandon " * 11 + "about"
WIF = "KyZpNDKnfs94vbrwhJneDi77V6jF64PWPF8x5cdJb8ifgg2DUc9d"
ADDRESS = "bc1qcr8te4kr609gcawutmrza0j4xv80jy8z306fyu"


def _record(msg, *args, level=logging.INFO):
    return logging.LogRecord("seedsafe.test", level, __file__, 1, msg, args, None)


class TestRedaction(unittest.TestCase):

    def test_mnemonic(self):
        out = redact_secrets(f"phrase is {MNEMONIC}!")
        self.assertNotIn("abandon", out)
        self.assertIn(REDACTED, out)

    def test_wif(self):
        self.assertEqual(redact_secrets(f"key={WIF}"), f"key={REDACTED}")

    def test_public_data_kept(self):
        text = f"Generated p2wpkh wallet on mainnet at m/84'/0'/0'/0/0 {ADDRESS}"
        self.assertEqual(redact_secrets(text), text)

    def test_short_sentence_kept(self):
        text = "argon2id at sixty four mib failed"
        self.assertEqual(redact_secrets(text), text)

    def test_filter_rewrites_args(self):
        rec = _record("wif %s", WIF)
        self.assertTrue(SecretRedactionFilter().filter(rec))
        self.assertEqual(rec.getMessage(), f"wif {REDACTED}")

    def test_filter_leaves_clean_record(self):
        rec = _record("index %d", 3)
        SecretRedactionFilter().filter(rec)
        self.assertEqual(rec.args, (3,))


class TestFormatters(unittest.TestCase):

    def test_json(self):
        out = json.loads(_JSONFormatter().format(_record("hello")))
        self.assertEqual(out["level"], "INFO")
        self.assertEqual(out["logger"], "seedsafe.test")
        self.assertEqual(out["msg"], "hello")
        self.assertIn("ts", out)

    def test_human_plain(self):
        line = _HumanFormatter(colour=False).format(_record("hi", level=logging.WARNING))
        self.assertIn("[WARNING]", line)
        self.assertTrue(line.endswith("seedsafe.test: hi"))
        self.assertNotIn("\033[", line)

    def test_human_colour(self):
        line = _HumanFormatter(colour=True).format(_record("hi", level=logging.ERROR))
        self.assertTrue(line.startswith("\033[31m"))


class TestSetupLogging(unittest.TestCase):

    def tearDown(self):
        logger = logging.getLogger("seedsafe")
        for h in logger.handlers:
            h.close()
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)

    def test_level_and_filter(self):
        setup_logging(level="debug")
        logger = logging.getLogger("seedsafe")
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertFalse(logger.propagate)
        self.assertEqual(len(logger.handlers), 1)
        self.assertTrue(any(isinstance(f, SecretRedactionFilter) for f in logger.handlers[0].filters))

    def test_no_duplicate_handlers(self):
        setup_logging()
        setup_logging()
        self.assertEqual(len(logging.getLogger("seedsafe").handlers), 1)

    def test_file_is_json_and_redacted(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "logs", "seedsafe.log")
            setup_logging(level="INFO", log_file=path)
            logging.getLogger("seedsafe.wallet").info(f"oops {MNEMONIC}")
            for h in logging.getLogger("seedsafe").handlers:
                h.flush()
            with open(path, encoding="utf-8") as f:
                line = json.loads(f.readline())
            self.tearDown()
        self.assertEqual(line["logger"], "seedsafe.wallet")
        self.assertNotIn("abandon", line["msg"])
        self.assertIn(REDACTED, line["msg"])


if __name__ == "__main__":
    unittest.main()
