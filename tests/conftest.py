"""
Shared pytest fixtures for the SeedSafe test suite.
"""

import os
import sys

import pytest

# Make run_wallet importable without an install.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from seedsafe_core.kdf import KdfOptions  # noqa: E402
from seedsafe_core.wallet import WalletRecord  # noqa: E402

ABANDON_MNEMONIC = "abandon " * 11 + "about"


@pytest.fixture
def sample_record():
    """Static wallet record; only its round trip matters, not its validity."""
    return WalletRecord(
        mnemonic=ABANDON_MNEMONIC,
        network="testnet",
        kind="p2wpkh",
        path="m/84'/1'/0'/0/0",
        xpub="tpubD6NzVbkrYhZ4Ydummyxpub",
        wif="cVdummywif",
        public_key_hex="02deadbeef",
        address="tb1qdummytap",
    )


@pytest.fixture
def fast_kdf():
    """PBKDF2 with a fixed, tiny iteration count."""
    return KdfOptions(prefer_argon2id=False, pbkdf2_iterations=1_000)


@pytest.fixture
def light_argon2():
    """Argon2id at 16 MiB, two passes."""
    return KdfOptions(argon2_memory_ladder=(16,), argon2_time_cost=2)
