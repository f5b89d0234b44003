"""
Wallet assembly for SeedSafe.

Ties the pieces together the way a wallet-generation request flows:

    entropy  ->  validation  ->  BIP-39 mnemonic  ->  seed  ->  HD derivation

and defines :class:`WalletRecord`, the plaintext payload that the export
service encrypts.  A record only ever lives in memory.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Sequence

from seedsafe_core.bip39 import (
    entropy_to_mnemonic,
    is_valid_mnemonic,
    mnemonic_to_seed,
    normalize_mnemonic,
)
from seedsafe_core.entropy import collect_entropy
from seedsafe_core.hd import derive_wallet

logger = logging.getLogger("seedsafe.wallet")

# Python attribute -> JSON key (the exported wire names).
_FIELDS: tuple[tuple[str, str], ...] = (
    ("mnemonic", "mnemonic"),
    ("network", "network"),
    ("kind", "kind"),
    ("path", "path"),
    ("xpub", "xpub"),
    ("wif", "wif"),
    ("public_key_hex", "publicKeyHex"),
    ("address", "address"),
)


@dataclass(frozen=True)
class WalletRecord:
    """Everything needed to restore or use one wallet leaf."""
    mnemonic: str
    network: str
    kind: str
    path: str
    xpub: str            # account-level xpub (m/purpose'/coin'/account')
    wif: str             # compressed WIF of the leaf key
    public_key_hex: str  # compressed leaf public key
    address: str

    def to_dict(self) -> dict:
        return {key: getattr(self, attr) for attr, key in _FIELDS}

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Any) -> WalletRecord:
        if not isinstance(data, dict):
            raise ValueError("Wallet record must be a JSON object")
        values = {}
        for attr, key in _FIELDS:
            value = data.get(key)
            if not isinstance(value, str):
                raise ValueError(f"Wallet record field {key!r} missing or not a string")
            values[attr] = value
        return cls(**values)

    def __repr__(self) -> str:
        return f"WalletRecord({self.network}, {self.kind}, {self.address})"


def assemble_wallet_from_mnemonic(
    mnemonic: str,
    kind: str,
    coin_type: int,
    passphrase: str = "",
    account: int = 0,
    change: int = 0,
    index: int = 0,
) -> WalletRecord:
    """Build a :class:`WalletRecord` for an existing mnemonic."""
    phrase = normalize_mnemonic(mnemonic)
    if not is_valid_mnemonic(phrase):
        raise ValueError("Invalid mnemonic: bad word, word count or checksum")
    seed = mnemonic_to_seed(phrase, passphrase)
    material = derive_wallet(seed, kind, coin_type, account=account, change=change, index=index)
    return WalletRecord(
        mnemonic=phrase,
        network=material.network,
        kind=material.kind,
        path=material.path,
        xpub=material.xpub,
        wif=material.wif,
        public_key_hex=material.public_key_hex,
        address=material.address,
    )


def generate_wallet(
    kind: str = "p2wpkh",
    coin_type: int = 0,
    strength: int = 256,
    passphrase: str = "",
    extra_entropy: Sequence[bytes] = (),
    account: int = 0,
    change: int = 0,
    index: int = 0,
) -> WalletRecord:
    """
    Create a brand-new wallet.

    Raises :class:`~seedsafe_core.entropy.WeakEntropyError` if the drawn
    entropy fails validation; call again to regenerate.
    """
    entropy = collect_entropy(strength, extra_entropy)
    mnemonic = entropy_to_mnemonic(entropy)
    record = assemble_wallet_from_mnemonic(
        mnemonic, kind, coin_type, passphrase=passphrase,
        account=account, change=change, index=index,
    )
    logger.info(f"Generated {record.kind} wallet on {record.network} at {record.path}")
    return record
