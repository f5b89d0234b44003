"""
BIP-39 mnemonic codec, backed by the ``mnemonic`` reference package.

Only normalisation lives here; word lists, checksums and the
PBKDF2-HMAC-SHA512 seed stretch come from the library.
"""

from __future__ import annotations

import re
from functools import lru_cache

from mnemonic import Mnemonic

_WHITESPACE = re.compile(r"\s+")


@lru_cache(maxsize=None)
def _codec(language: str = "english") -> Mnemonic:
    return Mnemonic(language)


def normalize_mnemonic(phrase: str) -> str:
    """Trim and collapse runs of whitespace to single spaces."""
    return _WHITESPACE.sub(" ", phrase.strip())


def entropy_to_mnemonic(entropy: bytes, language: str = "english") -> str:
    """Encode 16-32 bytes of entropy as a mnemonic phrase."""
    return _codec(language).to_mnemonic(bytes(entropy))


def mnemonic_to_entropy(phrase: str, language: str = "english") -> bytes:
    """Decode a phrase back to its entropy; raises ValueError if invalid."""
    normalized = normalize_mnemonic(phrase)
    if not is_valid_mnemonic(normalized, language):
        raise ValueError("Invalid mnemonic phrase")
    return bytes(_codec(language).to_entropy(normalized))


def mnemonic_to_seed(phrase: str, passphrase: str = "") -> bytes:
    """64-byte BIP-39 seed for *phrase* and optional *passphrase*."""
    return Mnemonic.to_seed(normalize_mnemonic(phrase), passphrase)


def is_valid_mnemonic(phrase: str, language: str = "english") -> bool:
    """Word count, word list membership and checksum."""
    try:
        return bool(_codec(language).check(normalize_mnemonic(phrase)))
    except (ValueError, LookupError):
        return False
