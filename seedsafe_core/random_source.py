"""
Cryptographically secure random bytes for SeedSafe.

Providers are tried in order and the first one that works is kept for
the lifetime of the process:

  1. pycryptodome's ``Crypto.Random`` (platform CSPRNG)
  2. ``os.urandom`` (kernel RNG)

There is no non-cryptographic fallback.  If neither provider can produce
bytes, :class:`EntropySourceError` is raised and wallet generation must
not continue.

Usage:
    from seedsafe_core.random_source import random_bytes
    salt = random_bytes(16)
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable

from Crypto.Random import get_random_bytes

logger = logging.getLogger("seedsafe.random")

Provider = tuple[str, Callable[[int], bytes]]


class EntropySourceError(RuntimeError):
    """No secure random source is available on this host."""


def _pycryptodome_provider(n: int) -> bytes:
    return get_random_bytes(n)


def _os_provider(n: int) -> bytes:
    return os.urandom(n)


DEFAULT_PROVIDERS: list[Provider] = [
    ("pycryptodome", _pycryptodome_provider),
    ("os.urandom", _os_provider),
]


class RandomSource:
    """Ordered list of CSPRNG providers with explicit fallthrough."""

    def __init__(self, providers: list[Provider] | None = None):
        self._providers = list(providers if providers is not None else DEFAULT_PROVIDERS)
        self._selected: Provider | None = None
        self._lock = threading.Lock()

    @property
    def provider_name(self) -> str:
        return self._select()[0]

    def _select(self) -> Provider:
        if self._selected is not None:
            return self._selected
        with self._lock:
            if self._selected is not None:
                return self._selected
            for name, fn in self._providers:
                try:
                    probe = fn(1)
                except (NotImplementedError, OSError) as exc:
                    logger.warning(f"Random provider {name} unavailable: {exc}")
                    continue
                if len(probe) != 1:
                    logger.warning(f"Random provider {name} returned a short read")
                    continue
                logger.debug(f"Selected random provider: {name}")
                self._selected = (name, fn)
                return self._selected
        raise EntropySourceError("No cryptographic RNG available")

    def random_bytes(self, n: int) -> bytes:
        """Return *n* bytes from the selected provider."""
        if n < 0:
            raise ValueError("Byte count must be non-negative")
        if n == 0:
            return b""
        name, fn = self._select()
        out = fn(n)
        if len(out) != n:
            raise EntropySourceError(f"Random provider {name} returned {len(out)} of {n} bytes")
        return out


_DEFAULT_SOURCE: RandomSource | None = None
_DEFAULT_LOCK = threading.Lock()


def get_random_source() -> RandomSource:
    """Process-wide RandomSource, created on first use."""
    global _DEFAULT_SOURCE
    if _DEFAULT_SOURCE is None:
        with _DEFAULT_LOCK:
            if _DEFAULT_SOURCE is None:
                _DEFAULT_SOURCE = RandomSource()
    return _DEFAULT_SOURCE


def random_bytes(n: int) -> bytes:
    """Return *n* cryptographically secure random bytes."""
    return get_random_source().random_bytes(n)
