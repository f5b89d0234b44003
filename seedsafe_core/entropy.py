"""
Entropy generation and structural validation.

``validate_entropy`` is a guard against a catastrophically broken RNG
(all-zero buffers, repeated halves, short cycles, counters).  It is not a
statistical randomness test and must never be used to "improve" good
randomness: output that fails is thrown away and regenerated.

``mix_entropy_parts`` hashes several sources together with SHA-256.  The
result is indistinguishable from random as long as at least one part has
high min-entropy, even if the other parts are weak or attacker-chosen.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from seedsafe_core.random_source import random_bytes

logger = logging.getLogger("seedsafe.entropy")

ALLOWED_BITS: tuple[int, ...] = (128, 160, 192, 224, 256)

# Minimum distinct byte values per buffer length (bytes -> count).
DEFAULT_MIN_UNIQUE: dict[int, int] = {
    16: 8,
    20: 10,
    24: 12,
    28: 14,
    32: 16,
}


class WeakEntropyError(ValueError):
    """Entropy failed structural validation; regenerate it."""

    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__("Entropy rejected: " + "; ".join(self.errors))


@dataclass
class EntropyValidationOptions:
    allowed_bits: tuple[int, ...] = ALLOWED_BITS
    require_non_zero: bool = True
    require_non_ones: bool = True
    detect_short_cycles: bool = True
    max_cycle_length: int = 8
    detect_monotonic: bool = True
    min_unique_bytes: int | None = None
    disallow_half_repeat: bool = True


@dataclass
class EntropyValidationResult:
    is_valid: bool
    bit_length: int
    errors: list[str] = field(default_factory=list)


def generate_entropy(bits: int = 256) -> bytes:
    """Draw *bits* of fresh entropy (128/160/192/224/256)."""
    if bits not in ALLOWED_BITS:
        raise ValueError("Entropy size must be one of 128, 160, 192, 224, 256 bits")
    return random_bytes(bits // 8)


def sha256_bytes(data: bytes | Iterable[bytes]) -> bytes:
    """SHA-256 of *data*, or of the concatenation of a list of parts."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        return hashlib.sha256(data).digest()
    h = hashlib.sha256()
    for part in data:
        h.update(part)
    return h.digest()


def mix_entropy_parts(parts: Sequence[bytes]) -> bytes:
    """Combine entropy sources: SHA-256(parts[0] || parts[1] || ...)."""
    return sha256_bytes(parts)


def is_all_zero(data: bytes) -> bool:
    return all(b == 0x00 for b in data)


def is_all_ones(data: bytes) -> bool:
    return all(b == 0xFF for b in data)


def _has_half_repeat(data: bytes) -> bool:
    if len(data) % 2:
        return False
    half = len(data) // 2
    return data[:half] == data[half:]


def _short_cycle_period(data: bytes, max_cycle_length: int) -> int | None:
    n = len(data)
    for period in range(1, min(max_cycle_length, n // 2) + 1):
        if all(data[i] == data[i % period] for i in range(period, n)):
            return period
    return None


def _is_monotonic_ramp(data: bytes) -> bool:
    if len(data) < 3:
        return False
    step = (data[1] - data[0]) % 256
    if step not in (1, 255):
        return False
    return all((data[i] - data[i - 1]) % 256 == step for i in range(2, len(data)))


def validate_entropy(
    data: bytes,
    options: EntropyValidationOptions | None = None,
) -> EntropyValidationResult:
    """
    Run the structural checks enabled in *options* against *data*.

    Every failing check contributes one message to ``errors``; the buffer
    is valid only when that list is empty.
    """
    opts = options or EntropyValidationOptions()
    errors: list[str] = []
    bit_length = len(data) * 8

    if bit_length not in opts.allowed_bits:
        errors.append("Invalid entropy length")
    if opts.require_non_zero and is_all_zero(data):
        errors.append("Entropy must not be all zeros")
    if opts.require_non_ones and is_all_ones(data):
        errors.append("Entropy must not be all ones")
    if opts.disallow_half_repeat and _has_half_repeat(data):
        errors.append("Entropy shows simple half-repeat pattern")

    if opts.detect_short_cycles:
        period = _short_cycle_period(data, opts.max_cycle_length)
        if period is not None:
            errors.append(f"Entropy repeats a short pattern (period={period})")

    if opts.detect_monotonic and _is_monotonic_ramp(data):
        errors.append("Entropy is strictly sequential (ascending/descending)")

    min_unique = opts.min_unique_bytes
    if min_unique is None:
        min_unique = DEFAULT_MIN_UNIQUE.get(len(data), max(8, len(data) // 2))
    if len(set(data)) < min_unique:
        errors.append("Entropy shows low byte diversity")

    return EntropyValidationResult(
        is_valid=not errors,
        bit_length=bit_length,
        errors=errors,
    )


def collect_entropy(bits: int = 256, extra_parts: Sequence[bytes] = ()) -> bytes:
    """
    Produce validated entropy for a new wallet.

    OS entropy is always drawn.  When *extra_parts* (dice rolls, camera
    noise, ...) are supplied they are mixed in with SHA-256 and the digest
    is truncated to ``bits // 8`` bytes.  Raises :class:`WeakEntropyError`
    if the result fails validation; callers regenerate, there is no retry
    loop here.
    """
    entropy = generate_entropy(bits)
    if extra_parts:
        entropy = mix_entropy_parts([entropy, *extra_parts])[: bits // 8]
    result = validate_entropy(entropy, EntropyValidationOptions(allowed_bits=(bits,)))
    if not result.is_valid:
        logger.error(f"Generated entropy rejected: {result.errors}")
        raise WeakEntropyError(result.errors)
    return entropy
