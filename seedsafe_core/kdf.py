"""
Password-based key derivation with a memory-cost ladder.

``derive_key`` turns a password into a 32-byte AES key:

  1. Argon2id at each memory cost of the ladder, highest first.  A step
     that fails (out of memory, refused parameters) is skipped.
  2. If every Argon2id step failed, or Argon2id was not preferred,
     PBKDF2-HMAC-SHA256.  Without an explicit iteration count the host is
     timed with a trial run and the count is scaled to the target
     duration, then clamped to a safe range.

The returned ``params`` describe exactly what ran.  Decryption calls
``derive_key_exact`` with those stored params: no ladder, no calibration
and no algorithm switch, because "equivalent" settings yield different
keys.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Union

from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw

from seedsafe_core.random_source import random_bytes

logger = logging.getLogger("seedsafe.kdf")

KEY_LENGTH = 32
SALT_LENGTH = 16

ARGON2ID = "argon2id"
PBKDF2_SHA256 = "pbkdf2-sha256"


class KeyDerivationError(RuntimeError):
    """The KDF could not produce a key with the requested parameters."""


# ===================================================================
#  Parameter records
# ===================================================================

UINT32_MAX = 0xFFFFFFFF


def _positive_int(value: Any, name: str, maximum: int = UINT32_MAX) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ValueError(f"{name} must be a positive integer")
    if value > maximum:
        raise ValueError(f"{name} must not exceed {maximum}")
    return value


@dataclass(frozen=True)
class Argon2idParams:
    memory_mib: int
    time_cost: int
    parallelism: int

    kind: ClassVar[str] = ARGON2ID

    def __post_init__(self) -> None:
        _positive_int(self.memory_mib, "memoryMiB", UINT32_MAX // 1024)  # KiB must fit uint32
        _positive_int(self.time_cost, "timeCost")
        _positive_int(self.parallelism, "parallelism")

    def to_dict(self) -> dict:
        return {
            "memoryMiB": self.memory_mib,
            "timeCost": self.time_cost,
            "parallelism": self.parallelism,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Argon2idParams:
        return cls(
            memory_mib=data["memoryMiB"],
            time_cost=data["timeCost"],
            parallelism=data["parallelism"],
        )


@dataclass(frozen=True)
class Pbkdf2Params:
    iterations: int

    kind: ClassVar[str] = PBKDF2_SHA256

    def __post_init__(self) -> None:
        _positive_int(self.iterations, "iterations")

    def to_dict(self) -> dict:
        return {"iterations": self.iterations}

    @classmethod
    def from_dict(cls, data: dict) -> Pbkdf2Params:
        return cls(iterations=data["iterations"])


KdfParams = Union[Argon2idParams, Pbkdf2Params]

_PARAMS_BY_KIND: dict[str, type] = {
    ARGON2ID: Argon2idParams,
    PBKDF2_SHA256: Pbkdf2Params,
}


def kdf_params_from_dict(kind: str, data: Any) -> KdfParams:
    """Rebuild params from the header's ``kdf`` tag and ``kdfParams`` object."""
    try:
        params_cls = _PARAMS_BY_KIND[kind]
    except (KeyError, TypeError):
        raise ValueError(f"Unknown KDF: {kind!r}") from None
    if not isinstance(data, dict):
        raise ValueError("kdfParams must be an object")
    try:
        return params_cls.from_dict(data)
    except KeyError as exc:
        raise ValueError(f"kdfParams missing field {exc.args[0]!r}") from None


@dataclass(frozen=True)
class KdfResult:
    kind: str
    key: bytes
    salt: bytes
    params: KdfParams


@dataclass
class KdfOptions:
    """Tuning for :func:`derive_key`.  Defaults suit interactive use."""
    prefer_argon2id: bool = True
    argon2_memory_ladder: tuple[int, ...] = (64, 32, 16)   # MiB
    argon2_time_cost: int = 3
    argon2_parallelism: int = 1
    pbkdf2_iterations: int | None = None   # None = calibrate
    pbkdf2_target_ms: int = 350
    pbkdf2_min_iterations: int = 50_000
    pbkdf2_max_iterations: int = 2_000_000
    calibration_trial_iterations: int = 100_000
    # Skip Argon2id entirely, as if every ladder step had failed.
    force_argon2_failure: bool = False


# ===================================================================
#  Primitives
# ===================================================================

def _argon2id(password: bytes, salt: bytes, params: Argon2idParams) -> bytes:
    return hash_secret_raw(
        secret=password,
        salt=salt,
        time_cost=params.time_cost,
        memory_cost=params.memory_mib * 1024,   # KiB
        parallelism=params.parallelism,
        hash_len=KEY_LENGTH,
        type=Type.ID,
    )


def _pbkdf2_sha256(password: bytes, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password, salt, iterations, dklen=KEY_LENGTH)


def calibrate_pbkdf2_iterations(
    password: bytes,
    salt: bytes,
    target_ms: int = 350,
    trial_iterations: int = 100_000,
    min_iterations: int = 50_000,
    max_iterations: int = 2_000_000,
    clock: Callable[[], float] = time.perf_counter,
) -> int:
    """
    Time a trial PBKDF2 run and scale the iteration count to *target_ms*.

    The result always lies in ``[min_iterations, max_iterations]``.  A
    failing trial raises :class:`KeyDerivationError`.
    """
    if min_iterations > max_iterations:
        raise ValueError("min_iterations must not exceed max_iterations")
    t0 = clock()
    try:
        _pbkdf2_sha256(password, salt, trial_iterations)
    except (ValueError, TypeError) as exc:
        raise KeyDerivationError(f"PBKDF2 calibration failed: {exc}") from exc
    elapsed_ms = max(1.0, (clock() - t0) * 1000.0)
    scaled = round(trial_iterations * target_ms / elapsed_ms)
    iterations = max(min_iterations, min(max_iterations, scaled))
    logger.debug(
        f"PBKDF2 calibration: {trial_iterations} iterations in {elapsed_ms:.1f} ms "
        f"-> {iterations} for {target_ms} ms"
    )
    return iterations


# ===================================================================
#  Derivation
# ===================================================================

def _argon2_attempts(options: KdfOptions) -> list[Argon2idParams]:
    ladder = sorted(set(options.argon2_memory_ladder), reverse=True)
    return [
        Argon2idParams(memory_mib, options.argon2_time_cost, options.argon2_parallelism)
        for memory_mib in ladder
    ]


def derive_key(
    password: str,
    options: KdfOptions | None = None,
    salt: bytes | None = None,
) -> KdfResult:
    """
    Derive a 32-byte key from *password*, walking the Argon2id ladder
    before falling back to PBKDF2-HMAC-SHA256.
    """
    opts = options or KdfOptions()
    if salt is None:
        salt = random_bytes(SALT_LENGTH)
    secret = password.encode("utf-8")

    if opts.prefer_argon2id and not opts.force_argon2_failure:
        for params in _argon2_attempts(opts):
            try:
                key = _argon2id(secret, salt, params)
            except (HashingError, MemoryError, OverflowError) as exc:
                logger.debug(f"Argon2id at {params.memory_mib} MiB failed: {exc}")
                continue
            logger.debug(f"Derived key with Argon2id at {params.memory_mib} MiB")
            return KdfResult(kind=ARGON2ID, key=key, salt=salt, params=params)
        logger.warning("Argon2id unavailable at every ladder step; using PBKDF2-SHA256")

    iterations = opts.pbkdf2_iterations
    if iterations is None:
        iterations = calibrate_pbkdf2_iterations(
            secret,
            salt,
            target_ms=opts.pbkdf2_target_ms,
            trial_iterations=opts.calibration_trial_iterations,
            min_iterations=opts.pbkdf2_min_iterations,
            max_iterations=opts.pbkdf2_max_iterations,
        )
    params = Pbkdf2Params(iterations)
    key = _pbkdf2_sha256(secret, salt, params.iterations)
    return KdfResult(kind=PBKDF2_SHA256, key=key, salt=salt, params=params)


def derive_key_exact(password: str, salt: bytes, params: KdfParams) -> KdfResult:
    """
    Re-derive a key with exactly the stored algorithm and parameters.

    Used on decrypt.  Never walks the ladder or calibrates; any failure of
    the primitive raises :class:`KeyDerivationError`.
    """
    secret = password.encode("utf-8")
    if isinstance(params, Argon2idParams):
        try:
            key = _argon2id(secret, salt, params)
        except (HashingError, MemoryError, OverflowError) as exc:
            raise KeyDerivationError(f"Argon2id derivation failed: {exc}") from exc
    elif isinstance(params, Pbkdf2Params):
        try:
            key = _pbkdf2_sha256(secret, salt, params.iterations)
        except (ValueError, OverflowError) as exc:
            raise KeyDerivationError(f"PBKDF2 derivation failed: {exc}") from exc
    else:
        raise TypeError(f"Unsupported KDF params: {type(params).__name__}")
    return KdfResult(kind=params.kind, key=key, salt=salt, params=params)
