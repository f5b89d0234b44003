"""
TOML-based configuration for SeedSafe.

Loads settings from a TOML file and/or environment variables.
Environment variables take precedence over file values.

Usage:
    from seedsafe_core.config import load_config
    cfg = load_config("seedsafe.toml")
    service = WalletExportService(cfg.kdf.to_options())
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib  # type: ignore[import]
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[import,no-redef]

from seedsafe_core.kdf import KdfOptions


@dataclass
class KdfConfig:
    """Password KDF ladder and PBKDF2 fallback tuning."""
    prefer_argon2id: bool = True
    argon2_memory_ladder: list[int] = field(default_factory=lambda: [64, 32, 16])  # MiB
    argon2_time_cost: int = 3
    argon2_parallelism: int = 1
    pbkdf2_iterations: int | None = None   # unset = calibrate on this host
    pbkdf2_target_ms: int = 350
    pbkdf2_min_iterations: int = 50_000
    pbkdf2_max_iterations: int = 2_000_000

    def to_options(self) -> KdfOptions:
        return KdfOptions(
            prefer_argon2id=self.prefer_argon2id,
            argon2_memory_ladder=tuple(self.argon2_memory_ladder),
            argon2_time_cost=self.argon2_time_cost,
            argon2_parallelism=self.argon2_parallelism,
            pbkdf2_iterations=self.pbkdf2_iterations,
            pbkdf2_target_ms=self.pbkdf2_target_ms,
            pbkdf2_min_iterations=self.pbkdf2_min_iterations,
            pbkdf2_max_iterations=self.pbkdf2_max_iterations,
        )


@dataclass
class EntropyConfig:
    """Entropy size for new wallets (128/160/192/224/256 bits)."""
    strength: int = 256


@dataclass
class WalletConfig:
    """Defaults for wallet derivation."""
    kind: str = "p2wpkh"     # p2pkh | p2sh-p2wpkh | p2wpkh
    coin_type: int = 0       # 0 = mainnet, 1 = testnet
    account: int = 0


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    format: str = "human"   # "human" or "json"
    file: str | None = None


@dataclass
class SeedSafeConfig:
    """Top-level configuration container."""
    kdf: KdfConfig = field(default_factory=KdfConfig)
    entropy: EntropyConfig = field(default_factory=EntropyConfig)
    wallet: WalletConfig = field(default_factory=WalletConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _merge(dc: Any, raw: dict[str, Any]) -> None:
    """Merge a raw dict into a dataclass instance (in-place)."""
    for key, value in raw.items():
        key_under = key.replace("-", "_")
        if hasattr(dc, key_under):
            setattr(dc, key_under, value)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(path: str | None = None) -> SeedSafeConfig:
    """
    Load configuration from a TOML file, then overlay environment variables.

    Env-var mapping:
        SEEDSAFE_KDF_PREFER_ARGON2  -> kdf.prefer_argon2id   (true/false)
        SEEDSAFE_ARGON2_LADDER      -> kdf.argon2_memory_ladder (comma-separated MiB)
        SEEDSAFE_ARGON2_TIME_COST   -> kdf.argon2_time_cost
        SEEDSAFE_PBKDF2_ITERATIONS  -> kdf.pbkdf2_iterations
        SEEDSAFE_PBKDF2_TARGET_MS   -> kdf.pbkdf2_target_ms
        SEEDSAFE_STRENGTH           -> entropy.strength
        SEEDSAFE_ADDRESS_KIND       -> wallet.kind
        SEEDSAFE_COIN_TYPE          -> wallet.coin_type
        SEEDSAFE_LOG_LEVEL          -> logging.level
        SEEDSAFE_LOG_FMT            -> logging.format
    """
    cfg = SeedSafeConfig()

    # ── TOML file ────────────────────────────────────────────────
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "rb") as f:
                data = tomllib.load(f)
            for section_name, section_dc in [
                ("kdf", cfg.kdf),
                ("entropy", cfg.entropy),
                ("wallet", cfg.wallet),
                ("logging", cfg.logging),
            ]:
                if section_name in data:
                    _merge(section_dc, data[section_name])

    # ── Environment variable overrides ───────────────────────────
    if v := os.environ.get("SEEDSAFE_KDF_PREFER_ARGON2"):
        cfg.kdf.prefer_argon2id = _parse_bool(v)
    if v := os.environ.get("SEEDSAFE_ARGON2_LADDER"):
        cfg.kdf.argon2_memory_ladder = [int(m) for m in v.split(",") if m.strip()]
    if v := os.environ.get("SEEDSAFE_ARGON2_TIME_COST"):
        cfg.kdf.argon2_time_cost = int(v)
    if v := os.environ.get("SEEDSAFE_PBKDF2_ITERATIONS"):
        cfg.kdf.pbkdf2_iterations = int(v)
    if v := os.environ.get("SEEDSAFE_PBKDF2_TARGET_MS"):
        cfg.kdf.pbkdf2_target_ms = int(v)
    if v := os.environ.get("SEEDSAFE_STRENGTH"):
        cfg.entropy.strength = int(v)
    if v := os.environ.get("SEEDSAFE_ADDRESS_KIND"):
        cfg.wallet.kind = v
    if v := os.environ.get("SEEDSAFE_COIN_TYPE"):
        cfg.wallet.coin_type = int(v)
    if v := os.environ.get("SEEDSAFE_LOG_LEVEL"):
        cfg.logging.level = v.upper()
    if v := os.environ.get("SEEDSAFE_LOG_FMT"):
        cfg.logging.format = v

    return cfg
