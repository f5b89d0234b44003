#!/usr/bin/env python3
"""
SeedSafe command line: generate wallets and move secrets in and out of
encrypted export blobs.

Usage:
    python run_wallet.py generate --kind p2wpkh --coin-type 1 --export wallet.blob
    python run_wallet.py derive --mnemonic-file phrase.txt --index 3
    python run_wallet.py decrypt --in wallet.blob
    python run_wallet.py encrypt-text --in note.txt --out note.blob
    python run_wallet.py inspect --in wallet.blob

Passwords are read with getpass, or from SEEDSAFE_PASSWORD when set.
"""

from __future__ import annotations

import argparse
import getpass
import json
import logging
import os
import sys
from pathlib import Path

from seedsafe_core.aead import WalletExportError
from seedsafe_core.config import SeedSafeConfig, load_config
from seedsafe_core.entropy import WeakEntropyError
from seedsafe_core.export import (
    WalletExportService,
    export_wallet_as_json,
    export_wallet_as_text,
)
from seedsafe_core.export_codec import deserialize_export, serialize_export
from seedsafe_core.hd import ADDRESS_KINDS
from seedsafe_core.kdf import KeyDerivationError
from seedsafe_core.logging_config import setup_logging
from seedsafe_core.random_source import EntropySourceError
from seedsafe_core.wallet import WalletRecord, assemble_wallet_from_mnemonic, generate_wallet

logger = logging.getLogger("seedsafe.cli")

PASSWORD_ENV = "SEEDSAFE_PASSWORD"


# ===================================================================
#  I/O helpers
# ===================================================================

def _read_password(confirm: bool = False) -> str:
    if v := os.environ.get(PASSWORD_ENV):
        return v
    password = getpass.getpass("Password: ")
    if confirm and getpass.getpass("Confirm password: ") != password:
        raise ValueError("Passwords do not match")
    if not password:
        raise ValueError("Password must not be empty")
    return password


def _read_input(path: str | None) -> str:
    if path and path != "-":
        return Path(path).read_text(encoding="utf-8")
    return sys.stdin.read()


def _write_output(path: str | None, text: str) -> None:
    if path and path != "-":
        Path(path).write_text(text + "\n", encoding="utf-8")
    else:
        print(text)


def _render(record: WalletRecord, fmt: str) -> str:
    return export_wallet_as_text(record) if fmt == "text" else export_wallet_as_json(record)


# ===================================================================
#  Commands
# ===================================================================

def cmd_generate(args: argparse.Namespace, cfg: SeedSafeConfig) -> int:
    record = generate_wallet(
        kind=args.kind or cfg.wallet.kind,
        coin_type=cfg.wallet.coin_type if args.coin_type is None else args.coin_type,
        strength=args.strength or cfg.entropy.strength,
        account=cfg.wallet.account if args.account is None else args.account,
        index=args.index,
    )
    if args.export:
        service = WalletExportService(cfg.kdf.to_options())
        blob = service.export_wallet_blob(record, _read_password(confirm=True))
        _write_output(args.export, blob)
        print(f"Address: {record.address}")
        print(f"Path:    {record.path}")
        print(f"Encrypted export written to {args.export}")
    else:
        print(_render(record, args.format))
    return 0


def cmd_derive(args: argparse.Namespace, cfg: SeedSafeConfig) -> int:
    record = assemble_wallet_from_mnemonic(
        _read_input(args.mnemonic_file),
        kind=args.kind or cfg.wallet.kind,
        coin_type=cfg.wallet.coin_type if args.coin_type is None else args.coin_type,
        passphrase=os.environ.get("SEEDSAFE_BIP39_PASSPHRASE", ""),
        account=cfg.wallet.account if args.account is None else args.account,
        change=args.change,
        index=args.index,
    )
    print(_render(record, args.format))
    return 0


def cmd_encrypt_text(args: argparse.Namespace, cfg: SeedSafeConfig) -> int:
    text = _read_input(args.input)
    service = WalletExportService(cfg.kdf.to_options())
    blob = serialize_export(service.encrypt_text(text, _read_password(confirm=True)))
    _write_output(args.out, blob)
    return 0


def cmd_decrypt(args: argparse.Namespace, cfg: SeedSafeConfig) -> int:
    export = deserialize_export(_read_input(args.input))
    service = WalletExportService(cfg.kdf.to_options())
    password = _read_password()
    if args.text:
        sys.stdout.write(service.decrypt_text(export, password))
    else:
        print(_render(service.decrypt_wallet(export, password), args.format))
    return 0


def cmd_inspect(args: argparse.Namespace, cfg: SeedSafeConfig) -> int:
    export = deserialize_export(_read_input(args.input))
    info = export.header.to_dict()
    info["ciphertextBytes"] = len(export.ciphertext)
    print(json.dumps(info, indent=2))
    return 0


# ===================================================================
#  Main entry point
# ===================================================================

def _add_derivation_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--kind", choices=ADDRESS_KINDS, default=None,
                   help="Address kind (default from config)")
    p.add_argument("--coin-type", type=int, choices=(0, 1), default=None,
                   help="0 = mainnet, 1 = testnet")
    p.add_argument("--account", type=int, default=None, help="Account index")
    p.add_argument("--index", type=int, default=0, help="Address index")
    p.add_argument("--format", choices=("json", "text"), default="json",
                   help="Output format for the wallet record")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="seedsafe", description="SeedSafe wallet tool")
    p.add_argument("--config", default=None, help="Path to seedsafe.toml config file")
    p.add_argument("--log-level", default=None, help="Override logging level")
    sub = p.add_subparsers(dest="command", required=True)

    g = sub.add_parser("generate", help="Generate a new wallet")
    _add_derivation_args(g)
    g.add_argument("--strength", type=int, choices=(128, 160, 192, 224, 256), default=None,
                   help="Entropy bits (default from config)")
    g.add_argument("--export", default=None, metavar="FILE",
                   help="Write an encrypted export blob instead of printing secrets")
    g.set_defaults(func=cmd_generate)

    d = sub.add_parser("derive", help="Derive a wallet from an existing mnemonic")
    _add_derivation_args(d)
    d.add_argument("--mnemonic-file", default=None, help="File holding the phrase (default stdin)")
    d.add_argument("--change", type=int, choices=(0, 1), default=0, help="0 external, 1 change")
    d.set_defaults(func=cmd_derive)

    e = sub.add_parser("encrypt-text", help="Encrypt an arbitrary text secret")
    e.add_argument("--in", dest="input", default=None, help="Input file (default stdin)")
    e.add_argument("--out", default=None, help="Output file (default stdout)")
    e.set_defaults(func=cmd_encrypt_text)

    x = sub.add_parser("decrypt", help="Decrypt an export blob")
    x.add_argument("--in", dest="input", default=None, help="Blob file (default stdin)")
    x.add_argument("--text", action="store_true", help="Payload is plain text, not a wallet record")
    x.add_argument("--format", choices=("json", "text"), default="json")
    x.set_defaults(func=cmd_decrypt)

    i = sub.add_parser("inspect", help="Show an export header without decrypting")
    i.add_argument("--in", dest="input", default=None, help="Blob file (default stdin)")
    i.set_defaults(func=cmd_inspect)

    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    cfg = load_config(args.config)
    if args.log_level:
        cfg.logging.level = args.log_level.upper()
    setup_logging(level=cfg.logging.level, fmt=cfg.logging.format, log_file=cfg.logging.file)
    if args.config:
        logger.debug(f"Loaded config from {args.config}")

    try:
        return args.func(args, cfg)
    except WalletExportError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except WeakEntropyError as exc:
        print(f"Error: {exc} (run the command again to regenerate)", file=sys.stderr)
        return 1
    except (ValueError, EntropySourceError, KeyDerivationError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
