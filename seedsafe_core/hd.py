"""
Hierarchical-deterministic key derivation (BIP-32 / BIP-44/49/84).

The BIP-32 tree comes from ``bip_utils``; leaf public keys from ``ecdsa``.
This module chooses paths and encodes the results:

  p2pkh        m/44'/coin'/account'/change/index   base58check address
  p2sh-p2wpkh  m/49'/coin'/account'/change/index   nested segwit (P2SH)
  p2wpkh       m/84'/coin'/account'/change/index   bech32 address

The extended public key returned is always the *account* node
(``m/purpose'/coin'/account'``), never the root, so it cannot be used to
walk into sibling accounts.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

import base58
import bech32
from bip_utils import Bip32KeyError, Bip32KeyNetVersions, Bip32PathError, Bip32Slip10Secp256k1
from Crypto.Hash import RIPEMD160
from ecdsa import SECP256k1, SigningKey

ADDRESS_KINDS: tuple[str, ...] = ("p2pkh", "p2sh-p2wpkh", "p2wpkh")
COIN_TYPES: tuple[int, ...] = (0, 1)
HARDENED = 0x80000000

_PURPOSE = {"p2pkh": 44, "p2sh-p2wpkh": 49, "p2wpkh": 84}


@dataclass(frozen=True)
class NetworkParams:
    name: str
    xpub_version: bytes
    xprv_version: bytes
    pubkey_hash: int
    script_hash: int
    wif_prefix: int
    bech32_hrp: str


NETWORKS: dict[str, NetworkParams] = {
    "mainnet": NetworkParams("mainnet", bytes.fromhex("0488b21e"), bytes.fromhex("0488ade4"),
                             0x00, 0x05, 0x80, "bc"),
    "testnet": NetworkParams("testnet", bytes.fromhex("043587cf"), bytes.fromhex("04358394"),
                             0x6F, 0xC4, 0xEF, "tb"),
}


@dataclass(frozen=True)
class HDKeyMaterial:
    """Key material for one leaf of the tree, plus its account xpub."""
    wif: str
    public_key_hex: str
    xpub: str
    path: str
    account_path: str
    address: str
    network: str
    kind: str


# ── path helpers ─────────────────────────────────────────────────

def get_purpose_for(kind: str) -> int:
    try:
        return _PURPOSE[kind]
    except KeyError:
        raise ValueError(f"Unknown address kind: {kind!r}") from None


def resolve_network_from_coin_type(coin_type: int) -> str:
    if coin_type not in COIN_TYPES:
        raise ValueError(f"Unsupported coin type: {coin_type!r}")
    return "mainnet" if coin_type == 0 else "testnet"


def _check_index(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value < HARDENED:
        raise ValueError(f"{name} must be an integer in [0, 2**31)")


def build_account_path(kind: str, coin_type: int, account: int = 0) -> str:
    purpose = get_purpose_for(kind)
    resolve_network_from_coin_type(coin_type)
    _check_index("account", account)
    return f"m/{purpose}'/{coin_type}'/{account}'"


def build_derivation_path(
    kind: str,
    coin_type: int,
    account: int = 0,
    change: int = 0,
    index: int = 0,
) -> str:
    """Full leaf path ``m/purpose'/coin'/account'/change/index``."""
    if change not in (0, 1):
        raise ValueError("change must be 0 (external) or 1 (internal)")
    _check_index("index", index)
    return f"{build_account_path(kind, coin_type, account)}/{change}/{index}"


# ── encodings ────────────────────────────────────────────────────

def hash160(data: bytes) -> bytes:
    """RIPEMD-160(SHA-256(data))."""
    return RIPEMD160.new(hashlib.sha256(data).digest()).digest()


def compressed_public_key(private_key: bytes) -> bytes:
    """33-byte SEC1 compressed public key for a secp256k1 private key."""
    sk = SigningKey.from_string(private_key, curve=SECP256k1)
    raw = sk.get_verifying_key().to_string()
    x = raw[:32]
    y = raw[32:]
    prefix = b"\x02" if y[-1] % 2 == 0 else b"\x03"
    return prefix + x


def private_key_to_wif(private_key: bytes, network: str) -> str:
    """Compressed-key WIF for *network* ("mainnet" or "testnet")."""
    params = NETWORKS[network]
    payload = bytes([params.wif_prefix]) + private_key + b"\x01"
    return base58.b58encode_check(payload).decode("ascii")


def derive_address_from_public_key(public_key: bytes, kind: str, network: str) -> str:
    params = NETWORKS[network]
    pkh = hash160(public_key)
    if kind == "p2pkh":
        return base58.b58encode_check(bytes([params.pubkey_hash]) + pkh).decode("ascii")
    if kind == "p2sh-p2wpkh":
        redeem_script = b"\x00\x14" + pkh
        payload = bytes([params.script_hash]) + hash160(redeem_script)
        return base58.b58encode_check(payload).decode("ascii")
    if kind == "p2wpkh":
        address = bech32.encode(params.bech32_hrp, 0, pkh)
        if address is None:
            raise ValueError("Failed to compute P2WPKH address")
        return address
    raise ValueError(f"Unknown address kind: {kind!r}")


# ── BIP-32 tree ──────────────────────────────────────────────────

def master_key_from_seed(seed: bytes, network: str) -> Bip32Slip10Secp256k1:
    """BIP-32 master node for a 16..64 byte seed, tagged with *network*'s version bytes."""
    if not 16 <= len(seed) <= 64:
        raise ValueError("BIP-32 seed must be 16 to 64 bytes")
    params = NETWORKS[network]
    key_net_ver = Bip32KeyNetVersions(params.xpub_version, params.xprv_version)
    try:
        return Bip32Slip10Secp256k1.FromSeed(seed, key_net_ver)
    except Bip32KeyError as exc:
        raise ValueError(f"Seed yields an invalid master key: {exc}") from None


def _derive(node: Bip32Slip10Secp256k1, path: str) -> Bip32Slip10Secp256k1:
    try:
        return node.DerivePath(path)
    except (Bip32KeyError, Bip32PathError) as exc:
        # Invalid child key (probability ~2**-127); BIP-32 says use the next index.
        raise ValueError(f"Cannot derive {path}: {exc}") from None


# ── derivation ───────────────────────────────────────────────────

def derive_wallet(
    seed: bytes,
    kind: str,
    coin_type: int,
    account: int = 0,
    change: int = 0,
    index: int = 0,
) -> HDKeyMaterial:
    """
    Derive the leaf key at ``m/purpose'/coin'/account'/change/index``.

    Pure function of its arguments: the same seed and path always give
    byte-identical output.
    """
    network = resolve_network_from_coin_type(coin_type)
    path = build_derivation_path(kind, coin_type, account, change, index)
    account_path = build_account_path(kind, coin_type, account)

    account_node = _derive(master_key_from_seed(seed, network), account_path)
    leaf = _derive(account_node, f"{change}/{index}")
    leaf_private = leaf.PrivateKey().Raw().ToBytes()
    leaf_public = compressed_public_key(leaf_private)

    return HDKeyMaterial(
        wif=private_key_to_wif(leaf_private, network),
        public_key_hex=leaf_public.hex(),
        xpub=account_node.PublicKey().ToExtended(),
        path=path,
        account_path=account_path,
        address=derive_address_from_public_key(leaf_public, kind, network),
        network=network,
        kind=kind,
    )


def derive_address_from_seed(
    seed: bytes,
    kind: str,
    coin_type: int,
    account: int = 0,
    change: int = 0,
    index: int = 0,
) -> tuple[str, str]:
    """Return ``(address, path)`` without building the full key material."""
    network = resolve_network_from_coin_type(coin_type)
    path = build_derivation_path(kind, coin_type, account, change, index)
    leaf = _derive(master_key_from_seed(seed, network), path)
    public_key = leaf.PublicKey().RawCompressed().ToBytes()
    return derive_address_from_public_key(public_key, kind, network), path
