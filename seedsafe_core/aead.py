"""
AES-256-GCM authenticated encryption.

Ciphertexts are returned as ``ciphertext || tag`` (16-byte tag).  Every
decryption problem, whether a bad tag, a wrong key or a truncated
buffer, raises the same :class:`DecryptionError` so callers cannot be
used as a decryption oracle.
"""

from __future__ import annotations

from Crypto.Cipher import AES

from seedsafe_core.random_source import random_bytes

KEY_SIZE = 32
IV_SIZE = 12    # 96-bit nonce
TAG_SIZE = 16

DECRYPTION_FAILED = "Decryption failed. Wrong password or corrupted data."


class WalletExportError(ValueError):
    """Base class for export / import failures."""


class DecryptionError(WalletExportError):
    """Authentication failed: wrong password, or tampered ciphertext/header."""

    def __init__(self, message: str = DECRYPTION_FAILED):
        super().__init__(message)


def generate_iv() -> bytes:
    """Fresh random 96-bit nonce; never reuse one under the same key."""
    return random_bytes(IV_SIZE)


def _new_cipher(key: bytes, iv: bytes):
    return AES.new(key, AES.MODE_GCM, nonce=iv, mac_len=TAG_SIZE)


def encrypt_aes_gcm(
    key: bytes,
    iv: bytes,
    plaintext: bytes,
    aad: bytes | None = None,
) -> bytes:
    """Encrypt *plaintext*; *aad* is authenticated but not encrypted."""
    if len(key) != KEY_SIZE:
        raise ValueError(f"AES-256-GCM key must be {KEY_SIZE} bytes")
    if len(iv) != IV_SIZE:
        raise ValueError(f"AES-GCM IV must be {IV_SIZE} bytes")
    cipher = _new_cipher(key, iv)
    if aad:
        cipher.update(aad)
    ciphertext, tag = cipher.encrypt_and_digest(plaintext)
    return ciphertext + tag


def decrypt_aes_gcm(
    key: bytes,
    iv: bytes,
    ciphertext_and_tag: bytes,
    aad: bytes | None = None,
) -> bytes:
    """Verify and decrypt ``ciphertext || tag``; raises DecryptionError."""
    if (
        len(key) != KEY_SIZE
        or len(iv) != IV_SIZE
        or len(ciphertext_and_tag) < TAG_SIZE
    ):
        raise DecryptionError()
    ciphertext = ciphertext_and_tag[:-TAG_SIZE]
    tag = ciphertext_and_tag[-TAG_SIZE:]
    cipher = _new_cipher(key, iv)
    if aad:
        cipher.update(aad)
    try:
        return cipher.decrypt_and_verify(ciphertext, tag)
    except ValueError:
        raise DecryptionError() from None
