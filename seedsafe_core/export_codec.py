"""
Versioned envelope for encrypted exports.

Wire form (a single opaque string, safe for clipboard, QR or file)::

    base64( u16_be(len(header)) || utf8(json(header)) || ciphertext || tag )

Header, version 1::

    {"version":1,"kdf":"argon2id"|"pbkdf2-sha256","kdfParams":{...},
     "saltB64":"...","cipher":"aes-256-gcm","ivB64":"..."}

The header JSON is also the AEAD associated data, so the exact bytes
read off the wire are kept on the decoded export.  New layouts get a new
``version``; version 1 is frozen.
"""

from __future__ import annotations

import base64
import binascii
import json
import struct
from dataclasses import dataclass, field
from typing import Any, Callable

from seedsafe_core.aead import IV_SIZE, WalletExportError
from seedsafe_core.kdf import SALT_LENGTH, KdfParams, kdf_params_from_dict

EXPORT_VERSION = 1
CIPHER_AES_256_GCM = "aes-256-gcm"
MAX_HEADER_LENGTH = 0xFFFF


class MalformedExportError(WalletExportError):
    """The blob is not a well-formed export; no password is involved."""


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(text: Any, what: str) -> bytes:
    if not isinstance(text, str):
        raise MalformedExportError(f"{what} must be a base64 string")
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        raise MalformedExportError(f"{what} is not valid base64") from None


@dataclass(frozen=True)
class EncryptedExportHeader:
    """Authenticated metadata describing how the payload was encrypted."""
    kdf: KdfParams
    salt: bytes
    iv: bytes
    cipher: str = CIPHER_AES_256_GCM
    version: int = EXPORT_VERSION

    @property
    def kdf_kind(self) -> str:
        return self.kdf.kind

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "kdf": self.kdf.kind,
            "kdfParams": self.kdf.to_dict(),
            "saltB64": _b64encode(self.salt),
            "cipher": self.cipher,
            "ivB64": _b64encode(self.iv),
        }

    def to_json(self) -> bytes:
        """Canonical compact JSON, used both on the wire and as AAD."""
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_dict(cls, data: Any) -> EncryptedExportHeader:
        if not isinstance(data, dict):
            raise MalformedExportError("Export header must be a JSON object")
        version = data.get("version")
        parser = _HEADER_PARSERS.get(version) if type(version) is int else None
        if parser is None:
            raise MalformedExportError(f"Unsupported export version: {version!r}")
        return parser(data)


def _header_v1_from_dict(data: dict) -> EncryptedExportHeader:
    cipher = data.get("cipher")
    if cipher != CIPHER_AES_256_GCM:
        raise MalformedExportError(f"Unsupported cipher: {cipher!r}")
    try:
        params = kdf_params_from_dict(data.get("kdf"), data.get("kdfParams"))
    except ValueError as exc:
        raise MalformedExportError(str(exc)) from None
    salt = _b64decode(data.get("saltB64"), "saltB64")
    iv = _b64decode(data.get("ivB64"), "ivB64")
    if len(salt) != SALT_LENGTH:
        raise MalformedExportError(f"Salt must be {SALT_LENGTH} bytes")
    if len(iv) != IV_SIZE:
        raise MalformedExportError(f"IV must be {IV_SIZE} bytes")
    return EncryptedExportHeader(kdf=params, salt=salt, iv=iv, cipher=cipher, version=1)


_HEADER_PARSERS: dict[int, Callable[[dict], EncryptedExportHeader]] = {
    1: _header_v1_from_dict,
}


@dataclass(frozen=True)
class EncryptedExport:
    header: EncryptedExportHeader
    ciphertext: bytes   # ciphertext || tag
    # Exact header bytes read from a blob; None when built in memory.
    header_bytes: bytes | None = field(default=None, compare=False, repr=False)

    def associated_data(self) -> bytes:
        if self.header_bytes is not None:
            return self.header_bytes
        return self.header.to_json()


# ===================================================================
#  Binary blob
# ===================================================================

def serialize_export(export: EncryptedExport) -> str:
    """Pack header and ciphertext into the base64 transport string."""
    header_bytes = export.associated_data()
    if len(header_bytes) > MAX_HEADER_LENGTH:
        raise MalformedExportError("Export header too long")
    blob = struct.pack(">H", len(header_bytes)) + header_bytes + export.ciphertext
    return _b64encode(blob)


def deserialize_export(blob: str | bytes) -> EncryptedExport:
    """Unpack a transport string; raises MalformedExportError on bad input."""
    if isinstance(blob, bytes):
        try:
            blob = blob.decode("ascii")
        except UnicodeDecodeError:
            raise MalformedExportError("Export blob is not valid base64") from None
    # Blobs may arrive line-wrapped from files, mail or QR payloads.
    raw = _b64decode("".join(blob.split()), "Export blob")
    if len(raw) < 2:
        raise MalformedExportError("Blob too short")
    (header_len,) = struct.unpack(">H", raw[:2])
    end = 2 + header_len
    if end > len(raw):
        raise MalformedExportError("Invalid header length")
    header_bytes = raw[2:end]
    try:
        header_obj = json.loads(header_bytes.decode("utf-8"))
    except (UnicodeDecodeError, ValueError, RecursionError):
        raise MalformedExportError("Export header is not valid JSON") from None
    header = EncryptedExportHeader.from_dict(header_obj)
    return EncryptedExport(header=header, ciphertext=raw[end:], header_bytes=header_bytes)


# ===================================================================
#  JSON form {"header": ..., "payloadB64": ...}
# ===================================================================

def export_to_dict(export: EncryptedExport) -> dict:
    return {
        "header": export.header.to_dict(),
        "payloadB64": _b64encode(export.ciphertext),
    }


def export_from_dict(data: Any) -> EncryptedExport:
    if not isinstance(data, dict) or "header" not in data:
        raise MalformedExportError("Export must be an object with a header")
    header = EncryptedExportHeader.from_dict(data["header"])
    return EncryptedExport(
        header=header,
        ciphertext=_b64decode(data.get("payloadB64"), "payloadB64"),
    )
