"""
Encrypted export and import of wallet records and text secrets.

Encrypt:  derive key (Argon2id ladder / PBKDF2)  ->  fresh IV  ->
          header  ->  AAD = canonical header JSON  ->  AES-256-GCM
Decrypt:  AAD = stored header bytes  ->  re-derive with the *stored* KDF
          params and salt  ->  AES-256-GCM verify  ->  parse

No state survives between calls.  Each call moves through
Ready -> Deriving -> Encrypting/Decrypting -> Done | Failed, and a
failed call leaves nothing behind to retry from.

Usage:
    service = WalletExportService()
    blob = service.export_wallet_blob(record, "password")
    record = service.import_wallet_blob(blob, "password")
"""

from __future__ import annotations

import asyncio
import json
import logging

from seedsafe_core.aead import (
    DecryptionError,
    decrypt_aes_gcm,
    encrypt_aes_gcm,
    generate_iv,
)
from seedsafe_core.export_codec import (
    EncryptedExport,
    EncryptedExportHeader,
    deserialize_export,
    serialize_export,
)
from seedsafe_core.kdf import KdfOptions, KeyDerivationError, derive_key, derive_key_exact
from seedsafe_core.wallet import WalletRecord

logger = logging.getLogger("seedsafe.export")


class WalletExportService:
    """Password-based envelope encryption for wallet secrets."""

    def __init__(self, kdf_options: KdfOptions | None = None):
        self.kdf_options = kdf_options or KdfOptions()

    # ---- core envelope ----

    def _seal(self, plaintext: bytes, password: str) -> EncryptedExport:
        logger.debug("export: Deriving")
        kdf = derive_key(password, self.kdf_options)
        iv = generate_iv()
        header = EncryptedExportHeader(kdf=kdf.params, salt=kdf.salt, iv=iv)
        aad = header.to_json()
        logger.debug("export: Encrypting")
        ciphertext = encrypt_aes_gcm(kdf.key, iv, plaintext, aad)
        logger.debug(f"export: Done ({kdf.kind})")
        return EncryptedExport(header=header, ciphertext=ciphertext, header_bytes=aad)

    def _open(self, export: EncryptedExport, password: str) -> bytes:
        header = export.header
        logger.debug("import: Deriving")
        try:
            kdf = derive_key_exact(password, header.salt, header.kdf)
            logger.debug("import: Decrypting")
            plaintext = decrypt_aes_gcm(kdf.key, header.iv, export.ciphertext, export.associated_data())
        except (KeyDerivationError, DecryptionError):
            logger.debug("import: Failed")
            raise DecryptionError() from None
        logger.debug("import: Done")
        return plaintext

    # ---- wallet records ----

    def encrypt_wallet(self, record: WalletRecord, password: str) -> EncryptedExport:
        return self._seal(record.to_json().encode("utf-8"), password)

    def decrypt_wallet(self, export: EncryptedExport, password: str) -> WalletRecord:
        plaintext = self._open(export, password)
        try:
            return WalletRecord.from_dict(json.loads(plaintext.decode("utf-8")))
        except (UnicodeDecodeError, ValueError):
            raise DecryptionError() from None

    # ---- arbitrary text ----

    def encrypt_text(self, text: str, password: str) -> EncryptedExport:
        return self._seal(text.encode("utf-8"), password)

    def decrypt_text(self, export: EncryptedExport, password: str) -> str:
        plaintext = self._open(export, password)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise DecryptionError() from None

    # ---- transport blobs ----

    def export_wallet_blob(self, record: WalletRecord, password: str) -> str:
        return serialize_export(self.encrypt_wallet(record, password))

    def import_wallet_blob(self, blob: str, password: str) -> WalletRecord:
        return self.decrypt_wallet(deserialize_export(blob), password)

    def export_text_blob(self, text: str, password: str) -> str:
        return serialize_export(self.encrypt_text(text, password))

    def import_text_blob(self, blob: str, password: str) -> str:
        return self.decrypt_text(deserialize_export(blob), password)

    # ---- off-thread variants ----

    async def encrypt_wallet_async(
        self, record: WalletRecord, password: str, timeout: float | None = None,
    ) -> EncryptedExport:
        """
        Run :meth:`encrypt_wallet` in a worker thread.

        On *timeout* the result is abandoned (``TimeoutError``); the KDF
        itself cannot be interrupted and finishes in the background.
        """
        return await asyncio.wait_for(
            asyncio.to_thread(self.encrypt_wallet, record, password), timeout,
        )

    async def decrypt_wallet_async(
        self, export: EncryptedExport, password: str, timeout: float | None = None,
    ) -> WalletRecord:
        return await asyncio.wait_for(
            asyncio.to_thread(self.decrypt_wallet, export, password), timeout,
        )


# ===================================================================
#  Module-level helpers
# ===================================================================

def encrypt_wallet(
    record: WalletRecord, password: str, options: KdfOptions | None = None,
) -> EncryptedExport:
    return WalletExportService(options).encrypt_wallet(record, password)


def decrypt_wallet(export: EncryptedExport, password: str) -> WalletRecord:
    return WalletExportService().decrypt_wallet(export, password)


def encrypt_text(text: str, password: str, options: KdfOptions | None = None) -> EncryptedExport:
    return WalletExportService(options).encrypt_text(text, password)


def decrypt_text(export: EncryptedExport, password: str) -> str:
    return WalletExportService().decrypt_text(export, password)


def export_wallet_as_json(record: WalletRecord) -> str:
    """Plaintext JSON dump, for display only."""
    return record.to_json(indent=2)


def export_wallet_as_text(record: WalletRecord) -> str:
    """Plaintext human-readable dump, for display only."""
    return "\n".join([
        f"Mnemonic: {record.mnemonic}",
        f"Network: {record.network}",
        f"Kind: {record.kind}",
        f"Path: {record.path}",
        f"XPUB: {record.xpub}",
        f"WIF: {record.wif}",
        f"PublicKey: {record.public_key_hex}",
        f"Address: {record.address}",
    ])
