"""
SeedSafe - deterministic wallet generation and encrypted export.

Key features:
- CSPRNG entropy with structural validation and source mixing
- BIP-39 mnemonics and BIP-32/44/49/84 key derivation
- Argon2id key-derivation ladder with calibrated PBKDF2 fallback
- AES-256-GCM envelope with the header bound as associated data
- Versioned, length-prefixed base64 export blobs
"""

__version__ = "1.0.0"
__all__ = [
    "random_source",
    "entropy",
    "bip39",
    "hd",
    "kdf",
    "aead",
    "export_codec",
    "export",
    "wallet",
    "config",
    "logging_config",
]
