"""
AES-256-GCM 加解密（用于 API 密钥落库）

密文格式: <iv hex>:<authTag hex>:<ciphertext hex>
"""

import logging
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from paperinsight.errors import DecryptionFailure

logger = logging.getLogger(__name__)

IV_BYTES = 16
TAG_BYTES = 16


class CryptoService:

    def __init__(self, key_hex: Optional[str] = None):
        if key_hex is None:
            from paperinsight.config import Config
            key_hex = Config.encryption_key

        if not key_hex:
            logger.warning(
                "⚠️ ENCRYPTION_KEY not configured, using a random key. "
                "Stored API keys will be unreadable after restart."
            )
            key_hex = os.urandom(32).hex()

        key = bytes.fromhex(key_hex[:64])
        if len(key) != 32:
            raise ValueError("ENCRYPTION_KEY must be 64 hex characters (32 bytes)")

        self._aesgcm = AESGCM(key)

    def encrypt(self, plaintext: str) -> str:
        iv = os.urandom(IV_BYTES)
        sealed = self._aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        # cryptography 把 tag 拼在密文末尾
        ciphertext, auth_tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
        return f"{iv.hex()}:{auth_tag.hex()}:{ciphertext.hex()}"

    def decrypt(self, ciphertext: str) -> str:
        try:
            iv_hex, tag_hex, data_hex = ciphertext.split(":")
            if not (iv_hex and tag_hex and data_hex):
                raise ValueError("Invalid ciphertext format")

            iv = bytes.fromhex(iv_hex)
            sealed = bytes.fromhex(data_hex) + bytes.fromhex(tag_hex)
            return self._aesgcm.decrypt(iv, sealed, None).decode("utf-8")
        except (ValueError, InvalidTag) as e:
            logger.error(f"❌ [Crypto] Decryption failed: {e!r}")
            raise DecryptionFailure() from e
