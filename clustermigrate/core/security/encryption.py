"""Per-context attribute encryption.

Every encrypted column has its own key context. Keys are derived from a
single master secret (DB_KEY_BASE) with HKDF-SHA256, using the context
name as ``info``, so ciphertext written under one context cannot be
opened under another.
"""

import base64
import logging
from typing import Dict, Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from ...exceptions import DecryptionError

logger = logging.getLogger(__name__)


class TokenEncryptor:
    """Encrypts and decrypts column values under named key contexts."""

    def __init__(self, key_base: str):
        if not key_base:
            raise ValueError("Encryption key base must not be empty")
        self._key_base = key_base.encode("utf-8")
        self._ciphers: Dict[str, Fernet] = {}

    def _cipher(self, context: str) -> Fernet:
        cipher = self._ciphers.get(context)
        if cipher is None:
            derived = HKDF(
                algorithm=hashes.SHA256(),
                length=32,
                salt=None,
                info=context.encode("utf-8"),
            ).derive(self._key_base)
            cipher = Fernet(base64.urlsafe_b64encode(derived))
            self._ciphers[context] = cipher
        return cipher

    def encrypt(self, plaintext: Optional[str], context: str) -> Optional[str]:
        if plaintext is None:
            return None
        return self._cipher(context).encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: Optional[str], context: str) -> Optional[str]:
        if ciphertext is None:
            return None
        if not isinstance(ciphertext, str):
            raise DecryptionError(
                f"Unable to decrypt value under context '{context}' (expected text, got {type(ciphertext).__name__})"
            )
        try:
            value = self._cipher(context).decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise DecryptionError(
                f"Unable to decrypt value under context '{context}' (invalid token or key mismatch)"
            ) from exc
        return value.decode("utf-8")

    def reencrypt(
        self,
        ciphertext: Optional[str],
        source_context: str,
        target_context: str,
    ) -> Optional[str]:
        """Move a secret from one key context to another.

        The plaintext only exists inside this call.
        """
        if ciphertext is None:
            return None
        logger.debug(f"Re-encrypting value from '{source_context}' to '{target_context}'")
        return self.encrypt(self.decrypt(ciphertext, source_context), target_context)
