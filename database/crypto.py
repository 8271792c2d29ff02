"""
Fishinge Database - Token Encryption
Chiffrement des tokens OAuth des comptes avec Fernet (AES-128-CBC + HMAC)
"""

import base64
import hashlib
import logging
import os
from pathlib import Path
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

LOGGER = logging.getLogger(__name__)


class TokenEncryptor:
    """
    Chiffre/déchiffre les tokens stockés dans la table `accounts`.

    La clé est lue depuis `key_file`, ou générée (permissions 600) au
    premier usage. Sans ce fichier les tokens stockés sont perdus.
    """

    def __init__(self, key_file: str = ".fishinge.key"):
        self.key_file = Path(key_file)
        self.key: Optional[bytes] = None
        self.fernet: Optional[Fernet] = None

        self._load_or_generate_key()

    def _load_or_generate_key(self):
        """Load existing key or generate new one"""
        if self.key_file.exists():
            try:
                self.key = self.key_file.read_bytes()
                self.fernet = Fernet(self.key)
                LOGGER.info(f"🔑 Encryption key loaded from {self.key_file} (fingerprint: {self.get_key_fingerprint()})")
            except Exception as e:
                LOGGER.error(f"❌ Failed to load encryption key: {e}")
                raise
        else:
            self.key = Fernet.generate_key()
            self.fernet = Fernet(self.key)

            try:
                self.key_file.write_bytes(self.key)
                os.chmod(self.key_file, 0o600)

                LOGGER.info(f"🔑 New encryption key generated and saved to {self.key_file}")
                LOGGER.warning("⚠️ BACKUP THIS KEY FILE! Without it, tokens cannot be decrypted!")
            except Exception as e:
                LOGGER.error(f"❌ Failed to save encryption key: {e}")
                raise

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a token string

        Returns:
            Base64-encoded encrypted token (TEXT column friendly)
        """
        if not self.fernet:
            raise RuntimeError("Encryptor not initialized")

        encrypted_bytes = self.fernet.encrypt(plaintext.encode('utf-8'))
        return base64.b64encode(encrypted_bytes).decode('utf-8')

    def decrypt(self, encrypted: str) -> str:
        """
        Decrypt a token string

        Raises:
            InvalidToken: tampered token or wrong key
        """
        if not self.fernet:
            raise RuntimeError("Encryptor not initialized")

        try:
            encrypted_bytes = base64.b64decode(encrypted.encode('utf-8'))
            return self.fernet.decrypt(encrypted_bytes).decode('utf-8')
        except InvalidToken:
            LOGGER.error("❌ Decryption failed: Invalid token or wrong key")
            raise

    def get_key_fingerprint(self) -> str:
        """SHA256 of the key (first 16 chars), safe to log."""
        if not self.key:
            return "NO_KEY"
        return hashlib.sha256(self.key).hexdigest()[:16]
