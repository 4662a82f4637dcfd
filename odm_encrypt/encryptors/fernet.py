# ==============================================
# FernetEncryptor
# ==============================================
#
# PURPOSE:
#   Default Encryptor, backed by cryptography's Fernet
#   (AES-128-CBC + HMAC-SHA256, url-safe base64 tokens).
#
# BEHAVIOUR:
# ----------
# - Empty string stays empty in both directions, so an empty
#   field is stored as "" rather than a token.
# - Non-str input → EncryptionError / DecryptionError.
# - Bad token or wrong key → DecryptionError.
# - Bad key at construction → ConfigurationError.
#
# ==============================================

import logging

from cryptography.fernet import Fernet, InvalidToken

from odm_encrypt.encryptors.base import Encryptor
from odm_encrypt.exceptions import (
    ConfigurationError,
    DecryptionError,
    EncryptionError,
)

logger = logging.getLogger(__name__)


class FernetEncryptor(Encryptor):

    def __init__(self, key):
        """
        Args:
            key: 32 url-safe base64-encoded bytes (str or bytes)
        """
        try:
            self._fernet = Fernet(key)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid Fernet key: {e}") from e

    @staticmethod
    def generate_key() -> str:
        """Return a fresh key suitable for ENCRYPTION_KEY."""
        return Fernet.generate_key().decode("ascii")

    def encrypt(self, data: str) -> str:
        if not isinstance(data, str):
            raise EncryptionError(
                f"Can only encrypt str values, got {type(data).__name__}"
            )
        if not data:
            return data

        return self._fernet.encrypt(data.encode("utf-8")).decode("ascii")

    def decrypt(self, data: str) -> str:
        if not isinstance(data, str):
            raise DecryptionError(
                f"Can only decrypt str values, got {type(data).__name__}"
            )
        if not data:
            return data

        try:
            return self._fernet.decrypt(data.encode("utf-8")).decode("utf-8")
        except InvalidToken as e:
            logger.error("Decryption failed: invalid token or wrong key")
            raise DecryptionError(
                "Failed to decrypt data: invalid token or wrong key"
            ) from e
