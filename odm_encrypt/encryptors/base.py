# ==============================================
# Encryptor (interface)
# ==============================================
#
# PURPOSE:
#   The one seam for swapping algorithms or key sources.
#   EncryptSubscriber only ever calls encrypt() / decrypt().
#
# CONTRACT:
# ---------
# - encrypt(data: str) -> str
# - decrypt(data: str) -> str
#     decrypt(encrypt(v)) == v for every str v.
#     Both are synchronous. Failures raise CryptoError subclasses.
#
# ==============================================

from abc import ABC, abstractmethod


class Encryptor(ABC):
    """Pluggable encrypt/decrypt primitive."""

    @abstractmethod
    def encrypt(self, data: str) -> str:
        """Must accept plaintext and return the stored representation."""

    @abstractmethod
    def decrypt(self, data: str) -> str:
        """Must accept the stored representation and return plaintext."""
