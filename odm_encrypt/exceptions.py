# ==============================================
# Exceptions
# ==============================================
#
# PURPOSE:
#   One place for every error the framework raises, so callers
#   can catch OdmEncryptError and know it came from here.
#
# HIERARCHY:
# ----------
#   OdmEncryptError
#   ├── MetadataError            → field marking can't be resolved
#   │   └── MappingError         → class is not a mapped document
#   ├── CryptoError              → encrypt/decrypt primitive failed
#   │   ├── EncryptionError
#   │   └── DecryptionError
#   ├── ConfigurationError       → missing / invalid settings
#   └── StorageError             → backing store unusable
#       └── DocumentNotFoundError
#
# None of these are retried inside the framework. They propagate
# out of the lifecycle hook and abort the current flush / load.
#
# ==============================================


class OdmEncryptError(Exception):
    """Base exception for the framework."""
    pass


class MetadataError(OdmEncryptError):
    """Raised when a field's encryption marking is malformed."""
    pass


class MappingError(MetadataError):
    """Raised when a class has not been registered as a document."""
    pass


class CryptoError(OdmEncryptError):
    """Base exception for encryptor failures."""
    pass


class EncryptionError(CryptoError):
    """Raised when encryption fails."""
    pass


class DecryptionError(CryptoError):
    """Raised when decryption fails (corrupt ciphertext, wrong key)."""
    pass


class ConfigurationError(OdmEncryptError):
    """Raised when configuration is missing or invalid."""
    pass


class StorageError(OdmEncryptError):
    """Raised when the backing store can't be used."""
    pass


class DocumentNotFoundError(StorageError):
    """Raised when a required document does not exist."""
    pass
