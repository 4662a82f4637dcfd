# ==============================================
# METADATA (Which fields are encrypted)
# ==============================================
#
# This package decides which fields of a document class are
# stored encrypted, and remembers the answer per class.
#
# Modules:
# --------
# - annotations.py   → Encrypted marker + AnnotationReader
# - field_cache.py   → FieldMetadataCache (computed once per class)
#
# ==============================================

from .annotations import AnnotationReader, Encrypted, encrypted_field
from .field_cache import EncryptedFieldDescriptor, FieldMetadataCache

__all__ = [
    "AnnotationReader",
    "Encrypted",
    "encrypted_field",
    "EncryptedFieldDescriptor",
    "FieldMetadataCache",
]
