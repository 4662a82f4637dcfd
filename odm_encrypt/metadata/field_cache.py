# ==============================================
# FieldMetadataCache
# ==============================================
#
# PURPOSE:
#   Answer "which fields of this document class are encrypted?"
#   once per class, then serve the same answer forever.
#
# WHY THIS CLASS EXISTS:
#   Resolving markings means reading type hints and dataclass
#   metadata for every field. That work only depends on the class,
#   so it is done on first use and memoized. There is no
#   invalidation path: classes don't change their fields at runtime.
#
# DATA CLASS: EncryptedFieldDescriptor (frozen)
# ---------------------------------------------
#   - name: str     → field name
#   - owner: type   → document class the field belongs to
#
#   - get_value(document) / set_value(document, value)
#       Read/write the field bypassing the class's own
#       __setattr__ (frozen dataclasses, validating setters).
#
# CLASS: FieldMetadataCache
# -------------------------
#   Stateful — holds the TypeFieldCache (class → descriptors).
#
#   - fields_for(class_metadata) -> tuple[EncryptedFieldDescriptor, ...]
#       Same tuple object on every call for a given class.
#       Empty tuple when nothing is marked.
#
# ==============================================

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncryptedFieldDescriptor:
    """Accessor for one encrypted field of a document class."""
    name: str
    owner: type

    def get_value(self, document: Any) -> Any:
        try:
            return object.__getattribute__(document, self.name)
        except AttributeError:
            return None

    def set_value(self, document: Any, value: Any) -> None:
        object.__setattr__(document, self.name, value)


class FieldMetadataCache:
    def __init__(self, reader):
        """
        Args:
            reader: Metadata source with is_field_marked_encrypted(cls, field_name)
        """
        self.reader = reader
        self._cache: Dict[type, Tuple[EncryptedFieldDescriptor, ...]] = {}
        self._lock = threading.Lock()

    def fields_for(self, class_metadata) -> Tuple[EncryptedFieldDescriptor, ...]:
        """
        Return the encrypted field descriptors for a mapped class.

        Args:
            class_metadata: ClassMetadata of the document's class

        Returns:
            Descriptors in field declaration order

        Raises:
            MetadataError: If a field's marking is malformed (nothing is cached)
        """
        cls = class_metadata.type

        cached = self._cache.get(cls)
        if cached is not None:
            return cached

        with self._lock:
            # Another thread may have filled it while we waited
            cached = self._cache.get(cls)
            if cached is not None:
                return cached

            fields = tuple(
                EncryptedFieldDescriptor(name=field_name, owner=cls)
                for field_name in class_metadata.field_names
                if self.reader.is_field_marked_encrypted(cls, field_name)
            )
            self._cache[cls] = fields

        logger.debug(
            "Cached %d encrypted field(s) for %s: %s",
            len(fields), class_metadata.name, [f.name for f in fields]
        )
        return fields

    def __contains__(self, cls: type) -> bool:
        return cls in self._cache

    def __len__(self) -> int:
        return len(self._cache)
