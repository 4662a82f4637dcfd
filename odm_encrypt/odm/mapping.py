# ==============================================
# Document mapping (ClassMetadata + @document)
# ==============================================
#
# PURPOSE:
#   Turn a plain dataclass into a mapped document: which
#   collection it lives in, which field is the identifier,
#   and how to move values between the object and a stored dict.
#
# DECORATOR: document
# -------------------
#   @document(collection="users", id_field="id")
#   @dataclass
#   class User: ...
#
#   - collection defaults to the lower-cased class name
#   - id_field is stored as "_id" in MongoDB
#   - instances must support weak references; a __slots__ class
#     without a "__weakref__" slot is rejected with MappingError
#
# CLASS: ClassMetadata
# --------------------
#   Attributes:
#   -----------
#   - type: type              → the document class
#   - name: str               → "module.QualName"
#   - collection: str
#   - id_field: str
#   - field_names: tuple[str] → every mapped field, declaration order
#
#   Methods:
#   --------
#   - for_class(cls) -> ClassMetadata  (classmethod, MappingError if unmapped)
#   - get_field_value / set_field_value (bypass __setattr__)
#   - get_identifier / set_identifier
#   - get_field_values(document) -> dict
#   - new_instance() → object created WITHOUT calling __init__
#   - to_storage(document) -> dict      ("_id" instead of id_field)
#   - hydrate(document, data: dict)     (inverse of to_storage)
#
# ==============================================

import dataclasses
from typing import Any, Dict, Optional

from odm_encrypt.exceptions import MappingError


METADATA_ATTRIBUTE = "__odm_metadata__"
STORAGE_ID_KEY = "_id"


class ClassMetadata:
    def __init__(self, cls: type, collection: str, id_field: str = "id"):
        self.type = cls
        self.name = f"{cls.__module__}.{cls.__qualname__}"
        self.collection = collection
        self.id_field = id_field
        self.field_names = tuple(f.name for f in dataclasses.fields(cls))

        if id_field not in self.field_names:
            raise MappingError(
                f"{self.name} has no identifier field '{id_field}'"
            )

    def __repr__(self) -> str:
        return f"ClassMetadata({self.name!r}, collection={self.collection!r})"

    @classmethod
    def for_class(cls, document_cls: type) -> "ClassMetadata":
        # Look in the class's own __dict__ so an undecorated subclass
        # doesn't silently reuse its parent's mapping
        metadata = document_cls.__dict__.get(METADATA_ATTRIBUTE)
        if metadata is None:
            raise MappingError(
                f"{document_cls.__qualname__} is not a mapped document; "
                f"decorate it with @document"
            )
        return metadata

    def get_field_value(self, document: Any, field_name: str) -> Any:
        try:
            return object.__getattribute__(document, field_name)
        except AttributeError:
            return None

    def set_field_value(self, document: Any, field_name: str, value: Any) -> None:
        object.__setattr__(document, field_name, value)

    def get_identifier(self, document: Any) -> Any:
        return self.get_field_value(document, self.id_field)

    def set_identifier(self, document: Any, value: Any) -> None:
        self.set_field_value(document, self.id_field, value)

    def get_field_values(self, document: Any) -> Dict[str, Any]:
        return {
            name: self.get_field_value(document, name)
            for name in self.field_names
        }

    def new_instance(self) -> Any:
        return self.type.__new__(self.type)

    def to_storage(self, document: Any) -> Dict[str, Any]:
        data = {}
        for name, value in self.get_field_values(document).items():
            key = STORAGE_ID_KEY if name == self.id_field else name
            data[key] = value
        return data

    def hydrate(self, document: Any, data: Dict[str, Any]) -> None:
        """
        Populate a fresh instance from a stored dict.

        Fields missing from the stored dict get their dataclass
        default (or None when there is none).
        """
        for f in dataclasses.fields(self.type):
            key = STORAGE_ID_KEY if f.name == self.id_field else f.name
            if key in data:
                value = data[key]
            elif f.default is not dataclasses.MISSING:
                value = f.default
            elif f.default_factory is not dataclasses.MISSING:
                value = f.default_factory()
            else:
                value = None
            self.set_field_value(document, f.name, value)


def document(cls: Optional[type] = None, *, collection: Optional[str] = None,
             id_field: str = "id"):
    """Register a dataclass as a mapped document."""
    def wrap(document_cls: type) -> type:
        if not dataclasses.is_dataclass(document_cls):
            raise MappingError(
                f"{document_cls.__qualname__} must be a dataclass to be mapped"
            )
        if not hasattr(document_cls, "__weakref__"):
            raise MappingError(
                f"{document_cls.__qualname__} instances can't be weakly referenced; "
                f"add '__weakref__' to its __slots__ (or use weakref_slot=True)"
            )
        metadata = ClassMetadata(
            document_cls,
            collection=collection or document_cls.__name__.lower(),
            id_field=id_field
        )
        setattr(document_cls, METADATA_ATTRIBUTE, metadata)
        return document_cls

    if cls is None:
        return wrap
    return wrap(cls)
