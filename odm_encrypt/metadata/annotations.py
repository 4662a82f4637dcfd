# ==============================================
# Encrypted marker + AnnotationReader
# ==============================================
#
# PURPOSE:
#   Declarative way to say "this field is stored encrypted",
#   and the reader that answers whether a given field carries
#   that marking.
#
# HOW A FIELD IS MARKED:
# ----------------------
#   Either form works on a @document dataclass:
#
#     @document(collection="users")
#     @dataclass
#     class User:
#         id: Optional[str] = None
#         ssn: Annotated[str, Encrypted()] = ""     # type-hint marker
#         notes: str = encrypted_field(default="")  # field metadata marker
#
# CLASS: AnnotationReader
# -----------------------
#   Stateless. The metadata source consumed by FieldMetadataCache.
#
#   Methods:
#   --------
#   - get_property_annotation(cls, field_name, annotation_cls)
#       Return the marker instance found on the field, or None.
#
#   - is_field_marked_encrypted(cls, field_name) -> bool
#
#   Raises MetadataError when the marking is malformed:
#     - the marker class is used instead of an instance
#       (Annotated[str, Encrypted] rather than Encrypted())
#     - field metadata "encrypted" is not a bool / Encrypted
#     - the field does not exist or hints can't be resolved
#
#   Annotated markers are also found when nested in a Union,
#   e.g. Optional[Annotated[str, Encrypted()]].
#
# ==============================================

import dataclasses
import types
import typing
from typing import Any, Dict, Iterator, Optional, Type

from odm_encrypt.exceptions import MetadataError


ENCRYPTED_METADATA_KEY = "encrypted"

# X | Y unions only exist on 3.10+
_UNION_ORIGINS = (typing.Union, getattr(types, "UnionType", typing.Union))


class Encrypted:
    """Marks a document field as encrypted at rest."""

    def __repr__(self) -> str:
        return "Encrypted()"


def encrypted_field(**kwargs) -> Any:
    """dataclasses.field() with the encrypted marking added to its metadata."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[ENCRYPTED_METADATA_KEY] = True
    return dataclasses.field(metadata=metadata, **kwargs)


class AnnotationReader:

    def get_property_annotation(
        self,
        cls: type,
        field_name: str,
        annotation_cls: Type[Any]
    ) -> Optional[Any]:
        """
        Find an annotation of the given class on one field.

        Args:
            cls: Document class
            field_name: Field to inspect
            annotation_cls: Marker class to look for

        Returns:
            The marker instance, or None if the field is not marked
        """
        hints = self._type_hints(cls)
        dataclass_fields = self._dataclass_fields(cls)

        if field_name not in hints and field_name not in dataclass_fields:
            raise MetadataError(
                f"{cls.__qualname__} has no field '{field_name}'"
            )

        # 1. Annotated[...] type-hint markers
        for annotated in self._annotated_hints(hints.get(field_name)):
            for extra in typing.get_args(annotated)[1:]:
                if extra is annotation_cls:
                    raise MetadataError(
                        f"{cls.__qualname__}.{field_name}: use "
                        f"{annotation_cls.__name__}() instead of the bare class"
                    )
                if isinstance(extra, annotation_cls):
                    return extra

        # 2. dataclasses.field(metadata={"encrypted": ...}) markers
        if annotation_cls is Encrypted and field_name in dataclass_fields:
            flag = dataclass_fields[field_name].metadata.get(ENCRYPTED_METADATA_KEY)
            if flag is None or flag is False:
                return None
            if flag is True:
                return Encrypted()
            if isinstance(flag, Encrypted):
                return flag
            raise MetadataError(
                f"{cls.__qualname__}.{field_name}: '{ENCRYPTED_METADATA_KEY}' "
                f"metadata must be a bool, got {type(flag).__name__}"
            )

        return None

    def is_field_marked_encrypted(self, cls: type, field_name: str) -> bool:
        return self.get_property_annotation(cls, field_name, Encrypted) is not None

    @classmethod
    def _annotated_hints(cls, hint: Any) -> Iterator[Any]:
        """Yield every Annotated[...] in a hint, looking inside unions."""
        origin = typing.get_origin(hint)
        if origin is typing.Annotated:
            yield hint
        elif origin in _UNION_ORIGINS:
            for member in typing.get_args(hint):
                yield from cls._annotated_hints(member)

    @staticmethod
    def _type_hints(cls: type) -> Dict[str, Any]:
        try:
            return typing.get_type_hints(cls, include_extras=True)
        except (NameError, TypeError) as e:
            raise MetadataError(
                f"Can't resolve type hints of {cls.__qualname__}: {e}"
            ) from e

    @staticmethod
    def _dataclass_fields(cls: type) -> Dict[str, dataclasses.Field]:
        if not dataclasses.is_dataclass(cls):
            return {}
        return {f.name: f for f in dataclasses.fields(cls)}
