# ==============================================
# DecodeTracker
# ==============================================
#
# PURPOSE:
#   Remember which document instances currently hold plaintext
#   in their encrypted fields, so post_load never decrypts the
#   same instance twice.
#
# HOW IDENTITY IS TRACKED:
#   Keyed by id(document), with a weak reference as the value.
#   The weak reference keeps the tracker from extending the
#   document's lifetime, and its callback drops the entry once the
#   document is collected so a recycled id() can't look decoded.
#   Documents must support weak references (dataclasses do).
#
# ==============================================

import weakref
from typing import Any, Dict


class DecodeTracker:
    def __init__(self):
        self._decoded: Dict[int, weakref.ref] = {}

    def is_decoded(self, document: Any) -> bool:
        ref = self._decoded.get(id(document))
        return ref is not None and ref() is document

    def mark_decoded(self, document: Any) -> None:
        if self.is_decoded(document):
            return
        key = id(document)
        self._decoded[key] = weakref.ref(document, self._forget(key))

    def _forget(self, key: int):
        def callback(ref: weakref.ref) -> None:
            if self._decoded.get(key) is ref:
                self._decoded.pop(key, None)
        return callback

    def __len__(self) -> int:
        return len(self._decoded)
