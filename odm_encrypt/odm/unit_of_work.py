# ==============================================
# UnitOfWork
# ==============================================
#
# PURPOSE:
#   Track every managed document, decide what changed since it
#   was last persisted, and write exactly those changes on commit.
#
# HOW CHANGE DETECTION WORKS:
#   For each managed document we keep an "original data" snapshot:
#   the values we believe are currently stored (the baseline).
#   compute_change_sets() compares the live field values against
#   that baseline. After a write, the baseline becomes whatever
#   was written, unless a listener overrides it with
#   set_original_document_property() during post_flush.
#
# CLASS: UnitOfWork
# -----------------
#   Stateful — owned by one DocumentManager.
#
#   Scheduling:
#   -----------
#   - persist(document)                  → schedule insert
#   - compute_change_sets()              → schedule updates
#   - get_scheduled_document_insertions() -> list
#   - get_scheduled_document_updates()    -> list
#   - is_scheduled_for_insert / is_scheduled_for_update
#
#   Change sets / baselines:
#   ------------------------
#   - get_document_change_set(document) -> dict[field, (old, new)]
#   - recompute_single_document_change_set(class_metadata, document)
#   - get_original_document_data(document) -> dict
#   - set_original_document_property(document, field, value)
#
#   Identity map:
#   -------------
#   - register_managed(class_metadata, document)
#   - try_get_by_id(cls, document_id)
#   - is_managed(document)
#   - clear()
#
#   Commit:
#   -------
#   - commit()
#       1. compute_change_sets()
#       2. dispatch pre_flush
#       3. insert scheduled insertions, $set changed fields of updates
#       4. baseline := values just written
#       5. dispatch post_flush
#
# ==============================================

import copy
import logging
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId

from odm_encrypt.exceptions import StorageError
from odm_encrypt.odm.events import Events, PostFlushEventArgs, PreFlushEventArgs

logger = logging.getLogger(__name__)

ChangeSet = Dict[str, Tuple[Any, Any]]


class UnitOfWork:
    def __init__(self, document_manager):
        self.dm = document_manager

        # (class, identifier) -> document
        self._identity_map: Dict[Tuple[type, Any], Any] = {}

        # The dicts below are keyed by id(document). Every document
        # in them is strongly held by _documents, so ids stay unique.
        self._documents: Dict[int, Any] = {}
        self._original_data: Dict[int, Dict[str, Any]] = {}
        self._change_sets: Dict[int, ChangeSet] = {}
        self._insertions: Dict[int, Any] = {}
        self._updates: Dict[int, Any] = {}

    # ------------------------------------------
    # Scheduling
    # ------------------------------------------

    def persist(self, document: Any) -> None:
        """
        Schedule a new document for insertion.

        Already managed documents are ignored; their changes are
        picked up by compute_change_sets() on the next commit.
        """
        oid = id(document)
        if oid in self._documents:
            return

        class_metadata = self.dm.get_class_metadata(type(document))
        if class_metadata.get_identifier(document) is None:
            class_metadata.set_identifier(document, ObjectId())

        self._add_to_identity_map(class_metadata, document)
        self._documents[oid] = document
        self._insertions[oid] = document

    def compute_change_sets(self) -> None:
        for oid, document in self._documents.items():
            class_metadata = self.dm.get_class_metadata(type(document))
            self._compute_change_set(class_metadata, document)

    def get_scheduled_document_insertions(self) -> List[Any]:
        return list(self._insertions.values())

    def get_scheduled_document_updates(self) -> List[Any]:
        return list(self._updates.values())

    def is_scheduled_for_insert(self, document: Any) -> bool:
        return id(document) in self._insertions

    def is_scheduled_for_update(self, document: Any) -> bool:
        return id(document) in self._updates

    # ------------------------------------------
    # Change sets / baselines
    # ------------------------------------------

    def get_document_change_set(self, document: Any) -> ChangeSet:
        return dict(self._change_sets.get(id(document), {}))

    def recompute_single_document_change_set(self, class_metadata, document: Any) -> None:
        """
        Recompute one document's change set after a listener has
        modified it during pre_flush.

        Raises:
            StorageError: If the document is not managed
        """
        if id(document) not in self._documents:
            raise StorageError(
                f"Can't recompute change set of unmanaged {class_metadata.name}"
            )
        self._compute_change_set(class_metadata, document)

    def get_original_document_data(self, document: Any) -> Dict[str, Any]:
        return dict(self._original_data.get(id(document), {}))

    def set_original_document_property(self, document: Any, field_name: str, value: Any) -> None:
        """Override the baseline value of one field."""
        self._original_data.setdefault(id(document), {})[field_name] = value

    def _compute_change_set(self, class_metadata, document: Any) -> None:
        oid = id(document)
        actual = class_metadata.get_field_values(document)

        if oid in self._insertions:
            self._change_sets[oid] = {
                name: (None, value) for name, value in actual.items()
            }
            return

        original = self._original_data.get(oid, {})
        change_set = {
            name: (original.get(name), value)
            for name, value in actual.items()
            if name != class_metadata.id_field
            and (name not in original or original[name] != value)
        }

        if change_set:
            self._change_sets[oid] = change_set
            self._updates[oid] = document
        else:
            self._change_sets.pop(oid, None)
            self._updates.pop(oid, None)

    @staticmethod
    def _snapshot(class_metadata, document: Any) -> Dict[str, Any]:
        return copy.deepcopy(class_metadata.get_field_values(document))

    # ------------------------------------------
    # Identity map
    # ------------------------------------------

    def register_managed(self, class_metadata, document: Any) -> None:
        """Start managing a document that was just loaded from storage."""
        oid = id(document)
        self._add_to_identity_map(class_metadata, document)
        self._documents[oid] = document
        self._original_data[oid] = self._snapshot(class_metadata, document)

    def try_get_by_id(self, cls: type, document_id: Any) -> Optional[Any]:
        return self._identity_map.get((cls, document_id))

    def is_managed(self, document: Any) -> bool:
        return id(document) in self._documents

    def clear(self) -> None:
        """Detach every document. Pending changes are discarded."""
        self._identity_map.clear()
        self._documents.clear()
        self._original_data.clear()
        self._change_sets.clear()
        self._insertions.clear()
        self._updates.clear()

    def _add_to_identity_map(self, class_metadata, document: Any) -> None:
        key = (class_metadata.type, class_metadata.get_identifier(document))
        existing = self._identity_map.get(key)
        if existing is not None and existing is not document:
            raise StorageError(
                f"Another {class_metadata.name} with id {key[1]!r} is already managed"
            )
        self._identity_map[key] = document

    # ------------------------------------------
    # Commit
    # ------------------------------------------

    def commit(self) -> None:
        self.compute_change_sets()

        if not self._insertions and not self._updates:
            logger.debug("Nothing to flush")
            return

        self.dm.event_manager.dispatch_event(
            Events.pre_flush, PreFlushEventArgs(self.dm)
        )

        storage = self.dm.storage
        written = []

        for document in self.get_scheduled_document_insertions():
            class_metadata = self.dm.get_class_metadata(type(document))
            storage.insert_one(class_metadata.collection, class_metadata.to_storage(document))
            written.append((class_metadata, document))

        for document in self.get_scheduled_document_updates():
            change_set = self._change_sets.get(id(document))
            if not change_set:
                continue
            class_metadata = self.dm.get_class_metadata(type(document))
            storage.update_one(
                class_metadata.collection,
                class_metadata.get_identifier(document),
                {name: new for name, (old, new) in change_set.items()}
            )
            written.append((class_metadata, document))

        # What we just wrote is now the baseline
        for class_metadata, document in written:
            self._original_data[id(document)] = self._snapshot(class_metadata, document)

        self._insertions.clear()
        self._updates.clear()
        self._change_sets.clear()

        logger.debug("Flushed %d document(s)", len(written))

        self.dm.event_manager.dispatch_event(
            Events.post_flush, PostFlushEventArgs(self.dm)
        )
