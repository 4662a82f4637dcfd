# ==============================================
# DocumentManager
# ==============================================
#
# PURPOSE:
#   Public entry point of the mapper. Applications persist and
#   load documents through it; listeners reach the UnitOfWork
#   and class metadata through it.
#
# CLASS: DocumentManager
# ----------------------
#   Stateful — holds the storage client, EventManager and UnitOfWork.
#
#   Constructor:
#   ------------
#   - __init__(storage, event_manager=None)
#       storage: anything with insert_one / update_one / find / find_one
#                (storage.MongoClient in production)
#
#   Methods:
#   --------
#   - persist(document)            → schedule for insertion
#   - flush()                      → write pending changes
#   - find(cls, document_id, require=False)
#   - find_by(cls, query=None) -> list
#   - contains(document) -> bool
#   - clear()                      → detach everything
#   - get_class_metadata(cls) -> ClassMetadata
#
#   Loading goes through the identity map first; a document that
#   is already managed is returned as-is, without a new post_load.
#
# ==============================================

import logging
from typing import Any, Dict, List, Optional

from odm_encrypt.exceptions import DocumentNotFoundError
from odm_encrypt.odm.events import EventManager, Events, LifecycleEventArgs
from odm_encrypt.odm.mapping import STORAGE_ID_KEY, ClassMetadata
from odm_encrypt.odm.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class DocumentManager:
    def __init__(self, storage, event_manager: Optional[EventManager] = None):
        self.storage = storage
        self.event_manager = event_manager or EventManager()
        self.unit_of_work = UnitOfWork(self)

    def get_class_metadata(self, cls: type) -> ClassMetadata:
        return ClassMetadata.for_class(cls)

    def persist(self, document: Any) -> None:
        self.unit_of_work.persist(document)

    def flush(self) -> None:
        self.unit_of_work.commit()

    def find(self, cls: type, document_id: Any, require: bool = False) -> Optional[Any]:
        """
        Load one document by identifier.

        Args:
            cls: Mapped document class
            document_id: Identifier value
            require: Raise instead of returning None when missing

        Returns:
            The managed document, or None

        Raises:
            DocumentNotFoundError: If require=True and nothing matches
        """
        class_metadata = self.get_class_metadata(cls)

        managed = self.unit_of_work.try_get_by_id(cls, document_id)
        if managed is not None:
            return managed

        data = self.storage.find_one(class_metadata.collection, {STORAGE_ID_KEY: document_id})
        if data is None:
            if require:
                raise DocumentNotFoundError(
                    f"No {class_metadata.name} with id {document_id!r}"
                )
            return None

        return self._hydrate(class_metadata, data)

    def find_by(self, cls: type, query: Optional[Dict[str, Any]] = None) -> List[Any]:
        class_metadata = self.get_class_metadata(cls)
        documents = []

        for data in self.storage.find(class_metadata.collection, query or {}):
            managed = self.unit_of_work.try_get_by_id(cls, data.get(STORAGE_ID_KEY))
            documents.append(managed if managed is not None else self._hydrate(class_metadata, data))

        return documents

    def contains(self, document: Any) -> bool:
        return self.unit_of_work.is_managed(document)

    def clear(self) -> None:
        self.unit_of_work.clear()

    def _hydrate(self, class_metadata: ClassMetadata, data: Dict[str, Any]) -> Any:
        document = class_metadata.new_instance()
        class_metadata.hydrate(document, data)
        self.unit_of_work.register_managed(class_metadata, document)

        logger.debug("Loaded %s %r", class_metadata.name, class_metadata.get_identifier(document))

        self.event_manager.dispatch_event(
            Events.post_load, LifecycleEventArgs(document, self)
        )
        return document
