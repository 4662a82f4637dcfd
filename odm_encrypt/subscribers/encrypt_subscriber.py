# ==============================================
# EncryptSubscriber
# ==============================================
#
# PURPOSE:
#   Event subscriber that encrypts marked fields on their way to
#   storage and decrypts them on their way back, so the in-memory
#   document always holds plaintext.
#
# WHY THIS CLASS EXISTS:
#   The mapper persists whatever is in the document's fields. To
#   store ciphertext we have to put ciphertext in the fields during
#   the flush, then put the plaintext back afterwards without the
#   mapper noticing a change.
#
# FLUSH CYCLE:
# ------------
#   pre_flush
#     For every scheduled insertion, then every scheduled update:
#       1. read each encrypted field (None → "")
#       2. queue (field, plaintext) for restore
#       3. write encrypt(plaintext) into the field
#       4. ask the UnitOfWork to recompute the change set
#     The restore queue is emptied first: nothing carries over
#     from a previous flush.
#
#   (UnitOfWork writes the ciphertext. Its baseline is now the
#    ciphertext too.)
#
#   post_flush
#     For every queued document:
#       1. write the plaintext back into each field
#       2. set the field's baseline to the plaintext, so the next
#          change detection sees no change even though storage
#          holds ciphertext
#       3. mark the document decoded
#     Then clear the queue.
#
# LOAD:
# -----
#   post_load
#     Unless the instance is already decoded: decrypt each
#     encrypted field, set its baseline to the plaintext, and mark
#     the instance decoded (only if it has encrypted fields).
#
# NOTE:
#   Nothing here detects a value that is already ciphertext. If a
#   post_flush is skipped after a failed write, the next pre_flush
#   encrypts the ciphertext again.
#
# ==============================================

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from odm_encrypt.metadata.field_cache import EncryptedFieldDescriptor, FieldMetadataCache
from odm_encrypt.odm.events import (
    Events,
    LifecycleEventArgs,
    PostFlushEventArgs,
    PreFlushEventArgs,
)
from odm_encrypt.subscribers.decode_tracker import DecodeTracker

logger = logging.getLogger(__name__)


@dataclass
class PendingRestoreEntry:
    """Plaintext values to put back into one document after a flush."""
    document: Any
    fields: List[Tuple[EncryptedFieldDescriptor, Any]] = field(default_factory=list)


class EncryptSubscriber:
    def __init__(
        self,
        reader,
        encryptor,
        field_cache: Optional[FieldMetadataCache] = None,
        decode_tracker: Optional[DecodeTracker] = None
    ):
        """
        Args:
            reader: Metadata source (AnnotationReader)
            encryptor: Encryptor used for every field
            field_cache: Shared FieldMetadataCache (one is created if omitted)
            decode_tracker: Shared DecodeTracker (one is created if omitted)
        """
        self.reader = reader
        self.encryptor = encryptor
        self.field_cache = field_cache if field_cache is not None else FieldMetadataCache(reader)
        self.decode_tracker = decode_tracker if decode_tracker is not None else DecodeTracker()

        # id(document) -> PendingRestoreEntry, for the current flush only
        self._post_flush_decrypt_queue: Dict[int, PendingRestoreEntry] = {}

    def get_subscribed_events(self) -> List[str]:
        return [
            Events.post_load,
            Events.pre_flush,
            Events.post_flush,
        ]

    @property
    def pending_restores(self) -> List[PendingRestoreEntry]:
        return list(self._post_flush_decrypt_queue.values())

    def pre_flush(self, args: PreFlushEventArgs) -> None:
        dm = args.document_manager
        unit_of_work = dm.unit_of_work

        self._post_flush_decrypt_queue = {}

        for document in unit_of_work.get_scheduled_document_insertions():
            self._document_pre_flush(document, dm)

        for document in unit_of_work.get_scheduled_document_updates():
            self._document_pre_flush(document, dm)

    def _document_pre_flush(self, document: Any, dm) -> None:
        class_metadata = dm.get_class_metadata(type(document))
        fields = self.field_cache.fields_for(class_metadata)
        if not fields:
            return

        entry = PendingRestoreEntry(document=document)
        for descriptor in fields:
            entry.fields.append((descriptor, descriptor.get_value(document)))

        self.process_fields(document, dm)
        self._post_flush_decrypt_queue[id(document)] = entry
        dm.unit_of_work.recompute_single_document_change_set(class_metadata, document)

        logger.debug(
            "Encrypted %d field(s) of %s before flush",
            len(fields), class_metadata.name
        )

    def post_flush(self, args: PostFlushEventArgs) -> None:
        unit_of_work = args.document_manager.unit_of_work

        for entry in self._post_flush_decrypt_queue.values():
            for descriptor, value in entry.fields:
                descriptor.set_value(entry.document, value)
                unit_of_work.set_original_document_property(entry.document, descriptor.name, value)

            self.decode_tracker.mark_decoded(entry.document)

        if self._post_flush_decrypt_queue:
            logger.debug(
                "Restored plaintext on %d document(s) after flush",
                len(self._post_flush_decrypt_queue)
            )
        self._post_flush_decrypt_queue = {}

    def post_load(self, args: LifecycleEventArgs) -> None:
        document = args.document

        if self.decode_tracker.is_decoded(document):
            return

        if self.process_fields(document, args.document_manager, encrypt=False):
            self.decode_tracker.mark_decoded(document)

    def process_fields(self, document: Any, dm, encrypt: bool = True) -> bool:
        """
        Encrypt or decrypt every encrypted field of a document in place.

        When decrypting, each field's baseline is set to the plaintext
        so a freshly loaded document doesn't look modified.

        Args:
            document: Managed document
            dm: DocumentManager the document belongs to
            encrypt: True to encrypt, False to decrypt

        Returns:
            True if the document's class has any encrypted field
        """
        class_metadata = dm.get_class_metadata(type(document))
        fields = self.field_cache.fields_for(class_metadata)
        unit_of_work = dm.unit_of_work

        for descriptor in fields:
            value = descriptor.get_value(document)
            value = "" if value is None else value

            if encrypt:
                value = self.encryptor.encrypt(value)
            else:
                value = self.encryptor.decrypt(value)

            descriptor.set_value(document, value)

            if not encrypt:
                unit_of_work.set_original_document_property(document, descriptor.name, value)

        return bool(fields)
