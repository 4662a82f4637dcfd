# ==============================================
# Tests for UnitOfWork
# ==============================================
#
# Change detection and baselines, without any subscriber.
# ==============================================

import pytest
from bson import ObjectId

from odm_encrypt.exceptions import StorageError
from odm_encrypt.odm import ClassMetadata, DocumentManager, Events

from tests.documents import Doc, User


class Recorder:
    def __init__(self):
        self.events = []

    def get_subscribed_events(self):
        return [Events.pre_flush, Events.post_flush]

    def pre_flush(self, args):
        self.events.append(Events.pre_flush)

    def post_flush(self, args):
        self.events.append(Events.post_flush)


@pytest.fixture
def plain_dm(storage):
    return DocumentManager(storage)


class TestScheduling:

    def test_persist_assigns_object_id(self, plain_dm):
        doc = Doc()
        plain_dm.persist(doc)

        assert isinstance(doc.id, ObjectId)
        assert plain_dm.unit_of_work.is_scheduled_for_insert(doc)

    def test_persist_keeps_existing_id(self, plain_dm):
        doc = Doc(id="given")
        plain_dm.persist(doc)

        assert doc.id == "given"

    def test_persist_twice_is_ignored(self, plain_dm):
        doc = Doc()
        plain_dm.persist(doc)
        plain_dm.persist(doc)

        assert plain_dm.unit_of_work.get_scheduled_document_insertions() == [doc]

    def test_duplicate_identifier_rejected(self, plain_dm):
        plain_dm.persist(Doc(id="same"))

        with pytest.raises(StorageError, match="already managed"):
            plain_dm.persist(Doc(id="same"))

    def test_insert_writes_all_fields(self, plain_dm, storage):
        user = User(id="u1", name="ana", ssn="1", email="a@b", tags=["x"])
        plain_dm.persist(user)
        plain_dm.flush()

        assert storage.raw("users", "u1") == {
            "_id": "u1", "name": "ana", "ssn": "1", "email": "a@b", "tags": ["x"]
        }


class TestChangeSets:

    def test_unchanged_document_not_scheduled(self, plain_dm):
        doc = Doc(title="t")
        plain_dm.persist(doc)
        plain_dm.flush()

        plain_dm.unit_of_work.compute_change_sets()

        assert plain_dm.unit_of_work.get_scheduled_document_updates() == []

    def test_only_changed_fields_written(self, plain_dm, storage):
        doc = Doc(title="t", secret_data="s")
        plain_dm.persist(doc)
        plain_dm.flush()

        doc.title = "t2"
        plain_dm.flush()

        assert storage.writes[-1] == ("update", "docs", {"title": "t2"})

    def test_change_set_reports_old_and_new(self, plain_dm):
        doc = Doc(title="t")
        plain_dm.persist(doc)
        plain_dm.flush()

        doc.title = "t2"
        uow = plain_dm.unit_of_work
        uow.compute_change_sets()

        assert uow.get_document_change_set(doc) == {"title": ("t", "t2")}

    def test_in_place_mutation_detected(self, plain_dm, storage):
        user = User(id="u1", tags=["a"])
        plain_dm.persist(user)
        plain_dm.flush()

        user.tags.append("b")
        plain_dm.flush()

        assert storage.raw("users", "u1")["tags"] == ["a", "b"]

    def test_baseline_override_hides_change(self, plain_dm):
        doc = Doc(title="t")
        plain_dm.persist(doc)
        plain_dm.flush()

        doc.title = "t2"
        uow = plain_dm.unit_of_work
        uow.set_original_document_property(doc, "title", "t2")
        uow.compute_change_sets()

        assert not uow.is_scheduled_for_update(doc)
        assert uow.get_original_document_data(doc)["title"] == "t2"

    def test_recompute_picks_up_listener_changes(self, plain_dm):
        doc = Doc(title="t")
        plain_dm.persist(doc)
        plain_dm.flush()
        doc.title = "t2"
        uow = plain_dm.unit_of_work
        uow.compute_change_sets()

        doc.secret_data = "changed"
        uow.recompute_single_document_change_set(ClassMetadata.for_class(Doc), doc)

        assert uow.get_document_change_set(doc) == {
            "title": ("t", "t2"),
            "secret_data": ("", "changed"),
        }

    def test_recompute_unmanaged_raises(self, plain_dm):
        with pytest.raises(StorageError, match="unmanaged"):
            plain_dm.unit_of_work.recompute_single_document_change_set(
                ClassMetadata.for_class(Doc), Doc()
            )


class TestCommit:

    def test_events_fire_around_write(self, plain_dm):
        recorder = Recorder()
        plain_dm.event_manager.add_event_subscriber(recorder)

        plain_dm.persist(Doc())
        plain_dm.flush()

        assert recorder.events == [Events.pre_flush, Events.post_flush]

    def test_nothing_to_flush_fires_nothing(self, plain_dm, storage):
        recorder = Recorder()
        plain_dm.event_manager.add_event_subscriber(recorder)

        plain_dm.flush()

        assert recorder.events == []
        assert storage.writes == []

    def test_written_values_become_baseline(self, plain_dm):
        doc = Doc(title="t")
        plain_dm.persist(doc)
        plain_dm.flush()

        assert plain_dm.unit_of_work.get_original_document_data(doc) == {
            "id": doc.id, "title": "t", "secret_data": ""
        }
        assert not plain_dm.unit_of_work.is_scheduled_for_insert(doc)

    def test_clear_discards_pending(self, plain_dm, storage):
        plain_dm.persist(Doc())
        plain_dm.clear()
        plain_dm.flush()

        assert storage.writes == []
