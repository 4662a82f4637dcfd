# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# Shared fixtures for all tests.
#
# FIXTURES:
# ---------
# - storage        → InMemoryStorage, same interface as storage.MongoClient
# - encryptor      → MarkerEncryptor, encrypt("x") == "E(x)"
# - reader         → AnnotationReader
# - subscriber     → EncryptSubscriber using encryptor + reader
# - dm             → DocumentManager over storage with subscriber registered
#
# ==============================================

import copy

import pytest

from odm_encrypt.encryptors import Encryptor
from odm_encrypt.exceptions import DecryptionError, StorageError
from odm_encrypt.metadata import AnnotationReader
from odm_encrypt.odm import DocumentManager
from odm_encrypt.subscribers import EncryptSubscriber


class InMemoryStorage:
    """Dict-backed stand-in for storage.MongoClient."""

    def __init__(self):
        self.collections = {}
        self.writes = []

    def insert_one(self, collection_name, document):
        documents = self.collections.setdefault(collection_name, {})
        if document["_id"] in documents:
            raise StorageError(f"Duplicate _id {document['_id']!r}")
        documents[document["_id"]] = copy.deepcopy(document)
        self.writes.append(("insert", collection_name, copy.deepcopy(document)))
        return document["_id"]

    def update_one(self, collection_name, document_id, fields):
        documents = self.collections.setdefault(collection_name, {})
        if document_id not in documents:
            return 0
        documents[document_id].update(copy.deepcopy(fields))
        self.writes.append(("update", collection_name, copy.deepcopy(fields)))
        return 1

    def find(self, collection_name, query):
        documents = self.collections.get(collection_name, {})
        return [
            copy.deepcopy(doc) for doc in documents.values()
            if all(doc.get(key) == value for key, value in query.items())
        ]

    def find_one(self, collection_name, query):
        results = self.find(collection_name, query)
        return results[0] if results else None

    def raw(self, collection_name, document_id):
        return self.collections[collection_name][document_id]


class MarkerEncryptor(Encryptor):
    """Readable fake: encrypt("hello") == "E(hello)". Records every call."""

    def __init__(self):
        self.encrypt_calls = []
        self.decrypt_calls = []

    def encrypt(self, data):
        self.encrypt_calls.append(data)
        return data if data == "" else f"E({data})"

    def decrypt(self, data):
        self.decrypt_calls.append(data)
        if data == "":
            return data
        if not (data.startswith("E(") and data.endswith(")")):
            raise DecryptionError(f"Not a marker ciphertext: {data!r}")
        return data[2:-1]


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def encryptor():
    return MarkerEncryptor()


@pytest.fixture
def reader():
    return AnnotationReader()


@pytest.fixture
def subscriber(reader, encryptor):
    return EncryptSubscriber(reader, encryptor)


@pytest.fixture
def dm(storage, subscriber):
    manager = DocumentManager(storage)
    manager.event_manager.add_event_subscriber(subscriber)
    return manager
