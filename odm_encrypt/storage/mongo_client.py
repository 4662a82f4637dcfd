# ==============================================
# MongoClient
# ==============================================
#
# PURPOSE:
#   Manages the MongoDB connection and the handful of document
#   operations the UnitOfWork needs. Stores whatever dict it is
#   given: encrypted fields arrive here already as ciphertext.
#
# CLASS: MongoClient
# ------------------
#   Stateful — holds connection to MongoDB.
#
#   Constructor:
#   ------------
#   - __init__(host, port, database, user=None, password=None)
#       Store connection params. Don't connect yet.
#
#   Methods:
#   --------
#   - connect() -> None
#   - disconnect() -> None
#   - insert_one(collection_name, document: dict) -> inserted_id
#   - update_one(collection_name, document_id, fields: dict) -> int
#       $set the given fields on the document with _id == document_id.
#       Return modified count.
#   - find(collection_name, query: dict) -> list[dict]
#   - find_one(collection_name, query: dict) -> dict | None
#
#   Context Manager:
#   ----------------
#   - __enter__ / __exit__ for `with MongoClient(...) as db:` usage.
#
# ==============================================

import logging

from pymongo import MongoClient as PyMongoClient
from pymongo.errors import ConnectionFailure, OperationFailure, PyMongoError

from odm_encrypt.exceptions import StorageError

logger = logging.getLogger(__name__)


class MongoClient:
    def __init__(self, host, port, database, user=None, password=None):
        # Store connection params. Don't connect yet.
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.client = None  # Will hold the actual MongoDB client connection

    @classmethod
    def from_config(cls, mongo_config):
        return cls(
            host=mongo_config.host,
            port=mongo_config.port,
            database=mongo_config.database,
            user=mongo_config.user,
            password=mongo_config.password
        )

    def connect(self):
        # Establish connection to MongoDB.
        try:
            if self.user and self.password:
                uri = f"mongodb://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"
            else:
                uri = f"mongodb://{self.host}:{self.port}/{self.database}"
            self.client = PyMongoClient(uri)
            # Test connection
            self.client.admin.command('ping')
            logger.info("Connected to MongoDB at %s:%s", self.host, self.port)
        except ConnectionFailure as e:
            logger.error("Could not connect to MongoDB: %s", e)
            raise StorageError(f"Could not connect to MongoDB: {e}") from e
        except OperationFailure as e:
            logger.error("Authentication failed: %s", e)
            raise StorageError(f"MongoDB authentication failed: {e}") from e

    def disconnect(self):
        # Close connection.
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB.")
            self.client = None

    def _collection(self, collection_name):
        if not self.client:
            raise StorageError("Not connected to MongoDB.")
        return self.client[self.database][collection_name]

    def insert_one(self, collection_name, document):
        # Insert single document. Return inserted_id.
        collection = self._collection(collection_name)
        try:
            result = collection.insert_one(dict(document))
        except PyMongoError as e:
            raise StorageError(f"Insert into '{collection_name}' failed: {e}") from e
        logger.debug("Inserted document %s into '%s'", result.inserted_id, collection_name)
        return result.inserted_id

    def update_one(self, collection_name, document_id, fields):
        # $set changed fields on one document. Return modified count.
        collection = self._collection(collection_name)
        try:
            result = collection.update_one({"_id": document_id}, {"$set": fields})
        except PyMongoError as e:
            raise StorageError(f"Update of {document_id!r} in '{collection_name}' failed: {e}") from e
        logger.debug("Updated document %s in '%s'", document_id, collection_name)
        return result.modified_count

    def find(self, collection_name, query):
        # Query documents matching filter.
        collection = self._collection(collection_name)
        return list(collection.find(query))

    def find_one(self, collection_name, query):
        collection = self._collection(collection_name)
        return collection.find_one(query)

    def __enter__(self):
        # For `with MongoClient(...) as db:` usage.
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
