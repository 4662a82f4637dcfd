# ==============================================
# STORAGE (MongoDB)
# ==============================================
#
# This package talks to the backing store. It never sees
# plaintext for encrypted fields.
#
# Modules:
# --------
# - mongo_client.py    → MongoDB connection and document operations
#
# ==============================================

from .mongo_client import MongoClient

__all__ = [
    "MongoClient",
]
