# ==============================================
# ODM (Object-document mapper host)
# ==============================================
#
# This package is the persistence engine the encryption
# subscriber plugs into: it maps dataclasses to MongoDB
# collections, tracks changes, and fires lifecycle events.
#
# Modules:
# --------
# - mapping.py           → @document decorator + ClassMetadata
# - events.py            → Events, event args, EventManager
# - unit_of_work.py      → Change sets, baselines, commit
# - document_manager.py  → persist / flush / find
#
# ==============================================

from .mapping import ClassMetadata, document
from .events import (
    EventManager,
    Events,
    LifecycleEventArgs,
    PostFlushEventArgs,
    PreFlushEventArgs,
)
from .unit_of_work import UnitOfWork
from .document_manager import DocumentManager

__all__ = [
    "ClassMetadata",
    "document",
    "EventManager",
    "Events",
    "LifecycleEventArgs",
    "PostFlushEventArgs",
    "PreFlushEventArgs",
    "UnitOfWork",
    "DocumentManager",
]
