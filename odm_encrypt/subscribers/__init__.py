# ==============================================
# SUBSCRIBERS (Lifecycle interception)
# ==============================================
#
# This package hooks into the mapper's flush / load events to
# keep encrypted fields encrypted in storage and plaintext in memory.
#
# Modules:
# --------
# - decode_tracker.py       → Which instances already hold plaintext
# - encrypt_subscriber.py   → pre_flush / post_flush / post_load
#
# ==============================================

from .decode_tracker import DecodeTracker
from .encrypt_subscriber import EncryptSubscriber, PendingRestoreEntry

__all__ = [
    "DecodeTracker",
    "EncryptSubscriber",
    "PendingRestoreEntry",
]
