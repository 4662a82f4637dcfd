# ==============================================
# ENCRYPTORS (Pluggable crypto primitive)
# ==============================================
#
# Modules:
# --------
# - base.py     → Encryptor interface
# - fernet.py   → FernetEncryptor (default, uses cryptography)
#
# ==============================================

from .base import Encryptor
from .fernet import FernetEncryptor

__all__ = [
    "Encryptor",
    "FernetEncryptor",
]
