# ==============================================
# odm-encrypt: Transparent field-level encryption
# ==============================================
#
# Package Structure:
#
# odm_encrypt/
# ├── metadata/      # Which fields are encrypted (marker + per-class cache)
# ├── encryptors/    # Pluggable encrypt/decrypt primitive (Fernet default)
# ├── subscribers/   # Lifecycle interception (encrypt on flush, decrypt on load)
# ├── odm/           # Object-document mapper: mapping, events, unit of work
# ├── storage/       # MongoDB client
# ├── config.py      # Configuration management
# ├── exceptions.py  # Error hierarchy
# └── bootstrap.py   # Wires everything into a DocumentManager
#
# ==============================================

__version__ = "0.1.0"
