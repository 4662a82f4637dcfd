# ==============================================
# Bootstrap (wiring)
# ==============================================
#
# PURPOSE:
#   Build a ready-to-use DocumentManager from configuration:
#   MongoDB storage + EncryptSubscriber registered for
#   pre_flush / post_flush / post_load.
#
# FUNCTIONS:
# ----------
# - configure_logging(level="INFO") -> None
# - create_encryptor(config=None) -> FernetEncryptor
# - create_document_manager(config=None, storage=None, encryptor=None)
#       -> DocumentManager
#     storage defaults to a connected MongoClient built from config.
#
# USAGE:
# ------
#   from odm_encrypt.bootstrap import create_document_manager
#   dm = create_document_manager()
#   dm.persist(user)
#   dm.flush()
#
# ==============================================

import logging
from typing import Optional

from odm_encrypt.config import AppConfig, get_config
from odm_encrypt.encryptors import Encryptor, FernetEncryptor
from odm_encrypt.metadata import AnnotationReader
from odm_encrypt.odm import DocumentManager
from odm_encrypt.storage import MongoClient
from odm_encrypt.subscribers import EncryptSubscriber

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the package logger (once)."""
    package_logger = logging.getLogger("odm_encrypt")
    package_logger.setLevel(level)

    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)


def create_encryptor(config: Optional[AppConfig] = None) -> FernetEncryptor:
    """
    Raises:
        ConfigurationError: If no key is configured or the key is invalid
    """
    config = config or get_config()
    return FernetEncryptor(config.encryption.require_key())


def create_document_manager(
    config: Optional[AppConfig] = None,
    storage=None,
    encryptor: Optional[Encryptor] = None
) -> DocumentManager:
    config = config or get_config()
    configure_logging(config.log_level)

    if encryptor is None:
        encryptor = create_encryptor(config)

    if storage is None:
        storage = MongoClient.from_config(config.mongo)
        storage.connect()

    dm = DocumentManager(storage)
    dm.event_manager.add_event_subscriber(
        EncryptSubscriber(AnnotationReader(), encryptor)
    )

    logger.info("DocumentManager ready with %s", type(encryptor).__name__)
    return dm
