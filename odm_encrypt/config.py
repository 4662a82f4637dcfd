# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load and validate all configuration from environment
#   variables / .env file. Provides typed config objects
#   to all other modules.
#
# CLASSES:
# --------
# - MongoConfig (dataclass)
#     host: str          (default "localhost")
#     port: int          (default 27017)
#     user: str | None   (default None)
#     password: str | None (default None)
#     database: str      (default "odm_encrypt")
#
# - EncryptionConfig (dataclass)
#     key: str | None    (default None) → urlsafe base64 Fernet key
#
# - AppConfig (dataclass)
#     mongo: MongoConfig
#     encryption: EncryptionConfig
#     log_level: str     (default "INFO")
#
# FUNCTIONS:
# ----------
# - get_config() -> AppConfig
#     Load .env using python-dotenv, construct AppConfig.
#     Returns the same singleton on repeated calls.
#
# - reset_config() -> None
#     Forget the singleton (used by tests).
#
# USAGE:
# ------
#   from odm_encrypt.config import get_config
#   config = get_config()
#   print(config.mongo.host)
#   key = config.encryption.require_key()
#
# ==============================================

import os
from dataclasses import dataclass
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv

from odm_encrypt.exceptions import ConfigurationError


@dataclass
class MongoConfig:
    """MongoDB database configuration."""
    host: str = "localhost"
    port: int = 27017
    user: Optional[str] = None
    password: Optional[str] = None
    database: str = "odm_encrypt"


@dataclass
class EncryptionConfig:
    """Key material for the default encryptor."""
    key: Optional[str] = None

    def require_key(self) -> str:
        """
        Return the configured key.

        Raises:
            ConfigurationError: If ENCRYPTION_KEY is not set
        """
        if not self.key:
            raise ConfigurationError(
                "ENCRYPTION_KEY is not set; generate one with "
                "FernetEncryptor.generate_key()"
            )
        return self.key


@dataclass
class AppConfig:
    """Main application configuration."""
    mongo: MongoConfig
    encryption: EncryptionConfig
    log_level: str = "INFO"


# Singleton instance
_config_instance: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Load configuration from environment variables / .env file.
    Returns the same singleton instance on repeated calls.

    Returns:
        AppConfig: Application configuration

    Raises:
        ConfigurationError: If MONGO_PORT is not an integer
    """
    global _config_instance

    if _config_instance is not None:
        return _config_instance

    # Load .env file from project root
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    try:
        port = int(os.getenv("MONGO_PORT", "27017"))
    except ValueError as e:
        raise ConfigurationError(f"MONGO_PORT must be an integer: {e}") from e

    # Build MongoDB configuration
    mongo_config = MongoConfig(
        host=os.getenv("MONGO_HOST", "localhost"),
        port=port,
        user=os.getenv("MONGO_USER") or None,
        password=os.getenv("MONGO_PASSWORD") or None,
        database=os.getenv("MONGO_DATABASE", "odm_encrypt")
    )

    encryption_config = EncryptionConfig(
        key=os.getenv("ENCRYPTION_KEY") or None
    )

    # Build main application configuration
    _config_instance = AppConfig(
        mongo=mongo_config,
        encryption=encryption_config,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper()
    )

    return _config_instance


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() reloads it."""
    global _config_instance
    _config_instance = None
