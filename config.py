"""Configuration for the post/asset server."""

import os
from typing import Any, Mapping

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Base configuration."""

    # Filesystem layout
    ASSET_ROOT = os.environ.get("ASSET_ROOT", "assets")
    # Empty means <ASSET_ROOT>/posts
    POSTS_ROOT = os.environ.get("POSTS_ROOT", "")
    INDEX_DOCUMENT = os.environ.get("INDEX_DOCUMENT", "index.html")

    # Server
    HOST = os.environ.get("HOST", "0.0.0.0")
    # Hosting platforms assign the port through $PORT
    PORT = int(os.environ.get("PORT", "8080"))

    # Serve "<root>/<raw path>" without confining it to the root
    UNSAFE_PATH_CONCAT = _env_flag("UNSAFE_PATH_CONCAT")

    # Logging
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")
    LOG_PATH = os.environ.get("LOG_PATH", "app.log")

    @classmethod
    def validate(cls, settings: Mapping[str, Any] | None = None) -> None:
        """Validate required configuration.

        Checks ``settings`` (e.g. a Flask config with overrides applied) when
        given, otherwise the class attributes.
        """
        port = settings["PORT"] if settings is not None else cls.PORT
        index_document = settings["INDEX_DOCUMENT"] if settings is not None else cls.INDEX_DOCUMENT
        if not 0 < port < 65536:
            raise ValueError(f"PORT must be between 1 and 65535: {port}")
        if not index_document.strip():
            raise ValueError("INDEX_DOCUMENT must not be empty")


class DevelopmentConfig(Config):
    """Development configuration."""


class ProductionConfig(Config):
    """Production configuration."""

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestingConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    LOG_PATH = ""


# Select configuration based on environment
config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
