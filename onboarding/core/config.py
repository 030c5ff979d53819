"""Application configuration helpers.

Environment variables are the only way to provide store credentials. The
Appwrite API key is a server key and must never be shipped to a browser, so it
is read here and nowhere else.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

BACKENDS = ("appwrite", "postgres")
_ENV_NAMES = {"appwrite_database_id": "APPWRITE_DB_ID"}


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


@dataclass(frozen=True)
class Settings:
    document_store_backend: str = "appwrite"
    appwrite_endpoint: str = ""
    appwrite_project_id: str = ""
    appwrite_api_key: str = ""
    appwrite_database_id: str = ""
    database_url: str = ""
    port: int = 4000
    list_limit: int = 200
    store_timeout_seconds: float = 10.0

    def require(self, *names: str) -> None:
        """Raise ConfigError for the first of ``names`` that is empty."""
        for name in names:
            if not getattr(self, name):
                env_name = _ENV_NAMES.get(name, name.upper())
                raise ConfigError(f"{env_name} must be set in the environment for the {self.document_store_backend} store.")


def _env(name: str, default: str = "") -> str:
    # The admin UI shares this .env and reads VITE_-prefixed names.
    value = os.getenv(name) or os.getenv(f"VITE_{name}") or default
    return value.strip()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    backend = _env("DOCUMENT_STORE_BACKEND", "appwrite").lower()
    if backend not in BACKENDS:
        raise ConfigError(f"DOCUMENT_STORE_BACKEND must be one of {', '.join(BACKENDS)}, got {backend!r}")

    appwrite_endpoint = _env("APPWRITE_ENDPOINT").rstrip("/")
    appwrite_project_id = _env("APPWRITE_PROJECT_ID")
    appwrite_api_key = _env("APPWRITE_API_KEY")
    appwrite_database_id = _env("APPWRITE_DB_ID")
    database_url = _env("DATABASE_URL")
    port = int(os.getenv("PORT", "4000"))
    list_limit = int(os.getenv("LIST_LIMIT", "200"))
    store_timeout_seconds = float(os.getenv("STORE_TIMEOUT_SECONDS", "10"))

    if backend == "appwrite" and not (appwrite_endpoint and appwrite_project_id and appwrite_database_id):
        logger.warning(
            "APPWRITE_ENDPOINT, APPWRITE_PROJECT_ID and APPWRITE_DB_ID are not all set; store calls will fail."
        )
    if backend == "appwrite" and not appwrite_api_key:
        logger.warning("APPWRITE_API_KEY is not configured; Appwrite will reject server-side writes.")
    if backend == "postgres" and not database_url:
        logger.warning("DATABASE_URL is not set; database operations will fail.")

    return Settings(
        document_store_backend=backend,
        appwrite_endpoint=appwrite_endpoint,
        appwrite_project_id=appwrite_project_id,
        appwrite_api_key=appwrite_api_key,
        appwrite_database_id=appwrite_database_id,
        database_url=database_url,
        port=port,
        list_limit=list_limit,
        store_timeout_seconds=store_timeout_seconds,
    )
