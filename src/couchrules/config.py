"""Connection settings for the CouchDB store: JSON file with env var overrides."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://localhost:5984"
DEFAULT_DATABASE = "rules_db"
DEFAULT_USERNAME = "admin"
DEFAULT_PASSWORD = "password"
DEFAULT_TIMEOUT = 10.0
DEFAULT_AUTHOR = "CouchDB Rules Engine"
CONFIG_FILENAME = ".couchrules.json"


@dataclass
class CouchConfig:
    url: str = DEFAULT_URL
    database: str = DEFAULT_DATABASE
    username: str = DEFAULT_USERNAME
    password: str = DEFAULT_PASSWORD
    timeout: float = DEFAULT_TIMEOUT
    default_author: str = DEFAULT_AUTHOR

    @property
    def database_url(self) -> str:
        return f"{self.url.rstrip('/')}/{self.database}"


def load_config(path: Path | None = None) -> CouchConfig:
    """Load store config from the "couchdb" section of a JSON file, then env vars."""
    config = CouchConfig()

    if path and path.exists():
        try:
            text = path.read_text()
            if text.strip():
                data = json.loads(text)
                section = data.get("couchdb", {})
                if isinstance(section, dict):
                    _apply(config, section)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable config {path}: {e}")

    # Env var overrides
    if url := os.environ.get("COUCHDB_URL"):
        config.url = url
    if db := os.environ.get("COUCHDB_DB") or os.environ.get("DB_NAME"):
        config.database = db
    if user := os.environ.get("COUCHDB_USER"):
        config.username = user
    if password := os.environ.get("COUCHDB_PASSWORD"):
        config.password = password
    if timeout := os.environ.get("COUCHDB_TIMEOUT"):
        try:
            config.timeout = float(timeout)
        except ValueError:
            logger.warning(f"Ignoring non-numeric COUCHDB_TIMEOUT={timeout!r}")
    if author := os.environ.get("COUCHRULES_AUTHOR"):
        config.default_author = author

    return config


def _apply(cfg: CouchConfig, data: dict[str, object]) -> None:
    for key in ("url", "database", "username", "password", "default_author"):
        value = data.get(key)
        if isinstance(value, str) and value:
            setattr(cfg, key, value)
    timeout = data.get("timeout")
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool):
        cfg.timeout = float(timeout)
