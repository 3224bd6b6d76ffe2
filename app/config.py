"""Application configuration helpers and defaults."""
from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv


load_dotenv()

_logger = logging.getLogger(__name__)


def _int_from_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {name} must be an integer") from exc


def _bool_from_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _secret_key_from_env() -> str:
    key = os.getenv("SECRET_KEY")
    if key:
        return key
    _logger.warning("SECRET_KEY is not set; using a generated development key")
    return secrets.token_hex(32)


@dataclass
class AppConfig:
    """Collection of configuration defaults applied to the Flask app."""

    secret_key: str = field(default_factory=_secret_key_from_env)
    log_dir: Optional[str] = field(default_factory=lambda: os.getenv("LOG_DIR") or None)
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_to_file: bool = field(default_factory=lambda: _bool_from_env("LOG_TO_FILE", True))
    flatten_chunk_size: int = field(default_factory=lambda: _int_from_env("FLATTEN_CHUNK_SIZE", 50))
    json_unwrap_max_depth: int = field(default_factory=lambda: _int_from_env("JSON_UNWRAP_MAX_DEPTH", 3))
    seed_master_data: bool = field(default_factory=lambda: _bool_from_env("MASTER_DATA_SEED", False))

    def init_app(self, app) -> None:
        if self.flatten_chunk_size < 1:
            raise RuntimeError("FLATTEN_CHUNK_SIZE must be at least 1")
        if self.json_unwrap_max_depth < 1:
            raise RuntimeError("JSON_UNWRAP_MAX_DEPTH must be at least 1")

        app.secret_key = self.secret_key
        app.config.setdefault("LOG_DIR", self.log_dir)
        app.config.setdefault("LOG_LEVEL", self.log_level)
        app.config.setdefault("LOG_TO_FILE", self.log_to_file)
        app.config.setdefault("FLATTEN_CHUNK_SIZE", self.flatten_chunk_size)
        app.config.setdefault("JSON_UNWRAP_MAX_DEPTH", self.json_unwrap_max_depth)
        app.config.setdefault("MASTER_DATA_SEED", self.seed_master_data)
        app.json.sort_keys = False


__all__ = ["AppConfig"]
