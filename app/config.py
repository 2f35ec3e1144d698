"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

_ALLOWED_STORAGE_BACKENDS = {"local", "s3"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class StorageSettings:
    """
    Where uploaded workbook bytes live.
    """

    backend: str = "local"
    local_root: str = "data/uploads"
    s3_bucket: str | None = None
    aws_region: str | None = None
    aws_profile: str | None = None
    key_prefix: str = "uploads"


@dataclass(frozen=True)
class FileIngestionSettings:
    """
    Runtime settings for pricing workbook uploads and processing.
    """

    max_upload_bytes: int = 10 * 1024 * 1024
    refresh_catalog_on_trigger: bool = False
    log_row_events: bool = False


@lru_cache(maxsize=1)
def get_storage_settings() -> StorageSettings:
    """
    Return cached storage settings from environment variables.

    Raises RuntimeError for an unknown backend, or for ``s3`` without a bucket.
    """

    backend = _get_str_env("STORAGE_BACKEND", "local").lower()
    if backend not in _ALLOWED_STORAGE_BACKENDS:
        raise RuntimeError(
            f"STORAGE_BACKEND '{backend}' is not valid. "
            f"Allowed values: {sorted(_ALLOWED_STORAGE_BACKENDS)}."
        )

    settings = StorageSettings(
        backend=backend,
        local_root=_get_str_env("LOCAL_STORAGE_ROOT", "data/uploads"),
        s3_bucket=_get_optional_str_env("S3_BUCKET_NAME"),
        aws_region=_get_optional_str_env("AWS_REGION"),
        aws_profile=_get_optional_str_env("AWS_PROFILE"),
        key_prefix=_get_str_env("UPLOAD_KEY_PREFIX", "uploads").strip("/") or "uploads",
    )
    if settings.backend == "s3" and not settings.s3_bucket:
        raise RuntimeError("S3_BUCKET_NAME is required when STORAGE_BACKEND is 's3'.")
    return settings


@lru_cache(maxsize=1)
def get_file_ingestion_settings() -> FileIngestionSettings:
    """
    Return cached pricing file ingestion settings from environment variables.
    """

    return FileIngestionSettings(
        max_upload_bytes=max(1, _get_int_env("MAX_UPLOAD_BYTES", 10 * 1024 * 1024)),
        refresh_catalog_on_trigger=_get_bool_env("INGEST_REFRESH_CATALOG_ON_TRIGGER", False),
        log_row_events=_get_bool_env("INGEST_LOG_ROW_EVENTS", False),
    )
