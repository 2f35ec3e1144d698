"""
Byte storage backends for uploaded pricing workbooks.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

from db.repositories.errors import FileStorageError, StoredObjectNotFoundError


class FileStorageBackend(Protocol):
    """
    Minimal object-store contract consumed by the file lifecycle and ingestion.
    """

    def put(self, content: bytes, key: str, content_type: str | None = None) -> None:
        ...

    def get(self, key: str) -> bytes:
        ...

    def delete(self, key: str) -> None:
        ...


def _safe_relative_key(key: str) -> Path:
    relative = Path(key.strip().lstrip("/"))
    if not key.strip() or ".." in relative.parts:
        raise FileStorageError(f"Invalid storage key: {key!r}")
    return relative


class LocalFileStorage:
    """
    Local filesystem storage backend.

    Keys map to paths below ``root_dir``; writes go through a temp file and an
    atomic rename.
    """

    def __init__(self, root_dir: str | Path = "data/uploads") -> None:
        self._root_dir = Path(root_dir)

    def put(self, content: bytes, key: str, content_type: str | None = None) -> None:
        absolute_path = self._root_dir / _safe_relative_key(key)
        absolute_path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = absolute_path.with_suffix(f"{absolute_path.suffix}.tmp")
        try:
            with tmp_path.open("wb") as handle:
                handle.write(content)
            tmp_path.replace(absolute_path)
        except OSError as exc:
            raise FileStorageError("Failed to write uploaded file to storage.") from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass

    def get(self, key: str) -> bytes:
        target = self._root_dir / _safe_relative_key(key)
        if not target.exists():
            raise StoredObjectNotFoundError(f"Stored file not found: {key}")
        try:
            return target.read_bytes()
        except OSError as exc:
            raise FileStorageError("Failed to read uploaded file from storage.") from exc

    def delete(self, key: str) -> None:
        target = self._root_dir / _safe_relative_key(key)
        if not target.exists():
            return
        try:
            target.unlink()
        except OSError as exc:
            raise FileStorageError("Failed to delete uploaded file from storage.") from exc


class S3FileStorage:
    """
    Amazon S3 storage backend.
    """

    def __init__(
        self,
        *,
        bucket: str,
        region: str | None = None,
        profile: str | None = None,
        client: Any | None = None,
    ) -> None:
        if not bucket:
            raise FileStorageError("S3 bucket name is required for S3 storage.")
        self._bucket = bucket
        self._client = client or _create_s3_client(region=region, profile=profile)

    def put(self, content: bytes, key: str, content_type: str | None = None) -> None:
        extra: dict[str, str] = {}
        if content_type:
            extra["ContentType"] = content_type
        try:
            self._client.put_object(Bucket=self._bucket, Key=key, Body=content, **extra)
        except Exception as exc:
            raise FileStorageError(
                f"Failed to upload s3://{self._bucket}/{key}: {exc}"
            ) from exc

    def get(self, key: str) -> bytes:
        from botocore.exceptions import ClientError

        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
            return response["Body"].read()
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code in {"NoSuchKey", "404"}:
                raise StoredObjectNotFoundError(f"Stored file not found: s3://{self._bucket}/{key}") from exc
            raise FileStorageError(f"Failed to download s3://{self._bucket}/{key}: {exc}") from exc
        except Exception as exc:
            raise FileStorageError(f"Failed to download s3://{self._bucket}/{key}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=key)
        except Exception as exc:
            raise FileStorageError(f"Failed to delete s3://{self._bucket}/{key}: {exc}") from exc


def _create_s3_client(*, region: str | None, profile: str | None) -> Any:
    import boto3

    session_kwargs: dict[str, str] = {}
    if profile:
        session_kwargs["profile_name"] = profile
    if region:
        session_kwargs["region_name"] = region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")
