"""Supabase Storage adapter for meal images."""

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Protocol

import httpx
from supabase import Client, StorageException

from meal_share.domain.errors import StorageError

_logger = logging.getLogger(__name__)


class StorageClient(Protocol):
    """Interface for object storage used by the meal repository."""

    def upload_file(self, content: bytes, media_type: str, path: str) -> str:
        """Upload (or overwrite) an object and return its public URL."""

    def delete_file(self, path: str) -> None:
        """Delete an object; a missing object is not an error."""

    def file_exists(self, path: str) -> bool:
        """Return whether an object exists at ``path``."""


@dataclass
class SupabaseStorageClient:
    """Storage client bound to a single Supabase bucket."""

    client: Client
    bucket: str = "meal-images"

    def upload_file(self, content: bytes, media_type: str, path: str) -> str:
        """Upload with upsert semantics and return the public URL."""
        bucket = self.client.storage.from_(self.bucket)
        try:
            bucket.upload(
                path=path,
                file=content,
                file_options={"content-type": media_type, "upsert": "true"},
            )
            public_url = bucket.get_public_url(path)
        except (StorageException, httpx.HTTPError) as exc:
            _logger.exception("Upload of %s to %s failed", path, self.bucket)
            raise StorageError(f"Failed to upload file: {exc}") from exc
        _logger.info("Uploaded %s bytes to %s/%s", len(content), self.bucket, path)
        return public_url

    def delete_file(self, path: str) -> None:
        """Remove an object from the bucket."""
        try:
            self.client.storage.from_(self.bucket).remove([path])
        except (StorageException, httpx.HTTPError) as exc:
            _logger.exception("Delete of %s from %s failed", path, self.bucket)
            raise StorageError(f"Failed to delete file: {exc}") from exc

    def file_exists(self, path: str) -> bool:
        """List the parent prefix and look for the leaf name."""
        location = PurePosixPath(path)
        prefix = "" if str(location.parent) == "." else str(location.parent)
        try:
            entries = self.client.storage.from_(self.bucket).list(
                prefix, {"search": location.name}
            )
        except (StorageException, httpx.HTTPError) as exc:
            _logger.exception("Listing %s in %s failed", prefix, self.bucket)
            raise StorageError(f"Failed to check if file exists: {exc}") from exc
        return any(entry.get("name") == location.name for entry in entries or [])
