"""
Image storage for S3-compatible buckets, a local uploads directory, and
in-memory testing.

Objects are written insert-only: a name that already exists is an error, never
an overwrite.
"""

from __future__ import annotations

import logging
import os
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from gpevim.errors import StorageError
from gpevim.images import OUTPUT_CONTENT_TYPE, OUTPUT_EXTENSION

logger = logging.getLogger(__name__)

PATH_PREFIX = "public"


@dataclass(frozen=True)
class StoredImage:
    path: str
    url: str

    @property
    def filename(self) -> str:
        return self.path.rsplit("/", 1)[-1]


def build_object_path(filename_hint: str | None, timestamp_ms: int | None = None) -> str:
    """
    Returns `public/<ms timestamp>_<sanitized stem>.webp`.

    The original extension is dropped and every character outside [a-zA-Z0-9]
    becomes "_".
    """
    stem = Path(filename_hint or "").stem or "image"
    clean_stem = re.sub(r"[^a-zA-Z0-9]", "_", stem)
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{PATH_PREFIX}/{timestamp_ms}_{clean_stem}{OUTPUT_EXTENSION}"


class ImageStore(Protocol):
    """Defines the operations the API needs from image storage."""

    def put_image(self, bucket: str, data: bytes, filename_hint: str) -> StoredImage:
        ...


@dataclass
class InMemoryImageStore:
    """Test double for image storage."""

    base_url: str = "https://example.test/storage"
    stored_objects: dict = field(default_factory=dict)

    def put_image(self, bucket: str, data: bytes, filename_hint: str) -> StoredImage:
        path = build_object_path(filename_hint)
        key = (bucket, path)
        if key in self.stored_objects:
            raise StorageError(detail=f"Object already exists: {bucket}/{path}")
        self.stored_objects[key] = data
        return StoredImage(path=path, url=f"{self.base_url}/{bucket}/{path}")


@dataclass
class LocalDirImageStore:
    """
    Writes images under a local directory that the app serves at `url_prefix`.
    Used when no object storage is configured.
    """

    root_dir: str
    url_prefix: str = "/uploads"

    def put_image(self, bucket: str, data: bytes, filename_hint: str) -> StoredImage:
        path = build_object_path(filename_hint)
        destination = os.path.join(self.root_dir, bucket, *path.split("/"))
        try:
            os.makedirs(os.path.dirname(destination), exist_ok=True)
            with open(destination, "xb") as f:
                f.write(data)
        except FileExistsError as exc:
            raise StorageError(detail=f"Object already exists: {destination}") from exc
        except OSError as exc:
            raise StorageError(detail=f"Could not write {destination}: {exc}") from exc
        logger.info("Stored image at %s", destination)
        return StoredImage(path=path, url=f"{self.url_prefix}/{bucket}/{path}")


@dataclass
class S3ImageStore:
    """
    S3-compatible image storage (hosted buckets such as Supabase Storage, COS, AWS).

    Public URLs are `<public_base_url>/<bucket>/<path>`; without a public base
    URL the endpoint is used with path-style addressing.
    """

    endpoint: str
    region: str
    access_key_id: str
    secret_access_key: str
    public_base_url: str | None = None

    def __post_init__(self):
        if not self.public_base_url:
            logger.warning(
                "STORAGE_PUBLIC_BASE_URL is not set; image URLs will point at the "
                "S3 API endpoint %s, which hosted storage usually does not serve publicly",
                self.endpoint,
            )
        config = Config(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    def public_url(self, bucket: str, path: str) -> str:
        base = (self.public_base_url or self.endpoint or "").rstrip("/")
        if not base:
            raise StorageError(detail="No public URL base configured for image storage")
        return f"{base}/{bucket}/{path}"

    def put_image(self, bucket: str, data: bytes, filename_hint: str) -> StoredImage:
        path = build_object_path(filename_hint)
        try:
            self._client.put_object(
                Bucket=bucket,
                Key=path,
                Body=data,
                ContentType=OUTPUT_CONTENT_TYPE,
                IfNoneMatch="*",
            )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code in ("PreconditionFailed", "ConditionalRequestConflict"):
                raise StorageError(detail=f"Object already exists: {bucket}/{path}") from exc
            raise StorageError(detail=f"Upload to {bucket}/{path} failed: {code}") from exc
        except BotoCoreError as exc:
            raise StorageError(detail=f"Upload to {bucket}/{path} failed: {exc}") from exc
        logger.info("Uploaded image to %s/%s", bucket, path)
        return StoredImage(path=path, url=self.public_url(bucket, path))
