"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
import threading

from gpevim.config import get_settings
from gpevim.db import InMemoryRecordStore, RecordStore, SqlRecordStore
from gpevim.fallback import FallbackRecordStore
from gpevim.storage import (
    ImageStore,
    InMemoryImageStore,
    LocalDirImageStore,
    S3ImageStore,
)

logger = logging.getLogger(__name__)

_record_store: RecordStore | None = None
_image_store: ImageStore | None = None
# Sync dependencies run in the threadpool; first requests can race.
_lock = threading.Lock()


def get_record_store() -> RecordStore:
    """
    Return a singleton record store so in-memory records persist across requests.
    """
    global _record_store
    if _record_store is not None:
        return _record_store

    with _lock:
        if _record_store is not None:
            return _record_store
        settings = get_settings()
        if settings.use_in_memory_backends or not settings.database_url:
            logger.info("Using in-memory record store")
            _record_store = InMemoryRecordStore()
        else:
            durable = SqlRecordStore(settings.database_url, production=settings.production)
            if settings.enable_local_fallback:
                _record_store = FallbackRecordStore(durable, InMemoryRecordStore())
            else:
                _record_store = durable
    return _record_store


def get_image_store() -> ImageStore:
    global _image_store
    if _image_store is not None:
        return _image_store

    with _lock:
        if _image_store is not None:
            return _image_store
        settings = get_settings()
        if settings.use_in_memory_backends:
            _image_store = InMemoryImageStore()
        elif settings.object_storage_configured:
            _image_store = S3ImageStore(
                endpoint=settings.storage_endpoint,
                region=settings.storage_region or "",
                access_key_id=settings.aws_access_key_id,
                secret_access_key=settings.aws_secret_access_key,
                public_base_url=settings.storage_public_base_url,
            )
        else:
            _image_store = LocalDirImageStore(root_dir=settings.uploads_dir)
    return _image_store


def reset_dependencies() -> None:
    """Drop the cached singletons (useful in tests)."""
    global _record_store, _image_store
    with _lock:
        _record_store = None
        _image_store = None
