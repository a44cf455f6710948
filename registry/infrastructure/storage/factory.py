"""Pick the storage backend for the current deployment."""

from functools import lru_cache

import structlog

from registry.config import Settings, get_settings
from registry.domain.repositories.file_storage import FileStorage
from registry.infrastructure.storage.cloudinary import CloudinaryStorage
from registry.infrastructure.storage.local import LocalFileStorage
from registry.infrastructure.storage.memory import MemoryFileStorage

logger = structlog.get_logger(__name__)

STORAGE_TYPES = ("auto", "local", "memory", "cloudinary")


def _default_backend(settings: Settings) -> FileStorage:
    if settings.is_cloud_deployment:
        return MemoryFileStorage()
    return LocalFileStorage(settings.UPLOAD_DIR)


def create_file_storage(settings: Settings) -> FileStorage:
    storage_type = settings.STORAGE_TYPE.lower()
    if storage_type not in STORAGE_TYPES:
        raise ValueError(f"STORAGE_TYPE must be one of {', '.join(STORAGE_TYPES)}, got {settings.STORAGE_TYPE!r}")

    if storage_type == "local":
        return LocalFileStorage(settings.UPLOAD_DIR)
    if storage_type == "memory":
        return MemoryFileStorage()

    use_cloudinary = storage_type == "cloudinary" or (
        settings.cloudinary_configured and settings.is_cloud_deployment
    )
    if use_cloudinary:
        if not settings.cloudinary_configured:
            raise ValueError("STORAGE_TYPE=cloudinary requires CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET")
        return CloudinaryStorage(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            folder=settings.CLOUDINARY_FOLDER,
            fallback=_default_backend(settings),
        )

    return _default_backend(settings)


@lru_cache
def get_file_storage() -> FileStorage:
    """Process-wide storage backend."""
    settings = get_settings()
    storage = create_file_storage(settings)
    logger.info(
        "Storage initialized",
        storage_type=storage.storage_type,
        cloud_deployment=settings.is_cloud_deployment,
        platform=settings.platform,
        environment=settings.environment,
    )
    return storage
