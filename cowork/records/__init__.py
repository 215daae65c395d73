"""Record store access: configuration, HTTP client, errors."""

from .client import RecordStoreClient, RecordStoreProtocol
from .config import CacheConfig, RecordStoreConfig, load_cache_config, load_record_store_config
from .errors import CoworkError, CreationError, NotFoundError, RemoteError, ResolutionError, ValidationError

__all__ = [
    "RecordStoreClient",
    "RecordStoreProtocol",
    "RecordStoreConfig",
    "CacheConfig",
    "load_record_store_config",
    "load_cache_config",
    "CoworkError",
    "CreationError",
    "NotFoundError",
    "RemoteError",
    "ResolutionError",
    "ValidationError",
]
