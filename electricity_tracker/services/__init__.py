"""Services package."""

from electricity_tracker.services.data_service import (
    ElectricityDataService,
    combine_results,
)
from electricity_tracker.services.storage import (
    BackendUnavailableError,
    Collection,
    DocumentStoreBackend,
    LocalStorageBackend,
    NetworkError,
    RestApiBackend,
    SerializationError,
    StorageBackend,
    StorageError,
    StorageIOError,
    UnsupportedOperationError,
    create_storage_backend,
)

__all__ = [
    # Domain service
    "ElectricityDataService",
    "combine_results",
    # Storage services
    "BackendUnavailableError",
    "Collection",
    "DocumentStoreBackend",
    "LocalStorageBackend",
    "NetworkError",
    "RestApiBackend",
    "SerializationError",
    "StorageBackend",
    "StorageError",
    "StorageIOError",
    "UnsupportedOperationError",
    "create_storage_backend",
]
