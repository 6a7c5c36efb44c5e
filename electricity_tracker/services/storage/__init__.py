"""
Storage Services Package

Provides the abstract storage interface and its three implementations:
local JSON files, a REST API, and an unconfigured document store.
"""

from electricity_tracker.services.storage.interface import (
    BackendUnavailableError,
    Collection,
    NetworkError,
    SerializationError,
    StorageBackend,
    StorageError,
    StorageIOError,
    UnsupportedOperationError,
)
from electricity_tracker.services.storage.local import (
    BILLING_SETTINGS_KEY,
    EQUIPMENT_KEY,
    METER_BILLING_SETTINGS_KEY,
    METER_HISTORY_KEY,
    USAGE_HISTORY_KEY,
    LocalStorageBackend,
)
from electricity_tracker.services.storage.rest_api import RestApiBackend
from electricity_tracker.services.storage.document_store import (
    NOT_CONFIGURED,
    DocumentStoreBackend,
)
from electricity_tracker.services.storage.factory import (
    BACKEND_KINDS,
    create_storage_backend,
)

__all__ = [
    # Interface
    "Collection",
    "StorageBackend",
    # Exceptions
    "BackendUnavailableError",
    "NetworkError",
    "SerializationError",
    "StorageError",
    "StorageIOError",
    "UnsupportedOperationError",
    # Implementations
    "DocumentStoreBackend",
    "LocalStorageBackend",
    "RestApiBackend",
    "BACKEND_KINDS",
    "NOT_CONFIGURED",
    "create_storage_backend",
    # Local keys
    "BILLING_SETTINGS_KEY",
    "EQUIPMENT_KEY",
    "METER_BILLING_SETTINGS_KEY",
    "METER_HISTORY_KEY",
    "USAGE_HISTORY_KEY",
]
