"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep data in local JSON files, on a REST server, or (later) a document store
2. Pick the backend once, at construction, instead of branching on a type
   tag at every call site
3. Use a temporary directory for testing

Every operation returns a StorageResult and never raises. Implementations
raise StorageError subclasses internally and convert them at the public
boundary with `_guard`.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Iterable
from enum import Enum
from typing import Any, Optional

import structlog

from electricity_tracker.models.results import StorageOutcome, StorageResult


logger = structlog.get_logger(__name__)


class Collection(str, Enum):
    """Domain collections persisted by the usage calculator."""
    EQUIPMENT = "equipment"
    USAGE_HISTORY = "usage_history"
    BILLING_SETTINGS = "billing_settings"


class StorageError(Exception):
    """Base exception for storage operations."""
    outcome = StorageOutcome.IO_FAILED


class SerializationError(StorageError):
    """Data could not be encoded, or stored data could not be decoded."""
    outcome = StorageOutcome.SERIALIZATION_FAILED


class StorageIOError(StorageError):
    """Reading from or writing to the local store failed."""
    outcome = StorageOutcome.IO_FAILED


class NetworkError(StorageError):
    """The server was unreachable or answered with a non-2xx status."""
    outcome = StorageOutcome.NETWORK_FAILED


class BackendUnavailableError(StorageError):
    """The backend is declared but not configured."""
    outcome = StorageOutcome.UNAVAILABLE


class UnsupportedOperationError(StorageError):
    """The backend does not offer this operation."""
    outcome = StorageOutcome.UNSUPPORTED


class StorageBackend(ABC):
    """
    Abstract interface for key/endpoint based storage.

    `addresses` maps each domain collection to the key (local) or
    endpoint (REST) it lives under.
    """

    kind: str = ""
    addresses: dict[Collection, str] = {}

    # Absent collections hydrate to their defaults instead of None.
    fills_missing_with_defaults: bool = False

    def address_for(self, collection: Collection) -> str:
        """Key or endpoint name for a domain collection."""
        return self.addresses[collection]

    @abstractmethod
    async def save(self, key: str, data: Any) -> StorageResult:
        """
        Serialize and write `data` under `key`.

        Returns:
            ok=True with the saved data (or the server's response)
        """
        pass

    @abstractmethod
    async def get(self, key: str, params: Optional[dict[str, Any]] = None) -> StorageResult:
        """
        Read the value stored under `key`.

        Args:
            key: Key or endpoint
            params: Query parameters (REST only)

        Returns:
            ok=True with data=None if nothing is stored
        """
        pass

    @abstractmethod
    async def delete(self, key: str, item_id: Optional[Any] = None) -> StorageResult:
        """
        Remove the value under `key`, or one item of it when `item_id` is given.
        """
        pass

    async def update(self, key: str, item_id: Any, data: Any) -> StorageResult:
        """Replace a single item by id."""
        return StorageResult.failure(
            f"Update by id is not supported by the {self.kind} backend",
            StorageOutcome.UNSUPPORTED,
        )

    async def clear(self, keys: Iterable[str]) -> StorageResult:
        """Delete every key in `keys`."""
        return StorageResult.failure(
            f"Clear all not implemented for the {self.kind} backend",
            StorageOutcome.UNSUPPORTED,
        )

    async def close(self) -> None:
        """Release any held resources."""

    async def __aenter__(self) -> "StorageBackend":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _guard(
        self,
        operation: str,
        key: str,
        action: Awaitable[Any],
    ) -> StorageResult:
        """Await `action`, turning StorageError into a failed result."""
        try:
            data = await action
        except StorageError as e:
            logger.error(
                f"storage_{operation}_failed",
                backend=self.kind,
                key=key,
                outcome=e.outcome.value,
                error=str(e),
            )
            return StorageResult.failure(str(e), e.outcome)
        return StorageResult.success(data)
