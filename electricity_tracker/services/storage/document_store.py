"""
Document Store Storage (not configured)

A document database backend is declared so it can be selected in
configuration, but no client is wired up. Every operation reports
UNAVAILABLE rather than pretending to succeed.
"""

from collections.abc import Iterable
from typing import Any, Optional

from electricity_tracker.models.results import StorageResult
from electricity_tracker.services.storage.interface import (
    BackendUnavailableError,
    Collection,
    StorageBackend,
)


NOT_CONFIGURED = "Document store not configured"


class DocumentStoreBackend(StorageBackend):
    """Placeholder for a document database; always unavailable."""

    kind = "document-store"
    addresses = {
        Collection.EQUIPMENT: "equipment",
        Collection.USAGE_HISTORY: "usage-history",
        Collection.BILLING_SETTINGS: "billing-settings",
    }

    async def _unavailable(self) -> Any:
        raise BackendUnavailableError(NOT_CONFIGURED)

    async def save(self, key: str, data: Any) -> StorageResult:
        return await self._guard("save", key, self._unavailable())

    async def get(self, key: str, params: Optional[dict[str, Any]] = None) -> StorageResult:
        return await self._guard("get", key, self._unavailable())

    async def update(self, key: str, item_id: Any, data: Any) -> StorageResult:
        return await self._guard("update", key, self._unavailable())

    async def delete(self, key: str, item_id: Optional[Any] = None) -> StorageResult:
        return await self._guard("delete", key, self._unavailable())

    async def clear(self, keys: Iterable[str]) -> StorageResult:
        return await self._guard("clear", ",".join(keys), self._unavailable())
