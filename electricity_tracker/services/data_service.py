"""
Electricity Data Service

Domain-level persistence for the usage calculator: equipment, usage
history and billing settings, plus bulk export/import/clear.

DESIGN DECISION: The service never looks at which backend it talks to.
Each backend supplies the key or endpoint for a collection and says
whether absent data should hydrate to defaults; everything else is the
same code path.

Export, import and load are all-or-nothing barriers WITHOUT rollback:
if one of three writes fails, the other two stay written and the whole
operation still reports failure.
"""

import asyncio
import json
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

import structlog
from pydantic import TypeAdapter, ValidationError

from electricity_tracker.models.equipment import (
    BillingSettings,
    Equipment,
    ExportBundle,
    UsageHistoryRecord,
)
from electricity_tracker.models.results import StorageOutcome, StorageResult
from electricity_tracker.services.storage.interface import Collection, StorageBackend


logger = structlog.get_logger(__name__)

_EQUIPMENT_LIST = TypeAdapter(list[Equipment])
_HISTORY_LIST = TypeAdapter(list[UsageHistoryRecord])
_BILLING = TypeAdapter(BillingSettings)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def combine_results(results: Sequence[StorageResult], message: str) -> Optional[StorageResult]:
    """
    Collapse a batch of results into one failure, or None if all succeeded.

    The failure keeps the shared outcome when every branch failed the same
    way (e.g. all UNAVAILABLE); otherwise it is a PARTIAL_FAILURE.
    """
    failures = [result for result in results if not result.ok]
    if not failures:
        return None

    outcomes = {result.outcome for result in failures}
    if len(failures) == len(results) and len(outcomes) == 1:
        outcome = outcomes.pop()
    else:
        outcome = StorageOutcome.PARTIAL_FAILURE

    details = "; ".join(result.error or result.outcome.value for result in failures)
    return StorageResult.failure(f"{message}: {details}", outcome)


class ElectricityDataService:
    """
    Save/get operations for the usage calculator's domain objects.

    Results carry parsed models: `get_equipment().data` is a list of
    Equipment, `get_billing_settings().data` a BillingSettings.
    """

    def __init__(
        self,
        backend: StorageBackend,
        default_billing: Optional[BillingSettings] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._backend = backend
        self._default_billing = default_billing or BillingSettings()
        self._clock = clock

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def default_billing(self) -> BillingSettings:
        return self._default_billing.model_copy()

    # -------------------------------------------------------------------------
    # Generic helpers
    # -------------------------------------------------------------------------

    async def _save(self, collection: Collection, payload: Any) -> StorageResult:
        return await self._backend.save(self._backend.address_for(collection), payload)

    async def _load(
        self,
        collection: Collection,
        adapter: TypeAdapter,
        default: Callable[[], Any],
        params: Optional[dict[str, Any]] = None,
    ) -> StorageResult:
        result = await self._backend.get(self._backend.address_for(collection), params)
        if not result.ok:
            return result

        if result.data is None:
            if self._backend.fills_missing_with_defaults:
                return StorageResult.success(default())
            return StorageResult.success(None)

        try:
            return StorageResult.success(adapter.validate_python(result.data))
        except ValidationError as e:
            logger.error(
                "stored_data_malformed",
                backend=self._backend.kind,
                collection=collection.value,
                error_count=e.error_count(),
            )
            return StorageResult.failure(
                f"Stored {collection.value} is malformed: {e.error_count()} validation error(s)",
                StorageOutcome.SERIALIZATION_FAILED,
            )

    # -------------------------------------------------------------------------
    # Equipment
    # -------------------------------------------------------------------------

    async def save_equipment(self, equipment: Sequence[Equipment]) -> StorageResult:
        """Persist the whole equipment list."""
        return await self._save(
            Collection.EQUIPMENT, [item.to_storage() for item in equipment]
        )

    async def get_equipment(self) -> StorageResult:
        """Load the equipment list (empty list if never saved locally)."""
        return await self._load(Collection.EQUIPMENT, _EQUIPMENT_LIST, list)

    # -------------------------------------------------------------------------
    # Usage history
    # -------------------------------------------------------------------------

    async def save_usage_history(self, history: Sequence[UsageHistoryRecord]) -> StorageResult:
        """Persist the full usage history."""
        return await self._save(
            Collection.USAGE_HISTORY, [record.to_storage() for record in history]
        )

    async def get_usage_history(self, params: Optional[dict[str, Any]] = None) -> StorageResult:
        """
        Load usage history.

        Args:
            params: Query parameters passed to the REST backend as filters
        """
        return await self._load(Collection.USAGE_HISTORY, _HISTORY_LIST, list, params)

    # -------------------------------------------------------------------------
    # Billing settings
    # -------------------------------------------------------------------------

    async def save_billing_settings(self, settings: BillingSettings) -> StorageResult:
        """Persist billing settings."""
        return await self._save(Collection.BILLING_SETTINGS, settings.to_storage())

    async def get_billing_settings(self) -> StorageResult:
        """Load billing settings (defaults if never saved locally)."""
        return await self._load(
            Collection.BILLING_SETTINGS,
            _BILLING,
            lambda: self.default_billing,
        )

    # -------------------------------------------------------------------------
    # Bulk operations
    # -------------------------------------------------------------------------

    async def export_all(self) -> StorageResult:
        """
        Fetch all three collections concurrently into one ExportBundle.

        Succeeds only if every fetch succeeds.
        """
        equipment, history, settings = await asyncio.gather(
            self.get_equipment(),
            self.get_usage_history(),
            self.get_billing_settings(),
        )

        failure = combine_results([equipment, history, settings], "Failed to export some data")
        if failure:
            return failure

        bundle = ExportBundle(
            equipment=equipment.data or [],
            usage_history=history.data or [],
            billing_settings=settings.data or self.default_billing,
            export_date=self._clock().isoformat(),
        )
        logger.info(
            "data_exported",
            backend=self._backend.kind,
            equipment=len(bundle.equipment),
            history=len(bundle.usage_history),
        )
        return StorageResult.success(bundle)

    async def import_all(self, bundle: Union[ExportBundle, Mapping[str, Any]]) -> StorageResult:
        """
        Write all three collections concurrently.

        Missing sections default to [], [] and the default billing settings.
        Succeeds only if every write succeeds; there is no rollback.
        """
        if not isinstance(bundle, ExportBundle):
            try:
                bundle = ExportBundle.model_validate(bundle)
            except ValidationError as e:
                return StorageResult.failure(
                    f"Import data is malformed: {e.error_count()} validation error(s)",
                    StorageOutcome.SERIALIZATION_FAILED,
                )

        results = await asyncio.gather(
            self.save_equipment(bundle.equipment),
            self.save_usage_history(bundle.usage_history),
            self.save_billing_settings(bundle.billing_settings),
        )

        failure = combine_results(results, "Some data failed to import")
        if failure:
            return failure

        logger.info("data_imported", backend=self._backend.kind)
        return StorageResult.success(bundle, message="Data imported successfully")

    async def clear_all(self) -> StorageResult:
        """Delete all three collections (local backend only)."""
        keys = [self._backend.address_for(collection) for collection in Collection]
        return await self._backend.clear(keys)

    # -------------------------------------------------------------------------
    # Export files
    # -------------------------------------------------------------------------

    def export_filename(self) -> str:
        return f"electricity-data-{self._clock().date().isoformat()}.json"

    async def export_to_file(self, directory: Union[str, Path]) -> StorageResult:
        """
        Export everything to `<directory>/electricity-data-YYYY-MM-DD.json`.

        Returns:
            ok=True with data set to the written path
        """
        exported = await self.export_all()
        if not exported.ok:
            return exported

        path = Path(directory) / self.export_filename()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                json.dumps(exported.data.to_storage(), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            logger.error("export_write_failed", path=str(path), error=str(e))
            return StorageResult.failure(f"Could not write export file: {e}")

        return StorageResult.success(path, message="Data exported successfully!")

    async def import_from_file(self, path: Union[str, Path]) -> StorageResult:
        """Read an export file and import it."""
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except OSError as e:
            return StorageResult.failure(f"Error reading file: {e}")
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return StorageResult.failure(
                f"Error reading file: {e}", StorageOutcome.SERIALIZATION_FAILED
            )

        if not isinstance(raw, dict):
            return StorageResult.failure(
                "Error reading file: expected a JSON object",
                StorageOutcome.SERIALIZATION_FAILED,
            )

        return await self.import_all(raw)
