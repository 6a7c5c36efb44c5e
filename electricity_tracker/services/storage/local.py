"""
Local Key-Value Storage

DESIGN DECISION: Each key is a JSON file in one data directory.
This is the local equivalent of browser storage:
1. No server or database setup required
2. Values are whole documents (a full list, a settings object)
3. Files are human-readable and easy to back up

TRADEOFFS:
- No locking; two processes writing the same key race (last write wins)
- Whole-document writes only, there is no per-item update
"""

import json
import os
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Optional

from electricity_tracker.models.results import StorageOutcome, StorageResult
from electricity_tracker.services.storage.interface import (
    Collection,
    SerializationError,
    StorageBackend,
    StorageIOError,
)


# Keys used by the equipment calculator
EQUIPMENT_KEY = "electricity_equipment"
USAGE_HISTORY_KEY = "electricity_usage_history"
BILLING_SETTINGS_KEY = "electricity_billing_settings"

# Keys used by the meter tracker
METER_HISTORY_KEY = "meter_reading_history"
METER_BILLING_SETTINGS_KEY = "meter_billing_settings"

_VALID_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class LocalStorageBackend(StorageBackend):
    """Stores each key as `<data_dir>/<key>.json`."""

    kind = "local"
    addresses = {
        Collection.EQUIPMENT: EQUIPMENT_KEY,
        Collection.USAGE_HISTORY: USAGE_HISTORY_KEY,
        Collection.BILLING_SETTINGS: BILLING_SETTINGS_KEY,
    }
    fills_missing_with_defaults = True

    def __init__(self, data_dir: Path):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: str) -> Path:
        if not _VALID_KEY.match(key) or key.startswith("."):
            raise StorageIOError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}.json"

    async def _write(self, key: str, data: Any) -> Any:
        path = self._path(key)
        try:
            payload = json.dumps(data, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Could not serialize value for {key}: {e}")

        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            tmp_path = path.parent / f"{path.name}.tmp"
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageIOError(f"Could not write {key}: {e}")
        return data

    async def _read(self, key: str) -> Any:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            payload = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageIOError(f"Could not read {key}: {e}")
        except UnicodeDecodeError as e:
            raise SerializationError(f"Stored value for {key} is not valid UTF-8: {e}")

        try:
            return json.loads(payload)
        except json.JSONDecodeError as e:
            raise SerializationError(f"Stored value for {key} is not valid JSON: {e}")

    async def _remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageIOError(f"Could not delete {key}: {e}")

    async def save(self, key: str, data: Any) -> StorageResult:
        return await self._guard("save", key, self._write(key, data))

    async def get(self, key: str, params: Optional[dict[str, Any]] = None) -> StorageResult:
        # Local values are whole documents; query parameters do not apply.
        return await self._guard("get", key, self._read(key))

    async def delete(self, key: str, item_id: Optional[Any] = None) -> StorageResult:
        if item_id is not None:
            return StorageResult.failure(
                "The local backend stores whole documents; delete by id is not supported",
                StorageOutcome.UNSUPPORTED,
            )
        return await self._guard("delete", key, self._remove(key))

    async def clear(self, keys: Iterable[str]) -> StorageResult:
        failed = []
        for key in keys:
            result = await self.delete(key)
            if not result.ok:
                failed.append(f"{key}: {result.error}")

        if failed:
            return StorageResult.failure("; ".join(failed), StorageOutcome.IO_FAILED)
        return StorageResult.success()
