"""Backend selection from the configured discriminator."""

from pathlib import Path
from typing import Optional

from electricity_tracker.config import StorageSettings, get_settings
from electricity_tracker.services.storage.document_store import DocumentStoreBackend
from electricity_tracker.services.storage.interface import StorageBackend
from electricity_tracker.services.storage.local import LocalStorageBackend
from electricity_tracker.services.storage.rest_api import RestApiBackend


BACKEND_KINDS = ("local", "api", "document-store")


def create_storage_backend(
    kind: Optional[str] = None,
    settings: Optional[StorageSettings] = None,
) -> StorageBackend:
    """
    Build the storage backend named by `kind`.

    Args:
        kind: "local", "api" or "document-store". Defaults to the
              configured backend.
        settings: Storage settings; loaded from the environment if omitted.

    Raises:
        ValueError: If `kind` is not a known backend.
    """
    settings = settings or get_settings().storage
    kind = kind or settings.backend

    if kind == "local":
        return LocalStorageBackend(Path(settings.data_dir))
    if kind == "api":
        return RestApiBackend(settings.api_base_url)
    if kind == "document-store":
        return DocumentStoreBackend()

    raise ValueError(
        f"Unknown storage backend: {kind!r}. Expected one of {', '.join(BACKEND_KINDS)}"
    )
