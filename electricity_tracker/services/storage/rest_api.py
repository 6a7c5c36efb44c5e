"""
REST API Storage

Talks to a JSON HTTP server exposing one endpoint per collection:

    POST   {base}/{endpoint}          create
    GET    {base}/{endpoint}?k=v      list / filter
    PUT    {base}/{endpoint}/{id}     update
    DELETE {base}/{endpoint}/{id}     delete

Any non-2xx status or connection problem becomes a NETWORK_FAILED result.
There is no retry: a failed save stays failed until the next save.
"""

import asyncio
import json
from typing import Any, Optional

import aiohttp
import structlog

from electricity_tracker.services.storage.interface import (
    Collection,
    NetworkError,
    SerializationError,
    StorageBackend,
    UnsupportedOperationError,
)
from electricity_tracker.models.results import StorageResult


logger = structlog.get_logger(__name__)


class RestApiBackend(StorageBackend):
    """
    aiohttp implementation of the storage interface.

    A session passed in by the caller is left open on close();
    a session created here is closed with the backend.
    """

    kind = "api"
    addresses = {
        Collection.EQUIPMENT: "equipment",
        Collection.USAGE_HISTORY: "usage-history",
        Collection.BILLING_SETTINGS: "billing-settings",
    }

    def __init__(
        self,
        base_url: str,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._session = session
        self._owns_session = session is None

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Accept": "application/json"}
            )
            self._owns_session = True
        return self._session

    def _url(self, endpoint: str, item_id: Optional[Any] = None) -> str:
        url = f"{self._base_url}/{endpoint.strip('/')}"
        if item_id is not None:
            url = f"{url}/{item_id}"
        return url

    async def _request(
        self,
        method: str,
        url: str,
        payload: Any = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Send one request and decode the JSON body, if any."""
        body = None
        headers = {}
        if payload is not None:
            try:
                body = json.dumps(payload, allow_nan=False)
            except (TypeError, ValueError) as e:
                raise SerializationError(f"Could not serialize request body: {e}")
            headers["Content-Type"] = "application/json"

        query = {key: str(value) for key, value in (params or {}).items()}

        logger.debug("api_request", method=method, url=url, params=query)
        try:
            session = self._get_session()
            async with session.request(
                method, url, data=body, params=query or None, headers=headers
            ) as response:
                if not 200 <= response.status < 300:
                    raise NetworkError(f"HTTP error! status: {response.status}")
                try:
                    text = await response.text()
                except UnicodeDecodeError as e:
                    raise SerializationError(f"Response from {url} is not valid UTF-8: {e}")
        except aiohttp.ClientError as e:
            raise NetworkError(f"Request to {url} failed: {e}")
        except asyncio.TimeoutError:
            raise NetworkError(f"Request to {url} timed out")

        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise SerializationError(f"Response from {url} is not valid JSON: {e}")

    async def save(self, key: str, data: Any) -> StorageResult:
        return await self._guard("save", key, self._request("POST", self._url(key), payload=data))

    async def get(self, key: str, params: Optional[dict[str, Any]] = None) -> StorageResult:
        return await self._guard("get", key, self._request("GET", self._url(key), params=params))

    async def update(self, key: str, item_id: Any, data: Any) -> StorageResult:
        return await self._guard(
            "update", key, self._request("PUT", self._url(key, item_id), payload=data)
        )

    async def delete(self, key: str, item_id: Optional[Any] = None) -> StorageResult:
        return await self._guard("delete", key, self._delete(key, item_id))

    async def _delete(self, key: str, item_id: Optional[Any]) -> None:
        if item_id is None:
            raise UnsupportedOperationError(
                f"The API backend deletes single items; no id given for {key}"
            )
        await self._request("DELETE", self._url(key, item_id))
        return None

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
