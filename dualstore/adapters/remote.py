"""
Remote store adapter.

Talks JSON to a REST document API: one resource per entity type
(``/items``, ``/enderecos``) below a configured base URL, standard verbs,
and ``PUT /enderecos/{id}/favorite`` for the favorite flag. Document ids
are opaque strings and are passed through untouched.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import aiohttp

from ..config import DEFAULT_API_URL
from ..exceptions import AdapterError, DualStoreError, RecordNotFoundError
from ..models import Address, AddressDraft, Item, ItemDraft
from .base import StoreAdapter

logger = logging.getLogger(__name__)

ITEMS_PATH = "/items"
ADDRESSES_PATH = "/enderecos"


@dataclass
class RemoteConfig:
    """Configuration for the remote document API."""

    base_url: str = DEFAULT_API_URL
    timeout_seconds: float = 10.0
    probe_timeout_seconds: float = 5.0

    @classmethod
    def from_env(cls) -> RemoteConfig:
        """Create config from environment variables."""
        return cls(
            base_url=os.environ.get("DUALSTORE_API_URL", DEFAULT_API_URL),
            timeout_seconds=float(os.environ.get("DUALSTORE_REQUEST_TIMEOUT", "10")),
            probe_timeout_seconds=float(os.environ.get("DUALSTORE_PROBE_TIMEOUT", "5")),
        )


class RemoteAdapter(StoreAdapter):
    """Remote store adapter over aiohttp.

    The adapter opens its own ``aiohttp.ClientSession`` on first use unless
    one is injected; an injected session is left open on ``close()``.

    Example:
        >>> async with RemoteAdapter(RemoteConfig("https://api.example.com/api")) as remote:
        ...     if await remote.check_connection():
        ...         items = await remote.read_items()
    """

    name = "remote"

    def __init__(self, config: RemoteConfig, session: aiohttp.ClientSession | None = None):
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds),
                headers={"Accept": "application/json"},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this adapter opened it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    # =========================================================================
    # HTTP plumbing
    # =========================================================================

    def _url(self, path: str, record_id: str | None = None, suffix: str = "") -> str:
        url = f"{self.base_url}{path}"
        if record_id is not None:
            url += f"/{quote(str(record_id), safe='')}"
        return url + suffix

    async def _request(
        self,
        method: str,
        url: str,
        operation: str,
        *,
        payload: dict[str, Any] | None = None,
        entity: str | None = None,
        record_id: str | None = None,
    ) -> Any:
        """Send one request and decode the JSON body.

        Raises:
            RecordNotFoundError: On 404 for an id-addressed request
            AdapterError: On transport failure, timeout or any non-2xx status
        """
        session = self._get_session()
        try:
            async with session.request(method, url, json=payload) as response:
                if response.status == 404 and record_id is not None:
                    raise RecordNotFoundError(operation, entity or "record", record_id)
                if response.status >= 400:
                    detail = await _error_detail(response)
                    raise AdapterError(operation, f"HTTP {response.status}: {detail}")
                if response.status == 204:
                    return None
                return await response.json(content_type=None)
        except DualStoreError:
            raise
        except asyncio.TimeoutError as e:
            raise AdapterError(operation, f"request to {url} timed out") from e
        except (aiohttp.ClientError, ValueError) as e:
            raise AdapterError(operation, e) from e

    async def check_connection(self) -> bool:
        """Probe the API with a lightweight read.

        Returns:
            True if the API answered with a success status, False on any
            failure including timeout. Never raises.
        """
        session = self._get_session()
        url = self._url(ITEMS_PATH)
        try:
            async with session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=self.config.probe_timeout_seconds),
            ) as response:
                if not response.ok:
                    logger.info(f"Remote store probe got HTTP {response.status} from {url}")
                return response.ok
        except Exception as e:
            logger.info(f"Remote store not reachable at {url}: {e!r}")
            return False

    # =========================================================================
    # Item Operations
    # =========================================================================

    async def create_item(self, draft: ItemDraft) -> Item:
        data = await self._request(
            "POST", self._url(ITEMS_PATH), "create item", payload=draft.to_wire()
        )
        return Item.from_wire({**draft.to_wire(), **_document(data)})

    async def read_items(self) -> list[Item]:
        data = await self._request("GET", self._url(ITEMS_PATH), "read items")
        return _newest_first([Item.from_wire(doc) for doc in _as_list("read items", data)])

    async def update_item(self, item_id: str, draft: ItemDraft) -> Item:
        data = await self._request(
            "PUT",
            self._url(ITEMS_PATH, item_id),
            "update item",
            payload=draft.to_wire(),
            entity="item",
            record_id=item_id,
        )
        return Item.from_wire({"_id": item_id, **draft.to_wire(), **_document(data)})

    async def delete_item(self, item_id: str) -> dict[str, str]:
        data = await self._request(
            "DELETE",
            self._url(ITEMS_PATH, item_id),
            "delete item",
            entity="item",
            record_id=item_id,
        )
        return {"message": _message(data, "Item deleted")}

    # =========================================================================
    # Address Operations
    # =========================================================================

    async def create_address(self, draft: AddressDraft) -> Address:
        data = await self._request(
            "POST", self._url(ADDRESSES_PATH), "create address", payload=draft.to_wire()
        )
        return Address.from_wire({**draft.to_wire(), **_document(data)})

    async def read_addresses(self) -> list[Address]:
        data = await self._request("GET", self._url(ADDRESSES_PATH), "read addresses")
        return _newest_first(
            [Address.from_wire(doc) for doc in _as_list("read addresses", data)]
        )

    async def update_address(self, address_id: str, draft: AddressDraft) -> Address:
        payload = draft.to_wire()
        # The favorite flag has its own endpoint; an edit must not reset it.
        payload.pop("favorito")
        data = await self._request(
            "PUT",
            self._url(ADDRESSES_PATH, address_id),
            "update address",
            payload=payload,
            entity="address",
            record_id=address_id,
        )
        return Address.from_wire({"_id": address_id, **payload, **_document(data)})

    async def delete_address(self, address_id: str) -> dict[str, str]:
        data = await self._request(
            "DELETE",
            self._url(ADDRESSES_PATH, address_id),
            "delete address",
            entity="address",
            record_id=address_id,
        )
        return {"message": _message(data, "Address deleted")}

    async def favorite_address(self, address_id: str, favorite: bool) -> dict[str, Any]:
        flag = 1 if favorite else 0
        await self._request(
            "PUT",
            self._url(ADDRESSES_PATH, address_id, "/favorite"),
            "favorite address",
            payload={"favorito": flag},
            entity="address",
            record_id=address_id,
        )
        return {"id": str(address_id), "favorito": flag}


async def _error_detail(response: aiohttp.ClientResponse) -> str:
    """Best-effort human-readable error from a failed response."""
    try:
        body = await response.json(content_type=None)
    except (aiohttp.ClientError, ValueError):
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if body.get(key):
                return str(body[key])
    return response.reason or "request failed"


def _as_list(operation: str, data: Any) -> list[dict[str, Any]]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise AdapterError(operation, f"expected a JSON list, got {type(data).__name__}")
    return data


def _message(data: Any, default: str) -> str:
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return default


def _document(data: Any) -> dict[str, Any]:
    return data if isinstance(data, dict) else {}


def _newest_first(records: list[Any]) -> list[Any]:
    """Order by creation timestamp, newest first; undated records go last."""
    return sorted(records, key=lambda r: r.created_at or "", reverse=True)
