"""
DualStore facade.

Wires the backend selector, both adapters, the unified repository, the
synchronizer and the postal-code client together behind the interface
front ends call.
"""

from __future__ import annotations

import logging
from typing import Any

from .adapters.base import StoreAdapter
from .adapters.remote import RemoteAdapter, RemoteConfig
from .adapters.sqlite import SQLiteAdapter, SQLiteConfig
from .config import StoreConfig
from .models import Address, AddressDraft, Item, ItemDraft
from .postal import PostalAddress, PostalCodeClient
from .repository import UnifiedRepository
from .selector import BackendChoice, BackendSelector
from .sync import SyncResult, Synchronizer

logger = logging.getLogger(__name__)


class DualStore:
    """Items and addresses over a local and a remote store.

    Example:
        >>> async with await DualStore.create(StoreConfig.from_file()) as store:
        ...     await store.save_database_choice("local")
        ...     await store.create_item({"name": "Book"})
        ...     result = await store.sync_databases()
    """

    def __init__(
        self,
        selector: BackendSelector,
        local: StoreAdapter,
        remote: StoreAdapter,
        postal: PostalCodeClient | None = None,
    ) -> None:
        self.selector = selector
        self.local = local
        self.remote = remote
        self.postal = postal or PostalCodeClient()
        self.repository = UnifiedRepository(selector, local, remote)
        self.synchronizer = Synchronizer(local, remote)

    @classmethod
    async def create(cls, config: StoreConfig | None = None) -> DualStore:
        """Build a store from configuration and open the local database."""
        if config is None:
            config = StoreConfig.from_env()

        local = await SQLiteAdapter.create(SQLiteConfig(db_path=config.sqlite_path))
        remote = RemoteAdapter(
            RemoteConfig(
                base_url=config.api_url,
                timeout_seconds=config.request_timeout,
                probe_timeout_seconds=config.probe_timeout,
            )
        )
        postal = PostalCodeClient(base_url=config.postal_url, timeout=config.postal_timeout)
        return cls(BackendSelector(config.choice_path), local, remote, postal)

    async def close(self) -> None:
        """Close both adapters and the postal-code client."""
        await self.local.close()
        await self.remote.close()
        await self.postal.close()

    async def __aenter__(self) -> DualStore:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    async def create_item(self, item: ItemDraft | dict[str, Any]) -> Item:
        return await self.repository.create_item(item)

    async def read_items(self) -> list[Item]:
        return await self.repository.read_items()

    async def update_item(self, item_id: str, item: ItemDraft | dict[str, Any]) -> Item:
        return await self.repository.update_item(item_id, item)

    async def delete_item(self, item_id: str) -> dict[str, str]:
        return await self.repository.delete_item(item_id)

    # -------------------------------------------------------------------------
    # Addresses
    # -------------------------------------------------------------------------

    async def create_address(self, address: AddressDraft | dict[str, Any]) -> Address:
        return await self.repository.create_address(address)

    async def read_addresses(self) -> list[Address]:
        return await self.repository.read_addresses()

    async def update_address(
        self, address_id: str, address: AddressDraft | dict[str, Any]
    ) -> Address:
        return await self.repository.update_address(address_id, address)

    async def delete_address(self, address_id: str) -> dict[str, str]:
        return await self.repository.delete_address(address_id)

    async def favorite_address(self, address_id: str, favorite: bool | int) -> dict[str, Any]:
        return await self.repository.favorite_address(address_id, favorite)

    # -------------------------------------------------------------------------
    # Backend choice, connectivity, sync
    # -------------------------------------------------------------------------

    async def get_database_choice(self) -> BackendChoice:
        return await self.selector.get_choice()

    async def save_database_choice(self, choice: BackendChoice | str) -> BackendChoice:
        return await self.selector.set_choice(choice)

    async def clear_database_choice(self) -> None:
        await self.selector.clear_choice()

    async def check_remote_connection(self) -> bool:
        return await self.remote.check_connection()

    async def sync_databases(self) -> SyncResult:
        """Reconcile both stores. Never raises; see ``SyncResult``."""
        return await self.synchronizer.sync()

    async def lookup_postal_code(self, postal_code: str) -> PostalAddress:
        return await self.postal.lookup(postal_code)
