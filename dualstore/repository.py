"""
Unified repository.

Dispatches every CRUD call to whichever adapter the backend selector
names at the moment of the call. Input is validated into drafts before
dispatch; results and errors come back from the adapter unchanged.
"""

from __future__ import annotations

import logging
from typing import Any

from .adapters.base import StoreAdapter
from .models import Address, AddressDraft, Item, ItemDraft, as_flag
from .selector import BackendChoice, BackendSelector

logger = logging.getLogger(__name__)


class UnifiedRepository:
    """One CRUD contract over the local and the remote store.

    The selector is injected, so callers (and tests) control which backend
    is active without touching global state.
    """

    def __init__(
        self,
        selector: BackendSelector,
        local: StoreAdapter,
        remote: StoreAdapter,
    ) -> None:
        self.selector = selector
        self._adapters: dict[BackendChoice, StoreAdapter] = {
            BackendChoice.LOCAL: local,
            BackendChoice.REMOTE: remote,
        }

    @property
    def local(self) -> StoreAdapter:
        return self._adapters[BackendChoice.LOCAL]

    @property
    def remote(self) -> StoreAdapter:
        return self._adapters[BackendChoice.REMOTE]

    def adapter_for(self, choice: BackendChoice | str) -> StoreAdapter:
        """Return the adapter serving a backend choice."""
        return self._adapters[BackendChoice.parse(choice)]

    async def current_adapter(self) -> StoreAdapter:
        """Read the selector and return the adapter it names right now."""
        choice = await self.selector.get_choice()
        adapter = self._adapters[choice]
        logger.debug(f"Dispatching to {adapter.name} store")
        return adapter

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    async def create_item(self, item: ItemDraft | dict[str, Any]) -> Item:
        draft = ItemDraft.coerce(item)
        return await (await self.current_adapter()).create_item(draft)

    async def read_items(self) -> list[Item]:
        return await (await self.current_adapter()).read_items()

    async def update_item(self, item_id: str, item: ItemDraft | dict[str, Any]) -> Item:
        draft = ItemDraft.coerce(item)
        return await (await self.current_adapter()).update_item(str(item_id), draft)

    async def delete_item(self, item_id: str) -> dict[str, str]:
        return await (await self.current_adapter()).delete_item(str(item_id))

    # -------------------------------------------------------------------------
    # Addresses
    # -------------------------------------------------------------------------

    async def create_address(self, address: AddressDraft | dict[str, Any]) -> Address:
        draft = AddressDraft.coerce(address)
        return await (await self.current_adapter()).create_address(draft)

    async def read_addresses(self) -> list[Address]:
        return await (await self.current_adapter()).read_addresses()

    async def update_address(
        self, address_id: str, address: AddressDraft | dict[str, Any]
    ) -> Address:
        draft = AddressDraft.coerce(address)
        return await (await self.current_adapter()).update_address(str(address_id), draft)

    async def delete_address(self, address_id: str) -> dict[str, str]:
        return await (await self.current_adapter()).delete_address(str(address_id))

    async def favorite_address(self, address_id: str, favorite: bool | int | str) -> dict[str, Any]:
        return await (await self.current_adapter()).favorite_address(
            str(address_id), as_flag(favorite)
        )
