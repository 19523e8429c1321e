"""
Abstract store adapter interface.

Defines the CRUD contract that both the local and the remote adapter
implement. Identifiers crossing this boundary are always strings.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..models import Address, AddressDraft, Item, ItemDraft


class StoreAdapter(ABC):
    """CRUD over one concrete storage technology.

    All implementations must raise ``AdapterError`` (or its subclass
    ``RecordNotFoundError``) for storage failures, carrying the cause.
    """

    #: Short label used in logs and sync results ("local" or "remote").
    name: str = "adapter"

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_item(self, draft: ItemDraft) -> Item:
        """Persist a new item.

        Args:
            draft: Validated item content

        Returns:
            The stored item with its backend-assigned id

        Raises:
            AdapterError: If the write fails
        """
        ...

    @abstractmethod
    async def read_items(self) -> list[Item]:
        """Return every item, newest first."""
        ...

    @abstractmethod
    async def update_item(self, item_id: str, draft: ItemDraft) -> Item:
        """Replace name and description of an existing item.

        Raises:
            RecordNotFoundError: If no item has this id
            AdapterError: If the write fails
        """
        ...

    @abstractmethod
    async def delete_item(self, item_id: str) -> dict[str, str]:
        """Delete an item. Returns ``{"message": ...}``."""
        ...

    # -------------------------------------------------------------------------
    # Addresses
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_address(self, draft: AddressDraft) -> Address:
        """Persist a new address, including its favorite flag."""
        ...

    @abstractmethod
    async def read_addresses(self) -> list[Address]:
        """Return every address, newest first."""
        ...

    @abstractmethod
    async def update_address(self, address_id: str, draft: AddressDraft) -> Address:
        """Replace the fields of an existing address.

        The favorite flag is left untouched; use ``favorite_address`` for it.
        """
        ...

    @abstractmethod
    async def delete_address(self, address_id: str) -> dict[str, str]:
        """Delete an address. Returns ``{"message": ...}``."""
        ...

    @abstractmethod
    async def favorite_address(self, address_id: str, favorite: bool) -> dict[str, Any]:
        """Set or clear the favorite flag.

        Returns:
            ``{"id": address_id, "favorito": 0 | 1}``
        """
        ...

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def check_connection(self) -> bool:
        """Report whether the store is reachable. Never raises.

        Embedded stores are always reachable; network adapters override this.
        """
        return True

    async def close(self) -> None:
        """Release connections held by the adapter."""
        return None

    async def __aenter__(self) -> StoreAdapter:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
