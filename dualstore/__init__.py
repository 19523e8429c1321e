"""
dualstore

Items and addresses over two interchangeable stores, with manual two-way
synchronization between them.

Provides:
- A local SQLite store and a remote JSON document API behind one CRUD contract
- A persisted backend choice that routes every call to one of them
- A best-effort synchronizer that matches records by natural key
- Postal-code (CEP) lookup to fill in addresses

Usage:

    >>> from dualstore import DualStore, StoreConfig
    >>> async with await DualStore.create(StoreConfig.from_file()) as store:
    ...     await store.save_database_choice("local")
    ...     await store.create_item({"name": "Book", "description": "Paperback"})
    ...
    ...     # Copy missing records both ways
    ...     result = await store.sync_databases()
    ...     print(result.message if result.success else result.error)

Adapters can also be used directly:

    from dualstore.adapters import SQLiteAdapter, SQLiteConfig
    from dualstore.adapters import RemoteAdapter, RemoteConfig
"""

from .adapters import RemoteAdapter, RemoteConfig, SQLiteAdapter, SQLiteConfig, StoreAdapter
from .config import StoreConfig
from .exceptions import (
    AdapterError,
    ConnectivityError,
    DualStoreError,
    PartialSyncFailure,
    PostalCodeNotFoundError,
    PostalLookupUnavailableError,
    RecordNotFoundError,
    ValidationError,
)
from .models import Address, AddressDraft, AddressKey, Item, ItemDraft, ItemKey
from .postal import PostalAddress, PostalCodeClient
from .repository import UnifiedRepository
from .selector import BackendChoice, BackendSelector
from .store import DualStore
from .sync import SyncResult, Synchronizer

__all__ = [
    # Facade
    "DualStore",
    "StoreConfig",
    # Records
    "Item",
    "ItemDraft",
    "ItemKey",
    "Address",
    "AddressDraft",
    "AddressKey",
    # Components
    "BackendChoice",
    "BackendSelector",
    "StoreAdapter",
    "SQLiteAdapter",
    "SQLiteConfig",
    "RemoteAdapter",
    "RemoteConfig",
    "UnifiedRepository",
    "Synchronizer",
    "SyncResult",
    "PostalAddress",
    "PostalCodeClient",
    # Exceptions
    "DualStoreError",
    "ValidationError",
    "AdapterError",
    "RecordNotFoundError",
    "ConnectivityError",
    "PartialSyncFailure",
    "PostalCodeNotFoundError",
    "PostalLookupUnavailableError",
]

__version__ = "0.1.0"
