"""
Store adapters.

Both adapters implement the same CRUD contract (``StoreAdapter``):

    # Local embedded database
    from dualstore.adapters import SQLiteAdapter, SQLiteConfig

    # Remote document API
    from dualstore.adapters import RemoteAdapter, RemoteConfig
"""

from .base import StoreAdapter
from .remote import RemoteAdapter, RemoteConfig
from .sqlite import SQLiteAdapter, SQLiteConfig

__all__ = [
    "StoreAdapter",
    "SQLiteAdapter",
    "SQLiteConfig",
    "RemoteAdapter",
    "RemoteConfig",
]
