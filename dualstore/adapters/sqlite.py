"""
SQLite store adapter.

Local, always-available persistence on a single aiosqlite connection.
The adapter owns the schema: it creates the ``items`` and ``enderecos``
tables on first use and migrates older databases that predate the
``favorito`` column.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from ..exceptions import AdapterError, DualStoreError, RecordNotFoundError
from ..models import Address, AddressDraft, Item, ItemDraft
from .base import StoreAdapter

logger = logging.getLogger(__name__)


ITEM_COLUMNS = ("id", "nome", "descricao", "dataCriacao")

ADDRESS_COLUMNS = (
    "id",
    "cep",
    "rua",
    "bairro",
    "numero",
    "estado",
    "favorito",
    "dataCriacao",
)

_CREATE_ITEMS_SQL = """
CREATE TABLE IF NOT EXISTS items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    nome TEXT NOT NULL,
    descricao TEXT,
    dataCriacao TEXT
)
"""

_CREATE_ADDRESSES_SQL = """
CREATE TABLE IF NOT EXISTS enderecos (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    cep TEXT NOT NULL,
    rua TEXT NOT NULL,
    bairro TEXT NOT NULL,
    numero TEXT NOT NULL,
    estado TEXT,
    favorito INTEGER DEFAULT 0,
    dataCriacao TEXT
)
"""


@dataclass
class SQLiteConfig:
    """Configuration for the local SQLite store."""

    db_path: str | Path = ":memory:"

    @classmethod
    def from_env(cls) -> SQLiteConfig:
        """Create config from environment variables."""
        return cls(db_path=os.environ.get("DUALSTORE_SQLITE_PATH", ":memory:"))


def _now() -> str:
    return datetime.now(UTC).isoformat()


class SQLiteAdapter(StoreAdapter):
    """
    Local store adapter backed by SQLite.

    Features:
    - Single file (or in-memory) database, one connection per adapter
    - Integer row ids, returned to callers as strings
    - Each operation commits or rolls back as a unit
    """

    name = "local"

    def __init__(self, config: SQLiteConfig):
        self.config = config
        self.conn: aiosqlite.Connection | None = None
        self._initialized = False

    @classmethod
    async def create(cls, config: SQLiteConfig | None = None) -> SQLiteAdapter:
        """Create and initialize a SQLite adapter."""
        if config is None:
            config = SQLiteConfig.from_env()

        adapter = cls(config)
        await adapter.initialize()
        return adapter

    async def initialize(self) -> None:
        """Open the connection and make sure the schema is current."""
        if self._initialized:
            return

        db_path = str(self.config.db_path)
        try:
            if db_path != ":memory:":
                Path(db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
                db_path = str(Path(db_path).expanduser())

            self.conn = await aiosqlite.connect(db_path)
            await self.conn.execute(_CREATE_ITEMS_SQL)
            await self.conn.execute(_CREATE_ADDRESSES_SQL)
            await self._ensure_favorite_column()
            await self.conn.commit()

            self._initialized = True
            logger.info(f"SQLite store initialized: {self.config.db_path}")

        except (sqlite3.Error, OSError) as e:
            if self.conn is not None:
                await self.conn.close()
                self.conn = None
            raise AdapterError(f"open local database {self.config.db_path}", e) from e

    async def close(self) -> None:
        """Close the SQLite connection."""
        if self.conn:
            await self.conn.close()
            self.conn = None

        self._initialized = False

    # =========================================================================
    # Schema Management
    # =========================================================================

    async def _ensure_favorite_column(self) -> None:
        """Add ``favorito`` to address tables created before it existed."""
        async with self.conn.execute("PRAGMA table_info(enderecos)") as cursor:
            columns = [col[1] for col in await cursor.fetchall()]

        if "favorito" in columns:
            return

        await self.conn.execute("ALTER TABLE enderecos ADD COLUMN favorito INTEGER DEFAULT 0")
        logger.info("Migrated enderecos table: added favorito column")

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[aiosqlite.Connection]:
        """Scope a unit of work: commit on success, roll back on any error.

        Engine errors are re-raised as AdapterError naming the operation.
        """
        if self.conn is None:
            raise AdapterError(operation, "local database is not open")

        try:
            yield self.conn
            await self.conn.commit()
        except DualStoreError:
            await self.conn.rollback()
            raise
        except sqlite3.Error as e:
            await self.conn.rollback()
            raise AdapterError(operation, e) from e
        except BaseException:
            await self.conn.rollback()
            raise

    @staticmethod
    def _row_id(operation: str, entity: str, record_id: str) -> int:
        try:
            return int(record_id)
        except (TypeError, ValueError):
            raise RecordNotFoundError(operation, entity, str(record_id)) from None

    # =========================================================================
    # Item Operations
    # =========================================================================

    async def create_item(self, draft: ItemDraft) -> Item:
        async with self._transaction("create item") as conn:
            created_at = _now()
            cursor = await conn.execute(
                "INSERT INTO items (nome, descricao, dataCriacao) VALUES (?, ?, ?)",
                (draft.name, draft.description, created_at),
            )
            row_id = cursor.lastrowid

        logger.debug(f"Created local item {row_id}")
        return Item(
            id=str(row_id),
            name=draft.name,
            description=draft.description,
            created_at=created_at,
        )

    async def read_items(self) -> list[Item]:
        async with self._transaction("read items") as conn:
            async with conn.execute(
                f"SELECT {', '.join(ITEM_COLUMNS)} FROM items "
                "ORDER BY dataCriacao DESC, id DESC"
            ) as cursor:
                rows = await cursor.fetchall()

        return [Item.from_row(row) for row in rows]

    async def update_item(self, item_id: str, draft: ItemDraft) -> Item:
        operation = "update item"
        row_id = self._row_id(operation, "item", item_id)

        async with self._transaction(operation) as conn:
            cursor = await conn.execute(
                "UPDATE items SET nome = ?, descricao = ? WHERE id = ?",
                (draft.name, draft.description, row_id),
            )
            if cursor.rowcount == 0:
                raise RecordNotFoundError(operation, "item", str(item_id))

            async with conn.execute(
                f"SELECT {', '.join(ITEM_COLUMNS)} FROM items WHERE id = ?", (row_id,)
            ) as select:
                row = await select.fetchone()

        return Item.from_row(row)

    async def delete_item(self, item_id: str) -> dict[str, str]:
        operation = "delete item"
        row_id = self._row_id(operation, "item", item_id)

        async with self._transaction(operation) as conn:
            cursor = await conn.execute("DELETE FROM items WHERE id = ?", (row_id,))
            if cursor.rowcount == 0:
                raise RecordNotFoundError(operation, "item", str(item_id))

        logger.debug(f"Deleted local item {row_id}")
        return {"message": "Item deleted"}

    # =========================================================================
    # Address Operations
    # =========================================================================

    async def create_address(self, draft: AddressDraft) -> Address:
        async with self._transaction("create address") as conn:
            created_at = _now()
            cursor = await conn.execute(
                """
                INSERT INTO enderecos (cep, rua, bairro, numero, estado, favorito, dataCriacao)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    draft.postal_code,
                    draft.street,
                    draft.neighborhood,
                    draft.number,
                    draft.state,
                    1 if draft.favorite else 0,
                    created_at,
                ),
            )
            row_id = cursor.lastrowid

        logger.debug(f"Created local address {row_id}")
        return Address(
            id=str(row_id),
            postal_code=draft.postal_code,
            street=draft.street,
            neighborhood=draft.neighborhood,
            number=draft.number,
            state=draft.state,
            favorite=draft.favorite,
            created_at=created_at,
        )

    async def read_addresses(self) -> list[Address]:
        async with self._transaction("read addresses") as conn:
            async with conn.execute(
                f"SELECT {', '.join(ADDRESS_COLUMNS)} FROM enderecos "
                "ORDER BY dataCriacao DESC, id DESC"
            ) as cursor:
                rows = await cursor.fetchall()

        return [Address.from_row(row) for row in rows]

    async def update_address(self, address_id: str, draft: AddressDraft) -> Address:
        operation = "update address"
        row_id = self._row_id(operation, "address", address_id)

        async with self._transaction(operation) as conn:
            cursor = await conn.execute(
                """
                UPDATE enderecos
                SET cep = ?, rua = ?, bairro = ?, numero = ?, estado = ?
                WHERE id = ?
                """,
                (
                    draft.postal_code,
                    draft.street,
                    draft.neighborhood,
                    draft.number,
                    draft.state,
                    row_id,
                ),
            )
            if cursor.rowcount == 0:
                raise RecordNotFoundError(operation, "address", str(address_id))

            async with conn.execute(
                f"SELECT {', '.join(ADDRESS_COLUMNS)} FROM enderecos WHERE id = ?", (row_id,)
            ) as select:
                row = await select.fetchone()

        return Address.from_row(row)

    async def delete_address(self, address_id: str) -> dict[str, str]:
        operation = "delete address"
        row_id = self._row_id(operation, "address", address_id)

        async with self._transaction(operation) as conn:
            cursor = await conn.execute("DELETE FROM enderecos WHERE id = ?", (row_id,))
            if cursor.rowcount == 0:
                raise RecordNotFoundError(operation, "address", str(address_id))

        logger.debug(f"Deleted local address {row_id}")
        return {"message": "Address deleted"}

    async def favorite_address(self, address_id: str, favorite: bool) -> dict[str, Any]:
        operation = "favorite address"
        row_id = self._row_id(operation, "address", address_id)
        flag = 1 if favorite else 0

        async with self._transaction(operation) as conn:
            cursor = await conn.execute(
                "UPDATE enderecos SET favorito = ? WHERE id = ?", (flag, row_id)
            )
            if cursor.rowcount == 0:
                raise RecordNotFoundError(operation, "address", str(address_id))

        return {"id": str(address_id), "favorito": flag}
