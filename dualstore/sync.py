"""
Two-way synchronization between the local and the remote store.

A sync pass is one-shot and best-effort:

- Probe the remote store; if it is unreachable, stop before touching data
- Match records across stores by natural key (never by id)
- Copy records missing on one side to the other, one at a time
- Reconcile the address favorite flag: ``True`` on either side wins

Records that already match by key are never edited and nothing is ever
deleted. A failed copy is logged and skipped; the rest of the batch goes on.
Running the pass twice with no writes in between adds nothing the second time.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Hashable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TypeVar

from .adapters.base import StoreAdapter
from .exceptions import ConnectivityError, PartialSyncFailure
from .logging_utils import StoreLoggerAdapter, get_store_logger
from .models import Address, Item

logger = StoreLoggerAdapter(get_store_logger("sync"), {"operation": "sync"})

R = TypeVar("R", Item, Address)


@dataclass
class SyncResult:
    """Result of a sync pass."""

    success: bool
    added_to_remote: int = 0
    added_to_local: int = 0
    added_addresses_to_remote: int = 0
    added_addresses_to_local: int = 0
    updated_favorites: int = 0
    message: str = ""
    error: str | None = None
    failures: list[PartialSyncFailure] = field(default_factory=list)
    duplicate_keys: int = 0
    duration_ms: int = 0

    @property
    def total_added(self) -> int:
        return (
            self.added_to_remote
            + self.added_to_local
            + self.added_addresses_to_remote
            + self.added_addresses_to_local
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the summary shape shown to the user."""
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "addedToMongo": self.added_to_remote,
            "addedToSQLite": self.added_to_local,
            "addedEnderecosToMongo": self.added_addresses_to_remote,
            "addedEnderecosToSQLite": self.added_addresses_to_local,
            "updatedFavoritos": self.updated_favorites,
            "message": self.message,
        }

    def summary(self) -> str:
        parts = [
            f"Sync complete! {self.added_to_remote} item(s) added to the remote store "
            f"and {self.added_to_local} item(s) added to the local store.",
            f"{self.added_addresses_to_remote} address(es) added to the remote store "
            f"and {self.added_addresses_to_local} address(es) added to the local store.",
            f"{self.updated_favorites} favorite(s) reconciled.",
        ]
        if self.failures:
            parts.append(f"{len(self.failures)} record(s) could not be copied.")
        return " ".join(parts)


class Synchronizer:
    """Reconciles a local and a remote store.

    Example:
        >>> synchronizer = Synchronizer(local=sqlite_adapter, remote=remote_adapter)
        >>> result = await synchronizer.sync()
        >>> print(result.message if result.success else result.error)
    """

    def __init__(self, local: StoreAdapter, remote: StoreAdapter):
        self.local = local
        self.remote = remote

    async def sync(self) -> SyncResult:
        """Run one sync pass.

        Never raises: every failure is reported through ``SyncResult``.
        """
        start_time = datetime.now(UTC)

        if not await self._remote_reachable():
            error = ConnectivityError(getattr(self.remote, "base_url", self.remote.name))
            logger.warning(f"Sync aborted: {error.message}")
            return SyncResult(success=False, error=error.message)

        result = SyncResult(success=True)
        try:
            await self._sync_items(result)
            await self._sync_addresses(result)
        except Exception as e:
            logger.exception("Sync failed")
            result.success = False
            result.error = str(e)

        result.duration_ms = int((datetime.now(UTC) - start_time).total_seconds() * 1000)
        if result.success:
            result.message = result.summary()
            logger.info(result.message)
        return result

    async def _remote_reachable(self) -> bool:
        """Run the remote probe; a probe that raises counts as unreachable."""
        try:
            return bool(await self.remote.check_connection())
        except Exception as e:
            logger.warning(f"Connectivity probe failed: {e!r}")
            return False

    # -------------------------------------------------------------------------
    # Passes
    # -------------------------------------------------------------------------

    async def _sync_items(self, result: SyncResult) -> None:
        local_items = self._index(await self.local.read_items(), "local", result)
        remote_items = self._index(await self.remote.read_items(), "remote", result)

        result.added_to_remote = await self._copy_missing(
            local_items,
            remote_items,
            self.remote,
            lambda i: self.remote.create_item(i.draft()),
            result,
        )
        result.added_to_local = await self._copy_missing(
            remote_items,
            local_items,
            self.local,
            lambda i: self.local.create_item(i.draft()),
            result,
        )

    async def _sync_addresses(self, result: SyncResult) -> None:
        local_addresses = self._index(await self.local.read_addresses(), "local", result)
        remote_addresses = self._index(await self.remote.read_addresses(), "remote", result)

        result.added_addresses_to_remote = await self._copy_missing(
            local_addresses,
            remote_addresses,
            self.remote,
            lambda a: self.remote.create_address(a.draft()),
            result,
        )
        result.added_addresses_to_local = await self._copy_missing(
            remote_addresses,
            local_addresses,
            self.local,
            lambda a: self.local.create_address(a.draft()),
            result,
        )
        result.updated_favorites = await self._reconcile_favorites(
            local_addresses, remote_addresses, result
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _index(records: Iterable[R], side: str, result: SyncResult) -> dict[Hashable, R]:
        """Map natural key to record. The last record seen for a key wins."""
        index: dict[Hashable, R] = {}
        for record in records:
            key = record.key
            if key in index:
                result.duplicate_keys += 1
                logger.warning(
                    f"Duplicate {key} in {side} store: record {index[key].id} "
                    f"shadowed by {record.id}"
                )
            index[key] = record
        return index

    @staticmethod
    async def _copy_missing(
        source: dict[Hashable, R],
        target_index: dict[Hashable, R],
        target: StoreAdapter,
        create: Callable[[R], Awaitable[Any]],
        result: SyncResult,
    ) -> int:
        """Create on ``target`` every source record whose key it lacks.

        Creates run sequentially; a failure is recorded and skipped.
        """
        added = 0
        for key, record in source.items():
            if key in target_index:
                continue
            try:
                await create(record)
                added += 1
            except Exception as e:
                failure = PartialSyncFailure(key, target.name, e)
                result.failures.append(failure)
                logger.error(failure.message, extra={"target": target.name, "key": str(key)})
        return added

    async def _reconcile_favorites(
        self,
        local_addresses: dict[Hashable, Address],
        remote_addresses: dict[Hashable, Address],
        result: SyncResult,
    ) -> int:
        """Propagate ``favorite=True`` to whichever side of a matched pair lacks it."""
        updated = 0
        for key, local in local_addresses.items():
            remote = remote_addresses.get(key)
            if remote is None or local.favorite == remote.favorite:
                continue

            if local.favorite:
                target, record = self.remote, remote
            else:
                target, record = self.local, local

            try:
                await target.favorite_address(record.id, True)
                updated += 1
            except Exception as e:
                failure = PartialSyncFailure(key, target.name, e)
                result.failures.append(failure)
                logger.error(failure.message, extra={"target": target.name, "key": str(key)})
        return updated
