"""
Shared test configuration and fixtures.

Provides an in-process fake of the remote document API (served by aiohttp's
test server), in-memory SQLite adapters, and a fully wired DualStore.
"""

import logging
import uuid
from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from dualstore.adapters import RemoteAdapter, RemoteConfig, SQLiteAdapter, SQLiteConfig
from dualstore.postal import PostalCodeClient
from dualstore.selector import BackendSelector
from dualstore.store import DualStore

logger = logging.getLogger(__name__)

# Nothing listens on port 1, so connections are refused immediately.
UNREACHABLE_URL = "http://127.0.0.1:1/api"


class FakeDocumentAPI:
    """In-memory stand-in for the remote document API.

    Documents are stored per collection in insertion order. Test hooks:
    - ``down``: every request answers 503
    - ``fail_create``: names/streets whose POST answers 500
    - ``requests``: log of (method, path, body) for assertions
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {
            "items": {},
            "enderecos": {},
        }
        self.down = False
        self.fail_create: set[str] = set()
        self.requests: list[tuple[str, str, Any]] = []
        self._clock = datetime(2024, 1, 1, tzinfo=UTC)

    @property
    def items(self) -> list[dict[str, Any]]:
        return list(self.collections["items"].values())

    @property
    def enderecos(self) -> list[dict[str, Any]]:
        return list(self.collections["enderecos"].values())

    def writes(self) -> list[tuple[str, str, Any]]:
        return [r for r in self.requests if r[0] != "GET"]

    def seed(self, collection: str, **fields: Any) -> dict[str, Any]:
        """Insert a document directly, bypassing HTTP."""
        doc = {"_id": uuid.uuid4().hex, "dataCriacao": self._tick(), **fields}
        self.collections[collection][doc["_id"]] = doc
        return doc

    def _tick(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def app(self) -> web.Application:
        app = web.Application(middlewares=[self._middleware])
        app.router.add_get("/api/{collection}", self._list)
        app.router.add_post("/api/{collection}", self._create)
        app.router.add_put("/api/{collection}/{id}", self._update)
        app.router.add_delete("/api/{collection}/{id}", self._delete)
        app.router.add_put("/api/enderecos/{id}/favorite", self._favorite)
        return app

    @web.middleware
    async def _middleware(self, request: web.Request, handler: Any) -> web.StreamResponse:
        body = await request.json() if request.can_read_body else None
        self.requests.append((request.method, request.path, body))
        if self.down:
            return web.json_response({"message": "service unavailable"}, status=503)
        return await handler(request)

    def _collection(self, request: web.Request) -> dict[str, dict[str, Any]]:
        name = request.match_info["collection"]
        if name not in self.collections:
            raise web.HTTPNotFound()
        return self.collections[name]

    async def _list(self, request: web.Request) -> web.Response:
        return web.json_response(list(self._collection(request).values()))

    async def _create(self, request: web.Request) -> web.Response:
        collection = self._collection(request)
        body = await request.json()
        if body.get("nome") in self.fail_create or body.get("rua") in self.fail_create:
            return web.json_response({"message": "insert failed"}, status=500)
        doc = {"_id": uuid.uuid4().hex, "dataCriacao": self._tick(), **body}
        collection[doc["_id"]] = doc
        return web.json_response(doc, status=201)

    async def _update(self, request: web.Request) -> web.Response:
        collection = self._collection(request)
        doc = collection.get(request.match_info["id"])
        if doc is None:
            return web.json_response({"message": "not found"}, status=404)
        doc.update(await request.json())
        return web.json_response(doc)

    async def _delete(self, request: web.Request) -> web.Response:
        collection = self._collection(request)
        if collection.pop(request.match_info["id"], None) is None:
            return web.json_response({"message": "not found"}, status=404)
        return web.json_response({"message": "Item deletado com sucesso"})

    async def _favorite(self, request: web.Request) -> web.Response:
        doc = self.collections["enderecos"].get(request.match_info["id"])
        if doc is None:
            return web.json_response({"message": "not found"}, status=404)
        doc["favorito"] = (await request.json())["favorito"]
        return web.json_response(doc)


@pytest.fixture
def fake_api() -> FakeDocumentAPI:
    return FakeDocumentAPI()


@pytest.fixture
async def api_url(fake_api: FakeDocumentAPI) -> AsyncIterator[str]:
    """Serve the fake API and yield its base URL."""
    server = TestServer(fake_api.app())
    await server.start_server()
    yield str(server.make_url("/api"))
    await server.close()


@pytest.fixture
async def remote(api_url: str) -> AsyncIterator[RemoteAdapter]:
    adapter = RemoteAdapter(RemoteConfig(base_url=api_url, timeout_seconds=5))
    yield adapter
    await adapter.close()


@pytest.fixture
async def unreachable_remote() -> AsyncIterator[RemoteAdapter]:
    adapter = RemoteAdapter(
        RemoteConfig(base_url=UNREACHABLE_URL, timeout_seconds=2, probe_timeout_seconds=2)
    )
    yield adapter
    await adapter.close()


@pytest.fixture
async def local() -> AsyncIterator[SQLiteAdapter]:
    adapter = await SQLiteAdapter.create(SQLiteConfig(db_path=":memory:"))
    yield adapter
    await adapter.close()


@pytest.fixture
async def store(local: SQLiteAdapter, remote: RemoteAdapter) -> AsyncIterator[DualStore]:
    """DualStore over in-memory SQLite and the fake API, choice kept in memory."""
    postal = PostalCodeClient()
    yield DualStore(BackendSelector(), local, remote, postal)
    await postal.close()
