"""
Tests for the remote store adapter.

Runs against the in-process fake document API from conftest.
"""

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from dualstore.adapters.remote import RemoteAdapter, RemoteConfig
from dualstore.exceptions import AdapterError, RecordNotFoundError
from dualstore.models import AddressDraft, ItemDraft

from conftest import FakeDocumentAPI


def _address(**overrides) -> AddressDraft:
    fields = {
        "postal_code": "01001000",
        "street": "Praça da Sé",
        "neighborhood": "Sé",
        "number": "10",
    }
    fields.update(overrides)
    return AddressDraft(**fields)


class TestRemoteConnection:
    """Connectivity probe."""

    @pytest.mark.asyncio
    async def test_reachable(self, remote: RemoteAdapter) -> None:
        assert await remote.check_connection() is True

    @pytest.mark.asyncio
    async def test_server_error_is_unreachable(
        self, remote: RemoteAdapter, fake_api: FakeDocumentAPI
    ) -> None:
        fake_api.down = True
        assert await remote.check_connection() is False

    @pytest.mark.asyncio
    async def test_refused_connection_is_unreachable(
        self, unreachable_remote: RemoteAdapter
    ) -> None:
        assert await unreachable_remote.check_connection() is False

    @pytest.mark.asyncio
    async def test_timeout_is_unreachable(self) -> None:
        async def slow(request: web.Request) -> web.Response:
            await asyncio.sleep(1)
            return web.json_response([])

        app = web.Application()
        app.router.add_get("/api/items", slow)
        server = TestServer(app)
        await server.start_server()
        adapter = RemoteAdapter(
            RemoteConfig(base_url=str(server.make_url("/api")), probe_timeout_seconds=0.1)
        )
        try:
            assert await adapter.check_connection() is False
        finally:
            await adapter.close()
            await server.close()

    @pytest.mark.asyncio
    async def test_probe_is_a_read(self, remote: RemoteAdapter, fake_api: FakeDocumentAPI) -> None:
        await remote.check_connection()
        assert fake_api.requests == [("GET", "/api/items", None)]


class TestRemoteItems:
    """Item CRUD over HTTP."""

    @pytest.mark.asyncio
    async def test_create_posts_wire_fields(
        self, remote: RemoteAdapter, fake_api: FakeDocumentAPI
    ) -> None:
        item = await remote.create_item(ItemDraft(name="Book", description="Blue"))

        assert fake_api.requests[-1] == (
            "POST",
            "/api/items",
            {"nome": "Book", "descricao": "Blue"},
        )
        assert item.id == fake_api.items[0]["_id"]
        assert item.name == "Book"
        assert item.created_at is not None

    @pytest.mark.asyncio
    async def test_read_newest_first(self, remote: RemoteAdapter) -> None:
        for name in ("first", "second", "third"):
            await remote.create_item(ItemDraft(name=name))
        assert [i.name for i in await remote.read_items()] == ["third", "second", "first"]

    @pytest.mark.asyncio
    async def test_update(self, remote: RemoteAdapter, fake_api: FakeDocumentAPI) -> None:
        created = await remote.create_item(ItemDraft(name="Book"))
        updated = await remote.update_item(created.id, ItemDraft(name="Novel"))

        assert updated.id == created.id
        assert updated.name == "Novel"
        assert fake_api.items[0]["nome"] == "Novel"

    @pytest.mark.asyncio
    async def test_update_missing_raises_not_found(self, remote: RemoteAdapter) -> None:
        with pytest.raises(RecordNotFoundError) as exc_info:
            await remote.update_item("nope", ItemDraft(name="Ghost"))
        assert exc_info.value.entity == "item"

    @pytest.mark.asyncio
    async def test_delete_returns_server_message(
        self, remote: RemoteAdapter, fake_api: FakeDocumentAPI
    ) -> None:
        created = await remote.create_item(ItemDraft(name="Book"))
        result = await remote.delete_item(created.id)

        assert result == {"message": "Item deletado com sucesso"}
        assert fake_api.items == []
        assert all(i.id != created.id for i in await remote.read_items())

    @pytest.mark.asyncio
    async def test_slash_in_id_stays_one_segment(self, remote: RemoteAdapter) -> None:
        with pytest.raises(RecordNotFoundError):
            await remote.delete_item("a/b")

    @pytest.mark.asyncio
    async def test_server_error_carries_cause(
        self, remote: RemoteAdapter, fake_api: FakeDocumentAPI
    ) -> None:
        fake_api.down = True
        with pytest.raises(AdapterError) as exc_info:
            await remote.read_items()
        message = str(exc_info.value)
        assert message.startswith("could not read items")
        assert "503" in message
        assert "service unavailable" in message

    @pytest.mark.asyncio
    async def test_network_failure_raises_adapter_error(
        self, unreachable_remote: RemoteAdapter
    ) -> None:
        with pytest.raises(AdapterError) as exc_info:
            await unreachable_remote.create_item(ItemDraft(name="Book"))
        assert exc_info.value.operation == "create item"
        assert exc_info.value.cause is not None


class TestRemoteAddresses:
    """Address CRUD and the favorite endpoint."""

    @pytest.mark.asyncio
    async def test_create_carries_favorite(
        self, remote: RemoteAdapter, fake_api: FakeDocumentAPI
    ) -> None:
        address = await remote.create_address(_address(favorite=True))

        assert address.favorite is True
        assert fake_api.enderecos[0]["favorito"] == 1
        assert fake_api.enderecos[0]["cep"] == "01001000"

    @pytest.mark.asyncio
    async def test_update_does_not_send_favorite(
        self, remote: RemoteAdapter, fake_api: FakeDocumentAPI
    ) -> None:
        created = await remote.create_address(_address(favorite=True))
        updated = await remote.update_address(created.id, _address(number="12"))

        method, path, body = fake_api.requests[-1]
        assert (method, path) == ("PUT", f"/api/enderecos/{created.id}")
        assert "favorito" not in body
        assert updated.number == "12"
        assert updated.favorite is True

    @pytest.mark.asyncio
    async def test_favorite_endpoint(
        self, remote: RemoteAdapter, fake_api: FakeDocumentAPI
    ) -> None:
        created = await remote.create_address(_address())
        result = await remote.favorite_address(created.id, True)

        assert result == {"id": created.id, "favorito": 1}
        assert fake_api.requests[-1] == (
            "PUT",
            f"/api/enderecos/{created.id}/favorite",
            {"favorito": 1},
        )
        assert (await remote.read_addresses())[0].favorite is True

    @pytest.mark.asyncio
    async def test_favorite_missing_raises_not_found(self, remote: RemoteAdapter) -> None:
        with pytest.raises(RecordNotFoundError):
            await remote.favorite_address("missing", True)

    @pytest.mark.asyncio
    async def test_delete(self, remote: RemoteAdapter, fake_api: FakeDocumentAPI) -> None:
        created = await remote.create_address(_address())
        await remote.delete_address(created.id)
        assert fake_api.enderecos == []

    @pytest.mark.asyncio
    async def test_non_list_response_is_an_error(self) -> None:
        async def odd(request: web.Request) -> web.Response:
            return web.json_response({"items": []})

        app = web.Application()
        app.router.add_get("/api/enderecos", odd)
        server = TestServer(app)
        await server.start_server()
        adapter = RemoteAdapter(RemoteConfig(base_url=str(server.make_url("/api"))))
        try:
            with pytest.raises(AdapterError) as exc_info:
                await adapter.read_addresses()
            assert "expected a JSON list" in str(exc_info.value)
        finally:
            await adapter.close()
            await server.close()


class TestRemoteSession:
    """Session ownership."""

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, api_url: str) -> None:
        adapter = RemoteAdapter(RemoteConfig(base_url=api_url))
        await adapter.check_connection()
        await adapter.close()
        await adapter.close()

    @pytest.mark.asyncio
    async def test_reopens_after_close(self, api_url: str) -> None:
        adapter = RemoteAdapter(RemoteConfig(base_url=api_url))
        await adapter.close()
        assert await adapter.check_connection() is True
        await adapter.close()
