"""Tests for the postal-code lookup client."""

import asyncio
from collections.abc import AsyncIterator

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from dualstore.exceptions import (
    AdapterError,
    PostalCodeNotFoundError,
    PostalLookupUnavailableError,
    ValidationError,
)
from dualstore.postal import PostalAddress, PostalCodeClient, normalize_postal_code

from conftest import UNREACHABLE_URL

SE = {
    "cep": "01001-000",
    "logradouro": "Praça da Sé",
    "bairro": "Sé",
    "localidade": "São Paulo",
    "uf": "SP",
}


async def _lookup_handler(request: web.Request) -> web.Response:
    code = request.match_info["code"]
    if code == "01001000":
        return web.json_response(SE)
    if code == "99999999":
        await asyncio.sleep(1)
        return web.json_response(SE)
    if code == "50000000":
        return web.Response(status=500, text="boom")
    return web.json_response({"erro": True})


@pytest.fixture
async def viacep_url() -> AsyncIterator[str]:
    app = web.Application()
    app.router.add_get("/ws/{code}/json/", _lookup_handler)
    server = TestServer(app)
    await server.start_server()
    yield str(server.make_url("/ws"))
    await server.close()


class TestNormalize:
    @pytest.mark.parametrize("value", ["01001000", "01001-000", " 01001-000 "])
    def test_accepts_formatted_codes(self, value: str) -> None:
        assert normalize_postal_code(value) == "01001000"

    @pytest.mark.parametrize("value", ["", "1234567", "123456789", "abcdefgh"])
    def test_rejects_wrong_length(self, value: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            normalize_postal_code(value)
        assert exc_info.value.field == "postal_code"


class TestLookup:
    """Lookups against a fake ViaCEP."""

    @pytest.mark.asyncio
    async def test_found(self, viacep_url: str) -> None:
        async with PostalCodeClient(base_url=viacep_url) as client:
            found = await client.lookup("01001-000")

        assert found == PostalAddress(
            postal_code="01001000", street="Praça da Sé", neighborhood="Sé", state="SP"
        )

    @pytest.mark.asyncio
    async def test_not_found(self, viacep_url: str) -> None:
        async with PostalCodeClient(base_url=viacep_url) as client:
            with pytest.raises(PostalCodeNotFoundError) as exc_info:
                await client.lookup("00000000")
        assert exc_info.value.postal_code == "00000000"

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self, viacep_url: str) -> None:
        async with PostalCodeClient(base_url=viacep_url, timeout=0.1) as client:
            with pytest.raises(PostalLookupUnavailableError) as exc_info:
                await client.lookup("99999999")
        assert "fill in the address fields manually" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_refused_connection_is_unavailable(self) -> None:
        async with PostalCodeClient(base_url=UNREACHABLE_URL, timeout=2) as client:
            with pytest.raises(PostalLookupUnavailableError):
                await client.lookup("01001000")

    @pytest.mark.asyncio
    async def test_server_error(self, viacep_url: str) -> None:
        async with PostalCodeClient(base_url=viacep_url) as client:
            with pytest.raises(AdapterError) as exc_info:
                await client.lookup("50000000")
        assert "HTTP 500" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invalid_code_makes_no_request(self) -> None:
        client = PostalCodeClient(base_url=UNREACHABLE_URL)
        with pytest.raises(ValidationError):
            await client.lookup("123")
        assert client._session is None
