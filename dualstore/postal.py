"""
Postal-code (CEP) lookup.

Fills street, neighborhood and state for an address from the ViaCEP
service. The lookup is bounded by a timeout; when the service is slow or
unreachable, the caller is told to fill the fields in by hand instead of
being left waiting.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any

import aiohttp

from .config import DEFAULT_POSTAL_URL
from .exceptions import (
    AdapterError,
    PostalCodeNotFoundError,
    PostalLookupUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

POSTAL_CODE_DIGITS = 8
DEFAULT_LOOKUP_TIMEOUT = 8.0

_NON_DIGITS = re.compile(r"\D")


def normalize_postal_code(value: str) -> str:
    """Strip everything but digits and require exactly eight of them."""
    digits = _NON_DIGITS.sub("", value or "")
    if len(digits) != POSTAL_CODE_DIGITS:
        raise ValidationError(
            "postal_code", f"must have {POSTAL_CODE_DIGITS} digits", value
        )
    return digits


@dataclass(frozen=True)
class PostalAddress:
    """Address fields resolved from a postal code."""

    postal_code: str
    street: str = ""
    neighborhood: str = ""
    state: str = ""

    @classmethod
    def from_viacep(cls, postal_code: str, data: dict[str, Any]) -> PostalAddress:
        return cls(
            postal_code=postal_code,
            street=data.get("logradouro") or "",
            neighborhood=data.get("bairro") or "",
            state=data.get("uf") or "",
        )


class PostalCodeClient:
    """Async ViaCEP client.

    Example:
        >>> async with PostalCodeClient() as client:
        ...     found = await client.lookup("01001-000")
        ...     found.street
        'Praça da Sé'
    """

    def __init__(
        self,
        base_url: str = DEFAULT_POSTAL_URL,
        timeout: float = DEFAULT_LOOKUP_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers={"Accept": "application/json"})
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> PostalCodeClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def lookup(self, postal_code: str) -> PostalAddress:
        """Resolve a postal code.

        Raises:
            ValidationError: If the code does not have eight digits
            PostalCodeNotFoundError: If the service has no entry for it
            PostalLookupUnavailableError: On timeout or connection failure
            AdapterError: On any other HTTP error
        """
        digits = normalize_postal_code(postal_code)
        url = f"{self.base_url}/{digits}/json/"
        session = self._get_session()

        try:
            async with session.get(
                url, timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                if response.status >= 400:
                    raise AdapterError(
                        "look up postal code", f"HTTP {response.status} from {url}"
                    )
                data = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            logger.warning(f"Postal lookup for {digits} timed out after {self.timeout}s")
            raise PostalLookupUnavailableError(digits, e) from e
        except aiohttp.ClientConnectionError as e:
            logger.warning(f"Postal lookup for {digits} failed: {e}")
            raise PostalLookupUnavailableError(digits, e) from e
        except (aiohttp.ClientError, ValueError) as e:
            raise AdapterError("look up postal code", e) from e

        if not isinstance(data, dict) or data.get("erro"):
            raise PostalCodeNotFoundError(digits)

        return PostalAddress.from_viacep(digits, data)
