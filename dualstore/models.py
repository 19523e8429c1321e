"""
Record types shared by both adapters.

Defines the stored records (Item, Address), the drafts that carry user
input into an adapter, and the natural keys used to match records across
backends. Wire (remote JSON) and row (SQLite) mappings live here so the
adapters never disagree on field names.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .exceptions import ValidationError

if TYPE_CHECKING:
    from .postal import PostalAddress


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _required(field_name: str, value: Any) -> str:
    cleaned = _clean(value)
    if not cleaned:
        raise ValidationError(field_name, "is required")
    return cleaned


def as_flag(value: Any) -> bool:
    """Accept the 0/1 integers SQLite and the API use, plus real booleans."""
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def _timestamp(value: Any) -> str | None:
    return None if value is None else str(value)


def _first(data: dict[str, Any], *names: str) -> Any:
    for name in names:
        if name in data:
            return data[name]
    return None


# =============================================================================
# Natural keys
# =============================================================================


@dataclass(frozen=True)
class ItemKey:
    """Content-based identity of an item: name and description, trimmed and case-folded."""

    name: str
    description: str

    @classmethod
    def of(cls, name: str, description: str | None) -> ItemKey:
        return cls(_clean(name).lower(), _clean(description).lower())

    def __str__(self) -> str:
        return f"item({self.name!r}, {self.description!r})"


@dataclass(frozen=True)
class AddressKey:
    """Content-based identity of an address: postal code, street and number."""

    postal_code: str
    street: str
    number: str

    @classmethod
    def of(cls, postal_code: str, street: str, number: str) -> AddressKey:
        return cls(_clean(postal_code).lower(), _clean(street).lower(), _clean(number).lower())

    def __str__(self) -> str:
        return f"address({self.postal_code!r}, {self.street!r}, {self.number!r})"


# =============================================================================
# Items
# =============================================================================


@dataclass(frozen=True)
class ItemDraft:
    """User input for creating or updating an item.

    Validates on construction, so a draft that exists is always persistable.
    """

    name: str
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _required("name", self.name))
        object.__setattr__(self, "description", _clean(self.description))

    @classmethod
    def coerce(cls, data: ItemDraft | Item | dict[str, Any]) -> ItemDraft:
        """Build a draft from a draft, a stored item, or a plain mapping.

        Mappings may use either the Python field names or the wire names
        (``nome``/``descricao``).
        """
        if isinstance(data, ItemDraft):
            return data
        if isinstance(data, Item):
            return data.draft()
        if not isinstance(data, dict):
            raise ValidationError("item", f"unsupported input type {type(data).__name__}")
        return cls(
            name=_first(data, "name", "nome"),
            description=_first(data, "description", "descricao"),
        )

    @property
    def key(self) -> ItemKey:
        return ItemKey.of(self.name, self.description)

    def to_wire(self) -> dict[str, Any]:
        return {"nome": self.name, "descricao": self.description}


@dataclass
class Item:
    """A stored item. ``id`` is always a string, whatever the backend."""

    id: str
    name: str
    description: str = ""
    created_at: str | None = None

    @property
    def key(self) -> ItemKey:
        return ItemKey.of(self.name, self.description)

    def draft(self) -> ItemDraft:
        """Content without identity, as sent when copying to the other store."""
        return ItemDraft(name=self.name, description=self.description)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at,
        }

    def to_wire(self) -> dict[str, Any]:
        return {
            "_id": self.id,
            "nome": self.name,
            "descricao": self.description,
            "dataCriacao": self.created_at,
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Item:
        """Create from a remote document."""
        record_id = _first(data, "_id", "id")
        return cls(
            id=str(record_id) if record_id is not None else "",
            name=_clean(data.get("nome")),
            description=_clean(data.get("descricao")),
            created_at=_timestamp(data.get("dataCriacao")),
        )

    @classmethod
    def from_row(cls, row: Any) -> Item:
        """Create from a SQLite row (id, nome, descricao, dataCriacao)."""
        return cls(
            id=str(row[0]),
            name=row[1] or "",
            description=row[2] or "",
            created_at=row[3],
        )


# =============================================================================
# Addresses
# =============================================================================


@dataclass(frozen=True)
class AddressDraft:
    """User input for creating or updating an address."""

    postal_code: str
    street: str
    neighborhood: str
    number: str
    state: str = ""
    favorite: bool = False

    def __post_init__(self) -> None:
        for name in ("postal_code", "street", "neighborhood", "number"):
            object.__setattr__(self, name, _required(name, getattr(self, name)))
        object.__setattr__(self, "state", _clean(self.state))
        object.__setattr__(self, "favorite", as_flag(self.favorite))

    @classmethod
    def coerce(cls, data: AddressDraft | Address | dict[str, Any]) -> AddressDraft:
        """Build a draft from a draft, a stored address, or a plain mapping."""
        if isinstance(data, AddressDraft):
            return data
        if isinstance(data, Address):
            return data.draft()
        if not isinstance(data, dict):
            raise ValidationError("address", f"unsupported input type {type(data).__name__}")
        return cls(
            postal_code=_first(data, "postal_code", "cep"),
            street=_first(data, "street", "rua"),
            neighborhood=_first(data, "neighborhood", "bairro"),
            number=_first(data, "number", "numero"),
            state=_first(data, "state", "estado"),
            favorite=_first(data, "favorite", "favorito") or False,
        )

    @classmethod
    def with_lookup(
        cls,
        lookup: PostalAddress,
        number: str,
        *,
        street: str | None = None,
        neighborhood: str | None = None,
        state: str | None = None,
    ) -> AddressDraft:
        """Fill street, neighborhood and state from a postal-code lookup.

        Explicit arguments win over looked-up values.
        """
        return cls(
            postal_code=lookup.postal_code,
            street=street or lookup.street,
            neighborhood=neighborhood or lookup.neighborhood,
            number=number,
            state=state or lookup.state,
        )

    @property
    def key(self) -> AddressKey:
        return AddressKey.of(self.postal_code, self.street, self.number)

    def to_wire(self) -> dict[str, Any]:
        return {
            "cep": self.postal_code,
            "rua": self.street,
            "bairro": self.neighborhood,
            "numero": self.number,
            "estado": self.state,
            "favorito": 1 if self.favorite else 0,
        }


@dataclass
class Address:
    """A stored address."""

    id: str
    postal_code: str
    street: str
    neighborhood: str
    number: str
    state: str = ""
    favorite: bool = False
    created_at: str | None = None

    @property
    def key(self) -> AddressKey:
        return AddressKey.of(self.postal_code, self.street, self.number)

    def draft(self) -> AddressDraft:
        return AddressDraft(
            postal_code=self.postal_code,
            street=self.street,
            neighborhood=self.neighborhood,
            number=self.number,
            state=self.state,
            favorite=self.favorite,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "postal_code": self.postal_code,
            "street": self.street,
            "neighborhood": self.neighborhood,
            "number": self.number,
            "state": self.state,
            "favorite": self.favorite,
            "created_at": self.created_at,
        }

    def to_wire(self) -> dict[str, Any]:
        return {
            "_id": self.id,
            "cep": self.postal_code,
            "rua": self.street,
            "bairro": self.neighborhood,
            "numero": self.number,
            "estado": self.state,
            "favorito": 1 if self.favorite else 0,
            "dataCriacao": self.created_at,
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Address:
        """Create from a remote document."""
        record_id = _first(data, "_id", "id")
        return cls(
            id=str(record_id) if record_id is not None else "",
            postal_code=_clean(data.get("cep")),
            street=_clean(data.get("rua")),
            neighborhood=_clean(data.get("bairro")),
            number=_clean(data.get("numero")),
            state=_clean(data.get("estado")),
            favorite=as_flag(data.get("favorito")),
            created_at=_timestamp(data.get("dataCriacao")),
        )

    @classmethod
    def from_row(cls, row: Any) -> Address:
        """Create from a SQLite row.

        Column order: id, cep, rua, bairro, numero, estado, favorito, dataCriacao.
        """
        return cls(
            id=str(row[0]),
            postal_code=row[1] or "",
            street=row[2] or "",
            neighborhood=row[3] or "",
            number=row[4] or "",
            state=row[5] or "",
            favorite=as_flag(row[6]),
            created_at=row[7],
        )
