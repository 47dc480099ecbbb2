from decimal import Decimal
from typing import Any, Optional, TypeVar

from sqlalchemy import Numeric, String, inspect
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

E = TypeVar("E", bound="Base")


class DecimalText(TypeDecorator):
    """Exact decimal stored as its string form, for backends without NUMERIC."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value: Optional[Any], dialect) -> Optional[str]:
        if value is None:
            return None
        return str(Decimal(value))

    def process_result_value(self, value: Optional[str], dialect) -> Optional[Decimal]:
        if value is None:
            return None
        return Decimal(value)


# Unconstrained NUMERIC: token amounts can exceed any fixed precision/scale.
# SQLite would round-trip NUMERIC through float, so it stores text instead.
Amount = Numeric(asdecimal=True).with_variant(DecimalText(), "sqlite")


class Base(DeclarativeBase):
    pass


def column_keys(model: type[Base]) -> list[str]:
    """Attribute names of every mapped column of ``model``."""
    return [attr.key for attr in inspect(model).column_attrs]


def to_row(entity: Base) -> dict[str, Any]:
    """Plain dict of an entity's column values, suitable for bulk insert/upsert."""
    return {key: getattr(entity, key) for key in column_keys(type(entity))}


def from_row(model: type[E], row: dict[str, Any]) -> E:
    """Build a transient (session-less) entity from a column dict."""
    return model(**{key: row[key] for key in column_keys(model) if key in row})


def detached_copy(entity: E) -> E:
    """Transient copy of an entity; mutating it never touches the original."""
    return from_row(type(entity), to_row(entity))
