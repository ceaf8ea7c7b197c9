"""Column types that keep exact values across the database round-trip.

USD values are ``Decimal`` and raw token amounts can exceed 64 bits, so
both are persisted as text. Per-token lists are persisted as JSON arrays
of strings for the same reason.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator


class DecimalString(TypeDecorator[Decimal]):
    """Store a ``Decimal`` as its exact string form."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: Dialect) -> str | None:
        """Serialise a Decimal to text."""
        return None if value is None else str(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> Decimal | None:
        """Parse text back into a Decimal."""
        return None if value is None else Decimal(value)


class BigIntString(TypeDecorator[int]):
    """Store an arbitrarily large ``int`` as decimal text."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value: int | None, dialect: Dialect) -> str | None:
        """Serialise an int to text."""
        return None if value is None else str(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> int | None:
        """Parse text back into an int."""
        return None if value is None else int(value)


class DecimalList(TypeDecorator[list[Decimal]]):
    """Store a list of ``Decimal`` values as a JSON array of strings."""

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: list[Decimal] | None, dialect: Dialect) -> list[str] | None:
        """Serialise each element to text."""
        return None if value is None else [str(v) for v in value]

    def process_result_value(self, value: Any, dialect: Dialect) -> list[Decimal] | None:
        """Parse each element back into a Decimal."""
        return None if value is None else [Decimal(v) for v in value]


class BigIntList(TypeDecorator[list[int]]):
    """Store a list of large ``int`` values as a JSON array of strings."""

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: list[int] | None, dialect: Dialect) -> list[str] | None:
        """Serialise each element to text."""
        return None if value is None else [str(v) for v in value]

    def process_result_value(self, value: Any, dialect: Dialect) -> list[int] | None:
        """Parse each element back into an int."""
        return None if value is None else [int(v) for v in value]
