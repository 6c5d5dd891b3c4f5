"""Parsing of caller-supplied identifiers and choice values."""

from enum import Enum
from typing import TypeVar

from schedules.domain.errors import DomainError, InvalidIdError

IdT = TypeVar("IdT")
EnumT = TypeVar("EnumT", bound=Enum)


def parse_id(id_type: type[IdT], value: object, what: str = "ID") -> IdT:
    """Build an identifier value object from a string.

    Raises:
        InvalidIdError: If value is not a valid UUID.
    """
    if isinstance(value, id_type):
        return value
    try:
        return id_type.from_string(str(value))
    except (TypeError, ValueError):
        raise InvalidIdError(what) from None


def parse_choice(enum_type: type[EnumT], value: object, error: type[DomainError]) -> EnumT:
    """Convert value to enum_type or raise the given domain error."""
    try:
        return enum_type(value)
    except ValueError:
        raise error() from None
