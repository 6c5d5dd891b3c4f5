"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self
from uuid import UUID


@dataclass(frozen=True)
class _UUIDIdentifier:
    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ScheduleId(_UUIDIdentifier):
    """Unique identifier for a Schedule."""


@dataclass(frozen=True)
class SessionId(_UUIDIdentifier):
    """Unique identifier for a Session within its Schedule."""


@dataclass(frozen=True)
class RegistrationId(_UUIDIdentifier):
    """Unique identifier for a Registration."""


@dataclass(frozen=True)
class UserId(_UUIDIdentifier):
    """Unique identifier for a User."""


@dataclass(frozen=True)
class TutorId(_UUIDIdentifier):
    """Unique identifier for a Tutor."""


@dataclass(frozen=True)
class Money:
    """Price representation with validation."""

    amount: Decimal

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


@dataclass(frozen=True)
class Capacity:
    """Seat capacity of a session. At least one seat."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError("Capacity must be an integer")
        if self.value < 1:
            raise ValueError("Capacity must be at least 1")
