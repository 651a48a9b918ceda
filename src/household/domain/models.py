"""Domain models for household users and groups."""

from dataclasses import dataclass, field
from datetime import datetime

DEFAULT_SCORE = 10


@dataclass(frozen=True)
class UserRecord:
    """Represents a user stored in the database, without credentials."""

    id: str
    username: str
    name: str
    phone_number: str
    score: int
    group: str
    group_id: str | None
    created_at: datetime | None
    updated_at: datetime | None


@dataclass(frozen=True)
class NewUser:
    """User fields written at registration."""

    username: str
    password_hash: str
    name: str
    phone_number: str
    created_at: datetime
    score: int = DEFAULT_SCORE


@dataclass(frozen=True)
class GroupRecord:
    """Represents a group and its member ids."""

    id: str
    name: str
    members: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class GroupRef:
    """Identity fields of a group."""

    id: str
    name: str


@dataclass(frozen=True)
class UserRef:
    """Identity fields of a user."""

    id: str
