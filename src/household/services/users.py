"""User directory business logic."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from household.domain.models import NewUser, UserRecord
from household.services.errors import InvalidInputError, UserNotFoundError
from household.services.passwords import PasswordHasher

_logger = logging.getLogger(__name__)


class UserRepository(Protocol):
    """Persistence interface for user data."""

    def create_user(self, user: NewUser) -> UserRecord:
        """Insert a user; raise DuplicateRecordError on username/phone clash."""

    def get_by_username(self, username: str) -> UserRecord | None:
        """Return the user with this username, if present."""

    def list_users(self) -> list[UserRecord]:
        """Return all users."""

    def list_by_score(self) -> list[UserRecord]:
        """Return all users ordered by score, highest first."""


@dataclass
class UserService:
    """Application service for user registration and lookup."""

    repository: UserRepository
    password_hasher: PasswordHasher

    def register(
        self, username: str, password: str, name: str, phone_number: str
    ) -> UserRecord:
        """Register a new unaffiliated user with a hashed password."""
        if not (username and password and name and phone_number):
            raise InvalidInputError("All fields are required")
        new_user = NewUser(
            username=username,
            password_hash=self.password_hasher.hash(password),
            name=name,
            phone_number=phone_number,
            created_at=datetime.now(tz=UTC),
        )
        created = self.repository.create_user(new_user)
        _logger.info("Registered user: username=%s id=%s", username, created.id)
        return created

    def get_by_username(self, username: str) -> UserRecord:
        """Return a user by username."""
        if not username:
            raise InvalidInputError("Username parameter is required")
        user = self.repository.get_by_username(username)
        if user is None:
            raise UserNotFoundError("User not found")
        return user

    def list_users(self) -> list[UserRecord]:
        return self.repository.list_users()

    def list_by_score(self) -> list[UserRecord]:
        return self.repository.list_by_score()
