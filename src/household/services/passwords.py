"""Password hashing."""

from dataclasses import dataclass, field
from typing import Protocol

from passlib.context import CryptContext


class PasswordHasher(Protocol):
    """Interface for one-way password hashing."""

    def hash(self, password: str) -> str:
        """Return a salted hash of the password."""

    def verify(self, password: str, password_hash: str) -> bool:
        """Return True if the password matches the hash."""


@dataclass
class BcryptPasswordHasher(PasswordHasher):
    """bcrypt hasher backed by passlib."""

    rounds: int = 12
    _context: CryptContext = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=self.rounds
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        return self._context.verify(password, password_hash)
