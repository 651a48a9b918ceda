"""MongoDB-backed user repository."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from household.adapters.mongo_client import USERS
from household.domain.models import NewUser, UserRecord
from household.services.errors import DuplicateRecordError, StoreError
from household.services.users import UserRepository

_logger = logging.getLogger(__name__)

# Every outward read excludes the credential hash.
USER_PROJECTION = {"password": 0}


@dataclass
class MongoUserRepository(UserRepository):
    """MongoDB implementation for user persistence."""

    database: Database

    def create_user(self, user: NewUser) -> UserRecord:
        """Insert a new user document and return it."""
        document = {
            "username": user.username,
            "password": user.password_hash,
            "name": user.name,
            "phone_number": user.phone_number,
            "score": user.score,
            "group": "",
            "group_id": None,
            "created_at": user.created_at,
            "updated_at": user.created_at,
        }
        try:
            result = self.database[USERS].insert_one(document)
        except DuplicateKeyError as exc:
            raise DuplicateRecordError(
                "Username or phone number already exists"
            ) from exc
        except PyMongoError as exc:
            _logger.exception("User insert failed: username=%s", user.username)
            raise StoreError("Failed to create user") from exc
        document["_id"] = result.inserted_id
        return user_from_document(document)

    def get_by_username(self, username: str) -> UserRecord | None:
        """Return the user for a username, if present."""
        try:
            document = self.database[USERS].find_one(
                {"username": username}, USER_PROJECTION
            )
        except PyMongoError as exc:
            _logger.exception("User fetch failed: username=%s", username)
            raise StoreError("Failed to fetch user") from exc
        return user_from_document(document) if document else None

    def list_users(self) -> list[UserRecord]:
        """Return all users in natural order."""
        return self._find({})

    def list_by_score(self) -> list[UserRecord]:
        """Return all users, highest score first."""
        return self._find({}, sort=[("score", DESCENDING)])

    def _find(
        self, query: Mapping[str, object], sort: list[tuple[str, int]] | None = None
    ) -> list[UserRecord]:
        try:
            cursor = self.database[USERS].find(query, USER_PROJECTION, sort=sort)
            return users_from_documents(cursor)
        except PyMongoError as exc:
            _logger.exception("User listing failed")
            raise StoreError("Failed to fetch users") from exc


def users_from_documents(documents: Iterable[Mapping[str, object]]) -> list[UserRecord]:
    return [user_from_document(document) for document in documents]


def user_from_document(document: Mapping[str, object]) -> UserRecord:
    """Decode a user document; the password field is never read."""
    try:
        group_id = document.get("group_id")
        return UserRecord(
            id=str(document["_id"]),
            username=str(document["username"]),
            name=str(document.get("name", "")),
            phone_number=str(document.get("phone_number", "")),
            score=int(document.get("score", 0)),  # type: ignore[arg-type]
            group=str(document.get("group") or ""),
            group_id=str(group_id) if group_id else None,
            created_at=document.get("created_at"),  # type: ignore[arg-type]
            updated_at=document.get("updated_at"),  # type: ignore[arg-type]
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise StoreError("Failed to decode user") from exc
