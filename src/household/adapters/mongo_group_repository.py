"""MongoDB-backed group repository."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from household.adapters.mongo_client import GROUPS, USERS
from household.adapters.mongo_user_repository import (
    USER_PROJECTION,
    users_from_documents,
)
from household.domain.models import GroupRecord, UserRecord
from household.services.errors import DuplicateRecordError, StoreError
from household.services.groups import GroupRepository

_logger = logging.getLogger(__name__)


@dataclass
class MongoGroupRepository(GroupRepository):
    """MongoDB implementation for group persistence."""

    database: Database

    def create_group(self, name: str, created_at: datetime) -> GroupRecord:
        """Insert an empty group document and return it."""
        document = {
            "name": name,
            "members": [],
            "created_at": created_at,
            "updated_at": created_at,
        }
        try:
            result = self.database[GROUPS].insert_one(document)
        except DuplicateKeyError as exc:
            raise DuplicateRecordError("Group name already exists") from exc
        except PyMongoError as exc:
            _logger.exception("Group insert failed: name=%s", name)
            raise StoreError("Failed to create group") from exc
        document["_id"] = result.inserted_id
        return group_from_document(document)

    def get_by_name(self, name: str) -> GroupRecord | None:
        """Return the group for a name, if present."""
        try:
            document = self.database[GROUPS].find_one({"name": name})
        except PyMongoError as exc:
            _logger.exception("Group fetch failed: name=%s", name)
            raise StoreError("Failed to fetch group") from exc
        return group_from_document(document) if document else None

    def list_members(self, group_id: str) -> list[UserRecord]:
        """Return users whose group_id references the group."""
        try:
            object_id = ObjectId(group_id)
        except InvalidId as exc:
            raise StoreError("Invalid group id") from exc
        try:
            cursor = self.database[USERS].find({"group_id": object_id}, USER_PROJECTION)
            return users_from_documents(cursor)
        except PyMongoError as exc:
            _logger.exception("Member listing failed: group_id=%s", group_id)
            raise StoreError("Failed to fetch users") from exc


def group_from_document(document: Mapping[str, object]) -> GroupRecord:
    try:
        return GroupRecord(
            id=str(document["_id"]),
            name=str(document["name"]),
            members=[str(member) for member in document.get("members") or []],  # type: ignore[attr-defined]
            created_at=document.get("created_at"),  # type: ignore[arg-type]
            updated_at=document.get("updated_at"),  # type: ignore[arg-type]
        )
    except (KeyError, TypeError) as exc:
        raise StoreError("Failed to decode group") from exc
