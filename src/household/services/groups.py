"""Group directory business logic."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from household.domain.models import GroupRecord, UserRecord
from household.services.errors import GroupNotFoundError, InvalidInputError

_logger = logging.getLogger(__name__)


class GroupRepository(Protocol):
    """Persistence interface for group data."""

    def create_group(self, name: str, created_at: datetime) -> GroupRecord:
        """Insert an empty group; raise DuplicateRecordError on name clash."""

    def get_by_name(self, name: str) -> GroupRecord | None:
        """Return the group with this name, if present."""

    def list_members(self, group_id: str) -> list[UserRecord]:
        """Return users affiliated with the group."""


@dataclass
class GroupService:
    """Application service for group creation and membership listing."""

    repository: GroupRepository

    def create_group(self, name: str) -> GroupRecord:
        """Create a group with no members."""
        if not name:
            raise InvalidInputError("Group name is required")
        group = self.repository.create_group(name, created_at=datetime.now(tz=UTC))
        _logger.info("Created group: name=%s id=%s", name, group.id)
        return group

    def get_by_name(self, name: str) -> GroupRecord:
        """Return a group by name."""
        if not name:
            raise InvalidInputError("Group name is required")
        group = self.repository.get_by_name(name)
        if group is None:
            raise GroupNotFoundError("Group not found")
        return group

    def list_members(self, group_name: str) -> list[UserRecord]:
        """Return the users affiliated with the named group."""
        group = self.get_by_name(group_name)
        return self.repository.list_members(group.id)
