"""Group join coordination.

Joining a group touches two documents: the user's ``group``/``group_id`` fields
and the group's ``members`` set. Both writes run inside one store transaction so
that no reader can observe one side of the relationship without the other.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol, TypeVar

from household.domain.models import GroupRef, UserRef
from household.services.errors import (
    GroupDocumentNotFoundError,
    GroupNotFoundError,
    InconsistentStateError,
    InvalidInputError,
    UserDocumentNotFoundError,
    UserNotFoundError,
)

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class JoinSteps(Protocol):
    """Reads and writes available inside a join transaction."""

    def find_group(self, name: str) -> GroupRef | None:
        """Return the group's identity fields, if present."""

    def find_user(self, username: str) -> UserRef | None:
        """Return the user's identity fields, if present."""

    def assign_user_group(
        self, user_id: str, group: GroupRef, updated_at: datetime
    ) -> int:
        """Point the user at the group and return the matched document count."""

    def add_group_member(self, group_id: str, user_id: str, updated_at: datetime) -> int:
        """Add the user to the group's member set and return the matched count."""


class MembershipStore(Protocol):
    """Runs a unit of work atomically against the store."""

    def run_in_transaction(self, work: Callable[[JoinSteps], T]) -> T:
        """Run ``work`` in a transaction; commit on return, abort on raise."""


@dataclass
class GroupJoinService:
    """Coordinates atomic user/group membership updates."""

    store: MembershipStore

    def join_group(self, username: str, group_name: str) -> GroupRef:
        """Affiliate the user with the group, updating both sides or neither.

        Raises:
            InvalidInputError: ``username`` or ``group_name`` is empty.
            GroupNotFoundError: no group has ``group_name``.
            UserNotFoundError: no user has ``username``.
            UserDocumentNotFoundError: the user vanished before its update.
            GroupDocumentNotFoundError: the group vanished before its update.
            StoreError: the store failed or the transaction timed out.
        """
        if not username or not group_name:
            raise InvalidInputError("Username and group name are required")

        def work(steps: JoinSteps) -> GroupRef:
            return _join(steps, username, group_name)

        try:
            group = self.store.run_in_transaction(work)
        except InconsistentStateError:
            _logger.error(
                "Join aborted on inconsistent state: username=%s group=%s",
                username,
                group_name,
            )
            raise
        _logger.info("User joined group: username=%s group=%s", username, group.name)
        return group


def _join(steps: JoinSteps, username: str, group_name: str) -> GroupRef:
    group = steps.find_group(group_name)
    if group is None:
        raise GroupNotFoundError("Group not found")

    user = steps.find_user(username)
    if user is None:
        raise UserNotFoundError("User not found")

    if steps.assign_user_group(user.id, group, datetime.now(tz=UTC)) == 0:
        raise UserDocumentNotFoundError("User document not found")

    if steps.add_group_member(group.id, user.id, datetime.now(tz=UTC)) == 0:
        raise GroupDocumentNotFoundError("Group document not found")

    return group
