"""MongoDB transactional store for group joins."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar

from bson import ObjectId
from pymongo import MongoClient, timeout
from pymongo.client_session import ClientSession
from pymongo.database import Database
from pymongo.errors import PyMongoError
from pymongo.read_concern import ReadConcern
from pymongo.write_concern import WriteConcern

from household.adapters.mongo_client import GROUPS, USERS
from household.domain.models import GroupRef, UserRef
from household.services.errors import StoreError
from household.services.membership import JoinSteps, MembershipStore

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class MongoJoinSteps(JoinSteps):
    """Join reads and writes bound to one client session."""

    database: Database
    session: ClientSession

    def find_group(self, name: str) -> GroupRef | None:
        document = self.database[GROUPS].find_one(
            {"name": name}, {"_id": 1, "name": 1}, session=self.session
        )
        if document is None:
            return None
        return GroupRef(id=str(document["_id"]), name=document["name"])

    def find_user(self, username: str) -> UserRef | None:
        document = self.database[USERS].find_one(
            {"username": username}, {"_id": 1}, session=self.session
        )
        if document is None:
            return None
        return UserRef(id=str(document["_id"]))

    def assign_user_group(
        self, user_id: str, group: GroupRef, updated_at: datetime
    ) -> int:
        result = self.database[USERS].update_one(
            {"_id": ObjectId(user_id)},
            {
                "$set": {
                    "group": group.name,
                    "group_id": ObjectId(group.id),
                    "updated_at": updated_at,
                }
            },
            upsert=False,
            session=self.session,
        )
        return result.matched_count

    def add_group_member(self, group_id: str, user_id: str, updated_at: datetime) -> int:
        result = self.database[GROUPS].update_one(
            {"_id": ObjectId(group_id)},
            {
                "$addToSet": {"members": ObjectId(user_id)},
                "$set": {"updated_at": updated_at},
            },
            session=self.session,
        )
        return result.matched_count


@dataclass
class MongoMembershipStore(MembershipStore):
    """Runs join work inside a MongoDB multi-document transaction.

    ``with_transaction`` aborts on any exception raised by the work and re-runs
    the work on transient transaction errors such as write conflicts between
    concurrent joins to the same group. The whole unit, retries and commit
    included, runs under one ``pymongo.timeout`` deadline.
    """

    client: MongoClient
    database: Database
    transaction_timeout_ms: int = 30_000

    def run_in_transaction(self, work: Callable[[JoinSteps], T]) -> T:
        def callback(session: ClientSession) -> T:
            return work(MongoJoinSteps(self.database, session))

        try:
            with timeout(self.transaction_timeout_ms / 1000):
                with self.client.start_session() as session:
                    return session.with_transaction(
                        callback,
                        read_concern=ReadConcern("snapshot"),
                        write_concern=WriteConcern("majority"),
                    )
        except PyMongoError as exc:
            _logger.exception("Join transaction failed")
            raise StoreError("Join transaction failed") from exc
