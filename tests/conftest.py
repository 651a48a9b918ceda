"""Shared test fixtures."""

import copy
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TypeVar
from uuid import uuid4

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

from household.config import Settings
from household.containers import AppContainer
from household.domain.models import (
    GroupRecord,
    GroupRef,
    NewUser,
    UserRecord,
    UserRef,
)
from household.services.errors import DuplicateRecordError
from household.services.groups import GroupRepository, GroupService
from household.services.membership import (
    GroupJoinService,
    JoinSteps,
    MembershipStore,
)
from household.services.passwords import PasswordHasher
from household.services.users import UserRepository, UserService

T = TypeVar("T")


@dataclass
class InMemoryDatabase:
    """Shared user and group documents keyed by id."""

    users: dict[str, dict[str, object]] = field(default_factory=dict)
    groups: dict[str, dict[str, object]] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock)

    def snapshot(self) -> tuple[dict, dict]:
        return copy.deepcopy(self.users), copy.deepcopy(self.groups)


def _user_record(document: dict[str, object]) -> UserRecord:
    return UserRecord(
        id=document["id"],
        username=document["username"],
        name=document["name"],
        phone_number=document["phone_number"],
        score=document["score"],
        group=document["group"],
        group_id=document["group_id"],
        created_at=document["created_at"],
        updated_at=document["updated_at"],
    )


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user repository for tests."""

    database: InMemoryDatabase = field(default_factory=InMemoryDatabase)

    def create_user(self, user: NewUser) -> UserRecord:
        # Check and insert under the lock, as a unique index would.
        with self.database.lock:
            return self._insert_user(user)

    def _insert_user(self, user: NewUser) -> UserRecord:
        for existing in self.database.users.values():
            if (
                existing["username"] == user.username
                or existing["phone_number"] == user.phone_number
            ):
                raise DuplicateRecordError("Username or phone number already exists")
        user_id = str(uuid4())
        document = {
            "id": user_id,
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
        self.database.users[user_id] = document
        return _user_record(document)

    def get_by_username(self, username: str) -> UserRecord | None:
        for document in self.database.users.values():
            if document["username"] == username:
                return _user_record(document)
        return None

    def list_users(self) -> list[UserRecord]:
        return [_user_record(doc) for doc in self.database.users.values()]

    def list_by_score(self) -> list[UserRecord]:
        return sorted(self.list_users(), key=lambda user: user.score, reverse=True)


@dataclass
class InMemoryGroupRepository(GroupRepository):
    """In-memory group repository for tests."""

    database: InMemoryDatabase = field(default_factory=InMemoryDatabase)

    def create_group(self, name: str, created_at: datetime) -> GroupRecord:
        if any(group["name"] == name for group in self.database.groups.values()):
            raise DuplicateRecordError("Group name already exists")
        group_id = str(uuid4())
        self.database.groups[group_id] = {
            "id": group_id,
            "name": name,
            "members": [],
            "created_at": created_at,
            "updated_at": created_at,
        }
        return self._record(self.database.groups[group_id])

    def get_by_name(self, name: str) -> GroupRecord | None:
        for document in self.database.groups.values():
            if document["name"] == name:
                return self._record(document)
        return None

    def list_members(self, group_id: str) -> list[UserRecord]:
        return [
            _user_record(doc)
            for doc in self.database.users.values()
            if doc["group_id"] == group_id
        ]

    def _record(self, document: dict[str, object]) -> GroupRecord:
        return GroupRecord(
            id=document["id"],
            name=document["name"],
            members=list(document["members"]),
            created_at=document["created_at"],
            updated_at=document["updated_at"],
        )


@dataclass
class InMemoryJoinSteps(JoinSteps):
    """Join steps that mutate the in-memory database directly."""

    database: InMemoryDatabase
    before_user_update: Callable[[], None] | None = None
    before_group_update: Callable[[], None] | None = None

    def find_group(self, name: str) -> GroupRef | None:
        for document in self.database.groups.values():
            if document["name"] == name:
                return GroupRef(id=document["id"], name=document["name"])
        return None

    def find_user(self, username: str) -> UserRef | None:
        for document in self.database.users.values():
            if document["username"] == username:
                return UserRef(id=document["id"])
        return None

    def assign_user_group(
        self, user_id: str, group: GroupRef, updated_at: datetime
    ) -> int:
        if self.before_user_update:
            self.before_user_update()
        document = self.database.users.get(user_id)
        if document is None:
            return 0
        document.update(group=group.name, group_id=group.id, updated_at=updated_at)
        return 1

    def add_group_member(self, group_id: str, user_id: str, updated_at: datetime) -> int:
        if self.before_group_update:
            self.before_group_update()
        document = self.database.groups.get(group_id)
        if document is None:
            return 0
        members = document["members"]
        if user_id not in members:
            members.append(user_id)
        document["updated_at"] = updated_at
        return 1


@dataclass
class InMemoryMembershipStore(MembershipStore):
    """Serialized transactions with snapshot rollback on failure."""

    database: InMemoryDatabase = field(default_factory=InMemoryDatabase)
    before_user_update: Callable[[], None] | None = None
    before_group_update: Callable[[], None] | None = None
    commits: int = 0

    def run_in_transaction(self, work: Callable[[JoinSteps], T]) -> T:
        with self.database.lock:
            users, groups = self.database.snapshot()
            steps = InMemoryJoinSteps(
                self.database,
                before_user_update=self.before_user_update,
                before_group_update=self.before_group_update,
            )
            try:
                result = work(steps)
            except Exception:
                self.database.users, self.database.groups = users, groups
                raise
            self.commits += 1
            return result


@dataclass
class FakePasswordHasher(PasswordHasher):
    """Deterministic hasher that skips bcrypt cost."""

    def hash(self, password: str) -> str:
        return f"hashed::{password[::-1]}"

    def verify(self, password: str, password_hash: str) -> bool:
        return password_hash == self.hash(password)


@dataclass
class FakeInsertResult:
    inserted_id: ObjectId


@dataclass
class FakeUpdateResult:
    matched_count: int
    modified_count: int


def _matches(document: dict[str, object], query: dict[str, object]) -> bool:
    return all(document.get(key) == value for key, value in query.items())


def _project(
    document: dict[str, object], projection: dict[str, int] | None
) -> dict[str, object]:
    if not projection:
        return dict(document)
    if any(value for value in projection.values()):
        keys = {key for key, value in projection.items() if value} | {"_id"}
        return {key: value for key, value in document.items() if key in keys}
    return {key: value for key, value in document.items() if key not in projection}


@dataclass
class FakeCollection:
    """Enough of pymongo's Collection for the repositories under test."""

    name: str
    unique_keys: tuple[str, ...] = ()
    documents: list[dict[str, object]] = field(default_factory=list)
    indexes: list[object] = field(default_factory=list)
    sessions_seen: list[object] = field(default_factory=list)
    error: Exception | None = None
    # Consumed one per call; None lets that call through.
    pending_errors: list[Exception | None] = field(default_factory=list)

    def _check(self, session: object | None) -> None:
        self.sessions_seen.append(session)
        if self.pending_errors:
            pending = self.pending_errors.pop(0)
            if pending is not None:
                raise pending
        if self.error is not None:
            raise self.error

    def create_indexes(self, indexes: list[object]) -> list[str]:
        self.indexes.extend(indexes)
        return [str(index) for index in indexes]

    def insert_one(self, document: dict[str, object], session=None) -> FakeInsertResult:  # type: ignore[no-untyped-def]
        self._check(session)
        for key in self.unique_keys:
            if any(existing.get(key) == document.get(key) for existing in self.documents):
                raise DuplicateKeyError(f"E11000 duplicate key error: {key}")
        stored = dict(document)
        stored.setdefault("_id", ObjectId())
        self.documents.append(stored)
        return FakeInsertResult(inserted_id=stored["_id"])

    def find_one(self, query, projection=None, session=None):  # type: ignore[no-untyped-def]
        self._check(session)
        for document in self.documents:
            if _matches(document, query):
                return _project(document, projection)
        return None

    def find(self, query, projection=None, sort=None, session=None):  # type: ignore[no-untyped-def]
        self._check(session)
        found = [_project(doc, projection) for doc in self.documents if _matches(doc, query)]
        for key, direction in reversed(sort or []):
            found.sort(key=lambda doc: doc.get(key), reverse=direction < 0)
        return iter(found)

    def update_one(self, query, update, upsert=False, session=None):  # type: ignore[no-untyped-def]
        self._check(session)
        for document in self.documents:
            if _matches(document, query):
                document.update(update.get("$set", {}))
                for key, value in update.get("$addToSet", {}).items():
                    values = document.setdefault(key, [])
                    if value not in values:
                        values.append(value)
                return FakeUpdateResult(matched_count=1, modified_count=1)
        return FakeUpdateResult(matched_count=0, modified_count=0)


@dataclass
class FakeMongoDatabase:
    collections: dict[str, FakeCollection] = field(
        default_factory=lambda: {
            "users": FakeCollection("users", unique_keys=("username", "phone_number")),
            "groups": FakeCollection("groups", unique_keys=("name",)),
        }
    )

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections[name]


@dataclass(eq=False)
class FakeSession:
    """Client session whose transaction restores documents on failure.

    Like the driver, the callback is re-run when it fails with an error labeled
    TransientTransactionError, up to ``max_attempts`` times.
    """

    database: FakeMongoDatabase
    transaction_options: dict[str, object] = field(default_factory=dict)
    ended: bool = False
    attempts: int = 0
    max_attempts: int = 3

    def __enter__(self) -> "FakeSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.ended = True

    def with_transaction(self, callback, **options):  # type: ignore[no-untyped-def]
        self.transaction_options = options
        saved = {
            name: copy.deepcopy(collection.documents)
            for name, collection in self.database.collections.items()
        }
        while True:
            self.attempts += 1
            try:
                return callback(self)
            except Exception as exc:
                for name, documents in saved.items():
                    self.database.collections[name].documents = copy.deepcopy(documents)
                transient = isinstance(exc, PyMongoError) and exc.has_error_label(
                    "TransientTransactionError"
                )
                if not transient or self.attempts >= self.max_attempts:
                    raise


@dataclass
class FakeAdmin:
    error: Exception | None = None

    def command(self, name: str) -> dict[str, object]:
        if self.error is not None:
            raise self.error
        return {"ok": 1}


@dataclass
class FakeMongoClient:
    database: FakeMongoDatabase = field(default_factory=FakeMongoDatabase)
    admin: FakeAdmin = field(default_factory=FakeAdmin)
    sessions: list[FakeSession] = field(default_factory=list)
    closed: bool = False

    def __getitem__(self, name: str) -> FakeMongoDatabase:
        return self.database

    def start_session(self) -> FakeSession:
        session = FakeSession(self.database)
        self.sessions.append(session)
        return session

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def settings() -> Settings:
    return Settings(
        mongodb_uri="mongodb://localhost:27017/?replicaSet=rs0",
        db_name="household_test",
        bcrypt_rounds=4,
        _env_file=None,
    )


@pytest.fixture
def database() -> InMemoryDatabase:
    return InMemoryDatabase()


@pytest.fixture
def user_repository(database: InMemoryDatabase) -> InMemoryUserRepository:
    return InMemoryUserRepository(database)


@pytest.fixture
def group_repository(database: InMemoryDatabase) -> InMemoryGroupRepository:
    return InMemoryGroupRepository(database)


@pytest.fixture
def membership_store(database: InMemoryDatabase) -> InMemoryMembershipStore:
    return InMemoryMembershipStore(database)


@pytest.fixture
def user_service(user_repository: InMemoryUserRepository) -> UserService:
    return UserService(user_repository, FakePasswordHasher())


@pytest.fixture
def group_service(group_repository: InMemoryGroupRepository) -> GroupService:
    return GroupService(group_repository)


@pytest.fixture
def group_join_service(membership_store: InMemoryMembershipStore) -> GroupJoinService:
    return GroupJoinService(membership_store)


@pytest.fixture
def container(
    settings: Settings,
    user_service: UserService,
    group_service: GroupService,
    group_join_service: GroupJoinService,
) -> AppContainer:
    return AppContainer(
        settings=settings,
        user_service=user_service,
        group_service=group_service,
        group_join_service=group_join_service,
        close_resources=lambda: None,
    )
