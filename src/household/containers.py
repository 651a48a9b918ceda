"""Dependency container wiring for the application."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from household.adapters.mongo_client import connect, ensure_indexes
from household.adapters.mongo_group_repository import MongoGroupRepository
from household.adapters.mongo_membership_store import MongoMembershipStore
from household.adapters.mongo_user_repository import MongoUserRepository
from household.config import Settings
from household.services.groups import GroupService
from household.services.membership import GroupJoinService
from household.services.passwords import BcryptPasswordHasher
from household.services.users import UserService

_logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    user_service: UserService
    group_service: GroupService
    group_join_service: GroupJoinService
    close_resources: Callable[[], None]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Connect to the store and create the default dependency container.

    Raises StoreError if the store is unreachable or indexes cannot be created,
    and pydantic's ValidationError if required settings are missing.
    """
    resolved_settings = settings or Settings()
    client = connect(resolved_settings)
    database = client[resolved_settings.db_name]
    try:
        ensure_indexes(database)
    except Exception:
        client.close()
        raise
    _logger.info("Connected to MongoDB database: %s", resolved_settings.db_name)

    user_service = UserService(
        repository=MongoUserRepository(database),
        password_hasher=BcryptPasswordHasher(rounds=resolved_settings.bcrypt_rounds),
    )
    group_service = GroupService(MongoGroupRepository(database))
    group_join_service = GroupJoinService(
        MongoMembershipStore(
            client=client,
            database=database,
            transaction_timeout_ms=resolved_settings.transaction_timeout_ms,
        )
    )

    def close_resources() -> None:
        client.close()
        _logger.info("Closed MongoDB client")

    return AppContainer(
        settings=resolved_settings,
        user_service=user_service,
        group_service=group_service,
        group_join_service=group_join_service,
        close_resources=close_resources,
    )
