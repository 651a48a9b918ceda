"""MongoDB connection bootstrap."""

import logging

from pymongo import ASCENDING, DESCENDING, IndexModel, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from household.config import Settings
from household.services.errors import StoreError

_logger = logging.getLogger(__name__)

USERS = "users"
GROUPS = "groups"


def connect(settings: Settings) -> MongoClient:
    """Create a client and verify the server is reachable."""
    _logger.info("Connecting to MongoDB database: %s", settings.db_name)
    client: MongoClient = MongoClient(
        settings.mongodb_uri,
        serverSelectionTimeoutMS=settings.mongo_timeout_ms,
        connectTimeoutMS=settings.mongo_timeout_ms,
        timeoutMS=settings.mongo_timeout_ms,
        tz_aware=True,
    )
    try:
        client.admin.command("ping")
    except PyMongoError as exc:
        client.close()
        raise StoreError("Failed to reach MongoDB") from exc
    return client


def ensure_indexes(database: Database) -> None:
    """Create the unique and sort indexes the repositories rely on."""
    try:
        database[USERS].create_indexes(
            [
                IndexModel([("username", ASCENDING)], unique=True),
                IndexModel([("phone_number", ASCENDING)], unique=True),
                IndexModel([("score", DESCENDING)]),
            ]
        )
        database[GROUPS].create_indexes(
            [IndexModel([("name", ASCENDING)], unique=True)]
        )
    except PyMongoError as exc:
        raise StoreError("Failed to create indexes") from exc
    _logger.info("Initialized collections and indexes")
