"""MongoDB helpers.

Centralizes creation of Mongo clients and the indexes the repositories rely
on. Collections are handed to repositories explicitly; nothing in the
application reaches for a module-level client.
"""

from __future__ import annotations

import logging
from typing import Any
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

import certifi

from martelinho.config import Settings

log = logging.getLogger(__name__)

SERVICES_COLLECTION = "services"
USERS_COLLECTION = "users"


def get_client(uri: str, tls: bool = False) -> MongoClient:
    """Return a configured PyMongo MongoClient for the provided URI.

    Args:
        uri: MongoDB connection URI.
        tls: Connect over TLS using the certifi CA bundle.

    Returns:
        Configured MongoClient instance.
    """
    options: dict[str, Any] = {
        "serverSelectionTimeoutMS": 30000,
        "socketTimeoutMS": 30000,
        "connectTimeoutMS": 30000,
    }
    if tls:
        options.update(tls=True, tlsCAFile=certifi.where())
    return MongoClient(uri, **options)


def get_db(
    client: MongoClient[dict[str, Any]],
    db_name: str,
) -> Database[dict[str, Any]]:
    """Return the named Database instance from a MongoClient.

    Args:
        client: PyMongo MongoClient.
        db_name: Database name.

    Returns:
        A Database object.
    """
    return client[db_name]


def connect(settings: Settings) -> Database[dict[str, Any]]:
    """Open a client for `settings` and return its database."""
    client = get_client(settings.mongo_uri, tls=settings.mongo_tls)
    return get_db(client, settings.mongo_db)


def ensure_indexes(db: Database[dict[str, Any]]) -> None:
    """Create the indexes used by tenant-scoped range queries and sign-in."""
    db[SERVICES_COLLECTION].create_index(
        [("tenant_id", ASCENDING), ("service_date", DESCENDING)],
        name="tenant_service_date",
    )
    db[USERS_COLLECTION].create_index("email", unique=True, name="email_unique")
    log.info("Indexes ensured on %s and %s", SERVICES_COLLECTION, USERS_COLLECTION)
