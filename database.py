"""
MongoDB access.

The database handle is built once at startup and stored on the application
state; handlers receive it through the ``get_db`` dependency.
"""

import logging
from datetime import timezone
from typing import List, Optional

from fastapi import Request
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import Settings

logger = logging.getLogger(__name__)

USERS = "users"
PRODUCT_CATEGORIES = "product_categories"
CAMPAIGN_CATEGORIES = "campaign_categories"
CAMPAIGNS = "campaigns"
CAMPAIGN_TARGET_CATEGORIES = "campaign_target_categories"

# Seconds allowed for single-document operations and for full listings.
SHORT_TIMEOUT = 5
LIST_TIMEOUT = 10

# Exclude MongoDB's native key from everything handed back to callers
NO_MONGO_ID = {"_id": 0}


def connect(settings: Settings) -> Database:
    # Datetimes come back as UTC-aware so reads serialise like writes
    client = MongoClient(settings.database_url, tz_aware=True, tzinfo=timezone.utc)
    logger.info("Connecting to MongoDB database %s", settings.database_name)
    return client[settings.database_name]


def ensure_indexes(db: Database) -> None:
    """
    Create the indexes the handlers rely on.

    The unique index on product category names is what actually guarantees
    that two concurrent creations of the same name cannot both succeed.
    """
    for name in (USERS, PRODUCT_CATEGORIES, CAMPAIGN_CATEGORIES, CAMPAIGNS):
        db[name].create_index("id", unique=True)
    db[USERS].create_index("email")
    db[PRODUCT_CATEGORIES].create_index("name", unique=True)
    db[CAMPAIGN_TARGET_CATEGORIES].create_index(
        [("campaign_id", ASCENDING), ("product_category_id", ASCENDING)],
        unique=True,
    )


def get_db(request: Request) -> Database:
    return request.app.state.db


def create_document(db: Database, collection_name: str, data: BaseModel) -> dict:
    """Insert a model and return the stored fields without ``_id``."""
    doc = data.model_dump()
    db[collection_name].insert_one(dict(doc))
    return doc


def get_documents(db: Database, collection_name: str, filter_dict: Optional[dict] = None) -> List[dict]:
    return list(db[collection_name].find(filter_dict or {}, NO_MONGO_ID))
