"""
MongoDB Connection Utility

MongoDB stores:
- Geocoding cache ("city|address" -> lat/lng), when
  GEOCODE_CACHE_BACKEND=mongo

The recruiting data itself (positions, applications, users) lives in the
backend; nothing here duplicates it.
"""
import logging

from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from app.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the portal database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_collection(name: str) -> Collection:
    db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "geocoding_cache": "geocoding_cache",
}


def init_mongo_indexes():
    """
    Create indexes for the geocoding cache.
    Call this once during app startup.
    """
    db = get_mongo_db()

    # Eviction walks entries oldest first
    db[COLLECTIONS["geocoding_cache"]].create_index([("cached_at", ASCENDING)])

    logger.info("MongoDB indexes created successfully")
