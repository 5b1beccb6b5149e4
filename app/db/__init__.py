"""
Database module - MongoDB connection for the geocoding cache.
"""
from app.db.mongodb import get_mongo_db, test_mongo_connection

__all__ = [
    "get_mongo_db",
    "test_mongo_connection"
]
