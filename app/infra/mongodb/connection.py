"""
MongoDB Connection Management

Centralized connection handling for MongoDB, plus index bootstrap for
the users and proposals collections.
"""
import logging
from typing import Optional
from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
import certifi

from app.config import settings

logger = logging.getLogger(__name__)

# Global connection instance
_client: Optional[MongoClient] = None
_database: Optional[Database] = None


def connect(
    connection_string: str = None,
    db_name: str = None
) -> Database:
    """
    Establish MongoDB connection (TLS with certifi CA bundle when enabled).

    Args:
        connection_string: MongoDB URI (defaults to settings)
        db_name: Database name (defaults to settings)

    Returns:
        MongoDB Database instance

    Raises:
        ConnectionFailure: If connection fails
    """
    global _client, _database

    if _database is not None:
        return _database

    conn_str = connection_string or settings.MONGODB_URI
    database_name = db_name or settings.MONGODB_DB_NAME

    tls_options = {"tls": True, "tlsCAFile": certifi.where()} if settings.MONGODB_TLS else {}

    try:
        _client = MongoClient(
            conn_str,
            serverSelectionTimeoutMS=10000,
            connectTimeoutMS=15000,
            socketTimeoutMS=15000,
            retryWrites=True,
            maxPoolSize=50,
            minPoolSize=5,
            **tls_options
        )

        # Test connection
        _client.admin.command('ping')
        _database = _client[database_name]

        logger.info(f"Connected to MongoDB: {database_name}")
        return _database

    except (ConnectionFailure, ServerSelectionTimeoutError) as e:
        logger.error(f"Failed to connect to MongoDB: {str(e)}")
        raise


def use_database(database: Optional[Database]) -> None:
    """
    Install an already-constructed database (e.g. an in-memory client in tests).

    Passing None clears it so the next get_database() reconnects.
    """
    global _database
    _database = database


def get_database() -> Database:
    """Get the database instance, connecting if necessary."""
    if _database is None:
        return connect()
    return _database


def close_database():
    """Close the database connection."""
    global _client, _database
    if _client:
        _client.close()
        _client = None
        _database = None
        logger.info("Disconnected from MongoDB")


def get_collection(collection_name: str):
    """Get a collection from the database."""
    db = get_database()
    return db[collection_name]


def ensure_indexes(db: Database = None) -> None:
    """Create the indexes the stores rely on (idempotent)."""
    db = db if db is not None else get_database()

    db["users"].create_index([("email", ASCENDING)], unique=True)
    db["users"].create_index([("role", ASCENDING)])
    db["users"].create_index([("created_at", DESCENDING)])

    db["proposals"].create_index([("user_id", ASCENDING)])
    db["proposals"].create_index([("created_at", DESCENDING)])

    logger.info("MongoDB indexes ensured for users and proposals")
