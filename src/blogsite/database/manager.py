"""
# Database Management Module

This module provides the **MongoDB infrastructure** for the blog service. The
`DatabaseManager` class owns the Motor client, hands out collections and creates
the indexes the content, admin and identity collections rely on.

## Collections

| Collection | Key | Purpose |
|------------|-----|---------|
| `blogs` | `_id` (opaque hex string) | Content Records |
| `admins` | `_id` = identity uid | Admin Identity records |
| `users` | `_id` = uid, unique `email` | Email/password accounts of the identity provider |
| `revoked_tokens` | unique `jti`, TTL on `expires_at` | Signed-out access tokens |

## Usage Examples

```python
from blogsite.database import db_manager

await db_manager.connect()
blogs = db_manager.get_collection(settings.BLOGS_COLLECTION)
doc = await blogs.find_one({"_id": blog_id})
await db_manager.disconnect()
```

## Thread Safety

The manager is designed for **asyncio** and is **not thread-safe**; all calls must
come from the event loop that called `connect()`.

## Module Attributes

Attributes:
    db_logger (Logger): Logger for connection lifecycle (`[DATABASE]`).
    perf_logger (Logger): Logger for timings (`[DB_PERFORMANCE]`).
    health_logger (Logger): Logger for health checks (`[DB_HEALTH]`).
    db_manager (DatabaseManager): Global singleton instance, connected in `main.lifespan`.
"""

import asyncio
import time
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from blogsite.config import settings
from blogsite.managers.logging_manager import get_logger

db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")


class DatabaseManager:
    """
    Manages the MongoDB connection, collections and indexes.

    **Lifecycle:**
    1. **Instantiation**: `client` and `database` are `None`; no I/O happens.
    2. **Connection**: `connect()` builds the client, pings the server, retries with
       exponential backoff (1s, 2s, ...).
    3. **Operations**: `get_collection()` hands out Motor collections.
    4. **Shutdown**: `disconnect()` closes the pool.

    Attributes:
        client (Optional[AsyncIOMotorClient]): Motor client, `None` until connected.
        database (Optional[AsyncIOMotorDatabase]): Selected database, `None` until connected.
    """

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._connection_retries = 3

    def _connection_string(self) -> str:
        if settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
            password = settings.MONGODB_PASSWORD.get_secret_value()
            db_logger.debug("Using authenticated connection to MongoDB")
            return (
                f"mongodb://{settings.MONGODB_USERNAME}:{password}@"
                f"{settings.MONGODB_URL.replace('mongodb://', '')}"
            )
        db_logger.debug("Using unauthenticated connection to MongoDB")
        return settings.MONGODB_URL

    async def connect(self):
        """
        Establish the MongoDB connection with exponential backoff retry logic.

        Up to three attempts are made. Credentials, when configured, are injected into
        the connection string and never logged.

        Raises:
            ServerSelectionTimeoutError: If MongoDB is unreachable after all attempts.
            ConnectionFailure: If authentication fails on the last attempt.
        """
        start_time = time.time()
        db_logger.info("Starting MongoDB connection process")

        for attempt in range(self._connection_retries):
            attempt_start = time.time()
            try:
                db_logger.info("Connection attempt %d/%d to MongoDB", attempt + 1, self._connection_retries)
                db_logger.info(
                    "MongoDB connection config - URL: %s, Database: %s, ServerTimeout: %dms, ConnTimeout: %dms",
                    settings.MONGODB_URL.split("@")[-1],
                    settings.MONGODB_DATABASE,
                    settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    settings.MONGODB_CONNECTION_TIMEOUT,
                )

                self.client = AsyncIOMotorClient(
                    self._connection_string(),
                    serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    connectTimeoutMS=settings.MONGODB_CONNECTION_TIMEOUT,
                    maxPoolSize=50,
                    minPoolSize=5,
                )
                self.database = self.client[settings.MONGODB_DATABASE]

                ping_start = time.time()
                await self.client.admin.command("ping")
                ping_duration = time.time() - ping_start

                perf_logger.info(
                    "MongoDB connection established in %.3fs (ping: %.3fs)",
                    time.time() - start_time,
                    ping_duration,
                )
                db_logger.info("Successfully connected to MongoDB database: %s", settings.MONGODB_DATABASE)
                return

            except (ServerSelectionTimeoutError, ConnectionFailure) as e:
                perf_logger.warning(
                    "Connection attempt %d failed after %.3fs", attempt + 1, time.time() - attempt_start
                )
                db_logger.warning(
                    "Failed to connect to MongoDB (attempt %d/%d): %s", attempt + 1, self._connection_retries, e
                )
                if attempt == self._connection_retries - 1:
                    db_logger.error("All connection attempts failed after %.3fs", time.time() - start_time)
                    raise

                backoff_time = 2**attempt
                db_logger.info("Waiting %.1fs before retry (exponential backoff)", backoff_time)
                await asyncio.sleep(backoff_time)

    async def disconnect(self):
        """Close the client and its pool. Safe to call when not connected."""
        start_time = time.time()
        if self.client is None:
            db_logger.warning("Disconnect called but no active MongoDB connection found")
            return

        self.client.close()
        self.client = None
        self.database = None
        perf_logger.info("MongoDB disconnection completed in %.3fs", time.time() - start_time)
        db_logger.info("Successfully disconnected from MongoDB")

    async def health_check(self) -> bool:
        """
        Ping the server.

        Returns:
            bool: `True` if the database answered, `False` on any failure (never raises).
        """
        start_time = time.time()
        if self.client is None:
            health_logger.warning("Health check failed: No database client available")
            return False

        try:
            await self.client.admin.command("ping")
        except (ServerSelectionTimeoutError, ConnectionFailure) as e:
            health_logger.error("Database health check failed: %s", e)
            return False
        except Exception as e:
            health_logger.error("Unexpected error during health check: %s", e)
            return False

        perf_logger.debug("Database health check completed in %.3fs", time.time() - start_time)
        return True

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Retrieve a collection from the connected database.

        Raises:
            ConnectionError: If `connect()` has not been called.
        """
        if self.database is None:
            db_logger.error("Attempted to get collection '%s' without database connection", collection_name)
            raise ConnectionError("Database not connected. Call connect() first.")

        return self.database[collection_name]

    async def create_indexes(self):
        """Create the indexes used by the public feed, admin panel and identity provider."""
        start_time = time.time()
        db_logger.info("Starting database index creation process")

        blogs = self.get_collection(settings.BLOGS_COLLECTION)
        await self._create_index_if_not_exists(blogs, [("published", ASCENDING), ("published_at", DESCENDING)], {})
        await self._create_index_if_not_exists(blogs, [("created_at", DESCENDING)], {})
        await self._create_index_if_not_exists(blogs, "category", {})

        users = self.get_collection(settings.USERS_COLLECTION)
        await self._create_index_if_not_exists(users, "email", {"unique": True})

        revoked = self.get_collection(settings.REVOKED_TOKENS_COLLECTION)
        await self._create_index_if_not_exists(revoked, "jti", {"unique": True})
        await self._create_index_if_not_exists(revoked, "expires_at", {"expireAfterSeconds": 0})

        perf_logger.info("Database index creation completed in %.3fs", time.time() - start_time)

    async def _create_index_if_not_exists(
        self, collection: AsyncIOMotorCollection, field_spec: Any, options: Dict[str, Any]
    ):
        try:
            await collection.create_index(field_spec, **options)
            db_logger.debug("Ensured index %s on %s", field_spec, collection.name)
        except Exception as e:
            db_logger.warning("Could not create index %s on %s: %s", field_spec, collection.name, e)


# Global singleton, connected in main.lifespan
db_manager = DatabaseManager()
