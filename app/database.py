"""MongoDB database connection using Motor (async driver)"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from app.config import settings
import logging

logger = logging.getLogger(__name__)


class Database:
    """Database connection manager"""
    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None


database = Database()


async def ensure_indexes(db: AsyncIOMotorDatabase):
    """Create the indexes the queries and the duplicate-order guard rely on"""
    # sparse so that orders without a key never collide
    await db.orders.create_index("idempotency_key", unique=True, sparse=True)
    await db.orders.create_index([("created_at", DESCENDING)])
    await db.orders.create_index([("status", ASCENDING), ("created_at", DESCENDING)])
    await db.orders.create_index("customer_uid")
    await db.products.create_index([("active", ASCENDING), ("categoryId", ASCENDING)])
    await db.categories.create_index("slug", unique=True)
    await db.config.create_index("key", unique=True)
    await db.users.create_index("email", unique=True)
    await db.magic_links.create_index("token", unique=True)
    await db.webhooks.create_index([("active", ASCENDING), ("events", ASCENDING)])
    await db.webhook_logs.create_index([("webhookId", ASCENDING), ("timestamp", DESCENDING)])


async def connect_to_mongo():
    """Connect to MongoDB on application startup"""
    database.client = AsyncIOMotorClient(settings.mongodb_url)
    database.db = database.client[settings.mongodb_db_name]
    await ensure_indexes(database.db)
    logger.info(f"Connected to MongoDB: {settings.mongodb_db_name}")


async def close_mongo_connection():
    """Close MongoDB connection on application shutdown"""
    if database.client:
        database.client.close()
        logger.info("Closed MongoDB connection")


def get_database() -> AsyncIOMotorDatabase:
    """Dependency to get database instance"""
    return database.db
