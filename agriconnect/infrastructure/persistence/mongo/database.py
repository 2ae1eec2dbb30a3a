import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, GEOSPHERE

from ....core.config import settings

logger = logging.getLogger(__name__)

USERS = "users"
JOBS = "jobs"
APPLICATIONS = "applications"
CONVERSATIONS = "conversations"
MESSAGES = "messages"
RATINGS = "ratings"


def create_client(uri: Optional[str] = None) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(uri or settings.MONGODB_URI, tz_aware=True, uuidRepresentation="standard")


def get_database(client: AsyncIOMotorClient, name: Optional[str] = None) -> AsyncIOMotorDatabase:
    return client[name or settings.MONGODB_DB]


async def init_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the collection indexes. The unique phone index backs duplicate-registration detection."""
    users = db[USERS]
    await users.create_index([("phone", ASCENDING)], unique=True)
    await users.create_index([("role", ASCENDING)])

    jobs = db[JOBS]
    await jobs.create_index([("farmerId", ASCENDING)])
    await jobs.create_index([("status", ASCENDING)])
    await jobs.create_index([("cropType", ASCENDING)])
    await jobs.create_index([("workType", ASCENDING)])
    await jobs.create_index([("location.geo", GEOSPHERE)], sparse=True)
    await jobs.create_index([("createdAt", DESCENDING)])

    applications = db[APPLICATIONS]
    await applications.create_index([("jobId", ASCENDING)])
    await applications.create_index([("labourerId", ASCENDING)])
    await applications.create_index([("farmerId", ASCENDING)])
    await applications.create_index([("status", ASCENDING)])

    messages = db[MESSAGES]
    await messages.create_index([("conversationId", ASCENDING), ("timestamp", DESCENDING)])
    await messages.create_index([("senderId", ASCENDING)])
    await messages.create_index([("receiverId", ASCENDING)])

    conversations = db[CONVERSATIONS]
    await conversations.create_index([("participants", ASCENDING)])
    await conversations.create_index([("jobId", ASCENDING)])
    await conversations.create_index([("updatedAt", DESCENDING)])

    ratings = db[RATINGS]
    await ratings.create_index([("ratedUserId", ASCENDING)])
    await ratings.create_index(
        [("raterId", ASCENDING), ("ratedUserId", ASCENDING), ("jobId", ASCENDING)], unique=True
    )
    await ratings.create_index([("raterId", ASCENDING)])
    await ratings.create_index([("jobId", ASCENDING)])

    logger.info("Database indexes created successfully")
