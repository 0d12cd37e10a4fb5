"""MongoDB storage backend built on the pymongo async client."""

from datetime import datetime
from typing import Any
from urllib.parse import urlparse
from uuid import UUID, uuid4

import structlog
from pymongo import AsyncMongoClient, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from coursehub.core.modules.presence.models import PageVisit, PageVisitStats, PresenceEntry
from coursehub.core.modules.session.models import Session, SessionId, SessionStatus
from coursehub.core.modules.user.models import User
from coursehub.core.storage.base import PageVisitStore, PresenceStore, SessionStore, Storage, UserStore
from coursehub.errors import DuplicateIdentityError

logger = structlog.get_logger(__name__)

Collection = AsyncCollection[dict[str, Any]]


class MongoUserStore(UserStore):
    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    async def create_indexes(self) -> None:
        await self._collection.create_index([("username", 1)], unique=True)
        await self._collection.create_index([("account_id", 1)], unique=True)

    async def get(self, user_id: UUID) -> User | None:
        return User.from_mongo(await self._collection.find_one({"_id": user_id}))

    async def find_by_username(self, username: str) -> User | None:
        return User.from_mongo(await self._collection.find_one({"username": username}))

    async def find_by_account_id(self, account_id: str) -> User | None:
        return User.from_mongo(await self._collection.find_one({"account_id": account_id}))

    async def list_all(self) -> list[User]:
        return await User.list_cursor(self._collection.find())

    async def insert(self, user: User) -> User:
        try:
            await self._collection.insert_one(user.to_mongo())
        except DuplicateKeyError as e:
            # Lost a registration race; the unique index is the authoritative guard
            key_pattern = (e.details or {}).get("keyPattern", {})
            field = "Account ID" if "account_id" in key_pattern else "Username"
            logger.info("user_insert_duplicate", key_pattern=key_pattern)
            raise DuplicateIdentityError(f"{field} already exists") from e
        return user

    async def set_password_hash(self, user_id: UUID, password_hash: str) -> None:
        await self._collection.update_one({"_id": user_id}, {"$set": {"password_hash": password_hash}})

    async def delete(self, user_id: UUID) -> bool:
        result = await self._collection.delete_one({"_id": user_id})
        return result.deleted_count > 0


class MongoSessionStore(SessionStore):
    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    async def create_indexes(self) -> None:
        await self._collection.create_index([("session_id", 1)], unique=True)
        await self._collection.create_index([("user_id", 1)])
        # MongoDB removes documents once expires_at has passed
        await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0)

    async def insert(self, session: Session) -> None:
        await self._collection.insert_one(session.to_mongo())

    async def get(self, session_id: SessionId) -> Session | None:
        return Session.from_mongo(await self._collection.find_one({"session_id": session_id}))

    async def mark_used(self, session_id: SessionId, at: datetime) -> None:
        await self._collection.update_one(
            {"session_id": session_id, "status": {"$ne": SessionStatus.REVOKED}},
            {"$set": {"status": SessionStatus.ACTIVE, "last_used_at": at}},
        )

    async def set_status(self, session_id: SessionId, status: SessionStatus) -> bool:
        result = await self._collection.update_one({"session_id": session_id}, {"$set": {"status": status}})
        return result.matched_count > 0

    async def delete_stale(self, before: datetime) -> int:
        result = await self._collection.delete_many(
            {"$or": [{"status": SessionStatus.REVOKED}, {"expires_at": {"$lt": before}}]}
        )
        return result.deleted_count


class MongoPresenceStore(PresenceStore):
    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    async def create_indexes(self) -> None:
        await self._collection.create_index([("user_id", 1)], unique=True)
        await self._collection.create_index([("last_active", 1)])

    async def upsert(self, user_id: UUID, last_active: datetime, location: str | None) -> PresenceEntry:
        to_set: dict[str, Any] = {"last_active": last_active}
        on_insert: dict[str, Any] = {"_id": uuid4()}
        if location is not None:
            to_set["current_location"] = location
        else:
            on_insert["current_location"] = None
        doc = await self._collection.find_one_and_update(
            {"user_id": user_id},
            {"$set": to_set, "$setOnInsert": on_insert},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return PresenceEntry.model_validate(doc)

    async def get(self, user_id: UUID) -> PresenceEntry | None:
        return PresenceEntry.from_mongo(await self._collection.find_one({"user_id": user_id}))

    async def list_since(self, since: datetime) -> list[PresenceEntry]:
        return await PresenceEntry.list_cursor(self._collection.find({"last_active": {"$gte": since}}))

    async def count(self) -> int:
        return await self._collection.count_documents({})


class MongoPageVisitStore(PageVisitStore):
    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    async def create_indexes(self) -> None:
        await self._collection.create_index([("user_id", 1)])
        await self._collection.create_index([("page", 1)])

    async def insert(self, visit: PageVisit) -> None:
        await self._collection.insert_one(visit.to_mongo())

    async def list_by_user(self, user_id: UUID) -> list[PageVisit]:
        return await PageVisit.list_cursor(self._collection.find({"user_id": user_id}).sort("visited_at", 1))

    async def most_visited(self, limit: int) -> list[PageVisitStats]:
        pipeline: list[dict[str, Any]] = [
            {"$group": {"_id": "$page", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
            {"$limit": limit},
        ]
        cursor = await self._collection.aggregate(pipeline)
        return [PageVisitStats(page=doc["_id"], count=doc["count"]) async for doc in cursor]


class MongoStorage(Storage):
    def __init__(self, database_url: str) -> None:
        self._client: AsyncMongoClient[dict[str, Any]] = AsyncMongoClient(
            database_url, uuidRepresentation="standard", tz_aware=True
        )
        database = self._client.get_database(urlparse(database_url).path[1:])
        self.users = MongoUserStore(database.get_collection("users"))
        self.sessions = MongoSessionStore(database.get_collection("sessions"))
        self.presence = MongoPresenceStore(database.get_collection("presence"))
        self.page_visits = MongoPageVisitStore(database.get_collection("page_visits"))

    async def open(self) -> None:
        await self.users.create_indexes()
        await self.sessions.create_indexes()
        await self.presence.create_indexes()
        await self.page_visits.create_indexes()

    async def close(self) -> None:
        await self._client.aclose()
