"""Tests for the MongoDB storage backend against mocked collections."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from coursehub.core.modules.user.models import User
from coursehub.core.storage.mongo import MongoPresenceStore, MongoUserStore
from coursehub.errors import DuplicateIdentityError

T0 = datetime(2024, 9, 2, 8, 0, tzinfo=UTC)


def make_user() -> User:
    return User(username="alice", account_id="S-1001", password_hash="00.00")


class TestMongoUserStoreInsert:
    """Tests for mapping unique index violations."""

    @pytest.fixture(autouse=True)
    def setup(self):
        self.collection = MagicMock()
        self.store = MongoUserStore(self.collection)

    async def test_insert_stores_id_as_underscore_id(self):
        """Test that the user document is written with _id."""
        self.collection.insert_one = AsyncMock()
        user = make_user()

        assert await self.store.insert(user) is user
        doc = self.collection.insert_one.await_args.args[0]
        assert doc["_id"] == user.id
        assert "id" not in doc

    @pytest.mark.parametrize(
        ("key_pattern", "label"),
        [({"username": 1}, "Username"), ({"account_id": 1}, "Account ID")],
    )
    async def test_duplicate_key_becomes_duplicate_identity(self, key_pattern, label):
        """Test that a unique index rejection names the violated field."""
        self.collection.insert_one = AsyncMock(
            side_effect=DuplicateKeyError("E11000 duplicate key error", 11000, {"keyPattern": key_pattern})
        )

        with pytest.raises(DuplicateIdentityError, match=f"^{label} already exists$"):
            await self.store.insert(make_user())

    async def test_duplicate_key_without_details(self):
        """Test that a rejection without key details is reported as a username clash."""
        self.collection.insert_one = AsyncMock(side_effect=DuplicateKeyError("E11000 duplicate key error", 11000))

        with pytest.raises(DuplicateIdentityError, match="Username"):
            await self.store.insert(make_user())


class TestMongoPresenceStoreUpsert:
    """Tests for the atomic presence upsert."""

    @pytest.fixture(autouse=True)
    def setup(self):
        self.collection = MagicMock()
        self.store = MongoPresenceStore(self.collection)
        self.user_id = uuid4()

    def returning(self, location: str | None) -> None:
        doc = {"_id": uuid4(), "user_id": self.user_id, "last_active": T0, "current_location": location}
        self.collection.find_one_and_update = AsyncMock(return_value=doc)

    def update_document(self) -> dict:
        call = self.collection.find_one_and_update.await_args
        assert call.args[0] == {"user_id": self.user_id}
        assert call.kwargs["upsert"] is True
        assert call.kwargs["return_document"] == ReturnDocument.AFTER
        return call.args[1]

    async def test_location_is_set(self):
        """Test that a given location overwrites the stored one."""
        self.returning("/dashboard")

        entry = await self.store.upsert(self.user_id, T0, "/dashboard")

        update = self.update_document()
        assert update["$set"] == {"last_active": T0, "current_location": "/dashboard"}
        assert "current_location" not in update["$setOnInsert"]
        assert entry.current_location == "/dashboard"
        assert entry.user_id == self.user_id

    async def test_missing_location_keeps_previous(self):
        """Test that without a location only last_active is set on existing entries."""
        self.returning("/grades")

        entry = await self.store.upsert(self.user_id, T0, None)

        update = self.update_document()
        assert update["$set"] == {"last_active": T0}
        assert update["$setOnInsert"]["current_location"] is None
        assert "_id" in update["$setOnInsert"]
        assert entry.current_location == "/grades"
