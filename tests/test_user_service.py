"""Unit tests for UserService against the in-memory database."""

import pytest
from datetime import datetime, timedelta, timezone

from common.utils.exceptions import ConflictException
from lms.services.user import UserService


class TestCreateUser:
    @pytest.mark.asyncio
    async def test_normalises_and_defaults(self, user_service):
        user = await user_service.create_user("  Ada  ", " ADA@Example.com ", "hash", "student")

        assert user["name"] == "Ada"
        assert user["email"] == "ada@example.com"
        assert user["isActive"] is True
        assert user["isEmailVerified"] is False
        assert user["_id"] is not None

    @pytest.mark.asyncio
    async def test_duplicate_email(self, user_service, student):
        with pytest.raises(ConflictException) as exc:
            await user_service.create_user("Other", "ADA@example.com", "hash", "student")
        assert exc.value.code == "EMAIL_ALREADY_REGISTERED"


class TestLookup:
    @pytest.mark.asyncio
    async def test_by_id_and_email(self, user_service, student):
        assert (await user_service.get_user_by_id(str(student["_id"])))["email"] == "ada@example.com"
        assert (await user_service.get_user_by_email("Ada@Example.com"))["_id"] == student["_id"]

    @pytest.mark.asyncio
    async def test_malformed_id(self, user_service):
        assert await user_service.get_user_by_id("not-an-id") is None

    @pytest.mark.asyncio
    async def test_get_educator_only_matches_educators(self, user_service, student, educator):
        assert await user_service.get_educator(str(student["_id"])) is None
        assert (await user_service.get_educator(str(educator["_id"])))["_id"] == educator["_id"]

    @pytest.mark.asyncio
    async def test_public_profiles(self, user_service, student, educator):
        profiles = await user_service.get_public_profiles([student["_id"], str(educator["_id"]), "bad"])
        assert set(profiles) == {str(student["_id"]), str(educator["_id"])}
        assert set(profiles[str(student["_id"])]) == {"id", "name", "avatar", "bio"}


class TestUpdates:
    @pytest.mark.asyncio
    async def test_update_user(self, user_service, student):
        updated = await user_service.update_user(str(student["_id"]), {"bio": "Mathematician"})
        assert updated["bio"] == "Mathematician"
        assert updated["updatedAt"] >= student["updatedAt"]

    @pytest.mark.asyncio
    async def test_update_unknown(self, user_service):
        assert await user_service.update_user("5f0000000000000000000000", {"bio": "x"}) is None

    @pytest.mark.asyncio
    async def test_deactivate_keeps_record(self, user_service, student, fake_db):
        user = await user_service.deactivate_user(str(student["_id"]))
        assert user["isActive"] is False
        assert len(fake_db["users"].docs) == 1

    @pytest.mark.asyncio
    async def test_set_password(self, user_service, student):
        await user_service.set_password(student["_id"], "new-hash")
        assert (await user_service.get_user_by_id(str(student["_id"])))["passwordHash"] == "new-hash"


class TestListing:
    @pytest.mark.asyncio
    async def test_list_users_paginates(self, user_service):
        for i in range(5):
            await user_service.create_user(f"User {i}", f"user{i}@example.com", "hash", "student")

        users, total = await user_service.list_users(page=2, limit=2)

        assert total == 5
        assert len(users) == 2

    @pytest.mark.asyncio
    async def test_list_educators_active_only(self, user_service, educator):
        other = await user_service.create_user("Alan Turing", "alan@example.com", "hash", "educator")
        await user_service.deactivate_user(str(other["_id"]))

        educators = await user_service.list_educators()

        assert [e["_id"] for e in educators] == [educator["_id"]]


class TestStats:
    @pytest.mark.asyncio
    async def test_counts(self, user_service, student, educator, fake_db):
        await user_service.update_user(str(student["_id"]), {"isEmailVerified": True})
        # One old account outside the recent window
        old = await user_service.create_user("Old Timer", "old@example.com", "hash", "student")
        for doc in fake_db["users"].docs:
            if doc["_id"] == old["_id"]:
                doc["createdAt"] = datetime.now(timezone.utc) - timedelta(days=90)

        stats = await user_service.get_stats(recent_days=30)

        assert stats["totalUsers"] == 3
        assert stats["totalStudents"] == 2
        assert stats["totalEducators"] == 1
        assert stats["activeUsers"] == 3
        assert stats["verifiedUsers"] == 1
        assert stats["recentRegistrations"] == 2
        assert stats["verificationRate"] == 33.3

    @pytest.mark.asyncio
    async def test_empty(self, user_service):
        stats = await user_service.get_stats()
        assert stats["totalUsers"] == 0
        assert stats["verificationRate"] == 0


class TestFormatting:
    @pytest.mark.asyncio
    async def test_format_user_hides_hash(self, student):
        formatted = UserService.format_user(student)
        assert "passwordHash" not in formatted
        assert formatted["id"] == str(student["_id"])
