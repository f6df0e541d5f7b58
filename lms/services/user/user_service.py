"""
User service for identity lifecycle management.

Handles account creation, lookup, profile updates, deactivation and
aggregate statistics. Accounts are never hard-deleted.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any, Iterable, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from common.utils.exceptions import ConflictException
from lms.database import USERS, to_object_id

logger = logging.getLogger(__name__)

PUBLIC_PROFILE_FIELDS = ("name", "avatar", "bio")


class UserService:
    """
    Manages user accounts.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize UserService.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._users_collection = db[USERS]

    async def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: str,
    ) -> dict:
        """
        Create a new user record.

        Args:
            name: Display name
            email: Email address (stored lower-cased)
            password_hash: bcrypt hash of the password
            role: Account role

        Returns:
            Created user document

        Raises:
            ConflictException: Email already registered
        """
        now = datetime.now(timezone.utc)

        user_doc = {
            "name": name.strip(),
            "email": email.strip().lower(),
            "passwordHash": password_hash,
            "role": role,
            "avatar": "",
            "bio": "",
            "isActive": True,
            "isEmailVerified": False,
            "lastLogin": None,
            "createdAt": now,
            "updatedAt": now,
        }

        try:
            result = await self._users_collection.insert_one(user_doc)
        except DuplicateKeyError:
            logger.info(f"Registration rejected, email already exists: {user_doc['email']}")
            raise ConflictException(
                message="User already exists with this email",
                code="EMAIL_ALREADY_REGISTERED",
            )

        user_doc["_id"] = result.inserted_id
        logger.info(f"User created: {result.inserted_id} ({role})")
        return user_doc

    async def get_user_by_id(self, user_id: str) -> Optional[dict]:
        """
        Load user by MongoDB ID.

        Args:
            user_id: MongoDB ObjectId as string

        Returns:
            User document or None if not found or the id is malformed
        """
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return await self._users_collection.find_one({"_id": oid})

    async def get_user_by_email(self, email: str) -> Optional[dict]:
        """
        Load user by email address.

        Args:
            email: User's email address

        Returns:
            User document or None if not found
        """
        return await self._users_collection.find_one({"email": email.strip().lower()})

    async def update_last_login(self, user_id: Any) -> None:
        """
        Update user's last login timestamp.

        Args:
            user_id: MongoDB user ID
        """
        now = datetime.now(timezone.utc)
        await self._users_collection.update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {"lastLogin": now}}
        )

    async def update_user(self, user_id: str, updates: Dict[str, Any]) -> Optional[dict]:
        """
        Apply a partial update to a user.

        Args:
            user_id: MongoDB user ID
            updates: Fields to set

        Returns:
            Updated user document or None if not found
        """
        oid = to_object_id(user_id)
        if oid is None:
            return None

        updates = {**updates, "updatedAt": datetime.now(timezone.utc)}
        user = await self._users_collection.find_one_and_update(
            {"_id": oid},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )

        if user:
            logger.info(f"User {user_id} updated: {sorted(k for k in updates if k != 'passwordHash')}")
        return user

    async def set_password(self, user_id: Any, password_hash: str) -> None:
        """Replace a user's password hash."""
        await self._users_collection.update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {"passwordHash": password_hash, "updatedAt": datetime.now(timezone.utc)}}
        )
        logger.info(f"Password changed for user {user_id}")

    async def deactivate_user(self, user_id: str) -> Optional[dict]:
        """
        Soft-delete a user by clearing isActive.

        Returns:
            Updated user document or None if not found
        """
        user = await self.update_user(user_id, {"isActive": False})
        if user:
            logger.info(f"User deactivated: {user_id}")
        return user

    async def list_users(self, page: int, limit: int) -> Tuple[List[dict], int]:
        """
        List all users, newest first.

        Returns:
            (users on this page, total user count)
        """
        cursor = self._users_collection.find({}).sort("createdAt", -1).skip((page - 1) * limit).limit(limit)
        users = await cursor.to_list(length=limit)
        total = await self._users_collection.count_documents({})
        return users, total

    async def list_educators(self) -> List[dict]:
        """Active educators sorted by name."""
        cursor = self._users_collection.find({"role": "educator", "isActive": True}).sort("name", 1)
        return await cursor.to_list(length=None)

    async def get_educator(self, user_id: str) -> Optional[dict]:
        """Load an active educator, None for any other account."""
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return await self._users_collection.find_one({"_id": oid, "role": "educator", "isActive": True})

    async def get_public_profiles(self, user_ids: Iterable[Any]) -> Dict[str, dict]:
        """
        Load name/avatar/bio for a set of users.

        Args:
            user_ids: ObjectIds or id strings

        Returns:
            Dict mapping id string to public profile
        """
        oids = list({oid for oid in (to_object_id(u) for u in user_ids) if oid is not None})
        if not oids:
            return {}

        cursor = self._users_collection.find({"_id": {"$in": oids}})
        users = await cursor.to_list(length=len(oids))
        return {str(user["_id"]): self.format_public_profile(user) for user in users}

    async def get_stats(self, recent_days: int = 30) -> Dict[str, Any]:
        """
        Aggregate account statistics.

        Args:
            recent_days: Window for counting recent registrations

        Returns:
            dict with totals per role, active/verified counts and verification rate
        """
        since = datetime.now(timezone.utc) - timedelta(days=recent_days)

        total_users = await self._users_collection.count_documents({})
        total_students = await self._users_collection.count_documents({"role": "student"})
        total_educators = await self._users_collection.count_documents({"role": "educator"})
        active_users = await self._users_collection.count_documents({"isActive": True})
        verified_users = await self._users_collection.count_documents({"isEmailVerified": True})
        recent_registrations = await self._users_collection.count_documents({"createdAt": {"$gte": since}})

        verification_rate = round(verified_users / total_users * 100, 1) if total_users > 0 else 0

        return {
            "totalUsers": total_users,
            "totalStudents": total_students,
            "totalEducators": total_educators,
            "activeUsers": active_users,
            "verifiedUsers": verified_users,
            "recentRegistrations": recent_registrations,
            "verificationRate": verification_rate,
        }

    @staticmethod
    def format_user(user: dict) -> Dict[str, Any]:
        """Convert a user document to its API shape. Never includes the password hash."""
        return {
            "id": str(user["_id"]),
            "name": user.get("name"),
            "email": user.get("email"),
            "role": user.get("role"),
            "avatar": user.get("avatar", ""),
            "bio": user.get("bio", ""),
            "isActive": user.get("isActive", True),
            "isEmailVerified": user.get("isEmailVerified", False),
            "lastLogin": user.get("lastLogin"),
            "createdAt": user.get("createdAt"),
        }

    @staticmethod
    def format_public_profile(user: dict) -> Dict[str, Any]:
        """Publicly visible subset of a user."""
        profile = {"id": str(user["_id"])}
        for field in PUBLIC_PROFILE_FIELDS:
            profile[field] = user.get(field, "")
        return profile
