"""Shared test fixtures for course platform tests."""

import pytest
import pytest_asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId

from common.auth import JWTAuth
from lms.services.course import CourseService
from lms.services.enrollment import EnrollmentService
from lms.services.user import UserService
from fakes import FakeDatabase


@pytest.fixture
def sample_user_id():
    return str(ObjectId())


@pytest.fixture
def mock_collection():
    collection = AsyncMock()
    # Motor's find() returns a cursor synchronously (not a coroutine),
    # so use MagicMock for it. Async methods like find_one, insert_one,
    # count_documents etc. stay as AsyncMock.
    collection.find = MagicMock()
    collection.name = "courses"
    return collection


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=mock_collection)
    return db


# ─────────────────────────────────────────────────────────────────
# In-memory database and real services
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def user_service(fake_db):
    return UserService(fake_db)


@pytest.fixture
def course_service(fake_db):
    return CourseService(fake_db)


@pytest.fixture
def enrollment_service(fake_db):
    return EnrollmentService(fake_db)


@pytest.fixture
def jwt_auth():
    return JWTAuth(secret="test-secret", access_token_expire_minutes=60)


def make_lesson_data(order: int, duration: int = 10, **overrides) -> dict:
    data = {
        "title": f"Lesson {order}",
        "description": f"Description for lesson {order}",
        "content": f"Full content of lesson number {order}",
        "order": order,
        "duration": duration,
        "isPublished": True,
    }
    data.update(overrides)
    return data


def make_course_data(**overrides) -> dict:
    data = {
        "title": "Intro to Python",
        "description": "Learn Python from the ground up",
        "category": "programming",
        "level": "beginner",
        "price": 49.0,
        "isPublished": True,
    }
    data.update(overrides)
    return data


@pytest_asyncio.fixture
async def educator(user_service):
    return await user_service.create_user("Grace Hopper", "grace@example.com", "hash", "educator")


@pytest_asyncio.fixture
async def student(user_service):
    return await user_service.create_user("Ada Lovelace", "ada@example.com", "hash", "student")


@pytest_asyncio.fixture
async def published_course(course_service, educator):
    return await course_service.create_course(
        educator["_id"],
        make_course_data(),
        [make_lesson_data(1), make_lesson_data(2), make_lesson_data(3)],
    )


@pytest.fixture
def sample_lesson():
    now = datetime.now(timezone.utc)
    return {
        "lessonId": "lesson-a",
        "title": "Variables",
        "description": "Names and values",
        "content": "A variable is a name bound to a value.",
        "videoUrl": "",
        "duration": 12,
        "order": 1,
        "isPublished": True,
        "resources": [],
        "createdAt": now,
        "updatedAt": now,
    }
