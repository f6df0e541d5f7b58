"""Tests for the enrollment pipelines, including saga compensation."""

import pytest
from unittest.mock import AsyncMock

from bson import ObjectId

from common.utils.exceptions import (
    ConflictException,
    InternalServerException,
    InvalidStateException,
    NotFoundException,
)
from lms.pipelines import enrollments as enrollment_pipelines

from conftest import make_course_data


async def _enroll(course_service, enrollment_service, student, course):
    return await enrollment_pipelines.enroll_pipeline(
        course_service, enrollment_service, student, str(course["_id"])
    )


# ─────────────────────────────────────────────────────────────────
# enroll_pipeline
# ─────────────────────────────────────────────────────────────────


class TestEnroll:
    @pytest.mark.asyncio
    async def test_enroll_updates_both_sides(self, course_service, enrollment_service, student, published_course):
        result = await _enroll(course_service, enrollment_service, student, published_course)

        assert result["progress"] == 0
        assert result["isActive"] is True
        assert result["course"]["totalEnrollments"] == 1

        course = await course_service.get_course(published_course["_id"])
        assert course["totalEnrollments"] == 1
        assert [str(s["studentId"]) for s in course["enrolledStudents"]] == [str(student["_id"])]

    @pytest.mark.asyncio
    async def test_unknown_course(self, course_service, enrollment_service, student):
        with pytest.raises(NotFoundException):
            await enrollment_pipelines.enroll_pipeline(course_service, enrollment_service, student, str(ObjectId()))

    @pytest.mark.asyncio
    async def test_unpublished_course(self, course_service, enrollment_service, student, educator):
        draft = await course_service.create_course(educator["_id"], make_course_data(isPublished=False))

        with pytest.raises(InvalidStateException) as exc:
            await _enroll(course_service, enrollment_service, student, draft)
        assert exc.value.code == "COURSE_NOT_PUBLISHED"

    @pytest.mark.asyncio
    async def test_twice(self, course_service, enrollment_service, student, published_course):
        await _enroll(course_service, enrollment_service, student, published_course)

        with pytest.raises(ConflictException) as exc:
            await _enroll(course_service, enrollment_service, student, published_course)
        assert exc.value.code == "ALREADY_ENROLLED"

        course = await course_service.get_course(published_course["_id"])
        assert course["totalEnrollments"] == 1

    @pytest.mark.asyncio
    async def test_roster_failure_retracts_enrollment(
        self, course_service, enrollment_service, student, published_course, fake_db
    ):
        course_service.add_to_roster = AsyncMock(side_effect=RuntimeError("course write failed"))

        with pytest.raises(InternalServerException) as exc:
            await _enroll(course_service, enrollment_service, student, published_course)

        assert exc.value.code == "ENROLLMENT_FAILED"
        assert fake_db["enrollments"].docs == []
        assert not await enrollment_service.has_active_enrollment(student["_id"], published_course["_id"])


# ─────────────────────────────────────────────────────────────────
# cancel_enrollment_pipeline
# ─────────────────────────────────────────────────────────────────


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_updates_both_sides(self, course_service, enrollment_service, student, published_course):
        enrollment = await _enroll(course_service, enrollment_service, student, published_course)

        await enrollment_pipelines.cancel_enrollment_pipeline(
            course_service, enrollment_service, student, enrollment["id"]
        )

        stored = await enrollment_service.get_owned(enrollment["id"], student["_id"])
        assert stored["isActive"] is False
        course = await course_service.get_course(published_course["_id"])
        assert course["totalEnrollments"] == 0
        assert course["enrolledStudents"] == []

    @pytest.mark.asyncio
    async def test_cancel_twice(self, course_service, enrollment_service, student, published_course):
        enrollment = await _enroll(course_service, enrollment_service, student, published_course)
        await enrollment_pipelines.cancel_enrollment_pipeline(
            course_service, enrollment_service, student, enrollment["id"]
        )

        with pytest.raises(InvalidStateException):
            await enrollment_pipelines.cancel_enrollment_pipeline(
                course_service, enrollment_service, student, enrollment["id"]
            )

        course = await course_service.get_course(published_course["_id"])
        assert course["totalEnrollments"] == 0

    @pytest.mark.asyncio
    async def test_roster_failure_reactivates(self, course_service, enrollment_service, student, published_course):
        enrollment = await _enroll(course_service, enrollment_service, student, published_course)
        course_service.remove_from_roster = AsyncMock(side_effect=RuntimeError("course write failed"))

        with pytest.raises(InternalServerException) as exc:
            await enrollment_pipelines.cancel_enrollment_pipeline(
                course_service, enrollment_service, student, enrollment["id"]
            )

        assert exc.value.code == "CANCELLATION_FAILED"
        stored = await enrollment_service.get_owned(enrollment["id"], student["_id"])
        assert stored["isActive"] is True

    @pytest.mark.asyncio
    async def test_course_deleted_meanwhile(self, course_service, enrollment_service, student, published_course):
        enrollment = await _enroll(course_service, enrollment_service, student, published_course)
        await course_service.delete_course(published_course["_id"])

        await enrollment_pipelines.cancel_enrollment_pipeline(
            course_service, enrollment_service, student, enrollment["id"]
        )

        stored = await enrollment_service.get_owned(enrollment["id"], student["_id"])
        assert stored["isActive"] is False

    @pytest.mark.asyncio
    async def test_other_students_enrollment(
        self, course_service, enrollment_service, user_service, student, published_course
    ):
        enrollment = await _enroll(course_service, enrollment_service, student, published_course)
        intruder = await user_service.create_user("Eve", "eve@example.com", "hash", "student")

        with pytest.raises(NotFoundException):
            await enrollment_pipelines.cancel_enrollment_pipeline(
                course_service, enrollment_service, intruder, enrollment["id"]
            )


# ─────────────────────────────────────────────────────────────────
# progress
# ─────────────────────────────────────────────────────────────────


class TestCompleteLesson:
    @pytest.mark.asyncio
    async def test_mirrors_progress_into_roster(self, course_service, enrollment_service, student, published_course):
        enrollment = await _enroll(course_service, enrollment_service, student, published_course)
        lesson_id = published_course["lessons"][0]["lessonId"]

        result = await enrollment_pipelines.complete_lesson_pipeline(
            course_service, enrollment_service, student, enrollment["id"], lesson_id, 12
        )

        assert result["progress"] == 33
        course = await course_service.get_course(published_course["_id"])
        assert course["enrolledStudents"][0]["progress"] == 33
        assert course["enrolledStudents"][0]["completedLessonIds"] == [lesson_id]

    @pytest.mark.asyncio
    async def test_lesson_from_another_course(self, course_service, enrollment_service, student, published_course):
        enrollment = await _enroll(course_service, enrollment_service, student, published_course)

        with pytest.raises(NotFoundException) as exc:
            await enrollment_pipelines.complete_lesson_pipeline(
                course_service, enrollment_service, student, enrollment["id"], "not-a-lesson"
            )
        assert exc.value.code == "LESSON_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_roster_mirror_failure_is_tolerated(
        self, course_service, enrollment_service, student, published_course
    ):
        enrollment = await _enroll(course_service, enrollment_service, student, published_course)
        course_service.update_roster_progress = AsyncMock(side_effect=RuntimeError("course write failed"))

        result = await enrollment_pipelines.complete_lesson_pipeline(
            course_service, enrollment_service, student, enrollment["id"], published_course["lessons"][0]["lessonId"]
        )

        assert result["progress"] == 33


class TestNotesAndProgress:
    @pytest.mark.asyncio
    async def test_notes_filtered_by_lesson(self, course_service, enrollment_service, student, published_course):
        enrollment = await _enroll(course_service, enrollment_service, student, published_course)
        for lesson_id, text in [("l1", "first"), ("l2", "other"), ("l1", "second")]:
            await enrollment_pipelines.add_note_pipeline(enrollment_service, student, enrollment["id"], lesson_id, text)

        notes = await enrollment_pipelines.get_notes_pipeline(enrollment_service, student, enrollment["id"], "l1")

        assert [n["content"] for n in notes] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_progress_snapshot(self, course_service, enrollment_service, student, published_course):
        enrollment = await _enroll(course_service, enrollment_service, student, published_course)
        await enrollment_pipelines.record_quiz_score_pipeline(
            enrollment_service, student, enrollment["id"], "l1", 90, 10, 9
        )

        result = await enrollment_pipelines.progress_pipeline(course_service, enrollment_service, student, enrollment["id"])

        assert result["progress"]["courseTitle"] == published_course["title"]
        assert result["progress"]["totalLessons"] == 3
        assert result["progress"]["averageQuizScore"] == 90

    @pytest.mark.asyncio
    async def test_get_enrollment_outline_has_no_content(
        self, course_service, enrollment_service, user_service, student, published_course
    ):
        enrollment = await _enroll(course_service, enrollment_service, student, published_course)

        result = await enrollment_pipelines.get_enrollment_pipeline(
            course_service, enrollment_service, user_service, student, enrollment["id"]
        )

        assert len(result["course"]["lessons"]) == 3
        assert "content" not in result["course"]["lessons"][0]
        assert result["course"]["educator"]["name"] == "Grace Hopper"

    @pytest.mark.asyncio
    async def test_my_enrollments_excludes_cancelled(
        self, course_service, enrollment_service, user_service, student, published_course, educator
    ):
        other = await course_service.create_course(educator["_id"], make_course_data(title="Second course"))
        first = await _enroll(course_service, enrollment_service, student, published_course)
        await _enroll(course_service, enrollment_service, student, other)
        await enrollment_pipelines.cancel_enrollment_pipeline(course_service, enrollment_service, student, first["id"])

        result = await enrollment_pipelines.my_enrollments_pipeline(
            course_service, enrollment_service, user_service, student
        )

        assert [e["course"]["title"] for e in result["enrollments"]] == ["Second course"]
