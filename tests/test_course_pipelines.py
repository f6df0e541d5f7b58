"""Tests for course and lesson pipelines: visibility, ownership and lesson edits."""

import pytest

from common.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from lms.pipelines import courses as course_pipelines
from lms.pipelines import enrollments as enrollment_pipelines
from lms.pipelines import lessons as lesson_pipelines

from conftest import make_course_data, make_lesson_data


# ─────────────────────────────────────────────────────────────────
# Course visibility
# ─────────────────────────────────────────────────────────────────


class TestGetCourse:
    @pytest.mark.asyncio
    async def test_anonymous_sees_outline_only(
        self, course_service, enrollment_service, user_service, published_course
    ):
        result = await course_pipelines.get_course_pipeline(
            course_service, enrollment_service, user_service, str(published_course["_id"])
        )

        assert result["isEnrolled"] is False
        assert result["isOwner"] is False
        assert "content" not in result["course"]["lessons"][0]
        assert "enrolledStudents" not in result["course"]
        assert result["course"]["educator"]["name"] == "Grace Hopper"

    @pytest.mark.asyncio
    async def test_enrolled_student_sees_content(
        self, course_service, enrollment_service, user_service, student, published_course
    ):
        await enrollment_pipelines.enroll_pipeline(course_service, enrollment_service, student, str(published_course["_id"]))

        result = await course_pipelines.get_course_pipeline(
            course_service, enrollment_service, user_service, str(published_course["_id"]), student
        )

        assert result["isEnrolled"] is True
        assert result["course"]["lessons"][0]["content"] == "Full content of lesson number 1"
        assert "enrolledStudents" not in result["course"]

    @pytest.mark.asyncio
    async def test_owner_sees_roster(self, course_service, enrollment_service, user_service, educator, published_course):
        result = await course_pipelines.get_course_pipeline(
            course_service, enrollment_service, user_service, str(published_course["_id"]), educator
        )

        assert result["isOwner"] is True
        assert result["course"]["enrolledStudents"] == []
        assert "content" in result["course"]["lessons"][0]

    @pytest.mark.asyncio
    async def test_draft_hidden_from_others(self, course_service, enrollment_service, user_service, educator, student):
        draft = await course_service.create_course(educator["_id"], make_course_data(isPublished=False))

        with pytest.raises(NotFoundException):
            await course_pipelines.get_course_pipeline(
                course_service, enrollment_service, user_service, str(draft["_id"]), student
            )

        result = await course_pipelines.get_course_pipeline(
            course_service, enrollment_service, user_service, str(draft["_id"]), educator
        )
        assert result["course"]["isPublished"] is False


class TestListCourses:
    @pytest.mark.asyncio
    async def test_catalogue_strips_content(self, course_service, user_service, published_course):
        courses, total = await course_pipelines.list_courses_pipeline(course_service, user_service, page=1, limit=10)

        assert total == 1
        assert courses[0]["id"] == str(published_course["_id"])
        assert all("content" not in lesson for lesson in courses[0]["lessons"])


# ─────────────────────────────────────────────────────────────────
# Ownership
# ─────────────────────────────────────────────────────────────────


class TestOwnership:
    @pytest.mark.asyncio
    async def test_other_educator_cannot_update(self, course_service, user_service, published_course):
        rival = await user_service.create_user("Rival", "rival@example.com", "hash", "educator")

        with pytest.raises(ForbiddenException) as exc:
            await course_pipelines.update_course_pipeline(
                course_service, rival, str(published_course["_id"]), {"price": 1}
            )
        assert exc.value.code == "NOT_COURSE_OWNER"

    @pytest.mark.asyncio
    async def test_admin_has_no_bypass(self, course_service, user_service, published_course):
        admin = await user_service.create_user("Root", "root@example.com", "hash", "admin")

        with pytest.raises(ForbiddenException):
            await course_pipelines.delete_course_pipeline(course_service, admin, str(published_course["_id"]))

    @pytest.mark.asyncio
    async def test_owner_updates_and_deletes(self, course_service, educator, published_course):
        updated = await course_pipelines.update_course_pipeline(
            course_service, educator, str(published_course["_id"]), {"title": "Python, properly"}
        )
        assert updated["title"] == "Python, properly"

        await course_pipelines.delete_course_pipeline(course_service, educator, str(published_course["_id"]))
        assert await course_service.get_course(published_course["_id"]) is None

    @pytest.mark.asyncio
    async def test_my_courses_includes_drafts(self, course_service, user_service, educator, published_course):
        await course_service.create_course(educator["_id"], make_course_data(isPublished=False))

        result = await course_pipelines.my_courses_pipeline(course_service, user_service, educator)

        assert len(result["courses"]) == 2


# ─────────────────────────────────────────────────────────────────
# Lessons
# ─────────────────────────────────────────────────────────────────


class TestLessonPipelines:
    @pytest.mark.asyncio
    async def test_add_lesson(self, course_service, educator, published_course):
        lesson = await lesson_pipelines.add_lesson_pipeline(
            course_service, educator, str(published_course["_id"]), make_lesson_data(4, duration=20)
        )

        assert lesson["order"] == 4
        course = await course_service.get_course(published_course["_id"])
        assert course["totalLessons"] == 4
        assert course["totalDuration"] == 50

    @pytest.mark.asyncio
    async def test_add_lesson_order_taken(self, course_service, educator, published_course):
        with pytest.raises(ConflictException):
            await lesson_pipelines.add_lesson_pipeline(
                course_service, educator, str(published_course["_id"]), make_lesson_data(2)
            )

    @pytest.mark.asyncio
    async def test_update_lesson_moves_it(self, course_service, educator, published_course):
        first = published_course["lessons"][0]["lessonId"]

        updated = await lesson_pipelines.update_lesson_pipeline(
            course_service, educator, str(published_course["_id"]), first, {"order": 7, "duration": 40}
        )

        assert updated["order"] == 7
        course = await course_service.get_course(published_course["_id"])
        assert course["lessons"][-1]["lessonId"] == first
        assert course["totalDuration"] == 60

    @pytest.mark.asyncio
    async def test_delete_renumbers(self, course_service, educator, published_course):
        middle = published_course["lessons"][1]["lessonId"]

        await lesson_pipelines.delete_lesson_pipeline(course_service, educator, str(published_course["_id"]), middle)

        course = await course_service.get_course(published_course["_id"])
        assert [lesson["order"] for lesson in course["lessons"]] == [1, 2]
        assert middle not in [lesson["lessonId"] for lesson in course["lessons"]]

    @pytest.mark.asyncio
    async def test_reorder(self, course_service, educator, published_course):
        ids = [lesson["lessonId"] for lesson in published_course["lessons"]]

        lessons = await lesson_pipelines.reorder_lessons_pipeline(
            course_service, educator, str(published_course["_id"]), list(reversed(ids))
        )

        assert [lesson["id"] for lesson in lessons] == list(reversed(ids))
        assert [lesson["order"] for lesson in lessons] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_reorder_rejects_partial_list(self, course_service, educator, published_course):
        ids = [lesson["lessonId"] for lesson in published_course["lessons"]]

        with pytest.raises(ValidationException):
            await lesson_pipelines.reorder_lessons_pipeline(
                course_service, educator, str(published_course["_id"]), ids[:2]
            )

    @pytest.mark.asyncio
    async def test_toggle_publish(self, course_service, educator, published_course):
        lesson_id = published_course["lessons"][0]["lessonId"]

        lesson = await lesson_pipelines.toggle_lesson_publish_pipeline(
            course_service, educator, str(published_course["_id"]), lesson_id
        )

        assert lesson["isPublished"] is False

    @pytest.mark.asyncio
    async def test_non_owner_cannot_edit(self, course_service, user_service, published_course):
        rival = await user_service.create_user("Rival", "rival@example.com", "hash", "educator")

        with pytest.raises(ForbiddenException):
            await lesson_pipelines.add_lesson_pipeline(
                course_service, rival, str(published_course["_id"]), make_lesson_data(9)
            )


class TestGetLesson:
    @pytest.mark.asyncio
    async def test_requires_enrollment(self, course_service, enrollment_service, student, published_course):
        lesson_id = published_course["lessons"][0]["lessonId"]

        with pytest.raises(ForbiddenException) as exc:
            await lesson_pipelines.get_lesson_pipeline(
                course_service, enrollment_service, student, str(published_course["_id"]), lesson_id
            )
        assert exc.value.code == "NOT_ENROLLED"

        await enrollment_pipelines.enroll_pipeline(course_service, enrollment_service, student, str(published_course["_id"]))
        lesson = await lesson_pipelines.get_lesson_pipeline(
            course_service, enrollment_service, student, str(published_course["_id"]), lesson_id
        )
        assert lesson["content"] == "Full content of lesson number 1"

    @pytest.mark.asyncio
    async def test_unknown_lesson(self, course_service, enrollment_service, educator, published_course):
        with pytest.raises(NotFoundException):
            await lesson_pipelines.get_lesson_pipeline(
                course_service, enrollment_service, educator, str(published_course["_id"]), "missing"
            )


class TestReviews:
    @pytest.mark.asyncio
    async def test_enrolled_student_reviews(self, course_service, enrollment_service, student, published_course):
        await enrollment_pipelines.enroll_pipeline(course_service, enrollment_service, student, str(published_course["_id"]))

        review = await course_pipelines.add_review_pipeline(
            course_service, student, str(published_course["_id"]), 5, "  Brilliant course  "
        )

        assert review["comment"] == "Brilliant course"
        course = await course_service.get_course(published_course["_id"])
        assert course["rating"] == 5
        assert course["numReviews"] == 1
