from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.access.entitlements import EntitlementResolver
from app.access.errors import ContentNotFoundError
from app.access.gate import AccessGate
from app.access.types import Page, ResourceType
from app.db.models.colleges import College
from app.db.models.courses import Course
from app.db.models.materials import Material
from app.db.models.questions import Question
from app.db.models.universities import University
from app.db.models.videos import Video
from app.db.repo.content_repo import ContentRepo


def _offset(page: int, limit: int) -> int:
    return (page - 1) * limit


class PaidContentService:
    @staticmethod
    async def list_universities(
        session: AsyncSession,
        *,
        student_id: int,
        page: int,
        limit: int,
        now_utc: datetime,
    ) -> Page[University]:
        entitlements = await EntitlementResolver.resolve_access(
            session, student_id=student_id, now_utc=now_utc
        )
        if not entitlements.materials:
            return Page(docs=[], total_docs=0, page=page, limit=limit)

        universities, total = await ContentRepo.list_universities_for_materials(
            session,
            material_ids=entitlements.materials,
            offset=_offset(page, limit),
            limit=limit,
        )
        return Page(docs=universities, total_docs=total, page=page, limit=limit)

    @staticmethod
    async def list_colleges(
        session: AsyncSession,
        *,
        student_id: int,
        university_id: int,
        page: int,
        limit: int,
        now_utc: datetime,
    ) -> Page[College]:
        if await ContentRepo.get_university(session, university_id) is None:
            raise ContentNotFoundError("university")

        entitlements = await EntitlementResolver.resolve_access(
            session, student_id=student_id, now_utc=now_utc
        )
        if not entitlements.materials:
            return Page(docs=[], total_docs=0, page=page, limit=limit)

        colleges, total = await ContentRepo.list_colleges_for_materials(
            session,
            university_id=university_id,
            material_ids=entitlements.materials,
            offset=_offset(page, limit),
            limit=limit,
        )
        return Page(docs=colleges, total_docs=total, page=page, limit=limit)

    @staticmethod
    async def list_materials(
        session: AsyncSession,
        *,
        student_id: int,
        college_id: int,
        page: int,
        limit: int,
        now_utc: datetime,
    ) -> Page[Material]:
        if await ContentRepo.get_college(session, college_id) is None:
            raise ContentNotFoundError("college")

        entitlements = await EntitlementResolver.resolve_access(
            session, student_id=student_id, now_utc=now_utc
        )
        if not entitlements.materials:
            return Page(docs=[], total_docs=0, page=page, limit=limit)

        materials, total = await ContentRepo.list_materials(
            session,
            college_id=college_id,
            material_ids=entitlements.materials,
            offset=_offset(page, limit),
            limit=limit,
        )
        return Page(docs=materials, total_docs=total, page=page, limit=limit)

    @staticmethod
    async def list_questions(
        session: AsyncSession,
        *,
        student_id: int,
        material_id: int,
        page: int,
        limit: int,
        now_utc: datetime,
    ) -> Page[Question]:
        if await ContentRepo.get_material(session, material_id) is None:
            raise ContentNotFoundError("material")

        await AccessGate.require(
            session,
            student_id=student_id,
            resource_type=ResourceType.MATERIAL_QUESTIONS,
            resource_id=material_id,
            now_utc=now_utc,
        )
        questions, total = await ContentRepo.list_questions(
            session,
            material_id=material_id,
            offset=_offset(page, limit),
            limit=limit,
        )
        return Page(docs=questions, total_docs=total, page=page, limit=limit)

    @staticmethod
    async def list_courses(
        session: AsyncSession,
        *,
        student_id: int,
        material_id: int | None,
        page: int,
        limit: int,
        now_utc: datetime,
    ) -> Page[Course]:
        if material_id is not None and await ContentRepo.get_material(session, material_id) is None:
            raise ContentNotFoundError("material")

        entitlements = await EntitlementResolver.resolve_access(
            session, student_id=student_id, now_utc=now_utc
        )
        if entitlements.is_empty():
            return Page(docs=[], total_docs=0, page=page, limit=limit)

        courses, total = await ContentRepo.list_courses(
            session,
            material_id=material_id,
            course_ids=entitlements.courses,
            material_ids=entitlements.materials,
            offset=_offset(page, limit),
            limit=limit,
        )
        return Page(docs=courses, total_docs=total, page=page, limit=limit)

    @staticmethod
    async def list_videos(
        session: AsyncSession,
        *,
        student_id: int,
        course_id: int,
        page: int,
        limit: int,
        now_utc: datetime,
    ) -> Page[Video]:
        if await ContentRepo.get_course(session, course_id) is None:
            raise ContentNotFoundError("course")

        await AccessGate.require(
            session,
            student_id=student_id,
            resource_type=ResourceType.COURSE_VIDEOS,
            resource_id=course_id,
            now_utc=now_utc,
        )
        videos, total = await ContentRepo.list_videos(
            session,
            course_id=course_id,
            offset=_offset(page, limit),
            limit=limit,
        )
        return Page(docs=videos, total_docs=total, page=page, limit=limit)

    @staticmethod
    async def list_lectures(
        session: AsyncSession,
        *,
        student_id: int,
        material_id: int,
        now_utc: datetime,
    ) -> tuple[list[dict[str, Any]], bool]:
        if await ContentRepo.get_material(session, material_id) is None:
            raise ContentNotFoundError("material")

        decision = await AccessGate.check(
            session,
            student_id=student_id,
            resource_type=ResourceType.MATERIAL_LECTURES,
            resource_id=material_id,
            now_utc=now_utc,
        )
        lectures = await ContentRepo.list_lectures(session, material_id=material_id)
        return (
            AccessGate.redact_lectures(lectures, has_full_access=decision.allowed),
            decision.allowed,
        )

    @staticmethod
    async def list_course_files(
        session: AsyncSession,
        *,
        student_id: int,
        course_id: int,
        now_utc: datetime,
    ) -> tuple[list[dict[str, Any]], bool]:
        if await ContentRepo.get_course(session, course_id) is None:
            raise ContentNotFoundError("course")

        decision = await AccessGate.check(
            session,
            student_id=student_id,
            resource_type=ResourceType.COURSE_FILES,
            resource_id=course_id,
            now_utc=now_utc,
        )
        files = await ContentRepo.list_course_files(session, course_id=course_id)
        return (
            AccessGate.redact_course_files(files, has_access=decision.allowed),
            decision.allowed,
        )
