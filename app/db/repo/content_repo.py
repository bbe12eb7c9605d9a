from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.colleges import College
from app.db.models.course_files import CourseFile
from app.db.models.courses import Course
from app.db.models.lectures import Lecture
from app.db.models.materials import Material
from app.db.models.questions import Question
from app.db.models.universities import University
from app.db.models.videos import Video


async def _paginate(
    session: AsyncSession,
    stmt: Select[Any],
    *,
    offset: int,
    limit: int,
) -> tuple[list[Any], int]:
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = int((await session.execute(count_stmt)).scalar_one() or 0)
    result = await session.execute(stmt.offset(offset).limit(limit))
    return list(result.scalars().all()), total


class ContentRepo:
    @staticmethod
    async def get_university(session: AsyncSession, university_id: int) -> University | None:
        return await session.get(University, university_id)

    @staticmethod
    async def get_college(session: AsyncSession, college_id: int) -> College | None:
        return await session.get(College, college_id)

    @staticmethod
    async def get_material(session: AsyncSession, material_id: int) -> Material | None:
        return await session.get(Material, material_id)

    @staticmethod
    async def get_course(session: AsyncSession, course_id: int) -> Course | None:
        return await session.get(Course, course_id)

    @staticmethod
    async def list_existing_material_ids(session: AsyncSession, ids: Iterable[int]) -> set[int]:
        candidates = tuple(set(ids))
        if not candidates:
            return set()
        result = await session.execute(select(Material.id).where(Material.id.in_(candidates)))
        return {int(value) for value in result.scalars().all()}

    @staticmethod
    async def list_existing_course_ids(session: AsyncSession, ids: Iterable[int]) -> set[int]:
        candidates = tuple(set(ids))
        if not candidates:
            return set()
        result = await session.execute(select(Course.id).where(Course.id.in_(candidates)))
        return {int(value) for value in result.scalars().all()}

    @staticmethod
    async def list_universities_for_materials(
        session: AsyncSession,
        *,
        material_ids: Iterable[int],
        offset: int,
        limit: int,
    ) -> tuple[list[University], int]:
        college_ids = select(Material.college_id).where(Material.id.in_(tuple(material_ids)))
        university_ids = select(College.university_id).where(College.id.in_(college_ids))
        stmt = (
            select(University)
            .where(University.id.in_(university_ids))
            .order_by(University.name.asc(), University.id.asc())
        )
        return await _paginate(session, stmt, offset=offset, limit=limit)

    @staticmethod
    async def list_colleges_for_materials(
        session: AsyncSession,
        *,
        university_id: int,
        material_ids: Iterable[int],
        offset: int,
        limit: int,
    ) -> tuple[list[College], int]:
        college_ids = select(Material.college_id).where(Material.id.in_(tuple(material_ids)))
        stmt = (
            select(College)
            .where(
                College.university_id == university_id,
                College.id.in_(college_ids),
            )
            .order_by(College.name.asc(), College.id.asc())
        )
        return await _paginate(session, stmt, offset=offset, limit=limit)

    @staticmethod
    async def list_materials(
        session: AsyncSession,
        *,
        college_id: int,
        material_ids: Iterable[int],
        offset: int,
        limit: int,
    ) -> tuple[list[Material], int]:
        stmt = (
            select(Material)
            .where(
                Material.college_id == college_id,
                Material.id.in_(tuple(material_ids)),
            )
            .order_by(Material.year.asc(), Material.name.asc(), Material.id.asc())
        )
        return await _paginate(session, stmt, offset=offset, limit=limit)

    @staticmethod
    async def list_questions(
        session: AsyncSession,
        *,
        material_id: int,
        offset: int,
        limit: int,
    ) -> tuple[list[Question], int]:
        stmt = (
            select(Question)
            .where(Question.material_id == material_id)
            .order_by(Question.id.asc())
        )
        return await _paginate(session, stmt, offset=offset, limit=limit)

    @staticmethod
    async def list_courses(
        session: AsyncSession,
        *,
        material_id: int | None,
        course_ids: Iterable[int],
        material_ids: Iterable[int],
        offset: int,
        limit: int,
    ) -> tuple[list[Course], int]:
        stmt = select(Course).where(
            or_(
                Course.id.in_(tuple(course_ids)),
                Course.material_id.in_(tuple(material_ids)),
            )
        )
        if material_id is not None:
            stmt = stmt.where(Course.material_id == material_id)
        stmt = stmt.order_by(Course.name.asc(), Course.id.asc())
        return await _paginate(session, stmt, offset=offset, limit=limit)

    @staticmethod
    async def list_videos(
        session: AsyncSession,
        *,
        course_id: int,
        offset: int,
        limit: int,
    ) -> tuple[list[Video], int]:
        stmt = select(Video).where(Video.course_id == course_id).order_by(Video.id.asc())
        return await _paginate(session, stmt, offset=offset, limit=limit)

    @staticmethod
    async def list_lectures(session: AsyncSession, *, material_id: int) -> list[Lecture]:
        stmt = (
            select(Lecture)
            .where(Lecture.material_id == material_id)
            .order_by(Lecture.num.asc(), Lecture.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_course_files(session: AsyncSession, *, course_id: int) -> list[CourseFile]:
        stmt = (
            select(CourseFile)
            .where(CourseFile.course_id == course_id)
            .order_by(CourseFile.num.asc(), CourseFile.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
