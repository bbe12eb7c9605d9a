from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.students import Student


class StudentsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, student_id: int) -> Student | None:
        return await session.get(Student, student_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, student_id: int) -> Student | None:
        stmt = select(Student).where(Student.id == student_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, student: Student) -> Student:
        session.add(student)
        await session.flush()
        return student
