from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.code_pools import CodePool, CodePoolCourse, CodePoolMaterial


class CodePoolsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, pool: CodePool) -> CodePool:
        session.add(pool)
        await session.flush()
        return pool

    @staticmethod
    async def get_by_id(session: AsyncSession, code_pool_id: int) -> CodePool | None:
        return await session.get(CodePool, code_pool_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, code_pool_id: int) -> CodePool | None:
        # FOR NO KEY UPDATE: redemption inserts hold FOR KEY SHARE on the pool via the FK.
        stmt = (
            select(CodePool)
            .where(CodePool.id == code_pool_id)
            .with_for_update(key_share=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_pools(
        session: AsyncSession,
        *,
        name: str | None = None,
        material_id: int | None = None,
        course_id: int | None = None,
        expiration_from: datetime | None = None,
        expiration_to: datetime | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[CodePool], int]:
        filters = []
        if name:
            filters.append(CodePool.name.ilike(f"%{name}%"))
        if material_id is not None:
            filters.append(
                CodePool.id.in_(
                    select(CodePoolMaterial.code_pool_id).where(
                        CodePoolMaterial.material_id == material_id
                    )
                )
            )
        if course_id is not None:
            filters.append(
                CodePool.id.in_(
                    select(CodePoolCourse.code_pool_id).where(CodePoolCourse.course_id == course_id)
                )
            )
        if expiration_from is not None:
            filters.append(CodePool.expiration >= expiration_from)
        if expiration_to is not None:
            filters.append(CodePool.expiration <= expiration_to)

        count_stmt = select(func.count(CodePool.id)).where(*filters)
        total = int((await session.execute(count_stmt)).scalar_one() or 0)

        stmt = (
            select(CodePool)
            .where(*filters)
            .order_by(CodePool.created_at.desc(), CodePool.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all()), total

    @staticmethod
    async def add_material_grants(
        session: AsyncSession,
        *,
        code_pool_id: int,
        grants: dict[int, tuple[bool, bool]],
    ) -> None:
        session.add_all(
            CodePoolMaterial(
                code_pool_id=code_pool_id,
                material_id=material_id,
                grants_questions=grants_questions,
                grants_lectures=grants_lectures,
            )
            for material_id, (grants_questions, grants_lectures) in sorted(grants.items())
        )
        await session.flush()

    @staticmethod
    async def add_course_grants(
        session: AsyncSession,
        *,
        code_pool_id: int,
        course_ids: Sequence[int],
    ) -> None:
        session.add_all(
            CodePoolCourse(code_pool_id=code_pool_id, course_id=course_id)
            for course_id in sorted(set(course_ids))
        )
        await session.flush()

    @staticmethod
    async def list_material_grants(
        session: AsyncSession,
        *,
        code_pool_ids: Sequence[int],
    ) -> list[CodePoolMaterial]:
        if not code_pool_ids:
            return []
        stmt = (
            select(CodePoolMaterial)
            .where(CodePoolMaterial.code_pool_id.in_(tuple(code_pool_ids)))
            .order_by(CodePoolMaterial.code_pool_id.asc(), CodePoolMaterial.material_id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_course_grants(
        session: AsyncSession,
        *,
        code_pool_ids: Sequence[int],
    ) -> list[CodePoolCourse]:
        if not code_pool_ids:
            return []
        stmt = (
            select(CodePoolCourse)
            .where(CodePoolCourse.code_pool_id.in_(tuple(code_pool_ids)))
            .order_by(CodePoolCourse.code_pool_id.asc(), CodePoolCourse.course_id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def delete_grants(session: AsyncSession, *, code_pool_id: int) -> tuple[int, int]:
        materials_result = await session.execute(
            delete(CodePoolMaterial).where(CodePoolMaterial.code_pool_id == code_pool_id)
        )
        courses_result = await session.execute(
            delete(CodePoolCourse).where(CodePoolCourse.code_pool_id == code_pool_id)
        )
        return int(materials_result.rowcount or 0), int(courses_result.rowcount or 0)

    @staticmethod
    async def delete(session: AsyncSession, *, code_pool_id: int) -> int:
        result = await session.execute(delete(CodePool).where(CodePool.id == code_pool_id))
        return int(result.rowcount or 0)
