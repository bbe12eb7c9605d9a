from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.access_codes import AccessCode


class AccessCodesRepo:
    @staticmethod
    async def get_by_value_for_update(session: AsyncSession, value: str) -> AccessCode | None:
        stmt = select(AccessCode).where(AccessCode.value == value).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_existing_values(session: AsyncSession, values: Iterable[str]) -> set[str]:
        candidates = tuple(values)
        if not candidates:
            return set()
        stmt = select(AccessCode.value).where(AccessCode.value.in_(candidates))
        result = await session.execute(stmt)
        return set(result.scalars().all())

    @staticmethod
    async def create_many(
        session: AsyncSession,
        *,
        code_pool_id: int,
        values: Sequence[str],
        created_at: datetime,
    ) -> list[AccessCode]:
        codes = [
            AccessCode(
                code_pool_id=code_pool_id,
                value=value,
                is_used=False,
                used_at=None,
                created_at=created_at,
            )
            for value in values
        ]
        session.add_all(codes)
        await session.flush()
        return codes

    @staticmethod
    async def mark_used(
        session: AsyncSession,
        *,
        access_code_id: int,
        used_at: datetime,
    ) -> bool:
        stmt = (
            update(AccessCode)
            .where(
                AccessCode.id == access_code_id,
                AccessCode.is_used.is_(False),
            )
            .values(is_used=True, used_at=used_at)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0) == 1

    @staticmethod
    async def lock_pool_codes(session: AsyncSession, *, code_pool_id: int) -> list[AccessCode]:
        stmt = (
            select(AccessCode)
            .where(AccessCode.code_pool_id == code_pool_id)
            .order_by(AccessCode.id.asc())
            .with_for_update()
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_usage_by_pool(
        session: AsyncSession,
        *,
        code_pool_ids: Sequence[int],
    ) -> dict[int, tuple[int, int]]:
        if not code_pool_ids:
            return {}
        stmt = (
            select(
                AccessCode.code_pool_id,
                func.count(AccessCode.id),
                func.coalesce(func.sum(case((AccessCode.is_used.is_(True), 1), else_=0)), 0),
            )
            .where(AccessCode.code_pool_id.in_(tuple(code_pool_ids)))
            .group_by(AccessCode.code_pool_id)
        )
        result = await session.execute(stmt)
        return {
            int(pool_id): (int(total), int(used)) for pool_id, total, used in result.all()
        }

    @staticmethod
    async def list_by_pool(
        session: AsyncSession,
        *,
        code_pool_id: int,
        is_used: bool | None,
        offset: int,
        limit: int,
    ) -> tuple[list[AccessCode], int]:
        filters = [AccessCode.code_pool_id == code_pool_id]
        if is_used is not None:
            filters.append(AccessCode.is_used.is_(is_used))

        count_stmt = select(func.count(AccessCode.id)).where(*filters)
        total = int((await session.execute(count_stmt)).scalar_one() or 0)

        stmt = (
            select(AccessCode)
            .where(*filters)
            .order_by(AccessCode.id.asc())
            .offset(offset)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all()), total

    @staticmethod
    async def list_unused_values(session: AsyncSession, *, code_pool_id: int) -> list[str]:
        stmt = (
            select(AccessCode.value)
            .where(
                AccessCode.code_pool_id == code_pool_id,
                AccessCode.is_used.is_(False),
            )
            .order_by(AccessCode.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def delete_by_pool(session: AsyncSession, *, code_pool_id: int) -> int:
        stmt = delete(AccessCode).where(AccessCode.code_pool_id == code_pool_id)
        result = await session.execute(stmt)
        return int(result.rowcount or 0)
