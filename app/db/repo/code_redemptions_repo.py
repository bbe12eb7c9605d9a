from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.access_codes import AccessCode
from app.db.models.code_pools import CodePool
from app.db.models.code_redemptions import CodeRedemption


@dataclass(frozen=True, slots=True)
class RedemptionClaimRow:
    redemption_id: UUID
    code_value: str
    code_pool_id: int
    redeemed_at: datetime
    pool_name: str | None
    pool_expiration: datetime | None
    stored_code_value: str | None
    stored_code_is_used: bool | None


class CodeRedemptionsRepo:
    @staticmethod
    async def get_by_student_and_pool(
        session: AsyncSession,
        *,
        student_id: int,
        code_pool_id: int,
    ) -> CodeRedemption | None:
        stmt = select(CodeRedemption).where(
            CodeRedemption.student_id == student_id,
            CodeRedemption.code_pool_id == code_pool_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, redemption: CodeRedemption) -> CodeRedemption:
        session.add(redemption)
        await session.flush()
        return redemption

    @staticmethod
    async def list_claims_for_student(
        session: AsyncSession,
        *,
        student_id: int,
    ) -> list[RedemptionClaimRow]:
        stmt = (
            select(
                CodeRedemption.id,
                CodeRedemption.code_value,
                CodeRedemption.code_pool_id,
                CodeRedemption.redeemed_at,
                CodePool.name,
                CodePool.expiration,
                AccessCode.value,
                AccessCode.is_used,
            )
            .outerjoin(CodePool, CodePool.id == CodeRedemption.code_pool_id)
            .outerjoin(AccessCode, AccessCode.id == CodeRedemption.access_code_id)
            .where(CodeRedemption.student_id == student_id)
            .order_by(CodeRedemption.redeemed_at.desc(), CodeRedemption.id.desc())
        )
        result = await session.execute(stmt)
        return [
            RedemptionClaimRow(
                redemption_id=row[0],
                code_value=row[1],
                code_pool_id=int(row[2]),
                redeemed_at=row[3],
                pool_name=row[4],
                pool_expiration=row[5],
                stored_code_value=row[6],
                stored_code_is_used=row[7],
            )
            for row in result.all()
        ]

    @staticmethod
    async def delete_by_pool(session: AsyncSession, *, code_pool_id: int) -> int:
        stmt = delete(CodeRedemption).where(CodeRedemption.code_pool_id == code_pool_id)
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def count_used_codes_without_redemption(session: AsyncSession) -> int:
        stmt = (
            select(func.count(AccessCode.id))
            .outerjoin(CodeRedemption, CodeRedemption.access_code_id == AccessCode.id)
            .where(
                AccessCode.is_used.is_(True),
                CodeRedemption.id.is_(None),
            )
        )
        return int((await session.execute(stmt)).scalar_one() or 0)

    @staticmethod
    async def count_redemptions_with_unused_code(session: AsyncSession) -> int:
        stmt = (
            select(func.count(CodeRedemption.id))
            .join(AccessCode, AccessCode.id == CodeRedemption.access_code_id)
            .where(AccessCode.is_used.is_(False))
        )
        return int((await session.execute(stmt)).scalar_one() or 0)

    @staticmethod
    async def count_value_mismatches(session: AsyncSession) -> int:
        stmt = (
            select(func.count(CodeRedemption.id))
            .join(AccessCode, AccessCode.id == CodeRedemption.access_code_id)
            .where(
                (AccessCode.value != CodeRedemption.code_value)
                | (AccessCode.code_pool_id != CodeRedemption.code_pool_id)
            )
        )
        return int((await session.execute(stmt)).scalar_one() or 0)
