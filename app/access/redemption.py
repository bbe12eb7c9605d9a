from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.access.codes import validate_code
from app.access.entitlements import ACTIVE_STUDENT_STATUS, EntitlementResolver
from app.access.errors import (
    CodeAlreadyUsedError,
    CodeExpiredError,
    CodeNotFoundError,
    DuplicateRedemptionInPoolError,
    RedemptionConflictError,
    StudentUnauthorizedError,
)
from app.access.types import RedemptionHistoryItem, RedemptionResult
from app.db.models.code_redemptions import CodeRedemption
from app.db.repo.access_codes_repo import AccessCodesRepo
from app.db.repo.code_pools_repo import CodePoolsRepo
from app.db.repo.code_redemptions_repo import CodeRedemptionsRepo
from app.db.repo.students_repo import StudentsRepo

# serialization_failure, deadlock_detected, lock_not_available
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01", "55P03"})
STUDENT_POOL_CONSTRAINT = "uq_code_redemptions_student_pool"
REDEEMED_CODE_CONSTRAINTS = ("uq_code_redemptions_access_code",)


def _sqlstate(exc: DBAPIError) -> str | None:
    for candidate in (exc.orig, getattr(exc.orig, "__cause__", None)):
        if candidate is None:
            continue
        value = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if value:
            return str(value)
    return None


def _constraint_name(exc: IntegrityError) -> str | None:
    for candidate in (exc.orig, getattr(exc.orig, "__cause__", None)):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return str(name)
    message = str(exc.orig)
    for name in (STUDENT_POOL_CONSTRAINT, *REDEEMED_CODE_CONSTRAINTS):
        if name in message:
            return name
    return None


def is_retryable_conflict(exc: DBAPIError) -> bool:
    return _sqlstate(exc) in RETRYABLE_SQLSTATES


class RedemptionService:
    @staticmethod
    async def _set_lock_timeout(session: AsyncSession, *, lock_timeout_ms: int) -> None:
        # SET does not accept bind parameters.
        await session.execute(text(f"SET LOCAL lock_timeout = '{int(lock_timeout_ms)}ms'"))

    @staticmethod
    async def _insert_redemption(
        session: AsyncSession,
        *,
        redemption: CodeRedemption,
    ) -> CodeRedemption:
        try:
            return await CodeRedemptionsRepo.create(session, redemption=redemption)
        except IntegrityError as exc:
            if _constraint_name(exc) == STUDENT_POOL_CONSTRAINT:
                raise DuplicateRedemptionInPoolError from exc
            if _constraint_name(exc) in REDEEMED_CODE_CONSTRAINTS:
                raise CodeAlreadyUsedError from exc
            raise

    @staticmethod
    async def _redeem_locked(
        session: AsyncSession,
        *,
        student_id: int,
        code_value: str,
        now_utc: datetime,
    ) -> RedemptionResult:
        access_code = await AccessCodesRepo.get_by_value_for_update(session, code_value)
        if access_code is None:
            raise CodeNotFoundError
        if access_code.is_used:
            raise CodeAlreadyUsedError

        code_pool = await CodePoolsRepo.get_by_id(session, access_code.code_pool_id)
        if code_pool is None:
            raise CodeNotFoundError
        if code_pool.expiration <= now_utc:
            raise CodeExpiredError

        student = await StudentsRepo.get_by_id_for_update(session, student_id)
        if student is None or student.status != ACTIVE_STUDENT_STATUS:
            raise StudentUnauthorizedError

        existing = await CodeRedemptionsRepo.get_by_student_and_pool(
            session,
            student_id=student_id,
            code_pool_id=code_pool.id,
        )
        if existing is not None:
            raise DuplicateRedemptionInPoolError

        marked = await AccessCodesRepo.mark_used(
            session,
            access_code_id=access_code.id,
            used_at=now_utc,
        )
        if not marked:
            raise CodeAlreadyUsedError

        redemption = await RedemptionService._insert_redemption(
            session,
            redemption=CodeRedemption(
                id=uuid4(),
                student_id=student_id,
                code_pool_id=code_pool.id,
                access_code_id=access_code.id,
                code_value=code_value,
                redeemed_at=now_utc,
            ),
        )

        material_grants = await CodePoolsRepo.list_material_grants(
            session, code_pool_ids=[code_pool.id]
        )
        course_grants = await CodePoolsRepo.list_course_grants(
            session, code_pool_ids=[code_pool.id]
        )
        granted = EntitlementResolver.build_entitlement_set(
            material_grants=material_grants,
            course_grants=course_grants,
        )
        return RedemptionResult(
            redemption_id=redemption.id,
            code=code_value,
            code_pool_id=code_pool.id,
            code_pool_name=code_pool.name,
            expiration=code_pool.expiration,
            redeemed_at=now_utc,
            materials_with_questions=sorted(granted.materials_with_questions),
            materials_with_lectures=sorted(granted.materials_with_lectures),
            courses=sorted(granted.courses),
        )

    @staticmethod
    async def redeem(
        session: AsyncSession,
        *,
        student_id: int,
        code: str,
        now_utc: datetime | None = None,
        lock_timeout_ms: int | None = None,
    ) -> RedemptionResult:
        now_utc = now_utc or datetime.now(timezone.utc)
        code_value = validate_code(code)

        try:
            if lock_timeout_ms:
                await RedemptionService._set_lock_timeout(
                    session, lock_timeout_ms=lock_timeout_ms
                )
            return await RedemptionService._redeem_locked(
                session,
                student_id=student_id,
                code_value=code_value,
                now_utc=now_utc,
            )
        except IntegrityError:
            raise
        except DBAPIError as exc:
            if is_retryable_conflict(exc):
                raise RedemptionConflictError from exc
            raise

    @staticmethod
    async def list_history(
        session: AsyncSession,
        *,
        student_id: int,
        now_utc: datetime | None = None,
    ) -> list[RedemptionHistoryItem]:
        now_utc = now_utc or datetime.now(timezone.utc)
        student = await StudentsRepo.get_by_id(session, student_id)
        if student is None or student.status != ACTIVE_STUDENT_STATUS:
            raise StudentUnauthorizedError

        claims = await CodeRedemptionsRepo.list_claims_for_student(session, student_id=student_id)
        pool_ids = sorted({claim.code_pool_id for claim in claims})
        material_grants = await CodePoolsRepo.list_material_grants(session, code_pool_ids=pool_ids)
        course_grants = await CodePoolsRepo.list_course_grants(session, code_pool_ids=pool_ids)

        materials_by_pool: dict[int, list[int]] = {}
        for grant in material_grants:
            materials_by_pool.setdefault(int(grant.code_pool_id), []).append(int(grant.material_id))
        courses_by_pool: dict[int, list[int]] = {}
        for grant in course_grants:
            courses_by_pool.setdefault(int(grant.code_pool_id), []).append(int(grant.course_id))

        return [
            RedemptionHistoryItem(
                redemption_id=claim.redemption_id,
                code=claim.code_value,
                code_pool_id=claim.code_pool_id,
                code_pool_name=claim.pool_name,
                expiration=claim.pool_expiration,
                redeemed_at=claim.redeemed_at,
                is_active=EntitlementResolver.is_claim_valid(claim, now_utc=now_utc),
                materials=sorted(materials_by_pool.get(claim.code_pool_id, [])),
                courses=sorted(courses_by_pool.get(claim.code_pool_id, [])),
            )
            for claim in claims
        ]
