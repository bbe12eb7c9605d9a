from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.access.errors import StudentUnauthorizedError
from app.access.types import EntitlementSet
from app.db.models.code_pools import CodePoolCourse, CodePoolMaterial
from app.db.repo.code_pools_repo import CodePoolsRepo
from app.db.repo.code_redemptions_repo import CodeRedemptionsRepo, RedemptionClaimRow
from app.db.repo.students_repo import StudentsRepo

ACTIVE_STUDENT_STATUS = "ACTIVE"


class EntitlementResolver:
    @staticmethod
    def is_claim_valid(claim: RedemptionClaimRow, *, now_utc: datetime) -> bool:
        if claim.pool_expiration is None or claim.pool_expiration <= now_utc:
            return False
        if claim.stored_code_value is None or claim.stored_code_value != claim.code_value:
            return False
        return claim.stored_code_is_used is True

    @staticmethod
    def build_entitlement_set(
        *,
        material_grants: Iterable[CodePoolMaterial],
        course_grants: Iterable[CodePoolCourse],
    ) -> EntitlementSet:
        with_questions: set[int] = set()
        with_lectures: set[int] = set()
        for grant in material_grants:
            if grant.grants_questions:
                with_questions.add(int(grant.material_id))
            if grant.grants_lectures:
                with_lectures.add(int(grant.material_id))

        return EntitlementSet(
            materials_with_questions=frozenset(with_questions),
            materials_with_lectures=frozenset(with_lectures),
            courses=frozenset(int(grant.course_id) for grant in course_grants),
        )

    @staticmethod
    async def list_valid_pool_ids(
        session: AsyncSession,
        *,
        student_id: int,
        now_utc: datetime,
    ) -> list[int]:
        claims = await CodeRedemptionsRepo.list_claims_for_student(session, student_id=student_id)
        return sorted(
            {
                claim.code_pool_id
                for claim in claims
                if EntitlementResolver.is_claim_valid(claim, now_utc=now_utc)
            }
        )

    @staticmethod
    async def resolve_access(
        session: AsyncSession,
        *,
        student_id: int,
        now_utc: datetime,
    ) -> EntitlementSet:
        student = await StudentsRepo.get_by_id(session, student_id)
        if student is None or student.status != ACTIVE_STUDENT_STATUS:
            raise StudentUnauthorizedError

        pool_ids = await EntitlementResolver.list_valid_pool_ids(
            session,
            student_id=student_id,
            now_utc=now_utc,
        )
        if not pool_ids:
            return EntitlementSet()

        material_grants = await CodePoolsRepo.list_material_grants(
            session, code_pool_ids=pool_ids
        )
        course_grants = await CodePoolsRepo.list_course_grants(session, code_pool_ids=pool_ids)
        return EntitlementResolver.build_entitlement_set(
            material_grants=material_grants,
            course_grants=course_grants,
        )
