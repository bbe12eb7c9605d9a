from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.access.codes import MAX_CODES_PER_POOL, generate_codes
from app.access.errors import (
    CodePoolHasNoUnusedCodesError,
    CodePoolHasUsedCodesError,
    CodePoolNotFoundError,
    CodeValidationError,
    EntitlementTargetNotFoundError,
)
from app.access.types import (
    CodePoolCreateResult,
    CodePoolDeleteResult,
    CodePoolSummary,
    CodeUsage,
    Page,
)
from app.db.models.access_codes import AccessCode
from app.db.models.code_pools import CodePool
from app.db.repo.access_codes_repo import AccessCodesRepo
from app.db.repo.code_pools_repo import CodePoolsRepo
from app.db.repo.code_redemptions_repo import CodeRedemptionsRepo
from app.db.repo.content_repo import ContentRepo

MAX_POOL_NAME_LENGTH = 100
MAX_GENERATION_ROUNDS = 5


def _merge_material_grants(
    *,
    materials: Sequence[int],
    materials_with_questions: Sequence[int],
    materials_with_lectures: Sequence[int],
) -> dict[int, tuple[bool, bool]]:
    grants: dict[int, tuple[bool, bool]] = {}
    for material_id in materials:
        grants[int(material_id)] = (True, True)
    for material_id in materials_with_questions:
        _, lectures = grants.get(int(material_id), (False, False))
        grants[int(material_id)] = (True, lectures)
    for material_id in materials_with_lectures:
        questions, _ = grants.get(int(material_id), (False, False))
        grants[int(material_id)] = (questions, True)
    return grants


class CodePoolService:
    @staticmethod
    async def _generate_unique_codes(session: AsyncSession, *, count: int) -> list[str]:
        values: list[str] = []
        seen: set[str] = set()
        for _ in range(MAX_GENERATION_ROUNDS):
            candidates = generate_codes(count=count - len(values), existing_codes=seen)
            taken = await AccessCodesRepo.list_existing_values(session, candidates)
            values.extend(value for value in candidates if value not in taken)
            if len(values) == count:
                return values
        raise RuntimeError("unable to generate unique access codes")

    @staticmethod
    async def _assert_targets_exist(
        session: AsyncSession,
        *,
        material_ids: set[int],
        course_ids: set[int],
    ) -> None:
        found_materials = await ContentRepo.list_existing_material_ids(session, material_ids)
        missing_materials = sorted(material_ids - found_materials)
        if missing_materials:
            raise EntitlementTargetNotFoundError(f"materials not found: {missing_materials}")

        found_courses = await ContentRepo.list_existing_course_ids(session, course_ids)
        missing_courses = sorted(course_ids - found_courses)
        if missing_courses:
            raise EntitlementTargetNotFoundError(f"courses not found: {missing_courses}")

    @staticmethod
    async def create_pool(
        session: AsyncSession,
        *,
        name: str,
        code_count: int,
        expiration: datetime,
        created_by: str,
        materials: Sequence[int] = (),
        materials_with_questions: Sequence[int] = (),
        materials_with_lectures: Sequence[int] = (),
        courses: Sequence[int] = (),
        now_utc: datetime | None = None,
    ) -> CodePoolCreateResult:
        now_utc = now_utc or datetime.now(timezone.utc)
        pool_name = name.strip()
        if not pool_name or len(pool_name) > MAX_POOL_NAME_LENGTH:
            raise CodeValidationError("name must be 1..100 characters", field="name")
        if not 1 <= code_count <= MAX_CODES_PER_POOL:
            raise CodeValidationError("codeCount must be between 1 and 10000", field="codeCount")
        if expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=timezone.utc)
        if expiration <= now_utc:
            raise CodeValidationError("expiration must be in the future", field="expiration")

        material_grants = _merge_material_grants(
            materials=materials,
            materials_with_questions=materials_with_questions,
            materials_with_lectures=materials_with_lectures,
        )
        course_ids = {int(course_id) for course_id in courses}
        await CodePoolService._assert_targets_exist(
            session,
            material_ids=set(material_grants),
            course_ids=course_ids,
        )

        pool = await CodePoolsRepo.create(
            session,
            pool=CodePool(
                name=pool_name,
                expiration=expiration,
                created_by=created_by,
                created_at=now_utc,
                updated_at=now_utc,
            ),
        )
        values = await CodePoolService._generate_unique_codes(session, count=code_count)
        await AccessCodesRepo.create_many(
            session,
            code_pool_id=pool.id,
            values=values,
            created_at=now_utc,
        )
        if material_grants:
            await CodePoolsRepo.add_material_grants(
                session, code_pool_id=pool.id, grants=material_grants
            )
        if course_ids:
            await CodePoolsRepo.add_course_grants(
                session, code_pool_id=pool.id, course_ids=sorted(course_ids)
            )

        return CodePoolCreateResult(
            code_pool_id=pool.id,
            name=pool.name,
            expiration=pool.expiration,
            codes=values,
            materials_with_questions=sorted(
                material_id for material_id, (questions, _) in material_grants.items() if questions
            ),
            materials_with_lectures=sorted(
                material_id for material_id, (_, lectures) in material_grants.items() if lectures
            ),
            courses=sorted(course_ids),
        )

    @staticmethod
    async def delete_pool(session: AsyncSession, *, code_pool_id: int) -> CodePoolDeleteResult:
        pool = await CodePoolsRepo.get_by_id_for_update(session, code_pool_id)
        if pool is None:
            raise CodePoolNotFoundError

        codes = await AccessCodesRepo.lock_pool_codes(session, code_pool_id=code_pool_id)
        if any(code.is_used for code in codes):
            raise CodePoolHasUsedCodesError

        deleted_redemptions = await CodeRedemptionsRepo.delete_by_pool(
            session, code_pool_id=code_pool_id
        )
        deleted_materials, deleted_courses = await CodePoolsRepo.delete_grants(
            session, code_pool_id=code_pool_id
        )
        deleted_codes = await AccessCodesRepo.delete_by_pool(session, code_pool_id=code_pool_id)
        await CodePoolsRepo.delete(session, code_pool_id=code_pool_id)

        return CodePoolDeleteResult(
            code_pool_id=code_pool_id,
            deleted_codes=deleted_codes,
            deleted_redemptions=deleted_redemptions,
            deleted_material_grants=deleted_materials,
            deleted_course_grants=deleted_courses,
        )

    @staticmethod
    async def list_pools(
        session: AsyncSession,
        *,
        page: int,
        limit: int,
        name: str | None = None,
        material_id: int | None = None,
        course_id: int | None = None,
        expiration_from: datetime | None = None,
        expiration_to: datetime | None = None,
    ) -> Page[CodePoolSummary]:
        pools, total = await CodePoolsRepo.list_pools(
            session,
            name=name.strip() if name else None,
            material_id=material_id,
            course_id=course_id,
            expiration_from=expiration_from,
            expiration_to=expiration_to,
            offset=(page - 1) * limit,
            limit=limit,
        )
        pool_ids = [pool.id for pool in pools]
        usage = await AccessCodesRepo.count_usage_by_pool(session, code_pool_ids=pool_ids)
        material_grants = await CodePoolsRepo.list_material_grants(session, code_pool_ids=pool_ids)
        course_grants = await CodePoolsRepo.list_course_grants(session, code_pool_ids=pool_ids)

        summaries: list[CodePoolSummary] = []
        for pool in pools:
            total_codes, used_codes = usage.get(pool.id, (0, 0))
            pool_materials = [grant for grant in material_grants if grant.code_pool_id == pool.id]
            summaries.append(
                CodePoolSummary(
                    code_pool_id=pool.id,
                    name=pool.name,
                    expiration=pool.expiration,
                    created_at=pool.created_at,
                    total_codes=total_codes,
                    used_codes=used_codes,
                    materials_with_questions=[
                        int(grant.material_id) for grant in pool_materials if grant.grants_questions
                    ],
                    materials_with_lectures=[
                        int(grant.material_id) for grant in pool_materials if grant.grants_lectures
                    ],
                    courses=[
                        int(grant.course_id)
                        for grant in course_grants
                        if grant.code_pool_id == pool.id
                    ],
                )
            )
        return Page(docs=summaries, total_docs=total, page=page, limit=limit)

    @staticmethod
    async def list_pool_codes(
        session: AsyncSession,
        *,
        code_pool_id: int,
        usage: CodeUsage = CodeUsage.ALL,
        page: int = 1,
        limit: int = 50,
    ) -> Page[AccessCode]:
        pool = await CodePoolsRepo.get_by_id(session, code_pool_id)
        if pool is None:
            raise CodePoolNotFoundError

        is_used: bool | None = None
        if usage == CodeUsage.USED:
            is_used = True
        elif usage == CodeUsage.UNUSED:
            is_used = False

        codes, total = await AccessCodesRepo.list_by_pool(
            session,
            code_pool_id=code_pool_id,
            is_used=is_used,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return Page(docs=codes, total_docs=total, page=page, limit=limit)

    @staticmethod
    async def export_unused_codes(
        session: AsyncSession,
        *,
        code_pool_id: int,
    ) -> tuple[CodePool, list[str]]:
        pool = await CodePoolsRepo.get_by_id(session, code_pool_id)
        if pool is None:
            raise CodePoolNotFoundError
        values = await AccessCodesRepo.list_unused_values(session, code_pool_id=code_pool_id)
        if not values:
            raise CodePoolHasNoUnusedCodesError
        return pool, values
