from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import func, select

from app.access.errors import CodePoolHasUsedCodesError
from app.access.pools import CodePoolService
from app.access.redemption import RedemptionService
from app.access.types import CodeUsage
from app.db.models.access_codes import AccessCode
from app.db.models.code_pools import CodePool, CodePoolMaterial
from app.db.models.code_redemptions import CodeRedemption
from app.db.repo.code_redemptions_repo import CodeRedemptionsRepo
from app.db.session import SessionLocal
from app.workers.tasks import access_maintenance
from tests.integration.access_integration_fixtures import (
    _create_catalogue,
    _create_pool,
    _create_student,
)


async def _count(model, *filters) -> int:
    async with SessionLocal() as session:
        return int(await session.scalar(select(func.count()).select_from(model).where(*filters)) or 0)


@pytest.mark.asyncio
async def test_delete_unused_pool_removes_codes_and_grants() -> None:
    catalogue = await _create_catalogue()
    pool_id, _ = await _create_pool(name="Unused", code_count=5, material_ids=catalogue.material_ids)

    async with SessionLocal.begin() as session:
        result = await CodePoolService.delete_pool(session, code_pool_id=pool_id)

    assert result.deleted_codes == 5
    assert result.deleted_material_grants == 2
    assert await _count(CodePool) == 0
    assert await _count(AccessCode) == 0
    assert await _count(CodePoolMaterial) == 0


@pytest.mark.asyncio
async def test_delete_pool_with_used_code_is_refused_and_keeps_rows() -> None:
    catalogue = await _create_catalogue()
    pool_id, codes = await _create_pool(name="Used", code_count=3, material_ids=catalogue.material_ids)
    student_id = await _create_student(1)
    async with SessionLocal.begin() as session:
        await RedemptionService.redeem(session, student_id=student_id, code=codes[0])

    with pytest.raises(CodePoolHasUsedCodesError):
        async with SessionLocal.begin() as session:
            await CodePoolService.delete_pool(session, code_pool_id=pool_id)

    assert await _count(CodePool) == 1
    assert await _count(AccessCode) == 3


@pytest.mark.asyncio
async def test_listing_reports_usage_and_filters() -> None:
    catalogue = await _create_catalogue()
    algebra_pool, codes = await _create_pool(
        name="Algebra2024",
        code_count=3,
        material_ids=catalogue.material_ids[:1],
    )
    await _create_pool(name="Physics2024", code_count=2, material_ids=catalogue.material_ids[1:])
    student_id = await _create_student(1)
    async with SessionLocal.begin() as session:
        await RedemptionService.redeem(session, student_id=student_id, code=codes[0])

    async with SessionLocal() as session:
        by_name = await CodePoolService.list_pools(session, page=1, limit=10, name="alg")
        by_material = await CodePoolService.list_pools(
            session,
            page=1,
            limit=10,
            material_id=catalogue.material_ids[1],
        )
        unused = await CodePoolService.list_pool_codes(
            session,
            code_pool_id=algebra_pool,
            usage=CodeUsage.UNUSED,
        )
        _, exported = await CodePoolService.export_unused_codes(session, code_pool_id=algebra_pool)

    assert [doc.name for doc in by_name.docs] == ["Algebra2024"]
    assert (by_name.docs[0].total_codes, by_name.docs[0].used_codes) == (3, 1)
    assert [doc.name for doc in by_material.docs] == ["Physics2024"]
    assert unused.total_docs == 2
    assert sorted(exported) == sorted(codes[1:])


@pytest.mark.asyncio
async def test_reconciliation_flags_code_reset_behind_redemption(monkeypatch) -> None:
    catalogue = await _create_catalogue()
    _, codes = await _create_pool(name="Recon", code_count=2, material_ids=catalogue.material_ids)
    student_id = await _create_student(1)
    async with SessionLocal.begin() as session:
        await RedemptionService.redeem(session, student_id=student_id, code=codes[0])

    async def _no_alert(**kwargs) -> bool:
        return False

    monkeypatch.setattr(access_maintenance, "send_ops_alert", _no_alert)

    clean = await access_maintenance.run_redemption_reconciliation_async()
    assert clean["status"] == "OK"

    async with SessionLocal.begin() as session:
        code = (await session.execute(select(AccessCode).where(AccessCode.value == codes[0]))).scalar_one()
        code.is_used = False
        code.used_at = None

    broken = await access_maintenance.run_redemption_reconciliation_async()
    assert broken["status"] == "DIFF"
    assert broken["redemptions_with_unused_code"] == 1


@pytest.mark.asyncio
async def test_delete_cascades_redemption_rows_of_reset_codes() -> None:
    catalogue = await _create_catalogue()
    pool_id, codes = await _create_pool(name="Cascade", code_count=2, material_ids=catalogue.material_ids)
    student_id = await _create_student(1)
    async with SessionLocal.begin() as session:
        await RedemptionService.redeem(session, student_id=student_id, code=codes[0])
    async with SessionLocal.begin() as session:
        code = (await session.execute(select(AccessCode).where(AccessCode.value == codes[0]))).scalar_one()
        code.is_used = False
        code.used_at = None

    async with SessionLocal.begin() as session:
        result = await CodePoolService.delete_pool(session, code_pool_id=pool_id)

    assert result.deleted_redemptions == 1
    assert result.deleted_codes == 2
    assert await _count(CodeRedemption) == 0
    assert await _count(AccessCode) == 0
    assert await _count(CodePool) == 0


@pytest.mark.asyncio
async def test_delete_waiting_on_in_flight_redemption_is_refused(monkeypatch) -> None:
    catalogue = await _create_catalogue()
    pool_id, codes = await _create_pool(name="InFlight", code_count=2, material_ids=catalogue.material_ids)
    student_id = await _create_student(1)
    code_locked = asyncio.Event()
    original_create = CodeRedemptionsRepo.create

    async def _slow_create(session, *, redemption):
        code_locked.set()
        await asyncio.sleep(0.5)
        return await original_create(session, redemption=redemption)

    monkeypatch.setattr(CodeRedemptionsRepo, "create", _slow_create)

    async def _redeem():
        async with SessionLocal.begin() as session:
            return await RedemptionService.redeem(
                session,
                student_id=student_id,
                code=codes[0],
                lock_timeout_ms=5000,
            )

    async def _delete():
        await code_locked.wait()
        async with SessionLocal.begin() as session:
            return await CodePoolService.delete_pool(session, code_pool_id=pool_id)

    redeemed, deleted = await asyncio.gather(_redeem(), _delete(), return_exceptions=True)

    assert not isinstance(redeemed, BaseException)
    assert redeemed.code == codes[0]
    assert isinstance(deleted, CodePoolHasUsedCodesError)
    assert await _count(CodePool) == 1
    assert await _count(CodeRedemption) == 1
