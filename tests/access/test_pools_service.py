from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest

from app.access import pools
from app.access.errors import (
    CodePoolHasNoUnusedCodesError,
    CodePoolHasUsedCodesError,
    CodePoolNotFoundError,
    CodeValidationError,
    EntitlementTargetNotFoundError,
)
from app.access.pools import CodePoolService
from app.access.types import CodeUsage
from tests.access.access_fixtures import NOW

SESSION = SimpleNamespace()


class _PoolWrites:
    def __init__(self) -> None:
        self.pool = None
        self.code_values: list[str] = []
        self.material_grants: dict[int, tuple[bool, bool]] = {}
        self.course_ids: list[int] = []


def _install_create_fakes(
    monkeypatch: pytest.MonkeyPatch,
    *,
    known_materials: set[int],
    known_courses: set[int],
    taken_values: set[str] | None = None,
) -> _PoolWrites:
    writes = _PoolWrites()
    taken = taken_values or set()

    async def _existing_materials(session, ids):
        return set(ids) & known_materials

    async def _existing_courses(session, ids):
        return set(ids) & known_courses

    async def _create(session, *, pool):
        pool.id = 42
        writes.pool = pool
        return pool

    async def _existing_values(session, values):
        return set(values) & taken

    async def _create_many(session, *, code_pool_id: int, values, created_at):
        assert code_pool_id == 42
        writes.code_values.extend(values)
        return []

    async def _add_material_grants(session, *, code_pool_id: int, grants):
        writes.material_grants.update(grants)

    async def _add_course_grants(session, *, code_pool_id: int, course_ids):
        writes.course_ids.extend(course_ids)

    monkeypatch.setattr(pools.ContentRepo, "list_existing_material_ids", _existing_materials)
    monkeypatch.setattr(pools.ContentRepo, "list_existing_course_ids", _existing_courses)
    monkeypatch.setattr(pools.CodePoolsRepo, "create", _create)
    monkeypatch.setattr(pools.AccessCodesRepo, "list_existing_values", _existing_values)
    monkeypatch.setattr(pools.AccessCodesRepo, "create_many", _create_many)
    monkeypatch.setattr(pools.CodePoolsRepo, "add_material_grants", _add_material_grants)
    monkeypatch.setattr(pools.CodePoolsRepo, "add_course_grants", _add_course_grants)
    return writes


@pytest.mark.asyncio
async def test_create_pool_generates_codes_and_grants(monkeypatch) -> None:
    writes = _install_create_fakes(monkeypatch, known_materials={1, 2, 3}, known_courses={9})

    result = await CodePoolService.create_pool(
        SESSION,
        name="  Algebra2024 ",
        code_count=25,
        expiration=NOW + timedelta(days=7),
        created_by="admin@ops",
        materials=[1],
        materials_with_questions=[2],
        materials_with_lectures=[3, 2],
        courses=[9, 9],
        now_utc=NOW,
    )

    assert result.code_pool_id == 42
    assert result.name == "Algebra2024"
    assert len(result.codes) == 25
    assert len(set(result.codes)) == 25
    assert writes.code_values == result.codes
    assert writes.material_grants == {1: (True, True), 2: (True, True), 3: (False, True)}
    assert writes.course_ids == [9]
    assert result.materials_with_questions == [1, 2]
    assert result.materials_with_lectures == [1, 2, 3]
    assert writes.pool.created_by == "admin@ops"


@pytest.mark.asyncio
async def test_create_pool_regenerates_values_already_in_use(monkeypatch) -> None:
    calls = 0

    def _fake_generate(*, count: int, existing_codes: set[str]):
        nonlocal calls
        calls += 1
        if calls == 1:
            return ["TAKENAAAAAAA", "FRESHAAAAAA1"][:count]
        return ["FRESHAAAAAA2"][:count]

    monkeypatch.setattr(pools, "generate_codes", _fake_generate)
    writes = _install_create_fakes(
        monkeypatch,
        known_materials={1},
        known_courses=set(),
        taken_values={"TAKENAAAAAAA"},
    )

    result = await CodePoolService.create_pool(
        SESSION,
        name="Retry",
        code_count=2,
        expiration=NOW + timedelta(days=1),
        created_by="internal",
        materials=[1],
        now_utc=NOW,
    )

    assert result.codes == ["FRESHAAAAAA1", "FRESHAAAAAA2"]
    assert writes.code_values == result.codes
    assert calls == 2


@pytest.mark.asyncio
async def test_create_pool_rejects_unknown_targets(monkeypatch) -> None:
    writes = _install_create_fakes(monkeypatch, known_materials={1}, known_courses=set())

    with pytest.raises(EntitlementTargetNotFoundError):
        await CodePoolService.create_pool(
            SESSION,
            name="Broken",
            code_count=1,
            expiration=NOW + timedelta(days=1),
            created_by="internal",
            materials=[1],
            courses=[404],
            now_utc=NOW,
        )

    assert writes.pool is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"name": "   "},
        {"name": "x" * 101},
        {"code_count": 0},
        {"code_count": 10_001},
        {"expiration": NOW},
        {"expiration": NOW - timedelta(days=1)},
    ],
)
async def test_create_pool_validates_input(monkeypatch, overrides: dict[str, object]) -> None:
    writes = _install_create_fakes(monkeypatch, known_materials={1}, known_courses=set())
    kwargs: dict[str, object] = {
        "name": "Valid",
        "code_count": 5,
        "expiration": NOW + timedelta(days=1),
        "created_by": "internal",
        "materials": [1],
        "now_utc": NOW,
    }
    kwargs.update(overrides)

    with pytest.raises(CodeValidationError):
        await CodePoolService.create_pool(SESSION, **kwargs)  # type: ignore[arg-type]

    assert writes.pool is None


def _install_delete_fakes(
    monkeypatch: pytest.MonkeyPatch,
    *,
    pool: SimpleNamespace | None,
    codes: list[SimpleNamespace],
) -> list[str]:
    steps: list[str] = []

    async def _get_for_update(session, code_pool_id: int):
        steps.append("lock_pool")
        return pool

    async def _lock_codes(session, *, code_pool_id: int):
        steps.append("lock_codes")
        return codes

    async def _delete_redemptions(session, *, code_pool_id: int):
        steps.append("delete_redemptions")
        return 0

    async def _delete_grants(session, *, code_pool_id: int):
        steps.append("delete_grants")
        return 2, 1

    async def _delete_codes(session, *, code_pool_id: int):
        steps.append("delete_codes")
        return len(codes)

    async def _delete_pool(session, *, code_pool_id: int):
        steps.append("delete_pool")
        return 1

    monkeypatch.setattr(pools.CodePoolsRepo, "get_by_id_for_update", _get_for_update)
    monkeypatch.setattr(pools.AccessCodesRepo, "lock_pool_codes", _lock_codes)
    monkeypatch.setattr(pools.CodeRedemptionsRepo, "delete_by_pool", _delete_redemptions)
    monkeypatch.setattr(pools.CodePoolsRepo, "delete_grants", _delete_grants)
    monkeypatch.setattr(pools.AccessCodesRepo, "delete_by_pool", _delete_codes)
    monkeypatch.setattr(pools.CodePoolsRepo, "delete", _delete_pool)
    return steps


@pytest.mark.asyncio
async def test_delete_pool_removes_everything_when_no_code_used(monkeypatch) -> None:
    steps = _install_delete_fakes(
        monkeypatch,
        pool=SimpleNamespace(id=5),
        codes=[SimpleNamespace(is_used=False), SimpleNamespace(is_used=False)],
    )

    result = await CodePoolService.delete_pool(SESSION, code_pool_id=5)

    assert steps == [
        "lock_pool",
        "lock_codes",
        "delete_redemptions",
        "delete_grants",
        "delete_codes",
        "delete_pool",
    ]
    assert result.deleted_codes == 2
    assert result.deleted_material_grants == 2
    assert result.deleted_course_grants == 1


@pytest.mark.asyncio
async def test_delete_pool_refuses_when_a_code_was_used(monkeypatch) -> None:
    steps = _install_delete_fakes(
        monkeypatch,
        pool=SimpleNamespace(id=5),
        codes=[SimpleNamespace(is_used=False), SimpleNamespace(is_used=True)],
    )

    with pytest.raises(CodePoolHasUsedCodesError):
        await CodePoolService.delete_pool(SESSION, code_pool_id=5)

    assert steps == ["lock_pool", "lock_codes"]


@pytest.mark.asyncio
async def test_delete_missing_pool_is_not_found(monkeypatch) -> None:
    _install_delete_fakes(monkeypatch, pool=None, codes=[])

    with pytest.raises(CodePoolNotFoundError):
        await CodePoolService.delete_pool(SESSION, code_pool_id=404)


@pytest.mark.asyncio
async def test_list_pools_attaches_usage_and_grants(monkeypatch) -> None:
    captured: dict[str, object] = {}
    pool = SimpleNamespace(
        id=7,
        name="Algebra2024",
        expiration=NOW + timedelta(days=7),
        created_at=NOW,
    )

    async def _list_pools(session, **kwargs):
        captured.update(kwargs)
        return [pool], 11

    async def _usage(session, *, code_pool_ids):
        return {7: (3, 1)}

    async def _material_grants(session, *, code_pool_ids):
        return [
            SimpleNamespace(code_pool_id=7, material_id=1, grants_questions=True, grants_lectures=False)
        ]

    async def _course_grants(session, *, code_pool_ids):
        return [SimpleNamespace(code_pool_id=7, course_id=4)]

    monkeypatch.setattr(pools.CodePoolsRepo, "list_pools", _list_pools)
    monkeypatch.setattr(pools.AccessCodesRepo, "count_usage_by_pool", _usage)
    monkeypatch.setattr(pools.CodePoolsRepo, "list_material_grants", _material_grants)
    monkeypatch.setattr(pools.CodePoolsRepo, "list_course_grants", _course_grants)

    page = await CodePoolService.list_pools(SESSION, page=2, limit=5, name=" alg ", material_id=1)

    assert captured["offset"] == 5
    assert captured["name"] == "alg"
    assert captured["material_id"] == 1
    assert page.total_docs == 11
    assert page.total_pages == 3
    summary = page.docs[0]
    assert (summary.total_codes, summary.used_codes) == (3, 1)
    assert summary.materials_with_questions == [1]
    assert summary.materials_with_lectures == []
    assert summary.courses == [4]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("usage", "expected_filter"),
    [(CodeUsage.ALL, None), (CodeUsage.USED, True), (CodeUsage.UNUSED, False)],
)
async def test_list_pool_codes_maps_usage_filter(
    monkeypatch,
    usage: CodeUsage,
    expected_filter: bool | None,
) -> None:
    captured: dict[str, object] = {}

    async def _get_pool(session, code_pool_id: int):
        return SimpleNamespace(id=code_pool_id)

    async def _list_by_pool(session, **kwargs):
        captured.update(kwargs)
        return [], 0

    monkeypatch.setattr(pools.CodePoolsRepo, "get_by_id", _get_pool)
    monkeypatch.setattr(pools.AccessCodesRepo, "list_by_pool", _list_by_pool)

    page = await CodePoolService.list_pool_codes(
        SESSION, code_pool_id=3, usage=usage, page=3, limit=50
    )

    assert captured["is_used"] is expected_filter
    assert captured["offset"] == 100
    assert page.total_pages == 0


@pytest.mark.asyncio
async def test_export_unknown_pool_is_not_found(monkeypatch) -> None:
    async def _get_pool(session, code_pool_id: int):
        return None

    monkeypatch.setattr(pools.CodePoolsRepo, "get_by_id", _get_pool)

    with pytest.raises(CodePoolNotFoundError):
        await CodePoolService.export_unused_codes(SESSION, code_pool_id=1)


@pytest.mark.asyncio
async def test_export_fully_used_pool_is_refused(monkeypatch) -> None:
    async def _get_pool(session, code_pool_id: int):
        return SimpleNamespace(id=code_pool_id, name="Algebra2024")

    async def _list_unused(session, *, code_pool_id: int):
        return []

    monkeypatch.setattr(pools.CodePoolsRepo, "get_by_id", _get_pool)
    monkeypatch.setattr(pools.AccessCodesRepo, "list_unused_values", _list_unused)

    with pytest.raises(CodePoolHasNoUnusedCodesError):
        await CodePoolService.export_unused_codes(SESSION, code_pool_id=1)


@pytest.mark.asyncio
async def test_pool_validation_errors_name_their_field() -> None:
    with pytest.raises(CodeValidationError) as exc_info:
        await CodePoolService.create_pool(
            SESSION,
            name="Algebra2024",
            code_count=0,
            expiration=NOW + timedelta(days=1),
            created_by="ops",
            materials=[1],
            now_utc=NOW,
        )

    assert exc_info.value.field == "codeCount"
