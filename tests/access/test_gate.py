from __future__ import annotations

from types import SimpleNamespace

import pytest

from app.access.errors import AccessDeniedError
from app.access.gate import AccessGate
from app.access.types import EntitlementSet, ResourceType
from tests.access.access_fixtures import NOW, AccessStore

SESSION = SimpleNamespace()

ENTITLEMENTS = EntitlementSet(
    materials_with_questions=frozenset({1, 2}),
    materials_with_lectures=frozenset({1, 3}),
    courses=frozenset({50}),
)


@pytest.mark.parametrize(
    ("resource_type", "resource_id", "allowed", "reason"),
    [
        (ResourceType.MATERIAL, 2, True, "material_granted"),
        (ResourceType.MATERIAL, 3, True, "material_granted"),
        (ResourceType.MATERIAL, 4, False, "material_not_granted"),
        (ResourceType.MATERIAL_QUESTIONS, 2, True, "questions_granted"),
        (ResourceType.MATERIAL_QUESTIONS, 3, False, "questions_not_granted"),
        (ResourceType.MATERIAL_LECTURES, 3, True, "lectures_granted"),
        (ResourceType.MATERIAL_LECTURES, 2, False, "lectures_not_granted"),
        (ResourceType.COURSE_VIDEOS, 50, True, "course_granted"),
        (ResourceType.COURSE_FILES, 51, False, "course_not_granted"),
    ],
)
def test_decide(
    resource_type: ResourceType,
    resource_id: int,
    allowed: bool,
    reason: str,
) -> None:
    decision = AccessGate.decide(ENTITLEMENTS, resource_type=resource_type, resource_id=resource_id)

    assert decision.allowed is allowed
    assert decision.reason == reason


def test_decide_grants_course_through_either_material_partition() -> None:
    via_questions = AccessGate.decide(
        ENTITLEMENTS,
        resource_type=ResourceType.COURSE,
        resource_id=60,
        course_material_id=2,
    )
    via_lectures = AccessGate.decide(
        ENTITLEMENTS,
        resource_type=ResourceType.COURSE,
        resource_id=61,
        course_material_id=3,
    )

    assert via_questions.reason == "parent_material_granted"
    assert via_lectures.reason == "parent_material_granted"


def test_empty_entitlements_deny_everything() -> None:
    empty = EntitlementSet()
    for resource_type in ResourceType:
        decision = AccessGate.decide(
            empty,
            resource_type=resource_type,
            resource_id=1,
            course_material_id=1,
        )
        assert decision.allowed is False


@pytest.mark.asyncio
async def test_check_loads_course_parent_material(access_store: AccessStore) -> None:
    access_store.courses[70] = SimpleNamespace(id=70, material_id=1)
    access_store.courses[71] = SimpleNamespace(id=71, material_id=None)

    parent = await AccessGate.check(
        SESSION,
        student_id=1,
        resource_type=ResourceType.COURSE_VIDEOS,
        resource_id=70,
        now_utc=NOW,
        entitlements=ENTITLEMENTS,
    )
    orphan = await AccessGate.check(
        SESSION,
        student_id=1,
        resource_type=ResourceType.COURSE_VIDEOS,
        resource_id=71,
        now_utc=NOW,
        entitlements=ENTITLEMENTS,
    )
    missing = await AccessGate.check(
        SESSION,
        student_id=1,
        resource_type=ResourceType.COURSE_VIDEOS,
        resource_id=72,
        now_utc=NOW,
        entitlements=ENTITLEMENTS,
    )

    assert parent.allowed is True
    assert orphan.allowed is False
    assert missing.reason == "course_not_found"


@pytest.mark.asyncio
async def test_require_raises_on_deny(access_store: AccessStore) -> None:
    access_store.add_student(1)

    with pytest.raises(AccessDeniedError):
        await AccessGate.require(
            SESSION,
            student_id=1,
            resource_type=ResourceType.MATERIAL_QUESTIONS,
            resource_id=1,
            now_utc=NOW,
        )


def _lecture(lecture_id: int, num: int, *, filename: str | None = "l.pdf") -> SimpleNamespace:
    return SimpleNamespace(
        id=lecture_id,
        material_id=1,
        num=num,
        filename=filename,
        access_url=f"https://cdn.example/{lecture_id}" if filename else None,
    )


def test_redact_lectures_keeps_first_as_preview() -> None:
    lectures = [_lecture(1, 1), _lecture(2, 2), _lecture(3, 3, filename=None)]

    redacted = AccessGate.redact_lectures(lectures, has_full_access=False)

    assert redacted[0]["file"] == {"filename": "l.pdf", "accessUrl": "https://cdn.example/1"}
    assert redacted[1]["file"] == {"filename": "l.pdf"}
    assert redacted[2]["file"] is None
    assert [item["num"] for item in redacted] == [1, 2, 3]


def test_redact_lectures_full_access_exposes_urls() -> None:
    redacted = AccessGate.redact_lectures([_lecture(1, 1), _lecture(2, 2)], has_full_access=True)

    assert all("accessUrl" in item["file"] for item in redacted)


def test_redact_course_files_hides_urls_without_access() -> None:
    files = [
        SimpleNamespace(id=1, course_id=9, num=1, filename="a.pdf", access_url="https://x/a"),
        SimpleNamespace(id=2, course_id=9, num=2, filename=None, access_url=None),
    ]

    hidden = AccessGate.redact_course_files(files, has_access=False)
    shown = AccessGate.redact_course_files(files, has_access=True)

    assert hidden == [
        {"id": 1, "course": 9, "num": 1, "file": {"filename": "a.pdf"}},
        {"id": 2, "course": 9, "num": 2, "file": None},
    ]
    assert shown[0]["file"] == {"filename": "a.pdf", "accessUrl": "https://x/a"}
    assert shown[1]["file"] is None
