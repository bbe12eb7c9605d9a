from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar
from uuid import UUID

T = TypeVar("T")


class ResourceType(str, Enum):
    MATERIAL = "MATERIAL"
    MATERIAL_QUESTIONS = "MATERIAL_QUESTIONS"
    MATERIAL_LECTURES = "MATERIAL_LECTURES"
    COURSE = "COURSE"
    COURSE_VIDEOS = "COURSE_VIDEOS"
    COURSE_FILES = "COURSE_FILES"


class CodeUsage(str, Enum):
    ALL = "all"
    USED = "used"
    UNUSED = "unused"


@dataclass(frozen=True, slots=True)
class EntitlementSet:
    materials_with_questions: frozenset[int] = frozenset()
    materials_with_lectures: frozenset[int] = frozenset()
    courses: frozenset[int] = frozenset()

    @property
    def materials(self) -> frozenset[int]:
        return self.materials_with_questions | self.materials_with_lectures

    def is_empty(self) -> bool:
        return not (self.materials or self.courses)


@dataclass(frozen=True, slots=True)
class AccessDecision:
    allowed: bool
    reason: str


@dataclass(slots=True)
class RedemptionResult:
    redemption_id: UUID
    code: str
    code_pool_id: int
    code_pool_name: str
    expiration: datetime
    redeemed_at: datetime
    materials_with_questions: list[int]
    materials_with_lectures: list[int]
    courses: list[int]

    @property
    def materials(self) -> list[int]:
        return sorted(set(self.materials_with_questions) | set(self.materials_with_lectures))


@dataclass(slots=True)
class RedemptionHistoryItem:
    redemption_id: UUID
    code: str
    code_pool_id: int
    code_pool_name: str | None
    expiration: datetime | None
    redeemed_at: datetime
    is_active: bool
    materials: list[int] = field(default_factory=list)
    courses: list[int] = field(default_factory=list)


@dataclass(slots=True)
class CodePoolCreateResult:
    code_pool_id: int
    name: str
    expiration: datetime
    codes: list[str]
    materials_with_questions: list[int]
    materials_with_lectures: list[int]
    courses: list[int]


@dataclass(slots=True)
class CodePoolSummary:
    code_pool_id: int
    name: str
    expiration: datetime
    created_at: datetime
    total_codes: int
    used_codes: int
    materials_with_questions: list[int]
    materials_with_lectures: list[int]
    courses: list[int]


@dataclass(slots=True)
class CodePoolDeleteResult:
    code_pool_id: int
    deleted_codes: int
    deleted_redemptions: int
    deleted_material_grants: int
    deleted_course_grants: int


@dataclass(slots=True)
class Page(Generic[T]):
    docs: list[T]
    total_docs: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total_docs + self.limit - 1) // self.limit
