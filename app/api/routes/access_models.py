from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.access.types import Page

T = TypeVar("T")
MAX_PAGE_LIMIT = 100


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PageResponse(CamelModel, Generic[T]):
    docs: list[T]
    total_docs: int = Field(ge=0)
    limit: int = Field(ge=1)
    page: int = Field(ge=1)
    total_pages: int = Field(ge=0)


def as_page_response(page: Page[Any], docs: list[T]) -> PageResponse[T]:
    return PageResponse(
        docs=docs,
        total_docs=page.total_docs,
        limit=page.limit,
        page=page.page,
        total_pages=page.total_pages,
    )


class RedeemCodeRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)


class RedeemCodeData(CamelModel):
    code: str
    materials: list[int]
    materials_with_questions: list[int]
    materials_with_lectures: list[int]
    courses: list[int]
    expiration: datetime


class RedeemCodeResponse(BaseModel):
    message: str
    data: RedeemCodeData


class RedemptionHistoryEntry(CamelModel):
    id: UUID
    code: str
    codes_group: int
    codes_group_name: str | None = None
    expiration: datetime | None = None
    redeemed_at: datetime
    is_active: bool
    materials: list[int]
    courses: list[int]


class RedemptionHistoryResponse(CamelModel):
    redeemed_codes: list[RedemptionHistoryEntry]


class UniversityOut(CamelModel):
    id: int
    name: str
    icon_url: str | None = None


class CollegeOut(CamelModel):
    id: int
    university: int
    name: str
    num_of_years: int
    icon_url: str | None = None


class MaterialOut(CamelModel):
    id: int
    college: int
    name: str
    year: int
    color: str | None = None
    icon_url: str | None = None


class QuestionOut(CamelModel):
    id: int
    material: int
    text: str
    is_multiple_choice: bool
    choices: list[dict[str, Any]]
    information: str | None = None
    image_url: str | None = None


class CourseOut(CamelModel):
    id: int
    material: int | None = None
    name: str
    description: str | None = None
    promo_video_url: str | None = None


class VideoOut(CamelModel):
    id: int
    course: int
    name: str
    url: str | None = None


class LecturesResponse(CamelModel):
    lectures: list[dict[str, Any]]
    has_full_access: bool


class CourseFilesResponse(CamelModel):
    files: list[dict[str, Any]]
    has_access: bool


class CodePoolCreateRequest(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    code_count: int = Field(ge=1, le=10_000)
    expiration: datetime
    materials: list[int] = Field(default_factory=list)
    materials_with_questions: list[int] = Field(default_factory=list)
    materials_with_lectures: list[int] = Field(default_factory=list)
    courses: list[int] = Field(default_factory=list)


class CodePoolCreateResponse(CamelModel):
    id: int
    name: str
    expiration: datetime
    code_count: int
    codes: list[str]
    materials_with_questions: list[int]
    materials_with_lectures: list[int]
    courses: list[int]


class CodePoolSummaryOut(CamelModel):
    id: int
    name: str
    expiration: datetime
    created_at: datetime
    total_codes: int = Field(ge=0)
    used_codes: int = Field(ge=0)
    unused_codes: int = Field(ge=0)
    materials_with_questions: list[int]
    materials_with_lectures: list[int]
    courses: list[int]


class AccessCodeOut(CamelModel):
    id: int
    value: str
    is_used: bool
    used_at: datetime | None = None


class CodePoolDeleteResponse(CamelModel):
    message: str
    id: int
    deleted_codes: int
    deleted_redemptions: int
