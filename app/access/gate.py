from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.access.entitlements import EntitlementResolver
from app.access.errors import AccessDeniedError
from app.access.types import AccessDecision, EntitlementSet, ResourceType
from app.db.models.course_files import CourseFile
from app.db.models.lectures import Lecture
from app.db.repo.content_repo import ContentRepo

logger = structlog.get_logger(__name__)

COURSE_RESOURCE_TYPES = frozenset(
    {ResourceType.COURSE, ResourceType.COURSE_VIDEOS, ResourceType.COURSE_FILES}
)


def _file_payload(
    *,
    filename: str | None,
    access_url: str | None,
    full: bool,
) -> dict[str, Any] | None:
    if full:
        if filename is None and access_url is None:
            return None
        return {"filename": filename, "accessUrl": access_url}
    if filename is None:
        return None
    return {"filename": filename}


class AccessGate:
    @staticmethod
    def decide(
        entitlements: EntitlementSet,
        *,
        resource_type: ResourceType,
        resource_id: int,
        course_material_id: int | None = None,
    ) -> AccessDecision:
        if resource_type == ResourceType.MATERIAL:
            if resource_id in entitlements.materials:
                return AccessDecision(allowed=True, reason="material_granted")
            return AccessDecision(allowed=False, reason="material_not_granted")

        if resource_type == ResourceType.MATERIAL_QUESTIONS:
            if resource_id in entitlements.materials_with_questions:
                return AccessDecision(allowed=True, reason="questions_granted")
            return AccessDecision(allowed=False, reason="questions_not_granted")

        if resource_type == ResourceType.MATERIAL_LECTURES:
            if resource_id in entitlements.materials_with_lectures:
                return AccessDecision(allowed=True, reason="lectures_granted")
            return AccessDecision(allowed=False, reason="lectures_not_granted")

        if resource_type in COURSE_RESOURCE_TYPES:
            if resource_id in entitlements.courses:
                return AccessDecision(allowed=True, reason="course_granted")
            if course_material_id is not None and course_material_id in entitlements.materials:
                return AccessDecision(allowed=True, reason="parent_material_granted")
            return AccessDecision(allowed=False, reason="course_not_granted")

        return AccessDecision(allowed=False, reason="unknown_resource_type")

    @staticmethod
    async def check(
        session: AsyncSession,
        *,
        student_id: int,
        resource_type: ResourceType,
        resource_id: int,
        now_utc: datetime,
        entitlements: EntitlementSet | None = None,
    ) -> AccessDecision:
        if entitlements is None:
            entitlements = await EntitlementResolver.resolve_access(
                session,
                student_id=student_id,
                now_utc=now_utc,
            )

        course_material_id: int | None = None
        if resource_type in COURSE_RESOURCE_TYPES and resource_id not in entitlements.courses:
            course = await ContentRepo.get_course(session, resource_id)
            if course is None:
                return AccessDecision(allowed=False, reason="course_not_found")
            course_material_id = course.material_id

        return AccessGate.decide(
            entitlements,
            resource_type=resource_type,
            resource_id=resource_id,
            course_material_id=course_material_id,
        )

    @staticmethod
    async def require(
        session: AsyncSession,
        *,
        student_id: int,
        resource_type: ResourceType,
        resource_id: int,
        now_utc: datetime,
        entitlements: EntitlementSet | None = None,
    ) -> AccessDecision:
        decision = await AccessGate.check(
            session,
            student_id=student_id,
            resource_type=resource_type,
            resource_id=resource_id,
            now_utc=now_utc,
            entitlements=entitlements,
        )
        if not decision.allowed:
            logger.info(
                "access_denied",
                student_id=student_id,
                resource_type=resource_type.value,
                resource_id=resource_id,
                reason=decision.reason,
            )
            raise AccessDeniedError(decision.reason)
        return decision

    @staticmethod
    def redact_lectures(
        lectures: Sequence[Lecture],
        *,
        has_full_access: bool,
    ) -> list[dict[str, Any]]:
        """Lectures are expected in `num` order; the first one is always a free preview."""
        redacted: list[dict[str, Any]] = []
        for index, lecture in enumerate(lectures):
            full = has_full_access or index == 0
            redacted.append(
                {
                    "id": lecture.id,
                    "material": lecture.material_id,
                    "num": lecture.num,
                    "file": _file_payload(
                        filename=lecture.filename,
                        access_url=lecture.access_url,
                        full=full,
                    ),
                }
            )
        return redacted

    @staticmethod
    def redact_course_files(
        files: Sequence[CourseFile],
        *,
        has_access: bool,
    ) -> list[dict[str, Any]]:
        return [
            {
                "id": course_file.id,
                "course": course_file.course_id,
                "num": course_file.num,
                "file": _file_payload(
                    filename=course_file.filename,
                    access_url=course_file.access_url,
                    full=has_access,
                ),
            }
            for course_file in files
        ]
