from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from app.access.pools import CodePoolService
from app.db.models.colleges import College
from app.db.models.courses import Course
from app.db.models.materials import Material
from app.db.models.students import Student
from app.db.models.universities import University
from app.db.session import SessionLocal

UTC = timezone.utc


@dataclass(frozen=True, slots=True)
class Catalogue:
    university_id: int
    college_id: int
    material_ids: tuple[int, ...]
    course_id: int


async def _create_catalogue() -> Catalogue:
    async with SessionLocal.begin() as session:
        university = University(name="Damascus University")
        session.add(university)
        await session.flush()
        college = College(university_id=university.id, name="Engineering", num_of_years=5)
        session.add(college)
        await session.flush()
        materials = [
            Material(college_id=college.id, name="Algebra", year=1),
            Material(college_id=college.id, name="Physics", year=1),
        ]
        session.add_all(materials)
        await session.flush()
        course = Course(material_id=materials[0].id, name="Algebra crash course")
        session.add(course)
        await session.flush()
        return Catalogue(
            university_id=university.id,
            college_id=college.id,
            material_ids=tuple(material.id for material in materials),
            course_id=course.id,
        )


async def _create_student(index: int, *, status: str = "ACTIVE") -> int:
    async with SessionLocal.begin() as session:
        student = Student(
            fname=f"Student{index}",
            lname="Test",
            phone=f"+96390000{index:04d}",
            status=status,
        )
        session.add(student)
        await session.flush()
        return student.id


async def _create_pool(
    *,
    name: str,
    code_count: int,
    material_ids: tuple[int, ...] = (),
    course_ids: tuple[int, ...] = (),
    expiration: datetime | None = None,
) -> tuple[int, list[str]]:
    now_utc = datetime.now(UTC)
    async with SessionLocal.begin() as session:
        result = await CodePoolService.create_pool(
            session,
            name=name,
            code_count=code_count,
            expiration=expiration or now_utc + timedelta(days=7),
            created_by="integration",
            materials=list(material_ids),
            courses=list(course_ids),
            now_utc=now_utc,
        )
    return result.code_pool_id, result.codes
