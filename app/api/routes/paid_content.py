from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, Request

from app.access.content import PaidContentService
from app.access.errors import AccessError
from app.api.auth import get_current_student_id
from app.api.errors import access_http_error
from app.db.session import SessionLocal

from .access_models import (
    MAX_PAGE_LIMIT,
    CollegeOut,
    CourseFilesResponse,
    CourseOut,
    LecturesResponse,
    MaterialOut,
    PageResponse,
    QuestionOut,
    UniversityOut,
    VideoOut,
    as_page_response,
)

router = APIRouter(tags=["student", "paid-content"])

PAGE_QUERY = Query(default=1, ge=1)
LIMIT_QUERY = Query(default=10, ge=1, le=MAX_PAGE_LIMIT)


@router.get("/universities", response_model=PageResponse[UniversityOut])
async def list_universities(
    request: Request,
    page: int = PAGE_QUERY,
    limit: int = LIMIT_QUERY,
    student_id: int = Depends(get_current_student_id),
) -> PageResponse[UniversityOut]:
    try:
        async with SessionLocal.begin() as session:
            result = await PaidContentService.list_universities(
                session,
                student_id=student_id,
                page=page,
                limit=limit,
                now_utc=datetime.now(timezone.utc),
            )
    except AccessError as exc:
        raise access_http_error(request, exc) from exc

    return as_page_response(
        result,
        [UniversityOut(id=row.id, name=row.name, icon_url=row.icon_url) for row in result.docs],
    )


@router.get("/colleges", response_model=PageResponse[CollegeOut])
async def list_colleges(
    request: Request,
    university: int = Query(gt=0),
    page: int = PAGE_QUERY,
    limit: int = LIMIT_QUERY,
    student_id: int = Depends(get_current_student_id),
) -> PageResponse[CollegeOut]:
    try:
        async with SessionLocal.begin() as session:
            result = await PaidContentService.list_colleges(
                session,
                student_id=student_id,
                university_id=university,
                page=page,
                limit=limit,
                now_utc=datetime.now(timezone.utc),
            )
    except AccessError as exc:
        raise access_http_error(request, exc) from exc

    return as_page_response(
        result,
        [
            CollegeOut(
                id=row.id,
                university=row.university_id,
                name=row.name,
                num_of_years=row.num_of_years,
                icon_url=row.icon_url,
            )
            for row in result.docs
        ],
    )


@router.get("/materials", response_model=PageResponse[MaterialOut])
async def list_materials(
    request: Request,
    college: int = Query(gt=0),
    page: int = PAGE_QUERY,
    limit: int = LIMIT_QUERY,
    student_id: int = Depends(get_current_student_id),
) -> PageResponse[MaterialOut]:
    try:
        async with SessionLocal.begin() as session:
            result = await PaidContentService.list_materials(
                session,
                student_id=student_id,
                college_id=college,
                page=page,
                limit=limit,
                now_utc=datetime.now(timezone.utc),
            )
    except AccessError as exc:
        raise access_http_error(request, exc) from exc

    return as_page_response(
        result,
        [
            MaterialOut(
                id=row.id,
                college=row.college_id,
                name=row.name,
                year=row.year,
                color=row.color,
                icon_url=row.icon_url,
            )
            for row in result.docs
        ],
    )


@router.get("/questions", response_model=PageResponse[QuestionOut])
async def list_questions(
    request: Request,
    material: int = Query(gt=0),
    page: int = PAGE_QUERY,
    limit: int = LIMIT_QUERY,
    student_id: int = Depends(get_current_student_id),
) -> PageResponse[QuestionOut]:
    try:
        async with SessionLocal.begin() as session:
            result = await PaidContentService.list_questions(
                session,
                student_id=student_id,
                material_id=material,
                page=page,
                limit=limit,
                now_utc=datetime.now(timezone.utc),
            )
    except AccessError as exc:
        raise access_http_error(request, exc) from exc

    return as_page_response(
        result,
        [
            QuestionOut(
                id=row.id,
                material=row.material_id,
                text=row.text,
                is_multiple_choice=row.is_multiple_choice,
                choices=list(row.choices or []),
                information=row.information,
                image_url=row.image_url,
            )
            for row in result.docs
        ],
    )


@router.get("/courses", response_model=PageResponse[CourseOut])
async def list_courses(
    request: Request,
    material: int | None = Query(default=None, gt=0),
    page: int = PAGE_QUERY,
    limit: int = LIMIT_QUERY,
    student_id: int = Depends(get_current_student_id),
) -> PageResponse[CourseOut]:
    try:
        async with SessionLocal.begin() as session:
            result = await PaidContentService.list_courses(
                session,
                student_id=student_id,
                material_id=material,
                page=page,
                limit=limit,
                now_utc=datetime.now(timezone.utc),
            )
    except AccessError as exc:
        raise access_http_error(request, exc) from exc

    return as_page_response(
        result,
        [
            CourseOut(
                id=row.id,
                material=row.material_id,
                name=row.name,
                description=row.description,
                promo_video_url=row.promo_video_url,
            )
            for row in result.docs
        ],
    )


@router.get("/videos", response_model=PageResponse[VideoOut])
async def list_videos(
    request: Request,
    course: int = Query(gt=0),
    page: int = PAGE_QUERY,
    limit: int = LIMIT_QUERY,
    student_id: int = Depends(get_current_student_id),
) -> PageResponse[VideoOut]:
    try:
        async with SessionLocal.begin() as session:
            result = await PaidContentService.list_videos(
                session,
                student_id=student_id,
                course_id=course,
                page=page,
                limit=limit,
                now_utc=datetime.now(timezone.utc),
            )
    except AccessError as exc:
        raise access_http_error(request, exc) from exc

    return as_page_response(
        result,
        [
            VideoOut(id=row.id, course=row.course_id, name=row.name, url=row.url)
            for row in result.docs
        ],
    )


@router.get("/lectures/{material_id}", response_model=LecturesResponse)
async def list_lectures(
    material_id: int,
    request: Request,
    student_id: int = Depends(get_current_student_id),
) -> LecturesResponse:
    try:
        async with SessionLocal.begin() as session:
            lectures, has_full_access = await PaidContentService.list_lectures(
                session,
                student_id=student_id,
                material_id=material_id,
                now_utc=datetime.now(timezone.utc),
            )
    except AccessError as exc:
        raise access_http_error(request, exc) from exc

    return LecturesResponse(lectures=lectures, has_full_access=has_full_access)


@router.get("/courseFiles/{course_id}", response_model=CourseFilesResponse)
async def list_course_files(
    course_id: int,
    request: Request,
    student_id: int = Depends(get_current_student_id),
) -> CourseFilesResponse:
    try:
        async with SessionLocal.begin() as session:
            files, has_access = await PaidContentService.list_course_files(
                session,
                student_id=student_id,
                course_id=course_id,
                now_utc=datetime.now(timezone.utc),
            )
    except AccessError as exc:
        raise access_http_error(request, exc) from exc

    return CourseFilesResponse(files=files, has_access=has_access)
