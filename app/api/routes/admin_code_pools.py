from __future__ import annotations

import csv
import io
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Query, Request, Response, status

from app.access.errors import AccessError
from app.access.pools import CodePoolService
from app.access.types import CodeUsage
from app.api.auth import assert_admin_access
from app.api.errors import access_http_error
from app.api.i18n import get_text, resolve_language
from app.db.session import SessionLocal

from .access_models import (
    MAX_PAGE_LIMIT,
    AccessCodeOut,
    CodePoolCreateRequest,
    CodePoolCreateResponse,
    CodePoolDeleteResponse,
    CodePoolSummaryOut,
    PageResponse,
    as_page_response,
)

router = APIRouter(prefix="/admin", tags=["admin", "code-pools"])
logger = structlog.get_logger(__name__)


@router.post(
    "/codesGroup",
    response_model=CodePoolCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_code_pool(
    payload: CodePoolCreateRequest,
    request: Request,
) -> CodePoolCreateResponse:
    created_by = assert_admin_access(request)

    try:
        async with SessionLocal.begin() as session:
            result = await CodePoolService.create_pool(
                session,
                name=payload.name,
                code_count=payload.code_count,
                expiration=payload.expiration,
                created_by=created_by,
                materials=payload.materials,
                materials_with_questions=payload.materials_with_questions,
                materials_with_lectures=payload.materials_with_lectures,
                courses=payload.courses,
                now_utc=datetime.now(timezone.utc),
            )
    except AccessError as exc:
        raise access_http_error(request, exc) from exc

    logger.info(
        "code_pool_created",
        code_pool_id=result.code_pool_id,
        code_count=len(result.codes),
        created_by=created_by,
        expiration=result.expiration.isoformat(),
    )
    return CodePoolCreateResponse(
        id=result.code_pool_id,
        name=result.name,
        expiration=result.expiration,
        code_count=len(result.codes),
        codes=result.codes,
        materials_with_questions=result.materials_with_questions,
        materials_with_lectures=result.materials_with_lectures,
        courses=result.courses,
    )


@router.get("/codesGroups", response_model=PageResponse[CodePoolSummaryOut])
async def list_code_pools(
    request: Request,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=MAX_PAGE_LIMIT),
    name: str | None = Query(default=None, max_length=100),
    material: int | None = Query(default=None, gt=0),
    course: int | None = Query(default=None, gt=0),
    expiration_from: datetime | None = Query(default=None, alias="expirationFrom"),
    expiration_to: datetime | None = Query(default=None, alias="expirationTo"),
) -> PageResponse[CodePoolSummaryOut]:
    assert_admin_access(request)

    async with SessionLocal.begin() as session:
        result = await CodePoolService.list_pools(
            session,
            page=page,
            limit=limit,
            name=name,
            material_id=material,
            course_id=course,
            expiration_from=expiration_from,
            expiration_to=expiration_to,
        )

    return as_page_response(
        result,
        [
            CodePoolSummaryOut(
                id=summary.code_pool_id,
                name=summary.name,
                expiration=summary.expiration,
                created_at=summary.created_at,
                total_codes=summary.total_codes,
                used_codes=summary.used_codes,
                unused_codes=summary.total_codes - summary.used_codes,
                materials_with_questions=summary.materials_with_questions,
                materials_with_lectures=summary.materials_with_lectures,
                courses=summary.courses,
            )
            for summary in result.docs
        ],
    )


@router.get("/codes/{code_pool_id}", response_model=PageResponse[AccessCodeOut])
async def list_code_pool_codes(
    code_pool_id: int,
    request: Request,
    usage: CodeUsage = Query(default=CodeUsage.ALL),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=MAX_PAGE_LIMIT),
) -> PageResponse[AccessCodeOut]:
    assert_admin_access(request)

    try:
        async with SessionLocal.begin() as session:
            result = await CodePoolService.list_pool_codes(
                session,
                code_pool_id=code_pool_id,
                usage=usage,
                page=page,
                limit=limit,
            )
    except AccessError as exc:
        raise access_http_error(request, exc) from exc

    return as_page_response(
        result,
        [
            AccessCodeOut(id=code.id, value=code.value, is_used=code.is_used, used_at=code.used_at)
            for code in result.docs
        ],
    )


@router.get("/codes/{code_pool_id}/export")
async def export_code_pool_codes(code_pool_id: int, request: Request) -> Response:
    assert_admin_access(request)

    try:
        async with SessionLocal.begin() as session:
            pool, values = await CodePoolService.export_unused_codes(
                session,
                code_pool_id=code_pool_id,
            )
    except AccessError as exc:
        raise access_http_error(request, exc) from exc

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["code", "codes_group", "expiration"])
    expiration = pool.expiration.isoformat()
    for value in values:
        writer.writerow([value, pool.name, expiration])

    logger.info("code_pool_exported", code_pool_id=pool.id, exported_codes=len(values))
    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="codes_group_{pool.id}.csv"'},
    )


@router.delete("/codesGroup/{code_pool_id}", response_model=CodePoolDeleteResponse)
async def delete_code_pool(code_pool_id: int, request: Request) -> CodePoolDeleteResponse:
    assert_admin_access(request)

    try:
        async with SessionLocal.begin() as session:
            result = await CodePoolService.delete_pool(session, code_pool_id=code_pool_id)
    except AccessError as exc:
        logger.info("code_pool_delete_rejected", code_pool_id=code_pool_id, error=type(exc).__name__)
        raise access_http_error(request, exc) from exc

    logger.info(
        "code_pool_deleted",
        code_pool_id=code_pool_id,
        deleted_codes=result.deleted_codes,
        deleted_redemptions=result.deleted_redemptions,
    )
    return CodePoolDeleteResponse(
        message=get_text("msg.code_pool.deleted", language=resolve_language(request)),
        id=code_pool_id,
        deleted_codes=result.deleted_codes,
        deleted_redemptions=result.deleted_redemptions,
    )
