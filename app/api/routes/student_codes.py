from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, Request

from app.access.errors import AccessError
from app.access.redemption import RedemptionService
from app.api.auth import get_current_student_id
from app.api.errors import access_error_code, access_http_error
from app.api.i18n import get_text, resolve_language
from app.core.config import get_settings
from app.core.logging import mask_code_value
from app.db.session import SessionLocal

from .access_models import (
    RedeemCodeData,
    RedeemCodeRequest,
    RedeemCodeResponse,
    RedemptionHistoryEntry,
    RedemptionHistoryResponse,
)

router = APIRouter(tags=["student", "codes"])
logger = structlog.get_logger(__name__)


@router.post("/redeemCode", response_model=RedeemCodeResponse)
async def redeem_code(
    payload: RedeemCodeRequest,
    request: Request,
    student_id: int = Depends(get_current_student_id),
) -> RedeemCodeResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await RedemptionService.redeem(
                session,
                student_id=student_id,
                code=payload.code,
                now_utc=now_utc,
                lock_timeout_ms=get_settings().redeem_lock_timeout_ms,
            )
    except AccessError as exc:
        status_code, code = access_error_code(exc)
        logger.info(
            "code_redeem_rejected",
            student_id=student_id,
            code=mask_code_value(payload.code.strip().upper()),
            reason=code,
            status_code=status_code,
        )
        raise access_http_error(request, exc) from exc

    logger.info(
        "code_redeemed",
        student_id=student_id,
        code=mask_code_value(result.code),
        code_pool_id=result.code_pool_id,
        redemption_id=str(result.redemption_id),
    )
    return RedeemCodeResponse(
        message=get_text("msg.code.redeemed", language=resolve_language(request)),
        data=RedeemCodeData(
            code=result.code,
            materials=result.materials,
            materials_with_questions=result.materials_with_questions,
            materials_with_lectures=result.materials_with_lectures,
            courses=result.courses,
            expiration=result.expiration,
        ),
    )


@router.get("/redeemCodes", response_model=RedemptionHistoryResponse)
async def list_redeemed_codes(
    request: Request,
    student_id: int = Depends(get_current_student_id),
) -> RedemptionHistoryResponse:
    try:
        async with SessionLocal.begin() as session:
            history = await RedemptionService.list_history(
                session,
                student_id=student_id,
                now_utc=datetime.now(timezone.utc),
            )
    except AccessError as exc:
        raise access_http_error(request, exc) from exc

    return RedemptionHistoryResponse(
        redeemed_codes=[
            RedemptionHistoryEntry(
                id=item.redemption_id,
                code=item.code,
                codes_group=item.code_pool_id,
                codes_group_name=item.code_pool_name,
                expiration=item.expiration,
                redeemed_at=item.redeemed_at,
                is_active=item.is_active,
                materials=item.materials,
                courses=item.courses,
            )
            for item in history
        ]
    )
