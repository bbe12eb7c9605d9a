from __future__ import annotations

from datetime import datetime, timezone

import structlog
from celery.schedules import crontab

from app.db.repo.code_redemptions_repo import CodeRedemptionsRepo
from app.db.repo.reconciliation_runs_repo import ReconciliationRunsRepo
from app.db.session import SessionLocal
from app.services.alerts import send_ops_alert
from app.services.redemption_reliability import compute_redemption_diff, reconciliation_status
from app.workers.asyncio_runner import run_async_job
from app.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)
REDEMPTION_RECONCILIATION_JOB = "redemption_reconciliation"


async def run_redemption_reconciliation_async() -> dict[str, int | str]:
    started_at = datetime.now(timezone.utc)

    async with SessionLocal.begin() as session:
        used_without_redemption = await CodeRedemptionsRepo.count_used_codes_without_redemption(
            session
        )
        redemptions_with_unused_code = await CodeRedemptionsRepo.count_redemptions_with_unused_code(
            session
        )
        value_mismatches = await CodeRedemptionsRepo.count_value_mismatches(session)
        diff_count = compute_redemption_diff(
            used_codes_without_redemption=used_without_redemption,
            redemptions_with_unused_code=redemptions_with_unused_code,
            redemption_value_mismatches=value_mismatches,
        )
        status = reconciliation_status(diff_count)
        details: dict[str, object] = {
            "used_codes_without_redemption": used_without_redemption,
            "redemptions_with_unused_code": redemptions_with_unused_code,
            "redemption_value_mismatches": value_mismatches,
        }

        await ReconciliationRunsRepo.create(
            session,
            job_name=REDEMPTION_RECONCILIATION_JOB,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            status=status,
            diff_count=diff_count,
            details=details,
        )

    result: dict[str, int | str] = {
        "used_codes_without_redemption": used_without_redemption,
        "redemptions_with_unused_code": redemptions_with_unused_code,
        "redemption_value_mismatches": value_mismatches,
        "diff_count": diff_count,
        "status": status,
    }
    if diff_count > 0:
        await send_ops_alert(
            event="redemption_reconciliation_diff_detected",
            payload=result,
        )
        logger.warning("redemption_reconciliation_diff_detected", **result)
    else:
        logger.info("redemption_reconciliation_finished", **result)
    return result


@celery_app.task(name="app.workers.tasks.access_maintenance.run_redemption_reconciliation")
def run_redemption_reconciliation() -> dict[str, int | str]:
    return run_async_job(
        run_redemption_reconciliation_async(),
        job_name=REDEMPTION_RECONCILIATION_JOB,
    )


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "redemption-reconciliation-every-10-minutes": {
            "task": "app.workers.tasks.access_maintenance.run_redemption_reconciliation",
            "schedule": 600.0,
            "options": {"queue": "q_normal"},
        },
        "redemption-reconciliation-daily-0300": {
            "task": "app.workers.tasks.access_maintenance.run_redemption_reconciliation",
            "schedule": crontab(hour=3, minute=0),
            "options": {"queue": "q_normal"},
        },
    }
)
