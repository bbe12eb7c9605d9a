from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.reconciliation_runs import ReconciliationRun


class ReconciliationRunsRepo:
    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        job_name: str,
        started_at: datetime,
        finished_at: datetime | None,
        status: str,
        diff_count: int,
        details: dict[str, object] | None = None,
    ) -> ReconciliationRun:
        run = ReconciliationRun(
            job_name=job_name,
            started_at=started_at,
            finished_at=finished_at,
            status=status,
            diff_count=diff_count,
            details=details or {},
        )
        session.add(run)
        await session.flush()
        return run

