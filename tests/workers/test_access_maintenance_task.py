from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from app.services.redemption_reliability import compute_redemption_diff, reconciliation_status
from app.workers.tasks import access_maintenance


class _FakeSessionLocal:
    def begin(self) -> "_FakeSessionLocal":
        return self

    async def __aenter__(self) -> SimpleNamespace:
        return SimpleNamespace()

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


def _install_counts(
    monkeypatch: pytest.MonkeyPatch,
    *,
    used_without_redemption: int,
    redemptions_with_unused: int,
    mismatches: int,
) -> list[dict[str, Any]]:
    stored_runs: list[dict[str, Any]] = []

    async def _used_without_redemption(session) -> int:
        return used_without_redemption

    async def _redemptions_with_unused(session) -> int:
        return redemptions_with_unused

    async def _mismatches(session) -> int:
        return mismatches

    async def _store_run(session, **kwargs):
        stored_runs.append(kwargs)

    repo = access_maintenance.CodeRedemptionsRepo
    monkeypatch.setattr(access_maintenance, "SessionLocal", _FakeSessionLocal())
    monkeypatch.setattr(repo, "count_used_codes_without_redemption", _used_without_redemption)
    monkeypatch.setattr(repo, "count_redemptions_with_unused_code", _redemptions_with_unused)
    monkeypatch.setattr(repo, "count_value_mismatches", _mismatches)
    monkeypatch.setattr(access_maintenance.ReconciliationRunsRepo, "create", _store_run)
    return stored_runs


def test_compute_redemption_diff_ignores_negative_counts() -> None:
    assert compute_redemption_diff(
        used_codes_without_redemption=2,
        redemptions_with_unused_code=-1,
        redemption_value_mismatches=1,
    ) == 3
    assert reconciliation_status(0) == "OK"
    assert reconciliation_status(3) == "DIFF"


@pytest.mark.asyncio
async def test_reconciliation_without_diff_stores_ok_run(monkeypatch) -> None:
    stored_runs = _install_counts(
        monkeypatch,
        used_without_redemption=0,
        redemptions_with_unused=0,
        mismatches=0,
    )

    async def _must_not_alert(**kwargs):
        raise AssertionError("no alert expected")

    monkeypatch.setattr(access_maintenance, "send_ops_alert", _must_not_alert)

    result = await access_maintenance.run_redemption_reconciliation_async()

    assert result["status"] == "OK"
    assert result["diff_count"] == 0
    assert stored_runs[0]["job_name"] == "redemption_reconciliation"
    assert stored_runs[0]["status"] == "OK"


@pytest.mark.asyncio
async def test_reconciliation_with_diff_alerts_ops(monkeypatch) -> None:
    stored_runs = _install_counts(
        monkeypatch,
        used_without_redemption=1,
        redemptions_with_unused=0,
        mismatches=2,
    )
    alerts: list[dict[str, Any]] = []

    async def _fake_alert(*, event: str, payload: dict[str, object]) -> bool:
        alerts.append({"event": event, "payload": payload})
        return True

    monkeypatch.setattr(access_maintenance, "send_ops_alert", _fake_alert)

    result = await access_maintenance.run_redemption_reconciliation_async()

    assert result["status"] == "DIFF"
    assert result["diff_count"] == 3
    assert stored_runs[0]["details"] == {
        "used_codes_without_redemption": 1,
        "redemptions_with_unused_code": 0,
        "redemption_value_mismatches": 2,
    }
    assert alerts[0]["event"] == "redemption_reconciliation_diff_detected"
    assert alerts[0]["payload"]["diff_count"] == 3


def test_run_redemption_reconciliation_task_wrapper(monkeypatch) -> None:
    async def fake_async() -> dict[str, int | str]:
        return {"diff_count": 0, "status": "OK"}

    async def _noop_dispose() -> None:
        return None

    monkeypatch.setattr(access_maintenance, "run_redemption_reconciliation_async", fake_async)
    monkeypatch.setattr("app.workers.asyncio_runner.dispose_engine", _noop_dispose)

    result = access_maintenance.run_redemption_reconciliation()

    assert result == {"diff_count": 0, "status": "OK"}


def test_reconciliation_is_scheduled_in_beat() -> None:
    schedule = access_maintenance.celery_app.conf.beat_schedule
    task_name = "app.workers.tasks.access_maintenance.run_redemption_reconciliation"

    assert schedule["redemption-reconciliation-every-10-minutes"]["task"] == task_name
    assert schedule["redemption-reconciliation-every-10-minutes"]["schedule"] == 600.0
