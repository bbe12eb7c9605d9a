from app.workers.tasks.access_maintenance import run_redemption_reconciliation

__all__ = [
    "run_redemption_reconciliation",
]
