from app.db.repo.access_codes_repo import AccessCodesRepo
from app.db.repo.code_pools_repo import CodePoolsRepo
from app.db.repo.code_redemptions_repo import CodeRedemptionsRepo
from app.db.repo.content_repo import ContentRepo
from app.db.repo.reconciliation_runs_repo import ReconciliationRunsRepo
from app.db.repo.students_repo import StudentsRepo

__all__ = [
    "AccessCodesRepo",
    "CodePoolsRepo",
    "CodeRedemptionsRepo",
    "ContentRepo",
    "ReconciliationRunsRepo",
    "StudentsRepo",
]
