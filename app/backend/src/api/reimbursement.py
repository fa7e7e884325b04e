"""Reimbursement calculator endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.backend.src.core.security import get_current_user
from app.backend.src.schemas.reimbursement import ReimbursementSuggestion
from app.backend.src.services import reimbursement

router = APIRouter(prefix="/reimbursement", tags=["reimbursement"])


@router.get(
    "/suggestion",
    response_model=ReimbursementSuggestion,
    dependencies=[Depends(get_current_user)],
)
def suggest_reimbursement(
    salary: float = Query(default=0, description="Gross monthly salary"),
) -> ReimbursementSuggestion:
    """Return the suggested reimbursement for a salary."""

    return ReimbursementSuggestion(
        salary=salary,
        suggested_amount=reimbursement.suggest(salary),
        floor=reimbursement.BASE_SALARY,
        percentage=reimbursement.SALARY_PERCENTAGE,
    )
