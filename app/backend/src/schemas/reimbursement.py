"""Reimbursement suggestion schemas."""

from pydantic import BaseModel


class ReimbursementSuggestion(BaseModel):
    salary: float
    suggested_amount: float
    floor: float
    percentage: float
