"""Authentication helpers."""

from fastapi import APIRouter, Depends

from app.backend.src.core.security import get_current_user
from app.backend.src.models import User
from app.backend.src.schemas.user import UserRead

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(get_current_user)) -> UserRead:
    """Return the authenticated user's profile."""

    return UserRead.model_validate(current_user)
