"""User profile endpoints."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.backend.src.core.security import get_current_user
from app.backend.src.db import get_session_dependency
from app.backend.src.models import User
from app.backend.src.schemas.user import UserProfileUpdate, UserRead
from app.backend.src.services import users as user_service

router = APIRouter(prefix="/users", tags=["users"])

LOGGER = structlog.get_logger(__name__)


@router.patch("/me", response_model=UserRead)
def update_my_profile(
    payload: UserProfileUpdate,
    session: Annotated[Session, Depends(get_session_dependency)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> UserRead:
    """Edit the caller's own profile."""

    user = user_service.update_profile(session, current_user.id, payload)
    LOGGER.info("profile_update_served", user_id=user.id)
    return UserRead.model_validate(user)
