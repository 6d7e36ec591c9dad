"""Auth router."""

from fastapi import APIRouter, Depends

from geardesk.core.security import AuthenticatedUser, get_current_user
from geardesk.schemas.auth import CurrentUserResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(current_user: AuthenticatedUser = Depends(get_current_user)):
    """Return the Firebase identity and the local account it maps to (if any)."""
    return CurrentUserResponse(
        uid=current_user.uid,
        email=current_user.email,
        email_verified=current_user.email_verified,
        db_user_id=str(current_user.db_user_id) if current_user.db_user_id else None,
        name=current_user.name,
        role=current_user.role,
        is_active=current_user.is_active,
    )
