"""Auth schemas."""

from typing import Optional

from geardesk.schemas.base import BaseSchema


class CurrentUserResponse(BaseSchema):
    """Current authenticated user info."""

    uid: str
    email: Optional[str] = None
    email_verified: bool = False
    db_user_id: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    is_active: bool = False
