"""WhatsApp inbox router, proxied to Kapso."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from geardesk.core.config import get_settings
from geardesk.core.security import require_staff, AuthenticatedUser
from geardesk.schemas.whatsapp import ConversationUpdate, PhoneConfig, SendMessageRequest
from geardesk.services.kapso import KapsoClient, KapsoError, get_kapso_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/whatsapp", tags=["whatsapp"])


def _phone_number_id(override: Optional[str] = None) -> str:
    phone_number_id = override or get_settings().kapso_phone_number_id
    if not phone_number_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="KAPSO_PHONE_NUMBER_ID not configured",
        )
    return phone_number_id


def _bad_gateway(error: KapsoError) -> HTTPException:
    logger.error(f"[KAPSO] {error}")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(error))


@router.get("/conversations")
async def list_conversations(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    current_user: AuthenticatedUser = Depends(require_staff),
    kapso: KapsoClient = Depends(get_kapso_client),
) -> Any:
    """Conversations on the business number."""
    try:
        return await kapso.list_conversations(_phone_number_id(), status_filter, page, per_page)
    except KapsoError as e:
        raise _bad_gateway(e)


@router.get("/conversations/{conversation_id}/messages")
async def list_messages(
    conversation_id: str,
    per_page: int = Query(50, ge=1, le=200),
    current_user: AuthenticatedUser = Depends(require_staff),
    kapso: KapsoClient = Depends(get_kapso_client),
) -> Any:
    """Messages in one conversation."""
    try:
        return await kapso.list_messages(_phone_number_id(), conversation_id, per_page)
    except KapsoError as e:
        raise _bad_gateway(e)


@router.post("/messages")
async def send_message(
    data: SendMessageRequest,
    current_user: AuthenticatedUser = Depends(require_staff),
    kapso: KapsoClient = Depends(get_kapso_client),
) -> Any:
    """Send a text message from the business number."""
    try:
        result = await kapso.send_text_message(
            _phone_number_id(data.phone_number_id), data.to, data.body
        )
    except KapsoError as e:
        raise _bad_gateway(e)

    logger.info(f"[KAPSO] Message sent to {data.to} by {current_user.name}")
    return result


@router.patch("/conversations/{conversation_id}")
async def update_conversation(
    conversation_id: str,
    data: ConversationUpdate,
    current_user: AuthenticatedUser = Depends(require_staff),
    kapso: KapsoClient = Depends(get_kapso_client),
) -> Any:
    """Change a conversation's status and/or assignee."""
    if data.status is None and data.assigned_to is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nothing to update",
        )

    result: dict[str, Any] = {}
    try:
        if data.status is not None:
            result["conversation"] = await kapso.update_conversation_status(
                conversation_id, data.status
            )
        if data.assigned_to is not None:
            result["assignment"] = await kapso.assign_conversation(
                conversation_id, data.assigned_to
            )
    except KapsoError as e:
        raise _bad_gateway(e)
    return result


@router.get("/phone-config", response_model=PhoneConfig)
async def phone_config(current_user: AuthenticatedUser = Depends(require_staff)):
    """Whether the WhatsApp number is configured."""
    settings = get_settings()
    return PhoneConfig(
        configured=bool(settings.kapso_api_key and settings.kapso_phone_number_id),
        phone_number_id=settings.kapso_phone_number_id,
    )
