"""Clients router: list, history and merge."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.database import get_db
from geardesk.core.security import require_staff, AuthenticatedUser
from geardesk.models.enums import ActivityAction
from geardesk.schemas.vendor import (
    ClientDetailResponse,
    ClientEquipmentSummary,
    ClientListItem,
    ClientMergeRequest,
    ClientPurchaseSummary,
    ClientResponse,
)
from geardesk.services.activity import ActivityService
from geardesk.services.clients import (
    ClientMergeError,
    get_client_with_history,
    list_clients,
    merge_clients,
)

router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("", response_model=List[ClientListItem])
async def get_clients(
    q: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """List active (non-merged) clients with buy/consignment counts."""
    summaries = await list_clients(db, search=q, skip=skip, limit=limit)
    return [
        ClientListItem(
            **ClientResponse.model_validate(s.client).model_dump(),
            item_count=s.item_count,
            buy_count=s.buy_count,
            consignment_count=s.consignment_count,
            total_paid_cents=s.total_paid_cents,
        )
        for s in summaries
    ]


@router.get("/{client_id}", response_model=ClientDetailResponse)
async def get_client(
    client_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Get a client with their equipment and purchases."""
    history = await get_client_with_history(db, client_id)
    if history is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")

    client, equipment, purchases = history
    return ClientDetailResponse(
        client=ClientResponse.model_validate(client),
        equipment=[ClientEquipmentSummary.model_validate(e) for e in equipment],
        purchases=[ClientPurchaseSummary.model_validate(p) for p in purchases],
    )


@router.post("/{client_id}/merge", response_model=ClientResponse)
async def merge_client(
    client_id: UUID,
    data: ClientMergeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Merge this client into ``target_id``. Returns the surviving client."""
    try:
        target = await merge_clients(db, client_id, data.target_id)
    except ClientMergeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await ActivityService(db).log(
        action=ActivityAction.CLIENTS_MERGED,
        entity_type="client",
        entity_id=target.id,
        user_id=current_user.db_user_id,
        details={"source_client_id": str(client_id)},
    )
    await db.commit()

    return ClientResponse.model_validate(target)
