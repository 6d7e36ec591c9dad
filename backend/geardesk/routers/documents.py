"""Supplier invoice and consignment agreement PDFs for purchases awaiting payment."""

import io
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.database import get_db
from geardesk.core.security import require_staff, AuthenticatedUser
from geardesk.models.purchase import PendingPurchase
from geardesk.services.pdf_generator import get_pdf_generator
from geardesk.services.purchases import agreement_document_data, invoice_document_data

router = APIRouter(prefix="/awaiting-payment", tags=["documents"])


async def _purchase_with_details(db: AsyncSession, purchase_id: UUID) -> PendingPurchase:
    purchase = await db.get(PendingPurchase, purchase_id)
    if not purchase:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase not found")
    if purchase.client_details is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Client details have not been submitted",
        )
    return purchase


def _pdf_response(content: bytes, filename: str) -> StreamingResponse:
    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Content-Length": str(len(content)),
    }
    return StreamingResponse(io.BytesIO(content), media_type="application/pdf", headers=headers)


@router.get("/{purchase_id}/invoice.pdf")
async def download_invoice(
    purchase_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Supplier invoice for a purchase."""
    purchase = await _purchase_with_details(db, purchase_id)
    content = get_pdf_generator().generate_supplier_invoice(invoice_document_data(purchase))
    filename = f"{purchase.invoice_number or f'invoice-{purchase.id}'}.pdf"
    return _pdf_response(content, filename)


@router.get("/{purchase_id}/agreement.pdf")
async def download_agreement(
    purchase_id: UUID,
    end_date: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Consignment agreement for a purchase."""
    purchase = await _purchase_with_details(db, purchase_id)
    data = agreement_document_data(purchase, end_date)
    if not data["items"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Purchase has no consignment items",
        )
    content = get_pdf_generator().generate_consignment_agreement(data)
    return _pdf_response(content, f"consignment-agreement-{purchase.id}.pdf")
