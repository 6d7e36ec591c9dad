"""Transactional email through the Resend HTTP API.

Email is always best effort for callers: use ``send_quietly`` around any send made
from a request handler so a mail outage never fails the request.
"""

import base64
import logging
from html import escape
from typing import Any, Awaitable, Iterable, Optional

import httpx

from geardesk.core.config import Settings, get_settings
from geardesk.services.pricing import format_price

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class EmailError(Exception):
    """Resend rejected the message or could not be reached."""


def quote_url(token: str, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    return f"{settings.public_base_url}/quote/{token}"


def quote_accept_url(token: str, settings: Optional[Settings] = None) -> str:
    return f"{quote_url(token, settings)}/accept"


def select_products_url(token: str, settings: Optional[Settings] = None) -> str:
    return f"{quote_url(token, settings)}/select-products"


def tracking_url(token: str, settings: Optional[Settings] = None) -> str:
    return f"{quote_url(token, settings)}/tracking"


def purchase_dashboard_url(purchase_id, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    return f"{settings.dashboard_url}/dashboard/incoming?highlight={purchase_id}"


def consignment_review_url(token: str, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    return f"{settings.public_base_url}/consignment-review/{token}"


async def send_quietly(send: Awaitable[bool], context: str) -> bool:
    """Await a send, logging instead of raising on failure."""
    try:
        return await send
    except (EmailError, httpx.HTTPError) as e:
        logger.warning(f"[EMAIL] {context} failed: {e}")
        return False


def _layout(company_name: str, heading: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="background-color: #1a1a1a; color: white; padding: 24px; text-align: center;">
    <h1 style="margin: 0; font-size: 22px;">{escape(company_name)}</h1>
    <p style="margin: 8px 0 0 0;">{escape(heading)}</p>
  </div>
  <div style="padding: 24px; border: 1px solid #e5e7eb; border-top: none;">
    {body}
  </div>
</body>
</html>"""


def _button(url: str, label: str, color: str = "#059669") -> str:
    return (
        f'<p style="text-align: center; margin: 24px 0;"><a href="{escape(url)}" '
        f'style="background-color: {color}; color: white; padding: 14px 36px; '
        f'text-decoration: none; border-radius: 6px; font-weight: bold;">{escape(label)}</a></p>'
    )


def _items_table(items: Iterable[tuple[str, Optional[int]]], total_cents: Optional[int]) -> str:
    rows = "".join(
        f'<tr><td style="padding: 8px; border-bottom: 1px solid #e5e7eb;">{escape(name)}</td>'
        f'<td style="padding: 8px; border-bottom: 1px solid #e5e7eb; text-align: right;">'
        f"{format_price(cents)}</td></tr>"
        for name, cents in items
    )
    return (
        '<table style="width: 100%; border-collapse: collapse;">'
        f"{rows}"
        '<tr><td style="padding: 12px 8px; font-weight: bold;">TOTAL</td>'
        f'<td style="padding: 12px 8px; font-weight: bold; text-align: right;">{format_price(total_cents)}</td></tr>'
        "</table>"
    )


class EmailService:
    """Sends templated emails. Disabled (returns False) when no API key is set."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return self.settings.email_enabled

    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        attachments: Optional[list[tuple[str, bytes]]] = None,
    ) -> bool:
        """Send one message. Attachments are (filename, content) pairs."""
        if not self.enabled:
            logger.warning(f"[EMAIL] Not configured, skipping '{subject}' to {to}")
            return False

        body: dict[str, Any] = {
            "from": self.settings.email_from,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if attachments:
            body["attachments"] = [
                {"filename": filename, "content": base64.b64encode(content).decode("ascii")}
                for filename, content in attachments
            ]

        async with httpx.AsyncClient(transport=self.transport) as client:
            response = await client.post(
                RESEND_API_URL,
                json=body,
                headers={"Authorization": f"Bearer {self.settings.resend_api_key}"},
                timeout=10.0,
            )

        if response.status_code >= 300:
            raise EmailError(f"Resend returned {response.status_code}: {response.text}")

        logger.info(f"[EMAIL] Sent '{subject}' to {to}")
        return True

    async def send_quote_approved(
        self,
        customer_name: str,
        customer_email: str,
        token: str,
        total_amount_cents: Optional[int] = None,
    ) -> bool:
        """Tell the client their WhatsApp quote was accepted and link the quote page."""
        company = self.settings.company_name
        total = (
            f"<p>Estimated total: <strong>{format_price(total_amount_cents)}</strong></p>"
            if total_amount_cents
            else ""
        )
        body = (
            f"<p>Hi {escape(customer_name)},</p>"
            "<p>Thanks for accepting our quote. Please review it and confirm below.</p>"
            f"{total}"
            f"{_button(quote_url(token, self.settings), 'View your quote')}"
        )
        return await self.send(
            customer_email,
            f"Your quote from {company}",
            _layout(company, "Quote approved", body),
        )

    async def send_quote(
        self,
        customer_name: str,
        customer_email: str,
        token: str,
        items: list[tuple[str, Optional[int]]],
        total_amount_cents: Optional[int],
    ) -> bool:
        """Send the reviewed quote with accept link."""
        company = self.settings.company_name
        body = (
            f"<p>Hi {escape(customer_name)},</p>"
            "<p>Here is our offer for your equipment:</p>"
            f"{_items_table(items, total_amount_cents)}"
            f"{_button(quote_accept_url(token, self.settings), 'Accept quote')}"
            f'<p style="font-size: 12px;">Not interested? You can decline on the '
            f'<a href="{escape(quote_url(token, self.settings))}">quote page</a>.</p>'
        )
        return await self.send(
            customer_email,
            f"Your quote from {company}",
            _layout(company, "Quote for your equipment", body),
        )

    async def send_final_quote(
        self,
        customer_name: str,
        customer_email: str,
        items: list[tuple[str, Optional[int]]],
        total_amount_cents: Optional[int],
        token: Optional[str] = None,
    ) -> bool:
        """Send the post-inspection final offer, linking the buy or consign choice page."""
        company = self.settings.company_name
        choose = (
            "<p>For each item you can sell to us outright or consign it with us.</p>"
            f"{_button(select_products_url(token, self.settings), 'Choose buy or consign')}"
            if token
            else ""
        )
        body = (
            f"<p>Hi {escape(customer_name)},</p>"
            "<p>We've inspected your equipment. Our final offer is below.</p>"
            f"{_items_table(items, total_amount_cents)}"
            f"{choose}"
            "<p>Reply to this email or contact us on WhatsApp if you have any questions.</p>"
        )
        return await self.send(
            customer_email,
            f"Final quote from {company}",
            _layout(company, "Final quote after inspection", body),
        )

    async def send_quote_declined(
        self,
        customer_name: str,
        customer_email: Optional[str],
        purchase_id,
        reason: Optional[str] = None,
    ) -> bool:
        """Notify the admin that a client declined."""
        if not self.settings.admin_email:
            logger.warning("[EMAIL] ADMIN_EMAIL not set, skipping quote declined notice")
            return False
        body = (
            f"<p><strong>{escape(customer_name)}</strong> ({escape(customer_email or 'no email')}) "
            "declined their quote.</p>"
            f"<p>Reason: {escape(reason or 'No reason provided')}</p>"
            f"{_button(purchase_dashboard_url(purchase_id, self.settings), 'Open in dashboard', '#2563eb')}"
        )
        return await self.send(
            self.settings.admin_email,
            f"Quote declined: {customer_name}",
            _layout(self.settings.company_name, "Quote declined", body),
        )

    async def send_awaiting_payment(
        self,
        customer_name: str,
        customer_email: Optional[str],
        purchase_id,
        total_amount_cents: Optional[int],
    ) -> bool:
        """Notify the admin that client details are in and payment is due."""
        if not self.settings.admin_email:
            logger.warning("[EMAIL] ADMIN_EMAIL not set, skipping awaiting payment notice")
            return False
        body = (
            f"<p><strong>{escape(customer_name)}</strong> ({escape(customer_email or 'no email')}) "
            "submitted their details.</p>"
            f"<p>Quote total: <strong>{format_price(total_amount_cents)}</strong></p>"
            f"{_button(purchase_dashboard_url(purchase_id, self.settings), 'Open in dashboard', '#2563eb')}"
        )
        return await self.send(
            self.settings.admin_email,
            f"Awaiting payment: {customer_name}",
            _layout(self.settings.company_name, "Client details received", body),
        )

    async def send_supplier_invoice(
        self,
        customer_name: str,
        customer_email: str,
        invoice_number: str,
        items: list[tuple[str, Optional[int]]],
        total_amount_cents: int,
        pdf: Optional[bytes] = None,
    ) -> bool:
        """Send the supplier invoice, with the PDF attached when given."""
        company = self.settings.company_name
        body = (
            f"<p>Dear <strong>{escape(customer_name)}</strong>,</p>"
            "<p>Your equipment has been approved for payment. Your supplier invoice is below.</p>"
            f"<h3>Invoice #{escape(invoice_number)}</h3>"
            f"{_items_table(items, total_amount_cents)}"
        )
        attachments = [(f"{invoice_number}.pdf", pdf)] if pdf else None
        return await self.send(
            customer_email,
            f"Supplier invoice {invoice_number} from {company}",
            _layout(company, "Supplier invoice", body),
            attachments=attachments,
        )

    async def send_consignment_change_request(
        self,
        customer_name: str,
        customer_email: str,
        equipment_name: str,
        token: str,
        current_payout_cents: int,
        proposed_payout_cents: int,
        reason: Optional[str] = None,
    ) -> bool:
        """Ask a consignment client to review a payout change."""
        company = self.settings.company_name
        reason_html = f"<p>Reason: {escape(reason)}</p>" if reason else ""
        body = (
            f"<p>Hi {escape(customer_name)},</p>"
            f"<p>We'd like to adjust the payout for your <strong>{escape(equipment_name)}</strong>.</p>"
            f"<p>Current payout: {format_price(current_payout_cents)}<br>"
            f"Proposed payout: <strong>{format_price(proposed_payout_cents)}</strong></p>"
            f"{reason_html}"
            f"{_button(consignment_review_url(token, self.settings), 'Review change')}"
        )
        return await self.send(
            customer_email,
            f"Consignment update from {company}",
            _layout(company, "Consignment change request", body),
        )

    async def send_tracking_reminder(
        self,
        customer_name: str,
        customer_email: str,
        token: str,
        reminder_number: int,
    ) -> bool:
        """Ask a client who accepted to send the courier tracking number."""
        company = self.settings.company_name
        body = (
            f"<p>Hi {escape(customer_name)},</p>"
            "<p>Thanks for accepting our quote. Once you have shipped your gear, please "
            "send us the courier name and tracking number so we can watch for it.</p>"
            f"{_button(tracking_url(token, self.settings), 'Submit tracking details')}"
            f'<p style="font-size: 12px;">Reminder {reminder_number}</p>'
        )
        return await self.send(
            customer_email,
            f"Tracking details needed: {company}",
            _layout(company, "Waiting for your shipment", body),
        )

    async def send_tracking_follow_up(self, customer_name: str, customer_phone: str, purchase_id) -> bool:
        """Tell the admin a client never sent tracking after repeated reminders."""
        if not self.settings.admin_email:
            logger.warning("[EMAIL] ADMIN_EMAIL not set, skipping tracking follow-up notice")
            return False
        body = (
            f"<p><strong>{escape(customer_name)}</strong> ({escape(customer_phone)}) has not sent "
            "tracking details after repeated reminders. Please follow up directly.</p>"
            f"{_button(purchase_dashboard_url(purchase_id, self.settings), 'Open in dashboard', '#2563eb')}"
        )
        return await self.send(
            self.settings.admin_email,
            f"Tracking follow-up needed: {customer_name}",
            _layout(self.settings.company_name, "No tracking received", body),
        )


def get_email_service() -> EmailService:
    """FastAPI dependency; tests override it with a MockTransport-backed instance."""
    return EmailService()
