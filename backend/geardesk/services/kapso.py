"""Kapso WhatsApp API client (platform API plus the Meta proxy for sending)."""

import logging
from typing import Any, Optional

import httpx

from geardesk.core.config import get_settings

logger = logging.getLogger(__name__)

KAPSO_PLATFORM_API = "https://api.kapso.ai/platform/v1"
KAPSO_META_API = "https://api.kapso.ai/meta/whatsapp/v24.0"


class KapsoError(Exception):
    """Kapso returned an error or is not configured."""


class KapsoClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else get_settings().kapso_api_key
        self.transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        platform: bool = True,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> Any:
        if not self.api_key:
            raise KapsoError("KAPSO_API_KEY not configured")

        base_url = KAPSO_PLATFORM_API if platform else KAPSO_META_API
        async with httpx.AsyncClient(transport=self.transport) as client:
            try:
                response = await client.request(
                    method,
                    f"{base_url}{path}",
                    params={k: v for k, v in (params or {}).items() if v is not None},
                    json=json,
                    headers={"X-API-Key": self.api_key},
                    timeout=10.0,
                )
            except httpx.HTTPError as e:
                raise KapsoError(f"Kapso unreachable: {e}") from e

        if response.status_code >= 300:
            logger.error(f"[KAPSO] {method} {path} failed: {response.status_code} {response.text}")
            message = f"Kapso API error {response.status_code}"
            try:
                body = response.json()
                message = body.get("error") or body.get("message") or message
            except ValueError:
                pass
            raise KapsoError(message)
        return response.json()

    async def list_conversations(
        self,
        phone_number_id: str,
        status: Optional[str] = None,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
    ) -> Any:
        return await self._request(
            "GET",
            "/whatsapp/conversations",
            params={
                "phone_number_id": phone_number_id,
                "status": status,
                "page": page,
                "per_page": per_page,
            },
        )

    async def get_conversation(self, conversation_id: str) -> Any:
        return await self._request("GET", f"/whatsapp/conversations/{conversation_id}")

    async def update_conversation_status(self, conversation_id: str, status: str) -> Any:
        return await self._request(
            "PATCH", f"/whatsapp/conversations/{conversation_id}", json={"status": status}
        )

    async def list_messages(
        self,
        phone_number_id: str,
        conversation_id: Optional[str] = None,
        per_page: Optional[int] = None,
    ) -> Any:
        return await self._request(
            "GET",
            "/whatsapp/messages",
            params={
                "phone_number_id": phone_number_id,
                "conversation_id": conversation_id,
                "per_page": per_page,
            },
        )

    async def send_text_message(self, phone_number_id: str, to: str, body: str) -> Any:
        return await self._request(
            "POST",
            f"/{phone_number_id}/messages",
            platform=False,
            json={
                "messaging_product": "whatsapp",
                "to": to,
                "type": "text",
                "text": {"body": body},
            },
        )

    async def assign_conversation(
        self, conversation_id: str, user_id: str, notes: Optional[str] = None
    ) -> Any:
        return await self._request(
            "POST",
            f"/whatsapp/conversations/{conversation_id}/assignments",
            json={"assignment": {"user_id": user_id, "notes": notes, "active": True}},
        )


def get_kapso_client() -> KapsoClient:
    """FastAPI dependency."""
    return KapsoClient()
