import json
import uuid
from datetime import datetime

from sqlalchemy import select

from geardesk.core.config import get_settings
from geardesk.models.enums import PurchaseStatus, WebhookStatus
from geardesk.models.purchase import PendingPurchase
from geardesk.models.webhook import WebhookEventLog
from geardesk.services.webhook_security import sign_payload, verify_webhook_signature

URL = "/v1/webhooks/quote-accepted"
WEBHOOK_SECRET = get_settings().webhook_secret


def _envelope(event_type="quote_accepted", event_id=None, **payload_overrides):
    payload = {
        "customerName": "Thandi Mokoena",
        "customerPhone": "0821234567",
        "customerEmail": "thandi@example.co.za",
        "whatsappConversationId": "conv-123",
        "totalQuoteAmount": 18500,
        "botQuoteAcceptedAt": "2026-10-01T09:30:00Z",
        "items": [
            {
                "name": "Canon EOS R6",
                "brand": "Canon",
                "model": "EOS R6",
                "botEstimatedPrice": 16000,
                "suggestedSellPrice": 24000,
                "serialNumber": "032021001234",
                "imageUrls": ["https://img.example/r6.jpg"],
            },
            {"name": "Canon RF 50mm f/1.8", "botEstimatedPrice": 2500, "proposedPrice": 2400},
        ],
    }
    payload.update(payload_overrides)
    return {
        "event_id": event_id or str(uuid.uuid4()),
        "event_type": event_type,
        "version": "1.0",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "payload": payload,
    }


async def _post(client, body, secret=WEBHOOK_SECRET, signature=None):
    raw = json.dumps(body).encode("utf-8")
    headers = {"content-type": "application/json"}
    headers["x-webhook-signature"] = signature or sign_payload(raw, secret)
    return await client.post(URL, content=raw, headers=headers)


def test_signature_round_trip_and_tampering():
    raw = b'{"hello": "world"}'
    header = sign_payload(raw, "s3cret")

    assert header.startswith("sha256=")
    assert verify_webhook_signature(raw, header, "s3cret").valid
    assert verify_webhook_signature(raw, header[len("sha256="):], "s3cret").valid
    assert not verify_webhook_signature(raw + b" ", header, "s3cret").valid
    assert not verify_webhook_signature(raw, "sha256=abc", "s3cret").valid
    assert not verify_webhook_signature(raw, None, "s3cret").valid


async def test_bad_signature_is_rejected(public_client, db):
    response = await _post(public_client, _envelope(), secret="wrong-secret")

    assert response.status_code == 401
    assert (await db.execute(select(WebhookEventLog))).first() is None


async def test_invalid_envelope_is_rejected(public_client):
    body = _envelope()
    body["version"] = "v1"

    response = await _post(public_client, body)

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid webhook envelope"


async def test_unknown_event_type_is_rejected_without_logging(public_client, db):
    response = await _post(public_client, _envelope("quote_expired"))

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid webhook envelope"
    assert (await db.execute(select(WebhookEventLog))).first() is None


async def test_quote_accepted_creates_purchase(public_client, db, sent_emails):
    body = _envelope()

    response = await _post(public_client, body)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "processed"
    assert data["noop"] is False
    assert data["event_id"] == body["event_id"]

    purchase = (await db.execute(select(PendingPurchase))).scalar_one()
    assert str(purchase.id) == data["related_entity_id"]
    assert purchase.status == PurchaseStatus.PENDING_REVIEW
    assert purchase.total_quote_amount_cents == 1850000
    assert purchase.quote_confirmation_token
    await db.refresh(purchase, ["items"])
    prices = sorted(item.proposed_price_cents for item in purchase.items)
    assert prices == [240000, 1600000]

    event = (await db.execute(select(WebhookEventLog))).scalar_one()
    assert event.status == WebhookStatus.PROCESSED
    assert event.related_entity_type == "PendingPurchase"

    assert [email["to"] for email in sent_emails] == [["thandi@example.co.za"]]


async def test_same_event_id_is_acknowledged_as_duplicate(public_client, db):
    body = _envelope()

    first = await _post(public_client, body)
    second = await _post(public_client, body)

    assert first.json()["status"] == "processed"
    assert second.status_code == 200
    assert second.json() == {"status": "duplicate", "event_id": body["event_id"]}
    assert len((await db.execute(select(PendingPurchase))).scalars().all()) == 1


async def test_same_quote_with_new_event_id_is_noop(public_client, db):
    first = await _post(public_client, _envelope())
    second = await _post(public_client, _envelope(botQuoteAcceptedAt="2026-10-05T12:00:00Z"))

    assert second.json()["status"] == "processed"
    assert second.json()["noop"] is True
    assert second.json()["related_entity_id"] == first.json()["related_entity_id"]
    assert len((await db.execute(select(PendingPurchase))).scalars().all()) == 1


async def test_quote_outside_window_creates_new_purchase(public_client, db):
    await _post(public_client, _envelope())
    response = await _post(public_client, _envelope(botQuoteAcceptedAt="2026-10-12T09:30:00Z"))

    assert response.json()["noop"] is False
    assert len((await db.execute(select(PendingPurchase))).scalars().all()) == 2


async def test_invalid_payload_is_logged_as_failed(public_client, db):
    response = await _post(public_client, _envelope(customerPhone="123"))

    assert response.status_code == 500
    assert response.json()["status"] == "failed"
    event = (await db.execute(select(WebhookEventLog))).scalar_one()
    assert event.status == WebhookStatus.FAILED
    assert event.error_message.startswith("Invalid payload")


async def test_quote_declined_marks_purchase(public_client, db):
    await _post(public_client, _envelope())

    response = await _post(
        public_client,
        _envelope(
            "quote_declined",
            customerPhone="0821234567",
            whatsappConversationId="conv-123",
            reason="Found a better offer",
        ),
    )

    assert response.json()["noop"] is False
    purchase = (await db.execute(select(PendingPurchase))).scalar_one()
    assert purchase.status == PurchaseStatus.CLIENT_DECLINED
    assert purchase.client_decline_reason == "Found a better offer"


async def test_replay_failed_event(public_client, client, db):
    await _post(public_client, _envelope(customerPhone="123"))
    event = (await db.execute(select(WebhookEventLog))).scalar_one()

    # Fix the stored payload, as an operator would before replaying
    fixed = dict(event.payload)
    fixed["payload"] = {**fixed["payload"], "customerPhone": "0829876543"}
    event.payload = fixed
    await db.commit()

    response = await client.post(f"/v1/admin/webhooks/events/{event.event_id}/replay")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "PROCESSED"
    assert data["retry_count"] == 1
    assert data["error_message"].startswith("Replay successful")

    again = await client.post(f"/v1/admin/webhooks/events/{event.event_id}/replay")
    assert again.status_code == 409


async def test_ignore_requires_note_and_hides_event(public_client, client, db):
    await _post(public_client, _envelope(customerPhone="123"))
    event = (await db.execute(select(WebhookEventLog))).scalar_one()

    missing = await client.post(f"/v1/admin/webhooks/events/{event.event_id}/ignore", json={"note": "  "})
    ignored = await client.post(
        f"/v1/admin/webhooks/events/{event.event_id}/ignore", json={"note": "Test message from bot staging"}
    )
    summary = await client.get("/v1/admin/webhooks/events/summary")
    listing = await client.get("/v1/admin/webhooks/events")

    assert missing.status_code == 400
    assert ignored.status_code == 200
    assert ignored.json()["ignore_note"] == "Test message from bot staging"
    assert summary.json()["failed_not_ignored_count"] == 0
    assert summary.json()["by_status"]["FAILED"] == 1
    assert listing.json()["total"] == 0

    replay = await client.post(f"/v1/admin/webhooks/events/{event.event_id}/replay")
    assert replay.status_code == 400


async def test_admin_endpoints_reject_staff(client, staff_user, act_as):
    act_as(staff_user)

    response = await client.get("/v1/admin/webhooks/events/summary")

    assert response.status_code == 403


async def test_event_detail_by_delivered_event_id_includes_forensics(public_client, client):
    body = _envelope()
    raw = json.dumps(body).encode("utf-8")
    signature = sign_payload(raw, WEBHOOK_SECRET)
    delivered = await public_client.post(
        URL,
        content=raw,
        headers={
            "content-type": "application/json",
            "x-webhook-signature": signature,
            "x-forwarded-for": "41.13.22.7, 10.0.0.1",
        },
    )
    event_id = delivered.json()["event_id"]

    response = await client.get(f"/v1/admin/webhooks/events/{event_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["event_id"] == body["event_id"]
    assert data["status"] == "PROCESSED"
    assert data["source_ip"] == "41.13.22.7"
    assert data["signature_provided"] == signature
    assert data["signature_computed"] == signature
    assert data["signature_valid"] is True


async def test_event_detail_unknown_event_id_is_404(client):
    response = await client.get(f"/v1/admin/webhooks/events/{uuid.uuid4()}")

    assert response.status_code == 404
