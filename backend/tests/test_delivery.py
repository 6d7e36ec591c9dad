from datetime import datetime, timedelta

from geardesk.core.config import get_settings
from geardesk.models.enums import PurchaseStatus

from factories import make_quoted_purchase

CRON_URL = "/v1/cron/tracking-reminders"


async def _accepted(db, days_ago=2, **overrides):
    return await make_quoted_purchase(
        db,
        status=PurchaseStatus.CLIENT_ACCEPTED,
        client_accepted_at=datetime.utcnow() - timedelta(days=days_ago),
        **overrides,
    )


async def test_tracking_requires_courier_and_number(public_client, db):
    purchase = await _accepted(db)

    response = await public_client.post(
        f"/v1/quote-confirmation/{purchase.quote_confirmation_token}/tracking",
        json={"courierCompany": "The Courier Guy", "trackingNumber": "  "},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Courier company and tracking number are required"


async def test_tracking_requires_acceptance(public_client, db):
    purchase = await make_quoted_purchase(db)

    response = await public_client.post(
        f"/v1/quote-confirmation/{purchase.quote_confirmation_token}/tracking",
        json={"courierCompany": "The Courier Guy", "trackingNumber": "TCG123"},
    )

    assert response.status_code == 400


async def test_tracking_sets_awaiting_delivery(public_client, db):
    purchase = await _accepted(db)

    response = await public_client.post(
        f"/v1/quote-confirmation/{purchase.quote_confirmation_token}/tracking",
        json={"courierCompany": " The Courier Guy ", "trackingNumber": "TCG123 "},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "AWAITING_DELIVERY"
    await db.refresh(purchase)
    assert purchase.status == PurchaseStatus.AWAITING_DELIVERY
    assert purchase.courier_company == "The Courier Guy"
    assert purchase.tracking_number == "TCG123"
    assert purchase.tracking_submitted_at is not None


async def test_tracking_rejected_once_gear_received(public_client, db):
    purchase = await _accepted(db, gear_received_at=datetime.utcnow())

    response = await public_client.post(
        f"/v1/quote-confirmation/{purchase.quote_confirmation_token}/tracking",
        json={"courierCompany": "The Courier Guy", "trackingNumber": "TCG123"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Your gear has already been received"


async def test_receiving_shipped_gear_closes_link_and_undo_restores_delivery(client, public_client, db):
    purchase = await _accepted(db)
    token = purchase.quote_confirmation_token
    await public_client.post(
        f"/v1/quote-confirmation/{token}/tracking",
        json={"courierCompany": "The Courier Guy", "trackingNumber": "TCG123"},
    )

    received = await client.post(f"/v1/incoming-gear/{purchase.id}/mark-received")
    link = await public_client.get(f"/v1/quote-confirmation/{token}")
    undone = await client.post(f"/v1/incoming-gear/{purchase.id}/undo-received")

    assert received.status_code == 200
    assert link.status_code == 404
    assert undone.json()["status"] == "AWAITING_DELIVERY"


async def test_reminders_go_to_waiting_clients_and_last_one_flags(public_client, db, sent_emails):
    waiting = await _accepted(db, customer_email="waiting@example.co.za")
    await _accepted(db, days_ago=0, customer_email="recent@example.co.za")
    await _accepted(db, customer_email="shipped@example.co.za", tracking_number="TCG123")
    await _accepted(db, customer_email="declined@example.co.za", client_declined_at=datetime.utcnow())
    overdue = await _accepted(db, days_ago=8, customer_email="overdue@example.co.za", tracking_reminders_sent=6)

    response = await public_client.post(CRON_URL)

    assert response.status_code == 200
    data = response.json()
    assert data["reminders_sent"] == 1
    assert data["flagged"] == 1
    assert data["flagged_purchase_ids"] == [str(overdue.id)]

    recipients = sorted(email["to"][0] for email in sent_emails)
    assert recipients == ["owner@geardesk.test", "waiting@example.co.za"]
    reminder = next(e for e in sent_emails if e["to"] == ["waiting@example.co.za"])
    assert f"/quote/{waiting.quote_confirmation_token}/tracking" in reminder["html"]

    await db.refresh(waiting)
    await db.refresh(overdue)
    assert waiting.tracking_reminders_sent == 1
    assert waiting.last_tracking_reminder_at is not None
    assert overdue.flagged_for_follow_up is True
    assert overdue.tracking_reminders_sent == 6

    again = await public_client.post(CRON_URL)
    assert again.json()["flagged"] == 0


async def test_reminders_without_email_service_do_not_count(public_client, db):
    waiting = await _accepted(db)

    response = await public_client.post(CRON_URL)

    assert response.json()["reminders_sent"] == 0
    await db.refresh(waiting)
    assert waiting.tracking_reminders_sent == 0


async def test_cron_secret_is_enforced_when_set(public_client, db, monkeypatch):
    monkeypatch.setattr(get_settings(), "cron_secret", "cron-s3cret")

    missing = await public_client.post(CRON_URL)
    wrong = await public_client.post(CRON_URL, headers={"Authorization": "Bearer nope"})
    ok = await public_client.post(CRON_URL, headers={"Authorization": "Bearer cron-s3cret"})

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert ok.status_code == 200
