from datetime import datetime, timedelta

from sqlalchemy import select

from geardesk.models.enums import PurchaseStatus
from geardesk.models.vendor import Client

from factories import make_quoted_purchase

DETAILS = {
    "fullName": "Thandi",
    "surname": "Mokoena",
    "email": "thandi@example.co.za",
    "phone": "082 123 4567",
    "idNumber": "8001015009087",
    "physicalAddress": "12 Long Street, Cape Town",
    "bankName": "FNB",
    "accountHolder": "T Mokoena",
    "accountNumber": "62000000000",
    "branchCode": "250655",
    "accountType": "Cheque",
}


async def test_unknown_token_is_not_found(public_client):
    response = await public_client.get("/v1/quote-confirmation/" + "0" * 64)

    assert response.status_code == 404
    assert response.json()["detail"] == "Invalid or expired quote link"


async def test_expired_token_is_not_found(public_client, db):
    purchase = await make_quoted_purchase(db)
    purchase.quote_token_expires_at = datetime.utcnow() - timedelta(minutes=1)
    await db.commit()

    response = await public_client.get(f"/v1/quote-confirmation/{purchase.quote_confirmation_token}")

    assert response.status_code == 404


async def test_quote_summary(public_client, db):
    purchase = await make_quoted_purchase(db)

    response = await public_client.get(f"/v1/quote-confirmation/{purchase.quote_confirmation_token}")

    data = response.json()
    assert data["total_display"] == "R18 500"
    assert {item["price_display"] for item in data["items"]} == {"R16 000", "R2 500"}
    assert data["already_responded"] is False


async def test_accept_then_submit_details(public_client, db, sent_emails):
    purchase = await make_quoted_purchase(db)
    token = purchase.quote_confirmation_token

    accepted = await public_client.post(f"/v1/quote-confirmation/{token}/accept")
    accepted_again = await public_client.post(f"/v1/quote-confirmation/{token}/accept")
    submitted = await public_client.post(f"/v1/quote-confirmation/{token}/submit-details", json=DETAILS)

    assert accepted.json()["status"] == "CLIENT_ACCEPTED"
    assert accepted_again.status_code == 400
    assert submitted.status_code == 200
    assert submitted.json()["status"] == "AWAITING_PAYMENT"

    await db.refresh(purchase)
    assert purchase.status == PurchaseStatus.AWAITING_PAYMENT
    assert purchase.quote_confirmation_token == token
    await db.refresh(purchase, ["client_details"])
    assert purchase.client_details.date_of_birth.isoformat() == "1980-01-01"

    client = (await db.execute(select(Client))).scalar_one()
    assert str(client.id) == submitted.json()["extra"]["client_id"]
    assert len(sent_emails) == 1

    reused = await public_client.get(f"/v1/quote-confirmation/{token}")
    assert reused.status_code == 200
    assert reused.json()["details_submitted"] is True
    assert reused.json()["already_responded"] is True


async def test_details_require_acceptance(public_client, db):
    purchase = await make_quoted_purchase(db)

    response = await public_client.post(
        f"/v1/quote-confirmation/{purchase.quote_confirmation_token}/submit-details", json=DETAILS
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Quote must be accepted before submitting details"


async def test_details_reject_bad_identity(public_client, db):
    purchase = await make_quoted_purchase(db)
    token = purchase.quote_confirmation_token
    await public_client.post(f"/v1/quote-confirmation/{token}/accept")

    bad_id = await public_client.post(
        f"/v1/quote-confirmation/{token}/submit-details", json={**DETAILS, "idNumber": "8001015009088"}
    )
    bad_phone = await public_client.post(
        f"/v1/quote-confirmation/{token}/submit-details", json={**DETAILS, "phone": "12"}
    )

    assert bad_id.json()["detail"] == "Invalid South African ID number"
    assert bad_phone.json()["detail"] == "Invalid phone number"


async def test_decline_notifies_admin(public_client, db, sent_emails):
    purchase = await make_quoted_purchase(db)
    token = purchase.quote_confirmation_token

    response = await public_client.post(f"/v1/quote-confirmation/{token}/decline", json={"reason": "Keeping it"})

    assert response.json()["status"] == "CLIENT_DECLINED"
    assert [email["to"] for email in sent_emails] == [["owner@geardesk.test"]]
    await db.refresh(purchase)
    assert purchase.client_decline_reason == "Keeping it"
    assert purchase.quote_confirmation_token is None
