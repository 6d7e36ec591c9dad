from datetime import date

from sqlalchemy import select

from geardesk.models.consignment import ConsignmentChangeRequest
from geardesk.models.enums import AcquisitionType
from geardesk.models.vendor import Client

from factories import make_equipment


async def _consigned(db, email="sipho@example.co.za"):
    client = Client(first_name="Sipho", last_name="Dlamini", phone="0831234567", email=email)
    db.add(client)
    await db.commit()
    return await make_equipment(
        db,
        acquisition_type=AcquisitionType.CONSIGNMENT,
        client_id=client.id,
        purchase_price_cents=1500000,
        cost_price_cents=1500000,
        consignment_rate=70,
    )


async def _request(client, equipment, **overrides):
    body = {
        "equipment_id": str(equipment.id),
        "proposed_payout_cents": 1300000,
        "proposed_end_date": "2027-01-31",
        "reason": "No interest at the current price",
        **overrides,
    }
    return await client.post("/v1/consignment/change-request", json=body)


async def _token(db) -> str:
    return (await db.execute(select(ConsignmentChangeRequest.token))).scalar_one()


async def test_change_request_emails_consignor(client, db, sent_emails):
    equipment = await _consigned(db)

    response = await _request(client, equipment)

    assert response.status_code == 201
    assert response.json()["status"] == "PENDING_CLIENT"
    assert response.json()["current_payout_cents"] == 1500000
    assert [email["to"] for email in sent_emails] == [["sipho@example.co.za"]]


async def test_change_request_needs_consignment_and_email(client, db):
    owned = await make_equipment(db)
    no_email = await _consigned(db, email=None)

    not_consigned = await _request(client, owned)
    unreachable = await _request(client, no_email)

    assert not_consigned.json()["detail"] == "Equipment is not on consignment"
    assert unreachable.json()["detail"] == "Client has no email address"


async def test_consignor_confirms_with_lower_payout(client, public_client, db):
    equipment = await _consigned(db)
    await _request(client, equipment)
    token = await _token(db)

    review = await public_client.get(f"/v1/consignment-review/{token}")
    too_high = await public_client.post(f"/v1/consignment-review/{token}/confirm", json={"adjusted_payout_cents": 1400000})
    confirmed = await public_client.post(f"/v1/consignment-review/{token}/confirm", json={"adjusted_payout_cents": 1200000})
    again = await public_client.post(f"/v1/consignment-review/{token}/confirm", json={})

    assert review.json()["equipment_sku"] == equipment.sku
    assert too_high.status_code == 400
    assert confirmed.json()["status"] == "CONFIRMED"
    assert again.status_code == 400

    await db.refresh(equipment)
    assert equipment.purchase_price_cents == 1200000
    assert equipment.cost_price_cents == 1200000
    assert equipment.consignment_end_date == date(2027, 1, 31)
