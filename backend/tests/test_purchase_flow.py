import uuid
from datetime import datetime, timedelta

from sqlalchemy import select

from geardesk.models.enums import AcquisitionType, EquipmentStatus, PendingItemStatus
from geardesk.models.equipment import Equipment
from geardesk.models.purchase import ClientDetails, PendingPurchase
from geardesk.services import equipment_conversion
from geardesk.services.pdf_generator import get_pdf_generator
from geardesk.services.purchases import agreement_document_data, invoice_document_data

from factories import make_product, make_quoted_purchase

WALK_IN = {
    "customer_name": "Thandi Mokoena",
    "customer_phone": "0821234567",
    "customer_email": "thandi@example.co.za",
    "items": [
        {"name": "Canon EOS R6", "brand": "Canon", "serial_number": "032021001234", "proposed_price_cents": 1600000},
        {"name": "Old flash", "proposed_price_cents": 50000},
    ],
}


async def _walk_in_received(client):
    purchase = (await client.post("/v1/incoming-gear/walk-in", json=WALK_IN)).json()
    received = (await client.post(f"/v1/incoming-gear/{purchase['id']}/mark-received")).json()
    session = (await client.get(f"/v1/inspections/{received['session_id']}")).json()
    items = {item["client_name"]: item for item in session["items"]}
    return purchase, received, items


async def _verify(client, item_id, **fields):
    body = {
        "action": "verify",
        "verified_condition": "GOOD",
        "accessories": [
            {"accessory_name": "Battery", "is_present": False},
            {"accessory_name": "Strap", "is_present": True},
        ],
        "answers": [{"question_text": "Shutter count?", "answer": "12000"}],
    }
    body.update(fields)
    return await client.patch(f"/v1/inspections/items/{item_id}", json=body)


async def test_walk_in_is_accepted_immediately(client):
    response = await client.post("/v1/incoming-gear/walk-in", json=WALK_IN)

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "CLIENT_ACCEPTED"
    assert data["total_quote_amount_cents"] == 1650000
    assert [item["status"] for item in data["items"]] == ["PENDING", "PENDING"]


async def test_mark_received_opens_session(client):
    purchase, received, items = await _walk_in_received(client)

    assert received["purchase"]["status"] == "INSPECTION_IN_PROGRESS"
    assert received["session_number"] == "INS-000001"
    assert set(items) == {"Canon EOS R6", "Old flash"}
    assert all(item["inspection_status"] == "UNVERIFIED" for item in items.values())

    again = await client.post(f"/v1/incoming-gear/{purchase['id']}/mark-received")
    assert again.status_code == 400


async def test_undo_received_within_window(client):
    purchase, _, _ = await _walk_in_received(client)

    response = await client.post(f"/v1/incoming-gear/{purchase['id']}/undo-received")

    assert response.status_code == 200
    assert response.json()["status"] == "CLIENT_ACCEPTED"
    assert response.json()["gear_received_at"] is None


async def test_undo_blocked_after_client_notified(client):
    purchase, _, _ = await _walk_in_received(client)
    await client.post(f"/v1/incoming-gear/{purchase['id']}/notify-client")

    response = await client.post(f"/v1/incoming-gear/{purchase['id']}/undo-received")

    assert response.status_code == 400
    assert "notified" in response.json()["detail"]


async def test_undo_blocked_after_window(client, db):
    purchase, _, _ = await _walk_in_received(client)
    row = await db.get(PendingPurchase, uuid.UUID(purchase["id"]))
    row.gear_received_at = datetime.utcnow() - timedelta(minutes=11)
    await db.commit()

    response = await client.post(f"/v1/incoming-gear/{purchase['id']}/undo-received")

    assert response.status_code == 400
    assert "expired" in response.json()["detail"]


async def test_verify_prices_item_from_product_band(client, db):
    product = await make_product(db)
    _, _, items = await _walk_in_received(client)
    item_id = items["Canon EOS R6"]["id"]

    identified = await client.post(f"/v1/inspections/items/{item_id}/identify", json={"product_id": str(product.id)})
    verified = await _verify(client, item_id)

    assert identified.status_code == 200
    assert identified.json()["serial_number"] == "032021001234"
    assert verified.status_code == 200
    data = verified.json()
    assert data["inspection_status"] == "VERIFIED"
    snapshot = data["verified_item"]["pricing_snapshot"]
    assert snapshot["computed_buy_price_cents"] == 1640000
    assert snapshot["accessory_penalty_cents"] == 50000
    assert snapshot["final_buy_price_cents"] == 1590000
    assert snapshot["final_consign_price_cents"] == 2082000


async def test_locked_item_needs_admin(client, db, staff_user, act_as):
    product = await make_product(db)
    _, _, items = await _walk_in_received(client)
    item_id = items["Canon EOS R6"]["id"]
    await client.post(f"/v1/inspections/items/{item_id}/identify", json={"product_id": str(product.id)})
    await _verify(client, item_id)
    await client.patch(f"/v1/inspections/items/{item_id}", json={"action": "approve"})

    act_as(staff_user)
    blocked = await _verify(client, item_id, verified_condition="LIKE_NEW")
    reopen = await client.patch(f"/v1/inspections/items/{item_id}", json={"action": "reopen", "reopen_reason": "Scratch missed"})

    assert blocked.status_code == 403
    assert reopen.status_code == 403


async def test_admin_reopen_requires_reason(client, db):
    product = await make_product(db)
    _, _, items = await _walk_in_received(client)
    item_id = items["Canon EOS R6"]["id"]
    await client.post(f"/v1/inspections/items/{item_id}/identify", json={"product_id": str(product.id)})
    await _verify(client, item_id)
    await client.patch(f"/v1/inspections/items/{item_id}", json={"action": "approve"})

    missing = await client.patch(f"/v1/inspections/items/{item_id}", json={"action": "reopen"})
    reopened = await client.patch(
        f"/v1/inspections/items/{item_id}", json={"action": "reopen", "reopen_reason": "Scratch missed"}
    )

    assert missing.status_code == 400
    assert reopened.json()["inspection_status"] == "REOPENED"
    assert reopened.json()["verified_item"]["locked"] is False


async def test_price_override_rules(client, db):
    product = await make_product(db)
    _, _, items = await _walk_in_received(client)
    item_id = items["Canon EOS R6"]["id"]
    await client.post(f"/v1/inspections/items/{item_id}/identify", json={"product_id": str(product.id)})
    await _verify(client, item_id)
    url = f"/v1/inspections/items/{item_id}/price-override"

    empty = await client.put(url, json={"override_reason": "MARKET_RESEARCH"})
    other = await client.put(url, json={"override_buy_price_cents": 1700000, "override_reason": "OTHER"})
    ok = await client.put(url, json={"override_buy_price_cents": 1700000, "override_reason": "RARE_ITEM"})
    cleared = await client.delete(url)

    assert empty.status_code == 400
    assert other.status_code == 400
    assert ok.status_code == 200
    assert ok.json()["price_override"]["override_buy_price_cents"] == 1700000
    assert cleared.json()["price_override"] is None


async def test_final_quote_requires_every_item_approved(client, db):
    product = await make_product(db)
    purchase, _, items = await _walk_in_received(client)
    item_id = items["Canon EOS R6"]["id"]
    await client.post(f"/v1/inspections/items/{item_id}/identify", json={"product_id": str(product.id)})
    await _verify(client, item_id)
    await client.patch(f"/v1/inspections/items/{item_id}", json={"action": "approve"})

    response = await client.post(f"/v1/incoming-gear/{purchase['id']}/send-final-quote")

    assert response.status_code == 400
    assert response.json()["detail"] == "1 item(s) have not been approved yet"


async def test_full_purchase_lifecycle(client, db, sent_emails):
    product = await make_product(db)
    flash = await make_product(db, name="Generic Flash", brand="Generic", model="Flash", buy_price_max_cents=60000)
    purchase, _, items = await _walk_in_received(client)
    body_id = items["Canon EOS R6"]["id"]
    flash_id = items["Old flash"]["id"]

    await client.post(f"/v1/inspections/items/{body_id}/identify", json={"product_id": str(product.id)})
    await _verify(client, body_id)
    await client.patch(f"/v1/inspections/items/{body_id}", json={"action": "approve"})
    await client.post(f"/v1/inspections/items/{flash_id}/identify", json={"product_id": str(flash.id)})
    await _verify(client, flash_id, accessories=[], not_interested=True)
    await client.patch(f"/v1/inspections/items/{flash_id}", json={"action": "approve"})

    final = await client.post(f"/v1/incoming-gear/{purchase['id']}/send-final-quote")
    assert final.status_code == 200
    assert final.json()["status"] == "FINAL_QUOTE_SENT"
    by_name = {item["name"]: item for item in final.json()["items"]}
    assert by_name["Canon EOS R6"]["final_price_cents"] == 1590000
    assert by_name["Canon EOS R6"]["status"] == "APPROVED"
    assert by_name["Old flash"]["status"] == "REJECTED"

    approved = await client.post(f"/v1/incoming-gear/{purchase['id']}/approve-for-payment")
    assert approved.json()["status"] == "APPROVED"
    assert approved.json()["invoice_number"] == "INV-000001"
    assert approved.json()["invoice_total_cents"] == 1590000

    paid = await client.post(f"/v1/incoming-gear/{purchase['id']}/mark-paid")
    data = paid.json()
    assert data["purchase"]["status"] == "COMPLETED"
    assert data["equipment_created"] == 1
    assert data["items_skipped"] == 1
    assert data["errors"] == []

    equipment = (await db.execute(select(Equipment))).scalar_one()
    assert equipment.sku == "CA-1234"
    assert equipment.purchase_price_cents == 1590000
    assert equipment.selling_price_cents == 2067000
    assert equipment.acquisition_type == AcquisitionType.PURCHASED_OUTRIGHT
    assert equipment.status == EquipmentStatus.PENDING_INSPECTION

    again = await client.post(f"/v1/incoming-gear/{purchase['id']}/mark-paid")
    assert again.status_code == 400

    row = await db.get(PendingPurchase, uuid.UUID(purchase["id"]))
    await db.refresh(row, ["items"])
    statuses = {item.name: item.status for item in row.items}
    assert statuses["Canon EOS R6"] == PendingItemStatus.ADDED_TO_INVENTORY

    subjects = [email["subject"] for email in sent_emails]
    assert len(subjects) == 2
    assert all(email["to"] == ["thandi@example.co.za"] for email in sent_emails)


async def _make_flash(db):
    return await make_product(
        db,
        name="Generic Flash",
        brand="Generic",
        model="Flash",
        buy_price_min_cents=40000,
        buy_price_max_cents=60000,
        consign_price_min_cents=50000,
        consign_price_max_cents=80000,
    )


async def _inspect_and_quote(client, db, body_fields=None, flash_fields=None):
    """Walk-in with both items identified, verified and approved, final quote sent."""
    product = await make_product(db)
    flash = await _make_flash(db)
    purchase, _, items = await _walk_in_received(client)
    body_id = items["Canon EOS R6"]["id"]
    flash_id = items["Old flash"]["id"]

    await client.post(f"/v1/inspections/items/{body_id}/identify", json={"product_id": str(product.id)})
    await _verify(client, body_id, **(body_fields or {}))
    await client.patch(f"/v1/inspections/items/{body_id}", json={"action": "approve"})
    await client.post(f"/v1/inspections/items/{flash_id}/identify", json={"product_id": str(flash.id)})
    await _verify(client, flash_id, accessories=[], **(flash_fields or {}))
    await client.patch(f"/v1/inspections/items/{flash_id}", json={"action": "approve"})

    final = await client.post(f"/v1/incoming-gear/{purchase['id']}/send-final-quote")
    assert final.status_code == 200
    row = await db.get(PendingPurchase, uuid.UUID(purchase["id"]))
    return purchase, row, body_id, flash_id


async def test_inspection_offer_needs_an_inspection(public_client, db):
    purchase = await make_quoted_purchase(db)

    response = await public_client.get(f"/v1/quote-confirmation/{purchase.quote_confirmation_token}/inspection")

    assert response.status_code == 404
    assert response.json()["detail"] == "No inspection data found for this quote"


async def test_consignment_chosen_by_client_becomes_consigned_stock(client, public_client, db, sent_emails):
    purchase, row, body_id, flash_id = await _inspect_and_quote(
        client, db, flash_fields={"not_interested": True}
    )
    token = row.quote_confirmation_token
    assert token
    assert f"/quote/{token}/select-products" in sent_emails[0]["html"]

    offer = await public_client.get(f"/v1/quote-confirmation/{token}/inspection")
    assert offer.status_code == 200
    offered = offer.json()["items"]
    assert [item["id"] for item in offered] == [body_id]
    assert offered[0]["buy_price_cents"] == 1590000
    assert offered[0]["consign_price_cents"] == 2082000
    assert offered[0]["client_selection"] is None
    assert {a["name"]: a["is_present"] for a in offered[0]["accessories"]} == {"Battery": False, "Strap": True}

    incomplete = await public_client.post(f"/v1/quote-confirmation/{token}/select-products", json={"selections": {}})
    unknown = await public_client.post(
        f"/v1/quote-confirmation/{token}/select-products",
        json={"selections": {body_id: "BUY", flash_id: "BUY"}},
    )
    chosen = await public_client.post(
        f"/v1/quote-confirmation/{token}/select-products", json={"selections": {body_id: "CONSIGNMENT"}}
    )
    assert incomplete.status_code == 400
    assert incomplete.json()["detail"] == "Please select an option for 1 more item(s)"
    assert unknown.status_code == 400
    assert chosen.status_code == 200
    assert chosen.json()["extra"]["CONSIGNMENT"] == 1

    approved = await client.post(f"/v1/incoming-gear/{purchase['id']}/approve-for-payment")
    assert approved.json()["invoice_total_cents"] == 0
    by_name = {item["name"]: item for item in approved.json()["items"]}
    assert by_name["Canon EOS R6"]["final_price_cents"] == 2082000

    paid = await client.post(f"/v1/incoming-gear/{purchase['id']}/mark-paid")
    assert paid.json()["purchase"]["status"] == "COMPLETED"
    assert paid.json()["errors"] == []

    equipment = (await db.execute(select(Equipment))).scalar_one()
    assert equipment.acquisition_type == AcquisitionType.CONSIGNMENT
    assert equipment.purchase_price_cents == 2082000
    assert equipment.selling_price_cents == 3123000
    assert equipment.consignment_rate == 70


async def test_selection_only_while_final_quote_is_open(client, public_client, db):
    purchase, row, body_id, flash_id = await _inspect_and_quote(client, db)
    token = row.quote_confirmation_token
    await client.post(f"/v1/incoming-gear/{purchase['id']}/approve-for-payment")

    response = await public_client.post(
        f"/v1/quote-confirmation/{token}/select-products",
        json={"selections": {body_id: "BUY", flash_id: "CONSIGNMENT"}},
    )

    assert response.status_code == 400


async def test_mixed_purchase_invoices_bought_items_and_consigns_the_rest(client, db):
    purchase, row, _, flash_id = await _inspect_and_quote(
        client, db, flash_fields={"client_selection": "CONSIGNMENT"}
    )

    approved = await client.post(f"/v1/incoming-gear/{purchase['id']}/approve-for-payment")
    assert approved.json()["invoice_total_cents"] == 1590000

    row.client_details = ClientDetails(
        purchase_id=row.id,
        full_name="Thandi",
        surname="Mokoena",
        email="thandi@example.co.za",
        phone="0821234567",
        physical_address="12 Long Street, Cape Town",
    )
    await db.commit()
    await db.refresh(row)

    invoice = invoice_document_data(row)
    agreement = agreement_document_data(row)

    assert [item["name"] for item in invoice["items"]] == ["Canon EOS R6"]
    assert invoice["total_cents"] == 1590000
    assert [(i["name"], i["price_cents"]) for i in invoice["consignment_items"]] == [("Old flash", 65600)]
    assert [(i["name"], i["price_cents"]) for i in agreement["items"]] == [("Old flash", 65600)]
    assert agreement["total_cents"] == 65600
    assert get_pdf_generator().generate_supplier_invoice(invoice).startswith(b"%PDF")

    pdf = await client.get(f"/v1/awaiting-payment/{purchase['id']}/agreement.pdf")
    assert pdf.status_code == 200


async def test_mark_paid_collects_failing_items_and_stays_open(client, db, monkeypatch):
    purchase, _, _, _ = await _inspect_and_quote(client, db)
    await client.post(f"/v1/incoming-gear/{purchase['id']}/approve-for-payment")
    real_generate_sku = equipment_conversion.generate_sku

    async def generate_sku(db, brand, serial_number=None):
        if brand == "Generic":
            raise RuntimeError("disk full")
        return await real_generate_sku(db, brand, serial_number)

    monkeypatch.setattr(equipment_conversion, "generate_sku", generate_sku)

    paid = await client.post(f"/v1/incoming-gear/{purchase['id']}/mark-paid")

    data = paid.json()
    assert data["purchase"]["status"] == "PAYMENT_RECEIVED"
    assert data["equipment_created"] == 1
    assert data["errors"] == ["Generic Flash: disk full"]
    equipment = (await db.execute(select(Equipment))).scalar_one()
    assert equipment.brand == "Canon"
