from geardesk.models.catalog import CatalogItem, EnrichmentSuggestion
from geardesk.models.enums import SuggestionStatus

PRICES = {"buy_low": 400000, "buy_high": 500000, "consign_low": 550000, "consign_high": 650000}


async def _lens(db, **overrides) -> CatalogItem:
    fields = {
        "output_text": "Canon EF 50mm f/1.8 STM",
        "make": "Canon",
        "product_type": "Lens",
        "is_active": False,
        "specifications": {},
        **PRICES,
    }
    fields.update(overrides)
    item = CatalogItem(**fields)
    db.add(item)
    await db.commit()
    return item


async def _suggest(db, item, **overrides) -> EnrichmentSuggestion:
    fields = {
        "catalog_item_id": item.id,
        "match_score": 0.78,
        "match_confidence": "medium",
        "match_reasons": ["FINAL SCORE: 78.0%"],
        "suggested_specs": {
            "maker": "Canon",
            "model": "Canon EF 50mm f/1.8 STM",
            "mounts": ["Canon EF"],
            "focal_min_mm": 50.0,
            "focal_max_mm": 50.0,
            "aperture_min": 1.8,
        },
        "status": SuggestionStatus.PENDING_REVIEW,
    }
    fields.update(overrides)
    suggestion = EnrichmentSuggestion(**fields)
    db.add(suggestion)
    await db.commit()
    return suggestion


async def test_rescan_and_resolve(client, db):
    item = await _lens(db, buy_low=None)

    summary = await client.post("/v1/admin/catalog/issues/rescan")
    issues = await client.get("/v1/admin/catalog/issues", params={"type": "PRICING_NULL_OR_INVALID"})

    assert summary.json()["open_blocking_count"] == 3
    assert len(issues.json()) == 1
    issue_id = issues.json()[0]["id"]
    assert issues.json()[0]["catalog_item_id"] == str(item.id)

    no_note = await client.post(f"/v1/admin/catalog/issues/{issue_id}/resolve", json={})
    resolved = await client.post(
        f"/v1/admin/catalog/issues/{issue_id}/resolve", json={"resolution_note": "Price pending supplier"}
    )
    after = await client.get("/v1/admin/catalog/issues/summary")

    assert no_note.status_code == 400
    assert resolved.json()["status"] == "RESOLVED"
    assert after.json()["by_type"].get("PRICING_NULL_OR_INVALID") is None


async def test_activating_lens_requires_specs(client, db):
    item = await _lens(db)

    response = await client.patch(f"/v1/admin/catalog/items/{item.id}", json={"is_active": True})

    assert response.status_code == 400
    assert response.json()["detail"] == {
        "error": "Cannot activate lens catalog item: missing required lens specs",
        "missing": [
            "specifications.mount",
            "specifications.focal_min_mm",
            "specifications.aperture_min",
        ],
    }


async def test_patch_merges_specs_and_rescans(client, db):
    item = await _lens(db, specifications={"notes": "old", "mounts": []})

    response = await client.patch(
        f"/v1/admin/catalog/items/{item.id}",
        json={
            "is_active": True,
            "specifications": {"mount": " Canon EF ", "focal_min_mm": 50, "aperture_min": 1.8, "notes": None},
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["item"]["is_active"] is True
    assert data["item"]["specifications"] == {
        "mounts": [],
        "mount": "Canon EF",
        "focal_min_mm": 50,
        "aperture_min": 1.8,
    }
    assert data["open_issues"] == []


async def test_activating_item_requires_text_fields(client, db):
    item = await _lens(db, product_type="Camera Body", make="")

    response = await client.patch(f"/v1/admin/catalog/items/{item.id}", json={"is_active": True})

    assert response.json()["detail"]["missing"] == ["make"]


async def test_approve_review_fills_empty_specs(client, db):
    item = await _lens(db, specifications={"mount": "Canon EF"})
    suggestion = await _suggest(db, item)

    no_note = await client.post(f"/v1/admin/enrichment-reviews/{suggestion.id}/approve", json={})
    approved = await client.post(
        f"/v1/admin/enrichment-reviews/{suggestion.id}/approve", json={"note": "Checked against box"}
    )
    twice = await client.post(
        f"/v1/admin/enrichment-reviews/{suggestion.id}/approve", json={"note": "again"}
    )

    assert no_note.status_code == 400
    assert approved.status_code == 200
    data = approved.json()
    assert data["status"] == "APPROVED"
    assert data["specs_after"]["mount"] == "Canon EF"
    assert data["specs_after"]["mounts"] == ["Canon EF"]
    assert data["specs_after"]["aperture_min"] == 1.8
    assert twice.status_code == 409

    await db.refresh(item)
    assert item.specifications["focal_min_mm"] == 50.0


async def test_approve_with_overwrite(client, db):
    item = await _lens(db, specifications={"mount": "Canon EF-S", "focal_min_mm": 55})
    suggestion = await _suggest(db, item)

    response = await client.post(
        f"/v1/admin/enrichment-reviews/{suggestion.id}/approve",
        json={"note": "Wrong mount on file", "overwrite": True},
    )

    data = response.json()
    assert data["specs_after"]["mount"] == "Canon EF"
    assert data["specs_after"]["focal_min_mm"] == 50.0
    assert "[overwrite=true]" in data["review_note"]


async def test_review_refuses_non_lens_and_empty_specs(client, db):
    body = await _lens(db, product_type="Camera Body", output_text="Canon EOS R6")
    lens = await _lens(db)
    body_suggestion = await _suggest(db, body)
    empty_suggestion = await _suggest(db, lens, suggested_specs={"maker": "Canon"})

    non_lens = await client.post(f"/v1/admin/enrichment-reviews/{body_suggestion.id}/approve", json={"note": "x"})
    empty = await client.post(f"/v1/admin/enrichment-reviews/{empty_suggestion.id}/approve", json={"note": "x"})

    assert non_lens.json()["detail"] == "Refusing to apply enrichment to non-lens product"
    assert empty.json()["detail"] == "Suggested specs contain no lens spec fields"


async def test_reject_and_summary(client, db):
    item = await _lens(db)
    suggestion = await _suggest(db, item)

    rejected = await client.post(
        f"/v1/admin/enrichment-reviews/{suggestion.id}/reject", json={"note": "Different lens"}
    )
    summary = await client.get("/v1/admin/enrichment-reviews/summary")
    pending = await client.get("/v1/admin/enrichment-reviews")

    assert rejected.json()["status"] == "REJECTED"
    assert summary.json()["by_status"]["REJECTED"] == 1
    assert summary.json()["total"] == 1
    assert pending.json() == []
