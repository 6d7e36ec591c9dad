from sqlalchemy import select

from geardesk.models.catalog import CatalogItem, EnrichmentSuggestion, LensfunLens
from geardesk.models.enums import SuggestionStatus
from geardesk.services.enrichment import (
    apply_auto_specs,
    apply_reviewed_specs,
    enrich_catalog,
    is_complete,
    pick_suggested_lens_specs,
)

BLOCK = {
    "match_score": 0.93,
    "maker": "Canon",
    "model": "Canon EF 50mm f/1.8 STM",
    "mounts": ["Canon EF"],
    "focal_min_mm": 50.0,
    "focal_max_mm": 50.0,
    "aperture_min": 1.8,
    "aperture_max": 22.0,
    "reasons": [],
}


def test_is_complete():
    assert is_complete({"focal_min_mm": 50, "aperture_min": 1.8})
    assert not is_complete({"focal_min_mm": 50})
    assert not is_complete(None)


def test_auto_specs_only_fill_empty_fields():
    specs = {"mount": "Canon RF", "focal_min_mm": 52}

    updated = apply_auto_specs(specs, BLOCK)

    assert updated["mount"] == "Canon RF"
    assert "mounts" not in updated
    assert updated["focal_min_mm"] == 52
    assert updated["aperture_min"] == 1.8
    assert updated["lensfun"] is BLOCK
    assert updated["source"] == "lensfun"
    assert updated["confidence"] == 0.93
    assert specs == {"mount": "Canon RF", "focal_min_mm": 52}


def test_pick_suggested_lens_specs():
    picked = pick_suggested_lens_specs({**BLOCK, "focal_max_mm": None, "mounts": ["Canon EF", "Canon EF-S"]})

    assert picked == {
        "mount": "Canon EF",
        "mounts": ["Canon EF", "Canon EF-S"],
        "focal_min_mm": 50.0,
        "aperture_min": 1.8,
        "aperture_max": 22.0,
    }
    assert pick_suggested_lens_specs(None) == {}


def test_apply_reviewed_specs():
    current = {"mount": "Canon EF", "aperture_min": ""}
    suggested = {"mount": "Canon EF-S", "aperture_min": 1.8}

    assert apply_reviewed_specs(current, suggested) == {"mount": "Canon EF", "aperture_min": 1.8}
    assert apply_reviewed_specs(current, suggested, overwrite=True) == suggested


async def test_enrich_catalog_auto_applies_strong_match(db):
    db.add(LensfunLens(
        maker="Canon",
        model="Canon EF 50mm f/1.8 STM",
        mounts=["Canon EF"],
        focal_min_mm=50,
        focal_max_mm=50,
        aperture_min=1.8,
        aperture_max=22,
    ))
    item = CatalogItem(
        output_text="Canon EF 50mm f/1.8 STM",
        make="Canon",
        product_type="Lens",
        specifications={"mount": "Canon EF"},
    )
    body = CatalogItem(output_text="Canon EOS R6", make="Canon", product_type="Camera Body", specifications={})
    db.add_all([item, body])
    await db.commit()

    stats = await enrich_catalog(db)

    assert stats.scanned == 1
    assert stats.auto_applied == 1
    await db.refresh(item)
    assert item.specifications["focal_min_mm"] == 50
    assert item.specifications["aperture_min"] == 1.8
    suggestion = (await db.execute(select(EnrichmentSuggestion))).scalar_one()
    assert suggestion.status == SuggestionStatus.AUTO_APPLIED
    assert suggestion.specs_before == {"mount": "Canon EF"}

    rerun = await enrich_catalog(db)
    assert rerun.skipped == 1


async def test_enrich_catalog_dry_run_changes_nothing(db):
    db.add(LensfunLens(maker="Canon", model="Canon EF 50mm f/1.8 STM", mounts=["Canon EF"]))
    item = CatalogItem(output_text="Canon EF 50mm f/1.8 STM", make="Canon", product_type="Lens", specifications={"mount": "Canon EF"})
    db.add(item)
    await db.commit()

    stats = await enrich_catalog(db, dry_run=True)

    assert stats.auto_applied == 1
    assert (await db.execute(select(EnrichmentSuggestion))).first() is None
