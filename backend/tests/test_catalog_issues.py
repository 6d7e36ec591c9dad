from sqlalchemy import select

from geardesk.models.catalog import CatalogBlockingIssue, CatalogItem
from geardesk.models.enums import IssueStatus
from geardesk.services.catalog_issues import detect_issues, scan_catalog_blocking_issues

PRICES = {"buy_low": 400000, "buy_high": 500000, "consign_low": 550000, "consign_high": 650000}


def _lens(**overrides) -> CatalogItem:
    fields = {
        "output_text": "Canon EF 50mm f/1.8 STM",
        "make": "Canon",
        "product_type": "Lens",
        "is_active": True,
        "specifications": {"mount": "Canon EF", "focal_min_mm": 50, "focal_max_mm": 50, "aperture_min": 1.8},
        **PRICES,
    }
    fields.update(overrides)
    return CatalogItem(**fields)


def _types(item: CatalogItem) -> set:
    return {issue_type for issue_type, _, _ in detect_issues(item)}


def test_complete_lens_has_no_issues():
    assert detect_issues(_lens()) == []


def test_lens_without_mount_or_optics():
    item = _lens(specifications={"mounts": []})
    assert _types(item) == {"LENS_MISSING_MOUNT", "LENS_MISSING_FOCAL_AND_APERTURE"}


def test_mounts_list_satisfies_mount_requirement():
    item = _lens(specifications={"mounts": ["Sony E"], "focal_min_mm": 35})
    assert _types(item) == set()


def test_inverted_ranges():
    item = _lens(specifications={
        "mount": "Nikon F",
        "focal_min_mm": "200",
        "focal_max_mm": "70",
        "aperture_min": 5.6,
        "aperture_max": 4,
    })
    assert _types(item) == {"LENS_INVALID_FOCAL_RANGE", "LENS_INVALID_APERTURE_RANGE"}


def test_non_numeric_range_is_not_flagged():
    item = _lens(specifications={"mount": "Nikon F", "focal_min_mm": "wide", "focal_max_mm": "70"})
    assert "LENS_INVALID_FOCAL_RANGE" not in _types(item)


def test_lens_rules_only_apply_to_lenses():
    body = _lens(product_type="Camera Body", specifications={})
    assert _types(body) == set()


def test_missing_or_negative_price():
    assert _types(_lens(buy_low=None)) == {"PRICING_NULL_OR_INVALID"}
    assert _types(_lens(consign_high=-1)) == {"PRICING_NULL_OR_INVALID"}


def test_required_fields_only_checked_on_active_items():
    assert "REQUIRED_FIELD_VIOLATION_ON_ACTIVE" in _types(_lens(make="  "))
    assert "REQUIRED_FIELD_VIOLATION_ON_ACTIVE" not in _types(_lens(make="  ", is_active=False))


async def test_rescan_is_idempotent_and_auto_resolves(db):
    broken = _lens(buy_high=None, specifications={})
    healthy = _lens(output_text="Canon EF 85mm f/1.8 USM")
    db.add_all([broken, healthy])
    await db.commit()

    first = await scan_catalog_blocking_issues(db)
    second = await scan_catalog_blocking_issues(db)

    assert first == second
    assert first["open_blocking_count"] == 3
    assert first["by_type"] == {
        "LENS_MISSING_FOCAL_AND_APERTURE": 1,
        "LENS_MISSING_MOUNT": 1,
        "PRICING_NULL_OR_INVALID": 1,
    }

    broken.buy_high = 500000
    broken.specifications = {"mount": "Canon EF", "focal_min_mm": 50}
    await db.commit()

    summary = await scan_catalog_blocking_issues(db, auto_resolve_note="fixed")

    assert summary == {"open_blocking_count": 0, "by_type": {}}
    issues = (await db.execute(select(CatalogBlockingIssue))).scalars().all()
    assert len(issues) == 3
    assert all(issue.status == IssueStatus.RESOLVED for issue in issues)
    assert {issue.resolution_note for issue in issues} == {"fixed"}


async def test_scan_limited_to_selected_items(db):
    first = _lens(buy_low=None)
    second = _lens(buy_low=None, output_text="Canon EF 85mm f/1.8 USM")
    db.add_all([first, second])
    await db.commit()

    summary = await scan_catalog_blocking_issues(db, item_ids=[first.id])

    assert summary["open_blocking_count"] == 1
    issue = (await db.execute(select(CatalogBlockingIssue))).scalar_one()
    assert issue.catalog_item_id == first.id
