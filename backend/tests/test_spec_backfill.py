import pytest

from geardesk.models.catalog import CatalogItem
from geardesk.scripts.backfill_specs import main
from geardesk.services.spec_backfill import (
    backfill_specs_from_output_text,
    merge_specs,
    parse_aperture,
    parse_focal,
)


def _lens(output_text, **overrides) -> CatalogItem:
    fields = {
        "output_text": output_text,
        "make": "Canon",
        "product_type": "Lens",
        "is_active": True,
        "specifications": {"mount": "Canon EF"},
    }
    fields.update(overrides)
    return CatalogItem(**fields)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Canon EF 70-200mm f/2.8L IS II USM", (70, 200)),
        ("Canon EF 50mm f/1.8 STM", (50, 50)),
        ("Sony FE 24 – 70 mm F2.8 GM II", (24, 70)),
        ("Panasonic 7.1-28.8mm", (7.1, 28.8)),
    ],
)
def test_parse_focal(text, expected):
    result = parse_focal(text)
    assert (result.value.min, result.value.max) == expected
    assert result.ambiguous is None


def test_parse_focal_ambiguous_and_missing():
    assert parse_focal("Sigma 18-35mm and 50-100mm f/1.8 kit").ambiguous.startswith("Multiple zoom ranges")
    assert parse_focal("Nikon 35mm and 85mm primes").ambiguous.startswith("Multiple prime focal values")
    assert parse_focal("Lens hood").value is None


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Canon EF 70-200mm f/2.8L IS II USM", (2.8, 2.8, "f2.8")),
        ("Nikon AF-S 18-55mm f/3.5-5.6G VR", (3.5, 5.6, "f3.5-5.6")),
        ("Samyang 35mm T1.5 VDSLR", (1.5, 1.5, "T1.5")),
        ("Canon RF 24-105mm F4 L IS", (4, 4, "f4")),
    ],
)
def test_parse_aperture(text, expected):
    result = parse_aperture(text)
    assert (result.value.min, result.value.max, result.value.pattern) == expected


def test_parse_aperture_conflicting_stops_are_ambiguous():
    result = parse_aperture("Rokinon 50mm T1.5 f/1.4 cine")
    assert result.value is None
    assert result.ambiguous.startswith("Conflicting aperture types")


def test_merge_never_overwrites():
    focal = parse_focal("24-70mm").value
    merged, changed = merge_specs({"focal_min_mm": 28, "mount": "Sony E"}, focal, None)

    assert changed
    assert merged == {"focal_min_mm": 28, "focal_max_mm": 70, "mount": "Sony E"}
    assert merge_specs(merged, focal, None) == (merged, False)


async def test_dry_run_reports_without_writing(db):
    lens = _lens("Canon EF 70-200mm f/2.8L IS II USM")
    db.add(lens)
    await db.commit()

    report = await backfill_specs_from_output_text(db, apply=False)

    assert report.target_rows == 1
    assert report.counts["APPLIED"] == 1
    assert report.examples["APPLIED"][0]["focal"] == "70-200mm"
    await db.refresh(lens)
    assert lens.specifications == {"mount": "Canon EF"}


async def test_apply_fills_only_targets(db):
    applied = _lens("Canon EF 70-200mm f/2.8L IS II USM")
    ambiguous = _lens("Sigma 18-35mm and 50-100mm f/1.8 kit", make="Sigma")
    no_match = _lens("Lens hood", make="Generic")
    complete = _lens("Canon EF 50mm f/1.8 STM", specifications={"focal_min_mm": 50})
    body = _lens("Canon EOS R6 24-105mm kit", product_type="Camera Body")
    db.add_all([applied, ambiguous, no_match, complete, body])
    await db.commit()

    report = await backfill_specs_from_output_text(db, apply=True)

    assert report.target_rows == 3
    assert report.counts == {"APPLIED": 1, "SKIPPED": 0, "AMBIGUOUS": 1, "NO_MATCH": 1}
    await db.refresh(applied)
    await db.refresh(ambiguous)
    assert applied.specifications == {
        "mount": "Canon EF",
        "focal_min_mm": 70,
        "focal_max_mm": 200,
        "aperture_min": 2.8,
        "aperture_max": 2.8,
    }
    assert ambiguous.specifications == {"mount": "Canon EF"}


def test_cli_requires_exactly_one_mode():
    with pytest.raises(SystemExit):
        main([])
    with pytest.raises(SystemExit):
        main(["--dry-run", "--apply"])
