from dataclasses import dataclass, field
from typing import Optional

import pytest

from geardesk.services.lens_matching import (
    CatalogLens,
    compare_two_strings,
    compute_match_confidence,
    confidence_level,
    find_best_matches,
    maker_score,
    mount_score,
    normalize_string,
)


@dataclass
class Lens:
    maker: str
    model: str
    mounts: list = field(default_factory=list)
    focal_min_mm: Optional[float] = None
    focal_max_mm: Optional[float] = None
    aperture_min: Optional[float] = None
    aperture_max: Optional[float] = None


NIFTY_FIFTY = Lens("Canon", "Canon EF 50mm f/1.8 STM", ["Canon EF"], 50, 50, 1.8, 1.8)
STANDARD_ZOOM = Lens("Canon", "Canon EF 24-70mm f/2.8L II USM", ["Canon EF"], 24, 70, 2.8, 2.8)


def test_normalize_string():
    assert normalize_string("Canon EF 50mm f/1.8 STM") == "canon ef 50mm f1.8 stm"
    assert normalize_string("Nikon AF-S 24 – 70 mm F 2.8") == "nikon af-s 24-70mm f2.8"


def test_compare_two_strings():
    assert compare_two_strings("canon", "canon") == 1.0
    assert compare_two_strings("a", "canon") == 0.0
    assert 0 < compare_two_strings("canon ef", "canon rf") < 1


@pytest.mark.parametrize(
    "catalog, lensfun, expected",
    [
        ("Canon", "Canon", 1.0),
        ("Fujifilm", "Fuji Photo Film", 0.95),
        ("Sigma", "Sigma Corporation", 0.95),
        ("Zeiss", "Carl Zeiss", 0.8),
        ("Canon", "Samyang", 0.0),
    ],
)
def test_maker_score(catalog, lensfun, expected):
    assert maker_score(catalog, lensfun) == pytest.approx(expected)


def test_mount_score():
    assert mount_score({"mount": "Canon EF"}, ["Canon EF"]) == 1.0
    assert mount_score({"mount": "Canon RF"}, ["Canon EF"]) == 0.1
    assert mount_score({"mounts": ["Sony E"]}, ["Nikon F AF"]) == 0.2
    assert mount_score({}, ["Canon EF"]) == 0.5


def test_exact_lens_scores_high():
    catalog = CatalogLens(
        make="Canon",
        output_text="Canon EF 50mm f/1.8 STM",
        specifications={"mount": "Canon EF", "focal_min_mm": 50, "focal_max_mm": 50, "aperture_min": 1.8},
    )

    result = compute_match_confidence(catalog, NIFTY_FIFTY)

    assert result.score >= 0.85
    assert confidence_level(result.score) == ("high", "auto")
    assert result.reasons[-1].startswith("FINAL SCORE")


def test_huge_focal_mismatch_is_clamped():
    catalog = CatalogLens(make="Canon", output_text="Canon EF 200mm f/2.8L", specifications={"mount": "Canon EF"})

    result = compute_match_confidence(catalog, NIFTY_FIFTY)

    assert result.score <= 0.64
    assert any("HARD REJECT" in reason for reason in result.reasons)
    assert confidence_level(result.score)[1] != "auto"


def test_find_best_matches_orders_by_score():
    catalog = CatalogLens(make="Canon", output_text="Canon EF 24-70mm f/2.8L II USM", specifications={"mount": "Canon EF"})

    matches = find_best_matches(catalog, [NIFTY_FIFTY, STANDARD_ZOOM], min_score=0.0)

    assert matches[0][0] is STANDARD_ZOOM
    assert matches[0][1].score > matches[1][1].score


@pytest.mark.parametrize(
    "score, expected",
    [(0.85, ("high", "auto")), (0.84, ("medium", "suggest")), (0.65, ("medium", "suggest")), (0.64, ("low", "skip"))],
)
def test_confidence_level(score, expected):
    assert confidence_level(score) == expected
