"""Scoring catalog lenses against Lensfun entries.

Every enrichment decision goes through ``compute_match_confidence``. The final score
is weighted 25% maker, 50% model text, 15% mount and 10% spec consistency, with hard
penalties for obviously different focal lengths or apertures.
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Protocol, Sequence

MAKER_WEIGHT = 0.25
MODEL_WEIGHT = 0.50
MOUNT_WEIGHT = 0.15
SPEC_WEIGHT = 0.10

AUTO_THRESHOLD = 0.85
SUGGEST_THRESHOLD = 0.65
FOCAL_REJECT_CLAMP = 0.64
FOCAL_REJECT_BYPASS = 0.95
APERTURE_PENALTY = 0.08

MAKER_ALIASES: dict[str, list[str]] = {
    "canon": ["canon inc"],
    "nikon": ["nikon corporation"],
    "sony": ["sony corporation"],
    "fujifilm": ["fuji", "fuji photo film"],
    "panasonic": ["lumix"],
    "leica": ["leica camera ag"],
    "olympus": ["olympus corporation", "om system"],
    "pentax": ["pentax corporation", "ricoh"],
    "sigma": ["sigma corporation"],
    "tamron": ["tamron co"],
    "tokina": ["kenko tokina"],
}

_NUM = r"\d{1,4}(?:\.\d+)?"
_FOCAL_RANGE_TOKEN = re.compile(rf"{_NUM}\s*-\s*{_NUM}\s*mm", re.ASCII)
_FOCAL_RANGE = re.compile(rf"\b({_NUM})\s*-\s*({_NUM})mm\b", re.ASCII)
_FOCAL_SINGLE = re.compile(rf"\b({_NUM})mm\b", re.ASCII)
_APERTURE = re.compile(r"\bf\d+\.?\d*", re.ASCII)
_APERTURE_RANGE_TOKEN = re.compile(r"\bf\d+\.?\d*\s*-\s*\d+\.?\d*", re.ASCII)
_APERTURE_RANGE = re.compile(r"\bf(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)\b", re.ASCII)
_APERTURE_SINGLE = re.compile(r"\bf(\d+(?:\.\d+)?)\b", re.ASCII)
_SERIES = re.compile(r"\b(?:l|gm|art|sp|macro|is|usm|vc|di|oss|wr|ed|afs|vr)\b", re.ASCII)
_MOUNT_MARKERS = re.compile(r"\b(?:ef|efs|efm|rf|fe|e|fx|dx|zm|xf|xc|mft|ft)\b", re.ASCII)


class LensLike(Protocol):
    maker: str
    model: str
    mounts: Sequence[str]
    focal_min_mm: Optional[float]
    focal_max_mm: Optional[float]
    aperture_min: Optional[float]
    aperture_max: Optional[float]


@dataclass
class CatalogLens:
    """The catalog side of a comparison."""

    make: str
    output_text: str
    specifications: dict[str, Any] = field(default_factory=dict)


@dataclass
class MatchResult:
    score: float
    maker_score: float
    model_score: float
    mount_score: float
    spec_score: float
    reasons: list[str]
    catalog_tokens: list[str] = field(default_factory=list)
    lensfun_tokens: list[str] = field(default_factory=list)


def normalize_string(text: str) -> str:
    """Lowercase and canonicalize focal/aperture notation for comparison."""
    text = (text or "").lower()
    text = re.sub(r"[–—]", "-", text)
    text = re.sub(r"\bf\s*/\s*", "f", text, flags=re.ASCII)
    text = re.sub(r"\bf\s*(\d)", r"f\1", text, flags=re.ASCII)
    text = re.sub(r"(\d+)\s*mm", r"\1mm", text)
    text = re.sub(r"(\d+)\s*-\s*(\d+)", r"\1-\2", text)
    text = re.sub(r"[^\w\s\-.]", " ", text, flags=re.ASCII)
    return re.sub(r"\s+", " ", text).strip()


def extract_key_tokens(normalized: str) -> list[str]:
    """Focal lengths, apertures, series and mount markers in order of kind."""
    tokens = [m.group(0) for m in _FOCAL_RANGE_TOKEN.finditer(normalized)]
    tokens += [m.group(0) for m in _FOCAL_SINGLE.finditer(normalized)]
    tokens += [m.group(0) for m in _APERTURE.finditer(normalized)]
    tokens += [re.sub(r"\s+", "", m.group(0)) for m in _APERTURE_RANGE_TOKEN.finditer(normalized)]
    tokens += [m.group(0) for m in _SERIES.finditer(normalized)]
    tokens += [m.group(0) for m in _MOUNT_MARKERS.finditer(normalized)]
    return tokens


def _bigrams(text: str) -> Counter:
    return Counter(text[i:i + 2] for i in range(len(text) - 1))


def compare_two_strings(first: str, second: str) -> float:
    """Sørensen–Dice coefficient over character bigrams, ignoring whitespace."""
    first = re.sub(r"\s+", "", first)
    second = re.sub(r"\s+", "", second)
    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    first_bigrams = _bigrams(first)
    intersection = 0
    for i in range(len(second) - 1):
        bigram = second[i:i + 2]
        if first_bigrams[bigram] > 0:
            first_bigrams[bigram] -= 1
            intersection += 1

    return 2.0 * intersection / (len(first) + len(second) - 2)


def _focal_signature(normalized: str) -> tuple[list[float], list[tuple[float, float]]]:
    ranges = []
    for m in _FOCAL_RANGE.finditer(normalized):
        a, b = float(m.group(1)), float(m.group(2))
        ranges.append((min(a, b), max(a, b)))
    primes = [float(m.group(1)) for m in _FOCAL_SINGLE.finditer(normalized)]
    return primes, ranges


def _aperture_minimums(normalized: str) -> list[float]:
    mins = []
    for m in _APERTURE_RANGE.finditer(normalized):
        mins.append(min(float(m.group(1)), float(m.group(2))))
    mins += [float(m.group(1)) for m in _APERTURE_SINGLE.finditer(normalized)]
    return mins


def _num(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _fmt(value: float) -> str:
    return f"{value:g}"


def catalog_mounts(specs: Optional[dict[str, Any]]) -> list[str]:
    """``mount`` plus ``mounts`` from a specification dict."""
    if not specs:
        return []
    mounts = []
    if specs.get("mount"):
        mounts.append(str(specs["mount"]))
    extra = specs.get("mounts") or []
    if isinstance(extra, str):
        extra = [extra]
    mounts.extend(str(m) for m in extra if m)
    return mounts


def maker_score(catalog_maker: str, lensfun_maker: str) -> float:
    cat = normalize_string(catalog_maker)
    lens = normalize_string(lensfun_maker)

    if cat == lens:
        return 1.0

    for canonical, aliases in MAKER_ALIASES.items():
        cat_match = cat == canonical or any(a in cat for a in aliases)
        lens_match = lens == canonical or any(a in lens for a in aliases)
        if cat_match and lens_match:
            return 0.95

    if cat in lens or lens in cat:
        return 0.8

    similarity = compare_two_strings(cat, lens)
    return similarity * 0.7 if similarity > 0.7 else 0.0


def mount_score(specs: Optional[dict[str, Any]], lensfun_mounts: Iterable[str]) -> float:
    mounts = [normalize_string(m) for m in catalog_mounts(specs)]
    if not mounts:
        return 0.5

    lens_mounts = [normalize_string(m) for m in lensfun_mounts or []]
    for cat in mounts:
        for lens in lens_mounts:
            if cat == lens:
                return 1.0
            if cat in lens or lens in cat:
                return 0.9

    has_rf = any("rf" in m for m in mounts)
    has_ef = any("ef" in m and "rf" not in m for m in lens_mounts)
    if has_rf and has_ef:
        return 0.1

    return 0.2


def _focal_delta(diff: float) -> float:
    if diff == 0:
        return 0.25
    if diff <= 2:
        return 0.15
    if diff <= 5:
        return 0.05
    return -0.1


def spec_score(specs: Optional[dict[str, Any]], lens: LensLike) -> float:
    if not specs:
        return 0.5

    score = 0.5
    checks = 0

    for spec_key, lens_value in (
        ("focal_min_mm", lens.focal_min_mm),
        ("focal_max_mm", lens.focal_max_mm),
    ):
        cat_value = _num(specs.get(spec_key))
        if cat_value and lens_value:
            checks += 1
            score += _focal_delta(abs(cat_value - lens_value))

    cat_aperture = _num(specs.get("aperture_min"))
    if cat_aperture and lens.aperture_min:
        checks += 1
        diff = abs(cat_aperture - lens.aperture_min)
        if diff == 0:
            score += 0.25
        elif diff <= 0.5:
            score += 0.15
        else:
            score -= 0.1

    return max(0.0, min(1.0, score)) if checks else 0.5


def compute_match_confidence(catalog: CatalogLens, lens: LensLike) -> MatchResult:
    """Score one catalog lens against one Lensfun lens, with readable reasons."""
    reasons: list[str] = []
    specs = catalog.specifications or {}

    catalog_norm = normalize_string(catalog.output_text)
    lens_norm = normalize_string(lens.model)
    catalog_tokens = extract_key_tokens(catalog_norm)
    lens_tokens = extract_key_tokens(lens_norm)

    maker = maker_score(catalog.make or "", lens.maker or "")
    reasons.append(f"Maker match: {maker * 100:.0f}% ({catalog.make} vs {lens.maker})")

    base_similarity = compare_two_strings(catalog_norm, lens_norm)
    matching = [
        token for token in catalog_tokens
        if any(token in other or other in token for other in lens_tokens)
    ]
    token_boost = 0.05 * len(matching)
    model = min(1.0, base_similarity + token_boost)
    reasons.append(
        f"Model similarity: {base_similarity * 100:.0f}% base, "
        f"+{token_boost * 100:.0f}% token boost = {model * 100:.0f}%"
    )
    if matching:
        reasons.append(f"  Matching tokens: {', '.join(matching)}")

    primes, _ = _focal_signature(catalog_norm)
    text_primes, text_ranges = _focal_signature(lens_norm)
    lens_focal_min = lens.focal_min_mm
    if lens_focal_min is None:
        lens_focal_min = text_primes[0] if text_primes else (text_ranges[0][0] if text_ranges else None)
    lens_focal_max = lens.focal_max_mm
    if lens_focal_max is None:
        lens_focal_max = text_ranges[0][1] if text_ranges else (text_primes[0] if text_primes else None)

    focal_mismatch_huge = False
    if primes and lens_focal_min is not None:
        cat_prime = max(primes)
        low = lens_focal_min
        high = lens_focal_max if lens_focal_max is not None else lens_focal_min
        if not (low - 1 <= cat_prime <= high + 1):
            nearest = low if cat_prime < low else high
            diff = abs(cat_prime - nearest)
            ratio = cat_prime / nearest if nearest > 0 else float("inf")
            if diff >= 50 and ratio >= 1.25:
                focal_mismatch_huge = True
                reasons.append(
                    f"FOCAL MISMATCH HUGE: catalog has {_fmt(cat_prime)}mm, candidate range is "
                    f"{_fmt(low)}-{_fmt(high)}mm (diff {_fmt(diff)}mm)"
                )
            else:
                reasons.append(
                    f"Focal mismatch: catalog has {_fmt(cat_prime)}mm, candidate range is "
                    f"{_fmt(low)}-{_fmt(high)}mm"
                )

    aperture_mismatch = False
    apertures = _aperture_minimums(catalog_norm)
    if apertures and lens.aperture_min is not None:
        cat_min = min(apertures)
        diff = abs(cat_min - lens.aperture_min)
        if diff >= 0.7:
            aperture_mismatch = True
            reasons.append(
                f"Aperture mismatch: catalog has f{_fmt(cat_min)}, candidate has "
                f"f{_fmt(lens.aperture_min)} (diff {diff:.1f})"
            )

    mount = mount_score(specs, lens.mounts)
    reasons.append(
        f"Mount compatibility: {mount * 100:.0f}% (catalog: "
        f"{','.join(catalog_mounts(specs)) or 'none'}, lensfun: {','.join(lens.mounts or [])})"
    )

    spec = spec_score(specs, lens)
    reasons.append(f"Spec consistency: {spec * 100:.0f}%")

    score = (
        maker * MAKER_WEIGHT
        + model * MODEL_WEIGHT
        + mount * MOUNT_WEIGHT
        + spec * SPEC_WEIGHT
    )

    if focal_mismatch_huge:
        if score < FOCAL_REJECT_BYPASS:
            score = min(score, FOCAL_REJECT_CLAMP)
            reasons.append(f"HARD REJECT: huge focal mismatch, score clamped to {score * 100:.1f}%")
        else:
            reasons.append("HARD REJECT bypassed: score >= 95% despite focal mismatch (manual review recommended)")
    if aperture_mismatch:
        score = max(0.0, score - APERTURE_PENALTY)
        reasons.append(f"Penalty: aperture mismatch -8% (new score {score * 100:.1f}%)")

    reasons.append(
        f"FINAL SCORE: {score * 100:.1f}% (weights: maker 25%, model 50%, mount 15%, spec 10%)"
    )

    return MatchResult(
        score=score,
        maker_score=maker,
        model_score=model,
        mount_score=mount,
        spec_score=spec,
        reasons=reasons,
        catalog_tokens=catalog_tokens,
        lensfun_tokens=lens_tokens,
    )


def find_best_matches(
    catalog: CatalogLens,
    lenses: Iterable[LensLike],
    limit: int = 5,
    min_score: float = 0.5,
) -> list[tuple[LensLike, MatchResult]]:
    """Top candidates at or above ``min_score``, best first."""
    scored = [(lens, compute_match_confidence(catalog, lens)) for lens in lenses]
    scored = [pair for pair in scored if pair[1].score >= min_score]
    scored.sort(key=lambda pair: pair[1].score, reverse=True)
    return scored[:limit]


def confidence_level(score: float) -> tuple[str, str]:
    """(level, action): high/auto, medium/suggest or low/skip."""
    if score >= AUTO_THRESHOLD:
        return "high", "auto"
    if score >= SUGGEST_THRESHOLD:
        return "medium", "suggest"
    return "low", "skip"
