"""Fill missing lens focal length and aperture from the catalog listing text.

Targets lenses with neither ``focal_min_mm`` nor ``aperture_min``. Parsing is strict:
text with more than one candidate value is reported as ambiguous and left alone,
and existing specification fields are never overwritten.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.models.catalog import CatalogItem

logger = logging.getLogger(__name__)

APPLIED = "APPLIED"
SKIPPED = "SKIPPED"
AMBIGUOUS = "AMBIGUOUS"
NO_MATCH = "NO_MATCH"
STATUSES = (APPLIED, SKIPPED, AMBIGUOUS, NO_MATCH)

_DASHES = re.compile("[–—]")
_SPACES = re.compile(r"\s+")
_ZOOM = re.compile(r"\b(\d{1,4}(?:\.\d+)?)\s*-\s*(\d{1,4}(?:\.\d+)?)\s*mm\b", re.IGNORECASE)
_PRIME = re.compile(r"\b(\d{1,4}(?:\.\d+)?)\s*mm\b", re.IGNORECASE)
_T_STOP = re.compile(r"\bT\s*(\d+(?:\.\d+)?)\b")
_F_RANGE = re.compile(
    r"\bf\s*/?\s*(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)(?=[a-zA-Z\s)]|$)", re.IGNORECASE
)
_F_SINGLE = re.compile(r"\bf\s*/?\s*(\d+(?:\.\d+)?)(?=[a-zA-Z\s)]|$)", re.IGNORECASE)


@dataclass
class ParsedRange:
    min: float
    max: float
    pattern: str
    kind: str = "F"


@dataclass
class ParseResult:
    value: Optional[ParsedRange] = None
    ambiguous: Optional[str] = None


@dataclass
class BackfillReport:
    target_rows: int = 0
    counts: dict[str, int] = field(default_factory=lambda: {s: 0 for s in STATUSES})
    examples: dict[str, list[dict[str, Any]]] = field(
        default_factory=lambda: {s: [] for s in STATUSES}
    )


def _normalize(text: str) -> str:
    return _SPACES.sub(" ", _DASHES.sub("-", text)).strip()


def _number(value: float):
    """70.0 is stored as 70."""
    return int(value) if float(value).is_integer() else value


def _unique(values):
    return list(dict.fromkeys(values))


def _fmt(value: float) -> str:
    return str(_number(value))


def parse_focal(text: str) -> ParseResult:
    """``70-200mm`` gives 70 to 200, ``50mm`` gives 50 to 50. Zoom ranges win over primes."""
    t = _normalize(text)

    zooms = _unique(
        (min(float(a), float(b)), max(float(a), float(b))) for a, b in _ZOOM.findall(t)
    )
    if zooms:
        if len(zooms) > 1:
            found = ", ".join(f"{_fmt(a)}-{_fmt(b)}" for a, b in zooms)
            return ParseResult(ambiguous=f"Multiple zoom ranges found: {found}")
        low, high = zooms[0]
        return ParseResult(ParsedRange(low, high, f"{_fmt(low)}-{_fmt(high)}mm"))

    primes = _unique(float(v) for v in _PRIME.findall(t))
    if not primes:
        return ParseResult()
    if len(primes) > 1:
        found = ", ".join(_fmt(v) for v in primes)
        return ParseResult(ambiguous=f"Multiple prime focal values found: {found}")
    return ParseResult(ParsedRange(primes[0], primes[0], f"{_fmt(primes[0])}mm"))


def parse_aperture(text: str) -> ParseResult:
    """``f/4.5-5.6``, ``f2.8`` or a cine ``T2.9``. Mixed f-numbers and T-stops are ambiguous."""
    t = _normalize(text)

    found = [(float(v), float(v), "T") for v in _T_STOP.findall(t)]
    found += [
        (min(float(a), float(b)), max(float(a), float(b)), "F") for a, b in _F_RANGE.findall(t)
    ]
    found += [(float(v), float(v), "F") for v in _F_SINGLE.findall(t)]
    if not found:
        return ParseResult()

    kinds = _unique(kind for _, _, kind in found)
    if len(kinds) > 1:
        signature = ", ".join(_unique(f"{k}:{_fmt(a)}-{_fmt(b)}" for a, b, k in found))
        return ParseResult(ambiguous=f"Conflicting aperture types/values: {signature}")

    ranges = _unique((a, b) for a, b, _ in found if a != b)
    if ranges:
        if len(ranges) > 1:
            listed = ", ".join(f"{_fmt(a)}-{_fmt(b)}" for a, b in ranges)
            return ParseResult(ambiguous=f"Multiple aperture ranges found: {listed}")
        low, high = ranges[0]
        return ParseResult(ParsedRange(low, high, f"f{_fmt(low)}-{_fmt(high)}"))

    singles = _unique(a for a, _, _ in found)
    if len(singles) > 1:
        listed = ", ".join(_fmt(v) for v in singles)
        return ParseResult(ambiguous=f"Multiple aperture values found: {listed}")
    kind = kinds[0]
    prefix = "T" if kind == "T" else "f"
    return ParseResult(ParsedRange(singles[0], singles[0], f"{prefix}{_fmt(singles[0])}", kind))


def merge_specs(
    current: Optional[dict[str, Any]],
    focal: Optional[ParsedRange],
    aperture: Optional[ParsedRange],
) -> tuple[dict[str, Any], bool]:
    """Fill only missing keys. Returns the new dict and whether anything changed."""
    merged = dict(current or {})
    changed = False
    pairs = []
    if focal:
        pairs += [("focal_min_mm", focal.min), ("focal_max_mm", focal.max)]
    if aperture:
        pairs += [("aperture_min", aperture.min), ("aperture_max", aperture.max)]
    for key, value in pairs:
        if merged.get(key) is None:
            merged[key] = _number(value)
            changed = True
    return merged, changed


def needs_backfill(item: CatalogItem) -> bool:
    specs = item.specifications if isinstance(item.specifications, dict) else {}
    return item.is_lens and specs.get("focal_min_mm") is None and specs.get("aperture_min") is None


def _record(report: BackfillReport, status: str, example: dict[str, Any], limit: int) -> None:
    report.counts[status] += 1
    if len(report.examples[status]) < limit:
        report.examples[status].append(example)


async def backfill_specs_from_output_text(
    db: AsyncSession, apply: bool = False, example_limit: int = 20
) -> BackfillReport:
    """Parse every target lens. Only ``apply`` writes; a dry run just reports."""
    result = await db.execute(
        select(CatalogItem)
        .where(CatalogItem.product_type.ilike("%lens%"))
        .order_by(CatalogItem.make, CatalogItem.output_text)
    )
    targets = [item for item in result.scalars().all() if needs_backfill(item)]

    report = BackfillReport(target_rows=len(targets))
    for item in targets:
        text = item.output_text or ""
        example = {"id": str(item.id), "make": item.make, "output_text": item.output_text}
        focal = parse_focal(text)
        aperture = parse_aperture(text)

        reasons = []
        if focal.ambiguous:
            reasons.append(f"focal: {focal.ambiguous}")
        if aperture.ambiguous:
            reasons.append(f"aperture: {aperture.ambiguous}")
        if reasons:
            _record(report, AMBIGUOUS, {**example, "reasons": reasons}, example_limit)
            continue

        if focal.value is None and aperture.value is None:
            _record(report, NO_MATCH, example, example_limit)
            continue

        merged, changed = merge_specs(item.specifications, focal.value, aperture.value)
        if not changed:
            _record(report, SKIPPED, example, example_limit)
            continue

        _record(
            report,
            APPLIED,
            {
                **example,
                "focal": focal.value.pattern if focal.value else None,
                "aperture": aperture.value.pattern if aperture.value else None,
            },
            example_limit,
        )
        if apply:
            item.specifications = merged

    if apply:
        await db.commit()

    mode = "Applied" if apply else "Dry run"
    logger.info(
        f"[BACKFILL] {mode}: {report.target_rows} target rows, "
        + ", ".join(f"{status} {report.counts[status]}" for status in STATUSES)
    )
    return report
