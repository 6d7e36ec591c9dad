"""Catalog lens enrichment from Lensfun.

High-confidence matches fill empty spec fields directly (AUTO_APPLIED). Medium
matches become a review suggestion; each catalog item has at most one pending.
Existing values are never overwritten here.
"""

import copy
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.models.catalog import CatalogItem, EnrichmentSuggestion, LensfunLens
from geardesk.models.enums import SuggestionStatus
from geardesk.services.lens_matching import (
    CatalogLens, MatchResult, confidence_level, find_best_matches,
)

logger = logging.getLogger(__name__)

LENS_SPEC_FIELDS = ("focal_min_mm", "focal_max_mm", "aperture_min", "aperture_max")


@dataclass
class EnrichmentStats:
    scanned: int = 0
    skipped: int = 0
    auto_applied: int = 0
    suggested: int = 0
    superseded: int = 0
    no_match: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def is_complete(specs: Optional[dict[str, Any]]) -> bool:
    """Complete lenses have both a focal length and an aperture."""
    return bool(specs) and specs.get("focal_min_mm") is not None and specs.get("aperture_min") is not None


def lensfun_block(lens: LensfunLens, match: MatchResult) -> dict[str, Any]:
    """Audit block stored under ``specifications.lensfun``."""
    return {
        "match_score": round(match.score, 4),
        "lens_id": str(lens.id),
        "maker": lens.maker,
        "model": lens.model,
        "mounts": list(lens.mounts or []),
        "focal_min_mm": lens.focal_min_mm,
        "focal_max_mm": lens.focal_max_mm,
        "aperture_min": lens.aperture_min,
        "aperture_max": lens.aperture_max,
        "reasons": match.reasons,
        "enriched_at": datetime.utcnow().isoformat(),
    }


def apply_auto_specs(specs: dict[str, Any], block: dict[str, Any]) -> dict[str, Any]:
    """Fill only empty lens fields from the Lensfun block."""
    updated = copy.deepcopy(specs)
    updated["lensfun"] = block
    updated.setdefault("source", "lensfun")
    updated["confidence"] = block["match_score"]

    mounts = block.get("mounts") or []
    if not specs.get("mount") and mounts:
        updated["mount"] = mounts[0]
        updated["mounts"] = mounts

    for key in LENS_SPEC_FIELDS:
        if specs.get(key) is None and block.get(key) is not None:
            updated[key] = block[key]
    return updated


async def _pending_for(db: AsyncSession, catalog_item_id) -> Optional[EnrichmentSuggestion]:
    result = await db.execute(
        select(EnrichmentSuggestion).where(
            EnrichmentSuggestion.catalog_item_id == catalog_item_id,
            EnrichmentSuggestion.status == SuggestionStatus.PENDING_REVIEW,
        )
    )
    return result.scalars().first()


async def enrich_item(
    db: AsyncSession,
    item: CatalogItem,
    lenses: Sequence[LensfunLens],
    stats: EnrichmentStats,
    dry_run: bool = False,
    force: bool = False,
) -> None:
    """Enrich one catalog item, updating ``stats`` with what happened."""
    specs = dict(item.specifications or {})
    if not force and is_complete(specs):
        stats.skipped += 1
        return

    query = CatalogLens(make=item.make or "", output_text=item.output_text or "", specifications=specs)
    matches = find_best_matches(query, lenses, limit=5)
    if not matches:
        stats.no_match += 1
        return

    lens, match = matches[0]
    level, action = confidence_level(match.score)
    if action == "skip":
        stats.no_match += 1
        return

    block = lensfun_block(lens, match)

    if action == "auto":
        stats.auto_applied += 1
        if dry_run:
            return
        specs_after = apply_auto_specs(specs, block)
        item.specifications = specs_after
        db.add(EnrichmentSuggestion(
            catalog_item_id=item.id,
            lensfun_lens_id=lens.id,
            match_score=match.score,
            match_confidence=level,
            match_reasons=match.reasons,
            suggested_specs=block,
            specs_before=specs,
            specs_after=specs_after,
            status=SuggestionStatus.AUTO_APPLIED,
        ))
        logger.info(f"[ENRICH] Auto-applied {lens.maker} {lens.model} to {item.output_text} ({match.score:.3f})")
        return

    existing = await _pending_for(db, item.id)
    if existing is not None and match.score <= existing.match_score:
        stats.skipped += 1
        return

    if existing is not None:
        stats.superseded += 1
        if not dry_run:
            existing.status = SuggestionStatus.SUPERSEDED
            note = (
                f"Superseded by higher confidence match "
                f"(new score {match.score:.3f} > old {existing.match_score:.3f})"
            )
            existing.review_note = f"{existing.review_note}\n\n{note}" if existing.review_note else note
            await db.flush()

    stats.suggested += 1
    if dry_run:
        return
    db.add(EnrichmentSuggestion(
        catalog_item_id=item.id,
        lensfun_lens_id=lens.id,
        match_score=match.score,
        match_confidence=level,
        match_reasons=match.reasons,
        suggested_specs=block,
        specs_before=specs,
        status=SuggestionStatus.PENDING_REVIEW,
    ))
    await db.flush()


async def enrich_catalog(
    db: AsyncSession, dry_run: bool = False, force: bool = False
) -> EnrichmentStats:
    """Run enrichment over every lens in the catalog."""
    lenses = list((await db.execute(select(LensfunLens))).scalars().all())
    items = (await db.execute(select(CatalogItem).order_by(CatalogItem.created_at))).scalars().all()

    stats = EnrichmentStats()
    for item in items:
        if not item.is_lens:
            continue
        stats.scanned += 1
        await enrich_item(db, item, lenses, stats, dry_run=dry_run, force=force)

    if dry_run:
        await db.rollback()
    else:
        await db.commit()

    logger.info(f"[ENRICH] Done: {stats.to_dict()}")
    return stats


async def dedupe_pending_reviews(db: AsyncSession, dry_run: bool = False) -> int:
    """Keep one PENDING_REVIEW per item (highest score, newest on ties).

    Returns the number of suggestions superseded.
    """
    result = await db.execute(
        select(EnrichmentSuggestion)
        .where(EnrichmentSuggestion.status == SuggestionStatus.PENDING_REVIEW)
        .order_by(
            EnrichmentSuggestion.catalog_item_id,
            EnrichmentSuggestion.match_score.desc(),
            EnrichmentSuggestion.created_at.desc(),
        )
    )

    seen = set()
    superseded = 0
    for suggestion in result.scalars().all():
        if suggestion.catalog_item_id not in seen:
            seen.add(suggestion.catalog_item_id)
            continue
        superseded += 1
        if not dry_run:
            suggestion.status = SuggestionStatus.SUPERSEDED
            note = "Superseded by dedupe: a higher confidence pending review exists"
            suggestion.review_note = (
                f"{suggestion.review_note}\n\n{note}" if suggestion.review_note else note
            )

    if dry_run:
        await db.rollback()
    else:
        await db.commit()
    return superseded


REVIEW_SPEC_KEYS = ("mount", "mounts") + LENS_SPEC_FIELDS


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def pick_suggested_lens_specs(suggested: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Reduce a suggestion (usually a Lensfun audit block) to lens spec keys."""
    picked = {k: suggested[k] for k in REVIEW_SPEC_KEYS if suggested and not _is_empty(suggested.get(k))}
    if not picked.get("mount") and picked.get("mounts"):
        picked["mount"] = picked["mounts"][0]
    return picked


def apply_reviewed_specs(
    current: Optional[dict[str, Any]], suggested: dict[str, Any], overwrite: bool = False
) -> dict[str, Any]:
    """Merge approved lens specs. Without ``overwrite`` only empty keys are filled."""
    merged = dict(current or {})
    for key, value in suggested.items():
        if overwrite or _is_empty(merged.get(key)):
            merged[key] = value
    return merged
