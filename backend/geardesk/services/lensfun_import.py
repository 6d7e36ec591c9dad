"""Import the Lensfun lens database (XML) into ``lensfun_lenses``."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Union

import httpx
from lxml import etree
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.models.catalog import LensfunLens
from geardesk.services.lens_matching import normalize_string

logger = logging.getLogger(__name__)

LENSFUN_BASE_URL = "https://raw.githubusercontent.com/lensfun/lensfun/master/data/db"

XML_FILES = [
    "slr-canon.xml",
    "slr-nikon.xml",
    "slr-sony.xml",
    "slr-fujifilm.xml",
    "slr-panasonic.xml",
    "slr-olympus.xml",
    "slr-pentax.xml",
    "slr-leica.xml",
    "compact-canon.xml",
    "compact-nikon.xml",
    "compact-sony.xml",
    "compact-fujifilm.xml",
    "compact-panasonic.xml",
    "mil-canon.xml",
    "mil-nikon.xml",
    "mil-sony.xml",
    "mil-fujifilm.xml",
    "mil-panasonic.xml",
    "mil-olympus.xml",
    "slr-sigma.xml",
    "slr-tamron.xml",
    "slr-tokina.xml",
    "slr-samyang.xml",
    "slr-zeiss.xml",
    "slr-voigtlander.xml",
]

_ZOOM = re.compile(r"\b(\d{1,4}(?:\.\d+)?)\s*-\s*(\d{1,4}(?:\.\d+)?)mm\b", re.ASCII)
_PRIME = re.compile(r"\b(\d{1,4}(?:\.\d+)?)mm\b", re.ASCII)
_APERTURE_RANGE = re.compile(r"\bf(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)(?=[a-z\s]|$)", re.ASCII)
_APERTURE_SINGLE = re.compile(r"\bf(\d+(?:\.\d+)?)(?=[a-z\s]|$)", re.ASCII)


@dataclass
class ParsedLens:
    maker: str
    model: str
    mounts: list[str] = field(default_factory=list)
    lens_type: Optional[str] = None
    crop_factor: Optional[float] = None
    focal_min_mm: Optional[float] = None
    focal_max_mm: Optional[float] = None
    aperture_min: Optional[float] = None
    aperture_max: Optional[float] = None
    source_file: Optional[str] = None


@dataclass
class ImportStats:
    parsed: int = 0
    inserted: int = 0
    updated: int = 0
    files: int = 0


def parse_focal_from_model(model: str) -> tuple[Optional[float], Optional[float]]:
    """``24-70mm`` gives (24, 70); ``50mm`` gives (50, 50)."""
    normalized = normalize_string(model)
    zoom = _ZOOM.search(normalized)
    if zoom:
        a, b = float(zoom.group(1)), float(zoom.group(2))
        return min(a, b), max(a, b)
    prime = _PRIME.search(normalized)
    if prime:
        value = float(prime.group(1))
        return value, value
    return None, None


def parse_aperture_from_model(model: str) -> tuple[Optional[float], Optional[float]]:
    """``f/2.8-4`` gives (2.8, 4); ``f/1.8`` gives (1.8, 1.8)."""
    normalized = normalize_string(model)
    match = _APERTURE_RANGE.search(normalized)
    if match:
        a, b = float(match.group(1)), float(match.group(2))
        return min(a, b), max(a, b)
    match = _APERTURE_SINGLE.search(normalized)
    if match:
        value = float(match.group(1))
        return value, value
    return None, None


def _untranslated_text(lens: etree._Element, tag: str) -> Optional[str]:
    """Text of the element without a ``lang`` attribute, else the first one."""
    elements = lens.findall(tag)
    for element in elements:
        if element.get("lang") is None and element.text:
            return element.text.strip()
    for element in elements:
        if element.text:
            return element.text.strip()
    return None


def _float(value: Optional[str]) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None


def parse_lensfun_xml(content: Union[bytes, str], source_file: Optional[str] = None) -> list[ParsedLens]:
    """Parse one Lensfun database file.

    Focal and aperture ranges come from calibration entries; anything missing is read
    from the model name.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    root = etree.fromstring(content, parser=etree.XMLParser(resolve_entities=False))

    lenses = []
    for lens in root.iter("lens"):
        maker = _untranslated_text(lens, "maker")
        model = _untranslated_text(lens, "model")
        if not maker or not model:
            continue

        focals = [v for v in (_float(el.get("focal")) for el in lens.iter()) if v is not None]
        apertures = [
            v for v in (_float(el.get("aperture")) for el in lens.iter()) if v is not None
        ]

        parsed = ParsedLens(
            maker=maker,
            model=model,
            mounts=[m.text.strip() for m in lens.findall("mount") if m.text],
            lens_type=_untranslated_text(lens, "type"),
            crop_factor=_float(_untranslated_text(lens, "cropfactor")),
            focal_min_mm=min(focals) if focals else None,
            focal_max_mm=max(focals) if focals else None,
            aperture_min=min(apertures) if apertures else None,
            aperture_max=max(apertures) if apertures else None,
            source_file=source_file,
        )

        if parsed.focal_min_mm is None:
            parsed.focal_min_mm, parsed.focal_max_mm = parse_focal_from_model(model)
        if parsed.aperture_min is None:
            parsed.aperture_min, parsed.aperture_max = parse_aperture_from_model(model)

        lenses.append(parsed)

    return lenses


def load_lensfun_directory(data_dir: Union[str, Path]) -> list[ParsedLens]:
    """Parse every ``*.xml`` file in a directory."""
    lenses = []
    for path in sorted(Path(data_dir).glob("*.xml")):
        try:
            parsed = parse_lensfun_xml(path.read_bytes(), source_file=path.name)
        except etree.XMLSyntaxError as e:
            logger.warning(f"[LENSFUN] Skipping {path.name}: {e}")
            continue
        logger.info(f"[LENSFUN] {path.name}: {len(parsed)} lenses")
        lenses.extend(parsed)
    return lenses


async def download_lensfun_files(
    data_dir: Union[str, Path],
    files: Iterable[str] = XML_FILES,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """Fetch the database files that are not already on disk. Returns the count fetched."""
    target = Path(data_dir)
    target.mkdir(parents=True, exist_ok=True)

    downloaded = 0
    async with httpx.AsyncClient(transport=transport, follow_redirects=True) as client:
        for filename in files:
            dest = target / filename
            if dest.exists():
                logger.info(f"[LENSFUN] Skipping {filename} (already exists)")
                continue
            try:
                response = await client.get(f"{LENSFUN_BASE_URL}/{filename}", timeout=30.0)
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.warning(f"[LENSFUN] Failed to download {filename}: {e}")
                continue
            dest.write_bytes(response.content)
            downloaded += 1
    return downloaded


async def upsert_lenses(
    db: AsyncSession, lenses: list[ParsedLens], dry_run: bool = False
) -> ImportStats:
    """Insert or update on (maker, model). The last duplicate in the input wins."""
    stats = ImportStats(parsed=len(lenses))
    if dry_run:
        return stats

    existing = {
        (lens.maker, lens.model): lens
        for lens in (await db.execute(select(LensfunLens))).scalars().all()
    }

    for parsed in lenses:
        key = (parsed.maker, parsed.model)
        row = existing.get(key)
        if row is None:
            row = LensfunLens(maker=parsed.maker, model=parsed.model)
            db.add(row)
            existing[key] = row
            stats.inserted += 1
        else:
            stats.updated += 1
        row.mounts = parsed.mounts
        row.lens_type = parsed.lens_type
        row.crop_factor = parsed.crop_factor
        row.focal_min_mm = parsed.focal_min_mm
        row.focal_max_mm = parsed.focal_max_mm
        row.aperture_min = parsed.aperture_min
        row.aperture_max = parsed.aperture_max
        row.source_file = parsed.source_file

    await db.commit()
    logger.info(f"[LENSFUN] Imported {stats.inserted} new, {stats.updated} updated lenses")
    return stats
