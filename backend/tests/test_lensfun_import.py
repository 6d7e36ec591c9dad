import httpx

from geardesk.models.catalog import LensfunLens
from geardesk.services.lensfun_import import (
    download_lensfun_files,
    load_lensfun_directory,
    parse_aperture_from_model,
    parse_focal_from_model,
    parse_lensfun_xml,
    upsert_lenses,
)
from sqlalchemy import select

LENSFUN_XML = """<?xml version="1.0" encoding="utf-8"?>
<lensdatabase version="2">
    <lens>
        <maker>Canon</maker>
        <maker lang="ja">キヤノン</maker>
        <model>Canon EF 24-70mm f/2.8L II USM</model>
        <mount>Canon EF</mount>
        <cropfactor>1</cropfactor>
        <calibration>
            <distortion model="ptlens" focal="24" a="0.01" b="-0.03" c="0"/>
            <distortion model="ptlens" focal="70" a="0" b="0.001" c="0"/>
            <vignetting model="pa" focal="24" aperture="2.8" distance="10" k1="-0.5" k2="0" k3="0"/>
            <vignetting model="pa" focal="70" aperture="22" distance="10" k1="-0.1" k2="0" k3="0"/>
        </calibration>
    </lens>
    <lens>
        <maker>Sigma</maker>
        <model lang="en">Sigma 35mm f/1.4 DG HSM Art</model>
        <mount>Canon EF</mount>
        <mount>Nikon F AF</mount>
    </lens>
    <lens>
        <model>Orphan lens without maker</model>
    </lens>
</lensdatabase>
"""


def test_parse_focal_from_model():
    assert parse_focal_from_model("Canon EF 24-70mm f/2.8L II USM") == (24.0, 70.0)
    assert parse_focal_from_model("Canon EF 50mm f/1.8 STM") == (50.0, 50.0)
    assert parse_focal_from_model("Fisheye converter") == (None, None)


def test_parse_aperture_from_model():
    assert parse_aperture_from_model("Canon EF 24-105mm f/4-5.6") == (4.0, 5.6)
    assert parse_aperture_from_model("Canon EF 50mm f/1.8 STM") == (1.8, 1.8)
    assert parse_aperture_from_model("Sony FE 28-70mm") == (None, None)


def test_parse_lensfun_xml_prefers_untranslated_text():
    lenses = parse_lensfun_xml(LENSFUN_XML, source_file="slr-canon.xml")

    assert len(lenses) == 2
    canon = lenses[0]
    assert canon.maker == "Canon"
    assert canon.mounts == ["Canon EF"]
    assert canon.crop_factor == 1.0
    assert (canon.focal_min_mm, canon.focal_max_mm) == (24.0, 70.0)
    assert (canon.aperture_min, canon.aperture_max) == (2.8, 22.0)
    assert canon.source_file == "slr-canon.xml"


def test_parse_lensfun_xml_falls_back_to_model_name():
    sigma = parse_lensfun_xml(LENSFUN_XML)[1]

    assert sigma.model == "Sigma 35mm f/1.4 DG HSM Art"
    assert sigma.mounts == ["Canon EF", "Nikon F AF"]
    assert (sigma.focal_min_mm, sigma.focal_max_mm) == (35.0, 35.0)
    assert sigma.aperture_min == 1.4


def test_load_directory_skips_broken_files(tmp_path):
    (tmp_path / "slr-canon.xml").write_text(LENSFUN_XML, encoding="utf-8")
    (tmp_path / "broken.xml").write_text("<lensdatabase><lens>", encoding="utf-8")

    lenses = load_lensfun_directory(tmp_path)

    assert [lens.maker for lens in lenses] == ["Canon", "Sigma"]


async def test_download_skips_existing_files(tmp_path):
    (tmp_path / "slr-canon.xml").write_text(LENSFUN_XML, encoding="utf-8")
    fetched = []

    def handler(request: httpx.Request) -> httpx.Response:
        fetched.append(request.url.path.rsplit("/", 1)[-1])
        if fetched[-1] == "slr-nikon.xml":
            return httpx.Response(404)
        return httpx.Response(200, content=LENSFUN_XML.encode("utf-8"))

    count = await download_lensfun_files(
        tmp_path,
        files=["slr-canon.xml", "slr-nikon.xml", "slr-sony.xml"],
        transport=httpx.MockTransport(handler),
    )

    assert count == 1
    assert fetched == ["slr-nikon.xml", "slr-sony.xml"]
    assert (tmp_path / "slr-sony.xml").exists()
    assert not (tmp_path / "slr-nikon.xml").exists()


async def test_upsert_lenses_inserts_then_updates(db):
    lenses = parse_lensfun_xml(LENSFUN_XML, source_file="slr-canon.xml")

    first = await upsert_lenses(db, lenses)
    lenses[0].mounts = ["Canon EF", "Canon RF"]
    second = await upsert_lenses(db, lenses)

    assert (first.inserted, first.updated) == (2, 0)
    assert (second.inserted, second.updated) == (0, 2)
    rows = (await db.execute(select(LensfunLens).order_by(LensfunLens.maker))).scalars().all()
    assert [row.maker for row in rows] == ["Canon", "Sigma"]
    assert rows[0].mounts == ["Canon EF", "Canon RF"]


async def test_upsert_dry_run_writes_nothing(db):
    stats = await upsert_lenses(db, parse_lensfun_xml(LENSFUN_XML), dry_run=True)

    assert stats.parsed == 2
    assert (await db.execute(select(LensfunLens))).first() is None
