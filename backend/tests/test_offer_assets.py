from __future__ import annotations

import asyncio
import base64

import fitz
import pytest

from offer_print.assets import (
    BackgroundAsset,
    BackgroundAssetCache,
    raster_loader,
    read_raster_letterhead,
    render_vector_letterhead,
    vector_loader,
)

from offer_fakes import png_background, tiny_png


def _letterhead_pdf(path):
    doc = fitz.open()
    page = doc.new_page(width=595, height=842)
    page.draw_rect(fitz.Rect(0, 0, 595, 80), color=(0, 0, 1), fill=(0, 0, 1))
    doc.save(str(path))
    doc.close()


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_background_asset_rejects_non_image_data_uri():
    with pytest.raises(ValueError):
        BackgroundAsset(data_uri="javascript:alert(1)", source="raster")
    with pytest.raises(ValueError):
        BackgroundAsset(data_uri='data:image/png;base64,AAAA");}', source="raster")
    asset = png_background()
    assert asset.css_url() == f'url("{asset.data_uri}")'


def test_raster_letterhead_is_read_and_validated(tmp_path):
    png = tmp_path / "Letterhead.png"
    png.write_bytes(tiny_png())
    asset = read_raster_letterhead(png)
    assert asset is not None
    assert asset.source == "raster"
    assert asset.data_uri.startswith("data:image/png;base64,")
    assert base64.b64decode(asset.data_uri.split(",", 1)[1]) == tiny_png()

    assert read_raster_letterhead(tmp_path / "missing.png") is None


def test_vector_letterhead_renders_first_page_at_high_scale(tmp_path):
    pdf = tmp_path / "Letterhead.pdf"
    _letterhead_pdf(pdf)
    asset = render_vector_letterhead(pdf, scale=2.0)
    assert asset is not None
    assert asset.source == "vector"
    from io import BytesIO

    from PIL import Image

    with Image.open(BytesIO(base64.b64decode(asset.data_uri.split(",", 1)[1]))) as img:
        assert img.size == (1190, 1684)


async def test_png_preferred_then_pdf_fallback(tmp_path):
    pdf = tmp_path / "Letterhead.pdf"
    _letterhead_pdf(pdf)
    missing_png = tmp_path / "Letterhead.png"

    cache = BackgroundAssetCache([raster_loader(missing_png), vector_loader(pdf, scale=1.0)])
    asset = await cache.get_or_resolve()
    assert asset is not None and asset.source == "vector"

    missing_png.write_bytes(tiny_png())
    cache.invalidate()
    asset = await cache.get_or_resolve()
    assert asset is not None and asset.source == "raster"


async def test_corrupt_png_falls_back_and_total_failure_yields_none(tmp_path):
    bad = tmp_path / "Letterhead.png"
    bad.write_bytes(b"not really a png")
    cache = BackgroundAssetCache([raster_loader(bad), vector_loader(tmp_path / "missing.pdf")])
    assert await cache.get_or_resolve() is None


async def test_concurrent_first_callers_share_one_resolution():
    calls = 0
    gate = asyncio.Event()

    async def slow_vector():
        nonlocal calls
        calls += 1
        await gate.wait()
        return png_background()

    cache = BackgroundAssetCache([slow_vector])
    waiters = [asyncio.ensure_future(cache.get_or_resolve()) for _ in range(5)]
    await asyncio.sleep(0)
    gate.set()
    results = await asyncio.gather(*waiters)
    assert calls == 1
    assert cache.resolution_count == 1
    assert all(r is results[0] for r in results)

    assert await cache.get_or_resolve() is results[0]
    assert calls == 1


async def test_invalidate_forces_new_resolution():
    calls = 0

    async def loader():
        nonlocal calls
        calls += 1
        return png_background()

    cache = BackgroundAssetCache([loader])
    await cache.get_or_resolve()
    await cache.get_or_resolve()
    assert calls == 1
    cache.invalidate()
    await cache.get_or_resolve()
    assert calls == 2


async def test_failure_is_cached_for_retry_window_only():
    clock = _Clock()
    calls = 0

    async def failing():
        nonlocal calls
        calls += 1
        raise OSError("letterhead share offline")

    cache = BackgroundAssetCache([failing], failure_ttl=60, clock=clock)
    assert await cache.get_or_resolve() is None
    assert await cache.get_or_resolve() is None
    assert calls == 1

    clock.now += 61
    assert await cache.get_or_resolve() is None
    assert calls == 2


async def test_zero_failure_ttl_retries_every_call():
    calls = 0

    async def empty():
        nonlocal calls
        calls += 1
        return None

    cache = BackgroundAssetCache([empty], failure_ttl=0)
    await cache.get_or_resolve()
    await cache.get_or_resolve()
    assert calls == 2


async def test_cancelled_caller_does_not_cancel_shared_resolution():
    gate = asyncio.Event()

    async def slow():
        await gate.wait()
        return png_background()

    cache = BackgroundAssetCache([slow])
    first = asyncio.ensure_future(cache.get_or_resolve())
    second = asyncio.ensure_future(cache.get_or_resolve())
    await asyncio.sleep(0)
    first.cancel()
    gate.set()
    assert (await second) is not None
    assert cache.resolution_count == 1
