from __future__ import annotations

import base64

import pytest

from offer_print.errors import ExportCancelledError
from offer_print.export import (
    build_filename,
    download_offer_pdf,
    export_offer_pdfs,
    get_offer_pdf_base64,
    preview_offer_html,
)
from offer_print.models import RenderOptions
from offer_print.readiness import CancellationToken
from offer_print.renderers import CaptureRenderer

from offer_fakes import FakeCaptureSession, fixed_cache, make_offer, png_background, session_factory


class ArabicPagesFail(FakeCaptureSession):
    async def rasterize(self, container_id: str, page_index: int) -> bytes:
        if 'lang="ar"' in self.containers.get(container_id, ""):
            raise RuntimeError("font not loaded")
        return await super().rasterize(container_id, page_index)


def _renderer(session=None):
    return CaptureRenderer(session_factory=session_factory(session or FakeCaptureSession()))


def test_filename_contract():
    offer = make_offer(0)
    assert build_filename(offer, RenderOptions(language="en")) == "Offer_42_Cairo Labs_EN.pdf"
    assert build_filename(offer, RenderOptions(language="ar", filename_suffix="rev2")) == "Offer_42_Cairo Labs_AR_rev2.pdf"


def test_filename_strips_path_separators():
    offer = make_offer(0, clientName="ACME/Labs\\Cairo")
    assert build_filename(offer, RenderOptions()) == "Offer_42_ACME_Labs_Cairo_EN.pdf"


async def test_download_writes_named_file(tmp_path):
    path = await download_offer_pdf(
        make_offer(3),
        RenderOptions(language="ar"),
        directory=tmp_path,
        cache=fixed_cache(png_background()),
        renderer=_renderer(),
    )
    assert path == tmp_path / "Offer_42_Cairo Labs_AR.pdf"
    assert path.read_bytes().startswith(b"%PDF")


async def test_base64_data_url():
    data_url = await get_offer_pdf_base64(make_offer(1), RenderOptions(), cache=fixed_cache(None), renderer=_renderer())
    prefix = "data:application/pdf;base64,"
    assert data_url.startswith(prefix)
    assert base64.b64decode(data_url[len(prefix):]).startswith(b"%PDF")


async def test_export_both_languages(tmp_path):
    result = await export_offer_pdfs(
        make_offer(2),
        RenderOptions(),
        directory=tmp_path,
        cache=fixed_cache(None),
        renderer=_renderer(),
    )
    assert result.ok
    assert sorted(p.name for p in result.downloaded) == ["Offer_42_Cairo Labs_AR.pdf", "Offer_42_Cairo Labs_EN.pdf"]


async def test_one_failing_language_does_not_stop_the_other(tmp_path):
    result = await export_offer_pdfs(
        make_offer(2),
        RenderOptions(),
        directory=tmp_path,
        cache=fixed_cache(None),
        renderer=_renderer(ArabicPagesFail()),
    )
    assert result.failed == ["ar"]
    assert [p.name for p in result.downloaded] == ["Offer_42_Cairo Labs_EN.pdf"]
    assert not (tmp_path / "Offer_42_Cairo Labs_AR.pdf").exists()


async def test_cancelled_multi_language_export_raises(tmp_path):
    token = CancellationToken()
    token.cancel()
    with pytest.raises(ExportCancelledError):
        await export_offer_pdfs(
            make_offer(1),
            RenderOptions(),
            directory=tmp_path,
            cache=fixed_cache(None),
            renderer=_renderer(),
            token=token,
        )


async def test_unsupported_language_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        await export_offer_pdfs(make_offer(1), RenderOptions(), ["fr"], directory=tmp_path, cache=fixed_cache(None))


async def test_preview_html_is_a_full_document_with_controls():
    doc = await preview_offer_html(make_offer(3), RenderOptions(language="ar"), cache=fixed_cache(png_background()))
    assert doc.startswith("<!doctype html>")
    assert 'lang="ar" dir="rtl"' in doc
    assert "window.print()" in doc
    assert doc.count('class="product-page has-letterhead"') == 2
