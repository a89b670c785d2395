"""
Public entry points for printing and exporting offers.

Every call resolves the letterhead through a BackgroundAssetCache (the module default
unless one is passed), lays the offer out once and hands it to a render target.
"""
from __future__ import annotations

import asyncio
import base64
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from . import config
from .assets import BackgroundAssetCache, get_background_asset
from .errors import ExportCancelledError
from .models import OfferDocument, RenderOptions
from .readiness import CancellationToken
from .renderers import CaptureRenderer, DocumentLayout, PageRenderer, PrintSurfaceRenderer

_LOG = logging.getLogger(__name__)

DEFAULT_EXPORT_LANGUAGES = ("ar", "en")
_UNSAFE_FILENAME_RE = re.compile(r"[\\/\x00-\x1f\x7f]")


@dataclass
class ExportResult:
    downloaded: list[Path] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def build_filename(offer: OfferDocument, options: RenderOptions) -> str:
    """Offer_{id}_{client}_{EN|AR}[_{suffix}].pdf"""
    client = _UNSAFE_FILENAME_RE.sub("_", offer.client_name)
    suffix = f"_{_UNSAFE_FILENAME_RE.sub('_', options.filename_suffix)}" if options.filename_suffix else ""
    return f"Offer_{offer.id}_{client}_{options.language_code}{suffix}.pdf"


async def _layout(
    renderer: PageRenderer,
    offer: OfferDocument,
    options: RenderOptions,
    cache: Optional[BackgroundAssetCache],
) -> DocumentLayout:
    background = await get_background_asset(cache)
    return renderer.layout(offer, options, background)


async def print_offer(
    offer: OfferDocument,
    options: RenderOptions,
    destination: Path,
    *,
    cache: Optional[BackgroundAssetCache] = None,
    renderer: Optional[PrintSurfaceRenderer] = None,
    token: Optional[CancellationToken] = None,
) -> None:
    """Native print path: the browser paginates the document and prints it to `destination`."""
    renderer = renderer or PrintSurfaceRenderer()
    layout = await _layout(renderer, offer, options, cache)
    _LOG.info("OFFER_PRINT_START offer=%s lang=%s pages=%d", offer.id, options.language, layout.page_count)
    await renderer.paint(layout, Path(destination), token=token)


async def preview_offer_html(
    offer: OfferDocument,
    options: RenderOptions,
    *,
    cache: Optional[BackgroundAssetCache] = None,
    base_url: str = config.ASSET_BASE_URL,
) -> str:
    """Standalone HTML document with print/close controls (hidden when printed)."""
    renderer = PrintSurfaceRenderer(base_url=base_url)
    layout = await _layout(renderer, offer, options, cache)
    return layout.html_document(base_url=base_url, include_preview_controls=True)


async def get_offer_pdf_bytes(
    offer: OfferDocument,
    options: RenderOptions,
    *,
    cache: Optional[BackgroundAssetCache] = None,
    renderer: Optional[CaptureRenderer] = None,
    token: Optional[CancellationToken] = None,
) -> bytes:
    renderer = renderer or CaptureRenderer()
    layout = await _layout(renderer, offer, options, cache)
    _LOG.info("OFFER_EXPORT_START offer=%s lang=%s pages=%d", offer.id, options.language, layout.page_count)
    pdf_bytes = await renderer.paint(layout, token=token)
    _LOG.info("OFFER_EXPORT_DONE offer=%s lang=%s bytes=%d", offer.id, options.language, len(pdf_bytes))
    return pdf_bytes


async def get_offer_pdf_base64(
    offer: OfferDocument,
    options: RenderOptions,
    *,
    cache: Optional[BackgroundAssetCache] = None,
    renderer: Optional[CaptureRenderer] = None,
    token: Optional[CancellationToken] = None,
) -> str:
    """PDF as a data URL, for clients that cannot take a file download."""
    pdf_bytes = await get_offer_pdf_bytes(offer, options, cache=cache, renderer=renderer, token=token)
    return "data:application/pdf;base64," + base64.b64encode(pdf_bytes).decode("ascii")


async def download_offer_pdf(
    offer: OfferDocument,
    options: RenderOptions,
    *,
    directory: Optional[Path] = None,
    cache: Optional[BackgroundAssetCache] = None,
    renderer: Optional[CaptureRenderer] = None,
    token: Optional[CancellationToken] = None,
) -> Path:
    """Capture the offer and write it to `directory` under build_filename(); returns the path."""
    pdf_bytes = await get_offer_pdf_bytes(offer, options, cache=cache, renderer=renderer, token=token)
    target_dir = Path(directory) if directory is not None else config.DOWNLOAD_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / build_filename(offer, options)
    path.write_bytes(pdf_bytes)
    _LOG.info("OFFER_DOWNLOAD_WRITTEN offer=%s path=%s", offer.id, path)
    return path


async def export_offer_pdfs(
    offer: OfferDocument,
    options: RenderOptions,
    languages: Sequence[str] = DEFAULT_EXPORT_LANGUAGES,
    *,
    directory: Optional[Path] = None,
    cache: Optional[BackgroundAssetCache] = None,
    renderer: Optional[CaptureRenderer] = None,
    token: Optional[CancellationToken] = None,
) -> ExportResult:
    """
    Download one PDF per language. A language that fails is recorded in
    `failed` and does not stop the others; cancellation stops all of them.
    """
    langs = list(dict.fromkeys(lang.lower() for lang in languages))
    per_language = [options.for_language(lang) for lang in langs]
    runs = [
        download_offer_pdf(
            offer,
            lang_options,
            directory=directory,
            cache=cache,
            renderer=renderer,
            token=token,
        )
        for lang_options in per_language
    ]
    outcomes = await asyncio.gather(*runs, return_exceptions=True)
    result = ExportResult()
    for lang, outcome in zip(langs, outcomes):
        if isinstance(outcome, ExportCancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            _LOG.warning("OFFER_EXPORT_FAILED offer=%s lang=%s err=%s", offer.id, lang, str(outcome)[:300])
            result.failed.append(lang)
        else:
            result.downloaded.append(outcome)
    return result
