"""
Offer print/export endpoints: PDF download, base64 PDF, HTML preview, letterhead cache reset.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, Response
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from cache.disk_cache import background_tag_for, get_cached_offer_pdf, set_cached_offer_pdf
from offer_print.assets import BackgroundAssetCache, default_asset_cache
from offer_print.errors import CaptureError, ExportCancelledError, SurfaceUnavailableError
from offer_print.export import build_filename, get_offer_pdf_base64, get_offer_pdf_bytes, preview_offer_html
from offer_print.models import OfferDocument, RenderOptions
from offer_print.renderers import CaptureRenderer

_LOG = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/offers", tags=["offers"])


class OfferExportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    offer: OfferDocument
    options: RenderOptions = Field(
        default_factory=RenderOptions,
        validation_alias=AliasChoices("options", "renderOptions", "render_options"),
    )


def get_asset_cache() -> BackgroundAssetCache:
    return default_asset_cache()


def get_capture_renderer() -> CaptureRenderer:
    return CaptureRenderer()


def _content_disposition(filename: str) -> str:
    # Client names are often Arabic; headers are latin-1, so send an ASCII fallback plus RFC 5987 form.
    ascii_name = filename.encode("ascii", "replace").decode("ascii").replace("?", "_").replace('"', "_")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


def _render_failure(rid: str, e: Exception) -> HTTPException:
    if isinstance(e, CaptureError):
        detail: Any = {"error": "capture_failed", "page": e.page_number, "total_pages": e.total_pages, "rid": rid}
    elif isinstance(e, SurfaceUnavailableError):
        detail = {"error": "surface_unavailable", "rid": rid}
    elif isinstance(e, ExportCancelledError):
        detail = {"error": "cancelled", "rid": rid}
    elif isinstance(e, ImportError):
        detail = {"error": "Playwright is not installed.", "rid": rid}
    else:
        msg = str(e)
        detail = {"error": f"Playwright runtime unavailable: {msg[:500]}", "rid": rid}
    return HTTPException(status_code=503, detail=detail, headers={"X-Offer-Render-ID": rid})


@router.post("/pdf")
async def offer_pdf(
    req: OfferExportRequest,
    cache: BackgroundAssetCache = Depends(get_asset_cache),
    renderer: CaptureRenderer = Depends(get_capture_renderer),
) -> Response:
    """
    Render the offer to an image-based A4 PDF. Identical payloads (same letterhead)
    are served from the disk cache.
    """
    rid = str(uuid.uuid4())[:8]
    offer, options = req.offer, req.options
    filename = build_filename(offer, options)
    background = await cache.get_or_resolve()
    tag = background_tag_for(background.data_uri if background else None)
    offer_key = offer.model_dump(mode="json")
    options_key = options.model_dump(mode="json")

    pdf_bytes = get_cached_offer_pdf(offer_key, options_key, tag)
    cache_hit = pdf_bytes is not None
    if pdf_bytes is None:
        _LOG.info("OFFER_PDF_START rid=%s offer=%s lang=%s", rid, offer.id, options.language)
        try:
            pdf_bytes = await get_offer_pdf_bytes(offer, options, cache=cache, renderer=renderer)
        except Exception as e:
            _LOG.warning("OFFER_PDF_ERR rid=%s offer=%s err=%s", rid, offer.id, str(e)[:400])
            raise _render_failure(rid, e) from e
        set_cached_offer_pdf(offer_key, options_key, tag, pdf_bytes)
    _LOG.info("OFFER_PDF_DONE rid=%s offer=%s cache_hit=%s bytes=%d", rid, offer.id, cache_hit, len(pdf_bytes))
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": _content_disposition(filename),
            "X-Offer-Render-ID": rid,
        },
    )


@router.post("/pdf/base64")
async def offer_pdf_base64(
    req: OfferExportRequest,
    cache: BackgroundAssetCache = Depends(get_asset_cache),
    renderer: CaptureRenderer = Depends(get_capture_renderer),
) -> dict[str, str]:
    rid = str(uuid.uuid4())[:8]
    try:
        data_url = await get_offer_pdf_base64(req.offer, req.options, cache=cache, renderer=renderer)
    except Exception as e:
        _LOG.warning("OFFER_PDF_B64_ERR rid=%s offer=%s err=%s", rid, req.offer.id, str(e)[:400])
        raise _render_failure(rid, e) from e
    return {"filename": build_filename(req.offer, req.options), "dataUrl": data_url, "rid": rid}


@router.post("/preview", response_class=HTMLResponse)
async def offer_preview(
    req: OfferExportRequest,
    cache: BackgroundAssetCache = Depends(get_asset_cache),
) -> HTMLResponse:
    """Print-ready HTML with print/close buttons; usable when PDF rendering is unavailable."""
    return HTMLResponse(await preview_offer_html(req.offer, req.options, cache=cache))


@router.post("/letterhead/invalidate")
async def invalidate_letterhead(cache: BackgroundAssetCache = Depends(get_asset_cache)) -> dict[str, str]:
    cache.invalidate()
    _LOG.info("LETTERHEAD_INVALIDATED")
    return {"status": "ok"}
