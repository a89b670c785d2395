"""Offer document composition: layout, pagination and PDF export."""
from .assets import BackgroundAsset, BackgroundAssetCache, get_background_asset
from .errors import CaptureError, ExportCancelledError, OfferRenderError, SurfaceUnavailableError
from .export import (
    ExportResult,
    build_filename,
    download_offer_pdf,
    export_offer_pdfs,
    get_offer_pdf_base64,
    get_offer_pdf_bytes,
    preview_offer_html,
    print_offer,
)
from .models import OfferDocument, RenderOptions
from .readiness import CancellationToken
from .renderers import CaptureRenderer, DocumentLayout, PageRenderer, PrintSurfaceRenderer

__all__ = [
    "BackgroundAsset",
    "BackgroundAssetCache",
    "CancellationToken",
    "CaptureError",
    "CaptureRenderer",
    "DocumentLayout",
    "ExportCancelledError",
    "ExportResult",
    "OfferDocument",
    "OfferRenderError",
    "PageRenderer",
    "PrintSurfaceRenderer",
    "RenderOptions",
    "SurfaceUnavailableError",
    "build_filename",
    "download_offer_pdf",
    "export_offer_pdfs",
    "get_background_asset",
    "get_offer_pdf_base64",
    "get_offer_pdf_bytes",
    "preview_offer_html",
    "print_offer",
]
