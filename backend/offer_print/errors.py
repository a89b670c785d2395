"""Exceptions raised by the offer export pipeline."""
from __future__ import annotations


class OfferRenderError(Exception):
    """Base class for render/export failures surfaced to the caller."""


class SurfaceUnavailableError(OfferRenderError):
    """The interactive print surface could not be opened."""


class CaptureError(OfferRenderError):
    """A single page could not be rasterized; the whole export is abandoned."""

    def __init__(self, page_number: int, total_pages: int, reason: str = "") -> None:
        self.page_number = page_number
        self.total_pages = total_pages
        self.reason = reason
        msg = f"Failed to capture page {page_number} of {total_pages}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class ExportCancelledError(OfferRenderError):
    """The caller cancelled the export through its CancellationToken."""
