"""
Render targets for offer documents.

Both adapters share PageRenderer.layout() and PageRenderer.mount_and_fit(): equipment
is normalized and paginated once, against one PageGeometry, mounted, and re-paginated
until no page overflows its content band. They differ only in how the fitted pages
are painted:

- PrintSurfaceRenderer hands them to Chromium's own print pipeline.
- CaptureRenderer rasterizes them page by page into an image-only PDF.
"""
from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

from . import config
from .assets import BackgroundAsset
from .capture import CaptureSession, PdfAssembler, SessionFactory, playwright_session
from .errors import CaptureError, ExportCancelledError, SurfaceUnavailableError
from .layout import A4_PORTRAIT, PageGeometry
from .markup import build_html_document, render_body
from .models import OfferDocument, RenderOptions
from .normalizer import EquipmentView, normalize_offer_equipment
from .pagination import Page, plan_pages, split_overflowing
from .readiness import CancellationToken, settle_all

_LOG = logging.getLogger(__name__)

# Upper bound on measure/re-paginate rounds per capture.
MAX_LAYOUT_ATTEMPTS = 6
OVERFLOW_TOLERANCE_PX = 1.0


@dataclass(frozen=True)
class DocumentLayout:
    geometry: PageGeometry
    offer: OfferDocument
    options: RenderOptions
    background: Optional[BackgroundAsset]
    views: tuple[EquipmentView, ...]
    pages: tuple[Page, ...]
    break_before: frozenset[int] = field(default_factory=frozenset)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def body_html(self, container_id: Optional[str] = None) -> str:
        return render_body(self.pages, self.offer, self.options, self.background, container_id=container_id)

    def html_document(self, *, base_url: str = "", body_html: Optional[str] = None, include_preview_controls: bool = False) -> str:
        return build_html_document(
            self.body_html() if body_html is None else body_html,
            self.offer,
            self.options,
            self.background,
            geometry=self.geometry,
            base_url=base_url,
            include_preview_controls=include_preview_controls,
        )

    def with_breaks(self, break_before: Iterable[int]) -> "DocumentLayout":
        breaks = frozenset(break_before)
        return DocumentLayout(
            geometry=self.geometry,
            offer=self.offer,
            options=self.options,
            background=self.background,
            views=self.views,
            pages=tuple(plan_pages(self.views, break_before=breaks)),
            break_before=breaks,
        )


class PageRenderer(ABC):
    def __init__(
        self,
        *,
        geometry: PageGeometry = A4_PORTRAIT,
        session_factory: Optional[SessionFactory] = None,
        base_url: str = config.ASSET_BASE_URL,
        settle_timeout_ms: int = config.IMAGE_SETTLE_TIMEOUT_MS,
    ) -> None:
        self.geometry = geometry
        self.base_url = base_url
        self.settle_timeout_ms = settle_timeout_ms
        self._session_factory = session_factory or (lambda: playwright_session(geometry))

    def layout(
        self,
        offer: OfferDocument,
        options: RenderOptions,
        background: Optional[BackgroundAsset] = None,
    ) -> DocumentLayout:
        views = tuple(normalize_offer_equipment(offer, options))
        return DocumentLayout(
            geometry=self.geometry,
            offer=offer,
            options=options,
            background=background,
            views=views,
            pages=tuple(plan_pages(views)),
        )

    async def _wait_for_images(self, session: CaptureSession, scope: str, token: CancellationToken) -> None:
        waiters = await session.image_waiters(scope)
        await settle_all(waiters, timeout_ms=self.settle_timeout_ms, token=token)
        token.raise_if_cancelled()
        await session.apply_image_fallbacks(scope)

    async def _unmount(self, session: CaptureSession, container_id: str) -> None:
        try:
            await session.unmount(container_id)
        except Exception as e:
            _LOG.warning("OFFER_LAYOUT_UNMOUNT_FAILED container=%s err=%s", container_id, str(e)[:200])

    async def mount_and_fit(
        self,
        session: CaptureSession,
        layout: DocumentLayout,
        container_id: str,
        token: CancellationToken,
    ) -> DocumentLayout:
        """Mount, wait for images, and re-paginate while a page overflows its content band."""
        scope = f"#{container_id}"
        for attempt in range(MAX_LAYOUT_ATTEMPTS):
            await session.mount(container_id, layout.body_html(container_id))
            await self._wait_for_images(session, scope, token)
            issues = await session.measure_overflow(container_id)
            overflowing = [
                int(i.get("index", -1)) for i in issues if float(i.get("overflowPx") or 0) > OVERFLOW_TOLERANCE_PX
            ]
            if not overflowing:
                break
            if attempt == MAX_LAYOUT_ATTEMPTS - 1:
                _LOG.warning("OFFER_LAYOUT_OVERFLOW_UNRESOLVED pages=%s attempts=%d", overflowing, MAX_LAYOUT_ATTEMPTS)
                break
            breaks = layout.break_before | split_overflowing(layout.pages, overflowing)
            if breaks == layout.break_before:
                _LOG.warning("OFFER_LAYOUT_OVERFLOW_UNRESOLVED pages=%s", overflowing)
                break
            _LOG.info("OFFER_LAYOUT_REPAGINATE attempt=%d overflowing=%s", attempt + 1, overflowing)
            layout = layout.with_breaks(breaks)
        return layout

    @abstractmethod
    async def paint(self, layout: DocumentLayout, *args: Any, token: Optional[CancellationToken] = None) -> Any:
        ...


class PrintSurfaceRenderer(PageRenderer):
    """Interactive path: the fitted layout is printed by the browser via @page rules into `destination`."""

    async def paint(
        self,
        layout: DocumentLayout,
        destination: Path,
        *,
        token: Optional[CancellationToken] = None,
    ) -> None:
        token = token or CancellationToken()
        container_id = f"offer-print-{uuid.uuid4().hex[:12]}"
        async with AsyncExitStack() as stack:
            try:
                session = await stack.enter_async_context(self._session_factory())
            except Exception as e:
                _LOG.warning("PRINT_SURFACE_UNAVAILABLE offer=%s err=%s", layout.offer.id, str(e)[:300])
                raise SurfaceUnavailableError(f"print surface could not be opened: {e}") from e
            await session.load_document(layout.html_document(base_url=self.base_url, body_html=""))
            try:
                layout = await self.mount_and_fit(session, layout, container_id, token)
                token.raise_if_cancelled()
                destination.parent.mkdir(parents=True, exist_ok=True)
                await session.print_pdf(destination)
            finally:
                await self._unmount(session, container_id)
        _LOG.info("PRINT_SURFACE_DONE offer=%s pages=%d dest=%s", layout.offer.id, layout.page_count, destination)


class CaptureRenderer(PageRenderer):
    """Offscreen path: one PNG per page at fixed pixel size, assembled into A4 PDF pages."""

    async def paint(self, layout: DocumentLayout, *, token: Optional[CancellationToken] = None) -> bytes:
        token = token or CancellationToken()
        token.raise_if_cancelled()
        container_id = f"offer-capture-{uuid.uuid4().hex[:12]}"
        async with self._session_factory() as session:
            await session.load_document(layout.html_document(base_url=self.base_url, body_html=""))
            try:
                layout = await self.mount_and_fit(session, layout, container_id, token)
                return await self._capture_pages(session, layout, container_id, token)
            finally:
                await self._unmount(session, container_id)

    async def _capture_pages(
        self,
        session: CaptureSession,
        layout: DocumentLayout,
        container_id: str,
        token: CancellationToken,
    ) -> bytes:
        total = layout.page_count
        geometry = layout.geometry
        with PdfAssembler(geometry) as assembler:
            for page in layout.pages:
                token.raise_if_cancelled()
                try:
                    await session.fix_page_size(container_id, page.index, geometry.width_px, geometry.height_px)
                    png = await token.guard(session.rasterize(container_id, page.index))
                    assembler.append(png)
                except ExportCancelledError:
                    raise
                except Exception as e:
                    _LOG.warning("OFFER_CAPTURE_PAGE_FAILED page=%d total=%d err=%s", page.number, total, str(e)[:300])
                    raise CaptureError(page.number, total, str(e)[:300]) from e
            return assembler.finish()
