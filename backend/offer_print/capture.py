"""
Browser-side operations used by both render targets.

CaptureSession is the seam between the renderers and Chromium: the renderers only
ever talk to this protocol, so tests drive them with an in-memory session.
PlaywrightSession is the production implementation (playwright.async_api).
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, Protocol

from . import config
from .layout import A4_PORTRAIT, PageGeometry


class CaptureSession(Protocol):
    async def load_document(self, html: str) -> None: ...

    async def mount(self, container_id: str, body_html: str) -> None: ...

    async def image_waiters(self, scope: str) -> list[Awaitable[Any]]: ...

    async def apply_image_fallbacks(self, scope: str) -> int: ...

    async def measure_overflow(self, container_id: str) -> list[dict[str, Any]]: ...

    async def fix_page_size(self, container_id: str, page_index: int, width_px: int, height_px: int) -> None: ...

    async def rasterize(self, container_id: str, page_index: int) -> bytes: ...

    async def print_pdf(self, destination: Path) -> None: ...

    async def unmount(self, container_id: str) -> None: ...


SessionFactory = Callable[[], Any]  # () -> async context manager yielding a CaptureSession


_MOUNT_JS = """
([id, markup]) => {
  const old = document.getElementById(id);
  if (old) old.remove();
  document.body.insertAdjacentHTML("beforeend", markup);
}
"""

_IMAGE_SETTLED_JS = """
(img) => {
  if (img.complete) return img.naturalWidth > 0;
  return new Promise((resolve) => {
    img.addEventListener("load", () => resolve(true), { once: true });
    img.addEventListener("error", () => resolve(false), { once: true });
  });
}
"""

_FALLBACK_JS = """
(scope) => {
  const root = document.querySelector(scope);
  if (!root) return 0;
  let replaced = 0;
  for (const img of Array.from(root.querySelectorAll("img[data-fallback]"))) {
    if (img.complete && img.naturalWidth > 0) continue;
    replaced += 1;
    if (img.dataset.fallback === "placeholder") {
      const slot = document.createElement("div");
      slot.className = "no-image-placeholder";
      slot.textContent = img.dataset.placeholderText || "";
      img.replaceWith(slot);
    } else {
      img.remove();
    }
  }
  return replaced;
}
"""

_OVERFLOW_JS = """
(id) => {
  const root = document.getElementById(id);
  if (!root) return [];
  return Array.from(root.querySelectorAll(".product-page")).map((el) => {
    const content = el.querySelector(".page-content");
    const inner = el.querySelector(".page-content-inner");
    const contentHeight = content ? content.clientHeight : 0;
    const innerHeight = inner ? inner.scrollHeight : 0;
    return {
      index: Number(el.getAttribute("data-page-index") || 0),
      overflowPx: Math.max(0, innerHeight - contentHeight),
    };
  });
}
"""

_FIX_SIZE_JS = """
([id, index, width, height]) => {
  const el = document.querySelector(`#${id} .product-page[data-page-index="${index}"]`);
  if (!el) throw new Error(`page ${index} not mounted`);
  for (const prop of ["width", "minWidth", "maxWidth"]) el.style[prop] = `${width}px`;
  for (const prop of ["height", "minHeight", "maxHeight"]) el.style[prop] = `${height}px`;
}
"""

_UNMOUNT_JS = """
(id) => {
  const el = document.getElementById(id);
  if (el) el.remove();
}
"""


class PlaywrightSession:
    def __init__(self, page: Any) -> None:
        self._page = page

    async def load_document(self, html: str) -> None:
        await self._page.set_content(html, wait_until="domcontentloaded")

    async def mount(self, container_id: str, body_html: str) -> None:
        await self._page.evaluate(_MOUNT_JS, [container_id, body_html])

    async def image_waiters(self, scope: str) -> list[Awaitable[Any]]:
        handles = await self._page.query_selector_all(f"{scope} img")
        return [h.evaluate(_IMAGE_SETTLED_JS) for h in handles]

    async def apply_image_fallbacks(self, scope: str) -> int:
        return int(await self._page.evaluate(_FALLBACK_JS, scope) or 0)

    async def measure_overflow(self, container_id: str) -> list[dict[str, Any]]:
        return list(await self._page.evaluate(_OVERFLOW_JS, container_id) or [])

    async def fix_page_size(self, container_id: str, page_index: int, width_px: int, height_px: int) -> None:
        await self._page.evaluate(_FIX_SIZE_JS, [container_id, page_index, width_px, height_px])

    async def rasterize(self, container_id: str, page_index: int) -> bytes:
        locator = self._page.locator(f'#{container_id} .product-page[data-page-index="{page_index}"]')
        return await locator.screenshot(type="png", animations="disabled")

    async def print_pdf(self, destination: Path) -> None:
        await self._page.emulate_media(media="print")
        await self._page.pdf(
            path=str(destination),
            format="A4",
            print_background=True,
            prefer_css_page_size=True,
            margin={"top": "0mm", "bottom": "0mm", "left": "0mm", "right": "0mm"},
        )

    async def unmount(self, container_id: str) -> None:
        await self._page.evaluate(_UNMOUNT_JS, container_id)


@asynccontextmanager
async def playwright_session(
    geometry: PageGeometry = A4_PORTRAIT,
    *,
    scale: float = config.CAPTURE_SCALE,
) -> AsyncIterator[PlaywrightSession]:
    """Headless Chromium page sized to one sheet, rasterizing at `scale` device pixels per CSS px."""
    from playwright.async_api import async_playwright

    async with async_playwright() as p:
        browser = await p.chromium.launch(args=["--no-sandbox"])
        try:
            context = await browser.new_context(
                viewport={"width": geometry.width_px, "height": geometry.height_px},
                device_scale_factor=scale,
            )
            page = await context.new_page()
            yield PlaywrightSession(page)
        finally:
            await browser.close()


class PdfAssembler:
    """Appends one PNG per A4 page to a PyMuPDF document; each raster is dropped once placed."""

    def __init__(self, geometry: PageGeometry = A4_PORTRAIT) -> None:
        import fitz  # PyMuPDF

        self._geometry = geometry
        self._doc = fitz.open()

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    def append(self, png: bytes) -> None:
        page = self._doc.new_page(width=self._geometry.width_pt, height=self._geometry.height_pt)
        page.insert_image(page.rect, stream=png, keep_proportion=False)

    def finish(self) -> bytes:
        return self._doc.tobytes(deflate=True, garbage=4)

    def close(self) -> None:
        self._doc.close()

    def __enter__(self) -> "PdfAssembler":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def assemble_pdf(pngs: list[bytes], geometry: PageGeometry = A4_PORTRAIT) -> bytes:
    with PdfAssembler(geometry) as assembler:
        for png in pngs:
            assembler.append(png)
        return assembler.finish()
