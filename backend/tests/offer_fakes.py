"""In-memory stand-ins for the browser session and offer payloads used across offer tests."""
from __future__ import annotations

import asyncio
import base64
from contextlib import asynccontextmanager
from io import BytesIO
from pathlib import Path
from typing import Any, Callable, Optional

from PIL import Image

from offer_print.assets import BackgroundAsset, BackgroundAssetCache
from offer_print.models import OfferDocument


def tiny_png(size: tuple[int, int] = (8, 11), color: tuple[int, int, int] = (255, 255, 255)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def png_background() -> BackgroundAsset:
    uri = "data:image/png;base64," + base64.b64encode(tiny_png((4, 4), (20, 40, 160))).decode("ascii")
    return BackgroundAsset(data_uri=uri, source="raster")


def fixed_cache(asset: Optional[BackgroundAsset]) -> BackgroundAssetCache:
    async def load_fixed() -> Optional[BackgroundAsset]:
        return asset

    return BackgroundAssetCache(loaders=[load_fixed])


def equipment(n: int) -> list[dict[str, Any]]:
    return [
        {
            "id": i + 1,
            "name": f"Analyzer {i + 1}",
            "model": f"AX-{i + 1}",
            "provider": "Siemens",
            "country": "Germany",
            "price": 1000 * (i + 1),
            "imagePath": f"uploads/eq-{i + 1}.png",
        }
        for i in range(n)
    ]


def make_offer(n_items: int = 2, **overrides: Any) -> OfferDocument:
    payload: dict[str, Any] = {
        "id": 42,
        "clientName": "Cairo Labs",
        "products": "Lab analyzers",
        "totalAmount": 1000,
        "discountAmount": 0,
        "validUntil": "2026-03-31",
        "createdAt": "2026-01-15T09:30:00Z",
        "assignedToName": "Omar Saleh",
        "paymentTerms": "50% upfront",
        "deliveryTerms": "6 weeks",
        "warrantyTerms": "2 years",
        "equipment": equipment(n_items),
    }
    payload.update(overrides)
    return OfferDocument.model_validate(payload)


class FakeCaptureSession:
    """
    Records every call. `overflow` maps a mount number (0-based) to the overflow
    report returned for that mount; `fail_on_page` makes rasterize raise for that index.
    """

    def __init__(
        self,
        *,
        fail_on_page: Optional[int] = None,
        overflow: Optional[dict[int, list[dict[str, Any]]]] = None,
        image_results: tuple[bool, ...] = (),
        on_rasterize: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.fail_on_page = fail_on_page
        self.overflow = overflow or {}
        self.image_results = image_results
        self.on_rasterize = on_rasterize
        self.containers: dict[str, str] = {}
        self.created: list[str] = []
        self.documents: list[str] = []
        self.mounts: list[str] = []
        self.fixed_sizes: list[tuple[int, int, int]] = []
        self.rasterized: list[int] = []
        self.printed: list[Path] = []

    def container_exists(self, container_id: str) -> bool:
        return container_id in self.containers

    async def load_document(self, html: str) -> None:
        self.documents.append(html)

    async def mount(self, container_id: str, body_html: str) -> None:
        if container_id not in self.created:
            self.created.append(container_id)
        self.containers[container_id] = body_html
        self.mounts.append(body_html)

    async def image_waiters(self, scope: str) -> list[Any]:
        return [self._image(ok) for ok in self.image_results]

    async def _image(self, ok: bool) -> bool:
        await asyncio.sleep(0)
        if not ok:
            raise RuntimeError("image failed to load")
        return True

    async def apply_image_fallbacks(self, scope: str) -> int:
        return sum(1 for ok in self.image_results if not ok)

    async def measure_overflow(self, container_id: str) -> list[dict[str, Any]]:
        return self.overflow.get(len(self.mounts) - 1, [])

    async def fix_page_size(self, container_id: str, page_index: int, width_px: int, height_px: int) -> None:
        self.fixed_sizes.append((page_index, width_px, height_px))

    async def rasterize(self, container_id: str, page_index: int) -> bytes:
        if container_id not in self.containers:
            raise RuntimeError("container not mounted")
        if self.on_rasterize is not None:
            self.on_rasterize(page_index)
        if page_index == self.fail_on_page:
            raise RuntimeError("screenshot timed out")
        self.rasterized.append(page_index)
        return tiny_png()

    async def print_pdf(self, destination: Path) -> None:
        destination.write_bytes(b"%PDF-1.7\n%fake print\n")
        self.printed.append(destination)

    async def unmount(self, container_id: str) -> None:
        self.containers.pop(container_id, None)


def session_factory(session: FakeCaptureSession):
    @asynccontextmanager
    async def open_session():
        yield session

    return open_session


def broken_session_factory(message: str = "Executable doesn't exist"):
    @asynccontextmanager
    async def open_session():
        raise RuntimeError(message)
        yield  # pragma: no cover

    return open_session
