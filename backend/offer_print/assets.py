"""
Letterhead background resolution.

The background is obtained once and reused: a pre-rendered PNG is preferred; when it
is missing or unreadable, page 1 of the vector letterhead PDF is rasterized with
PyMuPDF at a fixed high scale. Total failure yields None ("no background").
"""
from __future__ import annotations

import asyncio
import base64
import logging
import re
import time
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence

from . import config

_LOG = logging.getLogger(__name__)

# 5x the PDF's 72 dpi user space, roughly 360 dpi on A4.
VECTOR_RENDER_SCALE = 5.0
MAX_RASTER_BYTES = 40_000_000

_DATA_URI_RE = re.compile(r"data:image/(png|jpeg);base64,[A-Za-z0-9+/]+={0,2}")
_PIL_MIME = {"PNG": "image/png", "JPEG": "image/jpeg"}


@dataclass(frozen=True)
class BackgroundAsset:
    data_uri: str
    source: str

    def __post_init__(self) -> None:
        if not _DATA_URI_RE.fullmatch(self.data_uri):
            raise ValueError("background asset must be a base64 PNG or JPEG data URI")

    def css_url(self) -> str:
        return f'url("{self.data_uri}")'


AssetLoader = Callable[[], Awaitable[Optional[BackgroundAsset]]]


def _data_uri(raw: bytes, mime: str) -> str:
    return f"data:{mime};base64,{base64.b64encode(raw).decode('ascii')}"


def read_raster_letterhead(path: Path) -> Optional[BackgroundAsset]:
    from PIL import Image

    if not path.is_file():
        _LOG.info("LETTERHEAD_RASTER_MISSING path=%s", path)
        return None
    raw = path.read_bytes()
    if not raw or len(raw) > MAX_RASTER_BYTES:
        _LOG.warning("LETTERHEAD_RASTER_REJECTED path=%s bytes=%d", path, len(raw))
        return None
    with Image.open(BytesIO(raw)) as img:
        fmt = img.format
        img.verify()
    mime = _PIL_MIME.get(fmt or "")
    if mime is None:
        _LOG.warning("LETTERHEAD_RASTER_REJECTED path=%s format=%s", path, fmt)
        return None
    return BackgroundAsset(data_uri=_data_uri(raw, mime), source="raster")


def render_vector_letterhead(path: Path, scale: float = VECTOR_RENDER_SCALE) -> Optional[BackgroundAsset]:
    import fitz  # PyMuPDF
    from PIL import Image

    if not path.is_file():
        _LOG.info("LETTERHEAD_VECTOR_MISSING path=%s", path)
        return None
    doc = fitz.open(str(path))
    try:
        if doc.page_count < 1:
            return None
        page = doc.load_page(0)
        pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        img = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
    finally:
        doc.close()
    buf = BytesIO()
    img.save(buf, format="PNG", optimize=True)
    return BackgroundAsset(data_uri=_data_uri(buf.getvalue(), "image/png"), source="vector")


def raster_loader(path: Path) -> AssetLoader:
    async def load_raster() -> Optional[BackgroundAsset]:
        return await asyncio.to_thread(read_raster_letterhead, path)

    return load_raster


def vector_loader(path: Path, scale: float = VECTOR_RENDER_SCALE) -> AssetLoader:
    async def load_vector() -> Optional[BackgroundAsset]:
        return await asyncio.to_thread(render_vector_letterhead, path, scale)

    return load_vector


def default_loaders() -> tuple[AssetLoader, ...]:
    return (raster_loader(config.LETTERHEAD_PNG_PATH), vector_loader(config.LETTERHEAD_PDF_PATH))


class BackgroundAssetCache:
    """
    get-or-resolve cache for the letterhead.

    Concurrent first callers share one in-flight resolution. A successful result is
    kept until invalidate(); a failed one (None) is kept for `failure_ttl` seconds
    and then retried.
    """

    def __init__(
        self,
        loaders: Optional[Sequence[AssetLoader]] = None,
        *,
        failure_ttl: float = config.ASSET_FAILURE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loaders = tuple(loaders) if loaders is not None else default_loaders()
        self._failure_ttl = max(0.0, failure_ttl)
        self._clock = clock
        self._resolved = False
        self._value: Optional[BackgroundAsset] = None
        self._resolved_at = 0.0
        self._inflight: Optional[asyncio.Task] = None
        self._generation = 0
        self.resolution_count = 0

    def _fresh(self) -> bool:
        if not self._resolved:
            return False
        if self._value is not None:
            return True
        return self._failure_ttl > 0 and (self._clock() - self._resolved_at) < self._failure_ttl

    async def get_or_resolve(self) -> Optional[BackgroundAsset]:
        if self._fresh():
            return self._value
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._resolve(self._generation))
        # shield: one caller giving up must not cancel the shared resolution
        return await asyncio.shield(self._inflight)

    async def _resolve(self, generation: int) -> Optional[BackgroundAsset]:
        self.resolution_count += 1
        value: Optional[BackgroundAsset] = None
        for loader in self._loaders:
            name = getattr(loader, "__name__", "loader")
            try:
                value = await loader()
            except Exception as e:
                _LOG.warning("LETTERHEAD_LOAD_FAILED loader=%s err=%s", name, str(e)[:300])
                value = None
            if value is not None:
                _LOG.info("LETTERHEAD_RESOLVED loader=%s source=%s", name, value.source)
                break
        if value is None:
            _LOG.warning("LETTERHEAD_UNAVAILABLE rendering without background")
        if generation == self._generation:
            self._value = value
            self._resolved = True
            self._resolved_at = self._clock()
        return value

    def invalidate(self) -> None:
        self._generation += 1
        self._resolved = False
        self._value = None
        self._inflight = None


_default_cache: Optional[BackgroundAssetCache] = None


def default_asset_cache() -> BackgroundAssetCache:
    global _default_cache
    if _default_cache is None:
        _default_cache = BackgroundAssetCache()
    return _default_cache


async def get_background_asset(cache: Optional[BackgroundAssetCache] = None) -> Optional[BackgroundAsset]:
    return await (cache or default_asset_cache()).get_or_resolve()
