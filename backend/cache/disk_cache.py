"""
Disk cache for exported offer PDFs.
Key = sha256(offer_json + options_json + background_tag) -> PDF bytes.
The directory is pruned to the newest OFFER_PDF_CACHE_MAX entries on write.
"""
from __future__ import annotations

import hashlib
import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any

_LOG = logging.getLogger(__name__)

# Cache directory under backend/cache
_CACHE_DIR = Path(__file__).resolve().parent
OFFER_PDF_CACHE_DIR = Path(os.getenv("OFFER_PDF_CACHE_DIR", str(_CACHE_DIR / "offer_pdfs")))


def _max_entries() -> int:
    try:
        return max(1, int(os.getenv("OFFER_PDF_CACHE_MAX", "64")))
    except ValueError:
        return 64


def _ensure_dir(d: Path) -> None:
    d.mkdir(parents=True, exist_ok=True)


def _offer_pdf_key(offer: dict[str, Any], options: dict[str, Any], background_tag: str) -> str:
    """background_tag changes whenever the letterhead does, so stale renders are not served."""
    payload = json.dumps(
        {"offer": offer, "options": options, "background": background_tag},
        sort_keys=True,
        default=str,
    )
    return hashlib.sha256(payload.encode()).hexdigest()


def background_tag_for(data_uri: str | None) -> str:
    if not data_uri:
        return "none"
    return hashlib.sha256(data_uri.encode()).hexdigest()[:16]


def get_cached_offer_pdf(offer: dict[str, Any], options: dict[str, Any], background_tag: str) -> bytes | None:
    """Return cached PDF bytes, or None."""
    path = OFFER_PDF_CACHE_DIR / f"{_offer_pdf_key(offer, options, background_tag)}.pdf"
    if not path.exists():
        return None
    try:
        return path.read_bytes()
    except OSError as e:
        _LOG.warning("OFFER_PDF_CACHE_READ_FAILED path=%s err=%s", path.name, e)
        return None


def set_cached_offer_pdf(offer: dict[str, Any], options: dict[str, Any], background_tag: str, pdf_bytes: bytes) -> None:
    """Store PDF bytes in cache."""
    _ensure_dir(OFFER_PDF_CACHE_DIR)
    path = OFFER_PDF_CACHE_DIR / f"{_offer_pdf_key(offer, options, background_tag)}.pdf"
    tmp = path.with_name(f"{path.name}.{uuid.uuid4().hex[:8]}.tmp")
    tmp.write_bytes(pdf_bytes)
    os.replace(tmp, path)
    _prune(OFFER_PDF_CACHE_DIR, _max_entries())


def _mtime(p: Path) -> float:
    try:
        return p.stat().st_mtime
    except FileNotFoundError:
        return 0.0


def _prune(d: Path, keep: int) -> None:
    entries = sorted(d.glob("*.pdf"), key=_mtime, reverse=True)
    for stale in entries[keep:]:
        try:
            stale.unlink()
        except FileNotFoundError:
            continue


def clear_offer_pdf_cache() -> int:
    if not OFFER_PDF_CACHE_DIR.exists():
        return 0
    removed = 0
    for path in OFFER_PDF_CACHE_DIR.glob("*.pdf"):
        path.unlink(missing_ok=True)
        removed += 1
    return removed
