"""Runtime settings for offer rendering. Values come from the environment (see main.py for .env loading)."""
from __future__ import annotations

import os
from pathlib import Path

_LETTERHEAD_DIR = Path(__file__).resolve().parent / "letterhead"


def _float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


LETTERHEAD_PNG_PATH = Path(os.getenv("OFFER_LETTERHEAD_PNG", str(_LETTERHEAD_DIR / "Letterhead.png")))
LETTERHEAD_PDF_PATH = Path(os.getenv("OFFER_LETTERHEAD_PDF", str(_LETTERHEAD_DIR / "Letterhead.pdf")))

# Relative image paths ("/uploads/x.png") are resolved against this when the browser loads them.
ASSET_BASE_URL = (os.getenv("OFFER_ASSET_BASE_URL") or "http://localhost:5000").strip()

# Failed background resolutions are retried after this many seconds; 0 never caches a failure.
ASSET_FAILURE_TTL_SECONDS = max(0.0, _float_env("OFFER_ASSET_FAILURE_TTL_SECONDS", 300.0))

CAPTURE_SCALE = max(1.0, _float_env("OFFER_CAPTURE_SCALE", 2.0))
IMAGE_SETTLE_TIMEOUT_MS = max(0, _int_env("OFFER_IMAGE_SETTLE_TIMEOUT_MS", 15000))
DOWNLOAD_DIR = Path(os.getenv("OFFER_DOWNLOAD_DIR", str(Path.cwd() / "downloads")))
