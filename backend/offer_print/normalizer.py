"""
Map heterogeneous upstream equipment records onto one canonical EquipmentView.

Each attribute is looked up through a fixed list of alternate key spellings; the
first present, non-empty value wins. Malformed values are coerced, never raised.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import urlsplit

from .models import OfferDocument, RenderOptions

ID_KEYS = ("id", "Id")
NAME_KEYS = ("name", "Name")
MODEL_KEYS = ("model", "Model")
PROVIDER_KEYS = ("provider", "Provider", "manufacturer", "Manufacturer")
COUNTRY_KEYS = ("country", "Country")
YEAR_KEYS = ("year", "Year")
IN_STOCK_KEYS = ("inStock", "InStock", "in_stock")
PRICE_KEYS = ("price", "Price", "totalPrice", "TotalPrice", "unitPrice", "UnitPrice")
DESCRIPTION_KEYS = ("description", "Description", "specifications", "Specifications")
CUSTOM_DESCRIPTION_KEYS = ("customDescription", "CustomDescription", "custom_description")
IMAGE_KEYS = ("imagePath", "ImagePath", "imageUrl", "ImageUrl")
PROVIDER_IMAGE_KEYS = ("providerImagePath", "ProviderImagePath", "providerLogoPath", "ProviderLogoPath")

PLACEHOLDER_MARKER = "placeholder"
DEFAULT_NAME = "N/A"


@dataclass(frozen=True)
class EquipmentView:
    id: Any
    name: str
    model: str
    provider: str
    country: str
    year: Optional[int]
    in_stock: Optional[bool]
    price: float
    description: str
    image_url: str
    provider_image_url: str


def _pick(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _pick_text(record: Mapping[str, Any], *keys: str, default: str = "") -> str:
    value = _pick(record, *keys)
    if value is None:
        return default
    return str(value).strip()


def _first_not_none(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return None


def coerce_price(value: Any) -> float:
    """Finite float or 0.0; strings go through plain numeric conversion."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        parsed = float(value)
    else:
        text = str(value).strip()
        if not text:
            return 0.0
        try:
            parsed = float(text)
        except ValueError:
            return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def _coerce_year(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def _coerce_flag(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"true", "1", "yes"}:
        return True
    if text in {"false", "0", "no"}:
        return False
    return None


def resolve_image_url(path: str) -> str:
    """Absolute http(s) and '/'-rooted paths pass through; other relative paths get a '/' prefix."""
    if not path:
        return ""
    if path.startswith("http://") or path.startswith("https://"):
        return path
    if path.startswith("/"):
        return path
    return f"/{path}"


def _path_part(path: str) -> str:
    return urlsplit(path).path if "://" in path else path.split("?", 1)[0]


def is_placeholder_image(path: str) -> bool:
    filename = _path_part(path).rstrip("/").rsplit("/", 1)[-1]
    return PLACEHOLDER_MARKER in filename.lower()


def is_vector_image(path: str) -> bool:
    return _path_part(path).lower().endswith(".svg")


def _usable_image(path: str, *, allow_vector: bool) -> str:
    if not path or is_placeholder_image(path):
        return ""
    if not allow_vector and is_vector_image(path):
        return ""
    return resolve_image_url(path)


def normalize_equipment(raw: Mapping[str, Any], overrides: Mapping[str, str] | None = None) -> EquipmentView:
    overrides = overrides or {}
    eq_id = _pick(raw, *ID_KEYS)

    chosen = ""
    if eq_id is not None:
        chosen = (overrides.get(str(eq_id)) or "").strip()
    if not chosen:
        chosen = _pick_text(raw, *CUSTOM_DESCRIPTION_KEYS)
    if not chosen:
        chosen = _pick_text(raw, *DESCRIPTION_KEYS)

    return EquipmentView(
        id=eq_id,
        name=_pick_text(raw, *NAME_KEYS, default=DEFAULT_NAME),
        model=_pick_text(raw, *MODEL_KEYS),
        provider=_pick_text(raw, *PROVIDER_KEYS),
        country=_pick_text(raw, *COUNTRY_KEYS),
        year=_coerce_year(_pick(raw, *YEAR_KEYS)),
        in_stock=_coerce_flag(_first_not_none(raw, *IN_STOCK_KEYS)),
        price=coerce_price(_first_not_none(raw, *PRICE_KEYS)),
        description=chosen,
        image_url=_usable_image(_pick_text(raw, *IMAGE_KEYS), allow_vector=True),
        provider_image_url=_usable_image(_pick_text(raw, *PROVIDER_IMAGE_KEYS), allow_vector=False),
    )


def normalize_offer_equipment(offer: OfferDocument, options: RenderOptions) -> list[EquipmentView]:
    return [normalize_equipment(raw, options.custom_descriptions) for raw in offer.equipment]
