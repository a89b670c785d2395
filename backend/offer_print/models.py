"""Offer payload and render options accepted by the export pipeline."""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .format_utils import numeric_or_none
from .translations import SUPPORTED_LANGUAGES

# Upstream equipment records arrive with inconsistent key casing; normalizer.py resolves them.
EquipmentLine = Dict[str, Any]


class OfferDocument(BaseModel):
    """Already-validated commercial offer, as supplied by the offers API."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: Union[int, str] = Field(validation_alias=AliasChoices("id", "Id"))
    client_name: str = Field(default="", validation_alias=AliasChoices("client_name", "clientName", "ClientName"))
    client_type: Optional[str] = Field(default=None, validation_alias=AliasChoices("client_type", "clientType"))
    client_location: Optional[str] = Field(default=None, validation_alias=AliasChoices("client_location", "clientLocation"))
    products: str = Field(default="", validation_alias=AliasChoices("products", "Products"))
    total_amount: float = Field(default=0.0, validation_alias=AliasChoices("total_amount", "totalAmount", "TotalAmount"))
    discount_amount: float = Field(default=0.0, validation_alias=AliasChoices("discount_amount", "discountAmount", "DiscountAmount"))
    valid_from: Optional[str] = Field(default=None, validation_alias=AliasChoices("valid_from", "validFrom"))
    valid_until: Optional[str] = Field(default=None, validation_alias=AliasChoices("valid_until", "validUntil", "ValidUntil"))
    created_at: Optional[str] = Field(default=None, validation_alias=AliasChoices("created_at", "createdAt", "CreatedAt"))
    status: Optional[str] = None
    assigned_to_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("assigned_to_name", "assignedToName"))
    payment_terms: Optional[str] = Field(default=None, validation_alias=AliasChoices("payment_terms", "paymentTerms"))
    delivery_terms: Optional[str] = Field(default=None, validation_alias=AliasChoices("delivery_terms", "deliveryTerms"))
    warranty_terms: Optional[str] = Field(default=None, validation_alias=AliasChoices("warranty_terms", "warrantyTerms"))
    equipment: List[EquipmentLine] = Field(default_factory=list, validation_alias=AliasChoices("equipment", "Equipment"))

    @field_validator("total_amount", "discount_amount", mode="before")
    @classmethod
    def _coerce_money(cls, value: Any) -> float:
        parsed = numeric_or_none(value)
        return 0.0 if parsed is None else parsed

    @field_validator("client_name", "products", mode="before")
    @classmethod
    def _text_or_empty(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator(
        "valid_from",
        "valid_until",
        "created_at",
        "assigned_to_name",
        "payment_terms",
        "delivery_terms",
        "warranty_terms",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("equipment", mode="before")
    @classmethod
    def _equipment_records(cls, value: Any) -> list[dict[str, Any]]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]


class RenderOptions(BaseModel):
    """Per-export presentation choices made by the caller."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    language: Literal["en", "ar"] = "en"
    show_product_headers: bool = Field(default=True, validation_alias=AliasChoices("show_product_headers", "showProductHeaders"))
    show_model: bool = Field(default=True, validation_alias=AliasChoices("show_model", "showModel"))
    show_provider: bool = Field(default=True, validation_alias=AliasChoices("show_provider", "showProvider"))
    show_country: bool = Field(default=True, validation_alias=AliasChoices("show_country", "showCountry"))
    show_description: bool = Field(default=True, validation_alias=AliasChoices("show_description", "showDescription"))
    show_image: bool = Field(default=True, validation_alias=AliasChoices("show_image", "showImage"))
    show_price: bool = Field(default=True, validation_alias=AliasChoices("show_price", "showPrice"))
    custom_descriptions: Dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("custom_descriptions", "customDescriptions"),
    )
    filename_suffix: Optional[str] = Field(default=None, validation_alias=AliasChoices("filename_suffix", "filenameSuffix"))

    @field_validator("language", mode="before")
    @classmethod
    def _lower_language(cls, value: Any) -> Any:
        if value is None:
            return "en"
        return str(value).strip().lower()

    @field_validator("custom_descriptions", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> dict[str, str]:
        if not isinstance(value, dict):
            return {}
        out: dict[str, str] = {}
        for key, text in value.items():
            if key is None or text in (None, ""):
                continue
            out[str(key)] = str(text)
        return out

    @field_validator("filename_suffix", mode="before")
    @classmethod
    def _blank_suffix(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @property
    def language_code(self) -> str:
        return self.language.upper()

    def for_language(self, language: str) -> "RenderOptions":
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")
        return self.model_copy(update={"language": language})
