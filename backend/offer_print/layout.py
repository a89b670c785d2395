"""
Page geometry and the layout tree for offer documents.

The tree is built from plain data only; markup.py turns it into HTML. Every piece
of caller-supplied text is held in a Text node so escaping happens in exactly one
place.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from .format_utils import format_currency, format_date
from .models import OfferDocument, RenderOptions
from .normalizer import EquipmentView
from .pagination import Page
from .translations import get_translations, is_rtl

MM_PER_INCH = 25.4
CSS_DPI = 96.0
PDF_POINTS_PER_INCH = 72.0


@dataclass(frozen=True)
class PageGeometry:
    """
    One physical page. The header/footer bands are fractions of the page height and
    are turned into absolute lengths here, once, so the print surface and the
    capture pipeline place the content box at the same spot.
    """
    width_mm: float = 210.0
    height_mm: float = 297.0
    header_band_ratio: float = 0.25
    footer_band_ratio: float = 0.25
    side_padding_mm: float = 15.0

    @property
    def header_band_mm(self) -> float:
        return round(self.height_mm * self.header_band_ratio, 3)

    @property
    def footer_band_mm(self) -> float:
        return round(self.height_mm * self.footer_band_ratio, 3)

    @property
    def content_height_mm(self) -> float:
        return round(self.height_mm - self.header_band_mm - self.footer_band_mm, 3)

    @property
    def width_px(self) -> int:
        return round(self.width_mm / MM_PER_INCH * CSS_DPI)

    @property
    def height_px(self) -> int:
        return round(self.height_mm / MM_PER_INCH * CSS_DPI)

    @property
    def width_pt(self) -> float:
        return self.width_mm / MM_PER_INCH * PDF_POINTS_PER_INCH

    @property
    def height_pt(self) -> float:
        return self.height_mm / MM_PER_INCH * PDF_POINTS_PER_INCH


A4_PORTRAIT = PageGeometry()


@dataclass(frozen=True)
class Text:
    value: str


@dataclass
class Node:
    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    children: list["Child"] = field(default_factory=list)

    def find_all(self, cls: str) -> list["Node"]:
        found: list[Node] = []
        if cls in self.attrs.get("class", "").split():
            found.append(self)
        for child in self.children:
            if isinstance(child, Node):
                found.extend(child.find_all(cls))
        return found

    def text_content(self) -> str:
        parts: list[str] = []
        for child in self.children:
            if isinstance(child, Text):
                parts.append(child.value)
            else:
                parts.append(child.text_content())
        return "".join(parts)


Child = Union[Node, Text]


def el(tag: str, attrs: Optional[dict[str, str]] = None, *children: Union[Child, str, None]) -> Node:
    """Element helper; plain strings become Text nodes and None children are dropped."""
    kids: list[Child] = []
    for child in children:
        if child is None:
            continue
        kids.append(Text(child) if isinstance(child, str) else child)
    return Node(tag, dict(attrs or {}), kids)


def _product_cell(view: EquipmentView, options: RenderOptions) -> Node:
    description = view.description if options.show_description else ""
    model = view.model if options.show_model else ""
    return el(
        "td",
        {"class": "col-product"},
        el("div", {"class": "product-name"}, view.name),
        el("div", {"class": "product-description"}, description) if description else None,
        el("div", {"class": "product-model"}, model) if model else None,
    )


def _image_cell(view: EquipmentView, t: dict[str, str]) -> Node:
    if view.image_url:
        body = el(
            "img",
            {
                "class": "product-image",
                "src": view.image_url,
                "alt": view.name,
                "data-fallback": "placeholder",
                "data-placeholder-text": t["no_image"],
            },
        )
    else:
        body = el("div", {"class": "no-image-placeholder"}, el("span", None, t["no_image"]))
    return el("td", {"class": "col-image"}, body)


def _provider_cell(view: EquipmentView, options: RenderOptions, t: dict[str, str]) -> Node:
    provider_block = None
    if options.show_provider:
        logo = None
        if view.provider_image_url:
            logo = el(
                "img",
                {
                    "class": "provider-logo",
                    "src": view.provider_image_url,
                    "alt": view.provider,
                    "data-fallback": "hide",
                },
            )
        provider_block = el(
            "div",
            {"class": "provider-info"},
            logo,
            el("span", {"class": "provider-name"}, view.provider or t["not_available"]),
        )
    country_block = None
    if options.show_country:
        country_block = el("div", {"class": "country-info"}, view.country or t["not_available"])
    return el("td", {"class": "col-provider"}, provider_block, country_block)


def ProductRow(view: EquipmentView, options: RenderOptions) -> Node:
    t = get_translations(options.language)
    return el(
        "tr",
        {"class": "product-row"},
        _product_cell(view, options),
        _image_cell(view, t) if options.show_image else None,
        _provider_cell(view, options, t) if (options.show_provider or options.show_country) else None,
        el(
            "td",
            {"class": "col-price"},
            el("span", {"class": "price-value"}, format_currency(view.price, options.language)),
        ) if options.show_price else None,
    )


def _provider_header_label(options: RenderOptions, t: dict[str, str]) -> str:
    if options.show_provider and options.show_country:
        return f"{t['provider']} / {t['country']}"
    if options.show_provider:
        return t["provider"]
    return t["country"]


def ProductsTable(items: Sequence[EquipmentView], options: RenderOptions) -> Node:
    t = get_translations(options.language)
    head = None
    if options.show_product_headers:
        head = el(
            "thead",
            None,
            el(
                "tr",
                None,
                el("th", {"class": "col-product"}, t["product_name"]),
                el("th", {"class": "col-image"}) if options.show_image else None,
                el("th", {"class": "col-provider"}, _provider_header_label(options, t))
                if (options.show_provider or options.show_country)
                else None,
                el("th", {"class": "col-price"}, t["price"]) if options.show_price else None,
            ),
        )
    body = el("tbody", None, *[ProductRow(view, options) for view in items])
    return el("table", {"class": "products-table"}, head, body)


def HeaderBlock(offer: OfferDocument, options: RenderOptions) -> Node:
    t = get_translations(options.language)
    return el(
        "header",
        {"class": "offer-header"},
        el(
            "div",
            {"class": "date-section"},
            el("span", {"class": "label"}, f"{t['date']}:"),
            el("span", {"class": "value"}, format_date(offer.created_at)),
        ),
        el("div", {"class": "client-greeting"}, el("span", None, f"{t['dear_client']}, {offer.client_name}")),
        el("p", {"class": "document-intro"}, t["document_intro"]),
    )


def FinancialBlock(offer: OfferDocument, options: RenderOptions) -> Node:
    t = get_translations(options.language)
    lang = options.language
    subtotal = offer.total_amount
    discount = offer.discount_amount
    rows: list[Node] = [
        el(
            "tr",
            None,
            el("td", {"class": "label"}, t["subtotal"]),
            el("td", {"class": "value"}, format_currency(subtotal, lang)),
        )
    ]
    if discount > 0:
        rows.append(
            el(
                "tr",
                {"class": "discount-row"},
                el("td", {"class": "label"}, t["discount"]),
                el("td", {"class": "value discount"}, f"- {format_currency(discount, lang)}"),
            )
        )
    rows.append(
        el(
            "tr",
            {"class": "total-row"},
            el("td", {"class": "label"}, t["total_amount"]),
            el("td", {"class": "value"}, format_currency(subtotal - discount, lang)),
        )
    )
    return el(
        "section",
        {"class": "financial-section"},
        el("h2", {"class": "section-title"}, t["financial_summary"]),
        el("table", {"class": "financial-table"}, el("tbody", None, *rows)),
    )


def TermsBlock(offer: OfferDocument, options: RenderOptions) -> Optional[Node]:
    t = get_translations(options.language)
    categories = (
        (t["payment_terms"], offer.payment_terms),
        (t["delivery_terms"], offer.delivery_terms),
        (t["warranty"], offer.warranty_terms),
    )
    rows = [
        el("tr", None, el("td", {"class": "label"}, label), el("td", {"class": "value"}, value))
        for label, value in categories
        if value
    ]
    if not rows:
        return None
    return el(
        "section",
        {"class": "terms-section"},
        el("h2", {"class": "section-title"}, t["terms_conditions"]),
        el("table", {"class": "terms-table"}, el("tbody", None, *rows)),
    )


def FooterBlock(offer: OfferDocument, options: RenderOptions) -> Node:
    t = get_translations(options.language)
    return el(
        "footer",
        {"class": "offer-footer"},
        el(
            "div",
            {"class": "footer-row"},
            el("span", {"class": "label"}, f"{t['valid_until']}:"),
            el("span", {"class": "value"}, format_date(offer.valid_until)),
        ),
        el(
            "div",
            {"class": "footer-row"},
            el("span", {"class": "label"}, f"{t['salesman']}:"),
            el("span", {"class": "value"}, offer.assigned_to_name or t["not_available"]),
        ),
    )


def build_page_tree(
    page: Page,
    offer: OfferDocument,
    options: RenderOptions,
    *,
    has_background: bool = False,
) -> Node:
    t = get_translations(options.language)
    classes = ["product-page"]
    if has_background:
        classes.append("has-letterhead")
    inner = el(
        "div",
        {"class": "page-content-inner"},
        HeaderBlock(offer, options) if page.is_first else None,
        None
        if page.is_summary_only
        else el(
            "section",
            {"class": "products-section"},
            el("h2", {"class": "section-title"}, t["products_equipment"]) if page.is_first else None,
            ProductsTable(page.items, options),
        ),
        FinancialBlock(offer, options) if page.is_last else None,
        TermsBlock(offer, options) if page.is_last else None,
        FooterBlock(offer, options) if page.is_last else None,
    )
    return el(
        "section",
        {"class": " ".join(classes), "data-page-index": str(page.index)},
        el("div", {"class": "page-content"}, inner),
    )


def build_document_tree(
    pages: Sequence[Page],
    offer: OfferDocument,
    options: RenderOptions,
    *,
    has_background: bool = False,
    container_id: Optional[str] = None,
) -> Node:
    direction = "rtl" if is_rtl(options.language) else "ltr"
    attrs = {"class": f"offer-print-container {direction}", "dir": direction, "lang": options.language}
    if container_id:
        attrs["id"] = container_id
    return el(
        "div",
        attrs,
        *[build_page_tree(page, offer, options, has_background=has_background) for page in pages],
    )
