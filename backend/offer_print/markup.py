"""Serialize layout trees to HTML and wrap them into printable documents."""
from __future__ import annotations

import html
from typing import Optional, Sequence

from .assets import BackgroundAsset
from .layout import A4_PORTRAIT, Child, Node, PageGeometry, Text, build_document_tree, build_page_tree, el
from .models import OfferDocument, RenderOptions
from .pagination import Page
from .stylesheet import offer_css, preview_css
from .translations import get_translations, is_rtl

VOID_TAGS = frozenset({"img", "meta", "base", "br", "hr", "link"})


def _esc(value: object) -> str:
    return html.escape(str(value if value is not None else ""), quote=True)


def _render_attrs(attrs: dict[str, str]) -> str:
    return "".join(f' {name}="{_esc(value)}"' for name, value in attrs.items())


def render_markup(node: Child) -> str:
    """Serialize a tree; every Text value and attribute is escaped here."""
    if isinstance(node, Text):
        return _esc(node.value)
    attrs = _render_attrs(node.attrs)
    if node.tag in VOID_TAGS:
        return f"<{node.tag}{attrs} />"
    inner = "".join(render_markup(child) for child in node.children)
    return f"<{node.tag}{attrs}>{inner}</{node.tag}>"


def render_page(
    page: Page,
    offer: OfferDocument,
    options: RenderOptions,
    background: Optional[BackgroundAsset] = None,
) -> str:
    """HTML fragment for one page."""
    return render_markup(build_page_tree(page, offer, options, has_background=background is not None))


def render_body(
    pages: Sequence[Page],
    offer: OfferDocument,
    options: RenderOptions,
    background: Optional[BackgroundAsset] = None,
    *,
    container_id: Optional[str] = None,
) -> str:
    tree = build_document_tree(
        pages,
        offer,
        options,
        has_background=background is not None,
        container_id=container_id,
    )
    return render_markup(tree)


def PreviewControls(options: RenderOptions) -> Node:
    t = get_translations(options.language)
    return el(
        "div",
        {"class": "preview-controls no-print"},
        el("button", {"type": "button", "class": "btn-print", "onclick": "window.print()"}, t["print"]),
        el("button", {"type": "button", "class": "btn-close", "onclick": "window.close()"}, t["close"]),
    )


def document_title(offer: OfferDocument, options: RenderOptions) -> str:
    t = get_translations(options.language)
    return f"{t['offer']} #{offer.id} - {offer.client_name}"


def build_html_document(
    body_html: str,
    offer: OfferDocument,
    options: RenderOptions,
    background: Optional[BackgroundAsset] = None,
    *,
    geometry: PageGeometry = A4_PORTRAIT,
    base_url: str = "",
    include_preview_controls: bool = False,
) -> str:
    lang = options.language
    direction = "rtl" if is_rtl(lang) else "ltr"
    base_tag = f'<base href="{_esc(base_url)}" />' if base_url else ""
    controls = render_markup(PreviewControls(options)) if include_preview_controls else ""
    extra_css = preview_css() if include_preview_controls else ""
    return f"""
<!doctype html>
<html lang="{_esc(lang)}" dir="{direction}">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  {base_tag}
  <title>{_esc(document_title(offer, options))}</title>
  <style>{offer_css(geometry, lang, background)}{extra_css}</style>
</head>
<body>
  {controls}
  {body_html}
</body>
</html>
    """.strip()
