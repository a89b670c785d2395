"""CSS shared by the print surface and the capture pipeline, derived from one PageGeometry."""
from __future__ import annotations

from typing import Optional

from .assets import BackgroundAsset
from .layout import PageGeometry
from .translations import is_rtl

PRIMARY = "#2980b9"
SECONDARY = "#34495e"
FONT_LATIN = "'Segoe UI', Tahoma, Geneva, Verdana, sans-serif"
FONT_ARABIC = "'Cairo', 'Amiri', 'Segoe UI', Tahoma, sans-serif"


def _mm(value: float) -> str:
    return f"{value:g}mm"


def offer_css(geometry: PageGeometry, language: str, background: Optional[BackgroundAsset] = None) -> str:
    rtl = is_rtl(language)
    font_family = FONT_ARABIC if rtl else FONT_LATIN
    letterhead_var = f"--letterhead-url: {background.css_url()};" if background is not None else ""
    financial_align = "margin-left: auto; margin-right: 0;" if rtl else "margin-left: 0; margin-right: auto;"
    page_w = _mm(geometry.width_mm)
    page_h = _mm(geometry.height_mm)
    return f"""
    :root {{
      --print-primary: {PRIMARY};
      --print-secondary: {SECONDARY};
      --print-text: #1e1e1e;
      --print-text-muted: #505050;
      --print-border: #c8c8c8;
      --print-border-light: #dcdcdc;
      --print-bg-header: #f0f0f0;
      {letterhead_var}
    }}
    @page {{ size: {page_w} {page_h}; margin: 0; }}
    * {{ margin: 0; padding: 0; box-sizing: border-box; }}
    html, body {{ background: #f5f5f5; }}
    body {{
      font-family: {font_family};
      font-size: 10pt;
      color: var(--print-text);
      line-height: 1.4;
      -webkit-print-color-adjust: exact;
      print-color-adjust: exact;
    }}
    .offer-print-container {{ width: {page_w}; margin: 0 auto; }}
    .offer-print-container.rtl {{ direction: rtl; font-family: {FONT_ARABIC}; }}
    .offer-print-container.ltr {{ direction: ltr; }}
    .product-page {{
      position: relative;
      width: {page_w};
      height: {page_h};
      overflow: hidden;
      background-color: #ffffff;
      background-repeat: no-repeat;
      background-size: 100% 100%;
      background-position: center center;
      break-after: page;
      page-break-after: always;
      break-inside: avoid;
      page-break-inside: avoid;
    }}
    .product-page:last-child {{ break-after: auto; page-break-after: auto; }}
    .product-page.has-letterhead {{ background-image: var(--letterhead-url); }}
    .page-content {{
      position: absolute;
      top: {_mm(geometry.header_band_mm)};
      bottom: {_mm(geometry.footer_band_mm)};
      left: {_mm(geometry.side_padding_mm)};
      right: {_mm(geometry.side_padding_mm)};
      overflow: hidden;
      z-index: 2;
    }}
    .page-content-inner {{ width: 100%; }}
    .offer-header {{ margin-bottom: 12pt; }}
    .date-section {{ margin-bottom: 8pt; font-size: 11pt; color: var(--print-secondary); }}
    .date-section .label {{ font-weight: 600; }}
    .date-section .value {{ margin-inline-start: 8pt; }}
    .client-greeting {{ font-size: 11pt; color: var(--print-secondary); margin-bottom: 8pt; }}
    .document-intro {{ font-size: 10pt; color: var(--print-secondary); line-height: 1.5; }}
    .section-title {{ font-size: 13pt; font-weight: 700; color: var(--print-primary); margin: 12pt 0 6pt 0; }}
    .products-table, .financial-table, .terms-table {{
      width: 100%;
      border-collapse: collapse;
      border: 1px solid var(--print-border);
    }}
    .products-table {{ margin-bottom: 10pt; }}
    .products-table th, .products-table td {{
      border: 1px solid var(--print-border);
      padding: 6pt;
      vertical-align: middle;
      text-align: start;
    }}
    .products-table thead th {{
      background: var(--print-bg-header);
      font-weight: 600;
      font-size: 9pt;
      color: var(--print-primary);
      text-align: center;
    }}
    .col-product {{ width: 25%; }}
    .col-image {{ width: 30%; text-align: center; }}
    .col-provider {{ width: 15%; }}
    .col-price {{ width: 15%; text-align: end; }}
    .product-row {{ height: 50mm; break-inside: avoid; page-break-inside: avoid; }}
    .product-row:nth-child(even) {{ background: rgba(240, 240, 240, 0.3); }}
    .product-name {{ font-size: 11pt; font-weight: 600; margin-bottom: 4pt; }}
    .product-description {{ font-size: 9pt; color: var(--print-text-muted); line-height: 1.3; margin-bottom: 4pt; }}
    .product-model {{ font-size: 9pt; color: var(--print-text-muted); font-style: italic; }}
    .product-image {{ width: 50mm; height: 50mm; object-fit: contain; display: block; margin: 0 auto; }}
    .no-image-placeholder {{
      display: flex;
      align-items: center;
      justify-content: center;
      width: 50mm;
      height: 50mm;
      margin: 0 auto;
      border: 1px dashed var(--print-border);
      background: #fafafa;
      color: var(--print-text-muted);
      font-size: 8pt;
    }}
    .provider-info {{ display: flex; flex-direction: column; gap: 4pt; margin-bottom: 6pt; }}
    .provider-logo {{ width: 35mm; height: 15mm; object-fit: contain; display: block; margin: 0 auto 4pt auto; }}
    .provider-name {{ font-size: 10pt; font-weight: 600; }}
    .country-info {{ font-size: 9pt; color: var(--print-text-muted); }}
    .price-value {{ font-size: 10pt; font-weight: 600; white-space: nowrap; }}
    .financial-table {{ max-width: 300pt; {financial_align} }}
    .financial-table td, .terms-table td {{ border: 1px solid var(--print-border); padding: 5pt 10pt; font-size: 9pt; }}
    .financial-table .label, .terms-table .label {{ font-weight: 600; color: var(--print-secondary); }}
    .financial-table .label {{ width: 50%; }}
    .financial-table .value {{ text-align: end; font-weight: 600; }}
    .financial-table .value.discount {{ color: #c0392b; }}
    .financial-table .total-row {{ background: var(--print-bg-header); }}
    .financial-table .total-row .label, .financial-table .total-row .value {{
      font-size: 10pt;
      font-weight: 700;
      color: var(--print-primary);
    }}
    .terms-table td {{ font-size: 8pt; }}
    .terms-table .label {{ width: 100pt; }}
    .offer-footer {{ margin-top: 12pt; padding-top: 6pt; border-top: 1px solid var(--print-border-light); }}
    .footer-row {{ display: flex; gap: 8pt; margin-bottom: 4pt; font-size: 10pt; }}
    .footer-row .label {{ font-weight: 600; color: var(--print-secondary); }}
    @media print {{
      html, body {{ background: #ffffff; }}
      .offer-print-container {{ margin: 0; }}
      .no-print {{ display: none !important; }}
    }}
    """


def preview_css() -> str:
    return """
    .preview-controls {
      position: fixed;
      top: 10px;
      right: 20px;
      z-index: 1000;
      display: flex;
      gap: 10px;
      background: #ffffff;
      padding: 10px 15px;
      border-radius: 8px;
      box-shadow: 0 2px 10px rgba(0, 0, 0, 0.2);
    }
    .preview-controls button {
      padding: 8px 20px;
      border: none;
      border-radius: 5px;
      cursor: pointer;
      font-size: 14px;
      font-weight: 500;
    }
    .btn-print { background: #2980b9; color: #ffffff; }
    .btn-close { background: #e0e0e0; color: #333333; }
    @media screen {
      .offer-print-container { margin: 20px auto; box-shadow: 0 0 20px rgba(0, 0, 0, 0.15); }
      .product-page + .product-page { margin-top: 12px; }
    }
    @media print {
      .preview-controls { display: none !important; }
    }
    """
