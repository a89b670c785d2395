"""Fixed label tables for the two supported document languages."""
from __future__ import annotations

from typing import Literal

Language = Literal["en", "ar"]
SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "ar")

TRANSLATIONS: dict[str, dict[str, str]] = {
    "en": {
        "date": "Date",
        "dear_client": "Dear Client",
        "document_intro": (
            "The Scientific Office for International Trade is pleased to submit the following offer. "
            "We are confident it aligns with your current needs and provides significant value"
        ),
        "products_equipment": "Products & Equipment",
        "product_name": "Product Name",
        "description": "Description",
        "model": "Model",
        "provider": "Provider",
        "country": "Country",
        "price": "Price",
        "financial_summary": "Financial Summary",
        "subtotal": "Subtotal",
        "discount": "Discount",
        "total_amount": "Total Amount",
        "terms_conditions": "Terms & Conditions",
        "payment_terms": "Payment Terms",
        "delivery_terms": "Delivery Terms",
        "warranty": "Warranty",
        "valid_until": "Valid Until",
        "salesman": "Salesman",
        "no_image": "No Image",
        "not_available": "N/A",
        "offer": "Offer",
        "print": "Print / Save PDF",
        "close": "Close",
    },
    "ar": {
        "date": "التاريخ",
        "dear_client": "عزيزي العميل",
        "document_intro": (
            "يسر المكتب العلمي للتجارة الدولية أن يقدم العرض التالي. "
            "نحن واثقون من أنه يتماشى مع احتياجاتك الحالية ويوفر قيمة كبيرة"
        ),
        "products_equipment": "المنتجات والمعدات",
        "product_name": "اسم المنتج",
        "description": "الوصف",
        "model": "الموديل",
        "provider": "المورد",
        "country": "البلد",
        "price": "السعر",
        "financial_summary": "الملخص المالي",
        "subtotal": "المجموع الفرعي",
        "discount": "الخصم",
        "total_amount": "المبلغ الإجمالي",
        "terms_conditions": "الشروط والأحكام",
        "payment_terms": "شروط الدفع",
        "delivery_terms": "شروط التسليم",
        "warranty": "الضمان",
        "valid_until": "صالح حتى",
        "salesman": "مندوب المبيعات",
        "no_image": "لا توجد صورة",
        "not_available": "N/A",
        "offer": "عرض",
        "print": "طباعة / حفظ PDF",
        "close": "إغلاق",
    },
}


def get_translations(language: str) -> dict[str, str]:
    return TRANSLATIONS.get(language, TRANSLATIONS["en"])


def is_rtl(language: str) -> bool:
    return language == "ar"
