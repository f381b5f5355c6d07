from __future__ import annotations

from typing import Iterable, Optional

from .config import settings
from .models import (
    CompanySettings,
    DiscountType,
    Quote,
    QuoteLineItem,
    QuoteServiceLine,
    QuoteTotals,
)


def discount_value(subtotal: float, discount: float, discount_type: DiscountType) -> float:
    if discount_type == "percentage":
        return subtotal * discount / 100.0
    return discount


def calculate_totals(
    items: Iterable[QuoteLineItem],
    services: Iterable[QuoteServiceLine],
    discount: float = 0.0,
    discount_type: DiscountType = "fixed",
) -> QuoteTotals:
    # Full float precision; rounding is left to presentation.
    subtotal_materials = sum((item.total for item in items), 0.0)
    subtotal_services = sum((service.price for service in services), 0.0)
    subtotal = subtotal_materials + subtotal_services

    applied = discount_value(subtotal, discount, discount_type)

    # negative totals are surfaced as-is
    total = subtotal - applied

    return QuoteTotals(
        subtotal_materials=subtotal_materials,
        subtotal_services=subtotal_services,
        subtotal=subtotal,
        discount_value=applied,
        total=total,
    )


def recalculate(quote: Quote) -> Quote:
    """Return a copy of the quote with every derived field recomputed from its lines."""
    totals = calculate_totals(quote.items, quote.services, quote.discount, quote.discount_type)
    return quote.model_copy(update=totals.model_dump())


def effective_copper_price(company: Optional[CompanySettings]) -> float:
    """Company copper rate, or the configured default when unset."""
    if company is not None and company.copper_price_per_kg > 0:
        return company.copper_price_per_kg
    return settings.DEFAULT_COPPER_PRICE_PER_KG
