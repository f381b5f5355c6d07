import pytest

from core.calculator import calculate_totals, discount_value, effective_copper_price, recalculate
from core.models import CompanySettings, Quote, QuoteLineItem, QuoteServiceLine


def _items():
    return [
        QuoteLineItem(material_id="m1", name="Cabo PP 3x1.5mm", quantity=2, unit_price=12, total=24),
        QuoteLineItem(material_id="m2", name="Dreno Corrugado", quantity=3, unit_price=8, total=24),
    ]


def _services():
    return [QuoteServiceLine(service_id="s1", name="Carga de Gás", quantity=1, unit_price=120, price=120)]


def test_fixed_discount():
    totals = calculate_totals(_items(), _services(), 10, "fixed")
    assert totals.subtotal_materials == 48
    assert totals.subtotal_services == 120
    assert totals.subtotal == 168
    assert totals.discount_value == 10
    assert totals.total == 158


def test_percentage_discount():
    totals = calculate_totals(_items(), _services(), 10, "percentage")
    assert totals.discount_value == pytest.approx(16.8)
    assert totals.total == pytest.approx(151.2)


def test_empty_quote_totals_zero():
    totals = calculate_totals([], [])
    assert totals.subtotal == 0
    assert totals.total == 0


def test_total_may_go_negative():
    totals = calculate_totals(_items(), [], 100, "fixed")
    assert totals.total == -52


def test_discount_value_modes():
    assert discount_value(200, 15, "percentage") == 30
    assert discount_value(200, 15, "fixed") == 15


def test_recalculate_ignores_cached_subtotals():
    quote = Quote(items=_items(), services=_services(), subtotal_materials=999, total=999)
    quote = recalculate(quote)
    assert quote.subtotal_materials == 48
    assert quote.total == 168


def test_effective_copper_price():
    assert effective_copper_price(CompanySettings(copper_price_per_kg=82.5)) == 82.5
    assert effective_copper_price(CompanySettings(copper_price_per_kg=0)) == 75.0
    assert effective_copper_price(None) == 75.0
