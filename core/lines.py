"""
Quote line engine.

Every operation takes a Quote and returns a new one; nothing here touches the
store. After each change the lines with quantity <= 0 are dropped and all
quote totals are recomputed from the remaining lines.
"""

from __future__ import annotations

from .calculator import recalculate
from .catalog import custom_id, resolve_material_line
from .models import (
    DiscountType,
    Material,
    Quote,
    QuoteLineItem,
    QuoteServiceLine,
    QuoteStatus,
    Service,
)
from .rules import detect_copper_tube, price_copper_tube


class LineNotFound(KeyError):
    def __init__(self, line_id: str):
        super().__init__(line_id)
        self.line_id = line_id

    def __str__(self) -> str:
        return f"Quote line {self.line_id} not found"


def _finish(quote: Quote, items: list[QuoteLineItem], services: list[QuoteServiceLine]) -> Quote:
    items = [i for i in items if i.quantity > 0]
    services = [s for s in services if s.quantity > 0]
    return recalculate(quote.model_copy(update={"items": items, "services": services}))


def reprice_item(item: QuoteLineItem, quantity: float) -> QuoteLineItem:
    """Full recomputation of a material line at the given quantity."""
    if item.is_copper_tube and item.copper_weight_per_meter and item.copper_price_per_kg is not None:
        priced = price_copper_tube(quantity, item.copper_weight_per_meter, item.copper_price_per_kg)
        return item.model_copy(
            update={
                "quantity": quantity,
                "total": priced.total_price,
                "copper_total_weight": priced.total_weight,
            }
        )
    return item.model_copy(update={"quantity": quantity, "total": quantity * item.unit_price})


def reprice_service(service: QuoteServiceLine, quantity: float) -> QuoteServiceLine:
    return service.model_copy(update={"quantity": quantity, "price": quantity * service.unit_price})


def normalize_lines(quote: Quote) -> Quote:
    """Recompute every line from its own quantity, then the quote totals."""
    items = [reprice_item(i, i.quantity) for i in quote.items]
    services = [reprice_service(s, s.quantity) for s in quote.services]
    return _finish(quote, items, services)


# ---------- MATERIALS ----------

def _merge_material(item: QuoteLineItem, material: Material, copper_price_per_kg: float) -> QuoteLineItem:
    """One more unit of a catalog material, copper priced at the current company rate."""
    quantity = item.quantity + 1
    tube = detect_copper_tube(material.name)
    if not tube.is_copper_tube or not tube.weight_per_meter:
        return reprice_item(item, quantity)
    priced = price_copper_tube(quantity, tube.weight_per_meter, copper_price_per_kg)
    return item.model_copy(
        update={
            "quantity": quantity,
            "total": priced.total_price,
            "is_copper_tube": True,
            "copper_size": tube.size,
            "copper_weight_per_meter": tube.weight_per_meter,
            "copper_total_weight": priced.total_weight,
            "copper_price_per_kg": copper_price_per_kg,
        }
    )


def add_catalog_material(quote: Quote, material: Material, copper_price_per_kg: float) -> Quote:
    """Merge into the line already holding this material, or open a new line at quantity 1."""
    existing = next((i for i in quote.items if i.material_id == material.id), None)
    if existing is None:
        line = resolve_material_line(material, copper_price_per_kg)
        return _finish(quote, [*quote.items, line], quote.services)

    items = [
        _merge_material(i, material, copper_price_per_kg) if i.id == existing.id else i
        for i in quote.items
    ]
    return _finish(quote, items, quote.services)


def add_custom_material(quote: Quote, name: str, unit: str, price: float) -> Quote:
    # custom lines never go through copper detection
    line = QuoteLineItem(
        material_id=custom_id(),
        name=name,
        unit=unit,
        quantity=1,
        unit_price=price,
        total=price,
    )
    return _finish(quote, [*quote.items, line], quote.services)


def update_item_quantity(quote: Quote, line_id: str, delta: float) -> Quote:
    """Step a line's quantity. A step that would reach zero leaves the line as it is."""
    if not any(i.id == line_id for i in quote.items):
        raise LineNotFound(line_id)

    items = []
    for item in quote.items:
        if item.id == line_id:
            new_quantity = max(0.0, item.quantity + delta)
            if new_quantity > 0:
                item = reprice_item(item, new_quantity)
        items.append(item)
    return _finish(quote, items, quote.services)


def set_item_quantity(quote: Quote, line_id: str, quantity: float) -> Quote:
    """Direct quantity edit; zero drops the line on recomputation."""
    if quantity < 0:
        raise ValueError("Quantity must be >= 0")
    if not any(i.id == line_id for i in quote.items):
        raise LineNotFound(line_id)

    items = [reprice_item(i, quantity) if i.id == line_id else i for i in quote.items]
    return _finish(quote, items, quote.services)


def remove_item(quote: Quote, line_id: str) -> Quote:
    return _finish(quote, [i for i in quote.items if i.id != line_id], quote.services)


# ---------- SERVICES ----------

def add_catalog_service(quote: Quote, service: Service) -> Quote:
    existing = next((s for s in quote.services if s.service_id == service.id), None)
    if existing is None:
        line = QuoteServiceLine(
            service_id=service.id,
            name=service.name,
            unit_price=service.price,
            quantity=1,
            price=service.price,
        )
        return _finish(quote, quote.items, [*quote.services, line])

    services = [
        reprice_service(s, s.quantity + 1) if s.id == existing.id else s
        for s in quote.services
    ]
    return _finish(quote, quote.items, services)


def add_custom_service(quote: Quote, name: str, price: float) -> Quote:
    line = QuoteServiceLine(
        service_id=custom_id(),
        name=name,
        unit_price=price,
        quantity=1,
        price=price,
    )
    return _finish(quote, quote.items, [*quote.services, line])


def update_service_quantity(quote: Quote, line_id: str, delta: float) -> Quote:
    if not any(s.id == line_id for s in quote.services):
        raise LineNotFound(line_id)

    services = []
    for service in quote.services:
        if service.id == line_id:
            new_quantity = max(0.0, service.quantity + delta)
            if new_quantity > 0:
                service = reprice_service(service, new_quantity)
        services.append(service)
    return _finish(quote, quote.items, services)


def set_service_quantity(quote: Quote, line_id: str, quantity: float) -> Quote:
    if quantity < 0:
        raise ValueError("Quantity must be >= 0")
    if not any(s.id == line_id for s in quote.services):
        raise LineNotFound(line_id)

    services = [reprice_service(s, quantity) if s.id == line_id else s for s in quote.services]
    return _finish(quote, quote.items, services)


def remove_service(quote: Quote, line_id: str) -> Quote:
    return _finish(quote, quote.items, [s for s in quote.services if s.id != line_id])


# ---------- QUOTE-LEVEL ----------

def set_discount(quote: Quote, discount: float, discount_type: DiscountType) -> Quote:
    return recalculate(quote.model_copy(update={"discount": discount, "discount_type": discount_type}))


def set_status(quote: Quote, status: QuoteStatus) -> Quote:
    # no transition rules: any status may follow any other
    return quote.model_copy(update={"status": status})


def validate_quote_for_save(quote: Quote) -> list[str]:
    """Caller-side gate before persisting; the engine itself accepts any quote."""
    problems = []
    if not quote.client_name.strip():
        problems.append("Client name is required.")
    if not quote.items and not quote.services:
        problems.append("Add at least one material or service.")
    return problems
