# cli/app.py
# CLI = thin UI over core. Quotes built here are the same objects the web API stores.

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Sequence, TypeVar

from core import lines
from core.calculator import effective_copper_price
from core.catalog import (
    MATERIAL_CATEGORY_ORDER,
    SERVICE_CATEGORY_ORDER,
    group_by_category,
)
from core.config import settings
from core.document import document_filename, format_money, format_weight, quote_label, render_quote_text
from core.models import Material, Quote, Service
from core.repositories import CatalogRepository, CompanySettingsRepository, QuoteRepository
from core.store import RecordStore, StoreError, build_store

T = TypeVar("T", Material, Service)


# ---------- INPUT HELPERS ----------

def ask_float(prompt: str, *, min_value: float | None = None) -> float:
    """Keeps asking until a number is entered."""
    while True:
        raw = input(prompt).strip().replace(",", ".")
        try:
            value = float(raw)
        except ValueError:
            print("❌ Enter a number (example: 12.5)")
            continue
        if min_value is not None and value < min_value:
            print(f"❌ Value must be >= {min_value}")
            continue
        return value


def ask_float_default(prompt: str, default: float, *, min_value: float | None = None) -> float:
    """Number with a default: Enter -> default."""
    while True:
        raw = input(f"{prompt} [{default}]: ").strip()
        if raw == "":
            value = float(default)
        else:
            raw = raw.replace(",", ".")
            try:
                value = float(raw)
            except ValueError:
                print("❌ Enter a number or press Enter")
                continue

        if min_value is not None and value < min_value:
            print(f"❌ Value must be >= {min_value}")
            continue
        return value


def ask_yes_no(prompt: str) -> bool:
    while True:
        raw = input(prompt + " (y/n): ").strip().lower()
        if raw in ("y", "yes", "s", "sim"):
            return True
        if raw in ("n", "no", "nao", "não"):
            return False
        print("❌ Enter y or n")


def ask_required(prompt: str) -> str:
    while True:
        raw = input(prompt).strip()
        if raw:
            return raw
        print("❌ This field is required")


# ---------- CATALOG PICKING ----------

def print_catalog(entries: Sequence[T], order: list) -> list[T]:
    """Prints entries grouped by category and returns them in printed (numbered) order."""
    numbered: list[T] = []
    for category, group in group_by_category(entries, order).items():
        print(f"\n  {category}")
        for entry in group:
            numbered.append(entry)
            print(f"   {len(numbered):>2}. {entry.name}  {format_money(entry.price)}")
    return numbered


def pick(numbered: Sequence[T], raw: str) -> Optional[T]:
    try:
        index = int(raw)
    except ValueError:
        return None
    if 1 <= index <= len(numbered):
        return numbered[index - 1]
    return None


def choose_lines(
    quote: Quote,
    title: str,
    numbered: Sequence[T],
    add: Callable[[Quote, T], Quote],
    add_custom: Callable[[Quote], Quote],
) -> Quote:
    print(f"\n{title}: number = add (again = +1), c = custom item, Enter = done")
    while True:
        raw = input("> ").strip().lower()
        if raw == "":
            return quote
        if raw == "c":
            quote = add_custom(quote)
            continue
        entry = pick(numbered, raw)
        if entry is None:
            print("❌ Unknown number")
            continue
        quote = add(quote, entry)


def edit_material_quantities(quote: Quote) -> Quote:
    for item in list(quote.items):
        unit = item.unit or "un"
        quantity = ask_float_default(f"Quantity of '{item.name}' ({unit})", item.quantity, min_value=0)
        if quantity != item.quantity:
            quote = lines.set_item_quantity(quote, item.id, quantity)
    return quote


def edit_service_quantities(quote: Quote) -> Quote:
    for service in list(quote.services):
        quantity = ask_float_default(f"Quantity of '{service.name}'", service.quantity, min_value=0)
        if quantity != service.quantity:
            quote = lines.set_service_quantity(quote, service.id, quantity)
    return quote


def custom_material(quote: Quote) -> Quote:
    name = ask_required("Custom material name: ")
    unit = input("Unit [un]: ").strip() or "un"
    price = ask_float("Unit price: ", min_value=0)
    return lines.add_custom_material(quote, name, unit, price)


def custom_service(quote: Quote) -> Quote:
    name = ask_required("Custom service name: ")
    price = ask_float("Price: ", min_value=0)
    return lines.add_custom_service(quote, name, price)


# ---------- OUTPUT ----------

def print_breakdown(quote: Quote) -> None:
    print("\n--- Breakdown ---")
    print(f"Client:                {quote.client_name}")
    for item in quote.items:
        print(f"  {item.quantity:g} {item.unit} {item.name:<28} {format_money(item.total)}")
        if item.is_copper_tube and item.copper_total_weight is not None:
            print(f"      copper {item.copper_size}: {format_weight(item.copper_total_weight)}")
    for service in quote.services:
        print(f"  {service.quantity:g}x {service.name:<30} {format_money(service.price)}")
    print(f"Materials:             {format_money(quote.subtotal_materials)}")
    print(f"Services:              {format_money(quote.subtotal_services)}")
    print(f"Subtotal:              {format_money(quote.subtotal)}")
    if quote.discount_value:
        print(f"Discount:             -{format_money(quote.discount_value)}")
    print(f"TOTAL:                 {format_money(quote.total)}")
    print("-----------------\n")


def export_text(quote: Quote, text: str, directory: Path = Path(".")) -> Path:
    path = directory / document_filename(quote.number)
    path.write_text(text, encoding="utf-8")
    return path


# ---------- MAIN CLI FLOW ----------

def run_cli(store: RecordStore | None = None) -> Optional[Quote]:
    print("\n=== HVAC Quote Builder (CLI) ===\n")

    store = store or build_store()
    catalog = CatalogRepository(store)
    company_repo = CompanySettingsRepository(store)
    quotes = QuoteRepository(store)

    company = company_repo.get()
    copper_rate = effective_copper_price(company)

    quote = Quote(
        client_name=ask_required("Client name: "),
        client_phone=input("Client phone (optional): ").strip(),
        client_address=input("Client address (optional): ").strip(),
    )

    # --- Materials ---
    print(f"\nMaterials (copper at {format_money(copper_rate)}/kg):")
    materials = print_catalog(catalog.list_materials(), MATERIAL_CATEGORY_ORDER)
    quote = choose_lines(
        quote,
        "Materials",
        materials,
        lambda q, m: lines.add_catalog_material(q, m, copper_rate),
        custom_material,
    )
    quote = edit_material_quantities(quote)

    # --- Services ---
    print("\nServices:")
    services = print_catalog(catalog.list_services(), SERVICE_CATEGORY_ORDER)
    quote = choose_lines(quote, "Services", services, lines.add_catalog_service, custom_service)
    quote = edit_service_quantities(quote)

    # --- Discount ---
    if ask_yes_no("Apply a discount?"):
        if ask_yes_no("Percentage discount?"):
            quote = lines.set_discount(quote, ask_float("Discount %: ", min_value=0), "percentage")
        else:
            quote = lines.set_discount(quote, ask_float("Discount amount: ", min_value=0), "fixed")

    validity = ask_float_default("Validity (days)", settings.DEFAULT_VALIDITY_DAYS, min_value=0)
    payment = input(f"Payment conditions [{settings.DEFAULT_PAYMENT_CONDITIONS}]: ").strip()
    notes = input("Notes for the client (optional): ").strip()
    quote = quote.model_copy(
        update={
            "validity_days": int(validity),
            "payment_conditions": payment or settings.DEFAULT_PAYMENT_CONDITIONS,
            "client_notes": notes,
        }
    )

    print_breakdown(quote)

    problems = lines.validate_quote_for_save(quote)
    if problems:
        for p in problems:
            print(f"❌ {p}")
        return None

    if not ask_yes_no("Save quote?"):
        return quote

    try:
        quote = quotes.create(quote)
    except StoreError as e:
        print(f"❌ Could not save quote: {e}")
        return None
    print(f"✅ Saved quote {quote_label(quote.number)}\n")

    if ask_yes_no("Export quote to a text file?"):
        path = export_text(quote, render_quote_text(quote, company))
        print(f"✅ Saved: {path}\n")

    return quote


def main() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(levelname)s %(name)s: %(message)s")
    run_cli()


if __name__ == "__main__":
    main()
