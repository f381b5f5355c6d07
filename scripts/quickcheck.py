"""Quick runtime checks for the HVAC quote engine.
Run: python scripts/quickcheck.py
Exits with code 0 on success, non-zero on failure.
"""
from core import lines
from core.models import Material, Quote, Service
from core.rules import detect_copper_tube, price_copper_tube


def approx(a, b, tol=1e-6):
    return abs(a - b) <= tol


def main():
    info = detect_copper_tube('Tubo de Cobre 1/2"')
    assert info.is_copper_tube and info.size == '1/2"' and approx(info.weight_per_meter, 0.454)
    assert not detect_copper_tube("Cabo PP 3x1.5mm").is_copper_tube
    assert not detect_copper_tube("Tubo de Cobre 7/8").is_copper_tube

    priced = price_copper_tube(3, 0.454, 75)
    assert approx(priced.total_weight, 1.362)
    assert approx(priced.total_price, 102.15)

    copper = Material(name='Tubo de Cobre 1/2"', unit="m", price=80)
    cable = Material(name="Cabo PP 3x1.5mm", unit="m", price=12)
    install = Service(name="Instalação Split 12.000 BTUs", price=400)

    quote = lines.add_catalog_material(Quote(client_name="Quickcheck"), copper, 75)
    quote = lines.set_item_quantity(quote, quote.items[0].id, 3)
    quote = lines.add_catalog_material(quote, cable, 75)
    quote = lines.add_catalog_service(quote, install)
    quote = lines.set_discount(quote, 10, "percentage")

    assert approx(quote.subtotal, 102.15 + 12 + 400)
    assert approx(quote.total, quote.subtotal * 0.9)

    print("Quickcheck OK")


if __name__ == '__main__':
    main()
