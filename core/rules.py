# core/rules.py
# Copper tube rules: bitola detection by name and weight-based pricing.

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

from .models import CopperPrice, CopperTubeInfo

# kg per meter for each nominal size. Detection takes the first match, so the
# quoted spellings come before the bare token of the same size and
# 'Tubo de Cobre 1/2"' reports 1/2". With the bare token listed first the size
# would read 1/2 instead; the weight is the same either way.
COPPER_TUBE_WEIGHTS: dict[str, float] = {
    '1/4"': 0.198,
    "1/4'": 0.198,
    "1/4": 0.198,
    '3/8"': 0.308,
    "3/8'": 0.308,
    "3/8": 0.308,
    '1/2"': 0.454,
    "1/2'": 0.454,
    "1/2": 0.454,
    '5/8"': 0.620,
    "5/8'": 0.620,
    "5/8": 0.620,
    '3/4"': 0.830,
    "3/4'": 0.830,
    "3/4": 0.830,
}

# sizes offered when picking a bitola by hand
COPPER_TUBE_SIZES: list[dict[str, object]] = [
    {"value": '1/4"', "label": '1/4"', "weight_per_meter": 0.198},
    {"value": '3/8"', "label": '3/8"', "weight_per_meter": 0.308},
    {"value": '1/2"', "label": '1/2"', "weight_per_meter": 0.454},
    {"value": '5/8"', "label": '5/8"', "weight_per_meter": 0.620},
    {"value": '3/4"', "label": '3/4"', "weight_per_meter": 0.830},
]

_KEYWORDS = ("tubo", "cobre")


def round_half_up(value: float, places: int) -> float:
    """Round half away from zero, working on the shortest decimal repr of the float."""
    if not math.isfinite(value):
        return float(value)
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def detect_copper_tube(name: str) -> CopperTubeInfo:
    """Classify a material as copper tube by its name.

    Both keywords must appear (case-insensitive). The bitola is the first entry of
    COPPER_TUBE_WEIGHTS found in the original-case name. A keyword match without a
    known bitola is not copper: unknown sizes never get automatic pricing.
    """
    lower_name = (name or "").lower()
    if not all(keyword in lower_name for keyword in _KEYWORDS):
        return CopperTubeInfo()

    for size, weight in COPPER_TUBE_WEIGHTS.items():
        if size in name:
            return CopperTubeInfo(is_copper_tube=True, size=size, weight_per_meter=weight)

    return CopperTubeInfo()


def price_copper_tube(meters: float, weight_per_meter: float, price_per_kg: float) -> CopperPrice:
    """Weight first (3 decimals), then price from the rounded weight (2 decimals)."""
    total_weight = round_half_up(meters * weight_per_meter, 3)
    total_price = round_half_up(total_weight * price_per_kg, 2)
    return CopperPrice(total_weight=total_weight, total_price=total_price)
