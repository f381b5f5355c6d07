"""
Copper tube detection and weight-based pricing.
"""

import pytest

from core.rules import COPPER_TUBE_WEIGHTS, detect_copper_tube, price_copper_tube, round_half_up


class TestDetectCopperTube:
    def test_detects_half_inch_with_double_quote(self):
        info = detect_copper_tube('Tubo de Cobre 1/2"')
        assert info.is_copper_tube is True
        assert info.size == '1/2"'
        assert info.weight_per_meter == 0.454

    def test_plain_material_is_not_copper(self):
        info = detect_copper_tube("Cabo PP 3x1.5mm")
        assert info.is_copper_tube is False
        assert info.size is None
        assert info.weight_per_meter is None

    def test_unknown_bitola_is_rejected(self):
        info = detect_copper_tube("Tubo de Cobre 7/8")
        assert info.is_copper_tube is False
        assert info.size is None

    def test_keywords_are_case_insensitive(self):
        info = detect_copper_tube("TUBO DE COBRE 3/8")
        assert info.is_copper_tube is True
        assert info.size == "3/8"
        assert info.weight_per_meter == 0.308

    def test_single_quote_spelling(self):
        info = detect_copper_tube("tubo cobre flexível 5/8'")
        assert info.size == "5/8'"
        assert info.weight_per_meter == 0.620

    def test_needs_both_keywords(self):
        assert detect_copper_tube("Tubo de PVC 1/2").is_copper_tube is False
        assert detect_copper_tube("Fio de cobre 1/2").is_copper_tube is False

    def test_empty_name(self):
        assert detect_copper_tube("").is_copper_tube is False

    def test_first_size_in_table_order_wins(self):
        info = detect_copper_tube("Tubo de Cobre 3/4 com redução 1/4")
        assert info.size == "1/4"
        assert info.weight_per_meter == 0.198

    @pytest.mark.parametrize("size", ["1/4", "3/8", "1/2", "5/8", "3/4"])
    def test_every_size_has_three_spellings(self, size):
        spellings = [size, f'{size}"', f"{size}'"]
        assert all(s in COPPER_TUBE_WEIGHTS for s in spellings)
        assert len({COPPER_TUBE_WEIGHTS[s] for s in spellings}) == 1


class TestPriceCopperTube:
    def test_three_meters_half_inch(self):
        priced = price_copper_tube(3, 0.454, 75)
        assert priced.total_weight == 1.362
        assert priced.total_price == 102.15

    def test_one_meter(self):
        priced = price_copper_tube(1, 0.198, 75)
        assert priced.total_weight == 0.198
        assert priced.total_price == 14.85

    def test_zero_meters(self):
        priced = price_copper_tube(0, 0.454, 75)
        assert priced.total_weight == 0
        assert priced.total_price == 0

    def test_price_comes_from_rounded_weight(self):
        # 0.0025 m * 0.198 = 0.000495 kg -> 0.000 kg -> no price
        priced = price_copper_tube(0.0025, 0.198, 75)
        assert priced.total_weight == 0.0
        assert priced.total_price == 0.0

    def test_fractional_meters(self):
        priced = price_copper_tube(2.5, 0.620, 80)
        assert priced.total_weight == 1.55
        assert priced.total_price == 124.0


class TestRoundHalfUp:
    def test_ties_go_away_from_zero(self):
        assert round_half_up(2.675, 2) == 2.68
        assert round_half_up(0.0005, 3) == 0.001
        assert round_half_up(-1.005, 2) == -1.01

    def test_non_finite_passes_through(self):
        assert round_half_up(float("inf"), 2) == float("inf")
