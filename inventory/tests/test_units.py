from decimal import Decimal

import pytest

from inventory.services import InvalidUnitError, NegativeValueError, InvalidQuantityError
from inventory.services import unit_service
from inventory.services.base_service import MAX_STOCK
from inventory.services.unit_service import (
    to_base_unit, from_base_unit, convert_between_units, get_unit, same_family, UNITS,
)


class TestToBaseUnit:

    @pytest.mark.parametrize("value, unit, expected", [
        (1.5, "kg", 1500),
        (0.001, "kg", 1),
        (2.75, "kg", 2750),
        ("0.25", "ltr", 250),
        (Decimal("3"), "pcs", 3),
        (500, "gm", 500),
        (0, "kg", 0),
    ])
    def test_converts_display_value(self, value, unit, expected):
        assert to_base_unit(value, unit) == expected

    def test_rounds_half_away_from_zero(self):
        assert to_base_unit("0.0015", "kg") == 2
        assert to_base_unit("0.0014", "kg") == 1
        assert to_base_unit("2.5", "gm") == 3

    def test_float_input_is_not_subject_to_binary_drift(self):
        # 1.005 * 1000 in binary floating point is 1004.999...
        assert to_base_unit(1.005, "kg") == 1005

    def test_negative_value_rejected(self):
        with pytest.raises(NegativeValueError):
            to_base_unit(-1, "kg")

    def test_unknown_unit_rejected(self):
        with pytest.raises(InvalidUnitError):
            to_base_unit(1, "xyz")

    @pytest.mark.parametrize("value", ["abc", None, True, "NaN", "Infinity"])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(InvalidQuantityError):
            to_base_unit(value, "kg")

    def test_whole_units_round_fractional_input(self):
        assert to_base_unit("1.5", "pcs") == 2
        assert to_base_unit("1.4", "pcs") == 1

    @pytest.mark.parametrize("value", ["1e30", "1e999999999", "2147484"])
    def test_value_beyond_stock_limit_rejected(self, value):
        with pytest.raises(InvalidQuantityError):
            to_base_unit(value, "kg")

    def test_largest_storable_value(self):
        assert to_base_unit(MAX_STOCK, "pcs") == MAX_STOCK
        with pytest.raises(InvalidQuantityError):
            to_base_unit(MAX_STOCK + 1, "pcs")


class TestFromBaseUnit:

    def test_converts_to_display_value(self):
        assert from_base_unit(1500, "kg") == Decimal("1.5")
        assert from_base_unit(250, "ltr") == Decimal("0.25")
        assert from_base_unit(7, "pcs") == Decimal("7")

    def test_quantised_to_unit_precision(self):
        assert str(from_base_unit(1500, "kg")) == "1.500"
        assert str(from_base_unit(12, "pcs")) == "12"

    def test_negative_value_rejected(self):
        with pytest.raises(NegativeValueError):
            from_base_unit(-5, "kg")

    def test_unknown_unit_rejected(self):
        with pytest.raises(InvalidUnitError):
            from_base_unit(5, "lb")

    def test_value_too_large_for_decimal_context(self):
        with pytest.raises(InvalidQuantityError):
            from_base_unit(10 ** 40, "kg")


class TestRoundTrip:

    @pytest.mark.parametrize("unit", sorted(UNITS))
    @pytest.mark.parametrize("value", ["0", "1", "12", "250"])
    def test_whole_values(self, unit, value):
        assert from_base_unit(to_base_unit(value, unit), unit) == Decimal(value)

    @pytest.mark.parametrize("unit", ["kg", "ltr"])
    @pytest.mark.parametrize("value", ["0.001", "1.5", "2.75", "999.999"])
    def test_values_at_three_decimals(self, unit, value):
        assert from_base_unit(to_base_unit(value, unit), unit) == Decimal(value)


class TestConvertBetweenUnits:

    def test_same_family(self):
        assert convert_between_units("1.5", "kg", "gm") == Decimal("1500")
        assert convert_between_units(250, "gm", "kg") == Decimal("0.25")

    def test_cross_family_rejected(self):
        with pytest.raises(InvalidUnitError):
            convert_between_units(1, "ltr", "kg")
        with pytest.raises(InvalidUnitError):
            convert_between_units(1, "pcs", "gm")

    def test_same_family_helper(self):
        assert same_family("kg", "gm")
        assert not same_family("kg", "ltr")


class TestUnitTable:

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            UNITS["oz"] = UNITS["kg"]

    def test_unit_details(self):
        kg = get_unit("kg")
        assert (kg.name, kg.base_unit, kg.factor, kg.precision, kg.allow_fractional) == (
            "Kilogram", "g", 1000, 3, True
        )
        assert get_unit("pcs").allow_fractional is False

    def test_unit_service_lists_all_units(self):
        result = unit_service.UnitService.list()
        assert result["success"] is True
        assert {u["code"] for u in result["units"]} == {"kg", "gm", "ltr", "pcs"}
