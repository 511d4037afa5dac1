"""
Unit conversion between display units (kg, ltr, pcs...) and the integer
base units stock is stored in (g, ml, pcs).
"""
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Any, List, Mapping

from inventory.services.base_service import (
    success_response, to_decimal, round_decimal, require_within_limit, MAX_STOCK,
    InvalidUnitError, NegativeValueError, InvalidQuantityError,
)


@dataclass(frozen=True)
class Unit:
    code: str
    name: str
    base_unit: str
    factor: int
    precision: int
    allow_fractional: bool


UNITS: Mapping[str, Unit] = MappingProxyType({
    "kg": Unit("kg", "Kilogram", "g", 1000, 3, True),
    "gm": Unit("gm", "Gram", "g", 1, 0, False),
    "ltr": Unit("ltr", "Liter", "ml", 1000, 3, True),
    "pcs": Unit("pcs", "Pieces", "pcs", 1, 0, False),
})

UNIT_CHOICES = [(unit.code, unit.name) for unit in UNITS.values()]


def get_unit(unit_code: str) -> Unit:
    try:
        return UNITS[unit_code]
    except (KeyError, TypeError):
        raise InvalidUnitError(unit_code)


def validate(unit_code: str) -> str:
    return get_unit(unit_code).code


def list_units() -> List[Unit]:
    return list(UNITS.values())


def same_family(unit_a: str, unit_b: str) -> bool:
    return get_unit(unit_a).base_unit == get_unit(unit_b).base_unit


def to_base_unit(display_value: Any, unit_code: str) -> int:
    """
    Convert a display quantity to integer base units.

    Rounds half away from zero: 0.0015 kg -> 2 g, 0.0014 kg -> 1 g. Units with
    allow_fractional=False round the same way rather than refusing the value,
    so 1.5 pcs -> 2 pcs; allow_fractional only tells clients which input to
    offer. Results above MAX_STOCK raise InvalidQuantityError.
    """
    unit = get_unit(unit_code)
    value = to_decimal(display_value)
    if value < 0:
        raise NegativeValueError(f"Negative value not allowed: {value}", "quantity")
    if value > MAX_STOCK:
        raise InvalidQuantityError(f"Quantity out of range: {value}", "quantity")
    return require_within_limit(int(round_decimal(value * unit.factor)))


def from_base_unit(base_value: Any, unit_code: str) -> Decimal:
    """Convert integer base units to a display Decimal at the unit's precision."""
    unit = get_unit(unit_code)
    value = to_decimal(base_value)
    if value < 0:
        raise NegativeValueError(f"Negative value not allowed: {value}", "quantity")
    return round_decimal(value / unit.factor, unit.precision)


def convert_between_units(value: Any, from_unit: str, to_unit: str) -> Decimal:
    source = get_unit(from_unit)
    target = get_unit(to_unit)
    if source.base_unit != target.base_unit:
        raise InvalidUnitError(
            to_unit,
            f"Cannot convert {source.code} ({source.base_unit}) to {target.code} ({target.base_unit})"
        )
    return from_base_unit(to_base_unit(value, from_unit), to_unit)


def format_quantity(base_value: int, unit_code: str) -> str:
    return str(from_base_unit(base_value, unit_code))


class UnitService:

    @classmethod
    def serialize(cls, unit: Unit) -> Dict[str, Any]:
        return {
            "code": unit.code,
            "name": unit.name,
            "base_unit": unit.base_unit,
            "factor": unit.factor,
            "precision": unit.precision,
            "allow_fractional": unit.allow_fractional,
        }

    @classmethod
    def list(cls) -> Dict[str, Any]:
        units = [cls.serialize(unit) for unit in list_units()]
        return success_response({
            "units": units,
            "count": len(units),
        })

    @classmethod
    def convert(cls, value: Any, from_unit: str, to_unit: str) -> Dict[str, Any]:
        result = convert_between_units(value, from_unit, to_unit)
        return success_response({
            "value": str(to_decimal(value)),
            "from_unit": from_unit,
            "to_unit": to_unit,
            "result": str(result),
            "base_value": to_base_unit(value, from_unit),
            "base_unit": get_unit(from_unit).base_unit,
        })
