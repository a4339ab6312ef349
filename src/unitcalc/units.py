"""Unit algebra: fundamental units, composite units, conversion and merging.

A composite unit is a product of fundamental units raised to real exponents,
e.g. m^2/s is ``{meter: 2, second: -1}``. Two fundamental units convert into
each other only when they share a base-unit family.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class UnitError(Exception):
    pass


class FundamentalUnit(BaseModel):
    """A catalog entry with a linear (optionally affine) conversion to its family."""

    model_config = ConfigDict(frozen=True)

    id: str
    symbol: str  # display value, e.g. "km"
    aliases: tuple[str, ...] = ()
    base_unit: str  # family name, e.g. "meter"
    factor: float = 1.0
    shift: float = 0.0  # additive shift for affine units (temperatures)

    def __str__(self) -> str:
        return self.symbol


def custom_unit(name: str) -> FundamentalUnit:
    """An ad-hoc unit that only converts to itself."""
    return FundamentalUnit(id=name, symbol=name, aliases=(name,), base_unit=name)


def are_compatible(u: FundamentalUnit, v: FundamentalUnit) -> bool:
    return u.base_unit == v.base_unit


def convert_fundamental(
    value: float, src: FundamentalUnit, dst: FundamentalUnit, exponent: float = 1
) -> float:
    """Convert ``value`` expressed in ``src^exponent`` into ``dst^exponent``."""
    if not are_compatible(src, dst):
        raise UnitError(f"cannot convert {src} into {dst}")

    if src.id == dst.id:
        return value

    value = (value + src.shift) * src.factor**exponent
    return value / dst.factor**exponent - dst.shift


class UnitExponent(BaseModel):
    model_config = ConfigDict(frozen=True)

    unit: FundamentalUnit
    exponent: float = 1.0


class CompositeUnit(BaseModel):
    """Product of unit powers. The empty composite unit means "no unit"."""

    model_config = ConfigDict(frozen=True)

    units: tuple[UnitExponent, ...] = ()

    def is_empty(self) -> bool:
        return len(self.units) == 0

    def sorted(self) -> "CompositeUnit":
        """Canonical order: positive exponents first, then by display symbol."""
        return CompositeUnit(
            units=tuple(sorted(self.units, key=lambda ue: (ue.exponent < 0, ue.unit.symbol)))
        )

    def is_compatible(self, other: "CompositeUnit") -> bool:
        a = self.sorted().units
        b = other.sorted().units
        if len(a) != len(b):
            return False
        return all(
            x.exponent == y.exponent and are_compatible(x.unit, y.unit) for x, y in zip(a, b)
        )

    def convert(self, value: float, to: "CompositeUnit") -> float:
        """Convert ``value`` from this unit into ``to``.

        Each axis is converted in turn, so a temperature combined with other
        axes gets its shift applied per axis.
        """
        if not self.is_compatible(to):
            raise UnitError(f"units are not compatible: '{self}' and '{to}'")

        for src, dst in zip(self.sorted().units, to.sorted().units):
            value = convert_fundamental(value, src.unit, dst.unit, src.exponent)
        return value

    def power(self, exponent: float) -> "CompositeUnit":
        return CompositeUnit(
            units=tuple(
                UnitExponent(unit=ue.unit, exponent=ue.exponent * exponent)
                for ue in self.units
                if ue.exponent * exponent != 0
            )
        )

    def product(
        self, value: float, other_value: float, other: "CompositeUnit"
    ) -> tuple[float, "CompositeUnit"]:
        """Multiply ``value [self]`` by ``other_value [other]``.

        Entries of the same family are merged into this unit's scale, e.g.
        ``2 [m] * 50 [cm]`` is ``1 [m^2]``.
        """
        a = _family_order(self.units)
        b = _family_order(other.units)
        merged: list[UnitExponent] = []
        result = value * other_value
        i = j = 0

        while i < len(a) or j < len(b):
            if i == len(a):
                merged.append(b[j])
                j += 1
            elif j == len(b):
                merged.append(a[i])
                i += 1
            elif are_compatible(a[i].unit, b[j].unit):
                result = convert_fundamental(result, b[j].unit, a[i].unit, b[j].exponent)
                exponent = a[i].exponent + b[j].exponent
                if exponent != 0:
                    merged.append(UnitExponent(unit=a[i].unit, exponent=exponent))
                i += 1
                j += 1
            elif a[i].unit.base_unit < b[j].unit.base_unit:
                merged.append(a[i])
                i += 1
            else:
                merged.append(b[j])
                j += 1

        return result, CompositeUnit(units=tuple(merged)).sorted()

    def divide(
        self, value: float, other_value: float, other: "CompositeUnit"
    ) -> tuple[float, "CompositeUnit"]:
        if other_value == 0:
            raise ZeroDivisionError("division by zero")
        return self.product(value, 1 / other_value, other.power(-1))

    def __str__(self) -> str:
        parts: list[str] = []
        divided = False

        for ue in self.sorted().units:
            if ue.exponent < 0 and not divided:
                if not parts:
                    parts.append("1")
                parts.append("/")
                divided = True

            exponent = abs(ue.exponent)
            if exponent != 1:
                parts.append(f"{ue.unit}^{_format_exponent(exponent)}")
            else:
                parts.append(str(ue.unit))

        return " ".join(parts)


def _family_order(units: tuple[UnitExponent, ...]) -> list[UnitExponent]:
    return sorted(units, key=lambda ue: ue.unit.base_unit)


def _format_exponent(exponent: float) -> str:
    """Plain decimal notation, e.g. 1000000 rather than 1e+06."""
    text = format(Decimal(repr(exponent)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


NO_UNIT = CompositeUnit()
