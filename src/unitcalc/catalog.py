"""Built-in unit catalog and currency rate overrides.

The catalog itself never changes after construction. Currency conversion
factors can be overridden between evaluation runs; overrides are kept in a
separate map and applied when a unit is looked up.
"""

import logging
import math
from pathlib import Path

import yaml

from .units import FundamentalUnit, UnitError

logger = logging.getLogger(__name__)

CURRENCY_FAMILY = "eur"


def _unit(id, symbol, aliases, base_unit, factor=1.0, shift=0.0) -> FundamentalUnit:
    return FundamentalUnit(
        id=id,
        symbol=symbol,
        aliases=tuple(aliases),
        base_unit=base_unit,
        factor=factor,
        shift=shift,
    )


BUILTIN_UNITS: list[FundamentalUnit] = [
    # metric lengths
    _unit("meter", "m", ["m", "meter", "metre"], "meter"),
    _unit("decimeter", "dm", ["dm", "decimetre", "decimeter"], "meter", 1e-1),
    _unit("centimeter", "cm", ["cm", "centimetre", "centimeter"], "meter", 1e-2),
    _unit("millimeter", "mm", ["mm", "millimetre", "millimeter"], "meter", 1e-3),
    _unit("micrometer", "μm", ["μm", "micrometre", "micrometer"], "meter", 1e-6),
    _unit("nanometer", "nm", ["nm", "nanometre", "nanometer"], "meter", 1e-9),
    _unit("picometer", "pm", ["pm", "picometre", "picometer"], "meter", 1e-12),
    _unit("femtometer", "fm", ["fm", "femtometre", "femtometer"], "meter", 1e-15),
    _unit("decameter", "dam", ["dam", "decametre", "decameter"], "meter", 1e1),
    _unit("hectometer", "hm", ["hm", "hectometre", "hectometer"], "meter", 1e2),
    _unit("kilometer", "km", ["km", "kilometre", "kilometer"], "meter", 1e3),
    _unit("megameter", "Mm", ["Mm", "megametre", "megameter"], "meter", 1e6),
    _unit("gigameter", "Gm", ["Gm", "gigametre", "gigameter"], "meter", 1e9),
    # imperial lengths
    _unit("inch", "in", ["in", "inch", "inches"], "meter", 0.0254),
    _unit("foot", "ft", ["ft", "foot", "feet"], "meter", 0.3048),
    _unit("yard", "yd", ["yd", "yard", "yards"], "meter", 0.9144),
    _unit("mile", "mi", ["mi", "mile", "miles"], "meter", 1609.344),
    _unit("nautical_mile", "nmi", ["nmi", "nautical_mile"], "meter", 1852),
    # astronomical lengths
    _unit("lunar_distance", "ld", ["ld", "lunar_distance", "lunar_distances"], "meter", 384_402_000),
    _unit(
        "astronomical_unit",
        "au",
        ["au", "astronomical_unit", "astronomical_units"],
        "meter",
        149_597_870_700,
    ),
    _unit("light_year", "ly", ["ly", "light_year", "light_years"], "meter", 9_460_730_472_580_800),
    # metric mass
    _unit("kilogram", "kg", ["kg", "kilogram"], "kilogram"),
    _unit("hectogram", "hg", ["hg", "hectogram"], "kilogram", 1e-1),
    _unit("decagram", "dag", ["dag", "decagram"], "kilogram", 1e-2),
    _unit("gram", "g", ["g", "gram"], "kilogram", 1e-3),
    _unit("decigram", "dg", ["dg", "decigram"], "kilogram", 1e-4),
    _unit("centigram", "cg", ["cg", "centigram"], "kilogram", 1e-5),
    _unit("milligram", "mg", ["mg", "milligram"], "kilogram", 1e-6),
    _unit("microgram", "µg", ["µg", "microgram"], "kilogram", 1e-9),
    _unit("tonne", "ton", ["MG", "megagram", "tonne", "ton"], "kilogram", 1e3),
    # imperial mass
    _unit("pound", "lbs", ["lbs", "pound", "pounds"], "kilogram", 0.45359237),
    _unit("ounce", "oz", ["oz", "ounce", "ounces"], "kilogram", 0.028349523125),
    # time
    _unit("second", "s", ["s", "second", "seconds"], "second"),
    _unit("millisecond", "ms", ["ms", "millisecond", "milliseconds"], "second", 1e-3),
    _unit("minute", "min", ["min", "minute", "minutes"], "second", 60),
    _unit("hour", "hours", ["hour", "hours"], "second", 3600),
    _unit("day", "days", ["day", "days"], "second", 86400),
    _unit("month", "month", ["month", "months"], "second", 2_592_000),
    _unit("year", "year", ["year", "years"], "second", 31_556_952),
    # temperature
    _unit("celsius", "°C", ["C", "°C", "celsius"], "celsius"),
    _unit("fahrenheit", "°F", ["F", "°F", "fahrenheit"], "celsius", 5 / 9, -32),
    _unit("kelvin", "K", ["K", "kelvin"], "celsius", 1, -273.15),
    # electric current
    _unit("ampere", "A", ["A", "ampere"], "ampere"),
    # currencies, factors are euros per unit of currency
    _unit("eur", "€", ["€", "eur", "EUR"], CURRENCY_FAMILY),
    _unit("usd", "$", ["$", "usd", "USD"], CURRENCY_FAMILY, 0.84),
    _unit("gbp", "£", ["£", "gbp", "GBP"], CURRENCY_FAMILY, 1.17),
    _unit("cny", "¥", ["cny", "CNY"], CURRENCY_FAMILY, 0.13),
    _unit("cad", "CAD", ["cad", "CAD"], CURRENCY_FAMILY, 0.67),
    # angles
    _unit("radians", "rad", ["rad", "radians"], "radians"),
    _unit("degrees", "deg", ["deg", "degrees"], "radians", math.pi / 180),
    # pressure
    _unit("pascal", "Pa", ["Pa", "pascal"], "pascal"),
    _unit("bar", "bar", ["bar"], "pascal", 100_000),
    _unit("atmosphere", "atm", ["atm", "atmosphere"], "pascal", 101_325),
    _unit("millimeter_of_mercury", "mmHg", ["mmHg", "millimeter_of_mercury"], "pascal", 101_325 / 760),
    # data
    _unit("bit", "bit", ["b", "bit"], "bit"),
    _unit("byte", "B", ["B", "byte"], "bit", 8),
    _unit("kilobit", "kbit", ["kbit", "kb", "kilobit"], "bit", 1e3),
    _unit("kibibit", "Kibit", ["Kib", "Kibit", "kibibit"], "bit", 2**10),
    _unit("kilobyte", "kB", ["kB", "kilobyte"], "bit", 8e3),
    _unit("kibibyte", "KiB", ["KiB", "kibibyte"], "bit", 8 * 2**10),
    _unit("megabit", "Mbit", ["Mbit", "megabit"], "bit", 1e6),
    _unit("mebibit", "Mibit", ["Mibit", "mebibit"], "bit", 2**20),
    _unit("megabyte", "MB", ["MB", "megabyte"], "bit", 8e6),
    _unit("mebibyte", "MiB", ["MiB", "mebibyte"], "bit", 8 * 2**20),
    _unit("gigabit", "Gbit", ["Gbit", "gigabit"], "bit", 1e9),
    _unit("gibibit", "Gibit", ["Gibit", "gibibit"], "bit", 2**30),
    _unit("gigabyte", "GB", ["GB", "gigabyte"], "bit", 8e9),
    _unit("gibibyte", "GiB", ["GiB", "gibibyte"], "bit", 8 * 2**30),
    _unit("terabit", "Tbit", ["Tbit", "terabit"], "bit", 1e12),
    _unit("tebibit", "Tibit", ["Tibit", "tebibit"], "bit", 2**40),
    _unit("terabyte", "TB", ["TB", "terabyte"], "bit", 8e12),
    _unit("tebibyte", "TiB", ["TiB", "tebibyte"], "bit", 8 * 2**40),
    _unit("petabit", "Pbit", ["Pbit", "petabit"], "bit", 1e15),
    _unit("pebibit", "Pibit", ["Pibit", "pebibit"], "bit", 2**50),
    _unit("petabyte", "PB", ["PB", "petabyte"], "bit", 8e15),
    _unit("pebibyte", "PiB", ["PiB", "pebibyte"], "bit", 8 * 2**50),
]


class UnitCatalog:
    """Lookup of fundamental units by id or alias.

    The alias table is built once here; currency overrides live in
    ``_rates`` and replace the catalog factor on lookup.
    """

    def __init__(self, units: list[FundamentalUnit]):
        self._units: dict[str, FundamentalUnit] = {}
        self._aliases: dict[str, str] = {}
        self._rates: dict[str, float] = {}

        for unit in units:
            if unit.id in self._units:
                raise UnitError(f"duplicate unit id: {unit.id}")
            self._units[unit.id] = unit
            for alias in unit.aliases:
                self._aliases[alias] = unit.id

    def __contains__(self, unit_id: str) -> bool:
        return unit_id in self._units

    def __getitem__(self, unit_id: str) -> FundamentalUnit:
        unit = self._units[unit_id]
        if unit_id in self._rates:
            return unit.model_copy(update={"factor": self._rates[unit_id]})
        return unit

    def ids(self) -> list[str]:
        return list(self._units)

    def resolve_alias(self, alias: str) -> str | None:
        """Return the unit id for an alias, or None if it is not a known unit."""
        return self._aliases.get(alias)

    def lookup(self, alias: str) -> FundamentalUnit | None:
        unit_id = self.resolve_alias(alias)
        if unit_id is None:
            return None
        return self[unit_id]

    def is_currency(self, unit_id: str) -> bool:
        return unit_id in self._units and self._units[unit_id].base_unit == CURRENCY_FAMILY

    def set_currency_rates(self, rates: dict[str, float]) -> None:
        """Apply exchange rates given as units of currency per one euro.

        Callers must not update rates while a document is being evaluated.
        """
        factors: dict[str, float] = {}
        for unit_id, rate in rates.items():
            unit_id = self.resolve_alias(unit_id) or unit_id
            if not self.is_currency(unit_id):
                raise UnitError(f"not a currency: {unit_id}")
            if rate <= 0:
                raise UnitError(f"exchange rate for {unit_id} must be positive, got {rate}")
            factors[unit_id] = 1 / rate

        self._rates.update(factors)
        logger.info("Updated exchange rates for %s", ", ".join(sorted(factors)) or "no currency")

    def reset_currency_rates(self) -> None:
        self._rates.clear()


def load_currency_rates(path: str | Path) -> dict[str, float]:
    """Read a YAML mapping of currency id to units per euro."""
    path = Path(path)
    with open(path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise UnitError(f"{path}: expected a mapping of currency to rate")

    rates: dict[str, float] = {}
    for currency, rate in data.items():
        if isinstance(rate, bool) or not isinstance(rate, (int, float)):
            raise UnitError(f"{path}: rate for {currency} is not a number")
        rates[str(currency)] = float(rate)
    return rates


UNITS = UnitCatalog(BUILTIN_UNITS)
