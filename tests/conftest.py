"""Shared fixtures."""

import pytest

from unitcalc.catalog import UNITS
from unitcalc.lexer import semantic_tokens, tokenize
from unitcalc.units import CompositeUnit, UnitExponent


@pytest.fixture(autouse=True)
def reset_rates():
    """Exchange rate overrides must not leak between tests."""
    yield
    UNITS.reset_currency_rates()


def composite(*pairs: tuple[str, float]) -> CompositeUnit:
    """Build a composite unit from (unit id, exponent) pairs."""
    return CompositeUnit(
        units=tuple(UnitExponent(unit=UNITS[unit_id], exponent=exp) for unit_id, exp in pairs)
    )


def tokens_of(text: str):
    return semantic_tokens(tokenize(text))
