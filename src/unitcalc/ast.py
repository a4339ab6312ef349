"""AST nodes for a single line."""

from typing import Annotated
from typing import Literal as TypingLiteral

from pydantic import BaseModel, Field

from .units import NO_UNIT, CompositeUnit


# Expression nodes
class NumberLiteral(BaseModel):
    type: TypingLiteral["number"] = "number"
    value: str  # raw token text, e.g. "1.000,5" or "56%"


class Variable(BaseModel):
    type: TypingLiteral["variable"] = "variable"
    value: str


class Constant(BaseModel):
    type: TypingLiteral["constant"] = "constant"
    value: str  # pi, e


class Function(BaseModel):
    """Single-argument function call (e.g. sqrt 16, sin(30 [deg]))."""

    type: TypingLiteral["function"] = "function"
    value: str
    params: list["Node"] = []


class Operator(BaseModel):
    """Binary operation produced by the precedence-folding passes."""

    type: TypingLiteral["operator"] = "operator"
    value: str  # ^, *, /, -, +
    params: list["Node"] = []


class RawOperator(BaseModel):
    """Operator token not yet folded into an Operator node."""

    type: TypingLiteral["raw_operator"] = "raw_operator"
    value: str


class Expression(BaseModel):
    """Group of nodes, optionally annotated with a unit.

    Fully parsed expressions hold exactly one operand.
    """

    type: TypingLiteral["expression"] = "expression"
    value: str = ""
    params: list["Node"] = []
    unit: CompositeUnit = NO_UNIT


# Unit grammar nodes (content of [ ... ])
class FundamentalUnitRef(BaseModel):
    type: TypingLiteral["fundamental_unit"] = "fundamental_unit"
    value: str  # catalog id


class CustomUnitRef(BaseModel):
    type: TypingLiteral["custom_unit"] = "custom_unit"
    value: str


class UnitNumberLiteral(BaseModel):
    type: TypingLiteral["unit_number"] = "unit_number"
    value: str


class UnitPower(BaseModel):
    type: TypingLiteral["unit_exponent"] = "unit_exponent"
    value: str = "^"


class UnitDivision(BaseModel):
    type: TypingLiteral["unit_division"] = "unit_division"
    value: str = "/"


UnitAtom = Annotated[
    FundamentalUnitRef | CustomUnitRef | UnitNumberLiteral | UnitPower | UnitDivision,
    Field(discriminator="type"),
]


class UnitExpression(BaseModel):
    type: TypingLiteral["unit_expression"] = "unit_expression"
    value: str = ""
    params: list[UnitAtom] = []
    unit: CompositeUnit = NO_UNIT


Node = Annotated[
    NumberLiteral
    | Variable
    | Constant
    | Function
    | Operator
    | RawOperator
    | Expression
    | UnitExpression,
    Field(discriminator="type"),
]


def render(node: BaseModel, indent: int = 0) -> str:
    """Indented debug dump of a tree."""
    label = f"{'  ' * indent}[{node.type}] {node.value}".rstrip()
    unit = getattr(node, "unit", None)
    if unit is not None and not unit.is_empty():
        label += f" [{unit}]"
    lines = [label]
    for child in getattr(node, "params", []):
        lines.append(render(child, indent + 1))
    return "\n".join(lines)


# Rebuild models for forward references
Function.model_rebuild()
Operator.model_rebuild()
Expression.model_rebuild()
