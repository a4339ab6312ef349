"""Executor: evaluates compiled lines in execution order."""

import logging
import math
from collections.abc import Callable

from . import ast
from .catalog import UNITS
from .compiler import Compiler, ExecutionGraph, Line
from .config import Settings
from .units import NO_UNIT, CompositeUnit, UnitError, convert_fundamental

logger = logging.getLogger(__name__)


class ExecutionError(Exception):
    pass


class DependencyError(ExecutionError):
    """A line refers to a variable whose own line failed."""


def parse_number(text: str) -> float:
    """Parse a number literal: "." groups thousands, "," is the decimal mark."""
    raw = text.replace(".", "").replace(",", ".")
    percentage = raw.endswith("%")
    if percentage:
        raw = raw[:-1]

    try:
        value = float(raw)
    except ValueError:
        raise ExecutionError(f"invalid number literal: {text}") from None

    return value / 100 if percentage else value


CONSTANTS = {
    "pi": math.pi,
    "e": math.e,
}


def _round_half_away(x: float) -> float:
    magnitude = abs(x)
    return math.copysign(math.floor(magnitude) + (magnitude % 1 >= 0.5), x)


# Functions that keep the unit of their argument
UNIT_PRESERVING: dict[str, Callable[[float], float]] = {
    "log": math.log10,
    "ln": math.log,
    "abs": math.fabs,
    "round": _round_half_away,
    "ceil": math.ceil,
    "floor": math.floor,
}

TRIGONOMETRIC: dict[str, Callable[[float], float]] = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
}


def _trigonometric(func: str, value: float, unit: CompositeUnit) -> tuple[float, CompositeUnit]:
    fn = TRIGONOMETRIC[func]
    label = str(unit)
    if label == "rad":
        return fn(value), NO_UNIT
    if label == "deg":
        radians = convert_fundamental(value, UNITS["degrees"], UNITS["radians"])
        return fn(radians), NO_UNIT
    # any other unit is passed through unchanged
    return fn(value), unit


def _call(func: str, value: float, unit: CompositeUnit) -> tuple[float, CompositeUnit]:
    if func == "sqrt":
        return math.sqrt(value), unit.power(0.5)
    if func in TRIGONOMETRIC:
        return _trigonometric(func, value, unit)
    if func in UNIT_PRESERVING:
        return float(UNIT_PRESERVING[func](value)), unit
    raise AssertionError(f"unknown function: {func}")


def _operate(
    op: str, left: float, left_unit: CompositeUnit, right: float, right_unit: CompositeUnit
) -> tuple[float, CompositeUnit]:
    match op:
        case "+":
            return left + right_unit.convert(right, left_unit), left_unit
        case "-":
            return left - right_unit.convert(right, left_unit), NO_UNIT
        case "*":
            return left_unit.product(left, right, right_unit)
        case "/":
            return left_unit.divide(left, right, right_unit)
        case "^":
            if not right_unit.is_empty():
                raise ExecutionError("exponent must be a number with no unit")
            return math.pow(left, right), left_unit.power(right)
    raise AssertionError(f"unknown operator: {op}")


def evaluate(node: ast.Node, graph: ExecutionGraph) -> tuple[float, CompositeUnit]:
    """Evaluate a node to a value and its unit."""
    match node:
        case ast.NumberLiteral(value=text):
            return parse_number(text), NO_UNIT

        case ast.Variable(value=name):
            line = graph.lines[graph.variables[name]]
            if line.has_error():
                raise DependencyError(f"'{name}' refers to a line with an error")
            if line.is_empty():
                raise ExecutionError(f"'{name}' is defined by an empty expression")
            return line.value, line.unit

        case ast.Constant(value=name):
            if name not in CONSTANTS:
                raise AssertionError(f"unknown constant: {name}")
            return CONSTANTS[name], NO_UNIT

        case ast.Expression(params=[operand], unit=unit):
            value, operand_unit = evaluate(operand, graph)
            if unit.is_empty():
                return value, operand_unit
            if operand_unit.is_empty():
                return value, unit
            return operand_unit.convert(value, unit), unit

        case ast.Operator(value=op, params=[left, right]):
            left_value, left_unit = evaluate(left, graph)
            right_value, right_unit = evaluate(right, graph)
            return _operate(op, left_value, left_unit, right_value, right_unit)

        case ast.Function(value=func, params=[argument]):
            value, unit = evaluate(argument, graph)
            return _call(func, value, unit)

    raise AssertionError(f"cannot evaluate node: {node.type}")


class Executor:
    """Evaluates every line of a compiled graph in execution order."""

    def __init__(self, graph: ExecutionGraph):
        self.graph = graph

    def execute(self) -> ExecutionGraph:
        for index in self.graph.order:
            line = self.graph.lines[index]
            if line.is_empty() or line.has_error():
                continue

            try:
                line.value, line.unit = evaluate(line.tree, self.graph)
            except UnitError as e:
                line.error = ExecutionError(str(e))
            except ZeroDivisionError:
                line.error = ExecutionError("division by zero")
            except (ValueError, OverflowError) as e:
                line.error = ExecutionError(f"math error: {e}")
            except RecursionError:
                line.error = ExecutionError("expression is nested too deeply")
            except ExecutionError as e:
                line.error = e

            if line.error is not None:
                logger.debug("Line %d: %s", index + 1, line.error)

        return self.graph


def format_value(value: float, precision: int = 13) -> str:
    text = f"{round(value, precision):.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text


def format_line(line: Line, settings: Settings | None = None) -> str:
    settings = settings or Settings()
    if line.has_error():
        return settings.error_marker
    if line.is_empty():
        return settings.empty_marker

    text = format_value(line.value, settings.precision)
    if not line.unit.is_empty():
        text += f" {line.unit}"
    return text


def execution_result(graph: ExecutionGraph, settings: Settings | None = None) -> str:
    """One formatted result per line of the document."""
    return "\n".join(format_line(line, settings) for line in graph.lines)


def run(source: str) -> ExecutionGraph:
    """Compile and evaluate a document."""
    graph = Compiler(source).compile()
    return Executor(graph).execute()
