"""unitcalc: line-oriented calculations with units.

Pipeline: tokenize each line -> resolve declarations and dependencies ->
schedule -> parse -> evaluate in dependency order.

Example:
    from unitcalc import execute, result_text

    graph = execute("distance: 120 [km]\\ntime: 1,5 [hours]\\ndistance / time")
    print(result_text(graph))
"""

__version__ = "0.1.0"

from .ast import (
    Constant,
    CustomUnitRef,
    Expression,
    Function,
    FundamentalUnitRef,
    Node,
    NumberLiteral,
    Operator,
    RawOperator,
    UnitDivision,
    UnitExpression,
    UnitNumberLiteral,
    UnitPower,
    Variable,
)
from .catalog import UNITS, UnitCatalog, load_currency_rates
from .compiler import CompileError, Compiler, CyclicDependencyError, ExecutionGraph, Line
from .config import ConfigError, Settings, apply_settings, load_settings
from .executor import (
    DependencyError,
    ExecutionError,
    Executor,
    evaluate,
    execution_result,
    format_line,
    parse_number,
    run,
)
from .highlight import classify, colorize_html
from .lexer import Token, TokenizeError, TokenKind, tokenize
from .parser import ParseError, Parser, parse_line
from .units import CompositeUnit, FundamentalUnit, UnitError, UnitExponent


def compile(source: str) -> ExecutionGraph:  # noqa: A001
    """Compile a document without evaluating it."""
    return Compiler(source).compile()


def execute(source: str) -> ExecutionGraph:
    """Compile and evaluate a document."""
    return run(source)


def result_text(graph: ExecutionGraph, settings: Settings | None = None) -> str:
    """Formatted result of every line."""
    return execution_result(graph, settings)


def colorize(source: str) -> str:
    """Highlight a document as HTML without evaluating it."""
    return colorize_html(Compiler(source).tokenize(allow_unknown=True))


__all__ = [
    # Tokenize
    "tokenize",
    "Token",
    "TokenKind",
    "TokenizeError",
    # Parse
    "parse_line",
    "Parser",
    "ParseError",
    # AST
    "Node",
    "NumberLiteral",
    "Variable",
    "Constant",
    "Function",
    "Operator",
    "RawOperator",
    "Expression",
    "UnitExpression",
    "FundamentalUnitRef",
    "CustomUnitRef",
    "UnitNumberLiteral",
    "UnitPower",
    "UnitDivision",
    # Units
    "FundamentalUnit",
    "UnitExponent",
    "CompositeUnit",
    "UnitError",
    "UnitCatalog",
    "UNITS",
    "load_currency_rates",
    # Compile
    "compile",
    "Compiler",
    "CompileError",
    "CyclicDependencyError",
    "ExecutionGraph",
    "Line",
    # Execute
    "execute",
    "run",
    "evaluate",
    "Executor",
    "ExecutionError",
    "DependencyError",
    "parse_number",
    # Output
    "result_text",
    "execution_result",
    "format_line",
    "colorize",
    "colorize_html",
    "classify",
    # Config
    "Settings",
    "load_settings",
    "apply_settings",
    "ConfigError",
]
