"""Compiler: turns a document into an execution graph.

Steps, each over every line:
    tokenize -> declarations -> dependencies -> cycle check -> order -> parse

Line-level failures (tokenizer and parser errors) are stored on the line.
A cyclic dependency between lines rejects the whole document.
"""

import logging

from pydantic import BaseModel, ConfigDict

from . import ast
from .lexer import Token, TokenizeError, TokenKind, semantic_tokens, tokenize
from .parser import ParseError, parse_line
from .units import NO_UNIT, CompositeUnit

logger = logging.getLogger(__name__)


class CompileError(Exception):
    pass


class CyclicDependencyError(CompileError):
    pass


class Line(BaseModel):
    """Compiled data for one line of the document."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str | None = None  # declared variable name, if any
    tokens: list[Token] = []  # semantic tokens, declaration prefix removed
    raw_tokens: list[Token] = []  # including whitespace and comments
    dependencies: list[int] = []
    tree: ast.Expression | None = None
    value: float = 0.0
    unit: CompositeUnit = NO_UNIT
    error: Exception | None = None

    def is_empty(self) -> bool:
        return len(self.tokens) == 0

    def has_error(self) -> bool:
        return self.error is not None


class ExecutionGraph(BaseModel):
    """A compiled document: lines, variable table and evaluation order."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    source: str
    lines: list[Line] = []
    variables: dict[str, int] = {}  # variable name -> defining line
    order: list[int] = []  # line indices, dependencies first


def split_lines(source: str) -> list[str]:
    return [line.removesuffix("\r") for line in source.split("\n")]


def declare_variables(lines: list[Line]) -> dict[str, int]:
    """Register ``name: expr`` lines and strip the declaration prefix.

    A later declaration of the same name replaces the earlier one.
    """
    variables: dict[str, int] = {}
    for i, line in enumerate(lines):
        tokens = line.tokens
        if (
            len(tokens) > 1
            and tokens[0].kind == TokenKind.LITERAL
            and tokens[1].kind == TokenKind.DEFINITION
        ):
            line.name = tokens[0].text
            line.tokens = tokens[2:]
            variables[line.name] = i
    return variables


def link_dependencies(lines: list[Line], variables: dict[str, int]) -> None:
    for line in lines:
        line.dependencies = [
            variables[tok.text]
            for tok in line.tokens
            if tok.kind == TokenKind.LITERAL and tok.text in variables
        ]


def has_cycle(lines: list[Line]) -> bool:
    """Depth-first search with discovery and finish times.

    An edge to a node that was discovered but not finished closes a cycle.
    """
    discovered = [0] * len(lines)
    finished = [0] * len(lines)
    clock = 1

    for start in range(len(lines)):
        if discovered[start]:
            continue
        discovered[start] = clock
        clock += 1
        stack = [(start, iter(lines[start].dependencies))]

        while stack:
            node, deps = stack[-1]
            for dep in deps:
                if discovered[dep] == 0:
                    discovered[dep] = clock
                    clock += 1
                    stack.append((dep, iter(lines[dep].dependencies)))
                    break
                if finished[dep] == 0:
                    return True
            else:
                finished[node] = clock
                clock += 1
                stack.pop()

    return False


def execution_order(lines: list[Line]) -> list[int]:
    """Post-order depth-first traversal: every line comes after its dependencies."""
    visited = [False] * len(lines)
    order: list[int] = []

    for start in range(len(lines)):
        if visited[start]:
            continue
        visited[start] = True
        stack = [(start, iter(lines[start].dependencies))]

        while stack:
            node, deps = stack[-1]
            for dep in deps:
                if not visited[dep]:
                    visited[dep] = True
                    stack.append((dep, iter(lines[dep].dependencies)))
                    break
            else:
                order.append(node)
                stack.pop()

    return order


class Compiler:
    """Compiles document source into an ExecutionGraph."""

    def __init__(self, source: str):
        self.source = source

    def tokenize(self, allow_unknown: bool = False) -> ExecutionGraph:
        graph = ExecutionGraph(source=self.source)

        for text in split_lines(self.source):
            try:
                raw = tokenize(text, allow_unknown)
            except TokenizeError as e:
                graph.lines.append(Line(error=e))
                continue
            graph.lines.append(Line(tokens=semantic_tokens(raw), raw_tokens=raw))

        return graph

    def compile(self) -> ExecutionGraph:
        graph = self.tokenize()
        graph.variables = declare_variables(graph.lines)
        link_dependencies(graph.lines, graph.variables)

        if has_cycle(graph.lines):
            logger.warning("Rejecting document: cyclic variable definitions")
            raise CyclicDependencyError("cyclical definitions detected")

        graph.order = execution_order(graph.lines)
        logger.debug("Execution order: %s", graph.order)

        for i, line in enumerate(graph.lines):
            if line.has_error():
                continue
            try:
                line.tree = parse_line(line.tokens, graph.variables)
            except ParseError as e:
                logger.debug("Line %d: %s", i + 1, e)
                line.error = e

        return graph
