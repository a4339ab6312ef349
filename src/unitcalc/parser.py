"""Parser for a single line.

Parsing runs in two phases:

1. A recursive walk builds a flat tree: parenthesised groups become nested
   ``Expression`` nodes, unit brackets are parsed by the unit grammar and set
   the unit of the enclosing group, and operators are kept as
   ``RawOperator`` leaves.
2. Five folding passes, in the order ``^ * / - +``, combine each
   ``RawOperator`` with its neighbouring operands into binary ``Operator``
   nodes. Every pass only sees operands the earlier passes already folded.

Grammar of unit brackets:
    unit_expr   = "[" [NUMBER] atom* ["/" atom*] "]"
    atom        = NAME ["^" NUMBER]
"""

from . import ast
from .catalog import UNITS, UnitCatalog
from .lexer import Token, TokenKind
from .units import CompositeUnit, UnitError, UnitExponent, custom_unit

FUNCTIONS = frozenset({"sqrt", "log", "ln", "sin", "cos", "tan", "abs", "round", "ceil", "floor"})
CONSTANTS = frozenset({"pi", "e"})

# Lower precedence last
FOLD_ORDER = ("^", "*", "/", "-", "+")


class ParseError(Exception):
    pass


class Parser:
    """Recursive walker over the semantic tokens of one line."""

    def __init__(self, tokens: list[Token], variables: dict[str, int], units: UnitCatalog = UNITS):
        self.tokens = tokens
        self.variables = variables
        self.units = units
        self.pos = 0

    def peek(self) -> Token:
        if self.pos >= len(self.tokens):
            raise ParseError("line ends unexpectedly")
        return self.tokens[self.pos]

    def at(self, kind: TokenKind, text: str | None = None) -> bool:
        if self.pos >= len(self.tokens):
            return False
        tok = self.tokens[self.pos]
        return tok.kind == kind and (text is None or tok.text == text)

    def advance(self) -> Token:
        tok = self.peek()
        self.pos += 1
        return tok

    def parse(self) -> ast.Expression:
        root = ast.Expression()
        while self.pos < len(self.tokens):
            self._append(root, self.walk())

        if not self.tokens:
            return root

        for op in FOLD_ORDER:
            root = fold(root, op)
        check_operands(root)
        return root

    def _append(self, group: ast.Expression, node) -> None:
        """Add a walked node to a group; a unit bracket sets the unit of the group itself."""
        if isinstance(node, ast.UnitExpression):
            # the last bracket in a group wins
            group.unit = node.unit
        else:
            group.params.append(node)

    def walk(self):
        tok = self.advance()

        match tok.kind:
            case TokenKind.NUMBER:
                return ast.NumberLiteral(value=tok.text)

            case TokenKind.PAREN if tok.text == "(":
                group = ast.Expression()
                while not self.at(TokenKind.PAREN, ")"):
                    self.peek()
                    self._append(group, self.walk())
                self.advance()
                return group

            case TokenKind.BRACKET if tok.text == "[":
                node = ast.UnitExpression()
                while not self.at(TokenKind.BRACKET, "]"):
                    node.params.append(self.walk_unit())
                self.advance()
                node.unit = parse_unit_expression(node, self.units)
                return node

            case TokenKind.LITERAL:
                return self._literal(tok)

            case TokenKind.OPERATOR:
                return ast.RawOperator(value=tok.text)

        raise ParseError(f"unexpected {tok.kind.value}: {tok.text!r}")

    def _literal(self, tok: Token):
        name = tok.text
        if name in CONSTANTS:
            return ast.Constant(value=name)
        if name in self.variables:
            return ast.Variable(value=name)
        if name in FUNCTIONS:
            self.peek()
            argument = self.walk()
            if isinstance(argument, ast.UnitExpression):
                raise ParseError(f"function {name} needs a value, got a unit")
            return ast.Function(value=name, params=[argument])
        raise ParseError(f"unknown name: {name}")

    def walk_unit(self):
        tok = self.advance()

        if tok.kind == TokenKind.NUMBER:
            return ast.UnitNumberLiteral(value=tok.text)
        if tok.kind == TokenKind.LITERAL:
            unit_id = self.units.resolve_alias(tok.text)
            if unit_id is not None:
                return ast.FundamentalUnitRef(value=unit_id)
            return ast.CustomUnitRef(value=tok.text)
        if tok.kind == TokenKind.OPERATOR and tok.text == "^":
            return ast.UnitPower()
        if tok.kind == TokenKind.OPERATOR and tok.text == "/":
            return ast.UnitDivision()

        raise ParseError(f"unexpected {tok.kind.value} in unit: {tok.text!r}")


def parse_unit_expression(node: ast.UnitExpression, units: UnitCatalog = UNITS) -> CompositeUnit:
    """Fold the atoms of a unit bracket into a composite unit."""
    entries: list[UnitExponent] = []
    sign = 1.0
    atoms = node.params
    i = 0

    while i < len(atoms):
        atom = atoms[i]
        match atom:
            case ast.FundamentalUnitRef(value=unit_id):
                entries.append(UnitExponent(unit=units[unit_id], exponent=sign))
            case ast.CustomUnitRef(value=name):
                entries.append(UnitExponent(unit=custom_unit(name), exponent=sign))
            case ast.UnitDivision() if sign == 1:
                sign = -1.0
            case ast.UnitPower() if entries:
                i += 1
                if i >= len(atoms) or not isinstance(atoms[i], ast.UnitNumberLiteral):
                    raise ParseError("expected a number after '^' in unit")
                try:
                    exponent = float(atoms[i].value)
                except ValueError:
                    raise ParseError(f"invalid unit exponent: {atoms[i].value}") from None
                last = entries[-1]
                entries[-1] = UnitExponent(unit=last.unit, exponent=exponent * sign)
            case ast.UnitNumberLiteral() if not entries:
                pass
            case _:
                raise ParseError(f"malformed unit expression near {atom.value!r}")
        i += 1

    return _merge_entries(entries)


def _merge_entries(entries: list[UnitExponent]) -> CompositeUnit:
    merged: dict[str, UnitExponent] = {}
    for entry in entries:
        family = entry.unit.base_unit
        if family not in merged:
            merged[family] = entry
            continue
        previous = merged[family]
        if previous.unit.id != entry.unit.id:
            raise UnitError(
                f"unit expression mixes {previous.unit} and {entry.unit} of the same kind"
            )
        merged[family] = UnitExponent(unit=entry.unit, exponent=previous.exponent + entry.exponent)

    return CompositeUnit(units=tuple(ue for ue in merged.values() if ue.exponent != 0)).sorted()


def fold(node, op: str):
    """Return a copy of ``node`` with every raw ``op`` folded into Operator nodes."""
    match node:
        case ast.NumberLiteral() | ast.Constant() | ast.Variable():
            return node

        case ast.Function(params=params):
            if not params:
                raise ParseError(f"function {node.value} called without argument")
            if isinstance(params[0], ast.RawOperator):
                raise ParseError(f"cannot pass operator {params[0].value!r} to {node.value}")
            return node.model_copy(update={"params": [fold(params[0], op)]})

        case ast.Operator(params=[left, right]):
            return node.model_copy(update={"params": [fold(left, op), fold(right, op)]})

        case ast.Expression(params=params):
            return node.model_copy(update={"params": _fold_group(params, op)})

    raise ParseError(f"unexpected node in expression: {node.type}")


def _fold_group(params: list, op: str) -> list:
    folded: list = []
    i = 0

    while i < len(params):
        item = params[i]

        if not isinstance(item, ast.RawOperator):
            folded.append(fold(item, op))
            i += 1
            continue

        if item.value != op:
            folded.append(item)
            i += 1
            continue

        if i == len(params) - 1:
            raise ParseError("cannot end expression with an operator")

        if not folded:
            if op != "-":
                raise ParseError(f"cannot start expression with {op!r}")
            # -x is 0 - x
            left = ast.NumberLiteral(value="0")
        elif isinstance(folded[-1], ast.RawOperator):
            raise ParseError("cannot have 2 operators consecutively")
        else:
            left = folded.pop()

        right = params[i + 1]
        if isinstance(right, ast.RawOperator):
            raise ParseError("cannot have 2 operators consecutively")

        folded.append(ast.Operator(value=op, params=[left, fold(right, op)]))
        i += 2

    return folded


def check_operands(node) -> None:
    """Every group must reduce to exactly one operand after folding."""
    match node:
        case ast.Expression(params=params):
            if not params:
                raise ParseError("empty expression")
            if len(params) > 1:
                raise ParseError("missing operator between operands")
            check_operands(params[0])
        case ast.Function(params=params) | ast.Operator(params=params):
            for child in params:
                check_operands(child)


def parse_line(
    tokens: list[Token], variables: dict[str, int], units: UnitCatalog = UNITS
) -> ast.Expression:
    """Parse the semantic tokens of one line into an AST."""
    try:
        return Parser(tokens, variables, units).parse()
    except UnitError as e:
        raise ParseError(str(e)) from e
    except RecursionError:
        raise ParseError("expression is nested too deeply") from None
