"""Tokenizer for a single line of source.

Rules, in priority order:
    comment     = "#" <rest of line>
    whitespace  = (" " | "\\t")+
    paren       = "(" | ")"
    bracket     = "[" | "]"
    definition  = ":"
    operator    = "+" | "-" | "*" | "/" | "^"
    number      = DIGIT (DIGIT | "." | "," | "%")*
    literal     = (LETTER | "_") (LETTER | DIGIT | "_")*
"""

import string
from dataclasses import dataclass
from enum import Enum


class TokenKind(str, Enum):
    NUMBER = "number"
    LITERAL = "literal"
    OPERATOR = "operator"
    PAREN = "paren"
    BRACKET = "bracket"
    DEFINITION = "definition"
    COMMENT = "comment"
    WHITESPACE = "whitespace"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.text}"


class TokenizeError(Exception):
    def __init__(self, msg: str, col: int):
        super().__init__(f"col {col}: {msg}")
        self.col = col


DIGITS = frozenset(string.digits)
NUMBER_CHARS = DIGITS | frozenset(".,%")
LITERAL_START = frozenset(string.ascii_letters + "_")
LITERAL_CHARS = LITERAL_START | DIGITS
OPERATORS = frozenset("+-*/^")
BLANKS = frozenset(" \t")

SINGLE_CHAR_TOKENS = {
    "(": TokenKind.PAREN,
    ")": TokenKind.PAREN,
    "[": TokenKind.BRACKET,
    "]": TokenKind.BRACKET,
    ":": TokenKind.DEFINITION,
}

NON_SEMANTIC = {TokenKind.COMMENT, TokenKind.WHITESPACE}


def _scan(source: str, pos: int, chars: frozenset[str]) -> int:
    while pos < len(source) and source[pos] in chars:
        pos += 1
    return pos


def tokenize(source: str, allow_unknown: bool = False) -> list[Token]:
    """Split one line into tokens covering every character.

    With ``allow_unknown`` unrecognised characters become ``unknown`` tokens
    instead of raising ``TokenizeError``.
    """
    if "\n" in source:
        raise ValueError("tokenize() expects a single line, found a newline")

    tokens: list[Token] = []
    pos = 0

    while pos < len(source):
        char = source[pos]

        if char == "#":
            tokens.append(Token(TokenKind.COMMENT, source[pos:]))
            break

        if char in BLANKS:
            end = _scan(source, pos, BLANKS)
            tokens.append(Token(TokenKind.WHITESPACE, source[pos:end]))
            pos = end
            continue

        if char in SINGLE_CHAR_TOKENS:
            tokens.append(Token(SINGLE_CHAR_TOKENS[char], char))
            pos += 1
            continue

        if char in OPERATORS:
            tokens.append(Token(TokenKind.OPERATOR, char))
            pos += 1
            continue

        if char in DIGITS:
            end = _scan(source, pos, NUMBER_CHARS)
            tokens.append(Token(TokenKind.NUMBER, source[pos:end]))
            pos = end
            continue

        if char in LITERAL_START:
            end = _scan(source, pos, LITERAL_CHARS)
            tokens.append(Token(TokenKind.LITERAL, source[pos:end]))
            pos = end
            continue

        if not allow_unknown:
            raise TokenizeError(f"unknown character: {char!r}", pos + 1)
        tokens.append(Token(TokenKind.UNKNOWN, char))
        pos += 1

    return tokens


def semantic_tokens(tokens: list[Token]) -> list[Token]:
    """Drop comments and whitespace."""
    return [tok for tok in tokens if tok.kind not in NON_SEMANTIC]
