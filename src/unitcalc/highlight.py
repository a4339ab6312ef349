"""Syntax highlighting of raw tokens.

Purely lexical: nothing is evaluated, so unknown characters and invalid
lines are highlighted as well.
"""

import html

from .compiler import ExecutionGraph
from .lexer import Token, TokenKind
from .parser import CONSTANTS, FUNCTIONS

CSS_PREFIX = "calc-token-"


def token_class(token: Token) -> str:
    if token.kind != TokenKind.LITERAL:
        return token.kind.value
    if token.text in FUNCTIONS:
        return "function"
    if token.text in CONSTANTS:
        return "constant"
    return "literal"


def classify(raw_tokens: list[Token]) -> list[tuple[str, str]]:
    """Tag tokens with a class; tokens from "[" to "]" get a "-unit" suffix."""
    tagged: list[tuple[str, str]] = []
    inside_unit = False

    for token in raw_tokens:
        if token.kind == TokenKind.BRACKET and token.text == "[":
            inside_unit = True

        css = token_class(token)
        tagged.append((f"{css}-unit" if inside_unit else css, token.text))

        if token.kind == TokenKind.BRACKET and token.text == "]":
            inside_unit = False

    return tagged


def colorize_line(raw_tokens: list[Token]) -> str:
    return "".join(
        f'<span class="{CSS_PREFIX}{css}">{html.escape(text)}</span>'
        for css, text in classify(raw_tokens)
    )


def colorize_html(graph: ExecutionGraph) -> str:
    """Render every line of a tokenized graph as HTML spans."""
    return "<br/>".join(colorize_line(line.raw_tokens) for line in graph.lines)
