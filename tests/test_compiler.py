"""Tests for declarations, dependency graph, cycle detection and scheduling."""

import pytest

from unitcalc import ast
from unitcalc.compiler import (
    Compiler,
    CyclicDependencyError,
    Line,
    declare_variables,
    execution_order,
    has_cycle,
    split_lines,
)
from unitcalc.lexer import TokenizeError
from unitcalc.parser import ParseError


def graph_of(dependencies: list[list[int]]) -> list[Line]:
    return [Line(dependencies=deps) for deps in dependencies]


class TestTokenizeDocument:
    def test_one_line_per_source_line(self):
        graph = Compiler("1\n\n2 + 3").tokenize()
        assert len(graph.lines) == 3
        assert graph.lines[1].is_empty()

    def test_raw_tokens_keep_comments(self):
        line = Compiler("5 # five").tokenize().lines[0]
        assert [tok.text for tok in line.tokens] == ["5"]
        assert [tok.text for tok in line.raw_tokens] == ["5", " ", "# five"]

    def test_unknown_character_is_a_line_error(self):
        graph = Compiler("1\n5 $ 3").tokenize()
        assert not graph.lines[0].has_error()
        assert isinstance(graph.lines[1].error, TokenizeError)

    def test_permissive_tokenization(self):
        graph = Compiler("5 $ 3").tokenize(allow_unknown=True)
        assert not graph.lines[0].has_error()

    def test_windows_line_endings(self):
        assert split_lines("1\r\n2\r\n") == ["1", "2", ""]


class TestDeclarations:
    def test_declaration_is_stripped(self):
        graph = Compiler("total: 5 + 3").compile()
        line = graph.lines[0]
        assert line.name == "total"
        assert [tok.text for tok in line.tokens] == ["5", "+", "3"]
        assert graph.variables == {"total": 0}

    def test_last_declaration_wins(self):
        graph = Compiler("a: 1\na: 2\na").compile()
        assert graph.variables == {"a": 1}
        assert graph.lines[2].dependencies == [1]

    def test_colon_must_follow_a_name(self):
        lines = Compiler("5: 3").tokenize().lines
        assert declare_variables(lines) == {}

    def test_empty_declaration(self):
        line = Compiler("a:").compile().lines[0]
        assert line.name == "a"
        assert line.is_empty()


class TestDependencies:
    def test_forward_reference(self):
        graph = Compiler("55 + y\ny: sqrt(11+5)+3").compile()
        assert graph.lines[0].dependencies == [1]
        assert graph.lines[1].dependencies == []

    def test_duplicate_references(self):
        graph = Compiler("x: 2\nx * x").compile()
        assert graph.lines[1].dependencies == [0, 0]

    def test_undeclared_names_are_not_dependencies(self):
        graph = Compiler("sqrt pi").compile()
        assert graph.lines[0].dependencies == []


class TestCycleDetection:
    def test_acyclic(self):
        assert not has_cycle(graph_of([[1, 2], [2], []]))

    def test_two_line_cycle(self):
        assert has_cycle(graph_of([[1], [0]]))

    def test_self_reference(self):
        assert has_cycle(graph_of([[0]]))

    def test_long_cycle(self):
        assert has_cycle(graph_of([[], [2], [3], [1]]))

    def test_diamond_is_not_a_cycle(self):
        assert not has_cycle(graph_of([[1, 2], [3], [3], []]))

    def test_long_chain(self):
        chain = [[i + 1] for i in range(9999)] + [[]]
        assert not has_cycle(graph_of(chain))

    def test_long_chain_closed_into_a_cycle(self):
        chain = [[i + 1] for i in range(9999)] + [[0]]
        assert has_cycle(graph_of(chain))

    def test_document_with_cycle_is_rejected(self):
        with pytest.raises(CyclicDependencyError):
            Compiler("a: b + 1\nb: a + 1").compile()

    def test_self_referencing_declaration(self):
        with pytest.raises(CyclicDependencyError):
            Compiler("x: x + 1").compile()


class TestExecutionOrder:
    def test_dependencies_first(self):
        assert execution_order(graph_of([[1, 2], [2], []])) == [2, 1, 0]

    def test_independent_lines_keep_source_order(self):
        assert execution_order(graph_of([[], [], []])) == [0, 1, 2]

    def test_long_chain(self):
        chain = [[i + 1] for i in range(9999)] + [[]]
        assert execution_order(graph_of(chain)) == list(range(9999, -1, -1))

    def test_every_dependency_precedes_its_dependent(self):
        lines = graph_of([[3], [0, 4], [], [2], [], [1, 3]])
        order = execution_order(lines)
        assert sorted(order) == list(range(len(lines)))
        for node, line in enumerate(lines):
            for dep in line.dependencies:
                assert order.index(dep) < order.index(node)

    def test_document_order(self):
        graph = Compiler("55 + y\ny: sqrt(11+5)+3").compile()
        assert graph.order == [1, 0]


class TestParsing:
    def test_lines_get_trees(self):
        graph = Compiler("a: 2\na * 3").compile()
        assert isinstance(graph.lines[1].tree, ast.Expression)
        assert graph.lines[1].tree.params[0].value == "*"

    def test_parse_error_is_recorded_per_line(self):
        graph = Compiler("5 +\n2 * 3").compile()
        assert isinstance(graph.lines[0].error, ParseError)
        assert graph.lines[0].tree is None
        assert graph.lines[1].error is None

    def test_source_is_kept(self):
        assert Compiler("1 + 1").compile().source == "1 + 1"
