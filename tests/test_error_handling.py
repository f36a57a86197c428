"""
Tests for malformed input and error reporting.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import threading

import pytest

from lrama_language_server.analysis import DocumentStore, analyze
from lrama_language_server.analysis.parsing import GrammarParser, parse, tokenize
from lrama_language_server.analysis.parsing.lexer import Token, TokenType


MALFORMED_INPUTS = [
    "%",
    "%%%%%%",
    "%{ never closed",
    "%union {\n  int x;\n",
    "%token <unterminated NUM\n%%\n",
    "%%\nfoo: bar(baz ;\n",
    "%%\nfoo: { unbalanced ;\nbar: ;\n",
    "%%\nfoo[alias: bar ;\n",
    "%rule\n%%\n",
    "%rule name(X, Y\n%%\nfoo: ;\n",
    "%rule %inline\n",
    "%%\n: ; | ( ) [ ] \n",
    "%%\nfoo: 'unterminated ;\n",
    "%start\n%%\n",
    "%%\nfoo: bar %prec\n",
    "\n\n\n",
    "%%\nfoo: option(list(separated_list(',', bar)) ;\n",
]


class TestMalformedInput:
    """Analysis never raises and always terminates."""

    @pytest.mark.parametrize("content", MALFORMED_INPUTS)
    def test_analysis_does_not_raise(self, content):
        result = analyze(content)
        assert result.symbol_table is not None
        assert isinstance(result.diagnostics, list)

    @pytest.mark.parametrize("content", MALFORMED_INPUTS)
    def test_analysis_is_deterministic(self, content):
        """Re-analysing the same text gives the same result."""
        first = analyze(content)
        second = analyze(content)
        assert [s.name for s in first.symbol_table.all_symbols()] == \
            [s.name for s in second.symbol_table.all_symbols()]
        assert first.diagnostics == second.diagnostics

    def test_parser_without_eof(self):
        """A token list missing its EOF token still parses."""
        tokens = [t for t in tokenize("%%\nfoo: bar ;\n") if t.type != TokenType.EOF]
        table = GrammarParser(tokens).parse()
        assert "foo" in table

    def test_parser_with_no_tokens(self):
        assert len(GrammarParser([]).parse()) == 0

    def test_unbalanced_action_runs_to_end(self):
        """An unclosed action swallows the rest of the input."""
        table = parse("%%\nfoo: { unbalanced ;\nbar: ;\n")
        assert "foo" in table
        assert "bar" not in table

    def test_unclosed_prologue(self):
        table = parse("%{\nint x;\n%token NUM\n")
        assert "NUM" not in table

    def test_stray_tokens_in_declarations(self):
        table = parse("NUM ; , 'x'\n%token REAL\n%%\n")
        assert "REAL" in table
        assert "NUM" not in table

    def test_rule_without_colon(self):
        table = parse("%%\nfoo bar ;\nbaz: qux ;\n")
        assert "foo" not in table
        assert "baz" in table

    def test_handcrafted_token_stream(self):
        """The parser only relies on token types and values."""
        tokens = [
            Token(TokenType.SEPARATOR, "%%", 0, 0, 2),
            Token(TokenType.IDENTIFIER, "foo", 1, 0, 3),
            Token(TokenType.SPECIAL, ":", 1, 3, 1),
            Token(TokenType.IDENTIFIER, "BAR", 1, 5, 3),
            Token(TokenType.SPECIAL, ";", 1, 9, 1),
            Token(TokenType.EOF, "", 1, 10, 0),
        ]
        table = GrammarParser(tokens).parse()
        assert len(table.lookup_plain("BAR").references) == 1


class TestDiagnosticFormatting:
    """Test diagnostic contents."""

    def test_diagnostic_positions_are_zero_based(self):
        result = analyze("%%\n\n   foo: bar ;\n")
        undefined = next(d for d in result.diagnostics if d.code == "undefined-symbol")
        assert (undefined.line, undefined.column) == (2, 8)

    def test_diagnostic_messages(self):
        result = analyze("%%\nfoo: bar ;\n")
        messages = [d.message for d in result.diagnostics]
        assert messages == [
            "Symbol 'bar' is not defined",
            "Rule 'foo' is defined but never used",
        ]


class TestConcurrency:
    """Analyses of different documents are independent."""

    def test_parallel_updates(self):
        store = DocumentStore()
        errors = []

        def worker(index):
            try:
                for _ in range(20):
                    store.update(f"file:///tmp/g{index}.y", f"%%\nrule{index}: missing{index} ;\n")
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(store) == 4
        for index in range(4):
            table = store.get(f"file:///tmp/g{index}.y").symbol_table
            assert f"rule{index}" in table
            assert f"rule{(index + 1) % 4}" not in table


if __name__ == "__main__":
    pytest.main([__file__])
