"""
Tests for the LSP-facing components of the Lrama Language Server.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import json

import pytest
from lsprotocol.types import (
    CompletionItemKind,
    DiagnosticSeverity,
    InsertTextFormat,
    Position as LspPosition,
    SymbolKind as LspSymbolKind,
)

from lrama_language_server.span import Position, Range
from lrama_language_server.analysis import DocumentStore, analyze
from lrama_language_server.analysis.parsing import Section
from lrama_language_server.config import Config, InitializationOptions, LogLevel
from lrama_language_server.lsp_data import (
    LramaDiagnostic,
    LramaDiagnosticSeverity,
    LramaLocation,
    document_symbols,
    lsp_position_to_position,
    path_to_uri,
    symbol_detail,
    to_lsp_range,
    uri_to_path,
)
from lrama_language_server.server import LramaLanguageServer
from lrama_language_server.server.completion import CompletionProvider, section_at
from lrama_language_server.server.hover import HoverProvider


GRAMMAR = """%token <ival> NUM
%start program
%rule pair(X, Y): X ',' Y ;
%%
program: stmts ;
stmts: pair(stmt_a, NUM)
     | stmts stmt_a
     ;
stmt_a: NUM ;
%%
"""

URI = "file:///tmp/calc.y"


def _provider(cls, content=GRAMMAR):
    result = analyze(content)
    return cls(result.symbol_table, content)


class TestLspData:
    """Test conversions to protocol types."""

    def test_diagnostic_conversion(self):
        diagnostic = LramaDiagnostic(
            range=Range.on_line(1, 5, 3),
            message="Symbol 'bar' is not defined",
            severity=LramaDiagnosticSeverity.WARNING,
            code="undefined-symbol",
        )
        lsp = diagnostic.to_lsp_diagnostic()
        assert lsp.severity == DiagnosticSeverity.Warning
        assert lsp.source == "lrama"
        assert lsp.code == "undefined-symbol"
        assert lsp.range.start.line == 1
        assert lsp.range.start.character == 5
        assert lsp.range.end.character == 8

    def test_information_severity(self):
        diagnostic = LramaDiagnostic(Range.on_line(0, 0, 1), "x", LramaDiagnosticSeverity.INFORMATION)
        assert diagnostic.to_lsp_diagnostic().severity == DiagnosticSeverity.Information

    def test_location_conversion(self):
        location = LramaLocation(URI, Range.on_line(2, 0, 4)).to_lsp_location()
        assert location.uri == URI
        assert location.range == to_lsp_range(Range.on_line(2, 0, 4))

    def test_position_conversion(self):
        assert lsp_position_to_position(LspPosition(line=3, character=7)) == Position(3, 7)

    def test_uri_round_trip(self, tmp_path):
        path = tmp_path / "my grammar.y"
        uri = path_to_uri(path)
        assert uri.startswith("file://")
        assert uri_to_path(uri) == path.resolve()

    def test_non_file_uri(self):
        with pytest.raises(ValueError):
            uri_to_path("untitled:Untitled-1")

    def test_document_symbols(self):
        """Templates come first; kinds map to protocol symbol kinds."""
        table = analyze(GRAMMAR).symbol_table
        symbols = document_symbols(table)
        by_name = {s.name: s for s in symbols}

        assert symbols[0].name == "pair(X, Y)"
        assert symbols[0].kind == LspSymbolKind.Method
        assert by_name["NUM"].kind == LspSymbolKind.Constant
        assert by_name["program"].kind == LspSymbolKind.Module
        assert by_name["stmts"].kind == LspSymbolKind.Function
        assert "stmt_a" in by_name

    def test_document_symbol_ranges(self):
        table = analyze(GRAMMAR).symbol_table
        stmts = {s.name: s for s in document_symbols(table)}["stmts"]
        assert stmts.selection_range.start.line == 5
        assert stmts.selection_range.end.character == 5
        assert stmts.range.end.line == 7

    def test_symbol_detail(self):
        table = analyze(GRAMMAR).symbol_table
        assert symbol_detail(table.lookup_plain("NUM")) == "token <ival> [2 refs]"
        assert symbol_detail(table.lookup_parameterized("pair")) == "parameterized_rule(X, Y) [1 calls]"
        assert symbol_detail(table.lookup_plain("stmt_a")) == "rule [2 refs]"


class TestHover:
    """Test hover content."""

    def test_symbol_hover(self):
        hover = _provider(HoverProvider).get_hover(Position(0, 15))
        value = hover.contents.value
        assert "**Token**: `NUM`" in value
        assert "**Type**: `<ival>`" in value
        assert "- 2 references" in value

    def test_template_hover(self):
        hover = _provider(HoverProvider).get_hover(Position(2, 7))
        value = hover.contents.value
        assert "**Parameterized Rule**: `pair`" in value
        assert "**Parameters**: `(X, Y)`" in value
        assert "- 1 parameterized call" in value
        assert "parameterized rule that can be called" in value

    def test_start_symbol_note(self):
        hover = _provider(HoverProvider).get_hover(Position(1, 8))
        assert "This is the start symbol of the grammar." in hover.contents.value

    def test_definition_preview(self):
        hover = _provider(HoverProvider).get_hover(Position(5, 1))
        value = hover.contents.value
        assert "```yacc\nstmts: pair(stmt_a, NUM)\n| stmts stmt_a\n;\n```" in value

    def test_preview_truncates_long_lines(self):
        content = "%%\nfoo: " + " ".join(["BAR"] * 40) + " ;\n"
        provider = _provider(HoverProvider, content)
        preview = provider.definition_preview(provider.symbol_table.lookup_plain("foo"))
        assert len(preview) == 80
        assert preview.endswith("...")

    def test_directive_hover(self):
        hover = _provider(HoverProvider).get_hover(Position(0, 3))
        assert "**Directive**: `%token`" in hover.contents.value

    def test_builtin_hover(self):
        content = "%%\nfoo: list ;\n"
        provider = HoverProvider(analyze(content).symbol_table, content)
        # 'list' is referenced here, so the symbol wins over the built-in docs
        assert "**Nonterminal**: `list`" in provider.get_hover(Position(1, 6)).contents.value

        content = "%%\nfoo: error ;\n"
        provider = HoverProvider(analyze(content).symbol_table, content)
        assert provider.word_at(Position(1, 6)) == "error"

        content = "%%\n// see option\n"
        provider = HoverProvider(analyze(content).symbol_table, content)
        assert "**Built-in Function**: `option(X)`" in provider.get_hover(Position(1, 8)).contents.value

    def test_reserved_token_hover(self):
        content = "%%\n/* YYEOF */\n"
        provider = HoverProvider(analyze(content).symbol_table, content)
        hover = provider.get_hover(Position(1, 4))
        assert "**Reserved Token**: `YYEOF`" in hover.contents.value

    def test_no_hover(self):
        assert _provider(HoverProvider).get_hover(Position(10, 0)) is None


class TestCompletion:
    """Test completion items."""

    def test_section_detection(self):
        assert section_at("%token A\n") == Section.DECLARATIONS
        assert section_at("%%\nfoo: ") == Section.RULES
        assert section_at("%%\n%%\n") == Section.EPILOGUE

    def test_declaration_completions(self):
        items = _provider(CompletionProvider).get_completions(Position(1, 0))
        labels = [item.label for item in items]
        assert "%token" in labels
        assert "%rule" in labels
        token = next(item for item in items if item.label == "%token")
        assert token.kind == CompletionItemKind.Keyword
        assert token.insert_text_format == InsertTextFormat.Snippet

    def test_rule_completions(self):
        items = _provider(CompletionProvider).get_completions(Position(8, 8))
        labels = [item.label for item in items]
        assert "NUM" in labels
        assert "stmts" in labels
        assert "error" in labels
        assert "pair(X, Y)" in labels
        assert "separated_list(separator, X)" in labels
        assert "%token" not in labels

        pair = next(item for item in items if item.label == "pair(X, Y)")
        assert pair.insert_text == "pair(${1:X}, ${2:Y})"

    def test_prec_completions(self):
        content = "%token MINUS\n%%\nexpr: MINUS expr %prec "
        items = _provider(CompletionProvider, content).get_completions(Position(2, 23))
        details = [item.detail for item in items if item.label == "MINUS"]
        assert "Precedence token" in details

    def test_directive_prefix_in_rules(self):
        content = "%%\nexpr: '-' expr %pr"
        items = _provider(CompletionProvider, content).get_completions(Position(1, 18))
        assert "%prec" in [item.label for item in items]

    def test_inline_after_rule(self):
        content = "%rule "
        items = _provider(CompletionProvider, content).get_completions(Position(0, 6))
        assert "%inline" in [item.label for item in items]

    def test_epilogue_has_no_completions(self):
        items = _provider(CompletionProvider).get_completions(Position(10, 0))
        assert items == []


class TestConfig:
    """Test configuration handling."""

    def test_initialization_options(self):
        options = InitializationOptions.from_dict({
            "diagnostics_enabled": False,
            "max_diagnostics_per_file": 5,
            "log_level": "debug",
        })
        assert options.diagnostics_enabled is False
        assert options.max_diagnostics_per_file == 5
        assert options.log_level == LogLevel.DEBUG

    def test_invalid_log_level(self, caplog):
        options = InitializationOptions.from_dict({"log_level": "chatty"})
        assert options.log_level == LogLevel.INFO
        assert "Invalid log level" in caplog.text

    def test_report_unused_rules_switch(self):
        config = Config()
        config.set_initialization_options({"report_unused_rules": False, "log_level": "info"})
        assert "unused-rule" in config.build_policy().disabled_rules

    def test_validation_config_file(self, tmp_path):
        cfg = tmp_path / "validation.json"
        cfg.write_text(json.dumps({
            "disabled_rules": ["unused-rule"],
            "extra_common_parameters": ["T"],
            "extra_token_prefixes": ["lex_"],
            "rule_configs": {"undefined-symbol": {"level": "error"}},
        }))

        config = Config()
        config.load_validation_config(cfg)
        policy = config.build_policy()

        assert "T" in policy.common_parameters
        assert "X" in policy.common_parameters
        assert policy.token_prefixes[-1] == "lex_"
        assert "unused-rule" in policy.disabled_rules
        assert config.rule_configs == {"undefined-symbol": {"level": "error"}}
        assert config.validation_config.extra_token_prefixes == ["lex_"]

    def test_bad_validation_config(self, tmp_path, caplog):
        cfg = tmp_path / "broken.json"
        cfg.write_text("{not json")
        config = Config()
        with pytest.raises(ValueError):
            config.load_validation_config(cfg)
        assert "Failed to load validation config" in caplog.text

    def test_clear(self):
        config = Config()
        config.set_initialization_options({"log_level": "info"})
        config.clear()
        assert config.to_dict()["initialization_options"] is None


class TestDocumentStore:
    """Test per-document analysis storage."""

    def test_update_replaces_analysis(self):
        store = DocumentStore()
        first = store.update(URI, "%%\nfoo: bar ;\n")
        second = store.update(URI, "%token BAR\n%%\nfoo: BAR ;\n")
        assert store.get(URI) is second
        assert first.symbol_table is not second.symbol_table
        assert "bar" not in second.symbol_table

    def test_remove(self):
        store = DocumentStore()
        store.update(URI, "%%\n")
        assert URI in store
        store.remove(URI)
        assert URI not in store
        assert store.get_diagnostics(URI) == []


class TestServer:
    """Test the language server without starting it."""

    @pytest.fixture
    def server(self):
        server = LramaLanguageServer()
        server.analyze_document(URI, GRAMMAR)
        return server

    def test_server_creation(self):
        server = LramaLanguageServer()
        assert server.name == "lrama-language-server"
        assert len(server.documents) == 0

    def test_analyze_document(self):
        server = LramaLanguageServer()
        diagnostics = server.analyze_document(URI, "%%\nfoo: bar ;\n")
        assert [d.code for d in diagnostics] == ["undefined-symbol", "unused-rule"]
        assert diagnostics[0].severity == DiagnosticSeverity.Warning

    def test_diagnostics_cap(self):
        server = LramaLanguageServer()
        server.apply_initialization_options({"max_diagnostics_per_file": 1})
        diagnostics = server.analyze_document(URI, "%%\nfoo: bar ;\n")
        assert len(diagnostics) == 1

    def test_diagnostics_disabled(self):
        server = LramaLanguageServer()
        server.apply_initialization_options({"diagnostics_enabled": False})
        assert server.analyze_document(URI, "%%\nfoo: bar ;\n") == []
        assert URI in server.documents

    def test_analysis_failure_is_reported(self, monkeypatch, caplog):
        server = LramaLanguageServer()

        def broken_update(uri, content):
            raise RuntimeError("store unavailable")

        monkeypatch.setattr(server.documents, "update", broken_update)
        assert server.analyze_document(URI, "%%\nfoo: ;\n") == []
        assert f"Internal Error: analysis of {URI} failed: store unavailable" in caplog.text

    def test_definition(self, server):
        locations = server.find_definition(URI, Position(8, 9))
        assert len(locations) == 1
        assert locations[0].uri == URI
        assert locations[0].range.start.line == 0
        assert locations[0].range.start.character == 14

    def test_definition_of_undefined(self):
        server = LramaLanguageServer()
        server.analyze_document(URI, "%%\nfoo: bar ;\n")
        assert server.find_definition(URI, Position(1, 6)) is None

    def test_references(self, server):
        locations = server.find_references(URI, Position(0, 15))
        assert sorted(loc.range.start.line for loc in locations) == [5, 8]

    def test_references_with_declaration(self, server):
        locations = server.find_references(URI, Position(0, 15), include_declaration=True)
        assert sorted(loc.range.start.line for loc in locations) == [0, 5, 8]

    def test_references_to_template(self, server):
        locations = server.find_references(URI, Position(2, 7))
        assert [loc.range.start.line for loc in locations] == [5]

    def test_unknown_document(self):
        server = LramaLanguageServer()
        unknown = "file:///tmp/unknown.y"
        assert server.find_definition(unknown, Position(0, 0)) is None
        assert server.find_references(unknown, Position(0, 0)) is None
        assert server.get_document_symbols(unknown) is None
        assert server.get_hover(unknown, Position(0, 0)) is None
        assert server.get_completions(unknown, Position(0, 0)) == []

    def test_document_symbols(self, server):
        names = [s.name for s in server.get_document_symbols(URI)]
        assert names[0] == "pair(X, Y)"
        assert "stmt_a" in names

    def test_hover_and_completion(self, server):
        assert "`NUM`" in server.get_hover(URI, Position(8, 9)).contents.value
        assert server.get_completions(URI, Position(8, 8))


if __name__ == "__main__":
    pytest.main([__file__])
