"""
LSP data structures and utilities for the Lrama Language Server.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from typing import List, Optional, TYPE_CHECKING
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import urllib.parse

from lsprotocol.types import (
    Position as LspPosition,
    Range as LspRange,
    Location as LspLocation,
    Diagnostic as LspDiagnostic,
    DiagnosticSeverity,
    DocumentSymbol,
    SymbolKind as LspSymbolKind,
)

from .span import Position, Range

if TYPE_CHECKING:
    from .analysis.symbols import GrammarSymbol, SymbolTable


DIAGNOSTIC_SOURCE = "lrama"


class LramaDiagnosticSeverity(Enum):
    """Severity levels for grammar diagnostics."""
    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"
    HINT = "hint"


@dataclass
class LramaDiagnostic:
    """A diagnostic message for a grammar file."""
    range: Range
    message: str
    severity: LramaDiagnosticSeverity
    code: Optional[str] = None
    source: str = DIAGNOSTIC_SOURCE

    @property
    def line(self) -> int:
        return self.range.start.line

    @property
    def column(self) -> int:
        return self.range.start.column

    def to_lsp_diagnostic(self) -> LspDiagnostic:
        """Convert to LSP diagnostic."""
        severity_map = {
            LramaDiagnosticSeverity.ERROR: DiagnosticSeverity.Error,
            LramaDiagnosticSeverity.WARNING: DiagnosticSeverity.Warning,
            LramaDiagnosticSeverity.INFORMATION: DiagnosticSeverity.Information,
            LramaDiagnosticSeverity.HINT: DiagnosticSeverity.Hint,
        }

        return LspDiagnostic(
            range=to_lsp_range(self.range),
            message=self.message,
            severity=severity_map[self.severity],
            code=self.code,
            source=self.source
        )


@dataclass
class LramaLocation:
    """A range inside a specific document."""
    uri: str
    range: Range

    def to_lsp_location(self) -> LspLocation:
        """Convert to LSP location."""
        return LspLocation(uri=self.uri, range=to_lsp_range(self.range))


def to_lsp_position(position: Position) -> LspPosition:
    """Convert a position to an LSP position (both are zero-based)."""
    return LspPosition(line=position.line, character=position.column)


def to_lsp_range(range_: Range) -> LspRange:
    """Convert a range to an LSP range."""
    return LspRange(start=to_lsp_position(range_.start), end=to_lsp_position(range_.end))


def lsp_position_to_position(lsp_pos: LspPosition) -> Position:
    """Convert an LSP position to a position."""
    return Position(
        line=max(0, lsp_pos.line),
        column=max(0, lsp_pos.character)
    )


def path_to_uri(path: Path) -> str:
    """Convert a file path to a URI."""
    return path.resolve().as_uri()


def uri_to_path(uri: str) -> Path:
    """Convert a URI to a file path."""
    parsed = urllib.parse.urlparse(uri)
    if parsed.scheme != 'file':
        raise ValueError(f"Only file URIs are supported, got: {uri}")
    return Path(urllib.parse.unquote(parsed.path))


# Keyed by symbol kind value
SYMBOL_KIND_MAP = {
    "token": LspSymbolKind.Constant,
    "type": LspSymbolKind.TypeParameter,
    "rule": LspSymbolKind.Function,
    "nonterminal": LspSymbolKind.Function,
    "parameterized_rule": LspSymbolKind.Method,
    "union": LspSymbolKind.Struct,
    "start": LspSymbolKind.Module,
}


def symbol_detail(symbol: 'GrammarSymbol') -> str:
    """Outline detail: kind, parameters, type tag and usage counts."""
    detail = symbol.kind.value

    if symbol.parameters:
        detail += f"({', '.join(symbol.parameters)})"

    if symbol.type_tag:
        detail += f" <{symbol.type_tag}>"

    usages = []
    if symbol.references:
        usages.append(f"{len(symbol.references)} refs")
    if symbol.parameterized_calls:
        usages.append(f"{len(symbol.parameterized_calls)} calls")
    if usages:
        detail += f" [{', '.join(usages)}]"

    return detail


def to_lsp_document_symbol(symbol: 'GrammarSymbol') -> DocumentSymbol:
    """Convert a defined symbol to an LSP document symbol."""
    return DocumentSymbol(
        name=symbol.display_name,
        detail=symbol_detail(symbol),
        kind=SYMBOL_KIND_MAP.get(symbol.kind.value, LspSymbolKind.Variable),
        range=to_lsp_range(symbol.definition.range),
        selection_range=to_lsp_range(symbol.definition.name_range),
    )


def document_symbols(table: 'SymbolTable') -> List[DocumentSymbol]:
    """Outline of a grammar file, parameterized rules first."""
    return [to_lsp_document_symbol(symbol) for symbol in table.defined_symbols()]


__all__ = [
    "DIAGNOSTIC_SOURCE",
    "LramaDiagnostic",
    "LramaDiagnosticSeverity",
    "LramaLocation",
    "document_symbols",
    "lsp_position_to_position",
    "path_to_uri",
    "symbol_detail",
    "to_lsp_document_symbol",
    "to_lsp_position",
    "to_lsp_range",
    "uri_to_path",
]
