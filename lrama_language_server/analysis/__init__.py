"""
Analysis module for the Lrama Language Server.

One analysis pass scans a grammar file, parses it into a symbol table and
validates the table. Passes share no state: re-analysing a document builds a
fresh table that replaces the previous one.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
import threading
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from ..span import Position
from ..lsp_data import LramaDiagnostic
from .symbols import (
    GrammarSymbol,
    ParameterizedCall,
    SymbolDefinition,
    SymbolKind,
    SymbolReference,
    SymbolTable,
)
from .types import DiagnosticKind, LramaError
from .parsing import GrammarParser, LramaLexer, Token, TokenType

if TYPE_CHECKING:
    from ..lint.rules import ValidationPolicy

logger = logging.getLogger(__name__)


class GrammarAnalysis:
    """Result of analysing the text of a single grammar file."""

    def __init__(self, content: str, symbol_table: SymbolTable, errors: List[LramaError]):
        self.content = content
        self.symbol_table = symbol_table
        self.errors = errors
        self.diagnostics: List[LramaDiagnostic] = [error.to_diagnostic() for error in errors]

    def get_symbol_at_position(self, position: Position) -> Optional[GrammarSymbol]:
        """Get the symbol at the given position."""
        return self.symbol_table.lookup_at(position)

    def get_diagnostics(self) -> List[LramaDiagnostic]:
        """Get all diagnostics for this file."""
        return self.diagnostics


def analyze(
    content: str,
    policy: Optional['ValidationPolicy'] = None,
    rule_configs: Optional[Dict[str, Dict[str, Any]]] = None
) -> GrammarAnalysis:
    """
    Run one full analysis pass over grammar text.

    Args:
        content: Grammar source text
        policy: Validation exclusion policy; the defaults apply when omitted
        rule_configs: Per-rule level and enabled overrides

    Returns:
        The symbol table and the diagnostics for the text
    """
    from ..lint import Validator

    tokens = LramaLexer(content).tokenize()
    symbol_table = GrammarParser(tokens).parse()
    errors = Validator(policy, rule_configs).validate(symbol_table)

    logger.debug(f"Analysis found {len(symbol_table)} symbols and {len(errors)} problems")
    return GrammarAnalysis(content, symbol_table, errors)


class DocumentStore:
    """Latest analysis of each open document, replaced on every update."""

    def __init__(
        self,
        policy: Optional['ValidationPolicy'] = None,
        rule_configs: Optional[Dict[str, Dict[str, Any]]] = None
    ):
        self.policy = policy
        self.rule_configs = rule_configs
        self._analyses: Dict[str, GrammarAnalysis] = {}
        self._lock = threading.RLock()

    def update(self, uri: str, content: str) -> GrammarAnalysis:
        """Analyse a document and publish the result as its latest analysis."""
        analysis = analyze(content, self.policy, self.rule_configs)
        with self._lock:
            self._analyses[uri] = analysis
        return analysis

    def get(self, uri: str) -> Optional[GrammarAnalysis]:
        with self._lock:
            return self._analyses.get(uri)

    def remove(self, uri: str) -> None:
        with self._lock:
            self._analyses.pop(uri, None)

    def get_symbol_at_position(self, uri: str, position: Position) -> Optional[GrammarSymbol]:
        """Get symbol at position in a document."""
        analysis = self.get(uri)
        if analysis:
            return analysis.get_symbol_at_position(position)
        return None

    def get_diagnostics(self, uri: str) -> List[LramaDiagnostic]:
        analysis = self.get(uri)
        if analysis:
            return analysis.get_diagnostics()
        return []

    def __contains__(self, uri: str) -> bool:
        with self._lock:
            return uri in self._analyses

    def __len__(self) -> int:
        with self._lock:
            return len(self._analyses)


# Export main classes
__all__ = [
    "DiagnosticKind",
    "DocumentStore",
    "GrammarAnalysis",
    "GrammarParser",
    "GrammarSymbol",
    "LramaError",
    "LramaLexer",
    "ParameterizedCall",
    "SymbolDefinition",
    "SymbolKind",
    "SymbolReference",
    "SymbolTable",
    "Token",
    "TokenType",
    "analyze",
]
