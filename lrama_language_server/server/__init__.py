"""
LSP server implementation for the Lrama Language Server.

Every open document is re-analysed from scratch on open and change. The
latest analysis of a document replaces the previous one as a whole, so
requests always see a complete symbol table.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
from typing import List, Optional

from pygls.server import LanguageServer
from lsprotocol.types import (
    INITIALIZE,
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DEFINITION,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DOCUMENT_SYMBOL,
    TEXT_DOCUMENT_HOVER,
    TEXT_DOCUMENT_REFERENCES,
    CompletionItem,
    CompletionList,
    CompletionOptions,
    CompletionParams,
    DefinitionParams,
    Diagnostic,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DocumentSymbol,
    DocumentSymbolParams,
    Hover,
    HoverParams,
    InitializeParams,
    Location,
    ReferenceParams,
)

from .. import __version__, internal_error
from ..config import Config
from ..analysis import DocumentStore
from ..lsp_data import (
    LramaLocation,
    document_symbols,
    lsp_position_to_position,
    uri_to_path,
)
from ..span import Position
from .completion import CompletionProvider
from .hover import HoverProvider

logger = logging.getLogger(__name__)


class LramaLanguageServer(LanguageServer):
    """Lrama Language Server implementation."""

    def __init__(self):
        super().__init__("lrama-language-server", __version__)

        self.config = Config()
        self.documents = DocumentStore(self.config.build_policy(), self.config.rule_configs)

        # Register LSP handlers
        self._register_handlers()

    def _register_handlers(self) -> None:
        """Register LSP message handlers."""

        @self.feature(INITIALIZE)
        def initialize(params: InitializeParams) -> None:
            """Handle initialize request."""
            logger.info("Initializing Lrama Language Server")

            if params.root_uri:
                try:
                    self.config.workspace_root = uri_to_path(params.root_uri)
                except ValueError as e:
                    logger.warning(f"Ignoring workspace root: {e}")

            self.apply_initialization_options(params.initialization_options)

        @self.feature(TEXT_DOCUMENT_DID_OPEN)
        def did_open(params: DidOpenTextDocumentParams) -> None:
            """Handle document open."""
            uri = params.text_document.uri
            self._publish(uri, self.analyze_document(uri, params.text_document.text))

        @self.feature(TEXT_DOCUMENT_DID_CHANGE)
        def did_change(params: DidChangeTextDocumentParams) -> None:
            """Handle document change."""
            uri = params.text_document.uri
            document = self.workspace.get_text_document(uri)
            self._publish(uri, self.analyze_document(uri, document.source))

        @self.feature(TEXT_DOCUMENT_DID_CLOSE)
        def did_close(params: DidCloseTextDocumentParams) -> None:
            """Handle document close."""
            uri = params.text_document.uri
            self.documents.remove(uri)
            self._publish(uri, [])

        @self.feature(TEXT_DOCUMENT_DEFINITION)
        def definition(params: DefinitionParams) -> Optional[List[Location]]:
            """Handle go-to-definition request."""
            try:
                position = lsp_position_to_position(params.position)
                return self.find_definition(params.text_document.uri, position)
            except Exception as e:
                logger.error(f"Error in definition: {e}")
                return None

        @self.feature(TEXT_DOCUMENT_REFERENCES)
        def references(params: ReferenceParams) -> Optional[List[Location]]:
            """Handle find references request."""
            try:
                position = lsp_position_to_position(params.position)
                include_declaration = bool(params.context and params.context.include_declaration)
                return self.find_references(params.text_document.uri, position, include_declaration)
            except Exception as e:
                logger.error(f"Error in references: {e}")
                return None

        @self.feature(TEXT_DOCUMENT_DOCUMENT_SYMBOL)
        def document_symbol(params: DocumentSymbolParams) -> Optional[List[DocumentSymbol]]:
            """Handle document symbol request."""
            try:
                return self.get_document_symbols(params.text_document.uri)
            except Exception as e:
                logger.error(f"Error in document symbol: {e}")
                return []

        @self.feature(TEXT_DOCUMENT_HOVER)
        def hover(params: HoverParams) -> Optional[Hover]:
            """Handle hover request."""
            try:
                position = lsp_position_to_position(params.position)
                return self.get_hover(params.text_document.uri, position)
            except Exception as e:
                logger.error(f"Error in hover: {e}")
                return None

        @self.feature(TEXT_DOCUMENT_COMPLETION, CompletionOptions(trigger_characters=["%", "("]))
        def completion(params: CompletionParams) -> CompletionList:
            """Handle completion request."""
            try:
                position = lsp_position_to_position(params.position)
                items = self.get_completions(params.text_document.uri, position)
            except Exception as e:
                logger.error(f"Error in completion: {e}")
                items = []
            return CompletionList(is_incomplete=False, items=items)

    def apply_initialization_options(self, options) -> None:
        """Apply client initialization options and rebuild the validation policy."""
        self.config.set_initialization_options(options)
        self.documents.policy = self.config.build_policy()
        self.documents.rule_configs = self.config.rule_configs

    def analyze_document(self, uri: str, content: str) -> List[Diagnostic]:
        """Analyze a document and return the diagnostics to publish."""
        try:
            analysis = self.documents.update(uri, content)
        except Exception as e:
            internal_error("analysis of {} failed: {}", uri, e)
            return []

        if not self.config.is_diagnostics_enabled():
            return []

        diagnostics = [diagnostic.to_lsp_diagnostic() for diagnostic in analysis.diagnostics]

        # Limit diagnostics per file
        max_diagnostics = self.config.get_max_diagnostics_per_file()
        if len(diagnostics) > max_diagnostics:
            diagnostics = diagnostics[:max_diagnostics]

        return diagnostics

    def _publish(self, uri: str, diagnostics: List[Diagnostic]) -> None:
        self.publish_diagnostics(uri, diagnostics)

    def find_definition(self, uri: str, position: Position) -> Optional[List[Location]]:
        """Location of the definition of the symbol at a position."""
        symbol = self.documents.get_symbol_at_position(uri, position)
        if not symbol or not symbol.definition:
            return None
        return [LramaLocation(uri, symbol.definition.range).to_lsp_location()]

    def find_references(
        self,
        uri: str,
        position: Position,
        include_declaration: bool = False
    ) -> Optional[List[Location]]:
        """Locations of all uses of the symbol at a position."""
        symbol = self.documents.get_symbol_at_position(uri, position)
        if not symbol:
            return None

        ranges = []
        if include_declaration and symbol.definition:
            ranges.append(symbol.definition.name_range)
        ranges.extend(ref.range for ref in symbol.references)
        ranges.extend(call.range for call in symbol.parameterized_calls)

        return [LramaLocation(uri, range_).to_lsp_location() for range_ in ranges]

    def get_document_symbols(self, uri: str) -> Optional[List[DocumentSymbol]]:
        analysis = self.documents.get(uri)
        if not analysis:
            return None
        return document_symbols(analysis.symbol_table)

    def get_hover(self, uri: str, position: Position) -> Optional[Hover]:
        analysis = self.documents.get(uri)
        if not analysis:
            return None
        return HoverProvider(analysis.symbol_table, analysis.content).get_hover(position)

    def get_completions(self, uri: str, position: Position) -> List[CompletionItem]:
        analysis = self.documents.get(uri)
        if not analysis:
            return []
        return CompletionProvider(analysis.symbol_table, analysis.content).get_completions(position)


def run_server() -> int:
    """
    Run the Lrama Language Server over stdio.

    Returns:
        Exit code
    """
    try:
        server = LramaLanguageServer()
        server.start_io()
        return 0

    except Exception as e:
        logger.error(f"Server error: {e}")
        return 1


# Export main functions
__all__ = [
    "LramaLanguageServer",
    "run_server"
]
