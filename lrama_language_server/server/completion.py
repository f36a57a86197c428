"""
Completion support for grammar files.

Suggestions depend on the section the caret is in, found by counting the
'%%' separators in the text before it.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
import re
from typing import List, Optional

from lsprotocol.types import CompletionItem, CompletionItemKind, InsertTextFormat

from ..span import Position, SpanBuilder
from ..analysis.symbols import SymbolKind, SymbolTable
from ..analysis.parsing import Section

logger = logging.getLogger(__name__)

RESERVED_TOKENS = ("error", "YYEOF", "YYUNDEF")

# (label, detail, snippet)
DIRECTIVE_SNIPPETS = [
    ("%token", "Declare tokens", "%token ${1:TOKEN}"),
    ("%type", "Declare type for nonterminals", "%type <${1:type}> ${2:nonterminal}"),
    ("%nterm", "Declare nonterminals", "%nterm <${1:type}> ${2:nonterminal}"),
    ("%start", "Specify start symbol", "%start ${1:symbol}"),
    ("%union", "Define union types", "%union {\n\t${1:int ival;}\n\t${2:char *sval;}\n}"),
    ("%left", "Left associative operator", "%left ${1:TOKEN}"),
    ("%right", "Right associative operator", "%right ${1:TOKEN}"),
    ("%nonassoc", "Non-associative operator", "%nonassoc ${1:TOKEN}"),
    ("%precedence", "Precedence declaration", "%precedence ${1:TOKEN}"),
    ("%rule", "Define parameterized rule", "%rule ${1:name}(${2:X}): ${3:/* empty */}\n\t| ${4:X}\n\t;"),
    ("%destructor", "Define destructor", "%destructor {\n\t${1:/* cleanup code */}\n} <${2:type}>"),
    ("%printer", "Define printer", '%printer {\n\t${1:fprintf(yyoutput, "%d", \\$\\$);}\n} <${2:type}>'),
    ("%define", "Set parser option", "%define ${1:lr.type} ${2:ielr}"),
    ("%locations", "Enable location tracking", "%locations"),
    ("%no-stdlib", "Disable standard library", "%no-stdlib"),
    ("%debug", "Enable debug mode", "%debug"),
    ("%error-verbose", "Verbose error messages", "%error-verbose"),
    ("%after-shift", "After shift callback", "%after-shift ${1:function_name}"),
    ("%before-reduce", "Before reduce callback", "%before-reduce ${1:function_name}"),
    ("%after-reduce", "After reduce callback", "%after-reduce ${1:function_name}"),
    ("%empty", "Empty rule", "%empty"),
    ("%prec", "Precedence modifier", "%prec ${1:TOKEN}"),
]

# (name, parameters, detail)
BUILTIN_FUNCTION_SIGNATURES = [
    ("option", ["X"], "Optional (0 or 1)"),
    ("ioption", ["X"], "Inline optional"),
    ("list", ["X"], "List (0 or more)"),
    ("nonempty_list", ["X"], "Non-empty list (1 or more)"),
    ("separated_list", ["separator", "X"], "Separated list"),
    ("separated_nonempty_list", ["separator", "X"], "Non-empty separated list"),
    ("preceded", ["opening", "X"], "Preceded by"),
    ("terminated", ["X", "closing"], "Terminated by"),
    ("delimited", ["opening", "X", "closing"], "Delimited by"),
]

PREC_PATTERN = re.compile(r"%prec\s+\S*$")
DIRECTIVE_PREFIX_PATTERN = re.compile(r"%[a-z\-]*$")
AFTER_RULE_PATTERN = re.compile(r"%rule\s+$")


def section_at(text_before: str) -> Optional[Section]:
    """Section containing the caret, or None past the epilogue."""
    separators = text_before.count("%%")
    if separators == 0:
        return Section.DECLARATIONS
    if separators == 1:
        return Section.RULES
    if separators == 2:
        return Section.EPILOGUE
    return None


def _snippet_call(name: str, parameters: List[str]) -> str:
    placeholders = ", ".join(f"${{{i}:{p}}}" for i, p in enumerate(parameters, start=1))
    return f"{name}({placeholders})"


class CompletionProvider:
    """Builds completion items from the symbol table of one analysis."""

    def __init__(self, symbol_table: SymbolTable, content: str):
        self.symbol_table = symbol_table
        self.spans = SpanBuilder(content)

    def get_completions(self, position: Position) -> List[CompletionItem]:
        line = self.spans.line_text(position.line) or ""
        line_prefix = line[:position.column]
        section = section_at(self.spans.text_before(position))

        items: List[CompletionItem] = []

        if section == Section.DECLARATIONS:
            items.extend(self.directive_completions())

        if section == Section.RULES:
            items.extend(self.symbol_completions())
            items.extend(self.parameterized_rule_completions())
            items.extend(self.builtin_function_completions())

            if PREC_PATTERN.search(line_prefix):
                items.extend(self.precedence_token_completions())

        if DIRECTIVE_PREFIX_PATTERN.search(line_prefix):
            items.extend(self.directive_completions())

        if AFTER_RULE_PATTERN.search(line_prefix):
            items.append(CompletionItem(
                label="%inline",
                kind=CompletionItemKind.Keyword,
                detail="Inline rule modifier",
                insert_text="%inline",
            ))

        logger.debug(f"Offering {len(items)} completions in {section}")
        return items

    @staticmethod
    def directive_completions() -> List[CompletionItem]:
        return [
            CompletionItem(
                label=label,
                kind=CompletionItemKind.Keyword,
                detail=detail,
                insert_text=snippet,
                insert_text_format=InsertTextFormat.Snippet,
            )
            for label, detail, snippet in DIRECTIVE_SNIPPETS
        ]

    def symbol_completions(self) -> List[CompletionItem]:
        items = []
        for symbol in self.symbol_table.defined_symbols():
            if symbol.kind == SymbolKind.PARAMETERIZED_RULE:
                continue

            if symbol.kind == SymbolKind.TOKEN:
                kind = CompletionItemKind.Constant
            elif symbol.kind in (SymbolKind.RULE, SymbolKind.NONTERMINAL):
                kind = CompletionItemKind.Function
            else:
                kind = CompletionItemKind.Variable

            detail = symbol.kind.value
            if symbol.type_tag:
                detail += f" <{symbol.type_tag}>"

            items.append(CompletionItem(label=symbol.name, kind=kind, detail=detail))

        for token in RESERVED_TOKENS:
            items.append(CompletionItem(
                label=token,
                kind=CompletionItemKind.Constant,
                detail="Reserved token",
            ))
        return items

    def parameterized_rule_completions(self) -> List[CompletionItem]:
        items = []
        for symbol in self.symbol_table.defined_symbols():
            if symbol.kind != SymbolKind.PARAMETERIZED_RULE or not symbol.parameters:
                continue
            items.append(CompletionItem(
                label=symbol.display_name,
                kind=CompletionItemKind.Method,
                detail="Parameterized rule",
                insert_text=_snippet_call(symbol.name, symbol.parameters),
                insert_text_format=InsertTextFormat.Snippet,
            ))
        return items

    @staticmethod
    def builtin_function_completions() -> List[CompletionItem]:
        return [
            CompletionItem(
                label=f"{name}({', '.join(parameters)})",
                kind=CompletionItemKind.Function,
                detail=detail,
                insert_text=_snippet_call(name, parameters),
                insert_text_format=InsertTextFormat.Snippet,
            )
            for name, parameters, detail in BUILTIN_FUNCTION_SIGNATURES
        ]

    def precedence_token_completions(self) -> List[CompletionItem]:
        return [
            CompletionItem(
                label=symbol.name,
                kind=CompletionItemKind.Constant,
                detail="Precedence token",
            )
            for symbol in self.symbol_table.defined_symbols()
            if symbol.kind == SymbolKind.TOKEN
        ]


__all__ = [
    "CompletionProvider",
    "RESERVED_TOKENS",
    "section_at",
]
