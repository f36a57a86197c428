"""
Hover support for grammar files.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
import re
from typing import List, Optional

from lsprotocol.types import Hover, MarkupContent, MarkupKind

from ..span import Position, SpanBuilder
from ..analysis.symbols import GrammarSymbol, SymbolKind, SymbolTable

logger = logging.getLogger(__name__)

WORD_CHARACTER = re.compile(r"[A-Za-z0-9_\-]")

# Preview limits for definitions shown in hovers
PREVIEW_MAX_LINES = 5
PREVIEW_MAX_WIDTH = 80

KIND_LABELS = {
    SymbolKind.TOKEN: "Token",
    SymbolKind.TYPE: "Type Declaration",
    SymbolKind.RULE: "Grammar Rule",
    SymbolKind.NONTERMINAL: "Nonterminal",
    SymbolKind.PARAMETERIZED_RULE: "Parameterized Rule",
    SymbolKind.UNION: "Union Type",
    SymbolKind.START: "Start Symbol",
}

BUILTIN_DOCS = {
    "option": (
        "**Built-in Function**: `option(X)`\n\n"
        "Makes X optional (zero or one occurrences).\n\n"
        "**Example**:\n```yacc\nrule: option(expr)\n// Expands to:\n// rule: /* empty */ | expr\n```"
    ),
    "ioption": (
        "**Built-in Function**: `ioption(X)`\n\n"
        "Inline option - expands directly without creating intermediate rule.\n\n"
        "**Example**:\n```yacc\nrule: ioption(expr) stmt\n// Expands inline to:\n// rule: stmt | expr stmt\n```"
    ),
    "list": (
        "**Built-in Function**: `list(X)`\n\n"
        "Zero or more occurrences of X.\n\n"
        "**Example**:\n```yacc\nrule: list(stmt)\n// Expands to:\n// rule: /* empty */ | rule stmt\n```"
    ),
    "nonempty_list": (
        "**Built-in Function**: `nonempty_list(X)`\n\n"
        "One or more occurrences of X.\n\n"
        "**Example**:\n```yacc\nrule: nonempty_list(stmt)\n// Expands to:\n// rule: stmt | rule stmt\n```"
    ),
    "separated_list": (
        "**Built-in Function**: `separated_list(SEP, X)`\n\n"
        "Zero or more X separated by SEP.\n\n"
        "**Example**:\n```yacc\nrule: separated_list(',', expr)\n"
        "// Matches: /* empty */ | expr | expr ',' expr ',' expr ...\n```"
    ),
    "separated_nonempty_list": (
        "**Built-in Function**: `separated_nonempty_list(SEP, X)`\n\n"
        "One or more X separated by SEP.\n\n"
        "**Example**:\n```yacc\nrule: separated_nonempty_list(',', expr)\n"
        "// Matches: expr | expr ',' expr | expr ',' expr ',' expr ...\n```"
    ),
    "preceded": (
        "**Built-in Function**: `preceded(A, X)`\n\n"
        "Matches A followed by X, returns only X.\n\n"
        "**Example**:\n```yacc\nrule: preceded('(', expr)\n// Matches: '(' expr\n```"
    ),
    "terminated": (
        "**Built-in Function**: `terminated(X, A)`\n\n"
        "Matches X followed by A, returns only X.\n\n"
        "**Example**:\n```yacc\nrule: terminated(expr, ';')\n// Matches: expr ';'\n```"
    ),
    "delimited": (
        "**Built-in Function**: `delimited(OPEN, X, CLOSE)`\n\n"
        "Matches OPEN X CLOSE, returns only X.\n\n"
        "**Example**:\n```yacc\nrule: delimited('(', expr, ')')\n// Matches: '(' expr ')'\n```"
    ),
    "error": (
        "**Reserved Token**: `error`\n\n"
        "Special token for error recovery.\n\n"
        "**Usage**:\n```yacc\nstmt: expr ';'\n    | error ';' { yyerrok; }\n    ;\n```\n\n"
        "When a syntax error occurs, the parser can recover by matching the `error` token."
    ),
    "YYEOF": (
        "**Reserved Token**: `YYEOF`\n\n"
        "End-of-file token. Automatically added to the end of the input."
    ),
    "YYUNDEF": (
        "**Reserved Token**: `YYUNDEF`\n\n"
        "Undefined token. Used for tokens that don't match any defined pattern."
    ),
}

DIRECTIVE_DOCS = {
    "%token": (
        "**Directive**: `%token`\n\nDeclares terminal symbols (tokens).\n\n"
        "**Syntax**:\n```yacc\n%token TOKEN_NAME\n%token <type> TYPED_TOKEN\n%token TOKEN1 TOKEN2 TOKEN3\n```"
    ),
    "%type": (
        "**Directive**: `%type`\n\nDeclares the type of nonterminals.\n\n"
        "**Syntax**:\n```yacc\n%type <type> nonterminal1 nonterminal2\n```"
    ),
    "%nterm": (
        "**Directive**: `%nterm`\n\nDeclares nonterminal symbols with optional type.\n\n"
        "**Syntax**:\n```yacc\n%nterm <type> nonterminal\n```"
    ),
    "%start": (
        "**Directive**: `%start`\n\nSpecifies the start symbol of the grammar.\n\n"
        "**Syntax**:\n```yacc\n%start program\n```"
    ),
    "%union": (
        "**Directive**: `%union`\n\nDefines the union type for semantic values.\n\n"
        "**Syntax**:\n```yacc\n%union {\n    int ival;\n    double dval;\n    char *sval;\n}\n```"
    ),
    "%left": (
        "**Directive**: `%left`\n\nDeclares left-associative operators.\n\n"
        "**Syntax**:\n```yacc\n%left '+' '-'\n%left '*' '/'\n```\n\n"
        "Later declarations have higher precedence."
    ),
    "%right": (
        "**Directive**: `%right`\n\nDeclares right-associative operators.\n\n"
        "**Syntax**:\n```yacc\n%right '^'\n%right '='\n```"
    ),
    "%nonassoc": (
        "**Directive**: `%nonassoc`\n\nDeclares non-associative operators.\n\n"
        "**Syntax**:\n```yacc\n%nonassoc '<' '>' LEQ GEQ\n```\n\n"
        "These operators cannot be chained."
    ),
    "%precedence": (
        "**Directive**: `%precedence`\n\nDeclares precedence without associativity.\n\n"
        "**Syntax**:\n```yacc\n%precedence NEG\n```"
    ),
    "%prec": (
        "**Directive**: `%prec`\n\nOverrides precedence for a specific rule.\n\n"
        "**Syntax**:\n```yacc\nexpr: '-' expr %prec NEG\n```"
    ),
    "%rule": (
        "**Directive**: `%rule` *(Lrama extension)*\n\nDefines a parameterized rule.\n\n"
        "**Syntax**:\n```yacc\n%rule list(X): /* empty */\n            | list(X) X\n            ;\n```"
    ),
    "%inline": (
        "**Directive**: `%inline` *(Lrama extension)*\n\nInlines a rule at its usage points.\n\n"
        "**Syntax**:\n```yacc\n%rule %inline op: '+' | '-' ;\n```"
    ),
    "%empty": (
        "**Directive**: `%empty`\n\nExplicitly marks an empty rule.\n\n"
        "**Syntax**:\n```yacc\noptional: %empty\n        | value\n        ;\n```"
    ),
    "%destructor": (
        "**Directive**: `%destructor`\n\nDefines cleanup code for semantic values.\n\n"
        "**Syntax**:\n```yacc\n%destructor { free($$); } <string>\n```"
    ),
    "%printer": (
        "**Directive**: `%printer`\n\nDefines debug printing for semantic values.\n\n"
        "**Syntax**:\n```yacc\n%printer { fprintf(yyoutput, \"%d\", $$); } <int>\n```"
    ),
    "%define": (
        "**Directive**: `%define`\n\nSets parser configuration variables.\n\n"
        "**Common uses**:\n```yacc\n%define lr.type ielr\n%define api.pure full\n```"
    ),
    "%locations": "**Directive**: `%locations`\n\nEnables location tracking for better error messages.",
    "%no-stdlib": (
        "**Directive**: `%no-stdlib` *(Lrama extension)*\n\n"
        "Disables Lrama standard library (parameterized rules)."
    ),
    "%debug": "**Directive**: `%debug`\n\nEnables debug output in the generated parser.",
    "%error-verbose": "**Directive**: `%error-verbose`\n\nGenerates more detailed error messages.",
}


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


class HoverProvider:
    """Builds markdown hovers from the symbol table of one analysis."""

    def __init__(self, symbol_table: SymbolTable, content: str):
        self.symbol_table = symbol_table
        self.spans = SpanBuilder(content)

    def get_hover(self, position: Position) -> Optional[Hover]:
        symbol = self.symbol_table.lookup_at(position)
        if symbol:
            return self._markdown(self.symbol_hover_content(symbol))

        word = self.word_at(position)
        if word:
            text = BUILTIN_DOCS.get(word) or DIRECTIVE_DOCS.get(word)
            if text:
                return self._markdown(text)
        return None

    def word_at(self, position: Position) -> Optional[str]:
        """Return the word under the position; a preceding '%' is included."""
        line = self.spans.line_text(position.line)
        if line is None:
            return None

        start = end = min(position.column, len(line))
        if start > 0 and line[start - 1] == "%":
            start -= 1
        while start > 0 and WORD_CHARACTER.match(line[start - 1]):
            start -= 1
        while end < len(line) and WORD_CHARACTER.match(line[end]):
            end += 1

        # Also pick up the '%' in front of a word entered from its middle
        if start > 0 and line[start - 1] == "%" and line[start] != "%":
            start -= 1

        word = line[start:end]
        return word or None

    def symbol_hover_content(self, symbol: GrammarSymbol) -> str:
        lines = [f"**{KIND_LABELS.get(symbol.kind, 'Symbol')}**: `{symbol.name}`"]

        if symbol.type_tag:
            lines.append(f"\n**Type**: `<{symbol.type_tag}>`")

        if symbol.parameters:
            lines.append(f"\n**Parameters**: `({', '.join(symbol.parameters)})`")

        ref_count = len(symbol.references)
        call_count = len(symbol.parameterized_calls)
        if ref_count or call_count:
            lines.append("\n---\n**Usage**:")
            if ref_count:
                lines.append(f"- {_plural(ref_count, 'reference')}")
            if call_count:
                lines.append(f"- {_plural(call_count, 'parameterized call')}")

        preview = self.definition_preview(symbol)
        if preview:
            lines.append("\n---\n**Definition**:")
            lines.append("```yacc")
            lines.append(preview)
            lines.append("```")

        if symbol.is_parameterized:
            lines.append(
                "\n*This is a parameterized rule that can be called with different arguments.*"
            )

        if symbol.name == self.symbol_table.start_symbol:
            lines.append("\n**Note**: This is the start symbol of the grammar.")

        return "\n".join(lines)

    def definition_preview(self, symbol: GrammarSymbol) -> Optional[str]:
        if not symbol.definition:
            return None

        definition_range = symbol.definition.range
        start_line = definition_range.start.line
        end_line = min(definition_range.end.line, start_line + PREVIEW_MAX_LINES)

        preview: List[str] = []
        for line_num in range(start_line, end_line + 1):
            text = self.spans.line_text(line_num)
            if text is None:
                break
            text = text.strip()
            if len(text) > PREVIEW_MAX_WIDTH:
                text = text[:PREVIEW_MAX_WIDTH - 3] + "..."
            preview.append(text)

        if end_line < definition_range.end.line:
            preview.append("    ...")

        return "\n".join(preview) if preview else None

    @staticmethod
    def _markdown(value: str) -> Hover:
        return Hover(contents=MarkupContent(kind=MarkupKind.Markdown, value=value))


__all__ = [
    "BUILTIN_DOCS",
    "DIRECTIVE_DOCS",
    "HoverProvider",
]
