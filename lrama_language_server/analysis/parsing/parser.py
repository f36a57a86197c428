"""
Section-aware parser for Lrama grammar files.

Consumes the token sequence produced by the lexer, tracks which grammar
section is active and fills a symbol table with every definition, reference
and parameterized-rule call it sees. The parser never raises on malformed
input: each step consumes at least one token, and unbalanced blocks simply
run to the end of the input.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
from enum import Enum
from typing import AbstractSet, Callable, Dict, List, Optional

from ...span import Position, Range
from ..symbols import GrammarSymbol, SymbolDefinition, SymbolKind, SymbolTable
from .lexer import Token, TokenType, tokenize

logger = logging.getLogger(__name__)

SUFFIX_OPERATORS = "?*+"

_NO_PARAMETERS: AbstractSet[str] = frozenset()


class Section(Enum):
    """Top-level regions of a grammar file."""
    DECLARATIONS = "declarations"
    RULES = "rules"
    EPILOGUE = "epilogue"


class GrammarParser:
    """Parser for grammar files."""

    def __init__(self, tokens: List[Token]):
        if not tokens or tokens[-1].type != TokenType.EOF:
            tokens = list(tokens) + [Token(TokenType.EOF, "", 0, 0, 0)]
        self.tokens = tokens
        self.position = 0
        self.section = Section.DECLARATIONS
        self.symbol_table = SymbolTable()

        self._declaration_handlers: Dict[str, Callable[[], None]] = {
            "%token": lambda: self._parse_symbol_list(SymbolKind.TOKEN),
            "%type": lambda: self._parse_symbol_list(SymbolKind.TYPE),
            "%nterm": lambda: self._parse_symbol_list(SymbolKind.NONTERMINAL),
            "%start": self._parse_start_declaration,
            "%union": self._parse_union_declaration,
            "%left": self._parse_precedence_declaration,
            "%right": self._parse_precedence_declaration,
            "%nonassoc": self._parse_precedence_declaration,
            "%precedence": self._parse_precedence_declaration,
            "%destructor": self._parse_code_block_declaration,
            "%printer": self._parse_code_block_declaration,
            "%rule": self._parse_parameterized_rule_declaration,
        }

    @classmethod
    def from_text(cls, content: str) -> 'GrammarParser':
        """Create a parser over freshly scanned text."""
        return cls(tokenize(content))

    def parse(self) -> SymbolTable:
        """Parse the token stream and return the populated symbol table."""
        while not self._is_at_end():
            start = self.position
            token = self._current_token()

            if token.type == TokenType.SEPARATOR:
                self._advance_section()
                self.position += 1
            elif self.section == Section.DECLARATIONS:
                self._parse_declaration()
            elif self.section == Section.RULES:
                self._parse_rule()
            else:
                # Epilogue is user code
                self.position += 1

            if self.position == start:
                self.position += 1

        logger.debug(f"Parsed {len(self.symbol_table)} symbols, ended in {self.section.value} section")
        return self.symbol_table

    def _advance_section(self) -> None:
        if self.section == Section.DECLARATIONS:
            self.section = Section.RULES
        elif self.section == Section.RULES:
            self.section = Section.EPILOGUE
        logger.debug(f"Entering {self.section.value} section at line {self._current_token().line}")

    # Declarations section

    def _parse_declaration(self) -> None:
        """Parse one item of the declarations section."""
        token = self._current_token()

        if token.type == TokenType.DIRECTIVE:
            handler = self._declaration_handlers.get(token.value)
            if handler:
                handler()
            else:
                self.position += 1
                self._skip_to_end_of_line(token.line)
        elif token.type == TokenType.PROLOGUE_START:
            self._skip_prologue()
        else:
            self.position += 1

    def _parse_symbol_list(self, kind: SymbolKind) -> None:
        """Parse %token, %type and %nterm declarations."""
        self.position += 1  # Skip directive

        type_tag = self._consume_type_tag()

        while not self._is_at_end():
            token = self._current_token()

            if token.type == TokenType.IDENTIFIER:
                symbol = self.symbol_table.define(token.value, kind, SymbolDefinition.at(token.range))
                if type_tag:
                    symbol.type_tag = type_tag
                self.position += 1
            elif self._is_end_of_declaration(token):
                break
            else:
                # Character and string aliases, numbers, stray tags
                self.position += 1

    def _parse_start_declaration(self) -> None:
        """Parse %start."""
        self.position += 1  # Skip %start

        token = self._current_token()
        if token.type == TokenType.IDENTIFIER:
            self.symbol_table.define(token.value, SymbolKind.START, SymbolDefinition.at(token.range))
            self.symbol_table.start_symbol = token.value
            self.position += 1

    def _parse_union_declaration(self) -> None:
        """Parse %union; its body is opaque."""
        self.position += 1  # Skip %union
        self._skip_to_special("{")
        self._skip_balanced("{", "}")

    def _parse_precedence_declaration(self) -> None:
        """Parse %left, %right, %nonassoc and %precedence."""
        self.position += 1  # Skip directive

        while not self._is_at_end():
            token = self._current_token()

            if token.type in (TokenType.IDENTIFIER, TokenType.CHARACTER):
                # Precedence-listed terminals are implicitly tokens
                self.symbol_table.define(token.value, SymbolKind.TOKEN, SymbolDefinition.at(token.range))
                self.position += 1
            elif self._is_end_of_declaration(token):
                break
            else:
                self.position += 1

    def _parse_code_block_declaration(self) -> None:
        """Parse %destructor and %printer."""
        self.position += 1  # Skip directive
        self._skip_to_special("{")
        self._skip_balanced("{", "}")

    def _parse_parameterized_rule_declaration(self) -> None:
        """
        Parse a %rule declaration.

        With a parameter list the rule is a template stored in the
        parameterized namespace; without one it is an ordinary rule.
        """
        directive = self._current_token()
        self.position += 1  # Skip %rule

        token = self._current_token()
        if token.type == TokenType.DIRECTIVE and token.value == "%inline":
            self.position += 1
            token = self._current_token()

        if token.type != TokenType.IDENTIFIER:
            return

        name_token = token
        self.position += 1

        parameters: List[str] = []
        is_parameterized = False
        if self._current_token().is_special("("):
            is_parameterized = True
            parameters = self._parse_parameter_list()

        definition = SymbolDefinition.at(name_token.range)
        symbol: GrammarSymbol
        if is_parameterized:
            symbol = self.symbol_table.define_parameterized(name_token.value, definition, parameters)
        else:
            symbol = self.symbol_table.define(name_token.value, SymbolKind.RULE, definition)

        type_tag = self._consume_type_tag()
        if type_tag is not None:
            symbol.type_tag = type_tag

        if self._current_token().is_special(":"):
            self.position += 1
            self._parse_rule_body(frozenset(parameters))
            if symbol.definition is definition:
                symbol.definition = SymbolDefinition(
                    range=self._range_to_last_consumed(directive),
                    name_range=definition.name_range
                )

    def _parse_parameter_list(self) -> List[str]:
        """Parse ``( A, B )`` after a %rule name."""
        self.position += 1  # Skip '('
        parameters = []

        while not self._is_at_end():
            token = self._current_token()
            self.position += 1
            if token.is_special(")"):
                break
            if token.type == TokenType.IDENTIFIER:
                parameters.append(token.value)

        return parameters

    # Rules section

    def _parse_rule(self) -> None:
        """Parse one item of the rules section."""
        token = self._current_token()

        if token.type == TokenType.DIRECTIVE and token.value == "%rule":
            self._parse_parameterized_rule_declaration()
            return

        if token.type == TokenType.IDENTIFIER:
            next_index = self.position + 1

            # A named reference on the rule itself: name[alias]:
            if self._token_at(next_index).is_special("["):
                next_index += 1
                while next_index < len(self.tokens) - 1 and self.tokens[next_index].value != "]":
                    next_index += 1
                next_index += 1

            if self._token_at(next_index).is_special(":"):
                definition = SymbolDefinition.at(token.range)
                symbol = self.symbol_table.define(token.value, SymbolKind.RULE, definition)
                self.position = next_index + 1
                self._parse_rule_body(_NO_PARAMETERS)
                if symbol.definition is definition:
                    symbol.definition = SymbolDefinition(
                        range=self._range_to_last_consumed(token),
                        name_range=definition.name_range
                    )
                return

        self.position += 1

    def _parse_rule_body(self, parameters: AbstractSet[str]) -> None:
        """
        Parse alternatives up to the terminating semicolon.

        Names in ``parameters`` are the formal parameters of the enclosing
        template; they are placeholders and never become references.
        """
        while not self._is_at_end():
            token = self._current_token()

            if token.is_special(";"):
                self.position += 1
                break

            if token.type == TokenType.SEPARATOR:
                # Missing semicolon; let the section machine see the separator
                break

            if token.is_special("|"):
                self.position += 1
                continue

            if token.is_special("{"):
                self._skip_balanced("{", "}")
                # Midrule action type tag
                self._consume_type_tag()
                continue

            if token.type == TokenType.DIRECTIVE:
                self.position += 1
                if token.value == "%prec":
                    prec_token = self._current_token()
                    if prec_token.type in (TokenType.IDENTIFIER, TokenType.CHARACTER):
                        self.symbol_table.reference(prec_token.value, prec_token.range)
                        self.position += 1
                continue

            if token.type == TokenType.IDENTIFIER:
                if self._token_at(self.position + 1).is_special("("):
                    self._parse_parameterized_call(parameters)
                else:
                    self.position += 1
                    if token.value not in parameters:
                        self.symbol_table.reference(token.value, token.range)
                self._skip_named_reference()
                self._consume_suffix()
                continue

            if token.type == TokenType.CHARACTER:
                self.position += 1
                self._consume_suffix()
                continue

            self.position += 1

    def _parse_parameterized_call(self, parameters: AbstractSet[str]) -> str:
        """
        Parse ``name(arg, ...)`` and record it against the template ``name``.

        The recorded range runs from the name to the closing parenthesis.
        """
        name_token = self._current_token()
        self.position += 2  # Skip name and '('

        arguments = self._parse_argument_list(parameters)
        call_range = self._range_to_last_consumed(name_token)
        self.symbol_table.parameterized_call(name_token.value, call_range, arguments)
        return name_token.value

    def _parse_argument_list(self, parameters: AbstractSet[str]) -> List[str]:
        """Parse call arguments after the opening parenthesis."""
        arguments: List[str] = []

        while not self._is_at_end():
            token = self._current_token()

            if token.is_special(")"):
                self.position += 1
                break

            if token.is_special("("):
                # Parenthesised group without a name
                self._skip_balanced("(", ")")
            elif token.type == TokenType.IDENTIFIER:
                if self._token_at(self.position + 1).is_special("("):
                    arguments.append(self._parse_parameterized_call(parameters))
                else:
                    arguments.append(token.value)
                    # An actual argument names a real grammar symbol
                    if token.value not in parameters:
                        self.symbol_table.reference(token.value, token.range)
                    self.position += 1
            elif token.type == TokenType.CHARACTER:
                arguments.append(token.value)
                self.position += 1
            else:
                # Commas, suffixes, aliases
                self.position += 1

        return arguments

    # Skipping helpers

    def _skip_prologue(self) -> None:
        """Skip a %{ ... %} block."""
        self.position += 1  # Skip %{

        while not self._is_at_end():
            token = self._current_token()
            self.position += 1
            if token.type == TokenType.PROLOGUE_END:
                break

    def _skip_balanced(self, opening: str, closing: str) -> None:
        """Skip a balanced region that starts at the current token."""
        depth = 0

        while not self._is_at_end():
            token = self._current_token()
            self.position += 1
            if token.is_special(opening):
                depth += 1
            elif token.is_special(closing):
                depth -= 1
                if depth <= 0:
                    break

    def _skip_named_reference(self) -> None:
        """Skip a bracketed alias such as ``[lhs]``; aliases are not symbol uses."""
        if not self._current_token().is_special("["):
            return

        self.position += 1  # Skip '['
        while not self._is_at_end():
            token = self._current_token()
            self.position += 1
            if token.is_special("]"):
                break

    def _skip_to_special(self, char: str) -> None:
        while not self._is_at_end() and not self._current_token().is_special(char):
            self.position += 1

    def _skip_to_end_of_line(self, line: int) -> None:
        while not self._is_at_end() and self._current_token().line == line:
            self.position += 1

    def _consume_suffix(self) -> None:
        if self._current_token().is_special(SUFFIX_OPERATORS):
            self.position += 1

    def _consume_type_tag(self) -> Optional[str]:
        token = self._current_token()
        if token.type == TokenType.TYPE_TAG:
            self.position += 1
            return token.value
        return None

    # Cursor helpers

    def _current_token(self) -> Token:
        return self._token_at(self.position)

    def _token_at(self, index: int) -> Token:
        if index >= len(self.tokens):
            return self.tokens[-1]  # EOF token
        return self.tokens[index]

    def _is_at_end(self) -> bool:
        return self._current_token().type == TokenType.EOF

    def _range_to_last_consumed(self, first: Token) -> Range:
        """Range from the start of ``first`` to the end of the last consumed token."""
        last = self._token_at(self.position - 1)
        start = Position(first.line, first.column)
        end = Position(last.line, last.column + last.length)
        if end < start:
            end = Position(first.line, first.column + first.length)
        return Range(start, end)

    @staticmethod
    def _is_end_of_declaration(token: Token) -> bool:
        return token.type in (
            TokenType.DIRECTIVE,
            TokenType.SEPARATOR,
            TokenType.PROLOGUE_START,
        )


def parse(content: str) -> SymbolTable:
    """Scan and parse grammar text into a symbol table."""
    return GrammarParser.from_text(content).parse()


__all__ = [
    "GrammarParser",
    "Section",
    "parse",
]
