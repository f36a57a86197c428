"""
Symbol table for grammar analysis.

Plain symbols (tokens, rules, nonterminals, types, the start symbol) and
parameterized-rule templates live in two separate namespaces, because a
template and a plain rule may share a base name.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set, Tuple

from ..span import Position, Range

logger = logging.getLogger(__name__)


class SymbolKind(Enum):
    """Kinds of grammar symbols."""
    TOKEN = "token"
    TYPE = "type"
    RULE = "rule"
    NONTERMINAL = "nonterminal"
    PARAMETERIZED_RULE = "parameterized_rule"
    UNION = "union"
    START = "start"


@dataclass(frozen=True)
class SymbolDefinition:
    """Where a symbol is defined."""
    range: Range
    name_range: Range

    @classmethod
    def at(cls, range_: Range) -> 'SymbolDefinition':
        return cls(range=range_, name_range=range_)


@dataclass(frozen=True)
class SymbolReference:
    """An ordinary use of a symbol name."""
    range: Range


@dataclass(frozen=True)
class ParameterizedCall:
    """An invocation of a parameterized rule with actual arguments."""
    range: Range
    arguments: List[str] = field(default_factory=list)


@dataclass
class GrammarSymbol:
    """A named entity of a grammar file."""
    name: str
    kind: SymbolKind
    definition: Optional[SymbolDefinition] = None
    references: List[SymbolReference] = field(default_factory=list)
    parameterized_calls: List[ParameterizedCall] = field(default_factory=list)
    parameters: Optional[List[str]] = None
    type_tag: Optional[str] = None
    is_parameterized: bool = False

    @property
    def is_defined(self) -> bool:
        return self.definition is not None

    @property
    def usage_count(self) -> int:
        return len(self.references) + len(self.parameterized_calls)

    @property
    def display_name(self) -> str:
        if self.parameters:
            return f"{self.name}({', '.join(self.parameters)})"
        return self.name


# Priorities for position lookup
PARAMETERIZED_DEFINITION_PRIORITY = 100
PARAMETERIZED_CALL_PRIORITY = 90
DEFINITION_PRIORITY = 50
REFERENCE_PRIORITY = 10


class SymbolTable:
    """Entity store populated by the parser during one analysis pass."""

    def __init__(self):
        self._symbols: Dict[str, GrammarSymbol] = {}
        self._parameterized_rules: Dict[str, GrammarSymbol] = {}
        self._start_symbol: Optional[str] = None

    @property
    def start_symbol(self) -> Optional[str]:
        """Name given by the %start declaration, if any."""
        return self._start_symbol

    @start_symbol.setter
    def start_symbol(self, name: Optional[str]) -> None:
        self._start_symbol = name

    def define(self, name: str, kind: SymbolKind, definition: SymbolDefinition) -> GrammarSymbol:
        """
        Record a defining occurrence of a plain symbol.

        A symbol first seen as a reference is completed in place, keeping its
        references. A symbol that already has a definition is left untouched.
        """
        symbol = self._symbols.get(name)

        if symbol is None:
            symbol = GrammarSymbol(name=name, kind=kind, definition=definition)
            self._symbols[name] = symbol
        elif symbol.definition is None:
            symbol.definition = definition
            symbol.kind = kind
        else:
            logger.debug(f"Ignoring redefinition of '{name}' as {kind.value}")

        return symbol

    def define_parameterized(
        self,
        base_name: str,
        definition: SymbolDefinition,
        parameters: List[str]
    ) -> GrammarSymbol:
        """
        Record the definition of a parameterized rule template.

        Merges like `define`: a template first seen at a call site is
        completed in place, and a second definition is ignored.
        """
        symbol = self._parameterized_rules.get(base_name)

        if symbol is None:
            symbol = GrammarSymbol(
                name=base_name,
                kind=SymbolKind.PARAMETERIZED_RULE,
                definition=definition,
                parameters=list(parameters),
                is_parameterized=True
            )
            self._parameterized_rules[base_name] = symbol
        elif symbol.definition is None:
            symbol.definition = definition
            symbol.kind = SymbolKind.PARAMETERIZED_RULE
            symbol.parameters = list(parameters)
            symbol.is_parameterized = True
        else:
            logger.debug(f"Ignoring redefinition of parameterized rule '{base_name}'")

        return symbol

    def reference(self, name: str, range_: Range) -> GrammarSymbol:
        """Record an ordinary use of a name, creating a forward entity if needed."""
        symbol = self._symbols.get(name)
        if symbol is None:
            symbol = GrammarSymbol(name=name, kind=SymbolKind.NONTERMINAL)
            self._symbols[name] = symbol
        symbol.references.append(SymbolReference(range_))
        return symbol

    def parameterized_call(self, base_name: str, range_: Range, arguments: List[str]) -> GrammarSymbol:
        """Record an invocation of a parameterized rule."""
        symbol = self._parameterized_rules.get(base_name)
        if symbol is None:
            symbol = GrammarSymbol(
                name=base_name,
                kind=SymbolKind.PARAMETERIZED_RULE,
                is_parameterized=True
            )
            self._parameterized_rules[base_name] = symbol
        symbol.parameterized_calls.append(ParameterizedCall(range_, list(arguments)))
        return symbol

    def lookup_at(self, position: Position) -> Optional[GrammarSymbol]:
        """
        Find the symbol occurring at a position.

        Parameterized definitions win over parameterized call sites, which win
        over plain definitions, which win over plain references.
        """
        best_match: Optional[GrammarSymbol] = None
        best_priority = -1

        for symbol, priority in self._occurrences_at(position):
            if priority > best_priority:
                best_match = symbol
                best_priority = priority

        return best_match

    def _occurrences_at(self, position: Position) -> Iterator[Tuple[GrammarSymbol, int]]:
        for symbol in self._parameterized_rules.values():
            if symbol.definition and symbol.definition.name_range.contains_position(position):
                yield symbol, PARAMETERIZED_DEFINITION_PRIORITY
            for call in symbol.parameterized_calls:
                if call.range.contains_position(position):
                    yield symbol, PARAMETERIZED_CALL_PRIORITY

        for symbol in self._symbols.values():
            if symbol.definition and symbol.definition.name_range.contains_position(position):
                yield symbol, DEFINITION_PRIORITY
            for ref in symbol.references:
                if ref.range.contains_position(position):
                    yield symbol, REFERENCE_PRIORITY

    def lookup_by_name(self, name: str) -> Optional[GrammarSymbol]:
        """Look up a symbol by name, preferring parameterized rules."""
        return self._parameterized_rules.get(name) or self._symbols.get(name)

    def lookup_plain(self, name: str) -> Optional[GrammarSymbol]:
        return self._symbols.get(name)

    def lookup_parameterized(self, name: str) -> Optional[GrammarSymbol]:
        return self._parameterized_rules.get(name)

    def all_symbols(self) -> List[GrammarSymbol]:
        """All symbols, parameterized rules first, in insertion order."""
        return list(self._parameterized_rules.values()) + list(self._symbols.values())

    def defined_symbols(self) -> List[GrammarSymbol]:
        """All symbols that have a definition."""
        return [symbol for symbol in self.all_symbols() if symbol.definition]

    def parameter_names(self) -> Set[str]:
        """Formal parameter names declared by any parameterized rule."""
        names: Set[str] = set()
        for symbol in self._parameterized_rules.values():
            if symbol.parameters:
                names.update(symbol.parameters)
        return names

    def __len__(self) -> int:
        return len(self._symbols) + len(self._parameterized_rules)

    def __contains__(self, name: str) -> bool:
        return name in self._symbols or name in self._parameterized_rules


__all__ = [
    "GrammarSymbol",
    "ParameterizedCall",
    "SymbolDefinition",
    "SymbolKind",
    "SymbolReference",
    "SymbolTable",
]
