"""
Validation rules for grammar symbols.

The exclusion lists below are heuristics rather than ground truth: they keep
well-known Lrama standard library templates, token-looking names and typical
template placeholder names from being reported as undefined.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import re
from dataclasses import dataclass, field
from typing import FrozenSet, List, Set, Tuple

from ...analysis.symbols import SymbolKind, SymbolTable
from ...analysis.types import DiagnosticKind, LramaError
from ...lsp_data import LramaDiagnosticSeverity
from ...span import Range


BUILTIN_FUNCTIONS = frozenset([
    "option",
    "ioption",
    "list",
    "nonempty_list",
    "separated_list",
    "separated_nonempty_list",
    "preceded",
    "terminated",
    "delimited",
])

COMMON_PARAMETERS = frozenset([
    "X",
    "Y",
    "Z",
    "A",
    "B",
    "C",
    "item",
    "element",
    "separator",
    "value",
    "arg",
    "args",
    "param",
    "params",
    "list",
    "elem",
    "expr",
    "stmt",
])

TOKEN_PREFIXES = ("t", "k", "TOKEN")

TOKEN_PATTERN = re.compile(r"^[A-Z_]+$")


@dataclass
class ValidationPolicy:
    """Exclusion lists and switches used by the validation rules."""
    builtin_functions: FrozenSet[str] = BUILTIN_FUNCTIONS
    common_parameters: FrozenSet[str] = COMMON_PARAMETERS
    token_prefixes: Tuple[str, ...] = TOKEN_PREFIXES
    disabled_rules: FrozenSet[str] = field(default_factory=frozenset)

    def is_builtin_function(self, name: str) -> bool:
        return self._base_name(name) in self.builtin_functions

    def is_likely_token(self, name: str) -> bool:
        """Tokens conventionally use uppercase names or a t/k prefix."""
        base_name = self._base_name(name)
        return bool(TOKEN_PATTERN.match(base_name)) or base_name.startswith(self.token_prefixes)

    def is_common_parameter(self, name: str) -> bool:
        return name in self.common_parameters

    @staticmethod
    def is_character_literal(name: str) -> bool:
        return len(name) >= 2 and name.startswith("'") and name.endswith("'")

    @staticmethod
    def _base_name(name: str) -> str:
        return name.split("(")[0]


class LintRule:
    """Base class for validation rules."""

    kind: DiagnosticKind

    def __init__(self, name: str, description: str, level: LramaDiagnosticSeverity):
        self.name = name
        self.description = description
        self.level = level
        self.enabled = True

    def check(self, table: SymbolTable, policy: ValidationPolicy) -> List[LramaError]:
        """
        Check the symbol table for violations of this rule.

        Args:
            table: Completed symbol table of one analysis pass
            policy: Exclusion lists to apply

        Returns:
            List of LramaError objects for violations found
        """
        raise NotImplementedError("Subclasses must implement check()")

    def _create_error(self, range_: Range, message: str) -> LramaError:
        return LramaError(kind=self.kind, message=message, range=range_, severity=self.level)


class UndefinedSymbolRule(LintRule):
    """Report uses of names that are never defined."""

    kind = DiagnosticKind.UNDEFINED_SYMBOL

    def __init__(self):
        super().__init__(
            name=DiagnosticKind.UNDEFINED_SYMBOL.value,
            description="Symbol is used but never defined",
            level=LramaDiagnosticSeverity.WARNING
        )

    def check(self, table: SymbolTable, policy: ValidationPolicy) -> List[LramaError]:
        errors = []
        known_parameters = table.parameter_names()

        for symbol in table.all_symbols():
            if not symbol.references or symbol.definition:
                continue
            if self._is_excluded(symbol.name, known_parameters, policy):
                continue

            for ref in symbol.references:
                errors.append(self._create_error(
                    ref.range,
                    f"Symbol '{symbol.name}' is not defined"
                ))

        return errors

    @staticmethod
    def _is_excluded(name: str, known_parameters: Set[str], policy: ValidationPolicy) -> bool:
        return (
            name in known_parameters
            or policy.is_character_literal(name)
            or policy.is_builtin_function(name)
            or policy.is_likely_token(name)
            or policy.is_common_parameter(name)
        )


class UnusedRuleRule(LintRule):
    """Report rules that are defined but never used."""

    kind = DiagnosticKind.UNUSED_RULE

    def __init__(self):
        super().__init__(
            name=DiagnosticKind.UNUSED_RULE.value,
            description="Rule is defined but never used",
            level=LramaDiagnosticSeverity.INFORMATION
        )

    def check(self, table: SymbolTable, policy: ValidationPolicy) -> List[LramaError]:
        errors = []

        for symbol in table.all_symbols():
            if (
                symbol.kind == SymbolKind.RULE
                and symbol.definition
                and not symbol.references
                and not symbol.parameterized_calls
                and not policy.is_character_literal(symbol.name)
            ):
                errors.append(self._create_error(
                    symbol.definition.name_range,
                    f"Rule '{symbol.name}' is defined but never used"
                ))

        return errors


def default_rules() -> List[LintRule]:
    return [
        UndefinedSymbolRule(),
        UnusedRuleRule(),
    ]


__all__ = [
    "BUILTIN_FUNCTIONS",
    "COMMON_PARAMETERS",
    "TOKEN_PREFIXES",
    "LintRule",
    "UndefinedSymbolRule",
    "UnusedRuleRule",
    "ValidationPolicy",
    "default_rules",
]
