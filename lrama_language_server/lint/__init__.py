"""
Symbol validation engine for the Lrama Language Server.

Runs once over a completed symbol table and reports undefined symbols and
unused rules.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
from typing import Any, Dict, List, Optional

from .. import internal_error
from ..analysis.symbols import SymbolTable
from ..analysis.types import LramaError
from ..lsp_data import LramaDiagnosticSeverity
from .rules import (
    LintRule,
    UndefinedSymbolRule,
    UnusedRuleRule,
    ValidationPolicy,
    default_rules,
)

logger = logging.getLogger(__name__)


class Validator:
    """Main validation engine."""

    def __init__(
        self,
        policy: Optional[ValidationPolicy] = None,
        rule_configs: Optional[Dict[str, Dict[str, Any]]] = None
    ):
        self.policy = policy or ValidationPolicy()
        self.rules: List[LintRule] = default_rules()

        for rule in self.rules:
            if rule.name in self.policy.disabled_rules:
                rule.enabled = False
            if rule_configs and rule.name in rule_configs:
                self._apply_rule_config(rule, rule_configs[rule.name])

    def _apply_rule_config(self, rule: LintRule, rule_config: Dict[str, Any]) -> None:
        """Apply configuration to a specific rule."""
        if 'level' in rule_config:
            try:
                rule.level = LramaDiagnosticSeverity(rule_config['level'])
            except ValueError:
                logger.warning(f"Invalid level for rule {rule.name}: {rule_config['level']}")

        if 'enabled' in rule_config:
            rule.enabled = bool(rule_config['enabled'])

    def validate(self, table: SymbolTable) -> List[LramaError]:
        """
        Validate a symbol table and return found issues.

        Args:
            table: Symbol table produced by the parser

        Returns:
            List of errors in rule order
        """
        all_errors = []

        for rule in self.rules:
            if not rule.enabled:
                continue

            try:
                all_errors.extend(rule.check(table, self.policy))
            except Exception as e:
                internal_error("validation rule {} failed: {}", rule.name, e)

        return all_errors

    def get_rule_info(self) -> Dict[str, Dict[str, Any]]:
        """Get information about all rules."""
        return {
            rule.name: {
                'description': rule.description,
                'level': rule.level.value,
                'enabled': rule.enabled,
            }
            for rule in self.rules
        }


__all__ = [
    "LintRule",
    "UndefinedSymbolRule",
    "UnusedRuleRule",
    "ValidationPolicy",
    "Validator",
]
