"""
Configuration management for the Lrama Language Server.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum

from .analysis.types import DiagnosticKind
from .lint.rules import (
    BUILTIN_FUNCTIONS,
    COMMON_PARAMETERS,
    TOKEN_PREFIXES,
    ValidationPolicy,
)

logger = logging.getLogger(__name__)


class LogLevel(Enum):
    """Log levels supported by the server."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"
    TRACE = "trace"


@dataclass
class ValidationConfig:
    """Additions to the validation exclusion lists and per-rule settings."""
    disabled_rules: List[str] = field(default_factory=list)
    extra_builtin_functions: List[str] = field(default_factory=list)
    extra_common_parameters: List[str] = field(default_factory=list)
    extra_token_prefixes: List[str] = field(default_factory=list)
    rule_configs: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ValidationConfig':
        """Create ValidationConfig from dictionary."""
        return cls(
            disabled_rules=data.get('disabled_rules', []),
            extra_builtin_functions=data.get('extra_builtin_functions', []),
            extra_common_parameters=data.get('extra_common_parameters', []),
            extra_token_prefixes=data.get('extra_token_prefixes', []),
            rule_configs=data.get('rule_configs', {})
        )


@dataclass
class InitializationOptions:
    """Options that can be passed during LSP initialization."""
    diagnostics_enabled: bool = True
    report_unused_rules: bool = True
    max_diagnostics_per_file: int = 100
    validation_config_file: Optional[Path] = None
    log_level: LogLevel = LogLevel.INFO

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'InitializationOptions':
        """Create InitializationOptions from dictionary."""
        if not data:
            return cls()

        log_level = LogLevel.INFO
        if 'log_level' in data:
            try:
                log_level = LogLevel(data['log_level'])
            except ValueError:
                logger.warning(f"Invalid log level: {data['log_level']}")

        return cls(
            diagnostics_enabled=data.get('diagnostics_enabled', True),
            report_unused_rules=data.get('report_unused_rules', True),
            max_diagnostics_per_file=data.get('max_diagnostics_per_file', 100),
            validation_config_file=(
                Path(data['validation_config_file']) if data.get('validation_config_file') else None
            ),
            log_level=log_level
        )


class Config:
    """Main configuration class for the Lrama Language Server."""

    def __init__(self):
        self._validation_config: Optional[ValidationConfig] = None
        self._initialization_options: Optional[InitializationOptions] = None
        self._workspace_root: Optional[Path] = None

    @property
    def workspace_root(self) -> Optional[Path]:
        """Get the workspace root directory."""
        return self._workspace_root

    @workspace_root.setter
    def workspace_root(self, path: Optional[Path]) -> None:
        self._workspace_root = path.resolve() if path else None
        logger.info(f"Workspace root set to: {self._workspace_root}")

    @property
    def initialization_options(self) -> Optional[InitializationOptions]:
        return self._initialization_options

    def set_initialization_options(self, options: Optional[Dict[str, Any]]) -> None:
        """Set initialization options from LSP initialize request."""
        self._initialization_options = InitializationOptions.from_dict(options)
        logger.info(f"Initialization options set: {self._initialization_options}")

        log_level_map = {
            LogLevel.ERROR: logging.ERROR,
            LogLevel.WARN: logging.WARNING,
            LogLevel.INFO: logging.INFO,
            LogLevel.DEBUG: logging.DEBUG,
            LogLevel.TRACE: logging.DEBUG  # Python doesn't have TRACE, use DEBUG
        }
        logging.getLogger().setLevel(log_level_map[self._initialization_options.log_level])

        config_file = self._initialization_options.validation_config_file
        if config_file:
            try:
                self.load_validation_config(config_file)
            except Exception:
                logger.warning("Continuing with default validation settings")

    def load_validation_config(self, path: Path) -> None:
        """
        Load validation configuration from a JSON file.

        The format is:
        {
          "disabled_rules": ["unused-rule"],
          "extra_builtin_functions": ["my_list"],
          "extra_common_parameters": ["T"],
          "extra_token_prefixes": ["TK_"],
          "rule_configs": {"undefined-symbol": {"level": "error"}}
        }

        Args:
            path: Path to the validation config JSON file
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)

            self._validation_config = ValidationConfig.from_dict(data)
            logger.info(f"Loaded validation config from {path}: {self._validation_config}")

        except Exception as e:
            logger.error(f"Failed to load validation config from {path}: {e}")
            raise

    @property
    def validation_config(self) -> Optional[ValidationConfig]:
        return self._validation_config

    @property
    def rule_configs(self) -> Dict[str, Dict[str, Any]]:
        if self._validation_config:
            return self._validation_config.rule_configs
        return {}

    def build_policy(self) -> ValidationPolicy:
        """Build the validation policy from the defaults and loaded settings."""
        disabled = set()
        builtin_functions = set(BUILTIN_FUNCTIONS)
        common_parameters = set(COMMON_PARAMETERS)
        token_prefixes = list(TOKEN_PREFIXES)

        vc = self._validation_config
        if vc:
            disabled.update(vc.disabled_rules)
            builtin_functions.update(vc.extra_builtin_functions)
            common_parameters.update(vc.extra_common_parameters)
            token_prefixes.extend(p for p in vc.extra_token_prefixes if p not in token_prefixes)

        if self._initialization_options and not self._initialization_options.report_unused_rules:
            disabled.add(DiagnosticKind.UNUSED_RULE.value)

        return ValidationPolicy(
            builtin_functions=frozenset(builtin_functions),
            common_parameters=frozenset(common_parameters),
            token_prefixes=tuple(token_prefixes),
            disabled_rules=frozenset(disabled)
        )

    def is_diagnostics_enabled(self) -> bool:
        """Check if diagnostics are published."""
        if self._initialization_options:
            return self._initialization_options.diagnostics_enabled
        return True

    def get_max_diagnostics_per_file(self) -> int:
        """Get maximum number of diagnostics per file."""
        if self._initialization_options:
            return self._initialization_options.max_diagnostics_per_file
        return 100

    def clear(self) -> None:
        """Clear all configuration."""
        self._validation_config = None
        self._initialization_options = None
        self._workspace_root = None
        logger.debug("Configuration cleared")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return {
            'workspace_root': str(self._workspace_root) if self._workspace_root else None,
            'has_validation_config': self._validation_config is not None,
            'initialization_options': self._initialization_options.__dict__ if self._initialization_options else None
        }


__all__ = [
    "Config",
    "InitializationOptions",
    "LogLevel",
    "ValidationConfig",
]
