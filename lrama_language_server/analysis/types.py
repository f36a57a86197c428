"""
Shared types and classes for grammar analysis.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from dataclasses import dataclass
from enum import Enum

from ..span import Range
from ..lsp_data import LramaDiagnostic, LramaDiagnosticSeverity


class DiagnosticKind(Enum):
    """Problems reported about grammar symbols."""
    UNDEFINED_SYMBOL = "undefined-symbol"
    UNUSED_RULE = "unused-rule"


DEFAULT_SEVERITIES = {
    DiagnosticKind.UNDEFINED_SYMBOL: LramaDiagnosticSeverity.WARNING,
    DiagnosticKind.UNUSED_RULE: LramaDiagnosticSeverity.INFORMATION,
}


@dataclass
class LramaError:
    """Represents a problem found in a grammar file."""
    kind: DiagnosticKind
    message: str
    range: Range
    severity: LramaDiagnosticSeverity = LramaDiagnosticSeverity.WARNING

    @classmethod
    def of_kind(cls, kind: DiagnosticKind, message: str, range_: Range) -> 'LramaError':
        """Create an error with the default severity for its kind."""
        return cls(kind=kind, message=message, range=range_, severity=DEFAULT_SEVERITIES[kind])

    def to_diagnostic(self) -> LramaDiagnostic:
        """Convert to diagnostic."""
        return LramaDiagnostic(
            range=self.range,
            message=self.message,
            severity=self.severity,
            code=self.kind.value
        )
