"""
Grammar parsing module.

Provides lexical analysis and section-aware parsing for Lrama grammar files.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from .lexer import DIRECTIVES, LramaLexer, Token, TokenType, tokenize
from .parser import GrammarParser, Section, parse

# Export main classes
__all__ = [
    "DIRECTIVES",
    "GrammarParser",
    "LramaLexer",
    "Section",
    "Token",
    "TokenType",
    "parse",
    "tokenize",
]
