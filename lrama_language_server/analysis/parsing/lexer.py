"""
Lexical analysis for Lrama grammar files.

The scanner works line by line and never fails: anything it cannot classify
is dropped. Block comments are only recognised when they close on the line
they open on; otherwise the rest of that line is discarded and scanning
resumes on the next line.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import re
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ...span import Range

logger = logging.getLogger(__name__)


class TokenType(Enum):
    """Types of grammar tokens."""
    SEPARATOR = "separator"
    PROLOGUE_START = "prologue_start"
    PROLOGUE_END = "prologue_end"
    DIRECTIVE = "directive"
    IDENTIFIER = "identifier"
    STRING = "string"
    CHARACTER = "character"
    TYPE_TAG = "type_tag"
    SPECIAL = "special"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    """A token from grammar source text."""
    type: TokenType
    value: str
    line: int
    column: int
    length: int

    @property
    def range(self) -> Range:
        return Range.on_line(self.line, self.column, self.length)

    def is_special(self, chars: str) -> bool:
        """Check if this is a special character token among ``chars``."""
        return self.type == TokenType.SPECIAL and self.value in chars

    def __str__(self) -> str:
        return f"{self.type.value}({self.value!r}) at {self.line}:{self.column}"


DIRECTIVES = (
    "rule",
    "inline",
    "token",
    "type",
    "nterm",
    "start",
    "union",
    "left",
    "right",
    "nonassoc",
    "precedence",
    "prec",
    "empty",
    "destructor",
    "printer",
    "locations",
    "no-stdlib",
    "define",
    "debug",
    "error-verbose",
    "after-shift",
    "before-reduce",
    "after-reduce",
    "after-shift-error-token",
    "after-pop-stack",
)

SPECIAL_CHARACTERS = ":;|()[]{},.?*+"

# Longest spelling first so that %after-shift-error-token beats %after-shift
# and %precedence beats %prec.
_DIRECTIVE_RE = re.compile(
    r"%(?:" + "|".join(re.escape(d) for d in sorted(DIRECTIVES, key=len, reverse=True)) + r")"
    r"(?![A-Za-z0-9_\-])"
)
_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_\-]*")


class LramaLexer:
    """Lexical analyzer for grammar files."""

    def __init__(self, content: str):
        self.content = content
        self.lines = content.split("\n")

    def tokenize(self) -> List[Token]:
        """Tokenize the content into a list of tokens ending with EOF."""
        tokens: List[Token] = []

        for line_num, line in enumerate(self.lines):
            self._tokenize_line(line_num, line, tokens)

        last_line = len(self.lines) - 1
        tokens.append(Token(TokenType.EOF, "", last_line, len(self.lines[last_line]), 0))

        logger.debug(f"Scanned {len(tokens)} tokens from {len(self.lines)} lines")
        return tokens

    def _tokenize_line(self, line_num: int, line: str, tokens: List[Token]) -> None:
        column = 0

        while column < len(line):
            char = line[column]

            if char.isspace():
                column += 1
                continue

            if line.startswith("//", column):
                return

            if line.startswith("/*", column):
                comment_end = line.find("*/", column + 2)
                if comment_end == -1:
                    return
                column = comment_end + 2
                continue

            if line.startswith("%%", column):
                tokens.append(Token(TokenType.SEPARATOR, "%%", line_num, column, 2))
                column += 2
                continue

            if line.startswith("%{", column):
                tokens.append(Token(TokenType.PROLOGUE_START, "%{", line_num, column, 2))
                column += 2
                continue

            if line.startswith("%}", column):
                tokens.append(Token(TokenType.PROLOGUE_END, "%}", line_num, column, 2))
                column += 2
                continue

            if char == "%":
                match = _DIRECTIVE_RE.match(line, column)
                if match:
                    value = match.group(0)
                    tokens.append(Token(TokenType.DIRECTIVE, value, line_num, column, len(value)))
                    column += len(value)
                    continue

            match = _IDENTIFIER_RE.match(line, column)
            if match:
                value = match.group(0)
                tokens.append(Token(TokenType.IDENTIFIER, value, line_num, column, len(value)))
                column += len(value)
                continue

            if char in "\"'":
                end_quote = self._find_closing_quote(line, column)
                if end_quote is not None:
                    value = line[column:end_quote + 1]
                    token_type = TokenType.STRING if char == '"' else TokenType.CHARACTER
                    tokens.append(Token(token_type, value, line_num, column, len(value)))
                    column = end_quote + 1
                    continue

            if char == "<":
                end_tag = line.find(">", column + 1)
                if end_tag != -1:
                    value = line[column + 1:end_tag]
                    tokens.append(Token(TokenType.TYPE_TAG, value, line_num, column, end_tag - column + 1))
                    column = end_tag + 1
                    continue

            if char in SPECIAL_CHARACTERS:
                tokens.append(Token(TokenType.SPECIAL, char, line_num, column, 1))
                column += 1
                continue

            # Unknown character
            column += 1

    @staticmethod
    def _find_closing_quote(line: str, start: int) -> Optional[int]:
        """Find the quote closing the literal opened at ``start``."""
        quote = line[start]
        index = start + 1
        while index < len(line):
            if line[index] == quote and line[index - 1] != "\\":
                return index
            index += 1
        return None


def tokenize(content: str) -> List[Token]:
    """Tokenize grammar source text."""
    return LramaLexer(content).tokenize()


__all__ = [
    "DIRECTIVES",
    "LramaLexer",
    "SPECIAL_CHARACTERS",
    "Token",
    "TokenType",
    "tokenize",
]
