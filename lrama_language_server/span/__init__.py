"""
Span utilities for tracking positions and ranges in grammar source text.

All positions are zero-based, which is also what the Language Server
Protocol uses, so they are handed to editors unchanged.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True, order=True)
class Position:
    """A zero-based position in a text document."""
    line: int
    column: int

    def __post_init__(self):
        if self.line < 0 or self.column < 0:
            raise ValueError(f"Invalid position: line={self.line}, column={self.column}")

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Range:
    """A range in a text document; ``end`` is exclusive."""
    start: Position
    end: Position

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Invalid range: start={self.start} > end={self.end}")

    @classmethod
    def on_line(cls, line: int, column: int, length: int) -> 'Range':
        """Create a range covering ``length`` characters of a single line."""
        return cls(Position(line, column), Position(line, column + length))

    def contains_position(self, position: Position) -> bool:
        """
        Check if this range contains the given position.

        Both ends are inclusive: a caret placed right after the last
        character of a name still touches that name.
        """
        if position.line < self.start.line or position.line > self.end.line:
            return False

        if position.line == self.start.line and position.column < self.start.column:
            return False

        if position.line == self.end.line and position.column > self.end.column:
            return False

        return True

    def overlaps_with(self, other: 'Range') -> bool:
        """Check if this range overlaps with another range."""
        return not (self.end < other.start or other.end < self.start)

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


class SpanBuilder:
    """Helper class for mapping between offsets and positions in text."""

    def __init__(self, content: str = ""):
        self._lines: List[str] = []
        self.set_content(content)

    def set_content(self, content: str) -> None:
        """Set the content to build positions from."""
        self._lines = content.split("\n")

    @property
    def lines(self) -> List[str]:
        return self._lines

    def line_text(self, line: int) -> Optional[str]:
        """Return the text of a line, or None when out of range."""
        if 0 <= line < len(self._lines):
            return self._lines[line]
        return None

    def position_from_offset(self, offset: int) -> Position:
        """Convert a character offset to a position."""
        if offset <= 0:
            return Position(0, 0)

        current_offset = 0
        for line_num, line in enumerate(self._lines):
            # +1 for the newline that split() removed
            line_length = len(line) + 1
            if current_offset + line_length > offset:
                return Position(line_num, offset - current_offset)
            current_offset += line_length

        # Past end of file
        last_line = len(self._lines) - 1
        return Position(last_line, len(self._lines[last_line]))

    def offset_from_position(self, position: Position) -> int:
        """Convert a position to a character offset, clamping to the text."""
        if position.line >= len(self._lines):
            return sum(len(line) + 1 for line in self._lines) - 1

        offset = sum(len(line) + 1 for line in self._lines[:position.line])
        offset += min(position.column, len(self._lines[position.line]))
        return offset

    def text_before(self, position: Position) -> str:
        """Return all text preceding the position."""
        content = "\n".join(self._lines)
        return content[:self.offset_from_position(position)]


__all__ = [
    "Position",
    "Range",
    "SpanBuilder",
]
