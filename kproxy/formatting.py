"""Plain terminal tables with ANSI-styled header and key columns."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Iterable

PLAIN = ""
BOLD = "1;34"
ITALIC = "3;94"


def _styled(style: str, value: str) -> str:
    return f"\033[{style}m{value}\033[0m"


@dataclass
class Table:
    """Rows of text cells, padded so that columns line up.

    The first row is the header and is shown in italics; the first cell of
    every other row is shown in bold.
    """

    rows: list[list[str]] = field(default_factory=list)
    column_widths: dict[int, int] = field(default_factory=dict)

    def add_row(self, row: Iterable[str]) -> None:
        cells = list(row)
        for i, cell in enumerate(cells):
            self.column_widths[i] = max(self.column_widths.get(i, 0), len(cell))
        self.rows.append(cells)

    def render(self) -> str:
        """Return the table as text, one line per row."""
        lines = []
        for rownum, row in enumerate(self.rows):
            parts = []
            for i, cell in enumerate(row):
                if rownum == 0:
                    style = ITALIC
                elif i == 0:
                    style = BOLD
                else:
                    style = PLAIN
                pad = self.column_widths.get(i, 0) - len(cell)
                parts.append(f"{_styled(style, cell)}{' ' * pad}  ")
            lines.append("".join(parts) + "\n")
        return "".join(lines)

    def print(self) -> None:
        """Write the rendered table to standard output."""
        sys.stdout.write(self.render())