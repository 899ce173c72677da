"""Text rendering of grid snapshots for terminal output."""

from __future__ import annotations

import sys
from typing import TextIO

import numpy as np

from .engine import EMPTY, MARKER, VISITED

GLYPHS = {EMPTY: " ", VISITED: ".", MARKER: "M"}
MARKER_STYLE = "\x1b[1;35m"
RESET = "\x1b[0m"


def format_grid(grid: np.ndarray, *, color: bool = True) -> str:
    """
    One line per row, every cell followed by a space. The marker is wrapped in
    bold magenta when ``color`` is set.
    """
    lines = []
    for row in np.asarray(grid):
        cells = []
        for value in row:
            glyph = GLYPHS[int(value)]
            if color and value == MARKER:
                glyph = f"{MARKER_STYLE}{glyph}{RESET}"
            cells.append(glyph + " ")
        lines.append("".join(cells))
    return "\n".join(lines) + "\n"


def print_grid(grid: np.ndarray, *, color: bool = True, stream: TextIO | None = None) -> None:
    stream = stream or sys.stdout
    stream.write(format_grid(grid, color=color))
    stream.flush()
