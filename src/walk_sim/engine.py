"""
Grid walk engine with optional self-avoidance.

A single marker moves on an N x N lattice. Each tick a direction is drawn from
the uniform sampler (or reused while a run is in progress), checked against the
grid bounds and, when avoidance is enabled, against already visited cells, and
then either committed or retried.

Step semantics:
1.  **Runs:** a drawn direction is kept for ``run_length`` consecutive ticks
    (0 or 1 redraws every tick). A forced redraw ends the run early.
2.  **No avoidance:** a wall hit skips the tick (``BLOCKED``); nothing is drawn
    again until the next tick and the run state is left as is.
3.  **Avoidance:** an invalid direction is redrawn inside the same tick until a
    free neighbour is found, unless none exists, in which case the walk is
    ``STUCK`` and the grid is left untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import Callable, Optional, Tuple

import numpy as np
from numba import njit

from . import utils
from .entropy import UniformSampler

###############################################################################
# Constants
###############################################################################

EMPTY = 0
VISITED = 1
MARKER = 2

MIN_SIZE = 2
MAX_SIZE = 1000  # exclusive

# Row/column deltas indexed by Direction
DELTAS = np.array(
    [
        [-1, 0],
        [0, -1],
        [1, 0],
        [0, 1],
    ],
    dtype=np.int64,
)


class Cell(IntEnum):
    EMPTY = EMPTY
    VISITED = VISITED
    MARKER = MARKER


class Direction(IntEnum):
    UP = 0
    LEFT = 1
    DOWN = 2
    RIGHT = 3


class StepOutcome(Enum):
    RUNNING = "running"
    BLOCKED = "blocked"
    STUCK = "stuck"


class WalkConsistencyError(RuntimeError):
    """Raised when the engine reaches a state that should be unreachable."""


###############################################################################
# Neighbour scan
###############################################################################


@njit(cache=True)
def _open_directions(grid: np.ndarray, row: int, col: int, avoid: bool) -> np.ndarray:
    """
    Flags for the four directions from (row, col): True when the move stays on
    the grid and, with avoidance on, lands on an EMPTY cell.
    """
    n = grid.shape[0]
    flags = np.zeros(4, dtype=np.bool_)
    for d in range(4):
        r = row + DELTAS[d, 0]
        c = col + DELTAS[d, 1]
        if r < 0 or r >= n or c < 0 or c >= n:
            continue
        if avoid and grid[r, c] != EMPTY:
            continue
        flags[d] = True
    return flags


###############################################################################
# Configuration / state
###############################################################################


def is_int(value) -> bool:
    """True for real integers; bools and floats do not count."""
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


@dataclass
class WalkConfig:
    """Grid size, avoidance mode, run length and optional 0-based start."""
    size: int = 20
    avoid: bool = False
    run_length: int = 0
    start: Optional[Tuple[int, int]] = None

    def validate(self) -> None:
        if not is_int(self.size):
            raise ValueError(f"grid size must be an integer, got {self.size!r}")
        if not is_int(self.run_length):
            raise ValueError(f"run length must be an integer, got {self.run_length!r}")
        if self.start is not None and (
            not isinstance(self.start, (tuple, list))
            or len(self.start) != 2 or not all(is_int(v) for v in self.start)
        ):
            raise ValueError(f"start must be a pair of integers, got {self.start!r}")
        if not MIN_SIZE <= self.size < MAX_SIZE:
            raise ValueError(
                f"grid size must be in [{MIN_SIZE}, {MAX_SIZE}), got {self.size}"
            )
        if self.run_length < 0:
            raise ValueError(f"run length must be >= 0, got {self.run_length}")
        if self.start is not None:
            row, col = self.start
            if not (0 <= row < self.size and 0 <= col < self.size):
                raise ValueError(
                    f"start ({row}, {col}) lies outside a {self.size}x{self.size} grid"
                )


@dataclass
class RunState:
    direction: Direction = Direction.UP
    remaining: int = 0


class WalkEngine:
    """
    Owns the grid, the marker position and the run state.

    The sampler is injected so tests can drive the walk from known bytes; when
    omitted a system-backed sampler is opened and owned by the engine.
    """

    def __init__(
        self,
        config: WalkConfig | None = None,
        *,
        sampler: UniformSampler | None = None,
    ) -> None:
        self.config = config or WalkConfig()
        self._owns_sampler = sampler is None
        self.sampler = sampler or UniformSampler.from_system()

        self.grid: Optional[np.ndarray] = None
        self.position: Tuple[int, int] = (0, 0)
        self.run_state = RunState()
        self.steps = 0
        self.ticks = 0
        self._path: list[Tuple[int, int]] = []

    # ------------------------------------------------------------------ setup
    def initialize(
        self,
        size: int | None = None,
        avoid: bool | None = None,
        run_length: int | None = None,
        start: Tuple[int, int] | None = None,
    ) -> None:
        """Allocate an empty grid and place the marker."""
        overrides = {
            "size": size, "avoid": avoid, "run_length": run_length, "start": start,
        }
        config = replace(
            self.config, **{k: v for k, v in overrides.items() if v is not None}
        )
        config.validate()
        self.config = config

        n = self.config.size
        self.grid = np.full((n, n), EMPTY, dtype=np.int8)
        if self.config.start is not None:
            row, col = self.config.start
        else:
            row = self.sampler.next(0, n - 1)
            col = self.sampler.next(0, n - 1)
        self.position = (row, col)
        self.grid[row, col] = MARKER

        self.run_state = RunState()
        self.steps = 0
        self.ticks = 0
        self._path = [self.position]

    @property
    def initialized(self) -> bool:
        return self.grid is not None

    # ------------------------------------------------------------------ stepping
    def _advance_run(self) -> Direction:
        state = self.run_state
        if state.remaining > 0:
            state.remaining -= 1
        else:
            state.direction = Direction(self.sampler.next(0, 3))
            state.remaining = max(self.config.run_length - 1, 0)
        return state.direction

    def _apply(self, direction: int) -> None:
        if direction not in (0, 1, 2, 3):
            raise WalkConsistencyError(f"don't know about direction {direction}")
        row, col = self.position
        self.grid[row, col] = VISITED
        row += int(DELTAS[direction, 0])
        col += int(DELTAS[direction, 1])
        self.grid[row, col] = MARKER
        self.position = (row, col)
        self._path.append(self.position)
        self.steps += 1

    def step(self) -> StepOutcome:
        """Advance the walk by one tick."""
        if not self.initialized:
            self.initialize()
        self.ticks += 1
        row, col = self.position
        avoid = self.config.avoid
        open_dirs = _open_directions(self.grid, row, col, avoid)

        while True:
            direction = self._advance_run()
            if open_dirs[direction]:
                self._apply(direction)
                return StepOutcome.RUNNING
            if not avoid:
                return StepOutcome.BLOCKED
            if not open_dirs.any():
                if self.steps == 0:
                    raise WalkConsistencyError(
                        f"no free direction from {self.position} on a fresh board"
                    )
                return StepOutcome.STUCK
            self.run_state.remaining = 0

    def run(
        self,
        max_steps: int | None = None,
        on_step: Callable[["WalkEngine", StepOutcome], None] | None = None,
    ) -> utils.WalkResult:
        """
        Tick until the walk is STUCK or ``max_steps`` ticks have elapsed.

        Without avoidance the walk never gets stuck, so ``max_steps`` is the
        only thing that ends it.
        """
        if not self.initialized:
            self.initialize()
        outcome = StepOutcome.RUNNING
        ticks = 0
        while max_steps is None or ticks < max_steps:
            outcome = self.step()
            ticks += 1
            if on_step is not None:
                on_step(self, outcome)
            if outcome is StepOutcome.STUCK:
                break
        return self.result(outcome)

    # ------------------------------------------------------------------ views
    def snapshot(self) -> np.ndarray:
        """Read-only copy of the grid."""
        view = self.grid.copy()
        view.flags.writeable = False
        return view

    def get_path(self) -> np.ndarray:
        """(steps + 1, 2) array of marker positions, start included."""
        return np.array(self._path, dtype=np.int32).reshape(-1, 2)

    def visited_count(self) -> int:
        return int(np.count_nonzero(self.grid != EMPTY))

    def result(self, outcome: StepOutcome | None = None) -> utils.WalkResult:
        meta = {
            "model": "avoiding" if self.config.avoid else "free",
            "size": self.config.size,
            "avoid": self.config.avoid,
            "run_length": self.config.run_length,
            "steps": self.steps,
            "ticks": self.ticks,
        }
        if outcome is not None:
            meta["outcome"] = outcome.value
        return utils.WalkResult(grid=self.snapshot(), path=self.get_path(), meta=meta)

    def close(self) -> None:
        if self._owns_sampler:
            self.sampler.close()


__all__ = [
    "Cell",
    "Direction",
    "RunState",
    "StepOutcome",
    "WalkConfig",
    "WalkConsistencyError",
    "WalkEngine",
]
