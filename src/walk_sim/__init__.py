"""
Grid Walk Simulation Library

This package provides the pieces of a (self-avoiding) random walk on a square grid:
- EntropyBuffer / UniformSampler: buffered entropy pool and range sampler
- WalkEngine: marker, run-length and avoidance state machine
- render: terminal text rendering of grid snapshots
"""

from .entropy import EntropyBuffer, EntropyError, UniformSampler
from .engine import (
    Cell,
    Direction,
    StepOutcome,
    WalkConfig,
    WalkConsistencyError,
    WalkEngine,
)
from . import render, utils

__all__ = [
    # Engine
    "WalkEngine",
    "WalkConfig",
    "StepOutcome",
    "Direction",
    "Cell",
    # Randomness
    "EntropyBuffer",
    "UniformSampler",
    # Errors
    "EntropyError",
    "WalkConsistencyError",
    # Utilities
    "render",
    "utils",
]
