"""
Buffered entropy pool and uniform integer sampler.

The pool prefetches a handful of 16-bit values from a byte source (by default
``/dev/urandom``) and serves them one by one, refilling the whole buffer at once
when the cursor runs past the end.

The sampler maps raw values onto ``[lo, hi]`` with a *shift-then-modulo*
reduction: the excess ``MAX_RAND_NUM % range`` is subtracted before the modulo.
This trims most of the modulo bias but is not exact rejection sampling; values
below the shift wrap around in machine-word arithmetic and are kept.
"""

from __future__ import annotations

from typing import BinaryIO, Optional

import numpy as np

RAND_BUF_LEN = 6
MAX_RAND_NUM = 65535
VALUE_SPACE = MAX_RAND_NUM + 1
WORD_MODULUS = 1 << 64  # raw - shift wraps like an unsigned 64-bit size

DEFAULT_ENTROPY_PATH = "/dev/urandom"


class EntropyError(RuntimeError):
    """The entropy source could not be opened or returned a short read."""


class EntropyBuffer:
    """
    Fixed-capacity pool of uint16 values read from a binary stream.

    The buffer is filled once on construction and then refilled wholesale each
    time :meth:`take` finds the cursor past the end.
    """

    def __init__(
        self,
        source: Optional[BinaryIO] = None,
        *,
        capacity: int = RAND_BUF_LEN,
        path: str = DEFAULT_ENTROPY_PATH,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.path = path
        self._owns_source = source is None
        if source is None:
            try:
                source = open(path, "rb", buffering=0)
            except OSError as exc:
                raise EntropyError(f"failed to open {path}: {exc}") from exc
        self.source = source
        self.values = np.zeros(capacity, dtype=np.uint16)
        self.cursor = 0
        self.refills = 0
        self.refill()

    @property
    def nbytes(self) -> int:
        return self.capacity * 2

    def refill(self) -> None:
        """Overwrite the whole buffer from the source and rewind the cursor."""
        data = self.source.read(self.nbytes)
        got = 0 if data is None else len(data)
        if got != self.nbytes:
            raise EntropyError(
                f"read returned {got} bytes, expected {self.nbytes}"
            )
        self.values[:] = np.frombuffer(data, dtype="<u2")
        self.cursor = 0
        self.refills += 1

    def take(self) -> int:
        """Return the next raw 16-bit value, refilling first if exhausted."""
        if self.cursor > self.capacity - 1:
            self.refill()
        value = int(self.values[self.cursor])
        self.cursor += 1
        return value

    def close(self) -> None:
        if self._owns_source and not self.source.closed:
            self.source.close()

    def __enter__(self) -> "EntropyBuffer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def shift_reduce(value: int, lo: int, hi: int) -> int:
    """
    Map a raw 16-bit value onto ``[lo, hi]`` with the shift-then-modulo rule.

    >>> shift_reduce(0x0102, 0, 3)   # shift = 65535 % 4 = 3
    3
    """
    span = hi - lo + 1
    shift = MAX_RAND_NUM % span
    raw = (value - shift) % WORD_MODULUS
    return raw % span + lo


class UniformSampler:
    """Draw integers in ``[lo, hi]`` from an :class:`EntropyBuffer`."""

    def __init__(self, buffer: EntropyBuffer, *, rejection: bool = False) -> None:
        self.buffer = buffer
        self.rejection = rejection

    @classmethod
    def from_system(cls, *, rejection: bool = False) -> "UniformSampler":
        return cls(EntropyBuffer(), rejection=rejection)

    def next(self, lo: int, hi: int) -> int:
        if hi <= lo:
            raise ValueError(f"invalid arguments: min={lo}, max={hi}")
        if self.rejection:
            return self._next_rejection(lo, hi)
        return shift_reduce(self.buffer.take(), lo, hi)

    def _next_rejection(self, lo: int, hi: int) -> int:
        span = hi - lo + 1
        limit = VALUE_SPACE - VALUE_SPACE % span
        while True:
            value = self.buffer.take()
            if value < limit:
                return value % span + lo

    def close(self) -> None:
        self.buffer.close()

    def __enter__(self) -> "UniformSampler":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = [
    "EntropyBuffer",
    "EntropyError",
    "UniformSampler",
    "shift_reduce",
    "RAND_BUF_LEN",
    "MAX_RAND_NUM",
]
