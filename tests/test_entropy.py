"""
Unit tests for the buffered entropy pool and the uniform sampler.
"""

import io
import sys
from pathlib import Path

import numpy as np
import pytest

SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from walk_sim.entropy import (
    MAX_RAND_NUM,
    RAND_BUF_LEN,
    EntropyBuffer,
    EntropyError,
    UniformSampler,
    shift_reduce,
)


def _stream(values):
    """Little-endian uint16 byte stream holding ``values``."""
    return io.BytesIO(np.asarray(values, dtype="<u2").tobytes())


def test_buffer_decodes_little_endian():
    buf = EntropyBuffer(io.BytesIO(bytes([0x01, 0x02] + [0] * 10)))
    assert buf.take() == 0x0201
    assert buf.cursor == 1


def test_buffer_reads_exactly_one_block_on_init():
    source = _stream(range(12))
    buf = EntropyBuffer(source)
    assert source.tell() == 2 * RAND_BUF_LEN
    assert list(buf.values) == [0, 1, 2, 3, 4, 5]
    assert buf.refills == 1


def test_buffer_refills_wholesale_when_exhausted():
    source = _stream(list(range(6)) + list(range(100, 106)))
    buf = EntropyBuffer(source)
    first = [buf.take() for _ in range(RAND_BUF_LEN)]
    assert first == [0, 1, 2, 3, 4, 5]
    assert buf.refills == 1

    assert buf.take() == 100
    assert buf.refills == 2
    assert buf.cursor == 1
    assert list(buf.values) == [100, 101, 102, 103, 104, 105]


def test_short_read_on_init_is_fatal():
    with pytest.raises(EntropyError, match="expected 12"):
        EntropyBuffer(io.BytesIO(b"\x00" * 10))


def test_short_read_on_refill_is_fatal():
    buf = EntropyBuffer(io.BytesIO(b"\x00" * 17))
    for _ in range(RAND_BUF_LEN):
        buf.take()
    with pytest.raises(EntropyError, match="read returned 5 bytes"):
        buf.take()


def test_open_failure_is_fatal(tmp_path):
    missing = tmp_path / "no-such-dir" / "urandom"
    with pytest.raises(EntropyError, match="failed to open"):
        EntropyBuffer(path=str(missing))


def test_close_releases_owned_source_only(tmp_path):
    pool = tmp_path / "pool.bin"
    pool.write_bytes(b"\x07" * 24)
    with EntropyBuffer(path=str(pool)) as owned:
        assert owned.take() == 0x0707
    assert owned.source.closed

    injected = _stream(range(6))
    EntropyBuffer(injected).close()
    assert not injected.closed


def test_shift_formula_for_four_directions():
    # shift = 65535 % 4 = 3; small values wrap around in 64-bit arithmetic
    sampler = UniformSampler(EntropyBuffer(_stream([0, 1, 2, MAX_RAND_NUM, 1000, 7])))
    assert [sampler.next(0, 3) for _ in range(6)] == [1, 2, 3, 0, 1, 0]


def test_shift_wraps_in_machine_word_width():
    # range 7 -> shift 1; (0 - 1) mod 2**64 is 1 (mod 7), not 6
    assert shift_reduce(0, 10, 16) == 11
    assert shift_reduce(8, 10, 16) == 10
    assert shift_reduce(MAX_RAND_NUM, 10, 16) == 10


def test_next_is_deterministic_for_fixed_bytes():
    values = [5, 999, 31337, 65000, 12, 4096]
    a = UniformSampler(EntropyBuffer(_stream(values)))
    b = UniformSampler(EntropyBuffer(_stream(values)))
    out_a = [a.next(2, 9) for _ in values]
    out_b = [b.next(2, 9) for _ in values]
    assert out_a == out_b
    assert out_a == [shift_reduce(v, 2, 9) for v in values]
    assert all(2 <= x <= 9 for x in out_a)


def test_next_requires_max_above_min():
    sampler = UniformSampler(EntropyBuffer(_stream(range(6))))
    with pytest.raises(ValueError):
        sampler.next(3, 3)
    with pytest.raises(ValueError):
        sampler.next(4, 1)
    assert sampler.buffer.cursor == 0


def test_rejection_sampling_discards_top_values():
    # range 3 -> accept values below 65535
    sampler = UniformSampler(
        EntropyBuffer(_stream([MAX_RAND_NUM, 4, 0, 0, 0, 0])), rejection=True
    )
    assert sampler.next(0, 2) == 1
    assert sampler.buffer.cursor == 2


def test_system_sampler_stays_in_range():
    with UniformSampler.from_system() as sampler:
        draws = [sampler.next(0, 3) for _ in range(200)]
    assert set(draws) <= {0, 1, 2, 3}
