#!/usr/bin/env python3
"""
Grid Walk Runner

Runs a random walk on an N x N grid and prints the board after every tick.
With ``--avoid`` the marker never steps onto a visited cell and the run ends
once it is stuck; otherwise ``--max-steps`` bounds the run.
"""

import argparse
import sys
import time
from pathlib import Path

# Add src to path
SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from walk_sim import (  # noqa: E402
    EntropyBuffer,
    EntropyError,
    StepOutcome,
    UniformSampler,
    WalkConfig,
    WalkConsistencyError,
    WalkEngine,
    render,
    utils,
)
from walk_sim.engine import is_int  # noqa: E402

EXIT_ENTROPY = 1
EXIT_INTERNAL = 3

DEFAULTS = {
    "size": None,
    "avoid": False,
    "run_length": 0,
    "row": None,
    "col": None,
    "sleep": 0,
    "quiet": False,
    "max_steps": None,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="run_walk",
        description="Random walk on a square grid, optionally self-avoiding",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-n", "--size", type=int, help="length of the square board (2-999)")
    parser.add_argument("-a", "--avoid", action="store_true", default=None,
                        help="self-avoiding walk: never step onto a visited cell")
    parser.add_argument("-r", "--run-length", type=int, dest="run_length",
                        help="ticks to keep a drawn direction (0 = redraw every tick)")
    parser.add_argument("--row", type=int, help="1-based start row (requires --col)")
    parser.add_argument("--col", type=int, help="1-based start column (requires --row)")
    parser.add_argument("-s", "--sleep", type=int,
                        help="delay between ticks in microseconds")
    parser.add_argument("-q", "--quiet", action="store_true", default=None,
                        help="quiet mode: only print the final board")
    parser.add_argument("--max-steps", type=int, dest="max_steps",
                        help="stop after this many ticks")
    parser.add_argument("--params", type=str, default=None,
                        help="JSON/TOML parameter file; flags override its values")
    parser.add_argument("--out", type=str, default=None,
                        help="save the final walk to this .npz file, or into this directory "
                             "under a timestamped name")
    parser.add_argument("--no-color", action="store_true",
                        help="do not highlight the marker")
    parser.add_argument("--rejection", action="store_true",
                        help="use rejection sampling instead of the shift reduction")
    return parser


def resolve_settings(args: argparse.Namespace) -> dict:
    """Merge defaults, the optional parameter file and explicit flags."""
    settings = dict(DEFAULTS)
    if args.params is not None:
        file_params = utils.load_params(args.params)
        unknown = set(file_params) - set(DEFAULTS)
        if unknown:
            raise ValueError(f"unknown parameters in {args.params}: {sorted(unknown)}")
        settings.update(file_params)
    for key in DEFAULTS:
        value = getattr(args, key)
        if value is not None:
            settings[key] = value
    return settings


def check_types(settings: dict) -> None:
    for key in ("size", "run_length", "sleep", "row", "col", "max_steps"):
        if settings[key] is not None and not is_int(settings[key]):
            raise ValueError(f"{key} must be an integer, got {settings[key]!r}")
    for key in ("avoid", "quiet"):
        if not isinstance(settings[key], bool):
            raise ValueError(f"{key} must be true or false, got {settings[key]!r}")


def make_config(settings: dict) -> WalkConfig:
    if settings["size"] is None:
        raise ValueError("a board length is required (-n)")
    check_types(settings)
    row, col = settings["row"], settings["col"]
    if (row is None) != (col is None):
        raise ValueError("--row and --col must be given together")
    start = None if row is None else (row - 1, col - 1)
    config = WalkConfig(
        size=settings["size"],
        avoid=settings["avoid"],
        run_length=settings["run_length"],
        start=start,
    )
    config.validate()
    if settings["sleep"] < 0:
        raise ValueError(f"sleep interval must be >= 0, got {settings['sleep']}")
    if settings["max_steps"] is not None and settings["max_steps"] < 1:
        raise ValueError(f"max steps must be >= 1, got {settings['max_steps']}")
    return config


def output_path(out: str, config: WalkConfig) -> Path:
    """
    Resolve ``--out``: a directory (existing, or spelled with a trailing
    separator) gets a timestamped file name inside it.
    """
    path = Path(out)
    if path.is_dir() or out.endswith(("/", "\\")):
        model = "avoiding" if config.avoid else "free"
        path = path / f"{model}_N{config.size}_{utils.now_str()}.npz"
    return path


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = resolve_settings(args)
        config = make_config(settings)
    except (ValueError, OSError) as exc:
        parser.error(str(exc))

    color = not args.no_color
    quiet = settings["quiet"]
    delay = settings["sleep"] / 1_000_000

    def on_step(engine: WalkEngine, outcome: StepOutcome) -> None:
        if outcome is not StepOutcome.RUNNING:
            return
        if delay:
            time.sleep(delay)
        if not quiet:
            render.print_grid(engine.grid, color=color)

    try:
        with UniformSampler(EntropyBuffer(), rejection=args.rejection) as sampler:
            engine = WalkEngine(config, sampler=sampler)
            engine.initialize()
            if not quiet:
                render.print_grid(engine.grid, color=color)
            result = engine.run(max_steps=settings["max_steps"], on_step=on_step)
    except EntropyError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ENTROPY
    except WalkConsistencyError as exc:
        print(f"internal error: {exc}", file=sys.stderr)
        return EXIT_INTERNAL

    render.print_grid(result.grid, color=color)

    if args.out is not None:
        out_path = output_path(args.out, config)
        utils.save_walk_result(out_path, result)
        print(f"Walk saved to {out_path} ({result.meta['steps']} steps, "
              f"outcome={result.meta['outcome']})")

    return 0


if __name__ == "__main__":
    sys.exit(main())
