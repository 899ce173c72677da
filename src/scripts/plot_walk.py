# src/scripts/plot_walk.py
import argparse
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.colors as mcolors  # noqa: E402
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from walk_sim import utils  # noqa: E402

CELL_COLORS = ["white", "lightsteelblue", "magenta"]


def format_title(meta):
    """
    Format a title string from walk metadata.

    Args:
        meta: Dictionary containing walk metadata

    Returns:
        Formatted title string, or None when there is no metadata
    """
    if not meta:
        return None
    parts = [
        f"Model={meta.get('model', '?')}",
        f"N={meta.get('size', '?')}",
        f"steps={meta.get('steps', '?')}",
    ]
    run_length = meta.get("run_length")
    if run_length:
        parts.append(f"run={run_length}")
    outcome = meta.get("outcome")
    if outcome is not None:
        parts.append(outcome)
    return ", ".join(parts)


def plot_walk(result: utils.WalkResult, out_path, *, show_path: bool = True, dpi: int = 150):
    """Draw grid cells and, optionally, the path line; save to ``out_path``."""
    if result.grid is None:
        raise ValueError("walk result has no grid to plot")
    grid = np.asarray(result.grid)
    n = grid.shape[0]
    cmap = mcolors.ListedColormap(CELL_COLORS)
    norm = mcolors.BoundaryNorm([-0.5, 0.5, 1.5, 2.5], cmap.N)

    fig, ax = plt.subplots(figsize=(6, 6))
    ax.imshow(grid, cmap=cmap, norm=norm, interpolation="nearest")
    if show_path and result.path is not None and len(result.path) > 1:
        path = np.asarray(result.path)
        ax.plot(path[:, 1], path[:, 0], color="tab:blue", linewidth=1.0)
        ax.plot(path[0, 1], path[0, 0], marker="o", color="tab:green", markersize=5)

    ax.set_xlim(-0.5, n - 0.5)
    ax.set_ylim(n - 0.5, -0.5)
    ax.set_xticks([])
    ax.set_yticks([])
    title = format_title(result.meta)
    if title:
        ax.set_title(title, fontsize=10)

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return out_path


def main(argv=None):
    parser = argparse.ArgumentParser(description="Plot a saved grid walk")
    parser.add_argument("input", help="walk .npz file")
    parser.add_argument("--out", default=None, help="output PNG (default: alongside input)")
    parser.add_argument("--no-path", action="store_true", help="do not draw the path line")
    parser.add_argument("--dpi", type=int, default=150)
    args = parser.parse_args(argv)

    result = utils.load_walk_result(args.input)
    out = args.out or str(Path(args.input).with_suffix(".png"))
    plot_walk(result, out, show_path=not args.no_path, dpi=args.dpi)
    print(f"Plot saved to {out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
