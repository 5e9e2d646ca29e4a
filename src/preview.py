"""Static PNG/PDF preview of a puzzle, optionally with a path drawn on it.

matplotlib is imported lazily (Agg backend) so the engine itself never pays
for it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from board.geometry import CELL_COUNT, MAX_INDEX, cell_center, edge_midpoint, list_all_edges
from project_config import get_section
from symbols.common import Puzzle
from symbols.registry import Kind

_PREVIEW_CFG = get_section("preview", {})
CELL_SIZE_IN = float(_PREVIEW_CFG.get("cell_size_in", 1.2))
DPI = int(_PREVIEW_CFG.get("dpi", 120))
PATH_COLOR = str(_PREVIEW_CFG.get("path_color", "#f4c430"))
GRID_COLOR = str(_PREVIEW_CFG.get("grid_color", "#3a3a3a"))
BACKGROUND = str(_PREVIEW_CFG.get("background", "#1b1b1f"))

_ARROW_GLYPHS = {
    "right": "→",
    "down-right": "↘",
    "down": "↓",
    "down-left": "↙",
    "left": "←",
    "up-left": "↖",
    "up": "↑",
    "up-right": "↗",
}
_COUNT_GLYPHS = {
    Kind.TRIANGLES: "▲",
    Kind.DOTS: "•",
    Kind.DIAMONDS: "◆",
    Kind.TALLY_MARKS: "|",
}
_PLAIN_GLYPHS = {
    Kind.CARDINAL: "✚",
    Kind.GHOST: "☺",
    Kind.CRYSTALS: "✦",
    Kind.NEGATOR: "Y",
    Kind.STARS: "★",
}


def _text(ax, target: Any, label: str, size: float = 16) -> None:
    x, y = cell_center(target.cell)
    ax.text(x, y, label, ha="center", va="center", fontsize=size, color=getattr(target, "color", "#ffffff"))


def _draw_square(ax, target: Any) -> None:
    from matplotlib.patches import FancyBboxPatch

    x, y = cell_center(target.cell)
    ax.add_patch(
        FancyBboxPatch((x - 0.16, y - 0.16), 0.32, 0.32, boxstyle="round,pad=0.02", color=target.color, zorder=3)
    )


def _draw_polyomino(ax, target: Any) -> None:
    from matplotlib.patches import Rectangle

    x, y = cell_center(target.cell)
    unit = 0.12
    width = max(cx for cx, _ in target.shape.cells) + 1
    height = max(cy for _, cy in target.shape.cells) + 1
    left = x - width * unit / 2
    top = y - height * unit / 2
    for cx, cy in target.shape.cells:
        ax.add_patch(
            Rectangle(
                (left + cx * unit, top + cy * unit),
                unit * 0.9,
                unit * 0.9,
                facecolor="none" if target.negative else target.color,
                edgecolor=target.color,
                linewidth=1.2,
                zorder=3,
            )
        )
    if target.rotatable:
        ax.text(x + 0.3, y - 0.3, "↻", ha="center", va="center", fontsize=8, color=target.color)


def _draw_hexagon(ax, target: Any) -> None:
    x, y = target.position
    ax.plot([x], [y], marker="h", markersize=9, color="#0b0b0b", markeredgecolor="#d0d0d0", zorder=5)


def _drawer(kind: Kind) -> Optional[Callable[[Any, Any], None]]:
    if kind is Kind.COLOR_SQUARES:
        return _draw_square
    if kind is Kind.HEXAGON:
        return _draw_hexagon
    if kind in (Kind.POLYOMINO, Kind.ROTATED_POLYOMINO, Kind.NEGATIVE_POLYOMINO, Kind.ROTATED_NEGATIVE_POLYOMINO):
        return _draw_polyomino
    if kind in _COUNT_GLYPHS:
        return lambda ax, t: _text(ax, t, _COUNT_GLYPHS[kind] * t.count, 12)
    if kind in _PLAIN_GLYPHS:
        return lambda ax, t: _text(ax, t, _PLAIN_GLYPHS[kind])
    if kind is Kind.ARROWS:
        return lambda ax, t: _text(ax, t, _ARROW_GLYPHS[t.direction] * t.count, 11)
    if kind is Kind.CHEVRONS:
        return lambda ax, t: _text(ax, t, f"{_ARROW_GLYPHS[t.direction]}{t.count}", 13)
    if kind is Kind.MINESWEEPER:
        return lambda ax, t: _text(ax, t, str(t.value))
    if kind is Kind.SPINNER:
        return lambda ax, t: _text(ax, t, "↻" if t.direction == "clockwise" else "↺")
    if kind is Kind.WATER_DROPLET:
        return lambda ax, t: _text(ax, t, f"◖{_ARROW_GLYPHS[t.direction]}", 13)
    if kind is Kind.SENTINEL:
        return lambda ax, t: _text(ax, t, f"◉{_ARROW_GLYPHS[t.direction]}", 13)
    return None


def render_puzzle(puzzle: Puzzle, path: Optional[Sequence[Sequence[int]]] = None, *, out_path: str | Path) -> Path:
    """Draw *puzzle* (and *path* when given) to ``out_path``; the suffix picks PNG or PDF."""

    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    size = CELL_SIZE_IN * CELL_COUNT + 0.8
    fig, ax = plt.subplots(figsize=(size, size))
    fig.patch.set_facecolor(BACKGROUND)
    ax.set_facecolor(BACKGROUND)

    for edge in list_all_edges():
        (x1, y1), (x2, y2) = edge
        if edge in puzzle.edges:
            ax.plot([x1, x2], [y1, y2], color=GRID_COLOR, linewidth=7, solid_capstyle="round", zorder=1)
        else:
            mx, my = edge_midpoint(edge)
            for sx, sy in ((x1, y1), (x2, y2)):
                ax.plot([sx, sx + (mx - sx) * 0.6], [sy, sy + (my - sy) * 0.6], color=GRID_COLOR, linewidth=7, zorder=1)

    ax.plot([puzzle.start.x], [puzzle.start.y], marker="o", markersize=18, color=GRID_COLOR, zorder=2)
    ax.plot([puzzle.end.x], [puzzle.end.y], marker="o", markersize=10, color=GRID_COLOR, zorder=2)

    for kind in Kind:
        drawer = _drawer(kind)
        if drawer is None:
            continue
        for target in puzzle.symbols.get(kind, ()):
            drawer(ax, target)

    if path:
        xs = [p[0] for p in path]
        ys = [p[1] for p in path]
        ax.plot(xs, ys, color=PATH_COLOR, linewidth=5, solid_capstyle="round", zorder=4)
        ax.plot([xs[0]], [ys[0]], marker="o", markersize=16, color=PATH_COLOR, zorder=4)

    ax.set_xlim(-0.4, MAX_INDEX + 0.4)
    ax.set_ylim(MAX_INDEX + 0.4, -0.4)
    ax.set_aspect("equal")
    ax.axis("off")

    target_path = Path(out_path)
    target_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(target_path, dpi=DPI, facecolor=BACKGROUND)
    plt.close(fig)
    return target_path


__all__ = ["render_puzzle"]
