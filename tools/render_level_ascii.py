#!/usr/bin/env python3
"""
Render a generated level as ASCII art for debugging.

Prints the room lattice (one character per slot) and, with --grid, the
navigation grid (one character per cell), north at the top.

Usage:
    python tools/render_level_ascii.py [--width N] [--height N] [--seed S] [--grid]
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path so we can import dungeon_core
sys.path.insert(0, str(Path(__file__).parent.parent))

from dungeon_core.context import CoreContext
from dungeon_core.errors import LevelBuildError
from dungeon_core.rooms import Archetype
from dungeon_core.setup import build_level


ARCHETYPE_TO_ASCII = {
    Archetype.START: "S",
    Archetype.SHOP: "$",
    Archetype.BOSS: "B",
    Archetype.GENERIC: "#",
}


def render_lattice_ascii(layout):
    """Convert the room lattice to an ASCII string."""
    rooms = layout.grid()
    lines = []
    for y in reversed(range(layout.height)):
        line = ""
        for x in range(layout.width):
            room = rooms[x][y]
            line += ARCHETYPE_TO_ASCII[room.archetype] if room is not None else "."
        lines.append(line)
    return "\n".join(lines)


def render_grid_ascii(grid):
    """Convert the navigation grid to an ASCII string: '.' walkable, '#' blocked."""
    mask = grid.walkable_mask()
    lines = []
    for y in reversed(range(grid.height)):
        lines.append("".join("." if mask[x, y] else "#" for x in range(grid.width)))
    return "\n".join(lines)


def main():
    parser = argparse.ArgumentParser(description="Render a generated level as ASCII art")
    parser.add_argument("--width", type=int, default=10, help="Lattice width in room slots")
    parser.add_argument("--height", type=int, default=10, help="Lattice height in room slots")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible generation")
    parser.add_argument("--grid", action="store_true", help="Also print the navigation grid")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log build steps")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    context = CoreContext.create(seed=args.seed)
    context.config.generation.lattice_width = args.width
    context.config.generation.lattice_height = args.height

    try:
        level = build_level(context)
    except LevelBuildError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(render_lattice_ascii(level.layout))

    if args.grid:
        print()
        print(render_grid_ascii(level.grid))

    # Print some debug info
    print(f"\n--- Debug Info ---")
    print(f"Lattice: {level.layout.width}x{level.layout.height} slots")
    print(f"Rooms generated: {level.layout.room_count}")
    print(f"Connections: {len(level.graph.edges()) // 2}")
    print(f"Nav grid: {level.grid.width}x{level.grid.height} cells")
    return 0


if __name__ == "__main__":
    sys.exit(main())
