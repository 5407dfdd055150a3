#!/usr/bin/env python3
"""
Simple demo script showing cave generation and contouring.
"""

import numpy as np
from py_cavemap.core import CaveGenerator, CaveOptions, CaveMap, ContourBuilder, TriangulateMode


def render_ascii(grid):
    """Print a density grid with y increasing upwards."""
    width, height = grid.shape
    for y in range(height - 1, -1, -1):
        print("".join("#" if grid[x, y] >= 127 else "." for x in range(width)))


def main():
    """Demonstrate cave generation."""
    print("Py-CaveMap Generation Demo")
    print("=" * 40)

    width, height = 64, 32
    generator = CaveGenerator(CaveOptions(seed="demo123"))

    for mode in TriangulateMode:
        print(f"\n{mode.value.upper()} traversal:")
        print("-" * 30)

        cave_map = CaveMap(generator, width, height, builder=ContourBuilder(mode))
        mesh = cave_map.refresh()
        closed = sum(1 for o in mesh.outlines if o[0] == o[-1])

        print(f"  Vertices: {mesh.vertex_count}")
        print(f"  Triangles: {mesh.triangle_count}")
        print(f"  Solid blocks: {len(mesh.solid_blocks)}")
        print(f"  Outlines: {len(mesh.outlines)} ({closed} closed)")
        print(f"  Start point: {cave_map.starting_point}")

    print(f"\nRooms: {len(generator.rooms)}, passages: {len(generator.passages)}")
    print(f"Open tiles: {np.count_nonzero(generator.map == 0)} of {generator.map.size}\n")
    render_ascii(generator.map)


if __name__ == "__main__":
    main()
