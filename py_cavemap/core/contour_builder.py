"""
Marching squares contouring of a density grid into a solid mesh.

This module handles:
- Per-cell triangulation from the 16 case table
- Merging fully solid cells into larger quads
- Registering boundary edges for outline tracing
- Pushing rim vertices out past the map bounds
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Sequence, Tuple

import numpy as np
import structlog

from .case_table import CASES, FULLY_SOLID
from .outline_tracer import trace_outlines
from .square_grid import SquareGrid

logger = structlog.get_logger()

# Vertices this close to the map bounds count as on the rim
RIM_TOLERANCE = 0.001
# Rim vertices are pushed out by this many cells
RIM_PUSH_CELLS = 100


class TriangulateMode(str, Enum):
    """Order in which cells are visited, which shapes the merged solid blocks."""

    ROWS = "rows"
    COLUMNS = "columns"
    SPIRAL = "spiral"


def iter_rows(cells_x: int, cells_y: int) -> Iterator[Tuple[int, int, int, int]]:
    for y in range(cells_y):
        for x in range(cells_x):
            yield x, y, 1, 1


def iter_columns(cells_x: int, cells_y: int) -> Iterator[Tuple[int, int, int, int]]:
    for x in range(cells_x):
        for y in range(cells_y):
            yield x, y, 1, 1


def iter_spiral(cells_x: int, cells_y: int) -> Iterator[Tuple[int, int, int, int]]:
    """
    Visit cells in an inward spiral from (0, 0).

    Yields (x, y, x_fill, y_fill) where the fill directions point into the
    part of the grid not yet visited, which is where solid merging may grow.
    """
    max_x = cells_x - 1
    max_y = cells_y - 1
    min_x = 0
    min_y = 0
    x = y = 0
    x_dir, y_dir = 1, 0
    x_fill, y_fill = 1, 1
    remaining = cells_x * cells_y
    while remaining > 0:
        yield x, y, x_fill, y_fill

        new_x = x + x_dir
        new_y = y + y_dir
        if new_x > max_x or new_y > max_y or new_x < min_x or new_y < min_y:
            # Hit an edge, always turn left
            if x_dir == 1:
                x_dir, y_dir = 0, 1
                min_y = y + 1
                x_fill = -1
            elif y_dir == 1:
                x_dir, y_dir = -1, 0
                max_x = x - 1
                y_fill = -1
            elif x_dir == -1:
                x_dir, y_dir = 0, -1
                max_y = y - 1
                x_fill = 1
            else:
                x_dir, y_dir = 1, 0
                min_x = x + 1
                y_fill = 1
        x += x_dir
        y += y_dir
        remaining -= 1


TRAVERSALS = {
    TriangulateMode.ROWS: iter_rows,
    TriangulateMode.COLUMNS: iter_columns,
    TriangulateMode.SPIRAL: iter_spiral,
}


@dataclass(frozen=True)
class ContourMesh:
    """Result of one contour build."""

    vertices: np.ndarray  # (N, 2) world positions
    triangles: np.ndarray  # (M, 3) vertex indices, clockwise
    outlines: List[List[int]]
    world_min: np.ndarray
    world_max: np.ndarray
    cell_size: float
    mode: TriangulateMode = TriangulateMode.ROWS
    edge_map: Dict[int, int] = field(default_factory=dict, repr=False)
    # Merged solid rectangles as inclusive cell ranges (x_lo, y_lo, x_hi, y_hi)
    solid_blocks: List[Tuple[int, int, int, int]] = field(default_factory=list, repr=False)

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles)

    def outline_points(self, index: int) -> np.ndarray:
        """World positions of one outline."""
        return self.vertices[self.outlines[index]]

    def to_dict(self) -> dict:
        """Plain lists for JSON consumers."""
        return {
            "vertices": self.vertices.tolist(),
            "triangles": self.triangles.tolist(),
            "outlines": [list(o) for o in self.outlines],
            "world_min": self.world_min.tolist(),
            "world_max": self.world_max.tolist(),
            "cell_size": self.cell_size,
            "mode": self.mode.value,
        }


class _MeshBuild:
    """Scratch state for a single build; never shared between builds."""

    def __init__(self, grid: SquareGrid):
        self.grid = grid
        self.vertices: List[np.ndarray] = []
        self.triangles: List[int] = []
        self.vertex_index = np.full(grid.node_count, -1, dtype=np.int64)
        # Vertex index -> next clockwise vertex index (viewed from the solid side)
        self.edge_map: Dict[int, int] = {}
        # True until a vertex is found to be part of an edge
        self.outline_done: List[bool] = []
        self.merged = np.zeros((grid.cells_x, grid.cells_y), dtype=bool)
        self.blocks: List[Tuple[int, int, int, int]] = []

    def assign_vertices(self, handles: Sequence[int]) -> None:
        # First reference wins, later cells reuse the same vertex
        for handle in handles:
            if self.vertex_index[handle] == -1:
                self.vertex_index[handle] = len(self.vertices)
                self.vertices.append(self.grid.positions[handle])
                self.outline_done.append(True)

    def mesh_from_points(self, handles: Sequence[int]) -> None:
        """Fan triangulate a clockwise polygon."""
        self.assign_vertices(handles)
        first = int(self.vertex_index[handles[0]])
        for i in range(len(handles) - 2):
            self.triangles.extend(
                (
                    first,
                    int(self.vertex_index[handles[i + 1]]),
                    int(self.vertex_index[handles[i + 2]]),
                )
            )

    def edge_from_points(self, handles: Sequence[int]) -> None:
        """Register boundary edges between consecutive points."""
        for prev_handle, handle in zip(handles, handles[1:]):
            prev_index = int(self.vertex_index[prev_handle])
            index = int(self.vertex_index[handle])
            if prev_index in self.edge_map:
                raise RuntimeError(
                    f"Vertex {prev_index} already has a boundary edge"
                )
            self.edge_map[prev_index] = index
            self.outline_done[prev_index] = False
            self.outline_done[index] = False


class ContourBuilder:
    """Builds a solid mesh and its outlines from a density grid."""

    def __init__(self, mode: TriangulateMode = TriangulateMode.ROWS, max_ratio: float = 3.0):
        """
        Args:
            mode: Cell traversal order
            max_ratio: Largest aspect ratio allowed for merged solid blocks
        """
        if max_ratio < 1.0:
            raise ValueError(f"max_ratio must be at least 1, got {max_ratio}")
        self.mode = TriangulateMode(mode)
        self.max_ratio = float(max_ratio)

    def build(self, grid, cell_size: float) -> ContourMesh:
        """
        Triangulate a density grid.

        Args:
            grid: Density grid of shape (width, height), at least 2x2
            cell_size: World units per grid step

        Returns:
            ContourMesh with vertices, triangles and outlines
        """
        square_grid = SquareGrid(grid, cell_size)
        state = _MeshBuild(square_grid)

        for x, y, x_fill, y_fill in TRAVERSALS[self.mode](
            square_grid.cells_x, square_grid.cells_y
        ):
            self._triangulate_cell(state, x, y, x_fill, y_fill)

        world_min, world_max = square_grid.world_bounds()
        vertices = np.array(state.vertices, dtype=np.float64).reshape(-1, 2)
        expand_boundary_vertices(vertices, world_min, world_max, square_grid.cell_size)
        triangles = np.array(state.triangles, dtype=np.int64).reshape(-1, 3)
        outlines = trace_outlines(state.edge_map, state.outline_done)

        logger.info(
            "Contour mesh built",
            mode=self.mode.value,
            cells=square_grid.cells_x * square_grid.cells_y,
            vertices=len(vertices),
            triangles=len(triangles),
            outlines=len(outlines),
        )

        return ContourMesh(
            vertices=vertices,
            triangles=triangles,
            outlines=outlines,
            world_min=world_min,
            world_max=world_max,
            cell_size=square_grid.cell_size,
            mode=self.mode,
            edge_map=dict(state.edge_map),
            solid_blocks=list(state.blocks),
        )

    def _triangulate_cell(self, state: _MeshBuild, x: int, y: int,
                          x_dir: int = 1, y_dir: int = 1) -> None:
        variant = state.grid.variant(x, y)
        if variant == FULLY_SOLID:
            self._triangulate_solid(state, x, y, x_dir, y_dir)
        else:
            cell = state.grid.cell(x, y)
            shape = CASES[variant]
            if shape.polygon:
                state.mesh_from_points([getattr(cell, name) for name in shape.polygon])
            for edge in shape.edges:
                state.edge_from_points([getattr(cell, name) for name in edge])
        state.merged[x, y] = True

    def _triangulate_solid(self, state: _MeshBuild, x_start: int, y_start: int,
                           x_dir: int, y_dir: int) -> None:
        """Merge solid cells into a rectangle growing in the given directions."""
        # Nothing to do if this has already been merged
        if state.merged[x_start, y_start]:
            return

        grid = state.grid

        def mergeable(x: int, y: int) -> bool:
            return grid.is_solid_cell(x, y) and not state.merged[x, y]

        go_horz = True
        go_vert = True
        x_count = x_dir  # counts can be +ve or -ve
        y_count = y_dir
        while go_horz or go_vert:
            # Sideways; must be able to merge whole column
            if go_horz:
                next_x = x_start + x_count
                if next_x >= grid.cells_x or next_x < 0:
                    go_horz = False
                else:
                    go_horz = all(
                        mergeable(next_x, y)
                        for y in range(y_start, y_start + y_count, y_dir)
                    )
            # Vertically; must be able to merge whole row
            if go_vert:
                next_y = y_start + y_count
                if next_y >= grid.cells_y or next_y < 0:
                    go_vert = False
                else:
                    go_vert = all(
                        mergeable(x, next_y)
                        for x in range(x_start, x_start + x_count, x_dir)
                    )
            # Corner - if this fails only grow vertically
            if go_horz and go_vert:
                if not mergeable(x_start + x_count, y_start + y_count):
                    go_horz = False

            if go_vert:
                y_count += y_dir
            if go_horz:
                x_count += x_dir

            # Stop before the block turns into a thin sliver
            if not go_vert or not go_horz:
                ratio = abs(x_count / y_count)
                if ratio > self.max_ratio or ratio < 1.0 / self.max_ratio:
                    go_vert = go_horz = False

        x_end = x_start + x_count - x_dir
        y_end = y_start + y_count - y_dir
        bottom_left = grid.cell(x_start, y_start)
        top_left = grid.cell(x_start, y_end)
        top_right = grid.cell(x_end, y_end)
        bottom_right = grid.cell(x_end, y_start)
        if x_dir < 0:
            top_left, top_right = top_right, top_left
            bottom_left, bottom_right = bottom_right, bottom_left
        if y_dir < 0:
            top_left, bottom_left = bottom_left, top_left
            top_right, bottom_right = bottom_right, top_right

        state.mesh_from_points(
            (
                top_left.top_left,
                top_right.top_right,
                bottom_right.bottom_right,
                bottom_left.bottom_left,
            )
        )

        # Only mark once the whole block is known to be mergeable
        x_lo, x_hi = sorted((x_start, x_end))
        y_lo, y_hi = sorted((y_start, y_end))
        state.merged[x_lo:x_hi + 1, y_lo:y_hi + 1] = True
        state.blocks.append((x_lo, y_lo, x_hi, y_hi))


def expand_boundary_vertices(vertices: np.ndarray, world_min: np.ndarray,
                             world_max: np.ndarray, cell_size: float) -> None:
    """
    Push vertices on the map rim further out, in place.

    Hides the seam at the edge of the map by extending the mesh well past the
    playable area. Only positions change, never topology.
    """
    if len(vertices) == 0:
        return
    push = cell_size * RIM_PUSH_CELLS
    for axis in (0, 1):
        coords = vertices[:, axis]
        low = coords <= world_min[axis] + RIM_TOLERANCE
        high = ~low & (coords + RIM_TOLERANCE >= world_max[axis])
        coords[low] -= push
        coords[high] += push


def build_contour(grid, cell_size: float, mode: TriangulateMode = TriangulateMode.ROWS,
                  max_ratio: float = 3.0) -> ContourMesh:
    """Pure function form of :meth:`ContourBuilder.build`."""
    return ContourBuilder(mode=mode, max_ratio=max_ratio).build(grid, cell_size)
