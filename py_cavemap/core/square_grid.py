"""
Marching squares grid of control nodes, midpoint nodes and cells.

Layout of one cell (square)::

     A----x----B
     |         |
     w         y
     |         |
     D----z----C

A, B, C, D are control nodes, one per density value. x, y, z, w are midpoint
nodes, one per edge between two control nodes, shared with the neighbouring
cell on the other side of that edge.

All nodes live in a single arena addressed by integer handles. Control node
(x, y) owns the midpoint to its right and the midpoint above it, so every edge
midpoint has exactly one handle no matter which cell asks for it.
"""

from typing import NamedTuple, Tuple

import numpy as np

from .density_grid import SOLID_THRESHOLD, validate_density_grid


class CellNodes(NamedTuple):
    """Node handles of one cell."""

    top_left: int
    top_right: int
    bottom_right: int
    bottom_left: int
    centre_top: int
    centre_right: int
    centre_bottom: int
    centre_left: int


def midpoint_weights(v1, v2) -> np.ndarray:
    """
    Parametric position of the contour crossing between two density values.

    Returns t such that lerp(p1, p2, t) is where the normalised density
    crosses 0.5, clamped to [0, 1]. Equal densities give 1.0.
    """
    f1 = np.asarray(v1, dtype=np.float64) / 255.0
    f2 = np.asarray(v2, dtype=np.float64) / 255.0
    diff = f2 - f1
    equal = diff == 0.0
    t = np.where(equal, 1.0, (0.5 - f1) / np.where(equal, 1.0, diff))
    return np.clip(t, 0.0, 1.0)


def midpoint_weight(v1: int, v2: int) -> float:
    """Scalar form of :func:`midpoint_weights`."""
    return float(midpoint_weights(v1, v2))


def cell_variants(values: np.ndarray) -> np.ndarray:
    """
    Marching squares case code of every cell.

    One bit per solid corner, clockwise from top-left: A=8, B=4, C=2, D=1.
    """
    solid = (values >= SOLID_THRESHOLD).astype(np.uint8)
    top_left = solid[:-1, 1:]
    top_right = solid[1:, 1:]
    bottom_right = solid[1:, :-1]
    bottom_left = solid[:-1, :-1]
    return (top_left << 3) | (top_right << 2) | (bottom_right << 1) | bottom_left


class SquareGrid:
    """Node arena and cell lookup for one density grid."""

    def __init__(self, grid, cell_size: float):
        """
        Build nodes and cells for a density grid.

        Args:
            grid: Density grid of shape (width, height)
            cell_size: World units between adjacent control nodes
        """
        if cell_size <= 0:
            raise ValueError(f"Cell size must be positive, got {cell_size}")

        self.values = validate_density_grid(grid)
        self.cell_size = float(cell_size)
        self.nodes_x, self.nodes_y = self.values.shape
        self.cells_x = self.nodes_x - 1
        self.cells_y = self.nodes_y - 1
        self.control_count = self.nodes_x * self.nodes_y

        # Grid is centred on the world origin
        half = self.cell_size * 0.5
        self.x_offset = -self.cell_size * self.nodes_x * 0.5 + half
        self.y_offset = -self.cell_size * self.nodes_y * 0.5 + half

        self.positions = self._build_positions()
        self.variants = cell_variants(self.values)

    def _build_positions(self) -> np.ndarray:
        n = self.control_count
        xs = np.arange(self.nodes_x) * self.cell_size + self.x_offset
        ys = np.arange(self.nodes_y) * self.cell_size + self.y_offset
        control = np.empty((self.nodes_x, self.nodes_y, 2), dtype=np.float64)
        control[:, :, 0] = xs[:, None]
        control[:, :, 1] = ys[None, :]

        half = self.cell_size * 0.5
        right = control.copy()
        right[:, :, 0] += half
        above = control.copy()
        above[:, :, 1] += half

        # Slide midpoints along their edge to where the contour crosses
        t = midpoint_weights(self.values[:-1, :], self.values[1:, :])[..., None]
        right[:-1, :] = control[:-1, :] + (control[1:, :] - control[:-1, :]) * t
        t = midpoint_weights(self.values[:, :-1], self.values[:, 1:])[..., None]
        above[:, :-1] = control[:, :-1] + (control[:, 1:] - control[:, :-1]) * t

        positions = np.empty((3 * n, 2), dtype=np.float64)
        positions[:n] = control.reshape(n, 2)
        positions[n:2 * n] = right.reshape(n, 2)
        positions[2 * n:] = above.reshape(n, 2)
        return positions

    @property
    def node_count(self) -> int:
        return 3 * self.control_count

    def control(self, x: int, y: int) -> int:
        return x * self.nodes_y + y

    def right_of(self, x: int, y: int) -> int:
        return self.control_count + x * self.nodes_y + y

    def above(self, x: int, y: int) -> int:
        return 2 * self.control_count + x * self.nodes_y + y

    def node_value(self, handle: int) -> int:
        """Density value of a control node handle."""
        if not 0 <= handle < self.control_count:
            raise ValueError(f"Handle {handle} is not a control node")
        return int(self.values.flat[handle])

    def cell(self, x: int, y: int) -> CellNodes:
        """Node handles of cell (x, y)."""
        return CellNodes(
            top_left=self.control(x, y + 1),
            top_right=self.control(x + 1, y + 1),
            bottom_right=self.control(x + 1, y),
            bottom_left=self.control(x, y),
            centre_top=self.right_of(x, y + 1),
            centre_right=self.above(x + 1, y),
            centre_bottom=self.right_of(x, y),
            centre_left=self.above(x, y),
        )

    def variant(self, x: int, y: int) -> int:
        return int(self.variants[x, y])

    def is_solid_cell(self, x: int, y: int) -> bool:
        """Whether cell (x, y) is completely solid (variant 15)."""
        return self.variants[x, y] == 15

    def world_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """World positions of the lowest and highest control nodes."""
        world_min = self.positions[self.control(0, 0)].copy()
        world_max = self.positions[self.control(self.cells_x, self.cells_y)].copy()
        return world_min, world_max
