"""
Map facade tying a density source to the contour mesh.

Owns the density grid and the built mesh, converts between grid and world
coordinates and answers navigation queries (open space, floors, start point).
"""

import math
from collections import deque
from typing import List, Optional, Sequence, Tuple

import numpy as np
import structlog

from .contour_builder import ContourBuilder, ContourMesh
from .density_grid import NAVIGABLE_THRESHOLD, DensitySource, validate_density_grid
from .rooms import Tile

logger = structlog.get_logger()

# World units spanned by the height of the map
WORLD_SPAN = 100.0
# Shortest floor considered when picking a starting point
START_FLOOR_POINTS = 3

Point = Tuple[float, float]


def get_floor_segments(outlines: Sequence[np.ndarray], min_points: int) -> List[List[Point]]:
    """
    Find flat floor areas along outlines.

    Outlines run clockwise from the solid side, so a floor is a run of points
    with the same y where every x is greater than the previous one (a ceiling
    runs the other way).

    Args:
        outlines: Each an (n, 2) array of world positions
        min_points: Minimum number of points in a floor. Longer floors are
            returned whole.

    Returns:
        Floor segments as lists of (x, y) points
    """
    floors = []
    for outline in outlines:
        sequence: List[Point] = []
        for i in range(1, len(outline)):
            prev = outline[i - 1]
            curr = outline[i]
            if math.isclose(prev[1], curr[1], rel_tol=1e-6, abs_tol=1e-6) and curr[0] > prev[0]:
                if not sequence:
                    sequence.append((float(prev[0]), float(prev[1])))
                sequence.append((float(curr[0]), float(curr[1])))
            else:
                # Sequence broken
                if len(sequence) >= min_points:
                    floors.append(sequence)
                sequence = []
        if len(sequence) >= min_points:
            floors.append(sequence)
    return floors


class CaveMap:
    """A density grid, its mesh and the coordinate mapping between them."""

    def __init__(self, source: DensitySource, width: int = 80, height: int = 60,
                 builder: Optional[ContourBuilder] = None):
        """
        Args:
            source: Where density data comes from
            width: Requested grid width
            height: Requested grid height
            builder: Contour builder; row order with default ratio if omitted
        """
        if source is None:
            raise ValueError("CaveMap needs a density source")
        if not isinstance(source, DensitySource):
            raise ValueError(
                f"Density source must implement DensitySource, got {type(source).__name__}"
            )
        self.source = source
        self.width = width
        self.height = height
        self.builder = builder or ContourBuilder()

        self.density: Optional[np.ndarray] = None
        self.mesh: Optional[ContourMesh] = None
        self.cell_size = 0.0
        self.world_min = np.zeros(2)
        self.starting_point: Optional[Point] = None

    @property
    def is_built(self) -> bool:
        return self.mesh is not None and self.mesh.vertex_count > 0

    def refresh(self, reload: bool = False) -> ContourMesh:
        """Fetch density data and rebuild the mesh if needed."""
        if reload or not self.is_built:
            density = self.source.get_density(self.width, self.height, reload)
            self.density = validate_density_grid(density)
            self.cell_size = WORLD_SPAN / self.density.shape[1]
            self.mesh = self.builder.build(self.density, self.cell_size)
            self.world_min = self.mesh.world_min
            logger.info(
                "Map refreshed",
                width=self.density.shape[0],
                height=self.density.shape[1],
                cell_size=self.cell_size,
            )
        self.starting_point = self.find_start_point()
        return self.mesh

    def destroy(self) -> None:
        self.mesh = None
        self.density = None
        self.starting_point = None

    def _require_density(self) -> np.ndarray:
        if self.density is None:
            raise ValueError("Map has not been built; call refresh() first")
        return self.density

    def outline_points(self) -> List[np.ndarray]:
        if self.mesh is None:
            return []
        return [self.mesh.vertices[o] for o in self.mesh.outlines]

    def get_floor_segments(self, min_points: int) -> List[List[Point]]:
        return get_floor_segments(self.outline_points(), min_points)

    def find_start_point(self) -> Optional[Point]:
        """Middle of the longest floor, lifted one unit; None if there is no floor."""
        floors = self.get_floor_segments(START_FLOOR_POINTS)
        best_floor = None
        for floor in floors:
            if best_floor is None or len(floor) > len(best_floor):
                best_floor = floor
        if best_floor is None:
            logger.error("Unable to find a starting point on the floor")
            return None
        x, y = best_floor[len(best_floor) // 2]
        return (x, y + 1.0)

    def grid_to_world(self, grid_pos: Sequence[int]) -> Point:
        """Convert a map grid point to world position."""
        return (
            float(self.world_min[0] + grid_pos[0] * self.cell_size),
            float(self.world_min[1] + grid_pos[1] * self.cell_size),
        )

    def grid_to_world_many(self, grid_list: Sequence[Sequence[int]]) -> List[Point]:
        return [self.grid_to_world(g) for g in grid_list]

    def grid_to_world_path(self, grid_list: Sequence[Sequence[int]], world_end: Point,
                           world_start: Optional[Point] = None) -> List[Point]:
        """Convert a grid path to world space, pinning the end (and start) points."""
        path = []
        last = len(grid_list) - 1
        for i, g in enumerate(grid_list):
            if i == 0 and world_start is not None:
                path.append(tuple(world_start))
            elif i == last:
                path.append(tuple(world_end))
            else:
                path.append(self.grid_to_world(g))
        return path

    def world_to_grid(self, world_pos: Sequence[float]) -> Tile:
        """Grid point containing a world position (truncated towards zero)."""
        gx = (world_pos[0] - self.world_min[0]) / self.cell_size
        gy = (world_pos[1] - self.world_min[1]) / self.cell_size
        return Tile(int(gx), int(gy))

    def world_size_to_grid(self, world_size: float) -> float:
        return world_size / self.cell_size

    def is_grid_open_space(self, grid_pos: Sequence[int],
                           object_width: Optional[float] = None) -> bool:
        """
        Whether a grid position is navigable open space.

        Args:
            grid_pos: Grid coordinate
            object_width: Width of an object in grid units; wider objects need
                every tile within half their width to be open too
        """
        density = self._require_density()
        x, y = int(grid_pos[0]), int(grid_pos[1])
        width, height = density.shape
        if not (0 <= x < width and 0 <= y < height):
            return False
        if density[x, y] >= NAVIGABLE_THRESHOLD:
            return False

        if object_width is not None and object_width > 1.0:
            half_width = object_width * 0.5
            extent = int(round(half_width))
            for dy in range(-extent, extent + 1):
                for dx in range(-extent, extent + 1):
                    if math.sqrt(dx * dx + dy * dy) <= half_width and \
                            not self.is_grid_open_space((x + dx, y + dy)):
                        return False
        return True

    def nearest_grid_open_space(self, grid_pos: Sequence[int]) -> Optional[Tile]:
        """
        The closest open grid position by breadth first search.

        Returns the input when it is already open, None when the map has no
        open space at all.
        """
        density = self._require_density()
        width, height = density.shape
        start = Tile(
            min(max(int(grid_pos[0]), 0), width - 1),
            min(max(int(grid_pos[1]), 0), height - 1),
        )
        seen = np.zeros((width, height), dtype=bool)
        seen[start.x, start.y] = True
        queue = deque([start])
        while queue:
            t = queue.popleft()
            if density[t.x, t.y] < NAVIGABLE_THRESHOLD:
                return t
            for nx, ny in ((t.x + 1, t.y), (t.x - 1, t.y), (t.x, t.y + 1), (t.x, t.y - 1)):
                if 0 <= nx < width and 0 <= ny < height and not seen[nx, ny]:
                    seen[nx, ny] = True
                    queue.append(Tile(nx, ny))

        logger.error("Unable to find any open space in map", near=tuple(grid_pos))
        return None
