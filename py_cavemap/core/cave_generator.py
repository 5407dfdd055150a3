"""
Cave generation using a seeded cellular automaton.

This module implements:
- Seeded random fill with solid borders
- Cellular automaton smoothing with a hysteresis band
- Region detection and small region elimination
- Room connectivity so the whole cave is navigable
- Optional 2x Gaussian upscaling
"""

from collections import deque
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
import structlog

from .alea_prng import AleaPRNG, derive_seed
from .density_grid import EMPTY, SOLID, DensitySource
from .rooms import Room, RoomConnector, Tile, make_rooms

logger = structlog.get_logger()

# Standard 3x3 gaussian kernel
GAUSSIAN_KERNEL = np.array(
    [
        [0.077847, 0.123317, 0.077847],
        [0.123317, 0.195346, 0.123317],
        [0.077847, 0.123317, 0.077847],
    ],
    dtype=np.float64,
)


@dataclass
class CaveOptions:
    """Cave generation options."""

    seed: Optional[str] = None
    use_random_seed: bool = False  # Derive a new seed on every generation
    random_fill_percent: int = 45  # Chance (0-100) an interior tile starts solid
    smoothing: int = 5  # Cellular automaton passes
    passage_width: int = 2  # Radius of the brush carving passages
    upscale_filter: bool = False  # Double resolution with a gaussian filter

    # More solid neighbours than this turns a tile solid
    hi_wall_threshold: int = 4
    # Fewer solid neighbours than this turns a tile empty
    low_wall_threshold: int = 4

    # Wall regions smaller than this are removed
    wall_threshold_size: int = 10
    # Open regions smaller than this are filled in
    room_threshold_size: int = 30

    def __post_init__(self):
        if not 0 <= self.random_fill_percent <= 100:
            raise ValueError(
                f"random_fill_percent must be within 0-100, got {self.random_fill_percent}"
            )
        if self.smoothing < 0:
            raise ValueError(f"smoothing must not be negative, got {self.smoothing}")
        if self.passage_width < 0:
            raise ValueError(
                f"passage_width must not be negative, got {self.passage_width}"
            )
        if self.wall_threshold_size < 0 or self.room_threshold_size < 0:
            raise ValueError("Region size thresholds must not be negative")


class CaveGenerator(DensitySource):
    """
    Generates cave density grids where every open area is reachable.

    The last grid is cached and returned again until the requested size
    changes or a reload is asked for.
    """

    def __init__(self, options: Optional[CaveOptions] = None):
        self.options = options or CaveOptions()
        self.seed: Optional[str] = self.options.seed
        self.width = 0
        self.height = 0
        self.map: Optional[np.ndarray] = None
        self.rooms: List[Room] = []
        self.passages: List[Tuple[Tile, Tile]] = []

    def get_density(
        self, desired_width: int, desired_height: int, reload: bool = False
    ) -> np.ndarray:
        if (
            reload
            or self.map is None
            or desired_width != self.width
            or desired_height != self.height
        ):
            self.generate(desired_width, desired_height)
        return self.map

    def generate(self, width: int, height: int) -> np.ndarray:
        """
        Run the full generation pipeline.

        Args:
            width: Grid width in tiles
            height: Grid height in tiles

        Returns:
            uint8 density grid, twice the size when upscaling is enabled
        """
        if width < 2 or height < 2:
            raise ValueError(f"Cave must be at least 2x2, got {width}x{height}")

        self.width = width
        self.height = height
        if self.options.use_random_seed or self.seed is None:
            self.seed = derive_seed()

        logger.info("Generating cave", width=width, height=height, seed=self.seed)

        grid = self.random_fill(width, height, self.seed)
        self.smooth(grid)
        self.rooms, connector = self.detect_regions(grid)
        self.passages = connector.passages

        if self.options.upscale_filter:
            grid = upscale(grid)

        self.map = grid
        logger.info(
            "Cave generated",
            rooms=len(self.rooms),
            passages=len(self.passages),
            open_tiles=int(np.count_nonzero(grid == EMPTY)),
        )
        return grid

    def random_fill(self, width: int, height: int, seed: str) -> np.ndarray:
        """Fill the map randomly, always with solid walls around the edge."""
        prng = AleaPRNG(seed)
        fill = self.options.random_fill_percent
        grid = np.empty((width, height), dtype=np.uint8)
        for x in range(width):
            for y in range(height):
                if x == 0 or y == 0 or x == width - 1 or y == height - 1:
                    grid[x, y] = SOLID
                else:
                    grid[x, y] = SOLID if prng.chance(fill) else EMPTY
        return grid

    def smooth(self, grid: np.ndarray) -> None:
        logger.debug("Smoothing cave", passes=self.options.smoothing)
        for _ in range(self.options.smoothing):
            self.smooth_pass(grid)

    def smooth_pass(self, grid: np.ndarray) -> None:
        """One cellular automaton pass over interior tiles, updated in place."""
        width, height = grid.shape
        hi = self.options.hi_wall_threshold
        low = self.options.low_wall_threshold
        for x in range(1, width - 1):
            for y in range(1, height - 1):
                neighbours = surrounding_wall_count(grid, x, y)
                # Stabilise at a value, flip if above/below
                if neighbours > hi:
                    grid[x, y] = SOLID
                elif neighbours < low:
                    grid[x, y] = EMPTY

    def detect_regions(self, grid: np.ndarray) -> Tuple[List[Room], RoomConnector]:
        """Remove small regions, then connect what is left into one cave."""
        wall_regions, open_regions = find_regions(grid)
        logger.debug(
            "Regions detected", walls=len(wall_regions), rooms=len(open_regions)
        )

        eliminate_small_regions(grid, wall_regions, self.options.wall_threshold_size)
        kept = eliminate_small_regions(
            grid, open_regions, self.options.room_threshold_size
        )
        rooms = make_rooms(kept, grid)

        connector = RoomConnector(grid, self.options.passage_width)
        connector.connect_all(rooms)
        return rooms, connector


def surrounding_wall_count(grid: np.ndarray, x: int, y: int) -> int:
    """Count solid tiles among the 8 neighbours; beyond the map counts as solid."""
    width, height = grid.shape
    count = 0
    for nx in range(x - 1, x + 2):
        for ny in range(y - 1, y + 2):
            if nx == x and ny == y:
                continue
            if not (0 <= nx < width and 0 <= ny < height):
                count += 1
            elif grid[nx, ny] != EMPTY:
                count += 1
    return count


def region_tiles(grid: np.ndarray, start_x: int, start_y: int, done: np.ndarray) -> List[Tile]:
    """
    Flood fill the region containing a tile.

    Returns either an entirely empty region or an entirely filled one.
    Visited tiles are marked in ``done``.
    """
    width, height = grid.shape
    is_wall = grid[start_x, start_y] != EMPTY
    tiles = []
    done[start_x, start_y] = True
    queue = deque([Tile(start_x, start_y)])
    while queue:
        t = queue.popleft()
        tiles.append(t)
        for nx, ny in ((t.x - 1, t.y), (t.x, t.y - 1), (t.x, t.y + 1), (t.x + 1, t.y)):
            if (
                0 <= nx < width
                and 0 <= ny < height
                and not done[nx, ny]
                and (grid[nx, ny] != EMPTY) == is_wall
            ):
                done[nx, ny] = True
                queue.append(Tile(nx, ny))
    return tiles


def find_regions(grid: np.ndarray) -> Tuple[List[List[Tile]], List[List[Tile]]]:
    """Partition the grid into wall regions and open regions."""
    width, height = grid.shape
    done = np.zeros((width, height), dtype=bool)
    wall_regions = []
    open_regions = []
    for x in range(width):
        for y in range(height):
            if done[x, y]:
                continue
            dest = wall_regions if grid[x, y] != EMPTY else open_regions
            dest.append(region_tiles(grid, x, y, done))
    return wall_regions, open_regions


def eliminate_small_regions(grid: np.ndarray, regions: List[List[Tile]],
                            min_size: int) -> List[List[Tile]]:
    """
    Flip regions smaller than min_size to the opposite type, in place.

    Returns:
        The regions that were kept
    """
    kept = []
    flipped = 0
    for region in regions:
        if not region:
            continue
        if len(region) < min_size:
            first = region[0]
            new_value = SOLID if grid[first.x, first.y] == EMPTY else EMPTY
            xs, ys = zip(*region)
            grid[list(xs), list(ys)] = new_value
            flipped += 1
        else:
            kept.append(region)
    logger.debug("Small regions eliminated", flipped=flipped, kept=len(kept))
    return kept


def upscale(grid: np.ndarray) -> np.ndarray:
    """Upscale a map to 2x in each dimension, gaussian filtering the result."""
    in_width, in_height = grid.shape
    out_x = np.arange(in_width * 2)
    out_y = np.arange(in_height * 2)
    source = grid.astype(np.float64)
    accum = np.zeros((in_width * 2, in_height * 2), dtype=np.float64)
    for dx in (-1, 0, 1):
        sample_x = np.clip((out_x + dx) // 2, 0, in_width - 1)
        for dy in (-1, 0, 1):
            sample_y = np.clip((out_y + dy) // 2, 0, in_height - 1)
            weight = GAUSSIAN_KERNEL[1 + dx, 1 + dy]
            accum += source[np.ix_(sample_x, sample_y)] * weight
    return np.clip(accum, 0, 255).astype(np.uint8)
