"""
Density grid definitions shared by the contouring and generation stages.

A density grid is a 2D array of 0-255 values indexed ``grid[x, y]`` with y
increasing upwards, where 0 is empty space and 255 is fully solid.
"""

from abc import ABC, abstractmethod

import numpy as np

# Value of a map cell which means it is totally empty
EMPTY = 0
# Value of a map cell which means it is totally solid
SOLID = 255
# Threshold between empty and solid (>= means solid)
SOLID_THRESHOLD = 127
# Navigable spaces are low enough that walls are not close
NAVIGABLE_THRESHOLD = 70


def validate_density_grid(grid) -> np.ndarray:
    """
    Check a density grid and return it as a uint8 array.

    Args:
        grid: Array-like of shape (width, height) with values in 0-255

    Returns:
        The grid as a uint8 numpy array (a copy when conversion was needed)

    Raises:
        ValueError: If the grid is not 2D, smaller than 2x2 or out of range
    """
    arr = np.asarray(grid)
    if arr.ndim != 2:
        raise ValueError(f"Density grid must be 2D, got {arr.ndim} dimensions")

    width, height = arr.shape
    if width < 2 or height < 2:
        raise ValueError(
            f"Density grid must be at least 2x2, got {width}x{height}"
        )

    if arr.dtype != np.uint8:
        if arr.dtype.kind not in "iuf":
            raise ValueError(f"Density grid must be numeric, got {arr.dtype}")
        if arr.size and (arr.min() < EMPTY or arr.max() > SOLID):
            raise ValueError("Density values must be within 0-255")
        arr = arr.astype(np.uint8)

    return arr


def is_solid(value) -> bool:
    """Check if a density value counts as solid."""
    return value >= SOLID_THRESHOLD


class DensitySource(ABC):
    """Anything that can provide a density grid for a map."""

    @abstractmethod
    def get_density(
        self, desired_width: int, desired_height: int, reload: bool = False
    ) -> np.ndarray:
        """
        Retrieve density data.

        Args:
            desired_width: Requested width, if the source supports it
            desired_height: Requested height, if the source supports it
            reload: Regenerate the data even if it is already loaded

        Returns:
            uint8 array of solidity values. Check the shape, it may differ
            from the requested width/height.
        """


class ArrayDensitySource(DensitySource):
    """Manually authored density data; ignores the requested size."""

    def __init__(self, grid):
        self.grid = validate_density_grid(grid)

    def get_density(
        self, desired_width: int, desired_height: int, reload: bool = False
    ) -> np.ndarray:
        return self.grid.copy()

    @classmethod
    def from_rows(cls, rows) -> "ArrayDensitySource":
        """
        Build from rows listed top to bottom, as a grid is usually written down.

        ``rows[0]`` becomes the highest y coordinate.
        """
        arr = np.asarray(rows)
        if arr.ndim != 2:
            raise ValueError(f"Density rows must be 2D, got {arr.ndim} dimensions")
        return cls(np.flipud(arr).T)
