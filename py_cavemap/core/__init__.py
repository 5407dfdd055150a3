"""
Core cave generation and contouring functionality.
"""

from .density_grid import (
    EMPTY, SOLID, SOLID_THRESHOLD, NAVIGABLE_THRESHOLD,
    DensitySource, ArrayDensitySource, validate_density_grid,
)
from .contour_builder import ContourBuilder, ContourMesh, TriangulateMode, build_contour
from .outline_tracer import OutlineTracer, trace_outlines
from .cave_generator import CaveGenerator, CaveOptions
from .rooms import Room, RoomSets, Tile, connect_all_rooms
from .cave_map import CaveMap, get_floor_segments

__all__ = ['EMPTY', 'SOLID', 'SOLID_THRESHOLD', 'NAVIGABLE_THRESHOLD',
           'DensitySource', 'ArrayDensitySource', 'validate_density_grid',
           'ContourBuilder', 'ContourMesh', 'TriangulateMode', 'build_contour',
           'OutlineTracer', 'trace_outlines',
           'CaveGenerator', 'CaveOptions',
           'Room', 'RoomSets', 'Tile', 'connect_all_rooms',
           'CaveMap', 'get_floor_segments']
