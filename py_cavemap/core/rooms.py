"""
Room detection helpers and connectivity for generated caves.

This module handles:
- Tiles and rooms (surviving open regions)
- Room sets: which rooms are joined, directly or through other rooms
- Connecting every room into one navigable space by carving passages
"""

from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import structlog

from .density_grid import EMPTY

logger = structlog.get_logger()

UNASSIGNED = -1

# Rows of room A compared against room B per distance chunk
_DISTANCE_CHUNK = 256


class Tile(NamedTuple):
    """A single square inside the map."""

    x: int
    y: int

    def squared_distance(self, other: "Tile") -> int:
        return (self.x - other.x) ** 2 + (self.y - other.y) ** 2


class Room:
    """A series of empty tiles that makes up a room."""

    def __init__(self, tiles: Sequence[Tile], grid: np.ndarray, index: int = 0,
                 room_sets: Optional["RoomSets"] = None):
        """
        Args:
            tiles: Tiles of the open region
            grid: Density grid, used to find the edge tiles
            index: Position of the room in its room list
            room_sets: Room set tracker shared by every room that may be
                connected; a private one is made if omitted
        """
        self.index = index
        self.tiles = [Tile(int(t[0]), int(t[1])) for t in tiles]
        self.edge_tiles = find_edge_tiles(self.tiles, grid)
        self.connected_rooms: List["Room"] = []
        # A private tracker only suits a room that is never connected to another
        self.room_sets = room_sets if room_sets is not None else RoomSets(index + 1)
        self._coords: Optional[np.ndarray] = None

    @property
    def size(self) -> int:
        return len(self.tiles)

    @property
    def coords(self) -> np.ndarray:
        """Tile coordinates as an (n, 2) int array."""
        if self._coords is None:
            self._coords = np.array(self.tiles, dtype=np.int64).reshape(-1, 2)
        return self._coords

    @property
    def room_set(self) -> int:
        return self.room_sets.get(self.index)

    @room_set.setter
    def room_set(self, value: int) -> None:
        # Applies to every room joined to this one
        self.room_sets.set(self.index, value)

    def is_connected(self, other: "Room") -> bool:
        """Are rooms directly connected?"""
        return other in self.connected_rooms

    def is_in_same_room_set(self, other: "Room") -> bool:
        """Are rooms directly or indirectly connected?"""
        return (
            self.room_set != UNASSIGNED
            and other.room_set != UNASSIGNED
            and self.room_set == other.room_set
        )

    def __repr__(self) -> str:
        return f"Room(index={self.index}, size={self.size}, room_set={self.room_set})"


def find_edge_tiles(tiles: Sequence[Tile], grid: np.ndarray) -> List[Tile]:
    """Open tiles with a non-empty or out of range 4-neighbour."""
    width, height = grid.shape
    edges = []
    for t in tiles:
        for nx, ny in ((t.x - 1, t.y), (t.x + 1, t.y), (t.x, t.y - 1), (t.x, t.y + 1)):
            if not (0 <= nx < width and 0 <= ny < height) or grid[nx, ny] != EMPTY:
                edges.append(t)
                break
    return edges


class RoomSets:
    """
    Disjoint sets of rooms with a set id label per set.

    Joining two rooms merges their sets, and setting an id on a room labels
    every room in its set, so ids stay consistent across passages without
    walking the connection graph.
    """

    def __init__(self, count: int = 0):
        self.parent = list(range(count))
        self.label = [UNASSIGNED] * count

    def add(self) -> int:
        index = len(self.parent)
        self.parent.append(index)
        self.label.append(UNASSIGNED)
        return index

    def find(self, index: int) -> int:
        root = index
        while self.parent[root] != root:
            root = self.parent[root]
        # Path compression
        while self.parent[index] != root:
            self.parent[index], index = root, self.parent[index]
        return root

    def get(self, index: int) -> int:
        return self.label[self.find(index)]

    def set(self, index: int, value: int) -> None:
        self.label[self.find(index)] = value

    def union(self, a: int, b: int, value: int) -> None:
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a != root_b:
            self.parent[root_b] = root_a
        self.label[root_a] = value

    def live_ids(self, indices: Sequence[int]) -> set:
        return {self.get(i) for i in indices}


def closest_tiles(room_a: Room, room_b: Room) -> Tuple[int, Tile, Tile]:
    """
    Closest pair of tiles between two rooms.

    Scans every tile pair; on ties the first pair in scan order (room A tiles
    outer, room B tiles inner) wins.

    Returns:
        (squared distance, tile from room A, tile from room B)
    """
    a = room_a.coords
    b = room_b.coords
    best: Optional[Tuple[int, int, int]] = None
    for start in range(0, len(a), _DISTANCE_CHUNK):
        chunk = a[start:start + _DISTANCE_CHUNK]
        diff = chunk[:, None, :] - b[None, :, :]
        dist = (diff * diff).sum(axis=2)
        flat = int(np.argmin(dist))
        i, j = divmod(flat, dist.shape[1])
        d = int(dist[i, j])
        if best is None or d < best[0]:
            best = (d, start + i, j)
    d, i, j = best
    return d, room_a.tiles[i], room_b.tiles[j]


def get_line(start: Tile, end: Tile) -> List[Tile]:
    """Bresenham line between two tiles, both ends included."""
    x0, y0 = start
    x1, y1 = end
    dx = abs(x1 - x0)
    dy = -abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx + dy
    points = []
    while True:
        points.append(Tile(x0, y0))
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy
    return points


def draw_circle(grid: np.ndarray, cx: int, cy: int, radius: int, value: int) -> None:
    """Fill a disc on the grid in place, clipped to the grid."""
    width, height = grid.shape
    x_lo, x_hi = max(cx - radius, 0), min(cx + radius, width - 1)
    y_lo, y_hi = max(cy - radius, 0), min(cy + radius, height - 1)
    if x_lo > x_hi or y_lo > y_hi:
        return
    xs = np.arange(x_lo, x_hi + 1)[:, None]
    ys = np.arange(y_lo, y_hi + 1)[None, :]
    mask = (xs - cx) ** 2 + (ys - cy) ** 2 <= radius * radius
    grid[x_lo:x_hi + 1, y_lo:y_hi + 1][mask] = value


class RoomConnector:
    """Joins rooms into a single connected set by carving passages."""

    def __init__(self, grid: np.ndarray, passage_width: int = 2):
        self.grid = grid
        self.passage_width = passage_width
        self.next_room_set = 0
        self.passages: List[Tuple[Tile, Tile]] = []

    def create_passage(self, from_room: Room, from_tile: Tile,
                       to_room: Room, to_tile: Tile) -> None:
        """Connect two rooms and carve a corridor between the given tiles."""
        if from_room.room_sets is not to_room.room_sets:
            raise ValueError(
                f"Rooms {from_room.index} and {to_room.index} do not share a room set "
                "tracker; build them with make_rooms()"
            )

        if from_room.room_set == UNASSIGNED and to_room.room_set == UNASSIGNED:
            room_set = self.next_room_set
            self.next_room_set += 1
        elif from_room.room_set != UNASSIGNED and to_room.room_set != UNASSIGNED:
            # Always pick the lower of the 2 room sets when joining so
            # eventually every room is in set 0
            room_set = min(from_room.room_set, to_room.room_set)
        elif from_room.room_set != UNASSIGNED:
            room_set = from_room.room_set
        else:
            room_set = to_room.room_set

        from_room.connected_rooms.append(to_room)
        to_room.connected_rooms.append(from_room)
        from_room.room_sets.union(from_room.index, to_room.index, room_set)

        for pos in get_line(from_tile, to_tile):
            draw_circle(self.grid, pos.x, pos.y, self.passage_width, EMPTY)
        self.passages.append((from_tile, to_tile))

        logger.debug(
            "Passage carved",
            from_room=from_room.index,
            to_room=to_room.index,
            room_set=room_set,
        )

    def connect_unassigned(self, rooms: Sequence[Room]) -> None:
        """First pass: connect every room that is not joined yet to its nearest room."""
        for room_a in rooms:
            if room_a.room_set != UNASSIGNED:
                # Already joined to another room
                continue

            best = None
            for room_b in rooms:
                if room_b is room_a:
                    continue
                dist, tile_a, tile_b = closest_tiles(room_a, room_b)
                if best is None or dist < best[0]:
                    best = (dist, tile_a, room_b, tile_b)

            if best is not None:
                _, tile_a, room_b, tile_b = best
                self.create_passage(room_a, tile_a, room_b, tile_b)

    def connect_set(self, rooms: Sequence[Room], set_id: int) -> bool:
        """
        Connect one room set to the nearest room outside it.

        Returns:
            True if a passage was carved
        """
        best = None
        for room_a in rooms:
            if room_a.room_set != set_id:
                continue
            for room_b in rooms:
                if room_b is room_a or room_a.is_in_same_room_set(room_b):
                    continue
                dist, tile_a, tile_b = closest_tiles(room_a, room_b)
                if best is None or dist < best[0]:
                    best = (dist, room_a, tile_a, room_b, tile_b)

        if best is None:
            return False
        _, room_a, tile_a, room_b, tile_b = best
        self.create_passage(room_a, tile_a, room_b, tile_b)
        return True

    def connect_all(self, rooms: Sequence[Room]) -> None:
        """Make sure every room is reachable from every other room."""
        self.connect_unassigned(rooms)

        max_room_set = self.next_room_set - 1
        passes = 0
        while max_room_set > 0:
            # More than one island of connected rooms; iterate from 0 so
            # sets always join towards the lowest id
            for set_id in range(self.next_room_set):
                self.connect_set(rooms, set_id)
            passes += 1
            max_room_set = max((room.room_set for room in rooms), default=UNASSIGNED)

        logger.info(
            "Rooms connected",
            rooms=len(rooms),
            passages=len(self.passages),
            set_passes=passes,
        )


def make_rooms(regions: Sequence[Sequence[Tile]], grid: np.ndarray) -> List[Room]:
    """Turn open regions into rooms sharing one room set tracker."""
    room_sets = RoomSets()
    rooms = []
    for region in regions:
        index = room_sets.add()
        rooms.append(Room(region, grid, index=index, room_sets=room_sets))
    return rooms


def connect_all_rooms(rooms: Sequence[Room], grid: np.ndarray,
                      passage_width: int = 2) -> RoomConnector:
    """Connect all rooms in place and return the connector used."""
    connector = RoomConnector(grid, passage_width)
    connector.connect_all(rooms)
    return connector


def room_set_summary(rooms: Sequence[Room]) -> Dict[int, int]:
    """Number of rooms per room set id."""
    summary: Dict[int, int] = {}
    for room in rooms:
        summary[room.room_set] = summary.get(room.room_set, 0) + 1
    return summary
