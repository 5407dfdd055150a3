"""Tests for rooms, room sets and passage carving."""

import pytest
import numpy as np
from py_cavemap.core.density_grid import EMPTY, SOLID
from py_cavemap.core.rooms import (
    UNASSIGNED, Room, RoomConnector, RoomSets, Tile, closest_tiles,
    connect_all_rooms, draw_circle, get_line, make_rooms, room_set_summary
)


def corridor_grid(width, open_xs, y=2, height=5):
    """Solid grid with single open tiles along one row."""
    grid = np.full((width, height), SOLID, dtype=np.uint8)
    for x in open_xs:
        grid[x, y] = EMPTY
    return grid


def rooms_on_row(grid, spans, y=2):
    """One room per (first_x, last_x) span on a row."""
    regions = [[Tile(x, y) for x in range(lo, hi + 1)] for lo, hi in spans]
    return make_rooms(regions, grid)


class TestRoomSets:
    """Test disjoint room set tracking."""

    def test_starts_unassigned(self):
        """Test that new rooms are in no set."""
        sets = RoomSets(3)
        assert [sets.get(i) for i in range(3)] == [UNASSIGNED] * 3

    def test_union_labels_whole_set(self):
        """Test that joining sets relabels every member."""
        sets = RoomSets(4)
        sets.union(0, 1, 0)
        sets.union(2, 3, 1)
        assert sets.get(3) == 1

        sets.union(1, 2, 0)
        assert [sets.get(i) for i in range(4)] == [0, 0, 0, 0]
        assert sets.live_ids(range(4)) == {0}

    def test_set_applies_to_joined_rooms(self):
        """Test that setting an id on one room labels its partners."""
        sets = RoomSets(3)
        sets.union(0, 2, 5)
        sets.set(2, 1)
        assert sets.get(0) == 1
        assert sets.get(1) == UNASSIGNED

    def test_add(self):
        """Test growing the tracker."""
        sets = RoomSets()
        assert sets.add() == 0
        assert sets.add() == 1
        assert sets.find(1) == 1


class TestRoom:
    """Test room construction."""

    def test_edge_tiles(self):
        """Test that only tiles next to rock are edge tiles."""
        grid = np.full((5, 5), SOLID, dtype=np.uint8)
        grid[1:4, 1:4] = EMPTY
        tiles = [Tile(x, y) for x in range(1, 4) for y in range(1, 4)]
        room = Room(tiles, grid)

        assert room.size == 9
        assert len(room.edge_tiles) == 8
        assert Tile(2, 2) not in room.edge_tiles

    def test_map_edge_counts_as_wall(self):
        """Test that tiles on the map edge are edge tiles."""
        grid = np.zeros((3, 3), dtype=np.uint8)
        tiles = [Tile(x, y) for x in range(3) for y in range(3)]
        room = Room(tiles, grid)
        assert len(room.edge_tiles) == 8

    def test_same_room_set_needs_assignment(self):
        """Test that two unassigned rooms are not in the same set."""
        grid = corridor_grid(10, [1, 5])
        room_a, room_b = rooms_on_row(grid, [(1, 1), (5, 5)])
        assert not room_a.is_in_same_room_set(room_b)

        room_a.room_sets.union(room_a.index, room_b.index, 0)
        assert room_a.is_in_same_room_set(room_b)
        assert room_b.room_set == 0

        room_a.room_set = 3
        assert room_b.room_set == 3


class TestGeometry:
    """Test tile geometry helpers."""

    def test_squared_distance(self):
        """Test tile distances."""
        assert Tile(0, 0).squared_distance(Tile(3, 4)) == 25

    def test_closest_tiles(self):
        """Test the closest pair between two rooms."""
        grid = corridor_grid(12, [1, 2, 3, 8, 9])
        room_a, room_b = rooms_on_row(grid, [(1, 3), (8, 9)])
        dist, tile_a, tile_b = closest_tiles(room_a, room_b)

        assert dist == 25
        assert tile_a == Tile(3, 2)
        assert tile_b == Tile(8, 2)

    def test_closest_tiles_tie_takes_first(self):
        """Test that ties resolve to the first pair in scan order."""
        grid = np.full((9, 9), SOLID, dtype=np.uint8)
        room_a = Room([Tile(4, 4)], grid)
        room_b = Room([Tile(4, 7), Tile(1, 4), Tile(7, 4)], grid)
        dist, _, tile_b = closest_tiles(room_a, room_b)

        assert dist == 9
        assert tile_b == Tile(4, 7)

    def test_line_includes_ends(self):
        """Test that both end tiles are on the line."""
        line = get_line(Tile(0, 0), Tile(5, 0))
        assert line == [Tile(x, 0) for x in range(6)]

    def test_line_diagonal(self):
        """Test a diagonal line."""
        line = get_line(Tile(3, 3), Tile(0, 0))
        assert line == [Tile(3, 3), Tile(2, 2), Tile(1, 1), Tile(0, 0)]

    def test_line_steep(self):
        """Test that each step moves at most one tile each way."""
        line = get_line(Tile(0, 0), Tile(2, 7))
        assert line[0] == Tile(0, 0)
        assert line[-1] == Tile(2, 7)
        assert len(line) == 8
        for a, b in zip(line, line[1:]):
            assert abs(a.x - b.x) <= 1 and abs(a.y - b.y) <= 1

    def test_single_point_line(self):
        """Test a zero length line."""
        assert get_line(Tile(2, 2), Tile(2, 2)) == [Tile(2, 2)]

    def test_circle(self):
        """Test that a disc of radius 1 is a plus shape."""
        grid = np.full((5, 5), SOLID, dtype=np.uint8)
        draw_circle(grid, 2, 2, 1, EMPTY)

        assert np.count_nonzero(grid == EMPTY) == 5
        assert grid[1, 1] == SOLID
        assert grid[2, 1] == EMPTY

    def test_circle_clipped(self):
        """Test that discs past the map edge are clipped."""
        grid = np.full((4, 4), SOLID, dtype=np.uint8)
        draw_circle(grid, 0, 0, 2, EMPTY)
        assert grid[0, 0] == EMPTY
        assert grid[3, 3] == SOLID

        draw_circle(grid, -10, -10, 2, EMPTY)
        assert np.count_nonzero(grid == EMPTY) == 6


class TestRoomConnector:
    """Test connecting rooms with passages."""

    def test_nearest_rooms_join(self):
        """Test that unassigned rooms join their nearest room."""
        grid = corridor_grid(20, [1, 2, 5, 6, 15, 16])
        rooms = rooms_on_row(grid, [(1, 2), (5, 6), (15, 16)])
        connector = RoomConnector(grid, passage_width=0)
        connector.connect_all(rooms)

        assert len(connector.passages) == 2
        assert connector.passages[0] == (Tile(2, 2), Tile(5, 2))
        assert connector.passages[1] == (Tile(15, 2), Tile(6, 2))
        assert rooms[0].is_connected(rooms[1])
        assert rooms[2].is_connected(rooms[1])
        assert not rooms[0].is_connected(rooms[2])
        assert all(room.room_set == 0 for room in rooms)
        np.testing.assert_array_equal(grid[1:17, 2], 0)

    def test_islands_join_lowest_set(self):
        """Test that separate islands are joined into set 0."""
        grid = corridor_grid(40, [1, 2, 4, 5, 30, 31, 33, 34])
        rooms = rooms_on_row(grid, [(1, 2), (4, 5), (30, 31), (33, 34)])
        connector = RoomConnector(grid, passage_width=0)

        connector.connect_unassigned(rooms)
        assert [room.room_set for room in rooms] == [0, 0, 1, 1]
        assert connector.next_room_set == 2

        connector.connect_all(rooms)
        assert len(connector.passages) == 3
        assert connector.passages[2] == (Tile(5, 2), Tile(30, 2))
        assert room_set_summary(rooms) == {0: 4}
        for room_a in rooms:
            for room_b in rooms:
                assert room_a.is_in_same_room_set(room_b)
        np.testing.assert_array_equal(grid[1:35, 2], 0)

    def test_passage_joins_room_sets(self):
        """Test that one passage puts both rooms in the same room set."""
        grid = corridor_grid(12, [2, 8])
        room_a, room_b = rooms_on_row(grid, [(2, 2), (8, 8)])
        RoomConnector(grid, passage_width=0).create_passage(
            room_a, Tile(2, 2), room_b, Tile(8, 2)
        )

        assert room_a.is_in_same_room_set(room_b)
        assert room_a.room_set == room_b.room_set == 0

    def test_rooms_need_shared_tracker(self):
        """Test that rooms with separate room set trackers are not joined."""
        grid = corridor_grid(12, [2, 8])
        room_a = Room([Tile(2, 2)], grid)
        room_b = Room([Tile(8, 2)], grid)
        connector = RoomConnector(grid, passage_width=0)

        with pytest.raises(ValueError):
            connector.create_passage(room_a, Tile(2, 2), room_b, Tile(8, 2))
        assert room_a.connected_rooms == []
        assert connector.passages == []
        assert connector.next_room_set == 0
        assert np.count_nonzero(grid == EMPTY) == 2

    def test_single_room(self):
        """Test that a lone room needs no passages."""
        grid = corridor_grid(10, [3, 4])
        rooms = rooms_on_row(grid, [(3, 4)])
        connector = connect_all_rooms(rooms, grid)

        assert connector.passages == []
        assert rooms[0].room_set == UNASSIGNED

    def test_no_rooms(self):
        """Test that an empty room list is fine."""
        grid = corridor_grid(10, [])
        assert connect_all_rooms([], grid).passages == []

    @pytest.mark.parametrize("width", [0, 1, 2])
    def test_passage_width(self, width):
        """Test that passages are carved with the brush radius."""
        grid = np.full((20, 11), SOLID, dtype=np.uint8)
        grid[2, 5] = EMPTY
        grid[17, 5] = EMPTY
        rooms = make_rooms([[Tile(2, 5)], [Tile(17, 5)]], grid)
        connect_all_rooms(rooms, grid, passage_width=width)

        open_rows = np.flatnonzero((grid[10, :] == EMPTY))
        assert len(open_rows) == 2 * width + 1
