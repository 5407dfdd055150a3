"""Tests for outline reconstruction."""

import pytest
import numpy as np
from py_cavemap.core.cave_generator import CaveGenerator, CaveOptions
from py_cavemap.core.contour_builder import build_contour
from py_cavemap.core.outline_tracer import OutlineTracer, trace_outline, trace_outlines


class TestTraceOutlines:
    """Test tracing of hand made edge maps."""

    def test_closed_loop(self):
        """Test that a cycle is closed by repeating its first vertex."""
        outlines = trace_outlines({0: 1, 1: 2, 2: 0}, [False, False, False])
        assert outlines == [[0, 1, 2, 0]]

    def test_open_chain_from_head(self):
        """Test that an open chain starts at its first vertex."""
        outlines = trace_outlines({2: 0, 0: 1}, [False, False, False])
        assert outlines == [[2, 0, 1]]

    def test_skips_done_vertices(self):
        """Test that vertices already done are not traced."""
        edge_map = {0: 1, 1: 0, 3: 4, 4: 3}
        outlines = trace_outlines(edge_map, [False, False, True, False, False])
        assert outlines == [[0, 1, 0], [3, 4, 3]]

    def test_single_vertex_dropped(self):
        """Test that a flagged vertex with no edges makes no outline."""
        assert trace_outlines({}, [False]) == []

    def test_flags_not_modified(self):
        """Test that the caller's flags are left alone."""
        flags = [False, False]
        trace_outlines({0: 1}, flags)
        assert flags == [False, False]

    def test_trace_single_outline(self):
        """Test tracing from a given start vertex."""
        done = [False] * 4
        outline = trace_outline(1, {1: 3, 3: 2}, done)
        assert outline == [1, 3, 2]
        assert done == [False, True, True, True]

    def test_tracer_class(self):
        """Test the class wrapper."""
        tracer = OutlineTracer({0: 1, 1: 0}, [False, False])
        outlines = tracer.trace()
        assert outlines == [[0, 1, 0]]
        assert OutlineTracer.is_closed(outlines[0])
        assert not OutlineTracer.is_closed([0, 1])


@pytest.fixture(scope="module")
def mesh():
    """Mesh of a generated cave."""
    generator = CaveGenerator(CaveOptions(seed="outline-test"))
    return build_contour(generator.generate(48, 36), 2.0)


class TestMeshOutlines:
    """Test outline properties on generated caves."""

    def test_closed_outlines_repeat_first(self, mesh):
        """Test that every closed outline ends where it starts."""
        for outline in mesh.outlines:
            if OutlineTracer.is_closed(outline):
                assert len(outline) >= 4

    def test_no_shared_vertices(self, mesh):
        """Test that no vertex appears in two outlines."""
        seen = set()
        for outline in mesh.outlines:
            distinct = set(outline)
            assert not distinct & seen
            seen |= distinct

    def test_all_boundary_vertices_covered(self, mesh):
        """Test that outlines cover exactly the boundary vertices."""
        boundary = set(mesh.edge_map) | set(mesh.edge_map.values())
        covered = set()
        for outline in mesh.outlines:
            covered.update(outline)
        assert covered == boundary
        assert sum(len(set(o)) for o in mesh.outlines) == len(boundary)

    def test_outlines_follow_edges(self, mesh):
        """Test that consecutive outline vertices are boundary edges."""
        for outline in mesh.outlines:
            for a, b in zip(outline, outline[1:]):
                assert mesh.edge_map[a] == b

    def test_bordered_cave_outlines_closed(self):
        """Test that a cave enclosed by solid rock only has closed outlines."""
        grid = np.full((12, 10), 255, dtype=np.uint8)
        grid[3:9, 2:8] = 0
        grid[5, 4] = 255
        mesh = build_contour(grid, 1.0)

        assert len(mesh.outlines) == 2
        assert all(OutlineTracer.is_closed(o) for o in mesh.outlines)
