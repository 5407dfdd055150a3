"""
Outline reconstruction from boundary edges.

The contour builder registers each boundary edge as a mapping from a vertex
index to the next vertex index clockwise around the solid area. Walking that
map gives the outlines, which are closed loops or, where the solid area runs
off the edge of the map, open polylines.
"""

from typing import Dict, List, Sequence

import structlog

logger = structlog.get_logger()


def _chain_head(start: int, edge_map: Dict[int, int],
                reverse_map: Dict[int, int], done: List[bool]) -> int:
    """Walk backwards from start to the first vertex of its chain.

    Returns start itself when the chain is a loop.
    """
    seen = {start}
    current = start
    previous = reverse_map.get(current)
    while previous is not None and not done[previous]:
        if previous in seen:
            return start
        seen.add(previous)
        current = previous
        previous = reverse_map.get(current)
    return current


def trace_outline(start: int, edge_map: Dict[int, int], done: List[bool]) -> List[int]:
    """
    Trace one outline starting at a boundary vertex.

    Outlines may be closed or open; if closed the last index equals the first.
    Visited vertices are marked done.
    """
    outline = [start]
    done[start] = True
    current = start
    while current in edge_map:
        nxt = edge_map[current]
        outline.append(nxt)
        done[nxt] = True
        if nxt == start:
            # Full cycle, stop here
            break
        current = nxt
    return outline


def trace_outlines(edge_map: Dict[int, int], outline_done: Sequence[bool]) -> List[List[int]]:
    """
    Build all outlines from a boundary edge map.

    Args:
        edge_map: Vertex index -> next clockwise vertex index
        outline_done: Per vertex flag, False for vertices that still need
            to be part of an outline. Not modified.

    Returns:
        Outlines in order of the scan that discovered them
    """
    done = list(outline_done)
    reverse_map = {b: a for a, b in edge_map.items()}
    outlines = []

    search_from = 0
    while True:
        start = next(
            (i for i in range(search_from, len(done)) if not done[i]), -1
        )
        if start == -1:
            break

        head = _chain_head(start, edge_map, reverse_map, done)
        outline = trace_outline(head, edge_map, done)
        if len(outline) > 1:
            outlines.append(outline)
        search_from = start + 1

    logger.debug(
        "Outlines traced",
        outlines=len(outlines),
        closed=sum(1 for o in outlines if o[0] == o[-1]),
    )
    return outlines


class OutlineTracer:
    """Traces outlines for a finished mesh build."""

    def __init__(self, edge_map: Dict[int, int], outline_done: Sequence[bool]):
        self.edge_map = edge_map
        self.outline_done = outline_done

    def trace(self) -> List[List[int]]:
        return trace_outlines(self.edge_map, self.outline_done)

    @staticmethod
    def is_closed(outline: Sequence[int]) -> bool:
        return len(outline) > 1 and outline[0] == outline[-1]
