"""
The 16 marching squares cases.

Each case lists the polygon to fill, as cell node names in clockwise order,
and the boundary edges to register, each a run of node names. Corners are
stored big endian so A (top left) = 8, B = 4, C = 2, D (bottom left) = 1.

Point order is significant: it fixes both triangle winding and the direction
of boundary edges (clockwise when viewed from the solid side).
"""

from typing import Dict, NamedTuple, Tuple


class CaseShape(NamedTuple):
    """Polygon and boundary edges for one case."""

    polygon: Tuple[str, ...]
    edges: Tuple[Tuple[str, ...], ...]


FULLY_SOLID = 15

CASES: Dict[int, CaseShape] = {
    # No points active
    0: CaseShape((), ()),
    # 1 point active: single triangle in the corner
    1: CaseShape(  # D
        ("centre_left", "centre_bottom", "bottom_left"),
        (("centre_left", "centre_bottom"),),
    ),
    2: CaseShape(  # C
        ("centre_bottom", "centre_right", "bottom_right"),
        (("centre_bottom", "centre_right"),),
    ),
    4: CaseShape(  # B
        ("centre_right", "centre_top", "top_right"),
        (("centre_right", "centre_top"),),
    ),
    8: CaseShape(  # A
        ("centre_top", "centre_left", "top_left"),
        (("centre_top", "centre_left"),),
    ),
    # 2 points on the same side: quad
    3: CaseShape(  # C & D
        ("centre_right", "bottom_right", "bottom_left", "centre_left"),
        (("centre_left", "centre_right"),),
    ),
    6: CaseShape(  # B & C
        ("centre_top", "top_right", "bottom_right", "centre_bottom"),
        (("centre_bottom", "centre_top"),),
    ),
    9: CaseShape(  # A & D
        ("top_left", "centre_top", "centre_bottom", "bottom_left"),
        (("centre_top", "centre_bottom"),),
    ),
    12: CaseShape(  # A & B
        ("top_left", "top_right", "centre_right", "centre_left"),
        (("centre_right", "centre_left"),),
    ),
    # 2 opposite points: diamond with 2 separate edges (not joined)
    5: CaseShape(  # B & D
        (
            "centre_top",
            "top_right",
            "centre_right",
            "centre_bottom",
            "bottom_left",
            "centre_left",
        ),
        (("centre_right", "centre_bottom"), ("centre_left", "centre_top")),
    ),
    10: CaseShape(  # A & C
        (
            "top_left",
            "centre_top",
            "centre_right",
            "bottom_right",
            "centre_bottom",
            "centre_left",
        ),
        (("centre_top", "centre_right"), ("centre_bottom", "centre_left")),
    ),
    # 3 points
    7: CaseShape(  # B & C & D
        ("centre_top", "top_right", "bottom_right", "bottom_left", "centre_left"),
        (("centre_left", "centre_top"),),
    ),
    11: CaseShape(  # A & C & D
        ("top_left", "centre_top", "centre_right", "bottom_right", "bottom_left"),
        (("centre_top", "centre_right"),),
    ),
    13: CaseShape(  # A & B & D
        ("top_left", "top_right", "centre_right", "centre_bottom", "bottom_left"),
        (("centre_right", "centre_bottom"),),
    ),
    14: CaseShape(  # A & B & C
        ("top_left", "top_right", "bottom_right", "centre_bottom", "centre_left"),
        (("centre_bottom", "centre_left"),),
    ),
    # All points: merged with solid neighbours instead, never an edge
    FULLY_SOLID: CaseShape((), ()),
}
