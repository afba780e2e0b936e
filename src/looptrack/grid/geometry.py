"""
Grid geometry - Integer geometry shared by both loop builders.

Provides:
- Canonical undirected edges
- Exact segment intersection tests on integer coordinates
- Bounds, pinch and bounding-box checks
"""

import math
from typing import Iterable, Optional, Sequence, Set, Tuple

from looptrack.grid.directions import GridNode

Edge = Tuple[GridNode, GridNode]


def canonical_edge(a: GridNode, b: GridNode) -> Edge:
    """Order the endpoints so (a, b) and (b, a) compare equal."""
    return (a, b) if a <= b else (b, a)


def orientation(a: GridNode, b: GridNode, c: GridNode) -> int:
    """Orientation of the triple (a, b, c).

    Returns:
        0 if collinear, 1 if clockwise, 2 if counter-clockwise
    """
    value = (b[1] - a[1]) * (c[0] - b[0]) - (b[0] - a[0]) * (c[1] - b[1])
    if value == 0:
        return 0
    return 1 if value > 0 else 2


def on_segment(a: GridNode, b: GridNode, c: GridNode) -> bool:
    """Check whether b lies in the bounding box of segment a-c."""
    return (
        min(a[0], c[0]) <= b[0] <= max(a[0], c[0])
        and min(a[1], c[1]) <= b[1] <= max(a[1], c[1])
    )


def segments_intersect(a: GridNode, b: GridNode, c: GridNode, d: GridNode) -> bool:
    """Check whether segments a-b and c-d touch or cross.

    Collinear overlaps count as intersections.
    """
    o1 = orientation(a, b, c)
    o2 = orientation(a, b, d)
    o3 = orientation(c, d, a)
    o4 = orientation(c, d, b)

    if o1 != o2 and o3 != o4:
        return True

    if o1 == 0 and on_segment(a, c, b):
        return True
    if o2 == 0 and on_segment(a, d, b):
        return True
    if o3 == 0 and on_segment(c, a, d):
        return True
    if o4 == 0 and on_segment(c, b, d):
        return True
    return False


def shares_endpoint(a: GridNode, b: GridNode, p: GridNode, q: GridNode) -> bool:
    return a == p or a == q or b == p or b == q


def intersects_path(a: GridNode, b: GridNode, nodes: Sequence[GridNode]) -> bool:
    """Check a new segment a-b against every segment of a path.

    Segments sharing an endpoint with a-b are skipped.
    """
    for i in range(len(nodes) - 1):
        p = nodes[i]
        q = nodes[i + 1]
        if shares_endpoint(a, b, p, q):
            continue
        if segments_intersect(a, b, p, q):
            return True
    return False


def is_simple_loop(nodes: Sequence[GridNode]) -> bool:
    """Check that no two non-adjacent segments of a closed path intersect.

    Args:
        nodes: Closed path (first node equals last)

    Returns:
        True if the path is a simple polygon
    """
    count = len(nodes) - 1
    if count < 3 or nodes[0] != nodes[-1]:
        return False

    interior = nodes[:-1]
    if len(set(interior)) != len(interior):
        return False

    for i in range(count):
        a, b = nodes[i], nodes[i + 1]
        for j in range(i + 2, count):
            if i == 0 and j == count - 1:
                continue
            c, d = nodes[j], nodes[j + 1]
            if segments_intersect(a, b, c, d):
                return False
    return True


def inside_bounds(node: GridNode, max_x: int, max_y: int) -> bool:
    return abs(node[0]) <= max_x and abs(node[1]) <= max_y


def creates_pinch(
    occupied: Set[GridNode],
    candidate: GridNode,
    current: Optional[GridNode] = None,
) -> bool:
    """Check whether occupying candidate fills 3+ cells of any 2x2 block.

    The cell the track is leaving is not counted. A corner always puts the
    candidate, the current cell and its predecessor into one block, so
    counting the current cell would reject every turn.

    Args:
        occupied: Cells already in use
        candidate: Cell about to be used
        current: Cell the track leaves to reach candidate, if any

    Returns:
        True if the placement would pinch the track
    """
    for oy in (-1, 0):
        for ox in (-1, 0):
            filled = 0
            for y in (0, 1):
                for x in (0, 1):
                    cell = (candidate[0] + ox + x, candidate[1] + oy + y)
                    if cell == current:
                        continue
                    if cell == candidate or cell in occupied:
                        filled += 1
            if filled >= 3:
                return True
    return False


def bounding_box(nodes: Iterable[GridNode]) -> Tuple[int, int, int, int]:
    """Return (min_x, min_y, max_x, max_y) of a set of nodes."""
    xs = []
    ys = []
    for x, y in nodes:
        xs.append(x)
        ys.append(y)
    if not xs:
        raise ValueError("Cannot take the bounding box of an empty path")
    return (min(xs), min(ys), max(xs), max(ys))


def span_aspect_ratio(width: int, height: int) -> float:
    """Long side over short side, each side at least 1."""
    width = max(1, width)
    height = max(1, height)
    return max(width, height) / min(width, height)


def validate_half_extents(half_width: float, half_height: float) -> None:
    """Raise ValueError unless both arena half extents are finite and positive."""
    for name, value in (("half_width", half_width), ("half_height", half_height)):
        if not math.isfinite(value) or value <= 0:
            raise ValueError(f"{name} must be a positive finite number, got {value}")
