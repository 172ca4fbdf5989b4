"""
Point primitives for PC-Teams.

Provides the Point coordinate value, the CloudPoint composite (position,
RGB color and identifier), and the PointIdAllocator that hands out
identifiers during ingestion.

Coordinates follow the scanner convention: (x, z) are the horizontal
field coordinates and y is the vertical coordinate.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

# First identifier handed out by a fresh allocator
FIRST_POINT_ID = 2001


@dataclass(frozen=True)
class Point:
    """A 3D position (y is vertical).

    Parameters
    ----------
    x : float
        Horizontal coordinate along the field length.
    y : float
        Vertical coordinate.
    z : float
        Horizontal coordinate along the field width.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def dist2d_sq(self, other: "Point") -> float:
        """Return squared distance in the horizontal (x, z) plane."""
        dx = self.x - other.x
        dz = self.z - other.z
        return dx * dx + dz * dz

    def dist3d_sq(self, other: "Point") -> float:
        """Return squared distance in (x, y, z) space."""
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return dx * dx + dy * dy + dz * dz

    def as_array(self) -> np.ndarray:
        """Return the coordinates as a (3,) float64 array."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @classmethod
    def from_array(cls, values) -> "Point":
        """Build a Point from any 3-element sequence."""
        return cls(float(values[0]), float(values[1]), float(values[2]))


@dataclass(frozen=True)
class CloudPoint:
    """A scanned point: position plus RGB color.

    Parameters
    ----------
    position : Point
        Point position.
    color : tuple of 3 numbers
        (r, g, b) color. Ingested points carry integers in [0, 255];
        layer summaries carry averaged (float) channels.
    id : int
        Identifier from a PointIdAllocator, -1 for derived points.
    """

    position: Point = Point()
    color: Tuple[float, float, float] = (0, 0, 0)
    id: int = -1

    @property
    def x(self) -> float:
        return self.position.x

    @property
    def y(self) -> float:
        return self.position.y

    @property
    def z(self) -> float:
        return self.position.z

    @property
    def r(self) -> float:
        return self.color[0]

    @property
    def g(self) -> float:
        return self.color[1]

    @property
    def b(self) -> float:
        return self.color[2]

    def is_valid(self) -> bool:
        """Return True if every color channel is in [0, 256)."""
        return all(0 <= c < 256 for c in self.color)

    def __str__(self) -> str:
        return (
            f"({self.x}, {self.y}, {self.z}) - "
            f"[{self.r}, {self.g}, {self.b}]"
        )


class PointIdAllocator:
    """Monotonic identifier source for CloudPoints.

    One allocator belongs to the run context and is handed to the
    ingestion stage, so identifiers are unique across the training and
    evaluation data sets of a run.

    Parameters
    ----------
    start : int
        First identifier to hand out.
    """

    def __init__(self, start: int = FIRST_POINT_ID):
        self._next_id = start

    @property
    def next_id(self) -> int:
        """Identifier the next call to allocate() will return."""
        return self._next_id

    def allocate(self) -> int:
        """Return a fresh identifier."""
        point_id = self._next_id
        self._next_id += 1
        return point_id

    def allocate_block(self, n: int) -> np.ndarray:
        """Return ``n`` consecutive fresh identifiers."""
        ids = np.arange(self._next_id, self._next_id + n, dtype=np.int64)
        self._next_id += n
        return ids

    def make_point(
        self, x: float, y: float, z: float, r: int, g: int, b: int
    ) -> CloudPoint:
        """Create a CloudPoint with a fresh identifier."""
        return CloudPoint(Point(x, y, z), (r, g, b), self.allocate())
