"""
Geometry value types shared by detections, templates and transforms.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple


@dataclass(frozen=True)
class Point:
    """
    A 2D point in pixel coordinates.

    Attributes:
        x: Horizontal coordinate.
        y: Vertical coordinate.
    """
    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def norm(self) -> float:
        return math.hypot(self.x, self.y)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @classmethod
    def from_sequence(cls, seq: Sequence[float]) -> "Point":
        """Create from an (x, y) sequence such as a list loaded from JSON."""
        return cls(x=float(seq[0]), y=float(seq[1]))


def centroid(points: Iterable[Point]) -> Point:
    """
    Arithmetic mean of a point set.

    An empty set yields the origin; callers that need to distinguish that case
    check for emptiness first.
    """
    sx = sy = 0.0
    n = 0
    for p in points:
        sx += p.x
        sy += p.y
        n += 1
    if n == 0:
        return Point(0.0, 0.0)
    return Point(sx / n, sy / n)


@dataclass(frozen=True)
class BoundingBox:
    """
    An axis-aligned box in pixel coordinates.

    Attributes:
        x1: Left edge x coordinate.
        y1: Top edge y coordinate.
        x2: Right edge x coordinate.
        y2: Bottom edge y coordinate.
    """
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def center(self) -> Point:
        return Point((self.x1 + self.x2) / 2, (self.y1 + self.y2) / 2)

    @property
    def area(self) -> float:
        if self.width <= 0 or self.height <= 0:
            return 0.0
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x1, self.y1, self.x2, self.y2)

    def expand(self, padding: float) -> "BoundingBox":
        return BoundingBox(
            x1=self.x1 - padding,
            y1=self.y1 - padding,
            x2=self.x2 + padding,
            y2=self.y2 + padding,
        )

    @classmethod
    def from_tuple(cls, t: Sequence[float]) -> "BoundingBox":
        """Create from (x1, y1, x2, y2) tuple."""
        return cls(x1=float(t[0]), y1=float(t[1]), x2=float(t[2]), y2=float(t[3]))

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> "BoundingBox":
        """Smallest box containing every point. Raises ValueError when empty."""
        pts = list(points)
        if not pts:
            raise ValueError("Cannot build a bounding box from an empty point set")
        return cls(
            x1=min(p.x for p in pts),
            y1=min(p.y for p in pts),
            x2=max(p.x for p in pts),
            y2=max(p.y for p in pts),
        )
