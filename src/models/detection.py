"""
Detection models for detector output.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

import numpy as np

from .geometry import BoundingBox, Point


@dataclass(frozen=True)
class CandidateBox:
    """
    A decoded box before suppression, in original-image pixel coordinates.

    Attributes:
        x1: Left edge x coordinate.
        y1: Top edge y coordinate.
        x2: Right edge x coordinate.
        y2: Bottom edge y coordinate.
        score: Arg-max class score.
        class_id: Arg-max class index.
        anchor_index: Position of the anchor in the raw output, used for stable ordering.
    """
    x1: float
    y1: float
    x2: float
    y2: float
    score: float
    class_id: int
    anchor_index: int = 0

    @property
    def bbox(self) -> BoundingBox:
        return BoundingBox(x1=self.x1, y1=self.y1, x2=self.x2, y2=self.y2)

    @property
    def area(self) -> float:
        return self.bbox.area

    def to_detected_object(self, class_name: Optional[str] = None) -> "DetectedObject":
        """Adapter: Convert a kept candidate into a DetectedObject."""
        return DetectedObject.from_xyxy(
            self.x1,
            self.y1,
            self.x2,
            self.y2,
            class_id=self.class_id,
            confidence=self.score,
            class_name=class_name,
        )


@dataclass(frozen=True)
class DetectedObject:
    """
    One object reported by the detector for a single image.

    Attributes:
        class_id: Detector class index.
        center: Box center in pixel coordinates.
        width: Box width in pixels.
        height: Box height in pixels.
        confidence: Detection confidence score (0-1).
        class_name: Optional human-readable class name.
    """
    class_id: int
    center: Point
    width: float = 0.0
    height: float = 0.0
    confidence: float = 1.0
    class_name: Optional[str] = None

    @property
    def x(self) -> float:
        return self.center.x

    @property
    def y(self) -> float:
        return self.center.y

    @property
    def bbox(self) -> BoundingBox:
        half_w = self.width / 2
        half_h = self.height / 2
        return BoundingBox(
            x1=self.center.x - half_w,
            y1=self.center.y - half_h,
            x2=self.center.x + half_w,
            y2=self.center.y + half_h,
        )

    def with_center(self, center: Point, scale: float = 1.0) -> "DetectedObject":
        """Return a copy placed in another coordinate frame."""
        return replace(
            self,
            center=center,
            width=self.width * scale,
            height=self.height * scale,
        )

    @classmethod
    def from_xyxy(
        cls,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        class_id: int,
        confidence: float = 1.0,
        class_name: Optional[str] = None,
    ) -> "DetectedObject":
        """Create DetectedObject from x1, y1, x2, y2 coordinates."""
        return cls(
            class_id=int(class_id),
            center=Point((x1 + x2) / 2, (y1 + y2) / 2),
            width=x2 - x1,
            height=y2 - y1,
            confidence=float(confidence),
            class_name=class_name,
        )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectedObject":
        """
        Adapter: Create from a dictionary.

        Accepts either a ``center`` pair or flat ``x``/``y`` keys.
        """
        if "center" in d:
            center = Point.from_sequence(d["center"])
        else:
            center = Point(float(d["x"]), float(d["y"]))
        return cls(
            class_id=int(d["class_id"]),
            center=center,
            width=float(d.get("width", 0.0)),
            height=float(d.get("height", 0.0)),
            confidence=float(d.get("confidence", 1.0)),
            class_name=d.get("class_name"),
        )

    @classmethod
    def from_numpy_row(cls, row: np.ndarray) -> "DetectedObject":
        """
        Adapter: Convert from numpy array row [x1, y1, x2, y2, confidence, class_id].
        """
        return cls.from_xyxy(
            float(row[0]),
            float(row[1]),
            float(row[2]),
            float(row[3]),
            class_id=int(row[5]) if len(row) > 5 else 0,
            confidence=float(row[4]) if len(row) > 4 else 1.0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "class_id": self.class_id,
            "class_name": self.class_name,
            "center": [self.center.x, self.center.y],
            "width": self.width,
            "height": self.height,
            "confidence": self.confidence,
        }
