"""
Template models describing the expected features of a conforming part.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .errors import InputError
from .geometry import BoundingBox, Point, centroid as centroid_of

DEFAULT_TOLERANCE = 5.0

# Relative positions loaded from storage may carry rounding noise.
RELATIVE_POSITION_EPSILON = 1e-6


class AnchorType(str, Enum):
    """Reference points used to estimate a part's pose."""
    CENTER = "CENTER"
    TOP_CENTER = "TOP_CENTER"
    BOTTOM_CENTER = "BOTTOM_CENTER"
    LEFT_CENTER = "LEFT_CENTER"
    RIGHT_CENTER = "RIGHT_CENTER"
    CORNER = "CORNER"


@dataclass(frozen=True)
class AnchorPoint:
    """A named pose reference in template coordinates."""
    anchor_id: str
    anchor_type: AnchorType
    position: Point

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.anchor_id,
            "type": self.anchor_type.value,
            "position": [self.position.x, self.position.y],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AnchorPoint":
        return cls(
            anchor_id=str(d["id"]),
            anchor_type=AnchorType(d.get("type", AnchorType.CORNER.value)),
            position=Point.from_sequence(d["position"]),
        )


@dataclass(frozen=True)
class TopologyParams:
    """
    Neighbourhood parameters for graph-based matching.

    Stored and round-tripped with the template for graph-based matchers that
    run outside this package. The matchers here do not read them.
    """
    k_neighbors: int = 4
    similarity_threshold: float = 0.5

    def to_dict(self) -> Dict[str, Any]:
        return {
            "k_neighbors": self.k_neighbors,
            "similarity_threshold": self.similarity_threshold,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TopologyParams":
        return cls(
            k_neighbors=int(d.get("k_neighbors", 4)),
            similarity_threshold=float(d.get("similarity_threshold", 0.5)),
        )


@dataclass(frozen=True)
class TemplateFeature:
    """
    One expected feature of a part.

    Attributes:
        feature_id: Identifier, unique within its template.
        name: Human-readable feature name.
        class_id: Detector class expected at this location.
        position: Absolute position in the template's reference image.
        tolerance_x: Maximum conforming horizontal deviation in pixels.
        tolerance_y: Maximum conforming vertical deviation in pixels.
        required: Whether absence of the feature fails the part.
        relative_position: Position relative to the template centroid. Filled
            in by the owning Template when absent.
        class_name: Optional label for the expected class.
    """
    feature_id: str
    name: str
    class_id: int
    position: Point
    tolerance_x: float = DEFAULT_TOLERANCE
    tolerance_y: float = DEFAULT_TOLERANCE
    required: bool = True
    relative_position: Optional[Point] = None
    class_name: Optional[str] = None

    def __post_init__(self):
        if self.tolerance_x < 0 or self.tolerance_y < 0:
            raise InputError(f"Feature {self.feature_id} has a negative tolerance")

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "id": self.feature_id,
            "name": self.name,
            "class_id": self.class_id,
            "position": [self.position.x, self.position.y],
            "tolerance_x": self.tolerance_x,
            "tolerance_y": self.tolerance_y,
            "required": self.required,
        }
        if self.relative_position is not None:
            d["relative_position"] = [self.relative_position.x, self.relative_position.y]
        if self.class_name is not None:
            d["class_name"] = self.class_name
        return d

    @classmethod
    def from_dict(
        cls,
        d: Dict[str, Any],
        default_tolerance_x: float = DEFAULT_TOLERANCE,
        default_tolerance_y: float = DEFAULT_TOLERANCE,
    ) -> "TemplateFeature":
        rel = d.get("relative_position")
        required = d.get("required", True)
        if not isinstance(required, bool):
            raise InputError(f"Feature {d.get('id')}: required must be true or false, got {required!r}")
        return cls(
            feature_id=str(d["id"]),
            name=str(d.get("name", d["id"])),
            class_id=int(d["class_id"]),
            position=Point.from_sequence(d["position"]),
            tolerance_x=float(d.get("tolerance_x", default_tolerance_x)),
            tolerance_y=float(d.get("tolerance_y", default_tolerance_y)),
            required=required,
            relative_position=Point.from_sequence(rel) if rel is not None else None,
            class_name=d.get("class_name"),
        )


@dataclass(frozen=True)
class Template:
    """
    A part template: ordered features plus matching parameters.

    Feature order only drives output ordering. Construction validates the
    feature set and fills in every feature's relative position, so a
    Template is complete and read-only once built.
    """
    template_id: str
    features: Tuple[TemplateFeature, ...]
    bounding_box: Optional[BoundingBox] = None
    tolerance_x: float = DEFAULT_TOLERANCE
    tolerance_y: float = DEFAULT_TOLERANCE
    part_type: Optional[str] = None
    topology: TopologyParams = field(default_factory=TopologyParams)
    anchors: Tuple[AnchorPoint, ...] = ()
    description: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)
    centroid: Point = field(init=False, compare=False)

    def __post_init__(self):
        features = tuple(self.features)
        if not features:
            raise InputError(f"Template {self.template_id} has no features")

        seen = set()
        for f in features:
            if f.feature_id in seen:
                raise InputError(
                    f"Template {self.template_id} has duplicate feature id {f.feature_id}"
                )
            seen.add(f.feature_id)

        center = centroid_of(f.position for f in features)
        resolved = []
        for f in features:
            expected = f.position - center
            if f.relative_position is None:
                f = replace(f, relative_position=expected)
            elif f.relative_position.distance_to(expected) > RELATIVE_POSITION_EPSILON:
                raise InputError(
                    f"Feature {f.feature_id} relative position "
                    f"{f.relative_position.as_tuple()} disagrees with its position "
                    f"(expected {expected.as_tuple()})"
                )
            resolved.append(f)

        object.__setattr__(self, "features", tuple(resolved))
        object.__setattr__(self, "anchors", tuple(self.anchors))
        object.__setattr__(self, "centroid", center)

    @property
    def required_features(self) -> List[TemplateFeature]:
        return [f for f in self.features if f.required]

    def feature(self, feature_id: str) -> Optional[TemplateFeature]:
        for f in self.features:
            if f.feature_id == feature_id:
                return f
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.template_id,
            "description": self.description,
            "part_type": self.part_type,
            "tolerance_x": self.tolerance_x,
            "tolerance_y": self.tolerance_y,
            "bounding_box": list(self.bounding_box.as_tuple()) if self.bounding_box else None,
            "topology": self.topology.to_dict(),
            "anchors": [a.to_dict() for a in self.anchors],
            "features": [f.to_dict() for f in self.features],
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(
        cls,
        d: Dict[str, Any],
        default_tolerance_x: float = DEFAULT_TOLERANCE,
        default_tolerance_y: float = DEFAULT_TOLERANCE,
    ) -> "Template":
        """
        Adapter: Create from a stored template dictionary.

        Features without their own tolerance inherit the template-level one,
        which in turn falls back to the given defaults.

        Raises:
            InputError: The document is malformed or fails validation.
        """
        try:
            tol_x = float(d.get("tolerance_x", default_tolerance_x))
            tol_y = float(d.get("tolerance_y", default_tolerance_y))
            bbox = d.get("bounding_box")
            return cls(
                template_id=str(d["id"]),
                features=tuple(
                    TemplateFeature.from_dict(f, tol_x, tol_y) for f in d.get("features", [])
                ),
                bounding_box=BoundingBox.from_tuple(bbox) if bbox else None,
                tolerance_x=tol_x,
                tolerance_y=tol_y,
                part_type=d.get("part_type"),
                topology=TopologyParams.from_dict(d.get("topology") or {}),
                anchors=tuple(AnchorPoint.from_dict(a) for a in d.get("anchors", [])),
                description=d.get("description", ""),
                metadata=dict(d.get("metadata") or {}),
            )
        except InputError:
            raise
        except (AttributeError, KeyError, TypeError, ValueError, IndexError) as e:
            raise InputError(f"Malformed template document: {e!r}") from e

