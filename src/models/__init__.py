"""
Typed models for the part inspection engine.

Value types are frozen; the adapters (from_dict/to_dict) convert to and from
the dictionaries used at the config, template-store and result boundaries.
"""

from .errors import ConfigurationError, InputError, InspectionError
from .geometry import BoundingBox, Point, centroid
from .detection import CandidateBox, DetectedObject
from .template import AnchorPoint, AnchorType, Template, TemplateFeature, TopologyParams
from .inspection import (
    ComparisonStatus,
    FeatureComparison,
    InspectionResult,
    InspectionSummary,
)
from .quality import (
    DefectStandard,
    EvaluationDetail,
    QualityEvaluation,
    QualityStandards,
)
from .config import Config, InspectionConfig, ModelConfig

__all__ = [
    # Errors
    "InspectionError",
    "InputError",
    "ConfigurationError",
    # Geometry
    "Point",
    "BoundingBox",
    "centroid",
    # Detection
    "CandidateBox",
    "DetectedObject",
    # Template
    "AnchorPoint",
    "AnchorType",
    "Template",
    "TemplateFeature",
    "TopologyParams",
    # Inspection
    "ComparisonStatus",
    "FeatureComparison",
    "InspectionResult",
    "InspectionSummary",
    # Quality
    "DefectStandard",
    "EvaluationDetail",
    "QualityEvaluation",
    "QualityStandards",
    # Config
    "Config",
    "InspectionConfig",
    "ModelConfig",
]
