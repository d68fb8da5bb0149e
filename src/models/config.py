"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ConfigurationError
from .quality import QualityStandards

MATCH_STRATEGY_NAMES = ("TOPOLOGY", "COORDINATE", "CROP_AREA", "CROSS_RATIO")


def _positive_float(d: Dict[str, Any], key: str, default: float, allow_zero: bool = False) -> float:
    value = d.get(key, default)
    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be a number, got {value!r}") from e
    if value < 0 or (value == 0 and not allow_zero):
        raise ConfigurationError(f"{key} must be {'>= 0' if allow_zero else '> 0'}, got {value}")
    return value


def _bool(d: Dict[str, Any], key: str, default: bool) -> bool:
    value = d.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"{key} must be true or false, got {value!r}")
    return value


def _unit_float(d: Dict[str, Any], key: str, default: float) -> float:
    value = _positive_float(d, key, default, allow_zero=True)
    if value > 1:
        raise ConfigurationError(f"{key} must be between 0 and 1, got {value}")
    return value


@dataclass
class InspectionConfig:
    """Matching configuration."""
    match_strategy: str = "TOPOLOGY"
    max_match_distance: float = 200.0
    treat_extra_as_error: bool = False
    tolerance_x: float = 20.0
    tolerance_y: float = 20.0
    type_mismatch_factor: float = 0.8
    recenter: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "InspectionConfig":
        """Adapter: Create from config dictionary. Raises ConfigurationError."""
        strategy = str(d.get("match_strategy", "TOPOLOGY")).upper()
        if strategy not in MATCH_STRATEGY_NAMES:
            raise ConfigurationError(
                f"Unknown match_strategy {d.get('match_strategy')!r}; "
                f"expected one of {', '.join(MATCH_STRATEGY_NAMES)}"
            )
        return cls(
            match_strategy=strategy,
            max_match_distance=_positive_float(d, "max_match_distance", 200.0),
            treat_extra_as_error=_bool(d, "treat_extra_as_error", False),
            tolerance_x=_positive_float(d, "tolerance_x", 20.0, allow_zero=True),
            tolerance_y=_positive_float(d, "tolerance_y", 20.0, allow_zero=True),
            type_mismatch_factor=_positive_float(d, "type_mismatch_factor", 0.8, allow_zero=True),
            recenter=_bool(d, "recenter", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_strategy": self.match_strategy,
            "max_match_distance": self.max_match_distance,
            "treat_extra_as_error": self.treat_extra_as_error,
            "tolerance_x": self.tolerance_x,
            "tolerance_y": self.tolerance_y,
            "type_mismatch_factor": self.type_mismatch_factor,
            "recenter": self.recenter,
        }


@dataclass
class ModelConfig:
    """Detector post-processing configuration."""
    conf_threshold: float = 0.5
    nms_threshold: float = 0.45
    input_size: List[int] = field(default_factory=lambda: [640, 640])
    class_names: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelConfig":
        input_size = d.get("input_size", [640, 640])
        if (
            not isinstance(input_size, (list, tuple))
            or len(input_size) != 2
            or not all(isinstance(x, int) and x > 0 for x in input_size)
        ):
            raise ConfigurationError("model.input_size must be a list of two positive integers")
        return cls(
            conf_threshold=_unit_float(d, "conf_threshold", 0.5),
            nms_threshold=_unit_float(d, "nms_threshold", 0.45),
            input_size=list(input_size),
            class_names=d.get("class_names"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "conf_threshold": self.conf_threshold,
            "nms_threshold": self.nms_threshold,
            "input_size": self.input_size,
        }
        if self.class_names is not None:
            d["class_names"] = self.class_names
        return d


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    inspection: InspectionConfig = field(default_factory=InspectionConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    quality_standards: QualityStandards = field(default_factory=QualityStandards.defaults)
    log_path: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            inspection=InspectionConfig.from_dict(d.get("inspection") or {}),
            model=ModelConfig.from_dict(d.get("model") or {}),
            quality_standards=QualityStandards.from_dict(d.get("quality_standards")),
            log_path=d.get("log_path"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary."""
        return {
            "inspection": self.inspection.to_dict(),
            "model": self.model.to_dict(),
            "quality_standards": self.quality_standards.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
