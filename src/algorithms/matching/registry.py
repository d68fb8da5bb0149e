"""
Strategy table for the correspondence matchers.

Strategies form a closed set; configuration names are resolved once, at
load time, and an unknown name is rejected rather than defaulted.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Sequence, Union

from models.config import InspectionConfig
from models.detection import DetectedObject
from models.errors import ConfigurationError, InputError
from models.geometry import Point
from models.inspection import InspectionResult
from models.template import Template

from .base import MatchFunction, MatchSettings
from .direct import match_direct
from .rotation_invariant import match_rotation_invariant
from .transform_normalized import match_transform_normalized


class MatchStrategy(str, Enum):
    DIRECT = "DIRECT"
    ROTATION_INVARIANT = "ROTATION_INVARIANT"
    TRANSFORM_NORMALIZED = "TRANSFORM_NORMALIZED"


# Names accepted in the inspection.match_strategy config key.
CONFIG_STRATEGIES: Dict[str, MatchStrategy] = {
    "COORDINATE": MatchStrategy.DIRECT,
    "TOPOLOGY": MatchStrategy.ROTATION_INVARIANT,
    "CROP_AREA": MatchStrategy.TRANSFORM_NORMALIZED,
    "CROSS_RATIO": MatchStrategy.TRANSFORM_NORMALIZED,
}

MATCHERS: Dict[MatchStrategy, MatchFunction] = {
    MatchStrategy.DIRECT: match_direct,
    MatchStrategy.ROTATION_INVARIANT: match_rotation_invariant,
    MatchStrategy.TRANSFORM_NORMALIZED: match_transform_normalized,
}


def resolve_strategy(name: Union[str, MatchStrategy]) -> MatchStrategy:
    """
    Map a config name (COORDINATE, TOPOLOGY, ...) or strategy name to a strategy.

    Raises:
        ConfigurationError: The name is unknown.
    """
    if isinstance(name, MatchStrategy):
        return name
    key = str(name).strip().upper()
    if key in CONFIG_STRATEGIES:
        return CONFIG_STRATEGIES[key]
    try:
        return MatchStrategy(key)
    except ValueError:
        valid = sorted(set(CONFIG_STRATEGIES) | {s.value for s in MatchStrategy})
        raise ConfigurationError(
            f"Unknown match strategy {name!r}; expected one of {', '.join(valid)}"
        ) from None


def create_settings_from_config(cfg: InspectionConfig) -> MatchSettings:
    return MatchSettings(
        max_match_distance=cfg.max_match_distance,
        treat_extra_as_error=cfg.treat_extra_as_error,
        type_mismatch_factor=cfg.type_mismatch_factor,
        recenter=cfg.recenter,
    )


def match(
    template: Template,
    detections: Sequence[DetectedObject],
    strategy: Union[str, MatchStrategy] = MatchStrategy.ROTATION_INVARIANT,
    settings: Optional[MatchSettings] = None,
    detected_anchors: Optional[Sequence[Point]] = None,
) -> InspectionResult:
    """
    Match detections against a template with the chosen strategy.

    Args:
        template: Template to inspect against.
        detections: Detector output for one image. May be empty.
        strategy: Strategy or config strategy name.
        settings: Matcher tunables; defaults when omitted.
        detected_anchors: Detector-frame anchor positions paired with
            ``template.anchors`` (transform-normalized strategy only).

    Raises:
        InputError: Missing template or detections, or bad anchors.
        ConfigurationError: Unknown strategy.
    """
    if template is None:
        raise InputError("No template supplied")
    if detections is None:
        raise InputError(f"No detector output supplied for template {template.template_id}")
    matcher = MATCHERS[resolve_strategy(strategy)]
    return matcher(
        template,
        list(detections),
        settings or MatchSettings(),
        detected_anchors=detected_anchors,
    )
