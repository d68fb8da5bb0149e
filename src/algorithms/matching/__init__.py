"""
Correspondence matchers pairing detections with template features.

Available strategies:
- DIRECT: absolute coordinates after bounding-box recentering (config: COORDINATE)
- ROTATION_INVARIANT: distance from centroid (config: TOPOLOGY)
- TRANSFORM_NORMALIZED: similarity-transform alignment (config: CROP_AREA, CROSS_RATIO)
"""

from .base import MatchSettings, assign_nearest
from .direct import match_direct
from .rotation_invariant import match_rotation_invariant
from .transform_normalized import match_transform_normalized
from .registry import (
    CONFIG_STRATEGIES,
    MATCHERS,
    MatchStrategy,
    create_settings_from_config,
    match,
    resolve_strategy,
)

__all__ = [
    "MatchSettings",
    "assign_nearest",
    "match_direct",
    "match_rotation_invariant",
    "match_transform_normalized",
    "CONFIG_STRATEGIES",
    "MATCHERS",
    "MatchStrategy",
    "create_settings_from_config",
    "match",
    "resolve_strategy",
]
