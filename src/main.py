"""
Command-line entry point: inspect one set of detections against a template.

Usage:
    python src/main.py --config config/config.yaml --template templates/part.json \
        --detections detections.json

Arguments:
    --config: Path to configuration file
    --template: Template JSON document
    --detections: JSON list of detected objects (or {"detections": [...]})
    --strategy: Override inspection.match_strategy
    --part-type: Part type for quality standards (defaults to the template's)
"""

import os
import sys
import argparse
import json
import logging
import yaml
from typing import Dict, Any, List, Tuple, Optional

# Import local modules
from algorithms.matching import CONFIG_STRATEGIES, MatchStrategy
from models.config import Config
from models.detection import DetectedObject
from models.errors import ConfigurationError, InputError
from models.quality import OPERATORS
from ops.logging import setup_logging
from runtime.context import create_context_from_config
from runtime.services import InspectionService
from templates.store import load_template_file

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    # Required top-level sections
    for section in ('inspection', 'model'):
        if section not in config or not isinstance(config[section], dict):
            return False, f"Missing required configuration section: {section}"

    # Validate inspection settings
    inspection = config['inspection']
    strategy = str(inspection.get('match_strategy', 'TOPOLOGY')).upper()
    if strategy not in CONFIG_STRATEGIES:
        return False, f"inspection.match_strategy must be one of: {', '.join(CONFIG_STRATEGIES)}"

    if 'max_match_distance' in inspection:
        mmd = inspection['max_match_distance']
        if not _is_number(mmd) or mmd <= 0:
            return False, "inspection.max_match_distance must be a positive number"

    for key in ('tolerance_x', 'tolerance_y', 'type_mismatch_factor'):
        if key in inspection:
            value = inspection[key]
            if not _is_number(value) or value < 0:
                return False, f"inspection.{key} must be a non-negative number"

    for key in ('treat_extra_as_error', 'recenter'):
        if key in inspection and not isinstance(inspection[key], bool):
            return False, f"inspection.{key} must be true or false"

    # Validate model settings
    model = config['model']
    for key in ('conf_threshold', 'nms_threshold'):
        if key in model:
            value = model[key]
            if not _is_number(value) or not (0 <= value <= 1):
                return False, f"model.{key} must be between 0 and 1"

    if 'input_size' in model:
        size = model['input_size']
        if not isinstance(size, list) or len(size) != 2:
            return False, "model.input_size must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in size):
            return False, "model.input_size values must be positive integers"

    if 'class_names' in model and model['class_names'] is not None:
        if not isinstance(model['class_names'], list):
            return False, "model.class_names must be a list"

    # Optional quality standards
    standards = config.get('quality_standards')
    if standards is not None:
        if not isinstance(standards, dict):
            return False, "quality_standards must be a mapping of part type to rules"
        for part_type, rules in standards.items():
            if not isinstance(rules, list):
                return False, f"quality_standards.{part_type} must be a list"
            for rule in rules:
                if not isinstance(rule, dict) or 'defect_type' not in rule:
                    return False, f"quality_standards.{part_type} rules need a defect_type"
                if rule.get('operator', '<=') not in OPERATORS:
                    return False, (
                        f"quality_standards.{part_type}.{rule['defect_type']}: "
                        f"operator must be one of: {', '.join(OPERATORS)}"
                    )
                if not isinstance(rule.get('threshold', 0), int):
                    return False, (
                        f"quality_standards.{part_type}.{rule['defect_type']}: "
                        "threshold must be an integer"
                    )

    # Validate log settings
    if 'log_level' not in config:
        return False, "Missing log_level"
    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"
    if config.get('log_path') is not None and not isinstance(config['log_path'], str):
        return False, "log_path must be a string"

    return True, None


def load_detections(path: str) -> List[DetectedObject]:
    """Read detections from a JSON list or a {"detections": [...]} document."""
    with open(path, "r") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("detections", [])
    if not isinstance(data, list):
        raise InputError(f"{path} must contain a list of detections")
    try:
        return [DetectedObject.from_dict(d) for d in data]
    except (KeyError, TypeError, ValueError) as e:
        raise InputError(f"Malformed detection in {path}: {e}") from e


def main(argv: Optional[List[str]] = None) -> int:
    """Main application function."""
    # Parse command-line arguments
    parser = argparse.ArgumentParser(description='Part inspection against a feature template')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--template', type=str, required=True,
                        help='Template JSON file')
    parser.add_argument('--detections', type=str, required=True,
                        help='Detections JSON file')
    parser.add_argument('--strategy', type=str, default=None,
                        choices=sorted(set(CONFIG_STRATEGIES) | {s.value for s in MatchStrategy}),
                        help='Override inspection.match_strategy')
    parser.add_argument('--part-type', type=str, default=None,
                        help='Part type for quality standards')
    args = parser.parse_args(argv)

    # Load configuration
    raw_config = load_config(args.config)

    # Validate configuration
    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        return 1

    # Setup logging
    setup_logging(raw_config.get('log_path'), raw_config['log_level'])

    try:
        config = Config.from_dict(raw_config)
        ctx = create_context_from_config(config)
    except ConfigurationError as e:
        logging.error(f"Configuration rejected: {e}")
        return 1

    service = InspectionService(ctx)

    try:
        template = load_template_file(
            args.template,
            config.inspection.tolerance_x,
            config.inspection.tolerance_y,
        )
        detections = load_detections(args.detections)
    except (InputError, OSError, json.JSONDecodeError) as e:
        logging.error(f"Cannot read inputs: {e}")
        return 1

    ctx.template_cache.put(template)
    result = service.inspect(template.template_id, detections, strategy=args.strategy)
    quality = service.evaluate_quality(args.part_type or template.part_type, result)

    print(json.dumps({"inspection": result.to_dict(), "quality": quality.to_dict()}, indent=2))
    return 0 if result.passed and quality.passed else 2


if __name__ == "__main__":
    sys.exit(main())
