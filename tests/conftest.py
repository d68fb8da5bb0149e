"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.detection import DetectedObject
from models.geometry import Point
from models.template import Template, TemplateFeature


def make_feature(feature_id, x, y, class_id=0, tol=5.0, required=True, name=None):
    return TemplateFeature(
        feature_id=feature_id,
        name=name or feature_id,
        class_id=class_id,
        position=Point(x, y),
        tolerance_x=tol,
        tolerance_y=tol,
        required=required,
    )


def make_detection(x, y, class_id=0, confidence=0.9, class_name=None, size=10.0):
    return DetectedObject(
        class_id=class_id,
        center=Point(x, y),
        width=size,
        height=size,
        confidence=confidence,
        class_name=class_name,
    )


@pytest.fixture
def single_feature_template():
    """One class-0 feature at (100, 100) with 5 px tolerance."""
    return Template(template_id="T1", features=(make_feature("F0", 100, 100),))


@pytest.fixture
def plate_template():
    """Four holes on a square plus one nut in the middle, all required."""
    return Template(
        template_id="PLATE",
        features=(
            make_feature("H1", 100, 100, class_id=0, name="hole_tl"),
            make_feature("H2", 300, 100, class_id=0, name="hole_tr"),
            make_feature("H3", 300, 300, class_id=0, name="hole_br"),
            make_feature("H4", 100, 300, class_id=0, name="hole_bl"),
            make_feature("N1", 200, 150, class_id=1, name="nut"),
        ),
        part_type="EKS",
    )


@pytest.fixture
def plate_detections():
    """Detections matching plate_template exactly, in shuffled order."""
    return [
        make_detection(200, 150, class_id=1, class_name="nut"),
        make_detection(300, 300, class_name="hole"),
        make_detection(100, 100, class_name="hole"),
        make_detection(100, 300, class_name="hole"),
        make_detection(300, 100, class_name="hole"),
    ]


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
inspection:
  match_strategy: "TOPOLOGY"
  max_match_distance: 200.0
  treat_extra_as_error: false
  tolerance_x: 20.0
  tolerance_y: 20.0

model:
  conf_threshold: 0.5
  nms_threshold: 0.45
  input_size: [640, 640]

quality_standards:
  EKS:
    - defect_type: "hole"
      operator: "<="
      threshold: 20

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "inspection": {
            "match_strategy": "COORDINATE",
            "max_match_distance": 50.0,
            "treat_extra_as_error": True,
            "tolerance_x": 5.0,
            "tolerance_y": 5.0,
            "recenter": False,
        },
        "model": {
            "conf_threshold": 0.5,
            "nms_threshold": 0.45,
            "input_size": [640, 640],
            "class_names": ["hole", "nut"],
        },
        "quality_standards": {
            "EKS": [
                {"defect_type": "hole", "operator": "<=", "threshold": 20},
                {"defect_type": "nut", "operator": "<=", "threshold": 7},
            ],
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
