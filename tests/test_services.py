"""
Tests for the runtime context, InspectionService and the CLI entry point.
"""

import json

import numpy as np
import pytest

from algorithms.matching import MatchStrategy
from inference.letterbox import LetterboxParams
from main import main
from models.config import Config
from models.errors import ConfigurationError, InputError
from models.inspection import ComparisonStatus
from models.template import Template
from runtime.context import create_context_from_config
from runtime.services import InspectionService
from templates.cache import TemplateCache
from templates.store import save_template_file

from conftest import make_detection, make_feature


@pytest.fixture
def service(valid_config, plate_template):
    ctx = create_context_from_config(Config.from_dict(valid_config))
    ctx.template_cache.put(plate_template)
    return InspectionService(ctx)


def plate_output(scores_class=None):
    """Raw [6, 5] detector output with one anchor per plate feature."""
    centers = [(100, 100), (300, 100), (300, 300), (100, 300), (200, 150)]
    classes = scores_class or [0, 0, 0, 0, 1]
    output = np.zeros((6, len(centers)), dtype=np.float32)
    for i, ((x, y), cls) in enumerate(zip(centers, classes)):
        output[0:4, i] = [x, y, 10, 10]
        output[4 + cls, i] = 0.9
    return output


class TestRuntimeContext:
    def test_resolves_strategy_and_settings(self, valid_config):
        ctx = create_context_from_config(Config.from_dict(valid_config))
        assert ctx.strategy is MatchStrategy.DIRECT
        assert ctx.settings.max_match_distance == 50.0
        assert ctx.settings.treat_extra_as_error is True
        assert ctx.settings.recenter is False
        assert ctx.postprocessor.class_names == ("hole", "nut")

    def test_shared_cache(self, valid_config):
        cache = TemplateCache()
        ctx = create_context_from_config(Config.from_dict(valid_config), template_cache=cache)
        assert ctx.template_cache is cache

    def test_unknown_strategy_rejected(self):
        config = Config()
        config.inspection.match_strategy = "NEAREST"
        with pytest.raises(ConfigurationError):
            create_context_from_config(config)


class TestInspectionService:
    def test_inspect_passes(self, service, plate_detections):
        result = service.inspect("PLATE", plate_detections)
        assert result.passed
        assert result.strategy == "direct"
        assert {c.status for c in result.comparisons} == {ComparisonStatus.PASSED}

    def test_strategy_override(self, service, plate_detections):
        result = service.inspect("PLATE", plate_detections, strategy="TOPOLOGY")
        assert result.passed
        assert result.strategy == "rotation_invariant"

    def test_missing_template_fails(self, service, plate_detections):
        result = service.inspect("UNKNOWN", plate_detections)
        assert not result.passed
        assert result.comparisons == ()
        assert "UNKNOWN" in result.message

    def test_loader_error_fails(self, valid_config, plate_detections):
        def loader(template_id):
            raise InputError("corrupt")

        ctx = create_context_from_config(Config.from_dict(valid_config), loader=loader)
        result = InspectionService(ctx).inspect("PLATE", plate_detections)
        assert not result.passed
        assert "corrupt" in result.message

    def test_missing_detections_fail(self, service, plate_template):
        result = service.inspect_template(plate_template, None)
        assert not result.passed
        assert result.strategy == MatchStrategy.DIRECT.value

    def test_bad_anchors_fail(self, service, plate_template, plate_detections):
        result = service.inspect_template(
            plate_template, plate_detections, detected_anchors=[], strategy="CROSS_RATIO"
        )
        assert not result.passed

    def test_inspect_raw(self, service):
        result = service.inspect_raw("PLATE", plate_output(), LetterboxParams.identity(640, 640))
        assert result.passed
        assert result.detected_counts() == {"hole": 4, "nut": 1}

    def test_inspect_raw_rejects_bad_shape(self, service):
        result = service.inspect_raw("PLATE", np.zeros((4, 3)), LetterboxParams.identity())
        assert not result.passed

    def test_evaluate_quality_from_result(self, service, plate_detections):
        result = service.inspect("PLATE", plate_detections)
        evaluation = service.evaluate_quality("EKS", result)
        assert evaluation.passed

    def test_evaluate_quality_from_counts(self, service):
        evaluation = service.evaluate_quality("EKS", {"hole": 21})
        assert not evaluation.passed
        assert [d.defect_type for d in evaluation.failed_details()] == ["hole"]

    def test_update_template(self, service, plate_detections):
        moved = Template("PLATE", (make_feature("H1", 0, 0),))
        service.update_template(moved)

        result = service.inspect("PLATE", [make_detection(0, 0)])

        assert result.passed
        assert len(result.comparisons) == 1


class TestMain:
    @pytest.fixture
    def inputs(self, tmp_path, valid_config, plate_template, plate_detections):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        valid_config["log_path"] = None
        (config_dir / "default.yaml").write_text(json.dumps(valid_config))

        template_path = tmp_path / "plate.json"
        save_template_file(plate_template, str(template_path))

        detections_path = tmp_path / "detections.json"
        detections_path.write_text(json.dumps({"detections": [d.to_dict() for d in plate_detections]}))
        return str(config_dir / "config.yaml"), str(template_path), str(detections_path)

    def test_passing_part(self, inputs, capsys):
        config, template, detections = inputs
        code = main(["--config", config, "--template", template, "--detections", detections])

        out = json.loads(capsys.readouterr().out)
        assert code == 0
        assert out["inspection"]["passed"] is True
        assert out["quality"]["passed"] is True

    def test_failing_part(self, inputs, tmp_path, capsys):
        config, template, _ = inputs
        detections = tmp_path / "few.json"
        detections.write_text(json.dumps([make_detection(100, 100).to_dict()]))

        code = main(["--config", config, "--template", template, "--detections", str(detections)])

        out = json.loads(capsys.readouterr().out)
        assert code == 2
        assert out["inspection"]["passed"] is False

    def test_unreadable_template(self, inputs, tmp_path):
        config, _, detections = inputs
        code = main(["--config", config, "--template", str(tmp_path / "none.json"), "--detections", detections])
        assert code == 1


class TestServiceInputs:
    def test_malformed_template_file_fails(self, tmp_path, valid_config):
        """A stored template with a bad value gives a failed result, not an exception."""
        (tmp_path / "BAD.json").write_text(json.dumps({
            "id": "BAD",
            "features": [{"id": "A", "class_id": "abc", "position": [0, 0]}],
        }))
        ctx = create_context_from_config(Config.from_dict(valid_config), template_dir=str(tmp_path))

        result = InspectionService(ctx).inspect("BAD", [make_detection(0, 0)])

        assert not result.passed
        assert result.comparisons == ()
        assert "BAD" in result.message

    def test_template_missing_position_fails(self, tmp_path, valid_config):
        (tmp_path / "BAD.json").write_text(json.dumps({
            "id": "BAD",
            "features": [{"id": "A", "class_id": 0, "position": [1]}],
        }))
        ctx = create_context_from_config(Config.from_dict(valid_config), template_dir=str(tmp_path))
        assert not InspectionService(ctx).inspect("BAD", [make_detection(0, 0)]).passed

    def test_unclaimed_detections_count_toward_quality(self, valid_config):
        """Detections no feature claims still count against the part's standards."""
        valid_config["inspection"]["treat_extra_as_error"] = False
        ctx = create_context_from_config(Config.from_dict(valid_config))
        holes = tuple(make_feature(f"H{i}", i * 10, 0) for i in range(20))
        ctx.template_cache.put(Template("HOLES", holes, part_type="EKS"))
        service = InspectionService(ctx)

        detections = [make_detection(i * 10, 0, class_name="hole") for i in range(20)]
        detections += [make_detection(1000 + i * 10, 1000, class_name="hole") for i in range(5)]
        result = service.inspect("HOLES", detections)

        assert result.passed
        assert result.detected_counts() == {"hole": 25}
        evaluation = service.evaluate_quality("EKS", result)
        assert not evaluation.passed
        assert [d.defect_type for d in evaluation.failed_details()] == ["hole"]

    def test_configured_tolerance_applies_to_stored_templates(self, tmp_path, valid_config):
        """Features stored without a tolerance use inspection.tolerance_x/y."""
        valid_config["inspection"]["tolerance_x"] = 20.0
        valid_config["inspection"]["tolerance_y"] = 20.0
        (tmp_path / "LOOSE.json").write_text(json.dumps({
            "id": "LOOSE",
            "features": [{"id": "A", "class_id": 0, "position": [100, 100]}],
        }))
        ctx = create_context_from_config(Config.from_dict(valid_config), template_dir=str(tmp_path))

        result = InspectionService(ctx).inspect("LOOSE", [make_detection(110, 110)])

        assert result.passed
        assert result.comparisons[0].tolerance_x == 20.0

    def test_template_level_tolerance_wins_over_config(self, tmp_path, valid_config):
        valid_config["inspection"]["tolerance_x"] = 20.0
        valid_config["inspection"]["tolerance_y"] = 20.0
        (tmp_path / "TIGHT.json").write_text(json.dumps({
            "id": "TIGHT",
            "tolerance_x": 5.0,
            "tolerance_y": 5.0,
            "features": [{"id": "A", "class_id": 0, "position": [100, 100]}],
        }))
        ctx = create_context_from_config(Config.from_dict(valid_config), template_dir=str(tmp_path))

        result = InspectionService(ctx).inspect("TIGHT", [make_detection(110, 110)])

        assert result.comparisons[0].status is ComparisonStatus.DEVIATION_EXCEEDED
