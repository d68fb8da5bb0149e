"""
Smoke tests for typed models and adapters.
"""

import pytest
import numpy as np

from models.detection import CandidateBox, DetectedObject
from models.errors import InputError
from models.geometry import BoundingBox, Point, centroid
from models.inspection import ComparisonStatus, FeatureComparison, InspectionResult
from models.template import AnchorPoint, AnchorType, Template, TemplateFeature

from conftest import make_feature


class TestPoint:
    def test_arithmetic(self):
        assert Point(3, 4) - Point(1, 1) == Point(2, 3)
        assert Point(1, 2) + Point(1, 1) == Point(2, 3)

    def test_distance(self):
        assert Point(0, 0).distance_to(Point(3, 4)) == 5.0
        assert Point(3, 4).norm() == 5.0

    def test_centroid(self):
        assert centroid([Point(0, 0), Point(2, 0), Point(1, 3)]) == Point(1.0, 1.0)

    def test_centroid_of_nothing_is_origin(self):
        assert centroid([]) == Point(0.0, 0.0)


class TestBoundingBox:
    def test_properties(self):
        bbox = BoundingBox(x1=100, y1=100, x2=200, y2=150)
        assert bbox.width == 100
        assert bbox.height == 50
        assert bbox.center == Point(150.0, 125.0)
        assert bbox.area == 5000

    def test_degenerate_area_is_zero(self):
        assert BoundingBox(10, 10, 10, 20).area == 0.0
        assert BoundingBox(10, 10, 5, 20).area == 0.0

    def test_from_points(self):
        bbox = BoundingBox.from_points([Point(5, 1), Point(1, 7), Point(3, 3)])
        assert bbox.as_tuple() == (1, 1, 5, 7)

    def test_from_points_empty_raises(self):
        with pytest.raises(ValueError):
            BoundingBox.from_points([])

    def test_expand(self):
        assert BoundingBox(10, 10, 20, 20).expand(5).as_tuple() == (5, 5, 25, 25)


class TestDetectedObject:
    def test_from_xyxy(self):
        det = DetectedObject.from_xyxy(10, 20, 30, 60, class_id=2, confidence=0.9)
        assert det.center == Point(20.0, 40.0)
        assert det.width == 20
        assert det.height == 40
        assert det.bbox.as_tuple() == (10, 20, 30, 60)

    def test_with_center_returns_new_instance(self):
        det = DetectedObject(class_id=0, center=Point(1, 1), width=4, height=2)
        moved = det.with_center(Point(5, 5), scale=2.0)
        assert det.center == Point(1, 1)
        assert moved.center == Point(5, 5)
        assert (moved.width, moved.height) == (8, 4)

    def test_dict_round_trip(self):
        det = DetectedObject(class_id=1, center=Point(12.5, 7.0), width=3, height=4,
                             confidence=0.75, class_name="nut")
        assert DetectedObject.from_dict(det.to_dict()) == det

    def test_from_dict_flat_coordinates(self):
        det = DetectedObject.from_dict({"class_id": 0, "x": 10, "y": 20})
        assert det.center == Point(10.0, 20.0)
        assert det.confidence == 1.0

    def test_from_numpy_row(self):
        det = DetectedObject.from_numpy_row(np.array([0, 0, 10, 20, 0.8, 3]))
        assert det.class_id == 3
        assert det.center == Point(5.0, 10.0)
        assert det.confidence == pytest.approx(0.8)

    def test_candidate_conversion(self):
        cand = CandidateBox(x1=0, y1=0, x2=10, y2=10, score=0.6, class_id=1)
        det = cand.to_detected_object("nut")
        assert det.center == Point(5.0, 5.0)
        assert det.confidence == 0.6
        assert det.class_name == "nut"


class TestTemplate:
    def test_relative_positions_filled_in(self):
        template = Template("T", (make_feature("A", 0, 0), make_feature("B", 10, 20)))
        assert template.centroid == Point(5.0, 10.0)
        assert template.feature("A").relative_position == Point(-5.0, -10.0)
        assert template.feature("B").relative_position == Point(5.0, 10.0)

    def test_consistent_relative_position_accepted(self):
        f = TemplateFeature("A", "A", 0, Point(0, 0), relative_position=Point(-5, 0))
        template = Template("T", (f, make_feature("B", 10, 0)))
        assert template.feature("A").relative_position == Point(-5, 0)

    def test_diverging_relative_position_rejected(self):
        f = TemplateFeature("A", "A", 0, Point(0, 0), relative_position=Point(1, 1))
        with pytest.raises(InputError):
            Template("T", (f, make_feature("B", 10, 0)))

    def test_empty_template_rejected(self):
        with pytest.raises(InputError):
            Template("T", ())

    def test_duplicate_feature_ids_rejected(self):
        with pytest.raises(InputError):
            Template("T", (make_feature("A", 0, 0), make_feature("A", 5, 5)))

    def test_negative_tolerance_rejected(self):
        with pytest.raises(InputError):
            make_feature("A", 0, 0, tol=-1)

    def test_required_features(self):
        template = Template("T", (make_feature("A", 0, 0), make_feature("B", 5, 5, required=False)))
        assert [f.feature_id for f in template.required_features] == ["A"]

    def test_dict_round_trip(self):
        template = Template(
            "T",
            (make_feature("A", 0, 0), make_feature("B", 10, 0, class_id=1)),
            bounding_box=BoundingBox(-10, -10, 20, 10),
            part_type="EKS",
            anchors=(AnchorPoint("A0", AnchorType.CENTER, Point(5, 0)),),
        )
        restored = Template.from_dict(template.to_dict())
        assert restored == template

    def test_from_dict_inherits_template_tolerance(self):
        template = Template.from_dict({
            "id": "T",
            "tolerance_x": 7.0,
            "tolerance_y": 9.0,
            "features": [
                {"id": "A", "class_id": 0, "position": [0, 0]},
                {"id": "B", "class_id": 0, "position": [10, 0], "tolerance_x": 1.0},
            ],
        })
        assert template.feature("A").tolerance_x == 7.0
        assert template.feature("A").tolerance_y == 9.0
        assert template.feature("B").tolerance_x == 1.0


class TestInspectionResult:
    def _comparison(self, status):
        return FeatureComparison(feature_id="F", feature_name="F", class_id=0, status=status)

    def test_passed_only_when_all_passed(self):
        ok = InspectionResult.from_comparisons("T", [self._comparison(ComparisonStatus.PASSED)], "direct")
        bad = InspectionResult.from_comparisons(
            "T",
            [self._comparison(ComparisonStatus.PASSED), self._comparison(ComparisonStatus.EXTRA)],
            "direct",
        )
        assert ok.passed is True
        assert bad.passed is False
        assert bad.message.startswith("Inspection failed")

    def test_failure_never_passes(self):
        result = InspectionResult.failure("T", "no template")
        assert result.passed is False
        assert result.comparisons == ()
        assert result.message == "no template"

    def test_summary_counts(self):
        result = InspectionResult.from_comparisons(
            "T",
            [
                self._comparison(ComparisonStatus.PASSED),
                self._comparison(ComparisonStatus.MISSING),
                self._comparison(ComparisonStatus.MISSING),
                self._comparison(ComparisonStatus.TYPE_MISMATCH),
            ],
            "direct",
        )
        summary = result.summary()
        assert summary.total == 4
        assert summary.missing == 2
        assert summary.type_mismatch == 1

    def test_processing_time_excluded_from_equality(self):
        a = InspectionResult.from_comparisons("T", [], "direct", processing_time_ms=1.0)
        b = InspectionResult.from_comparisons("T", [], "direct", processing_time_ms=9.0)
        assert a == b

    def test_detected_counts(self):
        comparisons = [
            FeatureComparison("A", "A", 0, ComparisonStatus.PASSED, class_name="hole", detected_index=0),
            FeatureComparison("B", "B", 0, ComparisonStatus.MISSING),
            FeatureComparison("extra_2", "hole", 0, ComparisonStatus.EXTRA, class_name="hole", detected_index=2),
        ]
        result = InspectionResult.from_comparisons("T", comparisons, "direct")
        assert result.detected_counts() == {"hole": 2}

    def test_to_dict(self):
        comparison = FeatureComparison(
            "A", "A", 0, ComparisonStatus.PASSED,
            template_position=Point(1, 2), detected_position=Point(1, 3),
        )
        d = InspectionResult.from_comparisons("T", [comparison], "direct").to_dict()
        assert d["passed"] is True
        assert d["summary"]["passed"] == 1
        assert d["comparisons"][0]["status"] == "PASSED"
        assert d["comparisons"][0]["detected_position"] == [1, 3]
