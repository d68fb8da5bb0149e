"""
Tests for quality standards and the rule evaluator.
"""

import logging

import pytest

from models.errors import ConfigurationError
from models.quality import DefectStandard, QualityStandards
from quality.evaluator import QualityRuleEvaluator, evaluate_operator


class TestEvaluateOperator:
    @pytest.mark.parametrize("actual, op, threshold, expected", [
        (5, "==", 5, True),
        (4, "==", 5, False),
        (5, "<=", 5, True),
        (6, "<=", 5, False),
        (5, ">=", 5, True),
        (4, ">=", 5, False),
        (4, "<", 5, True),
        (5, "<", 5, False),
        (6, ">", 5, True),
        (5, ">", 5, False),
    ])
    def test_operators(self, actual, op, threshold, expected):
        assert evaluate_operator(actual, op, threshold) is expected

    def test_unknown_operator_falls_back_to_le(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert evaluate_operator(3, "=<", 5) is True
            assert evaluate_operator(6, "=<", 5) is False
        assert "Unknown operator" in caplog.text


class TestQualityStandards:
    def test_strict_load_rejects_unknown_operator(self):
        with pytest.raises(ConfigurationError):
            QualityStandards.from_dict({"EKS": [{"defect_type": "hole", "operator": "~", "threshold": 1}]})

    def test_lenient_load_keeps_unknown_operator(self):
        standards = QualityStandards.from_dict(
            {"EKS": [{"defect_type": "hole", "operator": "~", "threshold": 1}]}, strict=False
        )
        assert standards.for_part_type("EKS")[0].operator == "~"

    def test_missing_defect_type_rejected(self):
        with pytest.raises(ConfigurationError):
            QualityStandards.from_dict({"EKS": [{"operator": "<=", "threshold": 1}]})

    def test_bad_threshold_rejected(self):
        with pytest.raises(ConfigurationError):
            QualityStandards.from_dict({"EKS": [{"defect_type": "hole", "threshold": "many"}]})

    def test_none_gives_defaults(self):
        standards = QualityStandards.from_dict(None)
        assert [s.defect_type for s in standards.for_part_type("EKS")] == ["hole", "nut"]

    def test_round_trip(self):
        data = {"EKS": [{"defect_type": "hole", "operator": "<=", "threshold": 20}]}
        assert QualityStandards.from_dict(data).to_dict() == data


class TestQualityRuleEvaluator:
    def test_count_above_threshold_fails(self):
        """hole <= 20 with 25 holes fails."""
        evaluator = QualityRuleEvaluator(QualityStandards({"EKS": (DefectStandard("hole", "<=", 20),)}))

        evaluation = evaluator.evaluate("EKS", {"hole": 25})

        assert evaluation.passed is False
        detail = evaluation.details[0]
        assert (detail.defect_type, detail.actual_count, detail.passed) == ("hole", 25, False)
        assert "hole" in evaluation.message

    def test_all_standards_met(self):
        evaluation = QualityRuleEvaluator().evaluate("EKS", {"hole": 20, "nut": 7})
        assert evaluation.passed is True
        assert evaluation.failed_details() == []

    def test_absent_defect_type_counts_as_zero(self):
        evaluator = QualityRuleEvaluator(QualityStandards({"P": (DefectStandard("scratch", ">=", 1),)}))
        evaluation = evaluator.evaluate("P", {})
        assert evaluation.passed is False
        assert evaluation.details[0].actual_count == 0

    def test_unconfigured_defect_type_fails(self):
        evaluation = QualityRuleEvaluator().evaluate("EKS", {"hole": 3, "crack": 1})
        assert evaluation.passed is False
        crack = [d for d in evaluation.details if d.defect_type == "crack"][0]
        assert crack.operator == "?"
        assert crack.threshold == -1

    def test_unconfigured_defect_type_with_zero_count_ignored(self):
        evaluation = QualityRuleEvaluator().evaluate("EKS", {"hole": 3, "crack": 0})
        assert evaluation.passed is True

    def test_unknown_part_type_requires_zero_defects(self):
        evaluator = QualityRuleEvaluator()
        assert evaluator.evaluate("UNKNOWN", {}).passed is True
        assert evaluator.evaluate("UNKNOWN", {"hole": 0}).passed is True
        failed = evaluator.evaluate("UNKNOWN", {"hole": 1})
        assert failed.passed is False
        assert "zero defects required" in failed.message

    def test_missing_part_type_requires_zero_defects(self):
        assert QualityRuleEvaluator().evaluate(None, {"nut": 2}).passed is False

    def test_to_dict(self):
        d = QualityRuleEvaluator().evaluate("EKS", {"hole": 1}).to_dict()
        assert d["passed"] is True
        assert d["details"][0]["defect_type"] == "hole"
