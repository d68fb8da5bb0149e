"""
Part-level quality rules: counting standards per part type.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from models.quality import (
    FALLBACK_OPERATOR,
    OPERATORS,
    UNDEFINED_OPERATOR,
    UNDEFINED_THRESHOLD,
    EvaluationDetail,
    QualityEvaluation,
    QualityStandards,
)


def evaluate_operator(actual_count: int, operator: str, threshold: int) -> bool:
    """
    Evaluate ``actual_count <operator> threshold``.

    An unrecognised operator is evaluated as ``<=`` and logged. Configuration
    loading rejects such operators, so this only applies to standards built
    without validation.
    """
    fn = OPERATORS.get(operator)
    if fn is None:
        logging.warning(f"Unknown operator {operator!r}; evaluating as {FALLBACK_OPERATOR!r}")
        fn = OPERATORS[FALLBACK_OPERATOR]
    return fn(actual_count, threshold)


class QualityRuleEvaluator:
    """
    Applies the configured standards of a part type to observed counts.

    A part passes only if every standard for its part type holds and no
    observed defect type lacks a standard. A part type without standards
    passes only with zero observed defects.
    """

    def __init__(self, standards: Optional[QualityStandards] = None):
        self.standards = standards if standards is not None else QualityStandards.defaults()

    def evaluate(self, part_type: Optional[str], counts: Mapping[str, int]) -> QualityEvaluation:
        rules = self.standards.for_part_type(part_type)
        if not rules:
            return self._evaluate_unconfigured(part_type, counts)

        details = []
        for rule in rules:
            actual = int(counts.get(rule.defect_type, 0))
            details.append(
                EvaluationDetail(
                    defect_type=rule.defect_type,
                    operator=rule.operator,
                    threshold=rule.threshold,
                    actual_count=actual,
                    passed=evaluate_operator(actual, rule.operator, rule.threshold),
                    description=rule.description,
                )
            )

        covered = {rule.defect_type for rule in rules}
        for defect_type in sorted(counts):
            actual = int(counts[defect_type])
            if defect_type in covered or actual <= 0:
                continue
            details.append(
                EvaluationDetail(
                    defect_type=defect_type,
                    operator=UNDEFINED_OPERATOR,
                    threshold=UNDEFINED_THRESHOLD,
                    actual_count=actual,
                    passed=False,
                    description=f"No standard defined for {defect_type}",
                )
            )

        passed = all(d.passed for d in details)
        failed = [d.defect_type for d in details if not d.passed]
        if passed:
            message = f"Part type {part_type}: all {len(details)} standards met"
        else:
            message = f"Part type {part_type}: standards failed for {', '.join(failed)}"
        logging.info(message)
        return QualityEvaluation(part_type=part_type, passed=passed, details=tuple(details), message=message)

    def _evaluate_unconfigured(self, part_type: Optional[str], counts: Mapping[str, int]) -> QualityEvaluation:
        total = sum(int(v) for v in counts.values())
        details = tuple(
            EvaluationDetail(
                defect_type=defect_type,
                operator="==",
                threshold=0,
                actual_count=int(counts[defect_type]),
                passed=int(counts[defect_type]) == 0,
                description="No standards configured; zero defects required",
            )
            for defect_type in sorted(counts)
        )
        passed = total == 0
        message = (
            f"No standards configured for part type {part_type}; "
            f"zero defects required, found {total}"
        )
        logging.info(message)
        return QualityEvaluation(part_type=part_type, passed=passed, details=details, message=message)
