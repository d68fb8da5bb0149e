"""
Quality standard models: per-part-type counting rules.
"""

from __future__ import annotations

import operator as _op
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .errors import ConfigurationError

OPERATORS: Dict[str, Callable[[int, int], bool]] = {
    "==": _op.eq,
    "<=": _op.le,
    ">=": _op.ge,
    "<": _op.lt,
    ">": _op.gt,
}

FALLBACK_OPERATOR = "<="

# Marks details for defect types that have no configured standard.
UNDEFINED_OPERATOR = "?"
UNDEFINED_THRESHOLD = -1


@dataclass(frozen=True)
class DefectStandard:
    """
    One counting rule: ``actual_count <operator> threshold``.

    Attributes:
        defect_type: Label the rule applies to (for example "hole").
        operator: One of ==, <=, >=, <, >.
        threshold: Count the actual value is compared against.
        description: Optional human-readable description.
    """
    defect_type: str
    operator: str = FALLBACK_OPERATOR
    threshold: int = 0
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "defect_type": self.defect_type,
            "operator": self.operator,
            "threshold": self.threshold,
        }
        if self.description is not None:
            d["description"] = self.description
        return d

    @classmethod
    def from_dict(cls, d: Mapping[str, Any], strict: bool = True) -> "DefectStandard":
        """
        Adapter: Create from a config dictionary.

        With ``strict`` an unknown operator raises ConfigurationError.
        """
        if "defect_type" not in d:
            raise ConfigurationError("Quality standard is missing defect_type")
        op = str(d.get("operator", FALLBACK_OPERATOR)).strip()
        if strict and op not in OPERATORS:
            raise ConfigurationError(
                f"Unknown operator {op!r} for defect type {d['defect_type']!r}; "
                f"expected one of {', '.join(OPERATORS)}"
            )
        try:
            threshold = int(d.get("threshold", 0))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Threshold for defect type {d['defect_type']!r} must be an integer"
            ) from e
        return cls(
            defect_type=str(d["defect_type"]),
            operator=op,
            threshold=threshold,
            description=d.get("description"),
        )


def default_standards() -> Dict[str, List[DefectStandard]]:
    """Built-in standards used when the configuration provides none."""
    return {
        "EKS": [
            DefectStandard("hole", "<=", 20, "Hole count must not exceed 20"),
            DefectStandard("nut", "<=", 7, "Nut count must not exceed 7"),
        ],
    }


@dataclass(frozen=True)
class QualityStandards:
    """Read-only mapping of part type to its counting rules."""
    standards: Mapping[str, Tuple[DefectStandard, ...]] = field(default_factory=dict)

    def for_part_type(self, part_type: Optional[str]) -> Tuple[DefectStandard, ...]:
        if part_type is None:
            return ()
        return tuple(self.standards.get(part_type, ()))

    def part_types(self) -> List[str]:
        return sorted(self.standards)

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            part_type: [s.to_dict() for s in rules]
            for part_type, rules in self.standards.items()
        }

    @classmethod
    def from_dict(cls, d: Optional[Mapping[str, Any]], strict: bool = True) -> "QualityStandards":
        if d is None:
            return cls.defaults()
        if not isinstance(d, Mapping):
            raise ConfigurationError("quality_standards must be a mapping of part type to rules")
        parsed: Dict[str, Tuple[DefectStandard, ...]] = {}
        for part_type, rules in d.items():
            if not isinstance(rules, list):
                raise ConfigurationError(
                    f"quality_standards.{part_type} must be a list of rules"
                )
            parsed[str(part_type)] = tuple(DefectStandard.from_dict(r, strict=strict) for r in rules)
        return cls(standards=parsed)

    @classmethod
    def defaults(cls) -> "QualityStandards":
        return cls(standards={k: tuple(v) for k, v in default_standards().items()})


@dataclass(frozen=True)
class EvaluationDetail:
    """Outcome of one standard (or one unconfigured defect type)."""
    defect_type: str
    operator: str
    threshold: int
    actual_count: int
    passed: bool
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "defect_type": self.defect_type,
            "operator": self.operator,
            "threshold": self.threshold,
            "actual_count": self.actual_count,
            "passed": self.passed,
            "description": self.description,
        }


@dataclass(frozen=True)
class QualityEvaluation:
    """Part-level verdict from the counting rules."""
    part_type: Optional[str]
    passed: bool
    details: Tuple[EvaluationDetail, ...] = ()
    message: str = ""

    def failed_details(self) -> List[EvaluationDetail]:
        return [d for d in self.details if not d.passed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "part_type": self.part_type,
            "passed": self.passed,
            "message": self.message,
            "details": [d.to_dict() for d in self.details],
        }
