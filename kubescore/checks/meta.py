"""Checks on object metadata."""

from __future__ import annotations

import re

from kubescore.domain import BothMeta
from kubescore.registry import Checks, TargetType
from kubescore.scorecard import Grade, TestScore

_LABEL_VALUE_RE = re.compile(r"(([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9])?")


def register(all_checks: Checks) -> None:
    all_checks.register(
        TargetType.ALL, "Label values", "Validates label values", validate_label_values
    )


def validate_label_values(meta: BothMeta) -> TestScore:
    """Critical for every label whose value Kubernetes would reject."""
    score = TestScore(grade=Grade.ALL_OK)
    for key, value in meta.object_meta.labels.items():
        if not isinstance(value, str) or _LABEL_VALUE_RE.fullmatch(value) is None:
            score.grade = Grade.CRITICAL
            score.add_comment(
                key,
                "Invalid label value",
                "The label value is invalid, and will not be accepted by Kubernetes",
            )
    return score