"""Scorecards: the graded results of running checks against objects."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import List, Set

from kubescore.domain import Check, ObjectMeta, TypeMeta

IGNORED_CHECKS_ANNOTATION = "kube-score/ignore"


class Grade(IntEnum):
    """Grades a check can give. A grade of 0 means no grade (skipped)."""

    CRITICAL = 1
    WARNING = 5
    ALMOST_OK = 7
    ALL_OK = 10


def grade_label(grade: int) -> str:
    """Text label of a grade; raises ValueError for unknown grades."""
    if grade == Grade.CRITICAL:
        return "CRITICAL"
    if grade == Grade.WARNING:
        return "WARNING"
    if grade in (Grade.ALMOST_OK, Grade.ALL_OK):
        return "OK"
    raise ValueError(f"Unknown grade: {grade}")


@dataclass
class TestScoreComment:
    """A remark attached to a check result."""

    __test__ = False

    path: str = ""
    summary: str = ""
    description: str = ""


@dataclass
class TestScore:
    """The result of one check on one object."""

    __test__ = False

    check: Check = field(default_factory=Check)
    grade: int = 0
    skipped: bool = False
    comments: List[TestScoreComment] = field(default_factory=list)

    def add_comment(self, path: str, summary: str, description: str) -> None:
        self.comments.append(TestScoreComment(path, summary, description))


@dataclass
class ScoredObject:
    """An object together with all check results for it."""

    type_meta: TypeMeta = field(default_factory=TypeMeta)
    object_meta: ObjectMeta = field(default_factory=ObjectMeta)
    checks: List[TestScore] = field(default_factory=list)
    ignored_checks: Set[str] = field(default_factory=set)

    def _set_ignored_tests(self) -> None:
        annotation = self.object_meta.annotations.get(IGNORED_CHECKS_ANNOTATION)
        if annotation is None:
            self.ignored_checks = set()
        else:
            self.ignored_checks = {part.strip() for part in annotation.split(",")}

    def resource_ref_key(self) -> str:
        tm, om = self.type_meta, self.object_meta
        return f"{tm.kind}/{tm.api_version}/{om.namespace}/{om.name}"

    def human_friendly_ref(self) -> str:
        ref = self.object_meta.name
        if self.object_meta.namespace:
            ref += "/" + self.object_meta.namespace
        return f"{ref} {self.type_meta.api_version}/{self.type_meta.kind}"

    def add(self, ts: TestScore, check: Check) -> None:
        """Record a result; results of ignored checks are marked skipped."""
        ts = replace(ts, check=check, comments=list(ts.comments))
        if check.id in self.ignored_checks:
            ts.skipped = True
            ts.comments = [
                TestScoreComment(summary=f"Skipped because {check.id} is ignored")
            ]
        self.checks.append(ts)

    def any_below_or_equal_to_grade(self, threshold: int) -> bool:
        return any(
            not ts.skipped and ts.grade <= threshold for ts in self.checks
        )


class Scorecard(dict):
    """Mapping from resource reference key to ScoredObject."""

    def new_object(
        self,
        type_meta: TypeMeta,
        object_meta: ObjectMeta,
        use_ignore_checks_annotation: bool,
    ) -> ScoredObject:
        """Return the object for this key, creating it if it is new."""
        obj = ScoredObject(type_meta=type_meta, object_meta=object_meta)
        key = obj.resource_ref_key()
        existing = self.get(key)
        if existing is not None:
            return existing
        if use_ignore_checks_annotation:
            obj._set_ignored_tests()
        self[key] = obj
        return obj

    def any_below_or_equal_to_grade(self, threshold: int) -> bool:
        return any(o.any_below_or_equal_to_grade(threshold) for o in self.values())