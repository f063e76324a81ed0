"""Checks on CronJobs."""

from __future__ import annotations

from typing import Any, Mapping

from kubescore.registry import Checks, TargetType
from kubescore.scorecard import Grade, TestScore


def register(all_checks: Checks) -> None:
    all_checks.register(
        TargetType.CRON_JOB,
        "CronJob has deadline",
        "Makes sure that all CronJobs has a configured deadline",
        cronjob_has_deadline,
    )


def cronjob_has_deadline(job: Mapping[str, Any]) -> TestScore:
    """Critical if startingDeadlineSeconds is not set."""
    spec = (job or {}).get("spec") or {}
    score = TestScore()
    if spec.get("startingDeadlineSeconds") is None:
        score.grade = Grade.CRITICAL
        score.add_comment(
            "",
            "The CronJob should have startingDeadlineSeconds configured",
            "This makes sure that jobs are automatically cancelled if they can not be scheduler",
        )
        return score
    score.grade = Grade.ALL_OK
    return score