"""Checks on HorizontalPodAutoscalers."""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Mapping

from kubescore.domain import BothMeta
from kubescore.registry import Checks, TargetType
from kubescore.scorecard import Grade, TestScore


def register(all_checks: Checks, all_targetable: Iterable[BothMeta]) -> None:
    all_checks.register(
        TargetType.HORIZONTAL_POD_AUTOSCALER,
        "HorizontalPodAutoscaler has target",
        "Makes sure that the HPA targets a valid object",
        hpa_has_target(all_targetable),
    )


def hpa_has_target(
    all_targetable: Iterable[BothMeta],
) -> Callable[[Mapping[str, Any]], TestScore]:
    """Build a check that the HPA's scaleTargetRef names a known object."""
    targets: List[BothMeta] = list(all_targetable or [])

    def check(hpa: Mapping[str, Any]) -> TestScore:
        hpa = hpa or {}
        ref = ((hpa.get("spec") or {}).get("scaleTargetRef")) or {}
        namespace = (hpa.get("metadata") or {}).get("namespace") or ""
        api_version = ref.get("apiVersion") or ""
        kind = ref.get("kind") or ""
        name = ref.get("name") or ""

        has_target = any(
            t.type_meta.api_version == api_version
            and t.type_meta.kind == kind
            and t.object_meta.name == name
            and t.object_meta.namespace == namespace
            for t in targets
        )

        score = TestScore()
        if has_target:
            score.grade = Grade.ALL_OK
        else:
            score.grade = Grade.CRITICAL
            score.add_comment("", "The HPA target does not match anything", "")
        return score

    return check