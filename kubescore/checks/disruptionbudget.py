"""Checks that Deployments and StatefulSets are covered by a PodDisruptionBudget."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional

from kubescore.k8s import SelectorError, label_selector_matches
from kubescore.parser import ParsedObjects
from kubescore.registry import Checks, TargetType
from kubescore.scorecard import Grade, TestScore

ObjectCheck = Callable[[Mapping[str, Any]], TestScore]


def register(all_checks: Checks, all_objects: ParsedObjects) -> None:
    budgets = all_objects.pod_disruption_budgets
    all_checks.register(
        TargetType.STATEFUL_SET,
        "StatefulSet has PodDisruptionBudget",
        "Makes sure that all StatefulSets are targeted by a PDB",
        statefulset_has(budgets),
    )
    all_checks.register(
        TargetType.DEPLOYMENT,
        "Deployment has PodDisruptionBudget",
        "Makes sure that all Deployments are targeted by a PDB",
        deployment_has(budgets),
    )


def _namespace(obj: Mapping[str, Any]) -> str:
    return ((obj or {}).get("metadata") or {}).get("namespace") or ""


def has_matching(
    budgets: Optional[Iterable[Mapping[str, Any]]],
    namespace: str,
    labels: Optional[Mapping[str, str]],
) -> bool:
    """Whether a budget in the namespace selects the labels.

    Raises SelectorError if a budget in the namespace has a malformed selector.
    """
    for budget in budgets or []:
        if _namespace(budget) != namespace:
            continue
        selector = (budget.get("spec") or {}).get("selector")
        try:
            matched = label_selector_matches(selector, labels or {})
        except SelectorError as exc:
            raise SelectorError(f"failed to create selector: {exc}") from exc
        if matched:
            return True
    return False


def _has_budget(
    budgets: Optional[Iterable[Mapping[str, Any]]], word: str
) -> ObjectCheck:
    all_budgets = list(budgets or [])

    def check(obj: Mapping[str, Any]) -> TestScore:
        obj = obj or {}
        spec = obj.get("spec") or {}
        score = TestScore()

        replicas = spec.get("replicas")
        if replicas is not None and replicas < 2:
            score.skipped = True
            score.add_comment("", f"Skipped because the {word} has less than 2 replicas", "")
            return score

        labels = ((spec.get("template") or {}).get("metadata") or {}).get("labels") or {}
        if has_matching(all_budgets, _namespace(obj), labels):
            score.grade = Grade.ALL_OK
        else:
            score.grade = Grade.CRITICAL
            score.add_comment(
                "",
                "No matching PodDisruptionBudget was found",
                "It's recommended to define a PodDisruptionBudget to avoid unexpected "
                "downtime during Kubernetes maintenance operations, such as when "
                "draining a node.",
            )
        return score

    return check


def statefulset_has(budgets: Optional[Iterable[Mapping[str, Any]]]) -> ObjectCheck:
    """Build a check that a StatefulSet is targeted by a budget."""
    return _has_budget(budgets, "statefulset")


def deployment_has(budgets: Optional[Iterable[Mapping[str, Any]]]) -> ObjectCheck:
    """Build a check that a Deployment is targeted by a budget."""
    return _has_budget(budgets, "deployment")