"""Checks that Deployments and StatefulSets spread their pods over nodes."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from kubescore.k8s import SelectorError, label_selector_matches
from kubescore.registry import Checks, TargetType
from kubescore.scorecard import Grade, TestScore

HOSTNAME_TOPOLOGY_KEY = "kubernetes.io/hostname"

_COMMENT = (
    "Makes sure that a podAntiAffinity has been set that prevents multiple pods "
    "from being scheduled on the same node."
)


def register(all_checks: Checks) -> None:
    all_checks.register(
        TargetType.DEPLOYMENT,
        "Deployment has host PodAntiAffinity",
        _COMMENT,
        deployment_has_anti_affinity,
    )
    all_checks.register(
        TargetType.STATEFUL_SET,
        "StatefulSet has host PodAntiAffinity",
        _COMMENT,
        statefulset_has_anti_affinity,
    )


def _get(doc: Any, *path: str) -> Any:
    node = doc
    for part in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(part)
    return node


def _term_selects(term: Any, labels: Mapping[str, str]) -> bool:
    if not isinstance(term, Mapping) or term.get("topologyKey") != HOSTNAME_TOPOLOGY_KEY:
        return False
    try:
        return label_selector_matches(term.get("labelSelector"), labels)
    except SelectorError:
        return False


def has_pod_anti_affinity(
    self_labels: Optional[Mapping[str, str]], affinity: Optional[Mapping[str, Any]]
) -> bool:
    """Whether a host anti-affinity term selects the object's own pods."""
    labels = self_labels or {}
    anti = _get(affinity, "podAntiAffinity") or {}
    preferred = anti.get("preferredDuringSchedulingIgnoredDuringExecution") or []
    if any(_term_selects(_get(pref, "podAffinityTerm"), labels) for pref in preferred):
        return True
    required = anti.get("requiredDuringSchedulingIgnoredDuringExecution") or []
    return any(_term_selects(req, labels) for req in required)


def _anti_affinity_score(obj: Mapping[str, Any], title: str) -> TestScore:
    score = TestScore()
    word = title.lower()

    # With replicas unset an autoscaler may be in use, so the check still applies.
    replicas = _get(obj, "spec", "replicas")
    if replicas is not None and replicas < 2:
        score.skipped = True
        score.add_comment("", f"Skipped because the {word} has less than 2 replicas", "")
        return score

    affinity = _get(obj, "spec", "template", "spec", "affinity")
    labels = _get(obj, "spec", "template", "metadata", "labels") or {}
    if _get(affinity, "podAntiAffinity") is not None and has_pod_anti_affinity(
        labels, affinity
    ):
        score.grade = Grade.ALL_OK
        return score

    score.grade = Grade.WARNING
    score.add_comment(
        "",
        f"{title} does not have a host podAntiAffinity set",
        "It's recommended to set a podAntiAffinity that stops multiple pods from a "
        f"{word} from being scheduled on the same node. This increases availability "
        "in case the node becomes unavailable.",
    )
    return score


def deployment_has_anti_affinity(deployment: Mapping[str, Any]) -> TestScore:
    return _anti_affinity_score(deployment, "Deployment")


def statefulset_has_anti_affinity(statefulset: Mapping[str, Any]) -> TestScore:
    return _anti_affinity_score(statefulset, "StatefulSet")