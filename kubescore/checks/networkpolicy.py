"""Checks that pods and NetworkPolicies cover each other."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional

from kubescore.domain import PodSpecer, TypeMeta
from kubescore.k8s import SelectorError, label_selector_matches
from kubescore.parser import ParsedObjects
from kubescore.registry import Checks, TargetType
from kubescore.scorecard import Grade, TestScore


def register(all_checks: Checks, all_objects: ParsedObjects) -> None:
    all_checks.register(
        TargetType.POD,
        "Pod NetworkPolicy",
        "Makes sure that all Pods are targeted by a NetworkPolicy",
        pod_has_network_policy(all_objects.network_policies),
    )
    all_checks.register(
        TargetType.NETWORK_POLICY,
        "NetworkPolicy targets Pod",
        "Makes sure that all NetworkPolicies targets at least one Pod",
        network_policy_targets_pod(all_objects.pods, all_objects.podspecers),
    )


def _metadata(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    return (obj or {}).get("metadata") or {}


def pod_has_network_policy(
    all_netpols: Optional[Iterable[Mapping[str, Any]]],
) -> Callable[[Mapping[str, Any], TypeMeta], TestScore]:
    """Build a check that a pod has matching ingress and egress policies."""
    netpols = list(all_netpols or [])

    def check(pod_template: Mapping[str, Any], type_meta: TypeMeta) -> TestScore:
        meta = _metadata(pod_template)
        namespace = meta.get("namespace") or ""
        labels = meta.get("labels") or {}
        has_egress = False
        has_ingress = False

        for netpol in netpols:
            if _metadata(netpol).get("namespace", "") or "" != namespace:
                if (_metadata(netpol).get("namespace") or "") != namespace:
                    continue
            spec = netpol.get("spec") or {}
            match_labels = (spec.get("podSelector") or {}).get("matchLabels") or {}

            for key, value in match_labels.items():
                if key not in labels or labels[key] != value:
                    continue
                # Without policyTypes every policy affects ingress, and egress
                # only when it has egress rules.
                policy_types = spec.get("policyTypes") or []
                if not policy_types:
                    has_ingress = True
                    if spec.get("egress"):
                        has_egress = True
                else:
                    if "Ingress" in policy_types:
                        has_ingress = True
                    if "Egress" in policy_types:
                        has_egress = True

        score = TestScore()
        if has_egress and has_ingress:
            score.grade = Grade.ALL_OK
        elif has_egress:
            score.grade = Grade.WARNING
            score.add_comment(
                "",
                "The pod does not have a matching ingress network policy",
                "Add a egress policy to the pods NetworkPolicy",
            )
        elif has_ingress:
            score.grade = Grade.WARNING
            score.add_comment(
                "",
                "The pod does not have a matching egress network policy",
                "Add a ingress policy to the pods NetworkPolicy",
            )
        else:
            score.grade = Grade.CRITICAL
            score.add_comment(
                "",
                "The pod does not have a matching network policy",
                "Create a NetworkPolicy that targets this pod",
            )
        return score

    return check


def _selects(selector: Mapping[str, Any], labels: Mapping[str, str]) -> bool:
    try:
        return label_selector_matches(selector, labels)
    except SelectorError:
        return False


def network_policy_targets_pod(
    pods: Optional[Iterable[Mapping[str, Any]]],
    podspecers: Optional[Iterable[PodSpecer]],
) -> Callable[[Mapping[str, Any]], TestScore]:
    """Build a check that a NetworkPolicy selects at least one pod."""
    all_pods = list(pods or [])
    all_podspecers = list(podspecers or [])

    def check(netpol: Mapping[str, Any]) -> TestScore:
        namespace = _metadata(netpol).get("namespace") or ""
        selector = ((netpol or {}).get("spec") or {}).get("podSelector") or {}

        has_match = any(
            (_metadata(pod).get("namespace") or "") == namespace
            and _selects(selector, _metadata(pod).get("labels") or {})
            for pod in all_pods
        ) or any(
            ps.object_meta.namespace == namespace
            and _selects(selector, _metadata(ps.pod_template).get("labels") or {})
            for ps in all_podspecers
        )

        score = TestScore()
        if has_match:
            score.grade = Grade.ALL_OK
        else:
            score.grade = Grade.CRITICAL
            score.add_comment("", "The NetworkPolicys selector doesn't match any pods", "")
        return score

    return check