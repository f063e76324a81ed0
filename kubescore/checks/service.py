"""Checks on Services."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from kubescore.domain import PodSpecer
from kubescore.parser import ParsedObjects
from kubescore.registry import Checks, TargetType
from kubescore.scorecard import Grade, TestScore


def register(all_checks: Checks, all_objects: ParsedObjects) -> None:
    all_checks.register(
        TargetType.SERVICE,
        "Service Targets Pod",
        "Makes sure that all Services targets a Pod",
        service_targets_pod(all_objects.pods, all_objects.podspecers),
    )
    all_checks.register(
        TargetType.SERVICE,
        "Service Type",
        "Makes sure that the Service type is not NodePort",
        service_type,
    )


def _metadata(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    return (obj or {}).get("metadata") or {}


def service_targets_pod(
    pods: Optional[Iterable[Mapping[str, Any]]],
    podspecers: Optional[Iterable[PodSpecer]],
) -> Callable[[Mapping[str, Any]], TestScore]:
    """Build a check that a Service's selector matches a pod in its namespace."""
    labels_by_namespace: Dict[str, List[Mapping[str, str]]] = defaultdict(list)
    for pod in pods or []:
        meta = _metadata(pod)
        labels_by_namespace[meta.get("namespace") or ""].append(meta.get("labels") or {})
    for podspecer in podspecers or []:
        labels = _metadata(podspecer.pod_template).get("labels") or {}
        labels_by_namespace[podspecer.object_meta.namespace].append(labels)

    def check(service: Mapping[str, Any]) -> TestScore:
        spec = (service or {}).get("spec") or {}
        score = TestScore()

        # ExternalName services have no selector.
        if spec.get("type") == "ExternalName":
            score.grade = Grade.ALL_OK
            return score

        selector = spec.get("selector") or {}
        namespace = _metadata(service).get("namespace") or ""
        has_match = any(
            all(key in labels and labels[key] == value for key, value in selector.items())
            for labels in labels_by_namespace.get(namespace, [])
        )

        if has_match:
            score.grade = Grade.ALL_OK
        else:
            score.grade = Grade.CRITICAL
            score.add_comment("", "The services selector does not match any pods", "")
        return score

    return check


def service_type(service: Mapping[str, Any]) -> TestScore:
    """Warning for NodePort services."""
    spec = (service or {}).get("spec") or {}
    score = TestScore()
    if spec.get("type") == "NodePort":
        score.grade = Grade.WARNING
        score.add_comment(
            "",
            "The service is of type NodePort",
            "NodePort services should be avoided as they are insecure, and can not be "
            "used together with NetworkPolicies. LoadBalancers or use of an Ingress is "
            "recommended over NodePorts.",
        )
        return score
    score.grade = Grade.ALL_OK
    return score