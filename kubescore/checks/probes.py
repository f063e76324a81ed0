"""Checks that pods have readiness and liveness probes."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional

from kubescore.domain import TypeMeta
from kubescore.k8s import int_or_string_value
from kubescore.parser import ParsedObjects
from kubescore.registry import Checks, TargetType
from kubescore.scorecard import Grade, TestScore

_MISSING_READINESS = (
    "Container is missing a readinessProbe",
    "Without a readinessProbe Services will start sending traffic to this pod before it's ready",
)


def register(all_checks: Checks, all_objects: ParsedObjects) -> None:
    all_checks.register(
        TargetType.POD,
        "Pod Probes",
        "Makes sure that all Pods have bot a readinessProbe and a libenessProbe configured",
        container_probes(all_objects.services),
    )


def _identical(readiness: Mapping[str, Any], liveness: Mapping[str, Any]) -> bool:
    identical = False
    r_http, l_http = readiness.get("httpGet"), liveness.get("httpGet")
    if r_http is not None and l_http is not None:
        if (r_http.get("path") or "") == (l_http.get("path") or "") and int_or_string_value(
            r_http.get("port")
        ) == int_or_string_value(l_http.get("port")):
            identical = True

    r_tcp, l_tcp = readiness.get("tcpSocket"), liveness.get("tcpSocket")
    if r_tcp is not None and l_tcp is not None:
        if r_tcp.get("port") == l_tcp.get("port"):
            identical = True

    r_exec, l_exec = readiness.get("exec"), liveness.get("exec")
    if r_exec is not None and l_exec is not None:
        if list(r_exec.get("command") or []) == list(l_exec.get("command") or []):
            identical = True
    return identical


def container_probes(
    all_services: Optional[Iterable[Mapping[str, Any]]],
) -> Callable[[Mapping[str, Any], TypeMeta], TestScore]:
    """Build the probe check.

    One probe of each kind anywhere in the pod is enough, and a readinessProbe
    is only required when a Service targets the pod.
    """
    services = list(all_services or [])

    def check(pod_template: Mapping[str, Any], type_meta: TypeMeta) -> TestScore:
        score = TestScore()
        if type_meta.kind in ("CronJob", "Job") and type_meta.group() == "batch":
            score.grade = Grade.ALL_OK
            return score

        pod_template = pod_template or {}
        meta = pod_template.get("metadata") or {}
        namespace = meta.get("namespace") or ""
        labels = meta.get("labels") or {}
        spec = pod_template.get("spec") or {}
        containers = list(spec.get("initContainers") or []) + list(spec.get("containers") or [])

        targeted = any(
            ((service.get("metadata") or {}).get("namespace") or "") == namespace
            and any(
                key in labels and labels[key] == value
                for key, value in ((service.get("spec") or {}).get("selector") or {}).items()
            )
            for service in services
        )

        has_readiness = False
        has_liveness = False
        identical = False
        for container in containers:
            readiness = container.get("readinessProbe")
            liveness = container.get("livenessProbe")
            has_readiness = has_readiness or readiness is not None
            has_liveness = has_liveness or liveness is not None
            if readiness is not None and liveness is not None:
                identical = identical or _identical(readiness, liveness)

        if has_liveness and (has_readiness or not targeted):
            if not identical:
                score.grade = Grade.ALL_OK
            else:
                score.grade = Grade.ALMOST_OK
                score.add_comment(
                    "",
                    "Pod has the same readiness and liveness probe",
                    "It's recommended to have different probes for the two different purposes.",
                )
        elif not has_readiness and not has_liveness:
            score.grade = Grade.CRITICAL
            score.add_comment("", *_MISSING_READINESS)
            score.add_comment(
                "",
                "Container is missing a livenessProbe",
                "Without a livenessProbe kubelet can not restart the Pod if it has crashed",
            )
        elif targeted and not has_readiness:
            score.grade = Grade.CRITICAL
            score.add_comment("", *_MISSING_READINESS)
        elif not has_liveness:
            score.grade = Grade.WARNING
            score.add_comment(
                "",
                "Pod is missing a livenessProbe",
                "Without a livenessProbe kubelet can not restart the Pod if it has crashed",
            )
        return score

    return check