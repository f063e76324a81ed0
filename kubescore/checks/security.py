"""Checks on the security settings of the containers in a pod."""

from __future__ import annotations

from typing import Any, List, Mapping

from kubescore.domain import TypeMeta
from kubescore.registry import Checks, TargetType
from kubescore.scorecard import Grade, TestScore

SECCOMP_ANNOTATION = "seccomp.security.alpha.kubernetes.io/defaultProfileName"
MIN_ID = 10000


def register(all_checks: Checks) -> None:
    all_checks.register(
        TargetType.POD,
        "Container Security Context",
        "Makes sure that all pods have good securityContexts configured",
        container_security_context,
    )
    all_checks.register(
        TargetType.POD,
        "Container Seccomp Profile",
        "Makes sure that all pods have at a seccomp policy configured.",
        pod_seccomp_profile,
        optional=True,
    )


def _all_containers(pod_template: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    spec = (pod_template or {}).get("spec") or {}
    return list(spec.get("initContainers") or []) + list(spec.get("containers") or [])


def container_security_context(
    pod_template: Mapping[str, Any], type_meta: TypeMeta
) -> TestScore:
    """Critical unless every container runs unprivileged, read-only and with high ids."""
    score = TestScore()
    spec = (pod_template or {}).get("spec") or {}
    pod_context = spec.get("securityContext")
    failed = False

    for container in _all_containers(pod_template):
        name = container.get("name") or ""
        container_context = container.get("securityContext")

        if container_context is None and pod_context is None:
            failed = True
            score.add_comment(
                name,
                "Container has no configured security context",
                "Set securityContext to run the container in a more secure context.",
            )
            continue

        sec = dict(container_context or {})

        # Values from the pod level apply where the container does not set them.
        if pod_context is not None:
            for key in ("runAsGroup", "runAsUser"):
                if sec.get(key) is None:
                    sec[key] = pod_context.get(key)

        privileged = sec.get("privileged")
        if privileged is None or privileged:
            failed = True
            score.add_comment(
                name,
                "The container is privileged",
                "Set securityContext.privileged to false",
            )

        if not sec.get("readOnlyRootFilesystem"):
            failed = True
            score.add_comment(
                name,
                "The pod has a container with a writable root filesystem",
                "Set securityContext.readOnlyRootFilesystem to true",
            )

        user = sec.get("runAsUser")
        if user is None or user < MIN_ID:
            failed = True
            score.add_comment(
                name,
                "The container is running with a low user ID",
                "A userid above 10 000 is recommended to avoid conflicts with the host. "
                "Set securityContext.runAsUser to a value > 10000",
            )

        group = sec.get("runAsGroup")
        if group is None or group < MIN_ID:
            failed = True
            score.add_comment(
                name,
                "The container running with a low group ID",
                "A groupid above 10 000 is recommended to avoid conflicts with the host. "
                "Set securityContext.runAsGroup to a value > 10000",
            )

    score.grade = Grade.CRITICAL if failed else Grade.ALL_OK
    return score


def pod_seccomp_profile(pod_template: Mapping[str, Any], type_meta: TypeMeta) -> TestScore:
    """Warning unless the pod is annotated with a default seccomp profile."""
    metadata = (pod_template or {}).get("metadata") or {}
    annotations = metadata.get("annotations") or {}
    score = TestScore()
    if SECCOMP_ANNOTATION in annotations:
        score.grade = Grade.ALL_OK
    else:
        score.grade = Grade.WARNING
        score.add_comment(
            metadata.get("name") or "",
            "The pod has not configured Seccomp for its containers",
            "Running containers with Seccomp is reccomended to reduce the kernel attack surface",
        )
    return score