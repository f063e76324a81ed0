"""Checks on the containers of a pod: resources, image tags and pull policy."""

from __future__ import annotations

from typing import Any, Callable, List, Mapping

from kubescore.config import Configuration
from kubescore.domain import TypeMeta
from kubescore.k8s import quantity_of
from kubescore.registry import Checks, TargetType
from kubescore.scorecard import Grade, TestScore

PodCheck = Callable[[Mapping[str, Any], TypeMeta], TestScore]


def register(all_checks: Checks, config: Configuration) -> None:
    all_checks.register(
        TargetType.POD,
        "Container Resources",
        "Makes sure that all pods have resource limits and requests set. "
        "The --ignore-container-cpu-limit flag can be used to disable the "
        "requirement of having a CPU limit",
        container_resources(
            not config.ignore_container_cpu_limit_requirement,
            not config.ignore_container_memory_limit_requirement,
        ),
    )
    all_checks.register(
        TargetType.POD,
        "Container Resource Requests Equal Limits",
        "Makes sure that all pods have the same requests as limits on resources set.",
        container_resource_requests_equal_limits,
        optional=True,
    )
    all_checks.register(
        TargetType.POD,
        "Container CPU Requests Equal Limits",
        "Makes sure that all pods have the same CPU requests as limits set.",
        container_cpu_requests_equal_limits,
        optional=True,
    )
    all_checks.register(
        TargetType.POD,
        "Container Memory Requests Equal Limits",
        "Makes sure that all pods have the same memory requests as limits set.",
        container_memory_requests_equal_limits,
        optional=True,
    )
    all_checks.register(
        TargetType.POD,
        "Container Image Tag",
        "Makes sure that a explicit non-latest tag is used",
        container_image_tag,
    )
    all_checks.register(
        TargetType.POD,
        "Container Image Pull Policy",
        "Makes sure that the pullPolicy is set to Always. This makes sure that "
        "imagePullSecrets are always validated.",
        container_image_pull_policy,
    )


def _all_containers(pod_template: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    spec = (pod_template or {}).get("spec") or {}
    return list(spec.get("initContainers") or []) + list(spec.get("containers") or [])


def _name(container: Mapping[str, Any]) -> str:
    return container.get("name") or ""


def container_resources(require_cpu_limit: bool, require_memory_limit: bool) -> PodCheck:
    """Build a check that all containers have resource requests and limits."""

    def check(pod_template: Mapping[str, Any], type_meta: TypeMeta) -> TestScore:
        score = TestScore()
        containers = _all_containers(pod_template)
        missing_limit = False
        missing_request = False

        for container in containers:
            name = _name(container)
            resources = container.get("resources")
            if require_cpu_limit and quantity_of(resources, "limits", "cpu") == 0:
                score.add_comment(
                    name,
                    "CPU limit is not set",
                    "Resource limits are recommended to avoid resource DDOS. "
                    "Set resources.limits.cpu",
                )
                missing_limit = True
            if require_memory_limit and quantity_of(resources, "limits", "memory") == 0:
                score.add_comment(
                    name,
                    "Memory limit is not set",
                    "Resource limits are recommended to avoid resource DDOS. "
                    "Set resources.limits.memory",
                )
                missing_limit = True
            if quantity_of(resources, "requests", "cpu") == 0:
                score.add_comment(
                    name,
                    "CPU request is not set",
                    "Resource requests are recommended to make sure that the application "
                    "can start and run without crashing. Set resources.requests.cpu",
                )
                missing_request = True
            if quantity_of(resources, "requests", "memory") == 0:
                score.add_comment(
                    name,
                    "Memory request is not set",
                    "Resource requests are recommended to make sure that the application "
                    "can start and run without crashing. Set resources.requests.memory",
                )
                missing_request = True

        if not containers:
            score.grade = Grade.CRITICAL
            score.add_comment("", "No containers defined", "")
        elif missing_limit:
            score.grade = Grade.CRITICAL
        elif missing_request:
            score.grade = Grade.WARNING
        else:
            score.grade = Grade.ALL_OK
        return score

    return check


def container_resource_requests_equal_limits(
    pod_template: Mapping[str, Any], type_meta: TypeMeta
) -> TestScore:
    cpu = container_cpu_requests_equal_limits(pod_template, type_meta)
    memory = container_memory_requests_equal_limits(pod_template, type_meta)
    score = TestScore(grade=Grade.ALL_OK)
    for partial in (cpu, memory):
        if partial.grade == Grade.CRITICAL:
            score.grade = Grade.CRITICAL
            score.comments.extend(partial.comments)
    return score


def _requests_equal_limits(
    pod_template: Mapping[str, Any], resource: str, label: str
) -> TestScore:
    score = TestScore()
    mismatch = False
    for container in _all_containers(pod_template):
        resources = container.get("resources")
        if quantity_of(resources, "requests", resource) != quantity_of(
            resources, "limits", resource
        ):
            score.add_comment(
                _name(container),
                f"{label} requests does not match limits",
                "Having equal requests and limits is recommended to avoid resource DDOS "
                "of the node during spikes. Set resources.requests."
                f"{resource} == resources.limits.{resource}",
            )
            mismatch = True
    score.grade = Grade.CRITICAL if mismatch else Grade.ALL_OK
    return score


def container_cpu_requests_equal_limits(
    pod_template: Mapping[str, Any], type_meta: TypeMeta
) -> TestScore:
    return _requests_equal_limits(pod_template, "cpu", "CPU")


def container_memory_requests_equal_limits(
    pod_template: Mapping[str, Any], type_meta: TypeMeta
) -> TestScore:
    return _requests_equal_limits(pod_template, "memory", "Memory")


def container_image_tag(pod_template: Mapping[str, Any], type_meta: TypeMeta) -> TestScore:
    """Critical if any container uses an untagged or ":latest" image."""
    score = TestScore()
    has_latest = False
    for container in _all_containers(pod_template):
        if container_tag(container.get("image") or "") in ("", "latest"):
            score.add_comment(
                _name(container),
                "Image with latest tag",
                "Using a fixed tag is recommended to avoid accidental upgrades",
            )
            has_latest = True
    score.grade = Grade.CRITICAL if has_latest else Grade.ALL_OK
    return score


def container_image_pull_policy(
    pod_template: Mapping[str, Any], type_meta: TypeMeta
) -> TestScore:
    """Critical if any container's imagePullPolicy is not Always."""
    score = TestScore(grade=Grade.ALL_OK)
    for container in _all_containers(pod_template):
        policy = container.get("imagePullPolicy") or ""
        tag = container_tag(container.get("image") or "")
        # Unset policy with no tag or "latest" defaults to Always.
        if policy == "" and tag in ("", "latest"):
            continue
        if policy != "Always":
            score.add_comment(
                _name(container),
                "ImagePullPolicy is not set to Always",
                "It's recommended to always set the ImagePullPolicy to Always, to make "
                "sure that the imagePullSecrets are always correct, and to always get "
                "the image you want.",
            )
            score.grade = Grade.CRITICAL
    return score


def container_tag(image: str) -> str:
    """The image tag: the text after the last colon, or "" if there is none."""
    parts = image.split(":")
    return parts[-1] if len(parts) > 1 else ""