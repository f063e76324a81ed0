"""Checks that Ingresses point at existing Services."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional

from kubescore.parser import ParsedObjects
from kubescore.registry import Checks, TargetType
from kubescore.scorecard import Grade, TestScore


def register(all_checks: Checks, all_objects: ParsedObjects) -> None:
    all_checks.register(
        TargetType.INGRESS,
        "Ingress targets Service",
        "Makes sure that the Ingress targets a Service",
        ingress_targets_service(all_objects.services),
    )


def _meta(obj: Mapping[str, Any], key: str) -> str:
    return ((obj or {}).get("metadata") or {}).get(key) or ""


def _split_port(value: Any) -> tuple:
    """Split an IntOrString port into its integer and string parts."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value, ""
    if isinstance(value, str):
        return 0, value
    return 0, ""


def ingress_targets_service(
    all_services: Optional[Iterable[Mapping[str, Any]]],
) -> Callable[[Mapping[str, Any]], TestScore]:
    """Build a check that every ingress path has a matching service and port."""
    services = list(all_services or [])

    def check(ingress: Mapping[str, Any]) -> TestScore:
        ingress = ingress or {}
        namespace = _meta(ingress, "namespace")
        score = TestScore()
        all_match = True

        for rule in (ingress.get("spec") or {}).get("rules") or []:
            paths = ((rule or {}).get("http") or {}).get("paths") or []
            for path in paths:
                backend = (path or {}).get("backend") or {}
                service_name = backend.get("serviceName") or ""
                int_val, str_val = _split_port(backend.get("servicePort"))

                has_match = False
                for service in services:
                    if _meta(service, "namespace") != namespace:
                        continue
                    if _meta(service, "name") != service_name:
                        continue
                    for port in (service.get("spec") or {}).get("ports") or []:
                        if int_val > 0 and port.get("port") == int_val:
                            has_match = True
                        elif (port.get("name") or "") == str_val:
                            has_match = True

                if not has_match:
                    all_match = False
                    score.add_comment(
                        (path or {}).get("path") or "",
                        "No service match was found",
                        f"No service with name {service_name} and port {int_val} was found",
                    )

        score.grade = Grade.ALL_OK if all_match else Grade.CRITICAL
        return score

    return check