"""Registry of all checks, grouped by the kind of object they target."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from kubescore.config import Configuration
from kubescore.domain import Check


class TargetType(str, Enum):
    """Kinds of objects a check can target."""

    ALL = "all"
    POD = "Pod"
    SERVICE = "Service"
    STATEFUL_SET = "StatefulSet"
    DEPLOYMENT = "Deployment"
    NETWORK_POLICY = "NetworkPolicy"
    INGRESS = "Ingress"
    CRON_JOB = "CronJob"
    HORIZONTAL_POD_AUTOSCALER = "HorizontalPodAutoscaler"


@dataclass(frozen=True)
class RegisteredCheck:
    """A check and the function that evaluates it."""

    check: Check
    fn: Callable[..., Any]


def machine_friendly_name(name: str) -> str:
    """Lower-case the name and replace spaces with dashes."""
    return name.lower().replace(" ", "-")


def new_check(
    name: str, target_type: Union[TargetType, str], comment: str, optional: bool
) -> Check:
    target = target_type.value if isinstance(target_type, TargetType) else target_type
    return Check(
        name=name,
        id=machine_friendly_name(name),
        target_type=target,
        comment=comment,
        optional=optional,
    )


class Checks:
    """All registered checks, honouring ignored and optional tests."""

    def __init__(self, config: Optional[Configuration] = None) -> None:
        self._config = config if config is not None else Configuration()
        self._all: List[Check] = []
        self._by_target: Dict[TargetType, Dict[str, RegisteredCheck]] = {
            target: {} for target in TargetType
        }

    def _is_enabled(self, check: Check) -> bool:
        if check.id in self._config.ignored_tests:
            return False
        if not check.optional:
            return True
        return check.id in self._config.enabled_optional_tests

    def register(
        self,
        target_type: TargetType,
        name: str,
        comment: str,
        fn: Callable[..., Any],
        optional: bool = False,
    ) -> None:
        """Register a check; it only runs if enabled by the configuration."""
        target_type = TargetType(target_type)
        check = new_check(name, target_type, comment, optional)
        self._all.append(check)
        if self._is_enabled(check):
            self._by_target[target_type][check.id] = RegisteredCheck(check, fn)

    def for_target(self, target_type: TargetType) -> List[RegisteredCheck]:
        """Enabled checks for one target type, in registration order."""
        return list(self._by_target[TargetType(target_type)].values())

    def all(self) -> List[Check]:
        """Every registered check, enabled or not."""
        return list(self._all)