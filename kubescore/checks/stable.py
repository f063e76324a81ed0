"""Checks for deprecated apiVersions that have a stable replacement."""

from __future__ import annotations

from kubescore.domain import BothMeta
from kubescore.registry import Checks, TargetType
from kubescore.scorecard import Grade, TestScore

_STABLE_APPS_VERSION = "apps/v1"

# Kinds served by an old apiVersion that apps/v1 now covers.
_SUPERSEDED_KINDS: dict[str, frozenset[str]] = {
    "extensions/v1beta1": frozenset({"Deployment", "DaemonSet"}),
    "apps/v1beta1": frozenset({"Deployment", "StatefulSet"}),
    "apps/v1beta2": frozenset({"Deployment", "StatefulSet", "DaemonSet"}),
}


def _stable_replacement(api_version: str, kind: str) -> str | None:
    if kind in _SUPERSEDED_KINDS.get(api_version, frozenset()):
        return _STABLE_APPS_VERSION
    return None


def register(all_checks: Checks) -> None:
    all_checks.register(
        TargetType.ALL,
        "Stable version",
        "Checks if the object is using a deprecated apiVersion",
        meta_stable_available,
    )


def meta_stable_available(meta: BothMeta) -> TestScore:
    """Warning if the apiVersion and kind have a more stable replacement."""
    api_version = meta.type_meta.api_version
    kind = meta.type_meta.kind
    replacement = _stable_replacement(api_version, kind)

    score = TestScore()
    if replacement is None:
        score.grade = Grade.ALL_OK
    else:
        score.grade = Grade.WARNING
        score.add_comment(
            "",
            f"The apiVersion and kind {api_version}/{kind} is deprecated",
            f"It's recommended to use {replacement} instead",
        )
    return score