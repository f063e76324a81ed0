"""Core domain types: checks and the metadata every object carries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class Check:
    """Description of a single check."""

    name: str = ""
    id: str = ""
    target_type: str = ""
    comment: str = ""
    optional: bool = False


@dataclass
class TypeMeta:
    """The apiVersion and kind of an object."""

    api_version: str = ""
    kind: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "TypeMeta":
        """Build from a whole object document (reads apiVersion and kind)."""
        data = data or {}
        return cls(
            api_version=str(data.get("apiVersion") or ""),
            kind=str(data.get("kind") or ""),
        )

    def group(self) -> str:
        """The API group, empty for the core group."""
        if "/" in self.api_version:
            return self.api_version.split("/", 1)[0]
        return ""


def _string_map(value: Any) -> Dict[str, str]:
    if not value:
        return {}
    return dict(value)


@dataclass
class ObjectMeta:
    """Name, namespace, labels and annotations of an object."""

    name: str = ""
    namespace: str = ""
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ObjectMeta":
        """Build from a metadata mapping."""
        data = data or {}
        return cls(
            name=str(data.get("name") or ""),
            namespace=str(data.get("namespace") or ""),
            labels=_string_map(data.get("labels")),
            annotations=_string_map(data.get("annotations")),
        )


@dataclass
class BothMeta:
    """Type and object metadata of one object."""

    type_meta: TypeMeta = field(default_factory=TypeMeta)
    object_meta: ObjectMeta = field(default_factory=ObjectMeta)


@dataclass
class PodSpecer:
    """An object that carries a pod template (Deployment, Job, DaemonSet, ...)."""

    type_meta: TypeMeta = field(default_factory=TypeMeta)
    object_meta: ObjectMeta = field(default_factory=ObjectMeta)
    pod_template: Dict[str, Any] = field(default_factory=dict)