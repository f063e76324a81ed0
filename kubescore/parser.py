"""Reading Kubernetes manifests into collections of objects grouped by kind."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import yaml

from kubescore.config import Configuration
from kubescore.domain import BothMeta, ObjectMeta, PodSpecer, TypeMeta

log = logging.getLogger(__name__)


class ParseError(Exception):
    """One or more manifests could not be parsed."""

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors = list(errors)
        super().__init__("\n".join(self.errors))


@dataclass
class ParsedObjects:
    """All objects found in the input, grouped by the way checks use them."""

    metas: List[BothMeta] = field(default_factory=list)
    pods: List[Dict[str, Any]] = field(default_factory=list)
    podspecers: List[PodSpecer] = field(default_factory=list)
    network_policies: List[Dict[str, Any]] = field(default_factory=list)
    services: List[Dict[str, Any]] = field(default_factory=list)
    pod_disruption_budgets: List[Dict[str, Any]] = field(default_factory=list)
    deployments: List[Dict[str, Any]] = field(default_factory=list)
    statefulsets: List[Dict[str, Any]] = field(default_factory=list)
    ingresses: List[Dict[str, Any]] = field(default_factory=list)
    cronjobs: List[Dict[str, Any]] = field(default_factory=list)
    horizontal_pod_autoscalers: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class _Kind:
    collection: Optional[str] = None
    template_path: Optional[Tuple[str, ...]] = None
    propagate_namespace: bool = True


_TEMPLATE = ("spec", "template")
_JOB_TEMPLATE = ("spec", "jobTemplate", "spec", "template")

_KINDS: Dict[Tuple[str, str], _Kind] = {
    ("v1", "Pod"): _Kind("pods"),
    ("batch/v1", "Job"): _Kind(template_path=_TEMPLATE),
    # The namespace lands on the job template, not on the pod template.
    ("batch/v1beta1", "CronJob"): _Kind("cronjobs", _JOB_TEMPLATE, propagate_namespace=False),
    ("apps/v1", "Deployment"): _Kind("deployments", _TEMPLATE),
    ("apps/v1beta1", "Deployment"): _Kind(template_path=_TEMPLATE),
    ("apps/v1beta2", "Deployment"): _Kind(template_path=_TEMPLATE),
    ("extensions/v1beta1", "Deployment"): _Kind(template_path=_TEMPLATE),
    ("apps/v1", "StatefulSet"): _Kind("statefulsets", _TEMPLATE),
    ("apps/v1beta1", "StatefulSet"): _Kind(template_path=_TEMPLATE),
    ("apps/v1beta2", "StatefulSet"): _Kind(template_path=_TEMPLATE),
    ("apps/v1", "DaemonSet"): _Kind(template_path=_TEMPLATE),
    ("apps/v1beta2", "DaemonSet"): _Kind(template_path=_TEMPLATE),
    ("extensions/v1beta1", "DaemonSet"): _Kind(template_path=_TEMPLATE),
    ("networking.k8s.io/v1", "NetworkPolicy"): _Kind("network_policies"),
    ("v1", "Service"): _Kind("services"),
    ("policy/v1beta1", "PodDisruptionBudget"): _Kind("pod_disruption_budgets"),
    ("extensions/v1beta1", "Ingress"): _Kind("ingresses"),
    ("autoscaling/v1", "HorizontalPodAutoscaler"): _Kind("horizontal_pod_autoscalers"),
}

_LIST = ("v1", "List")


class _Loader(yaml.SafeLoader):
    """Safe loader that keeps timestamps as plain strings."""


_Loader.yaml_implicit_resolvers = {
    first: [(tag, rx) for tag, rx in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class _FieldError(Exception):
    def __init__(self, path: str, expected: str, value: Any) -> None:
        super().__init__(f"{path}: expected {expected}, got {type(value).__name__} {value!r}")


def _expect_mapping(value: Any, path: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise _FieldError(path, "object", value)
    return value


def _expect_list(value: Any, path: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise _FieldError(path, "array", value)
    return value


def _expect_int(value: Any, path: str) -> None:
    if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
        raise _FieldError(path, "integer", value)


def _expect_string(value: Any, path: str) -> None:
    if value is not None and not isinstance(value, str):
        raise _FieldError(path, "string", value)


def _expect_int_or_string(value: Any, path: str) -> None:
    if value is None or isinstance(value, str):
        return
    _expect_int(value, path)


def _expect_string_map(value: Any, path: str) -> None:
    for key, item in _expect_mapping(value, path).items():
        _expect_string(item, f"{path}.{key}")


def _validate_metadata(value: Any, path: str) -> None:
    metadata = _expect_mapping(value, path)
    _expect_string(metadata.get("name"), f"{path}.name")
    _expect_string(metadata.get("namespace"), f"{path}.namespace")
    _expect_string_map(metadata.get("labels"), f"{path}.labels")
    _expect_string_map(metadata.get("annotations"), f"{path}.annotations")


def _validate_pod_spec(value: Any, path: str) -> None:
    spec = _expect_mapping(value, path)
    for section in ("initContainers", "containers"):
        for index, item in enumerate(_expect_list(spec.get(section), f"{path}.{section}")):
            container_path = f"{path}.{section}[{index}]"
            container = _expect_mapping(item, container_path)
            _expect_string(container.get("name"), f"{container_path}.name")
            _expect_string(container.get("image"), f"{container_path}.image")
            _expect_string(container.get("imagePullPolicy"), f"{container_path}.imagePullPolicy")
            _expect_mapping(container.get("resources"), f"{container_path}.resources")
            ports = _expect_list(container.get("ports"), f"{container_path}.ports")
            for port_index, port in enumerate(ports):
                port_path = f"{container_path}.ports[{port_index}]"
                _expect_int(_expect_mapping(port, port_path).get("containerPort"),
                            f"{port_path}.containerPort")


def _lookup(doc: Mapping[str, Any], path: Tuple[str, ...]) -> Any:
    node: Any = doc
    for part in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(part)
    return node


def _validate(doc: Mapping[str, Any], type_meta: TypeMeta, kind: _Kind) -> None:
    _validate_metadata(doc.get("metadata"), "metadata")
    spec = _expect_mapping(doc.get("spec"), "spec")
    _expect_int(spec.get("replicas"), "spec.replicas")

    if type_meta.kind == "Service":
        _expect_string_map(spec.get("selector"), "spec.selector")
        _expect_string(spec.get("type"), "spec.type")
        for index, item in enumerate(_expect_list(spec.get("ports"), "spec.ports")):
            port_path = f"spec.ports[{index}]"
            port = _expect_mapping(item, port_path)
            _expect_string(port.get("name"), f"{port_path}.name")
            _expect_int(port.get("port"), f"{port_path}.port")
            _expect_int(port.get("nodePort"), f"{port_path}.nodePort")
            _expect_int_or_string(port.get("targetPort"), f"{port_path}.targetPort")

    if type_meta.kind == "Pod":
        _validate_pod_spec(spec, "spec")
    elif kind.template_path is not None:
        template_path = ".".join(kind.template_path)
        current: Any = doc
        for depth, part in enumerate(kind.template_path):
            current = _expect_mapping(current, ".".join(kind.template_path[:depth]) or "$")
            current = current.get(part)
        template = _expect_mapping(current, template_path)
        _validate_metadata(template.get("metadata"), f"{template_path}.metadata")
        _validate_pod_spec(template.get("spec"), f"{template_path}.spec")


def _gvk(type_meta: TypeMeta) -> str:
    api_version = type_meta.api_version
    version = api_version.split("/", 1)[1] if "/" in api_version else api_version
    return f"{type_meta.group()}/{version}, Kind={type_meta.kind}"


def _pod_template(doc: Mapping[str, Any], kind: _Kind, object_meta: ObjectMeta) -> Dict[str, Any]:
    template = copy.deepcopy(_lookup(doc, kind.template_path) or {})
    if kind.propagate_namespace:
        metadata = dict(template.get("metadata") or {})
        metadata["namespace"] = object_meta.namespace
        template["metadata"] = metadata
    return template


def _add(objects: ParsedObjects, kind: _Kind, doc: Dict[str, Any], type_meta: TypeMeta) -> None:
    object_meta = ObjectMeta.from_dict(doc.get("metadata"))
    if kind.template_path is not None:
        objects.podspecers.append(
            PodSpecer(type_meta, object_meta, _pod_template(doc, kind, object_meta))
        )
    objects.metas.append(BothMeta(type_meta, object_meta))
    if kind.collection is not None:
        getattr(objects, kind.collection).append(doc)


def _detect_and_decode(config: Configuration, objects: ParsedObjects, doc: Any) -> None:
    if doc is not None and not isinstance(doc, Mapping):
        raise ParseError([f"cannot detect the kind of a {type(doc).__name__} document"])
    doc = doc or {}
    type_meta = TypeMeta.from_dict(doc)
    key = (type_meta.api_version, type_meta.kind)

    if key == _LIST:
        try:
            items = _expect_list(doc.get("items"), "items")
        except _FieldError as exc:
            raise ParseError([f"Failed to parse {_gvk(type_meta)}: err={exc}"]) from exc
        for item in items:
            _detect_and_decode(config, objects, item)
        return

    kind = _KINDS.get(key)
    if kind is None:
        if config.verbose_output > 1:
            log.info("Unknown datatype: %s", _gvk(type_meta))
        return

    try:
        _validate(doc, type_meta, kind)
    except _FieldError as exc:
        raise ParseError([f"Failed to parse {_gvk(type_meta)}: err={exc}"]) from exc
    _add(objects, kind, dict(doc), type_meta)


def _load_first_document(raw: str) -> Any:
    try:
        return next(iter(yaml.load_all(raw, Loader=_Loader)), None)
    except yaml.YAMLError as exc:
        raise ParseError([str(exc)]) from exc


def empty() -> ParsedObjects:
    """A collection with no objects."""
    return ParsedObjects()


def parse_files(config: Configuration) -> ParsedObjects:
    """Read every file of the configuration; raises ParseError on bad input."""
    objects = ParsedObjects()
    for stream in config.all_files:
        content = stream.read()
        if isinstance(content, bytes):
            try:
                content = content.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ParseError([str(exc)]) from exc
        content = content.replace("\r\n", "\n")
        for chunk in content.split("\n---\n"):
            _detect_and_decode(config, objects, _load_first_document(chunk))
    return objects