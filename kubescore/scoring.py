"""Running every registered check against every parsed object."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from kubescore.checks import (
    apps,
    container,
    cronjob,
    disruptionbudget,
    hpa,
    ingress,
    meta,
    networkpolicy,
    probes,
    security,
    service,
    stable,
)
from kubescore.config import Configuration
from kubescore.domain import ObjectMeta, TypeMeta
from kubescore.parser import ParsedObjects
from kubescore.registry import Checks, TargetType
from kubescore.scorecard import Scorecard, ScoredObject


def register_all_checks(all_objects: ParsedObjects, config: Configuration) -> Checks:
    """Register every known check for the given objects and configuration."""
    all_checks = Checks(config)
    ingress.register(all_checks, all_objects)
    cronjob.register(all_checks)
    container.register(all_checks, config)
    disruptionbudget.register(all_checks, all_objects)
    networkpolicy.register(all_checks, all_objects)
    probes.register(all_checks, all_objects)
    security.register(all_checks)
    service.register(all_checks, all_objects)
    stable.register(all_checks)
    apps.register(all_checks)
    meta.register(all_checks)
    hpa.register(all_checks, all_objects.metas)
    return all_checks


def _metas(doc: Mapping[str, Any]) -> tuple:
    return TypeMeta.from_dict(doc), ObjectMeta.from_dict(doc.get("metadata"))


def score(all_objects: ParsedObjects, config: Configuration) -> Scorecard:
    """Run all enabled checks and return the scorecard.

    Errors raised by a check (such as a malformed selector) propagate.
    """
    all_checks = register_all_checks(all_objects, config)
    card = Scorecard()

    def new_object(type_meta: TypeMeta, object_meta: ObjectMeta) -> ScoredObject:
        return card.new_object(type_meta, object_meta, config.use_ignore_checks_annotation)

    def score_docs(docs, target: TargetType) -> None:
        for doc in docs:
            obj = new_object(*_metas(doc))
            for registered in all_checks.for_target(target):
                obj.add(registered.fn(doc), registered.check)

    score_docs(all_objects.ingresses, TargetType.INGRESS)

    for both in all_objects.metas:
        obj = new_object(both.type_meta, both.object_meta)
        for registered in all_checks.for_target(TargetType.ALL):
            obj.add(registered.fn(both), registered.check)

    for pod in all_objects.pods:
        type_meta, object_meta = _metas(pod)
        obj = new_object(type_meta, object_meta)
        template: Dict[str, Any] = {
            "metadata": dict(pod.get("metadata") or {}),
            "spec": pod.get("spec") or {},
        }
        for registered in all_checks.for_target(TargetType.POD):
            obj.add(registered.fn(template, type_meta), registered.check)

    for podspecer in all_objects.podspecers:
        obj = new_object(podspecer.type_meta, podspecer.object_meta)
        for registered in all_checks.for_target(TargetType.POD):
            obj.add(
                registered.fn(podspecer.pod_template, podspecer.type_meta), registered.check
            )

    score_docs(all_objects.services, TargetType.SERVICE)
    score_docs(all_objects.statefulsets, TargetType.STATEFUL_SET)
    score_docs(all_objects.deployments, TargetType.DEPLOYMENT)
    score_docs(all_objects.network_policies, TargetType.NETWORK_POLICY)
    score_docs(all_objects.cronjobs, TargetType.CRON_JOB)
    score_docs(all_objects.horizontal_pod_autoscalers, TargetType.HORIZONTAL_POD_AUTOSCALER)

    return card