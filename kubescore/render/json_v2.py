"""Structured JSON output, version 2."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from kubescore.domain import Check, ObjectMeta, TypeMeta
from kubescore.scorecard import Scorecard, TestScore, TestScoreComment

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _marshal(value: Any) -> str:
    text = json.dumps(value, indent=4, ensure_ascii=False)
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return text


def _plain(value: Any) -> Any:
    return getattr(value, "value", value)


def _type_meta(tm: TypeMeta) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    if tm.kind:
        data["kind"] = tm.kind
    if tm.api_version:
        data["apiVersion"] = tm.api_version
    return data


def _object_meta(om: ObjectMeta) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    if om.name:
        data["name"] = om.name
    if om.namespace:
        data["namespace"] = om.namespace
    data["creationTimestamp"] = None
    if om.labels:
        data["labels"] = dict(om.labels)
    if om.annotations:
        data["annotations"] = dict(om.annotations)
    return data


def _check(check: Check) -> Dict[str, Any]:
    return {
        "name": check.name,
        "id": check.id,
        "target_type": _plain(check.target_type),
        "comment": check.comment,
        "optional": check.optional,
    }


def _comments(comments: List[TestScoreComment]) -> Optional[List[Dict[str, str]]]:
    converted = [
        {"path": c.path, "summary": c.summary, "description": c.description}
        for c in comments
    ]
    return converted or None


def _scores(checks: List[TestScore]) -> Optional[List[Dict[str, Any]]]:
    converted = [
        {
            "check": _check(ts.check),
            "grade": int(ts.grade),
            "skipped": ts.skipped,
            "comments": _comments(ts.comments),
        }
        for ts in checks
    ]
    return converted or None


def output(scorecard: Scorecard) -> str:
    """Render the scorecard as an indented JSON list of scored objects."""
    objects = [
        {
            "object_name": key,
            "type_meta": _type_meta(obj.type_meta),
            "object_meta": _object_meta(obj.object_meta),
            "checks": _scores(obj.checks),
        }
        for key, obj in sorted(scorecard.items())
    ]
    return _marshal(objects or None)