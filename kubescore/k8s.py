"""Kubernetes object semantics: label selectors, resource quantities and ports."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Any, FrozenSet, List, Mapping, Optional, Tuple


class SelectorError(ValueError):
    """Raised when a label selector cannot be interpreted."""


_NAME_RE = re.compile(r"^[A-Za-z0-9]([-A-Za-z0-9_.]*[A-Za-z0-9])?$")
_DNS_SUBDOMAIN_RE = re.compile(
    r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$"
)

_OPERATORS_WITH_VALUES = {"In", "NotIn"}
_OPERATORS_WITHOUT_VALUES = {"Exists", "DoesNotExist"}

_Requirement = Tuple[str, str, FrozenSet[str]]


def _validate_key(key: Any) -> str:
    if not isinstance(key, str):
        raise SelectorError(f"invalid label key {key!r}")
    prefix, sep, name = key.rpartition("/")
    if sep and (not prefix or len(prefix) > 253 or not _DNS_SUBDOMAIN_RE.match(prefix)):
        raise SelectorError(f"invalid label key {key!r}: bad prefix")
    if not name or len(name) > 63 or not _NAME_RE.match(name):
        raise SelectorError(f"invalid label key {key!r}")
    return key


def _validate_value(value: Any) -> str:
    if not isinstance(value, str) or len(value) > 63 or (value and not _NAME_RE.match(value)):
        raise SelectorError(f"invalid label value {value!r}")
    return value


def _requirement(key: Any, operator: Any, values: Any) -> _Requirement:
    _validate_key(key)
    if values is None:
        values = []
    if not isinstance(values, (list, tuple)):
        raise SelectorError(f"values for {key!r} must be a list")
    if operator in _OPERATORS_WITH_VALUES:
        if not values:
            raise SelectorError(f"for 'in', 'notin' operators, values set can't be empty")
    elif operator in _OPERATORS_WITHOUT_VALUES:
        if values:
            raise SelectorError(f"values set must be empty for exists and does not exist")
    else:
        raise SelectorError(f'"{operator}" is not a valid pod selector operator')
    return key, operator, frozenset(_validate_value(v) for v in values)


def _requirements(selector: Mapping[str, Any]) -> List[_Requirement]:
    match_labels = selector.get("matchLabels") or {}
    expressions = selector.get("matchExpressions") or []
    if not isinstance(match_labels, Mapping):
        raise SelectorError("matchLabels must be a mapping")
    if not isinstance(expressions, (list, tuple)):
        raise SelectorError("matchExpressions must be a list")

    requirements = [_requirement(key, "In", [value]) for key, value in match_labels.items()]
    for expression in expressions:
        if not isinstance(expression, Mapping):
            raise SelectorError("matchExpressions entries must be mappings")
        requirements.append(
            _requirement(
                expression.get("key"),
                expression.get("operator"),
                expression.get("values"),
            )
        )
    return requirements


def _satisfied(requirement: _Requirement, labels: Mapping[str, str]) -> bool:
    key, operator, values = requirement
    if operator == "In":
        return key in labels and labels[key] in values
    if operator == "NotIn":
        return key not in labels or labels[key] not in values
    if operator == "Exists":
        return key in labels
    return key not in labels


def label_selector_matches(
    selector: Optional[Mapping[str, Any]], labels: Optional[Mapping[str, str]]
) -> bool:
    """Whether a LabelSelector mapping selects the given labels.

    A missing selector selects nothing; an empty one selects everything.
    Raises SelectorError if the selector is malformed.
    """
    if selector is None:
        return False
    if not isinstance(selector, Mapping):
        raise SelectorError("a label selector must be a mapping")
    requirements = _requirements(selector)
    labels = labels or {}
    return all(_satisfied(req, labels) for req in requirements)


_QUANTITY_RE = re.compile(
    r"^(?P<number>[+-]?(?:\d+\.?\d*|\.\d+))"
    r"(?P<suffix>[eE][+-]?\d+|Ki|Mi|Gi|Ti|Pi|Ei|n|u|m|k|M|G|T|P|E)?$"
)

_SUFFIXES = {
    None: Fraction(1),
    "n": Fraction(1, 10**9),
    "u": Fraction(1, 10**6),
    "m": Fraction(1, 10**3),
    "k": Fraction(10**3),
    "M": Fraction(10**6),
    "G": Fraction(10**9),
    "T": Fraction(10**12),
    "P": Fraction(10**15),
    "E": Fraction(10**18),
    "Ki": Fraction(2**10),
    "Mi": Fraction(2**20),
    "Gi": Fraction(2**30),
    "Ti": Fraction(2**40),
    "Pi": Fraction(2**50),
    "Ei": Fraction(2**60),
}


def parse_quantity(value: Any) -> Fraction:
    """Parse a resource quantity such as "500m", "256Mi" or "1e3" exactly."""
    if isinstance(value, bool):
        raise ValueError(f"invalid quantity {value!r}")
    if isinstance(value, int):
        return Fraction(value)
    if isinstance(value, float):
        return Fraction(Decimal(repr(value)))
    if not isinstance(value, str):
        raise ValueError(f"invalid quantity {value!r}")
    match = _QUANTITY_RE.match(value.strip())
    if match is None:
        raise ValueError(f"quantities must match the regular expression: {value!r}")
    try:
        number = Fraction(Decimal(match.group("number")))
    except InvalidOperation as exc:
        raise ValueError(f"invalid quantity {value!r}") from exc
    suffix = match.group("suffix")
    if suffix and suffix[0] in "eE" and len(suffix) > 1:
        return number * Fraction(10) ** int(suffix[1:])
    return number * _SUFFIXES[suffix]


def quantity_of(resources: Optional[Mapping[str, Any]], section: str, name: str) -> Fraction:
    """The quantity of one resource in a container's requests or limits; zero if unset."""
    entries = (resources or {}).get(section) or {}
    value = entries.get(name)
    if value is None:
        return Fraction(0)
    return parse_quantity(value)


_INT_RE = re.compile(r"^[+-]?\d+$")


def int_or_string_value(value: Any) -> int:
    """Integer value of an IntOrString field; non-numeric strings give 0."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INT_RE.match(value):
        return int(value)
    return 0