import io
import sys

import pytest

from kubescore.domain import Check, ObjectMeta, TypeMeta
from kubescore.render.human import human
from kubescore.scorecard import Grade, Scorecard, ScoredObject, TestScore, TestScoreComment

LOREM = (
    "Lorem ipsum dolor sit amet, consectetur adipiscing elit. Cras elementum sagittis "
    "lacus, a dictum tortor lobortis vel. Pellentesque habitant morbi tristique senectus "
    "et netus et malesuada fames ac turpis egestas. Nulla eu neque erat. Vestibulum ante "
    "ipsum primis in faucibus orci luctus et ultrices posuere cubilia Curae; Maecenas et "
    "nisl venenatis, elementum augue a, porttitor libero."
)

FOO_WARN = "v1/Testing foo in foofoo" + " " * 54 + "🤔\n"
BAR_WARN = "v1/Testing bar-no-namespace" + " " * 51 + "🤔\n"
FOO_OK = "v1/Testing foo in foofoo" + " " * 54 + "✅\n"
BAR_OK = "v1/Testing bar-no-namespace" + " " * 51 + "✅\n"


@pytest.fixture(autouse=True)
def _no_color(monkeypatch):
    monkeypatch.setenv("NO_COLOR", "1")


def _card(checks, name="foo", namespace="foofoo", with_bar=True):
    card = Scorecard()
    card["a"] = ScoredObject(
        type_meta=TypeMeta(api_version="v1", kind="Testing"),
        object_meta=ObjectMeta(name=name, namespace=namespace),
        checks=checks,
    )
    if with_bar:
        card["b"] = ScoredObject(
            type_meta=TypeMeta(api_version="v1", kind="Testing"),
            object_meta=ObjectMeta(name="bar-no-namespace"),
            checks=checks,
        )
    return card


def _checks(first_grade):
    return [
        TestScore(
            check=Check(name="test-warning-two-comments"),
            grade=first_grade,
            comments=[
                TestScoreComment("a", "summary", "description"),
                TestScoreComment("", "summary", "description"),
            ],
        ),
        TestScore(
            check=Check(name="test-ok-comment"),
            grade=Grade.ALL_OK,
            comments=[TestScoreComment("a", "summary", "description")],
        ),
        TestScore(
            check=Check(name="test-skipped-comment"),
            skipped=True,
            comments=[TestScoreComment("a", "skipped sum", "skipped description")],
        ),
        TestScore(check=Check(name="test-skipped-no-comment"), skipped=True),
    ]


WARNING_BLOCK = (
    "    [WARNING] test-warning-two-comments\n"
    "        · a -> summary\n"
    "            description\n"
    "        · summary\n"
    "            description\n"
)
OK_BLOCK = "    [OK] test-ok-comment\n        · a -> summary\n            description\n"
SKIPPED_BLOCK = (
    "    [SKIPPED] test-skipped-comment\n"
    "        · a -> skipped sum\n"
    "            skipped description\n"
    "    [SKIPPED] test-skipped-no-comment\n"
)


def test_output_default():
    out = human(_card(_checks(Grade.WARNING)), 0, 100)
    assert out == FOO_WARN + WARNING_BLOCK + BAR_WARN + WARNING_BLOCK


def test_output_verbose_1():
    out = human(_card(_checks(Grade.WARNING)), 1, 100)
    assert out == FOO_WARN + WARNING_BLOCK + OK_BLOCK + BAR_WARN + WARNING_BLOCK + OK_BLOCK


def test_output_verbose_2():
    out = human(_card(_checks(Grade.WARNING)), 2, 100)
    block = WARNING_BLOCK + OK_BLOCK + SKIPPED_BLOCK
    assert out == FOO_WARN + block + BAR_WARN + block


def test_output_all_ok_default():
    out = human(_card(_checks(Grade.ALL_OK)), 0, 100)
    assert out == FOO_OK + BAR_OK


def _long_card(name="foo"):
    checks = [
        TestScore(
            check=Check(name="test-warning-two-comments"),
            grade=Grade.WARNING,
            comments=[TestScoreComment("a", "summary", LOREM)],
        )
    ]
    return _card(checks, name=name, with_bar=False)


HEAD = "    [WARNING] test-warning-two-comments\n        · a -> summary\n"
IND = " " * 12


def test_long_description_120():
    out = human(_long_card(), 0, 120)
    assert out == FOO_WARN + HEAD + (
        IND + "Lorem ipsum dolor sit amet, consectetur adipiscing elit. Cras elementum sagittis lacus, a dictum tortor\n"
        + IND + "lobortis vel. Pellentesque habitant morbi tristique senectus et netus et malesuada fames ac turpis egestas.\n"
        + IND + "Nulla eu neque erat. Vestibulum ante ipsum primis in faucibus orci luctus et ultrices posuere cubilia Curae;\n"
        + IND + "Maecenas et nisl venenatis, elementum augue a, porttitor libero.\n"
    )


def test_long_description_100():
    out = human(_long_card(), 0, 100)
    assert out == FOO_WARN + HEAD + (
        IND + "Lorem ipsum dolor sit amet, consectetur adipiscing elit. Cras elementum sagittis lacus,\n"
        + IND + "a dictum tortor lobortis vel. Pellentesque habitant morbi tristique senectus et netus et\n"
        + IND + "malesuada fames ac turpis egestas. Nulla eu neque erat. Vestibulum ante ipsum primis in\n"
        + IND + "faucibus orci luctus et ultrices posuere cubilia Curae; Maecenas et nisl venenatis,\n"
        + IND + "elementum augue a, porttitor libero.\n"
    )


WRAPPED_80 = (
    IND + "Lorem ipsum dolor sit amet, consectetur adipiscing elit. Cras\n"
    + IND + "elementum sagittis lacus, a dictum tortor lobortis vel. Pellentesque\n"
    + IND + "habitant morbi tristique senectus et netus et malesuada fames ac\n"
    + IND + "turpis egestas. Nulla eu neque erat. Vestibulum ante ipsum primis in\n"
    + IND + "faucibus orci luctus et ultrices posuere cubilia Curae; Maecenas et\n"
    + IND + "nisl venenatis, elementum augue a, porttitor libero.\n"
)


def test_long_description_80():
    out = human(_long_card(), 0, 80)
    assert out == FOO_WARN + HEAD + WRAPPED_80


def test_long_description_0():
    out = human(_long_card(), 0, 0)
    assert out == "v1/Testing foo in foofoo🤔\n" + HEAD + (
        IND + "Lorem ipsum dolor sit amet, consectetur\n"
        + IND + "adipiscing elit. Cras elementum sagittis\n"
        + IND + "lacus, a dictum tortor lobortis vel.\n"
        + IND + "Pellentesque habitant morbi tristique\n"
        + IND + "senectus et netus et malesuada fames ac\n"
        + IND + "turpis egestas. Nulla eu neque erat.\n"
        + IND + "Vestibulum ante ipsum primis in faucibus\n"
        + IND + "orci luctus et ultrices posuere cubilia\n"
        + IND + "Curae; Maecenas et nisl venenatis,\n"
        + IND + "elementum augue a, porttitor libero.\n"
    )


def test_long_object_name():
    title = "this-is-a-very-long-title-" * 4 + "this-is-a-very-long-title"
    out = human(_long_card(name=title), 0, 80)
    assert out == f"v1/Testing {title} in foofoo🤔\n" + HEAD + WRAPPED_80


class _Tty(io.StringIO):
    def isatty(self):
        return True


def test_colors_on_terminal(monkeypatch):
    monkeypatch.delenv("NO_COLOR")
    monkeypatch.setenv("TERM", "xterm")
    monkeypatch.setattr(sys, "stdout", _Tty())
    out = human(_long_card(), 0, 100)
    assert out.startswith("\x1b[35mv1/Testing foo\x1b[0m\x1b[35m in foofoo\x1b[0m")
    assert "\x1b[33m    [WARNING] test-warning-two-comments\n\x1b[0m" in out