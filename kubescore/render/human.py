"""Human readable, optionally coloured, terminal output."""

from __future__ import annotations

import os
import sys
import textwrap
from typing import List

from kubescore.scorecard import Grade, Scorecard, TestScore, grade_label

_MAGENTA = 35
_GREEN = 32
_YELLOW = 33
_RED = 31

_DESCRIPTION_INDENT = " " * 12
_MIN_WRAP_WIDTH = 40


def _color_enabled() -> bool:
    if "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb":
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    if isatty is None:
        return False
    try:
        return bool(isatty())
    except ValueError:
        return False


def _paint(text: str, code: int, enabled: bool) -> str:
    if not enabled:
        return text
    return f"\x1b[{code}m{text}\x1b[0m"


def human(scorecard: Scorecard, verbose_output: int, term_width: int) -> str:
    """Render the scorecard for people, objects sorted by their key."""
    colored = _color_enabled()
    parts: List[str] = []

    for key in sorted(scorecard):
        obj = scorecard[key]
        tm, om = obj.type_meta, obj.object_meta

        header = f"{tm.api_version}/{tm.kind} {om.name}"
        parts.append(_paint(header, _MAGENTA, colored))
        written = len(header.encode("utf-8"))
        if om.namespace:
            suffix = f" in {om.namespace}"
            parts.append(_paint(suffix, _MAGENTA, colored))
            written += len(suffix.encode("utf-8"))

        padding = min(80, term_width) - written - 2
        parts.append(" " * max(0, padding))

        if obj.any_below_or_equal_to_grade(Grade.CRITICAL):
            parts.append("💥\n")
        elif obj.any_below_or_equal_to_grade(Grade.WARNING):
            parts.append("🤔\n")
        else:
            parts.append("✅\n")

        parts.extend(_step(card, verbose_output, term_width, colored) for card in obj.checks)

    return "".join(parts)


def _step(card: TestScore, verbose_output: int, term_width: int, colored: bool) -> str:
    # Skipped results are only shown from verbosity 2 upwards.
    if card.skipped and verbose_output < 2:
        return ""

    if card.skipped or card.grade >= Grade.ALL_OK:
        color = _GREEN
        if verbose_output == 0:
            return ""
    elif card.grade >= Grade.WARNING:
        color = _YELLOW
    else:
        color = _RED

    label = "SKIPPED" if card.skipped else grade_label(card.grade)
    parts = [_paint(f"    [{label}] {card.check.name}\n", color, colored)]

    for comment in card.comments:
        parts.append("        · ")
        if comment.path:
            parts.append(f"{comment.path} -> ")
        parts.append(comment.summary)

        if comment.description:
            width = max(term_width - 12, _MIN_WRAP_WIDTH)
            lines = textwrap.wrap(
                comment.description,
                width=width,
                break_long_words=False,
                break_on_hyphens=False,
            )
            parts.append("\n")
            parts.append("\n".join(_DESCRIPTION_INDENT + line for line in lines))

        parts.append("\n")

    return "".join(parts)