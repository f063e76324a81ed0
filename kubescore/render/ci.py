"""Line-oriented output that is easy for other programs to parse."""

from __future__ import annotations

from typing import List

from kubescore.scorecard import Scorecard, grade_label


def ci(scorecard: Scorecard) -> str:
    """One line per comment (or per check without comments), sorted by object key."""
    lines: List[str] = []
    for key in sorted(scorecard):
        obj = scorecard[key]
        ref = obj.human_friendly_ref()
        for card in obj.checks:
            label = "SKIPPED" if card.skipped else grade_label(card.grade)
            if not card.comments:
                lines.append(f"[{label}] {ref}")
            for comment in card.comments:
                message = comment.summary
                if comment.path:
                    message = f"({comment.path}) {comment.summary}"
                lines.append(f"[{label}] {ref}: {message}")
    return "".join(line + "\n" for line in lines)