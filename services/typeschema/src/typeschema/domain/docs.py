from __future__ import annotations

import re

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def _strip_stars(lines: list[str]) -> list[str]:
    content = [line.strip() for line in lines if line.strip()]
    if not content or not all(line.startswith("*") for line in content):
        return lines
    stripped: list[str] = []
    for line in lines:
        trimmed = line.strip()
        stripped.append(trimmed[1:] if trimmed.startswith("*") else trimmed)
    return stripped


def clean_doc(text: str | None) -> str:
    """Collapse a documentation comment into a single description string.

    Block-comment ``*`` prefixes are removed when every non-blank line has one.
    Consecutive lines are joined with a space, a single blank line becomes a
    newline and a run of blank lines becomes one empty line.
    """
    if not text:
        return ""
    lines = [line.strip() for line in _strip_stars(_LINE_BREAK.split(text))]

    parts: list[str] = []
    blank_run = 0
    for line in lines:
        if not line:
            if parts:
                blank_run += 1
            continue
        if parts:
            if blank_run == 0:
                parts.append(" ")
            elif blank_run == 1:
                parts.append("\n")
            else:
                parts.append("\n\n")
        parts.append(line)
        blank_run = 0
    return "".join(parts)
