"""Utility helpers for Slack interactions."""
from __future__ import annotations

import logging
import re
from typing import List

logger = logging.getLogger(__name__)

_MENTION_RE = re.compile(r"<@[A-Z0-9]+(?:\|[^>]*)?>")
_HEADING_RE = re.compile(r"^#{1,6}\s+(.*?)\s*#*\s*$")
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_ITALIC_RE = re.compile(r"(?<![\*\w])\*(?!\s)(.+?)(?<!\s)\*(?![\*\w])")
_BOLD_PLACEHOLDER = "\x00"


def strip_mentions(text: str | None) -> str:
    """Remove ``<@U123>`` user mentions (the bot's own included) from *text*."""
    return _MENTION_RE.sub("", text or "").strip()


def _inline_to_mrkdwn(line: str) -> str:
    line = _BOLD_RE.sub(lambda m: f"{_BOLD_PLACEHOLDER}{m.group(1)}{_BOLD_PLACEHOLDER}", line)
    line = _ITALIC_RE.sub(r"_\1_", line)
    return line.replace(_BOLD_PLACEHOLDER, "*")


def to_mrkdwn(markdown: str) -> str:
    """Convert the Markdown produced by the assistant to Slack ``mrkdwn``.

    Headings become bold lines, ``**bold**``/``*italic*`` are rewritten, and
    runs of table lines are wrapped in a code block so columns stay aligned.
    Existing code fences are left untouched.
    """

    out: List[str] = []
    in_fence = False
    in_table = False

    for line in (markdown or "").splitlines():
        stripped = line.strip()

        if stripped.startswith("```"):
            if in_table:
                out.append("```")
                in_table = False
            in_fence = not in_fence
            out.append(line)
            continue
        if in_fence:
            out.append(line)
            continue

        is_table_line = stripped.startswith("|")
        if is_table_line and not in_table:
            out.append("```")
            in_table = True
        elif not is_table_line and in_table:
            out.append("```")
            in_table = False

        if is_table_line:
            out.append(stripped)
            continue

        heading = _HEADING_RE.match(stripped)
        if heading:
            title = _BOLD_RE.sub(r"\1", heading.group(1))
            out.append(f"*{title}*")
            continue
        out.append(_inline_to_mrkdwn(line))

    if in_table:
        out.append("```")
    return "\n".join(out)


def chunk_text(text: str, limit: int) -> List[str]:
    """Split *text* into pieces of at most *limit* characters.

    Splits on blank lines first, then on single newlines, and only cuts
    inside a line when a single line is longer than *limit*.
    """

    if len(text) <= limit:
        return [text] if text.strip() else []

    chunks: List[str] = []
    current = ""
    for paragraph in text.split("\n\n"):
        candidate = f"{current}\n\n{paragraph}" if current else paragraph
        if len(candidate) <= limit:
            current = candidate
            continue
        if current:
            chunks.append(current)
            current = ""
        while len(paragraph) > limit:
            cut = paragraph.rfind("\n", 0, limit)
            if cut <= 0:
                cut = limit
            chunks.append(paragraph[:cut])
            paragraph = paragraph[cut:].lstrip("\n")
        current = paragraph
    if current.strip():
        chunks.append(current)
    return chunks
