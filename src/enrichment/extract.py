"""Detect which survey questions a user message refers to."""
from __future__ import annotations

import re
import unicodedata
from typing import List

MIN_QUESTION_NUMBER = 0
MAX_QUESTION_NUMBER = 10

# "question 8", "questions 3", "question8" or a bare "Q3" token
_QUESTION_RE = re.compile(r"(?:\bquestions?\s*|\bQ)(\d+)\b", re.IGNORECASE)

_SUMMARY_RE = re.compile(
    r"rapport|résumé|resume|synthèse|synthese|bilan|summary", re.IGNORECASE
)


def _normalise(text: str | None) -> str:
    if not text:
        return ""
    return unicodedata.normalize("NFC", text)


def extract_question_ids(text: str | None) -> List[str]:
    """Return the distinct question ids (``"Q0"``..``"Q10"``) cited in *text*.

    Ids keep the order in which they first appear.  Numbers outside the
    survey range are ignored.
    """

    found: List[str] = []
    for match in _QUESTION_RE.finditer(_normalise(text)):
        number = int(match.group(1))
        if not MIN_QUESTION_NUMBER <= number <= MAX_QUESTION_NUMBER:
            continue
        question_id = f"Q{number}"
        if question_id not in found:
            found.append(question_id)
    return found


def is_summary_prompt(text: str | None) -> bool:
    """Return *True* if *text* asks for a report or summary."""
    return bool(_SUMMARY_RE.search(_normalise(text)))
