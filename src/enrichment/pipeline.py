"""Post-process model answers so they always carry data-backed visuals.

The language model is asked to include tables and chart markers, but it does
not always comply.  :func:`enrich_response` looks at what the *user* asked
for and appends whatever is missing:

* one ``#### Tableau professionnel – Qn`` block and one chart marker per
  question cited in the prompt;
* a single ``### Rapport synthétique officiel`` section when the prompt asks
  for a report.

Tables are computed from the dataset snapshot, never taken from the model.
The pass is idempotent: feeding its output back in with the same prompt
returns it unchanged.
"""
from __future__ import annotations

import logging
import re
from typing import List, Mapping, Optional

from src.charts.markers import chart_tag
from src.enrichment.extract import extract_question_ids, is_summary_prompt
from src.reporting.render import render_summary_report
from src.reporting.tables import NO_DATA_PLACEHOLDER, build_table_for_key
from src.survey.dataset import SurveyDataset
from src.survey.questions import QUESTION_CONFIG_MAP, QuestionMapping

logger = logging.getLogger(__name__)

SUMMARY_HEADING = "### Rapport synthétique officiel"
TABLE_WINDOW_BEFORE = 200
TABLE_WINDOW_AFTER = 800

_BLOCK_SEPARATOR = "\n\n"
# Separator row of a Markdown table: pipes, dashes, colons and spaces only
_TABLE_SEPARATOR_RE = re.compile(r"^\s*\|?\s*:?-+:?\s*(?:\|\s*:?-+:?\s*)*\|?\s*$")


def block_title(question_id: str) -> str:
    """Heading placed above an injected question table."""
    return f"#### Tableau professionnel – {question_id}"


def _contains_markdown_table(text: str) -> bool:
    lines = text.splitlines()
    for header, separator in zip(lines, lines[1:]):
        if "|" in header and "|" in separator and _TABLE_SEPARATOR_RE.match(separator):
            return True
    return False


def _question_reference_re(question_id: str) -> re.Pattern:
    number = question_id[1:] if question_id[:1].upper() == "Q" else question_id
    return re.compile(
        rf"\b{re.escape(question_id)}\b|\bquestion\s*{re.escape(number)}\b", re.IGNORECASE
    )


def has_table_near(text: str, question_id: str) -> bool:
    """Heuristic: is there a Markdown table close to the first mention of *question_id*?

    Looks from 200 characters before to 800 characters after the first
    ``Qn`` (or ``question n``) in *text*.  Returns *False* when the question
    is never mentioned.
    """
    match = _question_reference_re(question_id).search(text)
    if match is None:
        return False
    start = max(0, match.start() - TABLE_WINDOW_BEFORE)
    end = min(len(text), match.start() + TABLE_WINDOW_AFTER)
    return _contains_markdown_table(text[start:end])


def _append_block(text: str, block: str) -> str:
    if not text:
        return block
    return text.rstrip("\n") + _BLOCK_SEPARATOR + block


def _question_block(
    enriched: str, original: str, mapping: QuestionMapping, dataset: SurveyDataset
) -> Optional[str]:
    title = block_title(mapping.id)
    tag = chart_tag(mapping.chart_key)

    additions: List[str] = []
    has_title = re.search(re.escape(title) + r"(?!\d)", enriched) is not None
    # Tables injected for earlier ids must not count as this question's table
    has_table = has_title or has_table_near(original, mapping.id)
    if not has_table:
        table = build_table_for_key(dataset, mapping.dataset_key)
        additions.extend([title, table or NO_DATA_PLACEHOLDER])
    if tag not in enriched:
        additions.append(tag)

    if not additions:
        return None
    logger.debug(
        "Injecting block for %s (table=%s, chart=%s)",
        mapping.id,
        not has_table,
        tag not in enriched,
    )
    return _BLOCK_SEPARATOR.join(additions)


def enrich_response(
    user_prompt: str | None,
    assistant_text: str | None,
    dataset: Optional[SurveyDataset],
    registry: Mapping[str, QuestionMapping] = QUESTION_CONFIG_MAP,
) -> str:
    """Return *assistant_text* completed with the tables and charts it lacks.

    Question ids are read from *user_prompt* only; the model's own answer is
    just inspected for what it already contains.  Blocks are appended in the
    order the ids appear in the prompt, the summary section last.
    """

    original = assistant_text or ""
    enriched = original
    if dataset is None:
        dataset = SurveyDataset()

    for question_id in extract_question_ids(user_prompt):
        mapping = registry.get(question_id.upper())
        if mapping is None:
            continue
        block = _question_block(enriched, original, mapping, dataset)
        if block:
            enriched = _append_block(enriched, block)

    if is_summary_prompt(user_prompt) and SUMMARY_HEADING not in enriched:
        logger.debug("Injecting summary report section")
        enriched = _append_block(enriched, render_summary_report(dataset, SUMMARY_HEADING))

    return enriched
