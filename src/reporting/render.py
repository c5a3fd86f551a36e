"""Render the system prompt and the summary report using Jinja2 templates."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from src.charts.markers import chart_tag
from src.reporting.narrative import build_summary_narrative
from src.reporting.tables import NO_DATA_PLACEHOLDER, build_summary_table
from src.survey.dataset import SurveyDataset
from src.survey.questions import QUESTION_MAPPINGS, QuestionMapping

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).parent / "templates"

# Markdown templates don’t need HTML escaping – it breaks apostrophes etc.
# Disable autoescape to preserve original characters.
_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.globals["chart_tag"] = chart_tag

NO_DATASET_TEXT = "Aucune donnée disponible"


def render_system_prompt(
    dataset: Optional[SurveyDataset],
    questions: Sequence[QuestionMapping] = QUESTION_MAPPINGS,
) -> str:
    """Return the system instruction embedding *dataset* and the question guide."""

    if dataset is not None:
        dataset_json = json.dumps(dataset.to_dict(), ensure_ascii=False)
    else:
        dataset_json = NO_DATASET_TEXT

    template = _env.get_template("system_prompt.md.j2")
    prompt = template.render(dataset_json=dataset_json, questions=questions)
    logger.debug("System prompt rendered (len=%d)", len(prompt))
    return prompt


def render_summary_report(dataset: SurveyDataset, heading: str) -> str:
    """Return the consolidated report section: heading, table, narrative, chart.

    Parts are separated by one blank line; the narrative is omitted when the
    dataset has nothing to describe.
    """

    template = _env.get_template("summary_report.md.j2")
    return template.render(
        heading=heading,
        table=build_summary_table(dataset) or NO_DATA_PLACEHOLDER,
        narrative=build_summary_narrative(dataset),
    )
