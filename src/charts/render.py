"""Turn chart markers into Slack Block Kit blocks.

Slack cannot draw a real pie, so a chart is a proportional emoji bar (one
colour per slice) followed by one legend row per slice.  Renderers are picked
from :class:`~src.charts.markers.ChartId`; identifiers outside the enum render
nothing.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from src.charts.markers import ChartId
from src.reporting import config
from src.reporting.formatting import format_number, format_percent, share
from src.survey.dataset import SurveyDataset
from src.survey.questions import QUESTIONS_BY_KEY

logger = logging.getLogger(__name__)

PALETTE = ("🟦", "🟩", "🟨", "🟧", "🟥", "🟪", "🟫", "⬜")
# Red to green, in satisfaction order
SATISFACTION_PALETTE = ("🟥", "🟧", "🟨", "🟩")
NAME_CHANGE_PALETTE = ("🟪", "⬜")
POS_NEG_PALETTE = ("🟩", "🟥")

Block = Dict[str, object]


@dataclass(frozen=True)
class Slice:
    """One pie slice."""

    name: str
    value: int


def proportional_bar(values: Sequence[int], palette: Sequence[str], width: int) -> str:
    """Return an emoji bar of about *width* cells split proportionally.

    Non-zero slices always get at least one cell.
    """
    total = sum(values)
    if total <= 0:
        return ""
    scale = width / total
    cells = []
    for index, value in enumerate(values):
        if value <= 0:
            continue
        count = max(1, round(value * scale))
        cells.append(palette[index % len(palette)] * count)
    return "".join(cells)


def legend_rows(
    slices: Sequence[Slice], palette: Sequence[str], *, show_counts: bool = True
) -> List[str]:
    """Return ``<colour> *name* · count · percent`` rows."""
    total = sum(item.value for item in slices) or 1
    rows = []
    for index, item in enumerate(slices):
        swatch = palette[index % len(palette)]
        percent = format_percent(share(item.value, total))
        if show_counts:
            rows.append(f"{swatch} *{item.name}* · {format_number(item.value)} · {percent}")
        else:
            rows.append(f"{swatch} *{item.name}* · {percent}")
    return rows


def _title(chart_id: ChartId) -> str:
    mapping = QUESTIONS_BY_KEY.get(chart_id.value)
    if mapping is None:
        return chart_id.value
    return f"{mapping.id} – {mapping.text}"


def _pie_blocks(
    title: str,
    slices: Sequence[Slice],
    palette: Sequence[str],
    *,
    show_counts: bool = True,
) -> List[Block]:
    bar = proportional_bar([item.value for item in slices], palette, config.CHART_BAR_WIDTH)
    body = "\n".join([bar, *legend_rows(slices, palette, show_counts=show_counts)])
    return [
        {"type": "context", "elements": [{"type": "mrkdwn", "text": f":bar_chart: *{title}*"}]},
        {"type": "section", "text": {"type": "mrkdwn", "text": body}},
    ]


def _render_simple(chart_id: ChartId, dataset: SurveyDataset) -> List[Block]:
    series = dataset.series(chart_id.value)
    if not series:
        return []
    palette = SATISFACTION_PALETTE if chart_id is ChartId.SATISFACTION else PALETTE
    slices = [Slice(point.name, point.value) for point in series]
    return _pie_blocks(_title(chart_id), slices, palette)


def _render_name_change(chart_id: ChartId, dataset: SurveyDataset) -> List[Block]:
    series = dataset.series(chart_id.value)
    if not series:
        return []
    slices = [Slice(point.name, point.value) for point in series]
    return _pie_blocks(_title(chart_id), slices, NAME_CHANGE_PALETTE, show_counts=False)


def _render_experience_changes(chart_id: ChartId, dataset: SurveyDataset) -> List[Block]:
    series = dataset.series(chart_id.value)
    if not series:
        return []
    summary = [
        Slice("Positif", sum(point.positive for point in series)),
        Slice("Négatif", sum(point.negative for point in series)),
    ]
    blocks = _pie_blocks(_title(chart_id), summary, POS_NEG_PALETTE)

    breakdown = []
    half_width = max(1, config.CHART_BAR_WIDTH // 2)
    for point in series:
        total = point.total or 1
        bar = proportional_bar([point.positive, point.negative], POS_NEG_PALETTE, half_width)
        breakdown.append(
            f"*{point.category}* {bar}\n"
            f"{point.label_positive} : {format_number(point.positive)} "
            f"({format_percent(share(point.positive, total))}) · "
            f"{point.label_negative} : {format_number(point.negative)} "
            f"({format_percent(share(point.negative, total))})"
        )
    blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": "\n".join(breakdown)}})
    return blocks


_RENDERERS: Dict[ChartId, Callable[[ChartId, SurveyDataset], List[Block]]] = {
    ChartId.AGE_GROUPS: _render_simple,
    ChartId.ZONES: _render_simple,
    ChartId.TRANSPORT: _render_simple,
    ChartId.FREQUENCY: _render_simple,
    ChartId.VISIT_REASON: _render_simple,
    ChartId.COMPETITORS: _render_simple,
    ChartId.CHOICE_REASON: _render_simple,
    ChartId.SATISFACTION: _render_simple,
    ChartId.PREFERRED_DEPARTMENT: _render_simple,
    ChartId.NAME_CHANGE_AWARENESS: _render_name_change,
    ChartId.EXPERIENCE_CHANGES: _render_experience_changes,
}


def render_chart(identifier: str | ChartId, dataset: SurveyDataset) -> List[Block]:
    """Return the Block Kit blocks for chart *identifier* (``[]`` if unknown)."""
    chart_id = identifier if isinstance(identifier, ChartId) else ChartId.parse(identifier)
    if chart_id is None:
        logger.debug("Ignoring unknown chart identifier %r", identifier)
        return []
    return _RENDERERS[chart_id](chart_id, dataset)
