import re

import pytest

from src.charts.markers import ChartId
from src.charts.render import (
    PALETTE,
    Slice,
    legend_rows,
    proportional_bar,
    render_chart,
)
from src.survey.dataset import SURVEY_DATA, SurveyDataset

_PERCENT_RE = re.compile(r"(\d+,\d)%")


def _section_text(blocks):
    return [b["text"]["text"] for b in blocks if b["type"] == "section"]


def test_proportional_bar_scales_to_width():
    assert proportional_bar([30, 70], PALETTE, 10) == "🟦" * 3 + "🟩" * 7


def test_proportional_bar_small_slices_get_one_cell():
    bar = proportional_bar([1, 999], PALETTE, 10)
    assert bar.startswith("🟦")
    assert bar.count("🟦") == 1


def test_proportional_bar_skips_zero_and_empty():
    assert "🟩" not in proportional_bar([5, 0, 5], PALETTE, 10)
    assert proportional_bar([0, 0], PALETTE, 10) == ""


def test_legend_rows():
    rows = legend_rows([Slice("A", 30), Slice("B", 70)], PALETTE)
    assert rows == ["🟦 *A* · 30 · 30,0%", "🟩 *B* · 70 · 70,0%"]
    assert legend_rows([Slice("A", 1)], PALETTE, show_counts=False) == ["🟦 *A* · 100,0%"]


@pytest.mark.parametrize(
    "chart_id",
    [member for member in ChartId if member is not ChartId.EXPERIENCE_CHANGES],
)
def test_simple_charts_have_title_bar_and_legend(chart_id):
    blocks = render_chart(chart_id.value, SURVEY_DATA)
    series = SURVEY_DATA.series(chart_id.value)

    assert blocks[0]["type"] == "context"
    body = _section_text(blocks)[0].splitlines()
    assert len(body) == 1 + len(series)
    percents = [float(p.replace(",", ".")) for p in _PERCENT_RE.findall("\n".join(body[1:]))]
    assert abs(sum(percents) - 100) <= 1


def test_zones_chart_content():
    blocks = render_chart("zones", SURVEY_DATA)
    assert blocks[0]["elements"][0]["text"] == ":bar_chart: *Q1 – Zone de résidence*"
    assert "🟥 *Balbala* · 199 · 43,6%" in _section_text(blocks)[0]


def test_satisfaction_uses_red_to_green_palette():
    text = _section_text(render_chart(ChartId.SATISFACTION, SURVEY_DATA))[0]
    assert "🟥 *Pas du tout* · 45 · 10,2%" in text
    assert "🟩 *Très satisfait* · 118 · 26,6%" in text


def test_name_change_chart_shows_percentages_only():
    text = _section_text(render_chart("nameChangeAwareness", SURVEY_DATA))[0]
    assert "🟪 *Oui* · 47,5%" in text
    assert "⬜ *Non* · 52,5%" in text


def test_experience_changes_summary_and_breakdown():
    blocks = render_chart("experienceChanges", SURVEY_DATA)
    summary, breakdown = _section_text(blocks)

    assert len(blocks) == 3
    assert "🟩 *Positif* · 118 · 51,8%" in summary
    assert "🟥 *Négatif* · 110 · 48,2%" in summary
    assert "*Prix*" in breakdown
    assert "+ Cher : 38 (45,8%) · - Cher : 45 (54,2%)" in breakdown


def test_unknown_identifier_renders_nothing():
    assert render_chart("pieChart", SURVEY_DATA) == []


def test_empty_series_renders_nothing():
    assert render_chart("zones", SurveyDataset()) == []
    assert render_chart("experienceChanges", SurveyDataset()) == []
