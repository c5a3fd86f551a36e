"""Tests for slack_bot.utils helper functions."""
from __future__ import annotations

import pytest

from src.slack_bot.utils import chunk_text, strip_mentions, to_mrkdwn


def test_strip_mentions():
    assert strip_mentions("<@U123ABC> Parle-moi de Q7 <@U999|bob>") == "Parle-moi de Q7"
    assert strip_mentions(None) == ""


@pytest.mark.parametrize(
    "markdown, expected",
    [
        ("### Rapport synthétique officiel", "*Rapport synthétique officiel*"),
        ("#### Tableau professionnel – Q5", "*Tableau professionnel – Q5*"),
        ("## **Titre gras**", "*Titre gras*"),
        ("**Gras** et *italique*", "*Gras* et _italique_"),
        ("* élément de liste", "* élément de liste"),
    ],
)
def test_to_mrkdwn_inline(markdown, expected):
    assert to_mrkdwn(markdown) == expected


def test_to_mrkdwn_wraps_tables_in_code_block():
    markdown = "Intro\n| A | B |\n| --- | --- |\n| x | 1 |\nFin"
    assert to_mrkdwn(markdown) == "Intro\n```\n| A | B |\n| --- | --- |\n| x | 1 |\n```\nFin"


def test_to_mrkdwn_closes_table_at_end_of_text():
    assert to_mrkdwn("| A |\n| --- |").endswith("| --- |\n```")


def test_to_mrkdwn_leaves_code_fences_untouched():
    markdown = "```\n**brut** | pas un tableau\n```"
    assert to_mrkdwn(markdown) == markdown


def test_chunk_text_short_and_blank():
    assert chunk_text("court", 10) == ["court"]
    assert chunk_text("   ", 10) == []


def test_chunk_text_splits_on_paragraphs():
    assert chunk_text("aaaaa\n\nbbbbb", 8) == ["aaaaa", "bbbbb"]


def test_chunk_text_cuts_overlong_lines():
    chunks = chunk_text("x" * 20, 8)
    assert chunks == ["x" * 8, "x" * 8, "x" * 4]
    assert all(len(chunk) <= 8 for chunk in chunks)
