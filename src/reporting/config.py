"""Configuration constants for the assistant and its Slack surface."""
from __future__ import annotations

import os

# Sampling temperature for narrated answers
INSIGHT_TEMPERATURE: float = float(os.getenv("INSIGHT_TEMPERATURE", "0.3"))

# Upper bound on tokens generated per answer
INSIGHT_MAX_TOKENS: int = int(os.getenv("INSIGHT_MAX_TOKENS", "1200"))

# Number of emoji cells in a chart bar
CHART_BAR_WIDTH: int = int(os.getenv("CHART_BAR_WIDTH", "20"))

# Slack rejects section text above 3000 chars; keep a margin
SLACK_SECTION_LIMIT: int = int(os.getenv("SLACK_SECTION_LIMIT", "2900"))

# Slash command used to view/edit the dataset
SURVEY_DATA_COMMAND: str = os.getenv("SURVEY_DATA_COMMAND", "/survey-data")
