"""Ask the language model to narrate the survey data."""
from __future__ import annotations

import logging
from typing import Optional

from src.openai_client import OpenAIClientHolder
from src.reporting import config
from src.reporting.render import render_system_prompt
from src.survey.dataset import SurveyDataset

_logger = logging.getLogger(__name__)

EMPTY_ANSWER_TEXT = "Aucune analyse n'a pu être générée."


def generate_insight(
    prompt: str,
    dataset: Optional[SurveyDataset],
    *,
    client: OpenAIClientHolder,
    temperature: float = config.INSIGHT_TEMPERATURE,
    max_tokens: int = config.INSIGHT_MAX_TOKENS,
) -> str:
    """Return the model's answer to *prompt* about *dataset*.

    The answer is plain Markdown and may already contain tables or chart
    markers.  Errors from the client (missing key, network, quota) are
    propagated; the chat controller decides what the user sees.
    """

    messages = [
        {"role": "system", "content": render_system_prompt(dataset)},
        {"role": "user", "content": prompt},
    ]

    response = client.chat_completion(
        messages, temperature=temperature, max_tokens=max_tokens
    )
    try:
        content: Optional[str] = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ValueError("Model response missing expected fields") from exc

    content = (content or "").strip()
    if not content:
        _logger.warning("Model returned an empty answer for prompt of len=%d", len(prompt))
        return EMPTY_ANSWER_TEXT
    return content


class InsightGenerator:
    """Callable ``(prompt, dataset) -> text`` bound to one client holder."""

    def __init__(self, client: OpenAIClientHolder) -> None:
        self._client = client

    def __call__(self, prompt: str, dataset: Optional[SurveyDataset]) -> str:
        return generate_insight(prompt, dataset, client=self._client)
