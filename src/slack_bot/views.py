import json
import logging
from typing import Any, Dict, List, Optional

from slack_sdk.errors import SlackApiError
from slack_sdk.models.blocks import ActionsBlock, ButtonElement, SectionBlock
from slack_sdk.web import WebClient

from src.charts.markers import iter_segments
from src.charts.render import render_chart
from src.reporting import config
from src.reporting.formatting import format_number, format_percent, share
from src.reporting.metrics import compute_top_entry, count_satisfied
from src.reporting.tables import NO_DATA_PLACEHOLDER
from src.slack_bot.utils import chunk_text, to_mrkdwn
from src.survey.dataset import COMPARISON_SERIES_KEY, SurveyDataset
from src.survey.questions import QUESTION_MAPPINGS, QuestionMapping

logger = logging.getLogger(__name__)

# Slack refuses messages with more than 50 blocks
MAX_MESSAGE_BLOCKS = 50

DATASET_EDITOR_CALLBACK_ID = "dataset_editor_callback"
COPY_ACTION_ID = "copy_message"


def build_help_text() -> str:
    """Return the help message describing what the assistant can do."""
    command = config.SURVEY_DATA_COMMAND
    return (
        "*Fabrice – assistant d'analyse de l'enquête clients*\n\n"
        "Mentionnez-moi avec une question sur les données de l'enquête ; je réponds "
        "dans le fil avec l'analyse, les tableaux et les graphiques correspondants.\n\n"
        "*Exemples*\n"
        "• `@Fabrice Parle-moi de la question 8 et de Q3`\n"
        "• `@Fabrice Fais-moi un résumé de l'enquête`\n"
        "• `@Fabrice reset` — recommencer la conversation du fil.\n\n"
        "*Données*\n"
        f"• `{command}` — liste des questions et effectifs.\n"
        f"• `{command} Q7` — modifier les résultats d'une question.\n"
        f"• `{command} Q7 graphique` — afficher le graphique d'une question.\n"
        f"• `{command} reset` — revenir aux données d'origine.\n"
    )


def _kpi_lines(dataset: SurveyDataset) -> List[str]:
    respondents = sum(point.value for point in dataset.ageGroups)
    lines = [f"Répondants : *{format_number(respondents)}*"]

    satisfaction = dataset.satisfaction
    if satisfaction:
        rate = share(count_satisfied(satisfaction), sum(point.value for point in satisfaction))
        lines.append(f"Taux de satisfaction : *{format_percent(rate, decimals=0)}*")

    zone = compute_top_entry(dataset.zones)
    if zone is not None:
        # Share of all respondents, not of zone answers
        zone_share = format_percent(share(zone.value, respondents), decimals=0)
        lines.append(f"Zone principale : *{zone.name}* ({zone_share} des répondants)")

    transport = compute_top_entry(dataset.transport)
    if transport is not None:
        lines.append(
            f"Transport principal : *{transport.name}* ({format_number(transport.value)} réponses)"
        )
    return lines


def build_dataset_overview(dataset: SurveyDataset) -> str:
    """Return the key indicators, then one line per question with its number of answers."""
    lines = ["*Données de l'enquête*", *_kpi_lines(dataset), ""]
    for mapping in QUESTION_MAPPINGS:
        series = dataset.series(mapping.dataset_key)
        if mapping.dataset_key == COMPARISON_SERIES_KEY:
            answers = sum(point.total for point in series)
        else:
            answers = sum(point.value for point in series)
        lines.append(
            f"• *{mapping.id}* {mapping.text} — {len(series)} modalité(s), "
            f"{format_number(answers)} réponse(s)"
        )
    lines.append(f"\nModifier une question : `{config.SURVEY_DATA_COMMAND} Q<n>`")
    lines.append(f"Voir un graphique : `{config.SURVEY_DATA_COMMAND} Q<n> graphique`")
    return "\n".join(lines)


def _text_sections(markdown: str) -> List[Dict[str, Any]]:
    return [
        SectionBlock(text={"type": "mrkdwn", "text": chunk}).to_dict()
        for chunk in chunk_text(to_mrkdwn(markdown), config.SLACK_SECTION_LIMIT)
    ]


def build_answer_blocks(
    text: str,
    dataset: SurveyDataset,
    *,
    conversation_key: str,
    message_index: int,
) -> List[Dict[str, Any]]:
    """Return Block Kit blocks for an assistant message.

    Text segments become ``section`` blocks, chart markers become chart
    blocks, and a *Copier* button is appended last.
    """

    blocks: List[Dict[str, Any]] = []
    for segment in iter_segments(text):
        if segment.is_chart:
            blocks.extend(render_chart(segment.chart, dataset))
        else:
            # Slack rejects empty text objects, so a blank first segment adds nothing
            blocks.extend(_text_sections(segment.text))

    copy_button = ButtonElement(
        text={"type": "plain_text", "text": "Copier"},
        action_id=COPY_ACTION_ID,
        value=json.dumps({"conversation": conversation_key, "index": message_index}),
    )
    actions = ActionsBlock(elements=[copy_button]).to_dict()

    if len(blocks) >= MAX_MESSAGE_BLOCKS:
        logger.warning(
            "Answer for %s has %d blocks; truncating to %d",
            conversation_key,
            len(blocks),
            MAX_MESSAGE_BLOCKS - 1,
        )
        blocks = blocks[: MAX_MESSAGE_BLOCKS - 1]
    blocks.append(actions)
    return blocks


def build_chart_blocks(mapping: QuestionMapping, dataset: SurveyDataset) -> List[Dict[str, Any]]:
    """Return the chart of one question, straight from *dataset*."""
    blocks = render_chart(mapping.chart_key, dataset)
    if not blocks:
        blocks = [
            {
                "type": "context",
                "elements": [{"type": "mrkdwn", "text": f"*{mapping.id} – {mapping.text}*"}],
            },
            {"type": "section", "text": {"type": "mrkdwn", "text": NO_DATA_PLACEHOLDER}},
        ]
    return blocks


def _number_input_block(block_id: str, label: str, value: int) -> Dict[str, Any]:
    return {
        "type": "input",
        "block_id": block_id,
        "label": {"type": "plain_text", "text": label[:2000] or "—", "emoji": True},
        "element": {
            "type": "number_input",
            "action_id": "value",
            "is_decimal_allowed": False,
            "min_value": "0",
            "initial_value": str(value),
        },
        "optional": False,
    }


def get_dataset_editor_view(mapping: QuestionMapping, dataset: SurveyDataset) -> Dict[str, Any]:
    """
    Constructs and returns the Block Kit JSON for the dataset editor modal.

    Args:
        mapping: The question whose series is edited.
        dataset: The dataset currently published.

    The modal carries the dataset key in ``private_metadata`` and one
    number input per count, with block ids ``row_<i>`` (simple series) or
    ``row_<i>_positive`` / ``row_<i>_negative`` (comparison series).
    """
    key = mapping.dataset_key
    blocks: List[Dict[str, Any]] = [
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f"*{mapping.id} – {mapping.text}*\nModifiez les effectifs puis enregistrez.",
            },
        }
    ]

    if key == COMPARISON_SERIES_KEY:
        for index, point in enumerate(dataset.series(key)):
            blocks.append(
                _number_input_block(
                    f"row_{index}_positive",
                    f"{point.category} – {point.label_positive}",
                    point.positive,
                )
            )
            blocks.append(
                _number_input_block(
                    f"row_{index}_negative",
                    f"{point.category} – {point.label_negative}",
                    point.negative,
                )
            )
    else:
        for index, point in enumerate(dataset.series(key)):
            blocks.append(_number_input_block(f"row_{index}", point.name, point.value))

    if len(blocks) == 1:
        blocks.append(
            {"type": "context", "elements": [{"type": "mrkdwn", "text": NO_DATA_PLACEHOLDER}]}
        )

    return {
        "type": "modal",
        "callback_id": DATASET_EDITOR_CALLBACK_ID,
        "private_metadata": key,
        "title": {"type": "plain_text", "text": "Éditeur de données", "emoji": True},
        "submit": {"type": "plain_text", "text": "Sauvegarder", "emoji": True},
        "close": {"type": "plain_text", "text": "Annuler", "emoji": True},
        "blocks": blocks,
    }


def open_dataset_editor(
    client: WebClient,
    trigger_id: str,
    mapping: QuestionMapping,
    dataset: SurveyDataset,
) -> Optional[str]:
    """Opens the dataset editor modal in Slack.

    Args:
        client: The Slack WebClient instance.
        trigger_id: The trigger ID from the slash command.
        mapping: The question whose series is edited.
        dataset: The dataset currently published.

    Returns the Slack error code on failure, ``None`` on success.
    """
    try:
        client.views_open(trigger_id=trigger_id, view=get_dataset_editor_view(mapping, dataset))
        logger.info("Opened dataset editor for %s (trigger_id=%s)", mapping.id, trigger_id)
        return None
    except SlackApiError as e:
        error = e.response.get("error", "unknown_error")
        logger.error("Error opening dataset editor for trigger_id %s: %s", trigger_id, error)
        return error
