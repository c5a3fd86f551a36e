import json
import logging
import re
from typing import Any, Callable, Dict, Optional

from slack_bolt import Ack
from slack_sdk.errors import SlackApiError
from slack_sdk.web import WebClient

from src.charts.markers import strip_chart_markers
from src.chat.store import ConversationStore
from src.exceptions import DatasetValidationError, RequestInFlightError
from src.slack_bot.utils import strip_mentions
from src.slack_bot.views import (
    build_answer_blocks,
    build_chart_blocks,
    build_dataset_overview,
    build_help_text,
    open_dataset_editor,
)
from src.survey.dataset import COMPARISON_SERIES_KEY
from src.survey.questions import get_question
from src.survey.store import DatasetStore

logger = logging.getLogger(__name__)

BUSY_TEXT = "Fabrice réfléchit encore à votre question précédente. Merci de patienter…"
RESET_TEXT = "Nouvelle conversation démarrée. Comment puis-je vous aider ?"
DATASET_SAVED_TEXT = "Données mises à jour avec succès ! Tableaux et graphiques rafraîchis."
DATASET_RESET_TEXT = "Données réinitialisées aux valeurs d’origine."

_HELP_RE = re.compile(r"^(?:help|aide)\s*[?!.]*$", re.IGNORECASE)
_RESET_RE = re.compile(r"^(?:reset|nouvelle conversation)$", re.IGNORECASE)
_CHART_WORDS = frozenset({"graphique", "chart", "voir"})
_FIELD_ROW_RE = re.compile(r"\[(\d+)\]")


# ------------------------------------------------------------------
# Conversation: app mention → answer in thread
# ------------------------------------------------------------------


def handle_app_mention(
    event: Dict[str, Any],
    client: WebClient,
    logger: logging.Logger,
    conversation_store: ConversationStore,
    dataset_store: DatasetStore,
) -> None:
    """Answer a mention of the bot in the thread it was posted in.

    The handler:

    1. Strips user mentions from the text.
    2. Answers ``help``/``aide`` with the help text and ``reset`` by clearing
       the thread's conversation.
    3. Otherwise sends the question through the thread's
       :class:`~src.chat.controller.ChatController` and posts the enriched
       answer as Block Kit.
    """

    channel_id = event.get("channel")
    thread_ts = event.get("thread_ts") or event.get("ts")
    text = strip_mentions(event.get("text"))

    try:
        if not text:
            logger.debug("Ignoring empty mention in %s", channel_id)
            return

        if _HELP_RE.match(text):
            client.chat_postMessage(channel=channel_id, thread_ts=thread_ts, text=build_help_text())
            return

        key = ConversationStore.key_for(channel_id, thread_ts)
        controller = conversation_store.get_or_create(key)

        if _RESET_RE.match(text):
            controller.reset()
            client.chat_postMessage(channel=channel_id, thread_ts=thread_ts, text=RESET_TEXT)
            return

        try:
            reply = controller.send(text)
        except RequestInFlightError:
            client.chat_postEphemeral(
                channel=channel_id,
                user=event.get("user"),
                thread_ts=thread_ts,
                text=BUSY_TEXT,
            )
            return

        if reply is None:
            return

        # Charts use the snapshot the tables were built from
        blocks = build_answer_blocks(
            reply.message.text,
            reply.dataset,
            conversation_key=key,
            message_index=reply.index,
        )
        client.chat_postMessage(
            channel=channel_id,
            thread_ts=thread_ts,
            text=strip_chart_markers(reply.message.text)[:3000],
            blocks=blocks,
        )
        logger.info(
            "answer_posted",
            extra={"conversation_id": key, "blocks": len(blocks)},
        )

    except SlackApiError as exc:
        logger.error(
            "Failed to post answer in %s: %s",
            channel_id,
            exc.response.get("error", str(exc)),
        )
    except Exception as exc:  # pragma: no cover – catch-all to protect app thread
        logger.error("Error handling app mention: %s", exc, exc_info=True)


# ------------------------------------------------------------------
# Interaction handler: "Copier" button click
# ------------------------------------------------------------------


def handle_copy_button_click(
    ack: Ack,
    body: Dict[str, Any],
    client: WebClient,
    logger: logging.Logger,
    conversation_store: ConversationStore,
) -> None:
    """Send the clicked message back, without chart markers, as an ephemeral note."""

    ack()  # acknowledge action early to avoid client timeouts

    try:
        user_id = body["user"]["id"]
        channel_id = body["channel"]["id"]
        action = body.get("actions", [{}])[0]
        try:
            payload = json.loads(action.get("value", "{}"))
            key = payload["conversation"]
            index = int(payload["index"])
        except (ValueError, KeyError, TypeError):
            logger.warning("Copy button with malformed payload – body=%s", body)
            return

        controller = conversation_store.get(key)
        if controller is None:
            client.chat_postEphemeral(
                channel=channel_id,
                user=user_id,
                text="Cette conversation n'est plus disponible.",
            )
            return

        try:
            text = controller.copy_text(index)
        except IndexError:
            logger.warning("Copy requested for missing message %s#%d", key, index)
            return

        client.chat_postEphemeral(
            channel=channel_id,
            user=user_id,
            text=f"```\n{text.strip()}\n```",
        )

    except Exception as exc:  # pragma: no cover – catch-all to protect app thread
        logger.error("Error handling copy button click: %s", exc, exc_info=True)


# ------------------------------------------------------------------
# Dataset: slash command and editor modal
# ------------------------------------------------------------------


def handle_survey_data_command(
    ack: Ack,
    command: Dict[str, Any],
    client: WebClient,
    logger: logging.Logger,
    respond: Callable[..., Any],
    dataset_store: DatasetStore,
) -> None:
    """Show, edit or reset the survey dataset.

    * no argument → key indicators and an overview of every question;
    * ``reset`` → restore the initial dataset;
    * ``Q<n> graphique`` (or ``chart``, ``voir``) → post that question's chart;
    * ``Q<n>`` (or ``<n>``) → open the editor modal for that question.
    """

    ack()
    argument = (command.get("text") or "").strip()
    user_id = command.get("user_id")

    if not argument:
        respond(build_dataset_overview(dataset_store.current()))
        return

    if argument.lower() == "reset":
        dataset_store.editor().reset()
        logger.info("Dataset reset requested by '%s'", user_id)
        respond(DATASET_RESET_TEXT)
        return

    tokens = argument.split()
    show_chart = len(tokens) == 2 and tokens[1].lower() in _CHART_WORDS
    target = tokens[0] if show_chart else argument

    question_id = target if target.upper().startswith("Q") else f"Q{target}"
    mapping = get_question(question_id)
    if mapping is None:
        respond(f"Question inconnue : `{target}`. Utilisez Q0 à Q10.")
        return

    if show_chart:
        respond(
            text=f"{mapping.id} – {mapping.text}",
            blocks=build_chart_blocks(mapping, dataset_store.current()),
        )
        return

    error = open_dataset_editor(
        client=client,
        trigger_id=command["trigger_id"],
        mapping=mapping,
        dataset=dataset_store.current(),
    )
    if error is not None:
        respond("Impossible d'ouvrir l'éditeur de données pour le moment.")


def _state_value(state_values: Dict[str, Any], block_id: str) -> Optional[str]:
    return state_values.get(block_id, {}).get("value", {}).get("value")


def _error_block_id(error: DatasetValidationError, key: str) -> str:
    match = _FIELD_ROW_RE.search(error.field or "")
    if match is None:
        return "row_0_positive" if key == COMPARISON_SERIES_KEY else "row_0"
    row = match.group(1)
    return f"row_{row}_positive" if key == COMPARISON_SERIES_KEY else f"row_{row}"


def handle_dataset_editor_submission(
    ack: Ack,
    body: Dict[str, Any],
    client: WebClient,
    view: Dict[str, Any],
    logger: logging.Logger,
    dataset_store: DatasetStore,
) -> None:
    """
    Handles the submission of the dataset editor modal.

    The edits are applied to a private working copy and published only if
    the whole dataset validates; otherwise the modal stays open with an
    error next to the offending input.

    Args:
        ack: A function to acknowledge the Slack view submission.
        body: The full request body from Slack.
        client: The Slack WebClient instance.
        view: The view payload from the submission.
        logger: The logger instance for logging events.
        dataset_store: The store holding the published dataset.
    """

    key = view.get("private_metadata", "")
    user_id = body.get("user", {}).get("id")

    try:
        state_values = view["state"]["values"]
        editor = dataset_store.editor()
        rows = editor.rows(key)

        for index in range(len(rows)):
            if key == COMPARISON_SERIES_KEY:
                editor.update_comparison(
                    index,
                    positive=_state_value(state_values, f"row_{index}_positive"),
                    negative=_state_value(state_values, f"row_{index}_negative"),
                )
            else:
                editor.update_simple(
                    key, index, value=_state_value(state_values, f"row_{index}")
                )

        editor.save()

    except DatasetValidationError as exc:
        logger.warning("Rejected dataset edit for '%s' by '%s': %s", key, user_id, exc)
        ack(response_action="errors", errors={_error_block_id(exc, key): str(exc)})
        return
    except KeyError as e:
        logger.error(f"Error accessing key in view submission: {e}. View: {view}")
        ack()
        return

    ack()
    logger.info("Dataset series '%s' updated by '%s'", key, user_id)

    if user_id:
        try:
            client.chat_postMessage(channel=user_id, text=DATASET_SAVED_TEXT)
        except SlackApiError as exc:
            logger.warning(
                "Failed to confirm dataset update to %s: %s",
                user_id,
                exc.response.get("error"),
            )
