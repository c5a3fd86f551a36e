import atexit
import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from slack_bolt import Ack, App, Respond
from slack_sdk import WebClient

from src.analysis.insight import InsightGenerator
from src.chat.controller import ChatController
from src.chat.store import ConversationStore
from src.openai_client import OpenAIClientHolder
from src.reporting.config import SURVEY_DATA_COMMAND
from src.slack_bot.handlers import (
    handle_app_mention,
    handle_copy_button_click,
    handle_dataset_editor_submission,
    handle_survey_data_command,
)
from src.slack_bot.views import COPY_ACTION_ID, DATASET_EDITOR_CALLBACK_ID
from src.survey.store import DatasetStore

# .env values (Slack and OpenAI credentials) for local runs
load_dotenv()

# Root logging; SLACK_LOG_LEVEL also drives Bolt's own loggers
logging_level = os.environ.get("SLACK_LOG_LEVEL", "INFO")
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging_level
)
logger = logging.getLogger(__name__)

# Offline runs (tests, CI) skip the auth.test call made at start-up
_token_verification_enabled_env = os.getenv(
    "SLACK_BOLT_TOKEN_VERIFICATION_ENABLED", "true"
).lower()
_token_verification_enabled = _token_verification_enabled_env != "false"

app = App(
    token=os.environ.get("SLACK_BOT_TOKEN"),
    process_before_response=True,
    token_verification_enabled=_token_verification_enabled,
)


# Resolve max in-memory conversations (optional limit)
def _get_max_conversations_from_env() -> Optional[int]:  # noqa: WPS430 – tiny helper
    raw_val = os.getenv("MAX_CONVERSATIONS")
    if not raw_val:
        return None
    try:
        parsed = int(raw_val)
        if parsed <= 0:
            logger.warning(
                "Ignoring MAX_CONVERSATIONS=%s (must be positive int)", raw_val
            )
            return None
        return parsed
    except ValueError:
        logger.warning("Invalid MAX_CONVERSATIONS value '%s'; must be integer.", raw_val)
        return None


# One OpenAI client for the whole process, initialised on first question
openai_holder = OpenAIClientHolder()
generator = InsightGenerator(openai_holder)

# Published survey dataset (copy-on-write)
dataset_store = DatasetStore()


def _new_conversation(key: str) -> ChatController:
    return ChatController(generator, dataset_store.current, conversation_id=key)


conversation_store = ConversationStore(
    _new_conversation, max_conversations=_get_max_conversations_from_env()
)

# Model calls block for seconds; mentions are answered off the listener thread
executor = ThreadPoolExecutor(max_workers=10)


def shutdown_executor():
    """Wait for in-flight answers, then stop the worker pool."""
    logger.info("Stopping answer workers...")
    executor.shutdown(wait=True)
    logger.info("Answer workers stopped.")


atexit.register(shutdown_executor)


# Debug trace of every payload Bolt receives
@app.middleware
def log_request(logger, body, next):
    logger.debug(f"Received event: {body}")
    return next()


# ------------------------------------------------------------------
# Thread helper utilities
# ------------------------------------------------------------------


def _log_future_exception(fut: Future) -> None:  # noqa: WPS430 – small util
    """Logs any exception raised by a completed *Future*."""
    exc = fut.exception()
    if exc is not None:
        logger.exception("Background task raised an exception: %s", exc, exc_info=exc)


def submit_background(func, /, *args, **kwargs) -> Future:  # noqa: WPS110
    """Submit *func* to the shared thread pool with automatic error logging."""

    fut = executor.submit(func, *args, **kwargs)
    fut.add_done_callback(_log_future_exception)
    return fut


@app.event("app_mention")
def app_mention_wrapper(event: Dict[str, Any], client: WebClient, logger: logging.Logger):
    submit_background(
        handle_app_mention,
        event=event,
        client=client,
        logger=logger,
        conversation_store=conversation_store,
        dataset_store=dataset_store,
    )


@app.command(SURVEY_DATA_COMMAND)
def survey_data_command_wrapper(
    ack: Ack,
    command: Dict[str, Any],
    client: WebClient,
    logger: logging.Logger,
    respond: Respond,
):
    handle_survey_data_command(
        ack=ack,
        command=command,
        client=client,
        logger=logger,
        respond=respond,
        dataset_store=dataset_store,
    )


@app.view(DATASET_EDITOR_CALLBACK_ID)
def dataset_editor_submission_wrapper(ack, body, client, view, logger):
    handle_dataset_editor_submission(
        ack=ack,
        body=body,
        client=client,
        view=view,
        logger=logger,
        dataset_store=dataset_store,
    )


@app.action(COPY_ACTION_ID)
def copy_button_click_wrapper(ack, body, client, logger):  # noqa: WPS110 – slack signature
    handle_copy_button_click(
        ack=ack,
        body=body,
        client=client,
        logger=logger,
        conversation_store=conversation_store,
    )


@app.error
def custom_error_handler(error, body, logger):
    logger.exception(f"Error handling request: {error}")
    logger.debug(f"Request body: {body}")


# Socket Mode startup lives in src/main.py.
