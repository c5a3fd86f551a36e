# tests/test_app.py
import threading
from unittest.mock import MagicMock, patch

import src.app as app
from src.app import (
    _get_max_conversations_from_env,
    _new_conversation,
    app_mention_wrapper,
    copy_button_click_wrapper,
    custom_error_handler,
    dataset_editor_submission_wrapper,
    log_request,
    submit_background,
    survey_data_command_wrapper,
)
from src.chat.controller import ChatController

# --- Basic Handlers and Middleware Tests --- #


@patch("src.app.logger")
def test_log_request_middleware(mock_app_logger):
    """Test that the log_request middleware logs the body and calls next."""
    mock_next = MagicMock()
    mock_body = {"event": {"type": "message"}}
    log_request(logger=mock_app_logger, body=mock_body, next=mock_next)
    mock_app_logger.debug.assert_called_once_with(f"Received event: {mock_body}")
    mock_next.assert_called_once()


@patch("src.app.logger")
def test_custom_error_handler(mock_app_logger):
    """Test that the custom_error_handler logs the error and body."""
    test_error = ValueError("Test error")
    mock_body = {"event": {"type": "app_mention"}}
    custom_error_handler(error=test_error, body=mock_body, logger=mock_app_logger)
    mock_app_logger.exception.assert_called_once_with(
        f"Error handling request: {test_error}"
    )
    mock_app_logger.debug.assert_called_once_with(f"Request body: {mock_body}")


# --- Listener wiring --- #


@patch("src.app.submit_background")
def test_app_mention_runs_in_background(mock_submit):
    event = {"channel": "C1", "ts": "1.0", "text": "<@UBOT> Q7"}
    client, logger = MagicMock(), MagicMock()

    app_mention_wrapper(event=event, client=client, logger=logger)

    mock_submit.assert_called_once_with(
        app.handle_app_mention,
        event=event,
        client=client,
        logger=logger,
        conversation_store=app.conversation_store,
        dataset_store=app.dataset_store,
    )


@patch("src.app.handle_survey_data_command")
def test_survey_data_command_wrapper(mock_handler):
    ack, command, client, logger, respond = (MagicMock() for _ in range(5))
    survey_data_command_wrapper(
        ack=ack, command=command, client=client, logger=logger, respond=respond
    )
    mock_handler.assert_called_once_with(
        ack=ack,
        command=command,
        client=client,
        logger=logger,
        respond=respond,
        dataset_store=app.dataset_store,
    )


@patch("src.app.handle_dataset_editor_submission")
def test_dataset_editor_submission_wrapper(mock_handler):
    ack, body, client, view, logger = (MagicMock() for _ in range(5))
    dataset_editor_submission_wrapper(ack, body, client, view, logger)
    assert mock_handler.call_args.kwargs["dataset_store"] is app.dataset_store


@patch("src.app.handle_copy_button_click")
def test_copy_button_wrapper(mock_handler):
    ack, body, client, logger = (MagicMock() for _ in range(4))
    copy_button_click_wrapper(ack, body, client, logger)
    assert mock_handler.call_args.kwargs["conversation_store"] is app.conversation_store


def test_new_conversation_reads_published_dataset():
    controller = _new_conversation("C1:1.0")
    assert isinstance(controller, ChatController)
    assert controller.conversation_id == "C1:1.0"
    assert controller._dataset_provider() is app.dataset_store.current()


# --- Configuration --- #


def test_max_conversations_from_env(monkeypatch):
    monkeypatch.delenv("MAX_CONVERSATIONS", raising=False)
    assert _get_max_conversations_from_env() is None

    monkeypatch.setenv("MAX_CONVERSATIONS", "25")
    assert _get_max_conversations_from_env() == 25

    for bad in ("0", "-3", "many"):
        monkeypatch.setenv("MAX_CONVERSATIONS", bad)
        assert _get_max_conversations_from_env() is None


# --- Background thread error handling --- #


def _boom() -> None:  # noqa: WPS110 – test helper
    raise RuntimeError("boom")


def test_submit_background_logs_exception():
    logged = threading.Event()
    with patch.object(app.logger, "exception", side_effect=lambda *a, **k: logged.set()) as mock_exc:
        fut = submit_background(_boom)
        fut.exception(timeout=1)  # wait for completion without raising
        # done-callbacks run in the worker right after the future resolves
        assert logged.wait(timeout=1)
        mock_exc.assert_called_once()
        args, _ = mock_exc.call_args
        assert "boom" in str(args[1])  # second positional arg is exception instance
