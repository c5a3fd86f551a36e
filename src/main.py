"""Run the survey assistant over Slack Socket Mode.

``src.app`` only wires listeners and shared state, so tests can import it
freely; connecting to Slack happens here, when this module runs as a script::

    python -m src.main
"""
from __future__ import annotations

import os
import sys
from contextlib import suppress

from slack_bolt.adapter.socket_mode import SocketModeHandler

from src.app import app, logger, openai_holder, shutdown_executor
from src.openai_client import OpenAIClientError


def _check_startup() -> str:
    """Return the app-level token, exiting when the bot cannot work."""

    app_token = os.getenv("SLACK_APP_TOKEN")
    if not app_token:
        logger.error("SLACK_APP_TOKEN must be set to connect through Socket Mode.")
        sys.exit(1)

    # Without a model key every question would end in the apology message
    try:
        openai_holder.init()
    except OpenAIClientError as exc:
        logger.error("Cannot start the survey assistant: %s", exc)
        sys.exit(1)

    return app_token


def main() -> None:  # pragma: no cover
    """Connect to Slack and serve events until interrupted."""

    handler = SocketModeHandler(app, _check_startup())
    logger.info("Survey assistant connected; waiting for mentions and commands.")

    try:
        handler.start()  # blocks
    except KeyboardInterrupt:  # pragma: no cover
        logger.info("Interrupted, stopping.")
    finally:
        with suppress(Exception):
            shutdown_executor()
        logger.info("Survey assistant stopped.")


if __name__ == "__main__":  # pragma: no cover
    main()
