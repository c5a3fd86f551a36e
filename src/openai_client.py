"""Lightweight OpenAI client holder.

Centralises API-key handling behind an object with an explicit lifecycle so
the rest of the codebase can simply do::

    holder = OpenAIClientHolder()
    holder.chat_completion(messages)

One holder is created at start-up (see ``src.app``) and handed to whatever
needs the model, which keeps the dependency easy to replace in tests.
"""
from __future__ import annotations

import logging
import os
import threading
import types
from typing import Any, Dict, List, Optional


class OpenAIClientError(RuntimeError):
    """Raised when client configuration is invalid (e.g., missing API key)."""


_DEFAULT_MODEL = "gpt-4.1"

logger = logging.getLogger(__name__)


def _load_openai() -> types.ModuleType:
    """Import ``openai`` lazily.

    Loading is deferred so that unit tests can inject a stub into
    ``sys.modules`` before this function runs.
    """

    import importlib

    return importlib.import_module("openai")


def _ensure_api_key_present() -> str:
    """Return the ``OPENAI_API_KEY`` env var or raise.

    Raises
    ------
    OpenAIClientError
        If the env var is missing or empty.
    """

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise OpenAIClientError("OPENAI_API_KEY environment variable is not set.")
    return api_key


class OpenAIClientHolder:
    """Owns a single ``openai.OpenAI`` client for the whole process.

    ``init()`` builds the client (reading credentials from the environment
    unless given explicitly); ``get()`` returns it, initialising on first use.
    """

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        organization: Optional[str] = None,
        model: Optional[str] = None,
    ) -> None:
        self._api_key = api_key
        self._organization = organization
        self.model = model or os.getenv("OPENAI_MODEL") or _DEFAULT_MODEL
        self._client: Any = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:  # noqa: D401 – property
        """Return *True* once :py:meth:`init` succeeded."""
        return self._client is not None

    def init(self) -> Any:
        """Create the client (idempotent) and return it.

        Raises
        ------
        OpenAIClientError
            If no API key is configured.
        """
        with self._lock:
            if self._client is not None:
                return self._client

            openai = _load_openai()
            api_key = self._api_key or _ensure_api_key_present()
            organization = self._organization or os.getenv("OPENAI_ORG") or None

            self._client = openai.OpenAI(api_key=api_key, organization=organization)
            logger.info("OpenAI client initialised (model=%s)", self.model)
            return self._client

    def get(self) -> Any:
        """Return the client, initialising it on first call."""
        if self._client is not None:
            return self._client
        return self.init()

    def chat_completion(
        self,
        messages: List[Dict[str, str]],
        *,
        model: Optional[str] = None,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """Wrapper around ``client.chat.completions.create`` with sane defaults.

        Parameters
        ----------
        messages
            Chat messages in OpenAI format.
        model
            Model id to use (default: the holder's ``model``).
        kwargs
            Additional parameters forwarded to ``chat.completions.create``.

        Returns a plain ``dict`` with at least
        ``{"choices": [{"message": {"content": ...}}]}`` so callers never
        depend on the SDK's response classes.
        """

        client = self.get()
        completion = client.chat.completions.create(
            model=model or self.model, messages=messages, **kwargs
        )
        choices = [
            {"message": {"content": choice.message.content}}
            for choice in completion.choices
        ]
        return {"choices": choices, "model": completion.model}
