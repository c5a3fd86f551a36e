"""Conversation state for one chat: messages, single-flight sends, enrichment."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Literal, Optional, Tuple

from src.charts.markers import strip_chart_markers
from src.enrichment.pipeline import enrich_response
from src.exceptions import RequestInFlightError
from src.survey.dataset import SurveyDataset

logger = logging.getLogger(__name__)

Role = Literal["user", "assistant"]
Generator = Callable[[str, SurveyDataset], str]
DatasetProvider = Callable[[], SurveyDataset]

GREETING_TEXT = (
    "Bonjour ! Je suis **Fabrice**, votre assistant IA.\n\n"
    "Je suis là pour analyser vos données d'enquête. Demandez-moi par exemple :\n"
    "- *\"Quelle est la satisfaction globale ?\"*\n"
    "- *\"Fais-moi un résumé des points forts.\"*\n"
    "- *\"Compare les zones d'habitation.\"*"
)
RESET_GREETING_TEXT = (
    "Bonjour ! Je suis **Fabrice**, votre assistant IA.\n\n"
    "Comment puis-je vous aider aujourd'hui ?"
)
APOLOGY_TEXT = "Désolé, une erreur technique est survenue."


@dataclass(frozen=True)
class Message:
    """One visible chat message."""

    role: Role
    text: str


@dataclass(frozen=True)
class Reply:
    """An assistant answer, its position in the history and the dataset it was built from."""

    message: Message
    index: int
    dataset: SurveyDataset


class ChatController:
    """Orchestrates one conversation with the survey assistant.

    Only one question may wait on the model at a time; a second ``send``
    while the first is pending raises :class:`RequestInFlightError` instead of
    queueing.
    """

    def __init__(
        self,
        generator: Generator,
        dataset_provider: DatasetProvider,
        *,
        conversation_id: str = "default",
    ) -> None:
        self._generator = generator
        self._dataset_provider = dataset_provider
        self.conversation_id = conversation_id
        self._messages: Tuple[Message, ...] = (Message("assistant", GREETING_TEXT),)
        self._state_lock = threading.Lock()
        self._inflight = threading.Lock()

    @property
    def messages(self) -> Tuple[Message, ...]:
        with self._state_lock:
            return self._messages

    @property
    def loading(self) -> bool:  # noqa: D401 – property
        """Return *True* while a question is waiting on the model."""
        return self._inflight.locked()

    def _append(self, message: Message) -> int:
        with self._state_lock:
            self._messages = self._messages + (message,)
            return len(self._messages) - 1

    def send(self, text: Optional[str]) -> Optional[Reply]:
        """Ask *text* and return the assistant's (enriched) reply.

        The reply records the index it was appended at and the dataset
        snapshot its tables were computed from, so callers never re-read
        either.  Returns ``None`` for blank input.  Generator failures are
        logged and answered with a fixed apology message.

        Raises
        ------
        RequestInFlightError
            If a previous question in this conversation is still pending.
        """

        prompt = (text or "").strip()
        if not prompt:
            return None

        if not self._inflight.acquire(blocking=False):
            logger.info(
                "chat_request_rejected", extra={"conversation_id": self.conversation_id}
            )
            raise RequestInFlightError(
                f"Conversation {self.conversation_id} already has a pending request."
            )

        try:
            self._append(Message("user", prompt))
            dataset = self._dataset_provider()
            try:
                raw = self._generator(prompt, dataset)
                reply = Message("assistant", enrich_response(prompt, raw, dataset))
            except Exception as exc:  # noqa: BLE001 – every failure maps to the apology
                logger.error(
                    "Answer generation failed for conversation %s: %s",
                    self.conversation_id,
                    exc,
                    exc_info=True,
                )
                reply = Message("assistant", APOLOGY_TEXT)

            index = self._append(reply)
            logger.info(
                "chat_reply_appended",
                extra={"conversation_id": self.conversation_id, "message_index": index},
            )
            return Reply(message=reply, index=index, dataset=dataset)
        finally:
            self._inflight.release()

    def copy_text(self, index: int) -> str:
        """Return the text of message *index* without chart markers.

        Raises
        ------
        IndexError
            If *index* does not point at a message.
        """
        messages = self.messages
        if not 0 <= index < len(messages):
            raise IndexError(f"No message #{index} in conversation {self.conversation_id}.")
        return strip_chart_markers(messages[index].text)

    def reset(self) -> None:
        """Clear the history back to a single greeting."""
        with self._state_lock:
            self._messages = (Message("assistant", RESET_GREETING_TEXT),)
        logger.info("chat_reset", extra={"conversation_id": self.conversation_id})
