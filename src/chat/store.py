import logging
import threading
from typing import Callable, Dict, Optional

from src.chat.controller import ChatController


class ConversationStore:
    """A thread-safe store of chat conversations keyed by Slack thread."""

    def __init__(
        self,
        factory: Callable[[str], ChatController],
        max_conversations: Optional[int] = None,
    ):
        """Create a new :class:`ConversationStore`.

        Args:
            factory: Builds a fresh :class:`ChatController` for a new key.
            max_conversations: Optional maximum number of conversations kept
                in memory.  :pydata:`None` (default) means unlimited.  When
                the limit is reached the oldest conversation is dropped.
        """
        self._factory = factory
        self._conversations: Dict[str, ChatController] = {}
        self._lock = threading.Lock()
        # None == unlimited
        self._max = max_conversations if (max_conversations or 0) > 0 else None
        self._logger = logging.getLogger(__name__)

    @staticmethod
    def key_for(channel_id: str, thread_ts: str) -> str:
        """Return the conversation key for a Slack thread."""
        return f"{channel_id}:{thread_ts}"

    def get_or_create(self, key: str) -> ChatController:
        """Return the conversation for *key*, creating it on first use."""
        with self._lock:
            controller = self._conversations.get(key)
            if controller is not None:
                return controller

            if self._max is not None and len(self._conversations) >= self._max:
                # dicts keep insertion order: the first key is the oldest
                oldest = next(iter(self._conversations))
                del self._conversations[oldest]
                self._logger.info("conversation_evicted", extra={"conversation_id": oldest})

            controller = self._factory(key)
            self._conversations[key] = controller
            self._logger.info("conversation_started", extra={"conversation_id": key})
            return controller

    def get(self, key: str) -> Optional[ChatController]:
        """Return the conversation for *key* or ``None``."""
        with self._lock:
            return self._conversations.get(key)

    def count(self) -> int:
        """Return the number of conversations held in memory."""
        with self._lock:
            return len(self._conversations)
