"""Routing of ordinary (non-screen) chat lines to listeners."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from chatpage.recipient import RecipientClassifier, RecipientType
from chatpage.styled_text import StyledText
from chatpage.types import MessageType

logger = logging.getLogger(__name__)


@dataclass
class ChatMessageReceived:
    """Posted for every routed line. Cancel it to drop the line."""

    message: StyledText
    message_type: MessageType
    recipient_type: RecipientType
    canceled: bool = False

    def cancel(self) -> None:
        self.canceled = True


@dataclass
class ChatMessageEdit:
    """Posted after ChatMessageReceived. Listeners may replace ``message``."""

    message: StyledText
    message_type: MessageType
    recipient_type: RecipientType

    def set_message(self, message: StyledText) -> None:
        self.message = message


class ChatLineRouter:
    """Classifies a chat line and runs it past received/edit listeners.

    NPC lines seen while dialogue extraction is active are not chat at all:
    they are confirmationless dialogues and go to ``on_confirmationless``.
    """

    def __init__(
        self,
        classifier: RecipientClassifier,
        on_confirmationless: Callable[[StyledText], None],
        extraction_required: Callable[[], bool],
        log_chat_lines: bool = True,
    ) -> None:
        self._classifier = classifier
        self._on_confirmationless = on_confirmationless
        self._extraction_required = extraction_required
        self._log_chat_lines = log_chat_lines
        self._received_listeners: list[Callable[[ChatMessageReceived], None]] = []
        self._edit_listeners: list[Callable[[ChatMessageEdit], None]] = []

    def add_received_listener(self, listener: Callable[[ChatMessageReceived], None]) -> None:
        self._received_listeners.append(listener)

    def add_edit_listener(self, listener: Callable[[ChatMessageEdit], None]) -> None:
        self._edit_listeners.append(listener)

    def route(
        self,
        text: StyledText,
        message_type: MessageType = MessageType.FOREGROUND,
    ) -> StyledText | None:
        """Return the (possibly rewritten) line, or None to suppress it."""
        if self._log_chat_lines:
            # § codes would be stripped by most log viewers
            logger.info("[CHAT] %s", text.get_string().replace("§", "&"))

        recipient_type = self._classifier.classify(text, message_type)

        if recipient_type is RecipientType.NPC:
            if self._extraction_required():
                self._on_confirmationless(text)
                return None
            recipient_type = RecipientType.INFO

        received = ChatMessageReceived(text, message_type, recipient_type)
        for listener in self._received_listeners:
            listener(received)
            if received.canceled:
                break
        if received.canceled:
            logger.debug("Chat line canceled: %r", text.get_string()[:60])
            return None

        edit = ChatMessageEdit(text, message_type, recipient_type)
        for listener in self._edit_listeners:
            listener(edit)
        return edit.message
