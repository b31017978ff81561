"""Entry point for chat traffic: lines, pages, ticks, status effects.

Flow: transport -> page detector -> (screen) page processor -> dialogue
delivery, or (single line) router -> chat listeners. A tick source drives
both the page detector and the dialogue delivery grace period.

All methods must be called from the same thread, the one driving ticks.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Protocol

from chatpage.config import HandlerConfig
from chatpage.delivery import DeliveryState, DialogueDeliveryScheduler
from chatpage.page_processor import ChatPageProcessor
from chatpage.recipient import RecipientClassifier
from chatpage.router import ChatLineRouter
from chatpage.styled_text import StyledText
from chatpage.ticks import TickScheduler
from chatpage.types import NpcDialogue, NpcDialogueType

logger = logging.getLogger(__name__)

# The server applies this exact effect while a dialogue waits for a key press
SLOWDOWN_EFFECT = "slowness"
SLOWDOWN_AMPLIFIER = 3
SLOWDOWN_DURATION_TICKS = 32767


class PageDetector(Protocol):
    """Decides whether incoming lines form a multi-line screen.

    Completed screens are handed back through ``ChatHandler.handle_page``,
    single NPC lines through ``ChatHandler.handle_confirmationless_candidate``
    and ordinary lines through ``ChatHandler.route_chat_line``.
    """

    def handle_incoming_chat_line(self, text: StyledText) -> StyledText | None:
        ...

    def on_tick(self) -> None:
        ...

    def reset(self) -> None:
        ...


class ChatHandler:
    """Wires the page processor, dialogue delivery and chat routing together.

    Usage:
        handler = ChatHandler(on_dialogue=show_dialogue)
        handler.router.add_received_listener(on_chat)
        handler.on_connect()
        handler.handle_chat_line(StyledText("§7[§eSteve§7] §fready"))
        handler.on_tick()
    """

    def __init__(
        self,
        on_dialogue: Callable[[NpcDialogue], None],
        config: HandlerConfig | None = None,
        classifier: RecipientClassifier | None = None,
        ticks: TickScheduler | None = None,
        page_detector: PageDetector | None = None,
    ) -> None:
        self._config = config or HandlerConfig()
        self._ticks = ticks or TickScheduler()
        self._page_detector = page_detector
        self._page_processor = ChatPageProcessor()
        self._delivery = DialogueDeliveryScheduler(
            self._ticks,
            on_dialogue,
            gate=self._page_processor.accept,
            protection_window=self._config.protection_window_ticks,
            grace_ticks=self._config.grace_ticks,
        )
        self._router = ChatLineRouter(
            classifier or RecipientClassifier(),
            on_confirmationless=self.handle_confirmationless_candidate,
            extraction_required=self.needs_page_detector,
            log_chat_lines=self._config.log_chat_lines,
        )

    @property
    def router(self) -> ChatLineRouter:
        return self._router

    @property
    def page_processor(self) -> ChatPageProcessor:
        return self._page_processor

    @property
    def delivery(self) -> DialogueDeliveryScheduler:
        return self._delivery

    @property
    def ticks(self) -> TickScheduler:
        return self._ticks

    def needs_page_detector(self) -> bool:
        return self._config.needs_page_detector

    def set_needs_page_detector(self, value: bool) -> None:
        self._config.needs_page_detector = value
        logger.info("NPC dialogue extraction %s", "enabled" if value else "disabled")

    # Lifecycle

    def on_connect(self) -> None:
        self.reset()
        logger.info("Connected, chat state reset")

    def on_disconnect(self) -> None:
        self._delivery.flush()
        self.reset()
        logger.info("Disconnected, chat state reset")

    def reset(self) -> None:
        self._delivery.reset()
        self._page_processor.reset()
        if self._page_detector is not None:
            self._page_detector.reset()

    def on_tick(self) -> None:
        # Scheduled tasks first, so work queued by the detector waits a full tick
        self._ticks.tick()
        if self._page_detector is not None and self.needs_page_detector():
            self._page_detector.on_tick()

    # Chat input

    def handle_chat_line(self, text: StyledText) -> StyledText | None:
        """Process one incoming line. Returns the line to show, or None to hide it."""
        if self._page_detector is not None and self.needs_page_detector():
            return self._page_detector.handle_incoming_chat_line(text)
        return self.route_chat_line(text)

    def route_chat_line(self, text: StyledText) -> StyledText | None:
        return self._router.route(text)

    def handle_page(self, page: Sequence[StyledText], last_page: bool = False) -> DeliveryState:
        """Callback from the page detector with a completed screen, newest line first."""
        if last_page:
            logger.debug("Last page of dialogue screen (%d line(s))", len(page))
        result = self._page_processor.process_page(page)
        if result is None:
            return DeliveryState.IDLE
        return self._delivery.submit(result.dialogue, result.dialogue_type)

    def handle_confirmationless_candidate(self, text: StyledText) -> DeliveryState:
        result = self._page_processor.process_page([text], expect_confirmationless=True)
        if result is None:
            return DeliveryState.IDLE
        return self._delivery.submit(result.dialogue, result.dialogue_type)

    def handle_end_of_dialogue(self) -> DeliveryState:
        # No new lines since the last real chat: the dialogue may have vanished
        return self._delivery.submit((), NpcDialogueType.NONE)

    # Timing signal

    def on_timing_signal_raised(self) -> None:
        self._delivery.on_signal_raised()

    def on_timing_signal_cleared(self) -> None:
        self._delivery.on_signal_cleared()

    def on_status_effect_update(self, effect: str, amplifier: int, duration_ticks: int) -> None:
        if (
            effect == SLOWDOWN_EFFECT
            and amplifier == SLOWDOWN_AMPLIFIER
            and duration_ticks == SLOWDOWN_DURATION_TICKS
        ):
            self.on_timing_signal_raised()

    def on_status_effect_remove(self, effect: str) -> None:
        if effect == SLOWDOWN_EFFECT:
            self.on_timing_signal_cleared()

    def has_slowdown(self) -> bool:
        return self._delivery.has_signal()
