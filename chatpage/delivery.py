"""Correlates NPC dialogues with the "dialogue slowdown" status effect.

The server applies a long slowness effect when a dialogue needs a key press
to continue. The effect and the dialogue text travel separately and can
arrive in either order, so a dialogue seen without a recent effect is held
for one tick before being delivered as unprotected.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from chatpage.styled_text import StyledText
from chatpage.ticks import ScheduledTask, TickScheduler
from chatpage.types import NpcDialogue, NpcDialogueType

logger = logging.getLogger(__name__)

PROTECTION_WINDOW_TICKS = 20
GRACE_TICKS = 1

# (lines, type, force) -> whether the dialogue should be delivered
DeliveryGate = Callable[[Sequence[StyledText], NpcDialogueType, bool], bool]


class DeliveryState(Enum):
    IDLE = "idle"
    AWAITING_SIGNAL = "awaiting_signal"
    DELIVERED = "delivered"


@dataclass(frozen=True, slots=True)
class PendingDialogue:
    """A dialogue held back until the slowdown effect shows up or time runs out."""

    lines: tuple[StyledText, ...]
    dialogue_type: NpcDialogueType
    received_tick: int


class DialogueDeliveryScheduler:
    """Delivers dialogues, tagging each one protected or unprotected.

    At most one dialogue is pending at a time. A NONE dialogue makes any
    pending one obsolete.
    """

    def __init__(
        self,
        ticks: TickScheduler,
        on_dialogue: Callable[[NpcDialogue], None],
        gate: DeliveryGate | None = None,
        protection_window: int = PROTECTION_WINDOW_TICKS,
        grace_ticks: int = GRACE_TICKS,
    ) -> None:
        self._ticks = ticks
        self._on_dialogue = on_dialogue
        self._gate = gate
        self._protection_window = protection_window
        self._grace_ticks = grace_ticks
        self._last_signal_tick: int | None = None
        self._pending: PendingDialogue | None = None
        self._pending_task: ScheduledTask | None = None

    @property
    def state(self) -> DeliveryState:
        return DeliveryState.AWAITING_SIGNAL if self._pending is not None else DeliveryState.IDLE

    @property
    def pending(self) -> PendingDialogue | None:
        return self._pending

    def has_signal(self) -> bool:
        return self._last_signal_tick is not None

    def signal_is_recent(self) -> bool:
        if self._last_signal_tick is None:
            return False
        return self._ticks.current_tick <= self._last_signal_tick + self._protection_window

    def submit(self, lines: Sequence[StyledText], dialogue_type: NpcDialogueType) -> DeliveryState:
        """Hand over a freshly split dialogue.

        Returns DELIVERED if it went out now, AWAITING_SIGNAL if it is held
        for the slowdown effect, and IDLE if it was dropped as a duplicate.
        """
        lines = tuple(lines)

        if dialogue_type is NpcDialogueType.NONE:
            superseded = self._take_pending() is not None
            if superseded:
                logger.debug("Pending dialogue made obsolete by end of dialogue")
            return self._deliver(lines, dialogue_type, False, force=superseded)

        if not dialogue_type.is_bounded:
            return self._deliver(lines, dialogue_type, False)

        if self.signal_is_recent():
            return self._deliver(lines, dialogue_type, True)

        # The effect may still be on its way; wait a tick for it
        self._take_pending()
        self._pending = PendingDialogue(lines, dialogue_type, self._ticks.current_tick)
        self._pending_task = self._ticks.schedule(self._on_grace_expired, self._grace_ticks)
        return DeliveryState.AWAITING_SIGNAL

    def on_signal_raised(self) -> None:
        self._last_signal_tick = self._ticks.current_tick
        pending = self._take_pending()
        if pending is not None:
            self._deliver(pending.lines, pending.dialogue_type, True)

    def on_signal_cleared(self) -> None:
        self._last_signal_tick = None

    def flush(self) -> None:
        """Deliver a held dialogue now, as unprotected."""
        pending = self._take_pending()
        if pending is not None:
            self._deliver(pending.lines, pending.dialogue_type, False)

    def reset(self) -> None:
        self._take_pending()
        self._last_signal_tick = None

    def _on_grace_expired(self) -> None:
        pending = self._take_pending()
        if pending is None:
            return
        # No slowdown arrived in time, otherwise this would already be sent
        logger.debug(
            "No slowdown within %d tick(s), delivering unprotected",
            self._ticks.current_tick - pending.received_tick,
        )
        self._deliver(pending.lines, pending.dialogue_type, False)

    def _take_pending(self) -> PendingDialogue | None:
        pending = self._pending
        self._pending = None
        if self._pending_task is not None:
            self._pending_task.cancel()
            self._pending_task = None
        return pending

    def _deliver(
        self,
        lines: tuple[StyledText, ...],
        dialogue_type: NpcDialogueType,
        is_protected: bool,
        force: bool = False,
    ) -> DeliveryState:
        if self._gate is not None and not self._gate(lines, dialogue_type, force):
            return DeliveryState.IDLE

        logger.info(
            "[NPC] %s dialogue (%s, %d line(s))",
            dialogue_type.value,
            "protected" if is_protected else "unprotected",
            len(lines),
        )
        self._on_dialogue(NpcDialogue(lines, dialogue_type, is_protected))
        return DeliveryState.DELIVERED
