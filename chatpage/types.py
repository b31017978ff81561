"""Shared value types for chat routing and NPC dialogue delivery."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from chatpage.styled_text import StyledText


class MessageType(Enum):
    # Normal one-shot chat line, with hover/click metadata intact
    FOREGROUND = "foreground"
    # Line recovered from inside a screen dump, gray and without metadata
    BACKGROUND = "background"


class NpcDialogueType(Enum):
    NONE = "none"
    CONFIRMATIONLESS = "confirmationless"
    NORMAL = "normal"
    SELECTION = "selection"

    @property
    def is_bounded(self) -> bool:
        """True for dialogues framed by a "continue" marker line."""
        return self in (NpcDialogueType.NORMAL, NpcDialogueType.SELECTION)


@dataclass(frozen=True, slots=True)
class NpcDialogue:
    """A dialogue handed to the dialogue consumer."""

    lines: tuple[StyledText, ...]
    dialogue_type: NpcDialogueType
    is_protected: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.lines


@dataclass(frozen=True, slots=True)
class PageResult:
    """Outcome of splitting one screen page.

    ``new_chat_lines`` are background chat lines found between repeated
    history and the dialogue. They are computed but not delivered.
    """

    dialogue_type: NpcDialogueType
    dialogue: tuple[StyledText, ...] = ()
    new_chat_lines: tuple[StyledText, ...] = field(default=())
