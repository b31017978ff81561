"""Splits NPC dialogue "screens" into dialogue and background chat.

While an NPC dialogue is open, the server re-sends the whole chat history
about once a second with the dialogue appended at the bottom, so the vanilla
chat window keeps showing it. The page detector hands us each such screen,
newest line first. From it we recover:

- the dialogue body, framed by a trailing "Press SHIFT to continue" or
  "Select an option to continue" line and blank separators;
- chat lines that arrived during the dialogue. These are grayed out and
  carry no hover/click data, so they are kept apart as background lines.

When the dialogue closes the server sends a "clear screen" of filler glyphs
followed by the history, which may still repeat the last dialogue. That
repetition is diffed away against the last dialogue we delivered.
"""

from __future__ import annotations

import logging
import re
from collections import deque
from collections.abc import Sequence

from chatpage.styled_text import StyledText
from chatpage.types import NpcDialogueType, PageResult

logger = logging.getLogger(__name__)

# §7Press §fSHIFT §7to continue
NPC_CONFIRM_PATTERN = re.compile(r"^ *§[47]Press §[cf](SNEAK|SHIFT) §[47]to continue$")

# §7Select §fan option §7to continue
NPC_SELECT_PATTERN = re.compile(r"^ *§[47cf](Select|CLICK) §[47cf]an option (§[47])?to continue$")

# Blank, a lone reset code, or the server's "clear screen" filler glyphs
EMPTY_LINE_PATTERN = re.compile(r"^\s*(§r|À+)?\s*$")


def is_empty_line(line: StyledText) -> bool:
    return line.find(EMPTY_LINE_PATTERN)


def _preview(lines: Sequence[StyledText]) -> list[str]:
    return [line.get_string()[:60] for line in lines]


class ChatPageProcessor:
    """Owns the last-delivered dialogue snapshots and diffs pages against them."""

    def __init__(self) -> None:
        self._last_screen_dialogue: tuple[StyledText, ...] = ()
        self._last_confirmationless_dialogue: StyledText | None = None

    @property
    def last_screen_dialogue(self) -> tuple[StyledText, ...]:
        return self._last_screen_dialogue

    @property
    def last_confirmationless_dialogue(self) -> StyledText | None:
        return self._last_confirmationless_dialogue

    def reset(self) -> None:
        self._last_screen_dialogue = ()
        self._last_confirmationless_dialogue = None

    def process_page(
        self,
        page: Sequence[StyledText],
        expect_confirmationless: bool = False,
    ) -> PageResult | None:
        """Split a completed page, newest line first.

        Returns None when the page carries nothing to deliver (a continue
        marker that got merged into the previous dialogue). An empty page
        means the dialogue went away.
        """
        lines = list(page)
        if not lines:
            return PageResult(NpcDialogueType.NONE)

        first = lines[0]
        is_npc_confirm = first.find(NPC_CONFIRM_PATTERN)
        is_npc_select = first.find(NPC_SELECT_PATTERN)

        if is_npc_confirm or is_npc_select:
            return self._split_bounded_dialogue(lines[1:], is_npc_select)

        if expect_confirmationless:
            if len(lines) != 1:
                logger.warning(
                    "Unexpected line count for confirmationless dialogue (%d): %s",
                    len(lines), _preview(lines),
                )
            return PageResult(NpcDialogueType.CONFIRMATIONLESS, (lines[0],))

        return self._split_history(lines)

    def _split_bounded_dialogue(self, lines: list[StyledText], is_selection: bool) -> PageResult | None:
        if not lines:
            logger.info("[NPC] Control message appended to the last dialogue")
            return None

        if lines[0].is_empty():
            lines = lines[1:]
        else:
            logger.warning("Malformed dialogue, no blank line after marker: %r", lines[0].get_string())

        dialogue: list[StyledText] = []
        new_chat_lines: list[StyledText] = []
        # Selection screens: options, blank separator, question, blank.
        # The question section only counts once its closing blank shows up.
        question: list[StyledText] | None = None
        done = False

        for line in lines:
            if done:
                if not is_empty_line(line):
                    new_chat_lines.append(line)
                continue

            if is_empty_line(line):
                if is_selection and question is None:
                    question = [line]
                    continue
                if question is not None:
                    dialogue.extend(question)
                    question = None
                done = True
            elif question is not None:
                question.append(line)
            else:
                dialogue.append(line)

        if question is not None:
            logger.warning("Selection dialogue has an unterminated section: %s", _preview(question[1:]))
            new_chat_lines.extend(line for line in question if not is_empty_line(line))

        if new_chat_lines:
            logger.debug("Leftover background lines after dialogue: %s", _preview(new_chat_lines))

        dialogue_type = NpcDialogueType.SELECTION if is_selection else NpcDialogueType.NORMAL
        if not dialogue:
            dialogue_type = NpcDialogueType.NONE
        return PageResult(dialogue_type, tuple(dialogue), tuple(new_chat_lines))

    def _split_history(self, lines: list[StyledText]) -> PageResult:
        # Drop the "clear screen" filler and blank lines at the bottom
        start = 0
        while start < len(lines) and is_empty_line(lines[start]):
            start += 1

        # Back into the order the lines were received
        remaining = deque(reversed(lines[start:]))
        repeated_dialogue = list(reversed(self._last_screen_dialogue))
        new_chat_lines: list[StyledText] = []

        while remaining:
            line = remaining.popleft()
            if not is_empty_line(line):
                new_chat_lines.append(line)
                continue

            # A blank line may introduce a repeat of the last dialogue
            if not remaining:
                break

            if remaining[0] == self._last_confirmationless_dialogue:
                if len(remaining) > 1:
                    logger.warning(
                        "Unexpected lines after a confirmationless dialogue: %s",
                        _preview(list(remaining)[1:]),
                    )
                break

            for dialogue_line in repeated_dialogue:
                if not remaining or remaining[0] != dialogue_line:
                    break
                remaining.popleft()

        if new_chat_lines:
            logger.debug("Background lines found in history page: %s", _preview(new_chat_lines))

        return PageResult(NpcDialogueType.NONE, (), tuple(new_chat_lines))

    def accept(self, dialogue: Sequence[StyledText], dialogue_type: NpcDialogueType, force: bool = False) -> bool:
        """Record a dialogue about to be delivered.

        Returns False for a re-send of the current screen dialogue, which must
        not be delivered again. Confirmationless dialogues are always accepted
        since the server may legitimately show the same prompt twice.
        """
        lines = tuple(dialogue)

        if dialogue_type is NpcDialogueType.CONFIRMATIONLESS:
            if len(lines) != 1:
                logger.warning("Confirmationless dialogues should have one line: %s", _preview(lines))
            if lines:
                self._last_confirmationless_dialogue = lines[0]
            return True

        if lines == self._last_screen_dialogue and not force:
            logger.debug("Dialogue unchanged, not delivering: %s", _preview(lines))
            return False

        self._last_screen_dialogue = lines
        return True
