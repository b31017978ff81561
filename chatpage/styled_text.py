"""Formatted chat text with Minecraft-style section-sign (§) codes."""

from __future__ import annotations

import re
from collections.abc import Iterable

# §0-§9, §a-§f colors, §k-§o styles, §r reset
_RE_FORMATTING_CODE = re.compile(r"§[0-9a-fk-or]", re.IGNORECASE)


class StyledText:
    """Immutable chat line that keeps its formatting codes.

    Equality and hashing are structural over the coded string, so two lines
    with the same words but different colors are different lines.
    """

    __slots__ = ("_coded",)

    def __init__(self, coded: str = "") -> None:
        self._coded = coded

    @classmethod
    def of(cls, lines: Iterable[str]) -> list[StyledText]:
        return [cls(line) for line in lines]

    def get_string(self) -> str:
        """Return the text with formatting codes."""
        return self._coded

    def get_string_without_formatting(self) -> str:
        return _RE_FORMATTING_CODE.sub("", self._coded)

    def find(self, pattern: re.Pattern[str]) -> bool:
        """Search the coded string for a pattern."""
        return pattern.search(self._coded) is not None

    def matches(self, pattern: re.Pattern[str]) -> bool:
        return pattern.fullmatch(self._coded) is not None

    def is_empty(self) -> bool:
        return not self._coded

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StyledText):
            return NotImplemented
        return self._coded == other._coded

    def __hash__(self) -> int:
        return hash(self._coded)

    def __len__(self) -> int:
        return len(self._coded)

    def __str__(self) -> str:
        return self._coded

    def __repr__(self) -> str:
        return f"StyledText({self._coded!r})"
