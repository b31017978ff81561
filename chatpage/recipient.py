"""Recipient (audience) classification of incoming chat lines."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from chatpage.styled_text import StyledText
from chatpage.types import MessageType


class RecipientType(Enum):
    INFO = "Info"
    CLIENTSIDE = "Clientside"
    NPC = "NPC"
    GLOBAL = "Global"
    LOCAL = "Local"
    GUILD = "Guild"
    PARTY = "Party"
    PRIVATE = "Private"
    SHOUT = "Shout"
    PETS = "Pets"
    GAME_MESSAGE = "Game Message"


@dataclass(frozen=True, slots=True)
class RecipientRule:
    """Foreground/background patterns that identify one recipient type.

    A missing pattern means the recipient never occurs on that channel.
    """

    recipient: RecipientType
    foreground: re.Pattern[str] | None = None
    background: re.Pattern[str] | None = None

    def matches(self, text: StyledText, message_type: MessageType) -> bool:
        pattern = self.foreground if message_type is MessageType.FOREGROUND else self.background
        return pattern is not None and text.find(pattern)


# Example lines (coded):
# §7[WYNNTILS] Waypoint saved
# §7[1/3] §2Guard Captain: §aWelcome, traveler.
# §8[105/Ar] §7[WC1]§r §fSteve: anyone selling ores?
# §7[105/Ar] §fSteve§7: hi there
# §3[§b★★§3Steve]§b meet at the bank
# §7[§eSteve§7] §fready
# §7[Steve ➤ Alex] §fgg
# §5Steve [WC1] shouts: §dlfg raid
# §6Pet §2Fluffy§a: §fWoof
# §7You do not have enough mana to cast that spell!
DEFAULT_RULES: tuple[RecipientRule, ...] = (
    RecipientRule(
        RecipientType.CLIENTSIDE,
        foreground=re.compile(r"^§7\[WYNNTILS\] .*$"),
    ),
    RecipientRule(
        RecipientType.NPC,
        foreground=re.compile(r"^§7\[\d+/\d+\] §[25].+: ?§[af].*$"),
        background=re.compile(r"^§8\[\d+/\d+\] §[78].+: ?§7.*$"),
    ),
    RecipientRule(
        RecipientType.GLOBAL,
        foreground=re.compile(r"^§8\[\d{1,3}/[A-Z][a-z]\] §7\[WC\d+\]§r .*$"),
        background=re.compile(r"^§8\[\d{1,3}/[A-Z][a-z]\] §8\[WC\d+\] §7.*$"),
    ),
    RecipientRule(
        RecipientType.LOCAL,
        foreground=re.compile(r"^§7\[\d{1,3}/[A-Z][a-z]\] §f\w{1,16}§7: .*$"),
        background=re.compile(r"^§8\[\d{1,3}/[A-Z][a-z]\] §7\w{1,16}§8: .*$"),
    ),
    RecipientRule(
        RecipientType.GUILD,
        foreground=re.compile(r"^§3\[(§b★{1,5})?§3\w{1,16}\]§b .*$"),
        background=re.compile(r"^§8\[(§7★{1,5})?§8\w{1,16}\]§7 .*$"),
    ),
    RecipientRule(
        RecipientType.PARTY,
        foreground=re.compile(r"^§7\[§e\w{1,16}§7\] .*$"),
        background=re.compile(r"^§8\[§7\w{1,16}§8\] .*$"),
    ),
    RecipientRule(
        RecipientType.PRIVATE,
        foreground=re.compile(r"^§7\[\w{1,16} ➤ \w{1,16}\] .*$"),
        background=re.compile(r"^§8\[\w{1,16} ➤ \w{1,16}\] .*$"),
    ),
    RecipientRule(
        RecipientType.SHOUT,
        foreground=re.compile(r"^§5\w{1,16} \[WC\d+\] shouts: .*$"),
        background=re.compile(r"^§8\w{1,16} \[WC\d+\] shouts: .*$"),
    ),
    RecipientRule(
        RecipientType.PETS,
        foreground=re.compile(r"^§6Pet §2.+§a: .*$"),
        background=re.compile(r"^§8Pet §7.+§8: .*$"),
    ),
    RecipientRule(
        RecipientType.GAME_MESSAGE,
        foreground=re.compile(r"^§[47][A-Z][^\[]*$"),
        background=re.compile(r"^§8[A-Z][^\[]*$"),
    ),
)


class RecipientClassifier:
    """Classifies chat lines by testing an ordered rule list.

    First match wins, so rule order is significant. Lines matching no rule
    are INFO: automated responses and announcements.
    """

    def __init__(self, rules: Iterable[RecipientRule] = DEFAULT_RULES) -> None:
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[RecipientRule, ...]:
        return self._rules

    def classify(self, text: StyledText, message_type: MessageType) -> RecipientType:
        for rule in self._rules:
            if rule.matches(text, message_type):
                return rule.recipient
        return RecipientType.INFO
