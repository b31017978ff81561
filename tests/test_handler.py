"""Tests for the chat handler wiring."""

import pytest

from chatpage.config import HandlerConfig
from chatpage.handler import ChatHandler
from chatpage.recipient import RecipientType
from chatpage.styled_text import StyledText
from chatpage.types import NpcDialogueType

CONFIRM = "§7Press §fSHIFT §7to continue"
SELECT = "§7Select §fan option §7to continue"
NPC_LINE = StyledText("§7[1/1] §2Guard: §aMove along.")


def page(*lines):
    return StyledText.of(lines)


class FakeDetector:
    def __init__(self):
        self.lines = []
        self.ticks = 0
        self.resets = 0

    def handle_incoming_chat_line(self, text):
        self.lines.append(text)
        return text

    def on_tick(self):
        self.ticks += 1

    def reset(self):
        self.resets += 1


@pytest.fixture
def dialogues():
    return []


@pytest.fixture
def handler(dialogues):
    return ChatHandler(on_dialogue=dialogues.append)


def slowdown(handler):
    handler.on_status_effect_update("slowness", 3, 32767)


class TestScreenDialogues:
    """Test pages end to end."""

    def test_normal_dialogue_unprotected(self, handler, dialogues):
        handler.handle_page(page(CONFIRM, "", "Hello traveler."))
        assert dialogues == []
        handler.on_tick()
        assert len(dialogues) == 1
        assert dialogues[0].dialogue_type == NpcDialogueType.NORMAL
        assert dialogues[0].lines == (StyledText("Hello traveler."),)
        assert not dialogues[0].is_protected

    def test_slowdown_next_to_dialogue_protects_it(self, handler, dialogues):
        handler.handle_page(page(CONFIRM, "", "Hello traveler."))
        slowdown(handler)
        handler.on_tick()
        assert len(dialogues) == 1
        assert dialogues[0].is_protected

    def test_slowdown_before_dialogue(self, handler, dialogues):
        slowdown(handler)
        assert handler.has_slowdown()
        handler.handle_page(page(CONFIRM, "", "Hello traveler."))
        assert len(dialogues) == 1
        assert dialogues[0].is_protected

    def test_other_effects_ignored(self, handler):
        handler.on_status_effect_update("slowness", 2, 32767)
        handler.on_status_effect_update("slowness", 3, 200)
        handler.on_status_effect_update("blindness", 3, 32767)
        assert not handler.has_slowdown()

    def test_effect_remove_clears(self, handler):
        slowdown(handler)
        handler.on_status_effect_remove("blindness")
        assert handler.has_slowdown()
        handler.on_status_effect_remove("slowness")
        assert not handler.has_slowdown()

    def test_same_selection_twice_delivered_once(self, handler, dialogues):
        selection = page(SELECT, "", "Option A", "Option B", "", "NewChat1")
        handler.handle_page(selection)
        handler.on_tick()
        handler.handle_page(selection)
        handler.on_tick()
        assert len(dialogues) == 1
        assert dialogues[0].dialogue_type == NpcDialogueType.SELECTION
        assert dialogues[0].lines == (StyledText("Option A"), StyledText("Option B"))

    def test_history_resend_leaks_no_chat(self, handler, dialogues):
        chat = []
        handler.router.add_received_listener(chat.append)
        slowdown(handler)
        handler.handle_page(page(CONFIRM, "", "Line two", "Line one", "", "old chat"))
        handler.handle_page(page("Line two", "Line one", "", "old chat"))
        assert chat == []
        assert [d.dialogue_type for d in dialogues] == [NpcDialogueType.NORMAL, NpcDialogueType.NONE]

    def test_end_of_dialogue(self, handler, dialogues):
        slowdown(handler)
        handler.handle_page(page(CONFIRM, "", "Hello traveler."))
        handler.handle_end_of_dialogue()
        assert dialogues[-1].dialogue_type == NpcDialogueType.NONE
        assert dialogues[-1].is_empty

    def test_marker_only_page_ignored(self, handler, dialogues):
        handler.handle_page(page(CONFIRM))
        handler.on_tick()
        assert dialogues == []


class TestConfirmationless:
    """Test single-line NPC dialogues."""

    def test_candidate_delivered(self, handler, dialogues):
        handler.handle_confirmationless_candidate(NPC_LINE)
        assert len(dialogues) == 1
        assert dialogues[0].dialogue_type == NpcDialogueType.CONFIRMATIONLESS
        assert handler.page_processor.last_confirmationless_dialogue == NPC_LINE

    def test_candidate_repeats_delivered(self, handler, dialogues):
        handler.handle_confirmationless_candidate(NPC_LINE)
        handler.handle_confirmationless_candidate(NPC_LINE)
        assert len(dialogues) == 2

    def test_npc_chat_line_becomes_dialogue(self, handler, dialogues):
        chat = []
        handler.router.add_received_listener(chat.append)
        assert handler.handle_chat_line(NPC_LINE) is None
        assert chat == []
        assert dialogues[0].dialogue_type == NpcDialogueType.CONFIRMATIONLESS


class TestChatLines:
    """Test line routing and the page detector hand-off."""

    def test_line_routed_without_detector(self, handler):
        chat = []
        handler.router.add_received_listener(chat.append)
        line = StyledText("§7[§eSteve§7] §fready")
        assert handler.handle_chat_line(line) == line
        assert chat[0].recipient_type == RecipientType.PARTY

    def test_detector_gets_lines_when_extracting(self, dialogues):
        detector = FakeDetector()
        handler = ChatHandler(on_dialogue=dialogues.append, page_detector=detector)
        line = StyledText("§7[§eSteve§7] §fready")
        handler.handle_chat_line(line)
        handler.on_tick()
        assert detector.lines == [line]
        assert detector.ticks == 1

    def test_detector_bypassed_without_extraction(self, dialogues):
        detector = FakeDetector()
        handler = ChatHandler(
            on_dialogue=dialogues.append,
            config=HandlerConfig(needs_page_detector=False),
            page_detector=detector,
        )
        handler.handle_chat_line(StyledText("§7[§eSteve§7] §fready"))
        handler.on_tick()
        assert detector.lines == []
        assert detector.ticks == 0

    def test_npc_line_is_info_without_extraction(self, dialogues):
        handler = ChatHandler(on_dialogue=dialogues.append)
        handler.set_needs_page_detector(False)
        chat = []
        handler.router.add_received_listener(chat.append)
        assert handler.handle_chat_line(NPC_LINE) == NPC_LINE
        assert chat[0].recipient_type == RecipientType.INFO
        assert dialogues == []


class TestLifecycle:
    """Test connect/disconnect resets."""

    def test_connect_resets_state(self, dialogues):
        detector = FakeDetector()
        handler = ChatHandler(on_dialogue=dialogues.append, page_detector=detector)
        slowdown(handler)
        handler.handle_page(page(CONFIRM, "", "Hello traveler."))
        handler.on_connect()
        assert handler.page_processor.last_screen_dialogue == ()
        assert not handler.has_slowdown()
        assert detector.resets == 1

    def test_connect_drops_pending(self, handler, dialogues):
        handler.handle_page(page(CONFIRM, "", "Hello traveler."))
        handler.on_connect()
        handler.on_tick()
        assert dialogues == []

    def test_disconnect_flushes_pending_unprotected(self, handler, dialogues):
        handler.handle_page(page(CONFIRM, "", "Hello traveler."))
        handler.on_disconnect()
        assert len(dialogues) == 1
        assert not dialogues[0].is_protected
        handler.on_tick()
        assert len(dialogues) == 1
        assert handler.page_processor.last_screen_dialogue == ()

    def test_dialogue_redelivered_after_reconnect(self, handler, dialogues):
        slowdown(handler)
        handler.handle_page(page(CONFIRM, "", "Hello traveler."))
        handler.on_connect()
        slowdown(handler)
        handler.handle_page(page(CONFIRM, "", "Hello traveler."))
        assert len(dialogues) == 2
