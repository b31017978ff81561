"""Tests for formatted chat text."""

import re

from chatpage.styled_text import StyledText


class TestStyledTextStrings:
    """Test coded and plain string access."""

    def test_coded_string_kept(self):
        text = StyledText("§7Press §fSHIFT §7to continue")
        assert text.get_string() == "§7Press §fSHIFT §7to continue"

    def test_formatting_stripped(self):
        text = StyledText("§3[§b★★§3Steve]§b meet at the bank")
        assert text.get_string_without_formatting() == "[★★Steve] meet at the bank"

    def test_reset_and_style_codes_stripped(self):
        assert StyledText("§l§nBold§r text").get_string_without_formatting() == "Bold text"

    def test_empty(self):
        assert StyledText("").is_empty()
        assert StyledText().is_empty()
        assert not StyledText("§r").is_empty()


class TestStyledTextEquality:
    """Test that equality is over style and content."""

    def test_equal_lines(self):
        assert StyledText("§aHello") == StyledText("§aHello")
        assert hash(StyledText("§aHello")) == hash(StyledText("§aHello"))

    def test_different_color_is_different(self):
        assert StyledText("§aHello") != StyledText("§7Hello")

    def test_not_equal_to_plain_str(self):
        assert StyledText("Hello") != "Hello"

    def test_of_builds_list(self):
        lines = StyledText.of(["a", "", "b"])
        assert lines == [StyledText("a"), StyledText(""), StyledText("b")]


class TestStyledTextMatching:
    """Test pattern search against the coded string."""

    def test_find_searches_coded_string(self):
        text = StyledText("§7[§eSteve§7] §fready")
        assert text.find(re.compile(r"§e\w+"))
        assert not text.find(re.compile(r"^Steve"))

    def test_matches_requires_full_match(self):
        text = StyledText("§fready")
        assert text.matches(re.compile(r"§fready"))
        assert not text.matches(re.compile(r"§f"))
