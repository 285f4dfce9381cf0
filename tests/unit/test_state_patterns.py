"""Tests for state_patterns helpers."""

from ccmanager.state_patterns import (
    CLAUDE_PATTERNS,
    GEMINI_PATTERNS,
    find_matching_line,
    matches_any,
    recent_window,
    strip_ansi,
)


class TestStripAnsi:

    def test_removes_color_codes(self):
        assert strip_ansi("\x1b[31mred\x1b[0m text") == "red text"

    def test_removes_private_mode_sequences(self):
        assert strip_ansi("\x1b[?25lhidden cursor\x1b[?25h") == "hidden cursor"

    def test_plain_text_unchanged(self):
        assert strip_ansi("│ Do you want to proceed?") == "│ Do you want to proceed?"


class TestMatchesAny:

    def test_case_insensitive_by_default(self):
        assert matches_any("Press ESC to Interrupt", ["esc to interrupt"])

    def test_case_sensitive(self):
        assert not matches_any("Press ESC", ["esc"], case_sensitive=True)
        assert matches_any("Press ESC", ["ESC"], case_sensitive=True)

    def test_no_patterns(self):
        assert not matches_any("anything", [])


class TestFindMatchingLine:

    def test_finds_newest_match(self):
        lines = ["do you want a", "other", "do you want b"]
        assert find_matching_line(lines, ["do you want"]) == "do you want b"

    def test_forward_search(self):
        lines = ["do you want a", "other", "do you want b"]
        assert find_matching_line(lines, ["do you want"], reverse=False) == "do you want a"

    def test_no_match(self):
        assert find_matching_line(["a", "b"], ["zzz"]) is None


class TestRecentWindow:

    def test_keeps_last_lines(self):
        lines = [str(i) for i in range(50)]
        assert recent_window(lines, 30) == [str(i) for i in range(20, 50)]

    def test_drops_trailing_blank_lines_first(self):
        lines = ["a", "b", "", "  ", ""]
        assert recent_window(lines, 1) == ["b"]

    def test_keeps_interior_blank_lines(self):
        assert recent_window(["a", "", "b"], 30) == ["a", "", "b"]

    def test_empty(self):
        assert recent_window([], 30) == []

    def test_zero_size(self):
        assert recent_window(["a"], 0) == []


class TestPatternSets:

    def test_variants_have_separate_sets(self):
        assert CLAUDE_PATTERNS.busy_patterns != GEMINI_PATTERNS.busy_patterns

    def test_all_patterns_lowercase(self):
        # Matching lowercases the screen; patterns are stored lowercase
        for patterns in (CLAUDE_PATTERNS, GEMINI_PATTERNS):
            for p in patterns.waiting_patterns + patterns.busy_patterns:
                assert p == p.lower()
