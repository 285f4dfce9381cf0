"""
Unit tests for state detectors.
"""

import pytest

from ccmanager.state_constants import DetectionStrategy, SessionState
from ccmanager.state_detector import (
    ClaudeStateDetector,
    GeminiStateDetector,
    PatternStateDetector,
    available_strategies,
    create_state_detector,
    register_detector,
)
from ccmanager.state_patterns import StatePatterns
from tests.fixtures import (
    CLAUDE_BUSY,
    CLAUDE_IDLE,
    CLAUDE_PERMISSION_BOX,
    CLAUDE_SPINNER,
    CLAUDE_WAITING,
    GEMINI_BUSY,
    GEMINI_IDLE,
    GEMINI_WAITING,
)


class TestClaudeStateDetector:
    """Claude Code screens"""

    @pytest.fixture
    def detector(self):
        return ClaudeStateDetector()

    def test_do_you_want_prompt_is_waiting_input(self, detector):
        assert detector.detect_state(CLAUDE_WAITING) == SessionState.WAITING_INPUT

    def test_would_you_like_prompt_is_waiting_input(self, detector):
        lines = ["Some output", "│ Would you like to save changes?", "│ > "]
        assert detector.detect_state(lines) == SessionState.WAITING_INPUT

    def test_permission_dialog_is_waiting_input(self, detector):
        assert detector.detect_state(CLAUDE_PERMISSION_BOX) == SessionState.WAITING_INPUT

    def test_esc_to_interrupt_is_busy(self, detector):
        assert detector.detect_state(CLAUDE_BUSY) == SessionState.BUSY

    def test_busy_match_is_case_insensitive(self, detector):
        lines = ["Running command...", "press esc to interrupt the process"]
        assert detector.detect_state(lines) == SessionState.BUSY

    def test_spinner_line_is_busy(self, detector):
        assert detector.detect_state(CLAUDE_SPINNER) == SessionState.BUSY

    def test_no_patterns_is_idle(self, detector):
        assert detector.detect_state(CLAUDE_IDLE) == SessionState.IDLE

    def test_empty_window_is_idle(self, detector):
        assert detector.detect_state([]) == SessionState.IDLE

    def test_blank_lines_only_is_idle(self, detector):
        assert detector.detect_state(["", "   ", ""]) == SessionState.IDLE

    def test_waiting_input_beats_busy_regardless_of_order(self, detector):
        busy_first = ["Press ESC to interrupt", "│ Do you want to continue?", "│ > "]
        busy_last = ["│ Do you want to continue?", "│ > ", "Press ESC to interrupt"]
        assert detector.detect_state(busy_first) == SessionState.WAITING_INPUT
        assert detector.detect_state(busy_last) == SessionState.WAITING_INPUT

    def test_waiting_input_beats_busy_at_window_edges(self, detector):
        lines = ["Do you want to continue?"] + [f"line {i}" for i in range(28)] + ["esc to interrupt"]
        assert len(lines) == 30
        assert detector.detect_state(lines) == SessionState.WAITING_INPUT

    def test_gemini_prompt_does_not_trigger_claude(self, detector):
        assert detector.detect_state(["Allow execution?"]) == SessionState.IDLE

    def test_matching_line_reports_waiting_line(self, detector):
        lines = ["Press ESC to interrupt", "│ Do you want to continue?", "│ > "]
        assert detector.matching_line(lines) == "│ Do you want to continue?"

    def test_matching_line_reports_busy_line(self, detector):
        lines = ["Reading files", "esc to interrupt"]
        assert detector.matching_line(lines) == "esc to interrupt"

    def test_matching_line_is_none_when_idle(self, detector):
        assert detector.matching_line(CLAUDE_IDLE) is None


class TestDetectionWindow:
    """Only the last 30 lines of content count"""

    def test_prompt_before_window_is_ignored(self):
        lines = [f"Line {i}" for i in range(40)]
        lines.append("│ Do you want to continue?")
        lines.extend(f"Recent line {i}" for i in range(30))

        assert ClaudeStateDetector().detect_state(lines) == SessionState.IDLE

    def test_prompt_at_oldest_window_line_counts(self):
        lines = ["Do you want to continue?"] + [f"Recent line {i}" for i in range(29)]
        assert ClaudeStateDetector().detect_state(lines) == SessionState.WAITING_INPUT

    def test_busy_before_window_is_ignored(self):
        lines = ["esc to interrupt"] + [f"Recent line {i}" for i in range(30)]
        assert ClaudeStateDetector().detect_state(lines) == SessionState.IDLE

    def test_trailing_blank_padding_does_not_push_content_out(self):
        # tmux pads the screen below the cursor with empty lines
        lines = ["Do you want to continue?", "> "] + [""] * 40
        assert ClaudeStateDetector().detect_state(lines) == SessionState.WAITING_INPUT

    def test_custom_window_size(self):
        lines = ["esc to interrupt", "a", "b"]
        assert ClaudeStateDetector(max_lines=2).detect_state(lines) == SessionState.IDLE
        assert ClaudeStateDetector(max_lines=3).detect_state(lines) == SessionState.BUSY

    def test_ansi_codes_are_ignored(self):
        lines = ["\x1b[2mPress \x1b[1mESC\x1b[0m\x1b[2m to interrupt\x1b[0m"]
        assert ClaudeStateDetector().detect_state(lines) == SessionState.BUSY

    def test_detect_from_text(self):
        text = "Processing...\nPress ESC to interrupt\n"
        assert ClaudeStateDetector().detect_from_text(text) == SessionState.BUSY


class TestGeminiStateDetector:
    """Gemini CLI screens"""

    @pytest.fixture
    def detector(self):
        return GeminiStateDetector()

    @pytest.mark.parametrize("prompt", [
        "│ Apply this change?",
        "│ Allow execution?",
        "│ Do you want to proceed?",
        "Waiting for user confirmation...",
    ])
    def test_confirmation_prompts_are_waiting_input(self, detector, prompt):
        assert detector.detect_state(["Changes detected", prompt, "│ > "]) == SessionState.WAITING_INPUT

    def test_apply_change_screen(self, detector):
        assert detector.detect_state(GEMINI_WAITING) == SessionState.WAITING_INPUT

    def test_esc_to_cancel_is_busy(self, detector):
        assert detector.detect_state(GEMINI_BUSY) == SessionState.BUSY

    def test_busy_match_is_case_insensitive(self, detector):
        lines = ["Running command...", "Press Esc to cancel the operation"]
        assert detector.detect_state(lines) == SessionState.BUSY

    def test_no_patterns_is_idle(self, detector):
        assert detector.detect_state(GEMINI_IDLE) == SessionState.IDLE

    def test_empty_window_is_idle(self, detector):
        assert detector.detect_state([]) == SessionState.IDLE

    def test_waiting_input_beats_busy(self, detector):
        lines = ["Press ESC to cancel", "│ Apply this change?", "│ > "]
        assert detector.detect_state(lines) == SessionState.WAITING_INPUT

    def test_claude_busy_hint_does_not_trigger_gemini(self, detector):
        assert detector.detect_state(["esc to interrupt"]) == SessionState.IDLE


class TestCreateStateDetector:
    """Tests for the detector factory and registry"""

    def test_creates_claude_by_default(self):
        assert isinstance(create_state_detector(), ClaudeStateDetector)

    def test_creates_by_enum(self):
        assert isinstance(create_state_detector(DetectionStrategy.GEMINI), GeminiStateDetector)

    def test_creates_by_name(self):
        assert isinstance(create_state_detector("gemini"), GeminiStateDetector)
        assert isinstance(create_state_detector("Claude"), ClaudeStateDetector)

    def test_unknown_strategy_raises(self):
        with pytest.raises(ValueError, match="No state detector"):
            create_state_detector("copilot")

    def test_each_call_returns_new_instance(self):
        assert create_state_detector("claude") is not create_state_detector("claude")

    def test_passes_patterns_and_window(self):
        patterns = StatePatterns(waiting_patterns=["continue?"], busy_patterns=["working"])
        detector = create_state_detector("claude", patterns=patterns, max_lines=5)
        assert detector.patterns is patterns
        assert detector.max_lines == 5
        assert detector.detect_state(["working"]) == SessionState.BUSY

    def test_register_new_variant(self):
        class AiderStateDetector(PatternStateDetector):
            strategy = "aider"
            default_patterns = StatePatterns(
                waiting_patterns=["(y)es/(n)o"],
                busy_patterns=["ctrl-c to interrupt"],
            )

        register_detector("aider", AiderStateDetector)
        try:
            detector = create_state_detector("aider")
            assert isinstance(detector, AiderStateDetector)
            assert detector.detect_state(["Run shell command? (Y)es/(N)o"]) == SessionState.WAITING_INPUT
            assert "aider" in available_strategies()
            # Existing variants are untouched
            assert create_state_detector("claude").detect_state(["(y)es/(n)o"]) == SessionState.IDLE
        finally:
            from ccmanager import state_detector
            state_detector._DETECTORS.pop("aider", None)
