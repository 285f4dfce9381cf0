"""
State detectors: classify a session's recent screen output.

One detector class per assistant program. Every variant runs the same
algorithm over its own StatePatterns:

1. Only the last MAX_DETECTION_LINES lines of content are considered.
2. Any confirmation pattern anywhere in that window -> waiting_input.
3. Otherwise any busy pattern -> busy.
4. Otherwise idle.

Variants are registered per DetectionStrategy; create_state_detector()
builds the right one when a session is created. A session keeps the same
detector for its whole life.
"""

from typing import Dict, Optional, Sequence, Type

from .state_constants import (
    MAX_DETECTION_LINES,
    DetectionStrategy,
    SessionState,
    parse_strategy,
)
from .state_patterns import (
    CLAUDE_PATTERNS,
    GEMINI_PATTERNS,
    StatePatterns,
    find_matching_line,
    matches_any,
    recent_window,
)


class PatternStateDetector:
    """Base class for pattern-matching detectors.

    Subclasses set `strategy` and `default_patterns`; the algorithm is shared.
    """

    strategy: DetectionStrategy
    default_patterns: StatePatterns = StatePatterns()

    def __init__(self, patterns: Optional[StatePatterns] = None, max_lines: int = MAX_DETECTION_LINES):
        self.patterns = patterns or self.default_patterns
        self.max_lines = max_lines

    def detect_state(self, lines: Sequence[str]) -> SessionState:
        """Classify a window of screen lines (newest last)."""
        window = recent_window(lines, self.max_lines)
        if not window:
            return SessionState.IDLE

        content = "\n".join(window)
        if matches_any(content, self.patterns.waiting_patterns):
            return SessionState.WAITING_INPUT
        if matches_any(content, self.patterns.busy_patterns):
            return SessionState.BUSY
        return SessionState.IDLE

    def detect_from_text(self, text: str) -> SessionState:
        """Classify raw captured text (newline separated)."""
        return self.detect_state(text.splitlines())

    def matching_line(self, lines: Sequence[str]) -> Optional[str]:
        """The newest window line that decided the state, or None for idle."""
        window = recent_window(lines, self.max_lines)
        return (
            find_matching_line(window, self.patterns.waiting_patterns)
            or find_matching_line(window, self.patterns.busy_patterns)
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(max_lines={self.max_lines})"


class ClaudeStateDetector(PatternStateDetector):
    """Detector for Claude Code sessions."""

    strategy = DetectionStrategy.CLAUDE
    default_patterns = CLAUDE_PATTERNS


class GeminiStateDetector(PatternStateDetector):
    """Detector for Gemini CLI sessions."""

    strategy = DetectionStrategy.GEMINI
    default_patterns = GEMINI_PATTERNS


_DETECTORS: Dict[str, Type[PatternStateDetector]] = {
    DetectionStrategy.CLAUDE.value: ClaudeStateDetector,
    DetectionStrategy.GEMINI.value: GeminiStateDetector,
}


def register_detector(strategy: str, detector_cls: Type[PatternStateDetector]) -> None:
    """Register a detector class for a strategy name.

    Registering an already-known strategy replaces its detector class.
    """
    _DETECTORS[str(strategy)] = detector_cls


def available_strategies() -> list[str]:
    """Names of all registered detection strategies."""
    return sorted(_DETECTORS)


def create_state_detector(
    strategy: str | DetectionStrategy = DetectionStrategy.CLAUDE,
    patterns: Optional[StatePatterns] = None,
    max_lines: int = MAX_DETECTION_LINES,
) -> PatternStateDetector:
    """Create a state detector for the given strategy.

    Args:
        strategy: Detection strategy name ("claude", "gemini", ...)
        patterns: Optional StatePatterns override (testing)
        max_lines: Window size in lines

    Returns:
        A detector instance

    Raises:
        ValueError: If no detector is registered for the strategy
    """
    key = str(strategy) if strategy else str(parse_strategy(""))
    detector_cls = _DETECTORS.get(key.lower())
    if detector_cls is None:
        valid = ", ".join(available_strategies())
        raise ValueError(f"No state detector for strategy '{strategy}' (expected one of: {valid})")
    return detector_cls(patterns=patterns, max_lines=max_lines)
