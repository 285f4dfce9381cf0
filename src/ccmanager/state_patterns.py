"""
Centralized state detection patterns.

Each assistant program gets its own StatePatterns instance. A detector only
ever reads its own instance, so supporting a new program means adding a new
pattern set (and detector), never editing an existing one.

All patterns are plain substrings matched case-insensitively.
"""

import re
from dataclasses import dataclass, field
from typing import List, Sequence

# Regex to match ANSI escape sequences (colors, cursor movement, etc.)
ANSI_ESCAPE_PATTERN = re.compile(r'\x1b\[[0-9;?]*[a-zA-Z]')


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from text.

    tmux capture with escape sequences preserves color codes, but pattern
    matching needs plain text.
    """
    return ANSI_ESCAPE_PATTERN.sub('', text)


@dataclass(frozen=True)
class StatePatterns:
    """Pattern sets for one assistant program."""

    # Confirmation prompts - HIGHEST priority.
    # The assistant is blocked until the operator answers.
    waiting_patterns: List[str] = field(default_factory=list)

    # Active work indicators.
    # Shown while the assistant is mid-action and can be interrupted.
    busy_patterns: List[str] = field(default_factory=list)


CLAUDE_PATTERNS = StatePatterns(
    waiting_patterns=[
        "do you want",
        "would you like",
    ],
    busy_patterns=[
        "esc to interrupt",
    ],
)

GEMINI_PATTERNS = StatePatterns(
    waiting_patterns=[
        "apply this change?",
        "allow execution?",
        "do you want to proceed?",
        "waiting for user confirmation",
    ],
    busy_patterns=[
        "esc to cancel",
    ],
)


def matches_any(text: str, patterns: Sequence[str], case_sensitive: bool = False) -> bool:
    """Check if text contains any of the patterns.

    Args:
        text: Text to search in
        patterns: Substrings to look for
        case_sensitive: Whether matching is case-sensitive

    Returns:
        True if any pattern is found in text
    """
    if not case_sensitive:
        text = text.lower()
        return any(p.lower() in text for p in patterns)
    return any(p in text for p in patterns)


def find_matching_line(
    lines: Sequence[str],
    patterns: Sequence[str],
    case_sensitive: bool = False,
    reverse: bool = True,
) -> str | None:
    """Find the first line that matches any pattern.

    Args:
        lines: Lines to search
        patterns: Patterns to match
        case_sensitive: Whether matching is case-sensitive
        reverse: Search from end to beginning

    Returns:
        The matching line, or None if no match
    """
    search_lines = reversed(lines) if reverse else lines
    for line in search_lines:
        if matches_any(line, patterns, case_sensitive):
            return line
    return None


def recent_window(lines: Sequence[str], max_lines: int) -> List[str]:
    """Return the last max_lines lines of content, ANSI-stripped.

    Trailing blank lines (terminal padding below the cursor) are dropped
    before the window is taken, so they never push real content out.
    """
    cleaned = [strip_ansi(line) for line in lines]
    end = len(cleaned)
    while end > 0 and not cleaned[end - 1].strip():
        end -= 1
    if max_lines <= 0:
        return []
    return cleaned[max(0, end - max_lines):end]
