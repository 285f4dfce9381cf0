"""
State constants and mappings for ccmanager.

Centralizes the session state set, the detection strategy set, and the
display mappings used by anything that renders session state.
"""

from enum import Enum
from typing import Tuple


# =============================================================================
# Session State Values
# =============================================================================


class SessionState(str, Enum):
    """Classified state of an assistant session."""

    IDLE = "idle"
    BUSY = "busy"
    WAITING_INPUT = "waiting_input"

    def __str__(self) -> str:
        return self.value


# All valid session states, in menu order
ALL_STATES = [
    SessionState.IDLE,
    SessionState.BUSY,
    SessionState.WAITING_INPUT,
]

INITIAL_STATE = SessionState.IDLE


# =============================================================================
# Detection Strategies
# =============================================================================


class DetectionStrategy(str, Enum):
    """Which assistant program a session runs, and so which detector it gets."""

    CLAUDE = "claude"
    GEMINI = "gemini"

    def __str__(self) -> str:
        return self.value


DEFAULT_STRATEGY = DetectionStrategy.CLAUDE


# =============================================================================
# Detection / launch defaults
# =============================================================================

MAX_DETECTION_LINES = 30  # Only the most recent screen lines are classified
DEFAULT_COMMAND = "claude"
RESERVED_PRESET_NAME = "default"


# =============================================================================
# Display mappings
# =============================================================================

STATE_LABELS = {
    SessionState.IDLE: "Idle",
    SessionState.BUSY: "Busy",
    SessionState.WAITING_INPUT: "Waiting for Input",
}


def get_state_label(state: SessionState) -> str:
    """Get human-readable label for a session state."""
    return STATE_LABELS.get(state, str(state))


STATE_SYMBOLS = {
    SessionState.IDLE: ("○", "dim"),
    SessionState.BUSY: ("●", "yellow"),
    SessionState.WAITING_INPUT: ("◐", "red"),  # Needs the operator
}


def get_state_symbol(state: SessionState) -> Tuple[str, str]:
    """Get (symbol, color) tuple for a session state."""
    return STATE_SYMBOLS.get(state, ("?", "dim"))


# =============================================================================
# Parsing
# =============================================================================


def parse_state(value: str) -> SessionState:
    """Parse a state name from config or CLI input.

    Raises:
        ValueError: If the value is not a known state
    """
    try:
        return SessionState(value.strip().lower())
    except ValueError:
        valid = ", ".join(s.value for s in ALL_STATES)
        raise ValueError(f"Unknown state '{value}' (expected one of: {valid})") from None


def parse_strategy(value: str) -> DetectionStrategy:
    """Parse a detection strategy name, defaulting to claude when empty.

    Raises:
        ValueError: If the value is not a known strategy
    """
    if not value:
        return DEFAULT_STRATEGY
    try:
        return DetectionStrategy(value.strip().lower())
    except ValueError:
        valid = ", ".join(s.value for s in DetectionStrategy)
        raise ValueError(f"Unknown detection strategy '{value}' (expected one of: {valid})") from None
