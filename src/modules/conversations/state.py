# src/modules/conversations/state.py
"""
Conversation state model.

The dialogue engine that moves a conversation between states lives outside this
service. What lives here is the closed vocabulary of states, the one place where
raw values are validated into it, and the severity classification the admin
dashboard uses to color state badges.
"""

import enum
from typing import Any, Optional

from src.common.utils.errors import InvalidStateError


class ConversationState(str, enum.Enum):
    IDLE = "IDLE"
    COLLECTING_PATIENT_DATA = "COLLECTING_PATIENT_DATA"
    COLLECTING_APPOINTMENT_DATA = "COLLECTING_APPOINTMENT_DATA"
    COMPLETED = "COMPLETED"
    HANDOVER_HUMAN = "HANDOVER_HUMAN"


class Severity(str, enum.Enum):
    SUCCESS = "success"
    ATTENTION = "attention"
    DANGER = "danger"
    NEUTRAL = "neutral"


# COMPLETED ends the current task only; HANDOVER_HUMAN waits on an operator.
TERMINAL_STATES = frozenset({ConversationState.COMPLETED, ConversationState.HANDOVER_HUMAN})

_SEVERITY_BY_STATE = {
    ConversationState.IDLE: Severity.SUCCESS,
    ConversationState.COLLECTING_PATIENT_DATA: Severity.ATTENTION,
    ConversationState.COLLECTING_APPOINTMENT_DATA: Severity.ATTENTION,
    ConversationState.COMPLETED: Severity.SUCCESS,
    ConversationState.HANDOVER_HUMAN: Severity.DANGER,
}

# CSS badge classes used by the admin dashboard
_BADGE_BY_SEVERITY = {
    Severity.SUCCESS: "success",
    Severity.ATTENTION: "warning",
    Severity.DANGER: "danger",
    Severity.NEUTRAL: "neutral",
}


def parse_state(value: Any) -> ConversationState:
    """
    Validate a raw value into a ConversationState.

    Only enum members and their exact, case-sensitive names are accepted.

    Raises:
        InvalidStateError: if the value is not one of the known states.
    """
    if isinstance(value, ConversationState):
        return value
    if isinstance(value, str):
        try:
            return ConversationState(value)
        except ValueError:
            pass
    raise InvalidStateError(value)


def is_terminal(state: Any) -> bool:
    return parse_state(state) in TERMINAL_STATES


def classify_severity(state: Optional[Any]) -> Severity:
    """Classify a state for display. Never raises; unknown values need attention."""
    if state is None:
        return Severity.NEUTRAL
    try:
        return _SEVERITY_BY_STATE[parse_state(state)]
    except InvalidStateError:
        return Severity.ATTENTION


def badge_color(severity: Severity) -> str:
    return _BADGE_BY_SEVERITY[severity]
