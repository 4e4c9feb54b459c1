"""Design review states and the transitions allowed between them.

    draft -> pending -> approved -> in_production -> completed
                    \\-> rejected -> pending

The same table gates the admin UI buttons (allowed_transitions) and the
status endpoint (transition), so a request can't jump states the UI never offers.
"""
from enum import Enum
from typing import List, Optional


class DesignStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    IN_PRODUCTION = "in_production"
    COMPLETED = "completed"


TRANSITIONS = {
    DesignStatus.DRAFT: {DesignStatus.PENDING},
    DesignStatus.PENDING: {DesignStatus.APPROVED, DesignStatus.REJECTED},
    DesignStatus.REJECTED: {DesignStatus.PENDING},
    DesignStatus.APPROVED: {DesignStatus.IN_PRODUCTION},
    DesignStatus.IN_PRODUCTION: {DesignStatus.COMPLETED},
    DesignStatus.COMPLETED: set(),
}

# Metaobjects written before a status existed are treated as awaiting review.
DEFAULT_STATUS = DesignStatus.PENDING


class InvalidTransition(ValueError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change design status from '{current}' to '{requested}'")


def parse_status(value: Optional[str]) -> DesignStatus:
    s = (value or "").strip().lower()
    if not s:
        return DEFAULT_STATUS
    try:
        return DesignStatus(s)
    except ValueError:
        raise InvalidTransition(str(value), str(value))


def allowed_transitions(current: Optional[str]) -> List[str]:
    state = parse_status(current)
    return sorted(s.value for s in TRANSITIONS[state])


def transition(current: Optional[str], requested: str) -> DesignStatus:
    """Return the new status or raise InvalidTransition. Re-requesting the current status is a no-op."""
    try:
        state = parse_status(current)
    except InvalidTransition:
        raise InvalidTransition(str(current), str(requested))
    try:
        target = DesignStatus((requested or "").strip().lower())
    except ValueError:
        raise InvalidTransition(state.value, str(requested))
    if target == state or target in TRANSITIONS[state]:
        return target
    raise InvalidTransition(state.value, target.value)
