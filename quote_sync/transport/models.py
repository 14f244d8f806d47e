"""
Transport state machine data models.

INIT -> PUSH_ACTIVE | POLL_ACTIVE -> CLOSED. Failover from PUSH_ACTIVE to
POLL_ACTIVE is one-way within a session.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class TransportState(str, Enum):
    """Lifecycle states of the transport selector."""
    INIT = "init"
    PUSH_ACTIVE = "push_active"
    POLL_ACTIVE = "poll_active"
    CLOSED = "closed"


ALLOWED_TRANSITIONS: dict[TransportState, frozenset] = {
    TransportState.INIT: frozenset({
        TransportState.PUSH_ACTIVE,
        TransportState.POLL_ACTIVE,
        TransportState.CLOSED,
    }),
    TransportState.PUSH_ACTIVE: frozenset({
        TransportState.POLL_ACTIVE,
        TransportState.CLOSED,
    }),
    TransportState.POLL_ACTIVE: frozenset({TransportState.CLOSED}),
    TransportState.CLOSED: frozenset(),
}


@dataclass(frozen=True)
class TransportTransition:
    """Record of one state change."""
    from_state: TransportState
    to_state: TransportState
    trigger: str
    timestamp: datetime
    context: Optional[dict[str, Any]] = None


def is_allowed(from_state: TransportState, to_state: TransportState) -> bool:
    return to_state in ALLOWED_TRANSITIONS[from_state]
