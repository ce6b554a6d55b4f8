"""
Lifecycle shared by Task and Video records:

    pending -> processing -> completed
                          -> failed

``processing -> processing`` is allowed for metadata patches.
``completed`` and ``failed`` are terminal.
"""

from post_video.domain.errors import InvalidTransitionError

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"

STATUSES = (PENDING, PROCESSING, COMPLETED, FAILED)
TERMINAL = frozenset({COMPLETED, FAILED})

_ALLOWED = {
    PENDING: {PROCESSING, FAILED},
    PROCESSING: {PROCESSING, COMPLETED, FAILED},
    COMPLETED: set(),
    FAILED: set(),
}


def is_terminal(status: str) -> bool:
    return status in TERMINAL


def can_transition(current: str, new: str) -> bool:
    if current not in _ALLOWED or new not in _ALLOWED:
        return False
    return new in _ALLOWED[current]


def ensure_transition(current: str, new: str, record: str = "record") -> None:
    if not can_transition(current, new):
        raise InvalidTransitionError(f"{record}: cannot move from '{current}' to '{new}'")
