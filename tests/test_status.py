import pytest

from post_video.domain.errors import InvalidTransitionError
from post_video.domain.status import (
    COMPLETED,
    FAILED,
    PENDING,
    PROCESSING,
    can_transition,
    ensure_transition,
    is_terminal,
)


@pytest.mark.parametrize(
    "current,new",
    [(PENDING, PROCESSING), (PENDING, FAILED), (PROCESSING, PROCESSING), (PROCESSING, COMPLETED), (PROCESSING, FAILED)],
)
def test_allowed_transitions(current, new):
    assert can_transition(current, new)
    ensure_transition(current, new)


@pytest.mark.parametrize(
    "current,new",
    [(COMPLETED, FAILED), (FAILED, PROCESSING), (COMPLETED, PROCESSING), (PENDING, COMPLETED), (PENDING, "done")],
)
def test_rejected_transitions(current, new):
    assert not can_transition(current, new)
    with pytest.raises(InvalidTransitionError):
        ensure_transition(current, new, "video v1")


def test_terminal_states():
    assert is_terminal(COMPLETED)
    assert is_terminal(FAILED)
    assert not is_terminal(PROCESSING)
