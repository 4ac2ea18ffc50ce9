from __future__ import annotations

import pytest

from haulops.domain.algorithms.trip_transitions import can_transition, ensure_transition
from haulops.domain.exceptions import ConflictError
from haulops.domain.models import TripStatus

S = TripStatus


@pytest.mark.parametrize(
    ("current", "requested"),
    [
        (S.PLANNING, S.IN_PROGRESS),
        (S.PLANNING, S.CANCELLED),
        (S.IN_PROGRESS, S.COMPLETED),
        (S.IN_PROGRESS, S.CANCELLED),
    ],
)
def test_allowed_transitions(current: TripStatus, requested: TripStatus) -> None:
    assert can_transition(current, requested)
    ensure_transition(current, requested)


@pytest.mark.parametrize(
    ("current", "requested"),
    [
        (S.COMPLETED, S.COMPLETED),
        (S.COMPLETED, S.IN_PROGRESS),
        (S.CANCELLED, S.IN_PROGRESS),
        (S.PLANNING, S.COMPLETED),
        (S.IN_PROGRESS, S.PLANNING),
    ],
)
def test_rejected_transitions_name_both_states(
    current: TripStatus, requested: TripStatus
) -> None:
    assert not can_transition(current, requested)
    with pytest.raises(ConflictError) as info:
        ensure_transition(current, requested)
    assert current.value in str(info.value)
    assert requested.value in str(info.value)
