from __future__ import annotations

import pytest

from haulops.domain.algorithms.speed_violations import severity_for
from haulops.domain.models import ViolationSeverity


@pytest.mark.unit
@pytest.mark.parametrize(
    "excess, expected",
    [
        (0.0, ViolationSeverity.LOW),
        (9.9, ViolationSeverity.LOW),
        (10.0, ViolationSeverity.MEDIUM),
        (20.0, ViolationSeverity.HIGH),
        (39.9, ViolationSeverity.HIGH),
        (40.0, ViolationSeverity.CRITICAL),
    ],
)
def test_severity_steps(excess: float, expected: ViolationSeverity) -> None:
    assert severity_for(excess) is expected
