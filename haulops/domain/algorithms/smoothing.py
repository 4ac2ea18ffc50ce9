from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable

SPEED_WINDOW_SIZE = 3
HEADING_WINDOW_SIZE = 5


def smooth_speed(speeds: Iterable[float]) -> float:
    """Arithmetic mean of a recent speed window (0 for an empty window)."""

    values = [float(s) for s in speeds]
    if not values:
        return 0.0
    return sum(values) / len(values)


def circular_mean(headings_deg: Iterable[float]) -> float:
    """Mean of compass headings, in [0, 360).

    Headings are averaged as unit vectors, so 350 and 10 average to 0 rather
    than 180.
    """

    sum_x = 0.0
    sum_y = 0.0
    count = 0
    for h in headings_deg:
        rad = math.radians(float(h))
        sum_x += math.sin(rad)
        sum_y += math.cos(rad)
        count += 1

    if count == 0:
        return 0.0

    mean = math.degrees(math.atan2(sum_x, sum_y))
    # atan2 can return -0.0 or tiny negatives; fold into [0, 360).
    mean = mean % 360.0
    if mean >= 360.0 - 1e-9:
        return 0.0
    return mean


def exponential_moving_average(
    current: float, new_value: float, alpha: float = 0.3
) -> float:
    if not (0.0 <= alpha <= 1.0):
        raise ValueError(f"alpha must be in [0, 1], got {alpha}")
    return alpha * new_value + (1.0 - alpha) * current


@dataclass(slots=True)
class SmoothingWindow:
    """Bounded recent-value buffers owned by one client session.

    The smoothing functions above are stateless; callers keep one window per
    device and pass it in, so concurrent requests never share buffers.
    """

    speeds: deque[float] = field(
        default_factory=lambda: deque(maxlen=SPEED_WINDOW_SIZE)
    )
    headings: deque[float] = field(
        default_factory=lambda: deque(maxlen=HEADING_WINDOW_SIZE)
    )

    @classmethod
    def sized(cls, *, speed: int, heading: int) -> SmoothingWindow:
        if speed < 1 or heading < 1:
            raise ValueError("window sizes must be positive")
        return cls(speeds=deque(maxlen=speed), headings=deque(maxlen=heading))


def push_and_smooth(
    window: SmoothingWindow, *, speed_kmh: float | None, heading_deg: float | None
) -> tuple[float, float | None]:
    """Append the latest readings to `window` and return (speed, heading).

    A missing heading leaves the heading buffer untouched; the smoothed heading
    is None until at least one heading has been seen.
    """

    if speed_kmh is not None:
        window.speeds.append(float(speed_kmh))
    if heading_deg is not None:
        window.headings.append(float(heading_deg) % 360.0)

    heading = circular_mean(window.headings) if window.headings else None
    return smooth_speed(window.speeds), heading
