from __future__ import annotations

from enum import Enum
from typing import Dict


OVER_THRESHOLD = 100.0
HIGH_THRESHOLD = 80.0
OPTIMAL_THRESHOLD = 60.0


class AllocationStatus(str, Enum):
    UNDER = "Under"
    OPTIMAL = "Optimal"
    HIGH = "High"
    OVER = "Over"


STATUS_COLORS: Dict[AllocationStatus, str] = {
    AllocationStatus.OVER: "#ef4444",
    AllocationStatus.HIGH: "#f59e0b",
    AllocationStatus.OPTIMAL: "#10b981",
    AllocationStatus.UNDER: "#94a3b8",
}


def classify(percentage: float) -> AllocationStatus:
    """Map an aggregate load percentage to its status band.

    Bands: OVER above 100, HIGH in (80, 100], OPTIMAL in [60, 80] and UNDER
    below 60. Negative loads fall into UNDER.
    """
    if percentage > OVER_THRESHOLD:
        return AllocationStatus.OVER
    if percentage > HIGH_THRESHOLD:
        return AllocationStatus.HIGH
    if percentage >= OPTIMAL_THRESHOLD:
        return AllocationStatus.OPTIMAL
    return AllocationStatus.UNDER


def status_color(status: AllocationStatus) -> str:
    return STATUS_COLORS[status]


def is_available(percentage: float, status: AllocationStatus) -> bool:
    """True when a period still has room for more work."""
    return percentage < OVER_THRESHOLD and status not in (AllocationStatus.HIGH, AllocationStatus.OVER)
