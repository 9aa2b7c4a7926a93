"""
Attainment result types and the status policy shared by every report view.

An attainment computation yields either an ``Attainment`` carrying a
percentage or a ``NoData`` carrying the reason nothing could be computed.
The two are distinct types so that "no data" can never be mistaken for 0%.
"""

from dataclasses import dataclass
from typing import Union

from .enums import AttainmentStatus, NoDataReason

ACHIEVEMENT_THRESHOLD = 60.0


def classify(percentage: float) -> AttainmentStatus:
    """Classify a percentage against the fixed achievement threshold."""
    if percentage >= ACHIEVEMENT_THRESHOLD:
        return AttainmentStatus.ACHIEVED
    return AttainmentStatus.NEEDS_ATTENTION


def format_percentage(percentage: float) -> str:
    return f"{percentage:.2f}%"


@dataclass(frozen=True)
class Attainment:
    """A computed attainment percentage (not clamped to 0-100)."""
    percentage: float

    @property
    def status(self) -> AttainmentStatus:
        return classify(self.percentage)

    @property
    def has_data(self) -> bool:
        return True

    def formatted(self) -> str:
        return format_percentage(self.percentage)


@dataclass(frozen=True)
class NoData:
    """Insufficient data to compute an attainment."""
    reason: NoDataReason

    @property
    def has_data(self) -> bool:
        return False

    def formatted(self) -> str:
        return "—"


AttainmentResult = Union[Attainment, NoData]
