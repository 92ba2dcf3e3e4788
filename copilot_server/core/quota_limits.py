# copilot_server/core/quota_limits.py
"""
Daily quota limit values.

Internally a limit is either `Limited(n)` or `UNLIMITED`. The database keeps
unlimited as NULL, and the HTTP interface keeps the legacy `-1` convention;
the conversions below are the only places either encoding appears.
"""
from dataclasses import dataclass

UNLIMITED_WIRE_VALUE = -1


@dataclass(frozen=True)
class Limited:
    count: int

    def __post_init__(self):
        if self.count < 0:
            raise ValueError("daily limit cannot be negative")


@dataclass(frozen=True)
class Unlimited:
    pass


UNLIMITED = Unlimited()

QuotaLimit = Limited | Unlimited


def from_column(value: int | None) -> QuotaLimit:
    return UNLIMITED if value is None else Limited(value)


def to_column(limit: QuotaLimit) -> int | None:
    if isinstance(limit, Unlimited):
        return None
    return limit.count


def from_wire(value: int) -> QuotaLimit:
    """Parse a client-supplied limit; -1 means unlimited, other negatives are rejected."""
    if value == UNLIMITED_WIRE_VALUE:
        return UNLIMITED
    return Limited(value)


def to_wire(limit: QuotaLimit) -> int:
    if isinstance(limit, Unlimited):
        return UNLIMITED_WIRE_VALUE
    return limit.count
