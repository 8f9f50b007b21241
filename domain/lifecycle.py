"""Reservation Lifecycle - status state machine

Any status may be set from any other status through an explicit update;
the only rule enforced is membership in ReservationStatus. What the
lifecycle does decide is which statuses are "active", i.e. still occupy
their table for the reservation's interval.
"""
from datetime import datetime
from typing import FrozenSet, Optional, Union

from domain.entities import Reservation, utcnow
from domain.enums import ReservationStatus
from domain.errors import InvalidStatus


# Transitions allowed from each status: every status is reachable from every other one
TRANSITIONS = {
    status: frozenset(ReservationStatus) for status in ReservationStatus
}

INACTIVE_STATUSES = frozenset({ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW})


def active_statuses(completed_blocks_slot: bool = True) -> FrozenSet[ReservationStatus]:
    """Statuses that take part in conflict detection"""
    inactive = set(INACTIVE_STATUSES)
    if not completed_blocks_slot:
        inactive.add(ReservationStatus.COMPLETED)
    return frozenset(ReservationStatus) - inactive


def parse_status(value: Union[str, ReservationStatus, None]) -> ReservationStatus:
    """Resolve a wire value such as "No-Show" into a ReservationStatus"""
    if isinstance(value, ReservationStatus):
        return value
    try:
        return ReservationStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ReservationStatus)
        raise InvalidStatus(f"Invalid status provided: {value!r}. Expected one of: {allowed}")


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def set_status(
    reservation: Reservation,
    new_status: Union[str, ReservationStatus],
    now: Optional[datetime] = None
) -> Reservation:
    """Return a copy of `reservation` with its status replaced"""
    status = parse_status(new_status)
    if not can_transition(reservation.status, status):
        raise InvalidStatus(
            f"Cannot change status from {reservation.status.value} to {status.value}"
        )
    return reservation.model_copy(update={"status": status, "updated_at": now or utcnow()})


def enters_active_set(
    current: ReservationStatus,
    target: ReservationStatus,
    active: FrozenSet[ReservationStatus]
) -> bool:
    """True when a status change makes the reservation occupy its table again"""
    return target in active and current not in active
