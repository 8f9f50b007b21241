"""Conflict Detector

A slot is free when no active reservation on the same table overlaps the
candidate interval. Intervals are half-open, so a booking ending at 11:00
and one starting at 11:00 do not conflict.
"""
from typing import FrozenSet, List, Optional
from uuid import UUID

from domain.entities import Reservation
from domain.enums import ReservationStatus
from domain.lifecycle import active_statuses
from domain.repositories import ReservationRepository
from domain.value_objects import TimeInterval


class ConflictDetector:
    """Pure query over the reservation store"""

    def __init__(
        self,
        repository: ReservationRepository,
        active: Optional[FrozenSet[ReservationStatus]] = None
    ):
        self.repository = repository
        self.active = active if active is not None else active_statuses()

    async def find_conflicts(
        self,
        table_id: UUID,
        interval: TimeInterval,
        exclude_reservation_id: Optional[UUID] = None
    ) -> List[Reservation]:
        """Active reservations on `table_id` whose interval overlaps `interval`"""
        candidates = await self.repository.find_overlapping(table_id, interval, self.active)
        return [
            r for r in candidates
            if r.reservation_id != exclude_reservation_id
            and r.is_active(self.active)
            and r.interval.overlaps(interval)
        ]

    async def is_slot_free(
        self,
        table_id: UUID,
        interval: TimeInterval,
        exclude_reservation_id: Optional[UUID] = None
    ) -> bool:
        conflicts = await self.find_conflicts(table_id, interval, exclude_reservation_id)
        return not conflicts
