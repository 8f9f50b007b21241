"""Domain Value Objects"""
from pydantic import BaseModel, field_validator, model_validator
from datetime import datetime, timezone
from typing import Optional

from domain.errors import InvalidInterval


def to_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TimeInterval(BaseModel):
    """Value Object for a half-open booking interval [start, end)"""
    start: datetime
    end: datetime

    @field_validator('start', 'end')
    def normalize_timezone(cls, v):
        return to_utc(v)

    @model_validator(mode='after')
    def end_after_start(self):
        # InvalidInterval is not a ValueError, so pydantic re-raises it unchanged
        if self.start >= self.end:
            raise InvalidInterval('End time must be after start time.')
        return self

    def overlaps(self, other: "TimeInterval") -> bool:
        """Touching endpoints do not overlap"""
        return self.start < other.end and other.start < self.end

    class Config:
        frozen = True


class DeliveryAddress(BaseModel):
    """Value Object for an optional delivery destination"""
    street: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None

    class Config:
        frozen = True
