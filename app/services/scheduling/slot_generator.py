# app/services/scheduling/slot_generator.py
"""
Slot Generation

Walks open intervals at a fixed step and yields every start time at which a
service of the requested duration still fits inside the interval.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Iterator, List

from app.core.exceptions import ValidationError


@dataclass(frozen=True)
class OpenInterval:
    """A half-open [start, end) range; naive = civil time, aware = absolute time"""
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, start: datetime, end: datetime) -> bool:
        return self.start <= start and end <= self.end

    def to_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


class SlotSequence:
    """
    Lazy, finite and restartable: every iteration walks the intervals again,
    nothing is cached between iterations.
    """

    def __init__(self, intervals: Iterable[OpenInterval], duration: timedelta, step: timedelta):
        self._intervals = list(intervals)
        self._duration = duration
        self._step = step

    def __iter__(self) -> Iterator[datetime]:
        for interval in self._intervals:
            start = interval.start
            while start + self._duration <= interval.end:
                yield start
                start += self._step

    def __repr__(self):
        return f"<SlotSequence(intervals={len(self._intervals)}, duration={self._duration}, step={self._step})>"


def generate(
        open_intervals: Iterable[OpenInterval],
        service_duration_minutes: int,
        slot_interval_minutes: int
) -> SlotSequence:
    """
    Candidate start times for a service inside the given open intervals.

    Args:
        open_intervals: disjoint intervals, in the order slots should come out
        service_duration_minutes: length of the service being booked
        slot_interval_minutes: distance between consecutive candidate starts

    Returns:
        SlotSequence yielding start datetimes; empty when the service is
        longer than every interval
    """
    if not service_duration_minutes or service_duration_minutes <= 0:
        raise ValidationError("Service duration must be a positive number of minutes",
                              duration=service_duration_minutes)
    if not slot_interval_minutes or slot_interval_minutes <= 0:
        raise ValidationError("Slot interval must be a positive number of minutes",
                              slot_interval=slot_interval_minutes)

    return SlotSequence(
        open_intervals,
        duration=timedelta(minutes=service_duration_minutes),
        step=timedelta(minutes=slot_interval_minutes),
    )


def merge_intervals(intervals: Iterable[OpenInterval]) -> List[OpenInterval]:
    """Sort and join overlapping or touching intervals; drops empty ones"""
    ordered = sorted((i for i in intervals if i.end > i.start), key=lambda i: i.start)
    if not ordered:
        return []

    merged = [ordered[0]]
    for current in ordered[1:]:
        last = merged[-1]
        if current.start <= last.end:
            if current.end > last.end:
                merged[-1] = OpenInterval(last.start, current.end)
        else:
            merged.append(current)
    return merged


def intersect_intervals(left: Iterable[OpenInterval], right: Iterable[OpenInterval]) -> List[OpenInterval]:
    """Pairwise intersection: max(starts) to min(ends), empty results discarded"""
    right = list(right)
    result = []
    for a in left:
        for b in right:
            start = max(a.start, b.start)
            end = min(a.end, b.end)
            if start < end:
                result.append(OpenInterval(start, end))
    return merge_intervals(result)
