"""Clock times at which a medicine is due.

Everything here is a pure function of the medicine and the user profile: the
calendar view and the notification planner both call into this module and
must see exactly the same times.
"""
from datetime import time
from typing import Iterable, List, Optional

from medreminder.courses.schemas import Frequency, Medicine, Timing, WhenToTake
from medreminder.users.schemas import UserProfileBase

MEAL_OFFSET_MINUTES = 30
MINUTES_PER_DAY = 24 * 60

TIME_FORMAT = "%H:%M"


def shift_time(value: time, minutes: int) -> time:
    """Move a time of day by ``minutes``, wrapping across midnight."""
    total = (value.hour * 60 + value.minute + minutes) % MINUTES_PER_DAY
    return time(total // 60, total % 60)


def format_time(value: time) -> str:
    return value.strftime(TIME_FORMAT)


def parse_time(value: str) -> time:
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


def resolve_time(
    anchor: time,
    when_to_take: WhenToTake,
    x_minutes: Optional[int] = None,
    bedtime: Optional[time] = None,
) -> time:
    """Apply the meal/bedtime preference to an anchor time."""
    if when_to_take == WhenToTake.BEFORE_MEALS:
        return shift_time(anchor, -MEAL_OFFSET_MINUTES)
    if when_to_take == WhenToTake.AFTER_MEALS:
        return shift_time(anchor, MEAL_OFFSET_MINUTES)
    if when_to_take == WhenToTake.X_MINUTES_BEFORE_MEALS:
        return shift_time(anchor, -x_minutes) if x_minutes is not None else anchor
    if when_to_take == WhenToTake.X_MINUTES_AFTER_MEALS:
        return shift_time(anchor, x_minutes) if x_minutes is not None else anchor
    if when_to_take == WhenToTake.AT_BEDTIME:
        return bedtime if bedtime is not None else anchor
    return anchor


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    out = []
    for value in values:
        if value not in seen:
            seen.add(value)
            out.append(value)
    return out


def _once_daily_anchor(medicine: Medicine, user: UserProfileBase) -> Optional[time]:
    if medicine.timing == Timing.MORNING:
        return user.breakfast_time
    if medicine.timing == Timing.AFTERNOON:
        return user.lunch_time
    if medicine.timing == Timing.NIGHT:
        return user.dinner_time
    return medicine.custom_time


def occurrence_times(medicine: Medicine, user: Optional[UserProfileBase]) -> List[str]:
    """Ordered, de-duplicated ``HH:MM`` times for one day of this medicine.

    Returns an empty list when the profile is missing or the medicine lacks
    the option its frequency needs.
    """
    if user is None:
        return []

    def adjusted(anchor: time) -> str:
        return format_time(resolve_time(anchor, medicine.when_to_take, medicine.x_minutes, user.bedtime))

    if medicine.frequency == Frequency.ONCE_DAILY:
        anchor = _once_daily_anchor(medicine, user)
        if anchor is None:
            return []
        return [adjusted(anchor)]

    if medicine.frequency == Frequency.TWICE_DAILY:
        return _unique(adjusted(a) for a in (user.breakfast_time, user.dinner_time))

    if medicine.frequency == Frequency.THRICE_DAILY:
        return _unique(adjusted(a) for a in (user.breakfast_time, user.lunch_time, user.dinner_time))

    if medicine.frequency == Frequency.EVERY_X_HOURS:
        # Interval dosing starts at breakfast and ignores meal offsets
        if not medicine.x_hours or medicine.x_hours <= 0:
            return []
        doses = 24 // medicine.x_hours
        return _unique(
            format_time(shift_time(user.breakfast_time, i * medicine.x_hours * 60))
            for i in range(doses)
        )

    return []


def notification_times(medicines: Iterable[Medicine], user: Optional[UserProfileBase]) -> List[str]:
    """Sorted union of the due times of every medicine."""
    times = set()
    for medicine in medicines:
        times.update(occurrence_times(medicine, user))
    return sorted(times)


def medicines_for_time(
    at: str,
    medicines: Iterable[Medicine],
    user: Optional[UserProfileBase],
) -> List[Medicine]:
    return [m for m in medicines if at in occurrence_times(m, user)]
