from datetime import time

from conftest import make_medicine

from medreminder.courses.schemas import Frequency, Timing, WhenToTake
from medreminder.scheduling.times import (
    medicines_for_time,
    notification_times,
    occurrence_times,
    resolve_time,
    shift_time,
)


def test_resolve_time_meal_offsets():
    assert resolve_time(time(8, 0), WhenToTake.BEFORE_MEALS) == time(7, 30)
    assert resolve_time(time(8, 0), WhenToTake.AFTER_MEALS) == time(8, 30)
    assert resolve_time(time(20, 0), WhenToTake.X_MINUTES_BEFORE_MEALS, x_minutes=45) == time(19, 15)
    assert resolve_time(time(20, 0), WhenToTake.X_MINUTES_AFTER_MEALS, x_minutes=90) == time(21, 30)


def test_resolve_time_bedtime_ignores_anchor():
    bedtime = time(22, 15)
    assert resolve_time(time(8, 0), WhenToTake.AT_BEDTIME, bedtime=bedtime) == bedtime
    assert resolve_time(time(13, 0), WhenToTake.AT_BEDTIME, x_minutes=10, bedtime=bedtime) == bedtime


def test_resolve_time_without_x_minutes_keeps_anchor():
    assert resolve_time(time(8, 0), WhenToTake.X_MINUTES_BEFORE_MEALS) == time(8, 0)
    assert resolve_time(time(8, 0), WhenToTake.X_MINUTES_AFTER_MEALS) == time(8, 0)


def test_resolve_time_wraps_around_midnight():
    assert resolve_time(time(0, 10), WhenToTake.BEFORE_MEALS) == time(23, 40)
    assert resolve_time(time(23, 50), WhenToTake.AFTER_MEALS) == time(0, 20)
    assert shift_time(time(1, 0), -24 * 60) == time(1, 0)


def test_once_daily_uses_meal_for_timing(user):
    morning = make_medicine(timing=Timing.MORNING, when_to_take=WhenToTake.BEFORE_MEALS)
    afternoon = make_medicine(timing=Timing.AFTERNOON, when_to_take=WhenToTake.AFTER_MEALS)
    night = make_medicine(timing=Timing.NIGHT, when_to_take=WhenToTake.X_MINUTES_BEFORE_MEALS, x_minutes=15)

    assert occurrence_times(morning, user) == ["07:30"]
    assert occurrence_times(afternoon, user) == ["13:30"]
    assert occurrence_times(night, user) == ["19:45"]


def test_once_daily_specific_time(user):
    medicine = make_medicine(
        timing=Timing.SPECIFIC_TIME,
        custom_time=time(11, 5),
        when_to_take=WhenToTake.AFTER_MEALS,
    )
    assert occurrence_times(medicine, user) == ["11:35"]


def test_once_daily_specific_time_without_custom_time_is_empty(user):
    medicine = make_medicine(timing=Timing.SPECIFIC_TIME)
    assert occurrence_times(medicine, user) == []


def test_twice_and_thrice_daily(user):
    twice = make_medicine(frequency=Frequency.TWICE_DAILY, when_to_take=WhenToTake.BEFORE_MEALS)
    thrice = make_medicine(frequency=Frequency.THRICE_DAILY, when_to_take=WhenToTake.AFTER_MEALS)

    assert occurrence_times(twice, user) == ["07:30", "19:30"]
    assert occurrence_times(thrice, user) == ["08:30", "13:30", "20:30"]


def test_bedtime_collapses_repeated_times(user):
    medicine = make_medicine(frequency=Frequency.THRICE_DAILY, when_to_take=WhenToTake.AT_BEDTIME)
    assert occurrence_times(medicine, user) == ["22:00"]


def test_every_x_hours_wraps_past_midnight(user):
    medicine = make_medicine(frequency=Frequency.EVERY_X_HOURS, x_hours=6)
    assert occurrence_times(medicine, user) == ["08:00", "14:00", "20:00", "02:00"]


def test_every_x_hours_ignores_meal_offset_and_floors_count(user):
    medicine = make_medicine(
        frequency=Frequency.EVERY_X_HOURS,
        x_hours=5,
        when_to_take=WhenToTake.X_MINUTES_BEFORE_MEALS,
        x_minutes=45,
    )
    assert occurrence_times(medicine, user) == ["08:00", "13:00", "18:00", "23:00"]


def test_every_x_hours_without_interval_is_empty(user):
    medicine = make_medicine(frequency=Frequency.EVERY_X_HOURS)
    assert occurrence_times(medicine, user) == []


def test_missing_profile_gives_no_times():
    assert occurrence_times(make_medicine(), None) == []
    assert notification_times([make_medicine()], None) == []


def test_generator_is_deterministic(user):
    medicine = make_medicine(frequency=Frequency.EVERY_X_HOURS, x_hours=8)
    assert occurrence_times(medicine, user) == occurrence_times(medicine, user)


def test_notification_times_sorted_union(user):
    vitamin = make_medicine("Vitamin D", when_to_take=WhenToTake.AFTER_MEALS)
    antibiotic = make_medicine("Amoxicillin", frequency=Frequency.THRICE_DAILY)
    inhaler = make_medicine("Inhaler", frequency=Frequency.EVERY_X_HOURS, x_hours=12)

    times = notification_times([vitamin, antibiotic, inhaler], user)

    assert times == ["08:00", "08:30", "13:30", "20:00", "20:30"]
    due = medicines_for_time("08:30", [vitamin, antibiotic, inhaler], user)
    assert [m.name for m in due] == ["Vitamin D", "Amoxicillin"]
