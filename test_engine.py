# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for the roster engine: cycle arithmetic, working-hours windows,
location precedence, per-staff status, unit staffing and display helpers.
Pure functions only, no HTTP.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from prometheus_client import REGISTRY

from app.core.config import Settings
from app.models.domain import (
    DailySchedule,
    Department,
    MinimumStaffPeriod,
    Override,
    RosterSettings,
    RosterSnapshot,
    RunnerPool,
    Service,
    ShiftCycleSchedule,
    StaffMember,
    StandingAllocation,
    ZeroDate,
)
from app.models.status import LocationRef, StaffStatus
from app.services.cache import TTLCache
from app.services.cycle import CycleCalculator, RotationRule, resolve_cycle
from app.services.duty_status import EvaluationContext, evaluate_staff
from app.services.location_resolver import (
    ABSENT,
    OFF_ROTATION,
    UNALLOCATED,
    LocationDirectory,
    resolve_location,
)
from app.services.roster_engine import RosterEngine, engine_from_settings
from app.services.schedule_format import (
    describe_schedule,
    display_hours,
    group_by_start_time,
    is_rotating_supervisor,
    sort_supervisors_first,
    week_of,
)
from app.services.time_window import (
    format_minutes,
    parse_time,
    time_status,
    to_minutes,
    window_contains,
)
from app.services.unit_staffing import (
    evaluate_runner_pools,
    evaluate_unit,
    is_visible,
    required_staff,
)

ZERO = date(2024, 1, 1)  # Monday
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday")


def cycle_staff(staff_id=1, **kwargs) -> StaffMember:
    schedule_fields = {
        k: kwargs.pop(k)
        for k in ("days_on", "days_off", "offset", "auto_rotate", "start_time", "end_time")
        if k in kwargs
    }
    return StaffMember(
        id=staff_id,
        name=kwargs.pop("name", f"Staff {staff_id}"),
        schedule=ShiftCycleSchedule(zero_date_id="main", **schedule_fields),
        **kwargs,
    )


def daily_staff(staff_id=1, **kwargs) -> StaffMember:
    schedule = DailySchedule(
        contracted_days=kwargs.pop("contracted_days", WEEKDAYS),
        start_time=kwargs.pop("start_time", "08:00"),
        end_time=kwargs.pop("end_time", "20:00"),
    )
    return StaffMember(
        id=staff_id, name=kwargs.pop("name", f"Staff {staff_id}"), schedule=schedule, **kwargs
    )


def supervisor(staff_id=1, **kwargs) -> StaffMember:
    return cycle_staff(staff_id, category="SUPERVISOR", **kwargs)


def snapshot_of(*staff, **kwargs) -> RosterSnapshot:
    kwargs.setdefault(
        "settings", RosterSettings(zero_dates=(ZeroDate(id="main", date=ZERO),))
    )
    return RosterSnapshot(staff=staff, **kwargs)


def absence(override_id, staff_id, day, **kwargs) -> Override:
    return Override(
        id=override_id, staff_id=staff_id, date=day, override_type="ABSENCE", **kwargs
    )


def temporary(override_id, staff_id, day, **kwargs) -> Override:
    return Override(
        id=override_id,
        staff_id=staff_id,
        date=day,
        override_type="TEMPORARY_ALLOCATION",
        **kwargs,
    )


def status_of(staff, snapshot, target_date, now=None) -> StaffStatus:
    ctx = EvaluationContext(target_date=target_date, now=now)
    return evaluate_staff(
        staff, snapshot, ctx, LocationDirectory(snapshot), CycleCalculator()
    )


# ============================================
# Cycle calculator
# ============================================
class TestCycle:
    def test_four_on_four_off_is_periodic(self):
        staff = cycle_staff()
        for n in range(40):
            day = ZERO + timedelta(days=n)
            first = resolve_cycle(staff, day, ZERO)
            again = resolve_cycle(staff, day + timedelta(days=8), ZERO)
            assert first == again

    def test_four_of_every_eight_days_on_duty(self):
        staff = cycle_staff()
        for start in range(0, 40, 8):
            window = [ZERO + timedelta(days=start + i) for i in range(8)]
            on = [resolve_cycle(staff, d, ZERO).on_duty for d in window]
            assert on == [True] * 4 + [False] * 4

    @pytest.mark.parametrize("offset,expected", [(0, 0), (3, 3), (10, 2), (-3, 5), (-8, 0)])
    def test_zero_date_index_is_offset_mod_length(self, offset, expected):
        info = resolve_cycle(cycle_staff(offset=offset), ZERO, ZERO)
        assert info.cycle_day_index == expected

    def test_zero_date_without_offset_is_first_day_on(self):
        info = resolve_cycle(cycle_staff(), ZERO, ZERO)
        assert info.cycle_day_index == 0
        assert info.on_duty is True
        assert info.cycle_day == 1

    def test_dates_before_zero_date_stay_non_negative(self):
        info = resolve_cycle(cycle_staff(), ZERO - timedelta(days=1), ZERO)
        assert info.cycle_day_index == 7
        assert info.on_duty is False

    def test_time_of_day_is_ignored(self):
        staff = cycle_staff()
        late = datetime(2024, 1, 1, 23, 59)
        early_zero = datetime(2024, 1, 1, 0, 0)
        assert resolve_cycle(staff, late, early_zero).cycle_day_index == 0

    def test_local_calendar_day_of_aware_datetime(self):
        london = datetime(2024, 1, 2, 0, 30, tzinfo=ZoneInfo("Europe/London"))
        assert resolve_cycle(cycle_staff(), london, ZERO).cycle_day_index == 1

    def test_uneven_cycle(self):
        staff = cycle_staff(days_on=2, days_off=3)
        on = [resolve_cycle(staff, ZERO + timedelta(days=n), ZERO).on_duty for n in range(10)]
        assert on == [True, True, False, False, False] * 2

    def test_no_days_off_is_always_on(self):
        staff = cycle_staff(days_on=3, days_off=0)
        assert all(
            resolve_cycle(staff, ZERO + timedelta(days=n), ZERO).on_duty for n in range(10)
        )

    def test_fixed_shift_type_for_regular_staff(self):
        night = cycle_staff(is_night_staff=True)
        day = cycle_staff()
        for n in range(16):
            target = ZERO + timedelta(days=n)
            assert resolve_cycle(night, target, ZERO).shift_type == "night"
            assert resolve_cycle(day, target, ZERO).shift_type == "day"


class TestSupervisorRotation:
    @pytest.mark.parametrize("day_number,on_duty,shift_type", [
        (1, True, "day"),
        (5, False, "day"),
        (9, True, "night"),
        (13, False, "night"),
        (17, True, "day"),
    ])
    def test_rotation_by_cycle_block(self, day_number, on_duty, shift_type):
        target = ZERO + timedelta(days=day_number - 1)
        info = resolve_cycle(supervisor(), target, ZERO)
        assert info.on_duty is on_duty
        assert info.shift_type == shift_type

    def test_rotation_repeats_every_two_cycles(self):
        staff = supervisor()
        for n in range(16):
            target = ZERO + timedelta(days=n)
            assert resolve_cycle(staff, target, ZERO) == resolve_cycle(
                staff, target + timedelta(days=16), ZERO
            )

    def test_next_on_period_rule_disagrees_on_off_days(self):
        """The two rotation readings differ only on off days."""
        staff = supervisor()
        for n in range(32):
            target = ZERO + timedelta(days=n)
            block = resolve_cycle(staff, target, ZERO, RotationRule.CYCLE_BLOCK)
            ahead = resolve_cycle(staff, target, ZERO, RotationRule.NEXT_ON_PERIOD)
            if block.on_duty:
                assert block.shift_type == ahead.shift_type
            else:
                assert block.shift_type != ahead.shift_type

    def test_next_on_period_day_five_is_night(self):
        info = resolve_cycle(
            supervisor(), ZERO + timedelta(days=4), ZERO, RotationRule.NEXT_ON_PERIOD
        )
        assert info.shift_type == "night"

    def test_auto_rotate_flag_overrides_category(self):
        rotating = cycle_staff(auto_rotate=True)
        fixed = supervisor(auto_rotate=False)
        night_block = ZERO + timedelta(days=8)
        assert resolve_cycle(rotating, night_block, ZERO).shift_type == "night"
        assert resolve_cycle(fixed, night_block, ZERO).shift_type == "day"

    def test_offset_shifts_rotation(self):
        info = resolve_cycle(supervisor(offset=8), ZERO, ZERO)
        assert info.on_duty is True
        assert info.shift_type == "night"


class TestCycleNotApplicable:
    def test_daily_staff(self):
        info = resolve_cycle(daily_staff(), ZERO, ZERO)
        assert info.applicable is False
        assert info.on_duty is False

    def test_missing_zero_date(self):
        info = resolve_cycle(cycle_staff(), ZERO, None)
        assert info.applicable is False
        assert info.on_duty is False

    @pytest.mark.parametrize("days_on,days_off", [(0, 4), (-1, 4), (0, 0), (4, -4)])
    def test_invalid_cycle(self, days_on, days_off):
        info = resolve_cycle(cycle_staff(days_on=days_on, days_off=days_off), ZERO, ZERO)
        assert info.applicable is False
        assert info.on_duty is False


# ============================================
# Cycle cache
# ============================================
class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestTTLCache:
    def test_hit_within_ttl(self):
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=60, clock=clock)
        calls = []
        compute = lambda: calls.append(1) or len(calls)
        assert cache.get_or_compute("k", compute) == 1
        clock.now = 59
        assert cache.get_or_compute("k", compute) == 1
        assert cache.hits == 1
        assert cache.misses == 1

    def test_recompute_after_ttl(self):
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=60, clock=clock)
        calls = []
        compute = lambda: calls.append(1) or len(calls)
        cache.get_or_compute("k", compute)
        clock.now = 61
        assert cache.get_or_compute("k", compute) == 2
        assert cache.misses == 2

    def test_disabled_cache_always_computes(self):
        cache = TTLCache(enabled=False)
        calls = []
        compute = lambda: calls.append(1) or len(calls)
        cache.get_or_compute("k", compute)
        cache.get_or_compute("k", compute)
        assert len(calls) == 2
        assert len(cache) == 0

    def test_bounded_size(self):
        cache = TTLCache(max_entries=4)
        for i in range(10):
            cache.get_or_compute(i, lambda: i)
        assert len(cache) <= 4

    def test_clear(self):
        cache = TTLCache()
        cache.get_or_compute("k", lambda: 1)
        cache.clear()
        assert len(cache) == 0

    def test_calculator_key_includes_schedule(self):
        calculator = CycleCalculator(cache=TTLCache())
        before = cycle_staff(offset=0)
        after = cycle_staff(offset=4)
        assert calculator.resolve(before, ZERO, ZERO).on_duty is True
        assert calculator.resolve(after, ZERO, ZERO).on_duty is False

    def test_cached_and_uncached_results_match(self):
        cached = CycleCalculator(cache=TTLCache())
        uncached = CycleCalculator(cache=TTLCache(enabled=False))
        staff = supervisor()
        for n in range(-20, 20):
            target = ZERO + timedelta(days=n)
            cached.resolve(staff, target, ZERO)
            assert cached.resolve(staff, target, ZERO) == uncached.resolve(staff, target, ZERO)


# ============================================
# Working-hours windows
# ============================================
class TestTimeWindow:
    @pytest.mark.parametrize("now", ["13:00", "18:00", "23:59", "01:00", "00:00"])
    def test_overnight_active(self, now):
        assert time_status("13:00", "01:00", now) == "active"

    def test_overnight_scheduled_when_working_later(self):
        assert time_status("13:00", "01:00", "08:00", works_later_today=True) == "scheduled"

    @pytest.mark.parametrize("now", ["02:00", "08:00", "12:59"])
    def test_overnight_off_duty_without_later_shift(self, now):
        assert time_status("13:00", "01:00", now, works_later_today=False) == "off-duty"

    @pytest.mark.parametrize("now,expected", [
        ("07:59", "scheduled"),
        ("08:00", "active"),
        ("14:30", "active"),
        ("20:00", "active"),
        ("20:01", "off-duty"),
    ])
    def test_same_day_window(self, now, expected):
        assert time_status("08:00", "20:00", now) == expected

    def test_accepts_time_objects(self):
        assert time_status("08:00", "20:00", time(9, 15)) == "active"
        assert time_status("08:00", "20:00", datetime(2024, 1, 1, 21, 0)) == "off-duty"

    @pytest.mark.parametrize("bad", ["25:00", "8", "ab:cd", "12:60", ""])
    def test_malformed_time_raises(self, bad):
        with pytest.raises(ValueError):
            parse_time(bad)

    def test_parse_and_format(self):
        assert parse_time("8:05") == 485
        assert format_minutes(485) == "08:05"
        assert to_minutes(time(23, 59)) == 1439

    def test_minute_of_day_out_of_range(self):
        with pytest.raises(ValueError):
            to_minutes(1440)

    def test_window_contains_overnight(self):
        assert window_contains("20:00", "08:00", "02:00") is True
        assert window_contains("20:00", "08:00", "12:00") is False


# ============================================
# Location precedence
# ============================================
class TestLocationResolver:
    def setup_method(self):
        self.staff = daily_staff(runner_pool_id=100)
        self.allocation = StandingAllocation(id=1, staff_id=1, department_id=1)
        self.snapshot = snapshot_of(
            self.staff,
            allocations=(self.allocation,),
            departments=(Department(id=1, name="Emergency"), Department(id=2, name="Theatre")),
            runner_pools=(RunnerPool(id=100, name="Porters"),),
        )
        self.directory = LocationDirectory(self.snapshot)

    def resolve(self, overrides, allocation="default", target=ZERO):
        if allocation == "default":
            allocation = self.allocation
        return resolve_location(self.staff, target, overrides, allocation, self.directory)

    def test_absence_beats_standing_allocation(self):
        resolved = self.resolve([absence(1, 1, ZERO)])
        assert resolved.location == ABSENT
        assert resolved.is_absent is True
        assert resolved.override_applied.id == 1

    def test_temporary_allocation_beats_standing(self):
        resolved = self.resolve([temporary(1, 1, ZERO, department_id=2)])
        assert resolved.location == "Theatre"
        assert resolved.source == "temporary_allocation"

    def test_standing_allocation(self):
        resolved = self.resolve([])
        assert resolved.location == "Emergency"
        assert resolved.ref.kind == "department"

    def test_runner_pool_membership(self):
        resolved = self.resolve([], allocation=None)
        assert resolved.location == "Porters"
        assert resolved.source == "runner_pool"

    def test_unallocated(self):
        staff = daily_staff()
        resolved = resolve_location(staff, ZERO, [], None, self.directory)
        assert resolved.location == UNALLOCATED

    def test_override_outside_range_is_ignored(self):
        resolved = self.resolve([absence(1, 1, ZERO + timedelta(days=1))])
        assert resolved.location == "Emergency"

    def test_range_covers_end_date(self):
        override = absence(1, 1, ZERO - timedelta(days=3), end_date=ZERO)
        assert self.resolve([override]).is_absent is True
        assert self.resolve([override], target=ZERO + timedelta(days=1)).is_absent is False

    def test_other_staff_overrides_are_ignored(self):
        assert self.resolve([absence(1, 2, ZERO)]).location == "Emergency"

    def test_absence_wins_over_newer_temporary_allocation(self):
        older = absence(1, 1, ZERO, created_at=datetime(2024, 1, 1, 8, tzinfo=timezone.utc))
        newer = temporary(
            2, 1, ZERO, department_id=2, created_at=datetime(2024, 1, 1, 9, tzinfo=timezone.utc)
        )
        resolved = self.resolve([newer, older])
        assert resolved.is_absent is True
        assert resolved.ignored_overrides == 1

    def test_most_recent_temporary_allocation_wins(self):
        older = temporary(
            5, 1, ZERO, department_id=1, created_at=datetime(2024, 1, 1, 8, tzinfo=timezone.utc)
        )
        newer = temporary(
            2, 1, ZERO, department_id=2, created_at=datetime(2024, 1, 1, 9, tzinfo=timezone.utc)
        )
        assert self.resolve([older, newer]).location == "Theatre"
        assert self.resolve([newer, older]).location == "Theatre"

    def test_same_created_at_breaks_tie_by_id(self):
        stamp = datetime(2024, 1, 1, 8, tzinfo=timezone.utc)
        first = temporary(1, 1, ZERO, department_id=1, created_at=stamp)
        second = temporary(2, 1, ZERO, department_id=2, created_at=stamp)
        assert self.resolve([second, first]).location == "Theatre"

    def test_unknown_target_is_named(self):
        resolved = self.resolve([temporary(1, 1, ZERO, service_id=99)])
        assert resolved.location == "Unknown service #99"


# ============================================
# Per-staff status
# ============================================
class TestStaffStatus:
    def test_absent_staff_is_never_active(self):
        staff = daily_staff()
        snapshot = snapshot_of(
            staff,
            allocations=(StandingAllocation(id=1, staff_id=1, department_id=1),),
            overrides=(absence(1, 1, ZERO),),
            departments=(Department(id=1, name="Emergency"),),
        )
        status = status_of(staff, snapshot, ZERO, time(10, 0))
        assert status.resolved_location == ABSENT
        assert status.is_absent is True
        assert status.is_active is False

    def test_unallocated_staff_is_not_active(self):
        staff = daily_staff()
        status = status_of(staff, snapshot_of(staff), ZERO, time(10, 0))
        assert status.time_status == "active"
        assert status.is_active is False

    def test_not_contracted_day(self):
        staff = daily_staff(contracted_days=("tuesday",))
        status = status_of(staff, snapshot_of(staff), ZERO, time(10, 0))
        assert status.is_scheduled_today is False
        assert status.time_status == "off-duty"

    def test_off_rotation_keeps_location_reference(self):
        staff = cycle_staff()
        snapshot = snapshot_of(
            staff,
            allocations=(StandingAllocation(id=1, staff_id=1, department_id=1),),
            departments=(Department(id=1, name="Emergency"),),
        )
        status = status_of(staff, snapshot, ZERO + timedelta(days=5))
        assert status.off_rotation is True
        assert status.resolved_location == OFF_ROTATION
        assert status.location_ref.id == 1
        assert status.is_active is False

    def test_absence_on_off_day_is_not_off_rotation(self):
        staff = cycle_staff()
        off_day = ZERO + timedelta(days=5)
        snapshot = snapshot_of(staff, overrides=(absence(1, 1, off_day),))
        status = status_of(staff, snapshot, off_day)
        assert status.off_rotation is False
        assert status.resolved_location == ABSENT

    def test_future_date_is_scheduled(self):
        staff = daily_staff()
        snapshot = snapshot_of(
            staff,
            allocations=(StandingAllocation(id=1, staff_id=1, service_id=10),),
            services=(Service(id=10, name="Pharmacy"),),
        )
        status = status_of(staff, snapshot, ZERO + timedelta(days=1))
        assert status.time_status == "scheduled"
        assert status.is_active is True

    def test_temporary_allocation_hours(self):
        staff = daily_staff()
        snapshot = snapshot_of(
            staff,
            overrides=(temporary(
                1, 1, ZERO, department_id=1, start_time="13:00", end_time="01:00"
            ),),
            departments=(Department(id=1, name="Emergency"),),
        )
        status = status_of(staff, snapshot, ZERO, time(23, 0))
        assert status.working_hours == "13:00 - 01:00"
        assert status.time_status == "active"
        assert status.is_active is True

    def test_rotating_supervisor_uses_shift_hours(self):
        staff = supervisor()
        snapshot = snapshot_of(staff)
        night_day = ZERO + timedelta(days=8)
        assert status_of(staff, snapshot, ZERO).working_hours == "08:00 - 20:00"
        assert status_of(staff, snapshot, night_day).working_hours == "20:00 - 08:00"


class TestAnomalies:
    def test_missing_zero_date(self):
        staff = cycle_staff()
        snapshot = snapshot_of(staff, settings=RosterSettings())
        result = RosterEngine().evaluate(snapshot, ZERO)
        assert result.staff[0].is_scheduled_today is False
        assert [a.kind for a in result.anomalies] == ["missing_zero_date"]

    def test_invalid_cycle(self):
        staff = cycle_staff(days_on=0)
        result = RosterEngine().evaluate(snapshot_of(staff), ZERO)
        assert result.staff[0].is_scheduled_today is False
        assert result.anomalies[0].kind == "invalid_cycle"

    def test_invalid_time_degrades_to_off_duty(self):
        staff = daily_staff(start_time="25:00")
        result = RosterEngine().evaluate(snapshot_of(staff), ZERO, datetime(2024, 1, 1, 10, 0))
        assert result.staff[0].time_status == "off-duty"
        assert result.anomalies[0].kind == "invalid_time"
        assert result.anomalies[0].staff_id == 1

    def test_overlapping_overrides(self):
        staff = daily_staff()
        snapshot = snapshot_of(
            staff, overrides=(absence(1, 1, ZERO), absence(2, 1, ZERO))
        )
        result = RosterEngine().evaluate(snapshot, ZERO)
        assert result.staff[0].override.id == 2
        assert result.anomalies[0].kind == "overlapping_overrides"

    def test_unknown_location(self):
        staff = daily_staff()
        snapshot = snapshot_of(
            staff, allocations=(StandingAllocation(id=1, staff_id=1, department_id=42),)
        )
        result = RosterEngine().evaluate(snapshot, ZERO)
        assert result.staff[0].resolved_location == "Unknown department #42"
        assert result.anomalies[0].kind == "unknown_location"

    def test_one_bad_record_does_not_blank_the_rest(self):
        good = daily_staff(1)
        bad = cycle_staff(2, days_on=0)
        result = RosterEngine().evaluate(snapshot_of(good, bad), ZERO)
        assert result.staff[0].is_scheduled_today is True
        assert len(result.staff) == 2


# ============================================
# Unit staffing
# ============================================
def active_status(staff_id, kind, unit_id, shift_type="day", active=True) -> StaffStatus:
    return StaffStatus(
        staff=daily_staff(staff_id),
        resolved_location="x",
        location_ref=LocationRef(kind=kind, id=unit_id),
        is_scheduled_today=True,
        time_status="active" if active else "scheduled",
        is_active=active,
        shift_type=shift_type,
    )


class TestUnitStaffing:
    def test_understaffed_24x7_department_is_visible(self):
        unit = Department(id=1, name="Emergency", is_24x7=True, min_staff=2)
        result = evaluate_unit(unit, "department", [active_status(1, "department", 1)], ZERO)
        assert result.active_staff == 1
        assert result.is_understaffed is True
        assert result.is_visible is True

    def test_fully_staffed(self):
        unit = Department(id=1, name="Emergency", is_24x7=True, min_staff=2)
        statuses = [active_status(1, "department", 1), active_status(2, "department", 1)]
        result = evaluate_unit(unit, "department", statuses, ZERO)
        assert result.is_understaffed is False
        assert result.assigned_staff == (1, 2)

    def test_empty_unit_hidden_unless_displayed_on_home(self):
        hidden = Department(id=1, name="Emergency", is_24x7=True)
        shown = Department(id=1, name="Emergency", is_24x7=True, display_on_home=True)
        assert evaluate_unit(hidden, "department", [], ZERO).is_visible is False
        assert evaluate_unit(shown, "department", [], ZERO).is_visible is True

    def test_closed_unit_is_not_understaffed(self):
        unit = Service(id=1, name="Clinic", operational_days=("saturday",), display_on_home=True)
        result = evaluate_unit(unit, "service", [], ZERO)
        assert result.is_operational is False
        assert result.is_understaffed is False
        assert result.is_visible is False

    def test_matches_kind_and_id(self):
        unit = Department(id=1, name="Emergency", is_24x7=True)
        statuses = [active_status(1, "service", 1), active_status(2, "department", 2)]
        assert evaluate_unit(unit, "department", statuses, ZERO).assigned_staff == ()

    def test_is_visible(self):
        assert is_visible(True, 1, False) is True
        assert is_visible(True, 0, False) is False
        assert is_visible(False, 3, True) is False


class TestMinimumStaffPeriods:
    def setup_method(self):
        self.unit = Department(
            id=1,
            name="Emergency",
            is_24x7=True,
            min_staff=1,
            minimum_staff_periods=(
                MinimumStaffPeriod(
                    start_time="08:00", end_time="18:00", min_staff=3, days_of_week=WEEKDAYS
                ),
                MinimumStaffPeriod(
                    start_time="12:00", end_time="14:00", min_staff=5, days_of_week=("monday",)
                ),
            ),
        )

    def test_period_raises_requirement(self):
        assert required_staff(self.unit, ZERO, time(9, 0)) == 3

    def test_highest_covering_period_wins(self):
        assert required_staff(self.unit, ZERO, time(13, 0)) == 5

    def test_outside_periods_uses_min_staff(self):
        assert required_staff(self.unit, ZERO, time(19, 0)) == 1

    def test_other_weekday(self):
        saturday = ZERO + timedelta(days=5)
        assert required_staff(self.unit, saturday, time(9, 0)) == 1

    def test_not_today_uses_min_staff(self):
        assert required_staff(self.unit, ZERO, None) == 1


class TestRunnerPools:
    def test_split_by_shift_type(self):
        pool = RunnerPool(id=100, name="Porters", min_staff=1, display_on_home=True)
        statuses = [
            active_status(1, "runner_pool", 100, "day"),
            active_status(2, "runner_pool", 100, "night", active=False),
        ]
        day, night = evaluate_runner_pools([pool], statuses)
        assert (day.shift_type, day.assigned_staff, day.active_staff) == ("day", (1,), 1)
        assert (night.shift_type, night.assigned_staff, night.active_staff) == ("night", (2,), 0)
        assert day.is_understaffed is False
        assert night.is_understaffed is True

    def test_empty_sub_group_hidden(self):
        pool = RunnerPool(id=100, name="Porters")
        day, night = evaluate_runner_pools([pool], [active_status(1, "runner_pool", 100)])
        assert day.is_visible is True
        assert night.is_visible is False

    def test_ordered_by_display_order_then_name(self):
        pools = [
            RunnerPool(id=1, name="Zeta", display_order=1),
            RunnerPool(id=2, name="Beta", display_order=2),
            RunnerPool(id=3, name="Alpha", display_order=1),
        ]
        ordered = [p.pool_id for p in evaluate_runner_pools(pools, [])][::2]
        assert ordered == [3, 1, 2]


# ============================================
# Roster engine
# ============================================
class TestRosterEngine:
    def setup_method(self):
        self.snapshot = snapshot_of(
            daily_staff(1, name="Alice"),
            supervisor(2, name="Sam"),
            cycle_staff(3, name="Rita", runner_pool_id=100),
            allocations=(StandingAllocation(id=1, staff_id=1, department_id=1),),
            overrides=(absence(1, 3, ZERO + timedelta(days=1)),),
            departments=(Department(id=1, name="Emergency", is_24x7=True, min_staff=2),),
            runner_pools=(RunnerPool(id=100, name="Porters"),),
        )

    def test_evaluation_is_idempotent(self):
        engine = RosterEngine(cache=TTLCache())
        now = datetime(2024, 1, 1, 10, 0)
        first = engine.evaluate(self.snapshot, ZERO, now).model_dump_json()
        second = engine.evaluate(self.snapshot, ZERO, now).model_dump_json()
        assert first == second

    def test_cleared_cache_reproduces_results(self):
        engine = RosterEngine(cache=TTLCache())
        first = engine.evaluate(self.snapshot, ZERO).model_dump_json()
        engine.clear_cache()
        assert engine.evaluate(self.snapshot, ZERO).model_dump_json() == first

    def test_disabled_cache_gives_identical_results(self):
        cached = RosterEngine(cache=TTLCache())
        uncached = RosterEngine(cache=TTLCache(enabled=False))
        for n in range(16):
            target = ZERO + timedelta(days=n)
            assert (
                cached.evaluate(self.snapshot, target).model_dump_json()
                == uncached.evaluate(self.snapshot, target).model_dump_json()
            )

    def test_today_requires_matching_date(self):
        engine = RosterEngine()
        assert engine.context_for(ZERO, datetime(2024, 1, 1, 9, 30)).now == time(9, 30)
        assert engine.context_for(ZERO, datetime(2024, 1, 2, 9, 30)).is_today is False
        assert engine.context_for(ZERO).is_today is False

    def test_understaffed_department(self):
        result = RosterEngine().evaluate(self.snapshot, ZERO, datetime(2024, 1, 1, 10, 0))
        emergency = result.departments[0]
        assert emergency.active_staff == 1
        assert emergency.is_understaffed is True
        assert emergency.is_visible is True

    def test_supervisor_roster(self):
        engine = RosterEngine()
        assert engine.evaluate(self.snapshot, ZERO).supervisors.day == (2,)
        night = engine.evaluate(self.snapshot, ZERO + timedelta(days=8)).supervisors
        assert night.night == (2,)
        assert night.day == ()

    def test_absent_supervisor_excluded(self):
        snapshot = self.snapshot.model_copy(update={"overrides": (absence(9, 2, ZERO),)})
        assert RosterEngine().evaluate(snapshot, ZERO).supervisors.day == ()

    def test_daily_supervisor_not_in_roster(self):
        snapshot = self.snapshot.model_copy(update={
            "staff": self.snapshot.staff + (daily_staff(9, category="SUPERVISOR"),),
        })
        assert RosterEngine().evaluate(snapshot, ZERO).supervisors.day == (2,)

    def test_week_summary_records_no_metrics(self):
        engine = RosterEngine()
        before = REGISTRY.get_sample_value("roster_evaluations_total")
        engine.week_summary(self.snapshot, ZERO)
        assert REGISTRY.get_sample_value("roster_evaluations_total") == before
        engine.evaluate(self.snapshot, ZERO)
        assert REGISTRY.get_sample_value("roster_evaluations_total") == before + 1

    def test_staff_status_unknown_id(self):
        with pytest.raises(KeyError):
            RosterEngine().staff_status(self.snapshot, 99, ZERO)

    def test_shift_info(self):
        engine = RosterEngine()
        assert engine.shift_info(self.snapshot, 1, ZERO) is None
        assert engine.shift_info(self.snapshot, 2, ZERO).on_duty is True
        with pytest.raises(KeyError):
            engine.shift_info(self.snapshot, 99, ZERO)

    def test_week_summary(self):
        days = RosterEngine().week_summary(self.snapshot, ZERO + timedelta(days=3))
        assert [d.date for d in days] == week_of(ZERO)
        assert days[1].absent_staff == 1
        assert days[5].scheduled_staff == 0

    def test_visible_only(self):
        snapshot = self.snapshot.model_copy(update={
            "departments": self.snapshot.departments + (Department(id=2, name="Closed"),),
        })
        result = RosterEngine().evaluate(snapshot, ZERO)
        assert len(result.departments) == 2
        assert [d.unit_id for d in result.visible_only().departments] == [1]

    def test_engine_from_settings(self):
        config = Settings()
        config.SUPERVISOR_ROTATION_RULE = "next_on_period"
        config.DAY_SHIFT_HOURS = "07:00-19:00"
        config.CYCLE_CACHE_ENABLED = False
        engine = engine_from_settings(config)
        assert engine.calculator.rule == RotationRule.NEXT_ON_PERIOD
        assert engine.day_hours == ("07:00", "19:00")
        assert engine.cache.enabled is False


# ============================================
# Display helpers
# ============================================
class TestScheduleFormat:
    def test_describe_schedule(self):
        assert describe_schedule(daily_staff()) == "Daily: 08:00 - 20:00"
        assert describe_schedule(supervisor()) == "4/4 Rotating Day/Night Shifts"
        assert describe_schedule(cycle_staff(days_on=3, days_off=4)) == "3/4 Day Shift Cycle"
        assert describe_schedule(cycle_staff(is_night_staff=True)) == "4/4 Night Shift Cycle"

    def test_display_hours(self):
        snapshot = snapshot_of(
            supervisor(1),
            cycle_staff(2, is_night_staff=True),
            daily_staff(3, start_time="07:30", end_time="15:30"),
        )
        sup, night, daily = [status_of(s, snapshot, ZERO) for s in snapshot.staff]
        assert display_hours(sup, in_night_section=True) == "20:00 - 08:00"
        assert display_hours(sup) == "08:00 - 20:00"
        assert display_hours(night) == "20:00 - 08:00"
        assert display_hours(daily) == "07:30 - 15:30"

    def test_is_rotating_supervisor(self):
        assert is_rotating_supervisor(supervisor()) is True
        assert is_rotating_supervisor(cycle_staff()) is False
        assert is_rotating_supervisor(daily_staff(category="SUPERVISOR")) is False

    def test_supervisors_sorted_first(self):
        snapshot = snapshot_of(daily_staff(1, name="Aaron"), supervisor(2, name="Zoe"))
        statuses = [status_of(s, snapshot, ZERO) for s in snapshot.staff]
        assert [s.staff.id for s in sort_supervisors_first(statuses)] == [2, 1]

    def test_group_by_start_time(self):
        snapshot = snapshot_of(
            daily_staff(1, start_time="07:00", end_time="15:00"),
            daily_staff(2),
            cycle_staff(3, is_night_staff=True, start_time="08:00", end_time="20:00"),
            supervisor(4),
            supervisor(5, offset=4),
        )
        statuses = [status_of(s, snapshot, ZERO) for s in snapshot.staff]
        groups = group_by_start_time(statuses)
        assert [g.time_label for g in groups] == ["07:00", "08:00"]
        eight = groups[1]
        assert [s.staff.id for s in eight.day_staff] == [4, 2]
        assert [s.staff.id for s in eight.night_staff] == [3]

    def test_week_of(self):
        days = week_of(date(2024, 1, 4))
        assert days[0] == date(2024, 1, 1)
        assert days[-1] == date(2024, 1, 7)
        assert len(days) == 7
