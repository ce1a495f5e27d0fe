from datetime import datetime
from decimal import Decimal

from src.timekeeping.timekeeping.payroll.calculator.standard_calculator import StandardHoursCalculator

SHIFT = (datetime(2025, 1, 6, 8, 0), datetime(2025, 1, 6, 17, 0))


def test_regular_hours_are_overlap_with_shift():
    hours = StandardHoursCalculator().calculate(
        check_in=datetime(2025, 1, 6, 8, 20), check_out=datetime(2025, 1, 6, 16, 0), shift_window=SHIFT
    )

    assert hours.regular_minutes == 460
    assert hours.regular_hours == Decimal("7.67")
    assert hours.overtime_hours == Decimal("0.00")


def test_overtime_is_early_plus_late_minutes_rounded_half_up():
    # 15 early + 0 late = half a 30-minute step -> rounds up
    hours = StandardHoursCalculator().calculate(
        check_in=datetime(2025, 1, 6, 7, 45), check_out=datetime(2025, 1, 6, 17, 0), shift_window=SHIFT
    )

    assert hours.overtime_minutes == 15
    assert hours.overtime_hours == Decimal("0.50")
    assert hours.regular_hours == Decimal("9.00")


def test_overtime_below_half_step_rounds_down():
    hours = StandardHoursCalculator().calculate(
        check_in=datetime(2025, 1, 6, 8, 0), check_out=datetime(2025, 1, 6, 18, 10), shift_window=SHIFT
    )

    assert hours.overtime_minutes == 70
    assert hours.overtime_hours == Decimal("1.00")


def test_overtime_periods_are_not_double_counted():
    hours = StandardHoursCalculator().calculate(
        check_in=datetime(2025, 1, 6, 8, 0),
        check_out=datetime(2025, 1, 6, 18, 0),
        shift_window=SHIFT,
        overtime_periods=[(datetime(2025, 1, 6, 17, 30), datetime(2025, 1, 6, 19, 0))],
    )

    # union after 17:00 is 17:00..19:00
    assert hours.overtime_minutes == 120
    assert hours.overtime_hours == Decimal("2.00")


def test_overnight_pair():
    shift = (datetime(2025, 1, 6, 20, 0), datetime(2025, 1, 7, 5, 0))

    hours = StandardHoursCalculator().calculate(
        check_in=datetime(2025, 1, 6, 20, 0), check_out=datetime(2025, 1, 7, 5, 30), shift_window=shift
    )

    assert hours.regular_hours == Decimal("9.00")
    assert hours.overtime_hours == Decimal("0.50")


def test_whole_day_counts_as_overtime_without_shift_window():
    hours = StandardHoursCalculator().calculate(
        check_in=None,
        check_out=None,
        shift_window=None,
        overtime_periods=[(datetime(2025, 1, 4, 9, 0), datetime(2025, 1, 4, 12, 0))],
    )

    assert hours.regular_hours == Decimal("0.00")
    assert hours.overtime_hours == Decimal("3.00")


def test_recomputation_is_idempotent():
    calc = StandardHoursCalculator(overtime_rounding_minutes=15)
    args = dict(check_in=datetime(2025, 1, 6, 7, 41), check_out=datetime(2025, 1, 6, 18, 7), shift_window=SHIFT)

    assert calc.calculate(**args) == calc.calculate(**args)


def test_regular_window_caps_regular_hours_but_not_overtime():
    afternoon_half = (datetime(2025, 1, 6, 12, 30), datetime(2025, 1, 6, 17, 0))

    hours = StandardHoursCalculator().calculate(
        check_in=datetime(2025, 1, 6, 8, 0),
        check_out=datetime(2025, 1, 6, 18, 0),
        shift_window=SHIFT,
        regular_window=afternoon_half,
    )

    assert hours.regular_minutes == 270
    assert hours.regular_hours == Decimal("4.50")
    assert hours.overtime_hours == Decimal("1.00")
