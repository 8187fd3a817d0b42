"""Tests for the period resolver."""

from datetime import date

import pytest

from officedays.core.errors import InvalidQuarterConfiguration
from officedays.core.periods import (
    month_name,
    quarter_from_month,
    resolve_month,
    resolve_period,
    resolve_quarter,
    resolve_year,
)
from officedays.core.quarter_config import QuarterConfig, default_quarter_config
from officedays.data.models import SelectedPeriod


def _config(**overrides):
    data = default_quarter_config().model_dump()
    data.update(overrides)
    return QuarterConfig(**data)


class TestMonthHelpers:
    def test_month_name(self):
        assert month_name(0) == "January"
        assert month_name(11) == "December"

    def test_quarter_from_month(self):
        assert quarter_from_month(4, default_quarter_config()) == "Q2"

    def test_quarter_from_unassigned_month(self):
        cfg = _config(Q1=[1, 2], Q4=[9, 10, 11])
        assert quarter_from_month(0, cfg) == "Unknown"


class TestResolveMonth:
    def test_august(self):
        period = resolve_month(2025, 7)
        assert period.start == date(2025, 8, 1)
        assert period.end == date(2025, 8, 31)
        assert period.label == "August 2025"

    def test_leap_february(self):
        assert resolve_month(2024, 1).end == date(2024, 2, 29)
        assert resolve_month(2023, 1).end == date(2023, 2, 28)

    def test_month_out_of_range(self):
        with pytest.raises(ValueError):
            resolve_month(2024, 12)


class TestResolveQuarter:
    def test_default_q2(self):
        period = resolve_quarter(2024, "Q2", default_quarter_config())
        assert (period.start, period.end) == (date(2024, 4, 1), date(2024, 6, 30))
        assert period.label == "Q2 2024"

    def test_shifted_quarter(self):
        period = resolve_quarter(2024, "Q1", _config(Q1=[1, 2, 3]))
        assert (period.start, period.end) == (date(2024, 2, 1), date(2024, 4, 30))

    def test_months_in_any_order(self):
        period = resolve_quarter(2024, "Q2", _config(Q2=[5, 3, 4]))
        assert (period.start, period.end) == (date(2024, 4, 1), date(2024, 6, 30))

    def test_empty_quarter_raises(self):
        with pytest.raises(InvalidQuarterConfiguration) as exc_info:
            resolve_quarter(2024, "Q4", _config(Q4=[]))
        assert exc_info.value.quarter == "Q4"
        assert str(exc_info.value) == "Invalid quarter: Q4"

    def test_unknown_label_raises(self):
        with pytest.raises(InvalidQuarterConfiguration):
            resolve_quarter(2024, "Q5", default_quarter_config())

    def test_year_wrapping_quarter_raises(self):
        with pytest.raises(InvalidQuarterConfiguration, match="not consecutive"):
            resolve_quarter(2024, "Q4", _config(Q4=[10, 11, 0]))

    def test_gap_raises(self):
        with pytest.raises(InvalidQuarterConfiguration):
            resolve_quarter(2024, "Q1", _config(Q1=[0, 2]))


class TestResolveYearAndPeriod:
    def test_year(self):
        period = resolve_year(2024)
        assert (period.start, period.end, period.label) == (
            date(2024, 1, 1), date(2024, 12, 31), "2024"
        )

    def test_dispatch(self):
        cfg = default_quarter_config()
        assert resolve_period(SelectedPeriod("month", 2024, month=0), cfg).label == "January 2024"
        assert resolve_period(SelectedPeriod("quarter", 2024, quarter="Q3"), cfg).label == "Q3 2024"
        assert resolve_period(SelectedPeriod("year", 2024), cfg).label == "2024"

    def test_month_selection_without_month(self):
        with pytest.raises(ValueError):
            resolve_period(SelectedPeriod("month", 2024), default_quarter_config())
