"""Tests for the number / key / week helpers in core/normalize.py."""

import re
from datetime import date

import pytest

from core.normalize import (
    fill_iso_week,
    iso_week,
    lookup,
    micros_to_units,
    to_float,
    to_int,
)


class TestIsoWeek:
    def test_format(self):
        assert re.fullmatch(r"\d{4}-W\d{2}", iso_week())

    @pytest.mark.parametrize("day, expected", [
        (date(2025, 1, 1), "2025-W01"),
        (date(2025, 1, 7), "2025-W01"),
        (date(2025, 1, 8), "2025-W02"),
        (date(2024, 12, 31), "2024-W53"),
    ])
    def test_week_number(self, day, expected):
        assert iso_week(day) == expected

    def test_week_always_between_1_and_53(self):
        for day in (date(2023, 1, 1), date(2023, 6, 15), date(2023, 12, 31)):
            week = int(iso_week(day).split("-W")[1])
            assert 1 <= week <= 53


class TestFillIsoWeek:
    def test_replaces_first_token_only(self):
        title = "Audit {ISO Week} / {ISO Week}"
        assert fill_iso_week(title, date(2025, 1, 8)) == "Audit 2025-W02 / {ISO Week}"

    def test_title_without_token_unchanged(self):
        assert fill_iso_week("Weekly audit") == "Weekly audit"


class TestNumbers:
    def test_micros(self):
        assert micros_to_units(1_250_500_000) == 1250.5
        assert micros_to_units("1250500000") == 1250.5
        assert micros_to_units(None) == 0.0

    def test_to_int_accepts_text(self):
        assert to_int("12") == 12
        assert to_int("12.0") == 12
        assert to_int(None) == 0
        assert to_int("abc", default=5) == 5

    def test_to_float_rejects_nan_and_bool(self):
        assert to_float("nan") == 0.0
        assert to_float(True, default=-1.0) == -1.0
        assert to_float("0.0196") == pytest.approx(0.0196)


class TestLookup:
    def test_snake_and_camel_keys(self):
        row = {"metrics": {"costMicros": "5"}, "campaign": {"name": "A"}}
        assert lookup(row, "metrics.cost_micros") == "5"
        assert lookup(row, "campaign.name") == "A"

    def test_missing_path_returns_default(self):
        assert lookup({"metrics": {}}, "metrics.clicks", 0) == 0
        assert lookup(None, "metrics.clicks") is None
