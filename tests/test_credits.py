import pytest
from credits import completed_credits, parse_credits, planned_credits, total_credits

from planner_utils import plan_of, planned, record, sample_catalog


class TestParseCredits:
    def test_hyphenated_string(self):
        assert parse_credits("3-0-6") == 3

    def test_integer_passes_through(self):
        assert parse_credits(4) == 4

    def test_invalid_string(self):
        assert parse_credits("invalid") == 0

    def test_plain_numeric_string(self):
        assert parse_credits("3") == 3

    def test_spreadsheet_float_string(self):
        assert parse_credits("3.0") == 3

    @pytest.mark.parametrize("value, expected", [
        ("3 credits", 3),
        ("3cr-0-6", 3),
        (" 4 (2-2-5)", 4),
        ("credits: 3", 0),
    ])
    def test_leading_number_with_suffix(self, value, expected):
        assert parse_credits(value) == expected

    @pytest.mark.parametrize("value", [None, "", float("nan"), float("inf"), True])
    def test_never_raises(self, value):
        assert parse_credits(value) == 0


class TestCreditTotals:
    def test_completed_credits_prefer_record_value(self):
        catalog = sample_catalog()
        completed = record(completed=["CSX3003", "CSX2003"], credits={"CSX3003": 4})
        assert completed_credits(completed, catalog.courses) == 7

    def test_completed_credits_ignore_in_progress_and_planning(self):
        catalog = sample_catalog()
        completed = record(completed=["CSX3003"], in_progress=["CSX3009"], planning=["CSX2003"])
        assert completed_credits(completed, catalog.courses) == 3

    def test_unknown_code_without_credits_counts_zero(self):
        assert completed_credits(record(completed=["ZZZ9999"]), {}) == 0

    def test_planned_credits(self):
        plan = plan_of(planned("CSX4010", credits=3), planned("ITX4001", credits=4))
        assert planned_credits(plan) == 7

    def test_total_credits(self):
        catalog = sample_catalog()
        completed = record(completed=["CSX3003"], credits={"CSX3003": 77})
        plan = plan_of(planned("CSX4010", credits=3))
        assert total_credits(completed, plan, catalog.courses) == 80
