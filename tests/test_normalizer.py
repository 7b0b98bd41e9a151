"""Tests for the request normalizer — dates and nutrient deltas."""
from datetime import date

import pytest

from pfc.errors import InvalidDate, InvalidInput, InvalidNutrient
from pfc.models.entry import PfcDelta
from pfc.services.normalizer import normalize, parse_date, parse_nutrient


def _fixed_today():
    return date(2024, 3, 9)


class TestParseDate:
    def test_padded_iso(self):
        assert parse_date("2024-01-05") == date(2024, 1, 5)

    def test_unpadded_is_canonicalized(self):
        parsed = parse_date("2024-1-5")
        assert parsed == date(2024, 1, 5)
        assert parsed.isoformat() == "2024-01-05"

    def test_surrounding_whitespace_ignored(self):
        assert parse_date(" 2024-02-29 ") == date(2024, 2, 29)

    def test_missing_defaults_to_today(self):
        assert parse_date(None, today=_fixed_today) == date(2024, 3, 9)
        assert parse_date("", today=_fixed_today) == date(2024, 3, 9)
        assert parse_date("   ", today=_fixed_today) == date(2024, 3, 9)

    def test_missing_uses_local_calendar_date(self):
        assert parse_date(None) == date.today()

    def test_date_instance_passes_through(self):
        assert parse_date(date(2023, 12, 31)) == date(2023, 12, 31)

    @pytest.mark.parametrize("value", [
        "2024-13-40", "2023-02-29", "2024/01/05", "05-01-2024",
        "2024-01-05T10:00:00", "yesterday", "24-1-5", 20240105,
        "٢٠٢٤-٠١-٠١",  # Arabic-Indic digits
    ])
    def test_invalid(self, value):
        with pytest.raises(InvalidDate) as exc_info:
            parse_date(value)
        assert exc_info.value.value == value
        assert exc_info.value.status_code == 400


class TestParseNutrient:
    def test_numbers(self):
        assert parse_nutrient("proteins", 10) == 10.0
        assert parse_nutrient("proteins", 2.5) == 2.5

    def test_numeric_strings(self):
        assert parse_nutrient("fats", "12.75") == 12.75
        assert parse_nutrient("fats", "7") == 7.0
        assert parse_nutrient("fats", ".5") == 0.5

    def test_missing_defaults_to_zero(self):
        assert parse_nutrient("carbs", None) == 0.0
        assert parse_nutrient("carbs", "") == 0.0

    def test_negative_accepted(self):
        assert parse_nutrient("carbs", -3) == -3.0
        assert parse_nutrient("carbs", "-3.5") == -3.5

    @pytest.mark.parametrize("value", [
        "abc", "1,5", "nan", "inf", "-Infinity", "1e3", "10g",
        float("nan"), float("inf"), True, [1], {"g": 1},
        10 ** 400, "1" + "0" * 400, "١٢",
    ])
    def test_invalid(self, value):
        with pytest.raises(InvalidNutrient) as exc_info:
            parse_nutrient("carbs", value)
        assert exc_info.value.field == "carbs"
        assert exc_info.value.to_dict()["field"] == "carbs"


class TestNormalize:
    def test_all_fields(self):
        delta = normalize("2024-01-01", "10", 5, 20.5)
        assert delta == PfcDelta(date=date(2024, 1, 1), proteins=10.0, fats=5.0, carbs=20.5)

    def test_everything_omitted(self):
        delta = normalize(today=_fixed_today)
        assert delta == PfcDelta(date=date(2024, 3, 9), proteins=0.0, fats=0.0, carbs=0.0)

    def test_error_names_the_bad_field(self):
        with pytest.raises(InvalidNutrient) as exc_info:
            normalize("2024-01-01", 1, "lots", 3)
        assert exc_info.value.field == "fats"

    def test_all_failures_are_invalid_input(self):
        with pytest.raises(InvalidInput):
            normalize("2024-13-40")
        with pytest.raises(InvalidInput):
            normalize(proteins="abc")
