"""
Tests for numeral normalization and field validation
"""

import math

import pytest
from pydantic import ValidationError as PydanticValidationError

from khata.core.config import ReconciliationConfig
from khata.models.schemas import ExtractedMark, MatchedMark, MatchStatus
from khata.services.numerals import format_roll_number, to_canonical_digits
from khata.services.validators import (
    validate_extracted_data,
    validate_marks,
    validate_record,
    validate_roll_number,
    validate_student_name,
)


class TestCanonicalDigits:

    def test_all_bengali_digits(self):
        assert to_canonical_digits("০১২৩৪৫৬৭৮৯") == "0123456789"

    def test_other_characters_kept_in_place(self):
        text = "রোল ০৭-ক"
        result = to_canonical_digits(text)
        assert result == "রোল 07-ক"
        assert len(result) == len(text)

    def test_ascii_untouched(self):
        assert to_canonical_digits("Roll 12a") == "Roll 12a"

    def test_empty(self):
        assert to_canonical_digits("") == ""


class TestFormatRollNumber:

    @pytest.mark.parametrize("raw,expected", [
        ("৫", "05"),
        ("5", "05"),
        ("০১", "01"),
        ("Roll-12", "12"),
        (" ৯৯ ", "99"),
        ("", "00"),
        ("abc", "00"),
    ])
    def test_two_digit_form(self, raw, expected):
        assert format_roll_number(raw) == expected

    def test_long_numbers_not_truncated(self):
        assert format_roll_number("123") == "123"

    def test_int_input(self):
        assert format_roll_number(7) == "07"


class TestRollNumberValidation:

    def test_valid(self):
        assert validate_roll_number("01").valid
        assert validate_roll_number("৯৯").valid
        assert validate_roll_number("5").valid

    def test_zero_is_invalid(self):
        result = validate_roll_number("0")
        assert not result.valid
        assert "between 01 and 99" in result.error

    def test_three_digits_invalid(self):
        result = validate_roll_number("123")
        assert not result.valid
        assert "2 digits" in result.error

    def test_no_digits_invalid(self):
        assert not validate_roll_number("roll").valid

    def test_custom_bounds(self):
        assert not validate_roll_number("40", max_roll=30).valid
        assert validate_roll_number("30", max_roll=30).valid


class TestNameValidation:

    def test_two_characters_is_enough(self):
        assert validate_student_name("Al").valid

    def test_bengali_name(self):
        assert validate_student_name("করিম").valid

    def test_whitespace_is_trimmed(self):
        result = validate_student_name("  X  ")
        assert not result.valid
        assert "at least 2" in result.error

    def test_empty(self):
        assert not validate_student_name("").valid

    def test_custom_minimum(self):
        assert not validate_student_name("Al", min_length=3).valid


class TestMarksValidation:

    @pytest.mark.parametrize("marks", [0, 100, 55.5, 0.0])
    def test_in_range(self, marks):
        assert validate_marks(marks).valid

    @pytest.mark.parametrize("marks", [-1, 100.5, 150])
    def test_out_of_range_rejected_not_clamped(self, marks):
        result = validate_marks(marks)
        assert not result.valid
        assert "between 0 and 100" in result.error

    @pytest.mark.parametrize("marks", [math.nan, math.inf, "85", None, True])
    def test_not_a_number(self, marks):
        result = validate_marks(marks)
        assert not result.valid
        assert result.error == "Marks must be a number"


class TestValidateRecord:

    def test_collects_every_failure(self):
        mark = ExtractedMark(roll_number="0", name="X", total_marks=150)
        errors = validate_record(mark)
        assert len(errors) == 3

    def test_clean_record(self):
        mark = ExtractedMark(roll_number="12", name="Rahim", total_marks=80)
        assert validate_record(mark) == []

    def test_uses_config_bounds(self):
        mark = ExtractedMark(roll_number="12", name="Rahim", total_marks=45)
        config = ReconciliationConfig(marks_max=40)
        assert len(validate_record(mark, config)) == 1


class TestExtractedMarkImmutable:

    def test_cannot_reassign(self):
        mark = ExtractedMark(roll_number="01", name="Rahim", total_marks=80)
        with pytest.raises(PydanticValidationError):
            mark.total_marks = 90

    def test_camel_case_aliases(self):
        mark = ExtractedMark.model_validate({"rollNumber": "01", "name": "Rahim", "totalMarks": 80})
        dumped = mark.model_dump(by_alias=True, mode="json")
        assert dumped["rollNumber"] == "01"
        assert dumped["confidence"] == "medium"


class TestValidateExtractedData:

    def _row(self, roll, errors=None):
        return MatchedMark(
            roll_number=roll,
            name="Rahim",
            total_marks=50,
            match_status=MatchStatus.ERROR if errors else MatchStatus.NEW,
            validation_errors=errors or [],
        )

    def test_empty_set(self):
        result = validate_extracted_data([])
        assert not result.valid
        assert result.errors == ["No marks found"]

    def test_duplicates_named_once(self):
        result = validate_extracted_data([self._row("01"), self._row("01"), self._row("01"), self._row("02")])
        assert not result.valid
        assert result.errors == ["Roll number 01 appears more than once"]

    def test_rows_with_errors_counted(self):
        result = validate_extracted_data([self._row("01", ["bad"]), self._row("02", ["bad"]), self._row("03")])
        assert not result.valid
        assert result.errors == ["2 row(s) have errors, fix them before saving"]

    def test_clean_set(self):
        assert validate_extracted_data([self._row("01"), self._row("02")]).valid
