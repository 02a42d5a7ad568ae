import math
from collections import Counter
from numbers import Real
from typing import Any, List, Optional, Sequence

from khata.core.config import (
    DEFAULT_MARKS_MAX,
    DEFAULT_MARKS_MIN,
    DEFAULT_MIN_NAME_LENGTH,
    DEFAULT_ROLL_NUMBER_MAX,
    DEFAULT_ROLL_NUMBER_MIN,
    ReconciliationConfig,
)
from khata.models.schemas import DataValidation, ExtractedMark, MatchedMark, ValidationResult
from khata.services.numerals import format_roll_number


def validate_roll_number(
    roll: str,
    min_roll: int = DEFAULT_ROLL_NUMBER_MIN,
    max_roll: int = DEFAULT_ROLL_NUMBER_MAX
) -> ValidationResult:
    formatted = format_roll_number(roll)

    if len(formatted) != 2:
        return ValidationResult(valid=False, error=f"Roll number must have exactly 2 digits (got '{formatted}')")

    value = int(formatted)
    if value < min_roll or value > max_roll:
        return ValidationResult(
            valid=False,
            error=f"Roll number must be between {min_roll:02d} and {max_roll:02d}"
        )

    return ValidationResult(valid=True)


def validate_student_name(name: str, min_length: int = DEFAULT_MIN_NAME_LENGTH) -> ValidationResult:
    trimmed = (name or "").strip()

    if len(trimmed) < min_length:
        return ValidationResult(valid=False, error=f"Name must be at least {min_length} characters long")

    return ValidationResult(valid=True)


def validate_marks(
    marks: Any,
    min_marks: float = DEFAULT_MARKS_MIN,
    max_marks: float = DEFAULT_MARKS_MAX
) -> ValidationResult:
    # bool is a Real subclass, a True/False mark is an OCR artefact
    if isinstance(marks, bool) or not isinstance(marks, Real) or not math.isfinite(marks):
        return ValidationResult(valid=False, error="Marks must be a number")

    if marks < min_marks or marks > max_marks:
        return ValidationResult(
            valid=False,
            error=f"Marks must be between {min_marks:g} and {max_marks:g} (got {float(marks):g})"
        )

    return ValidationResult(valid=True)


def validate_record(mark: ExtractedMark, config: Optional[ReconciliationConfig] = None) -> List[str]:
    """Run every field check on one record and collect all failures."""
    config = config or ReconciliationConfig()

    checks = (
        validate_roll_number(mark.roll_number, config.roll_number_min, config.roll_number_max),
        validate_student_name(mark.name, config.min_name_length),
        validate_marks(mark.total_marks, config.marks_min, config.marks_max),
    )
    return [check.error for check in checks if not check.valid]


def validate_extracted_data(data: Sequence[MatchedMark]) -> DataValidation:
    """Whole-set check run before reviewed marks are saved."""
    errors: List[str] = []

    if not data:
        errors.append("No marks found")
        return DataValidation(valid=False, errors=errors)

    counts = Counter(mark.roll_number for mark in data)
    for roll, count in counts.items():
        if count > 1:
            errors.append(f"Roll number {roll} appears more than once")

    rows_with_errors = sum(1 for mark in data if mark.validation_errors)
    if rows_with_errors:
        errors.append(f"{rows_with_errors} row(s) have errors, fix them before saving")

    return DataValidation(valid=not errors, errors=errors)
