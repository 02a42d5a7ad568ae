import re

BENGALI_DIGITS = "০১২৩৪৫৬৭৮৯"

_DIGIT_TABLE = str.maketrans(BENGALI_DIGITS, "0123456789")
_NON_DIGITS = re.compile(r"[^0-9]")


def to_canonical_digits(text: str) -> str:
    """Replace Bengali digits with ASCII digits, leaving every other character as is.

    "রোল ০৭" -> "রোল 07"
    """
    return text.translate(_DIGIT_TABLE)


def format_roll_number(raw: str) -> str:
    """Normalize a roll number to its two-digit form.

    "৫" -> "05", "Roll-12" -> "12", "" -> "00". No range check is done here,
    run the result through ``validate_roll_number``.
    """
    digits = _NON_DIGITS.sub("", to_canonical_digits(str(raw)))
    return digits.rjust(2, "0")
