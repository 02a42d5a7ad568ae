import json
import math
import re
from typing import Any, List, Optional

from loguru import logger

from khata.models.schemas import Confidence, ExtractedMark
from khata.services.numerals import to_canonical_digits
from khata.utils.exceptions import OCRDecodeError

_LEADING_NUMBER = re.compile(r"\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")
_CONFIDENCE_VALUES = {c.value for c in Confidence}


def parse_json_response(text: str) -> Any:
    """Parse the model's JSON reply, tolerating markdown fences around it."""
    if not text or not text.strip():
        raise OCRDecodeError("Empty response from OCR service")

    try:
        return json.loads(text.strip())
    except json.JSONDecodeError:
        pass

    clean = re.sub(r"```json\s*", "", text)
    clean = re.sub(r"```\s*", "", clean).strip()

    match = re.search(r"\[.*\]", clean, re.DOTALL)
    if not match:
        raise OCRDecodeError(
            "No JSON array found in OCR response",
            details={"raw_response": text[:1000]}
        )

    # trailing commas are the usual way model output breaks
    json_text = re.sub(r",\s*([}\]])", r"\1", match.group(0))

    try:
        return json.loads(json_text)
    except json.JSONDecodeError as e:
        logger.debug(f"Raw response: {text[:500]}...")
        raise OCRDecodeError(
            f"Failed to parse OCR response as JSON: {str(e)}",
            details={"raw_response": text[:1000]}
        )


def coerce_marks(value: Any) -> float:
    """Best-effort number from whatever the OCR put in the marks column; 0 if none."""
    if isinstance(value, bool) or value is None:
        return 0.0

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # huge ints stay in the row so validation rejects them
            return math.copysign(math.inf, value)
    else:
        found = _LEADING_NUMBER.match(to_canonical_digits(str(value)))
        if not found:
            return 0.0
        number = float(found.group(1))

    return 0.0 if math.isnan(number) else number


def coerce_confidence(value: Any) -> Confidence:
    if isinstance(value, Confidence):
        return value
    if isinstance(value, str) and value.strip().lower() in _CONFIDENCE_VALUES:
        return Confidence(value.strip().lower())
    return Confidence.MEDIUM


def decode_candidate(entry: Any) -> Optional[ExtractedMark]:
    """One raw row -> ``ExtractedMark``, or None when it lacks a name or roll."""
    if isinstance(entry, ExtractedMark):
        return entry if entry.name.strip() and entry.roll_number else None

    if not isinstance(entry, dict):
        return None

    name = entry.get("name")
    roll = entry.get("rollNumber", entry.get("roll_number"))
    if not isinstance(name, str) or not name.strip():
        return None
    if roll is None or isinstance(roll, bool) or str(roll).strip() == "":
        return None

    return ExtractedMark(
        roll_number=str(roll).strip(),
        name=name.strip(),
        total_marks=coerce_marks(entry.get("totalMarks", entry.get("total_marks"))),
        confidence=coerce_confidence(entry.get("confidence")),
    )


def decode_candidates(raw: Any) -> List[ExtractedMark]:
    """Decode an OCR result into ``ExtractedMark`` rows.

    Raises ``OCRDecodeError`` when the result is not a list at all; rows that
    are unusable are dropped.
    """
    if isinstance(raw, str):
        raw = parse_json_response(raw)

    if not isinstance(raw, (list, tuple)):
        raise OCRDecodeError(
            f"OCR response is not a list (got {type(raw).__name__})",
            details={"type": type(raw).__name__}
        )

    decoded = []
    for entry in raw:
        mark = decode_candidate(entry)
        if mark is None:
            logger.debug(f"Dropping unusable OCR row: {entry!r}")
            continue
        decoded.append(mark)
    return decoded
