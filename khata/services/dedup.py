from typing import Dict, List, NamedTuple, Sequence

from loguru import logger

from khata.models.schemas import ExtractedMark
from khata.services.numerals import format_roll_number


class DeduplicationResult(NamedTuple):
    merged: List[ExtractedMark]
    warnings: List[str]


def merge_duplicates(records: Sequence[ExtractedMark]) -> DeduplicationResult:
    """Collapse rows that share a roll number across photos.

    The row with the strictly higher total survives, ties keep the first one
    seen. Every collision adds a warning naming the roll and the kept mark.
    Output follows first-seen roll order.
    """
    by_roll: Dict[str, ExtractedMark] = {}
    warnings: List[str] = []

    for record in records:
        roll = format_roll_number(record.roll_number)
        candidate = record.model_copy(update={"roll_number": roll})

        existing = by_roll.get(roll)
        if existing is None:
            by_roll[roll] = candidate
            continue

        if candidate.total_marks > existing.total_marks:
            by_roll[roll] = candidate
            kept = candidate
        else:
            kept = existing

        message = (
            f"Roll {roll} was found in more than one image. "
            f"Kept the highest marks ({kept.total_marks:g})."
        )
        logger.warning(message)
        warnings.append(message)

    return DeduplicationResult(merged=list(by_roll.values()), warnings=warnings)
