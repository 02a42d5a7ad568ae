from typing import List, NamedTuple, Optional, Sequence

from loguru import logger

from khata.core.config import DEFAULT_SIMILARITY_THRESHOLD, ReconciliationConfig
from khata.models.schemas import (
    ExtractedMark,
    MatchedMark,
    MatchStatus,
    RosterEntry,
    SummaryStats,
)
from khata.services.numerals import format_roll_number
from khata.services.similarity import similarity
from khata.services.validators import validate_record


class RosterMatch(NamedTuple):
    student: RosterEntry
    confidence: float


def find_exact_roll_match(roll_number: str, roster: Sequence[RosterEntry]) -> Optional[RosterEntry]:
    formatted = format_roll_number(roll_number)
    for student in roster:
        if student.roll_number == formatted:
            return student
    return None


def find_fuzzy_name_match(
    name: str,
    roster: Sequence[RosterEntry],
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD
) -> Optional[RosterMatch]:
    """Most similar roster name, if it clears ``threshold``.

    Ties go to the earliest roster entry.
    """
    best: Optional[RosterMatch] = None

    for student in roster:
        score = similarity(name, student.name)
        if best is None or score > best.confidence:
            best = RosterMatch(student, score)

    if best is None or best.confidence < threshold:
        return None
    return best


def match(
    extracted: ExtractedMark,
    roster: Sequence[RosterEntry],
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD
) -> Optional[RosterMatch]:
    # exact roll wins outright, names are only consulted without one
    student = find_exact_roll_match(extracted.roll_number, roster)
    if student is not None:
        return RosterMatch(student, 1.0)

    return find_fuzzy_name_match(extracted.name, roster, threshold)


def match_extracted_students(
    extracted_data: Sequence[ExtractedMark],
    roster: Sequence[RosterEntry],
    config: Optional[ReconciliationConfig] = None
) -> List[MatchedMark]:
    config = config or ReconciliationConfig()
    results: List[MatchedMark] = []

    for extracted in extracted_data:
        fields = {
            "roll_number": format_roll_number(extracted.roll_number),
            "name": extracted.name,
            "total_marks": extracted.total_marks,
            "confidence": extracted.confidence,
        }

        errors = validate_record(extracted, config)
        if errors:
            logger.debug(f"Roll {fields['roll_number']} failed validation: {errors}")
            results.append(MatchedMark(
                **fields,
                match_status=MatchStatus.ERROR,
                validation_errors=errors,
            ))
            continue

        found = match(extracted, roster, config.similarity_threshold)
        if found is None:
            results.append(MatchedMark(**fields, match_status=MatchStatus.NEW))
            continue

        results.append(MatchedMark(
            **fields,
            student_id=found.student.id,
            matched_student=found.student,
            match_status=MatchStatus.FOUND,
            match_confidence=found.confidence,
        ))

    return results


def get_summary_stats(data: Sequence[MatchedMark]) -> SummaryStats:
    return SummaryStats(
        total=len(data),
        matched=sum(1 for d in data if d.match_status == MatchStatus.FOUND),
        new=sum(1 for d in data if d.match_status == MatchStatus.NEW),
        errors=sum(1 for d in data if d.match_status == MatchStatus.ERROR),
    )
