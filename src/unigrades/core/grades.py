import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple

from unigrades.core.errors import AdjustmentValidationError, AssertionViolation, InvalidScoreError
from unigrades.core.models import (
    Adjustment,
    AdjustmentKind,
    ComponentScore,
    CourseGrade,
    GradeComponent,
    LetterGrade,
)


logger = logging.getLogger(__name__)


# (minimum percentage, letter, grade point), highest band first.
GRADE_SCALE: List[Tuple[float, str, float]] = [
    (95, "A+", 4.0),
    (90, "A", 3.7),
    (85, "B+", 3.3),
    (80, "B", 3.0),
    (75, "C+", 2.7),
    (70, "C", 2.3),
    (65, "D+", 2.0),
    (60, "D", 1.7),
    (0, "F", 0.0),
]

PASSING_THRESHOLD = 60.0


def clamp_0_100(value: float) -> float:
    return max(0.0, min(100.0, value))


def check_score(component: GradeComponent, score: ComponentScore) -> None:
    if score.score < 0 or score.score > component.max_score:
        raise InvalidScoreError(score.student_id, component.id, score.score, component.max_score)


def _latest_scores(scores: Iterable[ComponentScore]) -> Dict[str, ComponentScore]:
    # Later entries for the same component supersede earlier ones.
    latest: Dict[str, ComponentScore] = {}
    for score in scores:
        latest[score.component_id] = score
    return latest


def aggregate_scores(components: Iterable[GradeComponent], scores: Iterable[ComponentScore]) -> float:
    """
    Weighted raw total for one student in one course offering.

    raw_total = sum((score / max_score) * weight) over the active components.
    A component without a score contributes 0 so that partially graded
    offerings still report. Scores on inactive components are ignored. The
    result is not rounded.
    """
    by_component = _latest_scores(scores)
    total = 0.0
    for component in components:
        if not component.active:
            continue
        score = by_component.get(component.id)
        if score is None:
            continue
        check_score(component, score)
        total += (score.score / component.max_score) * component.weight
    return total


def validate_adjustment(adjustment: Adjustment) -> None:
    if not adjustment.amount > 0:
        raise AdjustmentValidationError("amount", "Adjustment amount must be greater than 0")
    if not adjustment.reason.strip():
        raise AdjustmentValidationError("reason", "Adjustment reason is required")


@dataclass(frozen=True)
class AdjustmentSlots:
    """The outstanding bonus and penalty for one student in one offering."""

    bonus: Optional[Adjustment] = None
    penalty: Optional[Adjustment] = None

    def with_adjustment(self, adjustment: Adjustment) -> "AdjustmentSlots":
        validate_adjustment(adjustment)
        if adjustment.kind is AdjustmentKind.BONUS:
            return replace(self, bonus=adjustment)
        return replace(self, penalty=adjustment)

    @property
    def bonus_amount(self) -> Optional[float]:
        return self.bonus.amount if self.bonus else None

    @property
    def penalty_amount(self) -> Optional[float]:
        return self.penalty.amount if self.penalty else None


def apply_adjustments(raw_total: float, bonus: Optional[float] = None, penalty: Optional[float] = None) -> float:
    return clamp_0_100(raw_total + (bonus or 0.0) - (penalty or 0.0))


def map_letter_grade(adjusted_total: float) -> LetterGrade:
    if math.isnan(adjusted_total) or adjusted_total < 0 or adjusted_total > 100:
        logger.error("Adjusted total %r reached the letter mapper outside [0, 100]", adjusted_total)
        raise AssertionViolation(f"Adjusted total {adjusted_total!r} is outside [0, 100]")
    for minimum, letter, points in GRADE_SCALE:
        if adjusted_total >= minimum:
            return LetterGrade(letter, points)
    return LetterGrade("F", 0.0)


def to_letter_grade(adjusted_total: float) -> str:
    return map_letter_grade(adjusted_total).letter


def to_grade_point(letter_grade: str) -> float:
    mapping = {letter: points for _, letter, points in GRADE_SCALE}
    try:
        return mapping[letter_grade.strip().upper()]
    except KeyError as exc:
        raise ValueError(f"Unsupported letter grade: {letter_grade}") from exc


def is_passing(adjusted_total: float) -> bool:
    return adjusted_total >= PASSING_THRESHOLD


def evaluate_course(
    student_id: str,
    course_offering_id: str,
    components: Iterable[GradeComponent],
    scores: Iterable[ComponentScore],
    credits: int,
    slots: Optional[AdjustmentSlots] = None,
    term_id: str = "",
) -> CourseGrade:
    slots = slots or AdjustmentSlots()
    own_scores = [s for s in scores if s.student_id == student_id]
    raw_total = aggregate_scores(list(components), own_scores)
    adjusted_total = apply_adjustments(raw_total, slots.bonus_amount, slots.penalty_amount)
    grade = map_letter_grade(adjusted_total)
    logger.debug(
        "Evaluated %s for %s: raw=%.4f adjusted=%.4f letter=%s",
        course_offering_id,
        student_id,
        raw_total,
        adjusted_total,
        grade.letter,
    )
    return CourseGrade(
        student_id=student_id,
        course_offering_id=course_offering_id,
        raw_total=raw_total,
        adjusted_total=adjusted_total,
        letter_grade=grade.letter,
        grade_point=grade.grade_point,
        credits=credits,
        is_published=False,
        term_id=term_id,
        bonus=slots.bonus_amount,
        penalty=slots.penalty_amount,
    )
