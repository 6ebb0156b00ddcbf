from typing import Dict, Iterable

from unigrades.core.grades import GRADE_SCALE, is_passing
from unigrades.core.models import ClassSummary, CourseGrade


def summarize_class(grades: Iterable[CourseGrade]) -> ClassSummary:
    rows = list(grades)
    distribution: Dict[str, int] = {letter: 0 for _, letter, _ in GRADE_SCALE}
    if not rows:
        return ClassSummary(count=0, average=0.0, pass_rate=0.0, distribution=distribution)

    for row in rows:
        distribution[row.letter_grade] = distribution.get(row.letter_grade, 0) + 1

    passed = sum(1 for row in rows if is_passing(row.adjusted_total))
    average = sum(row.adjusted_total for row in rows) / len(rows)
    return ClassSummary(
        count=len(rows),
        average=round(average, 2),
        pass_rate=round(passed / len(rows) * 100, 2),
        distribution=distribution,
    )
