from __future__ import annotations

import math
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from unigrades.core.models import (
    AcademicStanding,
    CourseGrade,
    EnrollmentStatus,
    Standing,
    TermGrades,
    TermResult,
    TermStatus,
)


EXCLUDED_STATUSES = frozenset({EnrollmentStatus.WITHDRAWN, EnrollmentStatus.DROPPED})

# (minimum CGPA, standing), highest first.
STANDING_BANDS: List[Tuple[float, Standing]] = [
    (3.67, Standing.EXCELLENT),
    (3.00, Standing.VERY_GOOD),
    (2.33, Standing.GOOD),
    (2.00, Standing.ACCEPTABLE),
]

DEFAULT_REQUIRED_CREDITS = 132


def counts_toward_gpa(course: CourseGrade) -> bool:
    return course.is_published and course.status not in EXCLUDED_STATUSES


def _weighted_totals(courses: Iterable[CourseGrade]) -> Tuple[float, int]:
    counted = [c for c in courses if counts_toward_gpa(c)]
    # Exactly rounded, independent of course order.
    weighted = math.fsum(c.grade_point * c.credits for c in counted)
    return weighted, sum(c.credits for c in counted)


def compute_term(courses: Iterable[CourseGrade]) -> TermResult:
    """
    Term GPA = sum(grade_point * credits) / sum(credits) over the published,
    non-withdrawn courses. A term without credits reports 0.0.
    """
    weighted, total_credits = _weighted_totals(courses)
    if total_credits == 0:
        return TermResult(gpa=0.0, credits=0)
    return TermResult(gpa=weighted / total_credits, credits=total_credits)


def build_term(
    student_id: str,
    term_id: str,
    courses: Iterable[CourseGrade],
    term_name: str = "",
    term_status: TermStatus = TermStatus.COMPLETED,
) -> TermGrades:
    course_tuple = tuple(courses)
    result = compute_term(course_tuple)
    return TermGrades(
        student_id=student_id,
        term_id=term_id,
        courses=course_tuple,
        gpa=result.gpa,
        credits=result.credits,
        term_name=term_name or term_id,
        term_status=term_status,
    )


def group_terms(
    student_id: str,
    course_grades: Iterable[CourseGrade],
    term_names: Optional[Mapping[str, str]] = None,
    term_statuses: Optional[Mapping[str, TermStatus]] = None,
) -> List[TermGrades]:
    term_names = term_names or {}
    term_statuses = term_statuses or {}
    grouped: Dict[str, List[CourseGrade]] = {}
    for grade in course_grades:
        if grade.student_id != student_id:
            continue
        grouped.setdefault(grade.term_id, []).append(grade)

    terms = [
        build_term(
            student_id,
            term_id,
            courses,
            term_name=term_names.get(term_id, term_id),
            term_status=term_statuses.get(term_id, TermStatus.COMPLETED),
        )
        for term_id, courses in grouped.items()
    ]
    # Active term first, the rest newest name first.
    terms.sort(key=lambda t: t.term_name, reverse=True)
    terms.sort(key=lambda t: t.term_status is not TermStatus.ACTIVE)
    return terms


def filter_terms(terms: Iterable[TermGrades], selector: str = "all") -> List[TermGrades]:
    if selector == "all":
        return list(terms)
    if selector == "current":
        return [t for t in terms if t.term_status is TermStatus.ACTIVE]
    return [t for t in terms if t.term_id == selector]


def classify_standing(cgpa: float) -> Standing:
    for minimum, standing in STANDING_BANDS:
        if cgpa >= minimum:
            return standing
    return Standing.FAILING


def compute_standing(student_id: str, terms: Iterable[TermGrades]) -> AcademicStanding:
    """
    CGPA is weighted by the credits of every counted course across all terms,
    not an average of term GPAs.
    """
    weighted, total_credits = _weighted_totals(c for term in terms for c in term.courses)

    if total_credits == 0:
        return AcademicStanding(student_id, 0.0, 0, Standing.NOT_CALCULATED)

    cgpa = weighted / total_credits
    return AcademicStanding(student_id, cgpa, total_credits, classify_standing(cgpa))


def degree_progress(total_credits: int, required_credits: int = DEFAULT_REQUIRED_CREDITS) -> float:
    if required_credits <= 0:
        raise ValueError("required_credits must be greater than 0")
    return min(100.0, round((total_credits / required_credits) * 100, 2))
