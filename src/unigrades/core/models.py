from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class AdjustmentKind(str, Enum):
    BONUS = "BONUS"
    PENALTY = "PENALTY"


class EnrollmentStatus(str, Enum):
    ENROLLED = "ENROLLED"
    DROPPED = "DROPPED"
    WITHDRAWN = "WITHDRAWN"
    COMPLETED = "COMPLETED"


class TermStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    COMPLETED = "COMPLETED"


class Standing(str, Enum):
    EXCELLENT = "Excellent"
    VERY_GOOD = "Very Good"
    GOOD = "Good"
    ACCEPTABLE = "Acceptable"
    FAILING = "Failing/Probation"
    NOT_CALCULATED = "Not Calculated"


@dataclass(frozen=True)
class GradeComponent:
    id: str
    name: str
    weight: float
    max_score: float
    active: bool = True


@dataclass(frozen=True)
class ComponentScore:
    student_id: str
    component_id: str
    score: float


@dataclass(frozen=True)
class Adjustment:
    student_id: str
    course_offering_id: str
    kind: AdjustmentKind
    amount: float
    reason: str


@dataclass(frozen=True)
class LetterGrade:
    letter: str
    grade_point: float


@dataclass(frozen=True)
class CourseGrade:
    student_id: str
    course_offering_id: str
    raw_total: float
    adjusted_total: float
    letter_grade: str
    grade_point: float
    credits: int
    is_published: bool = False
    term_id: str = ""
    status: EnrollmentStatus = EnrollmentStatus.ENROLLED
    bonus: Optional[float] = None
    penalty: Optional[float] = None

    def published(self) -> "CourseGrade":
        return replace(self, is_published=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "student_id": self.student_id,
            "course_offering_id": self.course_offering_id,
            "term_id": self.term_id,
            "raw_total": self.raw_total,
            "adjusted_total": self.adjusted_total,
            "letter_grade": self.letter_grade,
            "grade_point": self.grade_point,
            "credits": self.credits,
            "bonus": self.bonus,
            "penalty": self.penalty,
            "status": self.status.value,
            "is_published": self.is_published,
        }


@dataclass(frozen=True)
class TermResult:
    gpa: float
    credits: int


@dataclass(frozen=True)
class TranscriptEntry:
    """A course grade as listed on a transcript, with the term it belongs to."""

    grade: CourseGrade
    term_name: str = ""
    term_status: TermStatus = TermStatus.COMPLETED


@dataclass(frozen=True)
class TermGrades:
    student_id: str
    term_id: str
    courses: Tuple[CourseGrade, ...]
    gpa: float
    credits: int
    term_name: str = ""
    term_status: TermStatus = TermStatus.COMPLETED


@dataclass(frozen=True)
class AcademicStanding:
    student_id: str
    cgpa: float
    total_credits: int
    standing: Standing

    def to_dict(self) -> Dict[str, Any]:
        return {
            "student_id": self.student_id,
            "cgpa": self.cgpa,
            "total_credits": self.total_credits,
            "standing": self.standing.value,
        }


@dataclass(frozen=True)
class EnrollmentRecord:
    student_id: str
    section_id: str
    credits: int
    status: EnrollmentStatus = EnrollmentStatus.ENROLLED
    term_id: str = ""


@dataclass(frozen=True)
class EnrollmentLoad:
    student_id: str
    term_id: str
    enrolled_credits: int
    max_credits: int


@dataclass(frozen=True)
class ProposedSection:
    section_id: str
    credits: int


@dataclass(frozen=True)
class SectionValidation:
    section_id: str
    valid: bool
    conflicts: Tuple[str, ...] = ()
    missing_prerequisites: Tuple[str, ...] = ()
    errors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CreditCheck:
    ok: bool
    over_by: int
    total_credits: int
    max_credits: int


@dataclass(frozen=True)
class EnrollmentDecision:
    admissible: bool
    credit_check: CreditCheck
    rejected_sections: Tuple[SectionValidation, ...] = ()


@dataclass(frozen=True)
class PublishIssue:
    kind: str
    message: str
    student_id: Optional[str] = None
    component_id: Optional[str] = None


@dataclass(frozen=True)
class ClassSummary:
    count: int
    average: float
    pass_rate: float
    distribution: Dict[str, int] = field(default_factory=dict)
