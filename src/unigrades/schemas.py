"""Parse-and-validate boundary between portal payloads and engine records.

The portal backend sends camelCase JSON. Every payload is parsed through one
of these models before it reaches the engine, so malformed rows fail loudly
with RecordValidationError instead of being silently defaulted.
"""

from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from unigrades.core.errors import RecordValidationError
from unigrades.core.grades import validate_adjustment
from unigrades.core.models import (
    Adjustment,
    AdjustmentKind,
    ComponentScore,
    CourseGrade,
    EnrollmentRecord,
    EnrollmentStatus,
    GradeComponent,
    SectionValidation,
    TermStatus,
    TranscriptEntry,
)


class PortalPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ComponentPayload(PortalPayload):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    weight: float = Field(ge=0, le=100, allow_inf_nan=False)
    max_score: float = Field(gt=0, allow_inf_nan=False)
    active: bool = True

    def to_record(self) -> GradeComponent:
        return GradeComponent(self.id, self.name.strip(), self.weight, self.max_score, self.active)


class ScorePayload(PortalPayload):
    student_id: str = Field(min_length=1)
    component_id: str = Field(min_length=1)
    score: float = Field(allow_inf_nan=False)

    def to_record(self) -> ComponentScore:
        return ComponentScore(self.student_id, self.component_id, self.score)


class AdjustmentPayload(PortalPayload):
    student_id: str = Field(min_length=1)
    course_offering_id: str = Field(min_length=1)
    kind: AdjustmentKind
    amount: float = Field(allow_inf_nan=False)
    reason: str = ""

    @field_validator("kind", mode="before")
    @classmethod
    def _upper_kind(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    def to_record(self) -> Adjustment:
        record = Adjustment(self.student_id, self.course_offering_id, self.kind, self.amount, self.reason.strip())
        validate_adjustment(record)
        return record


class EnrollmentPayload(PortalPayload):
    student_id: str = Field(min_length=1)
    section_id: str = Field(min_length=1)
    credits: int = Field(ge=0)
    status: EnrollmentStatus = EnrollmentStatus.ENROLLED
    term_id: str = ""

    @model_validator(mode="before")
    @classmethod
    def _flatten_section(cls, data: Any) -> Any:
        # Enrollment listings nest the section and its course:
        # {"section": {"id": ..., "course": {"credits": 3}}}
        if isinstance(data, dict) and isinstance(data.get("section"), dict):
            section = data["section"]
            flat = dict(data)
            flat.setdefault("sectionId", section.get("id"))
            course = section.get("course")
            if isinstance(course, dict) and "credits" in course:
                flat.setdefault("credits", course["credits"])
            if "termId" in section:
                flat.setdefault("termId", section["termId"])
            return flat
        return data

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    def to_record(self) -> EnrollmentRecord:
        return EnrollmentRecord(self.student_id, self.section_id, self.credits, self.status, self.term_id)


class SectionValidationPayload(PortalPayload):
    section_id: str = Field(min_length=1)
    valid: bool
    conflicts: List[str] = Field(default_factory=list)
    missing_prerequisites: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    def to_record(self) -> SectionValidation:
        return SectionValidation(
            self.section_id,
            self.valid,
            tuple(self.conflicts),
            tuple(self.missing_prerequisites),
            tuple(self.errors),
        )


class CourseGradePayload(PortalPayload):
    section_id: str = Field(min_length=1)
    credits: int = Field(ge=0)
    term_id: str = ""
    term_name: str = ""
    term_status: TermStatus = TermStatus.COMPLETED
    percentage: float = Field(ge=0, le=100, allow_inf_nan=False)
    letter_grade: str = Field(min_length=1)
    grade_point: float = Field(ge=0, le=4, allow_inf_nan=False)
    is_published: bool = False
    status: EnrollmentStatus = EnrollmentStatus.ENROLLED

    @field_validator("status", "term_status", mode="before")
    @classmethod
    def _upper_enum(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    def to_record(self, student_id: str) -> CourseGrade:
        return CourseGrade(
            student_id=student_id,
            course_offering_id=self.section_id,
            raw_total=self.percentage,
            adjusted_total=self.percentage,
            letter_grade=self.letter_grade,
            grade_point=self.grade_point,
            credits=self.credits,
            is_published=self.is_published,
            term_id=self.term_id,
            status=self.status,
        )

    def to_entry(self, student_id: str) -> TranscriptEntry:
        return TranscriptEntry(self.to_record(student_id), self.term_name, self.term_status)


class BatchPolicyPayload(PortalPayload):
    max_credits: int = Field(ge=0)


PayloadT = TypeVar("PayloadT", bound=PortalPayload)


def parse_payload(model: Type[PayloadT], payload: Any) -> PayloadT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        errors = [f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in exc.errors()]
        raise RecordValidationError(model.__name__, errors) from exc


def _parse_many(model: Type[PayloadT], payloads: Optional[Iterable[Dict[str, Any]]]) -> List[PayloadT]:
    return [parse_payload(model, item) for item in payloads or []]


def parse_components(payloads: Optional[Iterable[Dict[str, Any]]]) -> List[GradeComponent]:
    return [p.to_record() for p in _parse_many(ComponentPayload, payloads)]


def parse_scores(payloads: Optional[Iterable[Dict[str, Any]]]) -> List[ComponentScore]:
    return [p.to_record() for p in _parse_many(ScorePayload, payloads)]


def parse_enrollments(payloads: Optional[Iterable[Dict[str, Any]]]) -> List[EnrollmentRecord]:
    return [p.to_record() for p in _parse_many(EnrollmentPayload, payloads)]


def parse_course_grades(student_id: str, payloads: Optional[Iterable[Dict[str, Any]]]) -> List[CourseGrade]:
    return [p.to_record(student_id) for p in _parse_many(CourseGradePayload, payloads)]


def parse_transcript(student_id: str, payloads: Optional[Iterable[Dict[str, Any]]]) -> List[TranscriptEntry]:
    return [p.to_entry(student_id) for p in _parse_many(CourseGradePayload, payloads)]


def parse_section_validation(payload: Dict[str, Any]) -> SectionValidation:
    return parse_payload(SectionValidationPayload, payload).to_record()


def parse_adjustment(payload: Dict[str, Any]) -> Adjustment:
    return parse_payload(AdjustmentPayload, payload).to_record()
