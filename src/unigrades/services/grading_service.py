import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

from unigrades.config.logging_setup import configure_logging
from unigrades.config.settings import settings
from unigrades.core.analytics import summarize_class
from unigrades.core.enrollment import decide_enrollment
from unigrades.core.gpa import compute_standing, degree_progress, group_terms
from unigrades.core.grades import AdjustmentSlots
from unigrades.core.models import (
    AcademicStanding,
    ClassSummary,
    ComponentScore,
    CourseGrade,
    EnrollmentDecision,
    EnrollmentLoad,
    GradeComponent,
    ProposedSection,
    PublishIssue,
    SectionValidation,
    TermGrades,
    TranscriptEntry,
)
from unigrades.core.publication import GradeSheet, PublishResult, collect_issues, compute_grades, publish
from unigrades.services.portal_service import PortalService


logger = logging.getLogger(__name__)


class GradeProvider(Protocol):
    def get_components(self, section_id: str) -> List[GradeComponent]: ...

    def get_scores(self, section_id: str) -> List[ComponentScore]: ...

    def get_section_credits(self, section_id: str) -> int: ...

    def current_enrolled_credits(self, student_id: str, term_id: str) -> int: ...

    def get_max_credits(self, student_id: str) -> int: ...

    def get_transcript(self, student_id: str) -> List[TranscriptEntry]: ...


class EnrollmentValidator(Protocol):
    def validate_enrollment(self, student_id: str, section_id: str) -> SectionValidation: ...


class PublicationSink(Protocol):
    def publish_course_grades(self, section_id: str, grades: Iterable[CourseGrade]) -> Dict: ...

    def record_standing(self, standing: AcademicStanding) -> None: ...


@dataclass(frozen=True)
class SectionPreview:
    sheet: GradeSheet
    grades: Tuple[CourseGrade, ...]
    issues: Tuple[PublishIssue, ...]
    summary: ClassSummary

    @property
    def can_publish(self) -> bool:
        return not self.issues


@dataclass(frozen=True)
class StudentRecord:
    terms: Tuple[TermGrades, ...]
    standing: AcademicStanding
    degree_progress: float


class GradingService:
    def __init__(
        self,
        provider: GradeProvider,
        validator: Optional[EnrollmentValidator] = None,
        sink: Optional[PublicationSink] = None,
        validation_workers: int = 4,
        required_credits: int = 132,
    ) -> None:
        self.provider = provider
        self.validator = validator or provider
        self.sink = sink or provider
        self.validation_workers = max(1, validation_workers)
        self.required_credits = required_credits

    @classmethod
    def from_settings(cls) -> "GradingService":
        configure_logging(settings.log_level)
        portal = PortalService.from_settings()
        return cls(
            portal,
            portal,
            portal,
            validation_workers=settings.validation_workers,
            required_credits=settings.required_degree_credits,
        )

    def load_sheet(
        self,
        section_id: str,
        credits: Optional[int] = None,
        student_ids: Optional[Sequence[str]] = None,
        adjustments: Optional[Mapping[str, AdjustmentSlots]] = None,
        term_id: str = "",
    ) -> GradeSheet:
        components = self.provider.get_components(section_id)
        scores = self.provider.get_scores(section_id)
        if credits is None:
            credits = self.provider.get_section_credits(section_id)
        if student_ids is None:
            student_ids = sorted({s.student_id for s in scores})
        return GradeSheet(
            course_offering_id=section_id,
            credits=credits,
            components=tuple(components),
            scores=tuple(scores),
            student_ids=tuple(student_ids),
            adjustments=dict(adjustments or {}),
            term_id=term_id,
        )

    def preview_section(self, section_id: str, **sheet_options) -> SectionPreview:
        sheet = self.load_sheet(section_id, **sheet_options)
        grades, _ = compute_grades(sheet)
        issues = collect_issues(sheet)
        return SectionPreview(sheet, tuple(grades), tuple(issues), summarize_class(grades))

    def publish_section(self, section_id: str, **sheet_options) -> PublishResult:
        sheet = self.load_sheet(section_id, **sheet_options)
        result = publish(sheet)
        self.sink.publish_course_grades(section_id, result.grades)
        return result

    def student_standing(self, student_id: str, record: bool = False) -> StudentRecord:
        entries = self.provider.get_transcript(student_id)
        term_names = {e.grade.term_id: e.term_name or e.grade.term_id for e in entries}
        term_statuses = {e.grade.term_id: e.term_status for e in entries}
        grades = [e.grade for e in entries]

        terms = group_terms(student_id, grades, term_names, term_statuses)
        standing = compute_standing(student_id, terms)
        if record:
            self.sink.record_standing(standing)
        return StudentRecord(
            tuple(terms),
            standing,
            degree_progress(standing.total_credits, self.required_credits),
        )

    def validate_registration(self, student_id: str, term_id: str, section_ids: Sequence[str]) -> EnrollmentDecision:
        """
        Gather the credit figures and the per-section prerequisite/schedule
        checks in parallel, then decide on the combined load.
        """
        unique_ids = list(dict.fromkeys(section_ids))
        with ThreadPoolExecutor(max_workers=self.validation_workers) as pool:
            current_future = pool.submit(self.provider.current_enrolled_credits, student_id, term_id)
            max_future = pool.submit(self.provider.get_max_credits, student_id)
            credit_futures = {sid: pool.submit(self.provider.get_section_credits, sid) for sid in unique_ids}
            check_futures = {
                sid: pool.submit(self.validator.validate_enrollment, student_id, sid) for sid in unique_ids
            }

            load = EnrollmentLoad(student_id, term_id, current_future.result(), max_future.result())
            proposed = [ProposedSection(sid, credit_futures[sid].result()) for sid in unique_ids]
            validations = {sid: future.result() for sid, future in check_futures.items()}

        decision = decide_enrollment(load, None, proposed, validations)
        logger.info(
            "Registration check for %s in %s: admissible=%s total=%s/%s",
            student_id,
            term_id,
            decision.admissible,
            decision.credit_check.total_credits,
            decision.credit_check.max_credits,
        )
        return decision
