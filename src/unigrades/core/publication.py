"""Per course offering grade sheet and its draft/published lifecycle.

A sheet starts in DRAFT. Faculty record scores, adjustments and components
against it; ``publish`` moves it to PUBLISHED only after the weight check and
every score range check pass, and stamps the computed grades as published.
While published the sheet rejects edits until it is explicitly unpublished.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Mapping, Tuple

from unigrades.core.errors import InvalidScoreError, PublicationStateError, PublishRejectedError, WeightError
from unigrades.core.grades import AdjustmentSlots, check_score, evaluate_course
from unigrades.core.models import Adjustment, ComponentScore, CourseGrade, GradeComponent, PublishIssue
from unigrades.core.weights import check_new_component, ensure_component_unlocked, validate_components


logger = logging.getLogger(__name__)


class GradeSheetState(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


@dataclass(frozen=True)
class GradeSheet:
    course_offering_id: str
    credits: int
    components: Tuple[GradeComponent, ...] = ()
    scores: Tuple[ComponentScore, ...] = ()
    student_ids: Tuple[str, ...] = ()
    adjustments: Mapping[str, AdjustmentSlots] = field(default_factory=dict)
    state: GradeSheetState = GradeSheetState.DRAFT
    term_id: str = ""

    @property
    def is_published(self) -> bool:
        return self.state is GradeSheetState.PUBLISHED


@dataclass(frozen=True)
class PublishResult:
    sheet: GradeSheet
    grades: Tuple[CourseGrade, ...]


def _require_draft(sheet: GradeSheet, action: str) -> None:
    if sheet.is_published:
        raise PublicationStateError(
            f"Cannot {action} on {sheet.course_offering_id}: grades are published, unpublish first"
        )


def _scores_for(sheet: GradeSheet, student_id: str) -> List[ComponentScore]:
    return [s for s in sheet.scores if s.student_id == student_id]


def collect_issues(sheet: GradeSheet) -> List[PublishIssue]:
    issues: List[PublishIssue] = []
    try:
        validate_components(sheet.components)
    except WeightError as exc:
        if exc.offending:
            for component_id in exc.offending:
                issues.append(PublishIssue("weight", str(exc), component_id=component_id))
        else:
            issues.append(PublishIssue("weight", str(exc)))

    by_id = {c.id: c for c in sheet.components}
    for score in sheet.scores:
        component = by_id.get(score.component_id)
        if component is None:
            issues.append(
                PublishIssue(
                    "unknown_component",
                    f"Score for unknown component {score.component_id} (student {score.student_id})",
                    student_id=score.student_id,
                    component_id=score.component_id,
                )
            )
            continue
        try:
            check_score(component, score)
        except InvalidScoreError as exc:
            issues.append(
                PublishIssue("score", str(exc), student_id=score.student_id, component_id=score.component_id)
            )
    return issues


def compute_grades(sheet: GradeSheet) -> Tuple[List[CourseGrade], List[PublishIssue]]:
    """
    Evaluate every student on the sheet. A student with a bad score is
    reported as an issue and skipped; the rest of the class is still graded.
    """
    grades: List[CourseGrade] = []
    issues: List[PublishIssue] = []
    for student_id in sheet.student_ids:
        try:
            grade = evaluate_course(
                student_id,
                sheet.course_offering_id,
                sheet.components,
                _scores_for(sheet, student_id),
                sheet.credits,
                slots=sheet.adjustments.get(student_id),
                term_id=sheet.term_id,
            )
        except InvalidScoreError as exc:
            logger.warning("Skipping %s in %s: %s", student_id, sheet.course_offering_id, exc)
            issues.append(
                PublishIssue("score", str(exc), student_id=exc.student_id, component_id=exc.component_id)
            )
            continue
        if sheet.is_published:
            grade = grade.published()
        grades.append(grade)
    return grades, issues


def publish(sheet: GradeSheet) -> PublishResult:
    _require_draft(sheet, "publish")
    issues = collect_issues(sheet)
    if issues:
        logger.warning("Publish of %s rejected with %d issue(s)", sheet.course_offering_id, len(issues))
        raise PublishRejectedError(sheet.course_offering_id, issues)

    grades, grade_issues = compute_grades(sheet)
    if grade_issues:
        raise PublishRejectedError(sheet.course_offering_id, grade_issues)

    published_sheet = replace(sheet, state=GradeSheetState.PUBLISHED)
    logger.info("Published %d grade(s) for %s", len(grades), sheet.course_offering_id)
    return PublishResult(published_sheet, tuple(g.published() for g in grades))


def unpublish(sheet: GradeSheet, reason: str) -> GradeSheet:
    if not sheet.is_published:
        raise PublicationStateError(f"{sheet.course_offering_id} is not published")
    if not reason.strip():
        raise PublicationStateError("A reason is required to unpublish grades")
    logger.info("Unpublished %s: %s", sheet.course_offering_id, reason.strip())
    return replace(sheet, state=GradeSheetState.DRAFT)


def record_score(sheet: GradeSheet, score: ComponentScore) -> GradeSheet:
    _require_draft(sheet, "record a score")
    component = next((c for c in sheet.components if c.id == score.component_id), None)
    if component is None:
        raise ValueError(f"Unknown component {score.component_id} for {sheet.course_offering_id}")
    check_score(component, score)

    kept = tuple(
        s for s in sheet.scores if not (s.student_id == score.student_id and s.component_id == score.component_id)
    )
    students = sheet.student_ids
    if score.student_id not in students:
        students = students + (score.student_id,)
    return replace(sheet, scores=kept + (score,), student_ids=students)


def set_adjustment(sheet: GradeSheet, adjustment: Adjustment) -> GradeSheet:
    _require_draft(sheet, "adjust a grade")
    if adjustment.course_offering_id != sheet.course_offering_id:
        raise ValueError(
            f"Adjustment for {adjustment.course_offering_id} does not belong to {sheet.course_offering_id}"
        )
    adjustments: Dict[str, AdjustmentSlots] = dict(sheet.adjustments)
    current = adjustments.get(adjustment.student_id, AdjustmentSlots())
    adjustments[adjustment.student_id] = current.with_adjustment(adjustment)
    return replace(sheet, adjustments=adjustments)


def add_component(sheet: GradeSheet, component: GradeComponent) -> GradeSheet:
    _require_draft(sheet, "add a component")
    if any(c.id == component.id for c in sheet.components):
        raise ValueError(f"Component {component.id} already exists")
    check_new_component(sheet.components, component)
    return replace(sheet, components=sheet.components + (component,))


def replace_component(sheet: GradeSheet, component: GradeComponent) -> GradeSheet:
    _require_draft(sheet, "change a component")
    existing = next((c for c in sheet.components if c.id == component.id), None)
    if existing is None:
        raise ValueError(f"Unknown component {component.id}")
    ensure_component_unlocked(existing, sheet.scores)
    others = tuple(c for c in sheet.components if c.id != component.id)
    check_new_component(others, component)
    return replace(sheet, components=tuple(component if c.id == component.id else c for c in sheet.components))
