from typing import Iterable, List, Optional, Sequence

from unigrades.core.models import PublishIssue


class GradeEngineError(Exception):
    pass


class WeightError(GradeEngineError):
    def __init__(self, actual_sum: float, offending: Optional[Iterable[str]] = None, message: str = "") -> None:
        self.actual_sum = actual_sum
        self.offending: List[str] = list(offending or [])
        super().__init__(message or f"Component weights must sum to 100, got {actual_sum:g}")


class InvalidScoreError(GradeEngineError):
    def __init__(self, student_id: str, component_id: str, score: float, max_score: float) -> None:
        self.student_id = student_id
        self.component_id = component_id
        self.score = score
        self.max_score = max_score
        super().__init__(
            f"Score {score:g} for component {component_id} (student {student_id}) "
            f"is outside [0, {max_score:g}]"
        )


class AdjustmentValidationError(GradeEngineError):
    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class ComponentLockedError(GradeEngineError):
    def __init__(self, component_id: str) -> None:
        self.component_id = component_id
        super().__init__(f"Component {component_id} already has recorded scores and cannot be changed")


class PublicationStateError(GradeEngineError):
    pass


class PublishRejectedError(GradeEngineError):
    """Publish attempt blocked by unresolved weight or score problems.

    ``issues`` holds one entry per offending row so callers can show the
    faculty member exactly what to fix.
    """

    def __init__(self, course_offering_id: str, issues: Sequence[PublishIssue]) -> None:
        self.course_offering_id = course_offering_id
        self.issues = list(issues)
        lines = "; ".join(issue.message for issue in self.issues)
        super().__init__(f"Cannot publish {course_offering_id}: {lines}")


class RecordValidationError(GradeEngineError):
    def __init__(self, record_type: str, errors: Sequence[str]) -> None:
        self.record_type = record_type
        self.errors = list(errors)
        super().__init__(f"Invalid {record_type} payload: {', '.join(self.errors)}")


class AssertionViolation(AssertionError):
    pass
