from typing import Iterable, List

from unigrades.core.errors import ComponentLockedError, WeightError
from unigrades.core.models import ComponentScore, GradeComponent


REQUIRED_TOTAL_WEIGHT = 100


def _active(components: Iterable[GradeComponent]) -> List[GradeComponent]:
    return [c for c in components if c.active]


def total_weight(components: Iterable[GradeComponent]) -> float:
    return sum(c.weight for c in _active(components))


def remaining_weight(components: Iterable[GradeComponent]) -> float:
    return REQUIRED_TOTAL_WEIGHT - total_weight(components)


def validate_components(components: Iterable[GradeComponent]) -> None:
    """
    Raise WeightError unless the active components of one offering carry
    positive weights and max scores and their weights add up to exactly 100.
    """
    active = _active(components)
    actual = sum(c.weight for c in active)
    offending = [c.id for c in active if c.weight <= 0 or c.max_score <= 0]
    if offending:
        raise WeightError(
            actual,
            offending,
            f"Components need a positive weight and max score: {', '.join(offending)}",
        )
    if actual != REQUIRED_TOTAL_WEIGHT:
        raise WeightError(actual)


def check_new_component(existing: Iterable[GradeComponent], candidate: GradeComponent) -> None:
    current = total_weight(existing)
    if not candidate.name.strip():
        raise WeightError(current, [candidate.id], "Component name is required")
    if candidate.weight <= 0 or candidate.max_score <= 0:
        raise WeightError(
            current,
            [candidate.id],
            f"Component {candidate.id} needs a positive weight and max score",
        )
    if not candidate.active:
        return
    proposed = current + candidate.weight
    if proposed > REQUIRED_TOTAL_WEIGHT:
        raise WeightError(
            proposed,
            [candidate.id],
            f"Adding {candidate.name} would bring the total weight to {proposed:g}%",
        )


def ensure_component_unlocked(component: GradeComponent, scores: Iterable[ComponentScore]) -> None:
    if any(s.component_id == component.id for s in scores):
        raise ComponentLockedError(component.id)
