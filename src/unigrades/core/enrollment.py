import logging
from typing import Iterable, List, Mapping, Optional, Union

from unigrades.core.models import (
    CreditCheck,
    EnrollmentDecision,
    EnrollmentLoad,
    EnrollmentRecord,
    EnrollmentStatus,
    ProposedSection,
    SectionValidation,
)


logger = logging.getLogger(__name__)

DEFAULT_MAX_CREDITS = 18


def check_credit_load(
    current_credits: int,
    max_credits: int,
    proposed_sections: Iterable[ProposedSection],
) -> CreditCheck:
    if current_credits < 0:
        raise ValueError("current_credits cannot be negative")
    if max_credits < 0:
        raise ValueError("max_credits cannot be negative")

    total = current_credits
    for section in proposed_sections:
        if section.credits < 0:
            raise ValueError(f"Section {section.section_id} has negative credits")
        total += section.credits

    return CreditCheck(
        ok=total <= max_credits,
        over_by=max(0, total - max_credits),
        total_credits=total,
        max_credits=max_credits,
    )


def check_load(load: EnrollmentLoad, proposed_sections: Iterable[ProposedSection]) -> CreditCheck:
    return check_credit_load(load.enrolled_credits, load.max_credits, proposed_sections)


def enrolled_credits(enrollments: Iterable[EnrollmentRecord], term_id: Optional[str] = None) -> int:
    return sum(
        e.credits
        for e in enrollments
        if e.status is EnrollmentStatus.ENROLLED and (term_id is None or e.term_id == term_id)
    )


def decide_enrollment(
    current: Union[int, EnrollmentLoad],
    max_credits: Optional[int],
    proposed_sections: Iterable[ProposedSection],
    validations: Union[Iterable[SectionValidation], Mapping[str, SectionValidation]],
) -> EnrollmentDecision:
    """
    Admissible only when the combined credit load fits the cap and every
    proposed section was reported valid by the prerequisite/schedule check.
    """
    sections = list(proposed_sections)
    if isinstance(current, EnrollmentLoad):
        credit_check = check_load(current, sections)
    else:
        if max_credits is None:
            raise ValueError("max_credits is required when current credits are given as a number")
        credit_check = check_credit_load(current, max_credits, sections)

    if isinstance(validations, Mapping):
        by_section = dict(validations)
    else:
        by_section = {v.section_id: v for v in validations}

    rejected: List[SectionValidation] = []
    for section in sections:
        result = by_section.get(section.section_id)
        if result is None:
            result = SectionValidation(section.section_id, valid=False, errors=("validation missing",))
        if not result.valid:
            rejected.append(result)

    admissible = credit_check.ok and not rejected
    if not admissible:
        logger.info(
            "Enrollment not admissible: over_by=%s rejected_sections=%s",
            credit_check.over_by,
            [r.section_id for r in rejected],
        )
    return EnrollmentDecision(admissible, credit_check, tuple(rejected))
