import unittest

from unigrades.core.enrollment import check_credit_load, decide_enrollment, enrolled_credits
from unigrades.core.models import (
    EnrollmentLoad,
    EnrollmentRecord,
    EnrollmentStatus,
    ProposedSection,
    SectionValidation,
)


class CreditLoadTests(unittest.TestCase):
    def test_over_cap(self):
        result = check_credit_load(15, 18, [ProposedSection("a", 3), ProposedSection("b", 3)])
        self.assertFalse(result.ok)
        self.assertEqual(result.over_by, 3)
        self.assertEqual(result.total_credits, 21)

    def test_within_cap(self):
        result = check_credit_load(12, 18, [ProposedSection("a", 3)])
        self.assertTrue(result.ok)
        self.assertEqual(result.over_by, 0)

    def test_exactly_at_cap(self):
        result = check_credit_load(15, 18, [ProposedSection("a", 3)])
        self.assertTrue(result.ok)
        self.assertEqual(result.over_by, 0)

    def test_nothing_proposed(self):
        self.assertTrue(check_credit_load(18, 18, []).ok)

    def test_negative_inputs_rejected(self):
        with self.assertRaises(ValueError):
            check_credit_load(-1, 18, [])
        with self.assertRaises(ValueError):
            check_credit_load(0, 18, [ProposedSection("a", -3)])

    def test_enrolled_credits_counts_enrolled_only(self):
        records = [
            EnrollmentRecord("s1", "a", 3, EnrollmentStatus.ENROLLED, "t1"),
            EnrollmentRecord("s1", "b", 4, EnrollmentStatus.DROPPED, "t1"),
            EnrollmentRecord("s1", "c", 3, EnrollmentStatus.ENROLLED, "t2"),
        ]
        self.assertEqual(enrolled_credits(records), 6)
        self.assertEqual(enrolled_credits(records, "t1"), 3)


class DecisionTests(unittest.TestCase):
    def setUp(self):
        self.sections = [ProposedSection("a", 3), ProposedSection("b", 3)]

    def test_admissible_when_all_valid_and_within_cap(self):
        decision = decide_enrollment(
            9, 18, self.sections, [SectionValidation("a", True), SectionValidation("b", True)]
        )
        self.assertTrue(decision.admissible)
        self.assertEqual(decision.rejected_sections, ())

    def test_invalid_section_blocks(self):
        validations = {
            "a": SectionValidation("a", True),
            "b": SectionValidation("b", False, conflicts=("Mon 10:00 with CS201",)),
        }
        decision = decide_enrollment(9, 18, self.sections, validations)
        self.assertFalse(decision.admissible)
        self.assertTrue(decision.credit_check.ok)
        self.assertEqual([v.section_id for v in decision.rejected_sections], ["b"])

    def test_missing_validation_blocks(self):
        decision = decide_enrollment(9, 18, self.sections, [SectionValidation("a", True)])
        self.assertFalse(decision.admissible)
        self.assertEqual(decision.rejected_sections[0].errors, ("validation missing",))

    def test_credit_overage_blocks_even_when_valid(self):
        load = EnrollmentLoad("s1", "t1", 15, 18)
        decision = decide_enrollment(
            load, None, self.sections, [SectionValidation("a", True), SectionValidation("b", True)]
        )
        self.assertFalse(decision.admissible)
        self.assertEqual(decision.credit_check.over_by, 3)

    def test_max_required_for_plain_numbers(self):
        with self.assertRaises(ValueError):
            decide_enrollment(9, None, self.sections, [])


if __name__ == "__main__":
    unittest.main()
