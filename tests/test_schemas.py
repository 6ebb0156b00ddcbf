import unittest

from unigrades.core.errors import AdjustmentValidationError, RecordValidationError
from unigrades.core.models import AdjustmentKind, EnrollmentStatus, TermStatus
from unigrades.schemas import (
    parse_adjustment,
    parse_components,
    parse_course_grades,
    parse_enrollments,
    parse_scores,
    parse_section_validation,
    parse_transcript,
)


class ComponentSchemaTests(unittest.TestCase):
    def test_camel_case_payload(self):
        components = parse_components([{"id": "1", "name": " Quizzes ", "weight": 10, "maxScore": 100}])
        self.assertEqual(components[0].name, "Quizzes")
        self.assertEqual(components[0].max_score, 100)
        self.assertTrue(components[0].active)

    def test_malformed_component_rejected(self):
        with self.assertRaises(RecordValidationError) as ctx:
            parse_components([{"id": "1", "name": "Quizzes", "weight": 10}])
        self.assertEqual(ctx.exception.record_type, "ComponentPayload")
        self.assertTrue(any("maxScore" in e for e in ctx.exception.errors))
        with self.assertRaises(RecordValidationError):
            parse_components([{"id": "1", "name": "Quizzes", "weight": 120, "maxScore": 100}])

    def test_none_is_empty(self):
        self.assertEqual(parse_components(None), [])


class ScoreSchemaTests(unittest.TestCase):
    def test_out_of_range_scores_pass_schema(self):
        # Range is checked per component by the engine, not by the schema.
        scores = parse_scores([{"studentId": "s1", "componentId": "mid", "score": 150}])
        self.assertEqual(scores[0].score, 150)

    def test_non_numeric_score_rejected(self):
        with self.assertRaises(RecordValidationError):
            parse_scores([{"studentId": "s1", "componentId": "mid", "score": "abc"}])
        with self.assertRaises(RecordValidationError):
            parse_scores([{"studentId": "s1", "componentId": "mid", "score": float("nan")}])


class AdjustmentSchemaTests(unittest.TestCase):
    def test_lower_case_kind(self):
        adjustment = parse_adjustment(
            {"studentId": "s1", "courseOfferingId": "c1", "kind": "bonus", "amount": 2, "reason": " participation "}
        )
        self.assertEqual(adjustment.kind, AdjustmentKind.BONUS)
        self.assertEqual(adjustment.reason, "participation")

    def test_blank_reason(self):
        with self.assertRaises(AdjustmentValidationError):
            parse_adjustment({"studentId": "s1", "courseOfferingId": "c1", "kind": "PENALTY", "amount": 2})

    def test_unknown_kind(self):
        with self.assertRaises(RecordValidationError):
            parse_adjustment(
                {"studentId": "s1", "courseOfferingId": "c1", "kind": "gift", "amount": 2, "reason": "x"}
            )


class EnrollmentSchemaTests(unittest.TestCase):
    def test_nested_section_shape(self):
        records = parse_enrollments(
            [
                {
                    "id": "e1",
                    "studentId": "s1",
                    "status": "enrolled",
                    "section": {"id": "sec-1", "code": "A", "course": {"code": "CS101", "credits": 3}},
                }
            ]
        )
        self.assertEqual(records[0].section_id, "sec-1")
        self.assertEqual(records[0].credits, 3)
        self.assertEqual(records[0].status, EnrollmentStatus.ENROLLED)

    def test_missing_credits_rejected(self):
        with self.assertRaises(RecordValidationError):
            parse_enrollments([{"studentId": "s1", "section": {"id": "sec-1"}}])


class CourseGradeSchemaTests(unittest.TestCase):
    def test_transcript_row(self):
        grades = parse_course_grades(
            "s1",
            [
                {
                    "enrollmentId": "e1",
                    "sectionId": "sec-1",
                    "credits": 3,
                    "termId": "t1",
                    "termName": "Fall 2024",
                    "termStatus": "COMPLETED",
                    "percentage": 87.5,
                    "letterGrade": "B+",
                    "gradePoint": 3.3,
                    "isPublished": True,
                }
            ],
        )
        self.assertEqual(grades[0].course_offering_id, "sec-1")
        self.assertTrue(grades[0].is_published)
        self.assertEqual(grades[0].adjusted_total, 87.5)

    def test_transcript_entry(self):
        entries = parse_transcript(
            "s1",
            [{"sectionId": "sec-1", "credits": 4, "termId": "t1", "percentage": 64, "letterGrade": "D",
              "gradePoint": 1.7}],
        )
        self.assertEqual(entries[0].term_name, "")
        self.assertEqual(entries[0].term_status, TermStatus.COMPLETED)
        self.assertEqual(entries[0].grade.credits, 4)

    def test_grade_point_bounds(self):
        with self.assertRaises(RecordValidationError):
            parse_course_grades(
                "s1",
                [{"sectionId": "x", "credits": 3, "percentage": 90, "letterGrade": "A", "gradePoint": 5}],
            )


class SectionValidationSchemaTests(unittest.TestCase):
    def test_result(self):
        result = parse_section_validation(
            {"sectionId": "sec-1", "valid": False, "conflicts": ["Mon 10:00"], "missingPrerequisites": ["CS100"]}
        )
        self.assertFalse(result.valid)
        self.assertEqual(result.missing_prerequisites, ("CS100",))
        self.assertEqual(result.errors, ())


if __name__ == "__main__":
    unittest.main()
