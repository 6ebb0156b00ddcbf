import unittest
from unittest import mock

import requests

from unigrades.core.errors import RecordValidationError
from unigrades.core.models import AcademicStanding, Standing, TermStatus
from unigrades.services.portal_service import PortalService, PortalServiceError


def response(payload, status_code=200):
    res = mock.Mock()
    res.status_code = status_code
    res.json.return_value = payload
    return res


class PortalServiceTestCase(unittest.TestCase):
    def setUp(self):
        self.session = mock.Mock(spec=requests.Session)
        self.portal = PortalService("http://portal.test/api/", token="secret", session=self.session)

    def reply(self, *responses):
        self.session.request.side_effect = list(responses)


class RequestTests(PortalServiceTestCase):
    def test_missing_url(self):
        with self.assertRaises(PortalServiceError):
            PortalService("")

    def test_unwraps_success_envelope(self):
        self.reply(
            response(
                {"success": True, "data": {"components": [{"id": "1", "name": "Final", "weight": 100, "maxScore": 50}]}}
            )
        )
        components = self.portal.get_components("sec-1")
        self.assertEqual(components[0].max_score, 50)

        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("GET", "http://portal.test/api/grades/components/sec-1"))
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer secret")
        self.assertEqual(kwargs["timeout"], 15)

    def test_error_status_uses_message(self):
        self.reply(response({"success": False, "message": "Section not found"}, status_code=404))
        with self.assertRaises(PortalServiceError) as ctx:
            self.portal.get_scores("missing")
        self.assertEqual(str(ctx.exception), "Section not found")

    def test_unsuccessful_envelope(self):
        self.reply(response({"success": False, "data": None, "message": "FORBIDDEN"}))
        with self.assertRaises(PortalServiceError) as ctx:
            self.portal.get_scores("sec-1")
        self.assertEqual(str(ctx.exception), "FORBIDDEN")

    def test_connection_failure(self):
        self.session.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(PortalServiceError) as ctx:
            self.portal.get_scores("sec-1")
        self.assertEqual(str(ctx.exception), "PORTAL_UNAVAILABLE")

    def test_non_json_body(self):
        res = response(None)
        res.json.side_effect = ValueError("no json")
        self.reply(res)
        with self.assertRaises(PortalServiceError) as ctx:
            self.portal.get_scores("sec-1")
        self.assertEqual(str(ctx.exception), "PORTAL_INVALID_RESPONSE")

    def test_malformed_rows_propagate(self):
        self.reply(response({"data": {"grades": [{"studentId": "s1", "componentId": "mid"}]}}))
        with self.assertRaises(RecordValidationError):
            self.portal.get_scores("sec-1")


class ProviderTests(PortalServiceTestCase):
    def test_enrolled_credits_from_listing(self):
        self.reply(
            response(
                {
                    "success": True,
                    "data": {
                        "enrollments": [
                            {"id": "e1", "status": "ENROLLED", "section": {"id": "a", "course": {"credits": 3}}},
                            {"id": "e2", "status": "ENROLLED", "section": {"id": "b", "course": {"credits": 4}}},
                        ]
                    },
                }
            )
        )
        self.assertEqual(self.portal.current_enrolled_credits("s1", "t1"), 7)
        _, kwargs = self.session.request.call_args
        self.assertEqual(kwargs["params"], {"studentId": "s1", "termId": "t1", "status": "ENROLLED"})

    def test_section_credits(self):
        self.reply(response({"data": {"section": {"id": "a", "course": {"credits": 4}}}}))
        self.assertEqual(self.portal.get_section_credits("a"), 4)

        self.reply(response({"data": {"section": {"id": "a"}}}))
        with self.assertRaises(PortalServiceError):
            self.portal.get_section_credits("a")

    def test_max_credits_from_batch(self):
        self.reply(response({"data": {"student": {"id": "s1", "batch": {"maxCredits": 21}}}}))
        self.assertEqual(self.portal.get_max_credits("s1"), 21)

    def test_max_credits_default(self):
        self.reply(response({"data": {"student": {"id": "s1", "batch": None}}}))
        self.assertEqual(self.portal.get_max_credits("s1"), 18)

    def test_course_grades(self):
        self.reply(
            response(
                {
                    "data": {
                        "grades": [
                            {
                                "sectionId": "sec-1",
                                "credits": 3,
                                "termId": "t1",
                                "percentage": 91,
                                "letterGrade": "A",
                                "gradePoint": 3.7,
                                "isPublished": True,
                            }
                        ]
                    }
                }
            )
        )
        grades = self.portal.get_course_grades("s1")
        self.assertEqual(grades[0].student_id, "s1")
        self.assertEqual(grades[0].grade_point, 3.7)

    def test_transcript_keeps_term_metadata(self):
        self.reply(
            response(
                {
                    "data": {
                        "grades": [
                            {
                                "sectionId": "sec-1",
                                "credits": 3,
                                "termId": "t2",
                                "termName": "2024 Spring",
                                "termStatus": "active",
                                "percentage": 72,
                                "letterGrade": "C",
                                "gradePoint": 2.3,
                            }
                        ]
                    }
                }
            )
        )
        entry = self.portal.get_transcript("s1")[0]
        self.assertEqual(entry.term_name, "2024 Spring")
        self.assertEqual(entry.term_status, TermStatus.ACTIVE)
        self.assertEqual(entry.grade.term_id, "t2")
        self.assertFalse(entry.grade.is_published)


class ValidatorAndSinkTests(PortalServiceTestCase):
    def test_validate_enrollment(self):
        self.reply(response({"success": True, "data": {"valid": False, "conflicts": ["Mon 10:00"]}}))
        result = self.portal.validate_enrollment("s1", "sec-9")
        self.assertEqual(result.section_id, "sec-9")
        self.assertFalse(result.valid)
        self.assertEqual(result.conflicts, ("Mon 10:00",))

        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("POST", "http://portal.test/api/enrollments/validate"))
        self.assertEqual(kwargs["json"], {"studentId": "s1", "sectionId": "sec-9"})

    def test_record_standing(self):
        self.reply(response({"success": True, "data": {}}))
        self.portal.record_standing(AcademicStanding("s1", 3.2, 45, Standing.VERY_GOOD))
        args, kwargs = self.session.request.call_args
        self.assertEqual(args[1], "http://portal.test/api/students/s1/academic-standing")
        self.assertEqual(kwargs["json"]["standing"], "Very Good")


if __name__ == "__main__":
    unittest.main()
