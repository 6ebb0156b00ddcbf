import logging
from typing import Any, Dict, Iterable, List, Optional

import requests
from requests import RequestException

from unigrades.config.settings import settings
from unigrades.core.enrollment import enrolled_credits
from unigrades.core.models import (
    AcademicStanding,
    ComponentScore,
    CourseGrade,
    EnrollmentRecord,
    GradeComponent,
    SectionValidation,
    TranscriptEntry,
)
from unigrades.schemas import (
    BatchPolicyPayload,
    parse_components,
    parse_enrollments,
    parse_payload,
    parse_scores,
    parse_section_validation,
    parse_transcript,
)


logger = logging.getLogger(__name__)


class PortalServiceError(Exception):
    pass


class PortalService:
    """Client for the portal backend REST API.

    Serves as the student/enrollment provider, the prerequisite/schedule
    validator and the publication sink for the grading service.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: int = 15,
        default_max_credits: int = 18,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not base_url:
            raise PortalServiceError("Missing UNIGRADES_API_URL in environment")
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.default_max_credits = default_max_credits
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls) -> "PortalService":
        return cls(
            settings.portal_api_url,
            token=settings.portal_api_token,
            timeout=settings.http_timeout,
            default_max_credits=settings.default_max_credits,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            res = self.session.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
        except RequestException as exc:
            logger.warning("Portal request %s %s failed: %s", method, path, exc)
            raise PortalServiceError("PORTAL_UNAVAILABLE") from exc
        try:
            data = res.json()
        except ValueError:
            raise PortalServiceError("PORTAL_INVALID_RESPONSE")

        if res.status_code >= 400:
            error_key = "PORTAL_ERROR"
            if isinstance(data, dict):
                error_key = str(data.get("message") or data.get("error") or error_key)
            logger.warning("Portal %s %s returned %s: %s", method, path, res.status_code, error_key)
            raise PortalServiceError(error_key)

        return self._unwrap(data)

    @staticmethod
    def _unwrap(data: Any) -> Any:
        # Responses are either bare or wrapped as {"success": true, "data": {...}}.
        if isinstance(data, dict) and "data" in data and ("success" in data or len(data) == 1):
            if data.get("success") is False:
                raise PortalServiceError(str(data.get("message") or "PORTAL_ERROR"))
            return data["data"]
        return data

    @staticmethod
    def _rows(data: Any, key: str) -> List[Dict[str, Any]]:
        if isinstance(data, dict):
            data = data.get(key, [])
        if not isinstance(data, list):
            raise PortalServiceError(f"Expected a list of {key}")
        return data

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", path, params=params)

    def _post(self, path: str, payload: Any) -> Any:
        return self._request("POST", path, json=payload)

    # Student/enrollment provider

    def get_components(self, section_id: str) -> List[GradeComponent]:
        data = self._get(f"/grades/components/{section_id}")
        return parse_components(self._rows(data, "components"))

    def get_scores(self, section_id: str) -> List[ComponentScore]:
        data = self._get(f"/grades/section/{section_id}")
        return parse_scores(self._rows(data, "grades"))

    def get_enrollments(self, student_id: str, term_id: str) -> List[EnrollmentRecord]:
        data = self._get("/enrollments", params={"studentId": student_id, "termId": term_id, "status": "ENROLLED"})
        rows = []
        for row in self._rows(data, "enrollments"):
            row = dict(row)
            row.setdefault("studentId", student_id)
            row.setdefault("termId", term_id)
            rows.append(row)
        return parse_enrollments(rows)

    def current_enrolled_credits(self, student_id: str, term_id: str) -> int:
        return enrolled_credits(self.get_enrollments(student_id, term_id), term_id)

    def get_section_credits(self, section_id: str) -> int:
        data = self._get(f"/sections/{section_id}")
        section = data.get("section", data) if isinstance(data, dict) else None
        course = section.get("course") if isinstance(section, dict) else None
        credits = course.get("credits") if isinstance(course, dict) else None
        if credits is None and isinstance(section, dict):
            credits = section.get("credits")
        try:
            return int(credits)
        except (TypeError, ValueError) as exc:
            raise PortalServiceError(f"Section {section_id} has no credit value") from exc

    def get_max_credits(self, student_id: str) -> int:
        data = self._get(f"/students/{student_id}")
        student = data.get("student", data) if isinstance(data, dict) else {}
        batch = student.get("batch") if isinstance(student, dict) else None
        if not isinstance(batch, dict) or batch.get("maxCredits") is None:
            return self.default_max_credits
        return parse_payload(BatchPolicyPayload, batch).max_credits

    def get_transcript(self, student_id: str) -> List[TranscriptEntry]:
        data = self._get(f"/grades/transcript/{student_id}")
        return parse_transcript(student_id, self._rows(data, "grades"))

    def get_course_grades(self, student_id: str) -> List[CourseGrade]:
        return [entry.grade for entry in self.get_transcript(student_id)]

    # Prerequisite/schedule validator

    def validate_enrollment(self, student_id: str, section_id: str) -> SectionValidation:
        data = self._post("/enrollments/validate", {"studentId": student_id, "sectionId": section_id})
        if isinstance(data, dict):
            data = {"sectionId": section_id, **data}
        return parse_section_validation(data)

    # Publication sink

    def publish_course_grades(self, section_id: str, grades: Iterable[CourseGrade]) -> Dict[str, Any]:
        payload = {"grades": [g.to_dict() for g in grades]}
        result = self._post(f"/grades/publish/{section_id}", payload)
        return result if isinstance(result, dict) else {"result": result}

    def record_standing(self, standing: AcademicStanding) -> None:
        self._post(f"/students/{standing.student_id}/academic-standing", standing.to_dict())
