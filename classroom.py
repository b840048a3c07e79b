"""Google Classroom REST client for coursework and submission listing"""

import logging

import httpx

from models import Assignment, Course, Submission

logger = logging.getLogger(__name__)

CLASSROOM_API_BASE = "https://classroom.googleapis.com/v1"
PAGE_SIZE = 100


class ClassroomAPIError(Exception):
    pass


class ClassroomClient:
    """Async HTTP client for the Classroom API, authorized with a bearer token.

    Usage:
        async with ClassroomClient(creds.token) as client:
            assignments = await client.list_coursework("12345")
    """

    def __init__(self, access_token, timeout=30.0, base_url=CLASSROOM_API_BASE, transport=None):
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
        )

    async def close(self):
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _get(self, path, params=None):
        try:
            resp = await self.client.get(path, params=params)
        except httpx.HTTPError as e:
            raise ClassroomAPIError(f"GET {path} failed: {e}") from e
        if not resp.is_success:
            raise ClassroomAPIError(f"GET {path} returned HTTP {resp.status_code}: {_error_message(resp)}")
        try:
            return resp.json()
        except ValueError as e:
            raise ClassroomAPIError(f"GET {path} returned invalid JSON: {e}") from e

    async def _get_all(self, path, key, params=None):
        """Follow nextPageToken until every page of `key` items is read"""
        params = dict(params or {})
        params.setdefault("pageSize", PAGE_SIZE)
        items = []
        while True:
            data = await self._get(path, params)
            if not isinstance(data, dict):
                raise ClassroomAPIError(f"GET {path} returned {type(data).__name__}, expected an object")
            page = data.get(key, [])
            if not isinstance(page, list) or not all(isinstance(item, dict) for item in page):
                raise ClassroomAPIError(f"GET {path} returned a malformed {key!r} list")
            items.extend(page)
            token = data.get("nextPageToken")
            if not token:
                return items
            params["pageToken"] = token

    async def list_coursework(self, course_id):
        """All coursework of a course"""
        raw = await self._get_all(f"/courses/{course_id}/courseWork", "courseWork")
        logger.debug(f"Course {course_id}: {len(raw)} coursework items")
        return [Assignment.from_api(item) for item in raw]

    async def list_submissions(self, course_id, coursework_id, user_id="me"):
        """Submission records of one coursework item for the given user"""
        raw = await self._get_all(
            f"/courses/{course_id}/courseWork/{coursework_id}/studentSubmissions",
            "studentSubmissions",
            {"userId": user_id},
        )
        return [Submission.from_api(item) for item in raw]

    async def list_courses(self, student_id="me", active_only=True):
        """Courses the user is enrolled in"""
        params = {"studentId": student_id}
        if active_only:
            params["courseStates"] = "ACTIVE"
        raw = await self._get_all("/courses", "courses", params)
        return [Course.from_api(item) for item in raw]


def _error_message(resp):
    """Extract the API's error message, falling back to the raw body"""
    try:
        return resp.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return resp.text[:200]
