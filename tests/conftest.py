import sys
import os
import asyncio
from datetime import date

import httpx
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from classroom import ClassroomClient


def due(d):
    return {"year": d.year, "month": d.month, "day": d.day}


def coursework(cw_id, title, course_id="C1", due_date=None):
    item = {
        "id": cw_id,
        "title": title,
        "courseId": course_id,
        "alternateLink": f"https://classroom.google.com/c/{course_id}/a/{cw_id}/details",
        "state": "PUBLISHED",
    }
    if due_date is not None:
        item["dueDate"] = due(due_date) if isinstance(due_date, date) else due_date
    return item


class FakeClassroom:
    """In-memory Classroom API served through httpx.MockTransport"""

    def __init__(self):
        self.coursework = {}
        self.submissions = {}
        self.courses = []
        self.failures = {}  # path -> HTTP status
        self.stalled = set()  # paths that never answer
        self.bodies = {}  # path -> raw JSON body served with 200
        self.page_size = None
        self.latency = 0
        self.requests = []
        self.in_flight = 0
        self.max_in_flight = 0

    def add_course(self, course_id, *items):
        self.coursework[course_id] = list(items)

    def turn_in(self, course_id, cw_id, state="TURNED_IN"):
        records = self.submissions.setdefault((course_id, cw_id), [])
        records.append({"id": f"s-{cw_id}-{len(records)}", "state": state})

    def client(self, **kwargs):
        return ClassroomClient("test-token", transport=httpx.MockTransport(self.handler), **kwargs)

    async def handler(self, request):
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            path = request.url.path.removeprefix("/v1")
            if path in self.stalled:
                await asyncio.sleep(3600)
            if self.latency:
                await asyncio.sleep(self.latency)
            if path in self.bodies:
                return httpx.Response(200, json=self.bodies[path])
            if path in self.failures:
                status = self.failures[path]
                return httpx.Response(status, json={"error": {"code": status, "message": "boom"}})
            return self._route(path, request)
        finally:
            self.in_flight -= 1

    def _route(self, path, request):
        parts = path.strip("/").split("/")
        if parts == ["courses"]:
            return self._page(request, "courses", self.courses)
        if len(parts) == 3 and parts[2] == "courseWork":
            if parts[1] not in self.coursework:
                return httpx.Response(404, json={"error": {"code": 404, "message": "Requested entity was not found."}})
            return self._page(request, "courseWork", self.coursework[parts[1]])
        if len(parts) == 5 and parts[4] == "studentSubmissions":
            items = self.submissions.get((parts[1], parts[3]), [])
            return self._page(request, "studentSubmissions", items)
        return httpx.Response(404)

    def _page(self, request, key, items):
        if not self.page_size:
            return httpx.Response(200, json={key: items} if items else {})
        start = int(request.url.params.get("pageToken", 0))
        end = start + self.page_size
        body = {key: items[start:end]}
        if end < len(items):
            body["nextPageToken"] = str(end)
        return httpx.Response(200, json=body)


@pytest.fixture
def today():
    return date(2026, 2, 22)


@pytest.fixture
def fake():
    return FakeClassroom()
