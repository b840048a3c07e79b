"""Concurrent coursework listing and visibility filtering.

Each configured course is listed in its own task; each assignment of a course
is checked in its own nested task. Visible assignments are put on a single
queue that one consumer drains via `CourseworkLister.stream_visible`. The
queue is closed only after every course task, and every check inside it, has
finished.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date

from classroom import ClassroomAPIError
from models import DueDateError

logger = logging.getLogger(__name__)

VISIBLE = "visible"
OVERDUE = "overdue"
TURNED_IN = "turned_in"

_CLOSED = object()


class RetrievalError(Exception):
    """Listing the coursework of a course failed"""

    def __init__(self, course_id, cause):
        super().__init__(f"Could not list coursework for course {course_id}: {cause}")
        self.course_id = course_id


class VisibilityCheckError(Exception):
    """Deciding whether an assignment is visible failed"""

    def __init__(self, assignment, cause):
        super().__init__(f"Could not check {assignment.title!r} ({assignment.id}): {cause}")
        self.assignment = assignment


@dataclass
class RunReport:
    courses: int = 0
    assignments: int = 0
    visible: int = 0
    overdue: int = 0
    turned_in: int = 0
    failed_courses: list[str] = field(default_factory=list)
    failed_checks: list[str] = field(default_factory=list)

    def record(self, reason):
        if reason == VISIBLE:
            self.visible += 1
        elif reason == OVERDUE:
            self.overdue += 1
        elif reason == TURNED_IN:
            self.turned_in += 1


async def check_visibility(client, assignment, today: date) -> str:
    """Return VISIBLE, OVERDUE or TURNED_IN for one assignment.

    An assignment without a due date counts as due today, so the date check
    never excludes it. Raises VisibilityCheckError if the due date cannot be
    parsed or the submission lookup fails.
    """
    try:
        due = assignment.effective_due_date(today)
    except DueDateError as e:
        raise VisibilityCheckError(assignment, e) from e
    if due < today:
        return OVERDUE

    try:
        submissions = await client.list_submissions(assignment.course_id, assignment.id)
    except ClassroomAPIError as e:
        raise VisibilityCheckError(assignment, e) from e
    if any(s.turned_in for s in submissions):
        return TURNED_IN
    return VISIBLE


async def is_visible(client, assignment, today: date) -> bool:
    return await check_visibility(client, assignment, today) == VISIBLE


class _LimitedClient:
    """Wraps a ClassroomClient so at most `limit` requests run at once"""

    def __init__(self, client, limit):
        self._client = client
        self._semaphore = asyncio.Semaphore(limit)

    async def list_coursework(self, course_id):
        async with self._semaphore:
            return await self._client.list_coursework(course_id)

    async def list_submissions(self, course_id, coursework_id):
        async with self._semaphore:
            return await self._client.list_submissions(course_id, coursework_id)


class CourseworkLister:
    """Fan out over courses and their assignments, fan visible ones back in.

    `today` is called at check time and must return a `datetime.date`.
    With `skip_failed_courses`, a course whose listing fails is logged and
    skipped; otherwise the failure cancels all remaining work and is raised
    from `stream_visible`.
    """

    def __init__(self, client, max_concurrency=8, skip_failed_courses=False, today=date.today):
        self.client = _LimitedClient(client, max_concurrency)
        self.skip_failed_courses = skip_failed_courses
        self.today = today
        self.report = RunReport()

    async def list_course(self, course_id):
        try:
            assignments = await self.client.list_coursework(course_id)
        except ClassroomAPIError as e:
            raise RetrievalError(course_id, e) from e
        self.report.courses += 1
        self.report.assignments += len(assignments)
        return assignments

    async def _check(self, assignment, queue):
        try:
            reason = await check_visibility(self.client, assignment, self.today())
        except VisibilityCheckError as e:
            logger.warning(str(e))
            self.report.failed_checks.append(assignment.id)
            return
        self.report.record(reason)
        logger.debug(f"{assignment.id} {assignment.title!r}: {reason}")
        if reason == VISIBLE:
            queue.put_nowait(assignment)

    async def _process_course(self, course_id, queue):
        try:
            assignments = await self.list_course(course_id)
        except RetrievalError as e:
            if not self.skip_failed_courses:
                raise
            logger.error(f"{e}, skipping")
            self.report.failed_courses.append(course_id)
            return
        if not assignments:
            return
        # The course is done only when every check in it is done
        async with asyncio.TaskGroup() as checks:
            for assignment in assignments:
                checks.create_task(self._check(assignment, queue))

    async def _produce(self, course_ids, queue):
        try:
            async with asyncio.TaskGroup() as courses:
                for course_id in course_ids:
                    courses.create_task(self._process_course(course_id, queue))
        except ExceptionGroup as group:
            for extra in group.exceptions[1:]:
                logger.error(f"Additional failure: {extra}")
            raise group.exceptions[0]
        finally:
            queue.put_nowait(_CLOSED)

    async def stream_visible(self, course_ids):
        """Yield visible assignments as their checks complete, in arrival order"""
        queue = asyncio.Queue()
        # Each course is listed once even if configured twice
        producer = asyncio.create_task(self._produce(list(dict.fromkeys(course_ids)), queue))
        try:
            while (item := await queue.get()) is not _CLOSED:
                yield item
            await producer
        finally:
            if not producer.done():
                producer.cancel()
                try:
                    await producer
                except asyncio.CancelledError:
                    pass

    async def collect_visible(self, course_ids):
        return [a async for a in self.stream_visible(course_ids)]
