"""Data models for Google Classroom coursework"""

from dataclasses import dataclass
from datetime import date

TURNED_IN = "TURNED_IN"


class DueDateError(ValueError):
    pass


@dataclass(frozen=True)
class Assignment:
    id: str
    title: str
    course_id: str
    due: tuple | None = None  # (year, month, day) as sent by the API, possibly partial
    link: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "Assignment":
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title", ""),
            course_id=str(data.get("courseId", "")),
            due=_date_parts(data.get("dueDate")),
            link=data.get("alternateLink", ""),
        )

    @property
    def due_date(self) -> date | None:
        """Calendar due date, or None when the assignment has no due date.

        Raises DueDateError if the API returned a partial or impossible date.
        """
        if self.due is None:
            return None
        try:
            return date(*self.due)
        except (TypeError, ValueError) as e:
            raise DueDateError(f"Invalid due date {self.due!r} on {self.id}: {e}") from e

    def effective_due_date(self, today: date) -> date:
        """Due date, defaulting to today for assignments without one"""
        due = self.due_date
        return due if due is not None else today


@dataclass(frozen=True)
class Submission:
    id: str
    state: str

    @classmethod
    def from_api(cls, data: dict) -> "Submission":
        return cls(id=str(data.get("id", "")), state=data.get("state", ""))

    @property
    def turned_in(self) -> bool:
        return self.state == TURNED_IN


@dataclass(frozen=True)
class Course:
    id: str
    name: str
    section: str = ""
    state: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "Course":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            section=data.get("section", ""),
            state=data.get("courseState", ""),
        )


def _date_parts(raw):
    """Classroom Date object -> (year, month, day); missing parts stay None"""
    if not raw:
        return None
    if not isinstance(raw, dict):
        return (None, None, None)
    return (raw.get("year"), raw.get("month"), raw.get("day"))
