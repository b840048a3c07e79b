"""Format assignments and run summaries as plain console text"""

from models import Assignment, Course


def format_assignment(a: Assignment) -> str:
    return f"{a.title} ({a.id}) link:{a.link}"


def format_course(course: Course) -> str:
    section = f" [{course.section}]" if course.section else ""
    return f"{course.id}  {course.name}{section}"


def format_summary(report, course_names: dict[str, str] | None = None) -> str:
    """One-line summary of a run, naming skipped courses when there are any"""
    course_names = course_names or {}
    parts = [
        f"{report.courses} course(s)",
        f"{report.assignments} assignment(s)",
        f"{report.visible} actionable",
        f"{report.overdue} overdue",
        f"{report.turned_in} turned in",
    ]
    if report.failed_checks:
        parts.append(f"{len(report.failed_checks)} unchecked")
    summary = ", ".join(parts)
    if report.failed_courses:
        skipped = ", ".join(
            f"{course_names[c]} ({c})" if c in course_names else c
            for c in report.failed_courses
        )
        summary += f"; skipped courses: {skipped}"
    return summary
