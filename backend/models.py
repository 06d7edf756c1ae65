"""
Data models for the course planner.

These dataclasses are the only shapes the planning core accepts. Raw JSON
payloads and workbook rows are turned into them by validators.py and
data_loader.py before any check runs.
"""

from dataclasses import dataclass, field, replace
from enum import Enum

from requirements import (
    DEFAULT_PLANNED_STATUS,
    DEFAULT_SENIOR_STANDING_CREDITS,
    VALIDATION_VALID,
)


class CourseRecordStatus(Enum):
    """
    States a course can have on the student's record.

    COMPLETED: passed, counts for prerequisites, bans and credits
    IN_PROGRESS: currently enrolled, hidden from the addable list
    PLANNING: marked for the future on the data-entry screen; seeds the plan
    """
    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    PLANNING = "planning"


@dataclass(frozen=True)
class Course:
    """
    A catalog course annotated with its curriculum constraints.

    credits is kept raw ("3-0-6" or 3); credits.parse_credits() turns it
    into a number when it is needed.
    """
    code: str
    title: str
    credits: object = 0
    category: str = "Unassigned"
    prerequisites: tuple = ()
    corequisites: tuple = ()
    banned_with: tuple = ()
    requires_permission: bool = False
    summer_only: bool = False
    requires_senior_standing: bool = False
    min_credit_threshold: float | None = None

    @property
    def senior_standing_threshold(self) -> float:
        if self.min_credit_threshold is None:
            return DEFAULT_SENIOR_STANDING_CREDITS
        return self.min_credit_threshold

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "title": self.title,
            "credits": self.credits,
            "category": self.category,
            "prerequisites": list(self.prerequisites),
            "corequisites": list(self.corequisites),
            "banned_with": list(self.banned_with),
            "requires_permission": self.requires_permission,
            "summer_only": self.summer_only,
            "requires_senior_standing": self.requires_senior_standing,
            "min_credit_threshold": self.min_credit_threshold,
        }


@dataclass(frozen=True)
class CompletedEntry:
    status: CourseRecordStatus
    grade: str | None = None
    credits: object = None
    title: str | None = None
    planned_semester: str | None = None


@dataclass(frozen=True)
class PlannedCourse:
    id: str
    code: str
    title: str
    credits: int
    semester: str
    status: str = DEFAULT_PLANNED_STATUS
    semester_label: str | None = None
    validation_status: str = VALIDATION_VALID
    validation_notes: tuple = ()
    prerequisites: tuple = ()
    corequisites: tuple = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "title": self.title,
            "credits": self.credits,
            "semester": self.semester,
            "semester_label": self.semester_label,
            "status": self.status,
            "validation_status": self.validation_status,
            "validation_notes": list(self.validation_notes),
            "prerequisites": list(self.prerequisites),
            "corequisites": list(self.corequisites),
        }


@dataclass(frozen=True)
class Plan:
    """
    Ordered planned courses for one (curriculum, department) context.

    Plans are values. Mutations in planner.py return a new Plan.
    """
    curriculum_id: str
    department_id: str
    courses: tuple = ()

    @property
    def codes(self) -> list[str]:
        return [c.code for c in self.courses]

    def has_code(self, code: str) -> bool:
        return any(c.code == code for c in self.courses)

    def find(self, course_id: str) -> PlannedCourse | None:
        for course in self.courses:
            if course.id == course_id:
                return course
        return None

    def with_courses(self, courses) -> "Plan":
        return replace(self, courses=tuple(courses))

    def to_dict(self) -> dict:
        return {
            "curriculum_id": self.curriculum_id,
            "department_id": self.department_id,
            "planned_courses": [c.to_dict() for c in self.courses],
        }


@dataclass(frozen=True)
class ConcentrationCourse:
    code: str
    name: str = ""
    credits: object = 0


@dataclass(frozen=True)
class Concentration:
    id: str
    name: str
    required_courses: int
    courses: tuple = ()
    description: str = ""

    @property
    def course_codes(self) -> list[str]:
        return [c.code for c in self.courses]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "required_courses": self.required_courses,
            "total_courses": len(self.courses),
            "courses": [
                {"code": c.code, "name": c.name, "credits": c.credits}
                for c in self.courses
            ],
        }


@dataclass
class Catalog:
    """Read-only snapshot of a curriculum's courses, blacklist and concentrations."""
    courses: dict = field(default_factory=dict)
    blacklist: frozenset = frozenset()
    concentrations: list = field(default_factory=list)

    @property
    def codes(self) -> set[str]:
        return set(self.courses)

    def get(self, code: str) -> Course | None:
        return self.courses.get(code)


@dataclass(frozen=True)
class AddDecision:
    """
    Outcome of checking one course against a plan.

    Only hard_errors block the addition; warnings end up on the planned
    course's validation notes.
    """
    code: str
    addable: bool
    hard_errors: tuple = ()
    warnings: tuple = ()
    missing_prereqs: tuple = ()

    def to_dict(self) -> dict:
        return {
            "course_code": self.code,
            "addable": self.addable,
            "hard_errors": list(self.hard_errors),
            "warnings": list(self.warnings),
            "missing_prereqs": list(self.missing_prereqs),
        }


@dataclass(frozen=True)
class RemovalPreview:
    target: PlannedCourse
    dependents: tuple = ()
    stranded: tuple = ()

    @property
    def requires_confirmation(self) -> bool:
        return len(self.dependents) > 0

    def to_dict(self) -> dict:
        return {
            "target": self.target.to_dict(),
            "dependents": [c.to_dict() for c in self.dependents],
            "stranded": [c.to_dict() for c in self.stranded],
            "requires_confirmation": self.requires_confirmation,
        }


@dataclass(frozen=True)
class ConcentrationProgress:
    concentration: Concentration
    completed_courses: tuple
    planned_courses: tuple
    progress: float
    is_eligible: bool
    remaining_courses: int

    @property
    def total_progress(self) -> int:
        return len(self.completed_courses) + len(self.planned_courses)

    def to_dict(self) -> dict:
        return {
            "concentration": self.concentration.to_dict(),
            "completed_courses": list(self.completed_courses),
            "planned_courses": list(self.planned_courses),
            "total_progress": self.total_progress,
            "progress": self.progress,
            "is_eligible": self.is_eligible,
            "remaining_courses": self.remaining_courses,
        }
