"""
Boundary validation for externally supplied payloads.
No Flask or data-loader imports.

Every payload that reaches the planning core (catalog rows, completed
records, concentration definitions, saved plans) passes through one of
these helpers. They accept both snake_case keys and the camelCase keys the
curriculum API emits, and raise PayloadError on shapes the core cannot
work with.
"""

import math

from models import (
    CompletedEntry,
    Concentration,
    ConcentrationCourse,
    Course,
    CourseRecordStatus,
    Plan,
    PlannedCourse,
)
from normalizer import (
    ensure_semester_label,
    normalize_code,
    normalize_term,
    semester_value_from_label,
    split_code_list,
)
from credits import parse_credits
from requirements import (
    DEFAULT_PLANNED_STATUS,
    PLANNED_STATUSES,
    VALIDATION_ERROR,
    VALIDATION_VALID,
    VALIDATION_WARNING,
)

_BOOL_TRUTHY = {"true", "1", "yes", "y"}
_VALIDATION_STATUSES = {VALIDATION_VALID, VALIDATION_WARNING, VALIDATION_ERROR}


class PayloadError(ValueError):
    """A payload is malformed in a way the planning core cannot absorb."""

    def __init__(self, message: str, error_code: str = "INVALID_INPUT"):
        super().__init__(message)
        self.error_code = error_code
        self.message = message


def _pick(payload: dict, *keys, default=None):
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


def _coerce_bool(value) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return False
        return bool(value)
    return str(value).strip().lower() in _BOOL_TRUTHY


def _coerce_optional_number(value, field: str, code: str) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise PayloadError(f"{field} for {code} must be a number.")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise PayloadError(f"{field} for {code} must be a number, got {value!r}.")
    if math.isnan(number):
        return None
    return int(number) if number.is_integer() else number


def _require_dict(payload, what: str) -> dict:
    if not isinstance(payload, dict):
        raise PayloadError(f"{what} must be a JSON object.")
    return payload


def _require_list(payload, what: str) -> list:
    if payload is None:
        return []
    if not isinstance(payload, (list, tuple)):
        raise PayloadError(f"{what} must be a list.")
    return list(payload)


def course_from_payload(payload) -> Course:
    """Build a Course from an available-courses row."""
    payload = _require_dict(payload, "Course")
    code = normalize_code(_pick(payload, "code", "course_code"))
    if code is None:
        raise PayloadError("Course is missing its code.")
    title = str(_pick(payload, "title", "name", "course_name", default=code)).strip() or code
    credits = _pick(payload, "credits", "credit_hours", "creditHours", default=0)
    if isinstance(credits, float) and math.isnan(credits):
        credits = 0
    return Course(
        code=code,
        title=title,
        credits=credits,
        category=str(_pick(payload, "category", default="Unassigned")).strip() or "Unassigned",
        prerequisites=tuple(c for c in split_code_list(_pick(payload, "prerequisites")) if c != code),
        corequisites=tuple(c for c in split_code_list(_pick(payload, "corequisites")) if c != code),
        banned_with=tuple(
            c for c in split_code_list(_pick(payload, "banned_with", "bannedWith")) if c != code
        ),
        requires_permission=_coerce_bool(_pick(payload, "requires_permission", "requiresPermission")),
        summer_only=_coerce_bool(_pick(payload, "summer_only", "summerOnly")),
        requires_senior_standing=_coerce_bool(
            _pick(payload, "requires_senior_standing", "requiresSeniorStanding")
        ),
        min_credit_threshold=_coerce_optional_number(
            _pick(payload, "min_credit_threshold", "minCreditThreshold"),
            "min_credit_threshold",
            code,
        ),
    )


def catalog_courses_from_payload(rows) -> dict[str, Course]:
    """Build an ordered code -> Course map. The first row for a code wins."""
    courses: dict[str, Course] = {}
    for row in _require_list(rows, "courses"):
        course = course_from_payload(row)
        courses.setdefault(course.code, course)
    return courses


def blacklist_from_payload(payload) -> frozenset:
    """
    Accepts a flat list of codes or the curriculum blacklist shape:
      [{"courses": [{"course": {"code": "CSX1001"}}, ...]}, ...]
    """
    codes: set[str] = set()
    for item in _require_list(payload, "blacklist"):
        if isinstance(item, dict):
            for wrapper in _require_list(item.get("courses"), "blacklist courses"):
                if isinstance(wrapper, dict):
                    inner = wrapper.get("course") if isinstance(wrapper.get("course"), dict) else wrapper
                    code = normalize_code(inner.get("code"))
                else:
                    code = normalize_code(wrapper)
                if code:
                    codes.add(code)
        else:
            code = normalize_code(item)
            if code:
                codes.add(code)
    return frozenset(codes)


def completed_record_from_payload(payload) -> dict[str, CompletedEntry]:
    """
    Build the completed-course record.

    Shape: {"CSX1001": {"status": "completed", "grade": "A"}, ...}
    A bare list of codes is read as all-completed.
    """
    if payload is None:
        return {}
    if isinstance(payload, (list, tuple)):
        payload = {code: {"status": CourseRecordStatus.COMPLETED.value} for code in payload}
    payload = _require_dict(payload, "completed_courses")

    record: dict[str, CompletedEntry] = {}
    for raw_code, raw_entry in payload.items():
        code = normalize_code(raw_code)
        if code is None:
            continue
        if isinstance(raw_entry, str):
            raw_entry = {"status": raw_entry}
        raw_entry = _require_dict(raw_entry, f"Record entry for {code}")
        raw_status = str(raw_entry.get("status") or "").strip().lower().replace("-", "_")
        try:
            status = CourseRecordStatus(raw_status)
        except ValueError:
            raise PayloadError(
                f"Record entry for {code} has unknown status {raw_entry.get('status')!r}."
            )
        grade = raw_entry.get("grade")
        record[code] = CompletedEntry(
            status=status,
            grade=str(grade).strip() if grade not in (None, "") else None,
            credits=raw_entry.get("credits"),
            title=_pick(raw_entry, "title", "name"),
            planned_semester=_pick(raw_entry, "planned_semester", "plannedSemester"),
        )
    return record


def concentration_from_payload(payload) -> Concentration:
    payload = _require_dict(payload, "Concentration")
    cid = str(_pick(payload, "id", "concentration_id", default="")).strip()
    name = str(_pick(payload, "name", default="")).strip()
    if not cid and not name:
        raise PayloadError("Concentration needs an id or a name.")

    pool: list[ConcentrationCourse] = []
    seen: set[str] = set()
    for item in _require_list(payload.get("courses"), f"Courses of concentration {name or cid}"):
        if isinstance(item, dict):
            code = normalize_code(_pick(item, "code", "course_code"))
            entry = ConcentrationCourse(
                code=code or "",
                name=str(_pick(item, "name", "title", default="")),
                credits=_pick(item, "credits", default=0),
            )
        else:
            code = normalize_code(item)
            entry = ConcentrationCourse(code=code or "")
        if code is None or code in seen:
            continue
        seen.add(code)
        pool.append(entry)

    raw_required = _pick(payload, "required_courses", "requiredCourses", "requiredCredits")
    if raw_required is None:
        required = len(pool)
    else:
        try:
            required = int(float(raw_required))
        except (TypeError, ValueError):
            raise PayloadError(
                f"required_courses for concentration {name or cid} must be a number."
            )
        if required < 0:
            raise PayloadError(
                f"required_courses for concentration {name or cid} cannot be negative."
            )

    return Concentration(
        id=cid or name,
        name=name or cid,
        required_courses=required,
        courses=tuple(pool),
        description=str(_pick(payload, "description", default="")),
    )


def concentrations_from_payload(payload) -> list[Concentration]:
    return [concentration_from_payload(item) for item in _require_list(payload, "concentrations")]


def planned_course_from_payload(payload) -> PlannedCourse:
    payload = _require_dict(payload, "Planned course")
    code = normalize_code(payload.get("code"))
    if code is None:
        raise PayloadError("Planned course is missing its code.")
    semester = normalize_term(payload.get("semester"))
    label = _pick(payload, "semester_label", "semesterLabel")
    if semester is None:
        semester = semester_value_from_label(label)
    status = str(payload.get("status") or DEFAULT_PLANNED_STATUS).strip().lower()
    if status not in PLANNED_STATUSES:
        status = DEFAULT_PLANNED_STATUS
    validation_status = str(
        _pick(payload, "validation_status", "validationStatus", default=VALIDATION_VALID)
    ).strip().lower()
    if validation_status not in _VALIDATION_STATUSES:
        validation_status = VALIDATION_VALID
    notes = _pick(payload, "validation_notes", "validationNotes", default=[])
    if isinstance(notes, str):
        notes = [notes]
    return PlannedCourse(
        id=str(payload.get("id") or f"{code}-{semester}"),
        code=code,
        title=str(payload.get("title") or code),
        credits=int(parse_credits(payload.get("credits"))),
        semester=semester,
        semester_label=ensure_semester_label(label, semester),
        status=status,
        validation_status=validation_status,
        validation_notes=tuple(str(n) for n in notes),
        prerequisites=tuple(split_code_list(payload.get("prerequisites"))),
        corequisites=tuple(split_code_list(payload.get("corequisites"))),
    )


def plan_from_payload(payload, curriculum_id: str = "", department_id: str = "") -> Plan:
    """
    Build a Plan from a saved-plan body or a bare list of planned courses.
    Later duplicates of a code are dropped so the one-code-per-plan
    invariant holds for data saved by older clients.
    """
    if isinstance(payload, (list, tuple)):
        payload = {"planned_courses": list(payload)}
    payload = _require_dict(payload or {}, "Plan")
    rows = _require_list(_pick(payload, "planned_courses", "plannedCourses"), "planned_courses")

    courses: list[PlannedCourse] = []
    seen: set[str] = set()
    for row in rows:
        course = planned_course_from_payload(row)
        if course.code in seen:
            continue
        seen.add(course.code)
        courses.append(course)

    return Plan(
        curriculum_id=str(_pick(payload, "curriculum_id", "curriculumId", default=curriculum_id)),
        department_id=str(_pick(payload, "department_id", "departmentId", default=department_id)),
        courses=tuple(courses),
    )
