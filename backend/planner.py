"""
Plan mutations: add with corequisites, two-step cascading removal, status
updates, and seeding a plan from the student's record.

Every function takes a Plan and returns a new one; inputs are never
modified. Callers apply operations on one plan sequentially.
"""

from dataclasses import replace

from corequisites import resolve_corequisites
from credits import parse_credits, total_credits
from eligibility import check_can_add, in_progress_codes
from models import (
    AddDecision,
    Catalog,
    Course,
    CourseRecordStatus,
    Plan,
    PlannedCourse,
    RemovalPreview,
)
from normalizer import ensure_semester_label, semester_value_from_label
from requirements import (
    COREQ_NOTE_TEMPLATE,
    DEFAULT_COREQ_CREDITS,
    DEFAULT_PLANNED_STATUS,
    PLANNED_STATUSES,
    VALIDATION_VALID,
    VALIDATION_WARNING,
)
from unlocks import build_reverse_prereq_map, find_dependent_courses, find_stranded_courses


class PlanMutationError(ValueError):
    """Raised for plan operations that reference missing entries or blocked courses."""


def planned_course_id(code: str, semester: str) -> str:
    return f"{code}-{semester}"


def _to_planned(
    course: Course,
    semester: str,
    status: str,
    semester_label: str,
    validation_status: str,
    notes,
) -> PlannedCourse:
    return PlannedCourse(
        id=planned_course_id(course.code, semester),
        code=course.code,
        title=course.title,
        credits=int(parse_credits(course.credits)),
        semester=semester,
        semester_label=semester_label,
        status=status,
        validation_status=validation_status,
        validation_notes=tuple(notes),
        prerequisites=tuple(course.prerequisites),
        corequisites=tuple(course.corequisites),
    )


def add_course_to_plan(
    plan: Plan,
    course: Course,
    decision: AddDecision,
    corequisites: list[Course],
    semester: str,
    status: str = DEFAULT_PLANNED_STATUS,
    semester_label: str | None = None,
) -> Plan:
    """
    Append `course` and its resolved corequisites to the plan in one step.

    The primary entry carries the decision's warnings. Corequisite entries
    are marked valid with an auto-added note; they were checked during
    resolution. Either every entry is added or the plan is left as is.
    """
    if not decision.addable:
        raise PlanMutationError(
            f"{course.code} cannot be added: {'; '.join(decision.hard_errors)}"
        )
    if decision.code != course.code:
        raise PlanMutationError(
            f"Decision for {decision.code} does not match course {course.code}."
        )
    if status not in PLANNED_STATUSES:
        raise PlanMutationError(f"Unknown planned status {status!r}.")

    label = ensure_semester_label(semester_label, semester)
    primary = _to_planned(
        course,
        semester,
        status,
        label,
        VALIDATION_WARNING if decision.warnings else VALIDATION_VALID,
        decision.warnings,
    )
    coreq_entries = [
        _to_planned(
            coreq,
            semester,
            status,
            label,
            VALIDATION_VALID,
            [COREQ_NOTE_TEMPLATE.format(code=course.code)],
        )
        for coreq in corequisites
    ]

    new_entries = [primary] + coreq_entries
    existing_codes = set(plan.codes)
    new_codes: set[str] = set()
    for entry in new_entries:
        if entry.code in existing_codes or entry.code in new_codes:
            raise PlanMutationError(f"{entry.code} is already in the plan.")
        new_codes.add(entry.code)

    return plan.with_courses(list(plan.courses) + new_entries)


def plan_course_addition(
    plan: Plan,
    course: Course,
    catalog: Catalog,
    completed: dict,
    semester: str,
    status: str = DEFAULT_PLANNED_STATUS,
    semester_label: str | None = None,
) -> tuple[AddDecision, Plan, list[Course]]:
    """
    Validate, resolve corequisites and add in one call.

    Returns (decision, plan, corequisites). On a hard rejection the plan
    comes back unchanged and no corequisites are resolved.
    """
    decision = check_can_add(
        course,
        plan,
        completed,
        semester,
        blacklist=catalog.blacklist,
        total_credits_fn=lambda: total_credits(completed, plan, catalog.courses),
    )
    if not decision.addable:
        return decision, plan, []

    coreqs = resolve_corequisites(course, plan, completed, catalog.courses, catalog.blacklist)
    new_plan = add_course_to_plan(
        plan, course, decision, coreqs, semester, status=status, semester_label=semester_label
    )
    return decision, new_plan, coreqs


def _require_entry(plan: Plan, course_id: str) -> PlannedCourse:
    target = plan.find(course_id)
    if target is None:
        raise PlanMutationError(f"No planned course with id {course_id!r}.")
    return target


def preview_removal(plan: Plan, course_id: str, completed: dict) -> RemovalPreview:
    """
    Describe what removing `course_id` would take with it.

    dependents: planned courses listing the target as a direct prerequisite
    (skipped when the target is separately completed). They go too once the
    caller confirms.
    stranded: courses one level further down that would be left with an
    unmet prerequisite. They are reported, never removed.
    """
    target = _require_entry(plan, course_id)
    reverse_map = build_reverse_prereq_map(plan)
    dependents = [
        c for c in find_dependent_courses(target.code, plan, completed, reverse_map)
        if c.id != target.id
    ]
    stranded = find_stranded_courses([target] + dependents, plan, completed) if dependents else []
    return RemovalPreview(target=target, dependents=tuple(dependents), stranded=tuple(stranded))


def confirm_removal(plan: Plan, course_id: str, completed: dict) -> Plan:
    """Remove the target and its direct dependents (one level, not transitive)."""
    preview = preview_removal(plan, course_id, completed)
    to_remove = {preview.target.id} | {c.id for c in preview.dependents}
    return plan.with_courses(c for c in plan.courses if c.id not in to_remove)


def remove_course(plan: Plan, course_id: str, completed: dict) -> tuple[Plan, RemovalPreview]:
    """
    Remove immediately when nothing depends on the course. Otherwise return
    the plan untouched with a preview the caller must confirm through
    confirm_removal().
    """
    preview = preview_removal(plan, course_id, completed)
    if preview.requires_confirmation:
        return plan, preview
    return plan.with_courses(c for c in plan.courses if c.id != course_id), preview


def update_course_status(plan: Plan, course_id: str, status: str) -> Plan:
    if status not in PLANNED_STATUSES:
        raise PlanMutationError(f"Unknown planned status {status!r}; expected one of {PLANNED_STATUSES}.")
    target = _require_entry(plan, course_id)
    updated = replace(target, status=status)
    return plan.with_courses(updated if c.id == course_id else c for c in plan.courses)


def seed_plan_from_record(
    completed: dict,
    catalog: Catalog,
    curriculum_id: str,
    department_id: str,
) -> Plan:
    """
    Turn planning-status record entries into plan entries.

    Title and credits come from the record, then the catalog, then defaults.
    The semester is read from the entry's planned-semester label.
    """
    seeded: list[PlannedCourse] = []
    for code, entry in completed.items():
        if entry.status != CourseRecordStatus.PLANNING:
            continue
        course = catalog.get(code)
        semester = semester_value_from_label(entry.planned_semester)
        if entry.credits is not None:
            credits = int(parse_credits(entry.credits))
        elif course is not None:
            credits = int(parse_credits(course.credits))
        else:
            credits = DEFAULT_COREQ_CREDITS
        seeded.append(PlannedCourse(
            id=f"planned-{code}-{semester}",
            code=code,
            title=entry.title or (course.title if course else code),
            credits=credits,
            semester=semester,
            semester_label=ensure_semester_label(entry.planned_semester, semester),
            status=DEFAULT_PLANNED_STATUS,
            validation_status=VALIDATION_VALID,
            prerequisites=tuple(course.prerequisites) if course else (),
            corequisites=tuple(course.corequisites) if course else (),
        ))
    return Plan(curriculum_id=curriculum_id, department_id=department_id, courses=tuple(seeded))


def merge_plans(saved: Plan | None, seeded: Plan) -> Plan:
    """Saved entries win; seeded entries whose code is not saved are appended."""
    if saved is None:
        return seeded
    saved_codes = set(saved.codes)
    extra = [c for c in seeded.courses if c.code not in saved_codes]
    return saved.with_courses(list(saved.courses) + extra)


def drop_in_progress(plan: Plan, completed: dict) -> Plan:
    """Courses the student is currently taking do not belong in a future plan."""
    taking = in_progress_codes(completed)
    if not taking:
        return plan
    kept = [c for c in plan.courses if c.code not in taking]
    if len(kept) == len(plan.courses):
        return plan
    return plan.with_courses(kept)
