from eligibility import check_banned_combinations, completed_codes
from models import Course, Plan


def resolve_corequisites(
    course: Course,
    plan: Plan,
    completed: dict,
    catalog_courses: dict,
    blacklist: frozenset = frozenset(),
) -> list[Course]:
    """
    Returns the corequisite courses to add alongside `course`.

    Skips corequisites that are completed, already planned, missing from the
    catalog, or blocked by the blacklist / banned-combination check.

    One level only: corequisites of corequisites are not followed, so cyclic
    or chained corequisite data cannot expand without bound.
    """
    done = completed_codes(completed)
    planned = set(plan.codes)

    resolved: list[Course] = []
    seen: set[str] = {course.code}
    for coreq_code in course.corequisites:
        if coreq_code in seen:
            continue
        seen.add(coreq_code)
        if coreq_code in done or coreq_code in planned:
            continue
        coreq = catalog_courses.get(coreq_code)
        if coreq is None:
            continue
        if check_banned_combinations(coreq, plan, completed, blacklist):
            continue
        resolved.append(coreq)
    return resolved
