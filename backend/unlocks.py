from eligibility import completed_codes
from models import Plan, PlannedCourse


def build_reverse_prereq_map(plan: Plan) -> dict[str, list[str]]:
    """
    Builds a reverse prerequisite map over the planned courses: for each
    code, the ids of planned courses that list it as a prerequisite.

    Returns: {"CSX3003": ["CSX4001-1", "CSX4010-2"], ...}

    Only direct prerequisites (one level deep). No transitive graph traversal.
    """
    reverse: dict[str, list[str]] = {}
    for planned in plan.courses:
        for prereq_code in planned.prerequisites:
            dependents = reverse.setdefault(prereq_code, [])
            if planned.id not in dependents:
                dependents.append(planned.id)
    return reverse


def find_dependent_courses(
    prereq_code: str,
    plan: Plan,
    completed: dict,
    reverse_map: dict[str, list[str]] | None = None,
) -> list[PlannedCourse]:
    """
    Planned courses that directly depend on `prereq_code`.

    A completed prerequisite satisfies its dependents on its own, so when
    `prereq_code` is completed nothing in the plan depends on the planned copy.
    """
    if prereq_code in completed_codes(completed):
        return []
    if reverse_map is None:
        reverse_map = build_reverse_prereq_map(plan)
    dependent_ids = set(reverse_map.get(prereq_code, []))
    return [c for c in plan.courses if c.id in dependent_ids]


def find_stranded_courses(
    removed: list[PlannedCourse],
    plan: Plan,
    completed: dict,
) -> list[PlannedCourse]:
    """
    Planned courses that survive a removal but lose a prerequisite to it.

    Cascading removal only takes direct dependents, so in a chain A -> B -> C
    removing A also removes B and leaves C with B missing. Those are reported
    here, not removed.
    """
    removed_ids = {c.id for c in removed}
    removed_codes = {c.code for c in removed}
    done = completed_codes(completed)
    remaining_codes = {c.code for c in plan.courses if c.id not in removed_ids}

    stranded: list[PlannedCourse] = []
    for planned in plan.courses:
        if planned.id in removed_ids:
            continue
        for prereq_code in planned.prerequisites:
            if prereq_code in removed_codes and prereq_code not in done and prereq_code not in remaining_codes:
                stranded.append(planned)
                break
    return stranded
