from models import AddDecision, Catalog, Course, CourseRecordStatus, Plan
from requirements import SUMMER_TERM


def completed_codes(completed: dict) -> set[str]:
    return {
        code for code, entry in completed.items()
        if entry.status == CourseRecordStatus.COMPLETED
    }


def in_progress_codes(completed: dict) -> set[str]:
    return {
        code for code, entry in completed.items()
        if entry.status == CourseRecordStatus.IN_PROGRESS
    }


def check_banned_combinations(
    course: Course,
    plan: Plan,
    completed: dict,
    blacklist: frozenset = frozenset(),
) -> str | None:
    """
    Returns the hard-error message for a blacklisted course or a banned
    combination, or None if the course is clear.

    Only the candidate's own banned_with list is consulted: if A bans B but
    B does not ban A, adding B after A is allowed.
    """
    if course.code in blacklist:
        return f"{course.code} is blacklisted and cannot be added to this curriculum."

    done = completed_codes(completed)
    for banned_code in course.banned_with:
        if banned_code in done:
            return f"Cannot add {course.code}: conflicts with completed course {banned_code}."

    planned = set(plan.codes)
    for banned_code in course.banned_with:
        if banned_code in planned:
            return f"Cannot add {course.code}: conflicts with planned course {banned_code}."
    return None


def missing_prerequisites(course: Course, plan: Plan, completed: dict) -> list[str]:
    """
    Prerequisites that are neither completed nor anywhere in the plan.
    Being planned (any status) is enough; the planner trusts forward planning.
    """
    done = completed_codes(completed)
    planned = set(plan.codes)
    return [p for p in course.prerequisites if p not in done and p not in planned]


def check_can_add(
    course: Course,
    plan: Plan,
    completed: dict,
    term: str,
    total_credits_fn,
    blacklist: frozenset = frozenset(),
) -> AddDecision:
    """
    Decide whether `course` may be added to `plan` in `term`.

    Order:
      1. blacklist            -> hard error, overrides everything
      2. banned combination   -> hard error
      3. summer-only mismatch -> hard error
      4. permission required  -> warning
      5. senior standing      -> warning when completed + planned credits are short
      6. prerequisites        -> warning per missing code

    total_credits_fn() supplies completed + planned credits, credits.total_credits
    bound to the catalog the course came from. It is only called for
    senior-standing courses.
    """
    banned_error = check_banned_combinations(course, plan, completed, blacklist)
    if banned_error:
        return AddDecision(code=course.code, addable=False, hard_errors=(banned_error,))

    if course.summer_only and term != SUMMER_TERM:
        return AddDecision(
            code=course.code,
            addable=False,
            hard_errors=(f"{course.code} can only be taken during Summer Session.",),
        )

    warnings: list[str] = []

    if course.requires_permission:
        warnings.append(f"{course.code} requires chairperson permission to enroll.")

    if course.requires_senior_standing:
        credits_so_far = total_credits_fn()
        threshold = course.senior_standing_threshold
        if credits_so_far < threshold:
            warnings.append(
                f"{course.code} requires Senior Standing ({_fmt(threshold)}+ credits): "
                f"you have {_fmt(credits_so_far)} credits, need {_fmt(threshold)} "
                f"({_fmt(threshold - credits_so_far)} short)."
            )

    missing = missing_prerequisites(course, plan, completed)
    if missing:
        warnings.append(f"Missing prerequisites: {', '.join(missing)}")

    return AddDecision(
        code=course.code,
        addable=True,
        warnings=tuple(warnings),
        missing_prereqs=tuple(missing),
    )


def _fmt(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def get_addable_courses(
    catalog: Catalog,
    plan: Plan,
    completed: dict,
    term: str,
    search: str | None = None,
    category: str | None = None,
) -> list[Course]:
    """
    Courses the student can pick from for `term`, sorted by code.

    Hidden: already planned, completed, in progress, blacklisted or banned.
    In the summer term only summer-only courses are listed; regular terms
    list everything (summer-only courses are then rejected on add).
    """
    done = completed_codes(completed)
    taking = in_progress_codes(completed)
    planned = set(plan.codes)
    needle = (search or "").strip().lower()
    wanted_category = (category or "").strip()

    results = []
    for course in catalog.courses.values():
        if course.code in planned or course.code in done or course.code in taking:
            continue
        if needle and needle not in course.code.lower() and needle not in course.title.lower():
            continue
        if wanted_category and wanted_category != "all" and course.category != wanted_category:
            continue
        if term == SUMMER_TERM and not course.summer_only:
            continue
        if check_banned_combinations(course, plan, completed, catalog.blacklist):
            continue
        results.append(course)

    results.sort(key=lambda c: c.code)
    return results


def category_options(catalog: Catalog) -> list[str]:
    return sorted({c.category for c in catalog.courses.values() if c.category})
