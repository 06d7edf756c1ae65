from eligibility import completed_codes
from models import Concentration, ConcentrationProgress, Plan
from requirements import GENERAL_CONCENTRATION_SENTINELS


def select_concentrations(
    concentrations: list[Concentration],
    selected_concentration_id: str | None,
) -> list[Concentration]:
    """
    A specific selection (matched by id, or by name ignoring case) narrows
    the analysis to that concentration. "general", blank, or an unknown
    selection analyzes all of them.
    """
    selected = str(selected_concentration_id or "").strip()
    if selected.lower() in GENERAL_CONCENTRATION_SENTINELS:
        return list(concentrations)
    for concentration in concentrations:
        if concentration.id == selected or concentration.name.lower() == selected.lower():
            return [concentration]
    return list(concentrations)


def analyze_concentration(
    concentration: Concentration,
    completed_course_codes: list[str],
    planned_course_codes: list[str],
) -> ConcentrationProgress:
    """
    Course-count progress toward one concentration.

    Completed and planned matches are counted separately and added; a code
    in both lists counts twice.
    """
    pool = set(concentration.course_codes)
    completed_in = [code for code in completed_course_codes if code in pool]
    planned_in = [code for code in planned_course_codes if code in pool]

    required = concentration.required_courses
    total = len(completed_in) + len(planned_in)
    progress = min(100.0, total / (required if required > 0 else 1) * 100)

    return ConcentrationProgress(
        concentration=concentration,
        completed_courses=tuple(completed_in),
        planned_courses=tuple(planned_in),
        progress=progress,
        is_eligible=total >= required,
        remaining_courses=max(0, required - total),
    )


def analyze_concentrations(
    concentrations: list[Concentration],
    selected_concentration_id: str | None,
    completed: dict,
    plan: Plan,
) -> list[ConcentrationProgress]:
    """
    Progress report for the selected concentration, or for all of them.

    Pure function of its arguments: the same inputs give the same report.
    """
    done = completed_codes(completed)
    completed_list = [code for code in completed if code in done]
    planned_list = plan.codes
    return [
        analyze_concentration(concentration, completed_list, planned_list)
        for concentration in select_concentrations(concentrations, selected_concentration_id)
    ]
