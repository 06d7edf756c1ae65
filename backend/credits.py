import math
import re

from models import CourseRecordStatus

_LEADING_NUMBER = re.compile(r"^\s*(\d+(?:\.\d+)?)")


def parse_credits(value) -> int | float:
    """
    Turns a raw credit value into a number. Never raises.

      4            -> 4
      "3"          -> 3
      "3-0-6"      -> 3   (lecture-tutorial-self study; first token is the credit count)
      "3 credits"  -> 3
      "3cr-0-6"    -> 3
      "invalid", None, NaN -> 0
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return 0
        return value
    first = str(value).strip().split("-")[0]
    match = _LEADING_NUMBER.match(first)
    if match is None:
        return 0
    # "3.0" from spreadsheet exports
    return int(float(match.group(1)))


def completed_credits(completed: dict, catalog_courses: dict) -> int | float:
    """
    Credits of completed-status record entries. The record's own credits win
    over the catalog's; codes in neither contribute 0.
    """
    total = 0
    for code, entry in completed.items():
        if entry.status != CourseRecordStatus.COMPLETED:
            continue
        if entry.credits is not None:
            total += parse_credits(entry.credits)
            continue
        course = catalog_courses.get(code)
        if course is not None:
            total += parse_credits(course.credits)
    return total


def planned_credits(plan) -> int | float:
    return sum(parse_credits(c.credits) for c in plan.courses)


def total_credits(completed: dict, plan, catalog_courses: dict) -> int | float:
    """completed + planned credits, used for the senior standing check."""
    return completed_credits(completed, catalog_courses) + planned_credits(plan)
