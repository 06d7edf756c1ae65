import re
from datetime import datetime

from requirements import SUMMER_LABEL_PREFIX, SUMMER_TERM, VALID_TERMS

# Splits code lists: "CSX3003; CSX3009", "CSX3003, CSX3009", one per line.
CODE_LIST_SPLIT = re.compile(r'[,\n;]+')
WHITESPACE = re.compile(r'\s+')
SEMESTER_LABEL_RE = re.compile(r'^\s*(?P<term>[123])\s*/\s*(?P<year>\d{4})\s*$')
NONE_VALUES = {"none", "none listed", "n/a", "nan", "-"}


def normalize_code(raw) -> str | None:
    """
    Normalizes a course code: trims, collapses inner whitespace, uppercases.
    Handles: 'csx4001', ' CSX4001 ', 'BG  1301'
    Returns None for blank or placeholder values.
    """
    if raw is None:
        return None
    s = str(raw).strip()
    if not s or s.lower() in NONE_VALUES:
        return None
    return WHITESPACE.sub(" ", s).upper()


def split_code_list(raw) -> list[str]:
    """
    Turns a list, tuple or delimited string of codes into normalized,
    de-duplicated codes in their original order.
    """
    if raw is None:
        return []
    if isinstance(raw, float) and raw != raw:
        return []
    if isinstance(raw, (list, tuple, set, frozenset)):
        tokens = list(raw)
    else:
        tokens = CODE_LIST_SPLIT.split(str(raw))

    seen: set[str] = set()
    codes: list[str] = []
    for token in tokens:
        code = normalize_code(token)
        if code is None or code in seen:
            continue
        seen.add(code)
        codes.append(code)
    return codes


def normalize_term(raw) -> str | None:
    """
    Maps user term selections onto '1', '2' or 'summer'.
    Accepts: '1', 'Semester 2', 'summer', 'Summer Session', '3', '2/2026'.
    Returns None if the value is not a recognizable term.
    """
    if raw is None:
        return None
    s = str(raw).strip().lower()
    if not s:
        return None
    if SEMESTER_LABEL_RE.match(s):
        return semester_value_from_label(s)
    if "summer" in s or s == SUMMER_LABEL_PREFIX:
        return SUMMER_TERM
    s = s.replace("semester", "").strip()
    if s in VALID_TERMS:
        return s
    return None


def suggested_semester_label(value: str | None, year: int | None = None) -> str:
    """'2' -> '2/2026', 'summer' -> '3/2026', anything else -> '1/<year>'."""
    if year is None:
        year = datetime.now().year
    if value == "2":
        return f"2/{year}"
    if value in (SUMMER_TERM, SUMMER_LABEL_PREFIX):
        return f"{SUMMER_LABEL_PREFIX}/{year}"
    return f"1/{year}"


def semester_value_from_label(label: str | None) -> str:
    """'2/2026' -> '2', '3/2026' -> 'summer'. Missing or odd labels default to '1'."""
    if not label:
        return "1"
    prefix = str(label).split("/")[0].strip()
    if prefix == SUMMER_LABEL_PREFIX:
        return SUMMER_TERM
    if prefix == "2":
        return "2"
    return "1"


def ensure_semester_label(label: str | None, fallback_value: str | None = None) -> str:
    if label and "/" in str(label):
        return str(label).strip()
    return suggested_semester_label(fallback_value)
