import os
import sys
import pandas as pd

from models import Catalog
from normalizer import normalize_code, split_code_list
from validators import catalog_courses_from_payload, concentrations_from_payload


_FLAG_COLUMNS = ["requires_permission", "summer_only", "requires_senior_standing"]
_LIST_COLUMNS = ["prerequisites", "corequisites", "banned_with"]
_TABLES = ("courses", "blacklists", "concentrations")


def _read_tables(data_path: str) -> dict[str, pd.DataFrame]:
    """Read courses/blacklists/concentrations from a CSV directory or a workbook."""
    tables: dict[str, pd.DataFrame] = {}
    if os.path.isdir(data_path):
        for name in _TABLES:
            csv_path = os.path.join(data_path, f"{name}.csv")
            if os.path.exists(csv_path):
                tables[name] = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
        print(f"[INFO] Data source: CSV directory {data_path}")
    else:
        xl = pd.ExcelFile(data_path)
        for name in _TABLES:
            if name in xl.sheet_names:
                tables[name] = xl.parse(name, dtype=str, keep_default_na=False)
        print(f"[INFO] Data source: workbook {data_path}")

    if "courses" not in tables:
        raise FileNotFoundError(f"No courses table found in {data_path}")
    return tables


def _normalize_courses_df(courses_df: pd.DataFrame) -> pd.DataFrame:
    courses_df = courses_df.copy()

    # Backward/forward compatibility for column naming.
    rename_map = {}
    if "course_code" not in courses_df.columns and "code" in courses_df.columns:
        rename_map["code"] = "course_code"
    if "title" not in courses_df.columns and "course_name" in courses_df.columns:
        rename_map["course_name"] = "title"
    if rename_map:
        courses_df = courses_df.rename(columns=rename_map)

    if "course_code" not in courses_df.columns:
        raise ValueError("courses table must have a course_code column")

    for col in _LIST_COLUMNS:
        if col not in courses_df.columns:
            courses_df[col] = ""
    for col in _FLAG_COLUMNS:
        if col not in courses_df.columns:
            courses_df[col] = False
    if "min_credit_threshold" not in courses_df.columns:
        courses_df["min_credit_threshold"] = ""
    if "category" not in courses_df.columns:
        courses_df["category"] = "Unassigned"
    if "credits" not in courses_df.columns:
        courses_df["credits"] = "0"

    courses_df["course_code"] = courses_df["course_code"].map(normalize_code)
    courses_df = courses_df[courses_df["course_code"].notna()]
    return courses_df.reset_index(drop=True)


def _normalize_blacklists_df(blacklists_df: pd.DataFrame | None) -> pd.DataFrame:
    if blacklists_df is None or len(blacklists_df) == 0:
        return pd.DataFrame(columns=["blacklist_id", "course_code"])
    blacklists_df = blacklists_df.copy()
    if "blacklist_id" not in blacklists_df.columns:
        blacklists_df["blacklist_id"] = "DEFAULT"
    blacklists_df["blacklist_id"] = blacklists_df["blacklist_id"].astype(str).str.strip()
    blacklists_df["course_code"] = blacklists_df["course_code"].map(normalize_code)
    return blacklists_df[blacklists_df["course_code"].notna()].reset_index(drop=True)


def symmetrize_banned_with(courses_df: pd.DataFrame) -> pd.DataFrame:
    """
    Write-time symmetrization: if A lists B in banned_with, B also lists A.
    The validator itself only ever reads the candidate's own list.
    """
    courses_df = courses_df.copy()
    banned: dict[str, list[str]] = {
        row["course_code"]: split_code_list(row.get("banned_with"))
        for _, row in courses_df.iterrows()
    }
    for owner, codes in list(banned.items()):
        for other in codes:
            if other in banned and owner not in banned[other]:
                banned[other].append(owner)
    courses_df["banned_with"] = courses_df["course_code"].map(lambda c: ";".join(banned.get(c, [])))
    return courses_df


def _build_concentration_payloads(concentrations_df: pd.DataFrame | None) -> list[dict]:
    """
    One row per (concentration, pool course):
      concentration_id, name, required_courses, description, course_code, course_name, credits
    """
    if concentrations_df is None or len(concentrations_df) == 0:
        return []

    payloads: dict[str, dict] = {}
    for _, row in concentrations_df.iterrows():
        cid = str(row.get("concentration_id", "") or "").strip()
        if not cid:
            continue
        payload = payloads.setdefault(cid, {
            "id": cid,
            "name": str(row.get("name", "") or cid).strip(),
            "description": str(row.get("description", "") or "").strip(),
            "courses": [],
        })
        required_raw = str(row.get("required_courses", "") or "").strip()
        if required_raw and "required_courses" not in payload:
            payload["required_courses"] = required_raw
        code = str(row.get("course_code", "") or "").strip()
        if code:
            payload["courses"].append({
                "code": code,
                "name": str(row.get("course_name", "") or "").strip(),
                "credits": str(row.get("credits", "") or "0").strip(),
            })
    return list(payloads.values())


def load_data(data_path: str, symmetrize_bans: bool = False) -> dict:
    """Load and parse curriculum data. Raises on file/schema errors."""
    tables = _read_tables(data_path)

    courses_df = _normalize_courses_df(tables["courses"])
    blacklists_df = _normalize_blacklists_df(tables.get("blacklists"))
    concentrations_df = tables.get("concentrations", pd.DataFrame())

    if symmetrize_bans:
        courses_df = symmetrize_banned_with(courses_df)

    # Blank strings from CSV mean "not set".
    records_df = courses_df.astype(object)
    records_df = records_df.where(records_df != "", None)
    records = records_df.to_dict(orient="records")
    courses = catalog_courses_from_payload(records)
    concentrations = concentrations_from_payload(_build_concentration_payloads(concentrations_df))
    blacklist = frozenset(blacklists_df["course_code"].tolist())

    catalog = Catalog(courses=courses, blacklist=blacklist, concentrations=concentrations)

    # ── Startup data integrity checks ──────────────────────────────────────
    catalog_codes = catalog.codes
    unknown_prereqs = sorted({
        p for course in courses.values() for p in course.prerequisites if p not in catalog_codes
    })
    if unknown_prereqs:
        print(f"[WARN] {len(unknown_prereqs)} prerequisite code(s) not found in courses table: {unknown_prereqs}")

    unknown_coreqs = sorted({
        c for course in courses.values() for c in course.corequisites if c not in catalog_codes
    })
    if unknown_coreqs:
        print(f"[WARN] {len(unknown_coreqs)} corequisite code(s) not found in courses table (will be skipped): {unknown_coreqs}")

    orphaned_blacklist = sorted(blacklist - catalog_codes)
    if orphaned_blacklist:
        print(f"[WARN] {len(orphaned_blacklist)} blacklisted code(s) not found in courses table: {orphaned_blacklist}")

    for concentration in concentrations:
        missing = [c for c in concentration.course_codes if c not in catalog_codes]
        if missing:
            print(f"[WARN] Concentration '{concentration.name}' lists {len(missing)} course(s) not in courses table: {missing}")

    malformed_credits = sorted(
        course.code for course in courses.values()
        if isinstance(course.credits, str) and not str(course.credits).strip()[:1].isdigit()
    )
    if malformed_credits:
        print(f"[WARN] {len(malformed_credits)} course(s) have unparsable credits (counted as 0): {malformed_credits}")

    return {
        "catalog": catalog,
        "courses_df": courses_df,
        "blacklists_df": blacklists_df,
        "concentrations_df": concentrations_df,
    }


def data_path_mtime(path: str):
    try:
        if os.path.isdir(path):
            mtimes = [
                os.path.getmtime(os.path.join(path, f))
                for f in os.listdir(path)
                if f.endswith(".csv")
            ]
            return max(mtimes) if mtimes else None
        return os.path.getmtime(path)
    except OSError:
        return None


if __name__ == "__main__":
    path = sys.argv[1] if len(sys.argv) > 1 else os.path.join(
        os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data"
    )
    loaded = load_data(path)
    print(f"[OK] Loaded {len(loaded['catalog'].courses)} courses from {path}")
