import os
import sys
import time
import threading

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, request
from dotenv import load_dotenv

from concentrations import analyze_concentrations
from credits import total_credits
from data_loader import data_path_mtime, load_data
from eligibility import category_options, check_can_add, get_addable_courses
from models import Plan
from normalizer import normalize_code, normalize_term, semester_value_from_label
from plan_store import JsonFilePlanStore, context_key
from planner import (
    PlanMutationError,
    confirm_removal,
    drop_in_progress,
    merge_plans,
    plan_course_addition,
    remove_course,
    seed_plan_from_record,
    update_course_status,
)
from requirements import DEFAULT_PLANNED_STATUS
from validators import (
    PayloadError,
    completed_record_from_payload,
    plan_from_payload,
)

load_dotenv()

app = Flask(__name__)

# ── Paths ─────────────────────────────────────────────────────────────────────
BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)
_DEFAULT_DATA_PATH = os.path.join(PROJECT_ROOT, "data")
_DEFAULT_PLAN_STORE_DIR = os.path.join(PROJECT_ROOT, ".plans")


def _resolve_path(env_name: str, default: str) -> str:
    raw = os.environ.get(env_name)
    if not raw:
        return default
    if not os.path.isabs(raw):
        return os.path.join(PROJECT_ROOT, raw)
    return raw


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, float(raw))
    except (TypeError, ValueError):
        return default


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y"}


DATA_PATH = _resolve_path("DATA_PATH", _DEFAULT_DATA_PATH)
PLAN_STORE_DIR = _resolve_path("PLAN_STORE_DIR", _DEFAULT_PLAN_STORE_DIR)
_SYMMETRIC_BANS = _env_flag("SYMMETRIC_BANS", False)
_SLOW_REQUEST_LOG_MS = _env_float("SLOW_REQUEST_LOG_MS", 750.0, minimum=0.0)

_data_lock = threading.Lock()
_data_mtime = None
_plan_store = JsonFilePlanStore(PLAN_STORE_DIR)


# ── Startup data load ──────────────────────────────────────────────────────────
try:
    _data = load_data(DATA_PATH, symmetrize_bans=_SYMMETRIC_BANS)
    _data_mtime = data_path_mtime(DATA_PATH)
    print(f"[OK] Loaded {len(_data['catalog'].courses)} courses from {DATA_PATH}")
except FileNotFoundError:
    if DATA_PATH != _DEFAULT_DATA_PATH and os.path.exists(_DEFAULT_DATA_PATH):
        print(
            f"[WARN] DATA_PATH not found ({DATA_PATH}); "
            f"falling back to default data directory ({_DEFAULT_DATA_PATH}).",
            file=sys.stderr,
        )
        DATA_PATH = _DEFAULT_DATA_PATH
        _data = load_data(DATA_PATH, symmetrize_bans=_SYMMETRIC_BANS)
        _data_mtime = data_path_mtime(DATA_PATH)
        print(f"[OK] Loaded {len(_data['catalog'].courses)} courses from {DATA_PATH}")
    else:
        print(f"[FATAL] Data file not found: {DATA_PATH}", file=sys.stderr)
        sys.exit(1)
except Exception as exc:
    print(f"[FATAL] Failed to load data: {exc}", file=sys.stderr)
    sys.exit(1)


def _reload_data_if_changed(force: bool = False) -> bool:
    """
    Hot-reload catalog data when DATA_PATH changes on disk.

    Returns True when a reload occurred, else False.
    """
    global _data, _data_mtime

    candidate_mtime = data_path_mtime(DATA_PATH)
    if not force:
        if candidate_mtime is None:
            return False
        if _data_mtime is not None and candidate_mtime <= _data_mtime:
            return False

    with _data_lock:
        latest_mtime = data_path_mtime(DATA_PATH)
        if not force:
            if latest_mtime is None:
                return False
            if _data_mtime is not None and latest_mtime <= _data_mtime:
                return False

        try:
            new_data = load_data(DATA_PATH, symmetrize_bans=_SYMMETRIC_BANS)
        except Exception as exc:
            print(f"[WARN] Data reload failed; keeping previous dataset: {exc}", file=sys.stderr)
            return False

        _data = new_data
        _data_mtime = latest_mtime if latest_mtime is not None else candidate_mtime
        print(f"[OK] Reloaded {len(new_data['catalog'].courses)} courses from {DATA_PATH}")
        return True


def _refresh_data_if_needed() -> None:
    try:
        _reload_data_if_changed()
    except Exception as exc:
        print(f"[WARN] Data reload check failed: {exc}", file=sys.stderr)


# -- Security headers ------------------------------------------------------
@app.before_request
def _start_request_timer():
    g._request_start_time = time.perf_counter()


@app.after_request
def _add_security_headers(response):
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"

    started = getattr(g, "_request_start_time", None)
    if started is not None:
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms >= _SLOW_REQUEST_LOG_MS:
            endpoint = request.endpoint or "unknown"
            print(
                f"[SLOW] {request.method} {request.path} "
                f"endpoint={endpoint} status={response.status_code} duration_ms={duration_ms:.1f}"
            )
    return response


# ── Error handlers ─────────────────────────────────────────────────────────────
def _error_response(error_code: str, message: str, status: int):
    return jsonify({
        "mode": "error",
        "error": {
            "error_code": error_code,
            "message": message,
        },
    }), status


@app.errorhandler(PayloadError)
def handle_payload_error(e):
    return _error_response(e.error_code, e.message, 400)


@app.errorhandler(PlanMutationError)
def handle_plan_mutation_error(e):
    return _error_response("INVALID_PLAN_OPERATION", str(e), 400)


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    return _error_response("SERVER_ERROR", "An unexpected server error occurred.", 500)


# -- Request helpers -------------------------------------------------------
def _json_body() -> dict:
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        raise PayloadError("Request body must be a JSON object.")
    return body


def _context(body: dict) -> tuple[str, str]:
    curriculum_id = str(body.get("curriculum_id") or "").strip()
    department_id = str(body.get("department_id") or "").strip()
    return curriculum_id, department_id


def _term(body: dict, key: str = "term") -> str:
    raw = body.get(key)
    if raw in (None, ""):
        return "1"
    term = normalize_term(raw)
    if term is None:
        raise PayloadError(f"{key} must be one of 1, 2 or summer; got {raw!r}.")
    return term


def _completed(body: dict) -> dict:
    return completed_record_from_payload(body.get("completed_courses"))


def _resolve_plan(body: dict) -> Plan:
    """Plan from the request body, else the stored plan for the context, else empty."""
    curriculum_id, department_id = _context(body)
    if body.get("plan") is not None:
        return plan_from_payload(body["plan"], curriculum_id, department_id)
    stored = _plan_store.load(context_key(curriculum_id, department_id))
    if stored is not None:
        return stored
    return Plan(curriculum_id=curriculum_id, department_id=department_id)


def _save_plan(plan: Plan) -> None:
    _plan_store.save(context_key(plan.curriculum_id, plan.department_id), plan)


def _requested_course(body: dict):
    raw = str(body.get("course_code") or "").strip()
    if not raw:
        raise PayloadError("course_code is required.")
    return normalize_code(raw) or raw


def _requested_course_id(body: dict) -> str:
    course_id = str(body.get("course_id") or "").strip()
    if not course_id:
        raise PayloadError("course_id is required.")
    return course_id


# -- Health endpoint --------------------------------------------------------
@app.route("/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": "1.0.0",
        "courses_loaded": len(_data["catalog"].courses),
    })


# ── Routes ─────────────────────────────────────────────────────────────────────
@app.route("/courses", methods=["GET"])
def get_courses():
    _refresh_data_if_needed()
    catalog = _data["catalog"]
    category = (request.args.get("category") or "").strip()
    courses = [
        c.to_dict() for c in catalog.courses.values()
        if not category or category == "all" or c.category == category
    ]
    return jsonify({
        "courses": courses,
        "categories": category_options(catalog),
        "blacklist": sorted(catalog.blacklist),
    })


@app.route("/concentrations", methods=["GET"])
def get_concentrations():
    _refresh_data_if_needed()
    return jsonify({
        "concentrations": [c.to_dict() for c in _data["catalog"].concentrations],
    })


@app.route("/can-add", methods=["POST"])
def can_add_endpoint():
    """Check one course against the plan without changing it."""
    _refresh_data_if_needed()
    body = _json_body()
    code = _requested_course(body)
    catalog = _data["catalog"]

    course = catalog.get(code)
    if course is None:
        return jsonify({
            "mode": "can_add",
            "course_code": code,
            "addable": False,
            "hard_errors": [f"{code} is not in the course catalog."],
            "warnings": [],
            "missing_prereqs": [],
        })

    completed = _completed(body)
    plan = _resolve_plan(body)
    decision = check_can_add(
        course,
        plan,
        completed,
        _term(body),
        blacklist=catalog.blacklist,
        total_credits_fn=lambda: total_credits(completed, plan, catalog.courses),
    )
    return jsonify({"mode": "can_add", **decision.to_dict()})


@app.route("/addable-courses", methods=["POST"])
def addable_courses_endpoint():
    _refresh_data_if_needed()
    body = _json_body()
    catalog = _data["catalog"]
    courses = get_addable_courses(
        catalog,
        _resolve_plan(body),
        _completed(body),
        _term(body),
        search=body.get("search"),
        category=body.get("category"),
    )
    return jsonify({
        "courses": [c.to_dict() for c in courses],
        "categories": category_options(catalog),
    })


@app.route("/plan", methods=["GET"])
def get_plan():
    curriculum_id = (request.args.get("curriculum_id") or "").strip()
    department_id = (request.args.get("department_id") or "").strip()
    stored = _plan_store.load(context_key(curriculum_id, department_id))
    if stored is None:
        stored = Plan(curriculum_id=curriculum_id, department_id=department_id)
    return jsonify({"mode": "plan", "plan": stored.to_dict()})


@app.route("/plan", methods=["POST"])
def save_plan():
    """Persist a client-edited plan. In-progress courses are dropped first."""
    body = _json_body()
    if body.get("plan") is None:
        raise PayloadError("plan is required.")
    plan = drop_in_progress(_resolve_plan(body), _completed(body))
    _save_plan(plan)
    return jsonify({"mode": "plan", "plan": plan.to_dict()})


@app.route("/plan/seed", methods=["POST"])
def seed_plan():
    """
    Merge the stored plan with planning-status entries from the student's
    record, then drop anything now in progress.
    """
    _refresh_data_if_needed()
    body = _json_body()
    curriculum_id, department_id = _context(body)
    completed = _completed(body)
    saved = _plan_store.load(context_key(curriculum_id, department_id))
    seeded = seed_plan_from_record(completed, _data["catalog"], curriculum_id, department_id)
    plan = drop_in_progress(merge_plans(saved, seeded), completed)
    _save_plan(plan)
    return jsonify({"mode": "plan", "plan": plan.to_dict()})


@app.route("/plan/add", methods=["POST"])
def add_to_plan():
    _refresh_data_if_needed()
    body = _json_body()
    code = _requested_course(body)
    catalog = _data["catalog"]
    course = catalog.get(code)
    if course is None:
        raise PayloadError(f"{code} is not in the course catalog.", error_code="UNKNOWN_COURSE")

    plan = _resolve_plan(body)
    decision, new_plan, coreqs = plan_course_addition(
        plan,
        course,
        catalog,
        _completed(body),
        _term(body, "semester") if body.get("semester") else semester_value_from_label(body.get("semester_label")),
        status=str(body.get("status") or DEFAULT_PLANNED_STATUS).strip().lower(),
        semester_label=body.get("semester_label"),
    )
    if decision.addable:
        _save_plan(new_plan)
    return jsonify({
        "mode": "plan_add",
        "added": decision.addable,
        "decision": decision.to_dict(),
        "corequisites_added": [c.code for c in coreqs],
        "plan": new_plan.to_dict(),
    })


@app.route("/plan/remove", methods=["POST"])
def remove_from_plan():
    """
    Removes the course when nothing depends on it. Otherwise the plan is
    left unchanged and the preview lists what /plan/remove/confirm would take.
    """
    body = _json_body()
    plan = _resolve_plan(body)
    new_plan, preview = remove_course(plan, _requested_course_id(body), _completed(body))
    removed = not preview.requires_confirmation
    if removed:
        _save_plan(new_plan)
    return jsonify({
        "mode": "plan_remove",
        "removed": removed,
        "requires_confirmation": preview.requires_confirmation,
        "preview": preview.to_dict(),
        "plan": new_plan.to_dict(),
    })


@app.route("/plan/remove/confirm", methods=["POST"])
def confirm_remove_from_plan():
    body = _json_body()
    plan = _resolve_plan(body)
    new_plan = confirm_removal(plan, _requested_course_id(body), _completed(body))
    _save_plan(new_plan)
    return jsonify({
        "mode": "plan_remove",
        "removed": True,
        "removed_codes": sorted(set(plan.codes) - set(new_plan.codes)),
        "plan": new_plan.to_dict(),
    })


@app.route("/plan/status", methods=["POST"])
def update_plan_status():
    body = _json_body()
    plan = _resolve_plan(body)
    status = str(body.get("status") or "").strip().lower()
    new_plan = update_course_status(plan, _requested_course_id(body), status)
    _save_plan(new_plan)
    return jsonify({"mode": "plan", "plan": new_plan.to_dict()})


@app.route("/concentrations/analyze", methods=["POST"])
def analyze_concentrations_endpoint():
    _refresh_data_if_needed()
    body = _json_body()
    results = analyze_concentrations(
        _data["catalog"].concentrations,
        body.get("selected_concentration_id"),
        _completed(body),
        _resolve_plan(body),
    )
    return jsonify({
        "mode": "concentrations",
        "results": [r.to_dict() for r in results],
    })


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
