import pytest
from models import AddDecision, Catalog, CompletedEntry, CourseRecordStatus, Plan
from planner import (
    PlanMutationError,
    add_course_to_plan,
    confirm_removal,
    drop_in_progress,
    merge_plans,
    plan_course_addition,
    preview_removal,
    remove_course,
    seed_plan_from_record,
    update_course_status,
)

from planner_utils import course, plan_of, planned, record, sample_catalog


@pytest.fixture
def catalog():
    return sample_catalog()


class TestPlanCourseAddition:
    def test_adds_primary_with_warnings(self, catalog):
        decision, plan, coreqs = plan_course_addition(plan_of(), catalog.get("CSX4010"), catalog, {}, "2")
        assert decision.addable is True
        assert coreqs == []
        assert plan.codes == ["CSX4010"]
        entry = plan.courses[0]
        assert entry.id == "CSX4010-2"
        assert entry.credits == 3
        assert entry.semester_label.startswith("2/")
        assert entry.validation_status == "warning"
        assert entry.validation_notes == ("Missing prerequisites: CSX3003",)

    def test_adds_corequisite_atomically(self, catalog):
        completed = record(completed=["CSX2003", "CSX3003"])
        decision, plan, coreqs = plan_course_addition(
            plan_of(), catalog.get("CSX4002"), catalog, completed, "1", semester_label="1/2026"
        )
        assert [c.code for c in coreqs] == ["CSX4003"]
        assert plan.codes == ["CSX4002", "CSX4003"]
        primary, coreq = plan.courses
        assert primary.validation_status == "warning"
        assert coreq.validation_status == "valid"
        assert coreq.validation_notes == ("Auto-added as corequisite for CSX4002",)
        assert coreq.semester == "1"
        assert coreq.semester_label == "1/2026"

    def test_hard_rejection_leaves_plan_unchanged(self, catalog):
        start = plan_of(planned("CSX4010", prerequisites=["CSX3003"]))
        decision, plan, coreqs = plan_course_addition(start, catalog.get("CSX4001"), catalog, {}, "1")
        assert decision.addable is False
        assert plan is start
        assert coreqs == []

    def test_banned_asymmetry_end_to_end(self):
        a = course("AAA1001", banned_with=["BBB1001"])
        b = course("BBB1001")
        cat = Catalog(courses={a.code: a, b.code: b})

        _, plan, _ = plan_course_addition(plan_of(), a, cat, {}, "1")
        decision, plan, _ = plan_course_addition(plan, b, cat, {}, "1")
        assert decision.addable is True
        assert plan.codes == ["AAA1001", "BBB1001"]

        _, plan, _ = plan_course_addition(plan_of(), b, cat, {}, "1")
        decision, plan, _ = plan_course_addition(plan, a, cat, {}, "1")
        assert decision.addable is False
        assert plan.codes == ["BBB1001"]

    def test_input_plan_is_not_modified(self, catalog):
        start = plan_of()
        plan_course_addition(start, catalog.get("CSX4010"), catalog, {}, "1")
        assert start.courses == ()


class TestAddCourseToPlan:
    def test_refuses_non_addable_decision(self, catalog):
        decision = AddDecision(code="CSX4001", addable=False, hard_errors=("nope",))
        with pytest.raises(PlanMutationError):
            add_course_to_plan(plan_of(), catalog.get("CSX4001"), decision, [], "1")

    def test_refuses_duplicate_code(self, catalog):
        decision = AddDecision(code="CSX4010", addable=True)
        with pytest.raises(PlanMutationError):
            add_course_to_plan(plan_of(planned("CSX4010")), catalog.get("CSX4010"), decision, [], "2")

    def test_duplicate_corequisite_aborts_whole_add(self, catalog):
        decision = AddDecision(code="CSX4002", addable=True)
        start = plan_of(planned("CSX4003"))
        with pytest.raises(PlanMutationError):
            add_course_to_plan(start, catalog.get("CSX4002"), decision, [catalog.get("CSX4003")], "1")
        assert start.codes == ["CSX4003"]

    def test_refuses_unknown_status(self, catalog):
        decision = AddDecision(code="CSX4010", addable=True)
        with pytest.raises(PlanMutationError):
            add_course_to_plan(plan_of(), catalog.get("CSX4010"), decision, [], "1", status="maybe")


class TestRemoval:
    @pytest.fixture
    def plan(self):
        return plan_of(
            planned("AAA1001"),
            planned("BBB1001", prerequisites=["AAA1001"]),
            planned("CCC1001", prerequisites=["BBB1001"]),
        )

    def test_remove_prerequisite_needs_confirmation(self, plan):
        new_plan, preview = remove_course(plan, "AAA1001-1", {})
        assert new_plan is plan
        assert preview.requires_confirmation is True
        assert [c.code for c in preview.dependents] == ["BBB1001"]
        assert [c.code for c in preview.stranded] == ["CCC1001"]

    def test_confirm_removes_direct_dependents_only(self, plan):
        new_plan = confirm_removal(plan, "AAA1001-1", {})
        assert new_plan.codes == ["CCC1001"]

    def test_remove_leaf_is_immediate(self, plan):
        new_plan, preview = remove_course(plan, "CCC1001-1", {})
        assert preview.requires_confirmation is False
        assert new_plan.codes == ["AAA1001", "BBB1001"]

    def test_remove_dependent_keeps_prerequisite(self):
        plan = plan_of(planned("AAA1001"), planned("BBB1001", prerequisites=["AAA1001"]))
        new_plan, _ = remove_course(plan, "BBB1001-1", {})
        assert new_plan.codes == ["AAA1001"]

    def test_completed_prerequisite_has_no_cascade(self, plan):
        preview = preview_removal(plan, "AAA1001-1", record(completed=["AAA1001"]))
        assert preview.requires_confirmation is False

    def test_unknown_id_raises(self, plan):
        with pytest.raises(PlanMutationError):
            remove_course(plan, "ZZZ0000-1", {})


class TestUpdateCourseStatus:
    def test_updates_only_target(self):
        plan = plan_of(planned("AAA1001"), planned("BBB1001"))
        new_plan = update_course_status(plan, "BBB1001-1", "will-take")
        assert [c.status for c in new_plan.courses] == ["planning", "will-take"]
        assert [c.status for c in plan.courses] == ["planning", "planning"]

    def test_invalid_status_raises(self):
        with pytest.raises(PlanMutationError):
            update_course_status(plan_of(planned("AAA1001")), "AAA1001-1", "done")


class TestSeedAndMerge:
    def test_seed_from_planning_entries(self, catalog):
        completed = record(completed=["CSX3003"], planning=["CSX4010", "ZZZ1234"])
        plan = seed_plan_from_record(completed, catalog, "CS-2022", "CS")
        assert plan.codes == ["CSX4010", "ZZZ1234"]
        known, unknown = plan.courses
        assert known.id == "planned-CSX4010-1"
        assert known.title == "Alternative Algorithms"
        assert known.prerequisites == ("CSX3003",)
        assert unknown.credits == 3
        assert unknown.title == "ZZZ1234"

    def test_seed_reads_semester_label(self, catalog):
        completed = {
            "ITX4001": CompletedEntry(status=CourseRecordStatus.PLANNING, planned_semester="3/2026"),
        }
        plan = seed_plan_from_record(completed, catalog, "CS-2022", "CS")
        assert plan.courses[0].semester == "summer"
        assert plan.courses[0].semester_label == "3/2026"

    def test_merge_saved_entries_win(self):
        saved = plan_of(planned("AAA1001", semester="2"))
        seeded = plan_of(planned("AAA1001", id="planned-AAA1001-1"), planned("BBB1001", id="planned-BBB1001-1"))
        merged = merge_plans(saved, seeded)
        assert merged.codes == ["AAA1001", "BBB1001"]
        assert merged.courses[0].semester == "2"

    def test_merge_without_saved_plan(self):
        seeded = plan_of(planned("AAA1001"))
        assert merge_plans(None, seeded) is seeded

    def test_drop_in_progress(self):
        plan = plan_of(planned("AAA1001"), planned("BBB1001"))
        trimmed = drop_in_progress(plan, record(in_progress=["AAA1001"]))
        assert trimmed.codes == ["BBB1001"]
        assert isinstance(trimmed, Plan)

    def test_drop_in_progress_noop(self):
        plan = plan_of(planned("AAA1001"))
        assert drop_in_progress(plan, record(completed=["AAA1001"])) is plan
