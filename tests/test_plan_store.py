import hashlib
import json
import os

import pytest
from plan_store import InMemoryPlanStore, JsonFilePlanStore, PlanStore, context_key

from planner_utils import plan_of, planned

KEY = context_key("CS-2022", "CS")


def _sample_plan():
    return plan_of(
        planned("CSX3003", semester_label="1/2026"),
        planned("CSX4010", semester="2", prerequisites=["CSX3003"], status="will-take", semester_label="2/2026",
                validation_status="warning", validation_notes=("Missing prerequisites: CSX3003",)),
    )


class TestContextKey:
    def test_joins_ids(self):
        assert context_key("CS-2022", "CS") == "CS-2022::CS"

    def test_distinct_contexts(self):
        assert context_key("CS-2022", "CS") != context_key("CS-2022", "IT")


class TestPlanStoreInterface:
    def test_incomplete_store_cannot_be_instantiated(self):
        class LoadOnlyStore(PlanStore):
            def load(self, key):
                return None

        with pytest.raises(TypeError):
            LoadOnlyStore()


class TestInMemoryPlanStore:
    def test_missing_key_returns_none(self):
        assert InMemoryPlanStore().load("nope") is None

    def test_round_trip(self):
        store = InMemoryPlanStore()
        plan = _sample_plan()
        store.save(KEY, plan)
        loaded = store.load(KEY)
        assert loaded.to_dict() == plan.to_dict()
        assert store.load(context_key("CS-2022", "IT")) is None

    def test_clear(self):
        store = InMemoryPlanStore()
        store.save(KEY, _sample_plan())
        store.clear()
        assert store.load(KEY) is None

    def test_plan_saved_under_other_context_is_ignored(self, capsys):
        store = InMemoryPlanStore()
        store.save(context_key("IT-2022", "IT"), _sample_plan())
        assert store.load(context_key("IT-2022", "IT")) is None
        assert "[WARN]" in capsys.readouterr().out


class TestJsonFilePlanStore:
    def test_round_trip(self, tmp_path):
        store = JsonFilePlanStore(str(tmp_path / "plans"))
        plan = _sample_plan()
        store.save(KEY, plan)
        loaded = store.load(KEY)
        assert loaded.to_dict() == plan.to_dict()

    def test_missing_file_returns_none(self, tmp_path):
        assert JsonFilePlanStore(str(tmp_path)).load(KEY) is None

    def test_file_carries_last_updated(self, tmp_path):
        store = JsonFilePlanStore(str(tmp_path))
        store.save(KEY, _sample_plan())
        files = os.listdir(tmp_path)
        assert files == [hashlib.sha256(KEY.encode("utf-8")).hexdigest() + ".json"]
        with open(tmp_path / files[0], encoding="utf-8") as f:
            payload = json.load(f)
        assert "last_updated" in payload
        assert [c["code"] for c in payload["planned_courses"]] == ["CSX3003", "CSX4010"]

    def test_overwrite_replaces_plan(self, tmp_path):
        store = JsonFilePlanStore(str(tmp_path))
        store.save(KEY, _sample_plan())
        store.save(KEY, plan_of(planned("ITX4001", semester_label="1/2026")))
        assert store.load(KEY).codes == ["ITX4001"]

    def test_contexts_with_underscores_get_separate_files(self, tmp_path):
        # Both keys reduce to "CS_2022_IT" if separators are flattened.
        store = JsonFilePlanStore(str(tmp_path))
        first = context_key("CS_2022", "IT")
        second = context_key("CS", "2022_IT")
        store.save(first, plan_of(planned("AAA1001"), curriculum_id="CS_2022", department_id="IT"))
        store.save(second, plan_of(planned("BBB1001"), curriculum_id="CS", department_id="2022_IT"))

        assert len(os.listdir(tmp_path)) == 2
        assert store.load(first).codes == ["AAA1001"]
        assert store.load(second).codes == ["BBB1001"]

    def test_file_for_other_context_is_ignored(self, tmp_path):
        store = JsonFilePlanStore(str(tmp_path))
        store.save(context_key("IT-2022", "IT"), _sample_plan())
        assert store.load(context_key("IT-2022", "IT")) is None
