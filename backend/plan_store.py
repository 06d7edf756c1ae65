"""
Plan persistence behind an explicit store.

The planning core never touches storage. The host picks a store and passes
it to whatever loads and saves plans; tests swap in InMemoryPlanStore.
"""

import hashlib
import json
import os
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from validators import plan_from_payload


def context_key(curriculum_id: str, department_id: str) -> str:
    return f"{str(curriculum_id).strip()}::{str(department_id).strip()}"


class PlanStore(ABC):
    """load(context_key) -> Plan | None, save(context_key, plan) -> None."""

    @abstractmethod
    def load(self, key: str):
        ...

    @abstractmethod
    def save(self, key: str, plan) -> None:
        ...

    @staticmethod
    def _plan_for_key(key: str, payload: dict):
        """Stored payload -> Plan, or None when it belongs to another context."""
        plan = plan_from_payload(payload)
        stored_key = context_key(plan.curriculum_id, plan.department_id)
        if stored_key != key:
            print(f"[WARN] Stored plan for {stored_key!r} found under {key!r}; ignoring it.")
            return None
        return plan


class InMemoryPlanStore(PlanStore):
    """Thread-safe dict-backed store."""

    def __init__(self):
        self._lock = threading.Lock()
        self._items: dict[str, dict] = {}

    def load(self, key: str):
        with self._lock:
            payload = self._items.get(key)
        if payload is None:
            return None
        return self._plan_for_key(key, payload)

    def save(self, key: str, plan) -> None:
        payload = plan.to_dict()
        with self._lock:
            self._items[key] = payload

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


class JsonFilePlanStore(PlanStore):
    """One JSON file per context key under `directory`, named by the key's sha256."""

    def __init__(self, directory: str):
        self.directory = directory
        self._lock = threading.Lock()

    def _path(self, key: str) -> str:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return os.path.join(self.directory, f"{digest}.json")

    def load(self, key: str):
        path = self._path(key)
        with self._lock:
            if not os.path.exists(path):
                return None
            with open(path, encoding="utf-8") as f:
                payload = json.load(f)
        return self._plan_for_key(key, payload)

    def save(self, key: str, plan) -> None:
        payload = plan.to_dict()
        payload["last_updated"] = datetime.now(timezone.utc).isoformat()
        path = self._path(key)
        with self._lock:
            os.makedirs(self.directory, exist_ok=True)
            tmp_path = f"{path}.tmp"
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, sort_keys=True)
            os.replace(tmp_path, path)
