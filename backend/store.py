"""
JSON file store for registered accounts.

Layout on disk:
  {"users": {<email>: {...}}, "group_counts": {<group>: n}, "last_assigned_group_index": i}

Writes go to a temp file in the same directory and are swapped in with
os.replace, so a crash never leaves a half-written document behind.
"""

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List

logger = logging.getLogger(__name__)


class StoreError(Exception):
    pass


def empty_state() -> Dict[str, Any]:
    return {"users": {}, "group_counts": {}, "last_assigned_group_index": 0}


def reconcile_groups(state: Dict[str, Any], group_ids: List[str]) -> Dict[str, Any]:
    """Give every configured group a count and drop groups no longer configured."""
    counts = state.setdefault("group_counts", {})
    for group_id in group_ids:
        counts.setdefault(group_id, 0)
    for group_id in list(counts):
        if group_id not in group_ids:
            logger.info(f"Dropping unconfigured group {group_id} from store")
            del counts[group_id]
    state.setdefault("users", {})
    state.setdefault("last_assigned_group_index", 0)
    if state["last_assigned_group_index"] >= len(group_ids):
        state["last_assigned_group_index"] = 0
    return state


class AccountStore:
    def __init__(self, path, group_ids: List[str]):
        self.path = Path(path)
        self.group_ids = list(group_ids)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return empty_state()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StoreError(f"{self.path} contains invalid JSON: {e}")
        except OSError as e:
            raise StoreError(f"Cannot read {self.path}: {e}")
        if not isinstance(data, dict):
            raise StoreError(f"{self.path} does not hold a JSON object")
        return data

    def _write(self, state: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), prefix=".accounts-", suffix=".json")
        except OSError as e:
            raise StoreError(f"Cannot write {self.path}: {e}")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(state, f, indent=2)
            os.replace(tmp, self.path)
        except Exception as e:
            if os.path.exists(tmp):
                os.unlink(tmp)
            if isinstance(e, OSError):
                raise StoreError(f"Cannot write {self.path}: {e}")
            raise

    def load(self) -> Dict[str, Any]:
        """Current document with groups reconciled; nothing is written back."""
        with self._lock:
            return reconcile_groups(self._read(), self.group_ids)

    @contextmanager
    def transaction(self) -> Iterator[Dict[str, Any]]:
        """Read-modify-write under the store lock; saved only if the block succeeds."""
        with self._lock:
            state = reconcile_groups(self._read(), self.group_ids)
            yield state
            self._write(state)
