from __future__ import annotations

import copy
import time

from backend.errors import StepNotFoundError, ValidationError
from backend.utils import new_id

# Keys a caller may not overwrite through :meth:`StepSequence.update`
_PROTECTED_KEYS = {"id", "created_at"}


def new_step(order: int, *, is_target: bool = False, **fields) -> dict:
    """Return a step ``dict`` populated with defaults and ``fields``."""

    ts = time.time()
    step = {
        "id": new_id("step"),
        "title": "",
        "description": "",
        "order": order,
        "is_completed": False,
        "is_target": is_target,
        "estimated_time": None,
        "actual_time": None,
        "has_timer": False,
        "created_at": ts,
        "updated_at": ts,
    }
    step.update({k: v for k, v in fields.items() if k not in _PROTECTED_KEYS | {"order", "is_target"}})
    return step


class StepSequence:
    """Ordered list of steps belonging to a single chain.

    Steps are plain dictionaries kept in display order.  Every mutating
    operation leaves the ``order`` values contiguous from ``1``.
    """

    def __init__(self, steps: list[dict] | None = None):
        self.steps: list[dict] = sorted(
            (copy.deepcopy(s) for s in steps or []),
            key=lambda s: s.get("order", 0),
        )
        self._renumber()

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    def _index_of(self, step_id: str) -> int:
        for idx, step in enumerate(self.steps):
            if step.get("id") == step_id:
                return idx
        return -1

    def _renumber(self) -> None:
        for idx, step in enumerate(self.steps, 1):
            step["order"] = idx

    def get(self, step_id: str) -> dict:
        """Return the step with ``step_id``."""

        idx = self._index_of(step_id)
        if idx == -1:
            raise StepNotFoundError(f"Step '{step_id}' not found")
        return self.steps[idx]

    def add(self, **fields) -> dict:
        """Append a new step and return it.

        The first step added to an empty sequence becomes the target.
        """

        step = new_step(
            len(self.steps) + 1, is_target=not self.steps, **fields
        )
        self.steps.append(step)
        return step

    def update(self, step_id: str, **updates) -> dict:
        """Merge ``updates`` into the step with ``step_id``."""

        step = self.get(step_id)
        for key, value in updates.items():
            if key in _PROTECTED_KEYS:
                continue
            step[key] = value
        step["updated_at"] = time.time()
        return step

    def remove(self, step_id: str) -> None:
        """Remove the step with ``step_id`` if it exists.

        Remaining steps are renumbered and only the new first step keeps
        the target flag, and only when it is not completed.
        """

        idx = self._index_of(step_id)
        if idx == -1:
            return
        self.steps.pop(idx)
        self._renumber()
        for pos, step in enumerate(self.steps):
            step["is_target"] = pos == 0 and not step.get("is_completed")

    def move(self, step_id: str, direction: str) -> None:
        """Swap the step with its neighbour in ``direction`` (``up``/``down``)."""

        if direction not in ("up", "down"):
            raise ValueError(f"Unknown direction '{direction}'")
        idx = self._index_of(step_id)
        if idx == -1:
            return
        new_idx = idx - 1 if direction == "up" else idx + 1
        if new_idx < 0 or new_idx >= len(self.steps):
            return
        self.steps[idx], self.steps[new_idx] = self.steps[new_idx], self.steps[idx]
        self._renumber()

    def reorder(self, step_ids: list[str]) -> None:
        """Rearrange the steps to follow ``step_ids``."""

        current = [s["id"] for s in self.steps]
        if sorted(current) != sorted(step_ids) or len(set(step_ids)) != len(step_ids):
            raise ValueError("Step ids must be a permutation of the current steps")
        by_id = {s["id"]: s for s in self.steps}
        self.steps = [by_id[i] for i in step_ids]
        self._renumber()

    def validate(self) -> None:
        """Raise :class:`ValidationError` if any step has a blank title."""

        for step in self.steps:
            if not str(step.get("title") or "").strip():
                raise ValidationError(f"Step {step['order']} needs a title")

    def to_list(self) -> list[dict]:
        """Return a deep copy of the steps in order."""

        return copy.deepcopy(self.steps)
