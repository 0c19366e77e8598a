"""Target step selection for forward and backward chaining.

Forward chaining teaches the sequence from the first step, backward
chaining from the last.  Total-task chaining practises every step on
every run so no single target exists.
"""

from __future__ import annotations

from backend import CHAINING_METHODS


def select_target_step(steps: list[dict], method: str) -> dict | None:
    """Return the step currently targeted under ``method``.

    ``None`` is returned when every step is complete, when ``steps`` is
    empty, and always for ``total-task``.
    """

    if method not in CHAINING_METHODS:
        raise ValueError(f"Unknown chaining method '{method}'")
    if method == "total-task":
        return None
    incomplete = sorted(
        (s for s in steps if not s.get("is_completed")),
        key=lambda s: s.get("order", 0),
    )
    if not incomplete:
        return None
    return incomplete[0] if method == "forward" else incomplete[-1]


def apply_target(steps: list[dict], method: str) -> dict | None:
    """Set ``is_target`` on the selected step and clear it on the others."""

    target = select_target_step(steps, method)
    for step in steps:
        step["is_target"] = step is target
    return target


def chain_progress(steps: list[dict], method: str) -> dict:
    """Return completion statistics for a chain's steps."""

    total = len(steps)
    completed = sum(1 for s in steps if s.get("is_completed"))
    target = select_target_step(steps, method)
    return {
        "completed_steps": completed,
        "total_steps": total,
        "percentage": (completed / total) * 100 if total else 0.0,
        "current_target_step": target["order"] if target else None,
    }
