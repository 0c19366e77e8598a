import random

import pytest

from backend.errors import StepNotFoundError, ValidationError
from backend.steps import StepSequence


def _orders(seq):
    return [s["order"] for s in seq]


def _ids(seq):
    return [s["id"] for s in seq]


def _three_steps():
    seq = StepSequence()
    a = seq.add(title="A")
    b = seq.add(title="B")
    c = seq.add(title="C")
    return seq, a, b, c


def test_add_appends_with_next_order_and_first_is_target():
    seq, a, b, c = _three_steps()
    assert _orders(seq) == [1, 2, 3]
    assert [s["is_target"] for s in seq] == [True, False, False]
    assert not any(s["is_completed"] for s in seq)
    assert len({a["id"], b["id"], c["id"]}) == 3


def test_add_accepts_optional_fields():
    seq = StepSequence()
    step = seq.add(title="Rinse", description="Spit", estimated_time=30, has_timer=True)
    assert step["title"] == "Rinse"
    assert step["estimated_time"] == 30
    assert step["has_timer"]


def test_constructor_sorts_and_closes_gaps():
    seq = StepSequence(
        [
            {"id": "x", "title": "X", "order": 7},
            {"id": "y", "title": "Y", "order": 2},
        ]
    )
    assert _ids(seq) == ["y", "x"]
    assert _orders(seq) == [1, 2]


def test_update_merges_fields_and_keeps_id():
    seq, a, _, _ = _three_steps()
    updated = seq.update(a["id"], title="First", id="hijack", is_completed=True)
    assert updated["id"] == a["id"]
    assert updated["title"] == "First"
    assert updated["is_completed"]
    assert updated["order"] == 1
    assert updated["is_target"]


def test_update_unknown_step_reports_not_found():
    seq, _, _, _ = _three_steps()
    with pytest.raises(StepNotFoundError):
        seq.update("missing", title="Nope")


def test_remove_middle_step_renumbers_preserving_order():
    seq, a, b, c = _three_steps()
    seq.remove(b["id"])
    assert _ids(seq) == [a["id"], c["id"]]
    assert _orders(seq) == [1, 2]


def test_remove_first_moves_target_to_new_first_step():
    seq, a, b, c = _three_steps()
    seq.remove(a["id"])
    assert [s["is_target"] for s in seq] == [True, False]


def test_remove_leaves_no_target_when_new_first_is_completed():
    seq, a, b, c = _three_steps()
    seq.update(b["id"], is_completed=True)
    seq.remove(a["id"])
    assert not any(s["is_target"] for s in seq)


def test_remove_unknown_is_noop():
    seq, a, b, c = _three_steps()
    seq.remove("missing")
    assert _ids(seq) == [a["id"], b["id"], c["id"]]


def test_move_swaps_with_neighbour():
    seq, a, b, c = _three_steps()
    seq.move(c["id"], "up")
    assert _ids(seq) == [a["id"], c["id"], b["id"]]
    assert _orders(seq) == [1, 2, 3]
    # target flag is untouched by moves
    assert seq.get(a["id"])["is_target"]


def test_move_up_then_down_restores_order():
    seq, a, b, c = _three_steps()
    d = seq.add(title="D")
    before = _ids(seq)
    seq.move(b["id"], "up")
    seq.move(b["id"], "down")
    assert _ids(seq) == before
    seq.move(c["id"], "down")
    seq.move(c["id"], "up")
    assert _ids(seq) == before
    assert d["order"] == 4


def test_move_at_boundary_or_unknown_is_noop():
    seq, a, b, c = _three_steps()
    seq.move(a["id"], "up")
    seq.move(c["id"], "down")
    seq.move("missing", "up")
    assert _ids(seq) == [a["id"], b["id"], c["id"]]


def test_move_rejects_unknown_direction():
    seq, a, _, _ = _three_steps()
    with pytest.raises(ValueError):
        seq.move(a["id"], "sideways")


def test_reorder_follows_given_ids():
    seq, a, b, c = _three_steps()
    seq.reorder([c["id"], a["id"], b["id"]])
    assert _ids(seq) == [c["id"], a["id"], b["id"]]
    assert _orders(seq) == [1, 2, 3]
    with pytest.raises(ValueError):
        seq.reorder([a["id"], b["id"]])


def test_orders_stay_contiguous_after_random_edits():
    rng = random.Random(1234)
    seq = StepSequence()
    for _ in range(300):
        op = rng.choice(["add", "add", "move", "remove"])
        if op == "add" or not len(seq):
            seq.add(title="step")
        elif op == "move":
            seq.move(rng.choice(_ids(seq)), rng.choice(["up", "down"]))
        else:
            seq.remove(rng.choice(_ids(seq)))
        assert _orders(seq) == list(range(1, len(seq) + 1))


def test_validate_requires_titles():
    seq = StepSequence()
    seq.add(title="Ok")
    seq.add(title="   ")
    with pytest.raises(ValidationError):
        seq.validate()


def test_to_list_returns_copies():
    seq, a, _, _ = _three_steps()
    copied = seq.to_list()
    copied[0]["title"] = "changed"
    assert seq.get(a["id"])["title"] == "A"
