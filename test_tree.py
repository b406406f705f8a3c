#!/usr/bin/env python3
"""
Tests for step tree traversal, progressive reveal and export.
"""

import json
import math
import sys

import pytest

from dpll_tree import (
    DPLLOptions,
    DPLLSolver,
    Replay,
    StepNotFoundError,
    Verdict,
    creation_order,
    displayed_model_count,
    displayed_verdict,
    next_step,
    parse_formula,
    previous_step,
    step_position,
    traversal_order,
    visible_steps,
)

PLAIN = DPLLOptions(unit_propagation=False, early_stopping=False)


def example_tree():
    return DPLLSolver(PLAIN).solve(parse_formula("(X ∨ W) ∧ (Y ∨ Z)"))


def test_traversal_order():
    print("Testing traversal order...")
    tree = example_tree()
    order = traversal_order(tree)
    assert order[0] == tree.root_id
    assert sorted(order) == list(range(len(tree)))

    # true subtree completely before the false subtree
    true_id, false_id = tree.root.children
    true_subtree = {i for i in order if true_id in tree.path_to_root(i)}
    assert order.index(false_id) > max(order.index(i) for i in true_subtree)
    print("  PASS")


def test_traversal_matches_creation_for_dpll():
    # The solver creates steps depth first, so both orders coincide
    tree = example_tree()
    assert traversal_order(tree) == creation_order(tree)


def test_next_and_previous():
    print("Testing next/previous lookup...")
    tree = example_tree()
    order = traversal_order(tree)

    assert previous_step(tree, order[0]) is None
    assert next_step(tree, order[-1]) is None
    for a, b in zip(order, order[1:]):
        assert next_step(tree, a) == b
        assert previous_step(tree, b) == a

    assert next_step(tree, 999) is None
    assert previous_step(tree, 999) is None
    print("  PASS")


def test_step_position():
    tree = example_tree()
    assert step_position(tree, tree.root_id) == (1, 13)
    assert step_position(tree, 5) == (6, 13)
    assert step_position(tree, 999) == (0, 13)


def test_lookup_of_missing_step():
    tree = example_tree()
    with pytest.raises(StepNotFoundError):
        tree[len(tree)]
    with pytest.raises(StepNotFoundError):
        tree[-1]


def test_progressive_reveal():
    print("Testing progressive reveal...")
    tree = example_tree()
    sat_leaf = tree[2]
    assert sat_leaf.verdict is Verdict.SAT

    # The split leaf appears undecided and shows its verdict one event later
    assert displayed_verdict(sat_leaf, sat_leaf.created_at) is Verdict.UNKNOWN
    cutoff = sat_leaf.resolved_at
    assert cutoff == sat_leaf.created_at + 1
    assert visible_steps(tree, cutoff) == [0, 1, 2]
    assert displayed_verdict(sat_leaf, cutoff) is Verdict.SAT
    assert displayed_verdict(tree.root, cutoff) is Verdict.UNKNOWN
    assert displayed_verdict(tree.root, tree.root.resolved_at) is Verdict.SAT

    assert visible_steps(tree, 0) == []
    assert visible_steps(tree, math.inf) == traversal_order(tree)
    print("  PASS")


def test_displayed_model_count():
    tree = DPLLSolver(PLAIN).solve_sat(parse_formula("(X ∨ W) ∧ (Y ∨ Z)"))
    root = tree.root
    assert displayed_model_count(root, root.created_at) is None
    assert displayed_model_count(root, math.inf) == 9


def test_replay_cursor():
    print("Testing replay cursor...")
    tree = example_tree()
    replay = Replay(tree)

    assert replay.current == tree.root_id
    assert not replay.previous()
    assert replay.visible() == [tree.root_id]
    assert replay.display(tree.root_id) == (Verdict.UNKNOWN, None)

    steps = 0
    while replay.next():
        steps += 1
    assert steps == len(tree)
    assert replay.finished
    assert replay.cutoff == math.inf
    assert replay.display(tree.root_id) == (Verdict.SAT, None)
    assert not replay.next()

    replay.reset()
    assert replay.current == tree.root_id
    replay.finish()
    assert replay.finished
    assert replay.previous()
    assert replay.current == traversal_order(tree)[-1]
    print("  PASS")


def test_witness():
    tree = DPLLSolver().solve(parse_formula("(¬A ∨ B) ∧ A"))
    assert tree.witness() == {"A": True, "B": True}
    assert DPLLSolver().solve(parse_formula("A ∧ ¬A")).witness() is None


def test_depth_and_path():
    tree = example_tree()
    assert tree.depth(tree.root_id) == 0
    assert tree.path_to_root(2) == [2, 1, 0]
    assert tree.depth(2) == 2


def test_json_export(tmp_path):
    tree = DPLLSolver(PLAIN).solve_sat(parse_formula("(X ∨ W) ∧ (Y ∨ Z)"))
    path = tmp_path / "tree.json"
    tree.save(path)

    with open(path) as f:
        data = json.load(f)
    assert data["formula"] == "(X∨W) ∧ (Y∨Z)"
    assert data["variables"] == ["W", "X", "Y", "Z"]
    assert data["mode"] == "counting"
    assert len(data["steps"]) == 13

    root = data["steps"][0]
    assert root["type"] == "split" and root["parent"] is None
    assert root["model_count"] == 9
    first = data["steps"][1]
    assert first["variable"] == "X" and first["value"] is True
    assert first["edge_label"] == "X = 1"
    assert first["input_formula"] == "(X∨W) ∧ (Y∨Z)"
    assert first["formula"] == "(Y∨Z)"


def test_unit_propagation_export():
    tree = DPLLSolver().solve(parse_formula("A ∧ (¬A ∨ B)"))
    step = tree.to_dict()["steps"][1]
    assert step["type"] == "unit-propagation"
    assert step["unit_clauses"] == ["A"]
    assert step["forced"] == [["A", True]]


def main():
    """Run all tests."""
    import tempfile
    from pathlib import Path

    print("=" * 50)
    print("Step Tree Tests")
    print("=" * 50)

    failed = 0
    for name, test in sorted(globals().items()):
        if not name.startswith("test_"):
            continue
        try:
            if name == "test_json_export":
                with tempfile.TemporaryDirectory() as tmp:
                    test(Path(tmp))
            else:
                test()
        except AssertionError as e:
            failed += 1
            print(f"  FAIL: {name}: {e}")

    print("\n" + "=" * 50)
    print("ALL TESTS PASSED" if not failed else f"{failed} TESTS FAILED")
    print("=" * 50)
    return 0 if not failed else 1


if __name__ == "__main__":
    sys.exit(main())
