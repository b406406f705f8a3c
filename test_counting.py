#!/usr/bin/env python3
"""
Tests for model counting, weighted model counting, tree verification,
batch collection and configuration.
"""

import json
import random
import sys

import numpy as np
import pytest
from omegaconf.errors import ValidationError

from dpll_tree import (
    EXAMPLE_FORMULAS,
    DPLLOptions,
    DPLLSolver,
    IncompleteTreeError,
    InvariantViolationError,
    SolveMode,
    TreeVerifier,
    Verdict,
    brute_force_count,
    collect_trees,
    compute_model_counts,
    enumerate_assignments,
    export_trees,
    generate_random_formula,
    load_config,
    parse_formula,
    solve_mode,
    solver_options,
    verify_solver_tree,
    weight_of_assignment,
    weighted_model_count,
)


def test_example_model_counts():
    print("Testing model counts of worked examples...")
    solver = DPLLSolver(DPLLOptions(unit_propagation=False))
    tree = solver.solve_sat(parse_formula("(X ∨ W) ∧ (Y ∨ Z)"))
    # 3 of 4 assignments satisfy each clause: 3 * 3 = 9 of 16
    assert tree.model_count == 9

    sat_leaf = tree[2]
    assert sat_leaf.model_count == 4
    assert sat_leaf.explanation.endswith("(2 unassigned vars → 2^2 = 4 models)")
    for step in tree:
        if step.verdict is Verdict.UNSAT:
            assert step.model_count == 0
    print("  PASS")


def test_counts_match_brute_force():
    print("Testing model counts against brute force...")
    rng = random.Random(17)
    for _ in range(120):
        n_vars = rng.randint(1, 8)
        formula = generate_random_formula(n_vars, clause_length=rng.randint(1, 3),
                                          n_clauses=rng.randint(0, 3 * n_vars), rng=rng)
        expected = brute_force_count(formula)
        for up in (True, False):
            tree = DPLLSolver(DPLLOptions(unit_propagation=up)).solve_sat(formula)
            assert tree.model_count == expected
            assert verify_solver_tree(tree, formula)
    print("  PASS")


def test_course_examples():
    for name, text in EXAMPLE_FORMULAS.items():
        formula = parse_formula(text)
        tree = DPLLSolver().solve_sat(formula)
        assert tree.model_count == brute_force_count(formula), name
        assert TreeVerifier(tree, formula).verify(), name


def test_counting_in_place_after_full_solve():
    solver = DPLLSolver(DPLLOptions(early_stopping=False))
    tree = solver.solve(parse_formula("(A ∨ B) ∧ (¬A ∨ C)"))
    assert tree.model_count is None
    shape = [(s.id, s.parent, list(s.children), s.verdict, s.resolved_at) for s in tree]

    solver.compute_model_counts_in_place(tree)
    assert tree.model_count == 4
    assert [(s.id, s.parent, list(s.children), s.verdict, s.resolved_at) for s in tree] == shape


def test_recounting_keeps_explanations():
    solver = DPLLSolver(DPLLOptions(unit_propagation=False))
    tree = solver.solve_sat(parse_formula("A ∨ B"))
    before = [step.explanation for step in tree]
    assert before[1] == "Split: trying A = 1 (1 unassigned vars → 2^1 = 2 models)"

    solver.compute_model_counts_in_place(tree)
    assert tree.model_count == 3
    assert [step.explanation for step in tree] == before


def test_counting_refuses_pruned_tree():
    tree = DPLLSolver(DPLLOptions(early_stopping=True)).solve(parse_formula("A ∨ B"))
    assert tree.pruned
    with pytest.raises(IncompleteTreeError):
        compute_model_counts(tree)

    # Early stopping never fires on an UNSAT formula, so the tree is complete
    unsat = DPLLSolver(DPLLOptions(early_stopping=True)).solve(parse_formula("A ∧ ¬A"))
    assert compute_model_counts(unsat) == 0


def test_enumerate_assignments():
    table = enumerate_assignments(["A", "B"])
    assert table.tolist() == [[False, False], [False, True], [True, False], [True, True]]
    assert enumerate_assignments([]).shape == (1, 0)
    with pytest.raises(ValueError):
        enumerate_assignments([f"V{i}" for i in range(21)])


def test_brute_force_count():
    assert brute_force_count(parse_formula("")) == 1
    assert brute_force_count(parse_formula("()")) == 0
    assert brute_force_count(parse_formula("A ∨ B")) == 3
    assert brute_force_count(parse_formula("(A ∨ B) ∧ ¬A")) == 1


def test_weight_of_assignment():
    weight, symbolic, numeric = weight_of_assignment({"B": False, "A": True}, {"A": 0.3})
    assert weight == pytest.approx(0.15)
    assert symbolic == "p(A)·(1-p(B))"
    assert numeric == "0.3·0.5"


def test_weighted_model_count():
    print("Testing weighted model counting...")
    result = weighted_model_count(parse_formula("A ∨ B"), {"A": 0.3})
    assert result.variables == ["A", "B"]
    assert result.probabilities == {"A": 0.3, "B": 0.5}
    assert result.sat_count == 3
    assert result.wmc == pytest.approx(1 - 0.7 * 0.5)
    assert result.weight_sum == pytest.approx(1.0)
    assert not result.truncated
    assert len(result.rows) == 4

    first = result.rows[0]
    assert first.assignment == {"A": False, "B": False}
    assert not first.is_model and first.contribution == 0.0
    assert first.weight == pytest.approx(0.35)
    print("  PASS")


def test_weighted_model_count_uniform_matches_count():
    formula = parse_formula(EXAMPLE_FORMULAS["Exercise 1.2"])
    result = weighted_model_count(formula)
    n = len(formula.variables)
    assert result.wmc == pytest.approx(result.sat_count / 2 ** n)
    assert np.isclose(result.weight_sum, 1.0)


def test_weighted_model_count_rejects_bad_probability():
    with pytest.raises(ValueError):
        weighted_model_count(parse_formula("A"), {"A": 1.5})


def test_weighted_model_count_large_formula_has_no_table():
    names = " ∨ ".join(f"V{i}" for i in range(13))
    result = weighted_model_count(parse_formula(names))
    assert result.truncated
    assert result.rows == []
    assert result.sat_count == 2 ** 13 - 1


def test_verifier_detects_tampering():
    print("Testing verifier on a damaged tree...")
    tree = DPLLSolver(DPLLOptions(unit_propagation=False, early_stopping=False)).solve_sat(
        parse_formula("(X ∨ W) ∧ (Y ∨ Z)"))
    assert TreeVerifier(tree).verify()

    tree[1].assignment = {"X": False}
    tree[2].model_count = 5
    verifier = TreeVerifier(tree)
    assert not verifier.verify()
    assert any("changes X" in e for e in verifier.errors)
    assert any("brute force" in e or "children sum" in e for e in verifier.errors)
    with pytest.raises(InvariantViolationError):
        verifier.verify_or_raise()
    print("  PASS")


def test_collect_and_export(tmp_path):
    data = collect_trees(var_min=3, var_max=5, count=15,
                         options=DPLLOptions(unit_propagation=True, early_stopping=False),
                         mode=SolveMode.COUNTING, verify=True,
                         use_pysat_verification=False, seed=1)
    assert len(data["trees"]) == 15
    assert data["verification_failures"] == 0
    assert sum(data["verdicts"].values()) == 15
    assert all(tree["steps"][0]["model_count"] is not None for tree in data["trees"])

    export_trees(data, str(tmp_path), prefix="count_")
    with open(tmp_path / "count_stats.json") as f:
        stats = json.load(f)
    assert stats["node_counts"] == data["node_counts"]
    assert stats["mode"] == "counting"
    assert (tmp_path / "count_trees.json").exists()


def test_collect_is_reproducible():
    first = collect_trees(3, 6, 5, verify=False, use_pysat_verification=False, seed=42)
    second = collect_trees(3, 6, 5, verify=False, use_pysat_verification=False, seed=42)
    assert first["trees"] == second["trees"]


def test_default_config():
    cfg = load_config()
    options = solver_options(cfg)
    assert options == DPLLOptions(unit_propagation=True, early_stopping=True)
    assert solve_mode(cfg) is SolveMode.DECISION
    assert cfg.parser.strict is True


def test_config_overrides():
    cfg = load_config(overrides=["solver.early_stopping=false", "solver.mode=counting"])
    assert solver_options(cfg).early_stopping is False
    assert solve_mode(cfg) is SolveMode.COUNTING


def test_config_validation(tmp_path):
    with pytest.raises(ValidationError):
        load_config(overrides=["solver.unit_propagation=maybe"])
    with pytest.raises(ValueError):
        load_config(overrides=["solver.mode=fastest"])
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))


def test_config_file(tmp_path):
    path = tmp_path / "run.yaml"
    path.write_text("solver:\n  unit_propagation: false\n")
    cfg = load_config(str(path))
    assert solver_options(cfg) == DPLLOptions(unit_propagation=False, early_stopping=True)


def main():
    """Run all tests."""
    import tempfile
    from pathlib import Path

    print("=" * 50)
    print("Counting, Verification and Config Tests")
    print("=" * 50)

    failed = 0
    for name, test in sorted(globals().items()):
        if not name.startswith("test_"):
            continue
        try:
            if "tmp_path" in test.__code__.co_varnames[:test.__code__.co_argcount]:
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
