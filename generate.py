#!/usr/bin/env python3
"""
Run the DPLL solver over random formulas, verify every tree and export them.

Each solver configuration (unit propagation on/off, early stopping on/off,
plus counting mode) gets its own trees/stats files so tree sizes can be
compared with plot_tree_sizes.py.

Usage:
    python generate.py              # Full run using configs/default.yaml
    python generate.py --test       # Quick test with 100 formulas
    python generate.py generate.count=200 generate.var_max=8
"""

import argparse
import logging
import random
import sys

from dpll_tree import (
    DPLLOptions,
    DPLLSolver,
    SolveMode,
    collect_trees,
    export_trees,
    fmt_formula,
    fmt_step,
    generate_random_formula,
    load_config,
    traversal_order,
    verify_solver_tree,
)

logger = logging.getLogger(__name__)

# prefix -> (options, mode)
CONFIGURATIONS = {
    "up_es_": (DPLLOptions(unit_propagation=True, early_stopping=True), SolveMode.DECISION),
    "up_": (DPLLOptions(unit_propagation=True, early_stopping=False), SolveMode.DECISION),
    "es_": (DPLLOptions(unit_propagation=False, early_stopping=True), SolveMode.DECISION),
    "plain_": (DPLLOptions(unit_propagation=False, early_stopping=False), SolveMode.DECISION),
    "count_": (DPLLOptions(unit_propagation=True, early_stopping=False), SolveMode.COUNTING),
}


def main():
    parser = argparse.ArgumentParser(description="Generate and verify DPLL step trees")
    parser.add_argument(
        "--test",
        action="store_true",
        help="Quick test mode with 100 formulas"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Config file (default: configs/default.yaml)"
    )
    parser.add_argument(
        "--no-verify",
        action="store_true",
        help="Skip tree verification"
    )
    parser.add_argument(
        "--no-pysat",
        action="store_true",
        help="Skip PySAT verification"
    )
    parser.add_argument(
        "overrides",
        nargs="*",
        help="Config overrides, e.g. generate.count=200"
    )

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    cfg = load_config(args.config, args.overrides)
    verify = cfg.generate.verify and not args.no_verify

    if args.test:
        print("=== TEST MODE ===")
        return run_test(verify=verify, seed=cfg.generate.seed)

    failures = 0
    for prefix, (options, mode) in CONFIGURATIONS.items():
        print(f"=== {prefix.rstrip('_').upper()}: unit_propagation={options.unit_propagation}, "
              f"early_stopping={options.early_stopping}, mode={mode.value} ===")
        data = collect_trees(
            var_min=cfg.generate.var_min,
            var_max=cfg.generate.var_max,
            count=cfg.generate.count,
            options=options,
            mode=mode,
            verify=verify,
            use_pysat_verification=cfg.generate.use_pysat and not args.no_pysat,
            seed=cfg.generate.seed,
        )
        counts = data["node_counts"]
        print(f"  SAT: {data['verdicts']['SAT']}, UNSAT: {data['verdicts']['UNSAT']}")
        print(f"  Steps per tree: mean {sum(counts) / len(counts):.1f}, max {max(counts)}")
        failures += data["verification_failures"] + data["pysat_mismatches"]

        export_trees(data, cfg.output.dir, prefix=prefix)

    print(f"\n=== GENERATION COMPLETE ===")
    print(f"Output directory: {cfg.output.dir}")
    return 1 if failures else 0


def run_test(verify: bool = True, seed=None):
    """Run a quick test with a few formulas."""
    print("Testing solver with 100 random formulas...")
    rng = random.Random(seed)

    solved = 0
    verified = 0
    for i in range(100):
        n_vars = 3 + (i % 8)  # 3-10 variables
        formula = generate_random_formula(n_vars, rng=rng)

        for options, mode in CONFIGURATIONS.values():
            tree = DPLLSolver(options).run(formula, mode)
            if verify:
                if verify_solver_tree(tree, formula):
                    verified += 1
                else:
                    print(f"  Formula {i} ({options}, {mode.value}): Verification FAILED")
            solved += 1

    print(f"\nSolver: {solved} trees built")
    if verify:
        print(f"Verification: {verified}/{solved} trees valid")

    # Show example tree
    print("\n=== EXAMPLE TREE ===")
    formula = generate_random_formula(4, n_clauses=5, rng=rng)
    tree = DPLLSolver(DPLLOptions()).solve(formula)
    print(f"Formula: {fmt_formula(formula)}")
    for step_id in traversal_order(tree)[:15]:
        print(fmt_step(tree[step_id], depth=tree.depth(step_id)))
    if len(tree) > 15:
        print(f"  ... ({len(tree) - 15} more steps)")

    return 0 if not verify or verified == solved else 1


if __name__ == "__main__":
    sys.exit(main())
