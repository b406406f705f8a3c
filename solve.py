#!/usr/bin/env python3
"""
Solve one formula and print its DPLL step tree.

Usage:
    python solve.py "(x ∨ w) ∧ (y ∨ z)"
    python solve.py --example "Exercise 1.1" --replay
    python solve.py "A & !A" --set solver.unit_propagation=false
    python solve.py "(A | B) & C" --mode counting --json tree.json
    python solve.py "(A | B) & C" --wmc --prob A=0.3 --prob B=0.9
"""

import argparse
import logging
import sys

from dpll_tree import (
    EXAMPLE_FORMULAS,
    DPLLSolver,
    MalformedFormulaError,
    Replay,
    SolveMode,
    fmt_assignment,
    fmt_formula,
    fmt_step,
    fmt_verdict,
    load_config,
    parse_formula,
    solve_mode,
    solver_options,
    traversal_order,
    weighted_model_count,
)

logger = logging.getLogger(__name__)


def parse_probability(text: str):
    name, sep, value = text.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected VAR=P, got {text!r}")
    try:
        return name.strip(), float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"probability of {name} is not a number: {value!r}") from None


def print_tree(tree):
    for step_id in traversal_order(tree):
        step = tree[step_id]
        print(fmt_step(step, depth=tree.depth(step_id), model_count=step.model_count))


def print_replay(tree):
    replay = Replay(tree)
    while True:
        if replay.finished:
            print(f"\n--- finished: {fmt_verdict(tree.verdict, tree.model_count)} ---")
            break
        current = tree[replay.current]
        print(f"\n--- step {replay.index + 1}/{len(replay.order) - 1}: {current.explanation} ---")
        for step_id in replay.visible():
            verdict, count = replay.display(step_id)
            marker = ">" if step_id == replay.current else " "
            print(marker + fmt_step(tree[step_id], depth=tree.depth(step_id),
                                    verdict=verdict, model_count=count))
        replay.next()


def print_wmc(formula, probabilities):
    result = weighted_model_count(formula, probabilities)
    probs = ", ".join(f"p({var})={p}" for var, p in result.probabilities.items())
    print(f"Probabilities: {probs}")
    for row in result.rows:
        mark = "✓" if row.is_model else " "
        print(f"  {mark} {fmt_assignment(row.assignment)}  {row.symbolic} = {row.numeric} = {row.weight:.4f}")
    if result.truncated:
        print("  (truth table not shown, too many variables)")
    print(f"#SAT = {result.sat_count}, WMC = {result.wmc:.6f}, total weight = {result.weight_sum:.6f}")


def main():
    parser = argparse.ArgumentParser(description="Solve a CNF formula with DPLL and show the search tree")
    parser.add_argument(
        "formula",
        nargs="?",
        default=None,
        help="Formula text, e.g. '(A ∨ ¬B) ∧ C'"
    )
    parser.add_argument(
        "--example",
        choices=sorted(EXAMPLE_FORMULAS),
        help="Use one of the built-in example formulas"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Config file (default: configs/default.yaml)"
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in SolveMode],
        help="decision (stop at first witness) or counting (#SAT)"
    )
    parser.add_argument(
        "--replay",
        action="store_true",
        help="Print the tree as it grows, one step at a time"
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Drop tokens that are not literals instead of failing"
    )
    parser.add_argument(
        "--wmc",
        action="store_true",
        help="Also print the weighted model count truth table"
    )
    parser.add_argument(
        "--prob",
        type=parse_probability,
        action="append",
        default=[],
        metavar="VAR=P",
        help="Probability of a variable being true (default 0.5)"
    )
    parser.add_argument(
        "--json",
        type=str,
        default=None,
        help="Write the tree to this JSON file"
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Config override, e.g. --set solver.early_stopping=false"
    )

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    overrides = list(args.overrides)
    if args.mode:
        overrides.append(f"solver.mode={args.mode}")
    if args.lenient:
        overrides.append("parser.strict=false")
    cfg = load_config(args.config, overrides)

    if args.example:
        text = EXAMPLE_FORMULAS[args.example]
    elif args.formula is not None:
        text = args.formula
    else:
        parser.error("give a formula or --example")

    try:
        formula = parse_formula(text, strict=cfg.parser.strict)
    except MalformedFormulaError as e:
        logger.error("%s", e)
        return 2

    options = solver_options(cfg)
    mode = solve_mode(cfg)
    tree = DPLLSolver(options).run(formula, mode)

    print(f"Formula: {fmt_formula(formula) or '(no clauses)'}")
    print(f"Variables: {', '.join(formula.sorted_variables())}")
    print(f"Mode: {mode.value}, unit propagation: {options.unit_propagation}, "
          f"early stopping: {options.early_stopping}")

    if args.replay:
        print_replay(tree)
    else:
        print()
        print_tree(tree)
        print(f"\nResult: {fmt_verdict(tree.verdict, tree.model_count)} in {len(tree)} steps")

    witness = tree.witness()
    if witness is not None:
        print(f"Witness: {fmt_assignment(witness)}")

    if args.wmc:
        print()
        print_wmc(formula, dict(args.prob))

    if args.json:
        tree.save(args.json)
        logger.info("Saved tree to %s", args.json)

    return 0


if __name__ == "__main__":
    sys.exit(main())
