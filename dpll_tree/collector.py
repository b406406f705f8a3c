"""
Batch runs over random formulas: solve, verify and export step trees.
"""

import json
import logging
import random
from pathlib import Path
from typing import Dict, List, Optional

from tqdm import tqdm

from .cnf import DPLLOptions, Formula, SolveMode, Verdict
from .formula import generate_random_formula
from .solver import DPLLSolver
from .verifier import TreeVerifier

logger = logging.getLogger(__name__)


def to_dimacs_clauses(formula: Formula) -> List[List[int]]:
    """Number variables 1..n in sorted order and return integer clauses."""
    index = {var: i + 1 for i, var in enumerate(formula.sorted_variables())}
    return [
        [-index[lit.variable] if lit.negated else index[lit.variable] for lit in clause.literals]
        for clause in formula.clauses
    ]


def pysat_satisfiable(formula: Formula) -> bool:
    """Decide the formula with PySAT's Glucose3."""
    from pysat.solvers import Glucose3

    g = Glucose3()
    try:
        for clause in to_dimacs_clauses(formula):
            g.add_clause(clause)
        return g.solve()
    finally:
        g.delete()


def collect_trees(
    var_min: int,
    var_max: int,
    count: int,
    options: Optional[DPLLOptions] = None,
    mode: SolveMode = SolveMode.DECISION,
    verify: bool = True,
    use_pysat_verification: bool = True,
    seed: Optional[int] = None,
) -> Dict:
    """
    Solve `count` random formulas and gather their trees and statistics.

    Args:
        var_min: Minimum number of variables.
        var_max: Maximum number of variables.
        count: Number of formulas.
        options: Solver options for every run.
        mode: DECISION or COUNTING.
        verify: Whether to run the tree verifier on each result.
        use_pysat_verification: Whether to cross-check verdicts against PySAT.
        seed: Seed for formula generation.

    Returns:
        Dictionary with trees and statistics.
    """
    options = options or DPLLOptions()
    rng = random.Random(seed)
    solver = DPLLSolver(options)

    pysat_available = False
    if use_pysat_verification:
        try:
            import pysat.solvers  # noqa: F401
            pysat_available = True
        except ImportError:
            logger.warning("PySAT not available, skipping external verification")

    trees = []
    node_counts = []
    verdicts = {Verdict.SAT.value: 0, Verdict.UNSAT.value: 0}
    verification_failures = 0
    pysat_mismatches = 0

    for _ in tqdm(range(count), desc="Solving formulas"):
        n_vars = rng.randint(var_min, var_max)
        formula = generate_random_formula(n_vars, rng=rng)

        tree = solver.run(formula, mode)
        verdicts[tree.verdict.value] += 1
        node_counts.append(len(tree))

        if pysat_available:
            expected = Verdict.SAT if pysat_satisfiable(formula) else Verdict.UNSAT
            if expected is not tree.verdict:
                pysat_mismatches += 1
                logger.error("Verdict mismatch with PySAT on %s: %s vs %s",
                             tree.to_dict()["formula"], tree.verdict.value, expected.value)

        if verify:
            verifier = TreeVerifier(tree, formula)
            if not verifier.verify():
                verification_failures += 1
                logger.warning("Tree verification failed (total: %d): %s",
                               verification_failures, "; ".join(verifier.errors[:3]))

        trees.append(tree.to_dict())

    if verify:
        logger.info("Verification complete. Total failures: %d", verification_failures)

    return {
        "trees": trees,
        "node_counts": node_counts,
        "verdicts": verdicts,
        "options": {
            "unit_propagation": options.unit_propagation,
            "early_stopping": options.early_stopping,
        },
        "mode": mode.value,
        "verification_failures": verification_failures,
        "pysat_mismatches": pysat_mismatches,
    }


def export_trees(data: Dict, output_dir: str, prefix: str = "") -> None:
    """
    Save collected trees and statistics.

    Args:
        data: Dictionary from collect_trees().
        output_dir: Output directory path.
        prefix: Prefix for filenames (e.g., "up_es_").
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    with open(output_path / f"{prefix}trees.json", 'w') as f:
        json.dump(data["trees"], f, indent=2, ensure_ascii=False)

    stats = {key: value for key, value in data.items() if key != "trees"}
    with open(output_path / f"{prefix}stats.json", 'w') as f:
        json.dump(stats, f, indent=2)

    logger.info("Saved %d trees to %s", len(data["trees"]), output_path)
