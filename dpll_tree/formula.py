"""
Example formulas from the course exercises and random CNF generation.
"""

import random
import string
from typing import Dict, List, Optional

from .cnf import Clause, Formula, Literal


EXAMPLE_FORMULAS: Dict[str, str] = {
    "Example of DPLL": "(x ∨ w) ∧ (y ∨ z)",
    "Exercise 1.1": "(¬A∨C ∨¬D)∧(A∨B ∨C ∨¬D)∧(¬A∨¬E)∧¬C ∧(A∨D)∧(A∨C ∨E)∧(D ∨E)",
    "Exercise 1.2": "(E ∨ A) ∧ (B ∨ ¬A ∨ C) ∧ (E ∨ ¬D) ∧ (B ∨ ¬C) ∧ (¬B ∨ D) ∧ (¬E ∨ ¬A ∨ ¬D ∨ ¬B)",
    "Exercise 2": "(¬A ∨ ¬B ∨ ¬C) ∧ (¬A ∨ ¬B ∨ C ∨ D) ∧ (¬A ∨ B ∨ C ∨ D) ∧ (¬A ∨ ¬B ∨ C ∨ ¬D)",
}


# Empirically determined clause counts for balanced (phase transition) 3-SAT
BALANCED_CLAUSE_COUNTS = {
    3: 19, 4: 24, 5: 28, 6: 33, 7: 37, 8: 41, 9: 45, 10: 50,
    11: 54, 12: 58, 13: 63, 14: 67, 15: 71, 16: 76, 17: 79,
    18: 83, 19: 87, 20: 92
}


def variable_names(n_vars: int) -> List[str]:
    """Letter names A, B, ..., Z, then X26, X27, ..."""
    letters = string.ascii_uppercase
    return [letters[i] if i < len(letters) else f"X{i}" for i in range(n_vars)]


def generate_random_formula(
    n_vars: int,
    clause_length: int = 3,
    variance: float = 0.1,
    n_clauses: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Formula:
    """
    Generate a random k-SAT formula near the phase transition.

    Args:
        n_vars: Number of variables.
        clause_length: Number of literals per clause (default 3 for 3-SAT),
            capped at n_vars.
        variance: Relative standard deviation in clause count (e.g., 0.1 = +/-10%).
        n_clauses: Fixed number of clauses. If None, uses phase transition estimate.
        rng: Random source, for reproducible formulas.

    Returns:
        Formula over exactly the variables that occur in its clauses.
    """
    rng = rng or random.Random()
    if n_clauses is None:
        base = BALANCED_CLAUSE_COUNTS.get(n_vars, int(n_vars * 4.26))
        delta = int(base * variance)
        n_clauses = rng.randint(base - delta, base + delta)

    names = variable_names(n_vars)
    width = min(clause_length, n_vars)

    clauses = []
    for _ in range(n_clauses):
        clause_vars = rng.sample(names, width)
        clauses.append(Clause(tuple(Literal(var, rng.random() < 0.5) for var in clause_vars)))

    used = frozenset(lit.variable for clause in clauses for lit in clause.literals)
    return Formula(tuple(clauses), used)
