"""
Formula simplification under a partial assignment.
"""

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .cnf import Clause, Formula, Literal

# Statuses reported by clause_effect
SATISFIED = "satisfied"
REDUCED = "reduced"
UNCHANGED = "unchanged"
EMPTY = "empty"


def apply_assignment(formula: Formula, assignment: Mapping[str, bool]) -> Formula:
    """
    Simplify a formula under a partial assignment.

    Clauses containing a true literal are removed, false literals are removed
    from the remaining clauses. The variable set of the input is kept.
    """
    new_clauses = []
    for clause in formula.clauses:
        satisfied = False
        remaining = []
        for lit in clause.literals:
            value = assignment.get(lit.variable)
            if value is None:
                remaining.append(lit)
            elif lit.is_true_under(value):
                satisfied = True
                break
        if not satisfied:
            new_clauses.append(Clause(tuple(remaining)))
    return Formula(tuple(new_clauses), formula.variables)


def is_satisfied(formula: Formula) -> bool:
    """True when no clause is left."""
    return len(formula.clauses) == 0


def has_empty_clause(formula: Formula) -> bool:
    return any(clause.is_empty for clause in formula.clauses)


def unit_clauses(formula: Formula) -> List[Clause]:
    """Unit clauses in clause order."""
    return [clause for clause in formula.clauses if clause.is_unit]


def evaluate(formula: Formula, assignment: Mapping[str, bool]) -> bool:
    """Evaluate the formula under a total assignment; missing variables count as False."""
    return all(
        any(lit.is_true_under(assignment.get(lit.variable, False)) for lit in clause.literals)
        for clause in formula.clauses
    )


def count_unassigned(variables, assignment: Mapping[str, bool]) -> int:
    return sum(1 for var in variables if assignment.get(var) is None)


def assignment_delta(parent: Optional[Mapping[str, bool]],
                     child: Mapping[str, bool]) -> List[Tuple[str, bool]]:
    """Bindings of `child` that are new or different from `parent`, sorted by variable."""
    parent = parent or {}
    delta = [(var, value) for var, value in child.items() if parent.get(var) != value]
    return sorted(delta)


def clause_effect(clause: Clause, delta: Sequence[Tuple[str, bool]]) -> Tuple[str, Optional[Clause]]:
    """
    Classify what a set of new bindings does to one clause.

    Returns (status, clause_after) where status is one of 'satisfied',
    'reduced', 'unchanged' or 'empty'. clause_after is None for a
    satisfied clause.
    """
    bindings: Dict[str, bool] = dict(delta)
    remaining: List[Literal] = []
    for lit in clause.literals:
        if lit.variable not in bindings:
            remaining.append(lit)
        elif lit.is_true_under(bindings[lit.variable]):
            return SATISFIED, None

    after = Clause(tuple(remaining))
    if after.is_empty:
        return EMPTY, after
    if len(remaining) != len(clause.literals):
        return REDUCED, after
    return UNCHANGED, after
