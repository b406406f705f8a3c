"""
Model counting (#SAT) over a step tree, and truth-table based (weighted)
model counting used to check it.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .cnf import Formula, Verdict, WMCResult, WMCRow
from .errors import IncompleteTreeError
from .simplify import count_unassigned

logger = logging.getLogger(__name__)


# Truth tables with more variables are not tabulated row by row
MAX_TABLE_VARS = 12
# Hard cap on enumerated variables; 2^20 rows
MAX_ENUM_VARS = 20
DEFAULT_PROBABILITY = 0.5


def compute_model_counts(tree) -> int:
    """
    Annotate every step with the number of models extending its assignment.

    Post-order, each step visited once:
    - SAT leaf: 2^u, u = variables of the original formula unassigned there
    - UNSAT leaf: 0
    - inner step: sum over its children

    Only `model_count` (and the explanation of SAT leaves) is written.

    Returns:
        The model count of the root.

    Raises:
        IncompleteTreeError: If early stopping skipped a false branch.
    """
    if tree.pruned:
        raise IncompleteTreeError(tree.pruned)

    all_variables = tree.formula.variables
    visited = set()

    # Iterative post-order: children are finished before their parent
    stack: List[Tuple[int, bool]] = [(tree.root_id, False)]
    while stack:
        step_id, expanded = stack.pop()
        step = tree[step_id]
        if step_id in visited:
            continue

        if step.is_leaf:
            visited.add(step_id)
            if step.verdict is Verdict.SAT:
                n = count_unassigned(all_variables, step.assignment)
                if step.model_count is None:
                    step.explanation += f" ({n} unassigned vars → 2^{n} = {2 ** n} models)"
                step.model_count = 2 ** n
            else:
                step.model_count = 0
            continue

        if not expanded:
            stack.append((step_id, True))
            for child_id in reversed(step.children):
                stack.append((child_id, False))
        else:
            visited.add(step_id)
            step.model_count = sum(tree[child_id].model_count for child_id in step.children)

    logger.debug("Model count of root: %d over %d variables", tree.root.model_count, len(all_variables))
    return tree.root.model_count


def enumerate_assignments(variables: Sequence[str]) -> np.ndarray:
    """
    All total assignments as a boolean matrix of shape (2^n, n).

    Row r assigns variables[i] the i-th most significant bit of r, so the
    first row is all False and the last all True.
    """
    n = len(variables)
    if n > MAX_ENUM_VARS:
        raise ValueError(f"Refusing to enumerate 2^{n} assignments (limit 2^{MAX_ENUM_VARS})")
    rows = np.arange(2 ** n, dtype=np.int64)[:, None]
    shifts = np.arange(n - 1, -1, -1, dtype=np.int64)[None, :]
    return ((rows >> shifts) & 1).astype(bool)


def evaluate_table(formula: Formula, variables: Sequence[str], table: np.ndarray) -> np.ndarray:
    """Evaluate the formula on every row of a truth table; returns a boolean vector."""
    column = {var: i for i, var in enumerate(variables)}
    result = np.ones(table.shape[0], dtype=bool)
    for clause in formula.clauses:
        satisfied = np.zeros(table.shape[0], dtype=bool)
        for lit in clause.literals:
            values = table[:, column[lit.variable]]
            satisfied |= ~values if lit.negated else values
        result &= satisfied
    return result


def brute_force_count(formula: Formula) -> int:
    """Number of total assignments over all formula variables that satisfy it."""
    variables = formula.sorted_variables()
    table = enumerate_assignments(variables)
    return int(evaluate_table(formula, variables, table).sum())


def brute_force_satisfiable(formula: Formula) -> bool:
    return brute_force_count(formula) > 0


def _num_str(x: float) -> str:
    text = f"{x:.4f}".rstrip('0').rstrip('.')
    return text or "0"


def weight_of_assignment(assignment: Mapping[str, bool],
                         probabilities: Mapping[str, float]) -> Tuple[float, str, str]:
    """
    Weight of a total assignment: product of p(v) for true and 1 - p(v) for
    false variables.

    Returns (weight, symbolic expression, numeric expression), e.g.
    (0.12, 'p(A)·(1-p(B))', '0.4·0.3').
    """
    factors = []
    symbols = []
    for var, value in sorted(assignment.items()):
        p = probabilities.get(var, DEFAULT_PROBABILITY)
        factors.append(p if value else 1 - p)
        symbols.append(f"p({var})" if value else f"(1-p({var}))")
    weight = float(np.prod(factors)) if factors else 1.0
    return weight, '·'.join(symbols), '·'.join(_num_str(f) for f in factors)


def weighted_model_count(formula: Formula,
                         probabilities: Optional[Mapping[str, float]] = None) -> WMCResult:
    """
    Weighted model count by enumeration.

    Variables without a probability get 0.5. Rows are only kept when the
    formula has at most MAX_TABLE_VARS variables; beyond that only the totals
    are computed and `truncated` is set. More than MAX_ENUM_VARS variables
    raise ValueError.
    """
    variables = formula.sorted_variables()
    probs: Dict[str, float] = {
        var: float((probabilities or {}).get(var, DEFAULT_PROBABILITY)) for var in variables
    }
    for var, p in probs.items():
        if not 0.0 <= p <= 1.0:
            raise ValueError(f"Probability of {var} must lie in [0, 1], got {p}")

    show_table = len(variables) <= MAX_TABLE_VARS
    if not show_table:
        logger.info("Formula has %d variables, computing WMC totals without a table", len(variables))

    table = enumerate_assignments(variables)
    models = evaluate_table(formula, variables, table)

    p = np.array([probs[var] for var in variables], dtype=float)
    weights = np.where(table, p[None, :], 1.0 - p[None, :]).prod(axis=1) if variables else np.ones(1)

    result = WMCResult(variables=variables, probabilities=probs)
    result.wmc = float(weights[models].sum())
    result.sat_count = int(models.sum())
    result.weight_sum = float(weights.sum())
    result.truncated = not show_table

    if show_table:
        for row, is_model, weight in zip(table, models, weights):
            assignment = {var: bool(v) for var, v in zip(variables, row)}
            _, symbolic, numeric = weight_of_assignment(assignment, probs)
            result.rows.append(WMCRow(
                assignment=assignment,
                is_model=bool(is_model),
                weight=float(weight),
                contribution=float(weight) if is_model else 0.0,
                symbolic=symbolic,
                numeric=numeric,
            ))
    return result
