"""
DPLL Step Tree Package

This package provides a DPLL / #SAT solver that records its whole search
as a step tree, plus tools for parsing formulas, counting models,
replaying the search step by step and verifying the recorded trees.
"""

from .cnf import (
    Literal, Clause, Formula, Assignment, Verdict, StepKind, SolveMode,
    Split, UnitPropagation, Result, DPLLOptions, WMCResult, WMCRow
)
from .parser import parse_formula, FormulaParser
from .format import (
    fmt_literal, fmt_clause, fmt_clause_list, fmt_formula,
    fmt_assignment, fmt_binding, fmt_bindings, fmt_verdict, fmt_step
)
from .simplify import (
    apply_assignment, is_satisfied, has_empty_clause, unit_clauses,
    evaluate, assignment_delta, clause_effect
)
from .solver import DPLLSolver, first_unassigned_variable
from .counting import (
    compute_model_counts, enumerate_assignments, brute_force_count,
    weight_of_assignment, weighted_model_count
)

# Tree and replay
from .tree import (
    Step, StepTree, Replay, traversal_order, next_step, previous_step,
    step_position, creation_order, visible_steps, displayed_verdict,
    displayed_model_count
)

# Formulas, verification and batch runs
from .formula import EXAMPLE_FORMULAS, generate_random_formula
from .verifier import TreeVerifier, verify_solver_tree
from .collector import collect_trees, export_trees
from .config import load_config, solver_options, solve_mode
from .errors import (
    MalformedFormulaError, StepNotFoundError, IncompleteTreeError,
    InvariantViolationError
)

__all__ = [
    # Formula model
    'Literal',
    'Clause',
    'Formula',
    'Assignment',
    'Verdict',
    'StepKind',
    'SolveMode',
    'Split',
    'UnitPropagation',
    'Result',
    'DPLLOptions',
    'WMCResult',
    'WMCRow',

    # Parsing and formatting
    'parse_formula',
    'FormulaParser',
    'fmt_literal',
    'fmt_clause',
    'fmt_clause_list',
    'fmt_formula',
    'fmt_assignment',
    'fmt_binding',
    'fmt_bindings',
    'fmt_verdict',
    'fmt_step',

    # Simplification
    'apply_assignment',
    'is_satisfied',
    'has_empty_clause',
    'unit_clauses',
    'evaluate',
    'assignment_delta',
    'clause_effect',

    # Solver
    'DPLLSolver',
    'first_unassigned_variable',

    # Model counting
    'compute_model_counts',
    'enumerate_assignments',
    'brute_force_count',
    'weight_of_assignment',
    'weighted_model_count',

    # Tree and replay
    'Step',
    'StepTree',
    'Replay',
    'traversal_order',
    'next_step',
    'previous_step',
    'step_position',
    'creation_order',
    'visible_steps',
    'displayed_verdict',
    'displayed_model_count',

    # Formulas, verification and batch runs
    'EXAMPLE_FORMULAS',
    'generate_random_formula',
    'TreeVerifier',
    'verify_solver_tree',
    'collect_trees',
    'export_trees',

    # Configuration
    'load_config',
    'solver_options',
    'solve_mode',

    # Errors
    'MalformedFormulaError',
    'StepNotFoundError',
    'IncompleteTreeError',
    'InvariantViolationError',
]
