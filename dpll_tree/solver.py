"""
DPLL SAT solver that records its search as a step tree.

Every decision, propagation and verdict becomes a Step so the search can be
replayed one step at a time. The tree is built by a single recursive,
depth-first run:

- split children are created true branch first, false branch second
- all unit clauses of one pass are applied together as one propagation step
- with early stopping, a SAT true branch ends the split and the false
  branch is never created

Each creation and each later resolution takes the next number of a counter
owned by that run, so a replay can show the tree as it was after any event.
"""

import logging
from dataclasses import replace
from typing import Callable, Dict, Optional

from .cnf import (
    Assignment, DPLLOptions, Formula, Result, SolveMode, Split,
    UnitPropagation, Verdict
)
from .counting import compute_model_counts
from .format import fmt_binding, fmt_bindings, fmt_bit, fmt_formula
from .simplify import apply_assignment, has_empty_clause, is_satisfied, unit_clauses
from .tree import Step, StepTree

logger = logging.getLogger(__name__)

VariableChooser = Callable[[Formula, Assignment], Optional[str]]


def first_unassigned_variable(formula: Formula, assignment: Assignment) -> Optional[str]:
    """First variable without a value, in clause order then literal order."""
    for clause in formula.clauses:
        for lit in clause.literals:
            if lit.variable not in assignment:
                return lit.variable
    return None


def _decided(formula: Formula) -> Optional[Verdict]:
    if is_satisfied(formula):
        return Verdict.SAT
    if has_empty_clause(formula):
        return Verdict.UNSAT
    return None


class _SolveContext:
    """Tree and event counter of a single solver run."""

    def __init__(self, tree: StepTree):
        self.tree = tree
        self.options = tree.options
        self.events = 0

    def next_event(self) -> int:
        self.events += 1
        return self.events


class DPLLSolver:
    """
    DPLL solver producing a StepTree.

    Args:
        options: Unit propagation and early stopping switches.
        choose_variable: Branching heuristic; defaults to the first unassigned
            variable in clause order.
    """

    def __init__(self, options: Optional[DPLLOptions] = None,
                 choose_variable: Optional[VariableChooser] = None):
        self.options = options or DPLLOptions()
        self.choose_variable = choose_variable or first_unassigned_variable

    # -------- public API --------

    def solve(self, formula: Formula) -> StepTree:
        """Decide satisfiability, stopping at the first witness if early stopping is on."""
        return self._build(formula, self.options, SolveMode.DECISION,
                           "Starting DPLL algorithm with initial formula")

    def solve_sat(self, formula: Formula) -> StepTree:
        """Explore every branch and annotate each step with its model count."""
        options = replace(self.options, early_stopping=False)
        tree = self._build(formula, options, SolveMode.COUNTING,
                           "Starting #SAT algorithm for model counting")
        compute_model_counts(tree)
        return tree

    def run(self, formula: Formula, mode: SolveMode = SolveMode.DECISION) -> StepTree:
        if mode is SolveMode.COUNTING:
            return self.solve_sat(formula)
        return self.solve(formula)

    def compute_model_counts_in_place(self, tree: StepTree) -> StepTree:
        """Count models on a tree from `solve`; it must not have been pruned."""
        compute_model_counts(tree)
        return tree

    # -------- core DPLL --------

    def _build(self, formula: Formula, options: DPLLOptions, mode: SolveMode,
               explanation: str) -> StepTree:
        tree = StepTree(formula, options, mode)
        ctx = _SolveContext(tree)

        root = tree.add_step(
            None,
            detail=None,
            formula=formula,
            input_formula=formula,
            assignment={},
            explanation=explanation,
            created_at=ctx.next_event(),
        )
        tree.root_id = root.id

        verdict = self._dpll(ctx, {}, root.id)
        self._resolve(ctx, root.id, verdict)

        logger.debug(
            "Solved %s: %s in %d steps, %d events (unit_propagation=%s, early_stopping=%s)",
            fmt_formula(formula) or "empty formula", verdict.value, len(tree), ctx.events,
            options.unit_propagation, options.early_stopping,
        )
        return tree

    def _dpll(self, ctx: _SolveContext, assignment: Assignment, parent_id: int) -> Verdict:
        """
        Search below `parent_id` under `assignment`.

        Returns the verdict of the parent; the caller records it.
        """
        simplified = apply_assignment(ctx.tree.formula, assignment)

        if is_satisfied(simplified):
            return self._result(ctx, parent_id, simplified, assignment, Verdict.SAT,
                                "All clauses satisfied - formula is SAT")

        if has_empty_clause(simplified):
            return self._result(ctx, parent_id, simplified, assignment, Verdict.UNSAT,
                                "Empty clause found - formula is UNSAT")

        if ctx.options.unit_propagation:
            units = unit_clauses(simplified)
            if units:
                return self._propagate(ctx, simplified, assignment, parent_id, units)

        variable = self.choose_variable(simplified, assignment)
        if variable is None:
            # Simplification leaves only unassigned variables, so this means a bug upstream
            logger.warning(
                "Invariant violation: clauses %s remain but every variable is assigned in %s",
                fmt_formula(simplified), assignment,
            )
            return self._result(ctx, parent_id, simplified, assignment, Verdict.SAT,
                                "No unassigned variables found")

        true_verdict = self._split(ctx, simplified, assignment, parent_id, variable, True)
        if true_verdict is Verdict.SAT and ctx.options.early_stopping:
            ctx.tree.pruned.append(parent_id)
            return Verdict.SAT

        false_verdict = self._split(ctx, simplified, assignment, parent_id, variable, False)
        if Verdict.SAT in (true_verdict, false_verdict):
            return Verdict.SAT
        return Verdict.UNSAT

    def _propagate(self, ctx: _SolveContext, simplified: Formula, assignment: Assignment,
                   parent_id: int, units) -> Verdict:
        forced: Dict[str, bool] = {}
        for clause in units:
            lit = clause.literals[0]
            if lit.variable in forced and forced[lit.variable] != lit.value:
                var = lit.variable
                return self._result(
                    ctx, parent_id, simplified, assignment, Verdict.UNSAT,
                    f"Conflicting unit clauses ({var} and ¬{var}) ⇒ UNSAT",
                    edge_label=f"{var} conflict", conflict=var,
                )
            forced[lit.variable] = lit.value

        for var, value in forced.items():
            if var in assignment and assignment[var] != value:
                return self._result(
                    ctx, parent_id, simplified, assignment, Verdict.UNSAT,
                    f"Unit clause forces {var} = {fmt_bit(value)} but {var} = "
                    f"{fmt_bit(assignment[var])} already ⇒ UNSAT",
                    edge_label=f"{var} conflict", conflict=var,
                )

        bindings = tuple(forced.items())
        new_assignment = {**assignment, **forced}
        after = apply_assignment(ctx.tree.formula, new_assignment)

        step = ctx.tree.add_step(
            parent_id,
            detail=UnitPropagation(tuple(units), bindings),
            formula=after,
            input_formula=simplified,
            assignment=new_assignment,
            delta=tuple(sorted(bindings)),
            explanation=f"Unit propagation: {fmt_bindings(bindings)}",
            edge_label=fmt_bindings(bindings),
            created_at=ctx.next_event(),
        )

        decided = _decided(after)
        if decided is not None:
            return self._decide_at_creation(ctx, step, decided)

        verdict = self._dpll(ctx, new_assignment, step.id)
        self._resolve(ctx, step.id, verdict)
        return verdict

    def _split(self, ctx: _SolveContext, simplified: Formula, assignment: Assignment,
               parent_id: int, variable: str, value: bool) -> Verdict:
        new_assignment = {**assignment, variable: value}
        after = apply_assignment(ctx.tree.formula, new_assignment)

        step = ctx.tree.add_step(
            parent_id,
            detail=Split(variable, value),
            formula=after,
            input_formula=simplified,
            assignment=new_assignment,
            delta=((variable, value),),
            explanation=f"Split: trying {fmt_binding(variable, value)}",
            edge_label=fmt_binding(variable, value),
            created_at=ctx.next_event(),
        )

        decided = _decided(after)
        if decided is not None:
            return self._decide_at_creation(ctx, step, decided)

        verdict = self._dpll(ctx, new_assignment, step.id)
        self._resolve(ctx, step.id, verdict)
        return verdict

    def _result(self, ctx: _SolveContext, parent_id: int, simplified: Formula,
                assignment: Assignment, verdict: Verdict, explanation: str,
                edge_label: Optional[str] = None, conflict: Optional[str] = None) -> Verdict:
        event = ctx.next_event()
        ctx.tree.add_step(
            parent_id,
            detail=Result(verdict, conflict),
            formula=simplified,
            input_formula=simplified,
            assignment=dict(assignment),
            explanation=explanation,
            edge_label=edge_label,
            created_at=event,
            verdict=verdict,
            resolved_at=event,
        )
        if verdict is Verdict.SAT:
            self._bubble_sat(ctx, parent_id)
        return verdict

    # -------- verdict bookkeeping --------

    def _decide_at_creation(self, ctx: _SolveContext, step: Step, verdict: Verdict) -> Verdict:
        """
        Resolve a step whose own bindings settle its branch.

        A propagation step resolves in its creation event; a split takes the
        next event, so it shows as undecided for one event after it appears.
        """
        event = ctx.next_event() if isinstance(step.detail, Split) else step.created_at
        ctx.tree.resolve(step.id, verdict, event)
        if verdict is Verdict.SAT:
            self._bubble_sat(ctx, step.parent)
        return verdict

    def _resolve(self, ctx: _SolveContext, step_id: int, verdict: Verdict) -> None:
        """Record the verdict of a finished step, unless a SAT descendant already did."""
        if ctx.tree[step_id].is_resolved:
            ctx.tree.resolve(step_id, verdict, ctx.events)
            return
        ctx.tree.resolve(step_id, verdict, ctx.next_event())
        if verdict is Verdict.SAT:
            self._bubble_sat(ctx, ctx.tree[step_id].parent)

    def _bubble_sat(self, ctx: _SolveContext, step_id: Optional[int]) -> None:
        """Any SAT child makes a step SAT: resolve unresolved ancestors up to the root."""
        while step_id is not None:
            step = ctx.tree[step_id]
            if step.is_resolved:
                break
            ctx.tree.resolve(step_id, Verdict.SAT, ctx.next_event())
            step_id = step.parent
