"""
Consistency checks for finished step trees.

Verifies that a tree is a faithful record of a DPLL search: verdicts agree
with brute force, assignments only grow along a path, verdicts follow the
aggregation rule and event stamps totally order the construction.
"""

from typing import List, Optional

from .cnf import Formula, Split, StepKind, Verdict
from .counting import MAX_ENUM_VARS, brute_force_count
from .errors import InvariantViolationError
from .simplify import apply_assignment, is_satisfied
from .tree import StepTree, traversal_order


class TreeVerifier:
    """
    Verifies a StepTree against its formula.

    Each check appends readable messages to `errors`; `verify` returns True
    when none were found.
    """

    def __init__(self, tree: StepTree, formula: Optional[Formula] = None):
        self.tree = tree
        self.formula = formula if formula is not None else tree.formula
        self.errors: List[str] = []

    def verify(self) -> bool:
        """Run all checks. Returns True if the tree is consistent, False otherwise."""
        self.errors = []
        if len(self.tree) == 0:
            self.errors.append("tree has no steps")
            return False

        self._verify_structure()
        self._verify_assignments()
        self._verify_verdicts()
        self._verify_events()
        self._verify_early_stopping()
        self._verify_against_brute_force()
        if self.tree.has_model_counts:
            self._verify_model_counts()
        return not self.errors

    def verify_or_raise(self) -> None:
        if not self.verify():
            raise InvariantViolationError(self.errors)

    def _verify_structure(self) -> None:
        """Single root, consistent parent/child links, every step reachable."""
        roots = [step.id for step in self.tree if step.parent is None]
        if roots != [self.tree.root_id]:
            self.errors.append(f"expected single root {self.tree.root_id}, found {roots}")

        for step in self.tree:
            for child_id in step.children:
                if self.tree[child_id].parent != step.id:
                    self.errors.append(f"step {child_id} listed under {step.id} but has parent "
                                       f"{self.tree[child_id].parent}")
            if step.kind is StepKind.SPLIT and len(step.children) > 2:
                self.errors.append(f"split step {step.id} has {len(step.children)} children")
            if step.kind is not StepKind.SPLIT and len(step.children) > 1:
                self.errors.append(f"{step.kind.value} step {step.id} has {len(step.children)} children")
            if step.kind is StepKind.RESULT and step.children:
                self.errors.append(f"result step {step.id} has children")

        order = traversal_order(self.tree)
        if sorted(order) != list(range(len(self.tree))):
            self.errors.append(f"traversal reaches {len(order)} of {len(self.tree)} steps")

    def _verify_assignments(self) -> None:
        """A child keeps every binding of its parent and only adds its own delta."""
        for step in self.tree:
            if step.parent is None:
                continue
            parent = self.tree[step.parent]
            for var, value in parent.assignment.items():
                if step.assignment.get(var) != value:
                    self.errors.append(
                        f"step {step.id} changes {var} from {value} to {step.assignment.get(var)}"
                    )
            added = {var: value for var, value in step.assignment.items() if var not in parent.assignment}
            if added != dict(step.delta):
                self.errors.append(f"step {step.id} adds {added} but records delta {dict(step.delta)}")
            expected = apply_assignment(self.formula, step.assignment)
            if expected != step.formula:
                self.errors.append(f"step {step.id} formula does not match its assignment")

    def _verify_verdicts(self) -> None:
        for step in self.tree:
            if not step.is_resolved:
                self.errors.append(f"step {step.id} is unresolved in a finished tree")
                continue

            if step.is_leaf:
                if step.verdict is Verdict.SAT and not is_satisfied(step.formula):
                    self.errors.append(f"SAT leaf {step.id} leaves clauses unsatisfied")
                if step.kind is StepKind.RESULT and step.resolved_at != step.created_at:
                    self.errors.append(f"result step {step.id} was not decided at creation")
                if isinstance(step.detail, Split) and step.resolved_at == step.created_at:
                    self.errors.append(f"split step {step.id} resolved in its creation event")
                continue

            child_verdicts = [self.tree[c].verdict for c in step.children]
            if Verdict.SAT in child_verdicts:
                expected = Verdict.SAT
            elif all(v is Verdict.UNSAT for v in child_verdicts):
                expected = Verdict.UNSAT
            else:
                expected = Verdict.UNKNOWN
            if step.verdict is not expected:
                self.errors.append(
                    f"step {step.id} is {step.verdict.value} but its children give {expected.value}"
                )

    def _verify_events(self) -> None:
        """Creation stamps are unique, children are created after parents, resolution never precedes creation."""
        stamps = []
        for step in self.tree:
            stamps.append(step.created_at)
            if step.resolved_at is not None:
                if step.resolved_at < step.created_at:
                    self.errors.append(f"step {step.id} resolved before it was created")
                if step.resolved_at != step.created_at:
                    stamps.append(step.resolved_at)
            if step.parent is not None and step.created_at <= self.tree[step.parent].created_at:
                self.errors.append(f"step {step.id} created before its parent")
        if len(stamps) != len(set(stamps)):
            self.errors.append("event stamps are not unique")

    def _verify_early_stopping(self) -> None:
        early = self.tree.options.early_stopping
        if self.tree.pruned and not early:
            self.errors.append("false branches were skipped without early stopping")

        for step in self.tree:
            splits = [self.tree[c] for c in step.children if isinstance(self.tree[c].detail, Split)]
            if not splits:
                continue
            first = splits[0]
            if first.detail.value is not True:
                self.errors.append(f"step {step.id} explores the false branch first")
            stopped = early and first.verdict is Verdict.SAT
            if stopped and len(splits) != 1:
                self.errors.append(f"step {step.id} explored the false branch after a SAT true branch")
            if not stopped and len(splits) != 2:
                self.errors.append(f"step {step.id} has {len(splits)} split children")
            if stopped != (step.id in self.tree.pruned):
                self.errors.append(f"step {step.id} pruning not recorded consistently")

    def _verify_against_brute_force(self) -> None:
        if len(self.formula.variables) > MAX_ENUM_VARS:
            return
        satisfiable = brute_force_count(self.formula) > 0
        expected = Verdict.SAT if satisfiable else Verdict.UNSAT
        if self.tree.verdict is not expected:
            self.errors.append(f"root verdict {self.tree.verdict.value}, brute force {expected.value}")

    def _verify_model_counts(self) -> None:
        for step in self.tree:
            if step.model_count is None:
                self.errors.append(f"step {step.id} has no model count")
                return
            if step.children:
                total = sum(self.tree[c].model_count or 0 for c in step.children)
                if step.model_count != total:
                    self.errors.append(f"step {step.id} counts {step.model_count}, children sum {total}")
            elif step.verdict is Verdict.UNSAT and step.model_count != 0:
                self.errors.append(f"UNSAT leaf {step.id} counts {step.model_count} models")

        if len(self.formula.variables) <= MAX_ENUM_VARS:
            expected = brute_force_count(self.formula)
            if self.tree.model_count != expected:
                self.errors.append(f"root counts {self.tree.model_count} models, brute force {expected}")


def verify_solver_tree(tree: StepTree, formula: Optional[Formula] = None) -> bool:
    """
    Verify a tree returned by DPLLSolver.solve or solve_sat.

    Args:
        tree: Finished step tree.
        formula: Formula to check against; defaults to the tree's own.

    Returns:
        True if the tree is valid, False otherwise.
    """
    verifier = TreeVerifier(tree, formula)
    return verifier.verify()
