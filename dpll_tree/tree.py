"""
Step tree produced by the DPLL solver, plus traversal and replay helpers.

Steps live in an append-only arena; a step id is its index. Parent and child
links are ids into the same arena. Once the solver returns, only the model
counter touches the tree again, and it only fills in `model_count`.
"""

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .cnf import (
    Assignment, DPLLOptions, Formula, Result, SolveMode, Split, StepKind,
    UnitPropagation, Verdict
)
from .errors import StepNotFoundError
from .format import fmt_assignment, fmt_clause, fmt_formula

StepDetail = Union[Split, UnitPropagation, Result, None]


@dataclass
class Step:
    """
    One moment of the search.

    Attributes:
        id: Index in the tree's arena.
        parent: Id of the parent step, None for the root.
        children: Child ids in creation order (true branch before false branch).
        detail: Split, UnitPropagation or Result; None for the root.
        formula: Formula simplified under `assignment`.
        input_formula: Formula as it was before this step's own bindings.
        assignment: Partial assignment as of this step.
        delta: Bindings this step added to its parent's assignment.
        explanation: Human readable description, informational only.
        verdict: SAT / UNSAT once resolved, UNKNOWN before.
        edge_label: Label of the edge from the parent ('A = 1', 'A conflict').
        created_at: Event number at which the step was created.
        resolved_at: Event number at which the verdict became known.
        model_count: Satisfying total assignments extending `assignment`
            (counting mode only).
    """
    id: int
    parent: Optional[int]
    detail: StepDetail
    formula: Formula
    input_formula: Formula
    assignment: Assignment
    explanation: str
    created_at: int
    delta: Tuple[Tuple[str, bool], ...] = ()
    children: List[int] = field(default_factory=list)
    verdict: Verdict = Verdict.UNKNOWN
    edge_label: Optional[str] = None
    resolved_at: Optional[int] = None
    model_count: Optional[int] = None

    @property
    def kind(self) -> StepKind:
        # The root is a split node that has not decided anything yet
        return self.detail.kind if self.detail is not None else StepKind.SPLIT

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def is_resolved(self) -> bool:
        return self.verdict is not Verdict.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "parent": self.parent,
            "children": list(self.children),
            "type": self.kind.value,
            "formula": fmt_formula(self.formula),
            "input_formula": fmt_formula(self.input_formula),
            "assignment": dict(sorted(self.assignment.items())),
            "delta": [list(binding) for binding in self.delta],
            "explanation": self.explanation,
            "result": self.verdict.value,
            "edge_label": self.edge_label,
            "created_at": self.created_at,
            "resolved_at": self.resolved_at,
            "model_count": self.model_count,
        }
        if isinstance(self.detail, Split):
            data["variable"] = self.detail.variable
            data["value"] = self.detail.value
        elif isinstance(self.detail, UnitPropagation):
            data["unit_clauses"] = [fmt_clause(c) for c in self.detail.unit_clauses]
            data["forced"] = [list(binding) for binding in self.detail.forced]
        elif isinstance(self.detail, Result) and self.detail.conflict:
            data["conflict"] = self.detail.conflict
        return data


class StepTree:
    """
    Arena of steps for one solver run.

    The tree keeps the formula and options it was built with, the solve mode
    and the ids of steps whose false branch was skipped by early stopping.
    """

    def __init__(self, formula: Formula, options: DPLLOptions,
                 mode: SolveMode = SolveMode.DECISION):
        self.formula = formula
        self.options = options
        self.mode = mode
        self.steps: List[Step] = []
        self.pruned: List[int] = []
        self.root_id = 0

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self.steps)

    def __contains__(self, step_id) -> bool:
        return isinstance(step_id, int) and 0 <= step_id < len(self.steps)

    def __getitem__(self, step_id: int) -> Step:
        if step_id not in self:
            raise StepNotFoundError(step_id, len(self.steps))
        return self.steps[step_id]

    @property
    def root(self) -> Step:
        return self[self.root_id]

    @property
    def verdict(self) -> Verdict:
        return self.root.verdict

    @property
    def model_count(self) -> Optional[int]:
        return self.root.model_count

    @property
    def has_model_counts(self) -> bool:
        return any(step.model_count is not None for step in self.steps)

    def add_step(self, parent: Optional[int], **kwargs) -> Step:
        """Append a step and link it under `parent`."""
        step = Step(id=len(self.steps), parent=parent, **kwargs)
        self.steps.append(step)
        if parent is not None:
            self[parent].children.append(step.id)
        return step

    def resolve(self, step_id: int, verdict: Verdict, event: int) -> bool:
        """
        Record the verdict of a step.

        The first resolution stamps `resolved_at`; later calls with the same
        verdict are no-ops. Returns True when this call resolved the step.
        """
        step = self[step_id]
        if step.is_resolved:
            if step.verdict is not verdict:
                raise ValueError(
                    f"Step {step_id} already resolved as {step.verdict.value}, got {verdict.value}"
                )
            return False
        step.verdict = verdict
        step.resolved_at = event
        return True

    def leaves(self) -> List[Step]:
        return [step for step in self.steps if step.is_leaf]

    def path_to_root(self, step_id: int) -> List[int]:
        """Ids from `step_id` up to and including the root."""
        path = []
        current: Optional[int] = step_id
        while current is not None:
            path.append(current)
            current = self[current].parent
        return path

    def depth(self, step_id: int) -> int:
        return len(self.path_to_root(step_id)) - 1

    def witness(self) -> Optional[Assignment]:
        """Assignment of the first SAT leaf in traversal order, if any."""
        for step_id in traversal_order(self):
            step = self[step_id]
            if step.is_leaf and step.verdict is Verdict.SAT:
                return dict(step.assignment)
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "formula": fmt_formula(self.formula),
            "variables": self.formula.sorted_variables(),
            "options": {
                "unit_propagation": self.options.unit_propagation,
                "early_stopping": self.options.early_stopping,
            },
            "mode": self.mode.value,
            "root_id": self.root_id,
            "pruned": list(self.pruned),
            "steps": [step.to_dict() for step in self.steps],
        }

    def save(self, path) -> None:
        with open(Path(path), 'w') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    def __repr__(self) -> str:
        if not self.steps:
            return "StepTree(empty)"
        return (f"StepTree({len(self.steps)} steps, {self.verdict.value}, "
                f"root assignment {fmt_assignment(self.root.assignment)})")


# -------- traversal --------

def traversal_order(tree: StepTree) -> List[int]:
    """Depth-first pre-order, children in creation order."""
    order = []
    visited = set()
    stack = [tree.root_id] if tree.steps else []
    while stack:
        step_id = stack.pop()
        if step_id in visited:
            continue
        visited.add(step_id)
        order.append(step_id)
        stack.extend(reversed(tree[step_id].children))
    return order


def next_step(tree: StepTree, current_id: int) -> Optional[int]:
    """Id after `current_id` in traversal order, None at the end or for unknown ids."""
    order = traversal_order(tree)
    if current_id not in order:
        return None
    index = order.index(current_id)
    if index == len(order) - 1:
        return None
    return order[index + 1]


def previous_step(tree: StepTree, current_id: int) -> Optional[int]:
    """Id before `current_id` in traversal order, None at the start or for unknown ids."""
    order = traversal_order(tree)
    if current_id not in order:
        return None
    index = order.index(current_id)
    if index == 0:
        return None
    return order[index - 1]


def step_position(tree: StepTree, current_id: int) -> Tuple[int, int]:
    """(1-based index, total) of `current_id` in traversal order; index 0 if unknown."""
    order = traversal_order(tree)
    index = order.index(current_id) + 1 if current_id in order else 0
    return index, len(order)


# -------- progressive reveal --------

def creation_order(tree: StepTree) -> List[int]:
    """Step ids sorted by creation event."""
    return [step.id for step in sorted(tree.steps, key=lambda s: s.created_at)]


def visible_steps(tree: StepTree, cutoff: float) -> List[int]:
    """Ids of steps that exist once `cutoff` events have happened, in traversal order."""
    return [step_id for step_id in traversal_order(tree) if tree[step_id].created_at <= cutoff]


def decision_stamp(step: Step) -> int:
    return step.resolved_at if step.resolved_at is not None else step.created_at


def displayed_verdict(step: Step, cutoff: float) -> Verdict:
    """Verdict as it looked after `cutoff` events."""
    if cutoff >= decision_stamp(step):
        return step.verdict
    return Verdict.UNKNOWN


def displayed_model_count(step: Step, cutoff: float) -> Optional[int]:
    if cutoff >= decision_stamp(step):
        return step.model_count
    return None


class Replay:
    """
    Cursor over a finished tree.

    Positions follow the traversal order plus one final position that shows
    the whole tree. At a step, the cutoff is that step's creation event.
    """

    FINISH = -1

    def __init__(self, tree: StepTree):
        self.tree = tree
        self.order = traversal_order(tree) + [self.FINISH]
        self.index = 0

    @property
    def current(self) -> int:
        return self.order[self.index]

    @property
    def finished(self) -> bool:
        return self.current == self.FINISH

    @property
    def cutoff(self) -> float:
        if self.finished:
            return math.inf
        return self.tree[self.current].created_at

    def next(self) -> bool:
        if self.index >= len(self.order) - 1:
            return False
        self.index += 1
        return True

    def previous(self) -> bool:
        if self.index <= 0:
            return False
        self.index -= 1
        return True

    def reset(self) -> None:
        self.index = 0

    def finish(self) -> None:
        self.index = len(self.order) - 1

    def visible(self) -> List[int]:
        return visible_steps(self.tree, self.cutoff)

    def display(self, step_id: int) -> Tuple[Verdict, Optional[int]]:
        """(verdict, model count) of a step as shown at the current position."""
        step = self.tree[step_id]
        return displayed_verdict(step, self.cutoff), displayed_model_count(step, self.cutoff)

    def __repr__(self) -> str:
        return f"Replay({self.index + 1}/{len(self.order)})"
