"""
Core data types: literals, clauses, formulas and the step variants
recorded in a DPLL search tree.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple


# variable -> value; copied, never mutated, when a branch extends it
Assignment = Dict[str, bool]


@dataclass(frozen=True)
class Literal:
    """A variable or its negation."""
    variable: str
    negated: bool = False

    @property
    def value(self) -> bool:
        """The value of the variable that makes this literal true."""
        return not self.negated

    def is_true_under(self, value: bool) -> bool:
        return value != self.negated


@dataclass(frozen=True)
class Clause:
    """Disjunction of literals. The empty clause is a contradiction."""
    literals: Tuple[Literal, ...] = ()

    @property
    def is_empty(self) -> bool:
        return len(self.literals) == 0

    @property
    def is_unit(self) -> bool:
        return len(self.literals) == 1

    def variables(self) -> List[str]:
        return [lit.variable for lit in self.literals]


@dataclass(frozen=True)
class Formula:
    """
    Conjunction of clauses.

    `variables` always holds every variable of the original input, also after
    simplification removed the clauses mentioning some of them.
    """
    clauses: Tuple[Clause, ...] = ()
    variables: FrozenSet[str] = frozenset()

    @classmethod
    def from_clauses(cls, clauses: List[List[Tuple[str, bool]]]) -> "Formula":
        """Build a formula from [[(name, negated), ...], ...]."""
        built = tuple(
            Clause(tuple(Literal(name, negated) for name, negated in clause))
            for clause in clauses
        )
        names = frozenset(lit.variable for clause in built for lit in clause.literals)
        return cls(built, names)

    def sorted_variables(self) -> List[str]:
        return sorted(self.variables)

    def __len__(self) -> int:
        return len(self.clauses)


class Verdict(str, Enum):
    SAT = "SAT"
    UNSAT = "UNSAT"
    UNKNOWN = "UNKNOWN"


class StepKind(str, Enum):
    SPLIT = "split"
    UNIT_PROPAGATION = "unit-propagation"
    RESULT = "result"


class SolveMode(str, Enum):
    """DECISION reports the first witness; COUNTING explores everything and counts models."""
    DECISION = "decision"
    COUNTING = "counting"


@dataclass(frozen=True)
class Split:
    """Branch on `variable`, trying `value`."""
    variable: str
    value: bool

    kind = StepKind.SPLIT


@dataclass(frozen=True)
class UnitPropagation:
    """All unit clauses of one pass, applied together."""
    unit_clauses: Tuple[Clause, ...]
    forced: Tuple[Tuple[str, bool], ...]

    kind = StepKind.UNIT_PROPAGATION


@dataclass(frozen=True)
class Result:
    """Leaf with a verdict fixed at creation. `conflict` names the variable of a unit conflict."""
    verdict: Verdict
    conflict: Optional[str] = None

    kind = StepKind.RESULT


@dataclass(frozen=True)
class DPLLOptions:
    unit_propagation: bool = True
    early_stopping: bool = True


@dataclass
class WMCRow:
    """One row of a weighted truth table."""
    assignment: Assignment
    is_model: bool
    weight: float
    contribution: float
    symbolic: str = ""
    numeric: str = ""


@dataclass
class WMCResult:
    variables: List[str]
    probabilities: Dict[str, float]
    rows: List[WMCRow] = field(default_factory=list)
    wmc: float = 0.0
    sat_count: int = 0
    weight_sum: float = 0.0
    truncated: bool = False
