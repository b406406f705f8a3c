"""
Display formatting for formulas, assignments and search steps.

Clauses render as '(A∨¬B)', unit clauses without parentheses, the empty
clause as '□'; clauses are joined by ' ∧ '.
"""

from typing import Dict, Iterable, Optional, Tuple

from .cnf import Clause, Formula, Literal, Verdict

EMPTY_CLAUSE = "□"


def fmt_bit(value: bool) -> str:
    """Format boolean as course notation: True -> '1'"""
    return "1" if value else "0"


def fmt_literal(lit: Literal) -> str:
    """Format literal: ¬A or A"""
    return ("¬" if lit.negated else "") + lit.variable


def fmt_clause(clause: Clause) -> str:
    """
    Format clause: (A∨¬B∨C)
    Unit clause: ¬A, empty clause: □
    """
    parts = [fmt_literal(lit) for lit in clause.literals]
    if len(parts) > 1:
        return f"({'∨'.join(parts)})"
    return parts[0] if parts else EMPTY_CLAUSE


def fmt_clause_list(clauses: Iterable[Clause]) -> str:
    """Format clauses as a comma separated list: (A∨B), ¬C"""
    return ', '.join(fmt_clause(clause) for clause in clauses)


def fmt_formula(formula: Formula) -> str:
    """Format formula: (A∨B) ∧ ¬C. A formula without clauses renders as ''."""
    return ' ∧ '.join(fmt_clause(clause) for clause in formula.clauses)


def fmt_assignment(assignment: Dict[str, bool]) -> str:
    """Format assignment: {'B': False, 'A': True} -> '{A=T, B=F}'"""
    if not assignment:
        return '{}'
    parts = [f"{var}={'T' if value else 'F'}" for var, value in sorted(assignment.items())]
    return '{' + ', '.join(parts) + '}'


def fmt_binding(variable: str, value: bool) -> str:
    """Format a single binding as used for edge labels: 'A = 1'"""
    return f"{variable} = {fmt_bit(value)}"


def fmt_bindings(bindings: Iterable[Tuple[str, bool]]) -> str:
    """Format several bindings: 'A = 1, B = 0'"""
    return ', '.join(fmt_binding(var, value) for var, value in bindings)


def fmt_verdict(verdict: Verdict, model_count: Optional[int] = None) -> str:
    """Format verdict, optionally with its model count: 'SAT (12 models)'"""
    text = verdict.value
    if model_count is not None:
        noun = "model" if model_count == 1 else "models"
        text += f" ({model_count} {noun})"
    return text


def fmt_step(step, depth: int = 0, verdict: Optional[Verdict] = None,
             model_count: Optional[int] = None) -> str:
    """
    One-line description of a search step, indented by depth.

    `verdict` and `model_count` override the step's own values so that a
    replay can show a node before it is resolved.
    """
    verdict = step.verdict if verdict is None else verdict
    label = f"[{step.edge_label}] " if step.edge_label else ""
    formula = fmt_formula(step.formula) or "∅"
    line = (
        f"{'  ' * depth}#{step.id} {step.kind.value} {label}"
        f"{fmt_assignment(step.assignment)} {formula} -> {fmt_verdict(verdict, model_count)}"
    )
    return line
