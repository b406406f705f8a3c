"""
Formula parser for CNF input text.

Accepts ASCII and Unicode connectives and turns a formula such as
'(¬A ∨ C) ∧ (A ∨ B) ∧ ¬C' into a Formula.
"""

import logging
import re
from typing import List, Set

from .cnf import Clause, Formula, Literal
from .errors import MalformedFormulaError

logger = logging.getLogger(__name__)


AND = "&"
OR = "|"
NOT = "!"

# Connective spellings normalised to AND / OR / NOT
AND_SYMBOLS = {"∧", "^"}
OR_SYMBOLS = {"∨", "+"}
NOT_SYMBOLS = {"¬", "~", "−"}

# 'V' counts as OR only when it stands on its own between operands
STANDALONE_V_PATTERN = re.compile(r"(?:(?<=\s)|(?<=\)))V(?=\s|\()")
WHITESPACE_PATTERN = re.compile(r"\s+")
# Whitespace that separates two identifier characters, as in 'A B'
GLUED_IDENTIFIERS_PATTERN = re.compile(r"(?<=[A-Za-z0-9_])\s+(?=[A-Za-z0-9_])")
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


def normalize(text: str) -> str:
    """
    Rewrite every connective to its ASCII form and remove whitespace.

    '¬A ∨ B' -> '!A|B', 'A V B' -> 'A|B'
    """
    text = STANDALONE_V_PATTERN.sub(OR, text)
    text = WHITESPACE_PATTERN.sub("", text)
    out = []
    for c in text:
        if c in AND_SYMBOLS:
            out.append(AND)
        elif c in OR_SYMBOLS:
            out.append(OR)
        elif c in NOT_SYMBOLS:
            out.append(NOT)
        elif c == "-":
            out.append(NOT)
        else:
            out.append(c)
    return "".join(out)


def check_parentheses(text: str, original: str) -> None:
    """Raise MalformedFormulaError unless every '(' has a matching ')'."""
    depth = 0
    for i, c in enumerate(text):
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
            if depth < 0:
                raise MalformedFormulaError(original, "unmatched ')'", position=i)
    if depth != 0:
        raise MalformedFormulaError(original, f"{depth} unclosed '('", position=len(text))


def split_top_level(text: str, sep: str) -> List[str]:
    """Split on `sep` outside parentheses. A missing operand shows up as an empty piece."""
    out = []
    depth = 0
    last = 0
    for i, c in enumerate(text):
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
        elif c == sep and depth == 0:
            out.append(text[last:i])
            last = i + 1
    out.append(text[last:])
    return out


def strip_outer_parens(text: str) -> str:
    """Strip enclosing parentheses while they wrap the whole string: '((A|B))' -> 'A|B'"""
    while text.startswith("(") and text.endswith(")"):
        depth = 0
        for i, c in enumerate(text):
            if c == "(":
                depth += 1
            elif c == ")":
                depth -= 1
                if depth == 0 and i != len(text) - 1:
                    return text
        text = text[1:-1]
    return text


class FormulaParser:
    """
    Recursive CNF parser over normalised text.

    Conjunctions nested inside parentheses are flattened into the top-level
    clause list and nested disjunctions into their clause, so
    '((A|B)&C)&(D|(E|F))' yields the clauses (A∨B), C, (D∨E∨F).

    In strict mode a token that is not a possibly negated identifier, two
    identifiers separated only by whitespace, or a connective with a missing
    operand raises MalformedFormulaError. Otherwise the problem is logged as
    a warning: bad tokens are dropped, separated identifiers are joined and
    missing operands are skipped.
    """

    def __init__(self, text: str, strict: bool = True):
        self.text = text
        self.strict = strict
        self.variables: Set[str] = set()
        self.dropped: List[str] = []

    def parse(self) -> Formula:
        self._check_separated_identifiers()
        normalized = normalize(self.text)
        check_parentheses(normalized, self.text)
        if not normalized:
            return Formula()
        clauses = self._parse_conjunction(normalized)
        return Formula(tuple(clauses), frozenset(self.variables))

    def _check_separated_identifiers(self) -> None:
        text = STANDALONE_V_PATTERN.sub(OR, self.text)
        match = GLUED_IDENTIFIERS_PATTERN.search(text)
        if match is None:
            return
        if self.strict:
            raise MalformedFormulaError(
                self.text, "identifiers separated by whitespace without a connective",
                position=match.start(),
            )
        logger.warning("Joining identifiers separated by whitespace in formula %r", self.text)

    def _missing_operand(self, connective: str) -> None:
        name = "∧" if connective == AND else "∨"
        if self.strict:
            raise MalformedFormulaError(self.text, f"'{name}' is missing an operand")
        logger.warning("Skipping missing operand of '%s' in formula %r", name, self.text)

    def _parse_conjunction(self, text: str) -> List[Clause]:
        clauses = []
        for piece in split_top_level(text, AND):
            if not piece:
                self._missing_operand(AND)
                continue
            inner = strip_outer_parens(piece)
            if len(split_top_level(inner, AND)) > 1:
                clauses.extend(self._parse_conjunction(inner))
            else:
                clauses.append(Clause(tuple(self._parse_disjunction(inner))))
        return clauses

    def _parse_disjunction(self, text: str) -> List[Literal]:
        literals = []
        if not text:
            # '()'
            return literals
        for raw in split_top_level(text, OR):
            if not raw:
                self._missing_operand(OR)
                continue
            inner = strip_outer_parens(raw)
            if inner != raw and len(split_top_level(inner, OR)) > 1:
                literals.extend(self._parse_disjunction(inner))
                continue
            lit = self._parse_literal(raw)
            if lit is not None:
                literals.append(lit)
        return literals

    def _parse_literal(self, raw: str):
        negated = False
        token = raw
        while True:
            token = strip_outer_parens(token)
            if not token.startswith(NOT):
                break
            negated = not negated
            token = token[1:]

        if IDENTIFIER_PATTERN.match(token):
            self.variables.add(token)
            return Literal(token, negated)

        if AND in token or OR in token:
            reason = f"{repr(raw)} is not a literal; the formula is not in CNF"
        else:
            reason = f"{repr(raw)} is not a literal"
        if self.strict:
            raise MalformedFormulaError(self.text, reason)
        logger.warning("Dropping token %r from formula %r", raw, self.text)
        self.dropped.append(raw)
        return None


def parse_formula(text: str, strict: bool = True) -> Formula:
    """
    Parse formula text into CNF.

    Args:
        text: Formula such as '(x ∨ w) ∧ (y ∨ z)'.
        strict: Raise on tokens that are not literals instead of dropping them.

    Returns:
        The parsed Formula. Empty text gives a formula without clauses,
        '()' gives an empty clause.

    Raises:
        MalformedFormulaError: On unbalanced parentheses, or (strict) on a
            token that is not a possibly negated identifier.
    """
    return FormulaParser(text, strict=strict).parse()
