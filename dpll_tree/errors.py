"""
Custom exceptions for the DPLL step-tree engine.
"""


class MalformedFormulaError(Exception):
    """Raised when formula text cannot be parsed into CNF."""

    def __init__(self, text: str, reason: str = "", position: int = -1):
        self.text = text
        self.reason = reason
        self.position = position
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"Malformed formula: {repr(self.text)}"
        if self.position >= 0:
            msg += f"\n  Position: {self.position}"
        if self.reason:
            msg += f"\n  Reason: {self.reason}"
        return msg


class StepNotFoundError(Exception):
    """Raised when a step id does not exist in a step tree."""

    def __init__(self, step_id: int, size: int = -1):
        self.step_id = step_id
        self.size = size
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"No step with id {self.step_id}"
        if self.size >= 0:
            msg += f" (tree has {self.size} steps)"
        return msg


class IncompleteTreeError(Exception):
    """Raised when model counting is requested on a pruned (early-stopped) tree."""

    def __init__(self, pruned_ids):
        self.pruned_ids = list(pruned_ids)
        super().__init__(
            f"Tree was built with early stopping; false branches skipped under steps {self.pruned_ids}"
        )


class InvariantViolationError(Exception):
    """Raised by strict verification when a finished tree breaks a search invariant."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"{len(self.errors)} invariant violation(s):"
        for error in self.errors:
            msg += f"\n  - {error}"
        return msg
