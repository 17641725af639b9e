"""
vikos Errors
=============
Exception types raised by vikos. Every error is raised eagerly at the
call site that detects it and is never retried or swallowed inside a
model or teacher.

    VikosError
      ├── DimensionMismatch      (also a ValueError)
      ├── InvalidHyperparameter  (also a ValueError)
      └── NumericDivergence      (also an ArithmeticError)
"""

from __future__ import annotations

from typing import Optional


class VikosError(Exception):
    """Base class for all vikos errors."""


class DimensionMismatch(VikosError, ValueError):
    """
    Two vectors, or a model and an input, disagree in dimension.

    Parameters
    ----------
    expected : int
        Dimension required by the left operand or the model.
    actual : int
        Dimension actually supplied.
    """

    def __init__(self, expected: int, actual: int, context: str = ""):
        self.expected = expected
        self.actual = actual
        message = f"dimension mismatch: expected {expected}, got {actual}"
        if context:
            message = f"{context}: {message}"
        super().__init__(message)


class InvalidHyperparameter(VikosError, ValueError):
    """A teacher was constructed with an out-of-range hyperparameter."""

    def __init__(self, name: str, value: float, requirement: str):
        self.name = name
        self.value = value
        super().__init__(f"{name} must be {requirement}, got {value}")


class NumericDivergence(VikosError, ArithmeticError):
    """
    A gradient or an updated coefficient became infinite or NaN.

    The model and the teacher state are left exactly as they were before
    the event that diverged, so the caller can decide whether to abort,
    lower the learning rate, or carry on.
    """

    def __init__(self, what: str, event: Optional[int] = None):
        self.what = what
        self.event = event
        where = f" at event {event}" if event is not None else ""
        super().__init__(f"non-finite {what}{where}")
