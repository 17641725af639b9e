"""
vikos Teacher State
====================
State that changes during training but is not part of the model's
expertise: how many events a teacher has seen, the velocity of the
coefficients, accumulated squared gradients.

Each teacher owns one state record, created together with the teacher
and advanced by every taught event. Records convert field-for-field to
plain dicts (``to_dict`` / ``from_dict``) and to flat numpy tensors
(``to_tensors`` / ``from_tensors``) so a run can be checkpointed and
resumed without losing optimizer momentum.

    Record          Fields                          Used by
    TeacherState    num_events                      GradientDescent, GradientDescentAl
    MomentumState   num_events, velocity            Momentum, Nesterov
    AdagradState    num_events, squared_gradients   Adagrad
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import ClassVar, Optional

import numpy as np

from vikos.errors import DimensionMismatch


@dataclass
class TeacherState:
    """
    Parameters
    ----------
    num_events : int
        Number of events taught so far. Drives learning-rate annealing.
    """

    num_events: int = 0

    # Fields holding one entry per model coefficient. Allocated lazily
    # because the coefficient count is only known once a model is taught.
    array_fields: ClassVar[tuple[str, ...]] = ()

    def allocate(self, num_coefficients: int) -> None:
        """Size per-coefficient arrays for a model, or check their size."""
        for name in self.array_fields:
            current = getattr(self, name)
            if current is None:
                setattr(self, name, np.zeros(num_coefficients))
            elif current.shape[0] != num_coefficients:
                raise DimensionMismatch(
                    current.shape[0], num_coefficients, f"teacher state '{name}'"
                )

    def copy(self) -> TeacherState:
        return type(self).from_dict(self.to_dict())

    def to_dict(self) -> dict:
        """Field-for-field copy of the state."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = value.copy() if isinstance(value, np.ndarray) else value
        return result

    @classmethod
    def from_dict(cls, data: dict) -> TeacherState:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise KeyError(f"unknown {cls.__name__} fields: {sorted(unknown)}")
        state = cls()
        for name, value in data.items():
            if name in cls.array_fields:
                value = None if value is None else np.array(value, dtype=np.float64)
            else:
                value = int(value)
            setattr(state, name, value)
        return state

    def to_tensors(self) -> dict[str, np.ndarray]:
        """
        Numpy arrays suitable for a safetensors file.

        Counters are stored as one-element int64 arrays. Arrays that have
        not been allocated yet are left out.
        """
        tensors = {}
        for name, value in self.to_dict().items():
            if value is None:
                continue
            if name in self.array_fields:
                tensors[name] = np.ascontiguousarray(value, dtype=np.float64)
            else:
                tensors[name] = np.array([value], dtype=np.int64)
        return tensors

    @classmethod
    def from_tensors(cls, tensors: dict[str, np.ndarray]) -> TeacherState:
        data = {}
        for name, value in tensors.items():
            data[name] = value if name in cls.array_fields else int(value[0])
        return cls.from_dict(data)


@dataclass
class MomentumState(TeacherState):
    """Adds the velocity of each coefficient."""

    velocity: Optional[np.ndarray] = None

    array_fields: ClassVar[tuple[str, ...]] = ("velocity",)


@dataclass
class AdagradState(TeacherState):
    """Adds the running sum of squared gradients of each coefficient."""

    squared_gradients: Optional[np.ndarray] = None

    array_fields: ClassVar[tuple[str, ...]] = ("squared_gradients",)
