"""
vikos Model Contract
=====================
A model is a parameterized expert: it predicts a target from features
based on its internal coefficients, and it knows how its prediction
changes when each coefficient changes.

That second part is what makes models teachable without the teacher
knowing anything about them. Training combines two derivatives:

    d cost / d coefficient = (d cost / d prediction)  ×  (d prediction / d coefficient)
                             └──── Cost.outer_derivative   └──── Model.gradient

Teachers only ever see ``parameters()``, ``set_parameters()``,
``predict()`` and ``gradient()``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Union

import numpy as np

from vikos.errors import DimensionMismatch

logger = logging.getLogger(__name__)

Prediction = Union[float, np.ndarray]


def chain_rule(outer, inner: np.ndarray) -> np.ndarray:
    """
    Combine an outer derivative with a model gradient.

    Parameters
    ----------
    outer : float or np.ndarray
        Derivative of the cost with respect to the prediction. A scalar
        for scalar predictions, shape ``(n_outputs,)`` otherwise.
    inner : np.ndarray
        Derivative of the prediction with respect to the coefficients,
        shape ``(n_coefficients,)`` or ``(n_coefficients, n_outputs)``.

    Returns
    -------
    np.ndarray
        Derivative of the cost with respect to each coefficient, shape
        ``(n_coefficients,)``.
    """
    outer = np.asarray(outer, dtype=np.float64)
    inner = np.asarray(inner, dtype=np.float64)
    return np.tensordot(inner, outer, axes=outer.ndim)


class Model(ABC):
    """
    Parameterized function from features to a prediction.

    Subclasses own their coefficients exclusively. Only teachers write
    them, through ``set_parameters``.
    """

    @property
    @abstractmethod
    def num_coefficients(self) -> int:
        """Number of internal coefficients the prediction depends on."""

    @property
    def feature_dimension(self) -> Optional[int]:
        """Dimension of accepted features, or None if features are ignored."""
        return None

    @abstractmethod
    def parameters(self) -> np.ndarray:
        """Copy of the current coefficients as a flat array."""

    @abstractmethod
    def _assign(self, values: np.ndarray) -> None:
        """Store an already validated flat coefficient array."""

    @abstractmethod
    def predict(self, features) -> Prediction:
        """Predict a target for ``features`` from the current coefficients."""

    @abstractmethod
    def gradient(self, features) -> np.ndarray:
        """
        Derivative of ``predict(features)`` with respect to each coefficient.

        Returns
        -------
        np.ndarray
            Shape ``(num_coefficients,)`` for scalar predictions and
            ``(num_coefficients, n_outputs)`` for vector predictions.
        """

    def set_parameters(self, values) -> None:
        """
        Overwrite all coefficients.

        Raises
        ------
        DimensionMismatch
            If ``values`` does not hold exactly ``num_coefficients`` numbers.
        """
        values = np.asarray(values, dtype=np.float64).reshape(-1)
        if values.shape[0] != self.num_coefficients:
            raise DimensionMismatch(
                self.num_coefficients, values.shape[0], f"{type(self).__name__} coefficients"
            )
        self._assign(values)

    def state_dict(self) -> dict[str, np.ndarray]:
        return {"coefficients": np.array(self.parameters(), dtype=np.float64)}

    def load_state_dict(self, state: dict[str, np.ndarray]) -> None:
        if "coefficients" not in state:
            raise KeyError(
                f"state for {type(self).__name__} has no 'coefficients' entry"
            )
        self.set_parameters(state["coefficients"])

    def _check_features(self, actual: int) -> None:
        expected = self.feature_dimension
        if expected is not None and actual != expected:
            raise DimensionMismatch(expected, actual, f"{type(self).__name__} features")
