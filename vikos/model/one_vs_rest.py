"""
vikos One-vs-Rest
==================
Multi-class classification from binary classifiers: one model per class,
each trained to tell its class apart from all the others. The prediction
is the array of per-class scores; ``vikos.evaluation.crisp`` turns it into
the index of the winning class.

Coefficient layout:
    The combined coefficients are the concatenation of the per-class
    coefficients, class 0 first. The gradient is block shaped: column
    ``k`` only has entries in the rows owned by class ``k``.

        coefficients   [ a0 a1 a2 | b0 b1 b2 | c0 c1 c2 ]
        gradient       col 0 → rows 0..2, col 1 → rows 3..5, col 2 → rows 6..8
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from vikos.errors import DimensionMismatch
from vikos.model.base import Model
from vikos.model.linear import Logistic
from vikos.vector import DynamicVector, Vector, is_static

logger = logging.getLogger(__name__)


class OneVsRest(Model):
    """
    Combines one binary model per class into a multi-class model.

    Parameters
    ----------
    models : sequence of Model
        One scalar-output model per class, in class order. All of them
        must accept features of the same dimension.
    """

    def __init__(self, models: Sequence[Model]):
        models = list(models)
        if len(models) < 2:
            raise ValueError(
                f"OneVsRest needs at least 2 class models, got {len(models)}"
            )
        dimension = models[0].feature_dimension
        for model in models[1:]:
            if model.feature_dimension != dimension:
                raise DimensionMismatch(
                    dimension, model.feature_dimension, "OneVsRest class models"
                )
        self.models = models
        self._offsets = np.cumsum([0] + [m.num_coefficients for m in models])

    @classmethod
    def logistic(
        cls,
        n_classes: int,
        dimension: Optional[int] = None,
        vector_type: type[Vector] = DynamicVector,
    ) -> OneVsRest:
        """
        One zero-initialized ``Logistic`` model per class.

        Either pass a ``StaticVector[n]`` class as ``vector_type`` or state
        ``dimension`` for dynamically sized features.
        """
        if dimension is None:
            return cls([Logistic.zeros(vector_type) for _ in range(n_classes)])
        if is_static(vector_type) and dimension != vector_type.DIMENSION:
            raise DimensionMismatch(vector_type.DIMENSION, dimension, "OneVsRest.logistic")
        return cls([
            Logistic.with_feature_dimension(dimension, vector_type)
            for _ in range(n_classes)
        ])

    @property
    def n_classes(self) -> int:
        return len(self.models)

    @property
    def num_coefficients(self) -> int:
        return int(self._offsets[-1])

    @property
    def feature_dimension(self) -> Optional[int]:
        return self.models[0].feature_dimension

    def parameters(self) -> np.ndarray:
        return np.concatenate([m.parameters() for m in self.models])

    def _assign(self, values: np.ndarray) -> None:
        for k, model in enumerate(self.models):
            model.set_parameters(values[self._offsets[k]:self._offsets[k + 1]])

    def predict(self, features) -> np.ndarray:
        return np.array([m.predict(features) for m in self.models], dtype=np.float64)

    def gradient(self, features) -> np.ndarray:
        jacobian = np.zeros((self.num_coefficients, self.n_classes))
        for k, model in enumerate(self.models):
            jacobian[self._offsets[k]:self._offsets[k + 1], k] = model.gradient(features)
        return jacobian

    def __repr__(self) -> str:
        return f"OneVsRest(n_classes={self.n_classes}, models={self.models!r})"
