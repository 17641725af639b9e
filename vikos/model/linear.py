"""
vikos Linear Models
====================
Models built around a linear term ``m · x + c``.

    Constant                  y = c
    Linear                    y = m · x + c
    Logistic                  y = 1 / (1 + e^-(m · x + c))
    GeneralizedLinearModel    y = g(m · x + c)

``Linear`` and ``Logistic`` are generic over the vector flavour of their
features. Built from a ``StaticVector[n]`` class they know their feature
dimension from the type, and ``zeros`` is all it takes to create one:

    >>> model = Linear.zeros(StaticVector[2])
    >>> model.feature_dimension
    2

A model over ``DynamicVector`` has no such default. Its dimension has to
be stated, so a model can never silently meet features of a length it
was not built for:

    >>> model = Logistic.with_feature_dimension(4)
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Optional

import numpy as np

from vikos.model.base import Model
from vikos.vector import DynamicVector, Vector, is_static

logger = logging.getLogger(__name__)


def sigmoid(z: float) -> float:
    """Logistic function, evaluated without overflow for large ``|z|``."""
    if z >= 0.0:
        return 1.0 / (1.0 + math.exp(-z))
    e = math.exp(z)
    return e / (1.0 + e)


def _require_static(vector_type: type, model_name: str) -> None:
    if not is_static(vector_type):
        raise TypeError(
            f"{model_name}.zeros needs a StaticVector[n] class, got "
            f"{getattr(vector_type, '__name__', vector_type)}. A model over "
            f"dynamically sized vectors must state its dimension: use "
            f"{model_name}.with_feature_dimension(dimension)."
        )


class Constant(Model):
    """
    Predicts the same value regardless of the features.

    Trained for least squares it converges to the mean of the targets,
    for least absolute deviation to their median.
    """

    def __init__(self, c: float = 0.0):
        self.c = float(c)

    @property
    def num_coefficients(self) -> int:
        return 1

    def parameters(self) -> np.ndarray:
        return np.array([self.c])

    def _assign(self, values: np.ndarray) -> None:
        self.c = float(values[0])

    def predict(self, features=None) -> float:
        return self.c

    def gradient(self, features=None) -> np.ndarray:
        return np.ones(1)

    def __repr__(self) -> str:
        return f"Constant(c={self.c})"


class Linear(Model):
    """
    Models the target as ``y = m · x + c``.

    Parameters
    ----------
    weights : Vector
        Slope ``m``. Its class decides the vector flavour of the features
        this model accepts.
    bias : float
        Offset ``c``.

    The coefficients are the weights followed by the bias.
    """

    def __init__(self, weights: Vector, bias: float = 0.0):
        if not isinstance(weights, Vector):
            weights = DynamicVector(weights)
        self._vector_type = type(weights)
        self._coefficients = np.append(weights.values, float(bias))

    @classmethod
    def with_feature_dimension(
        cls, dimension: int, vector_type: type[Vector] = DynamicVector
    ) -> Linear:
        """Zero-initialized model for features of the given dimension."""
        if dimension < 0:
            raise ValueError(f"dimension must be >= 0, got {dimension}")
        return cls(vector_type.zero_from_dimension(dimension))

    @classmethod
    def zeros(cls, vector_type: type[Vector]) -> Linear:
        """
        Zero-initialized model whose dimension comes from a static vector type.

        Raises
        ------
        TypeError
            If ``vector_type`` is not a ``StaticVector[n]`` class.
        """
        _require_static(vector_type, cls.__name__)
        return cls(vector_type.zero())

    @property
    def vector_type(self) -> type[Vector]:
        return self._vector_type

    @property
    def weights(self) -> Vector:
        """Copy of the slope, as this model's vector type."""
        return self._vector_type(self._coefficients[:-1].copy())

    @property
    def bias(self) -> float:
        return float(self._coefficients[-1])

    @bias.setter
    def bias(self, value: float) -> None:
        self._coefficients[-1] = value

    @property
    def num_coefficients(self) -> int:
        return self._coefficients.shape[0]

    @property
    def feature_dimension(self) -> int:
        return self._coefficients.shape[0] - 1

    def parameters(self) -> np.ndarray:
        return self._coefficients.copy()

    def _assign(self, values: np.ndarray) -> None:
        self._coefficients[:] = values

    def features(self, features) -> Vector:
        """Interpret ``features`` as this model's vector type and check it."""
        x = self._vector_type.coerce(features)
        self._check_features(x.dimension)
        return x

    def predict(self, features) -> float:
        x = self.features(features)
        return self.weights.dot(x) + self.bias

    def gradient(self, features) -> np.ndarray:
        # d/dm = x, d/dc = 1
        return np.append(self.features(features).values, 1.0)

    def __repr__(self) -> str:
        return f"Linear(m={self.weights!r}, c={self.bias})"


class Logistic(Model):
    """
    Models the target as ``y = 1 / (1 + e^-(m · x + c))``.

    The prediction is a probability in (0, 1). Meant to be trained with
    ``MaxLikelihood``, whose derivative cancels the ``p (1 - p)`` factor of
    the sigmoid so the coefficient gradient is exactly ``(p - t) x``
    (see ``MaxLikelihood.model_gradient``).
    """

    def __init__(self, linear: Linear):
        self.linear = linear

    @classmethod
    def with_feature_dimension(
        cls, dimension: int, vector_type: type[Vector] = DynamicVector
    ) -> Logistic:
        return cls(Linear.with_feature_dimension(dimension, vector_type))

    @classmethod
    def zeros(cls, vector_type: type[Vector]) -> Logistic:
        _require_static(vector_type, cls.__name__)
        return cls(Linear.zeros(vector_type))

    @property
    def num_coefficients(self) -> int:
        return self.linear.num_coefficients

    @property
    def feature_dimension(self) -> int:
        return self.linear.feature_dimension

    def parameters(self) -> np.ndarray:
        return self.linear.parameters()

    def _assign(self, values: np.ndarray) -> None:
        self.linear._assign(values)

    def predict(self, features) -> float:
        return sigmoid(self.linear.predict(features))

    def gradient(self, features) -> np.ndarray:
        # p (1 - p) as sigmoid(z) sigmoid(-z), which stays non-zero when p rounds to 1
        z = self.linear.predict(features)
        return sigmoid(z) * sigmoid(-z) * self.linear.gradient(features)

    def __repr__(self) -> str:
        return f"Logistic({self.linear!r})"


class GeneralizedLinearModel(Model):
    """
    Models the target as ``y = g(m · x + c)``.

    Parameters
    ----------
    linear : Linear
        The linear term.
    g : callable
        Outer function applied to the linear term.
    g_derivative : callable
        Derivative of ``g``. Not checked against ``g``; a wrong derivative
        trains towards the wrong optimum.

    Example
    -------
    Logistic regression spelled out as a generalized linear model:

        >>> glm = GeneralizedLinearModel(
        ...     Linear.with_feature_dimension(1),
        ...     g=lambda z: 1.0 / (1.0 + math.exp(-z)),
        ...     g_derivative=lambda z: math.exp(-z) / (1.0 + math.exp(-z)) ** 2,
        ... )
    """

    def __init__(
        self,
        linear: Linear,
        g: Callable[[float], float],
        g_derivative: Callable[[float], float],
    ):
        self.linear = linear
        self.g = g
        self.g_derivative = g_derivative

    @property
    def num_coefficients(self) -> int:
        return self.linear.num_coefficients

    @property
    def feature_dimension(self) -> Optional[int]:
        return self.linear.feature_dimension

    def parameters(self) -> np.ndarray:
        return self.linear.parameters()

    def _assign(self, values: np.ndarray) -> None:
        self.linear._assign(values)

    def predict(self, features) -> float:
        return float(self.g(self.linear.predict(features)))

    def gradient(self, features) -> np.ndarray:
        z = self.linear.predict(features)
        return float(self.g_derivative(z)) * self.linear.gradient(features)
