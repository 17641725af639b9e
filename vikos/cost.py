"""
vikos Cost Functions
=====================
A cost describes how a deviation of the prediction from the observed
truth is penalized. Teachers minimize it.

Gradient-based teachers need the derivative of the cost with respect to
each model coefficient. A cost only knows the *outer* derivative (with
respect to the prediction); the model supplies the *inner* one. The
chain rule joins them:

    Cost.gradient(prediction, truth, model_gradient)
        = chain_rule(Cost.outer_derivative(prediction, truth), model_gradient)

Costs hold no state and can be shared freely between models and runs.

Teachers ask for the whole coefficient gradient through
``Cost.model_gradient(model, features, truth)``, which defaults to the
chain rule above.

Pairing note:
    MaxLikelihood's outer derivative ``(p - t) / (p (1 - p))`` cancels the
    sigmoid's derivative ``p (1 - p)`` when paired with ``Logistic``.
    ``MaxLikelihood.model_gradient`` applies the cancelled form
    ``(p - t) x`` directly for that pair, so it stays exact when ``p``
    rounds to 0 or 1. The cancellation belongs to this pair; a new
    model/cost pair has to have its own chain rule worked out.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import numpy as np

from vikos.model.base import Model, Prediction, chain_rule
from vikos.model.linear import Logistic
from vikos.model.one_vs_rest import OneVsRest

logger = logging.getLogger(__name__)

# Probabilities are kept this far away from 0 and 1 by MaxLikelihood.
PROBABILITY_EPSILON = 1e-12


def as_target(prediction: Prediction, truth) -> Prediction:
    """
    Express ``truth`` in the shape of ``prediction``.

    Booleans become 1.0 / 0.0. For vector predictions an integer truth is
    read as a class index and expanded to a one-hot array.
    """
    if np.ndim(prediction) == 0:
        return float(truth)
    if isinstance(truth, (bool, np.bool_)) or not isinstance(truth, (int, np.integer)):
        return np.asarray(truth, dtype=np.float64)
    n_classes = np.shape(prediction)[0]
    if not 0 <= truth < n_classes:
        raise IndexError(f"class index {truth} out of range for {n_classes} classes")
    one_hot = np.zeros(n_classes)
    one_hot[truth] = 1.0
    return one_hot


class Cost(ABC):
    """Cost function whose value the teacher tries to minimize."""

    @abstractmethod
    def cost(self, prediction: Prediction, truth) -> float:
        """Value of the cost function."""

    @abstractmethod
    def outer_derivative(self, prediction: Prediction, truth) -> Prediction:
        """Derivative of the cost with respect to the prediction."""

    def gradient(self, prediction: Prediction, truth, model_gradient: np.ndarray) -> np.ndarray:
        """Derivative of the cost with respect to each model coefficient."""
        return chain_rule(self.outer_derivative(prediction, truth), model_gradient)

    def model_gradient(self, model: Model, features, truth) -> np.ndarray:
        """Derivative of the cost with respect to each of ``model``'s coefficients."""
        return self.gradient(model.predict(features), truth, model.gradient(features))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class LeastSquares(Cost):
    """
    ``C = (prediction - truth)^2``

    Optimizing a ``Constant`` model for least squares yields the mean.
    """

    def cost(self, prediction: Prediction, truth) -> float:
        error = np.asarray(prediction) - as_target(prediction, truth)
        return float(np.sum(error * error))

    def outer_derivative(self, prediction: Prediction, truth) -> Prediction:
        return 2.0 * (prediction - as_target(prediction, truth))


class LeastAbsoluteDeviation(Cost):
    """
    ``C = |prediction - truth|``

    Optimizing a ``Constant`` model for least absolute deviation yields
    the median. The derivative at zero error is taken to be 0.
    """

    def cost(self, prediction: Prediction, truth) -> float:
        return float(np.sum(np.abs(np.asarray(prediction) - as_target(prediction, truth))))

    def outer_derivative(self, prediction: Prediction, truth) -> Prediction:
        derivative = np.sign(np.asarray(prediction) - as_target(prediction, truth))
        return float(derivative) if derivative.ndim == 0 else derivative


class MaxLikelihood(Cost):
    """
    Negative log likelihood of a probabilistic binary prediction.

    ``C = -t ln(p) - (1 - t) ln(1 - p)``

    ``truth`` may be a float in [0, 1] or a bool. For vector predictions
    (one probability per class, as produced by ``OneVsRest``) the truth is
    a class index and the per-class binary costs are summed.

    Only ``cost`` clips probabilities away from 0 and 1. The derivative is
    left unclipped, so a saturated prediction gives an infinite outer
    derivative; ``model_gradient`` avoids it for ``Logistic`` models.
    """

    def cost(self, prediction: Prediction, truth) -> float:
        p = np.clip(prediction, PROBABILITY_EPSILON, 1.0 - PROBABILITY_EPSILON)
        t = as_target(prediction, truth)
        return float(np.sum(-t * np.log(p) - (1.0 - t) * np.log(1.0 - p)))

    def outer_derivative(self, prediction: Prediction, truth) -> Prediction:
        p = np.asarray(prediction, dtype=np.float64)
        with np.errstate(divide="ignore", invalid="ignore"):
            derivative = (p - as_target(prediction, truth)) / (p * (1.0 - p))
        return float(derivative) if np.ndim(derivative) == 0 else derivative

    def model_gradient(self, model: Model, features, truth) -> np.ndarray:
        """
        Coefficient gradient, using ``(p - t) x`` for ``Logistic`` models.

        ``OneVsRest`` models are split per class: the cost is a sum of
        independent binary costs, one per class model.
        """
        if isinstance(model, Logistic):
            residual = model.predict(features) - float(truth)
            return residual * model.linear.gradient(features)
        if isinstance(model, OneVsRest):
            targets = as_target(np.zeros(model.n_classes), truth)
            return np.concatenate([
                self.model_gradient(class_model, features, target)
                for class_model, target in zip(model.models, targets)
            ])
        return super().model_gradient(model, features, truth)
