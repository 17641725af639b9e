"""
vikos Teachers
===============
Algorithms that adapt a model's coefficients, one event at a time, so the
cost goes down (hopefully).

A teacher sees a model only through the ``Model`` contract and a cost only
through the ``Cost`` contract, so any teacher trains any model for any
cost. Every teacher owns a state record (``vikos.training.state``) that
lives as long as the teacher and can be saved and restored on its own.

Update rules (``g`` is the gradient of the cost w.r.t. the coefficients):

    GradientDescent     w -= l · g
    GradientDescentAl   w -= l_n · g                 l_n = l0 / (1 + n / t)
    Momentum            v  = inertia · v - l_n · g;  w += v
    Nesterov            like Momentum, g taken at the look-ahead w + inertia · v
    Adagrad             G += g²;  w -= l · g / sqrt(G + epsilon)

Each event is all-or-nothing. The new coefficients are computed aside and
checked before being written; if the gradient or the result is not finite
``NumericDivergence`` is raised and neither the model nor the state has
changed.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import ClassVar

import numpy as np

from vikos.cost import Cost
from vikos.errors import InvalidHyperparameter, NumericDivergence
from vikos.model.base import Model
from vikos.training.state import AdagradState, MomentumState, TeacherState

logger = logging.getLogger(__name__)


def annealed_learning_rate(num_events: int, start: float, t: float) -> float:
    """
    Learning rate after ``num_events`` events.

    Smaller ``t`` decreases the rate faster. After ``t`` events the rate is
    half of ``start``, after ``2 t`` events a third, and so on.
    """
    return start / (1.0 + num_events / t)


def _positive(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value <= 0.0:
        raise InvalidHyperparameter(name, value, "a finite number > 0")
    return value


def _inertia(value: float) -> float:
    value = float(value)
    if not 0.0 <= value < 1.0:
        raise InvalidHyperparameter("inertia", value, "in [0, 1)")
    return value


class Teacher(ABC):
    """
    Online update rule.

    Subclasses implement ``_step``, which receives a private copy of the
    state and returns the candidate coefficients. Committing them, and
    the state, is done here.
    """

    state_class: ClassVar[type[TeacherState]] = TeacherState

    def __init__(self):
        self.state = self.state_class()

    @abstractmethod
    def _step(
        self, state: TeacherState, model: Model, cost: Cost, features, truth
    ) -> np.ndarray:
        """Compute new coefficients for one event, advancing ``state``."""

    @property
    @abstractmethod
    def learning_rate(self) -> float:
        """Learning rate that will be used for the next event."""

    def hyperparameters(self) -> dict[str, float]:
        return {}

    def teach_event(self, model: Model, cost: Cost, features, truth) -> None:
        """
        Change ``model``'s coefficients to lower ``cost`` on one event.

        Raises
        ------
        DimensionMismatch
            If ``features`` or ``model`` do not fit this teacher's state.
        NumericDivergence
            If the gradient or the updated coefficients are not finite.
        """
        state = self.state.copy()
        state.allocate(model.num_coefficients)
        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            coefficients = self._step(state, model, cost, features, truth)
        if not np.all(np.isfinite(coefficients)):
            raise NumericDivergence("coefficients", self.state.num_events)
        model.set_parameters(coefficients)
        state.num_events += 1
        self.state = state

    def teach(self, model: Model, cost: Cost, example) -> None:
        """Teach a single ``(features, truth)`` example."""
        features, truth = example
        self.teach_event(model, cost, features, truth)

    def gradient(self, model: Model, cost: Cost, features, truth) -> np.ndarray:
        """Gradient of ``cost`` w.r.t. ``model``'s coefficients on one event."""
        g = cost.model_gradient(model, features, truth)
        if not np.all(np.isfinite(g)):
            raise NumericDivergence("gradient", self.state.num_events)
        return g

    def reset(self) -> None:
        """Forget everything learned about the training so far."""
        self.state = self.state_class()

    def state_dict(self) -> dict:
        return self.state.to_dict()

    def load_state_dict(self, state: dict) -> None:
        self.state = self.state_class.from_dict(state)

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v}" for k, v in self.hyperparameters().items())
        return f"{type(self).__name__}({params}, events={self.state.num_events})"


class GradientDescent(Teacher):
    """
    Simplest possible gradient descent with a fixed learning rate.

    Parameters
    ----------
    learning_rate : float
        How fast the coefficients of the trained model change. Must be > 0.
    """

    def __init__(self, learning_rate: float):
        self._learning_rate = _positive("learning_rate", learning_rate)
        super().__init__()

    @property
    def learning_rate(self) -> float:
        return self._learning_rate

    def hyperparameters(self) -> dict[str, float]:
        return {"learning_rate": self._learning_rate}

    def _step(self, state, model, cost, features, truth) -> np.ndarray:
        g = self.gradient(model, cost, features, truth)
        return model.parameters() - self._learning_rate * g


class GradientDescentAl(Teacher):
    """
    Gradient descent with an annealed learning rate.

    For the n-th event the learning rate is ``l0 / (1 + n / t)``.

    Parameters
    ----------
    l0 : float
        Start learning rate.
    t : float
        Number of events after which the learning rate has halved.
    """

    def __init__(self, l0: float, t: float):
        self.l0 = _positive("l0", l0)
        self.t = _positive("t", t)
        super().__init__()

    @property
    def learning_rate(self) -> float:
        return annealed_learning_rate(self.state.num_events, self.l0, self.t)

    def hyperparameters(self) -> dict[str, float]:
        return {"l0": self.l0, "t": self.t}

    def _step(self, state, model, cost, features, truth) -> np.ndarray:
        rate = annealed_learning_rate(state.num_events, self.l0, self.t)
        g = self.gradient(model, cost, features, truth)
        return model.parameters() - rate * g


class Momentum(GradientDescentAl):
    """
    Annealed gradient descent with momentum.

    Parameters
    ----------
    l0, t : float
        Annealing schedule, see ``GradientDescentAl``.
    inertia : float
        Fraction of the velocity carried over to the next event. In
        [0, 1); values below 1 act as friction.
    """

    state_class = MomentumState

    def __init__(self, l0: float, t: float, inertia: float):
        self.inertia = _inertia(inertia)
        super().__init__(l0, t)

    def hyperparameters(self) -> dict[str, float]:
        return {"l0": self.l0, "t": self.t, "inertia": self.inertia}

    def _step(self, state, model, cost, features, truth) -> np.ndarray:
        rate = annealed_learning_rate(state.num_events, self.l0, self.t)
        g = self.gradient(model, cost, features, truth)
        state.velocity = self.inertia * state.velocity - rate * g
        return model.parameters() + state.velocity


class Nesterov(Momentum):
    """
    Nesterov accelerated gradient descent.

    Like ``Momentum``, but the gradient is not taken at the current
    coefficients. It is taken at the look-ahead position the velocity is
    about to carry them to, which corrects the step before it overshoots.
    See G. Hinton's lecture 6c,
    http://www.cs.toronto.edu/~tijmen/csc321/slides/lecture_slides_lec6.pdf
    """

    def _step(self, state, model, cost, features, truth) -> np.ndarray:
        rate = annealed_learning_rate(state.num_events, self.l0, self.t)
        current = np.array(model.parameters(), dtype=np.float64)
        model.set_parameters(current + self.inertia * state.velocity)
        try:
            g = self.gradient(model, cost, features, truth)
        finally:
            model.set_parameters(current)
        state.velocity = self.inertia * state.velocity - rate * g
        return current + state.velocity


class Adagrad(Teacher):
    """
    Gradient descent with a per-coefficient adaptive learning rate.

    Each coefficient's rate is ``learning_rate / sqrt(G + epsilon)``, with
    ``G`` the sum of that coefficient's squared gradients so far.
    Coefficients with large or frequent gradients slow down, rarely
    touched ones keep moving.

    Parameters
    ----------
    learning_rate : float
        Base learning rate. Must be > 0.
    epsilon : float
        Added to ``G`` before the square root. Must be > 0.
    """

    state_class = AdagradState

    def __init__(self, learning_rate: float, epsilon: float = 1e-8):
        self._learning_rate = _positive("learning_rate", learning_rate)
        self.epsilon = _positive("epsilon", epsilon)
        super().__init__()

    @property
    def learning_rate(self) -> float:
        return self._learning_rate

    def hyperparameters(self) -> dict[str, float]:
        return {"learning_rate": self._learning_rate, "epsilon": self.epsilon}

    def _step(self, state, model, cost, features, truth) -> np.ndarray:
        g = self.gradient(model, cost, features, truth)
        state.squared_gradients = state.squared_gradients + g * g
        rates = self._learning_rate / np.sqrt(state.squared_gradients + self.epsilon)
        return model.parameters() - rates * g
