"""
vikos Builders
===============
Turn configuration sections into the three parts of a training run:
a model, a cost and a teacher.

    >>> config = VikosConfig.from_yaml("configs/default.yaml")
    >>> model = build_model(config.model)
    >>> cost = build_cost(config.training.cost)
    >>> teacher = build_teacher(config.teacher)
"""

from __future__ import annotations

from vikos.config import ModelConfig, TeacherConfig
from vikos.cost import Cost, LeastAbsoluteDeviation, LeastSquares, MaxLikelihood
from vikos.model import Constant, Linear, Logistic, Model, OneVsRest
from vikos.training.teacher import (
    Adagrad,
    GradientDescent,
    GradientDescentAl,
    Momentum,
    Nesterov,
    Teacher,
)
from vikos.vector import DynamicVector, StaticVector


def build_model(config: ModelConfig) -> Model:
    """Zero-initialized model described by ``config``."""
    config.validate()
    if config.kind == "constant":
        return Constant()

    if config.static:
        vector_type = StaticVector[config.feature_dimension]
    else:
        vector_type = DynamicVector

    if config.n_classes > 1:
        return OneVsRest.logistic(config.n_classes, config.feature_dimension, vector_type)
    if config.kind == "logistic":
        return Logistic.with_feature_dimension(config.feature_dimension, vector_type)
    return Linear.with_feature_dimension(config.feature_dimension, vector_type)


def build_cost(name: str) -> Cost:
    costs = {
        "least_squares": LeastSquares,
        "least_absolute_deviation": LeastAbsoluteDeviation,
        "max_likelihood": MaxLikelihood,
    }
    if name not in costs:
        raise ValueError(f"Unknown cost: '{name}'. Choose from: {', '.join(costs)}")
    return costs[name]()


def build_teacher(config: TeacherConfig) -> Teacher:
    """Fresh teacher, with empty state, described by ``config``."""
    config.validate()
    if config.algorithm == "gradient_descent":
        return GradientDescent(config.learning_rate)
    if config.algorithm == "annealed":
        return GradientDescentAl(config.learning_rate, config.annealing_t)
    if config.algorithm == "momentum":
        return Momentum(config.learning_rate, config.annealing_t, config.inertia)
    if config.algorithm == "nesterov":
        return Nesterov(config.learning_rate, config.annealing_t, config.inertia)
    return Adagrad(config.learning_rate, config.epsilon)
