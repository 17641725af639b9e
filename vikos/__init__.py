"""
vikos
=====
A machine learning library for supervised regression and classification.

Models, cost functions and training algorithms ("teachers") are written
independently of each other, so any combination can be trained without
touching the other two:

    - A model predicts a target from features and knows how its
      prediction reacts to each of its coefficients.
    - A cost judges a prediction against the truth and knows how it
      reacts to the prediction.
    - A teacher uses both to change the coefficients, one event at a time.

Quick Start:
    >>> from vikos import Linear, LeastSquares, GradientDescent, learn_history
    >>> history = [([0.0], 3.0), ([1.0], 4.0), ([2.0], 5.0)] * 10
    >>> model = Linear.with_feature_dimension(1)
    >>> learn_history(GradientDescent(0.2), LeastSquares(), model, history)
    30
    >>> model.predict([3.0])   # close to 6

Subpackages:
    - vikos.model      — Constant, Linear, Logistic, generalized linear, one-vs-rest
    - vikos.training   — Teachers, teacher state, training driver, checkpoints
    - vikos.evaluation — Crisp class decisions and read-only metrics
"""

__version__ = "0.1.0"

from vikos.errors import (
    DimensionMismatch,
    InvalidHyperparameter,
    NumericDivergence,
    VikosError,
)
from vikos.vector import DynamicVector, StaticVector, Vector
from vikos.model import (
    Constant,
    GeneralizedLinearModel,
    Linear,
    Logistic,
    Model,
    OneVsRest,
)
from vikos.cost import Cost, LeastAbsoluteDeviation, LeastSquares, MaxLikelihood
from vikos.training import (
    Adagrad,
    GradientDescent,
    GradientDescentAl,
    Momentum,
    Nesterov,
    Teacher,
    Trainer,
    learn_history,
)
from vikos.evaluation import crisp
