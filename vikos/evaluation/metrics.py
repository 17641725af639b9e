"""
vikos Evaluation Metrics
=========================
Read-only measurements of a model against a history of events. Nothing
here changes a model's coefficients, so these are safe to call in the
middle of training for reporting.

    crisp                   probability / scores  →  class decision
    mean_cost               average cost over a history
    classification_errors   number of wrong crisp predictions
    accuracy                fraction of right crisp predictions
"""

from __future__ import annotations

import logging
from typing import Iterable, Union

import numpy as np

from vikos.cost import Cost
from vikos.model.base import Model, Prediction

logger = logging.getLogger(__name__)


def crisp(prediction: Prediction) -> Union[bool, int]:
    """
    Turn a prediction into a class decision.

    A binary classifier's probability becomes ``True`` when greater than
    0.5. A multi-class score array becomes the index of its largest entry.
    """
    if np.ndim(prediction) == 0:
        return bool(prediction > 0.5)
    return int(np.argmax(prediction))


def _same_class(decision: Union[bool, int], truth) -> bool:
    if isinstance(decision, bool):
        return decision == (float(truth) > 0.5)
    return decision == int(truth)


def mean_cost(model: Model, cost: Cost, history: Iterable) -> float:
    """Average of ``cost`` over all ``(features, truth)`` events."""
    total = 0.0
    n_events = 0
    for features, truth in history:
        total += cost.cost(model.predict(features), truth)
        n_events += 1
    return total / max(n_events, 1)


def classification_errors(model: Model, history: Iterable) -> int:
    """Number of events whose crisp prediction is not the truth."""
    return sum(
        0 if _same_class(crisp(model.predict(features)), truth) else 1
        for features, truth in history
    )


def accuracy(model: Model, history: Iterable) -> float:
    """Fraction of events classified correctly."""
    history = list(history)
    if not history:
        return 0.0
    return 1.0 - classification_errors(model, history) / len(history)
