"""
vikos Training Driver
======================
Feeds a sequence of events to a teacher, in order.

The sequence may be a finite dataset or an endless stream. The driver
has no stopping policy of its own: it stops when the sequence does. To
train for a fixed number of events over a stream, slice the stream:

    >>> from itertools import cycle, islice
    >>> learn_history(teacher, cost, model, islice(cycle(history), 1000))
"""

from __future__ import annotations

import logging
from typing import Iterable

from tqdm import tqdm

from vikos.cost import Cost
from vikos.model.base import Model
from vikos.training.teacher import Teacher

logger = logging.getLogger(__name__)


def learn_history(
    teacher: Teacher,
    cost: Cost,
    model: Model,
    history: Iterable,
    progress: bool = False,
) -> int:
    """
    Teach ``model`` every ``(features, truth)`` event in ``history``.

    Parameters
    ----------
    teacher : Teacher
        Update rule. Its state carries over from earlier calls.
    cost : Cost
        Cost to minimize.
    model : Model
        Model to train, updated in place.
    history : iterable of (features, truth)
        Events, pulled lazily one at a time.
    progress : bool
        Show a tqdm progress bar.

    Returns
    -------
    int
        Number of events taught.

    Raises
    ------
    NumericDivergence
        As soon as an event diverges. Events before it stay applied.
    """
    events = tqdm(history, desc="events", unit="event") if progress else history
    n_events = 0
    for features, truth in events:
        teacher.teach_event(model, cost, features, truth)
        n_events += 1
    logger.debug(f"Taught {n_events} events with {teacher!r}")
    return n_events
