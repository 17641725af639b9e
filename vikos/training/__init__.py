"""
vikos.training — Teachers and Training Loop
============================================
Everything that changes a model's coefficients.

Training one event:

    features, truth
        → model.predict(features)                   prediction
        → cost.outer_derivative(prediction, truth)  d cost / d prediction
        → model.gradient(features)                  d prediction / d coefficients
        → chain rule                                d cost / d coefficients
        → teacher update rule                       new coefficients, new state

Components:
    - teacher.py     — Teacher contract and update rules (GradientDescent,
                       GradientDescentAl, Momentum, Nesterov, Adagrad)
    - state.py       — Per-teacher state records (event count, velocity,
                       squared gradients)
    - history.py     — ``learn_history``: teach a (possibly endless) sequence
    - checkpoint.py  — safetensors save/load of coefficients + teacher state
    - trainer.py     — Epoch runner with logging, checkpointing, early stop
"""

from vikos.training.state import AdagradState, MomentumState, TeacherState
from vikos.training.teacher import (
    Adagrad,
    GradientDescent,
    GradientDescentAl,
    Momentum,
    Nesterov,
    Teacher,
    annealed_learning_rate,
)
from vikos.training.history import learn_history
from vikos.training.checkpoint import (
    load_checkpoint,
    load_teacher_state,
    save_checkpoint,
    save_teacher_state,
)
from vikos.training.trainer import Trainer
