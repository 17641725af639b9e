"""
vikos.model — Models
=====================
Parameterized experts that predict a target from features.

Every model implements the ``Model`` contract from ``base.py``: it owns
its coefficients, predicts, and reports the derivative of its prediction
with respect to each coefficient. Teachers and costs never depend on a
concrete model.

Components:
    - base.py         — ``Model`` contract and the ``chain_rule`` helper
    - linear.py       — Constant, Linear, Logistic, GeneralizedLinearModel
    - one_vs_rest.py  — Multi-class composition of binary models
"""

from vikos.model.base import Model, chain_rule
from vikos.model.linear import (
    Constant,
    GeneralizedLinearModel,
    Linear,
    Logistic,
    sigmoid,
)
from vikos.model.one_vs_rest import OneVsRest
