"""
vikos.evaluation — Evaluation
==============================
Read-only metrics for trained models.

Components:
    - metrics.py — crisp class decisions, mean cost, classification errors
"""

from vikos.evaluation.metrics import (
    accuracy,
    classification_errors,
    crisp,
    mean_cost,
)
