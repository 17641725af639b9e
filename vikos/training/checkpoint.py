"""
vikos Checkpoints
==================
Save and restore a training run: the model's coefficients and the
teacher's state, in one safetensors file.

File layout:
    tensors
        model.coefficients      float64 [num_coefficients]
        teacher.num_events      int64   [1]
        teacher.velocity        float64 [num_coefficients]   (Momentum, Nesterov)
        teacher.squared_gradients  ...                       (Adagrad)
    metadata
        format_version, model, teacher, step

Restoring a checkpoint into a fresh model and teacher and continuing with
the same events produces exactly the coefficients an uninterrupted run
would have produced.

Usage:
    >>> save_checkpoint("run.safetensors", model, teacher, step=1000)
    >>> step = load_checkpoint("run.safetensors", model, teacher)
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from safetensors import safe_open
from safetensors.numpy import save_file

from vikos.model.base import Model
from vikos.training.teacher import Teacher

logger = logging.getLogger(__name__)

FORMAT_VERSION = "1"

MODEL_PREFIX = "model."
TEACHER_PREFIX = "teacher."


def _read(path: str | Path) -> tuple[dict[str, np.ndarray], dict[str, str]]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Checkpoint not found: {path}")
    with safe_open(str(path), framework="np") as f:
        metadata = f.metadata() or {}
        tensors = {key: f.get_tensor(key) for key in f.keys()}
    return tensors, metadata


def _strip(tensors: dict[str, np.ndarray], prefix: str) -> dict[str, np.ndarray]:
    return {
        key[len(prefix):]: value
        for key, value in tensors.items()
        if key.startswith(prefix)
    }


def _check_class(metadata: dict[str, str], role: str, obj: object, path) -> None:
    saved = metadata.get(role)
    if saved is not None and saved != type(obj).__name__:
        raise ValueError(
            f"Checkpoint {path} holds a {saved} {role}, "
            f"cannot load it into a {type(obj).__name__}"
        )


def save_checkpoint(
    path: str | Path,
    model: Model,
    teacher: Teacher,
    step: int = 0,
) -> None:
    """
    Write model coefficients and teacher state to ``path``.

    Creates parent directories if they don't exist.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    tensors = {
        MODEL_PREFIX + key: np.ascontiguousarray(value)
        for key, value in model.state_dict().items()
    }
    tensors.update({
        TEACHER_PREFIX + key: value
        for key, value in teacher.state.to_tensors().items()
    })
    metadata = {
        "format_version": FORMAT_VERSION,
        "model": type(model).__name__,
        "teacher": type(teacher).__name__,
        "step": str(step),
    }
    save_file(tensors, str(path), metadata=metadata)
    logger.info(f"Checkpoint saved: {path} (step={step})")


def load_checkpoint(path: str | Path, model: Model, teacher: Teacher) -> int:
    """
    Restore model coefficients and teacher state from ``path``.

    Returns
    -------
    int
        The step recorded when the checkpoint was saved.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    ValueError
        If the checkpoint was written for a different model or teacher class.
    KeyError
        If the teacher section holds fields the teacher's state lacks.

    On any error neither ``model`` nor ``teacher`` is changed.
    """
    tensors, metadata = _read(path)
    _check_class(metadata, "model", model, path)
    _check_class(metadata, "teacher", teacher, path)

    # Nothing is written until both sections have parsed.
    teacher_state = teacher.state_class.from_tensors(_strip(tensors, TEACHER_PREFIX))
    model.load_state_dict(_strip(tensors, MODEL_PREFIX))
    teacher.state = teacher_state

    step = int(metadata.get("step", 0))
    logger.info(
        f"Checkpoint loaded: {path} (step={step}, "
        f"teacher events={teacher.state.num_events})"
    )
    return step


def save_teacher_state(path: str | Path, teacher: Teacher) -> None:
    """Write only the teacher's state to ``path``."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    metadata = {"format_version": FORMAT_VERSION, "teacher": type(teacher).__name__}
    save_file(teacher.state.to_tensors(), str(path), metadata=metadata)


def load_teacher_state(path: str | Path, teacher: Teacher) -> None:
    """Replace ``teacher``'s state with the one stored at ``path``."""
    tensors, metadata = _read(path)
    _check_class(metadata, "teacher", teacher, path)
    teacher.state = teacher.state_class.from_tensors(tensors)
