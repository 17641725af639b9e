"""
vikos Trainer
==============
Runs a finite history through a teacher for a number of epochs, and
handles everything around the updates themselves:

    - Epoch loop with optional seeded shuffling
    - Cost observation (mean cost per epoch, read before each update)
    - Logging (running cost, learning rate)
    - Checkpointing (save/resume model + teacher state)
    - Early stopping when the epoch cost stops improving

The update rule stays entirely in the teacher. The trainer is a caller
of ``learn_history``-style teaching: it decides when to stop, the core
does not.

Usage:
    >>> trainer = Trainer(model, MaxLikelihood(), Nesterov(1e-3, 1000, 0.9))
    >>> results = trainer.train(history, epochs=50)
    >>> results["final_cost"]
"""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
from tqdm import tqdm

from vikos.config import TrainingConfig, VikosConfig
from vikos.cost import Cost
from vikos.errors import NumericDivergence
from vikos.model.base import Model
from vikos.training.checkpoint import load_checkpoint, save_checkpoint
from vikos.training.teacher import Teacher

logger = logging.getLogger(__name__)


class Trainer:
    """
    Epoch runner for a model, a cost and a teacher.

    Parameters
    ----------
    model : Model
        The model to train, updated in place.
    cost : Cost
        Cost to minimize.
    teacher : Teacher
        Update rule; its state persists across ``train`` calls.
    config : TrainingConfig or None
        Runner settings. Defaults to ``TrainingConfig()``.
    name : str
        Human-readable name for this training run (for logging and
        checkpoint file names).
    """

    def __init__(
        self,
        model: Model,
        cost: Cost,
        teacher: Teacher,
        config: Optional[TrainingConfig] = None,
        name: str = "trainer",
    ):
        self.model = model
        self.cost = cost
        self.teacher = teacher
        self.config = config if config is not None else TrainingConfig()
        self.config.validate()
        self.name = name

        self.global_step = 0

        logger.info(
            f"Trainer '{name}' initialized: {type(model).__name__} with "
            f"{model.num_coefficients} coefficients, {cost!r}, {teacher!r}"
        )

    @classmethod
    def from_config(cls, config: VikosConfig, name: str = "trainer") -> Trainer:
        """Build model, cost and teacher from ``config``."""
        from vikos.builders import build_cost, build_model, build_teacher

        config.validate()
        return cls(
            model=build_model(config.model),
            cost=build_cost(config.training.cost),
            teacher=build_teacher(config.teacher),
            config=config.training,
            name=name,
        )

    def train(
        self,
        history: Sequence,
        epochs: Optional[int] = None,
        output_dir: Optional[str] = None,
    ) -> dict:
        """
        Run up to ``epochs`` passes over ``history``.

        Parameters
        ----------
        history : sequence of (features, truth)
            Finite, re-iterable events. For endless streams use
            ``learn_history`` directly.
        epochs : int or None
            Overrides ``config.epochs``.
        output_dir : str or None
            Overrides ``config.output_dir`` for checkpoints.

        Returns
        -------
        dict
            - epoch_costs: mean cost of each epoch, observed before updates
            - final_cost: last epoch's mean cost
            - total_events: events taught during this call
            - total_steps: events taught since the trainer was created
            - total_time_seconds: wall-clock time of this call
            - stopped_early: whether the tolerance criterion stopped training

        Raises
        ------
        NumericDivergence
            Re-raised after logging; the model keeps its last finite
            coefficients.
        """
        epochs = epochs if epochs is not None else self.config.epochs
        output_dir = output_dir if output_dir is not None else self.config.output_dir
        history = list(history)
        if not history:
            raise ValueError(f"[{self.name}] Cannot train on an empty history")

        logger.info(
            f"[{self.name}] Starting training: {epochs} epochs, "
            f"{len(history)} events/epoch"
        )

        start_time = time.time()
        start_step = self.global_step
        results = {
            "epoch_costs": [],
            "final_cost": None,
            "total_events": 0,
            "total_steps": 0,
            "total_time_seconds": 0.0,
            "stopped_early": False,
        }

        for epoch in range(epochs):
            epoch_cost = self._train_epoch(epoch, epochs, history, output_dir)
            previous = results["final_cost"]
            results["epoch_costs"].append(epoch_cost)
            results["final_cost"] = epoch_cost

            logger.info(
                f"[{self.name}] Epoch {epoch + 1}/{epochs} — "
                f"cost={epoch_cost:.6f}, lr={self.teacher.learning_rate:.3e}"
            )

            if (
                self.config.tolerance > 0
                and previous is not None
                and previous - epoch_cost < self.config.tolerance
            ):
                logger.info(
                    f"[{self.name}] Cost improved by less than "
                    f"{self.config.tolerance} — stopping after epoch {epoch + 1}"
                )
                results["stopped_early"] = True
                break

        results["total_events"] = self.global_step - start_step
        results["total_steps"] = self.global_step
        results["total_time_seconds"] = time.time() - start_time

        logger.info(
            f"[{self.name}] Training complete in "
            f"{results['total_time_seconds']:.2f}s — "
            f"final_cost={results['final_cost']:.6f}, "
            f"events={results['total_events']}"
        )
        return results

    def epoch_order(self, epoch_index: int, n_events: int) -> np.ndarray:
        """
        Order in which the ``epoch_index``-th pass visits the history.

        Shuffled orders are drawn from a generator seeded with
        ``(seed, epoch_index)``, so the order of any epoch can be rebuilt
        after a resume without replaying earlier epochs.
        """
        if not self.config.shuffle:
            return np.arange(n_events)
        rng = np.random.default_rng([self.config.seed, epoch_index])
        return rng.permutation(n_events)

    def _train_epoch(
        self,
        epoch: int,
        total_epochs: int,
        history: list,
        output_dir: str,
    ) -> float:
        """
        Teach the rest of the current pass over ``history``.

        The pass and the position inside it follow from ``global_step``:
        a run resumed mid-epoch finishes that epoch in the same order an
        uninterrupted run would have used.

        Returns
        -------
        float
            Mean cost of the epoch, each event's cost taken just before
            its update.
        """
        epoch_index, offset = divmod(self.global_step, len(history))
        order = self.epoch_order(epoch_index, len(history))[offset:]
        if self.config.progress:
            order = tqdm(order, desc=f"[{self.name}] epoch {epoch + 1}/{total_epochs}")

        total_cost = 0.0
        n_events = 0

        for index in order:
            features, truth = history[index]
            total_cost += self.cost.cost(self.model.predict(features), truth)

            try:
                self.teacher.teach_event(self.model, self.cost, features, truth)
            except NumericDivergence as e:
                logger.error(f"[{self.name}] Training diverged at step {self.global_step}: {e}")
                raise

            n_events += 1
            self.global_step += 1

            if (
                self.config.log_every > 0
                and self.global_step % self.config.log_every == 0
            ):
                logger.info(
                    f"[{self.name}] step={self.global_step}, "
                    f"cost={total_cost / n_events:.6f}, "
                    f"lr={self.teacher.learning_rate:.3e}"
                )

            if (
                self.config.checkpoint_every > 0
                and self.global_step % self.config.checkpoint_every == 0
            ):
                self._save_checkpoint(output_dir, f"step_{self.global_step}")

        return total_cost / max(n_events, 1)

    def checkpoint_path(self, output_dir: str, tag: str) -> Path:
        return Path(output_dir) / f"checkpoint_{self.name}_{tag}.safetensors"

    def save(self, path: str | Path) -> None:
        """Save model coefficients and teacher state to ``path``."""
        save_checkpoint(path, self.model, self.teacher, step=self.global_step)

    def resume(self, path: str | Path) -> int:
        """
        Restore model coefficients and teacher state from ``path``.

        The step also fixes the epoch and the position inside it, so
        training on the same history with the same seed continues exactly
        where the saved run left off.

        Returns
        -------
        int
            The step training resumes from.
        """
        self.global_step = load_checkpoint(path, self.model, self.teacher)
        logger.info(f"[{self.name}] Resumed from {path} at step {self.global_step}")
        return self.global_step

    def _save_checkpoint(self, output_dir: str, tag: str) -> None:
        """
        Save a training checkpoint and drop the oldest ones beyond
        ``config.keep_checkpoints``.
        """
        self.save(self.checkpoint_path(output_dir, tag))

        keep_n = self.config.keep_checkpoints
        if keep_n > 0:
            def get_step(p: Path) -> int:
                match = re.search(r"step_(\d+)\.safetensors$", p.name)
                return int(match.group(1)) if match else -1

            all_checkpoints = sorted(
                Path(output_dir).glob(f"checkpoint_{self.name}_step_*.safetensors"),
                key=get_step,
            )
            while len(all_checkpoints) > keep_n:
                old_cp = all_checkpoints.pop(0)
                try:
                    old_cp.unlink()
                    logger.info(f"[{self.name}] Removed old checkpoint: {old_cp.name}")
                except OSError as e:
                    logger.warning(f"Failed to remove old checkpoint {old_cp}: {e}")

    def __repr__(self) -> str:
        return f"Trainer(name={self.name}, teacher={self.teacher!r}, step={self.global_step})"
