"""
vikos Configuration System
===========================
Centralized configuration for a vikos training run using Python
dataclasses. Which model, which teacher with which hyperparameters, which
cost, and how the runner drives the epochs all live here.

Usage:
    # Load from YAML file:
    >>> config = VikosConfig.from_yaml("configs/default.yaml")

    # Create programmatically:
    >>> config = VikosConfig(
    ...     model=ModelConfig(kind="logistic", feature_dimension=4),
    ...     teacher=TeacherConfig(algorithm="nesterov", learning_rate=1e-3),
    ... )

    # Save to YAML:
    >>> config.to_yaml("configs/my_experiment.yaml")

    # Access nested values:
    >>> config.teacher.learning_rate   # 0.001
    >>> config.training.epochs         # 10
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Literal

import yaml

logger = logging.getLogger(__name__)

MODEL_KINDS = ("constant", "linear", "logistic")
TEACHER_ALGORITHMS = ("gradient_descent", "annealed", "momentum", "nesterov", "adagrad")
COSTS = ("least_squares", "least_absolute_deviation", "max_likelihood")


# =============================================================================
# Model Configuration
# =============================================================================

@dataclass
class ModelConfig:
    """
    Which model to train.

    Parameters
    ----------
    kind : str
        - "constant": a single number, independent of the features
        - "linear":   y = m · x + c
        - "logistic": y = sigmoid(m · x + c)

    feature_dimension : int
        Number of features per event. Ignored by "constant".

    n_classes : int
        Number of classes. Values above 1 build a one-vs-rest combination
        of logistic models, one per class. Only valid for "logistic".

    static : bool
        Back the features with ``StaticVector[feature_dimension]`` instead
        of ``DynamicVector``.
    """
    kind: Literal["constant", "linear", "logistic"] = "linear"
    feature_dimension: int = 1
    n_classes: int = 1
    static: bool = False

    def validate(self) -> None:
        """
        Check that all model parameters are valid and consistent.

        Raises
        ------
        ValueError
            If any parameter is invalid or inconsistent with others.
        """
        if self.kind not in MODEL_KINDS:
            raise ValueError(
                f"Unknown model kind: '{self.kind}'. "
                f"Choose from: {', '.join(MODEL_KINDS)}"
            )
        if self.kind != "constant" and self.feature_dimension < 1:
            raise ValueError(
                f"feature_dimension must be >= 1, got {self.feature_dimension}"
            )
        if self.n_classes < 1:
            raise ValueError(f"n_classes must be >= 1, got {self.n_classes}")
        if self.n_classes > 1 and self.kind != "logistic":
            raise ValueError(
                f"n_classes={self.n_classes} needs kind 'logistic', "
                f"got '{self.kind}'. Multi-class models are one-vs-rest "
                f"combinations of logistic classifiers."
            )


# =============================================================================
# Teacher Configuration
# =============================================================================

@dataclass
class TeacherConfig:
    """
    Which update rule trains the model, and its hyperparameters.

    Parameters
    ----------
    algorithm : str
        - "gradient_descent": fixed learning rate
        - "annealed":         learning_rate / (1 + n / annealing_t)
        - "momentum":         annealed rate plus velocity
        - "nesterov":         momentum with a look-ahead gradient
        - "adagrad":          per-coefficient adaptive rate

    learning_rate : float
        Step size (start value for annealed algorithms). Too high and the
        coefficients diverge, too low and training crawls.

    annealing_t : float
        Events after which an annealed learning rate has halved.

    inertia : float
        Fraction of the velocity kept per event ("momentum", "nesterov").

    epsilon : float
        Added to the squared-gradient sum before the square root ("adagrad").
    """
    algorithm: Literal[
        "gradient_descent", "annealed", "momentum", "nesterov", "adagrad"
    ] = "gradient_descent"
    learning_rate: float = 0.1
    annealing_t: float = 1000.0
    inertia: float = 0.9
    epsilon: float = 1e-8

    def validate(self) -> None:
        """Validate teacher parameters."""
        if self.algorithm not in TEACHER_ALGORITHMS:
            raise ValueError(
                f"Unknown teacher algorithm: '{self.algorithm}'. "
                f"Choose from: {', '.join(TEACHER_ALGORITHMS)}"
            )
        if not math.isfinite(self.learning_rate) or self.learning_rate <= 0:
            raise ValueError(
                f"learning_rate must be positive, got {self.learning_rate}"
            )
        if self.annealing_t <= 0:
            raise ValueError(f"annealing_t must be positive, got {self.annealing_t}")
        if not 0.0 <= self.inertia < 1.0:
            raise ValueError(f"inertia must be in [0, 1), got {self.inertia}")
        if self.epsilon <= 0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}")


# =============================================================================
# Training Configuration
# =============================================================================

@dataclass
class TrainingConfig:
    """
    How the runner drives training.

    Parameters
    ----------
    cost : str
        "least_squares", "least_absolute_deviation" or "max_likelihood".

    epochs : int
        Maximum number of passes over a finite history.

    tolerance : float
        Stop early once an epoch's mean cost improves on the previous one
        by less than this. 0 disables early stopping.

    shuffle : bool
        Visit events in a new random order every epoch.

    seed : int
        Seed for the shuffling generator. Same seed = same order.

    log_every : int
        Log the running cost every N events. 0 = only per epoch.

    checkpoint_every : int
        Save a checkpoint every N events. 0 = never.

    keep_checkpoints : int
        Number of most recent checkpoints to keep on disk. 0 = keep all.

    output_dir : str
        Directory for checkpoints.

    progress : bool
        Show a progress bar per epoch.
    """
    cost: Literal[
        "least_squares", "least_absolute_deviation", "max_likelihood"
    ] = "least_squares"
    epochs: int = 10
    tolerance: float = 0.0
    shuffle: bool = False
    seed: int = 42
    log_every: int = 0
    checkpoint_every: int = 0
    keep_checkpoints: int = 1
    output_dir: str = "outputs"
    progress: bool = False

    def validate(self) -> None:
        """Validate training parameters."""
        if self.cost not in COSTS:
            raise ValueError(
                f"Unknown cost: '{self.cost}'. Choose from: {', '.join(COSTS)}"
            )
        if self.epochs < 1:
            raise ValueError(f"epochs must be >= 1, got {self.epochs}")
        if self.tolerance < 0:
            raise ValueError(f"tolerance must be >= 0, got {self.tolerance}")
        if self.log_every < 0:
            raise ValueError(f"log_every must be >= 0, got {self.log_every}")
        if self.checkpoint_every < 0:
            raise ValueError(
                f"checkpoint_every must be >= 0, got {self.checkpoint_every}"
            )
        if self.keep_checkpoints < 0:
            raise ValueError(
                f"keep_checkpoints must be >= 0, got {self.keep_checkpoints}"
            )


# =============================================================================
# Master Configuration
# =============================================================================

@dataclass
class VikosConfig:
    """
    Master configuration combining all sub-configurations.

    Usage:
        >>> config = VikosConfig()
        >>> config.validate()
        >>> config.to_yaml("configs/my_experiment.yaml")
    """
    model: ModelConfig = field(default_factory=ModelConfig)
    teacher: TeacherConfig = field(default_factory=TeacherConfig)
    training: TrainingConfig = field(default_factory=TrainingConfig)

    def validate(self) -> None:
        """
        Validate all sub-configurations and cross-config consistency.

        Raises
        ------
        ValueError
            If any parameter is invalid or configs are inconsistent.
        """
        self.model.validate()
        self.teacher.validate()
        self.training.validate()

        if self.training.cost == "max_likelihood" and self.model.kind != "logistic":
            raise ValueError(
                f"Cost 'max_likelihood' needs probabilities as predictions, "
                f"but model kind '{self.model.kind}' does not produce them. "
                f"Use kind 'logistic' or a different cost."
            )

        logger.info(
            f"Config validated: {self.model.kind} model "
            f"(dim={self.model.feature_dimension}, classes={self.model.n_classes}), "
            f"teacher={self.teacher.algorithm}, cost={self.training.cost}"
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> VikosConfig:
        """
        Load configuration from a YAML file.

        Raises
        ------
        FileNotFoundError
            If the YAML file does not exist.
        yaml.YAMLError
            If the YAML file is malformed.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(
                f"Config file not found: {path}. "
                f"Create one from configs/default.yaml as a template."
            )

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)

        if raw is None:
            raise ValueError(f"Config file is empty: {path}")

        config = cls(
            model=ModelConfig(**raw.get("model", {})),
            teacher=TeacherConfig(**raw.get("teacher", {})),
            training=TrainingConfig(**raw.get("training", {})),
        )

        config.validate()
        return config

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to a YAML file, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(
                asdict(self),
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )

        logger.info(f"Config saved to {path}")

    def to_dict(self) -> dict:
        """Convert to nested dictionary."""
        return asdict(self)

    @classmethod
    def for_smoke_test(cls) -> VikosConfig:
        """
        Small logistic classification setup that trains in well under a
        second: two features, annealed momentum, a handful of epochs.
        """
        return cls(
            model=ModelConfig(kind="logistic", feature_dimension=2),
            teacher=TeacherConfig(
                algorithm="momentum",
                learning_rate=0.05,
                annealing_t=500.0,
                inertia=0.5,
            ),
            training=TrainingConfig(
                cost="max_likelihood",
                epochs=5,
                seed=0,
                output_dir="outputs_smoke",
            ),
        )

    def __repr__(self) -> str:
        lines = [
            "VikosConfig(",
            f"  Model:    {self.model.kind}, dim={self.model.feature_dimension}, "
            f"classes={self.model.n_classes}, "
            f"{'static' if self.model.static else 'dynamic'} vectors",
            f"  Teacher:  {self.teacher.algorithm}, lr={self.teacher.learning_rate}, "
            f"t={self.teacher.annealing_t}, inertia={self.teacher.inertia}",
            f"  Training: cost={self.training.cost}, epochs={self.training.epochs}, "
            f"tolerance={self.training.tolerance}",
            ")",
        ]
        return "\n".join(lines)
