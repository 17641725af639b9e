#!/usr/bin/env python3
"""
Tests for vikos teachers, the training driver, checkpoints, the trainer,
configuration and builders.

Run all tests:
    python -m pytest tests/ -v --tb=short

Run a specific test class:
    python -m pytest tests/test_training.py::TestCheckpoint -v
"""

import math
import sys
from itertools import cycle, islice
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

REPO_ROOT = Path(__file__).resolve().parent.parent

# y = x + 3
LINE_1D = [([0.0], 3.0), ([1.0], 4.0), ([2.0], 5.0)]

# y = x0 + 2 x1 + 3
PLANE_2D = [([0.0, 7.0], 17.0), ([1.0, 2.0], 8.0), ([2.0, -2.0], 1.0)]

# Linearly separable, positive class to the lower right.
SEPARABLE = [
    ([2.7, 2.5], False),
    ([1.4, 2.3], False),
    ([3.3, 4.4], False),
    ([1.3, 1.8], False),
    ([3.0, 3.0], False),
    ([7.6, 2.7], True),
    ([5.3, 2.0], True),
    ([6.9, 1.7], True),
    ([8.6, -0.2], True),
    ([7.6, 3.5], True),
]

# Three clusters: near the origin, along x0, along x1.
CLUSTERS = [
    ([0.0, 0.0], 0), ([0.5, 0.3], 0), ([0.2, 0.6], 0), ([0.4, 0.1], 0),
    ([5.0, 0.0], 1), ([5.5, 0.4], 1), ([4.8, 0.2], 1), ([5.2, 0.7], 1),
    ([0.0, 5.0], 2), ([0.3, 5.4], 2), ([0.6, 4.8], 2), ([0.1, 5.2], 2),
]


def _events(history, n):
    return islice(cycle(history), n)


def _teacher(name, *args):
    from vikos import training
    return getattr(training, name)(*args)


# =============================================================================
# Teacher Tests
# =============================================================================

class TestHyperparameters:
    """Teachers validate their hyperparameters on construction."""

    def test_non_positive_learning_rate(self):
        """Learning rates must be > 0."""
        from vikos.errors import InvalidHyperparameter
        from vikos.training import Adagrad, GradientDescent
        with pytest.raises(InvalidHyperparameter, match="learning_rate"):
            GradientDescent(0.0)
        with pytest.raises(InvalidHyperparameter):
            GradientDescent(-0.1)
        with pytest.raises(InvalidHyperparameter):
            Adagrad(float("nan"))

    def test_annealing_t(self):
        """The annealing horizon must be > 0."""
        from vikos.errors import InvalidHyperparameter
        from vikos.training import GradientDescentAl
        with pytest.raises(InvalidHyperparameter, match="t must be"):
            GradientDescentAl(0.1, 0.0)

    def test_inertia_range(self):
        """Inertia must lie in [0, 1)."""
        from vikos.errors import InvalidHyperparameter
        from vikos.training import Momentum, Nesterov
        with pytest.raises(InvalidHyperparameter, match="inertia"):
            Momentum(0.1, 100.0, 1.0)
        with pytest.raises(InvalidHyperparameter):
            Nesterov(0.1, 100.0, -0.5)
        Momentum(0.1, 100.0, 0.0)

    def test_epsilon(self):
        """Adagrad's epsilon must be > 0."""
        from vikos.errors import InvalidHyperparameter
        from vikos.training import Adagrad
        with pytest.raises(InvalidHyperparameter, match="epsilon"):
            Adagrad(0.1, epsilon=0.0)

    def test_is_value_error(self):
        """InvalidHyperparameter should be catchable as ValueError."""
        from vikos.training import GradientDescent
        with pytest.raises(ValueError):
            GradientDescent(-1.0)


class TestAnnealing:
    """Tests for the annealed learning rate schedule."""

    def test_schedule(self):
        """Rate is l0 at the start, halves after t events, thirds after 2t."""
        from vikos.training import annealed_learning_rate
        assert annealed_learning_rate(0, 1.0, 10.0) == 1.0
        assert annealed_learning_rate(10, 1.0, 10.0) == pytest.approx(0.5)
        assert annealed_learning_rate(20, 1.0, 10.0) == pytest.approx(1.0 / 3.0)

    def test_teacher_reports_next_rate(self):
        """learning_rate should follow the teacher's event count."""
        from vikos.cost import LeastSquares
        from vikos.model import Constant
        from vikos.training import GradientDescentAl
        teacher = GradientDescentAl(0.4, 2.0)
        assert teacher.learning_rate == pytest.approx(0.4)
        for _ in range(2):
            teacher.teach_event(Constant(), LeastSquares(), None, 1.0)
        assert teacher.state.num_events == 2
        assert teacher.learning_rate == pytest.approx(0.2)


class TestSingleSteps:
    """Exact single-event updates."""

    def test_gradient_descent_step(self):
        """One least-squares step moves the coefficients by -l * 2 (p - t) x."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import GradientDescent
        from vikos.vector import DynamicVector
        model = Linear(DynamicVector([2.0, -1.0]), bias=0.0)
        GradientDescent(0.1).teach_event(model, LeastSquares(), [3.0, 4.0], 0.0)
        np.testing.assert_allclose(model.weights.values, [0.8, -2.6])
        assert model.bias == pytest.approx(-0.4)

    def test_adagrad_first_step(self):
        """First Adagrad step moves every touched coefficient by about l."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import Adagrad
        model = Linear.with_feature_dimension(1)
        teacher = Adagrad(0.5)
        teacher.teach_event(model, LeastSquares(), [2.0], 1.0)
        np.testing.assert_allclose(model.parameters(), [0.5, 0.5], rtol=1e-6)
        np.testing.assert_allclose(teacher.state.squared_gradients, [16.0, 4.0])

    def test_momentum_without_inertia_is_annealed_descent(self):
        """With inertia 0 the velocity is just the last step."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import GradientDescentAl, Momentum
        a = Linear.with_feature_dimension(2)
        b = Linear.with_feature_dimension(2)
        plain = GradientDescentAl(0.01, 50.0)
        momentum = Momentum(0.01, 50.0, 0.0)
        for features, truth in _events(PLANE_2D, 30):
            plain.teach_event(a, LeastSquares(), features, truth)
            momentum.teach_event(b, LeastSquares(), features, truth)
        np.testing.assert_allclose(a.parameters(), b.parameters())

    def test_nesterov_first_step_matches_momentum(self):
        """With zero velocity the look-ahead is the current position."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import Momentum, Nesterov
        a = Linear.with_feature_dimension(2)
        b = Linear.with_feature_dimension(2)
        Momentum(0.01, 50.0, 0.9).teach_event(a, LeastSquares(), [1.0, 2.0], 8.0)
        Nesterov(0.01, 50.0, 0.9).teach_event(b, LeastSquares(), [1.0, 2.0], 8.0)
        np.testing.assert_allclose(a.parameters(), b.parameters())

    def test_nesterov_leaves_model_at_committed_position(self):
        """The look-ahead position must never be left in the model."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import Nesterov
        model = Linear.with_feature_dimension(1)
        teacher = Nesterov(0.05, 100.0, 0.9)
        for features, truth in _events(LINE_1D, 5):
            before = model.parameters().copy()
            teacher.teach_event(model, LeastSquares(), features, truth)
            np.testing.assert_allclose(
                model.parameters(), before + teacher.state.velocity
            )


# =============================================================================
# Convergence Tests
# =============================================================================

class TestConvergence:
    """Known optima are reached by the matching model/cost pairs."""

    def test_constant_least_squares_finds_mean(self):
        """Least squares on a constant estimates the mean."""
        from vikos.cost import LeastSquares
        from vikos.model import Constant
        from vikos.training import GradientDescentAl, learn_history
        history = [(None, y) for y in (1.0, 3.0, 4.0, 7.0, 8.0, 11.0, 29.0)]
        model = Constant()
        learn_history(GradientDescentAl(0.3, 4.0), LeastSquares(), model, _events(history, 100))
        assert 8.7 < model.c < 9.3

    def test_constant_least_absolute_deviation_finds_median(self):
        """Least absolute deviation on a constant estimates the median."""
        from vikos.cost import LeastAbsoluteDeviation
        from vikos.model import Constant
        from vikos.training import GradientDescentAl, learn_history
        history = [(None, y) for y in (1.0, 3.0, 4.0, 7.0, 8.0, 11.0, 29.0)]
        model = Constant()
        learn_history(
            GradientDescentAl(0.9, 9.0), LeastAbsoluteDeviation(), model, _events(history, 150)
        )
        assert 6.5 < model.c < 7.5

    @pytest.mark.parametrize("name,args,n_events", [
        ("GradientDescent", (0.1,), 300),
        ("Momentum", (0.05, 1000.0, 0.5), 600),
        ("Nesterov", (0.05, 1000.0, 0.5), 600),
        ("Adagrad", (0.5,), 1500),
    ])
    def test_linear_regression_1d(self, name, args, n_events):
        """Every teacher should fit y = x + 3."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import learn_history
        model = Linear.with_feature_dimension(1)
        learn_history(_teacher(name, *args), LeastSquares(), model, _events(LINE_1D, n_events))
        assert model.weights.at(0) == pytest.approx(1.0, abs=0.1)
        assert model.bias == pytest.approx(3.0, abs=0.1)

    def test_linear_regression_2d_momentum(self):
        """Momentum should fit y = x0 + 2 x1 + 3 with a static model."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import Momentum, learn_history
        from vikos.vector import StaticVector
        model = Linear.zeros(StaticVector[2])
        teacher = Momentum(0.009, 1000.0, 0.995)
        learn_history(teacher, LeastSquares(), model, _events(PLANE_2D, 1500))
        np.testing.assert_allclose(model.weights.values, [1.0, 2.0], atol=0.15)
        assert model.bias == pytest.approx(3.0, abs=0.15)

    def test_logistic_separates_classes(self):
        """Logistic regression should classify separable data perfectly."""
        from vikos.cost import MaxLikelihood
        from vikos.evaluation import classification_errors, mean_cost
        from vikos.model import Logistic
        from vikos.training import GradientDescent, learn_history
        from vikos.vector import StaticVector
        model = Logistic.zeros(StaticVector[2])
        cost = MaxLikelihood()
        before = mean_cost(model, cost, SEPARABLE)
        learn_history(GradientDescent(0.3), cost, model, _events(SEPARABLE, 200))
        assert before == pytest.approx(math.log(2.0))
        assert mean_cost(model, cost, SEPARABLE) < before
        assert classification_errors(model, SEPARABLE) == 0

    def test_logistic_recovers_from_confident_mistake(self):
        """A saturated, wrong logistic model is still pulled back."""
        from vikos.cost import MaxLikelihood
        from vikos.evaluation import crisp
        from vikos.model import Logistic
        from vikos.training import GradientDescent, learn_history
        model = Logistic.with_feature_dimension(1)
        model.set_parameters([40.0, 0.0])
        learn_history(GradientDescent(0.5), MaxLikelihood(), model, [([1.0], False)] * 100)
        assert model.predict([1.0]) < 0.5
        assert crisp(model.predict([1.0])) is False

    def test_one_vs_rest_classifies_clusters(self):
        """One logistic model per class should recover three clusters."""
        from vikos.cost import MaxLikelihood
        from vikos.evaluation import accuracy, crisp
        from vikos.model import OneVsRest
        from vikos.training import GradientDescent, learn_history
        from vikos.vector import StaticVector
        model = OneVsRest.logistic(3, vector_type=StaticVector[2])
        learn_history(GradientDescent(0.1), MaxLikelihood(), model, _events(CLUSTERS, 1200))
        assert accuracy(model, CLUSTERS) >= 0.9
        assert crisp(model.predict([5.1, 0.3])) == 1


# =============================================================================
# Failure Tests
# =============================================================================

class TestFailures:
    """Errors leave the model and teacher untouched."""

    def test_diverging_update_leaves_model_unchanged(self):
        """A non-finite result is rejected before it is written."""
        from vikos.cost import LeastSquares
        from vikos.errors import NumericDivergence
        from vikos.model import Linear
        from vikos.training import GradientDescent
        model = Linear.with_feature_dimension(1)
        teacher = GradientDescent(1e300)
        with pytest.raises(NumericDivergence, match="coefficients"):
            teacher.teach_event(model, LeastSquares(), [1e100], 1.0)
        np.testing.assert_array_equal(model.parameters(), [0.0, 0.0])
        assert teacher.state.num_events == 0

    def test_non_finite_gradient(self):
        """An infinite prediction gives an infinite gradient and is rejected."""
        from vikos.cost import LeastSquares
        from vikos.errors import NumericDivergence
        from vikos.model import Linear
        from vikos.training import Momentum
        from vikos.vector import DynamicVector
        model = Linear(DynamicVector([1e200]), bias=0.0)
        teacher = Momentum(0.1, 100.0, 0.9)
        with pytest.raises(NumericDivergence, match="gradient"):
            teacher.teach_event(model, LeastSquares(), [1e200], 1.0)
        np.testing.assert_array_equal(model.parameters(), [1e200, 0.0])
        assert teacher.state.velocity is None
        assert teacher.state.num_events == 0

    def test_divergence_is_arithmetic_error(self):
        """NumericDivergence should be catchable as ArithmeticError."""
        from vikos.errors import NumericDivergence, VikosError
        assert issubclass(NumericDivergence, ArithmeticError)
        assert issubclass(NumericDivergence, VikosError)

    def test_wrong_feature_dimension_leaves_state_unchanged(self):
        """Dimension errors surface before anything is written."""
        from vikos.cost import LeastSquares
        from vikos.errors import DimensionMismatch
        from vikos.model import Linear
        from vikos.training import Momentum
        model = Linear.with_feature_dimension(2)
        teacher = Momentum(0.1, 100.0, 0.5)
        teacher.teach_event(model, LeastSquares(), [1.0, 2.0], 3.0)
        before = model.parameters().copy()
        velocity = teacher.state.velocity.copy()
        with pytest.raises(DimensionMismatch):
            teacher.teach_event(model, LeastSquares(), [1.0, 2.0, 3.0], 3.0)
        np.testing.assert_array_equal(model.parameters(), before)
        np.testing.assert_array_equal(teacher.state.velocity, velocity)
        assert teacher.state.num_events == 1

    def test_teacher_bound_to_coefficient_count(self):
        """A teacher's velocity cannot be reused for a differently sized model."""
        from vikos.cost import LeastSquares
        from vikos.errors import DimensionMismatch
        from vikos.model import Linear
        from vikos.training import Momentum
        teacher = Momentum(0.1, 100.0, 0.5)
        teacher.teach_event(Linear.with_feature_dimension(2), LeastSquares(), [1.0, 2.0], 3.0)
        with pytest.raises(DimensionMismatch):
            teacher.teach_event(Linear.with_feature_dimension(1), LeastSquares(), [1.0], 3.0)

    def test_reset(self):
        """reset should forget events and velocity."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import Momentum
        teacher = Momentum(0.1, 100.0, 0.5)
        teacher.teach_event(Linear.with_feature_dimension(1), LeastSquares(), [1.0], 3.0)
        teacher.reset()
        assert teacher.state.num_events == 0
        assert teacher.state.velocity is None


# =============================================================================
# State and Checkpoint Tests
# =============================================================================

class TestTeacherState:
    """Tests for the teacher state records."""

    def test_dict_round_trip(self):
        """to_dict / from_dict should reproduce the state."""
        from vikos.training import MomentumState
        state = MomentumState(num_events=7, velocity=np.array([0.5, -1.0]))
        restored = MomentumState.from_dict(state.to_dict())
        assert restored.num_events == 7
        np.testing.assert_array_equal(restored.velocity, [0.5, -1.0])

    def test_copy_is_independent(self):
        """Mutating a copy should not touch the original."""
        from vikos.training import AdagradState
        state = AdagradState(num_events=1, squared_gradients=np.array([1.0]))
        clone = state.copy()
        clone.squared_gradients[0] = 5.0
        clone.num_events = 2
        assert state.squared_gradients[0] == 1.0
        assert state.num_events == 1

    def test_unknown_field(self):
        """from_dict should refuse fields the record does not have."""
        from vikos.training import TeacherState
        with pytest.raises(KeyError, match="velocity"):
            TeacherState.from_dict({"num_events": 1, "velocity": [0.0]})

    def test_tensors_skip_unallocated(self):
        """Unallocated arrays are left out, counters become int64."""
        from vikos.training import MomentumState
        tensors = MomentumState(num_events=3).to_tensors()
        assert set(tensors) == {"num_events"}
        assert tensors["num_events"].dtype == np.int64
        assert MomentumState.from_tensors(tensors).velocity is None

    def test_allocate(self):
        """allocate should size arrays once and check them afterwards."""
        from vikos.errors import DimensionMismatch
        from vikos.training import MomentumState
        state = MomentumState()
        state.allocate(3)
        np.testing.assert_array_equal(state.velocity, [0.0, 0.0, 0.0])
        with pytest.raises(DimensionMismatch):
            state.allocate(4)


class TestCheckpoint:
    """Tests for saving and restoring a training run."""

    @pytest.mark.parametrize("name,args", [
        ("GradientDescentAl", (0.01, 20.0)),
        ("Momentum", (0.01, 100.0, 0.9)),
        ("Nesterov", (0.01, 100.0, 0.9)),
        ("Adagrad", (0.3,)),
    ])
    def test_resume_matches_uninterrupted_run(self, tmp_path, name, args):
        """Save after 30 events, resume fresh, 30 more = 60 in one go."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import learn_history, load_checkpoint, save_checkpoint
        cost = LeastSquares()
        events = list(_events(PLANE_2D, 60))

        reference = Linear.with_feature_dimension(2)
        learn_history(_teacher(name, *args), cost, reference, events)

        model = Linear.with_feature_dimension(2)
        teacher = _teacher(name, *args)
        learn_history(teacher, cost, model, events[:30])
        path = tmp_path / "run.safetensors"
        save_checkpoint(path, model, teacher, step=30)

        resumed_model = Linear.with_feature_dimension(2)
        resumed_teacher = _teacher(name, *args)
        assert load_checkpoint(path, resumed_model, resumed_teacher) == 30
        assert resumed_teacher.state.num_events == 30
        learn_history(resumed_teacher, cost, resumed_model, events[30:])

        np.testing.assert_array_equal(resumed_model.parameters(), reference.parameters())

    def test_teacher_state_only(self, tmp_path):
        """Teacher state can be saved and restored on its own."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import Momentum, learn_history, load_teacher_state, save_teacher_state
        teacher = Momentum(0.01, 100.0, 0.9)
        learn_history(teacher, LeastSquares(), Linear.with_feature_dimension(2), PLANE_2D)
        path = tmp_path / "teacher.safetensors"
        save_teacher_state(path, teacher)

        restored = Momentum(0.01, 100.0, 0.9)
        load_teacher_state(path, restored)
        assert restored.state.num_events == 3
        np.testing.assert_array_equal(restored.state.velocity, teacher.state.velocity)

    def test_wrong_teacher_class(self, tmp_path):
        """A checkpoint only loads into the teacher class that wrote it."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import Adagrad, Momentum, learn_history, load_checkpoint, save_checkpoint
        model = Linear.with_feature_dimension(2)
        teacher = Momentum(0.01, 100.0, 0.9)
        learn_history(teacher, LeastSquares(), model, PLANE_2D)
        path = tmp_path / "run.safetensors"
        save_checkpoint(path, model, teacher)
        with pytest.raises(ValueError, match="Momentum"):
            load_checkpoint(path, Linear.with_feature_dimension(2), Adagrad(0.1))

    def test_malformed_teacher_section_leaves_model_untouched(self, tmp_path):
        """A checkpoint whose teacher state does not parse changes nothing."""
        from safetensors.numpy import save_file
        from vikos.model import Linear
        from vikos.training import GradientDescent, load_checkpoint
        path = tmp_path / "bad.safetensors"
        save_file(
            {
                "model.coefficients": np.array([5.0, 6.0]),
                "teacher.num_events": np.array([3], dtype=np.int64),
                "teacher.velocity": np.zeros(2),
            },
            str(path),
            metadata={"format_version": "1", "model": "Linear", "teacher": "GradientDescent"},
        )
        model = Linear.with_feature_dimension(1)
        teacher = GradientDescent(0.1)
        with pytest.raises(KeyError, match="velocity"):
            load_checkpoint(path, model, teacher)
        np.testing.assert_array_equal(model.parameters(), [0.0, 0.0])
        assert teacher.state.num_events == 0

    def test_missing_file(self, tmp_path):
        """Loading a nonexistent checkpoint raises FileNotFoundError."""
        from vikos.model import Linear
        from vikos.training import GradientDescent, load_checkpoint
        with pytest.raises(FileNotFoundError):
            load_checkpoint(tmp_path / "missing.safetensors",
                            Linear.with_feature_dimension(1), GradientDescent(0.1))


# =============================================================================
# Driver and Trainer Tests
# =============================================================================

class TestLearnHistory:
    """Tests for the sequence-driven training driver."""

    def test_counts_events(self):
        """Returns the number of events taught."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import GradientDescent, learn_history
        teacher = GradientDescent(0.1)
        n = learn_history(teacher, LeastSquares(), Linear.with_feature_dimension(1), LINE_1D)
        assert n == 3
        assert teacher.state.num_events == 3

    def test_endless_stream(self):
        """Streams are consumed lazily; the caller decides where to stop."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import GradientDescent, learn_history
        n = learn_history(
            GradientDescent(0.1), LeastSquares(), Linear.with_feature_dimension(1),
            _events(LINE_1D, 10), progress=True,
        )
        assert n == 10

    def test_state_carries_over(self):
        """Two calls should continue the same annealing schedule."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import GradientDescentAl, learn_history
        split_model = Linear.with_feature_dimension(1)
        split = GradientDescentAl(0.1, 5.0)
        learn_history(split, LeastSquares(), split_model, LINE_1D)
        learn_history(split, LeastSquares(), split_model, LINE_1D)

        whole_model = Linear.with_feature_dimension(1)
        learn_history(GradientDescentAl(0.1, 5.0), LeastSquares(), whole_model, LINE_1D * 2)
        np.testing.assert_array_equal(split_model.parameters(), whole_model.parameters())


class TestTrainer:
    """Tests for the epoch runner."""

    def test_epoch_costs_decrease(self):
        """Mean epoch cost should fall while fitting separable data."""
        from vikos.config import TrainingConfig
        from vikos.cost import MaxLikelihood
        from vikos.model import Logistic
        from vikos.training import GradientDescent, Trainer
        trainer = Trainer(
            Logistic.with_feature_dimension(2), MaxLikelihood(), GradientDescent(0.1),
            config=TrainingConfig(cost="max_likelihood", epochs=50),
        )
        results = trainer.train(SEPARABLE)
        assert len(results["epoch_costs"]) == 50
        assert results["final_cost"] < results["epoch_costs"][0]
        assert results["total_events"] == 500
        assert results["total_steps"] == 500
        assert not results["stopped_early"]

    def test_early_stopping(self):
        """Training stops once the cost no longer improves by tolerance."""
        from vikos.config import TrainingConfig
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import GradientDescent, Trainer
        trainer = Trainer(
            Linear.with_feature_dimension(1), LeastSquares(), GradientDescent(0.1),
            config=TrainingConfig(epochs=500, tolerance=1e-4),
        )
        results = trainer.train(LINE_1D)
        assert results["stopped_early"]
        assert len(results["epoch_costs"]) < 500

    def test_shuffle_is_seeded(self):
        """Same seed, same visiting order, same coefficients."""
        from vikos.config import TrainingConfig
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import GradientDescent, Trainer
        models = []
        for _ in range(2):
            model = Linear.with_feature_dimension(2)
            Trainer(
                model, LeastSquares(), GradientDescent(0.01),
                config=TrainingConfig(epochs=5, shuffle=True, seed=7),
            ).train(PLANE_2D)
            models.append(model)
        np.testing.assert_array_equal(models[0].parameters(), models[1].parameters())

    def test_empty_history(self):
        """An empty history is rejected."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import GradientDescent, Trainer
        trainer = Trainer(Linear.with_feature_dimension(1), LeastSquares(), GradientDescent(0.1))
        with pytest.raises(ValueError, match="empty history"):
            trainer.train([])

    def test_divergence_is_reraised(self):
        """The trainer logs a diverging event and re-raises it."""
        from vikos.cost import LeastSquares
        from vikos.errors import NumericDivergence
        from vikos.model import Linear
        from vikos.training import GradientDescent, Trainer
        model = Linear.with_feature_dimension(1)
        trainer = Trainer(model, LeastSquares(), GradientDescent(1e300))
        with pytest.raises(NumericDivergence):
            trainer.train([([1e100], 1.0)], epochs=1)
        np.testing.assert_array_equal(model.parameters(), [0.0, 0.0])
        assert trainer.global_step == 0

    def test_periodic_checkpoints_are_pruned(self, tmp_path):
        """Only the newest keep_checkpoints files remain."""
        from vikos.config import TrainingConfig
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import GradientDescent, Trainer
        trainer = Trainer(
            Linear.with_feature_dimension(1), LeastSquares(), GradientDescent(0.05),
            config=TrainingConfig(epochs=2, checkpoint_every=3, keep_checkpoints=2),
            name="line",
        )
        trainer.train(LINE_1D * 3, output_dir=str(tmp_path))
        names = sorted(p.name for p in tmp_path.glob("*.safetensors"))
        assert names == [
            "checkpoint_line_step_15.safetensors",
            "checkpoint_line_step_18.safetensors",
        ]

    def test_save_and_resume(self, tmp_path):
        """resume restores coefficients, teacher state and the step counter."""
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import Nesterov, Trainer
        trainer = Trainer(Linear.with_feature_dimension(2), LeastSquares(), Nesterov(0.01, 100.0, 0.9))
        trainer.train(PLANE_2D, epochs=4)
        path = tmp_path / "trainer.safetensors"
        trainer.save(path)

        fresh = Trainer(Linear.with_feature_dimension(2), LeastSquares(), Nesterov(0.01, 100.0, 0.9))
        assert fresh.resume(path) == 12
        np.testing.assert_array_equal(fresh.model.parameters(), trainer.model.parameters())
        np.testing.assert_array_equal(fresh.teacher.state.velocity, trainer.teacher.state.velocity)

    def test_shuffled_resume_matches_uninterrupted_run(self, tmp_path):
        """2 epochs, save, resume fresh, 2 more = 4 shuffled epochs in one go."""
        from vikos.config import TrainingConfig
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import Momentum, Trainer

        def make_trainer():
            return Trainer(
                Linear.with_feature_dimension(2), LeastSquares(), Momentum(0.005, 100.0, 0.5),
                config=TrainingConfig(epochs=4, shuffle=True, seed=3),
            )

        reference = make_trainer()
        reference.train(PLANE_2D * 2)

        first = make_trainer()
        first.train(PLANE_2D * 2, epochs=2)
        path = tmp_path / "half.safetensors"
        first.save(path)

        resumed = make_trainer()
        resumed.resume(path)
        resumed.train(PLANE_2D * 2, epochs=2)

        assert resumed.global_step == reference.global_step == 24
        np.testing.assert_array_equal(resumed.model.parameters(), reference.model.parameters())

    def test_resume_from_mid_epoch_checkpoint(self, tmp_path):
        """A checkpoint written inside an epoch resumes at the same position."""
        from vikos.config import TrainingConfig
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import GradientDescentAl, Trainer
        config = TrainingConfig(
            epochs=3, shuffle=True, seed=11, checkpoint_every=4, keep_checkpoints=0
        )
        reference = Trainer(
            Linear.with_feature_dimension(2), LeastSquares(), GradientDescentAl(0.01, 50.0),
            config=config, name="mid",
        )
        reference.train(PLANE_2D, output_dir=str(tmp_path))

        resumed = Trainer(
            Linear.with_feature_dimension(2), LeastSquares(), GradientDescentAl(0.01, 50.0),
            config=TrainingConfig(epochs=2, shuffle=True, seed=11), name="mid",
        )
        assert resumed.resume(reference.checkpoint_path(str(tmp_path), "step_4")) == 4
        results = resumed.train(PLANE_2D)

        assert results["total_events"] == 5
        np.testing.assert_array_equal(resumed.model.parameters(), reference.model.parameters())

    def test_epoch_orders_differ_but_repeat(self):
        """Each epoch gets its own order, rebuilt identically on request."""
        from vikos.config import TrainingConfig
        from vikos.cost import LeastSquares
        from vikos.model import Linear
        from vikos.training import GradientDescent, Trainer
        trainer = Trainer(
            Linear.with_feature_dimension(1), LeastSquares(), GradientDescent(0.1),
            config=TrainingConfig(shuffle=True, seed=5),
        )
        orders = [tuple(trainer.epoch_order(epoch, 20)) for epoch in range(3)]
        assert len(set(orders)) == 3
        assert sorted(orders[0]) == list(range(20))
        assert tuple(trainer.epoch_order(1, 20)) == orders[1]

    def test_from_smoke_config(self):
        """The smoke-test configuration should build and train end to end."""
        from vikos.config import VikosConfig
        from vikos.model import Logistic
        from vikos.training import Momentum, Trainer
        trainer = Trainer.from_config(VikosConfig.for_smoke_test(), name="smoke")
        assert isinstance(trainer.model, Logistic)
        assert isinstance(trainer.teacher, Momentum)
        results = trainer.train(SEPARABLE)
        assert results["total_events"] == 50
        assert math.isfinite(results["final_cost"])


# =============================================================================
# Configuration and Builder Tests
# =============================================================================

class TestConfig:
    """Tests for the configuration system."""

    def test_default_config_validates(self):
        """Default config should pass validation."""
        from vikos.config import VikosConfig
        VikosConfig().validate()

    def test_smoke_config_validates(self):
        """Smoke test config should pass validation."""
        from vikos.config import VikosConfig
        config = VikosConfig.for_smoke_test()
        config.validate()
        assert config.training.cost == "max_likelihood"

    def test_invalid_model_kind(self):
        """Unknown model kinds should be rejected."""
        from vikos.config import ModelConfig
        with pytest.raises(ValueError, match="Unknown model kind"):
            ModelConfig(kind="tree").validate()

    def test_multi_class_needs_logistic(self):
        """Only logistic models can be combined one-vs-rest."""
        from vikos.config import ModelConfig
        with pytest.raises(ValueError, match="logistic"):
            ModelConfig(kind="linear", n_classes=3).validate()

    def test_invalid_teacher(self):
        """Bad teacher settings should be rejected."""
        from vikos.config import TeacherConfig
        with pytest.raises(ValueError, match="Unknown teacher"):
            TeacherConfig(algorithm="sgd").validate()
        with pytest.raises(ValueError, match="learning_rate"):
            TeacherConfig(learning_rate=0.0).validate()
        with pytest.raises(ValueError, match="inertia"):
            TeacherConfig(inertia=1.0).validate()

    def test_invalid_training(self):
        """Bad runner settings should be rejected."""
        from vikos.config import TrainingConfig
        with pytest.raises(ValueError, match="Unknown cost"):
            TrainingConfig(cost="hinge").validate()
        with pytest.raises(ValueError, match="epochs"):
            TrainingConfig(epochs=0).validate()

    def test_max_likelihood_needs_probabilities(self):
        """MaxLikelihood with a linear model is inconsistent."""
        from vikos.config import ModelConfig, TrainingConfig, VikosConfig
        config = VikosConfig(
            model=ModelConfig(kind="linear"),
            training=TrainingConfig(cost="max_likelihood"),
        )
        with pytest.raises(ValueError, match="max_likelihood"):
            config.validate()

    def test_yaml_round_trip(self, tmp_path):
        """Config should survive a YAML round trip."""
        from vikos.config import VikosConfig
        config = VikosConfig.for_smoke_test()
        path = tmp_path / "config.yaml"
        config.to_yaml(path)
        loaded = VikosConfig.from_yaml(path)
        assert loaded.to_dict() == config.to_dict()

    def test_missing_yaml(self, tmp_path):
        """Loading a missing config file raises FileNotFoundError."""
        from vikos.config import VikosConfig
        with pytest.raises(FileNotFoundError):
            VikosConfig.from_yaml(tmp_path / "nope.yaml")

    def test_shipped_default_yaml(self):
        """configs/default.yaml should load and validate."""
        from vikos.config import VikosConfig
        config = VikosConfig.from_yaml(REPO_ROOT / "configs" / "default.yaml")
        assert config.teacher.algorithm == "nesterov"
        assert config.model.kind == "logistic"

    def test_repr(self):
        """repr should summarize every section."""
        from vikos.config import VikosConfig
        text = repr(VikosConfig())
        assert "Model:" in text and "Teacher:" in text and "Training:" in text


class TestBuilders:
    """Tests for turning config sections into objects."""

    def test_static_linear(self):
        """static=True should back the model with StaticVector[n]."""
        from vikos.builders import build_model
        from vikos.config import ModelConfig
        from vikos.model import Linear
        from vikos.vector import StaticVector
        model = build_model(ModelConfig(kind="linear", feature_dimension=3, static=True))
        assert isinstance(model, Linear)
        assert model.vector_type is StaticVector[3]
        assert model.num_coefficients == 4

    def test_one_vs_rest(self):
        """n_classes > 1 should build a one-vs-rest model."""
        from vikos.builders import build_model
        from vikos.config import ModelConfig
        from vikos.model import OneVsRest
        model = build_model(ModelConfig(kind="logistic", feature_dimension=2, n_classes=3))
        assert isinstance(model, OneVsRest)
        assert model.n_classes == 3
        assert model.num_coefficients == 9

    def test_constant(self):
        """kind 'constant' needs no feature dimension."""
        from vikos.builders import build_model
        from vikos.config import ModelConfig
        from vikos.model import Constant
        assert isinstance(build_model(ModelConfig(kind="constant")), Constant)

    def test_costs(self):
        """Every configured cost name maps to a cost."""
        from vikos.builders import build_cost
        from vikos.config import COSTS
        from vikos.cost import Cost
        for name in COSTS:
            assert isinstance(build_cost(name), Cost)
        with pytest.raises(ValueError):
            build_cost("hinge")

    def test_teachers(self):
        """Every algorithm maps to its teacher with the configured settings."""
        from vikos.builders import build_teacher
        from vikos.config import TeacherConfig
        from vikos.training import Adagrad, GradientDescent, GradientDescentAl, Momentum, Nesterov
        expected = {
            "gradient_descent": GradientDescent,
            "annealed": GradientDescentAl,
            "momentum": Momentum,
            "nesterov": Nesterov,
            "adagrad": Adagrad,
        }
        for algorithm, cls in expected.items():
            teacher = build_teacher(TeacherConfig(algorithm=algorithm, learning_rate=0.2))
            assert type(teacher) is cls
            assert teacher.state.num_events == 0

        momentum = build_teacher(TeacherConfig(algorithm="momentum", inertia=0.3, annealing_t=50.0))
        assert momentum.hyperparameters() == {"l0": 0.1, "t": 50.0, "inertia": 0.3}


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
