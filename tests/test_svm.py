"""
Tests for the binary linear SVM trainers.
"""

import numpy as np
import pytest

from whats_cooking import ConfigurationError, GradientDescentSVMTrainer, LinearDecisionFunction, LinearSVCTrainer
from whats_cooking.svm import LinearSVMGD

X = np.array(
    [
        [1, 0, 1, 0],
        [1, 1, 0, 0],
        [1, 0, 0, 1],
        [0, 1, 0, 1],
        [0, 0, 1, 1],
        [0, 1, 1, 0],
    ],
    dtype=float,
)
# positive iff feature 0 is present
y = np.array([1, 1, 1, -1, -1, -1])


@pytest.mark.parametrize(
    "trainer",
    [LinearSVCTrainer(c=5.0), GradientDescentSVMTrainer(c=5.0, lr=0.05, max_iter=3000)],
    ids=["liblinear", "gd"],
)
def test_trainers_separate_simple_problem(trainer):
    fn = trainer.train(X, y)
    assert isinstance(fn, LinearDecisionFunction)
    assert fn.num_features == 4
    assert np.array_equal(np.sign(fn.scores(X)), y)
    assert fn.score(X[0]) == pytest.approx(fn.scores(X)[0])
    assert fn.weights[0] == max(fn.weights)


def test_gd_trainer_is_deterministic():
    trainer = GradientDescentSVMTrainer(max_iter=200)
    a, b = trainer.train(X, y), trainer.train(X, y)
    assert np.array_equal(a.weights, b.weights) and a.bias == b.bias


@pytest.mark.parametrize("trainer", [LinearSVCTrainer(), GradientDescentSVMTrainer()], ids=["liblinear", "gd"])
def test_one_sided_labels_are_rejected(trainer):
    with pytest.raises(ValueError):
        trainer.train(X, np.ones(len(X)))


def test_bad_labels_are_rejected():
    with pytest.raises(ValueError):
        LinearSVCTrainer().train(X, np.array([0, 1, 0, 1, 0, 1]))


@pytest.mark.parametrize("kwargs", [{"c": 0}, {"c": -1.0}])
def test_non_positive_c(kwargs):
    with pytest.raises(ConfigurationError):
        LinearSVCTrainer(**kwargs)
    with pytest.raises(ConfigurationError):
        GradientDescentSVMTrainer(**kwargs)


def test_decision_function_is_read_only():
    fn = LinearDecisionFunction([1.0, -2.0], 0.5)
    with pytest.raises(ValueError):
        fn.weights[0] = 3.0
    assert fn.score([1, 1]) == pytest.approx(-0.5)
    assert LinearDecisionFunction.from_params(fn.to_params()).bias == 0.5


def test_gd_model_decision_function_matches_trainer_output():
    model = LinearSVMGD(c=5.0, lr=0.05, max_iter=500).fit(X, y)
    fn = GradientDescentSVMTrainer(c=5.0, lr=0.05, max_iter=500).train(X, y)
    assert 1 <= model.n_iter_ <= 500
    np.testing.assert_allclose(model.decision_function(X), fn.scores(X))
