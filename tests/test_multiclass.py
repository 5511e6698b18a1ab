"""
Tests for one-vs-rest training and prediction (whats_cooking/multiclass.py).
"""

import threading

import numpy as np
import pytest

from whats_cooking import (
    CancellationToken,
    ConfigurationError,
    InputFormatError,
    LinearDecisionFunction,
    LinearSVCTrainer,
    OneVsRestDecisionFunction,
    OneVsRestTrainer,
    TrainingCancelled,
    TrainingFailure,
    encode_ingredients,
)


class RecordingTrainer:
    """Binary trainer that remembers which labelings it was asked to fit."""

    def __init__(self):
        self.calls = []
        self._lock = threading.Lock()

    def train(self, X, y):
        with self._lock:
            self.calls.append(np.asarray(y).tolist())
        weights = np.asarray(X).T @ np.asarray(y, dtype=float)
        return LinearDecisionFunction(weights, 0.0)


class FailingTrainer:
    def train(self, X, y):
        raise RuntimeError("solver diverged")


def constant(score, width=2):
    return LinearDecisionFunction(np.zeros(width), score)


def test_toy_scenario(toy_model, toy_vocabulary):
    assert toy_model.labels == ("italian", "mexican")
    assert len(toy_model.classifiers) == 2
    vector = encode_ingredients(["pasta", "tomato"], toy_vocabulary)
    assert toy_model.predict(vector) == "italian"


def test_unknown_ingredients_still_get_a_known_label(toy_model, toy_vocabulary):
    zeros = encode_ingredients(["unknown_item"], toy_vocabulary)
    assert not zeros.any()
    assert toy_model.predict(zeros) in {"italian", "mexican"}


def test_predictions_stay_inside_label_set(corpus_model, corpus):
    _, X, labels = corpus
    assert set(corpus_model.predict_many(X)) <= set(labels)
    assert corpus_model.predict_many(X) == labels


def test_predict_many_matches_predict(corpus_model, corpus):
    _, X, _ = corpus
    assert corpus_model.predict_many(X) == [corpus_model.predict(row) for row in X]


def test_predict_with_scores_is_in_label_order(corpus_model, corpus):
    _, X, _ = corpus
    scores = corpus_model.predict_with_scores(X[0])
    assert list(scores) == list(corpus_model.labels)
    assert max(scores, key=scores.get) == corpus_model.predict(X[0])
    np.testing.assert_allclose(corpus_model.decision_matrix(X[:1])[0], list(scores.values()))


def test_one_classifier_per_label_with_rest_relabeling():
    X = np.eye(3)
    trainer = RecordingTrainer()
    fn = OneVsRestTrainer(trainer).train(X, ["b", "a", "c"])
    assert fn.labels == ("a", "b", "c")
    # labels are trained in sorted order, each against all others
    assert trainer.calls == [[-1, 1, -1], [1, -1, -1], [-1, -1, 1]]


def test_labels_come_only_from_training_data():
    fn = OneVsRestTrainer(RecordingTrainer()).train(np.eye(4), ["x", "y", "x", "y"])
    assert fn.labels == ("x", "y")


def test_ties_go_to_first_label_in_sorted_order():
    fn = OneVsRestDecisionFunction(["greek", "italian", "thai"], {
        "greek": constant(0.5),
        "italian": constant(0.5),
        "thai": constant(-1.0),
    })
    assert fn.predict([0.0, 0.0]) == "greek"
    assert fn.predict_many(np.zeros((3, 2))) == ["greek"] * 3


def test_empty_training_set_is_rejected():
    with pytest.raises(ConfigurationError):
        OneVsRestTrainer(LinearSVCTrainer()).train([], [])


def test_single_label_is_rejected():
    with pytest.raises(ConfigurationError):
        OneVsRestTrainer(LinearSVCTrainer()).train(np.eye(2), ["italian", "italian"])


def test_mismatched_lengths_are_rejected():
    with pytest.raises(ConfigurationError):
        OneVsRestTrainer(LinearSVCTrainer()).train(np.eye(3), ["a", "b"])


def test_binary_failure_aborts_whole_training():
    with pytest.raises(TrainingFailure) as err:
        OneVsRestTrainer(FailingTrainer()).train(np.eye(2), ["a", "b"])
    assert err.value.label == "a"
    assert isinstance(err.value.__cause__, RuntimeError)
    assert err.value.stage == "train"


def test_cancellation_between_labels():
    token = CancellationToken()

    class CancelAfterFirst(RecordingTrainer):
        def train(self, X, y):
            token.cancel()
            return super().train(X, y)

    trainer = CancelAfterFirst()
    with pytest.raises(TrainingCancelled) as err:
        OneVsRestTrainer(trainer).train(np.eye(3), ["a", "b", "c"], cancel_token=token)
    assert err.value.label == "b"
    assert len(trainer.calls) == 1


def test_parallel_training_matches_sequential(corpus):
    _, X, labels = corpus
    sequential = OneVsRestTrainer(LinearSVCTrainer(), n_jobs=1).train(X, labels)
    parallel = OneVsRestTrainer(LinearSVCTrainer(), n_jobs=2).train(X, labels)
    assert parallel.labels == sequential.labels
    np.testing.assert_array_equal(parallel.decision_matrix(X), sequential.decision_matrix(X))


def test_wrong_vector_length_is_input_error(toy_model):
    with pytest.raises(InputFormatError):
        toy_model.predict(np.zeros(3))
    with pytest.raises(InputFormatError):
        toy_model.predict_many(np.zeros((2, 4)))


def test_decision_function_requires_one_classifier_per_label():
    with pytest.raises(ValueError):
        OneVsRestDecisionFunction(["a", "b"], {"a": constant(0.0)})
    with pytest.raises(ValueError):
        OneVsRestDecisionFunction(["b", "a"], {"a": constant(0.0), "b": constant(0.0)})


def test_cancellation_on_parallel_path():
    token = CancellationToken()

    class CancelOnFirstCall(RecordingTrainer):
        def train(self, X, y):
            token.cancel()
            return super().train(X, y)

    trainer = CancelOnFirstCall()
    labels = ["a", "b", "c", "d"]
    with pytest.raises(TrainingCancelled):
        OneVsRestTrainer(trainer, n_jobs=2).train(np.eye(4), labels, cancel_token=token)
    # at most one training per worker starts before the flag is seen
    assert 1 <= len(trainer.calls) <= 2


def test_cancelled_before_start_trains_nothing():
    token = CancellationToken()
    token.cancel()
    trainer = RecordingTrainer()
    with pytest.raises(TrainingCancelled):
        OneVsRestTrainer(trainer, n_jobs=2).train(np.eye(2), ["a", "b"], cancel_token=token)
    assert trainer.calls == []
