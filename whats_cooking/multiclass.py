from __future__ import annotations

"""
One-vs-rest multiclass classification: one binary classifier per cuisine,
the cuisine whose classifier scores highest wins.
"""

import logging
import threading
from typing import Mapping, Sequence

import numpy as np
from joblib import Parallel, delayed

from .constants import NEGATIVE, POSITIVE
from .errors import ConfigurationError, InputFormatError, TrainingCancelled, TrainingFailure
from .svm import BinaryDecisionFunction, BinaryTrainer

log = logging.getLogger(__name__)


def canonical_labels(labels) -> list[str]:
    """Distinct labels in the order used everywhere (classifiers, reports, exports)."""
    return sorted(set(labels))


class CancellationToken:
    """Cooperative stop flag checked between per-label trainings."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class OneVsRestDecisionFunction:
    """
    Trained multiclass predictor. Immutable; safe to share between threads.
    """

    def __init__(self, labels: Sequence[str], classifiers: Mapping[str, BinaryDecisionFunction]):
        labels = list(labels)
        if not labels:
            raise ValueError("at least one label is required")
        if labels != canonical_labels(labels):
            raise ValueError("labels must be distinct and sorted")
        if set(classifiers) != set(labels):
            raise ValueError("exactly one classifier per label is required")
        widths = {getattr(classifiers[label], "num_features", None) for label in labels}
        if len(widths) != 1:
            raise ValueError(f"classifiers disagree on the feature count: {sorted(map(str, widths))}")

        self._labels = tuple(labels)
        self._classifiers = {label: classifiers[label] for label in labels}
        self._num_features = widths.pop()

    @property
    def labels(self) -> tuple[str, ...]:
        return self._labels

    @property
    def classifiers(self) -> dict[str, BinaryDecisionFunction]:
        return dict(self._classifiers)

    @property
    def num_features(self) -> int | None:
        return self._num_features

    def _check_vector(self, vector) -> np.ndarray:
        x = np.asarray(vector, dtype=float)
        if x.ndim != 1 or (self._num_features is not None and x.shape[0] != self._num_features):
            raise InputFormatError(
                f"feature vector has shape {x.shape}, expected ({self._num_features},)",
                stage="predict",
            )
        return x

    def _check_matrix(self, X) -> np.ndarray:
        X_arr = np.asarray(X, dtype=float)
        if X_arr.ndim != 2 or (
            self._num_features is not None and X_arr.shape[1] != self._num_features
        ):
            raise InputFormatError(
                f"feature matrix has shape {X_arr.shape}, expected (n, {self._num_features})",
                stage="predict",
            )
        return X_arr

    def predict_with_scores(self, vector) -> dict[str, float]:
        x = self._check_vector(vector)
        return {label: self._classifiers[label].score(x) for label in self._labels}

    def predict(self, vector) -> str:
        """Label with the highest score; ties go to the first label in sorted order."""
        scores = self.predict_with_scores(vector)
        return self._labels[int(np.argmax([scores[label] for label in self._labels]))]

    def decision_matrix(self, X) -> np.ndarray:
        """Scores of shape (n_samples, n_labels), columns in `labels` order."""
        X_arr = self._check_matrix(X)
        return np.column_stack(
            [np.asarray(self._classifiers[label].scores(X_arr), dtype=float) for label in self._labels]
        )

    def predict_many(self, X) -> list[str]:
        scores = self.decision_matrix(X)
        if scores.shape[0] == 0:
            return []
        return [self._labels[i] for i in np.argmax(scores, axis=1)]

    def __repr__(self) -> str:
        return f"OneVsRestDecisionFunction(labels={list(self._labels)}, num_features={self._num_features})"


class OneVsRestTrainer:
    """
    Train one binary classifier per distinct label (label vs. all others).
    The binary trainer is only required to provide `train(X, y)`.
    """

    def __init__(self, binary_trainer: BinaryTrainer, n_jobs: int | None = 1):
        self.binary_trainer = binary_trainer
        self.n_jobs = n_jobs

    def _train_one(self, label: str, X: np.ndarray, labels: np.ndarray, cancel_token):
        if cancel_token is not None and cancel_token.cancelled:
            raise TrainingCancelled(f"training cancelled before label '{label}'", label=label)

        y = np.where(labels == label, POSITIVE, NEGATIVE)
        log.debug("Training '%s' vs rest (%d positives)", label, int((y == POSITIVE).sum()))
        try:
            return label, self.binary_trainer.train(X, y)
        except Exception as exc:
            raise TrainingFailure(
                f"binary trainer failed for label '{label}': {exc}", label=label
            ) from exc

    def train(self, X, labels, cancel_token: CancellationToken | None = None) -> OneVsRestDecisionFunction:
        X_arr = np.asarray(X, dtype=float)
        labels_arr = np.asarray(list(labels), dtype=object)

        if labels_arr.shape[0] == 0:
            raise ConfigurationError("cannot train on an empty training set", stage="train")
        if X_arr.ndim != 2 or X_arr.shape[0] != labels_arr.shape[0]:
            raise ConfigurationError(
                f"feature matrix {X_arr.shape} does not match {labels_arr.shape[0]} labels",
                stage="train",
            )
        classes = canonical_labels(labels_arr.tolist())
        if len(classes) < 2:
            raise ConfigurationError(
                f"need at least two distinct labels, got {classes}", stage="train"
            )

        log.info(
            "Training %d one-vs-rest classifiers on %d samples x %d features",
            len(classes),
            X_arr.shape[0],
            X_arr.shape[1],
        )
        if self.n_jobs == 1:
            results = [self._train_one(label, X_arr, labels_arr, cancel_token) for label in classes]
        else:
            results = Parallel(n_jobs=self.n_jobs, prefer="threads")(
                delayed(self._train_one)(label, X_arr, labels_arr, cancel_token) for label in classes
            )

        return OneVsRestDecisionFunction(classes, dict(results))
