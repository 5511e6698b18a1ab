from __future__ import annotations

"""
Binary linear SVM trainers used as the per-cuisine classifiers.

Both trainers expose `train(X, y)` with y in {-1, +1} and return a
LinearDecisionFunction. LinearSVCTrainer wraps scikit-learn's liblinear
solver; GradientDescentSVMTrainer is a small numpy sub-gradient solver that
needs nothing beyond numpy.
"""

import logging
from typing import Protocol

import numpy as np
from sklearn.svm import LinearSVC

from .constants import DEFAULT_C, DEFAULT_LR, DEFAULT_MAX_ITER, DEFAULT_TOL, NEGATIVE, POSITIVE
from .errors import ConfigurationError

log = logging.getLogger(__name__)


class BinaryDecisionFunction(Protocol):
    def score(self, x) -> float: ...

    def scores(self, X) -> np.ndarray: ...


class BinaryTrainer(Protocol):
    def train(self, X, y) -> BinaryDecisionFunction: ...


class LinearDecisionFunction:
    """
    score(x) = weights . x + bias. Positive means "in class", the magnitude
    is used to compare classifiers of different classes.
    """

    kind = "linear"

    def __init__(self, weights, bias: float):
        weights = np.array(weights, dtype=float)
        if weights.ndim != 1:
            raise ValueError("weights must be a 1-D vector")
        weights.setflags(write=False)
        self.weights = weights
        self.bias = float(bias)

    @property
    def num_features(self) -> int:
        return self.weights.shape[0]

    def score(self, x) -> float:
        return float(np.dot(self.weights, np.asarray(x, dtype=float)) + self.bias)

    def scores(self, X) -> np.ndarray:
        return np.asarray(X, dtype=float) @ self.weights + self.bias

    def to_params(self) -> dict:
        return {"weights": self.weights.tolist(), "bias": self.bias}

    @classmethod
    def from_params(cls, params: dict) -> "LinearDecisionFunction":
        return cls(params["weights"], params["bias"])

    def __repr__(self) -> str:
        return f"LinearDecisionFunction(num_features={self.num_features}, bias={self.bias:.4f})"


def _check_binary_problem(X, y) -> tuple[np.ndarray, np.ndarray]:
    X_arr = np.asarray(X, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    if X_arr.ndim != 2 or X_arr.shape[0] != y_arr.shape[0]:
        raise ValueError(f"X shape {X_arr.shape} does not match {y_arr.shape[0]} labels")
    if not np.isin(y_arr, (NEGATIVE, POSITIVE)).all():
        raise ValueError("binary labels must be -1 or +1")
    if len(np.unique(y_arr)) < 2:
        raise ValueError("binary training set needs both positive and negative samples")
    return X_arr, y_arr


class LinearSVCTrainer:
    """C-SVM with a linear kernel via liblinear (scikit-learn's LinearSVC)."""

    def __init__(
        self,
        c: float = DEFAULT_C,
        max_iter: int = DEFAULT_MAX_ITER,
        tol: float = DEFAULT_TOL,
        random_state: int = 0,
    ):
        if c <= 0:
            raise ConfigurationError(f"C must be positive, got {c}")
        self.c = c
        self.max_iter = max_iter
        self.tol = tol
        self.random_state = random_state

    def train(self, X, y) -> LinearDecisionFunction:
        X_arr, y_arr = _check_binary_problem(X, y)
        model = LinearSVC(
            C=self.c,
            dual="auto",
            max_iter=self.max_iter,
            tol=self.tol,
            random_state=self.random_state,
        )
        model.fit(X_arr, y_arr.astype(int))
        # classes_ is sorted, so the positive side of decision_function is +1
        return LinearDecisionFunction(model.coef_[0], model.intercept_[0])


class LinearSVMGD:
    """
    Minimal soft-margin linear SVM trained with batch sub-gradient descent on
    the hinge loss: 0.5 * |w|^2 + C * mean(max(0, 1 - y (w.x + b))).
    The bias is not regularized.
    """

    def __init__(
        self,
        c: float = DEFAULT_C,
        lr: float = DEFAULT_LR,
        max_iter: int = DEFAULT_MAX_ITER,
        tol: float = DEFAULT_TOL,
    ):
        self.c = c
        self.lr = lr
        self.max_iter = max_iter
        self.tol = tol
        self.weights_: np.ndarray | None = None
        self.n_iter_: int = 0

    @staticmethod
    def _add_bias(X: np.ndarray) -> np.ndarray:
        return np.hstack([np.ones((X.shape[0], 1)), X])

    def fit(self, X, y):
        """Train the model with batch sub-gradient descent."""
        X_arr = np.asarray(X, dtype=float)
        y_arr = np.asarray(y, dtype=float)

        X_bias = self._add_bias(X_arr)
        self.weights_ = np.zeros(X_bias.shape[1])

        for step in range(1, self.max_iter + 1):
            margins = y_arr * (X_bias @ self.weights_)
            violated = margins < 1.0
            grad = -(self.c / len(y_arr)) * (X_bias[violated].T @ y_arr[violated])
            grad[1:] += self.weights_[1:]

            new_weights = self.weights_ - self.lr * grad
            if np.linalg.norm(new_weights - self.weights_) < self.tol:
                self.weights_ = new_weights
                self.n_iter_ = step
                break

            self.weights_ = new_weights
            self.n_iter_ = step

        self.intercept_ = float(self.weights_[0])
        self.coef_ = self.weights_[1:]
        return self

    def decision_function(self, X) -> np.ndarray:
        if self.weights_ is None:
            raise RuntimeError("Model is not fitted.")
        return self._add_bias(np.asarray(X, dtype=float)) @ self.weights_


class GradientDescentSVMTrainer:
    """Binary trainer around LinearSVMGD; deterministic (zero init, full batch)."""

    def __init__(
        self,
        c: float = DEFAULT_C,
        lr: float = DEFAULT_LR,
        max_iter: int = DEFAULT_MAX_ITER,
        tol: float = DEFAULT_TOL,
    ):
        if c <= 0:
            raise ConfigurationError(f"C must be positive, got {c}")
        if lr <= 0:
            raise ConfigurationError(f"learning rate must be positive, got {lr}")
        self.c = c
        self.lr = lr
        self.max_iter = max_iter
        self.tol = tol

    def train(self, X, y) -> LinearDecisionFunction:
        X_arr, y_arr = _check_binary_problem(X, y)
        model = LinearSVMGD(c=self.c, lr=self.lr, max_iter=self.max_iter, tol=self.tol)
        model.fit(X_arr, y_arr)
        log.debug("GD SVM finished after %d steps", model.n_iter_)
        return LinearDecisionFunction(model.coef_, model.intercept_)
