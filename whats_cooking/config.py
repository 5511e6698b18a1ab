from __future__ import annotations

"""
Training configuration: vocabulary cap and binary SVM hyper-parameters,
passed explicitly into the pipeline.
"""

from dataclasses import dataclass

import numpy as np

from .constants import (
    DEFAULT_C,
    DEFAULT_LR,
    DEFAULT_MAX_ITER,
    DEFAULT_MAX_VOCAB,
    DEFAULT_TOL,
    SOLVERS,
)
from .errors import ConfigurationError
from .multiclass import OneVsRestTrainer
from .svm import GradientDescentSVMTrainer, LinearSVCTrainer


@dataclass(frozen=True)
class TrainingConfig:
    """Immutable, validated settings for one training run."""

    max_vocab: int = DEFAULT_MAX_VOCAB
    solver: str = "liblinear"
    c: float = DEFAULT_C
    max_iter: int = DEFAULT_MAX_ITER
    tol: float = DEFAULT_TOL
    lr: float = DEFAULT_LR
    n_jobs: int = 1

    def __post_init__(self):
        if (
            isinstance(self.max_vocab, bool)
            or not isinstance(self.max_vocab, (int, np.integer))
            or self.max_vocab <= 0
        ):
            raise ConfigurationError(f"max_vocab must be a positive integer, got {self.max_vocab!r}")
        if self.solver not in SOLVERS:
            raise ConfigurationError(f"unknown solver '{self.solver}', choose from {SOLVERS}")
        if self.c <= 0:
            raise ConfigurationError(f"C must be positive, got {self.c}")
        if self.max_iter <= 0:
            raise ConfigurationError(f"max_iter must be positive, got {self.max_iter}")
        if self.tol <= 0 or self.lr <= 0:
            raise ConfigurationError("tol and lr must be positive")
        if self.n_jobs == 0:
            raise ConfigurationError("n_jobs must be non-zero (use -1 for all cores)")

    def make_binary_trainer(self):
        if self.solver == "gd":
            return GradientDescentSVMTrainer(c=self.c, lr=self.lr, max_iter=self.max_iter, tol=self.tol)
        return LinearSVCTrainer(c=self.c, max_iter=self.max_iter, tol=self.tol)

    def make_trainer(self) -> OneVsRestTrainer:
        return OneVsRestTrainer(self.make_binary_trainer(), n_jobs=self.n_jobs)
