from __future__ import annotations

"""
Metric helpers: confusion matrix, accuracy, per-cuisine report, top
ingredients per cuisine and k-fold cross-validation of the trainer.
"""

import logging

import numpy as np
import pandas as pd
from sklearn import metrics
from sklearn.model_selection import StratifiedKFold

from .data_prep import Vocabulary
from .errors import ConfigurationError, InputFormatError
from .multiclass import OneVsRestDecisionFunction, OneVsRestTrainer, canonical_labels

log = logging.getLogger(__name__)


def _confusion_frame(y_true, y_pred, labels) -> pd.DataFrame:
    if len(y_true):
        cm = metrics.confusion_matrix(y_true, y_pred, labels=labels)
    else:
        cm = np.zeros((len(labels), len(labels)), dtype=int)
    return pd.DataFrame(
        cm,
        index=pd.Index(labels, name="true"),
        columns=pd.Index(labels, name="predicted"),
    )


def confusion_matrix(fn: OneVsRestDecisionFunction, X, labels) -> pd.DataFrame:
    """
    Rows are true cuisines, columns predicted cuisines, both in the model's
    label order.
    """
    y_true = list(labels)
    known = set(fn.labels)
    for index, label in enumerate(y_true):
        if label not in known:
            raise InputFormatError(
                f"record {index}: cuisine '{label}' was not seen during training", stage="evaluate"
            )
    X_arr = np.asarray(X, dtype=float)
    if X_arr.ndim != 2 or X_arr.shape[0] != len(y_true):
        raise InputFormatError(
            f"feature matrix {X_arr.shape} does not match {len(y_true)} labels", stage="evaluate"
        )
    y_pred = fn.predict_many(X_arr)
    return _confusion_frame(y_true, y_pred, list(fn.labels))


def accuracy(confusion: pd.DataFrame) -> float:
    total = confusion.to_numpy().sum()
    return float(np.trace(confusion.to_numpy()) / total) if total else float("nan")


def classification_report(confusion: pd.DataFrame) -> pd.DataFrame:
    """Per-cuisine precision, recall, F1 and support computed from a confusion matrix."""
    cm = confusion.to_numpy().astype(float)
    tp = np.diag(cm)
    support = cm.sum(axis=1)
    predicted = cm.sum(axis=0)
    with np.errstate(divide="ignore", invalid="ignore"):
        precision = np.where(predicted > 0, tp / predicted, 0.0)
        recall = np.where(support > 0, tp / support, 0.0)
        f1 = np.where(precision + recall > 0, 2 * precision * recall / (precision + recall), 0.0)
    return pd.DataFrame(
        {"precision": precision, "recall": recall, "f1": f1, "support": support.astype(int)},
        index=confusion.index,
    )


def summarize_coefficients(
    fn: OneVsRestDecisionFunction, vocabulary: Vocabulary, label: str, top_k: int = 8
) -> dict[str, pd.Series]:
    """Ingredients pushing hardest towards / away from one cuisine."""
    if label not in fn.labels:
        raise KeyError(label)
    coef_series = pd.Series(fn.classifiers[label].weights, index=list(vocabulary.ingredients))
    coef_sorted = coef_series.sort_values(kind="mergesort")
    return {
        "positive": coef_sorted.tail(top_k)[::-1],
        "negative": coef_sorted.head(top_k),
    }


def cross_validate(
    trainer: OneVsRestTrainer, X, labels, folds: int = 5
) -> pd.DataFrame:
    """
    Stratified k-fold (no shuffling) cross-validation; returns the confusion
    matrix summed over all folds.
    """
    X_arr = np.asarray(X, dtype=float)
    y = np.asarray(list(labels), dtype=object)
    classes = canonical_labels(y.tolist())
    if folds < 2:
        raise ConfigurationError(f"cross-validation needs at least 2 folds, got {folds}")
    smallest = min((int((y == c).sum()) for c in classes), default=0)
    if smallest < folds:
        raise ConfigurationError(
            f"{folds} folds requested but the smallest cuisine has only {smallest} recipes"
        )

    total = _confusion_frame([], [], classes)
    splitter = StratifiedKFold(n_splits=folds, shuffle=False)
    for fold, (train_idx, test_idx) in enumerate(splitter.split(X_arr, y), start=1):
        fn = trainer.train(X_arr[train_idx], y[train_idx])
        fold_cm = _confusion_frame(list(y[test_idx]), fn.predict_many(X_arr[test_idx]), classes)
        log.info("Fold %d/%d accuracy %.3f", fold, folds, accuracy(fold_cm))
        total = total + fold_cm
    return total
