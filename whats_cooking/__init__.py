"""
Cuisine classification from recipe ingredient lists.

This package contains the ingredient vocabulary and feature encoder, binary
linear SVM trainers, the one-vs-rest multiclass model with its persistence
format, and the evaluation/export helpers used by main.py.
"""

from .config import TrainingConfig
from .constants import DEFAULT_MAX_VOCAB
from .data_prep import (
    Vocabulary,
    build_vocabulary,
    count_ingredients,
    encode_ingredients,
    encode_recipes,
    load_test_corpus,
    load_training_corpus,
)
from .errors import (
    ConfigurationError,
    DeserializationError,
    InputFormatError,
    SerializationError,
    TrainingCancelled,
    TrainingFailure,
    WhatsCookingError,
)
from .export import export_predictions, write_submission
from .metrics import accuracy, classification_report, confusion_matrix, cross_validate
from .multiclass import CancellationToken, OneVsRestDecisionFunction, OneVsRestTrainer
from .persistence import deserialize, load_model, save_model, serialize
from .svm import GradientDescentSVMTrainer, LinearDecisionFunction, LinearSVCTrainer

__all__ = [
    "DEFAULT_MAX_VOCAB",
    "TrainingConfig",
    "Vocabulary",
    "build_vocabulary",
    "count_ingredients",
    "encode_ingredients",
    "encode_recipes",
    "load_test_corpus",
    "load_training_corpus",
    "ConfigurationError",
    "DeserializationError",
    "InputFormatError",
    "SerializationError",
    "TrainingCancelled",
    "TrainingFailure",
    "WhatsCookingError",
    "export_predictions",
    "write_submission",
    "accuracy",
    "classification_report",
    "confusion_matrix",
    "cross_validate",
    "CancellationToken",
    "OneVsRestDecisionFunction",
    "OneVsRestTrainer",
    "deserialize",
    "load_model",
    "save_model",
    "serialize",
    "GradientDescentSVMTrainer",
    "LinearDecisionFunction",
    "LinearSVCTrainer",
]
