from __future__ import annotations

"""
Save and load trained one-vs-rest models.

The blob is UTF-8 JSON tagged with a format name and version. Floats are
written with Python's shortest round-trip repr, so a reloaded model gives
exactly the same scores.
"""

import json
import logging
import math
from pathlib import Path

import numpy as np

from .constants import MODEL_FORMAT, MODEL_FORMAT_VERSION
from .data_prep import Vocabulary
from .errors import DeserializationError, SerializationError, WhatsCookingError
from .multiclass import OneVsRestDecisionFunction
from .svm import LinearDecisionFunction

log = logging.getLogger(__name__)

CLASSIFIER_KINDS = {LinearDecisionFunction.kind: LinearDecisionFunction}


def _reject_constant(name: str):
    raise ValueError(f"non-finite literal {name} is not allowed")


def _loads(text):
    return json.loads(text, parse_constant=_reject_constant)


def _model_payload(fn: OneVsRestDecisionFunction) -> dict:
    classifiers = []
    for label, classifier in fn.classifiers.items():
        kind = getattr(classifier, "kind", None)
        if kind not in CLASSIFIER_KINDS or not hasattr(classifier, "to_params"):
            raise SerializationError(
                f"classifier for '{label}' ({type(classifier).__name__}) cannot be serialized"
            )
        params = classifier.to_params()
        if not all(math.isfinite(w) for w in params["weights"]) or not math.isfinite(params["bias"]):
            raise SerializationError(f"classifier for '{label}' has non-finite parameters")
        classifiers.append({"label": label, "kind": kind, **params})

    return {
        "format": MODEL_FORMAT,
        "version": MODEL_FORMAT_VERSION,
        "labels": list(fn.labels),
        "num_features": fn.num_features,
        "classifiers": classifiers,
    }


def serialize(fn: OneVsRestDecisionFunction) -> bytes:
    """Encode a trained decision function as a versioned blob."""
    return json.dumps(_model_payload(fn), allow_nan=False).encode("utf-8")


def _function_from_payload(payload) -> OneVsRestDecisionFunction:
    if not isinstance(payload, dict) or payload.get("format") != MODEL_FORMAT:
        raise DeserializationError("not a one-vs-rest model blob")
    version = payload.get("version")
    if version != MODEL_FORMAT_VERSION:
        raise DeserializationError(
            f"unsupported model version {version!r} (expected {MODEL_FORMAT_VERSION})"
        )

    try:
        labels = list(payload["labels"])
        if not all(isinstance(label, str) for label in labels):
            raise TypeError("labels must be strings")
        num_features = int(payload["num_features"])
        entries = list(payload["classifiers"])
    except (KeyError, TypeError, ValueError) as exc:
        raise DeserializationError(f"model blob is missing required fields: {exc}") from exc

    if len(labels) < 2 or len(entries) != len(labels):
        raise DeserializationError(
            f"model blob has {len(labels)} labels but {len(entries)} classifiers"
        )

    classifiers = {}
    for entry in entries:
        try:
            label = entry["label"]
            classifier_cls = CLASSIFIER_KINDS[entry["kind"]]
            classifier = classifier_cls.from_params(entry)
            if not (np.isfinite(classifier.weights).all() and math.isfinite(classifier.bias)):
                raise ValueError(f"classifier for '{label}' has non-finite parameters")
            classifiers[label] = classifier
        except (KeyError, TypeError, ValueError) as exc:
            raise DeserializationError(f"corrupt classifier entry: {exc!r}") from exc
        if classifier.num_features != num_features:
            raise DeserializationError(
                f"classifier for '{label}' has {classifier.num_features} weights, "
                f"expected {num_features}"
            )

    try:
        return OneVsRestDecisionFunction(labels, classifiers)
    except (TypeError, ValueError) as exc:
        raise DeserializationError(f"inconsistent model blob: {exc}") from exc


def deserialize(blob: bytes) -> OneVsRestDecisionFunction:
    """Rebuild a decision function from `serialize` output, or fail as a whole."""
    try:
        payload = _loads(blob.decode("utf-8") if isinstance(blob, (bytes, bytearray)) else blob)
    except (UnicodeDecodeError, ValueError, TypeError) as exc:
        raise DeserializationError(f"model blob is truncated or corrupt: {exc}") from exc
    return _function_from_payload(payload)


def save_model(path: Path, fn: OneVsRestDecisionFunction, vocabulary: Vocabulary | None = None):
    """Write the model (and the vocabulary it was trained with) to `path`."""
    path = Path(path)
    document = {"model": _model_payload(fn)}
    if vocabulary is not None:
        if fn.num_features is not None and vocabulary.size != fn.num_features:
            raise SerializationError(
                f"vocabulary size {vocabulary.size} does not match model width {fn.num_features}"
            )
        document["vocabulary"] = vocabulary.to_dict()

    try:
        data = json.dumps(document, allow_nan=False)
    except ValueError as exc:
        raise SerializationError(str(exc)) from exc
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(data, encoding="utf-8")
    log.info("Saved model with %d classifiers to %s", len(fn.labels), path)


def load_model(path: Path) -> tuple[OneVsRestDecisionFunction, Vocabulary | None]:
    """Load a model file written by `save_model`."""
    path = Path(path)
    try:
        document = _loads(path.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise DeserializationError(f"{path}: truncated or corrupt model file ({exc})") from exc
    if not isinstance(document, dict) or "model" not in document:
        raise DeserializationError(f"{path}: no model in file")

    fn = _function_from_payload(document["model"])
    vocabulary = None
    if document.get("vocabulary") is not None:
        try:
            vocabulary = Vocabulary.from_dict(document["vocabulary"])
        except (KeyError, TypeError, ValueError, WhatsCookingError) as exc:
            raise DeserializationError(f"{path}: corrupt vocabulary ({exc})") from exc
        if vocabulary.size != fn.num_features:
            raise DeserializationError(
                f"{path}: vocabulary size {vocabulary.size} does not match model width {fn.num_features}"
            )
    log.info("Loaded model with labels %s from %s", list(fn.labels), path)
    return fn, vocabulary
