from __future__ import annotations

"""
Exception hierarchy for the cuisine classifier. Every error carries the
pipeline stage it was raised from so the CLI can report where things broke.
"""


class WhatsCookingError(Exception):
    """Base exception for all cuisine classifier errors."""

    default_stage = "pipeline"

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        self.message = message
        self.stage = stage or self.default_stage

    def __str__(self) -> str:
        return f"[{self.stage}] {self.message}"


class InputFormatError(WhatsCookingError):
    """Raised for malformed corpus records or feature vectors of the wrong length."""

    default_stage = "load"


class ConfigurationError(WhatsCookingError):
    """Raised when training data or settings cannot produce a model."""

    default_stage = "config"


class TrainingFailure(WhatsCookingError):
    """Raised when a binary trainer fails; the whole multiclass fit is aborted."""

    default_stage = "train"

    def __init__(self, message: str, label: str | None = None, stage: str | None = None):
        super().__init__(message, stage=stage)
        self.label = label


class TrainingCancelled(TrainingFailure):
    pass


class SerializationError(WhatsCookingError):
    default_stage = "serialize"


class DeserializationError(WhatsCookingError):
    """Raised for corrupt, truncated or version-mismatched model blobs."""

    default_stage = "deserialize"
