from __future__ import annotations

"""
Corpus loading, ingredient vocabulary and presence/absence feature encoding.
The same Vocabulary must be used for the training and the test corpus.
"""

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from .constants import CUISINE_FIELD, DEFAULT_MAX_VOCAB, ID_FIELD, INGREDIENTS_FIELD
from .errors import ConfigurationError, InputFormatError

log = logging.getLogger(__name__)


def _read_records(path: Path) -> list:
    try:
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
    except json.JSONDecodeError as exc:
        raise InputFormatError(f"{path}: not valid JSON ({exc})") from exc
    if not isinstance(records, list):
        raise InputFormatError(f"{path}: expected a JSON array of recipes")
    return records


def _check_ingredients(record: dict, index: int, ref: str = "") -> list[str]:
    ingredients = record.get(INGREDIENTS_FIELD)
    if not isinstance(ingredients, list):
        raise InputFormatError(f"record {index}{ref}: missing '{INGREDIENTS_FIELD}' list")
    for ingredient in ingredients:
        if not isinstance(ingredient, str):
            raise InputFormatError(
                f"record {index}{ref}: ingredient {ingredient!r} is not a string"
            )
    return ingredients


def records_to_frame(records: Sequence[dict], key_field: str) -> pd.DataFrame:
    """
    Validate raw recipe records and keep the key column (cuisine or id)
    plus the ingredient lists.
    """
    keys, ingredient_lists = [], []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise InputFormatError(f"record {index}: expected an object, got {type(record).__name__}")
        if key_field not in record or record[key_field] is None:
            raise InputFormatError(f"record {index}: missing '{key_field}'")
        key = record[key_field]
        if key_field == ID_FIELD:
            # ids are opaque; keep them as text so they are echoed verbatim
            key = str(key)
        elif not isinstance(key, str):
            raise InputFormatError(f"record {index}: '{key_field}' must be a string")
        ref = f" (id={record[ID_FIELD]})" if ID_FIELD in record else ""
        ingredient_lists.append(_check_ingredients(record, index, ref))
        keys.append(key)

    return pd.DataFrame({key_field: keys, INGREDIENTS_FIELD: ingredient_lists})


def load_training_corpus(path: Path) -> pd.DataFrame:
    """Load labeled recipes as a frame with `cuisine` and `ingredients` columns."""
    df = records_to_frame(_read_records(path), CUISINE_FIELD)
    log.info(
        "Loaded %d training recipes (%d cuisines) from %s",
        len(df),
        df[CUISINE_FIELD].nunique(),
        path,
    )
    return df


def load_test_corpus(path: Path) -> pd.DataFrame:
    """Load unlabeled recipes as a frame with `id` and `ingredients` columns."""
    df = records_to_frame(_read_records(path), ID_FIELD)
    log.info("Loaded %d test recipes from %s", len(df), path)
    return df


@dataclass(frozen=True)
class Vocabulary:
    """
    Frequency-ranked ingredients mapped to feature indices [0, size).
    Position in `ingredients` is the feature index.
    """

    ingredients: tuple[str, ...] = ()
    counts: tuple[int, ...] = ()
    _index: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if len(self.ingredients) != len(self.counts):
            raise ConfigurationError(
                "vocabulary ingredients and counts differ in length", stage="vocabulary"
            )
        index = {name: i for i, name in enumerate(self.ingredients)}
        if len(index) != len(self.ingredients):
            raise ConfigurationError("vocabulary contains duplicate ingredients", stage="vocabulary")
        object.__setattr__(self, "_index", index)

    @property
    def size(self) -> int:
        return len(self.ingredients)

    def __len__(self) -> int:
        return self.size

    def __contains__(self, ingredient) -> bool:
        return ingredient in self._index

    def __iter__(self):
        return iter(self.ingredients)

    def index_of(self, ingredient: str) -> int | None:
        """Feature index of an ingredient, None when it was cut from the vocabulary."""
        return self._index.get(ingredient)

    def to_dict(self) -> dict:
        return {"ingredients": list(self.ingredients), "counts": list(self.counts)}

    @classmethod
    def from_dict(cls, payload: dict) -> "Vocabulary":
        return cls(
            ingredients=tuple(payload["ingredients"]),
            counts=tuple(int(c) for c in payload["counts"]),
        )


def _check_recipe(ingredients, index: int, stage: str) -> Sequence[str]:
    if isinstance(ingredients, (str, bytes)) or not isinstance(ingredients, Iterable):
        raise InputFormatError(f"record {index}: ingredients must be a list of strings", stage=stage)
    ingredients = list(ingredients)
    for ingredient in ingredients:
        if not isinstance(ingredient, str):
            raise InputFormatError(
                f"record {index}: ingredient {ingredient!r} is not a string", stage=stage
            )
    return ingredients


def count_ingredients(ingredient_lists: Iterable[Sequence[str]]) -> Counter:
    """
    Count every ingredient occurrence across recipes. Counters from separate
    chunks of a corpus can simply be added together.
    """
    counts: Counter = Counter()
    for index, ingredients in enumerate(ingredient_lists):
        counts.update(_check_recipe(ingredients, index, "vocabulary"))
    return counts


def build_vocabulary(
    ingredient_lists: Iterable[Sequence[str]], max_size: int = DEFAULT_MAX_VOCAB
) -> Vocabulary:
    """
    Keep the `max_size` most frequent ingredients. Equal counts are ordered
    by ingredient name, so the result does not depend on record order.
    """
    if isinstance(max_size, bool) or not isinstance(max_size, (int, np.integer)) or max_size <= 0:
        raise ConfigurationError(
            f"vocabulary cap must be a positive integer, got {max_size!r}", stage="vocabulary"
        )

    counts = count_ingredients(ingredient_lists)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:max_size]
    vocabulary = Vocabulary(
        ingredients=tuple(name for name, _ in ranked),
        counts=tuple(count for _, count in ranked),
    )
    log.info(
        "Vocabulary: %d distinct ingredients, kept %d (cap %d)",
        len(counts),
        vocabulary.size,
        max_size,
    )
    return vocabulary


def encode_ingredients(ingredients: Iterable[str], vocabulary: Vocabulary) -> np.ndarray:
    """
    Binary presence vector of length vocabulary.size. Ingredients outside
    the vocabulary are ignored.
    """
    vector = np.zeros(vocabulary.size, dtype=float)
    for ingredient in ingredients:
        idx = vocabulary.index_of(ingredient)
        if idx is not None:
            vector[idx] = 1.0
    return vector


def encode_recipes(
    ingredient_lists: Iterable[Sequence[str]], vocabulary: Vocabulary
) -> np.ndarray:
    """Stack encoded recipes into an (n_recipes, vocabulary.size) matrix."""
    rows = []
    for index, ingredients in enumerate(ingredient_lists):
        ingredients = _check_recipe(ingredients, index, "encode")
        rows.append(encode_ingredients(ingredients, vocabulary))

    if not rows:
        return np.zeros((0, vocabulary.size), dtype=float)
    X = np.vstack(rows)
    log.debug("Encoded %d recipes into %s matrix", len(rows), X.shape)
    return X
