"""
Shared fixtures: the three-recipe toy corpus and a slightly larger synthetic
corpus with four cuisines that a linear SVM separates easily.
"""

import json

import pytest

from whats_cooking import LinearSVCTrainer, OneVsRestTrainer, build_vocabulary, encode_recipes


# ---------- toy corpus ----------

@pytest.fixture
def toy_records():
    return [
        {"cuisine": "italian", "ingredients": ["pasta", "tomato"]},
        {"cuisine": "mexican", "ingredients": ["tortilla", "beans"]},
        {"cuisine": "italian", "ingredients": ["pasta", "basil"]},
    ]


@pytest.fixture
def toy_vocabulary(toy_records):
    return build_vocabulary([r["ingredients"] for r in toy_records], max_size=10)


@pytest.fixture
def toy_model(toy_records, toy_vocabulary):
    X = encode_recipes([r["ingredients"] for r in toy_records], toy_vocabulary)
    labels = [r["cuisine"] for r in toy_records]
    return OneVsRestTrainer(LinearSVCTrainer()).train(X, labels)


# ---------- synthetic corpus ----------

CUISINE_STAPLES = {
    "indian": ["garam masala", "turmeric", "ghee", "cumin seeds"],
    "italian": ["parmesan cheese", "basil", "olive oil", "pasta"],
    "japanese": ["soy sauce", "mirin", "sake", "nori"],
    "mexican": ["tortillas", "jalapeno chilies", "cilantro", "black beans"],
}
SHARED = ["salt", "water", "onions", "garlic"]


def make_corpus(per_cuisine=8):
    records = []
    for i in range(per_cuisine):
        for cuisine, staples in sorted(CUISINE_STAPLES.items()):
            ingredients = staples[: 2 + i % 3] + SHARED[i % 2 : i % 2 + 2]
            records.append({"cuisine": cuisine, "ingredients": ingredients})
    return records


@pytest.fixture
def corpus_records():
    return make_corpus()


@pytest.fixture
def corpus(corpus_records):
    ingredient_lists = [r["ingredients"] for r in corpus_records]
    vocabulary = build_vocabulary(ingredient_lists, max_size=2000)
    X = encode_recipes(ingredient_lists, vocabulary)
    labels = [r["cuisine"] for r in corpus_records]
    return vocabulary, X, labels


@pytest.fixture
def corpus_model(corpus):
    _, X, labels = corpus
    return OneVsRestTrainer(LinearSVCTrainer()).train(X, labels)


# ---------- files on disk ----------

@pytest.fixture
def train_json(tmp_path, corpus_records):
    path = tmp_path / "train.json"
    records = [dict(r, id=10000 + i) for i, r in enumerate(corpus_records)]
    path.write_text(json.dumps(records))
    return path


@pytest.fixture
def test_json(tmp_path):
    path = tmp_path / "test.json"
    records = [
        {"id": 18009, "ingredients": ["soy sauce", "mirin", "rice"]},
        {"id": "0042", "ingredients": ["tortillas", "cilantro", "black beans"]},
        {"id": 7, "ingredients": ["unknown_item"]},
        {"id": 35687, "ingredients": ["garam masala", "turmeric", "salt"]},
    ]
    path.write_text(json.dumps(records))
    return path
