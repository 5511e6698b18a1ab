from __future__ import annotations

"""
CLI entrypoint for the What's Cooking cuisine classifier. Pick the stage via
--stage: train (fit + save model), predict (load model + write submission)
or full (train, save, reload, evaluate and predict in one run).
"""

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

from whats_cooking import (
    DEFAULT_MAX_VOCAB,
    TrainingConfig,
    WhatsCookingError,
    accuracy,
    build_vocabulary,
    classification_report,
    confusion_matrix,
    cross_validate,
    encode_recipes,
    export_predictions,
    load_model,
    load_test_corpus,
    load_training_corpus,
    save_model,
    write_submission,
)
from whats_cooking.constants import (
    CUISINE_FIELD,
    DEFAULT_C,
    DEFAULT_LR,
    DEFAULT_MAX_ITER,
    DEFAULT_TOL,
    ID_FIELD,
    INGREDIENTS_FIELD,
    SOLVERS,
)
from whats_cooking.errors import ConfigurationError
from whats_cooking.metrics import summarize_coefficients

log = logging.getLogger("whats_cooking")


def setup_logging(verbose: bool = False):
    """Configure the console handler once for the whole run."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s │ %(levelname)s │ %(message)s",
        datefmt="%H:%M:%S",
    )


def print_confusion(label: str, confusion: pd.DataFrame):
    """Print a confusion matrix plus overall accuracy."""
    print(f"\n[{label}] accuracy {accuracy(confusion):.3f} on {int(confusion.to_numpy().sum())} recipes")
    with pd.option_context("display.max_rows", None, "display.max_columns", None, "display.width", 200):
        print(confusion)


def build_arg_parser():
    """CLI parser with knobs for paths, vocabulary size and SVM parameters."""
    parser = argparse.ArgumentParser(
        description="Predict a recipe's cuisine from its ingredients (one-vs-rest linear SVM)."
    )
    parser.add_argument(
        "--stage",
        choices=["train", "predict", "full"],
        default="full",
        help="train: fit and save; predict: load and write submission; full: both plus a reload check.",
    )
    parser.add_argument("--train-path", type=Path, default=Path("data/train.json"))
    parser.add_argument("--test-path", type=Path, default=Path("data/test.json"))
    parser.add_argument("--model-path", type=Path, default=Path("artifacts/model.json"))
    parser.add_argument("--submission-path", type=Path, default=Path("submission.csv"))
    parser.add_argument(
        "--max-vocab",
        type=int,
        default=DEFAULT_MAX_VOCAB,
        help="Number of most frequent ingredients used as features.",
    )
    parser.add_argument("--solver", choices=SOLVERS, default="liblinear", help="Binary SVM solver.")
    parser.add_argument("-C", dest="c", type=float, default=DEFAULT_C, help="SVM regularization strength.")
    parser.add_argument("--max-iter", type=int, default=DEFAULT_MAX_ITER, help="Max solver iterations.")
    parser.add_argument("--tol", type=float, default=DEFAULT_TOL, help="Solver stopping tolerance.")
    parser.add_argument("--lr", type=float, default=DEFAULT_LR, help="Learning rate for the gd solver.")
    parser.add_argument("--n-jobs", type=int, default=1, help="Parallel per-cuisine trainings (-1 = all cores).")
    parser.add_argument("--cv-folds", type=int, default=0, help="Run k-fold cross-validation first (0 = off).")
    parser.add_argument("--confusion-plot", type=Path, default=None, help="Save the confusion matrix as an image.")
    parser.add_argument("--top-k", type=int, default=0, help="Print the top-K ingredients per cuisine.")
    parser.add_argument("--verbose", action="store_true")
    return parser


def config_from_args(args: argparse.Namespace) -> TrainingConfig:
    return TrainingConfig(
        max_vocab=args.max_vocab,
        solver=args.solver,
        c=args.c,
        max_iter=args.max_iter,
        tol=args.tol,
        lr=args.lr,
        n_jobs=args.n_jobs,
    )


def run_train(args: argparse.Namespace):
    """Build the vocabulary, train the one-vs-rest model and save it."""
    config = config_from_args(args)
    train_df = load_training_corpus(args.train_path)
    vocabulary = build_vocabulary(train_df[INGREDIENTS_FIELD], max_size=config.max_vocab)
    X = encode_recipes(train_df[INGREDIENTS_FIELD], vocabulary)
    labels = train_df[CUISINE_FIELD].tolist()

    print(f"Recipes: {len(train_df)}, cuisines: {train_df[CUISINE_FIELD].nunique()}, features: {vocabulary.size}")

    trainer = config.make_trainer()
    if args.cv_folds:
        cv_confusion = cross_validate(trainer, X, labels, folds=args.cv_folds)
        print_confusion(f"{args.cv_folds}-fold cross-validation", cv_confusion)

    model = trainer.train(X, labels)
    save_model(args.model_path, model, vocabulary)

    if args.top_k:
        for cuisine in model.labels:
            top = summarize_coefficients(model, vocabulary, cuisine, top_k=args.top_k)
            print(f"\nTop ingredients for {cuisine}: {', '.join(top['positive'].index)}")

    return model, vocabulary, X, labels


def run_evaluate(args: argparse.Namespace, X, labels):
    """Reload the saved model and check it on the training data."""
    model, _ = load_model(args.model_path)
    confusion = confusion_matrix(model, X, labels)
    print_confusion("reloaded model, training data", confusion)
    print("\nPer-cuisine report:")
    print(classification_report(confusion).round(3))
    if args.confusion_plot is not None:
        from whats_cooking.plots import plot_confusion_matrix

        plot_confusion_matrix(confusion, args.confusion_plot)
        print(f"Confusion matrix plot saved to {args.confusion_plot}")


def run_predict(args: argparse.Namespace):
    """Encode the test corpus with the saved vocabulary and write the submission."""
    model, vocabulary = load_model(args.model_path)
    if vocabulary is None:
        raise ConfigurationError(f"{args.model_path} has no vocabulary; retrain with --stage train")
    test_df = load_test_corpus(args.test_path)
    X_test = encode_recipes(test_df[INGREDIENTS_FIELD], vocabulary)
    pairs = export_predictions(model, test_df[ID_FIELD].tolist(), X_test)
    write_submission(pairs, args.submission_path)
    print(f"Submission with {len(pairs)} rows written to {args.submission_path}")
    return pairs


def main(args: argparse.Namespace | None = None) -> int:
    """Dispatch to the selected stage; returns the process exit status."""
    args = args or build_arg_parser().parse_args()
    setup_logging(args.verbose)

    try:
        if args.stage == "train":
            run_train(args)
        elif args.stage == "predict":
            run_predict(args)
        else:
            _, _, X, labels = run_train(args)
            run_evaluate(args, X, labels)
            run_predict(args)
    except WhatsCookingError as exc:
        log.error("%s stage failed: %s", exc.stage, exc.message)
        return 1
    except OSError as exc:
        log.error("I/O error: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
