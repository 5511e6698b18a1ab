from __future__ import annotations

"""
Confusion matrix heatmap for the evaluation report.
"""

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402
from sklearn.metrics import ConfusionMatrixDisplay  # noqa: E402


def plot_confusion_matrix(confusion: pd.DataFrame, filename: Path, title: str = "Confusion Matrix: cuisines"):
    labels = list(confusion.index)
    size = max(6, 0.5 * len(labels) + 2)
    fig, ax = plt.subplots(figsize=(size, size))
    disp = ConfusionMatrixDisplay(confusion_matrix=confusion.to_numpy(), display_labels=labels)
    disp.plot(ax=ax, cmap="Blues", values_format="d", xticks_rotation="vertical", colorbar=False)
    ax.set_title(title)
    fig.tight_layout()
    fig.savefig(filename)
    plt.close(fig)
    return Path(filename)
