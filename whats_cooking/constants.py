"""
Shared constants: corpus field names, vocabulary cap, solver defaults and
the model file format tag.
"""

CUISINE_FIELD = "cuisine"
INGREDIENTS_FIELD = "ingredients"
ID_FIELD = "id"

SUBMISSION_COLUMNS = ("id", "cuisine")

DEFAULT_MAX_VOCAB = 2000

# Binary SVM hyper-parameters
DEFAULT_C = 5.0
DEFAULT_MAX_ITER = 1000
DEFAULT_TOL = 1e-4
DEFAULT_LR = 0.01
SOLVERS = ("liblinear", "gd")

POSITIVE = 1
NEGATIVE = -1

MODEL_FORMAT = "whats-cooking/one-vs-rest"
MODEL_FORMAT_VERSION = 1
