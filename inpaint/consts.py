# inpaint/consts.py
"""
Constants for the inpaint library.
Centralized location for all constants shared by the engines and torch_ops.
"""

# --- Patch Distance Norm Constants ---
NORM_L1 = 0
NORM_L2 = 1
NORM_L2SQR = 2
NORM_INF = 3

NORM_NAMES = {
    "l1": NORM_L1,
    "l2": NORM_L2,
    "l2sqr": NORM_L2SQR,
    "inf": NORM_INF,
}

# --- Sentinels ---
# Distance reported for patches that cannot be compared.
MAX_DISTANCE = float("inf")
# Location reported when no source patch qualifies.
INVALID_LOCATION = (-1, -1)

# --- Criminisi Parameters ---
# Added to the data term so flat regions still get a nonzero priority.
DATA_TERM_EPSILON = 0.0001
# Patch errors are computed on a neighborhood this much larger than the copied patch.
MATCH_SIZE_FACTOR = 1.25
# Candidate filter thresholds used during the source patch search.
CRIMINISI_MAX_WEAK_ERRORS = 3
CRIMINISI_MAX_MEAN_DIFFERENCE = 10.0

# --- PatchMatch Parameters ---
# Search window radius is multiplied by this after each random search round.
SEARCH_DECAY = 0.5

# --- Mask Values ---
MASK_ON = 255
MASK_OFF = 0
