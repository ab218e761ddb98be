"""Process-wide settings for fingerprinting, indexing and matching.

A few knobs can be overridden from the environment (``PAGEMATCH_*``); they are
read once at import time.
"""
import os
from typing import Tuple

# --- Fingerprint ---
# Fixed for a whole run: fingerprints of different configurations are not comparable.
HASH_SIZE: Tuple[int, int] = (8, 8)
HASH_ALGORITHM = "double_gradient"
HASH_PREPROCESS = "dct"

# Grayscale image is resized to DCT_SCALE x the sample grid before the DCT,
# same factor imagehash uses for pHash.
DCT_SCALE = 4
DIFF_GAUSS_RADII: Tuple[float, float] = (1.0, 2.0)

# --- Matching ---
# Pages drifting by POSITION_DIVISOR positions cost one hash-distance unit.
POSITION_DIVISOR = int(os.environ.get("PAGEMATCH_POSITION_DIVISOR", "5"))
MAX_DISTANCE = 255

# --- Index & workers ---
INDEX_TYPE = os.environ.get("PAGEMATCH_INDEX", "bktree").lower()
WORKERS = int(os.environ.get("PAGEMATCH_WORKERS", "0")) or os.cpu_count() or 1
