"""Join Diagnostics Configuration Constants.

Single source of truth for detector caps and thresholds.
These are domain config, not code - adjust without code changes.
"""

import os

# Near-match search (the only quadratic routine). The sample caps bound cost;
# they are not an accuracy guarantee.
NEAR_MATCH_MAX_DISTANCE = int(os.getenv("NEAR_MATCH_MAX_DISTANCE", "2"))
NEAR_MATCH_MAX_CANDIDATES = int(os.getenv("NEAR_MATCH_MAX_CANDIDATES", "10"))
NEAR_MATCH_X_SAMPLE = int(os.getenv("NEAR_MATCH_X_SAMPLE", "50"))  # Unmatched left keys scanned
NEAR_MATCH_Y_SAMPLE = int(os.getenv("NEAR_MATCH_Y_SAMPLE", "100"))  # Right keys compared against
NEAR_MATCH_MIN_LENGTH = 3  # Shorter keys produce too many false positives

# Cartesian explosion
CARTESIAN_THRESHOLD = float(os.getenv("CARTESIAN_THRESHOLD", "10"))
CARTESIAN_WORST_KEYS = 5

# Largest magnitude a 64-bit float represents every integer exactly
MAX_EXACT_FLOAT_INT = 2**53

# Invisible code points that make keys look equal but compare unequal
INVISIBLE_CHARACTERS = {
    "\u200b": "zero-width space",
    "\u200c": "zero-width non-joiner",
    "\u200d": "zero-width joiner",
    "\ufeff": "byte order mark",
    "\u00a0": "non-breaking space",
}

# Memory estimate overhead applied to predicted result size
MEMORY_OVERHEAD_FACTOR = 1.5

# Examples quoted in issue messages
MESSAGE_EXAMPLE_COUNT = 3
