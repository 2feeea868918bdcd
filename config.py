"""
config.py: global configuration for ascend-os.

All tunable constants live here. No game logic; pure data.
Imported by any module that needs settings, never the other way around.
"""

import os

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

ROOT_DIR  = os.path.dirname(os.path.abspath(__file__))
DATA_DIR  = os.path.join(ROOT_DIR, "data")
SAVES_DIR = os.environ.get("ASCEND_SAVES_DIR", os.path.join(DATA_DIR, "saves"))

APP_NAME = "Ascend OS"

# ---------------------------------------------------------------------------
# Save / Load
# ---------------------------------------------------------------------------

SAVE_FORMAT = "yaml"   # "yaml" or "json"

# One file per key inside SAVES_DIR
SAVE_KEY_NORMAL = "ascend_game_state_v2"
SAVE_KEY_DEV    = "ascend_dev_state_v1"
SAVE_KEY_MODE   = "ascend_save_mode"
SAVE_KEY_LEGACY = "ascend_game_state_v1"   # only ever deleted

# ---------------------------------------------------------------------------
# World generation
# ---------------------------------------------------------------------------

# Per-iteration offset added to the run seed so every iteration of a run
# gets its own reproducible stream.
ITERATION_SEED_STRIDE = 1337

# Depth, density and sibling counts stop growing past this iteration.
# Junk subtrees grow exponentially with both depth and density.
MAX_SCALING_ITERATION = 20

ROOT_ID       = "root"
ROOT_NAME     = "Root"
GOAL_NAME     = "ascend"
GOAL_SENTINEL = "EXECUTE_ASCENSION"

# ---------------------------------------------------------------------------
# Economy  (all data amounts in KB)
# ---------------------------------------------------------------------------

SCAN_COST               = 10240   # 10 MB per signal trace
CLICK_VALUE_BASE        = 50
CLICK_UPGRADE_INCREMENT = 5

UPGRADE_COST_BASE       = 10240
UPGRADE_COST_GROWTH     = 1.15
BOOST_COST_BASE_PER_SEC = 5120
AUTOMARK_COST_PER_UNIT  = 5120

BOOST_MULTIPLIERS = (2, 3, 4, 5)

AUTOMINER_DEFAULT_INTERVAL = 3000  # ms
AUTOMINER_MIN_INTERVAL     = 300   # ms, speed modules cannot go below this

# Redundant trace penalty, KB (inclusive)
SCAN_PENALTY_RANGE = (1000, 9999)

# A speed module found at the interval floor installs as power instead
SPEED_OVERFLOW_POWER_RANGE = (1, 3)

# Dev mode keeps data topped up
DEV_INFINITE_DATA = 999_999_999_999
DEV_DATA_FLOOR    = 999_999_999
