GRID_ROWS = 9
GRID_COLS = 9

# Default token palette. Order matters only for the placement fallback kind.
TOKEN_KINDS = (
    "berry",
    "candy",
    "citrus",
    "gem",
    "star",
    "heart",
)

# Scoring: removed_count * BASE_MATCH_SCORE * cascade_index.
BASE_MATCH_SCORE = 60
# Extra multiplier applied to steps opened by a special-token combo.
COMBO_SCORE_MULTIPLIER = 1.5

# Minimum straight run length that counts as a match.
MIN_RUN_LENGTH = 3
# Group size at which a special token is created.
SPECIAL_MIN_GROUP = 4
# Group size at which a color-bomb supersedes other specials.
COLOR_BOMB_MIN_GROUP = 5

# Detonation reach (half-width) of the square bombs.
AREA_BOMB_RADIUS = 1   # 3x3
BLOCK_BOMB_RADIUS = 2  # 5x5

# Playability repair budgets.
MAX_SHUFFLE_ATTEMPTS = 100
MAX_GENERATION_ATTEMPTS = 100
