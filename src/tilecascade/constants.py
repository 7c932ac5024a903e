GRID_ROWS = 8
GRID_COLS = 8
TILE_TYPES = 5
TILE_SIZE = 64

# Validation limits applied to board and rendering settings at startup.
MIN_GRID_SIZE = 4
MAX_GRID_SIZE = 20
MIN_TILE_TYPES = 3
MAX_TILE_TYPES = 10
MIN_TILE_SIZE = 32
MAX_TILE_SIZE = 128

# ============================================================================
# ANIMATION (seconds; only used as plain delays when no animator is wired)
# ============================================================================
SWAP_DURATION = 0.2
REMOVE_DURATION = 0.3
FALL_DURATION = 0.4
SPAWN_DURATION = 0.2
SHUFFLE_DELAY = 2.0

# ============================================================================
# SCORING
# ============================================================================
BASE_SCORE = 10
COMBO_MULTIPLIER = 1.5
MATCH4_BONUS = 20
MATCH5_BONUS = 50
SPECIAL_TILE_MULTIPLIER = 2

# Bonus factors for special activations; bomb uses SPECIAL_TILE_MULTIPLIER.
COLOR_BOMB_BONUS_FACTOR = 5
LINE_CLEAR_BONUS_FACTOR = 3

# ============================================================================
# SPECIAL TILES
# ============================================================================
BOMB_MATCH_LENGTH = 4
COLOR_BOMB_MATCH_LENGTH = 5
BOMB_RANGE = 1        # 3x3 blast (center +/- 1)
BOMB_COMBO_RANGE = 2  # 5x5 blast for bomb + bomb
LINE_COMBO_RANGE = 1  # 3 rows / 3 columns for bomb + line clear

# ============================================================================
# SESSION CLOCK
# ============================================================================
DEFAULT_TIME = 60.0
WARNING_TIME = 10.0

# ============================================================================
# RETRY CAPS
# ============================================================================
MAX_MATCH_FIX_PASSES = 100
MAX_BOARD_REGENERATIONS = 10
MAX_SHUFFLE_ATTEMPTS = 10
