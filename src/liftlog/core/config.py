"""
Configuration constants for liftlog.

All adjustable defaults are centralized here.  Runtime overrides
(data directory, API location) are applied by config_loader.py.
"""

from pathlib import Path
from typing import Final

# =============================================================================
# STORAGE
# =============================================================================

DEFAULT_DATA_DIR: Final[Path] = Path.home() / ".liftlog"
CONFIG_FILENAME: Final[str] = "config.yaml"
USER_PROGRAMS_DIRNAME: Final[str] = "programs"

ACTIVE_SESSION_KEY: Final[str] = "active-workout"
PROGRAMS_KEY: Final[str] = "programs"
EXERCISE_WEIGHTS_KEY: Final[str] = "exercise-weights"

# =============================================================================
# EXTERNAL PERSISTENCE SERVICE
# =============================================================================

DEFAULT_API_BASE_URL: Final[str] = "http://localhost:8000/api"
DEFAULT_API_TIMEOUT_SECONDS: Final[float] = 10.0
WORKOUTS_ENDPOINT: Final[str] = "workouts"

# Type tag attached to every completion record
WORKOUT_TYPE_STRENGTH: Final[str] = "strength"

# =============================================================================
# TIMERS
# =============================================================================

WORKOUT_TICK_SECONDS: Final[float] = 1.0   # duration display refresh
REST_TICK_SECONDS: Final[float] = 0.1      # rest countdown refresh
DEFAULT_REST_EXTENSION_SECONDS: Final[int] = 30

# =============================================================================
# DISPLAY
# =============================================================================

DEFAULT_WEIGHT_UNIT: Final[str] = "lbs"
