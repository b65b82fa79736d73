# constants.py
# Centralized constants used by the analytics engine. Do not change values without bumping schema_version.

SCHEMA_VERSION = "1.0.0"

# League settings fallbacks (applied when a season has no stored configuration)
DEFAULT_PLAYOFF_WEEK_START = 15
DEFAULT_PLAYOFF_TEAMS = 6
DEFAULT_TOTAL_ROSTERS = 10
MAX_SEASON_WEEKS = 17

# Matchup classification thresholds (absolute point differential)
CLOSE_GAME_MARGIN = 10.0
BLOWOUT_MARGIN = 40.0

# Formatting
POINTS_PLACES = 2
PCT_PLACES = 1

# Labels
UNKNOWN_MANAGER = "Unknown"
REGULAR_SEASON_LABEL = "Regular Season"

# Throttling defaults
DEFAULT_MIN_INTERVAL_SEC = 0.10  # ~600 rpm
DEFAULT_BASE_URL = "https://api.sleeper.com/v1"
