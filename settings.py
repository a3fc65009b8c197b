# settings.py

from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent
TITLE = "armyforge"

# Battlefield (half extents, world units)
X_BOUND = 16.0
Y_BOUND = 9.0

# Unit footprint: collider radius 0.63, doubled, plus 10% slack
UNIT_RADIUS = 0.63
MIN_DISTANCE = UNIT_RADIUS * 2 * 1.1

# Roster defaults
DEFAULT_CLASS_NAME = "Knight"
DEFAULT_UNIT_NAME = "Unit"
DEFAULT_ARMY_NAME = "Default"
DEFAULT_LEVEL = 7
BOSS_SCALE_THRESHOLD = 1.5

# Team battle
MAX_TEAMS = 20
RESERVED_TEAM_ID = 3

# Data / config locations
DATA_DIR = PROJECT_ROOT / "data"
CONFIG_DIR = PROJECT_ROOT / "config"
LOG_DIR = PROJECT_ROOT / "logs"
