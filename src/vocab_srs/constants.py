"""Fixed scheduling constants and data file names."""
from datetime import timedelta

DAY = timedelta(days=1)

# SM-2 ease factor bounds
INITIAL_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MAX_EASE_FACTOR = 3.0
MAX_INTERVAL_DAYS = 365

# Successful reviews closer together than this do not advance the schedule
MIN_REVIEW_INTERVAL = timedelta(minutes=10)

# Cards whose interval reaches this many days count as mature
MATURE_INTERVAL_DAYS = 21

# Forgetting curve: R = exp(-DECAY_CONSTANT * overdue / stability)
DECAY_CONSTANT = 1.0
MIN_STABILITY_DAYS = 1.0

# Priority weights
DUE_BASE_PRIORITY = 50.0
OVERDUE_DAY_WEIGHT = 10.0
OVERDUE_RATIO_WEIGHT = 10.0
MAX_OVERDUE_RATIO = 5.0
NOT_DUE_BASE_PRIORITY = 30.0
NOT_DUE_DAY_PENALTY = 5.0
TARGET_RETENTION = 0.9
RETENTION_WEIGHT = 50.0
LAPSE_WEIGHT = 8.0
EASE_WEIGHT = 10.0
RECENCY_PENALTY = 30.0

# Session defaults
DEFAULT_NEW_CARDS_PER_DAY = 20
MAX_RECENT_CARDS = 5

# Dashboard windows
REVIEWS_PER_DAY_WINDOW = 90
RETENTION_HISTORY_WINDOW = 30
RETENTION_ROLLING_DAYS = 7

# Data directory layout
CARDS_FILE = "cards.jsonl"
EVENTS_FILE = "events.jsonl"
INDEX_FILE = "index.json"
CONFIG_FILE = "config.yaml"
INDEXER_VERSION = 1
BULK_TEMPLATE_VERSION = 1
BACKUP_VERSION = 1
