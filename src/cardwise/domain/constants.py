"""Centralized constants for cardwise.

Scheduling numbers and defaults live here so every layer imports from a
single source of truth.
"""

# ---------- Time ----------
DEFAULT_TIMEZONE = "UTC"
MS_PER_DAY = 86_400_000
# Latest accepted timestamp (about year 8300); leaves room for MAX_INTERVAL
MAX_TIMESTAMP_MS = 200_000_000_000_000

# ---------- SM-2 ----------
DEFAULT_EASINESS_FACTOR = 2.5
MIN_EASINESS_FACTOR = 1.3
PERFECT_QUALITY = 4
FIRST_INTERVAL = 1  # days
SECOND_INTERVAL = 6  # days
LAPSE_INTERVAL = 1  # days
MAX_INTERVAL = 36500  # days

# ---------- Gamification ----------
XP_PER_LEVEL_STEP = 100
STARTING_LEVEL = 1

# ---------- Study ----------
DEFAULT_DAILY_GOAL = 10

# ---------- Storage ----------
CARDS_NAMESPACE = "cards"
DECKS_NAMESPACE = "decks"
STATS_NAMESPACE = "stats"
SESSIONS_NAMESPACE = "sessions"
