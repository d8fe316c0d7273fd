"""Shared constants for gt."""

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG = 2
EXIT_NOT_FOUND = 3
EXIT_INVALID_STATE = 4
EXIT_CONFLICT = 5
EXIT_NETWORK = 6
EXIT_COLLABORATION = 7
EXIT_CANCELLED = 130

# Branch names: Unicode alphanumerics plus these characters only
BRANCH_NAME_EXTRA_CHARS = "-_/"
BRANCH_SEPARATORS = "/-."

# Configuration defaults
DEFAULT_REMOTE = "origin"
DEFAULT_MAIN_BRANCH = "main"
DEFAULT_MAX_ATTEMPTS = 50
DEFAULT_DELAY_SECONDS = 1.0

# Candidate main branches, probed in order
MAIN_BRANCH_CANDIDATES = ("main", "master")

CONFIG_FILENAME = "gt.yaml"
LOCK_FILENAME = "gt.lock"
