"""Constants used throughout snapvcs."""

# Version
VERSION = "0.1.0"

# Directory names
SNAPVCS_DIR = ".snapvcs"
OBJECTS_DIR = "objects"
COMMITS_DIR = "commits"
HEADS_DIR = "refs/heads"

# File names
HEAD_FILE = "HEAD"
INDEX_FILE = "index"
IGNORE_FILE = ".snapvcsignore"

# Branches
DEFAULT_BRANCH = "main"

# Initial commit written by `init`
INITIAL_COMMIT_MESSAGE = "initial commit"
INITIAL_COMMIT_TIMESTAMP = 0

# Housekeeping paths that are never part of a snapshot
DEFAULT_IGNORE_PATTERNS = [
    ".git/",
    "__pycache__/",
    ".DS_Store",
    "Thumbs.db",
]

# Hash algorithm
HASH_ALGORITHM = "sha256"
HASH_LENGTH = 64  # SHA-256 produces 64 hex characters

# Index format version
INDEX_VERSION = 1

# Exit codes
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1
EXIT_SYSTEM_ERROR = 2
EXIT_DATA_ERROR = 3
EXIT_INTERRUPTED = 130

# Environment variables read by the CLI
ENV_ROOT = "SNAPVCS_ROOT"
ENV_LOG_LEVEL = "SNAPVCS_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"
