"""Constants used throughout grit."""

# Directory names
GIT_DIR = ".git"
OBJECTS_DIR = "objects"
BRANCHES_DIR = "branches"
REFS_DIR = "refs"
HEADS_DIR = "heads"
TAGS_DIR = "tags"

# File names
CONFIG_FILE = "config"
DESCRIPTION_FILE = "description"
HEAD_FILE = "HEAD"

# Repository defaults
DEFAULT_BRANCH = "master"
DEFAULT_DESCRIPTION = (
    "Unnamed repository; edit this file 'description' to name the repository."
)
REPOSITORY_FORMAT_VERSION = 0

# Hash algorithm
HASH_ALGORITHM = "sha1"
HASH_LENGTH = 40  # SHA-1 produces 40 hex characters
DIGEST_SIZE = 20

# zlib level used for loose objects (-1 is zlib's default, same as Git)
COMPRESSION_LEVEL = -1

# Exit codes
EXIT_USER_ERROR = 1
EXIT_SYSTEM_ERROR = 2
EXIT_DATA_ERROR = 3
