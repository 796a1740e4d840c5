"""Shared limits and defaults for processprobe."""

MAX_PATHS = 50
MAX_PATH_LENGTH = 100

SUPPORTED_SCHEMA_VERSIONS = frozenset({"1.0"})

PATH_HASH_SEPARATOR = "|"

DEFAULT_DELETE_DELAY_MS = 250
DEFAULT_STEP_TIMEOUT_MS = 30_000
