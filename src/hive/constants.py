"""Constants for hive."""

HIVE_DIR_NAME = ".hive"
LOCKS_DIR_NAME = "locks"
DOMAINS_DIR_NAME = "epics"
CONFIG_FILE_NAME = "config.toml"
REGISTRY_FILE_NAME = "agents.json"
RATE_LIMIT_FILE_NAME = "github-rate-limit.json"
LOCK_SUFFIX = ".lock"
REMOVAL_GUARD_NAME = ".removal-guard"

# Lock manager (seconds)
LOCK_LEASE_SECONDS = 300
LOCK_ACQUIRE_TIMEOUT = 300
LOCK_MAX_RETRIES = 10
LOCK_INITIAL_BACKOFF = 1
LOCK_MAX_BACKOFF = 32
REGISTRY_LOCK_LEASE = 30

# Participant registry (seconds)
STALE_THRESHOLD_SECONDS = 300
HEARTBEAT_INTERVAL_SECONDS = 60

# Optimistic concurrency
VERSION_MAX_ATTEMPTS = 3
VERSION_MIN_BACKOFF = 1
VERSION_MAX_BACKOFF = 3

# Rate budget
RATE_DEFAULT_LIMIT = 5000
RATE_LOW_THRESHOLD = 100
RATE_WAIT_SECONDS = 10
RATE_MIN_REMAINING = 10
GH_TIMEOUT = 30

# Diagnostics
LONG_HELD_LOCK_SECONDS = 120

# Environment overrides
ENV_ROOT = "HIVE_ROOT"
ENV_AGENT_ID = "HIVE_AGENT_ID"
ENV_OPERATION = "HIVE_OPERATION"
