"""Root conftest - shared test configuration."""

import os

# Keep test runs independent of a developer's .env / shell settings
os.environ.setdefault("NETGUARD_LOG_FORMAT", "text")
os.environ.setdefault("NETGUARD_JITTER", "true")
os.environ.setdefault("NETGUARD_REPLAY_MAX_REQUEUES", "0")
