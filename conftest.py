"""Global pytest configuration."""

import os

# Keep tests on the in-memory store regardless of the developer's .env
os.environ.setdefault("REMOTE_STORE_BACKEND", "memory")
