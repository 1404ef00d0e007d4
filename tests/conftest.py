"""Pytest configuration and shared fixtures."""

import os

from hypothesis import settings

if "BERANODE_LOG_LEVEL" not in os.environ:
    os.environ["BERANODE_LOG_LEVEL"] = "debug"

# Create a profile named "no_deadline" with deadline disabled.
settings.register_profile("no_deadline", deadline=None)
settings.load_profile("no_deadline")
