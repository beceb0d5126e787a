"""Pytest fixtures shared by the MCP tooling tests.

Library functions take the environment as a mapping, so tests pass plain dicts
instead of touching os.environ.
"""

import os

from hypothesis import settings
import pytest

settings.register_profile("ci", max_examples=500, deadline=None)
settings.register_profile("dev", max_examples=100, deadline=5000)
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "dev"))

OAUTH_ENV = {
    "GOOGLE_CLIENT_ID": "1234567890-abcdefghijklmnop.apps.googleusercontent.com",
    "GOOGLE_CLIENT_SECRET": "GOCSPX-test-secret-value",
    "GOOGLE_REFRESH_TOKEN": "1//0g-test-refresh-token-value",
}


@pytest.fixture
def oauth_env():
    """A fresh copy of a fully configured OAuth environment."""
    return dict(OAUTH_ENV)
