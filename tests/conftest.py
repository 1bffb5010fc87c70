import os
from pathlib import Path

import pytest

# Session secrets are read at import time, so set them before importing the app.
os.environ.setdefault("APP_JWT_SECRET", "test-access-secret-0123456789abcdef")
os.environ.setdefault("APP_REFRESH_SECRET", "test-refresh-secret-0123456789abcdef")
os.environ.setdefault("BANNER_FILE", str(Path(__file__).parent.parent / "config" / "banner.yaml"))

from fastapi.testclient import TestClient

from survey_manage.main import app
from survey_manage.routes import survey_routes
from survey_manage.session import issue_tokens


def make_headers(sub: str, username: str | None = None) -> dict:
    access, _, _, _ = issue_tokens({"sub": sub, "username": username or sub})
    return {"Authorization": f"Bearer {access}"}


@pytest.fixture(autouse=True)
def clean_store():
    """Each test starts with empty collections."""
    survey_routes.store.clear()
    yield survey_routes.store
    survey_routes.store.clear()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return make_headers("user-1", "alice")


@pytest.fixture
def other_headers():
    return make_headers("user-2", "bob")
