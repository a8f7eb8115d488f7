from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from backend.config import PACKAGE_DIR, Settings
from backend.main import create_app
from backend.notifier import WebhookNotifier


@pytest.fixture
def settings(tmp_path):
    return Settings(
        public_dir=PACKAGE_DIR / "public",
        accounts_file=tmp_path / "accounts.json",
        group_ids=["g1", "g2"],
        users_per_group=2,
    )


@pytest.fixture
def notifier():
    mock = MagicMock(spec=WebhookNotifier)
    mock.enabled = False
    return mock


@pytest.fixture
def client(settings, notifier):
    with TestClient(create_app(settings, notifier=notifier)) as c:
        yield c


@pytest.fixture
def signup():
    def _signup(email="ada@example.com", **overrides):
        body = {
            "name": "Ada",
            "email": email,
            "phone": "+1 555 0100",
            "password": "s3cret!",
            "confirm_password": "s3cret!",
        }
        body.update(overrides)
        return body

    return _signup
