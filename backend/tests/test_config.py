import os
from pathlib import Path
from unittest.mock import patch

import pytest

from backend.config import DEFAULT_GROUP_IDS, Settings


def test_defaults():
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings.from_env()

    assert settings.port == 3000
    assert settings.group_ids == DEFAULT_GROUP_IDS
    assert settings.users_per_group == 50
    assert settings.account_limit == 300
    assert settings.telegram_bot_token is None
    assert settings.debug is False


def test_custom_env():
    with patch.dict(os.environ, {
        "PORT": "8080",
        "GROUP_IDS": " red, green ,,blue ",
        "USERS_PER_GROUP": "10",
        "ACCOUNTS_FILE": "/tmp/acc.json",
        "TELEGRAM_BOT_TOKEN": "t",
        "TELEGRAM_CHAT_ID": "c",
        "DEBUG": "TRUE",
    }, clear=True):
        settings = Settings.from_env()

    assert settings.port == 8080
    assert settings.group_ids == ["red", "green", "blue"]
    assert settings.account_limit == 30
    assert settings.accounts_file == Path("/tmp/acc.json")
    assert settings.telegram_chat_id == "c"
    assert settings.debug is True


@pytest.mark.parametrize("env, message", [
    ({"PORT": "eighty"}, "PORT must be an integer"),
    ({"USERS_PER_GROUP": "0"}, "USERS_PER_GROUP must be positive"),
    ({"GROUP_IDS": "a,a"}, "duplicates"),
    ({"NOTIFY_TIMEOUT": "soon"}, "NOTIFY_TIMEOUT must be a number"),
])
def test_invalid_env(env, message):
    with patch.dict(os.environ, env, clear=True):
        with pytest.raises(ValueError, match=message):
            Settings.from_env()
