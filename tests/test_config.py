import functools
import os

import dotenv
import pydantic
import pytest

from dicemancer.config import Settings, load_settings
from dicemancer.models import RollLimits


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    # Keep a developer's .env out of the picture.
    monkeypatch.chdir(tmp_path)
    for name in Settings.model_fields:
        monkeypatch.delenv(f"DICEMANCER_{name.upper()}", raising=False)


def test_defaults():
    settings = load_settings()

    assert settings.database_url == "sqlite:///macros.db"
    assert settings.allowlist_path == "allowed_servers.json"
    assert settings.limits == RollLimits(max_count=20, max_sides=200)
    assert settings.log_level == "INFO"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("DICEMANCER_MAX_DICE_COUNT", "5")
    monkeypatch.setenv("DICEMANCER_MAX_DICE_SIDES", "100")
    monkeypatch.setenv("DICEMANCER_LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.limits == RollLimits(max_count=5, max_sides=100)
    assert settings.log_level == "DEBUG"


def test_dotenv_file_is_applied(monkeypatch, tmp_path):
    dotenv_path = tmp_path / ".env"
    dotenv_path.write_text("DICEMANCER_DATABASE_URL=sqlite:///from-dotenv.db\n", encoding="utf-8")
    monkeypatch.setattr("dicemancer.config.load_dotenv", functools.partial(dotenv.load_dotenv, dotenv_path))

    try:
        assert load_settings().database_url == "sqlite:///from-dotenv.db"
    finally:
        os.environ.pop("DICEMANCER_DATABASE_URL", None)


@pytest.mark.parametrize(
    "overrides",
    [{"log_level": "LOUD"}, {"max_dice_count": 0}, {"max_dice_sides": -1}],
)
def test_invalid_settings(overrides):
    with pytest.raises(pydantic.ValidationError):
        Settings(**overrides)
