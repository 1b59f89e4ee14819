# tests/test_config.py

import pytest
from pydantic import ValidationError

from mdquiz.config import RenderConfig, load_config

FIELDS = ["DEFAULT_CODE_LANGUAGE", "LINK_TARGET", "QUIZ_CONFIRM_MODE", "LOG_LEVEL", "LOG_FILE"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # setenv first so monkeypatch unsets anything a .env file loads
    for name in FIELDS:
        monkeypatch.setenv("MDQUIZ_" + name, "x")
        monkeypatch.delenv("MDQUIZ_" + name)


def test_defaults(tmp_path):
    config = load_config(str(tmp_path / "missing.env"))
    assert config == RenderConfig()
    assert config.quiz_confirm_mode == "tap-twice"
    assert config.link_target == "_blank"
    assert config.default_code_language == "text"


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("MDQUIZ_QUIZ_CONFIRM_MODE", "button")
    monkeypatch.setenv("MDQUIZ_DEFAULT_CODE_LANGUAGE", "python")
    monkeypatch.setenv("MDQUIZ_LINK_TARGET", "")
    config = load_config(str(tmp_path / "missing.env"))
    assert config.quiz_confirm_mode == "button"
    assert config.default_code_language == "python"
    assert config.link_target is None


def test_env_file(tmp_path):
    env = tmp_path / ".env"
    env.write_text("MDQUIZ_LOG_LEVEL=DEBUG\nMDQUIZ_QUIZ_CONFIRM_MODE=button\n", encoding="utf-8")
    config = load_config(str(env))
    assert config.log_level == "DEBUG"
    assert config.quiz_confirm_mode == "button"


def test_environment_wins_over_env_file(monkeypatch, tmp_path):
    env = tmp_path / ".env"
    env.write_text("MDQUIZ_LOG_LEVEL=DEBUG\n", encoding="utf-8")
    monkeypatch.setenv("MDQUIZ_LOG_LEVEL", "WARNING")
    assert load_config(str(env)).log_level == "WARNING"


def test_invalid_confirm_mode(monkeypatch, tmp_path):
    monkeypatch.setenv("MDQUIZ_QUIZ_CONFIRM_MODE", "hover")
    with pytest.raises(ValidationError):
        load_config(str(tmp_path / "missing.env"))
