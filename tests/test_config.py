# tests/test_config.py
import pytest
from pydantic import ValidationError

from notio.config import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("NOTIO_MAX_SESSION_CARDS", raising=False)
    cfg = Settings(data_dir="/tmp/notio-data")
    assert cfg.max_session_cards == 15
    assert cfg.db_path.endswith("notio.db")


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("NOTIO_MAX_SESSION_CARDS", "8")
    assert Settings().max_session_cards == 8


@pytest.mark.parametrize("value", [0, -3])
def test_session_size_must_be_positive(value):
    with pytest.raises(ValidationError):
        Settings(max_session_cards=value)


def test_session_size_from_env_must_be_positive(monkeypatch):
    monkeypatch.setenv("NOTIO_MAX_SESSION_CARDS", "0")
    with pytest.raises(ValidationError):
        Settings()
