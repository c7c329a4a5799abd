import pytest

from run_server import parse_args

pytestmark = pytest.mark.unit


def test_defaults_come_from_environment(monkeypatch):
    monkeypatch.setenv("HOST", "0.0.0.0")
    monkeypatch.setenv("PORT", "9100")

    args = parse_args([])

    assert args.host == "0.0.0.0"
    assert args.port == 9100
    assert args.reload is False


def test_flags_override_environment(monkeypatch):
    monkeypatch.setenv("PORT", "9100")
    args = parse_args(["--port", "8080", "--reload"])
    assert args.port == 8080
    assert args.reload is True
