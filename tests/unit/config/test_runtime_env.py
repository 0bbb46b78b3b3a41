from pathlib import Path

import pytest

from kilar.config import ConfigurationError, env_bool, env_int, env_list, env_seconds, env_str
from kilar.config import runtime
from kilar.config.runtime_helpers import DotenvLoader, ListNormalizer


def test_env_str_prefers_process_environment(monkeypatch):
    monkeypatch.setenv("KILAR_PROC_ROOT", "  /host/proc ")
    monkeypatch.setattr(runtime, "_DEFAULT_VALUES", {"KILAR_PROC_ROOT": "/from/dotenv"})

    assert env_str("KILAR_PROC_ROOT") == "/host/proc"


def test_env_str_falls_back_to_dotenv_then_default(monkeypatch):
    monkeypatch.setattr(runtime, "_DEFAULT_VALUES", {"KILAR_PROC_ROOT": "/from/dotenv"})

    assert env_str("KILAR_PROC_ROOT", or_value="/proc") == "/from/dotenv"
    assert env_str("KILAR_UNSET_KEY", or_value="fallback") == "fallback"


def test_env_str_required_missing_raises():
    with pytest.raises(ConfigurationError):
        env_str("KILAR_MISSING", required=True)


def test_env_int_rejects_garbage(monkeypatch):
    monkeypatch.setenv("KILAR_PID_FILL_LIMIT", "many")

    with pytest.raises(ConfigurationError, match="must be an integer"):
        env_int("KILAR_PID_FILL_LIMIT", or_value=16)


@pytest.mark.parametrize("raw, expected", [("yes", True), ("ON", True), ("0", False), ("false", False)])
def test_env_bool_accepts_common_spellings(monkeypatch, raw, expected):
    monkeypatch.setenv("KILAR_ESCALATE", raw)

    assert env_bool("KILAR_ESCALATE", or_value=True) is expected


def test_env_bool_rejects_unknown_value(monkeypatch):
    monkeypatch.setenv("KILAR_ESCALATE", "maybe")

    with pytest.raises(ConfigurationError):
        env_bool("KILAR_ESCALATE")


def test_env_list_splits_and_deduplicates(monkeypatch):
    monkeypatch.setenv("KILAR_BACKENDS", "ss, lsof,,ss")

    assert env_list("KILAR_BACKENDS") == ("ss", "lsof")


def test_env_list_default_is_returned_as_tuple():
    assert env_list("KILAR_BACKENDS", or_value=["procfs"]) == ("procfs",)


def test_env_seconds_rejects_negative(monkeypatch):
    monkeypatch.setenv("KILAR_GRACEFUL_TIMEOUT_SECONDS", "-1")

    with pytest.raises(ConfigurationError, match="non-negative"):
        env_seconds("KILAR_GRACEFUL_TIMEOUT_SECONDS", or_value=3.0)


def test_env_seconds_accepts_fractions(monkeypatch):
    monkeypatch.setenv("KILAR_COMMAND_TIMEOUT_SECONDS", "0.25")

    assert env_seconds("KILAR_COMMAND_TIMEOUT_SECONDS", or_value=5.0) == 0.25


def test_dotenv_loader_parses_exports_quotes_and_comments(tmp_path: Path):
    path = tmp_path / ".env"
    path.write_text("# comment\nexport KILAR_ESCALATE=false\nKILAR_BACKENDS='ss,lsof'\nnot a pair\n")

    assert DotenvLoader.load_from_file(path) == {"KILAR_ESCALATE": "false", "KILAR_BACKENDS": "ss,lsof"}


def test_dotenv_loader_missing_file_is_empty(tmp_path: Path):
    assert DotenvLoader.load_from_file(tmp_path / "absent.env") == {}


def test_default_values_first_file_wins(monkeypatch, tmp_path: Path):
    first = tmp_path / "first.env"
    second = tmp_path / "second.env"
    first.write_text("KILAR_PROC_ROOT=/first\n")
    second.write_text("KILAR_PROC_ROOT=/second\nKILAR_ESCALATE=no\n")
    monkeypatch.setattr(runtime, "_DOTENV_CANDIDATES", (first, second))
    monkeypatch.setattr(runtime, "_DEFAULT_VALUES", None)

    assert env_str("KILAR_PROC_ROOT") == "/first"
    assert env_bool("KILAR_ESCALATE") is False


def test_list_normalizer_keeps_blanks_without_stripping():
    assert ListNormalizer.split_and_normalize("a, ,b", ",", strip_items=False) == ["a", " ", "b"]


def test_configuration_error_factories():
    assert "Unknown backend 'nmap'" in str(ConfigurationError.unknown_backend("nmap", ["ss", "lsof"]))
    assert str(ConfigurationError.invalid_value("pid_fill_limit", -1, "Must be non-negative")) == (
        "Invalid value for pid_fill_limit: -1. Must be non-negative"
    )
