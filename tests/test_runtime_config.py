from __future__ import annotations

import importlib
from pathlib import Path

from application_flow_mcp import runtime_config


def test_resolve_activity_log_path_prefers_env(monkeypatch) -> None:
    monkeypatch.setenv("APP_FLOW_ACTIVITY_LOG_PATH", "/custom/activity.csv")
    assert runtime_config.resolve_activity_log_path() == "/custom/activity.csv"


def test_resolve_activity_log_path_falls_back_to_canonical_default(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("APP_FLOW_ACTIVITY_LOG_PATH", raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(runtime_config, "__file__", str(tmp_path / "repo" / "src" / "pkg" / "runtime_config.py"))
    assert runtime_config.resolve_activity_log_path() == "data/activity_log.csv"


def test_resolve_activity_log_path_finds_cwd_copy(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("APP_FLOW_ACTIVITY_LOG_PATH", raising=False)
    monkeypatch.chdir(tmp_path)
    (tmp_path / "logs").mkdir()
    (tmp_path / "logs" / "activity.csv").write_text("x", encoding="utf-8")
    assert runtime_config.resolve_activity_log_path("logs/activity.csv") == "logs/activity.csv"


def test_resolve_activity_log_path_finds_repo_root_copy(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("APP_FLOW_ACTIVITY_LOG_PATH", raising=False)
    repo = tmp_path / "repo"
    (repo / "data").mkdir(parents=True)
    (repo / "data" / "activity_log.csv").write_text("x", encoding="utf-8")
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    monkeypatch.chdir(elsewhere)
    monkeypatch.setattr(runtime_config, "__file__", str(repo / "src" / "pkg" / "runtime_config.py"))
    assert runtime_config.resolve_activity_log_path() == str((repo / "data" / "activity_log.csv").resolve())


def test_env_int_falls_back_on_bad_values(monkeypatch) -> None:
    monkeypatch.setenv("APP_FLOW_WINDOW_DAYS", "soon")
    assert runtime_config._env_int("APP_FLOW_WINDOW_DAYS", 90) == 90
    monkeypatch.setenv("APP_FLOW_WINDOW_DAYS", "14")
    assert runtime_config._env_int("APP_FLOW_WINDOW_DAYS", 90) == 14


def test_window_defaults_are_ninety_days(monkeypatch) -> None:
    monkeypatch.delenv("APP_FLOW_WINDOW_DAYS", raising=False)
    monkeypatch.delenv("APP_FLOW_STATS_WINDOW_DAYS", raising=False)
    reloaded = importlib.reload(runtime_config)
    try:
        assert reloaded.DEFAULT_WINDOW_DAYS == 90
        assert reloaded.DEFAULT_STATS_WINDOW_DAYS == 90
    finally:
        monkeypatch.undo()
        importlib.reload(runtime_config)
