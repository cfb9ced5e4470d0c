import json
from pathlib import Path

from storyloom.presentation.cli import config as cli_config


def test_load_config_missing_file_returns_defaults(tmp_path: Path) -> None:
    assert cli_config.load_config(tmp_path / "absent.json") == cli_config.default_config()


def test_load_config_malformed_file_returns_defaults(tmp_path: Path, caplog) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")

    assert cli_config.load_config(path) == cli_config.default_config()
    assert "Ignoring unreadable config" in caplog.text


def test_load_config_non_object_returns_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")

    assert cli_config.load_config(path) == cli_config.default_config()


def test_normalize_config_drops_bad_values() -> None:
    config = cli_config.normalize_config(
        {"ending_tags": ["ending", " ending ", 3, ""], "exhaustive_contradictions": "yes", "extra": 1}
    )

    assert config == {
        "ending_tags": ["ending"],
        "exhaustive_contradictions": False,
        "honor_edge_rules": False,
    }


def test_save_and_load_config(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "config.json"

    written = cli_config.save_config(
        {"ending_tags": ["finale"], "exhaustive_contradictions": True, "honor_edge_rules": True}, path
    )

    assert written == path
    assert json.loads(path.read_text(encoding="utf-8"))["ending_tags"] == ["finale"]
    assert cli_config.load_config(path) == {
        "ending_tags": ["finale"],
        "exhaustive_contradictions": True,
        "honor_edge_rules": True,
    }


def test_default_config_path_uses_home(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(cli_config.os, "name", "posix")
    monkeypatch.setattr(Path, "home", lambda: tmp_path)

    assert cli_config.get_default_config_path() == tmp_path / ".config" / "storyloom" / "config.json"
