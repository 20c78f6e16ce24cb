# tests/test_config.py
"""
Tests for the YAML-backed settings in ``core.config`` and for the
``run_extractor`` command-line front end that consumes them.
"""

import json

import pytest
from pydantic import ValidationError

import run_extractor
from core.config import CONFIG_ENV_VAR, get_settings, load_settings
from models.extract_options import ExtractOptions
from tests.conftest import PARAGRAPHS


# ----------------------------------------------------------------------
# Settings
# ----------------------------------------------------------------------
def test_bundled_config_matches_builtin_defaults():
    """``configs/extractor.yaml`` only spells out the defaults."""
    settings = get_settings()
    assert settings.extractor == ExtractOptions()
    assert settings.logging.level == "WARNING"


def test_load_settings_from_file(tmp_path):
    path = tmp_path / "extractor.yaml"
    path.write_text(
        "extractor:\n"
        "  char_threshold: 250\n"
        "  classes_to_preserve: caption figure\n"
        "  allowed_video_pattern: 'example\\.tv'\n"
        "logging:\n"
        "  level: debug\n",
        encoding="utf-8",
    )
    settings = load_settings(path)

    assert settings.extractor.char_threshold == 250
    assert settings.extractor.preserved_classes == frozenset({"page", "caption", "figure"})
    assert settings.extractor.allowed_video_pattern.search("https://EXAMPLE.tv/v/1")
    assert settings.logging.level == "debug"


def test_missing_file_gives_defaults(tmp_path):
    settings = load_settings(tmp_path / "nope.yaml")
    assert settings.extractor == ExtractOptions()


def test_non_mapping_file_is_rejected(tmp_path):
    path = tmp_path / "extractor.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(path)


@pytest.mark.parametrize(
    "body",
    [
        "extractor:\n  allowed_video_pattern: '(unclosed'\n",
        "extractor:\n  char_threshold: -1\n",
        "extractor:\n  no_such_option: true\n",
    ],
)
def test_invalid_values_raise_validation_error(tmp_path, body):
    path = tmp_path / "extractor.yaml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ValidationError):
        load_settings(path)


def test_env_var_points_at_another_file(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("extractor:\n  char_threshold: 42\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    assert get_settings().extractor.char_threshold == 42
    # cached for the rest of the process
    path.write_text("extractor:\n  char_threshold: 7\n", encoding="utf-8")
    assert get_settings().extractor.char_threshold == 42


def test_options_are_frozen():
    options = ExtractOptions()
    with pytest.raises(ValidationError):
        options.char_threshold = 10


# ----------------------------------------------------------------------
# CLI
# ----------------------------------------------------------------------
def _write_page(tmp_path, body: str):
    path = tmp_path / "page.html"
    path.write_text(f"<html><head><title>Garden report</title></head><body>{body}</body></html>", encoding="utf-8")
    return path


def test_cli_prints_json(tmp_path, capsys):
    body = '<div class="post">' + "\n  ".join(f"<p>{p}</p>" for p in PARAGRAPHS) + "</div>"
    path = _write_page(tmp_path, body)

    assert run_extractor.main([str(path), "--url", "https://example.com/garden"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["title"] == "Garden report"
    assert data["textContent"] == " ".join(PARAGRAPHS)
    assert data["length"] == len(data["textContent"])


def test_cli_reports_missing_content(tmp_path):
    path = _write_page(tmp_path, "")
    assert run_extractor.main([str(path)]) == 1


def test_cli_reports_element_limit(tmp_path):
    config = tmp_path / "extractor.yaml"
    config.write_text("extractor:\n  max_elements_to_parse: 2\n", encoding="utf-8")
    path = _write_page(tmp_path, f"<p>{PARAGRAPHS[0]}</p>")
    assert run_extractor.main([str(path), "--config", str(config)]) == 2
