import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from oklchify.core.config import CONFIG_ENV_VAR, OklchifyConfig, load_config
from oklchify.core.errors import ConfigError


def write_config(path: Path, data) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_defaults_without_file(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    cfg = load_config()
    assert cfg.schema_version == 1
    assert cfg.css_extensions == [".css"]
    assert cfg.literal_extensions == [".ts", ".tsx", ".js", ".jsx"]
    assert cfg.default_indent == "    "
    assert cfg.backup is False


def test_load_from_file(tmp_path: Path):
    path = write_config(
        tmp_path / "oklchify.json",
        {"css_extensions": [".css", ".pcss"], "default_indent": "\t", "backup": True},
    )
    cfg = load_config(path)
    assert cfg.css_extensions == [".css", ".pcss"]
    assert cfg.default_indent == "\t"
    assert cfg.backup is True


def test_env_var_points_at_config(tmp_path: Path, monkeypatch):
    path = write_config(tmp_path / "env.json", {"literal_extensions": [".mjs"]})
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    assert load_config().literal_extensions == [".mjs"]


def test_extensions_are_normalised():
    cfg = OklchifyConfig(css_extensions=["CSS", " .Scss ", ""])
    assert cfg.css_extensions == [".css", ".scss"]
    assert cfg.kind_for(Path("theme.SCSS")) == "css"
    assert cfg.kind_for(Path("tokens.tsx")) == "literal"
    assert cfg.kind_for(Path("README.md")) is None


def test_indent_must_be_whitespace():
    with pytest.raises(ValidationError):
        OklchifyConfig(default_indent="--")


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps({"schema_version": 0}),
        json.dumps({"default_indent": "x"}),
        json.dumps({"backup": "sometimes"}),
    ],
)
def test_invalid_config_raises_config_error(tmp_path: Path, content):
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_missing_config_file_raises(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.json")
