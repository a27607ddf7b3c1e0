"""Tests for defgen.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from defgen.config import ConfigError, DefgenConfig, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, DefgenConfig)
    assert config.root == tmp_path.resolve()
    assert config.exclude == []
    assert config.patterns == []
    assert config.render.template is None
    assert config.render.output is None
    assert config.render.package is None
    assert config.render.params == {}


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    (tmp_path / ".defgen.yml").write_text(
        """
patterns:
  - api/...
  - shared/types.py
exclude: Internal, Admin
render:
  template: templates/client.ts.j2
  output: out/client.ts
  package: client
  params:
    base_url: https://example.test
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.patterns == ["api/...", "shared/types.py"]
    assert config.exclude == ["Internal", "Admin"]
    root = tmp_path.resolve()
    assert config.render.template == root / "templates/client.ts.j2"
    assert config.render.output == root / "out/client.ts"
    assert config.render.package == "client"
    assert config.render.params == {"base_url": "https://example.test"}


def test_load_config_accepts_file_path(tmp_path: Path) -> None:
    config_file = tmp_path / "custom.yml"
    config_file.write_text("exclude:\n  - Internal\n", encoding="utf-8")

    config = load_config(config_file)

    assert config.exclude == ["Internal"]
    assert config.root == tmp_path.resolve()


def test_load_config_treats_empty_file_as_defaults(tmp_path: Path) -> None:
    (tmp_path / ".defgen.yml").write_text("\n", encoding="utf-8")
    assert load_config(tmp_path).patterns == []


def test_load_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    (tmp_path / ".defgen.yml").write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(tmp_path)


def test_load_config_reports_yaml_errors(tmp_path: Path) -> None:
    (tmp_path / ".defgen.yml").write_text("exclude: [unterminated\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path)
