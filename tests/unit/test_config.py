"""Tests for askdoc config loader."""

from __future__ import annotations

import stat
import warnings
from pathlib import Path

import pytest
import yaml

from askdoc.config import (
    AskdocConfig,
    ConfigError,
    ensure_global_config,
    load_config,
    validate_config,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("ASKDOC_EMBEDDING_MODEL", "ASKDOC_GENERATION_MODEL", "ASKDOC_BATCH_DELAY"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def missing_global(tmp_path: Path) -> Path:
    return tmp_path / "nonexistent" / "config.yaml"


# ---------------------------------------------------------------------------
# Defaults with no config files present
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path, missing_global: Path) -> None:
    """No config files → all hardcoded defaults."""
    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)

    assert cfg.embedding.model == "gemini/text-embedding-004"
    assert cfg.embedding.dimensions == 768
    assert cfg.embedding.batch_size == 50
    assert cfg.embedding.batch_delay == 1.0
    assert cfg.generation.model == "gemini/gemini-2.5-flash"
    assert cfg.generation.system_prompt is None
    assert cfg.chunking.chunk_size == 1000
    assert cfg.chunking.overlap == 200
    assert cfg.retrieval.top_k == 5
    assert cfg.retrieval.separator == "\n---\n"


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


def test_load_config_global_overrides_defaults(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"generation": {"model": "openai/gpt-4o-mini"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.generation.model == "openai/gpt-4o-mini"
    # Other defaults unchanged
    assert cfg.embedding.model == "gemini/text-embedding-004"


def test_load_config_global_empty_file(tmp_path: Path) -> None:
    """Empty global config file → defaults (no crash)."""
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("# nothing here\n", encoding="utf-8")

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.chunking.chunk_size == 1000


@pytest.mark.parametrize("key", ["api_key", "gemini_api_key", "token", "client_secret", "password"])
def test_load_config_global_rejects_api_keys(tmp_path: Path, key: str) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"embedding": {key: "abc"}})

    with pytest.raises(ConfigError, match="forbidden key"):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)


def test_load_config_allows_num_retries_and_top_k(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"embedding": {"num_retries": 5}, "retrieval": {"top_k": 8}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.embedding.num_retries == 5
    assert cfg.retrieval.top_k == 8


# ---------------------------------------------------------------------------
# Per-project config
# ---------------------------------------------------------------------------


def test_load_config_project_overrides_global(tmp_path: Path) -> None:
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"embedding": {"batch_size": 20, "batch_delay": 2.5}})
    _write_yaml(tmp_path / "askdoc.yaml", {"embedding": {"batch_size": 10}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.embedding.batch_size == 10
    assert cfg.embedding.batch_delay == 2.5  # global value preserved


def test_load_config_project_chunking(tmp_path: Path, missing_global: Path) -> None:
    _write_yaml(tmp_path / "askdoc.yaml", {"chunking": {"chunk_size": 500, "overlap": 50}})

    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)
    assert cfg.chunking.chunk_size == 500
    assert cfg.chunking.overlap == 50


def test_load_config_project_may_not_break_chunking(tmp_path: Path, missing_global: Path) -> None:
    _write_yaml(tmp_path / "askdoc.yaml", {"chunking": {"chunk_size": 100, "overlap": 100}})

    with pytest.raises(ConfigError, match="greater than"):
        load_config(project_dir=tmp_path, global_config_path=missing_global)


def test_load_config_non_numeric_value(tmp_path: Path, missing_global: Path) -> None:
    _write_yaml(tmp_path / "askdoc.yaml", {"retrieval": {"top_k": "many"}})

    with pytest.raises(ConfigError, match="Invalid config value"):
        load_config(project_dir=tmp_path, global_config_path=missing_global)


def test_load_config_broken_yaml(tmp_path: Path, missing_global: Path) -> None:
    (tmp_path / "askdoc.yaml").write_text("chunking: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Could not parse"):
        load_config(project_dir=tmp_path, global_config_path=missing_global)


def test_load_config_top_level_must_be_mapping(tmp_path: Path, missing_global: Path) -> None:
    (tmp_path / "askdoc.yaml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping"):
        load_config(project_dir=tmp_path, global_config_path=missing_global)


def test_load_config_section_must_be_mapping(tmp_path: Path, missing_global: Path) -> None:
    _write_yaml(tmp_path / "askdoc.yaml", {"retrieval": 5})

    with pytest.raises(ConfigError, match="section 'retrieval'"):
        load_config(project_dir=tmp_path, global_config_path=missing_global)


def test_load_config_custom_system_prompt(tmp_path: Path, missing_global: Path) -> None:
    _write_yaml(tmp_path / "askdoc.yaml", {"generation": {"system_prompt": "Be terse."}})

    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)
    assert cfg.generation.system_prompt == "Be terse."
    assert cfg.generation.temperature == 0.2


def test_load_config_unknown_key_warns(tmp_path: Path, missing_global: Path) -> None:
    _write_yaml(tmp_path / "askdoc.yaml", {"delivery": {"output": "x.md"}})

    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter("always")
        load_config(project_dir=tmp_path, global_config_path=missing_global)
    assert any("Unknown config key 'delivery'" in str(x.message) for x in w)


# ---------------------------------------------------------------------------
# Env var overrides
# ---------------------------------------------------------------------------


def test_env_overrides_beat_project(tmp_path: Path, missing_global: Path, monkeypatch) -> None:
    _write_yaml(
        tmp_path / "askdoc.yaml",
        {"embedding": {"model": "gemini/embedding-001"}, "generation": {"model": "gemini/x"}},
    )
    monkeypatch.setenv("ASKDOC_EMBEDDING_MODEL", "openai/text-embedding-3-small")
    monkeypatch.setenv("ASKDOC_GENERATION_MODEL", "openai/gpt-4o-mini")
    monkeypatch.setenv("ASKDOC_BATCH_DELAY", "0")

    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)
    assert cfg.embedding.model == "openai/text-embedding-3-small"
    assert cfg.generation.model == "openai/gpt-4o-mini"
    assert cfg.embedding.batch_delay == 0.0


def test_env_batch_delay_must_be_number(tmp_path: Path, missing_global: Path, monkeypatch) -> None:
    monkeypatch.setenv("ASKDOC_BATCH_DELAY", "soon")
    with pytest.raises(ConfigError, match="ASKDOC_BATCH_DELAY"):
        load_config(project_dir=tmp_path, global_config_path=missing_global)


# ---------------------------------------------------------------------------
# validate_config
# ---------------------------------------------------------------------------


def test_validate_config_defaults_ok() -> None:
    validate_config(AskdocConfig())


@pytest.mark.parametrize(
    ("section", "field", "value"),
    [
        ("chunking", "overlap", -1),
        ("chunking", "chunk_size", 200),
        ("embedding", "batch_size", 0),
        ("embedding", "batch_delay", -0.5),
        ("retrieval", "top_k", 0),
    ],
)
def test_validate_config_rejects(section: str, field: str, value) -> None:
    cfg = AskdocConfig()
    setattr(getattr(cfg, section), field, value)
    with pytest.raises(ConfigError):
        validate_config(cfg)


# ---------------------------------------------------------------------------
# ensure_global_config
# ---------------------------------------------------------------------------


def test_ensure_global_config_creates_file(tmp_path: Path) -> None:
    target = tmp_path / ".askdoc" / "config.yaml"
    path = ensure_global_config(global_config_path=target)

    assert path == target
    assert target.exists()
    assert stat.S_IMODE(target.stat().st_mode) == 0o600
    data = yaml.safe_load(target.read_text(encoding="utf-8"))
    assert data["embedding"]["model"] == "gemini/text-embedding-004"


def test_ensure_global_config_does_not_overwrite(tmp_path: Path) -> None:
    target = tmp_path / "config.yaml"
    target.write_text("generation:\n  model: custom/model\n", encoding="utf-8")

    ensure_global_config(global_config_path=target)
    assert "custom/model" in target.read_text(encoding="utf-8")


def test_ensure_global_config_output_loads_cleanly(tmp_path: Path) -> None:
    target = ensure_global_config(global_config_path=tmp_path / "g" / "config.yaml")
    cfg = load_config(project_dir=tmp_path, global_config_path=target)
    assert cfg.generation.model == "gemini/gemini-2.5-flash"
