"""askdoc configuration loader.

Priority (high → low):
  1. CLI flags           (applied by the CLI, not here)
  2. Environment variables  (ASKDOC_EMBEDDING_MODEL, ASKDOC_GENERATION_MODEL,
     ASKDOC_BATCH_DELAY)
  3. Per-project askdoc.yaml  (in the project directory, CWD by default)
  4. Global ~/.askdoc/config.yaml  (model defaults only, no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load().
"""

from __future__ import annotations

import os
import re
import warnings
from collections.abc import Iterator
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".askdoc"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "askdoc.yaml"

# Key names that look like credentials; rejected in the global file.
# top_k, num_retries and the like must not match.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)|(?:^|_)(?:token|secret)$|passw(?:or)?d|credential",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding model and batching (askdoc.yaml: embedding:).

    Attributes:
        model: LiteLLM embedding model string.
        dimensions: Expected vector length; only used to flag malformed vectors.
        batch_size: Texts per embedding call.
        batch_delay: Seconds between embedding calls (rate-limit pacing).
        num_retries: LiteLLM retries per call.
        timeout: Per-call timeout in seconds.
    """

    model: str = "gemini/text-embedding-004"
    dimensions: int = 768
    batch_size: int = 50
    batch_delay: float = 1.0
    num_retries: int = 2
    timeout: float = 60.0


@dataclass
class GenerationCfg:
    """Answer generation (askdoc.yaml: generation:)."""

    model: str = "gemini/gemini-2.5-flash"
    temperature: float = 0.2
    system_prompt: str | None = None  # None → built-in assistant instruction


@dataclass
class ChunkingCfg:
    """Character-window chunking (askdoc.yaml: chunking:)."""

    chunk_size: int = 1000
    overlap: int = 200


@dataclass
class RetrievalCfg:
    """Retrieval (askdoc.yaml: retrieval:)."""

    top_k: int = 5
    separator: str = "\n---\n"


@dataclass
class AskdocConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)



# Section name in YAML -> dataclass it populates.
_SECTIONS: dict[str, type] = {
    "embedding": EmbeddingCfg,
    "generation": GenerationCfg,
    "chunking": ChunkingCfg,
    "retrieval": RetrievalCfg,
}


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _dotted_keys(data: dict[str, Any], prefix: str = "") -> Iterator[tuple[str, str]]:
    """Yield ``(key, dotted.path)`` for every key in a nested mapping."""
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        yield str(key), dotted
        if isinstance(value, dict):
            yield from _dotted_keys(value, dotted + ".")


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    for key, dotted in _dotted_keys(data):
        if _API_KEY_RE.search(key):
            env_var = key.upper().replace("-", "_")
            raise ConfigError(
                f"'{dotted}' in {source} is a forbidden key.\n"
                f"  Credentials belong in environment variables, e.g. export {env_var}=..."
            )


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    for key in data.keys() - _SECTIONS.keys():
        warnings.warn(
            f"Unknown config key '{key}' in '{source}' (ignored).",
            UserWarning,
            stacklevel=3,
        )


def validate_config(cfg: AskdocConfig) -> None:
    """Raise ConfigError for values the pipeline cannot run with."""
    ch = cfg.chunking
    if ch.overlap < 0:
        raise ConfigError(f"chunking.overlap must be >= 0, got {ch.overlap}")
    if ch.chunk_size <= ch.overlap:
        raise ConfigError(
            f"chunking.chunk_size ({ch.chunk_size}) must be greater than "
            f"chunking.overlap ({ch.overlap})"
        )
    if cfg.embedding.batch_size < 1:
        raise ConfigError(f"embedding.batch_size must be >= 1, got {cfg.embedding.batch_size}")
    if cfg.embedding.batch_delay < 0:
        raise ConfigError(
            f"embedding.batch_delay must be >= 0, got {cfg.embedding.batch_delay}"
        )
    if cfg.retrieval.top_k < 1:
        raise ConfigError(f"retrieval.top_k must be >= 1, got {cfg.retrieval.top_k}")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a YAML mapping at the top level")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = {**base}
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _build_section(name: str, cls: type, raw: Any) -> Any:
    """Instantiate *cls* from a raw YAML section, coercing to each default's type.

    Keys the dataclass does not declare are ignored. Fields whose default is
    None (optional text) accept any string, and blank means unset.
    """
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise TypeError(f"section '{name}' must be a mapping, got {raw!r}")

    defaults = cls()
    values: dict[str, Any] = {}
    for f in fields(cls):
        if f.name not in raw:
            continue
        value = raw[f.name]
        default = getattr(defaults, f.name)
        if default is None:
            values[f.name] = str(value) if value not in (None, "") else None
        else:
            values[f.name] = type(default)(value)
    return cls(**values)


def _cfg_from_dict(data: dict[str, Any]) -> AskdocConfig:
    try:
        sections = {
            name: _build_section(name, cls, data.get(name)) for name, cls in _SECTIONS.items()
        }
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc
    return AskdocConfig(**sections)


def _apply_env_overrides(cfg: AskdocConfig) -> AskdocConfig:
    """Apply ASKDOC_* environment variable overrides."""
    if model := os.environ.get("ASKDOC_GENERATION_MODEL"):
        cfg.generation.model = model
    if model := os.environ.get("ASKDOC_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if delay := os.environ.get("ASKDOC_BATCH_DELAY"):
        try:
            cfg.embedding.batch_delay = float(delay)
        except ValueError as exc:
            raise ConfigError(f"ASKDOC_BATCH_DELAY must be a number, got '{delay}'") from exc
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> AskdocConfig:
    """Load and return a merged *AskdocConfig*.

    Layers: global file, then *project_dir*/askdoc.yaml, then env vars.
    CLI flags are applied by the caller afterwards.

    Args:
        project_dir: Directory to search for *askdoc.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If the global file holds API-key-like fields, a file is
            not valid YAML, or a value is malformed or out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    project_path = (project_dir if project_dir is not None else Path.cwd()) / _PROJECT_CONFIG_NAME

    merged: dict[str, Any] = {}
    for path, is_global in ((global_path, True), (project_path, False)):
        if not path.exists():
            continue
        raw = _read_yaml(path)
        if is_global:
            _check_no_api_keys(raw, path)
        _warn_unknown_keys(raw, path)
        merged = _deep_merge(merged, raw)

    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    validate_config(cfg)
    return cfg


def ensure_global_config(global_config_path: Path | None = None) -> Path:
    """Write ``~/.askdoc/config.yaml`` with the defaults unless it already exists.

    The directory is created 0o700 and the file 0o600.
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        header = (
            "# askdoc global configuration: model defaults only.\n"
            "# Do not store API keys here. Use environment variables:\n"
            "#   export GEMINI_API_KEY=...\n\n"
        )
        body = yaml.safe_dump(asdict(AskdocConfig()), sort_keys=False)
        target.write_text(header + body, encoding="utf-8")
        target.chmod(0o600)

    return target
