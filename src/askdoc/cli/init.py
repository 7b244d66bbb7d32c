"""askdoc init: write the global config file with default models.

Usage:
  askdoc init

Creates ~/.askdoc/config.yaml (mode 0o600) unless it already exists. The file
holds model and batching defaults only; API keys stay in the environment.
"""

from __future__ import annotations

import typer
from rich.console import Console

from askdoc.cli.errors import err_config
from askdoc.config import ConfigError, ensure_global_config, load_config

console = Console()


def init_cmd() -> None:
    """Create ~/.askdoc/config.yaml with the default models (never overwrites)."""
    cfg_path = ensure_global_config()
    try:
        cfg = load_config(global_config_path=cfg_path)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc

    console.print(f"[green]✓[/] {cfg_path} (global config)")
    console.print(f"  embedding:  {cfg.embedding.model}")
    console.print(f"  generation: {cfg.generation.model}")
    console.print("\nNext steps:")
    console.print("  1. export GEMINI_API_KEY=...        (or the key for your provider)")
    console.print("  2. askdoc chat <document.pdf>")
