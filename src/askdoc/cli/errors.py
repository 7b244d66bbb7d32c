"""askdoc rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from askdoc.cli.errors import err_no_api_key
    console.print(err_no_api_key("gemini"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from askdoc.errors import AskdocError, QuotaExceededError


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'gemini'. Set:  export GEMINI_API_KEY=...
    """
    env_map = {
        "gemini": "GEMINI_API_KEY",
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "cohere": "COHERE_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
    }
    env_var = env_map.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=..."
    )


def err_file_not_found(path: str) -> str:
    """Document path does not exist."""
    return (
        f"[red]Error:[/] File not found: '{path}'\n"
        "  Check the path and run the command again."
    )


def err_config(message: str) -> str:
    """Config file could not be loaded."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {message}\n"
        "  Fix askdoc.yaml (or ~/.askdoc/config.yaml) and run the command again."
    )


def err_quota_exceeded(message: str = "") -> str:
    """Provider rate limit / quota exhausted."""
    detail = f"  {message}\n" if message else ""
    return (
        "[yellow]Quota exceeded:[/] the embedding provider is rate limiting requests.\n"
        f"{detail}"
        "  Wait a minute and try again, or raise embedding.batch_delay in askdoc.yaml."
    )


def err_pipeline(exc: AskdocError) -> str:
    """Render any askdoc pipeline error with its hint."""
    if isinstance(exc, QuotaExceededError):
        return err_quota_exceeded(exc.message)
    hint = f"\n  {exc.hint}" if exc.hint else ""
    return f"[red]Error:[/] {exc.message}{hint}"
