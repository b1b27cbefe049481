"""Rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from searchlight.cli.errors import err_no_api_key
    console.print(err_no_api_key("openai"))
    raise typer.Exit(1)
"""

from __future__ import annotations

_ENV_MAP = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "azure": "AZURE_API_KEY",
    "serpapi": "SERP_API_KEY",
}


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    env_var = _ENV_MAP.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=..."
    )


def err_search_failed(query: str, reason: str) -> str:
    return (
        f"[red]Error:[/] Web search failed for '{query}': {reason}\n"
        "  Check your network connection and SERP_API_KEY, then retry."
    )


def err_fetch_failed(reason: str) -> str:
    return (
        f"[red]Error:[/] Could not fetch a search result: {reason}\n"
        "  The run was aborted. Retry, or lower search.max_results to skip later results."
    )


def err_ssrf_blocked(reason: str) -> str:
    """A result URL resolves to a private/reserved address."""
    return (
        f"[red]Error:[/] A search result points at a private address (SSRF protection).\n"
        f"  {reason}\n"
        "  Rephrase the query or use --max-results to limit the results fetched."
    )


def err_config(reason: str) -> str:
    return (
        f"[red]Error:[/] Invalid configuration: {reason}\n"
        "  Fix searchlight.yaml or ~/.searchlight/config.yaml."
    )


def err_output_path_unsafe(path: str) -> str:
    """--output path fails security validation."""
    return (
        f"[red]Error:[/] Output path is not allowed: '{path}'\n"
        "  Use a path within the current working directory."
    )


def warn_no_context() -> str:
    """No text could be extracted from any result."""
    return (
        "[yellow]⚠[/] No text could be extracted from the search results.\n"
        "  The answer was generated without context. Try --max-results to widen the search."
    )
