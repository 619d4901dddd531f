"""gatewayrag rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from gatewayrag.cli.errors import err_no_api_key, err_no_db
    console.print(err_no_api_key("gemini"))
    raise typer.Exit(1)
"""

from __future__ import annotations

_ENV_MAP = {
    "gemini": "GOOGLE_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "cohere": "COHERE_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "azure": "AZURE_API_KEY",
}


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'gemini'. Set:  export GOOGLE_API_KEY=...
    """
    env_var = _ENV_MAP.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=..."
    )


def err_missing_provider() -> str:
    return (
        "[red]Error:[/] --provider is required.\n"
        "  Example:  gatewayrag ingest --provider rede --from-files --path ./docs/rede"
    )


def err_no_mode() -> str:
    """Neither --from-files nor --from-url was given."""
    return (
        "[red]Error:[/] No import mode selected.\n"
        "  Use --from-files --path DIR  and/or  --from-url --base-url URL"
    )


def err_missing_path() -> str:
    return (
        "[red]Error:[/] --from-files requires --path.\n"
        "  Example:  --from-files --path ./docs/entrepay"
    )


def err_missing_base_url() -> str:
    return (
        "[red]Error:[/] --from-url requires --base-url.\n"
        "  Example:  --from-url --base-url https://developer.userede.com.br/e-rede"
    )


def err_not_a_directory(path: str) -> str:
    return (
        f"[red]Error:[/] '{path}' is not a directory.\n"
        "  Pass a folder containing .md, .txt, .html, .htm or .pdf files."
    )


def err_no_db(db_path: str = "gatewayrag.db") -> str:
    """No knowledge base found at *db_path*."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  gatewayrag ingest --provider <name> ...  to build one."
    )


def err_ssrf_blocked(url: str) -> str:
    """URL resolves to a private/reserved address."""
    return (
        f"[red]Error:[/] URL resolves to private address (SSRF protection): '{url}'\n"
        "  Use a publicly reachable URL, or pass --allow-private for an internal mirror."
    )


def err_config(message: str) -> str:
    return (
        f"[red]Error:[/] Invalid configuration: {message}\n"
        "  Fix gatewayrag.yaml or ~/.gatewayrag/config.yaml and retry."
    )


def err_provider_not_resolved() -> str:
    return (
        "[red]Error:[/] Could not infer the provider from the question.\n"
        "  Mention 'rede' or 'entrepay', or pass --provider."
    )
