"""Upstream API key loading - the key lives only in the process environment."""

import os
from collections.abc import Mapping

from rich.console import Console

from core.request_types import SecretConfig

console = Console()

API_KEY_ENV = "GEMINI_API_KEY"


def load_secret(environ: Mapping[str, str] | None = None, env_var: str = API_KEY_ENV) -> SecretConfig:
    """Read the API key from the environment; called once per request."""
    environ = os.environ if environ is None else environ
    return SecretConfig(api_key=environ.get(env_var, "").strip())


def check_auth(env_var: str = API_KEY_ENV) -> bool:
    """Check if the upstream API key is configured."""
    secret = load_secret(env_var=env_var)
    if secret.is_configured:
        console.print(f"[green]API key configured[/green] ({secret.masked()})")
        return True
    else:
        console.print(f"[yellow]{env_var} is not set[/yellow]")
        console.print("\n[dim]Every proxied request will fail with 500 until it is set:[/dim]")
        console.print(f"  export {env_var}=...")
        return False


def main():
    """CLI entry point for key check."""
    check_auth()


if __name__ == "__main__":
    main()
