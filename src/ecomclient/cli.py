"""ecom-client CLI Entry Point.

Issues one request through the same client the storefront uses, which is
handy for smoke-testing a backend and its envelope, and prints the
effective configuration.

Examples:
    ecom-client request GET /products --retry
    ecom-client request POST /auth/login --service auth --no-auth \\
        --data '{"email": "a@b.c", "password": "x"}'
    ecom-client --config ./config.yaml config
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import structlog
import typer

from ecomclient.client.credentials import EnvCredentialSource
from ecomclient.client.models import Page
from ecomclient.client.result import Cancelled, Failure, RequestResult
from ecomclient.core.config import get_settings
from ecomclient.core.exceptions import ConfigurationError
from ecomclient.core.logs import configure_logging
from ecomclient.services import SERVICE_NAMES, create_service_clients

log = structlog.get_logger()

app = typer.Typer(
    name="ecom-client",
    help="ecom-client - resilient HTTP client for the storefront backends",
    no_args_is_help=True,
)

BODY_METHODS = {"POST", "PUT", "PATCH"}


def load_config_callback(config: Optional[Path]) -> Optional[Path]:
    """Load configuration file if provided, then configure logging."""
    try:
        if config:
            if not config.exists():
                typer.echo(f"Error: Config file '{config}' not found", err=True)
                raise typer.Exit(code=1)
            get_settings(force_reload=True, system_config_path=config)
        configure_logging(get_settings().logging)
        if config:
            log.info("config_loaded", path=str(config))
    except ConfigurationError as e:
        typer.echo(f"Error loading config: {e}", err=True)
        raise typer.Exit(code=1)
    return config


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c",
        callback=load_config_callback,
        is_eager=True,
        help="Path to configuration file",
    ),
) -> None:
    """ecom-client CLI."""


def to_jsonable(value: Any) -> Any:
    """Convert a result value into something json.dumps accepts."""
    if isinstance(value, Page):
        return value.to_dict()
    return value


def render_result(result: RequestResult) -> tuple[str, int]:
    """Render a result as (text, exit_code)."""
    if isinstance(result, Cancelled):
        return f"Cancelled: {result.reason}", 130
    if isinstance(result, Failure):
        return json.dumps({"error": result.error.to_dict()}, indent=2, default=str), 1
    value = to_jsonable(result.value)
    if isinstance(value, str):
        return value, 0
    return json.dumps(value, indent=2, default=str), 0


async def _run_request(
    method: str,
    path: str,
    service: str,
    body: Any,
    retry: Any,
    skip_auth: bool,
) -> RequestResult:
    async with create_service_clients(credentials=EnvCredentialSource()) as clients:
        client = clients.get(service)
        return await client.request(
            method,
            path,
            json_body=body,
            retry=retry,
            skip_auth=skip_auth,
            skip_error_logging=True,
        )


@app.command()
def request(
    method: str = typer.Argument(..., help="HTTP method (GET, POST, PUT, PATCH, DELETE)"),
    path: str = typer.Argument(..., help="Path relative to the service base URL"),
    service: str = typer.Option("api", "--service", "-s", help="Target service: api, auth or payments"),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="JSON request body"),
    retry: Optional[bool] = typer.Option(None, "--retry/--no-retry", help="Force retries on or off"),
    max_retries: Optional[int] = typer.Option(None, "--max-retries", min=0, help="Override max retries"),
    no_auth: bool = typer.Option(False, "--no-auth", help="Don't send the bearer token"),
) -> None:
    """Send one request and print the unwrapped response."""
    method = method.upper()
    if service not in SERVICE_NAMES:
        typer.echo(f"Error: unknown service '{service}'. Choose from {', '.join(SERVICE_NAMES)}", err=True)
        raise typer.Exit(code=2)

    body = None
    if data is not None:
        if method not in BODY_METHODS:
            typer.echo(f"Error: {method} requests cannot carry a body", err=True)
            raise typer.Exit(code=2)
        try:
            body = json.loads(data)
        except json.JSONDecodeError as e:
            typer.echo(f"Error: --data is not valid JSON: {e}", err=True)
            raise typer.Exit(code=2)

    # Forcing retries on uses the configured delays even when retry.enabled is off
    retry_option: Any = retry
    if retry is not False and (retry or max_retries is not None):
        policy = get_settings().retry.to_policy()
        if max_retries is not None:
            policy = policy.with_overrides(max_retries=max_retries)
        retry_option = policy

    result = asyncio.run(_run_request(method, path, service, body, retry_option, no_auth))
    text, code = render_result(result)
    typer.echo(text, err=code != 0)
    if code:
        raise typer.Exit(code=code)


@app.command("config")
def show_config() -> None:
    """Print the effective configuration as JSON."""
    settings = get_settings()
    typer.echo(json.dumps(settings.model_dump(mode="json", by_alias=True), indent=2))


if __name__ == "__main__":  # pragma: no cover
    app()
