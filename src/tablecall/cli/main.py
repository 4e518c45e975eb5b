"""TableCall CLI: run the server, work with QR codes, watch table calls.

Usage:
    tablecall serve                                   # Run the API with uvicorn
    tablecall qr issue R B T 9                        # Print a table's proof and URL
    tablecall qr verify R B T 9 <proof>               # Check a proof offline
    tablecall pending -r <restaurant-id>              # Pending table calls
    tablecall status                                  # Server health and hub counters
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8080"


def _api_url() -> str:
    return os.environ.get("TABLECALL_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the TableCall backend."""
    headers = {}
    token = os.environ.get("TABLECALL_API_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    When already inside an event loop (CliRunner in async tests) the
    coroutine is run on a worker thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


def _restaurant_id_from_ctx(restaurant_id: Optional[str]) -> str:
    """Resolve restaurant_id from flag or TABLECALL_RESTAURANT_ID env var."""
    rid = restaurant_id or os.environ.get("TABLECALL_RESTAURANT_ID")
    if not rid:
        click.secho(
            "Error: --restaurant-id required (or set TABLECALL_RESTAURANT_ID env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return rid


def _codec():
    from tablecall.qr import QRCodec
    from tablecall.config import settings

    return QRCodec(settings.qr_base_url, settings.qr_token_length)


def _status_color(status: str) -> str:
    colors = {
        "ok": "green",
        "healthy": "green",
        "degraded": "yellow",
        "pending": "yellow",
        "attended": "green",
        "cancelled": "red",
    }
    return colors.get(status, "white")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="tablecall")
def main():
    """TableCall: restaurant back office with live table calls."""


# ---------------------------------------------------------------------------
# tablecall serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: TABLECALL_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: TABLECALL_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from tablecall.config import settings

    uvicorn.run(
        "tablecall.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# tablecall qr
# ---------------------------------------------------------------------------


@main.group()
def qr():
    """Issue and verify table QR proofs (offline)."""


@qr.command("issue")
@click.argument("restaurant_id")
@click.argument("branch_id")
@click.argument("table_id")
@click.argument("table_number", type=int)
def qr_issue(restaurant_id: str, branch_id: str, table_id: str, table_number: int):
    """Print the proof and QR URL for a table."""
    codec = _codec()
    try:
        proof = codec.issue(restaurant_id, branch_id, table_id, table_number)
    except ValueError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)
    click.echo(proof)
    click.echo(codec.table_url(restaurant_id, branch_id, table_id, table_number))


@qr.command("verify")
@click.argument("restaurant_id")
@click.argument("branch_id")
@click.argument("table_id")
@click.argument("table_number", type=int)
@click.argument("proof")
def qr_verify(
    restaurant_id: str, branch_id: str, table_id: str, table_number: int, proof: str
):
    """Check a proof against a table's coordinates. Exit code 1 if invalid."""
    if _codec().verify(restaurant_id, branch_id, table_id, table_number, proof):
        click.secho("valid", fg="green")
        return
    click.secho("invalid", fg="red")
    sys.exit(1)


# ---------------------------------------------------------------------------
# tablecall pending
# ---------------------------------------------------------------------------


@main.command()
@click.option("--restaurant-id", "-r", help="Restaurant UUID (or set TABLECALL_RESTAURANT_ID)")
@click.option("--json", "as_json", is_flag=True, help="Raw JSON output")
def pending(restaurant_id: Optional[str], as_json: bool):
    """List a restaurant's pending table calls."""
    _run(_pending_impl(restaurant_id, as_json))


async def _pending_impl(restaurant_id: Optional[str], as_json: bool):
    rid = _restaurant_id_from_ctx(restaurant_id)
    async with _client() as c:
        r = await c.get(f"/api/v1/requests/restaurant/{rid}/pending")
        if r.status_code == 401:
            click.secho("Not authenticated. Set TABLECALL_API_TOKEN.", fg="red", err=True)
            sys.exit(1)
        r.raise_for_status()
        requests = r.json()

    if as_json:
        click.echo(json.dumps(requests, indent=2))
        return
    if not requests:
        click.echo("No pending requests.")
        return

    click.secho(f"{'TABLE':6s}  {'STATUS':10s}  CREATED", bold=True)
    for req in requests:
        status_str = click.style(f"{req['status']:10s}", fg=_status_color(req["status"]))
        click.echo(f"{req['table_number']:<6d}  {status_str}  {req['created_at']}")


# ---------------------------------------------------------------------------
# tablecall status
# ---------------------------------------------------------------------------


@main.command()
def status():
    """Show server health, dependencies and live dashboard connections."""
    _run(_status_impl())


async def _status_impl():
    async with _client() as c:
        try:
            r = await c.get("/api/v1/health")
        except httpx.HTTPError as e:
            click.secho(f"Server unreachable at {_api_url()}: {e}", fg="red", err=True)
            sys.exit(1)
        r.raise_for_status()
        health = r.json()

    overall = health.get("status", "unknown")
    click.secho(f"TableCall {health.get('version', '?')}: ", bold=True, nl=False)
    click.secho(overall, fg=_status_color(overall))
    for key in ("database", "redis"):
        value = str(health.get(key, "unknown"))
        click.echo(f"  {key:10s} {click.style(value, fg=_status_color(value))}")
    hub = health.get("hub", {})
    click.echo(
        f"  hub        {hub.get('connections', 0)} connection(s) "
        f"across {hub.get('restaurants', 0)} restaurant(s)"
    )
