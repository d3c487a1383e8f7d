"""CLI interface for netbridge - Headless access to the connectivity bridge.

Usage:
    netbridge status [--json]
    netbridge watch [--json] [--count N]
    netbridge call <method>
    netbridge version
"""

import json
import sys
import threading
from typing import Optional

import typer
from loguru import logger

from netbridge.core.errors import UnsupportedOperation
from netbridge.core.network_service import NetworkServiceBridge

# Create Typer app
app = typer.Typer(
    name="netbridge",
    help="netbridge CLI - Inspect OS connectivity state without a host application",
    add_completion=False,
)

_TRANSPORT_ICONS = {
    "wifi": "📶",
    "ethernet": "🔌",
    "mobile": "📱",
    "none": "🚫",
}


def _init_core() -> NetworkServiceBridge:
    """Initialize logging and the bridge without a host application."""
    from netbridge.core.logger import set_console_level

    # Set default level to INFO for CLI to avoid debug noise
    set_console_level("INFO")
    return NetworkServiceBridge()


def _format_payload(payload: dict, as_json: bool) -> str:
    if as_json:
        return json.dumps(payload, sort_keys=True)

    network_type = payload["networkType"]
    icon = _TRANSPORT_ICONS.get(network_type, "❓")
    connected = "✅ Connected" if payload["isConnected"] else "❌ Disconnected"
    return f"{icon} {connected} | type: {network_type} | wifi/ethernet: {payload['isWifiOrEthernet']} | at {payload['timestamp']}"


@app.command()
def status(as_json: bool = typer.Option(False, "--json", help="Print the raw payload as JSON")):
    """Show the current connectivity state."""
    bridge = _init_core()
    try:
        payload = bridge.handle_call("query")
    finally:
        bridge.dispose()

    if not as_json:
        typer.echo("📊 Connectivity Status:")
    typer.echo(_format_payload(payload, as_json))


@app.command()
def watch(
    as_json: bool = typer.Option(False, "--json", help="Print each event as JSON"),
    count: Optional[int] = typer.Option(None, "--count", "-n", min=1, help="Exit after N events"),
):
    """Stream connectivity changes until interrupted."""
    bridge = _init_core()
    done = threading.Event()
    received = 0

    def _on_event(payload: dict):
        nonlocal received
        received += 1
        typer.echo(_format_payload(payload, as_json))
        if count is not None and received >= count:
            done.set()

    bridge.on_listen(_on_event)
    if not as_json:
        typer.echo("👀 Watching network changes (Ctrl+C to stop)...")

    try:
        bridge.handle_call("startNetworkMonitoring")
        while not done.wait(0.5):
            pass
    except KeyboardInterrupt:
        typer.echo("\n⚠️  Interrupted by user")
    finally:
        bridge.handle_call("stopNetworkMonitoring")
        bridge.dispose()


@app.command()
def call(method: str = typer.Argument(..., help="Bridge method name, e.g. getNetworkType")):
    """Invoke a bridge method and print its result."""
    bridge = _init_core()
    try:
        result = bridge.handle_call(method)
    except UnsupportedOperation:
        typer.echo(f"❌ Not implemented: {method}", err=True)
        typer.echo(f"   Available: {', '.join(bridge.methods)}", err=True)
        raise typer.Exit(2)
    finally:
        bridge.dispose()

    typer.echo(json.dumps(result, sort_keys=True))


@app.command()
def version():
    """Show netbridge version."""
    from netbridge import __version__

    typer.echo(f"netbridge CLI v{__version__}")


def main():
    """Entry point for CLI."""
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("\n⚠️  Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.exception("CLI error")
        typer.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
