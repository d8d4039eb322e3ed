#!/usr/bin/env python3
"""Workspace MCP Server - command-line host.

Starts one loopback MCP server per workspace directory and keeps them
running until interrupted. Each server's port is printed to stdout as
``<workspace> <port>``; operator messages go to stderr.

Signals (POSIX only):
    SIGHUP   restart every server on a fresh port
    SIGTERM  stop every server and exit

Registering tools
-----------------
Tools are plain callables taking the call's arguments. Register them on the
registry before or after the servers start; connected clients receive a
``notifications/tools/list_changed`` notification either way:

    registry.register_tool(
        {"name": "word_count", "description": "Count words",
         "inputSchema": {"type": "object",
                         "properties": {"text": {"type": "string"}}}},
        lambda args: len(args["text"].split()),
    )
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import signal
import sys
from pathlib import Path

from workspace_mcp import __version__
from workspace_mcp.config import ConfigLoadError, ServerConfig, load_config
from workspace_mcp.eventlog import EventLog
from workspace_mcp.registry import ServerRegistry, ServerStartError
from workspace_mcp.scheduler import Scheduler
from workspace_mcp.server import ServerInstance
from workspace_mcp.tools.builtin import BuiltinPlugin
from workspace_mcp.tools.registry import ToolRegistry


def log(message: str) -> None:
    """Write an operator message to stderr."""
    sys.stderr.write(f"[MCP] {message}\n")
    sys.stderr.flush()


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        description="Workspace MCP Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to server config YAML file (default: built-in settings)",
    )
    parser.add_argument(
        "--workspace",
        "-w",
        action="append",
        default=None,
        help="Workspace directory to serve; repeatable (default: current directory)",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"workspace-mcp {__version__}",
    )
    return parser


async def serve(config: ServerConfig, workspaces: list[str]) -> None:
    """Run servers for the given workspaces until stopped.

    Args:
        config: Server settings.
        workspaces: Directories to serve.
    """
    event_log = EventLog(
        Path(config.log_file) if config.log_file else None,
        preview_chars=config.preview_chars,
    )

    def on_server_created(path: str, instance: ServerInstance) -> None:
        print(f"{path} {instance.port}", flush=True)
        if config.debug:
            log(f"Started MCP server for {path} on port {instance.port}")

    def on_initialized() -> None:
        if config.debug:
            log("Client initialized")

    tools = ToolRegistry()
    scheduler = Scheduler()
    registry = ServerRegistry(
        tools=tools,
        scheduler=scheduler,
        config=config,
        event_log=event_log,
        on_server_created=on_server_created,
        on_initialized=on_initialized,
    )
    tools.register_plugin(BuiltinPlugin(registry))

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    pending: set[asyncio.Task[object]] = set()

    def restart() -> None:
        log("Restarting all servers")
        task = loop.create_task(registry.restart_all())
        pending.add(task)
        task.add_done_callback(pending.discard)

    # add_signal_handler is unavailable on Windows event loops
    with contextlib.suppress(NotImplementedError, AttributeError):
        loop.add_signal_handler(signal.SIGHUP, restart)
        loop.add_signal_handler(signal.SIGTERM, stop.set)

    scheduler.start()
    try:
        for workspace in workspaces:
            await registry.ensure_server(workspace)
        log(f"Serving {len(registry)} workspace(s)")
        await stop.wait()
    finally:
        await registry.stop_all()
        await scheduler.stop()
        event_log.close()
        log("All servers stopped")


def main() -> int:
    """Run the MCP host.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = build_parser().parse_args()

    if args.config is not None:
        try:
            config = load_config(args.config)
        except ConfigLoadError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    else:
        config = ServerConfig()

    workspaces = args.workspace or [str(Path.cwd())]

    try:
        asyncio.run(serve(config, workspaces))
    except KeyboardInterrupt:
        log("Interrupted, shutting down")
        return 130  # Standard exit code for SIGINT
    except ServerStartError as e:
        log(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
