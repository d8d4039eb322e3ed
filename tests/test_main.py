"""Tests for the command-line host and its built-in tools."""

import asyncio
import json
from pathlib import Path
from unittest.mock import patch

import pytest
from conftest import read_message

import main
from workspace_mcp.registry import ServerRegistry
from workspace_mcp.tools.builtin import BuiltinPlugin
from workspace_mcp.tools.registry import ToolRegistry


class TestBuiltinPlugin:
    """Tests for the built-in tools."""

    def test_lists_tools(self):
        """Should expose echo and list_servers."""
        plugin = BuiltinPlugin(ServerRegistry())
        assert plugin.name == "builtin"
        assert [t.name for t in plugin.get_tools()] == ["echo", "list_servers"]

    def test_echo(self):
        """Should return the message unchanged."""
        plugin = BuiltinPlugin(ServerRegistry())
        assert plugin.execute("echo", {"message": "hi there"}) == "hi there"

    def test_unknown_tool(self):
        """Should raise ValueError for tools it does not own."""
        plugin = BuiltinPlugin(ServerRegistry())
        with pytest.raises(ValueError, match="Unknown tool"):
            plugin.execute("nope", {})

    @pytest.mark.asyncio
    async def test_list_servers(self, tmp_path: Path):
        """Should report each running workspace and its port."""
        tools = ToolRegistry()
        servers = ServerRegistry(tools=tools)
        tools.register_plugin(BuiltinPlugin(servers))
        entry = await servers.ensure_server(tmp_path)

        result = tools.call_tool("list_servers", {})

        assert result == [{"workspace": str(tmp_path), "port": entry.port, "sessions": 0}]
        await servers.stop_all()


class TestBuildParser:
    """Tests for command-line parsing."""

    def test_defaults(self):
        """Should default to built-in settings and the current directory."""
        args = main.build_parser().parse_args([])
        assert args.config is None
        assert args.workspace is None

    def test_repeatable_workspace(self):
        """Should collect every --workspace."""
        args = main.build_parser().parse_args(["-w", "/a", "--workspace", "/b", "-c", "server.yaml"])
        assert args.workspace == ["/a", "/b"]
        assert args.config == Path("server.yaml")

    def test_version(self, capsys):
        """Should print the version and exit."""
        with pytest.raises(SystemExit) as exc_info:
            main.build_parser().parse_args(["--version"])
        assert exc_info.value.code == 0
        assert "workspace-mcp" in capsys.readouterr().out


class TestMain:
    """Tests for main()."""

    def test_missing_config_exits_with_error(self, capsys):
        """Should return 1 when the config cannot be loaded."""
        with patch("sys.argv", ["main.py", "--config", "/nonexistent/server.yaml"]):
            assert main.main() == 1
        assert "Config file not found" in capsys.readouterr().err

    def test_keyboard_interrupt(self):
        """Should return 130 on Ctrl-C."""
        with patch("sys.argv", ["main.py"]), patch("main.asyncio.run", side_effect=KeyboardInterrupt):
            assert main.main() == 130

    def test_log_prefix(self, capsys):
        """Should prefix operator messages."""
        main.log("hello")
        assert capsys.readouterr().err == "[MCP] hello\n"


class TestServe:
    """Tests for the serve loop."""

    @pytest.mark.asyncio
    async def test_serves_workspace_until_cancelled(self, tmp_path: Path, capsys):
        """Should print the port, answer tool calls and stop cleanly."""
        task = asyncio.create_task(main.serve(main.ServerConfig(), [str(tmp_path)]))
        out = ""
        for _ in range(200):
            out += capsys.readouterr().out
            if out:
                break
            await asyncio.sleep(0.01)
        workspace, port = out.split()
        assert workspace == str(tmp_path)

        reader, writer = await asyncio.open_connection("127.0.0.1", int(port))
        request = {"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "list_servers"}}
        writer.write(json.dumps(request).encode() + b"\n")
        response = await read_message(reader)
        servers = json.loads(response["result"]["content"][0]["text"])
        assert servers == [{"workspace": str(tmp_path), "port": int(port), "sessions": 1}]

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert await asyncio.wait_for(reader.read(), 2.0) == b""
        assert "All servers stopped" in capsys.readouterr().err
        writer.close()
