"""Tests for the command line entry point."""

import pytest
from unittest.mock import patch

from fastapi import FastAPI

from mcp_target.unified_server import UnifiedMCPServer, create_app, main, parse_args


class TestParseArgs:

    def test_defaults(self):
        args = parse_args([])

        assert args.transport == "http"
        assert args.server == "auth"
        assert set(args.servers) <= {"auth", "search", "cart", "membership"}

    def test_servers_option(self):
        args = parse_args(["--servers", "cart, auth", "--port", "8080"])

        assert args.servers == ["cart", "auth"]
        assert args.port == 8080

    @pytest.mark.parametrize("value", ["", "auth,pharmacy"])
    def test_invalid_servers(self, value):
        with pytest.raises(SystemExit):
            parse_args(["--servers", value])

    def test_stdio_server_choice(self):
        args = parse_args(["--transport", "stdio", "--server", "membership"])
        assert args.server == "membership"


class TestUnifiedServer:

    def test_build_app(self, settings):
        server = UnifiedMCPServer(settings)

        app = server.build_app()

        assert isinstance(app, FastAPI)
        assert list(server.multiplexer.managers) == ["/mcp1", "/mcp2", "/mcp3", "/mcp4"]

    def test_create_app(self):
        assert isinstance(create_app(), FastAPI)

    def test_run_http_uses_uvicorn(self, settings):
        with patch("mcp_target.unified_server.uvicorn.run") as run:
            UnifiedMCPServer(settings).run_http()

        _, kwargs = run.call_args
        assert kwargs["port"] == 3000
        assert kwargs["log_level"] == "info"


class TestMain:

    def test_http_mode(self):
        with patch.object(UnifiedMCPServer, "run_http") as run_http:
            main(["--servers", "auth", "--port", "9000"])

        run_http.assert_called_once()

    def test_stdio_mode(self):
        with patch.object(UnifiedMCPServer, "run_stdio") as run_stdio:
            main(["--transport", "stdio", "--server", "cart"])

        run_stdio.assert_called_once_with("cart")

    def test_keyboard_interrupt(self):
        with patch.object(UnifiedMCPServer, "run_http", side_effect=KeyboardInterrupt):
            main([])

    def test_error_exits(self):
        with patch.object(UnifiedMCPServer, "run_http", side_effect=RuntimeError("port in use")):
            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == 1
