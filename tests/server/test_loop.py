"""Tests for the StreamLoop session."""

from __future__ import annotations

import io
import json
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from fnmcp.server.loop import StreamLoop, encode
from fnmcp.server.models import JsonRpcResponse
from fnmcp.server.router import RequestRouter


def _lines(*messages: Any) -> str:
    return "".join(
        (m if isinstance(m, str) else json.dumps(m)) + "\n" for m in messages
    )


class TestSession:
    def test_initialize_list_call(self, run_loop: Callable[..., Any]) -> None:
        run = run_loop(
            _lines(
                {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}},
                {"jsonrpc": "2.0", "id": 2, "method": "tools/list"},
                {
                    "jsonrpc": "2.0",
                    "id": 3,
                    "method": "tools/call",
                    "params": {"name": "say_hello", "arguments": {"Name": "Igor"}},
                },
            )
        )
        responses = run.responses
        assert [r["id"] for r in responses] == [1, 2, 3]
        assert responses[0]["result"]["protocolVersion"] == "2025-11-25"
        assert len(responses[1]["result"]["tools"]) == 3
        assert responses[2]["result"]["content"][0]["text"] == "hello Igor"
        assert run.end.reason == "eof"
        assert run.end.responses == 3
        assert run.errors == ""

    def test_one_line_per_response(self, run_loop: Callable[..., Any]) -> None:
        run = run_loop(_lines({"jsonrpc": "2.0", "id": 1, "method": "ping"}))
        assert run.output == '{"jsonrpc":"2.0","id":1,"result":{}}\n'

    def test_string_id_echoed(self, run_loop: Callable[..., Any]) -> None:
        run = run_loop(_lines({"jsonrpc": "2.0", "id": "abc", "method": "ping"}))
        assert run.responses[0]["id"] == "abc"

    def test_shutdown_stops_reading(self, run_loop: Callable[..., Any]) -> None:
        run = run_loop(
            _lines(
                {"jsonrpc": "2.0", "id": 1, "method": "ping"},
                {"jsonrpc": "2.0", "id": 2, "method": "shutdown"},
                {"jsonrpc": "2.0", "id": 3, "method": "ping"},
            )
        )
        assert [r["id"] for r in run.responses] == [1]
        assert run.end.reason == "shutdown"
        assert run.end.lines == 2

    def test_empty_input(self, run_loop: Callable[..., Any]) -> None:
        run = run_loop("")
        assert run.output == ""
        assert run.end.reason == "eof"
        assert run.end.lines == 0

    def test_blank_lines_skipped(self, run_loop: Callable[..., Any]) -> None:
        run = run_loop("\n   \n" + _lines({"jsonrpc": "2.0", "id": 1, "method": "ping"}))
        assert len(run.responses) == 1
        assert run.end.lines == 1

    def test_last_line_without_newline(self, run_loop: Callable[..., Any]) -> None:
        run = run_loop('{"jsonrpc":"2.0","id":9,"method":"ping"}')
        assert run.responses[0]["id"] == 9


class TestSilence:
    def test_notifications_get_no_response(self, run_loop: Callable[..., Any]) -> None:
        run = run_loop(
            _lines(
                {"jsonrpc": "2.0", "method": "notifications/initialized"},
                {"jsonrpc": "2.0", "id": None, "method": "ping"},
                {"jsonrpc": "2.0", "method": "no/such/method"},
            )
        )
        assert run.output == ""
        assert run.errors == ""

    def test_shutdown_notification_does_not_stop(self, run_loop: Callable[..., Any]) -> None:
        run = run_loop(
            _lines(
                {"jsonrpc": "2.0", "method": "shutdown"},
                {"jsonrpc": "2.0", "id": 1, "method": "ping"},
            )
        )
        assert run.end.reason == "eof"
        assert [r["id"] for r in run.responses] == [1]

    @pytest.mark.parametrize(
        "message",
        [
            {"jsonrpc": "1.0", "id": 1, "method": "ping"},
            {"id": 1, "method": "ping"},
            [1, 2, 3],
            "just a string",
            42,
        ],
    )
    def test_wrong_envelope_dropped(
        self, run_loop: Callable[..., Any], message: Any
    ) -> None:
        run = run_loop(_lines(json.dumps(message)))
        assert run.output == ""
        assert run.errors == ""


class TestDiagnostics:
    def test_malformed_json_reported_and_skipped(self, run_loop: Callable[..., Any]) -> None:
        run = run_loop("{not json\n" + _lines({"jsonrpc": "2.0", "id": 2, "method": "ping"}))
        assert [r["id"] for r in run.responses] == [2]
        diagnostics = run.diagnostics
        assert len(diagnostics) == 1
        assert diagnostics[0]["input_line"] == "{not json"
        assert diagnostics[0]["error"]

    def test_undecodable_bytes_do_not_end_session(self, router: RequestRouter) -> None:
        raw = b'\xff\xfe garbage\n{"jsonrpc":"2.0","id":1,"method":"ping"}\n'
        stdin = io.TextIOWrapper(io.BytesIO(raw), encoding="utf-8", errors="replace")
        stdout, stderr = io.StringIO(), io.StringIO()

        end = StreamLoop(router, stdin, stdout, stderr).run()

        assert end.reason == "eof"
        assert json.loads(stdout.getvalue()) == {"jsonrpc": "2.0", "id": 1, "result": {}}
        assert len(stderr.getvalue().splitlines()) == 1

    def test_strict_decoding_error_reported(self, router: RequestRouter) -> None:
        raw = b'\xff\xfe garbage\n{"jsonrpc":"2.0","id":1,"method":"ping"}\n'
        stdin = io.TextIOWrapper(io.BytesIO(raw), encoding="utf-8")
        stderr = io.StringIO()

        end = StreamLoop(router, stdin, io.StringIO(), stderr).run()

        assert end.reason == "eof"
        diagnostic = json.loads(stderr.getvalue().splitlines()[0])
        assert "utf-8" in diagnostic["error"]
        assert diagnostic["input_line"] == "ff"

    def test_router_failure_isolated(self) -> None:
        router = MagicMock(spec=RequestRouter)
        router.handle.side_effect = [
            RuntimeError("router broke"),
            JsonRpcResponse.success(2, {}),
        ]
        stdout, stderr = io.StringIO(), io.StringIO()
        text = _lines(
            {"jsonrpc": "2.0", "id": 1, "method": "ping"},
            {"jsonrpc": "2.0", "id": 2, "method": "ping"},
        )

        end = StreamLoop(router, io.StringIO(text), stdout, stderr).run()

        assert end.responses == 1
        assert json.loads(stdout.getvalue())["id"] == 2
        assert json.loads(stderr.getvalue())["error"] == "router broke"

    def test_output_failure_propagates(self, router: RequestRouter) -> None:
        output = MagicMock()
        output.write.side_effect = OSError("broken pipe")
        text = _lines({"jsonrpc": "2.0", "id": 1, "method": "ping"})

        with pytest.raises(OSError, match="broken pipe"):
            StreamLoop(router, io.StringIO(text), output, io.StringIO()).run()


class TestEncode:
    def test_compact_single_line(self) -> None:
        line = encode(JsonRpcResponse.success(1, {"text": "a\nb"}))
        assert "\n" not in line
        assert line == '{"jsonrpc":"2.0","id":1,"result":{"text":"a\\nb"}}'


class TestLenientEnvelope:
    def test_float_id_answered(self, run_loop: Callable[..., Any]) -> None:
        run = run_loop(_lines({"jsonrpc": "2.0", "id": 1.5, "method": "ping"}))
        assert run.responses == [{"jsonrpc": "2.0", "id": 1.5, "result": {}}]

    def test_non_object_params_answered(self, run_loop: Callable[..., Any]) -> None:
        run = run_loop(
            _lines(
                {"jsonrpc": "2.0", "id": 1, "method": "ping", "params": []},
                {"jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": ["x"]},
            )
        )
        ping, call = run.responses
        assert ping["result"] == {}
        assert call["result"]["isError"] is True
        assert call["result"]["content"][0]["text"].startswith("Unknown tool:")
        assert run.errors == ""

    def test_null_method_is_method_not_found(self, run_loop: Callable[..., Any]) -> None:
        run = run_loop(_lines({"jsonrpc": "2.0", "id": 7, "method": None}))
        assert run.responses[0]["id"] == 7
        assert run.responses[0]["error"]["code"] == -32601
