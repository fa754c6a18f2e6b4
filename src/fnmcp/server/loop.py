"""StreamLoop — the line-delimited JSON-RPC session over a pair of text streams.

One line is read, decoded, routed and answered before the next is read.
The output stream carries protocol messages only; diagnostics about input
that cannot be answered go to the separate error stream.

Session states::

    RUNNING --(end of input | "shutdown" request)--> SHUTDOWN
"""

from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING, Any, Literal, TextIO

from pydantic import BaseModel

from fnmcp.server.models import JSONRPC_VERSION, JsonRpcRequest, JsonRpcResponse

if TYPE_CHECKING:
    from fnmcp.server.router import RequestRouter

logger = logging.getLogger(__name__)

SHUTDOWN_METHOD = "shutdown"


class SessionEnd(BaseModel):
    """Why and after how much traffic a session stopped."""

    reason: Literal["eof", "shutdown"]
    lines: int = 0
    responses: int = 0


class _Shutdown:
    pass


_SHUTDOWN = _Shutdown()


class StreamLoop:
    """Reads requests from *input* and writes responses to *output*.

    Usage::

        loop = StreamLoop(router, sys.stdin, sys.stdout)
        end = loop.run()
    """

    def __init__(
        self,
        router: RequestRouter,
        input: TextIO,
        output: TextIO,
        errors: TextIO | None = None,
    ) -> None:
        self._router = router
        self._input = input
        self._output = output
        self._errors = errors if errors is not None else sys.stderr

    def run(self) -> SessionEnd:
        """Serve until end of input or a ``shutdown`` request.

        Failures writing to the output stream propagate; nothing else does.
        """
        lines = 0
        responses = 0
        logger.info("Session started")

        while True:
            try:
                line = self._input.readline()
            except UnicodeDecodeError as exc:
                lines += 1
                logger.warning("Undecodable input bytes: %s", exc)
                self._report(exc.object[exc.start : exc.end].hex(), exc)
                continue
            if not line:
                logger.info("Input closed", extra={"fields": {"responses": responses}})
                return SessionEnd(reason="eof", lines=lines, responses=responses)

            if not line.strip():
                continue
            lines += 1

            try:
                outcome = self._process(line)
            except Exception as exc:
                logger.error("Failed to handle request line", exc_info=True)
                self._report(line, exc)
                continue

            if outcome is _SHUTDOWN:
                logger.info("Shutdown requested", extra={"fields": {"responses": responses}})
                return SessionEnd(reason="shutdown", lines=lines, responses=responses)
            if outcome is None:
                continue

            self._output.write(outcome + "\n")
            self._output.flush()
            responses += 1

    def _process(self, line: str) -> str | _Shutdown | None:
        """Turn one input line into a serialised response, if it gets one."""
        try:
            message: Any = json.loads(line)
        except json.JSONDecodeError as exc:
            logger.warning("Undecodable input line: %s", exc)
            self._report(line, exc)
            return None

        if not isinstance(message, dict) or message.get("jsonrpc") != JSONRPC_VERSION:
            logger.debug("Dropping message without jsonrpc 2.0 marker")
            return None
        if message.get("id") is None:
            logger.debug(
                "Dropping notification %s",
                message.get("method"),
                extra={"fields": {"method": message.get("method")}},
            )
            return None
        if message.get("method") == SHUTDOWN_METHOD:
            return _SHUTDOWN

        request = JsonRpcRequest.model_validate(message)
        response = self._router.handle(request)
        return encode(response)

    def _report(self, line: str, exc: BaseException) -> None:
        diagnostic = {"input_line": line.rstrip("\r\n"), "error": str(exc)}
        self._errors.write(json.dumps(diagnostic, ensure_ascii=False) + "\n")
        self._errors.flush()


def encode(response: JsonRpcResponse) -> str:
    """Serialise a response as a single compact JSON line (no terminator)."""
    return json.dumps(response.to_wire(), separators=(",", ":"), ensure_ascii=False)
