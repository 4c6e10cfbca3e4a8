"""ExtensionHostClient — the parent side of the host protocol.

Spawns a host subprocess, speaks newline-delimited JSON-RPC to it, and
exposes ``initialize`` / ``invoke_tool`` / ``shutdown`` as coroutines.
Requests are sent one at a time; each waits at most ``timeout`` seconds.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from exthost.protocol.errors import HostRpcError, HostTimeoutError, HostTransportError
from exthost.protocol.models import (
    InitializeParams,
    InitializeResult,
    InvokeToolParams,
    JsonRpcRequest,
    JsonRpcResponse,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
_LINE_LIMIT = 16 * 1024 * 1024


def default_host_command() -> list[str]:
    """Command that starts a host with the current interpreter."""
    return [sys.executable, "-m", "exthost.cli", "serve"]


class ExtensionHostClient:
    """Async context manager owning one host subprocess.

    Usage::

        async with ExtensionHostClient() as client:
            tools = await client.initialize("extensions/hello", "hello")
            result = await client.invoke_tool("greeting", {"name": "Ada"})
    """

    def __init__(
        self,
        command: Sequence[str] | None = None,
        *,
        env: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._command = list(command) if command else default_host_command()
        self._env = env
        self._timeout = timeout
        self._process: asyncio.subprocess.Process | None = None
        self._next_id = 1

    async def __aenter__(self) -> ExtensionHostClient:
        await self.start()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    @property
    def returncode(self) -> int | None:
        return self._process.returncode if self._process is not None else None

    async def start(self) -> None:
        """Launch the host subprocess."""
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self._command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                env=self._env,
                limit=_LINE_LIMIT,
            )
        except OSError as exc:
            raise HostTransportError(f"failed to spawn extension host: {exc}") from exc
        logger.debug("started extension host pid=%s", self._process.pid)

    async def initialize(self, extension_dir: str | Path, extension_id: str = "") -> list[str]:
        """Load the extension in the host; return the tool ids it resolved."""
        params = InitializeParams(extension_dir=str(extension_dir), extension_id=extension_id)
        result = await self.call("initialize", params.model_dump())
        try:
            return InitializeResult.model_validate(result).tools
        except ValidationError as exc:
            raise HostTransportError(f"malformed initialize result: {exc}") from exc

    async def invoke_tool(self, tool_id: str, args: dict[str, Any] | None = None) -> Any:
        """Invoke *tool_id* and return the handler's output."""
        params = InvokeToolParams(tool_id=tool_id, args=args or {})
        result = await self.call("invoke_tool", params.model_dump())
        if not isinstance(result, dict) or "output" not in result:
            raise HostTransportError(f"malformed invoke_tool result: {result!r}")
        return result["output"]

    async def shutdown(self) -> int | None:
        """Ask the host to exit and wait for it; return its exit status."""
        await self.call("shutdown")
        return await self.wait()

    async def wait(self) -> int | None:
        if self._process is None:
            return None
        try:
            return await asyncio.wait_for(self._process.wait(), timeout=self._timeout)
        except TimeoutError as exc:
            raise HostTimeoutError("wait", self._timeout) from exc

    async def call(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Send one request and return its ``result``.

        Raises:
            HostRpcError: The host answered with an error object.
            HostTimeoutError: No answer within the timeout.
            HostTransportError: The host is not running or closed its output.
        """
        request_id = self._next_id
        self._next_id += 1
        request = JsonRpcRequest(id=request_id, method=method, params=params)

        await self.send_raw(json.dumps(request.model_dump(exclude_none=True)))
        try:
            response = await asyncio.wait_for(self._receive(request_id), timeout=self._timeout)
        except TimeoutError as exc:
            raise HostTimeoutError(method, self._timeout) from exc

        if response.error is not None:
            raise HostRpcError(response.error.code, response.error.message, response.error.data)
        return response.result

    async def send_raw(self, line: str) -> None:
        """Write *line* plus a newline to the host's stdin."""
        if self._process is None or self._process.stdin is None:
            msg = "extension host not started"
            raise HostTransportError(msg)
        try:
            self._process.stdin.write((line + "\n").encode("utf-8"))
            await self._process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            raise HostTransportError(f"extension host closed its input: {exc}") from exc

    async def read_response(self) -> JsonRpcResponse:
        """Read the next response frame, whatever its id."""
        if self._process is None or self._process.stdout is None:
            msg = "extension host not started"
            raise HostTransportError(msg)
        line = await self._process.stdout.readline()
        if not line:
            msg = "extension host closed its output"
            raise HostTransportError(msg)
        try:
            return JsonRpcResponse.model_validate_json(line)
        except ValidationError as exc:
            raise HostTransportError(f"malformed response frame: {line!r}") from exc

    async def _receive(self, request_id: int) -> JsonRpcResponse:
        while True:
            response = await self.read_response()
            if response.id == request_id:
                return response
            logger.warning("discarding response for unexpected id %s", response.id)

    async def close(self) -> None:
        """Close stdin (the host's clean-exit signal) and reap the process."""
        if self._process is None:
            return
        process, self._process = self._process, None
        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()
        if process.returncode is None:
            try:
                await asyncio.wait_for(process.wait(), timeout=self._timeout)
            except TimeoutError:
                logger.warning("extension host pid=%s did not exit, killing", process.pid)
                process.kill()
                await process.wait()
