"""ExtensionHostServer — the read → dispatch → respond loop.

One frame is read, dispatched to completion, and answered before the next
frame is read, so responses leave in request order.  End of input and
``shutdown`` both end the loop with exit status 0.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import TYPE_CHECKING, BinaryIO

from exthost.host.dispatcher import RpcDispatcher
from exthost.protocol.errors import HostError, InternalError
from exthost.protocol.framing import FrameReader, parse_request
from exthost.protocol.models import error_response
from exthost.protocol.writer import ResponseWriter

if TYPE_CHECKING:
    from exthost.protocol.framing import ByteSource
    from exthost.protocol.models import JsonRpcResponse
    from exthost.protocol.writer import ByteSink

logger = logging.getLogger(__name__)

# Id used when no usable id could be read from the frame.
PLACEHOLDER_ID = 0

EXIT_OK = 0


class ExtensionHostServer:
    """Serves one extension over a byte source and a byte sink.

    Usage::

        server = ExtensionHostServer(ResponseWriter(sink))
        status = await server.serve(source)
    """

    def __init__(
        self,
        writer: ResponseWriter,
        dispatcher: RpcDispatcher | None = None,
    ) -> None:
        self._writer = writer
        self._dispatcher = dispatcher or RpcDispatcher()

    @property
    def dispatcher(self) -> RpcDispatcher:
        return self._dispatcher

    async def serve(self, source: ByteSource) -> int:
        """Process frames from *source* until EOF or ``shutdown``.

        Returns the process exit status.
        """
        async for frame in FrameReader(source):
            response = await self.handle_frame(frame)
            await self._writer.send(response)
            if self._dispatcher.shutdown_requested:
                logger.info("shutting down after request %s", response.id)
                return EXIT_OK

        logger.info("input closed, exiting")
        return EXIT_OK

    async def handle_frame(self, frame: str) -> JsonRpcResponse:
        """Turn one raw frame into exactly one response."""
        try:
            request = parse_request(frame)
        except HostError as exc:
            logger.warning("rejected frame: %s", exc.message)
            return error_response(PLACEHOLDER_ID, exc.code, exc.message, exc.data)

        try:
            return await self._dispatcher.dispatch(request)
        except (Exception, SystemExit) as exc:
            # dispatch() already maps method failures; this guards the loop itself.
            logger.exception("dispatch loop fault for request %s", request.id)
            fault = InternalError(f"internal error: {type(exc).__name__}: {exc}")
            return error_response(request.id, fault.code, fault.message)


# ---------------------------------------------------------------------------
# stdio wiring
# ---------------------------------------------------------------------------


class _ThreadedReader:
    """Reads a blocking binary file from a worker thread.

    Used when stdin is a regular file, which asyncio pipe transports refuse.
    """

    def __init__(self, file: BinaryIO) -> None:
        self._file = file

    async def read(self, n: int = -1) -> bytes:
        return await asyncio.to_thread(self._file.read1, n)  # type: ignore[attr-defined]


async def _open_stdin() -> ByteSource:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    try:
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin.buffer)
    except (ValueError, OSError, NotImplementedError):
        return _ThreadedReader(sys.stdin.buffer)
    return reader


def _claim_stdout() -> ByteSink:
    """Take exclusive ownership of the protocol channel.

    The real stdout fd is duplicated for frames, and ``sys.stdout`` is
    pointed at stderr so a stray ``print`` in extension code cannot corrupt
    the channel.
    """
    sys.stdout.flush()
    channel = os.fdopen(os.dup(sys.stdout.fileno()), "wb")
    sys.stdout = sys.stderr
    return channel


async def serve_stdio(dispatcher: RpcDispatcher | None = None) -> int:
    """Serve on the process's stdin/stdout and return the exit status."""
    source = await _open_stdin()
    sink = _claim_stdout()
    server = ExtensionHostServer(ResponseWriter(sink), dispatcher)
    try:
        return await server.serve(source)
    finally:
        sink.close()  # type: ignore[attr-defined]
