"""Error taxonomy shared by the host and its parent-side client.

Host-side errors carry the JSON-RPC ``code`` they are reported with, so the
dispatcher can turn any of them into a wire error without a lookup table.
"""

from __future__ import annotations

from typing import Any

from exthost.protocol.models import ErrorCode, JsonRpcError


class HostError(Exception):
    """Base error for everything reported to the parent over the wire."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, *, data: Any = None) -> None:
        self.message = message
        self.data = data
        super().__init__(message)

    def to_rpc_error(self) -> JsonRpcError:
        return JsonRpcError(code=int(self.code), message=self.message, data=self.data)


class ParseError(HostError):
    """The frame is not valid JSON."""

    code = ErrorCode.PARSE_ERROR


class InvalidRequestError(HostError):
    """The frame is JSON but not a JSON-RPC 2.0 request."""

    code = ErrorCode.INVALID_REQUEST


class MethodNotFoundError(HostError):
    """The request names a method the host does not implement."""

    code = ErrorCode.METHOD_NOT_FOUND

    @classmethod
    def for_method(cls, method: str) -> MethodNotFoundError:
        return cls(f"unknown method: {method}")


class UnknownToolError(MethodNotFoundError):
    """``invoke_tool`` named a tool with no resolved handler."""

    def __init__(self, tool_id: str) -> None:
        self.tool_id = tool_id
        super().__init__(f"unknown tool: {tool_id}")


class InvalidParamsError(HostError):
    """The method's params do not match its expected shape."""

    code = ErrorCode.INVALID_PARAMS


class InternalError(HostError):
    """Lifecycle misuse, load failures, and faults inside the host itself."""

    code = ErrorCode.INTERNAL_ERROR


class NotInitializedError(InternalError):
    """A tool was invoked before a successful ``initialize``."""

    def __init__(self) -> None:
        super().__init__("extension not initialized")


class ExtensionLoadError(InternalError):
    """``initialize`` could not load the manifest or the entrypoint."""

    def __init__(self, cause: str) -> None:
        self.cause = cause
        super().__init__(f"failed to initialize: {cause}")


class ToolExecutionError(HostError):
    """A tool handler raised."""

    code = ErrorCode.TOOL_EXECUTION_ERROR

    def __init__(self, tool_id: str, detail: str = "") -> None:
        self.tool_id = tool_id
        self.detail = detail
        super().__init__(f"tool execution failed: {detail or tool_id}")


# ---------------------------------------------------------------------------
# Load-time errors (raised before anything reaches the wire)
# ---------------------------------------------------------------------------


class LoaderError(Exception):
    """Base error for extension loading failures."""


class ManifestError(LoaderError):
    """``manifest.json`` is missing, unreadable, or malformed."""


class EntrypointError(LoaderError):
    """The manifest's entrypoint could not be resolved or executed."""


# ---------------------------------------------------------------------------
# Parent-side errors
# ---------------------------------------------------------------------------


class HostClientError(Exception):
    """Base error for the parent-side client."""


class HostTransportError(HostClientError):
    """The host process could not be started or its channel closed."""


class HostTimeoutError(HostClientError):
    """The host did not answer within the configured timeout."""

    def __init__(self, method: str, timeout: float) -> None:
        self.method = method
        self.timeout = timeout
        super().__init__(f"rpc timeout for method {method} after {timeout}s")


class HostRpcError(HostClientError):
    """The host answered with a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"[{code}] {message}")
