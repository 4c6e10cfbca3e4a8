"""Protocol layer — wire models, error taxonomy, framing, and the response writer."""

from exthost.protocol.errors import (
    EntrypointError,
    ExtensionLoadError,
    HostError,
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    ManifestError,
    MethodNotFoundError,
    NotInitializedError,
    ParseError,
    ToolExecutionError,
    UnknownToolError,
)
from exthost.protocol.framing import FrameReader, parse_request
from exthost.protocol.models import (
    ErrorCode,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    error_response,
    success_response,
)
from exthost.protocol.writer import ResponseWriter

__all__ = [
    "EntrypointError",
    "ErrorCode",
    "ExtensionLoadError",
    "FrameReader",
    "HostError",
    "InternalError",
    "InvalidParamsError",
    "InvalidRequestError",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "ManifestError",
    "MethodNotFoundError",
    "NotInitializedError",
    "ParseError",
    "ResponseWriter",
    "ToolExecutionError",
    "UnknownToolError",
    "error_response",
    "parse_request",
    "success_response",
]
