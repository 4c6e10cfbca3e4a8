"""Wire models — JSON-RPC 2.0 envelope and the host's method payloads.

Every frame exchanged with the parent is one of these models serialized
as a single line of JSON.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field, StrictInt, field_validator, model_validator

JSONRPC_VERSION = "2.0"


class ErrorCode(IntEnum):
    """Standard JSON-RPC error codes plus the host's application code."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    TOOL_EXECUTION_ERROR = -32000


# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request message."""

    jsonrpc: str = JSONRPC_VERSION
    id: StrictInt
    method: str
    params: Any = None


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message.

    Carries either ``result`` or ``error``, never both.  A ``None`` result
    is a legal success (``shutdown`` answers with ``"result": null``).
    """

    jsonrpc: str = JSONRPC_VERSION
    id: int
    result: Any = None
    error: JsonRpcError | None = None

    @model_validator(mode="after")
    def _result_or_error(self) -> JsonRpcResponse:
        if self.error is not None and self.result is not None:
            msg = "response carries both 'result' and 'error'"
            raise ValueError(msg)
        return self

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_wire(self) -> dict[str, Any]:
        """Return the dict sent on the wire.

        Success frames always include ``result`` (even when null) and never
        ``error``; error frames never include ``result``.
        """
        wire: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is None:
            wire["result"] = self.result
        else:
            wire["error"] = self.error.model_dump(exclude_none=True)
        return wire


def success_response(request_id: int, result: Any) -> JsonRpcResponse:
    """Build a success response."""
    return JsonRpcResponse(id=request_id, result=result)


def error_response(
    request_id: int,
    code: int,
    message: str,
    data: Any = None,
) -> JsonRpcResponse:
    """Build an error response."""
    return JsonRpcResponse(
        id=request_id,
        error=JsonRpcError(code=int(code), message=message, data=data),
    )


# ---------------------------------------------------------------------------
# Method payloads
# ---------------------------------------------------------------------------


class InitializeParams(BaseModel):
    """Parameters for ``initialize``."""

    extension_dir: str
    extension_id: str = ""


class InitializeResult(BaseModel):
    """Result of ``initialize`` — the tool ids actually resolved."""

    tools: list[str] = Field(default_factory=list)


class InvokeToolParams(BaseModel):
    """Parameters for ``invoke_tool``."""

    tool_id: str
    args: dict[str, Any] = Field(default_factory=dict)

    @field_validator("args", mode="before")
    @classmethod
    def _null_args(cls, value: Any) -> Any:
        return {} if value is None else value


class InvokeToolResult(BaseModel):
    """Result of ``invoke_tool`` — the handler's return value, unmodified."""

    output: Any = None
