"""RpcDispatcher — routes validated requests to the host's built-in methods.

Methods:

``initialize``
    Load ``manifest.json`` and the entrypoint from ``extension_dir`` and
    install the result as the current extension.  Valid in any state;
    a failed load leaves the previous extension (if any) in place.
``invoke_tool``
    Run one handler of the current extension.
``shutdown``
    Answer ``null`` and ask the serve loop to stop.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError

from exthost.extension.registry import load_extension
from exthost.extension.state import ExtensionState
from exthost.protocol.errors import (
    ExtensionLoadError,
    HostError,
    InternalError,
    InvalidParamsError,
    LoaderError,
    MethodNotFoundError,
)
from exthost.protocol.models import (
    InitializeParams,
    InitializeResult,
    InvokeToolParams,
    JsonRpcResponse,
    error_response,
    success_response,
)
from exthost.utils.telemetry import (
    ATTR_ERROR_CODE,
    ATTR_EXTENSION_ID,
    ATTR_RPC_ID,
    ATTR_RPC_METHOD,
    ATTR_TOOL_COUNT,
    ATTR_TOOL_ID,
    get_tracer,
)

if TYPE_CHECKING:
    from opentelemetry.trace import Span

    from exthost.extension.registry import LoadedExtension
    from exthost.protocol.models import JsonRpcRequest

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

ParamsT = TypeVar("ParamsT", bound=BaseModel)
MethodHandler = Callable[[Any, "Span"], Awaitable[Any]]


class RpcDispatcher:
    """Validates method params, runs the method, and builds the response.

    :meth:`dispatch` never raises for a failure inside a method: every
    :class:`HostError` becomes its wire error, and any other exception
    becomes ``INTERNAL_ERROR`` for that request.

    Usage::

        dispatcher = RpcDispatcher()
        response = await dispatcher.dispatch(request)
        if dispatcher.shutdown_requested:
            ...
    """

    def __init__(
        self,
        state: ExtensionState | None = None,
        *,
        loader: Callable[[str | Path], LoadedExtension] = load_extension,
    ) -> None:
        self._state = state or ExtensionState()
        self._loader = loader
        self._methods: dict[str, MethodHandler] = {
            "initialize": self._initialize,
            "invoke_tool": self._invoke_tool,
            "shutdown": self._shutdown,
        }
        self.shutdown_requested = False

    @property
    def state(self) -> ExtensionState:
        return self._state

    @property
    def methods(self) -> list[str]:
        return list(self._methods)

    async def dispatch(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Run *request* to completion and return exactly one response."""
        with _tracer.start_as_current_span(f"exthost.rpc.{request.method}") as span:
            span.set_attribute(ATTR_RPC_ID, request.id)
            span.set_attribute(ATTR_RPC_METHOD, request.method)

            try:
                method = self._methods.get(request.method)
                if method is None:
                    raise MethodNotFoundError.for_method(request.method)
                result = await method(request.params, span)
            except HostError as exc:
                logger.info("request %s (%s) failed: %s", request.id, request.method, exc)
                span.set_attribute(ATTR_ERROR_CODE, int(exc.code))
                return error_response(request.id, exc.code, exc.message, exc.data)
            except Exception as exc:
                logger.exception("unexpected fault handling request %s", request.id)
                fault = InternalError(f"internal error: {type(exc).__name__}: {exc}")
                span.set_attribute(ATTR_ERROR_CODE, int(fault.code))
                return error_response(request.id, fault.code, fault.message)

            return success_response(request.id, result)

    # ------------------------------------------------------------------
    # Methods
    # ------------------------------------------------------------------

    async def _initialize(self, raw_params: Any, span: Span) -> dict[str, Any]:
        params = _validate_params(InitializeParams, raw_params)
        logger.info("initializing extension %s from %s", params.extension_id, params.extension_dir)

        try:
            extension = self._loader(params.extension_dir)
        except LoaderError as exc:
            raise ExtensionLoadError(str(exc)) from exc
        except Exception as exc:
            raise ExtensionLoadError(f"{type(exc).__name__}: {exc}") from exc

        if params.extension_id and params.extension_id != extension.id:
            logger.warning(
                "initialize asked for %s but manifest declares %s",
                params.extension_id,
                extension.id,
            )

        previous = await self._state.replace(extension)
        if previous is not None:
            logger.info("replaced extension %s", previous.id)

        tools = extension.tool_ids()
        span.set_attribute(ATTR_EXTENSION_ID, extension.id)
        span.set_attribute(ATTR_TOOL_COUNT, len(tools))
        return InitializeResult(tools=tools).model_dump()

    async def _invoke_tool(self, raw_params: Any, span: Span) -> dict[str, Any]:
        extension = self._state.require()
        params = _validate_params(InvokeToolParams, raw_params)
        span.set_attribute(ATTR_EXTENSION_ID, extension.id)
        span.set_attribute(ATTR_TOOL_ID, params.tool_id)

        output = await extension.invoke(params.tool_id, params.args)
        return {"output": output}

    async def _shutdown(self, raw_params: Any, span: Span) -> None:
        logger.info("shutdown requested")
        self.shutdown_requested = True


def _validate_params(model: type[ParamsT], raw: Any) -> ParamsT:
    """Validate *raw* params against *model* or raise ``INVALID_PARAMS``."""
    try:
        return model.model_validate(raw if raw is not None else {})
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'params'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidParamsError(f"invalid params: {problems}") from exc
