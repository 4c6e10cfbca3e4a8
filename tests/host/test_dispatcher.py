"""Tests for RpcDispatcher routing and the lifecycle state machine."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

from exthost.host.dispatcher import RpcDispatcher
from exthost.protocol.models import ErrorCode, JsonRpcRequest

_HANDLERS = """\
def echo(args):
    return {"title": "Echo", "metadata": {"n": len(args)}, "output": args}


async def fail(args):
    raise RuntimeError("disk full")


tools = {"echo": echo, "fail": fail}
"""


def _req(request_id: int, method: str, params: Any = None) -> JsonRpcRequest:
    return JsonRpcRequest(id=request_id, method=method, params=params)


def _init(ext_dir: Path, request_id: int = 1) -> JsonRpcRequest:
    return _req(request_id, "initialize", {"extension_dir": str(ext_dir), "extension_id": "sample"})


class TestInitialize:
    async def test_returns_resolved_tools(self, make_extension: Any) -> None:
        dispatcher = RpcDispatcher()
        response = await dispatcher.dispatch(_init(make_extension(_HANDLERS, tools=["echo", "fail"])))
        assert response.id == 1
        assert sorted(response.result["tools"]) == ["echo", "fail"]
        assert dispatcher.state.is_ready

    async def test_declared_but_missing_tool_dropped(self, make_extension: Any) -> None:
        source = "def a(args):\n    return 1\n\ntools = {'a': a}\n"
        response = await RpcDispatcher().dispatch(_init(make_extension(source, tools=["a", "b"])))
        assert response.result == {"tools": ["a"]}

    async def test_missing_manifest(self, tmp_path: Path) -> None:
        dispatcher = RpcDispatcher()
        response = await dispatcher.dispatch(_init(tmp_path, request_id=9))
        assert response.id == 9
        assert response.error is not None
        assert response.error.code == ErrorCode.INTERNAL_ERROR
        assert "failed to initialize" in response.error.message
        assert "manifest.json" in response.error.message
        assert not dispatcher.state.is_ready

    async def test_entrypoint_failure(self, make_extension: Any) -> None:
        response = await RpcDispatcher().dispatch(_init(make_extension("raise ImportError('no deps')\n")))
        assert response.error is not None
        assert response.error.code == ErrorCode.INTERNAL_ERROR
        assert "no deps" in response.error.message

    async def test_failed_reinitialize_keeps_previous(self, make_extension: Any, tmp_path: Path) -> None:
        dispatcher = RpcDispatcher()
        await dispatcher.dispatch(_init(make_extension(_HANDLERS)))
        previous = dispatcher.state.current

        response = await dispatcher.dispatch(_init(tmp_path / "nowhere", request_id=2))

        assert response.is_error
        assert dispatcher.state.current is previous
        echo = await dispatcher.dispatch(_req(3, "invoke_tool", {"tool_id": "echo", "args": {}}))
        assert not echo.is_error

    async def test_reinitialize_replaces(self, make_extension: Any) -> None:
        dispatcher = RpcDispatcher()
        await dispatcher.dispatch(_init(make_extension(_HANDLERS)))
        second = make_extension("tools = {'other': lambda args: 'x'}\n", ext_id="second")

        response = await dispatcher.dispatch(_init(second, request_id=2))

        assert response.result == {"tools": ["other"]}
        gone = await dispatcher.dispatch(_req(3, "invoke_tool", {"tool_id": "echo", "args": {}}))
        assert gone.error is not None
        assert gone.error.code == ErrorCode.METHOD_NOT_FOUND

    async def test_missing_params(self) -> None:
        response = await RpcDispatcher().dispatch(_req(4, "initialize"))
        assert response.id == 4
        assert response.error is not None
        assert response.error.code == ErrorCode.INVALID_PARAMS
        assert "extension_dir" in response.error.message

    async def test_unexpected_loader_exception(self) -> None:
        loader = MagicMock(side_effect=MemoryError("oom"))
        response = await RpcDispatcher(loader=loader).dispatch(_init(Path("/x")))
        assert response.error is not None
        assert response.error.code == ErrorCode.INTERNAL_ERROR
        assert "oom" in response.error.message


class TestInvokeTool:
    async def test_before_initialize_is_internal_error(self) -> None:
        response = await RpcDispatcher().dispatch(
            _req(5, "invoke_tool", {"tool_id": "echo", "args": {}})
        )
        assert response.id == 5
        assert response.error is not None
        assert response.error.code == ErrorCode.INTERNAL_ERROR
        assert response.error.message == "extension not initialized"

    async def test_before_initialize_even_with_bad_params(self) -> None:
        response = await RpcDispatcher().dispatch(_req(6, "invoke_tool"))
        assert response.error is not None
        assert response.error.code == ErrorCode.INTERNAL_ERROR

    async def test_success_forwards_handler_result(self, make_extension: Any) -> None:
        dispatcher = RpcDispatcher()
        await dispatcher.dispatch(_init(make_extension(_HANDLERS)))
        response = await dispatcher.dispatch(
            _req(2, "invoke_tool", {"tool_id": "echo", "args": {"a": 1}})
        )
        assert response.result == {
            "output": {"title": "Echo", "metadata": {"n": 1}, "output": {"a": 1}}
        }

    async def test_unknown_tool(self, make_extension: Any) -> None:
        dispatcher = RpcDispatcher()
        await dispatcher.dispatch(_init(make_extension(_HANDLERS)))
        response = await dispatcher.dispatch(
            _req(2, "invoke_tool", {"tool_id": "nonexistent", "args": {}})
        )
        assert response.error is not None
        assert response.error.code == ErrorCode.METHOD_NOT_FOUND
        assert "nonexistent" in response.error.message

    async def test_handler_failure(self, make_extension: Any) -> None:
        dispatcher = RpcDispatcher()
        await dispatcher.dispatch(_init(make_extension(_HANDLERS)))
        response = await dispatcher.dispatch(_req(2, "invoke_tool", {"tool_id": "fail", "args": {}}))
        assert response.error is not None
        assert response.error.code == ErrorCode.TOOL_EXECUTION_ERROR
        assert "disk full" in response.error.message

    async def test_args_default_to_empty(self, make_extension: Any) -> None:
        dispatcher = RpcDispatcher()
        await dispatcher.dispatch(_init(make_extension(_HANDLERS)))
        response = await dispatcher.dispatch(_req(2, "invoke_tool", {"tool_id": "echo"}))
        assert response.result["output"]["output"] == {}

    async def test_invalid_args(self, make_extension: Any) -> None:
        dispatcher = RpcDispatcher()
        await dispatcher.dispatch(_init(make_extension(_HANDLERS)))
        response = await dispatcher.dispatch(
            _req(2, "invoke_tool", {"tool_id": "echo", "args": "not a mapping"})
        )
        assert response.error is not None
        assert response.error.code == ErrorCode.INVALID_PARAMS

    async def test_hello_round_trip(self, hello_dir: Path) -> None:
        dispatcher = RpcDispatcher()
        await dispatcher.dispatch(_init(hello_dir))
        response = await dispatcher.dispatch(
            _req(2, "invoke_tool", {"tool_id": "greeting", "args": {"name": "Ada"}})
        )
        assert response.to_wire() == {
            "jsonrpc": "2.0",
            "id": 2,
            "result": {"output": {"message": "Hello, Ada!"}},
        }


class TestShutdownAndUnknown:
    async def test_shutdown(self) -> None:
        dispatcher = RpcDispatcher()
        response = await dispatcher.dispatch(_req(11, "shutdown"))
        assert response.to_wire() == {"jsonrpc": "2.0", "id": 11, "result": None}
        assert dispatcher.shutdown_requested

    async def test_unknown_method(self) -> None:
        dispatcher = RpcDispatcher()
        response = await dispatcher.dispatch(_req(12, "reload"))
        assert response.error is not None
        assert response.error.code == ErrorCode.METHOD_NOT_FOUND
        assert "reload" in response.error.message
        assert not dispatcher.shutdown_requested

    def test_methods(self) -> None:
        assert RpcDispatcher().methods == ["initialize", "invoke_tool", "shutdown"]
