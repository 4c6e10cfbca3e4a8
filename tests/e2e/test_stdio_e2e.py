"""E2E: drive ``exthost serve`` over real pipes."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import pytest

from exthost.host.client import ExtensionHostClient, default_host_command
from exthost.protocol.errors import HostRpcError
from exthost.protocol.models import ErrorCode

if TYPE_CHECKING:
    from pathlib import Path


class TestHostLifecycle:
    async def test_initialize_invoke_shutdown(
        self, hello_dir: Path, host_env: dict[str, str]
    ) -> None:
        async with ExtensionHostClient(env=host_env) as client:
            assert await client.initialize(hello_dir, "hello") == ["greeting"]
            output = await client.invoke_tool("greeting", {"name": "Ada"})
            assert output == {"message": "Hello, Ada!"}
            assert await client.shutdown() == 0

    async def test_stdin_close_exits_cleanly(self, host_env: dict[str, str]) -> None:
        client = ExtensionHostClient(env=host_env)
        await client.start()
        process = client._process
        await client.close()
        assert process is not None
        assert process.returncode == 0

    async def test_errors_keep_host_alive(self, hello_dir: Path, host_env: dict[str, str]) -> None:
        async with ExtensionHostClient(env=host_env) as client:
            with pytest.raises(HostRpcError) as before:
                await client.invoke_tool("greeting")
            assert before.value.code == ErrorCode.INTERNAL_ERROR

            await client.initialize(hello_dir)
            with pytest.raises(HostRpcError) as unknown:
                await client.invoke_tool("nonexistent")
            assert unknown.value.code == ErrorCode.METHOD_NOT_FOUND

            with pytest.raises(HostRpcError) as method:
                await client.call("reload")
            assert method.value.code == ErrorCode.METHOD_NOT_FOUND

            assert await client.invoke_tool("greeting") == {"message": "Hello, world!"}
            assert await client.shutdown() == 0

    async def test_handler_failure(self, make_extension: Any, host_env: dict[str, str]) -> None:
        ext_dir = make_extension(
            "def fail(args):\n    raise ValueError('bad input')\n\ntools = {'fail': fail}\n"
        )
        async with ExtensionHostClient(env=host_env) as client:
            await client.initialize(ext_dir)
            with pytest.raises(HostRpcError, match="bad input") as info:
                await client.invoke_tool("fail")
            assert info.value.code == ErrorCode.TOOL_EXECUTION_ERROR

    async def test_extension_prints_do_not_corrupt_stdout(
        self, make_extension: Any, host_env: dict[str, str]
    ) -> None:
        ext_dir = make_extension(
            "print('loading')\n"
            "def noisy(args):\n    print('working')\n    return 'done'\n\n"
            "tools = {'noisy': noisy}\n"
        )
        async with ExtensionHostClient(env=host_env) as client:
            await client.initialize(ext_dir)
            assert await client.invoke_tool("noisy") == "done"


class TestMalformedFrames:
    async def test_parse_error_then_valid_request(self, host_env: dict[str, str]) -> None:
        async with ExtensionHostClient(env=host_env) as client:
            await client.send_raw("{this is not json")
            response = await client.read_response()
            assert response.id == 0
            assert response.error is not None
            assert response.error.code == ErrorCode.PARSE_ERROR

            await client.send_raw('{"jsonrpc":"2.0","id":"x","method":"shutdown"}')
            invalid = await client.read_response()
            assert invalid.id == 0
            assert invalid.error is not None
            assert invalid.error.code == ErrorCode.INVALID_REQUEST

            assert await client.call("shutdown") is None

    async def test_split_and_batched_writes(self, host_env: dict[str, str]) -> None:
        process = await asyncio.create_subprocess_exec(
            *default_host_command(),
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            env=host_env,
        )
        assert process.stdin is not None
        assert process.stdout is not None

        process.stdin.write(b'{"jsonrpc":"2.0","id":1,"meth')
        await process.stdin.drain()
        await asyncio.sleep(0.05)
        process.stdin.write(
            b'od":"reload"}\n{"jsonrpc":"2.0","id":2,"method":"shutdown"}\n'
        )
        await process.stdin.drain()

        stdout, _ = await asyncio.wait_for(process.communicate(), timeout=10)
        lines = stdout.decode().splitlines()
        assert len(lines) == 2
        assert '"id":1' in lines[0]
        assert lines[1] == '{"jsonrpc":"2.0","id":2,"result":null}'
        assert process.returncode == 0


class TestCallCommandE2E:
    def test_call_against_hello(self, hello_dir: Path, host_env: dict[str, str]) -> None:
        from click.testing import CliRunner

        from exthost.cli import main

        runner = CliRunner(env={"PYTHONPATH": host_env["PYTHONPATH"]})
        result = runner.invoke(
            main, ["call", str(hello_dir), "greeting", "--args", '{"name": "Ada"}']
        )

        assert result.exit_code == 0, result.output
        assert "Hello, Ada!" in result.output
