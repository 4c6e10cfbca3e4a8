"""Host layer — dispatcher, serve loop, and the parent-side client."""

from exthost.host.client import ExtensionHostClient
from exthost.host.dispatcher import RpcDispatcher
from exthost.host.server import ExtensionHostServer, serve_stdio

__all__ = [
    "ExtensionHostClient",
    "ExtensionHostServer",
    "RpcDispatcher",
    "serve_stdio",
]
