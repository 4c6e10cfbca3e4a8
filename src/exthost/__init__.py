"""Extension host — runs one extension in isolation and serves its tools over stdio."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from exthost.host.client import ExtensionHostClient as ExtensionHostClient
    from exthost.host.server import ExtensionHostServer as ExtensionHostServer

_LAZY_EXPORTS = {
    "ExtensionHostClient": "exthost.host.client",
    "ExtensionHostServer": "exthost.host.server",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'exthost' has no attribute {name!r}")
