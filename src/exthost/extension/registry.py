"""Tool registry — execute an extension's entrypoint and collect its handlers.

The entrypoint is a Python file exporting a ``tools`` mapping::

    async def greeting(args):
        return {"message": f"Hello, {args['name']}!"}

    tools = {"greeting": greeting}

Handlers may be plain functions or coroutine functions; :meth:`LoadedExtension.invoke`
awaits whatever they return if it is awaitable.
"""

from __future__ import annotations

import importlib.util
import inspect
import itertools
import logging
import re
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from exthost.extension.manifest import load_manifest
from exthost.extension.models import ExtensionManifest  # noqa: TC001
from exthost.protocol.errors import EntrypointError, ToolExecutionError, UnknownToolError

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], Any]

_load_counter = itertools.count(1)


@dataclass
class LoadedExtension:
    """A manifest plus the handlers its entrypoint actually exported."""

    manifest: ExtensionManifest
    directory: Path
    handlers: dict[str, ToolHandler] = field(default_factory=lambda: dict[str, ToolHandler]())

    @property
    def id(self) -> str:
        return self.manifest.id

    def tool_ids(self) -> list[str]:
        return list(self.handlers)

    def missing_tools(self) -> list[str]:
        """Declared tool ids that have no resolved handler."""
        return [tid for tid in self.manifest.declared_tool_ids() if tid not in self.handlers]

    def release(self) -> None:
        """Take the extension directory off ``sys.path``."""
        entry = str(self.directory)
        if entry in sys.path:
            sys.path.remove(entry)

    async def invoke(self, tool_id: str, args: dict[str, Any]) -> Any:
        """Run the handler for *tool_id* and return its result unchanged.

        Raises:
            UnknownToolError: No handler is registered under *tool_id*.
            ToolExecutionError: The handler raised.
        """
        handler = self.handlers.get(tool_id)
        if handler is None:
            raise UnknownToolError(tool_id)

        try:
            result = handler(args)
            if inspect.isawaitable(result):
                result = await result
        except (Exception, SystemExit) as exc:
            logger.debug("tool %s raised", tool_id, exc_info=True)
            raise ToolExecutionError(tool_id, _describe(exc)) from exc
        return result


def resolve_entrypoint(manifest: ExtensionManifest, extension_dir: Path) -> Path:
    """Return the absolute entrypoint path, relative to *extension_dir*."""
    path = (extension_dir / manifest.entrypoint).resolve()
    if not path.is_file():
        raise EntrypointError(f"entrypoint not found: {path}")
    return path


def _module_name(manifest: ExtensionManifest) -> str:
    slug = re.sub(r"\W", "_", manifest.id) or "extension"
    return f"exthost_ext_{slug}_{next(_load_counter)}"


def _describe(exc: BaseException) -> str:
    if isinstance(exc, SystemExit):
        return f"extension called sys.exit({exc.code!r})"
    return str(exc) or type(exc).__name__


def _forget_modules(names: set[str], ext_dir: Path) -> None:
    """Drop modules loaded from *ext_dir* so the next load executes them again."""
    for name in names:
        module = sys.modules.get(name)
        location = getattr(module, "__file__", None)
        if location and Path(location).resolve().is_relative_to(ext_dir):
            del sys.modules[name]


def load_entrypoint(
    manifest: ExtensionManifest, extension_dir: str | Path
) -> dict[str, ToolHandler]:
    """Execute the entrypoint from scratch and return its callable ``tools``.

    Every call executes the file again, together with any sibling modules it
    imports, so no top-level state survives from a previous load.  Handlers
    keep their own globals alive; nothing from the extension stays in
    ``sys.modules``.  Non-callable entries and non-string keys are skipped.
    A missing or non-mapping ``tools`` export yields an empty mapping.

    Raises:
        EntrypointError: The file does not exist or raised while executing,
            including a call to ``sys.exit``.
    """
    ext_dir = Path(extension_dir).resolve()
    path = resolve_entrypoint(manifest, ext_dir)

    spec = importlib.util.spec_from_file_location(_module_name(manifest), path)
    if spec is None or spec.loader is None:
        raise EntrypointError(f"cannot load entrypoint {path}")

    # Sibling modules of the entrypoint must be importable.
    if str(ext_dir) not in sys.path:
        sys.path.insert(0, str(ext_dir))

    before = set(sys.modules)
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    try:
        spec.loader.exec_module(module)
    except (Exception, SystemExit) as exc:
        raise EntrypointError(
            f"entrypoint {path} raised {type(exc).__name__}: {_describe(exc)}"
        ) from exc
    finally:
        sys.modules.pop(spec.name, None)
        _forget_modules(set(sys.modules) - before, ext_dir)

    exported = getattr(module, "tools", None)
    if not isinstance(exported, Mapping):
        logger.warning("entrypoint %s exports no 'tools' mapping", path)
        return {}

    handlers: dict[str, ToolHandler] = {}
    for tool_id, handler in exported.items():
        if not isinstance(tool_id, str) or not callable(handler):
            logger.debug("skipping non-callable export %r in %s", tool_id, path)
            continue
        handlers[tool_id] = handler
    return handlers


def load_extension(extension_dir: str | Path) -> LoadedExtension:
    """Load the manifest and entrypoint found in *extension_dir*.

    Declared tools without a handler are dropped with a warning rather than
    failing the load; the handler mapping is the authoritative tool surface.

    Raises:
        ManifestError: ``manifest.json`` is missing or malformed.
        EntrypointError: The entrypoint could not be executed.
    """
    ext_dir = Path(extension_dir).resolve()
    manifest = load_manifest(ext_dir)
    handlers = load_entrypoint(manifest, ext_dir)
    loaded = LoadedExtension(manifest=manifest, directory=ext_dir, handlers=handlers)

    missing = loaded.missing_tools()
    if missing:
        logger.warning(
            "extension %s declares tools without handlers: %s",
            manifest.id,
            ", ".join(missing),
        )
    logger.info("loaded extension %s with tools: %s", manifest.id, ", ".join(loaded.tool_ids()))
    return loaded
