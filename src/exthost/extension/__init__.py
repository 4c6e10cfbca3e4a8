"""Extension loading — manifest models, manifest loader, tool registry, runtime slot."""

from exthost.extension.manifest import load_manifest, parse_manifest
from exthost.extension.models import (
    ExtensionManifest,
    ExtensionRouting,
    ExtensionToolDef,
    RiskLevel,
)
from exthost.extension.registry import LoadedExtension, ToolHandler, load_entrypoint, load_extension
from exthost.extension.state import ExtensionState

__all__ = [
    "ExtensionManifest",
    "ExtensionRouting",
    "ExtensionState",
    "ExtensionToolDef",
    "LoadedExtension",
    "RiskLevel",
    "ToolHandler",
    "load_entrypoint",
    "load_extension",
    "load_manifest",
    "parse_manifest",
]
