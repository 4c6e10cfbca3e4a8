"""Manifest loader — read and validate ``<extension_dir>/manifest.json``.

Typical usage::

    manifest = load_manifest(Path("extensions/hello"))
    print(manifest.entrypoint)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from exthost.extension.models import ExtensionManifest
from exthost.protocol.errors import ManifestError

MANIFEST_FILENAME = "manifest.json"


def parse_manifest(raw: str) -> ExtensionManifest:
    """Parse raw JSON text into a validated :class:`ExtensionManifest`.

    Raises:
        ManifestError: On invalid JSON, a non-object document, or missing
            required fields (``id``, ``name``, ``description``, ``entrypoint``).
    """
    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ManifestError("manifest must be a JSON object")

    try:
        return ExtensionManifest.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ManifestError(f"invalid manifest: {problems}") from exc


def load_manifest(extension_dir: str | Path) -> ExtensionManifest:
    """Read ``manifest.json`` from *extension_dir*.

    Raises:
        ManifestError: If the file is missing, unreadable, or malformed.
    """
    path = Path(extension_dir) / MANIFEST_FILENAME
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(f"cannot read {path}: {exc}") from exc

    try:
        return parse_manifest(raw)
    except ManifestError as exc:
        raise ManifestError(f"{path}: {exc}") from exc
