"""ExtensionState — the host's single loaded-extension slot."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from exthost.protocol.errors import NotInitializedError

if TYPE_CHECKING:
    from exthost.extension.registry import LoadedExtension


class ExtensionState:
    """Holds either nothing or exactly one :class:`LoadedExtension`.

    Owned by the dispatcher.  ``initialize`` swaps the whole extension in one
    assignment, so a reader either sees the old extension or the new one.
    """

    def __init__(self) -> None:
        self._current: LoadedExtension | None = None
        self._lock = asyncio.Lock()

    @property
    def current(self) -> LoadedExtension | None:
        return self._current

    @property
    def is_ready(self) -> bool:
        return self._current is not None

    async def replace(self, extension: LoadedExtension) -> LoadedExtension | None:
        """Install *extension*, returning the one it replaced (if any).

        The replaced extension is released unless it lives in the same
        directory as the new one.
        """
        async with self._lock:
            previous, self._current = self._current, extension
        if previous is not None and previous.directory != extension.directory:
            previous.release()
        return previous

    def require(self) -> LoadedExtension:
        """Return the loaded extension or raise :class:`NotInitializedError`."""
        if self._current is None:
            raise NotInitializedError()
        return self._current
