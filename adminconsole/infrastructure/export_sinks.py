"""File-save mechanisms receiving export artifacts."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Protocol

import structlog

from adminconsole.core.exports import ensure_exports_root

if TYPE_CHECKING:
    from adminconsole.exporters import ExportArtifact

logger = structlog.get_logger()


class ExportSink(Protocol):
    """Receives a named blob and performs the user-visible save.

    ``save`` may return an awaitable; callers do not wait for it.
    """

    def save(self, artifact: "ExportArtifact") -> Awaitable[None] | None: ...


class DirectoryExportSink:
    """Writes artifacts into the exports directory off the event loop."""

    def __init__(self, department: str | None = None) -> None:
        self._department = department

    def _write(self, artifact: "ExportArtifact") -> Path:
        root = ensure_exports_root(self._department)
        target = root / Path(artifact.filename).name
        target.write_bytes(artifact.content)
        return target

    async def save(self, artifact: "ExportArtifact") -> None:
        target = await asyncio.to_thread(self._write, artifact)
        logger.info("export_saved", path=str(target), size=len(artifact.content))
