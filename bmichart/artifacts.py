"""
Temporary raster artifacts.

A TemporaryArtifact owns one PNG path for the duration of a request. The
file is removed when the ``async with`` block exits, whatever happened
inside it.
"""

import asyncio
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

from .errors import CaptureError, CleanupWarning
from .logging_config import get_logger

logger = get_logger("bmichart.artifacts")


def unique_artifact_path(directory: Path, prefix: str = "bmichart", suffix: str = ".png") -> Path:
    """Timestamp plus a random token, so concurrent requests never share a path."""
    stamp = datetime.now().strftime("%Y%m%d%H%M%S%f")
    return Path(directory) / f"{prefix}-{stamp}-{uuid.uuid4().hex}{suffix}"


def _write_bytes(path: Path, data: bytes):
    # "xb" refuses to overwrite another request's file
    with open(path, "xb") as f:
        f.write(data)


class TemporaryArtifact:
    """
    Scoped temporary file for a captured chart.

    Usage:
        async with TemporaryArtifact(config.artifact_dir, request_id=rid) as artifact:
            await artifact.write(png_bytes)
            pdf = compose_document(request, artifact.path)
    """

    def __init__(self, directory: Path, request_id: Optional[str] = None):
        self.directory = Path(directory)
        self.request_id = request_id
        self.path = unique_artifact_path(self.directory)
        self._released = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.release()

    @property
    def exists(self) -> bool:
        return self.path.exists()

    async def write(self, data: bytes) -> Path:
        """Persists the raster. Raises CaptureError if the write fails."""
        try:
            await asyncio.to_thread(_write_bytes, self.path, data)
        except OSError as e:
            raise CaptureError(f"Could not write artifact {self.path}: {e}") from e
        logger.debug("Artifact written", stage="artifact", path=str(self.path),
                     request_id=self.request_id)
        return self.path

    async def release(self):
        """Deletes the file once. Never raises."""
        if self._released:
            return
        self._released = True

        logger.info("Deleting temporary file...", stage="cleanup", path=str(self.path),
                    request_id=self.request_id)
        try:
            await asyncio.to_thread(os.unlink, self.path)
        except FileNotFoundError:
            return
        except OSError as e:
            warning = CleanupWarning(f"Could not delete {self.path}: {e}")
            logger.warning(str(warning), error=warning, stage="cleanup",
                           path=str(self.path), request_id=self.request_id)
            return
        logger.info(f"File ('{self.path.name}') deleted.", stage="cleanup",
                    request_id=self.request_id)
