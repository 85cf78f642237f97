from __future__ import annotations

"""Directory-backed :class:`~seriescache.runtime.data_io.BlobStore`."""

import asyncio
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class LocalBlobStore:
    """Store each blob as a file directly under ``root``.

    Writes go through a temporary file in the same directory followed by
    :func:`os.replace`, so readers never observe a half-written blob.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser()

    # ------------------------------------------------------------------
    def _path(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name in {".", ".."}:
            raise ValueError(f"invalid blob name: {name!r}")
        return self.root / name

    # ------------------------------------------------------------------
    async def exists(self, name: str) -> bool:
        path = self._path(name)
        return await asyncio.to_thread(path.is_file)

    async def read_all(self, name: str) -> bytes:
        path = self._path(name)
        return await asyncio.to_thread(path.read_bytes)

    async def write_all(self, name: str, data: bytes, *, overwrite: bool = True) -> None:
        path = self._path(name)
        await asyncio.to_thread(self._write, path, data, overwrite)

    async def delete(self, name: str) -> bool:
        path = self._path(name)
        return await asyncio.to_thread(self._unlink, path)

    async def list_by_prefix(self, prefix: str) -> list[str]:
        return await asyncio.to_thread(self._list, prefix)

    # ------------------------------------------------------------------
    def _write(self, path: Path, data: bytes, overwrite: bool) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        if not overwrite and path.exists():
            raise FileExistsError(str(path))
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=self.root)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("wrote %d bytes to %s", len(data), path)

    @staticmethod
    def _unlink(path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def _list(self, prefix: str) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.root.iterdir()
            if entry.is_file() and entry.name.startswith(prefix)
        )


__all__ = ["LocalBlobStore"]
