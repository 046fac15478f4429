"""Storage collaborators for rendered videos.

The offline pipeline only needs `put(path, data, access=..., content_type=...)
-> url`. LocalStorage writes under a root directory and returns a file://
URL, or `<base_url>/<path>` when the files are served from somewhere.
"""

from pathlib import Path

from loguru import logger


class Storage:
    def put(
        self,
        path: str,
        data: bytes,
        *,
        access: str = "public",
        content_type: str = "application/octet-stream",
    ) -> str:
        raise NotImplementedError


class LocalStorage(Storage):
    """Write uploads under *root*.

    Args:
        root: Directory uploads are written under (created on demand).
        base_url: Public URL prefix for *root*. None returns file:// URLs.
    """

    def __init__(self, root: str | Path, base_url: str | None = None):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/") if base_url else None

    def put(
        self,
        path: str,
        data: bytes,
        *,
        access: str = "public",
        content_type: str = "application/octet-stream",
    ) -> str:
        relative = Path(path)
        if relative.is_absolute() or ".." in relative.parts:
            raise ValueError(f"Storage path must be relative: '{path}'")

        target = self.root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info(f"Stored {len(data)} bytes ({content_type}, {access}) at {target}")

        if self.base_url:
            return f"{self.base_url}/{relative.as_posix()}"
        return target.resolve().as_uri()
