"""File-system storage for uploaded image bytes."""
import logging
from pathlib import Path

import aiofiles
import aiofiles.os

logger = logging.getLogger(__name__)


class ImageStorage:
    """Stores each post's image as `<post_id>.<ext>` under a directory."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    def path_for(self, post_id: int, ext: str) -> Path:
        """Location of a post's image file."""
        return self._root / f"{post_id}.{ext}"

    async def exists(self, post_id: int, ext: str) -> bool:
        """Whether an image file has been stored for the post."""
        return await aiofiles.os.path.isfile(self.path_for(post_id, ext))

    async def save(self, post_id: int, ext: str, data: bytes) -> Path:
        """Write image bytes, creating the directory on first use."""
        await aiofiles.os.makedirs(self._root, exist_ok=True)
        path = self.path_for(post_id, ext)
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)
        logger.info("image_saved", extra={"post_id": post_id, "bytes": len(data)})
        return path
