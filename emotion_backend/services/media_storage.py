# emotion_backend/services/media_storage.py
import asyncio
import logging
import os
import time

import aiofiles

from emotion_backend.config.media import MediaConfig

logger = logging.getLogger(__name__)


class MediaStorage:
    """Writes uploads into the uploads/ layout (frames/, videos/)"""

    def __init__(self, config: MediaConfig):
        self.config = config
        self.frames_dir = config.frames_dir
        self.videos_dir = config.videos_dir

    async def save_video(self, data: bytes, filename: str) -> str:
        """Store an uploaded video as uploads/videos/<filename>"""
        file_path = os.path.join(self.videos_dir, self._safe_name(filename, "video.mp4"))
        await self._write(file_path, data)
        logger.info(f"Video saved: {file_path}")
        return file_path

    async def save_image(self, data: bytes, filename: str) -> str:
        name = self._safe_name(filename, "image.jpg")
        file_path = os.path.join(self.frames_dir, f"upload_{time.time_ns()}_{name}")
        await self._write(file_path, data)
        logger.info(f"Image saved: {file_path}")
        return file_path

    async def write_frame(self, data: bytes, prefix: str = "stream") -> str:
        """Write a decoded stream frame to a uniquely named file"""
        file_path = os.path.join(self.frames_dir, f"{prefix}_{time.time_ns()}.jpg")
        await self._write(file_path, data)
        logger.debug(f"Frame written: {file_path}")
        return file_path

    async def _write(self, file_path: str, data: bytes):
        try:
            await asyncio.to_thread(os.makedirs, os.path.dirname(file_path), exist_ok=True)
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(data)
        except OSError as e:
            logger.error(f"Error writing {file_path}: {e}")
            raise

    @staticmethod
    def _safe_name(filename: str, default: str) -> str:
        # Basename only, never a path
        name = os.path.basename((filename or "").replace("\\", "/")).strip()
        return name if name not in ("", ".", "..") else default
