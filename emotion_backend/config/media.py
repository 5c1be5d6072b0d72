# config/media.py
from dataclasses import dataclass
from typing import Tuple
import os
from .base import BaseConfig

@dataclass
class MediaConfig(BaseConfig):
    """Upload layout and ffmpeg frame extraction configuration"""
    
    # Storage layout: <uploads_dir>/frames, <uploads_dir>/videos
    uploads_dir: str = "uploads"
    
    # External tools
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    
    # Extraction defaults
    frame_size: Tuple[int, int] = (640, 480)
    frame_rate: float = 1.0  # frames per second
    max_frames: int = 100
    
    # Video ingestion sampling
    video_frame_rate: float = 1.0
    video_max_frames: int = 30
    
    # Maintenance
    frame_max_age_hours: float = 24.0
    cleanup_interval_seconds: int = 3600
    
    @classmethod
    def from_env(cls) -> 'MediaConfig':
        return cls(
            uploads_dir=os.getenv('UPLOADS_DIR', 'uploads'),
            ffmpeg_path=os.getenv('FFMPEG_PATH', 'ffmpeg'),
            ffprobe_path=os.getenv('FFPROBE_PATH', 'ffprobe'),
            frame_size=cls.get_env_size('FRAME_SIZE', (640, 480)),
            frame_rate=cls.get_env_float('FRAME_RATE', 1.0),
            max_frames=cls.get_env_int('MAX_FRAMES', 100),
            video_frame_rate=cls.get_env_float('VIDEO_FRAME_RATE', 1.0),
            video_max_frames=cls.get_env_int('VIDEO_MAX_FRAMES', 30),
            frame_max_age_hours=cls.get_env_float('FRAME_MAX_AGE_HOURS', 24.0),
            cleanup_interval_seconds=cls.get_env_int('FRAME_CLEANUP_INTERVAL_SECONDS', 3600)
        )
    
    @property
    def frames_dir(self) -> str:
        return os.path.join(self.uploads_dir, "frames")
    
    @property
    def videos_dir(self) -> str:
        return os.path.join(self.uploads_dir, "videos")
    
    @property
    def frame_max_age_ms(self) -> int:
        return int(self.frame_max_age_hours * 60 * 60 * 1000)
