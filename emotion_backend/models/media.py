# emotion_backend/models/media.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

@dataclass
class ExtractionJob:
    """One ffmpeg extraction call; discarded once its frame paths are consumed"""
    video_path: str
    frame_rate: float
    max_frames: int
    start_offset: float
    output_dir: str
    frames: List[str] = field(default_factory=list)

@dataclass
class VideoMetadata:
    duration: Optional[float]
    size_bytes: Optional[int]
    bitrate: Optional[int]
    width: Optional[int]
    height: Optional[int]
    fps: Optional[float]
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration": self.duration,
            "size": self.size_bytes,
            "bitrate": self.bitrate,
            "width": self.width,
            "height": self.height,
            "fps": self.fps,
        }
