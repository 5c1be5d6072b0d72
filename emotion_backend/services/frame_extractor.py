# emotion_backend/services/frame_extractor.py
import asyncio
import json
import logging
import os
import re
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from emotion_backend.config.media import MediaConfig
from emotion_backend.errors import ExtractionError
from emotion_backend.models.media import ExtractionJob, VideoMetadata

logger = logging.getLogger(__name__)

FRAME_PATTERN = "frame_%d.jpg"
_FRAME_INDEX_RE = re.compile(r"^frame_(\d+)\.jpg$")


def parse_frame_rate(value: Any) -> float:
    """Parse an ffprobe frame rate such as "30000/1001" or "25" into a float.

    A zero denominator ("0/0" is reported for some streams) yields 0.0.
    """
    if value is None:
        raise ValueError("Frame rate is missing")
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    if "/" in text:
        numerator, _, denominator = text.partition("/")
        num = float(numerator)
        den = float(denominator)
        if den == 0:
            return 0.0
        return num / den
    return float(text)


class MediaFrameExtractor:
    """Pulls still frames and metadata out of videos with ffmpeg/ffprobe"""

    def __init__(self, config: MediaConfig):
        self.config = config
        self.frames_dir = config.frames_dir
        self.ffmpeg_path = config.ffmpeg_path
        self.ffprobe_path = config.ffprobe_path
        self.frame_size = config.frame_size

    async def extract_frames(self, video_path: str, frame_rate: Optional[float] = None,
                             max_frames: Optional[int] = None, start_offset: float = 0.0) -> List[str]:
        """Sample frames at ``frame_rate`` fps, at most ``max_frames``, in temporal order"""
        frame_rate = frame_rate if frame_rate is not None else self.config.frame_rate
        max_frames = max_frames if max_frames is not None else self.config.max_frames
        if frame_rate <= 0:
            raise ValueError(f"Frame rate must be positive: {frame_rate}")
        if max_frames <= 0:
            raise ValueError(f"Max frames must be positive: {max_frames}")

        logger.info(f"Extracting frames from video: {video_path}")

        job = ExtractionJob(
            video_path=video_path,
            frame_rate=frame_rate,
            max_frames=max_frames,
            start_offset=start_offset,
            output_dir=self._job_output_dir(video_path),
        )
        await asyncio.to_thread(os.makedirs, job.output_dir, exist_ok=False)

        width, height = self.frame_size
        await self._run_tool([
            self.ffmpeg_path, "-hide_banner", "-loglevel", "error", "-nostdin",
            "-ss", f"{start_offset:g}",
            "-i", video_path,
            "-vf", f"fps={frame_rate:g},scale={width}:{height}",
            "-frames:v", str(max_frames),
            "-q:v", "2",
            self._output_pattern(job.output_dir),
        ])

        job.frames = await asyncio.to_thread(self._collect_frames, job.output_dir)
        logger.info(f"Frames extracted successfully: {len(job.frames)} frames")
        return job.frames

    async def extract_single_frame(self, video_path: str, timestamp: float = 0.0) -> str:
        """Decode exactly one frame at ``timestamp`` seconds"""
        if timestamp < 0:
            raise ValueError(f"Timestamp must be non-negative: {timestamp}")

        await asyncio.to_thread(os.makedirs, self.frames_dir, exist_ok=True)
        output_path = os.path.join(self.frames_dir, f"frame_{time.time_ns()}.jpg")

        await self._run_tool([
            self.ffmpeg_path, "-hide_banner", "-loglevel", "error", "-nostdin",
            "-ss", f"{timestamp:g}",
            "-i", video_path,
            "-frames:v", "1",
            "-q:v", "2",
            "-update", "1",
            "-y", output_path,
        ])

        if not await asyncio.to_thread(os.path.exists, output_path):
            raise ExtractionError(f"No frame decoded at {timestamp}s from {video_path}")

        logger.info(f"Frame extracted at {timestamp}s: {output_path}")
        return output_path

    async def get_metadata(self, video_path: str) -> VideoMetadata:
        stdout = await self._run_tool([
            self.ffprobe_path, "-v", "error",
            "-print_format", "json",
            "-show_format", "-show_streams",
            video_path,
        ])

        try:
            probe = json.loads(stdout or "{}")
            return self._parse_metadata(probe)
        except (ValueError, TypeError, ZeroDivisionError) as e:
            logger.error(f"Failed to get video metadata: {e}")
            raise ExtractionError(f"Unreadable ffprobe output for {video_path}: {e}") from e

    async def cleanup_older_than(self, max_age_ms: int) -> int:
        """Delete frame files older than ``max_age_ms``; returns how many were removed"""
        return await asyncio.to_thread(self._cleanup_sync, max_age_ms)

    def _job_output_dir(self, video_path: str) -> str:
        video_name = Path(video_path).stem
        return os.path.join(self.frames_dir, f"{video_name}_{time.time_ns()}")

    @staticmethod
    def _output_pattern(output_dir: str) -> str:
        # image2 reads every % in the path as pattern syntax
        return os.path.join(output_dir.replace("%", "%%"), FRAME_PATTERN)

    @staticmethod
    def _collect_frames(output_dir: str) -> List[str]:
        indexed = []
        for name in os.listdir(output_dir):
            match = _FRAME_INDEX_RE.match(name)
            if match:
                indexed.append((int(match.group(1)), os.path.join(output_dir, name)))
        return [path for _, path in sorted(indexed)]

    @staticmethod
    def _parse_metadata(probe: Dict[str, Any]) -> VideoMetadata:
        fmt = probe.get("format") or {}
        streams = probe.get("streams") or []
        video_stream = next((s for s in streams if s.get("codec_type") == "video"),
                            streams[0] if streams else {})

        def as_float(value):
            return float(value) if value not in (None, "", "N/A") else None

        def as_int(value):
            return int(float(value)) if value not in (None, "", "N/A") else None

        rate = video_stream.get("r_frame_rate") or video_stream.get("avg_frame_rate")
        return VideoMetadata(
            duration=as_float(fmt.get("duration")),
            size_bytes=as_int(fmt.get("size")),
            bitrate=as_int(fmt.get("bit_rate")),
            width=as_int(video_stream.get("width")),
            height=as_int(video_stream.get("height")),
            fps=parse_frame_rate(rate) if rate else None,
        )

    def _cleanup_sync(self, max_age_ms: int) -> int:
        root = Path(self.frames_dir)
        if not root.exists():
            return 0

        # Ages come from one stat pass: unlinking a frame bumps its directory's mtime
        now = time.time()
        ages_ms = {}
        for path in root.rglob("*"):
            try:
                ages_ms[path] = (now - path.stat().st_mtime) * 1000
            except OSError as e:
                logger.error(f"Cleanup error for {path}: {e}")

        deleted = 0
        for path in sorted(ages_ms, reverse=True):
            if ages_ms[path] <= max_age_ms:
                continue
            try:
                if path.is_file():
                    path.unlink()
                    deleted += 1
                    logger.debug(f"Deleted old frame: {path}")
                # Job directories go only once empty
                elif path.is_dir() and not any(path.iterdir()):
                    path.rmdir()
            except OSError as e:
                logger.error(f"Cleanup error for {path}: {e}")

        if deleted:
            logger.info(f"🧹 Frame cleanup removed {deleted} files older than {max_age_ms} ms")
        return deleted

    async def _run_tool(self, args: Sequence[str]) -> str:
        """Run ffmpeg/ffprobe to completion; non-zero exit raises ExtractionError"""
        logger.debug(f"Running: {' '.join(args)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error(f"Frame extraction error: cannot start {args[0]}: {e}")
            raise ExtractionError(f"Cannot start {args[0]}: {e}") from e

        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            message = stderr.decode(errors="replace").strip() or f"exit code {process.returncode}"
            logger.error(f"Frame extraction error: {message}")
            raise ExtractionError(f"{os.path.basename(args[0])} failed: {message}", tool_output=message)

        return stdout.decode(errors="replace")
