import json
import os
import re
from typing import Callable, Dict, List, Optional

import httpx
import pytest

from emotion_backend.config import AppConfig, ClassifierConfig, DatabaseConfig, MediaConfig, ServerConfig
from emotion_backend.di.dependencies import DatabaseManager
from emotion_backend.models.emotion import EmotionRecord
from emotion_backend.models.filters import EmotionHistoryFilter
from emotion_backend.repositories.emotion_repository import EmotionRepository
from emotion_backend.services.classification_client import EmotionClassificationClient

ML_URL = "http://ml.test"

HAPPY_RESPONSE = {
    "emotions": {"happy": 0.82, "sad": 0.02, "angry": 0.01, "fear": 0.01,
                 "surprise": 0.08, "disgust": 0.01, "neutral": 0.05},
    "dominant_emotion": "happy",
    "confidence": 0.82,
    "face_detected": True,
}


def ml_response(confidence: float, dominant: str = "happy") -> Dict:
    """A well-formed classifier payload whose dominant score equals ``confidence``"""
    rest = round((1.0 - confidence) / 6, 6)
    emotions = {e: rest for e in ["happy", "sad", "angry", "fear", "surprise", "disgust", "neutral"]}
    emotions[dominant] = round(1.0 - rest * 6, 6)
    return {"emotions": emotions, "dominant_emotion": dominant,
            "confidence": confidence, "face_detected": True}


def mock_ml_service(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def json_handler(payload: Dict, status_code: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)
    return handler


class InMemoryEmotionRepository(EmotionRepository):
    """Records writes so tests can assert on persistence calls"""

    def __init__(self):
        self.records: List[EmotionRecord] = []
        self.create_calls = 0

    def create(self, record: EmotionRecord) -> EmotionRecord:
        self.create_calls += 1
        saved = record.with_id(len(self.records) + 1)
        self.records.append(saved)
        return saved

    def create_many(self, records: List[EmotionRecord]) -> List[EmotionRecord]:
        return [self.create(record) for record in records]

    def list_history(self, history_filter: EmotionHistoryFilter) -> List[EmotionRecord]:
        return [r for r in self.records
                if history_filter.camera_id is None or r.camera_id == history_filter.camera_id]

    def count(self, history_filter: EmotionHistoryFilter) -> int:
        return len(self.list_history(history_filter))


def expand_image2_pattern(pattern: str, index: int) -> str:
    """Resolve an ffmpeg image2 output pattern the way the muxer does: %d is the index, %% a literal %"""
    return re.sub(r"%(%|d)", lambda m: "%" if m.group(1) == "%" else str(index), pattern)


class FakeToolRunner:
    """Stands in for ffmpeg/ffprobe: writes ``frame_count`` frames or returns probe JSON"""

    def __init__(self, frame_count: int = 3, probe: Optional[Dict] = None):
        self.frame_count = frame_count
        self.probe = probe or {
            "format": {"duration": "45.000000", "size": "1048576", "bit_rate": "186413"},
            "streams": [{"codec_type": "video", "width": 1280, "height": 720,
                         "r_frame_rate": "30000/1001"}],
        }
        self.calls: List[List[str]] = []

    async def __call__(self, args) -> str:
        args = list(args)
        self.calls.append(args)
        if "ffprobe" in os.path.basename(args[0]):
            return json.dumps(self.probe)

        output = args[-1]
        if output.endswith("frame_%d.jpg"):
            max_frames = int(args[args.index("-frames:v") + 1])
            for index in range(1, min(self.frame_count, max_frames) + 1):
                with open(expand_image2_pattern(output, index), "wb") as f:
                    f.write(b"\xff\xd8frame" + str(index).encode())
        else:
            with open(output, "wb") as f:
                f.write(b"\xff\xd8single")
        return ""


def frame_index(path: str) -> int:
    return int(re.search(r"frame_(\d+)\.jpg$", path).group(1))


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    return AppConfig(
        environment="test",
        database=DatabaseConfig(url=f"sqlite:///{tmp_path / 'emotions.db'}"),
        classifier=ClassifierConfig(service_url=ML_URL, timeout=1.0, health_timeout=1.0,
                                    reliability_threshold=0.5),
        media=MediaConfig(uploads_dir=str(tmp_path / "uploads"), cleanup_interval_seconds=0),
        server=ServerConfig(),
    )


@pytest.fixture
def db_manager(app_config):
    manager = DatabaseManager(app_config)
    manager.create_schema()
    yield manager
    manager.close()


@pytest.fixture
def image_file(tmp_path) -> str:
    path = tmp_path / "face.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg-bytes")
    return str(path)


@pytest.fixture
def make_classifier(app_config):
    def _make(handler) -> EmotionClassificationClient:
        return EmotionClassificationClient(app_config.classifier, http_client=mock_ml_service(handler))
    return _make
