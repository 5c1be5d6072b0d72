# emotion_backend/usecases/emotion_usecase.py
import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional

from emotion_backend.helpers.time_utils import utc_now
from emotion_backend.models.emotion import (
    EMOTION_CATEGORIES,
    EmotionRecord,
    EmotionStats,
    IngestOutcome,
    Saved,
    Skipped,
)
from emotion_backend.models.filters import EmotionHistoryFilter
from emotion_backend.repositories.emotion_repository import EmotionRepository
from emotion_backend.services.classification_client import EmotionClassificationClient

logger = logging.getLogger(__name__)

SKIPPED_DETECTION_MESSAGE = "Skipped: Low confidence (model is unsure)"


class EmotionUseCase:
    def __init__(self, emotion_repository: EmotionRepository, classifier: EmotionClassificationClient):
        self.emotion_repo = emotion_repository
        self.classifier = classifier

    def save_detection(self, label: str, confidence: float, box: Any = None,
                       metadata: Optional[Dict[str, Any]] = None) -> IngestOutcome:
        """Store a detection reported by an AI client, unless it is unreliable"""
        if not self.classifier.is_reliable(confidence):
            logger.info(f"Detection '{label}' skipped: confidence {confidence}")
            return Skipped(reason=SKIPPED_DETECTION_MESSAGE, confidence=confidence)

        metadata = dict(metadata or {})
        camera_id = metadata.get("camera_id")
        record = EmotionRecord(
            camera_id=str(camera_id) if camera_id is not None else None,
            timestamp=utc_now(),
            emotions={},
            dominant_emotion=self.classifier.normalize_label(label),
            confidence=confidence,
            face_detected=box is not None,
            box=box,
            metadata=metadata,
        )
        record.validate()

        try:
            return Saved(record=self.emotion_repo.create(record))
        except Exception as e:
            logger.error(f"Error saving detection: {e}")
            raise

    def get_history(self, camera_id: Optional[str] = None, start: Optional[datetime] = None,
                    end: Optional[datetime] = None, limit: Optional[int] = None,
                    offset: int = 0) -> List[EmotionRecord]:
        """Emotion history in insertion order"""
        try:
            return self.emotion_repo.list_history(
                EmotionHistoryFilter(camera_id=camera_id, start=start, end=end, limit=limit, offset=offset)
            )
        except Exception as e:
            logger.error(f"Error reading emotion history: {e}")
            raise

    def get_emotion_stats(self, camera_id: Optional[str] = None, start: Optional[datetime] = None,
                          end: Optional[datetime] = None) -> EmotionStats:
        """Detections per emotion, most frequent emotion and mean confidence for a period"""
        records = self.get_history(camera_id=camera_id, start=start, end=end)
        stats = EmotionStats(camera_id=camera_id, start=start, end=end)
        if not records:
            return stats

        counts = Counter(record.dominant_emotion.lower() for record in records)
        summary = {emotion: counts.get(emotion, 0) for emotion in EMOTION_CATEGORIES}
        for emotion, count in counts.items():
            summary.setdefault(emotion, count)

        stats.total_detections = len(records)
        stats.emotions_summary = summary
        stats.dominant_emotion = counts.most_common(1)[0][0]
        stats.average_confidence = sum(record.confidence for record in records) / len(records)
        return stats
