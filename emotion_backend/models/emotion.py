# emotion_backend/models/emotion.py
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from emotion_backend.errors import EmotionValidationError

EMOTION_CATEGORIES = ['happy', 'sad', 'angry', 'fear', 'surprise', 'disgust', 'neutral']

SCORE_SUM_TOLERANCE = 0.01


def neutral_scores() -> Dict[str, float]:
    """All categories zero except neutral"""
    scores = {emotion: 0.0 for emotion in EMOTION_CATEGORIES}
    scores['neutral'] = 1.0
    return scores


def dominant_emotion(emotions: Dict[str, float]) -> str:
    """Category with the highest score, 'neutral' when nothing scores above zero"""
    max_emotion = 'neutral'
    max_value = 0.0
    for emotion, value in emotions.items():
        if value > max_value:
            max_value = value
            max_emotion = emotion
    return max_emotion


def validate_emotion_scores(emotions: Dict[str, float]) -> None:
    """Raise EmotionValidationError unless the scores are probabilities summing to ~1.0.

    An empty mapping is accepted: label-only detections carry no scores.
    """
    if not emotions:
        return

    for emotion, value in emotions.items():
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise EmotionValidationError(f"Score for '{emotion}' is not a number: {value!r}")
        if value < 0.0 or value > 1.0:
            raise EmotionValidationError(f"Score for '{emotion}' out of range [0, 1]: {value}")

    total = sum(emotions.values())
    if abs(total - 1.0) > SCORE_SUM_TOLERANCE:
        raise EmotionValidationError(f"Emotion scores must sum to 1.0 (got {total:.4f})")


@dataclass(frozen=True)
class ClassificationResult:
    """Result reported by the external classification service"""
    emotions: Dict[str, float]
    dominant_emotion: str
    confidence: float
    face_detected: bool
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.error is not None

    @classmethod
    def fallback(cls, error: str) -> 'ClassificationResult':
        """Deterministic neutral result used when the classifier is unavailable"""
        return cls(
            emotions=neutral_scores(),
            dominant_emotion='neutral',
            confidence=0.0,
            face_detected=False,
            error=error or "unknown classification error"
        )


@dataclass(frozen=True)
class EmotionRecord:
    """One classified frame, appended to the store and never updated"""
    camera_id: Optional[str]
    timestamp: datetime
    emotions: Dict[str, float]
    dominant_emotion: str
    confidence: float
    face_detected: bool = False
    frame_url: Optional[str] = None
    box: Optional[Any] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    id: Optional[int] = None

    def validate(self) -> None:
        validate_emotion_scores(self.emotions)
        if self.confidence is None or self.confidence < 0.0:
            raise EmotionValidationError(f"Confidence must be non-negative: {self.confidence}")

    def with_id(self, record_id: int) -> 'EmotionRecord':
        return replace(self, id=record_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "camera_id": self.camera_id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "emotions": dict(self.emotions),
            "dominant_emotion": self.dominant_emotion,
            "confidence": self.confidence,
            "face_detected": self.face_detected,
            "frame_url": self.frame_url,
            "box": self.box,
            "metadata": dict(self.metadata),
            "error": self.error,
        }


@dataclass(frozen=True)
class Saved:
    record: EmotionRecord


@dataclass(frozen=True)
class Skipped:
    reason: str
    confidence: float = 0.0


IngestOutcome = Union[Saved, Skipped]


@dataclass
class EmotionStats:
    """Aggregated detections for one camera (or all cameras) over a period"""
    camera_id: Optional[str]
    start: Optional[datetime]
    end: Optional[datetime]
    total_detections: int = 0
    emotions_summary: Dict[str, int] = field(default_factory=lambda: {e: 0 for e in EMOTION_CATEGORIES})
    dominant_emotion: str = 'neutral'
    average_confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "camera_id": self.camera_id,
            "period": {
                "start": self.start.isoformat() if self.start else None,
                "end": self.end.isoformat() if self.end else None,
            },
            "total_detections": self.total_detections,
            "emotions_summary": dict(self.emotions_summary),
            "dominant_emotion": self.dominant_emotion,
            "average_confidence": self.average_confidence,
        }


def records_to_dicts(records: List[EmotionRecord]) -> List[Dict[str, Any]]:
    return [record.to_dict() for record in records]
