import base64
from datetime import datetime, timezone

import pytest

from emotion_backend.errors import EmotionValidationError, InvalidPayloadError
from emotion_backend.models.emotion import (
    ClassificationResult,
    EmotionRecord,
    dominant_emotion,
    neutral_scores,
    validate_emotion_scores,
)
from emotion_backend.utils.image_utils import decode_base64_image, strip_data_uri


class TestEmotionScores:

    def test_accepts_sum_within_tolerance(self):
        validate_emotion_scores({"happy": 0.6, "sad": 0.395})
        validate_emotion_scores({"happy": 0.5, "neutral": 0.509})

    def test_accepts_empty_mapping(self):
        validate_emotion_scores({})

    @pytest.mark.parametrize("emotions", [
        {"happy": 0.7, "sad": 0.7},
        {"happy": 0.5, "sad": 0.48},
        {"happy": 1.2, "sad": -0.2},
        {"happy": "high", "neutral": 0.0},
        {"happy": True},
    ])
    def test_rejects_invalid_scores(self, emotions):
        with pytest.raises(EmotionValidationError):
            validate_emotion_scores(emotions)

    def test_dominant_emotion(self):
        assert dominant_emotion({"happy": 0.2, "angry": 0.7, "sad": 0.1}) == "angry"
        assert dominant_emotion({"happy": 0.0}) == "neutral"
        assert dominant_emotion({}) == "neutral"


def test_fallback_result_is_deterministic():
    first = ClassificationResult.fallback("Connection refused")
    second = ClassificationResult.fallback("Connection refused")

    assert first == second
    assert first.emotions == neutral_scores()
    assert first.dominant_emotion == "neutral"
    assert first.confidence == 0.0
    assert first.face_detected is False
    assert first.is_fallback


def test_record_rejects_negative_confidence():
    record = EmotionRecord(camera_id="cam-1", timestamp=datetime.now(timezone.utc),
                           emotions=neutral_scores(), dominant_emotion="Neutral", confidence=-0.1)

    with pytest.raises(EmotionValidationError):
        record.validate()


def test_record_to_dict():
    ts = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    record = EmotionRecord(camera_id="cam-1", timestamp=ts, emotions={"happy": 1.0},
                           dominant_emotion="Happy", confidence=0.9, id=7)

    data = record.to_dict()

    assert data["id"] == 7
    assert data["timestamp"] == "2024-05-01T12:00:00+00:00"
    assert data["emotions"] == {"happy": 1.0}
    assert data["metadata"] == {}


class TestBase64Images:

    def test_strip_data_uri(self):
        assert strip_data_uri("data:image/png;base64,AAAA") == "AAAA"
        assert strip_data_uri("AAAA") == "AAAA"

    def test_decode_ignores_line_breaks(self):
        encoded = base64.b64encode(b"jpeg-bytes" * 20).decode()
        wrapped = "\n".join(encoded[i:i + 16] for i in range(0, len(encoded), 16))

        assert decode_base64_image(wrapped) == b"jpeg-bytes" * 20

    @pytest.mark.parametrize("payload", ["", "data:image/jpeg;base64,", "not base64!", None])
    def test_decode_rejects_invalid(self, payload):
        with pytest.raises(InvalidPayloadError):
            decode_base64_image(payload)
