from datetime import datetime, timedelta, timezone

import pytest

from emotion_backend.models.emotion import EmotionRecord
from emotion_backend.models.filters import EmotionHistoryFilter
from emotion_backend.repositories.relational_db.emotion_repository_impl import EmotionRepositoryImpl
from tests.conftest import HAPPY_RESPONSE

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_record(camera_id="cam-1", minutes=0, dominant="Happy", confidence=0.82, **kwargs) -> EmotionRecord:
    return EmotionRecord(
        camera_id=camera_id,
        timestamp=T0 + timedelta(minutes=minutes),
        emotions=dict(HAPPY_RESPONSE["emotions"]),
        dominant_emotion=dominant,
        confidence=confidence,
        face_detected=True,
        **kwargs
    )


@pytest.fixture
def repository(db_manager) -> EmotionRepositoryImpl:
    return EmotionRepositoryImpl(db_manager.session_factory)


def test_round_trip_keeps_every_field(repository):
    record = make_record(
        frame_url="uploads/frames/clip_1/frame_1.jpg",
        box={"x": 10, "y": 20, "w": 64, "h": 64},
        metadata={"source": "upload"},
    )

    saved = repository.create(record)
    [loaded] = repository.list_history(EmotionHistoryFilter())

    assert saved.id is not None
    assert loaded == saved
    assert loaded.with_id(None) == record
    assert loaded.timestamp.tzinfo is not None


def test_history_is_in_insertion_order(repository):
    # later timestamps inserted first must still come back in write order
    repository.create_many([make_record(minutes=5), make_record(minutes=1), make_record(minutes=3)])

    history = repository.list_history(EmotionHistoryFilter(camera_id="cam-1"))

    assert [r.timestamp.minute for r in history] == [5, 1, 3]
    assert [r.id for r in history] == sorted(r.id for r in history)


def test_filters_by_camera_and_period(repository):
    repository.create_many([
        make_record("cam-1", minutes=0),
        make_record("cam-2", minutes=10),
        make_record("cam-1", minutes=20),
        make_record("cam-1", minutes=40),
    ])

    by_camera = repository.list_history(EmotionHistoryFilter(camera_id="cam-2"))
    in_period = repository.list_history(EmotionHistoryFilter(
        camera_id="cam-1", start=T0 + timedelta(minutes=10), end=T0 + timedelta(minutes=40)
    ))

    assert [r.camera_id for r in by_camera] == ["cam-2"]
    assert [r.timestamp for r in in_period] == [T0 + timedelta(minutes=20), T0 + timedelta(minutes=40)]
    assert repository.count(EmotionHistoryFilter(camera_id="cam-1")) == 3


def test_limit_and_offset(repository):
    repository.create_many([make_record(minutes=i) for i in range(5)])

    page = repository.list_history(EmotionHistoryFilter(limit=2, offset=1))

    assert [r.timestamp.minute for r in page] == [1, 2]


def test_label_only_detection_without_scores(repository):
    saved = repository.create(EmotionRecord(
        camera_id=None, timestamp=T0, emotions={}, dominant_emotion="Sad", confidence=0.7
    ))

    assert saved.emotions == {}
    assert saved.metadata == {}
    assert saved.camera_id is None
