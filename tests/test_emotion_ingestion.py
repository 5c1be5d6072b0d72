import base64
import os

import httpx
import pytest

from emotion_backend.errors import EmotionValidationError, ExtractionError, InvalidPayloadError
from emotion_backend.models.emotion import EmotionRecord, Saved, Skipped
from emotion_backend.services.frame_extractor import MediaFrameExtractor
from emotion_backend.services.media_storage import MediaStorage
from emotion_backend.usecases.emotion_ingestion_usecase import LOW_CONFIDENCE_REASON, EmotionIngestionPipeline
from tests.conftest import FakeToolRunner, InMemoryEmotionRepository, json_handler, ml_response

FRAME_B64 = base64.b64encode(b"\xff\xd8\xff\xe0stream-frame").decode()


@pytest.fixture
def repository():
    return InMemoryEmotionRepository()


@pytest.fixture
def make_pipeline(app_config, make_classifier, repository, monkeypatch):
    def _make(handler, frame_count=3):
        extractor = MediaFrameExtractor(app_config.media)
        monkeypatch.setattr(extractor, "_run_tool", FakeToolRunner(frame_count=frame_count))
        return EmotionIngestionPipeline(
            classifier=make_classifier(handler),
            extractor=extractor,
            storage=MediaStorage(app_config.media),
            emotion_repository=repository,
        )
    return _make


class TestIngestVideo:

    @pytest.mark.asyncio
    async def test_one_record_per_frame_in_order(self, make_pipeline):
        confidences = iter([0.9, 0.7, 0.95, 0.6])

        def handler(request):
            return httpx.Response(200, json=ml_response(next(confidences)))

        pipeline = make_pipeline(handler, frame_count=4)
        records = await pipeline.ingest_video("/videos/clip.mp4", "cam-1")

        assert len(records) == 4
        assert [r.confidence for r in records] == [0.9, 0.7, 0.95, 0.6]
        assert all(r.camera_id == "cam-1" for r in records)
        assert all(r.dominant_emotion == "Happy" for r in records)
        assert [os.path.basename(r.frame_url) for r in records] == [f"frame_{i}.jpg" for i in range(1, 5)]
        assert all(r.id is None for r in records)

    @pytest.mark.asyncio
    async def test_failed_frame_becomes_neutral_record(self, make_pipeline):
        statuses = iter([200, 500, 200])

        def handler(request):
            status = next(statuses)
            return httpx.Response(status, json=ml_response(0.8) if status == 200 else {})

        records = await make_pipeline(handler).ingest_video("/videos/clip.mp4", "cam-1")

        assert len(records) == 3
        assert records[1].dominant_emotion == "Neutral"
        assert records[1].confidence == 0.0
        assert records[1].error
        assert records[0].error is None

    @pytest.mark.asyncio
    async def test_extraction_failure_propagates(self, make_pipeline):
        pipeline = make_pipeline(json_handler(ml_response(0.9)))

        async def broken(args):
            raise ExtractionError("ffmpeg failed: moov atom not found")

        pipeline.extractor._run_tool = broken

        with pytest.raises(ExtractionError):
            await pipeline.ingest_video("/videos/broken.mp4", "cam-1")

    @pytest.mark.asyncio
    async def test_defaults_to_one_fps_and_thirty_frames(self, make_pipeline):
        pipeline = make_pipeline(json_handler(ml_response(0.9)), frame_count=45)
        runner = pipeline.extractor._run_tool

        records = await pipeline.ingest_video("/videos/clip45.mp4", None)

        assert len(records) == 30
        args = runner.calls[0]
        assert args[args.index("-vf") + 1].startswith("fps=1,")


class TestIngestStreamFrame:

    @pytest.mark.asyncio
    async def test_reliable_frame_is_saved(self, make_pipeline, repository):
        pipeline = make_pipeline(json_handler(ml_response(0.85)))

        outcome = await pipeline.ingest_stream_frame(FRAME_B64, "cam-7")

        assert isinstance(outcome, Saved)
        assert outcome.record.id == 1
        assert outcome.record.camera_id == "cam-7"
        assert repository.create_calls == 1
        with open(outcome.record.frame_url, "rb") as f:
            assert f.read() == b"\xff\xd8\xff\xe0stream-frame"

    @pytest.mark.asyncio
    async def test_unreliable_frame_is_skipped_without_persisting(self, make_pipeline, repository):
        pipeline = make_pipeline(json_handler(ml_response(0.3)))

        outcome = await pipeline.ingest_stream_frame(FRAME_B64, "cam-7")

        assert outcome == Skipped(reason=LOW_CONFIDENCE_REASON, confidence=0.3)
        assert repository.create_calls == 0

    @pytest.mark.asyncio
    async def test_classifier_outage_is_skipped(self, make_pipeline, repository):
        outcome = await make_pipeline(json_handler({}, status_code=503)).ingest_stream_frame(FRAME_B64, None)

        assert isinstance(outcome, Skipped)
        assert outcome.confidence == 0.0
        assert repository.create_calls == 0

    @pytest.mark.asyncio
    async def test_data_uri_prefix_is_accepted(self, make_pipeline):
        pipeline = make_pipeline(json_handler(ml_response(0.85)))

        outcome = await pipeline.ingest_stream_frame(f"data:image/jpeg;base64,{FRAME_B64}", "cam-7")

        assert isinstance(outcome, Saved)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", ["", "   ", "%%%not-base64%%%"])
    async def test_invalid_payload_is_rejected(self, make_pipeline, repository, payload):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=ml_response(0.9))

        with pytest.raises(InvalidPayloadError):
            await make_pipeline(handler).ingest_stream_frame(payload, "cam-7")

        assert calls == []
        assert repository.create_calls == 0


@pytest.mark.asyncio
async def test_persist_validates_before_writing(make_pipeline, repository):
    pipeline = make_pipeline(json_handler(ml_response(0.9)))
    good = EmotionRecord(camera_id="cam-1", timestamp=None, emotions=ml_response(0.9)["emotions"],
                         dominant_emotion="Happy", confidence=0.9)
    bad = EmotionRecord(camera_id="cam-1", timestamp=None, emotions={"happy": 0.7, "sad": 0.7},
                        dominant_emotion="Happy", confidence=0.7)

    with pytest.raises(EmotionValidationError):
        await pipeline.persist([good, bad])

    assert repository.create_calls == 0
    assert await pipeline.persist([]) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("kwargs", [{"frame_rate": 0}, {"max_frames": 0}])
async def test_explicit_zero_sampling_is_rejected(make_pipeline, kwargs):
    pipeline = make_pipeline(json_handler(ml_response(0.9)))

    with pytest.raises(ValueError):
        await pipeline.ingest_video("/videos/clip.mp4", "cam-1", **kwargs)
