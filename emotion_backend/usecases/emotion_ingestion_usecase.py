# emotion_backend/usecases/emotion_ingestion_usecase.py
import asyncio
import logging
from typing import List, Optional

from emotion_backend.helpers.time_utils import utc_now
from emotion_backend.models.emotion import EmotionRecord, IngestOutcome, Saved, Skipped
from emotion_backend.repositories.emotion_repository import EmotionRepository
from emotion_backend.services.classification_client import EmotionClassificationClient
from emotion_backend.services.frame_extractor import MediaFrameExtractor
from emotion_backend.services.media_storage import MediaStorage
from emotion_backend.utils.image_utils import decode_base64_image

logger = logging.getLogger(__name__)

LOW_CONFIDENCE_REASON = "Skipped: low confidence"


class EmotionIngestionPipeline:
    """Decode → classify → tag → (gate) → persist.

    Frames of one video are classified one after another so a single upload
    never fans out against the classification service.
    """

    def __init__(self, classifier: EmotionClassificationClient, extractor: MediaFrameExtractor,
                 storage: MediaStorage, emotion_repository: EmotionRepository,
                 video_frame_rate: float = 1.0, video_max_frames: int = 30):
        self.classifier = classifier
        self.extractor = extractor
        self.storage = storage
        self.emotion_repository = emotion_repository
        self.video_frame_rate = video_frame_rate
        self.video_max_frames = video_max_frames

    async def ingest_image(self, image_location: str, camera_id: Optional[str]) -> EmotionRecord:
        """Classify one image into an (unpersisted) EmotionRecord"""
        logger.info(f"Analyzing image: {image_location} from camera {camera_id}")

        result = await self.classifier.classify(image_location)

        record = EmotionRecord(
            camera_id=camera_id,
            timestamp=utc_now(),
            emotions=dict(result.emotions),
            dominant_emotion=self.classifier.normalize_label(result.dominant_emotion),
            confidence=result.confidence,
            face_detected=result.face_detected,
            frame_url=image_location,
            error=result.error,
        )

        logger.info(f"Emotion detected: {record.dominant_emotion} ({record.confidence})")
        return record

    async def ingest_video(self, video_location: str, camera_id: Optional[str],
                           frame_rate: Optional[float] = None, max_frames: Optional[int] = None,
                           start_offset: float = 0.0) -> List[EmotionRecord]:
        """Classify sampled frames of a video, in extraction order"""
        logger.info(f"Analyzing video: {video_location}")

        frames = await self.extractor.extract_frames(
            video_location,
            frame_rate=frame_rate if frame_rate is not None else self.video_frame_rate,
            max_frames=max_frames if max_frames is not None else self.video_max_frames,
            start_offset=start_offset,
        )
        logger.info(f"Extracted {len(frames)} frames from video")

        records = []
        for frame in frames:
            records.append(await self.ingest_image(frame, camera_id))
        return records

    async def ingest_video_frame(self, video_location: str, camera_id: Optional[str],
                                 timestamp: float = 0.0) -> EmotionRecord:
        """Classify the single frame found at ``timestamp`` seconds"""
        frame = await self.extractor.extract_single_frame(video_location, timestamp)
        return await self.ingest_image(frame, camera_id)

    async def ingest_stream_frame(self, encoded_image: str, camera_id: Optional[str]) -> IngestOutcome:
        """Classify a base64 camera frame; only reliable results are persisted"""
        frame_bytes = decode_base64_image(encoded_image)
        frame_path = await self.storage.write_frame(frame_bytes, prefix="stream")

        record = await self.ingest_image(frame_path, camera_id)

        if not self.classifier.is_reliable(record.confidence):
            logger.info(f"Stream frame from camera {camera_id} skipped: confidence {record.confidence}")
            return Skipped(reason=LOW_CONFIDENCE_REASON, confidence=record.confidence)

        saved = await self.persist([record])
        return Saved(record=saved[0])

    async def persist(self, records: List[EmotionRecord]) -> List[EmotionRecord]:
        """Validate then append records; the store runs in a worker thread"""
        for record in records:
            record.validate()
        if not records:
            return []
        return await asyncio.to_thread(self.emotion_repository.create_many, records)
