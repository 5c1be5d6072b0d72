# emotion_backend/repositories/relational_db/emotion_repository_impl.py
import logging
from typing import List

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, sessionmaker

from emotion_backend.db.models import EmotionRecordModel
from emotion_backend.errors import StorageError
from emotion_backend.helpers.query_builder import apply_filters, apply_ordering, apply_window
from emotion_backend.helpers.time_utils import from_utc_naive, to_utc_naive
from emotion_backend.models.emotion import EmotionRecord
from emotion_backend.models.filters import EmotionHistoryFilter, Filter, OrderBy
from emotion_backend.repositories.emotion_repository import EmotionRepository

logger = logging.getLogger(__name__)


class EmotionRepositoryImpl(EmotionRepository):
    """Append-only emotion history backed by SQLAlchemy"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def create(self, record: EmotionRecord) -> EmotionRecord:
        with self.session_factory() as session:
            try:
                model = self._to_model(record)
                session.add(model)
                session.commit()
                session.refresh(model)
                logger.debug(f"Stored emotion record {model.id} for camera {record.camera_id}")
                return self._to_domain(model)
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Error storing emotion record: {e}")
                raise StorageError(f"Failed to store emotion record: {e}") from e

    def create_many(self, records: List[EmotionRecord]) -> List[EmotionRecord]:
        return [self.create(record) for record in records]

    def list_history(self, history_filter: EmotionHistoryFilter) -> List[EmotionRecord]:
        try:
            with self.session_factory() as session:
                query = self._filtered_query(session, history_filter)
                query = apply_ordering(query, EmotionRecordModel, [OrderBy(column="id", order="asc")])
                query = apply_window(query, history_filter.limit, history_filter.offset)
                return [self._to_domain(model) for model in query.all()]
        except SQLAlchemyError as e:
            logger.error(f"Error reading emotion history: {e}")
            raise StorageError(f"Failed to read emotion history: {e}") from e

    def count(self, history_filter: EmotionHistoryFilter) -> int:
        try:
            with self.session_factory() as session:
                query = self._filtered_query(session, history_filter)
                return query.with_entities(func.count(EmotionRecordModel.id)).scalar() or 0
        except SQLAlchemyError as e:
            logger.error(f"Error counting emotion records: {e}")
            raise StorageError(f"Failed to count emotion records: {e}") from e

    def _filtered_query(self, session: Session, history_filter: EmotionHistoryFilter) -> Query:
        filters = []
        if history_filter.camera_id is not None:
            filters.append(Filter(column="camera_id", type="eq", value=history_filter.camera_id))
        if history_filter.start is not None:
            filters.append(Filter(column="timestamp", type="gte", value=to_utc_naive(history_filter.start)))
        if history_filter.end is not None:
            filters.append(Filter(column="timestamp", type="lte", value=to_utc_naive(history_filter.end)))
        return apply_filters(session.query(EmotionRecordModel), EmotionRecordModel, filters)

    def _to_model(self, record: EmotionRecord) -> EmotionRecordModel:
        return EmotionRecordModel(
            camera_id=record.camera_id,
            timestamp=to_utc_naive(record.timestamp),
            emotions=dict(record.emotions),
            dominant_emotion=record.dominant_emotion,
            confidence=float(record.confidence),
            face_detected=bool(record.face_detected),
            frame_url=record.frame_url,
            box=record.box,
            record_metadata=dict(record.metadata) if record.metadata else None,
            error=record.error,
        )

    def _to_domain(self, model: EmotionRecordModel) -> EmotionRecord:
        return EmotionRecord(
            id=model.id,
            camera_id=model.camera_id,
            timestamp=from_utc_naive(model.timestamp),
            emotions=dict(model.emotions or {}),
            dominant_emotion=model.dominant_emotion,
            confidence=model.confidence,
            face_detected=bool(model.face_detected),
            frame_url=model.frame_url,
            box=model.box,
            metadata=dict(model.record_metadata or {}),
            error=model.error,
        )
