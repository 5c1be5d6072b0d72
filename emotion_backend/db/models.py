# emotion_backend/db/models.py
import uuid
from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String, Uuid, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()

class CameraModel(Base):
    __tablename__ = "camera"

    guid = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=True)
    stream_url = Column(String(2048), nullable=True)
    status = Column(String(16), nullable=False, default="OFFLINE")
    created_at = Column(DateTime, nullable=False, default=func.now())

class EmotionRecordModel(Base):
    __tablename__ = "emotion_record"

    # Autoincrement id doubles as insertion order for history reads
    id = Column(Integer, primary_key=True, autoincrement=True)
    camera_id = Column(String(255), nullable=True, index=True)
    timestamp = Column(DateTime, nullable=False, index=True)
    emotions = Column(JSON, nullable=False, default=dict)
    dominant_emotion = Column(String(64), nullable=False)
    confidence = Column(Float, nullable=False, default=0.0)
    face_detected = Column(Boolean, nullable=False, default=False)
    frame_url = Column(String(2048), nullable=True)
    box = Column(JSON, nullable=True)
    record_metadata = Column("metadata", JSON, nullable=True)
    error = Column(String(1024), nullable=True)
