# emotion_backend/di/dependencies.py
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool
from typing import Optional
import logging
import os

import httpx

from emotion_backend.config import AppConfig
from emotion_backend.db.models import Base
from emotion_backend.repositories.relational_db.camera_repository_impl import CameraRepositoryImpl
from emotion_backend.repositories.relational_db.emotion_repository_impl import EmotionRepositoryImpl
from emotion_backend.services.classification_client import EmotionClassificationClient
from emotion_backend.services.frame_extractor import MediaFrameExtractor
from emotion_backend.services.media_storage import MediaStorage
from emotion_backend.usecases.camera_usecase import CameraUseCase
from emotion_backend.usecases.emotion_ingestion_usecase import EmotionIngestionPipeline
from emotion_backend.usecases.emotion_usecase import EmotionUseCase

logger = logging.getLogger(__name__)

class DatabaseManager:
    """Manages database connections and sessions"""

    def __init__(self, config: AppConfig):
        self.config: AppConfig = config
        self._engine = None
        self._session_factory = None
        self._initialize_database()

    def _initialize_database(self):
        """Initialize database engine and session factory"""
        db_config = self.config.database
        try:
            logger.info(f"Initializing database connection to: {db_config.safe_url}")

            if db_config.is_sqlite:
                self._ensure_sqlite_directory(db_config.url)
                self._engine = create_engine(
                    db_config.url,
                    echo=db_config.echo or self.config.debug,
                    connect_args={"check_same_thread": False}
                )
            else:
                # Create engine with connection pooling
                self._engine = create_engine(
                    db_config.url,
                    poolclass=QueuePool,
                    pool_size=db_config.pool_size,
                    max_overflow=db_config.max_overflow,
                    pool_timeout=db_config.connection_timeout,
                    pool_recycle=3600,  # Recycle connections after 1 hour
                    pool_pre_ping=True,
                    echo=db_config.echo or self.config.debug
                )

            # Create session factory
            self._session_factory = sessionmaker(
                bind=self._engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False
            )

            logger.info("Database initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

    @staticmethod
    def _ensure_sqlite_directory(url: str):
        path = url.split("///", 1)[-1] if "///" in url else ""
        if path and path != ":memory:":
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)

    @property
    def engine(self):
        """Get database engine"""
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        if not self._session_factory:
            raise RuntimeError("Database not initialized")
        return self._session_factory

    def create_schema(self):
        """Create missing tables"""
        Base.metadata.create_all(self._engine)

    def check_connection(self):
        """Round-trip a trivial query; raises when the store is unreachable"""
        with self._engine.connect() as connection:
            connection.execute(text("SELECT 1"))

    def close(self):
        """Close database connections"""
        if self._engine:
            self._engine.dispose()
            logger.info("Database connections closed")


class DependencyContainer:
    """Builds and owns every service of one application instance"""

    def __init__(self, config: AppConfig, db_manager: Optional[DatabaseManager] = None,
                 http_client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)

        self.camera_repository = CameraRepositoryImpl(self.db_manager.session_factory)
        self.emotion_repository = EmotionRepositoryImpl(self.db_manager.session_factory)

        self.classifier = EmotionClassificationClient(config.classifier, http_client=http_client)
        self.frame_extractor = MediaFrameExtractor(config.media)
        self.media_storage = MediaStorage(config.media)

        self.camera_usecase = CameraUseCase(self.camera_repository)
        self.emotion_usecase = EmotionUseCase(self.emotion_repository, self.classifier)
        self.ingestion_pipeline = EmotionIngestionPipeline(
            classifier=self.classifier,
            extractor=self.frame_extractor,
            storage=self.media_storage,
            emotion_repository=self.emotion_repository,
            video_frame_rate=config.media.video_frame_rate,
            video_max_frames=config.media.video_max_frames
        )

        logger.info("Dependency container initialized")

    def startup(self):
        """Verify the store is reachable and its schema exists"""
        self.db_manager.check_connection()
        self.db_manager.create_schema()
        os.makedirs(self.config.media.frames_dir, exist_ok=True)
        os.makedirs(self.config.media.videos_dir, exist_ok=True)

    async def close(self):
        """Close all resources"""
        await self.classifier.aclose()
        self.db_manager.close()
