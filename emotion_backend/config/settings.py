# config/settings.py
from dataclasses import dataclass
import logging
import os
import shutil
from .base import BaseConfig
from .database import DatabaseConfig
from .external import ClassifierConfig
from .media import MediaConfig
from .server import ServerConfig

logger = logging.getLogger(__name__)

@dataclass
class AppConfig(BaseConfig):
    """Main application configuration"""
    # Application settings
    environment: str = "production"
    log_level: str = "INFO"
    debug: bool = False

    # Component configurations
    database: DatabaseConfig = None
    classifier: ClassifierConfig = None
    media: MediaConfig = None
    server: ServerConfig = None

    def __post_init__(self):
        if self.database is None:
            self.database = DatabaseConfig.from_env()
        if self.classifier is None:
            self.classifier = ClassifierConfig.from_env()
        if self.media is None:
            self.media = MediaConfig.from_env()
        if self.server is None:
            self.server = ServerConfig.from_env()

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """Create complete configuration from environment variables"""
        return cls(
            environment=os.getenv('APP_ENV', 'production'),
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
            debug=cls.get_env_bool('DEBUG', False),
            database=DatabaseConfig.from_env(),
            classifier=ClassifierConfig.from_env(),
            media=MediaConfig.from_env(),
            server=ServerConfig.from_env()
        )

    def validate(self) -> bool:
        """Validate configuration settings"""
        errors = []

        if not self.classifier.service_url.startswith(("http://", "https://")):
            errors.append(f"ML service URL must be http(s): {self.classifier.service_url}")

        if self.classifier.timeout <= 0:
            errors.append("ML service timeout must be positive")

        if not 0.0 <= self.classifier.reliability_threshold <= 1.0:
            errors.append(f"Reliability threshold must be within [0, 1]: {self.classifier.reliability_threshold}")

        if self.media.frame_rate <= 0 or self.media.video_frame_rate <= 0:
            errors.append("Frame rates must be positive")

        if self.media.max_frames <= 0 or self.media.video_max_frames <= 0:
            errors.append("Max frame counts must be positive")

        # Validate external tools are reachable
        for tool in (self.media.ffmpeg_path, self.media.ffprobe_path):
            if shutil.which(tool) is None:
                errors.append(f"Media tool not found: {tool}")

        if not self.database.url:
            errors.append("Database URL is not configured")

        if errors:
            logger.error("Configuration validation errors:")
            for error in errors:
                logger.error(f"  - {error}")
            return False

        return True
