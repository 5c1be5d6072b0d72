# config/database.py
import os
from dataclasses import dataclass
from .base import BaseConfig

@dataclass
class DatabaseConfig(BaseConfig):
    """Emotion/camera store configuration"""
    url: str = "sqlite:///data/emotion_backend.db"
    pool_size: int = 10
    max_overflow: int = 10
    connection_timeout: int = 30
    echo: bool = False
    
    @classmethod
    def from_env(cls) -> 'DatabaseConfig':
        return cls(
            url=os.getenv('DATABASE_URL', cls.url),
            pool_size=cls.get_env_int('DB_POOL_SIZE', 10),
            max_overflow=cls.get_env_int('DB_MAX_OVERFLOW', 10),
            connection_timeout=cls.get_env_int('DB_CONNECTION_TIMEOUT', 30),
            echo=cls.get_env_bool('DB_ECHO', False)
        )
    
    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")
    
    @property
    def safe_url(self) -> str:
        """Connection URL with the password masked, for logging"""
        if "@" not in self.url or "://" not in self.url:
            return self.url
        scheme, rest = self.url.split("://", 1)
        credentials, host = rest.rsplit("@", 1)
        user = credentials.split(":", 1)[0]
        return f"{scheme}://{user}:***@{host}"
