# config/external.py
from dataclasses import dataclass
import os
from .base import BaseConfig

@dataclass
class ClassifierConfig(BaseConfig):
    """External emotion classification service configuration"""
    service_url: str = "http://localhost:8000"
    timeout: float = 30.0
    health_timeout: float = 5.0
    reliability_threshold: float = 0.5
    
    @classmethod
    def from_env(cls) -> 'ClassifierConfig':
        return cls(
            service_url=os.getenv('ML_SERVICE_URL', "http://localhost:8000").rstrip("/"),
            timeout=cls.get_env_float('ML_SERVICE_TIMEOUT', 30.0),
            health_timeout=cls.get_env_float('ML_HEALTH_TIMEOUT', 5.0),
            reliability_threshold=cls.get_env_float('EMOTION_RELIABILITY_THRESHOLD', 0.5)
        )
