# config/base.py
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
import os
from typing import Any, Dict, Tuple

@dataclass
class BaseConfig(ABC):
    """Base configuration class with common functionality"""
    
    @classmethod
    @abstractmethod
    def from_env(cls) -> 'BaseConfig':
        """Create configuration from environment variables"""
        pass
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        return asdict(self)
    
    @staticmethod
    def get_env_bool(key: str, default: bool = False) -> bool:
        """Get boolean value from environment variable"""
        return os.getenv(key, str(default)).lower() in ('true', '1', 'yes', 'on')
    
    @staticmethod
    def get_env_int(key: str, default: int) -> int:
        """Get integer value from environment variable"""
        return int(os.getenv(key, str(default)))
    
    @staticmethod
    def get_env_float(key: str, default: float) -> float:
        """Get float value from environment variable"""
        return float(os.getenv(key, str(default)))
    
    @staticmethod
    def get_env_size(key: str, default: Tuple[int, int]) -> Tuple[int, int]:
        """Get a WIDTHxHEIGHT value from environment variable"""
        env_value = os.getenv(key)
        if env_value:
            try:
                width, height = map(int, env_value.lower().split('x'))
                return (width, height)
            except ValueError:
                pass  # Use default
        return default
