# config/__init__.py
from .settings import AppConfig
from .database import DatabaseConfig
from .external import ClassifierConfig
from .media import MediaConfig
from .server import ServerConfig

__all__ = [
    'AppConfig',
    'DatabaseConfig', 
    'ClassifierConfig',
    'MediaConfig',
    'ServerConfig'
]
