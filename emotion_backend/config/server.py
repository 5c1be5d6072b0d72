# config/server.py
from dataclasses import dataclass
import os
from .base import BaseConfig

@dataclass
class ServerConfig(BaseConfig):
    """HTTP server configuration"""
    host: str = "0.0.0.0"
    port: int = 5000
    frontend_url: str = "http://localhost:5173"
    
    @classmethod
    def from_env(cls) -> 'ServerConfig':
        return cls(
            host=os.getenv('HOST', "0.0.0.0"),
            port=cls.get_env_int('PORT', 5000),
            frontend_url=os.getenv('FRONTEND_URL', "http://localhost:5173")
        )
