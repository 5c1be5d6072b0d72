from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID

class CameraStatus(str, Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"

@dataclass
class Camera:
    guid: Optional[UUID] = None
    name: Optional[str] = None
    stream_url: Optional[str] = None
    status: CameraStatus = CameraStatus.OFFLINE
    created_at: Optional[datetime] = None
    
    @property
    def is_online(self) -> bool:
        return self.status == CameraStatus.ONLINE
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "guid": str(self.guid) if self.guid else None,
            "name": self.name,
            "stream_url": self.stream_url,
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
